"""
Ledger Error Taxonomy

Every failure the ledger core can report has a class here and a stable
ErrorCode. Repositories catch LedgerError and hand the code back inside an
OperationResult; the pure calculators raise these directly.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Machine-readable failure codes carried by OperationResult."""
    STORE_UNAVAILABLE = "store_unavailable"
    INVALID_REFERENCE = "invalid_reference"
    INVALID_AMOUNT = "invalid_amount"
    INCONSISTENT_STATE = "inconsistent_state"
    NOT_FOUND = "not_found"
    INVALID_INPUT = "invalid_input"


class LedgerError(Exception):
    """Base exception for ledger operations."""

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class StoreUnavailableError(LedgerError):
    """
    The underlying blob store raised, or returned something that is not
    the JSON collection we expected.
    """

    code = ErrorCode.STORE_UNAVAILABLE

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class InvalidReferenceError(LedgerError):
    """A transaction points at a wallet that does not exist."""

    code = ErrorCode.INVALID_REFERENCE

    def __init__(self, wallet_id: str):
        super().__init__(f"Wallet not found: {wallet_id}")
        self.wallet_id = wallet_id


class InvalidAmountError(LedgerError):
    """Amount is non-positive or not a finite number."""

    code = ErrorCode.INVALID_AMOUNT

    def __init__(self, amount: object, reason: str = "Amount must be greater than zero"):
        super().__init__(f"{reason} (got {amount!r})")
        self.amount = amount


class InconsistentStateError(LedgerError):
    """
    A stored wallet balance disagrees with the balance recomputed from
    transaction history.
    """

    code = ErrorCode.INCONSISTENT_STATE

    def __init__(self, wallet_id: str, stored: object, expected: object):
        super().__init__(
            f"Wallet {wallet_id} balance {stored} does not match history ({expected})"
        )
        self.wallet_id = wallet_id
        self.stored = stored
        self.expected = expected


class InvalidInputError(LedgerError):
    """User-supplied fields failed validation (empty name, unknown currency...)."""

    code = ErrorCode.INVALID_INPUT


class NotFoundError(LedgerError):
    """Entity not found."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, entity_type: str, entity_id: str):
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")
        self.entity_type = entity_type
        self.entity_id = entity_id


def summarize_validation_error(error) -> str:
    """First problem of a pydantic ValidationError, as 'field: message'."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "record"
    return f"{location}: {first.get('msg', 'invalid')}"
