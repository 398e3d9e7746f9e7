"""
Operation Result Models

DESIGN DECISION: Repository operations never throw across the
presentation boundary. They return an OperationResult instead, so the
caller can show a message and keep whatever state it already had.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from wallet_ledger.errors import ErrorCode, LedgerError
from wallet_ledger.models.ledger import Transaction, Wallet

T = TypeVar("T")


class OperationResult(BaseModel, Generic[T]):
    """
    Outcome of a repository operation.

    On success `value` holds the updated entity (or None for deletes).
    On failure `error` and `message` say why; `value` may still carry a
    usable fallback (e.g. an empty snapshot after a failed reload).
    """

    success: bool
    value: Optional[T] = None
    error: Optional[ErrorCode] = None
    message: Optional[str] = None
    warnings: list[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, value: Optional[T] = None, warnings: Optional[list[str]] = None) -> "OperationResult[T]":
        return cls(success=True, value=value, warnings=warnings or [])

    @classmethod
    def fail(cls, error: LedgerError, value: Optional[T] = None) -> "OperationResult[T]":
        return cls(
            success=False,
            value=value,
            error=error.code,
            message=error.message,
        )


class LedgerSnapshot(BaseModel):
    """
    Point-in-time copy of the ledger collections.

    Snapshots are copies: callers may hold on to them while the
    repository moves on.
    """

    wallets: list[Wallet] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    selected_wallet_id: Optional[str] = None
    healed_wallet_ids: list[str] = Field(
        default_factory=list,
        description="Wallets whose stored balance was corrected on load"
    )
