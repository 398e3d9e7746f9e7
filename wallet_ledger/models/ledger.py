"""
Core Ledger Models

Wallets and the transactions recorded against them.

These models define the persisted JSON shapes (camelCase keys, via
aliases) and are designed to:
1. Accept every legacy shape still found in user stores
2. Normalize it once, on load
3. Serialize back to the same keys the store has always held

DESIGN DECISION: Money is a Decimal in memory so that reconciliation is
exact, but it is written to JSON as a plain number, which is what the
existing records contain.
"""

import time
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

from wallet_ledger.models.timestamps import normalize_timestamp, utc_now


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Currency(str, Enum):
    """
    Supported wallet currencies.

    No conversion happens between them; totals are always per currency.
    """
    USD = "USD"
    GBP = "GBP"
    EUR = "EUR"
    IRR = "IRR"


# Codes written by older app versions
LEGACY_CURRENCY_CODES = {
    "POUND": Currency.GBP,
}


class TransactionType(str, Enum):
    """Direction of a transaction. The stored amount is always positive."""
    INCOME = "income"
    EXPENSE = "expense"


# =============================================================================
# MONEY
# =============================================================================

Money = Annotated[
    Decimal,
    PlainSerializer(float, return_type=float, when_used="json"),
]


def sanitize_amount(value: Any) -> Any:
    """
    Clean user-entered amounts before validation.

    Strings may carry thousands separators ("1,250.50"). Floats are routed
    through str() so 0.1 becomes Decimal("0.1"), not its binary expansion.
    """
    if isinstance(value, str):
        return value.replace(",", "").strip()
    if isinstance(value, float):
        return str(value)
    return value


def to_decimal(value: Any) -> Decimal:
    """
    Convert a raw amount to a finite Decimal.

    Raises:
        ValueError: If the value is not numeric or not finite
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a numeric amount: {value!r}")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(sanitize_amount(value))
        except (InvalidOperation, TypeError, ValueError):
            raise ValueError(f"Not a numeric amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return amount


# =============================================================================
# IDENTIFIERS
# =============================================================================

_last_issued_id = 0


def new_id() -> str:
    """
    Generate a creation-time token: epoch milliseconds as a string.

    Bumped by one when two ids are requested within the same millisecond,
    so ids issued by this process never collide.
    """
    global _last_issued_id
    candidate = int(time.time() * 1000)
    if candidate <= _last_issued_id:
        candidate = _last_issued_id + 1
    _last_issued_id = candidate
    return str(candidate)


# =============================================================================
# WALLET
# =============================================================================

class Wallet(BaseModel):
    """
    A named balance-holding account in one currency.

    `amount` is the current balance. `starting_amount` is the balance the
    wallet had before any transaction; together with the transaction
    history it determines what `amount` must be.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique wallet ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    currency: Currency = Field(
        default=Currency.USD,
        description="Wallet currency"
    )
    amount: Money = Field(
        default=Decimal("0"),
        description="Current balance (signed)"
    )
    starting_amount: Optional[Money] = Field(
        default=None,
        alias="startingAmount",
        description="Balance before any transaction (None on legacy records)"
    )
    image: Optional[str] = Field(
        default=None,
        description="Opaque image reference (URI)"
    )
    created: datetime = Field(
        default_factory=utc_now,
        description="Creation timestamp"
    )
    updated: datetime = Field(
        default_factory=utc_now,
        description="Last update timestamp"
    )

    @field_validator('currency', mode='before')
    @classmethod
    def migrate_currency(cls, v: Any) -> Any:
        """Upper-case codes and map legacy ones ("POUND") to ISO codes."""
        if v is None:
            return Currency.USD
        if isinstance(v, str):
            code = v.strip().upper()
            return LEGACY_CURRENCY_CODES.get(code, code)
        return v

    @field_validator('amount', mode='before')
    @classmethod
    def parse_balance(cls, v: Any) -> Decimal:
        # Old records may carry a null balance
        if v is None or v == "":
            return Decimal("0")
        return to_decimal(v)

    @field_validator('starting_amount', mode='before')
    @classmethod
    def parse_baseline(cls, v: Any) -> Optional[Decimal]:
        if v is None or v == "":
            return None
        return to_decimal(v)

    @field_validator('created', 'updated', mode='before')
    @classmethod
    def parse_timestamp(cls, v: Any) -> datetime:
        return normalize_timestamp(v)

    @field_validator('image', mode='before')
    @classmethod
    def empty_image_is_none(cls, v: Any) -> Any:
        return v or None

    def to_record(self) -> dict:
        """Convert to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A dated income or expense record affecting exactly one wallet.

    The amount is stored unsigned; `type` carries the sign. Positivity is
    NOT enforced here - it is enforced by the reconciler and repository,
    which report it as an InvalidAmount failure instead of a schema error.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        populate_by_name=True,
    )

    id: str = Field(
        default_factory=new_id,
        min_length=1,
        description="Unique transaction ID"
    )
    wallet_id: str = Field(
        ...,
        alias="walletId",
        min_length=1,
        description="Owning wallet"
    )
    type: TransactionType = Field(
        ...,
        description="income or expense"
    )
    amount: Money = Field(
        ...,
        description="Unsigned amount"
    )
    category: str = Field(
        default="",
        max_length=100,
        description="Category key (income and expense have separate tables); may be empty"
    )
    description: Optional[str] = Field(
        default=None,
        max_length=1000,
        description="Free text note"
    )
    date: datetime = Field(
        default_factory=utc_now,
        description="When the transaction happened (user editable)"
    )

    @field_validator('amount', mode='before')
    @classmethod
    def parse_money(cls, v: Any) -> Decimal:
        return to_decimal(v)

    @field_validator('date', mode='before')
    @classmethod
    def parse_date(cls, v: Any) -> datetime:
        return normalize_timestamp(v)

    @field_validator('category', mode='before')
    @classmethod
    def missing_category_is_empty(cls, v: Any) -> Any:
        # Statistics buckets uncategorized records under "Other"
        return v or ""

    @field_validator('description', mode='before')
    @classmethod
    def empty_description_is_none(cls, v: Any) -> Any:
        return v or None

    @property
    def signed_amount(self) -> Decimal:
        """Effect of this transaction on its wallet's balance."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount

    def to_record(self) -> dict:
        """Convert to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True)

