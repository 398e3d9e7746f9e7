"""
Aggregate View Models

Read-only values derived from wallets and transactions by the
aggregation engine. None of these are ever persisted.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from wallet_ledger.models.ledger import Transaction, TransactionType, Wallet


class TrendDirection(str, Enum):
    UP = "up"
    DOWN = "down"


class StatsPeriod(str, Enum):
    """Time windows offered by the statistics screen."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class WalletTotals(BaseModel):
    """Income and expense totals for one wallet."""

    total_income: Decimal = Decimal("0")
    total_expense: Decimal = Decimal("0")


class WalletSummary(BaseModel):
    """Income, expense and their difference for one wallet."""

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    net: Decimal = Decimal("0")


class CategoryUsage(BaseModel):
    """
    How much of a wallet went through one category.

    `total` is the plain sum of amounts in the category (not a net).
    `usage_percent` is relative to the wallet balance, clamped to [0, 100].
    """

    category: str
    total: Decimal = Decimal("0")
    count: int = Field(default=0, ge=0)
    type: TransactionType
    usage_percent: float = Field(default=0.0, ge=0.0, le=100.0)


class Trend(BaseModel):
    """Share of the wallet's income (or expense) total taken by the last transaction."""

    percent: float
    direction: TrendDirection
    type: TransactionType


class BreakdownRow(BaseModel):
    """One bar of the statistics chart."""

    label: str
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")


class HomeDashboard(BaseModel):
    """Everything the home screen shows for the selected wallet."""

    totals_by_currency: dict[str, Decimal] = Field(default_factory=dict)
    selected_wallet: Optional[Wallet] = None
    wallet_totals: WalletTotals = Field(default_factory=WalletTotals)
    last_transaction: Optional[Transaction] = None
    trend: Optional[Trend] = None
    used_categories: list[CategoryUsage] = Field(default_factory=list)


class StatisticsReport(BaseModel):
    """Statistics screen content for one wallet and period."""

    wallet_id: str
    period: StatsPeriod
    rows: list[BreakdownRow] = Field(default_factory=list)
    summary: WalletSummary = Field(default_factory=WalletSummary)
    health_score: int = Field(default=50, ge=0, le=100)
    income_share: float = Field(default=0.0, ge=0.0, le=100.0)
    expense_share: float = Field(default=0.0, ge=0.0, le=100.0)
