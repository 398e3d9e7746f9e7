"""
Data Models Package

This package contains all Pydantic models used by the wallet ledger.
Everything read from or written to the store passes through these schemas.
"""

from wallet_ledger.models.timestamps import normalize_timestamp, utc_now
from wallet_ledger.models.ledger import (
    LEGACY_CURRENCY_CODES,
    Currency,
    Money,
    Transaction,
    TransactionType,
    Wallet,
    new_id,
    to_decimal,
)
from wallet_ledger.models.goal import (
    Goal,
    GoalBoard,
    GoalCard,
    GoalCategory,
    GoalMilestone,
    GoalStatus,
    GoalsOverview,
    SavingsRequirement,
)
from wallet_ledger.models.profile import UserProfile
from wallet_ledger.models.results import LedgerSnapshot, OperationResult
from wallet_ledger.models.aggregates import (
    BreakdownRow,
    CategoryUsage,
    HomeDashboard,
    StatisticsReport,
    StatsPeriod,
    Trend,
    TrendDirection,
    WalletSummary,
    WalletTotals,
)
from wallet_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Timestamps
    "normalize_timestamp",
    "utc_now",
    # Ledger models
    "LEGACY_CURRENCY_CODES",
    "Currency",
    "Money",
    "Transaction",
    "TransactionType",
    "Wallet",
    "new_id",
    "to_decimal",
    # Goal models
    "Goal",
    "GoalBoard",
    "GoalCard",
    "GoalCategory",
    "GoalMilestone",
    "GoalStatus",
    "GoalsOverview",
    "SavingsRequirement",
    # Profile
    "UserProfile",
    # Results
    "LedgerSnapshot",
    "OperationResult",
    # Aggregates
    "BreakdownRow",
    "CategoryUsage",
    "HomeDashboard",
    "StatisticsReport",
    "StatsPeriod",
    "Trend",
    "TrendDirection",
    "WalletSummary",
    "WalletTotals",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
