"""Aggregation package: dashboard figures and statistics."""

from wallet_ledger.aggregation.engine import (
    currency_wallet_change,
    last_transaction,
    search_transactions,
    totals_by_currency,
    trend,
    used_categories,
    wallet_summary,
    wallet_totals,
)
from wallet_ledger.aggregation.statistics import (
    filter_by_period,
    flow_shares,
    health_score,
    period_breakdown,
)

__all__ = [
    # Engine
    "currency_wallet_change",
    "last_transaction",
    "search_transactions",
    "totals_by_currency",
    "trend",
    "used_categories",
    "wallet_summary",
    "wallet_totals",
    # Statistics
    "filter_by_period",
    "flow_shares",
    "health_score",
    "period_breakdown",
]
