"""
Statistics

Period filters and chart breakdowns for the statistics screen, plus the
financial health score. Calendar comparisons are made in UTC, the zone
every stored date is normalized to.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta
from decimal import ROUND_FLOOR, Decimal
from typing import Optional

from wallet_ledger.models.aggregates import BreakdownRow, StatsPeriod, WalletSummary
from wallet_ledger.models.ledger import Transaction, TransactionType
from wallet_ledger.models.timestamps import normalize_timestamp, utc_now


WEEKDAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]
MONTH_LABELS = [
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
]
UNCATEGORIZED = "Other"

ZERO = Decimal("0")


def _resolve_now(now: Optional[datetime]) -> datetime:
    return utc_now() if now is None else normalize_timestamp(now)


def week_start(now: datetime) -> datetime:
    """Midnight of the most recent Sunday (today if today is Sunday)."""
    # isoweekday: Mon=1 .. Sun=7
    days_since_sunday = now.isoweekday() % 7
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight - timedelta(days=days_since_sunday)


def filter_by_period(
    transactions: Iterable[Transaction],
    period: StatsPeriod,
    now: Optional[datetime] = None,
) -> list[Transaction]:
    """
    Keep the transactions that fall in the current period.

    daily: same calendar day. weekly: on or after this week's Sunday.
    monthly: same month and year. yearly: same year.
    """
    now = _resolve_now(now)

    if period == StatsPeriod.DAILY:
        return [tx for tx in transactions if tx.date.date() == now.date()]
    if period == StatsPeriod.WEEKLY:
        start = week_start(now)
        return [tx for tx in transactions if tx.date >= start]
    if period == StatsPeriod.MONTHLY:
        return [
            tx for tx in transactions
            if tx.date.year == now.year and tx.date.month == now.month
        ]
    return [tx for tx in transactions if tx.date.year == now.year]


def _weekday_label(tx: Transaction) -> str:
    return WEEKDAY_LABELS[tx.date.isoweekday() % 7]


def _month_label(tx: Transaction) -> str:
    return MONTH_LABELS[tx.date.month - 1]


def _category_label(tx: Transaction) -> str:
    return tx.category or UNCATEGORIZED


def period_breakdown(
    transactions: Iterable[Transaction],
    wallet_id: str,
    period: StatsPeriod,
    now: Optional[datetime] = None,
) -> list[BreakdownRow]:
    """
    Income/expense bars for one wallet over the current period.

    weekly: one row per weekday, Sun..Sat.
    monthly and yearly: one row per month, Jan..Dec.
    daily: one row per category, in first-seen order; every category
    present in `transactions` gets a row, even if it has nothing today.
    """
    transactions = list(transactions)
    in_period = filter_by_period(
        [tx for tx in transactions if tx.wallet_id == wallet_id],
        period,
        now,
    )

    if period == StatsPeriod.WEEKLY:
        labels = list(WEEKDAY_LABELS)
        label_of = _weekday_label
    elif period in (StatsPeriod.MONTHLY, StatsPeriod.YEARLY):
        labels = list(MONTH_LABELS)
        label_of = _month_label
    else:
        labels = list(dict.fromkeys(_category_label(tx) for tx in transactions))
        label_of = _category_label

    rows = {label: BreakdownRow(label=label) for label in labels}
    for tx in in_period:
        row = rows[label_of(tx)]
        if tx.type == TransactionType.INCOME:
            row.income += tx.amount
        else:
            row.expense += tx.amount
    return list(rows.values())


def health_score(summary: WalletSummary) -> int:
    """
    Financial health score in [0, 100].

    round(net / income * 100 + 50), half rounding up; 50 when there is
    no income.
    """
    if summary.income <= ZERO:
        return 50
    raw = summary.net / summary.income * Decimal("100") + Decimal("50")
    score = int((raw + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))
    return max(0, min(100, score))


def flow_shares(summary: WalletSummary) -> tuple[float, float]:
    """Income and expense as percentages of (income + expense)."""
    flow = summary.income + summary.expense
    if flow <= ZERO:
        return 0.0, 0.0
    return (
        float(summary.income / flow * Decimal("100")),
        float(summary.expense / flow * Decimal("100")),
    )
