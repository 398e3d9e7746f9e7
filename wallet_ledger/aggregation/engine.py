"""
Aggregation Engine

Stateless derivations over wallet and transaction lists, used by the home
dashboard and wallet screens. Nothing here persists or caches anything;
callers pass whatever snapshot they currently hold.

DESIGN DECISION: Every ratio is guarded. A zero denominator yields a
defined "no value" (None or 0%), never NaN, Infinity or an exception.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional, Union

from wallet_ledger.models.aggregates import (
    CategoryUsage,
    Trend,
    TrendDirection,
    WalletSummary,
    WalletTotals,
)
from wallet_ledger.models.ledger import Currency, Transaction, TransactionType, Wallet


ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _for_wallet(transactions: Iterable[Transaction], wallet_id: str) -> list[Transaction]:
    return [tx for tx in transactions if tx.wallet_id == wallet_id]


def totals_by_currency(wallets: Iterable[Wallet]) -> dict[str, Decimal]:
    """
    Sum wallet balances per currency.

    No conversion happens; keys appear in the order their first wallet
    appears.
    """
    totals: dict[str, Decimal] = {}
    for wallet in wallets:
        code = wallet.currency.value
        totals[code] = totals.get(code, ZERO) + wallet.amount
    return totals


def wallet_totals(transactions: Iterable[Transaction], wallet_id: str) -> WalletTotals:
    """Income and expense totals for one wallet. Empty wallet gives zeros."""
    income = ZERO
    expense = ZERO
    for tx in _for_wallet(transactions, wallet_id):
        if tx.type == TransactionType.INCOME:
            income += tx.amount
        else:
            expense += tx.amount
    return WalletTotals(total_income=income, total_expense=expense)


def wallet_summary(transactions: Iterable[Transaction], wallet_id: str) -> WalletSummary:
    totals = wallet_totals(transactions, wallet_id)
    return WalletSummary(
        income=totals.total_income,
        expense=totals.total_expense,
        net=totals.total_income - totals.total_expense,
    )


def last_transaction(
    transactions: Iterable[Transaction],
    wallet_id: str,
) -> Optional[Transaction]:
    """
    Most recent transaction of a wallet, by date.

    Dates are normalized to aware UTC datetimes on load, so every stored
    date shape compares correctly. Among transactions sharing the latest
    timestamp, the one that comes first in the list (earliest inserted)
    is returned.
    """
    latest: Optional[Transaction] = None
    for tx in _for_wallet(transactions, wallet_id):
        if latest is None or tx.date > latest.date:
            latest = tx
    return latest


def used_categories(
    transactions: Iterable[Transaction],
    wallet_id: str,
    total_wallet_amount: Optional[Decimal] = None,
) -> dict[str, CategoryUsage]:
    """
    Group a wallet's transactions by category.

    `total` is the plain sum of amounts in the category. `type` is the type
    of the first transaction seen in it. `usage_percent` is the category
    total as a share of `total_wallet_amount`, clamped to [0, 100], and 0
    when that amount is missing or not positive.
    """
    grouped: dict[str, CategoryUsage] = {}
    for tx in _for_wallet(transactions, wallet_id):
        usage = grouped.get(tx.category)
        if usage is None:
            usage = CategoryUsage(category=tx.category, type=tx.type)
            grouped[tx.category] = usage
        usage.total += tx.amount
        usage.count += 1

    for usage in grouped.values():
        usage.usage_percent = _usage_percent(usage.total, total_wallet_amount)
    return grouped


def _usage_percent(total: Decimal, total_wallet_amount: Optional[Decimal]) -> float:
    if total_wallet_amount is None or total_wallet_amount <= ZERO:
        return 0.0
    percent = total / total_wallet_amount * HUNDRED
    return float(min(max(percent, ZERO), HUNDRED))


def trend(last_tx: Optional[Transaction], totals: WalletTotals) -> Optional[Trend]:
    """
    Share of the matching total taken by the last transaction.

    Returns None when there is no last transaction or the matching total
    is zero.
    """
    if last_tx is None:
        return None

    if last_tx.type == TransactionType.INCOME:
        denominator = totals.total_income
        direction = TrendDirection.UP
    else:
        denominator = totals.total_expense
        direction = TrendDirection.DOWN

    if denominator <= ZERO:
        return None

    return Trend(
        percent=float(last_tx.amount / denominator * HUNDRED),
        direction=direction,
        type=last_tx.type,
    )


def currency_wallet_change(
    wallets: Iterable[Wallet],
    currency: Union[Currency, str],
) -> Optional[Decimal]:
    """
    Percent change from the second-to-last to the last wallet of a currency.

    100 when the earlier wallet's balance is zero, None with fewer than
    two wallets in that currency.
    """
    code = currency.value if isinstance(currency, Currency) else str(currency).upper()
    matching = [w for w in wallets if w.currency.value == code]
    if len(matching) < 2:
        return None

    previous = matching[-2].amount
    last = matching[-1].amount
    if previous == ZERO:
        return HUNDRED
    return (last - previous) / previous * HUNDRED


def search_transactions(
    transactions: Iterable[Transaction],
    query: Optional[str],
) -> list[Transaction]:
    """Case-insensitive substring match on category or type. Empty query matches all."""
    if not query:
        return list(transactions)
    needle = query.lower()
    return [
        tx for tx in transactions
        if needle in tx.category.lower() or needle in tx.type.value
    ]
