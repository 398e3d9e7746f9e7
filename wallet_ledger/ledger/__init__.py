"""Ledger package: balance reconciliation and the wallet/transaction repository."""

from wallet_ledger.ledger import reconciler
from wallet_ledger.ledger.reconciler import (
    apply_create,
    apply_delete,
    apply_edit,
    reconcile_balances,
    require_positive,
    signed_amount,
)
from wallet_ledger.ledger.repository import LedgerRepository, coerce_currency

__all__ = [
    "reconciler",
    # Reconciler
    "apply_create",
    "apply_delete",
    "apply_edit",
    "reconcile_balances",
    "require_positive",
    "signed_amount",
    # Repository
    "LedgerRepository",
    "coerce_currency",
]
