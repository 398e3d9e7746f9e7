"""
Balance Reconciler

Pure functions that translate transaction changes into wallet balance
changes. No I/O happens here; the repository decides what to persist.

DESIGN DECISION: Two ways of computing a balance live side by side.
1. Incremental deltas (apply_create / apply_delete / apply_edit) used by
   every mutation
2. Recomputation from history (starting_amount + net) used on load to
   catch anything the incremental path missed, e.g. a crash between the
   transactions write and the wallets write

Both must agree; when they do not, history wins.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Optional

from wallet_ledger.errors import (
    InconsistentStateError,
    InvalidAmountError,
    InvalidReferenceError,
)
from wallet_ledger.models.ledger import Transaction, Wallet, to_decimal
from wallet_ledger.models.timestamps import utc_now


ZERO = Decimal("0")


def require_positive(amount: Any) -> Decimal:
    """
    Validate a transaction amount.

    Raises:
        InvalidAmountError: If the amount is not a finite number > 0
    """
    try:
        value = to_decimal(amount)
    except ValueError:
        raise InvalidAmountError(amount, "Amount must be a finite number")
    if value <= ZERO:
        raise InvalidAmountError(amount)
    return value


def signed_amount(tx: Transaction) -> Decimal:
    """Balance effect of a transaction: +amount for income, -amount for expense."""
    require_positive(tx.amount)
    return tx.signed_amount


def _shift(wallet: Wallet, delta: Decimal) -> Wallet:
    return wallet.model_copy(
        update={"amount": wallet.amount + delta, "updated": utc_now()}
    )


def apply_create(wallet: Wallet, tx: Transaction) -> Wallet:
    return _shift(wallet, signed_amount(tx))


def apply_delete(wallet: Wallet, tx: Transaction) -> Wallet:
    """Inverse of apply_create."""
    return _shift(wallet, -signed_amount(tx))


def apply_edit(
    wallets_by_id: Mapping[str, Wallet],
    old_tx: Transaction,
    new_tx: Transaction,
) -> dict[str, Wallet]:
    """
    Balance changes for replacing old_tx with new_tx.

    Same wallet: one combined delta, so no intermediate balance is ever
    produced. Different wallets: the old wallet loses the old effect and
    the new wallet gains the new one. If the old wallet no longer exists
    only the new wallet is updated.

    Returns:
        Updated wallets keyed by id (only the wallets that changed)

    Raises:
        InvalidAmountError: If either amount is invalid
        InvalidReferenceError: If new_tx points at an unknown wallet
    """
    old_effect = signed_amount(old_tx)
    new_effect = signed_amount(new_tx)

    target = wallets_by_id.get(new_tx.wallet_id)
    if target is None:
        raise InvalidReferenceError(new_tx.wallet_id)

    if old_tx.wallet_id == new_tx.wallet_id:
        return {target.id: _shift(target, new_effect - old_effect)}

    changed = {target.id: _shift(target, new_effect)}
    source = wallets_by_id.get(old_tx.wallet_id)
    if source is not None:
        changed[source.id] = _shift(source, -old_effect)
    return changed


# =============================================================================
# GROUND TRUTH
# =============================================================================

def net_by_wallet(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Sum of signed amounts per wallet id."""
    nets: dict[str, Decimal] = {}
    for tx in transactions:
        nets[tx.wallet_id] = nets.get(tx.wallet_id, ZERO) + tx.signed_amount
    return nets


def expected_balance(wallet: Wallet, net: Decimal) -> Decimal:
    """
    Balance the wallet must have given its history.

    Wallets without a baseline cannot be checked; their stored amount is
    returned unchanged.
    """
    if wallet.starting_amount is None:
        return wallet.amount
    return wallet.starting_amount + net


def establish_baseline(wallet: Wallet, net: Decimal) -> Wallet:
    """Derive a missing starting_amount from the stored balance."""
    return wallet.model_copy(update={"starting_amount": wallet.amount - net})


def rebase(wallet: Wallet, new_amount: Decimal, net: Decimal) -> Wallet:
    """Set the balance directly, moving the baseline so history still adds up."""
    return wallet.model_copy(
        update={
            "amount": new_amount,
            "starting_amount": new_amount - net,
            "updated": utc_now(),
        }
    )


def reconcile_balances(
    wallets: Iterable[Wallet],
    transactions: Iterable[Transaction],
    epsilon: Decimal = Decimal("0.000001"),
    nets: Optional[Mapping[str, Decimal]] = None,
) -> tuple[list[Wallet], list[InconsistentStateError]]:
    """
    Recompute every balance from its baseline and transaction history.

    Returns:
        (wallets with healed balances, one InconsistentStateError per
        wallet whose stored balance was off by more than epsilon)
    """
    if nets is None:
        nets = net_by_wallet(transactions)

    healed: list[Wallet] = []
    discrepancies: list[InconsistentStateError] = []
    for wallet in wallets:
        expected = expected_balance(wallet, nets.get(wallet.id, ZERO))
        if abs(expected - wallet.amount) > epsilon:
            discrepancies.append(
                InconsistentStateError(wallet.id, wallet.amount, expected)
            )
            wallet = wallet.model_copy(update={"amount": expected})
        healed.append(wallet)
    return healed, discrepancies
