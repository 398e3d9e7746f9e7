"""
Ledger Repository

The only writer of wallet and transaction state.

DESIGN DECISION: Transaction history is the source of truth.
The store cannot write two keys atomically, so:
1. Every mutation re-reads both collections and reconciles them first
2. Transactions are written before wallets
3. Every load recomputes balances as starting_amount + net(history) and
   heals any wallet that disagrees

A crash between the two writes therefore leaves history correct and a
stale balance that the next load repairs.

FLOW (mutation):
  lock -> load + reconcile -> reconciler delta -> write transactions
  -> write wallets -> swap in-memory snapshot -> audit
Any LedgerError on the way becomes a failed OperationResult and the
previous snapshot is kept.
"""

import asyncio
from collections.abc import Iterable
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError

from wallet_ledger.aggregation.engine import search_transactions
from wallet_ledger.audit import AuditLogger, create_correlation_id
from wallet_ledger.config import LedgerSettings, get_settings
from wallet_ledger.errors import (
    InvalidAmountError,
    InvalidInputError,
    InvalidReferenceError,
    LedgerError,
    NotFoundError,
    StoreUnavailableError,
    summarize_validation_error,
)
from wallet_ledger.ledger import reconciler
from wallet_ledger.models.audit import AuditEventBuilder
from wallet_ledger.models.ledger import (
    LEGACY_CURRENCY_CODES,
    Currency,
    Transaction,
    Wallet,
    to_decimal,
)
from wallet_ledger.models.profile import UserProfile
from wallet_ledger.models.results import LedgerSnapshot, OperationResult
from wallet_ledger.models.timestamps import utc_now
from wallet_ledger.services.storage.collections import (
    read_collection,
    read_value,
    write_collection,
    write_value,
)
from wallet_ledger.services.storage.interface import (
    SELECTED_WALLET_KEY,
    TRANSACTIONS_KEY,
    USER_KEY,
    WALLETS_KEY,
    StorageError,
    StoreAdapter,
)


def coerce_currency(code: Any) -> Optional[Currency]:
    """Map a raw currency code (any case, legacy names included) to Currency."""
    if isinstance(code, Currency):
        return code
    if not isinstance(code, str) or not code.strip():
        return None
    normalized = code.strip().upper()
    normalized = LEGACY_CURRENCY_CODES.get(normalized, normalized)
    try:
        return Currency(normalized)
    except ValueError:
        return None


class _LoadedState(BaseModel):
    """Both collections after load-time normalization."""

    wallets: list[Wallet] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    wallets_dirty: bool = False
    healed_wallet_ids: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    def wallets_by_id(self) -> dict[str, Wallet]:
        return {w.id: w for w in self.wallets}

    def nets(self) -> dict[str, Decimal]:
        return reconciler.net_by_wallet(self.transactions)


class LedgerRepository:
    """
    Wallet and transaction persistence with balance reconciliation.

    Holds an explicit in-memory snapshot refreshed by reload() and by
    every successful mutation. Reads (get_wallet, list_transactions...)
    are served from the snapshot; mutations always go to the store.
    """

    def __init__(
        self,
        store: StoreAdapter,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._store = store
        self._audit = audit_logger or AuditLogger()
        self._settings = settings or get_settings().ledger
        self._epsilon = Decimal(str(self._settings.balance_epsilon))
        self._lock = asyncio.Lock()
        self._snapshot = LedgerSnapshot()
        # Stored records that failed validation, written back untouched
        self._unreadable: dict[str, list] = {WALLETS_KEY: [], TRANSACTIONS_KEY: []}

    # =========================================================================
    # SNAPSHOT ACCESS
    # =========================================================================

    @property
    def snapshot(self) -> LedgerSnapshot:
        """Copy of the current in-memory state."""
        return self._snapshot.model_copy(deep=True)

    @property
    def wallets(self) -> list[Wallet]:
        return [w.model_copy() for w in self._snapshot.wallets]

    @property
    def transactions(self) -> list[Transaction]:
        return [t.model_copy() for t in self._snapshot.transactions]

    def get_wallet(self, wallet_id: str) -> Optional[Wallet]:
        for wallet in self._snapshot.wallets:
            if wallet.id == wallet_id:
                return wallet.model_copy()
        return None

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for tx in self._snapshot.transactions:
            if tx.id == transaction_id:
                return tx.model_copy()
        return None

    def list_transactions(
        self,
        wallet_id: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Transaction]:
        """Transactions in stored order, optionally for one wallet and/or matching a search."""
        transactions = self.transactions
        if wallet_id is not None:
            transactions = [t for t in transactions if t.wallet_id == wallet_id]
        return search_transactions(transactions, search)

    def selected_wallet(self) -> Optional[Wallet]:
        """The saved selection, else the first wallet, else None."""
        selected_id = self._snapshot.selected_wallet_id
        if selected_id:
            wallet = self.get_wallet(selected_id)
            if wallet is not None:
                return wallet
        if self._snapshot.wallets:
            return self._snapshot.wallets[0].model_copy()
        return None

    # =========================================================================
    # LOADING AND SAVING
    # =========================================================================

    async def _load_wallet_records(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[list[Wallet], list[str]]:
        """Parse stored wallets; also report which ones had a legacy currency code."""
        wallets: list[Wallet] = []
        migrated: list[str] = []
        unreadable: list = []
        for index, record in enumerate(await read_collection(self._store, WALLETS_KEY)):
            try:
                wallet = Wallet.model_validate(record)
            except ValidationError as e:
                await self._audit.log_record_skipped(
                    WALLETS_KEY, index, summarize_validation_error(e), correlation_id
                )
                unreadable.append(record)
                continue
            if record.get("currency") != wallet.currency.value:
                migrated.append(wallet.id)
            wallets.append(wallet)
        self._unreadable[WALLETS_KEY] = unreadable
        return wallets, migrated

    async def load_wallets(self, correlation_id: Optional[UUID] = None) -> list[Wallet]:
        """
        Read all wallets from the store.

        Returns:
            Wallets in stored order ([] when nothing is stored)

        Raises:
            StoreUnavailableError: If the store raised or holds something
                other than a JSON array
        """
        wallets, _ = await self._load_wallet_records(correlation_id)
        return wallets

    async def load_transactions(self, correlation_id: Optional[UUID] = None) -> list[Transaction]:
        """
        Read all transactions from the store.

        Records that fail validation, or whose amount is not positive, are
        skipped with a warning. They stay in the store: every later save
        writes them back as they were.

        Raises:
            StoreUnavailableError: If the store raised or holds something
                other than a JSON array
        """
        transactions: list[Transaction] = []
        unreadable: list = []
        for index, record in enumerate(await read_collection(self._store, TRANSACTIONS_KEY)):
            try:
                tx = Transaction.model_validate(record)
                reconciler.require_positive(tx.amount)
            except ValidationError as e:
                await self._audit.log_record_skipped(
                    TRANSACTIONS_KEY, index, summarize_validation_error(e), correlation_id
                )
                unreadable.append(record)
                continue
            except InvalidAmountError as e:
                await self._audit.log_record_skipped(
                    TRANSACTIONS_KEY, index, e.message, correlation_id
                )
                unreadable.append(record)
                continue
            transactions.append(tx)
        self._unreadable[TRANSACTIONS_KEY] = unreadable
        return transactions

    async def save_wallets(self, wallets: Iterable[Wallet]) -> None:
        """Overwrite the whole wallets collection (unreadable records are kept)."""
        await write_collection(
            self._store,
            WALLETS_KEY,
            [w.to_record() for w in wallets] + self._unreadable[WALLETS_KEY],
        )

    async def save_transactions(self, transactions: Iterable[Transaction]) -> None:
        """Overwrite the whole transactions collection (unreadable records are kept)."""
        await write_collection(
            self._store,
            TRANSACTIONS_KEY,
            [t.to_record() for t in transactions] + self._unreadable[TRANSACTIONS_KEY],
        )

    async def _commit(self, transactions: list[Transaction], wallets: list[Wallet]) -> None:
        # History first: a failure between the two writes is healed on next load
        await self.save_transactions(transactions)
        await self.save_wallets(wallets)

    async def _read_selected_id(self, correlation_id: Optional[UUID]) -> Optional[str]:
        try:
            raw = await read_value(self._store, SELECTED_WALLET_KEY)
        except StoreUnavailableError as e:
            await self._audit.log_store_unavailable(e.key, e.message, correlation_id)
            return None
        if raw is None:
            return None
        return raw.strip().strip('"') or None

    # =========================================================================
    # LOAD-TIME RECONCILIATION
    # =========================================================================

    async def _load_state(self, correlation_id: Optional[UUID]) -> _LoadedState:
        """
        Load both collections and bring them back to a consistent state.

        Steps, in order:
        1. Drop transactions whose wallet no longer exists (history of an
           unreadable wallet is held back with it instead)
        2. Derive missing baselines from the stored balances
        3. Recompute balances from history, healing divergent wallets
        """
        wallets, migrated = await self._load_wallet_records(correlation_id)
        transactions = await self.load_transactions(correlation_id)
        state = _LoadedState(wallets=wallets)

        if migrated:
            state.wallets_dirty = True
            await self._audit.log(
                AuditEventBuilder.currency_migrated(migrated, correlation_id)
            )

        wallet_ids = {w.id for w in wallets}
        held_wallet_ids = {
            r.get("id") for r in self._unreadable[WALLETS_KEY] if isinstance(r, dict)
        }
        for tx in transactions:
            if tx.wallet_id in wallet_ids:
                state.transactions.append(tx)
            elif tx.wallet_id in held_wallet_ids:
                # History of a wallet we cannot read stays with it
                self._unreadable[TRANSACTIONS_KEY].append(tx.to_record())
            else:
                await self._audit.log_orphan_dropped(tx.id, tx.wallet_id, correlation_id)
                state.warnings.append(
                    f"Transaction {tx.id} ignored: wallet {tx.wallet_id} no longer exists"
                )

        nets = state.nets()
        with_baselines: list[Wallet] = []
        for wallet in state.wallets:
            if wallet.starting_amount is None:
                wallet = reconciler.establish_baseline(wallet, nets.get(wallet.id, reconciler.ZERO))
                state.wallets_dirty = True
                await self._audit.log(
                    AuditEventBuilder.baseline_established(
                        wallet.id, str(wallet.starting_amount), correlation_id
                    )
                )
            with_baselines.append(wallet)
        state.wallets = with_baselines

        healed, discrepancies = reconciler.reconcile_balances(
            state.wallets, state.transactions, self._epsilon, nets=nets
        )
        for discrepancy in discrepancies:
            state.warnings.append(discrepancy.message)
            if self._settings.heal_on_load:
                await self._audit.log_balance_healed(
                    discrepancy.wallet_id,
                    str(discrepancy.stored),
                    str(discrepancy.expected),
                    correlation_id,
                )
                state.healed_wallet_ids.append(discrepancy.wallet_id)
            else:
                await self._audit.log_error(
                    "inconsistent_state",
                    discrepancy.message,
                    {"wallet_id": discrepancy.wallet_id},
                    correlation_id,
                )
        if discrepancies and self._settings.heal_on_load:
            state.wallets = healed
            state.wallets_dirty = True

        return state

    def _install(self, state: _LoadedState, selected_id: Optional[str]) -> None:
        self._snapshot = LedgerSnapshot(
            wallets=state.wallets,
            transactions=state.transactions,
            selected_wallet_id=selected_id,
            healed_wallet_ids=state.healed_wallet_ids,
        )

    async def reload(self) -> OperationResult[LedgerSnapshot]:
        """
        Refresh the in-memory snapshot from the store.

        Repaired wallets (healed balances, new baselines, migrated
        currencies) are written back. If the store cannot be read the
        snapshot becomes empty and a failed result carrying it is
        returned; nothing is raised.
        """
        correlation_id = create_correlation_id()
        async with self._lock:
            try:
                state = await self._load_state(correlation_id)
            except StoreUnavailableError as e:
                await self._audit.log_store_unavailable(e.key, e.message, correlation_id)
                self._snapshot = LedgerSnapshot()
                return OperationResult.fail(e, value=self.snapshot)

            if state.wallets_dirty:
                try:
                    await self.save_wallets(state.wallets)
                except StoreUnavailableError as e:
                    await self._audit.log_store_unavailable(e.key, e.message, correlation_id)
                    state.warnings.append(f"Repaired wallets not saved: {e.message}")

            selected_id = await self._read_selected_id(correlation_id)
            self._install(state, selected_id)
            return OperationResult.ok(self.snapshot, warnings=state.warnings)

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def upsert_transaction(
        self,
        tx: Transaction,
        wallet_id: Optional[str] = None,
    ) -> OperationResult[Transaction]:
        """
        Record a new transaction or replace an existing one (matched by id).

        Args:
            tx: The transaction to save
            wallet_id: Wallet to attach it to (defaults to tx.wallet_id)

        Returns:
            The saved transaction, or a failure with INVALID_AMOUNT,
            INVALID_REFERENCE or STORE_UNAVAILABLE
        """
        correlation_id = create_correlation_id()
        target_id = wallet_id or tx.wallet_id

        async with self._lock:
            try:
                reconciler.require_positive(tx.amount)
                state = await self._load_state(correlation_id)
                wallets_by_id = state.wallets_by_id()
                if target_id not in wallets_by_id:
                    raise InvalidReferenceError(target_id)

                saved = tx.model_copy(update={"wallet_id": target_id})
                transactions = list(state.transactions)
                index = next(
                    (i for i, t in enumerate(transactions) if t.id == saved.id),
                    None,
                )
                if index is None:
                    changed = {target_id: reconciler.apply_create(wallets_by_id[target_id], saved)}
                    transactions.append(saved)
                else:
                    changed = reconciler.apply_edit(wallets_by_id, transactions[index], saved)
                    transactions[index] = saved

                wallets = [changed.get(w.id, w) for w in state.wallets]
                await self._commit(transactions, wallets)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "upsert_transaction", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)

            state.transactions = transactions
            state.wallets = wallets
            self._install(state, self._snapshot.selected_wallet_id)

        await self._audit.log(
            AuditEventBuilder.transaction_saved(
                transaction_id=saved.id,
                wallet_id=target_id,
                tx_type=saved.type.value,
                amount=str(saved.amount),
                is_edit=index is not None,
                balance_changes={wid: str(w.amount) for wid, w in changed.items()},
                correlation_id=correlation_id,
            )
        )
        return OperationResult.ok(saved.model_copy(), warnings=state.warnings)

    async def delete_transaction(self, transaction_id: str) -> OperationResult:
        """
        Delete a transaction by id and reverse its effect on the wallet.

        Deleting an id that does not exist succeeds and changes nothing.
        """
        correlation_id = create_correlation_id()

        async with self._lock:
            try:
                state = await self._load_state(correlation_id)
                transactions = list(state.transactions)
                index = next(
                    (i for i, t in enumerate(transactions) if t.id == transaction_id),
                    None,
                )
                if index is None:
                    self._install(state, self._snapshot.selected_wallet_id)
                    return OperationResult.ok(None, warnings=state.warnings)

                removed = transactions.pop(index)
                wallets_by_id = state.wallets_by_id()
                changed = {
                    removed.wallet_id: reconciler.apply_delete(
                        wallets_by_id[removed.wallet_id], removed
                    )
                }
                wallets = [changed.get(w.id, w) for w in state.wallets]
                await self._commit(transactions, wallets)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "delete_transaction", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)

            state.transactions = transactions
            state.wallets = wallets
            self._install(state, self._snapshot.selected_wallet_id)

        await self._audit.log(
            AuditEventBuilder.transaction_deleted(
                transaction_id=transaction_id,
                wallet_id=removed.wallet_id,
                balance_changes={wid: str(w.amount) for wid, w in changed.items()},
                correlation_id=correlation_id,
            )
        )
        return OperationResult.ok(None, warnings=state.warnings)

    # =========================================================================
    # WALLETS
    # =========================================================================

    async def default_currency(self) -> Currency:
        """
        Currency for new wallets: the user profile's, else the configured one.
        """
        fallback = coerce_currency(self._settings.default_currency) or Currency.USD
        try:
            raw = await read_value(self._store, USER_KEY)
        except StoreUnavailableError as e:
            await self._audit.log_store_unavailable(e.key, e.message)
            return fallback
        if not raw:
            return fallback

        try:
            profile = UserProfile.model_validate_json(raw)
        except ValidationError as e:
            await self._audit.log_record_skipped(USER_KEY, 0, summarize_validation_error(e))
            return fallback
        return coerce_currency(profile.currency) or fallback

    async def create_wallet(
        self,
        name: str,
        currency: Optional[str] = None,
        amount: Any = 0,
        image: Optional[str] = None,
    ) -> OperationResult[Wallet]:
        """
        Create a wallet whose starting balance is `amount`.

        Currency defaults to the user profile's, then to settings.
        """
        correlation_id = create_correlation_id()

        async with self._lock:
            try:
                wallet = await self._build_wallet(name, currency, amount, image)
                state = await self._load_state(correlation_id)
                wallets = state.wallets + [wallet]
                await self.save_wallets(wallets)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "create_wallet", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)

            state.wallets = wallets
            self._install(state, self._snapshot.selected_wallet_id)

        await self._audit.log(
            AuditEventBuilder.wallet_created(
                wallet_id=wallet.id,
                name=wallet.name,
                currency=wallet.currency.value,
                amount=str(wallet.amount),
                correlation_id=correlation_id,
            )
        )
        return OperationResult.ok(wallet.model_copy(), warnings=state.warnings)

    async def _build_wallet(
        self,
        name: str,
        currency: Optional[str],
        amount: Any,
        image: Optional[str],
    ) -> Wallet:
        balance = self._parse_balance(amount)
        if currency is None:
            resolved = await self.default_currency()
        else:
            resolved = coerce_currency(currency)
            if resolved is None:
                raise InvalidInputError(f"Unsupported currency: {currency!r}")
        try:
            return Wallet(
                name=name,
                currency=resolved,
                amount=balance,
                starting_amount=balance,
                image=image,
            )
        except ValidationError as e:
            raise InvalidInputError(summarize_validation_error(e)) from e

    @staticmethod
    def _parse_balance(amount: Any) -> Decimal:
        # Balances may be zero or negative, but must be numbers
        try:
            return to_decimal(amount)
        except ValueError:
            raise InvalidAmountError(amount, "Balance must be a finite number")

    async def update_wallet(
        self,
        wallet_id: str,
        name: Optional[str] = None,
        currency: Optional[str] = None,
        amount: Any = None,
        image: Optional[str] = None,
    ) -> OperationResult[Wallet]:
        """
        Edit a wallet's fields.

        Setting `amount` re-bases the wallet: its starting balance moves so
        that starting + net(history) equals the new amount.
        """
        correlation_id = create_correlation_id()
        changes: dict[str, Any] = {}

        async with self._lock:
            try:
                state = await self._load_state(correlation_id)
                current = state.wallets_by_id().get(wallet_id)
                if current is None:
                    raise NotFoundError("wallet", wallet_id)

                if name is not None:
                    changes["name"] = name
                if currency is not None:
                    resolved = coerce_currency(currency)
                    if resolved is None:
                        raise InvalidInputError(f"Unsupported currency: {currency!r}")
                    changes["currency"] = resolved
                if image is not None:
                    changes["image"] = image

                updated = current
                if amount is not None:
                    balance = self._parse_balance(amount)
                    updated = reconciler.rebase(
                        current, balance, state.nets().get(wallet_id, reconciler.ZERO)
                    )
                    changes["amount"] = balance

                try:
                    updated = Wallet.model_validate(
                        {**updated.model_dump(), **changes, "updated": utc_now()}
                    )
                except ValidationError as e:
                    raise InvalidInputError(summarize_validation_error(e)) from e

                wallets = [updated if w.id == wallet_id else w for w in state.wallets]
                await self.save_wallets(wallets)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "update_wallet", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)

            state.wallets = wallets
            self._install(state, self._snapshot.selected_wallet_id)

        await self._audit.log(
            AuditEventBuilder.wallet_updated(
                wallet_id=wallet_id,
                changes={k: str(v.value if isinstance(v, Currency) else v) for k, v in changes.items()},
                correlation_id=correlation_id,
            )
        )
        return OperationResult.ok(updated.model_copy(), warnings=state.warnings)

    async def delete_wallet(self, wallet_id: str) -> OperationResult:
        """
        Delete a wallet together with its transactions.

        Clears the saved selection if it pointed at this wallet. Deleting
        an unknown wallet succeeds and changes nothing.
        """
        correlation_id = create_correlation_id()

        async with self._lock:
            try:
                state = await self._load_state(correlation_id)
                if wallet_id not in state.wallets_by_id():
                    self._install(state, self._snapshot.selected_wallet_id)
                    return OperationResult.ok(None, warnings=state.warnings)

                transactions = [t for t in state.transactions if t.wallet_id != wallet_id]
                self._unreadable[TRANSACTIONS_KEY] = [
                    r for r in self._unreadable[TRANSACTIONS_KEY]
                    if not (isinstance(r, dict) and r.get("walletId") == wallet_id)
                ]
                removed_count = len(state.transactions) - len(transactions)
                wallets = [w for w in state.wallets if w.id != wallet_id]
                await self._commit(transactions, wallets)

                selected_id = await self._read_selected_id(correlation_id)
                if selected_id == wallet_id:
                    try:
                        await self._store.remove(SELECTED_WALLET_KEY)
                    except StorageError as e:
                        await self._audit.log_store_unavailable(
                            SELECTED_WALLET_KEY, str(e), correlation_id
                        )
                        state.warnings.append("Saved wallet selection could not be cleared")
                    selected_id = None
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "delete_wallet", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)

            state.transactions = transactions
            state.wallets = wallets
            self._install(state, selected_id)

        await self._audit.log(
            AuditEventBuilder.wallet_deleted(
                wallet_id=wallet_id,
                removed_transactions=removed_count,
                correlation_id=correlation_id,
            )
        )
        return OperationResult.ok(None, warnings=state.warnings)

    async def select_wallet(self, wallet_id: str) -> OperationResult[Wallet]:
        """Persist the wallet shown on the home screen."""
        correlation_id = create_correlation_id()

        async with self._lock:
            try:
                wallet = next(
                    (w for w in await self.load_wallets(correlation_id) if w.id == wallet_id),
                    None,
                )
                if wallet is None:
                    raise NotFoundError("wallet", wallet_id)
                await write_value(self._store, SELECTED_WALLET_KEY, wallet_id)
            except LedgerError as e:
                await self._audit.log_mutation_rejected(
                    "select_wallet", e.code.value, e.message, correlation_id
                )
                return OperationResult.fail(e)

            self._snapshot.selected_wallet_id = wallet_id

        await self._audit.log(AuditEventBuilder.wallet_selected(wallet_id, correlation_id))
        return OperationResult.ok(wallet)
