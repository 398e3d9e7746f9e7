"""
Main Orchestrator for Wallet Ledger

This module ties the repositories and the pure calculators together and
defines the screen-level flows:
1. Home dashboard (reload -> reconcile -> totals, last transaction, trend)
2. Statistics (period filter -> breakdown -> health score)
3. Goal board (reload goals -> progress, status, milestones)

DESIGN DECISION: Flows never raise into the presentation layer.
Each one returns an OperationResult whose value is always usable, even
when the store failed (the views are then built from empty data).
"""

from datetime import date, datetime
from pathlib import Path
from typing import Optional, Union

from wallet_ledger.aggregation import engine, statistics
from wallet_ledger.audit import AuditLogger
from wallet_ledger.config import Settings, get_settings
from wallet_ledger.goals import calculator
from wallet_ledger.goals.repository import GoalRepository
from wallet_ledger.ledger.repository import LedgerRepository
from wallet_ledger.models.aggregates import HomeDashboard, StatisticsReport, StatsPeriod
from wallet_ledger.models.goal import Goal, GoalBoard, GoalCard
from wallet_ledger.models.ledger import Transaction, Wallet
from wallet_ledger.models.results import OperationResult
from wallet_ledger.services.storage import InMemoryStore, JsonFileStore, StoreAdapter


def build_home_dashboard(
    wallets: list[Wallet],
    transactions: list[Transaction],
    selected: Optional[Wallet],
) -> HomeDashboard:
    """Assemble the home screen for the selected wallet."""
    dashboard = HomeDashboard(totals_by_currency=engine.totals_by_currency(wallets))
    if selected is None:
        return dashboard

    totals = engine.wallet_totals(transactions, selected.id)
    last = engine.last_transaction(transactions, selected.id)
    dashboard.selected_wallet = selected
    dashboard.wallet_totals = totals
    dashboard.last_transaction = last
    dashboard.trend = engine.trend(last, totals)
    dashboard.used_categories = list(
        engine.used_categories(transactions, selected.id, selected.amount).values()
    )
    return dashboard


class DashboardFlow:
    """
    Orchestrates the home screen.

    Flow:
    1. Reload → ledger repository re-reads and self-heals the store
    2. Select → saved wallet, else the first one
    3. Aggregate → totals, last transaction, trend, category usage
    """

    def __init__(self, ledger: LedgerRepository):
        self._ledger = ledger

    async def load(self, refresh: bool = True) -> OperationResult[HomeDashboard]:
        """
        Build the dashboard.

        Args:
            refresh: Re-read the store first (screen focus). False reuses
                the repository's current snapshot.
        """
        warnings: list[str] = []
        if refresh:
            reloaded = await self._ledger.reload()
            warnings = reloaded.warnings
        else:
            reloaded = None

        dashboard = build_home_dashboard(
            self._ledger.wallets,
            self._ledger.transactions,
            self._ledger.selected_wallet(),
        )

        if reloaded is not None and not reloaded.success:
            return OperationResult(
                success=False,
                value=dashboard,
                error=reloaded.error,
                message=reloaded.message,
            )
        return OperationResult.ok(dashboard, warnings=warnings)


class StatisticsFlow:
    """
    Orchestrates the statistics screen for one wallet.

    Reads the ledger repository's snapshot; call DashboardFlow.load or
    LedgerRepository.reload first to refresh it.
    """

    def __init__(self, ledger: LedgerRepository):
        self._ledger = ledger

    def report(
        self,
        period: StatsPeriod = StatsPeriod.WEEKLY,
        wallet_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[StatisticsReport]:
        """
        Breakdown and health figures for a wallet (default: the selected one).

        Returns None when there is no wallet to report on.
        """
        if wallet_id is None:
            selected = self._ledger.selected_wallet()
            if selected is None:
                return None
            wallet_id = selected.id

        transactions = self._ledger.transactions
        summary = engine.wallet_summary(transactions, wallet_id)
        income_share, expense_share = statistics.flow_shares(summary)
        return StatisticsReport(
            wallet_id=wallet_id,
            period=period,
            rows=statistics.period_breakdown(transactions, wallet_id, period, now),
            summary=summary,
            health_score=statistics.health_score(summary),
            income_share=income_share,
            expense_share=expense_share,
        )


def build_goal_card(
    goal: Goal,
    today: Optional[Union[date, datetime]] = None,
    settings: Optional[Settings] = None,
) -> GoalCard:
    goal_settings = (settings or get_settings()).goals
    return GoalCard(
        goal=goal,
        progress=calculator.progress(goal),
        status=calculator.status_class(goal, today, goal_settings),
        milestone=calculator.milestone(goal),
        days_remaining=calculator.days_until_deadline(goal, today),
        time_label=calculator.time_remaining_label(goal, today),
        requirement=calculator.daily_target_needed(goal, today),
        monthly_target=calculator.monthly_target(goal),
        urgent=calculator.is_urgent(goal, today, goal_settings),
        almost_there=calculator.is_almost_there(goal, goal_settings),
    )


class GoalBoardFlow:
    """Orchestrates the goal screen: reload goals, then derive every card."""

    def __init__(self, goals: GoalRepository, settings: Optional[Settings] = None):
        self._goals = goals
        self._settings = settings

    async def load(
        self,
        today: Optional[Union[date, datetime]] = None,
    ) -> OperationResult[GoalBoard]:
        reloaded = await self._goals.reload()
        goals = self._goals.goals
        goal_settings = (self._settings or get_settings()).goals
        board = GoalBoard(
            overview=calculator.goals_overview(goals, today, goal_settings),
            cards=[build_goal_card(g, today, self._settings) for g in goals],
        )
        if not reloaded.success:
            return OperationResult(
                success=False,
                value=board,
                error=reloaded.error,
                message=reloaded.message,
            )
        return OperationResult.ok(board)


class AppComponents:
    """Everything a presentation layer needs, wired to one store."""

    def __init__(
        self,
        store: StoreAdapter,
        audit_logger: AuditLogger,
        settings: Settings,
    ):
        self.store = store
        self.audit_logger = audit_logger
        self.settings = settings
        self.ledger = LedgerRepository(store, audit_logger, settings.ledger)
        self.goals = GoalRepository(store, audit_logger)
        self.dashboard = DashboardFlow(self.ledger)
        self.statistics = StatisticsFlow(self.ledger)
        self.goal_board = GoalBoardFlow(self.goals, settings)


def create_store(
    backend: Optional[str] = None,
    data_dir: Optional[Union[str, Path]] = None,
    settings: Optional[Settings] = None,
) -> StoreAdapter:
    """
    Build the configured store backend.

    Args:
        backend: 'memory' or 'file' (default: settings)
        data_dir: Directory for the file backend (default: settings)
    """
    store_settings = (settings or get_settings()).store
    backend = backend or store_settings.backend
    if backend == "memory":
        return InMemoryStore()
    if backend == "file":
        return JsonFileStore(data_dir or store_settings.data_dir)
    raise ValueError(f"Unknown store backend: {backend!r}")


def create_app_components(
    store: Optional[StoreAdapter] = None,
    settings: Optional[Settings] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        store: Store to use. If None, one is built from settings.
        settings: Settings to use. If None, the cached settings.

    Returns:
        AppComponents sharing one store and one audit logger
    """
    settings = settings or get_settings()
    if store is None:
        store = create_store(settings=settings)
    return AppComponents(store, AuditLogger(debug=settings.app.debug_mode), settings)
