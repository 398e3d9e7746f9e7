"""
Tests for the screen-level flows and the component factory.

These run the whole stack (repositories, reconciler, aggregation, goal
calculator) against an in-memory store.
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from wallet_ledger.config import Settings
from wallet_ledger.errors import ErrorCode
from wallet_ledger.models.aggregates import StatsPeriod, TrendDirection
from wallet_ledger.models.goal import GoalStatus
from wallet_ledger.orchestrator import (
    AppComponents,
    build_home_dashboard,
    create_app_components,
    create_store,
)
from wallet_ledger.services.storage import WALLETS_KEY, InMemoryStore, JsonFileStore

from tests.conftest import make_tx

NOW = datetime(2024, 3, 6, 15, 0, tzinfo=timezone.utc)


@pytest.fixture
def components():
    return create_app_components(store=InMemoryStore(), settings=Settings())


async def seed_ledger(components: AppComponents):
    ledger = components.ledger
    cash = (await ledger.create_wallet("Cash", "USD", 100)).value
    bank = (await ledger.create_wallet("Bank", "USD", 250)).value
    await ledger.create_wallet("Euro", "EUR", 40)
    await ledger.upsert_transaction(
        make_tx(cash.id, 200, "income", "salary", date=datetime(2024, 3, 4, tzinfo=timezone.utc))
    )
    await ledger.upsert_transaction(
        make_tx(cash.id, 50, date=datetime(2024, 3, 6, 9, tzinfo=timezone.utc))
    )
    return cash, bank


class TestDashboardFlow:
    """Tests for the home screen flow."""

    @pytest.mark.asyncio
    async def test_dashboard(self, components):
        """Test totals, selection, last transaction and trend."""
        cash, _ = await seed_ledger(components)

        result = await components.dashboard.load()

        assert result.success
        dashboard = result.value
        assert dashboard.totals_by_currency == {"USD": Decimal("500"), "EUR": Decimal("40")}
        assert dashboard.selected_wallet.id == cash.id
        assert dashboard.wallet_totals.total_income == Decimal("200")
        assert dashboard.wallet_totals.total_expense == Decimal("50")
        assert dashboard.last_transaction.category == "food"
        assert dashboard.trend.direction == TrendDirection.DOWN
        assert dashboard.trend.percent == 100.0
        assert {u.category for u in dashboard.used_categories} == {"salary", "food"}

    @pytest.mark.asyncio
    async def test_dashboard_follows_selection(self, components):
        """Test that the saved selection drives the wallet figures."""
        _, bank = await seed_ledger(components)
        await components.ledger.select_wallet(bank.id)

        dashboard = (await components.dashboard.load()).value

        assert dashboard.selected_wallet.id == bank.id
        assert dashboard.last_transaction is None
        assert dashboard.trend is None

    @pytest.mark.asyncio
    async def test_dashboard_when_store_unavailable(self):
        """Test that a failed reload still yields an empty dashboard."""
        components = create_app_components(
            store=InMemoryStore(fail_on_get={WALLETS_KEY}), settings=Settings()
        )

        result = await components.dashboard.load()

        assert not result.success
        assert result.error == ErrorCode.STORE_UNAVAILABLE
        assert result.value.totals_by_currency == {}
        assert result.value.selected_wallet is None

    @pytest.mark.asyncio
    async def test_dashboard_without_refresh(self, components):
        """Test that refresh=False reuses the current snapshot."""
        await seed_ledger(components)
        result = await components.dashboard.load(refresh=False)
        assert result.success
        assert len(result.value.totals_by_currency) == 2

    def test_build_home_dashboard_without_wallets(self):
        """Test the empty home screen."""
        dashboard = build_home_dashboard([], [], None)
        assert dashboard.totals_by_currency == {}
        assert dashboard.used_categories == []


class TestStatisticsFlow:
    """Tests for the statistics flow."""

    @pytest.mark.asyncio
    async def test_weekly_report(self, components):
        """Test the weekly report of the selected wallet."""
        await seed_ledger(components)
        await components.ledger.reload()

        report = components.statistics.report(StatsPeriod.WEEKLY, now=NOW)

        rows = {r.label: r for r in report.rows}
        assert rows["Mon"].income == Decimal("200")
        assert rows["Wed"].expense == Decimal("50")
        assert report.summary.net == Decimal("150")
        assert report.health_score == 100
        assert report.income_share == 80.0
        assert report.expense_share == 20.0

    @pytest.mark.asyncio
    async def test_report_for_named_wallet(self, components):
        """Test that a wallet can be named explicitly."""
        _, bank = await seed_ledger(components)
        report = components.statistics.report(StatsPeriod.MONTHLY, wallet_id=bank.id, now=NOW)
        assert report.wallet_id == bank.id
        assert report.health_score == 50

    def test_no_wallets(self, components):
        """Test that there is no report without wallets."""
        assert components.statistics.report() is None


class TestGoalBoardFlow:
    """Tests for the goal screen flow."""

    @pytest.mark.asyncio
    async def test_goal_board(self, components):
        """Test the overview and one card per goal."""
        goals = components.goals
        await goals.create_goal("Car", 1000, current_amount=950, deadline="2024-03-10")
        await goals.create_goal("Trip", 500)

        result = await components.goal_board.load(today=date(2024, 3, 6))

        assert result.success
        board = result.value
        assert board.overview.total_saved == Decimal("950")
        assert board.overview.urgent == 1
        car, trip = board.cards
        assert car.status == GoalStatus.ON_TRACK
        assert car.time_label == "4 DAYS"
        assert car.urgent is True
        assert car.almost_there is True
        assert car.requirement.per_day == Decimal("12.5")
        assert trip.status == GoalStatus.NO_DEADLINE
        assert trip.time_label == "NO DEADLINE"

    @pytest.mark.asyncio
    async def test_goal_board_when_store_unavailable(self):
        """Test that a failed reload still yields an empty board."""
        components = create_app_components(
            store=InMemoryStore(fail_on_get={"savings_goals"}), settings=Settings()
        )
        result = await components.goal_board.load()
        assert not result.success
        assert result.value.cards == []


class TestFactory:
    """Tests for create_store and create_app_components."""

    def test_memory_store(self):
        """Test the memory backend."""
        assert isinstance(create_store("memory"), InMemoryStore)

    def test_file_store(self, tmp_path):
        """Test the file backend with an explicit directory."""
        store = create_store("file", tmp_path)
        assert isinstance(store, JsonFileStore)
        assert store.data_dir == tmp_path

    def test_unknown_backend(self):
        """Test that unknown backends are rejected."""
        with pytest.raises(ValueError):
            create_store("sheets")

    @pytest.mark.parametrize("flag, expected", [("true", True), ("false", False)])
    def test_audit_logger_follows_debug_mode(self, monkeypatch, flag, expected):
        """Test that DEBUG_MODE reaches the shared audit logger."""
        monkeypatch.setenv("DEBUG_MODE", flag)
        components = create_app_components(store=InMemoryStore(), settings=Settings())
        assert components.audit_logger.debug is expected

    def test_components_share_one_store(self):
        """Test that every component is wired to the same store."""
        store = InMemoryStore()
        components = create_app_components(store=store, settings=Settings())
        assert components.store is store
        assert components.ledger is components.dashboard._ledger
