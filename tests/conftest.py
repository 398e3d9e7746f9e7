"""Shared fixtures: an in-memory store and repositories wired to it."""

from decimal import Decimal

import pytest

from wallet_ledger.audit import AuditLogger
from wallet_ledger.config import GoalSettings, LedgerSettings
from wallet_ledger.goals.repository import GoalRepository
from wallet_ledger.ledger.repository import LedgerRepository
from wallet_ledger.models.ledger import Transaction
from wallet_ledger.services.storage import InMemoryStore


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def audit_logger():
    return AuditLogger()


@pytest.fixture
def ledger_settings():
    return LedgerSettings(default_currency="USD", balance_epsilon=1e-6, heal_on_load=True)


@pytest.fixture
def goal_settings():
    return GoalSettings(
        behind_threshold=0.10,
        at_risk_threshold=0.05,
        urgent_days=7,
        almost_there_ratio=0.8,
    )


@pytest.fixture
def ledger(store, audit_logger, ledger_settings):
    return LedgerRepository(store, audit_logger, ledger_settings)


@pytest.fixture
def goal_repository(store, audit_logger):
    return GoalRepository(store, audit_logger)


def make_tx(wallet_id: str, amount, tx_type: str = "expense", category: str = "food", **extra) -> Transaction:
    return Transaction(
        wallet_id=wallet_id,
        type=tx_type,
        amount=Decimal(str(amount)),
        category=category,
        **extra,
    )
