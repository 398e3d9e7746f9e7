"""
Tests for Wallet Ledger

Test strategy:
1. Unit tests for individual components (models, validators, calculators)
2. Integration tests for repositories and flows (with an in-memory store)
3. No real filesystem outside pytest's tmp_path
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

from wallet_ledger.models.ledger import (
    Currency,
    Transaction,
    TransactionType,
    Wallet,
    new_id,
    to_decimal,
)
from wallet_ledger.models.goal import Goal, GoalCategory
from wallet_ledger.models.profile import UserProfile
from wallet_ledger.models.results import LedgerSnapshot, OperationResult
from wallet_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from wallet_ledger.errors import ErrorCode, InvalidAmountError


class TestWalletModel:
    """Tests for the Wallet model."""

    def test_wallet_creation(self):
        """Test Wallet model creation with defaults."""
        wallet = Wallet(name="Cash")
        assert wallet.name == "Cash"
        assert wallet.currency == Currency.USD
        assert wallet.amount == Decimal("0")
        assert wallet.starting_amount is None
        assert wallet.id

    def test_wallet_strips_whitespace(self):
        """Test that whitespace is stripped from the wallet name."""
        wallet = Wallet(name="  Savings  ")
        assert wallet.name == "Savings"

    def test_wallet_rejects_empty_name(self):
        """Test that an empty name is rejected."""
        with pytest.raises(ValueError):
            Wallet(name="")

    def test_legacy_currency_code_is_migrated(self):
        """Test that the legacy POUND code becomes GBP."""
        wallet = Wallet(name="UK", currency="POUND")
        assert wallet.currency == Currency.GBP

    def test_currency_is_case_insensitive(self):
        """Test lower-case currency codes."""
        assert Wallet(name="EU", currency="eur").currency == Currency.EUR

    def test_unknown_currency_rejected(self):
        """Test that unsupported codes are rejected."""
        with pytest.raises(ValueError):
            Wallet(name="X", currency="XYZ")

    def test_amount_with_thousands_separator(self):
        """Test that '1,250.50' parses to 1250.50."""
        wallet = Wallet(name="Cash", amount="1,250.50")
        assert wallet.amount == Decimal("1250.50")

    def test_null_amount_is_zero(self):
        """Test that a legacy null balance loads as zero."""
        wallet = Wallet.model_validate({"id": "w1", "name": "Cash", "amount": None})
        assert wallet.amount == Decimal("0")

    def test_negative_balance_allowed(self):
        """Test that wallets may be overdrawn."""
        wallet = Wallet(name="Card", amount=Decimal("-100"))
        assert wallet.amount == Decimal("-100")

    def test_non_finite_amount_rejected(self):
        """Test that NaN balances are rejected."""
        with pytest.raises(ValueError):
            Wallet(name="Cash", amount="NaN")

    def test_to_record_uses_stored_keys(self):
        """Test conversion to the persisted JSON shape."""
        wallet = Wallet(
            id="w1",
            name="Cash",
            currency="USD",
            amount=Decimal("70"),
            starting_amount=Decimal("100"),
        )
        record = wallet.to_record()
        assert record["id"] == "w1"
        assert record["startingAmount"] == 100.0
        assert record["amount"] == 70.0
        assert record["currency"] == "USD"
        assert "starting_amount" not in record

    def test_record_round_trip(self):
        """Test that a stored record loads back to the same wallet."""
        wallet = Wallet(name="Cash", amount=Decimal("12.5"), starting_amount=Decimal("10"))
        loaded = Wallet.model_validate(wallet.to_record())
        assert loaded.model_dump() == wallet.model_dump()


class TestTransactionModel:
    """Tests for the Transaction model."""

    def test_transaction_creation(self):
        """Test Transaction model creation."""
        tx = Transaction(
            wallet_id="w1",
            type=TransactionType.EXPENSE,
            amount=Decimal("30"),
            category="food",
        )
        assert tx.wallet_id == "w1"
        assert tx.date.tzinfo is not None
        assert tx.description is None

    def test_wallet_id_alias(self):
        """Test that stored records use walletId."""
        tx = Transaction.model_validate({
            "id": "t1",
            "walletId": "w1",
            "type": "income",
            "amount": 10,
            "category": "salary",
            "date": "2024-03-01T10:00:00Z",
        })
        assert tx.wallet_id == "w1"
        assert tx.to_record()["walletId"] == "w1"

    def test_signed_amount(self):
        """Test that expenses are negative and income positive."""
        income = Transaction(wallet_id="w1", type="income", amount=25, category="salary")
        expense = Transaction(wallet_id="w1", type="expense", amount=25, category="food")
        assert income.signed_amount == Decimal("25")
        assert expense.signed_amount == Decimal("-25")

    def test_non_positive_amount_allowed_by_schema(self):
        """Test that positivity is left to the reconciler."""
        tx = Transaction(wallet_id="w1", type="expense", amount=-5, category="food")
        assert tx.amount == Decimal("-5")

    def test_float_amount_is_exact(self):
        """Test that 0.1 becomes Decimal('0.1')."""
        tx = Transaction(wallet_id="w1", type="expense", amount=0.1, category="food")
        assert tx.amount == Decimal("0.1")

    def test_boolean_amount_rejected(self):
        """Test that booleans are not amounts."""
        with pytest.raises(ValueError):
            Transaction(wallet_id="w1", type="expense", amount=True, category="food")

    def test_unknown_type_rejected(self):
        """Test that only income and expense exist."""
        with pytest.raises(ValueError):
            Transaction(wallet_id="w1", type="transfer", amount=1, category="food")

    def test_empty_description_is_none(self):
        """Test that an empty note is stored as None."""
        tx = Transaction(wallet_id="w1", type="income", amount=1, category="gift", description="")
        assert tx.description is None

    @pytest.mark.parametrize("category", ["", None])
    def test_missing_category_is_empty(self, category):
        """Test that uncategorized records are accepted."""
        tx = Transaction(wallet_id="w1", type="expense", amount=1, category=category)
        assert tx.category == ""

    def test_legacy_timestamp_object_date(self):
        """Test dates stored as objects exposing toDate()."""

        class LegacyTimestamp:
            def toDate(self):
                return datetime(2024, 3, 1, 10, 0)

        tx = Transaction(
            wallet_id="w1", type="income", amount=1, category="gift", date=LegacyTimestamp()
        )
        assert tx.date == datetime(2024, 3, 1, 10, 0, tzinfo=timezone.utc)

    def test_unparseable_date_rejected(self):
        """Test that garbage dates are rejected."""
        with pytest.raises(ValueError):
            Transaction(wallet_id="w1", type="income", amount=1, category="gift", date="soon")


class TestGoalModel:
    """Tests for the Goal model."""

    def test_goal_creation(self):
        """Test Goal model creation."""
        goal = Goal(title="Car", target_amount=Decimal("1000"))
        assert goal.current_amount == Decimal("0")
        assert goal.category == GoalCategory.GENERAL
        assert goal.deadline is None
        assert goal.remaining_amount == Decimal("1000")
        assert goal.is_achieved is False

    def test_target_must_be_positive(self):
        """Test that a zero target is rejected."""
        with pytest.raises(ValueError):
            Goal(title="Car", target_amount=Decimal("0"))

    def test_current_cannot_be_negative(self):
        """Test that saved amount is never negative."""
        with pytest.raises(ValueError):
            Goal(title="Car", target_amount=100, current_amount=-1)

    def test_label_outside_palette_is_kept(self):
        """Test that custom goal labels are accepted as-is."""
        goal = Goal.model_validate({"title": "Pension", "targetAmount": 500, "category": "Retirement"})
        assert goal.category == "Retirement"
        assert goal.to_record()["category"] == "Retirement"

    def test_palette_member_stored_as_label(self):
        """Test that GoalCategory values are stored as plain labels."""
        goal = Goal(title="Car", target_amount=500, category=GoalCategory.VEHICLE)
        assert goal.to_record()["category"] == "Vehicle"

    def test_empty_deadline_is_none(self):
        """Test that the stored '' deadline means no deadline."""
        goal = Goal.model_validate({"title": "Trip", "targetAmount": 500, "deadline": ""})
        assert goal.deadline is None

    def test_timestamp_deadline_keeps_date(self):
        """Test that a full timestamp deadline keeps its date part."""
        goal = Goal(title="Trip", target_amount=500, deadline="2025-06-30T00:00:00Z")
        assert goal.deadline == date(2025, 6, 30)

    def test_to_record_uses_stored_keys(self):
        """Test conversion to the persisted JSON shape."""
        goal = Goal(
            title="Trip",
            target_amount=500,
            current_amount=50,
            deadline=date(2025, 6, 30),
            category="Vacation",
        )
        record = goal.to_record()
        assert record["targetAmount"] == 500.0
        assert record["currentAmount"] == 50.0
        assert record["deadline"] == "2025-06-30"
        assert record["category"] == "Vacation"
        assert "createdAt" in record

    def test_remaining_never_negative(self):
        """Test remaining amount of an over-funded goal."""
        goal = Goal(title="Car", target_amount=100, current_amount=150)
        assert goal.remaining_amount == Decimal("0")
        assert goal.is_achieved is True


class TestUserProfile:
    """Tests for the UserProfile model."""

    def test_currency_normalized(self):
        """Test that the preferred currency is upper-cased."""
        profile = UserProfile.model_validate({"name": "Sam", "currency": " eur "})
        assert profile.currency == "EUR"

    def test_blank_currency_is_none(self):
        """Test that an empty preference means none."""
        assert UserProfile(currency="").currency is None

    def test_unknown_fields_ignored(self):
        """Test that unrelated profile fields are tolerated."""
        profile = UserProfile.model_validate({"privacyMode": True, "theme": "dark"})
        assert profile.privacy_mode is True


class TestResults:
    """Tests for OperationResult and LedgerSnapshot."""

    def test_ok_result(self):
        """Test successful result construction."""
        result = OperationResult.ok("value", warnings=["note"])
        assert result.success is True
        assert result.value == "value"
        assert result.warnings == ["note"]
        assert result.error is None

    def test_fail_result_carries_code(self):
        """Test failed result construction from a ledger error."""
        result = OperationResult.fail(InvalidAmountError(Decimal("-1")))
        assert result.success is False
        assert result.error == ErrorCode.INVALID_AMOUNT
        assert "greater than zero" in result.message

    def test_empty_snapshot(self):
        """Test default snapshot is empty."""
        snapshot = LedgerSnapshot()
        assert snapshot.wallets == []
        assert snapshot.transactions == []
        assert snapshot.selected_wallet_id is None


class TestHelpers:
    """Tests for id and amount helpers."""

    def test_new_id_is_unique(self):
        """Test that ids requested back to back never collide."""
        ids = [new_id() for _ in range(100)]
        assert len(set(ids)) == 100

    def test_new_id_is_increasing(self):
        """Test that ids are creation-time ordered."""
        first, second = new_id(), new_id()
        assert int(second) > int(first)

    def test_to_decimal_rejects_text(self):
        """Test that non-numeric text is rejected."""
        with pytest.raises(ValueError):
            to_decimal("abc")

    def test_to_decimal_rejects_infinity(self):
        """Test that infinite amounts are rejected."""
        with pytest.raises(ValueError):
            to_decimal("Infinity")


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.WALLET_CREATED,
            description="Wallet created",
        )
        assert event.event_type == AuditEventType.WALLET_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            description="Transaction recorded",
            details={"wallet_id": "w1", "amount": "30"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_saved"
        assert log_dict["details"]["wallet_id"] == "w1"
        assert log_dict["correlation_id"] is None

    def test_audit_event_builder_balance_healed(self):
        """Test AuditEventBuilder.balance_healed."""
        correlation_id = uuid4()
        event = AuditEventBuilder.balance_healed(
            wallet_id="w1",
            stored="500",
            expected="70",
            correlation_id=correlation_id,
        )
        assert event.event_type == AuditEventType.BALANCE_HEALED
        assert event.severity == AuditSeverity.WARNING
        assert event.entity_id == "w1"
        assert event.correlation_id == correlation_id
        assert event.details == {"stored": "500", "expected": "70"}

    def test_audit_event_builder_transaction_saved(self):
        """Test AuditEventBuilder.transaction_saved."""
        event = AuditEventBuilder.transaction_saved(
            transaction_id="t1",
            wallet_id="w1",
            tx_type="expense",
            amount="30",
            is_edit=True,
            balance_changes={"w1": "70"},
        )
        assert event.event_type == AuditEventType.TRANSACTION_SAVED
        assert event.is_user_action is True
        assert "edited" in event.description

    def test_audit_event_builder_goal_changed(self):
        """Test AuditEventBuilder.goal_changed."""
        event = AuditEventBuilder.goal_changed(AuditEventType.GOAL_DELETED, "g1", "Car")
        assert event.entity_type == "goal"
        assert event.description == "Goal deleted: Car"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
