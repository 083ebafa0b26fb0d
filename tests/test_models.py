"""
Tests for the ledger and audit models.

Test strategy:
1. Money is exact: floats are read through str(), everything is cents
2. The camelCase storage format round-trips
3. Result and validation helpers report what they are given
"""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal

from pydantic import ValidationError

from wallet_ledger.models.ledger import (
    Account,
    ErrorKind,
    FilterPreset,
    Filters,
    Goal,
    LedgerState,
    OperationResult,
    Transaction,
    TransactionType,
    User,
    ValidationIssue,
    ValidationResult,
    to_money,
)
from wallet_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

from conftest import make_account, make_goal, make_transaction


class TestMoney:
    """Tests for the cents-exact money type."""

    def test_float_is_read_through_str(self):
        """Test that 0.1 stays 0.1 instead of its binary approximation."""
        assert to_money(0.1) == Decimal("0.10")

    def test_rounds_half_up(self):
        """Test that half a cent rounds away from zero."""
        assert to_money("2.345") == Decimal("2.35")
        assert to_money("-2.345") == Decimal("-2.35")

    def test_rejects_garbage(self):
        """Test that non-numbers are refused."""
        with pytest.raises(ValueError):
            to_money("twelve")
        with pytest.raises(ValueError):
            to_money("NaN")

    def test_account_balance_is_quantized(self):
        """Test that account balances always carry two decimals."""
        account = Account(id="a", name="Main", balance=12)
        assert account.balance == Decimal("12.00")
        assert str(account.balance) == "12.00"


class TestLedgerModels:
    """Tests for accounts, transactions and goals."""

    def test_account_reads_camel_case(self):
        """Test that stored camelCase keys populate snake_case fields."""
        account = Account.model_validate({
            "id": "acc-1",
            "name": "Main",
            "balance": 10.5,
            "isArchived": None,
            "accountNumber": "****1234",
        })
        assert account.is_archived is False
        assert account.account_number == "****1234"
        assert account.balance == Decimal("10.50")

    def test_to_storage_writes_camel_case_numbers(self):
        """Test that storage dumps use camelCase keys and JSON numbers."""
        tx = make_transaction("t1", "12.50", account_id="acc-1", running_balance=Decimal("87.50"))
        stored = tx.to_storage()
        assert stored["accountId"] == "acc-1"
        assert stored["runningBalance"] == 87.5
        assert stored["amount"] == 12.5
        assert "timestamp" not in stored

    def test_transaction_rejects_negative_amount(self):
        """Test that direction lives in type, never in the sign."""
        with pytest.raises(ValidationError):
            make_transaction("t1", "-5.00")

    def test_signed_amount(self):
        """Test the effect of a transaction on its balance."""
        assert make_transaction("t1", "5.00", TransactionType.CREDIT).signed_amount == Decimal("5.00")
        assert make_transaction("t2", "5.00", TransactionType.DEBIT).signed_amount == Decimal("-5.00")

    def test_occurred_at_without_timestamp_is_midnight_utc(self):
        """Test the ordering instant of a date-only transaction."""
        tx = make_transaction("t1", "1.00", day=date(2026, 3, 4))
        assert tx.occurred_at == datetime(2026, 3, 4, tzinfo=timezone.utc)

    def test_occurred_at_reads_naive_timestamp_as_utc(self):
        """Test that naive timestamps are treated as UTC."""
        tx = make_transaction("t1", "1.00", timestamp=datetime(2026, 3, 4, 10, 30))
        assert tx.occurred_at.tzinfo == timezone.utc

    def test_goal_requires_positive_target(self):
        """Test that a zero target is refused."""
        with pytest.raises(ValidationError):
            make_goal(target="0")

    def test_goal_remaining_never_negative(self):
        """Test remaining_amount for an over-funded goal."""
        goal = make_goal(target="100.00", allocated="150.00")
        assert goal.remaining_amount == Decimal("0.00")
        assert make_goal(target="100.00", allocated="40.00").remaining_amount == Decimal("60.00")

    def test_goal_days_until_target(self):
        """Test the countdown used by the withdrawal message."""
        goal = make_goal(target_date=date(2026, 10, 28))
        assert goal.days_until_target(date(2026, 10, 18)) == 10

    def test_user_full_name(self):
        """Test the display name of a profile."""
        user = User(
            id="u1",
            first_name="Alex",
            last_name="Morgan",
            email="alex@example.com",
            created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        assert user.full_name == "Alex Morgan"


class TestFilterModels:
    """Tests for filters and presets."""

    def test_blank_inputs_become_inactive(self):
        """Test that blank strings from form inputs mean 'no bound'."""
        filters = Filters.model_validate({
            "dateFrom": "",
            "amountMin": "",
            "category": None,
            "tags": None,
        })
        assert filters.date_from is None
        assert filters.amount_min is None
        assert filters.category == ""
        assert filters.tags == []

    def test_preset_merges_over_defaults(self):
        """Test that a partial preset fills the rest with defaults."""
        preset = FilterPreset(id="p1", name="Food", filters={"categories": ["Food"]})
        filters = preset.to_filters()
        assert filters.categories == ["Food"]
        assert filters.search_query == ""
        assert filters.date_from is None


class TestLedgerState:
    """Tests for the snapshot container."""

    def test_snapshot_is_independent(self):
        """Test that editing a snapshot never touches the original."""
        state = LedgerState(accounts=[make_account("a", "10.00")])
        copy = state.snapshot()
        copy.accounts.append(make_account("b", "5.00"))
        copy.accounts[0] = copy.accounts[0].model_copy(update={"balance": Decimal("0.00")})
        assert len(state.accounts) == 1
        assert state.accounts[0].balance == Decimal("10.00")

    def test_lookups(self):
        """Test lookups by id."""
        state = LedgerState(
            accounts=[make_account("a")],
            transactions=[make_transaction("t1", "1.00", account_id="a")],
            goals=[make_goal("g1", account_id="a")],
        )
        assert state.account("a").id == "a"
        assert state.transaction("t1").id == "t1"
        assert state.goal("g1").id == "g1"
        assert state.account("missing") is None


class TestResults:
    """Tests for ValidationResult and OperationResult."""

    def test_validation_result_has_errors(self):
        """Test that error-level issues make a result invalid."""
        result = ValidationResult(issues=[
            ValidationIssue(field="amount", issue_type="missing", message="Amount is required"),
            ValidationIssue(field="x", issue_type="hint", message="Note", severity="info"),
        ])
        assert result.has_errors
        assert not result.is_valid
        assert result.error_count == 1
        assert result.first_error == "Amount is required"

    def test_validation_result_warnings_only(self):
        """Test that warnings alone keep a result valid."""
        result = ValidationResult(issues=[
            ValidationIssue(field="x", issue_type="hint", message="Heads up", severity="warning"),
        ])
        assert result.is_valid
        assert result.first_error is None

    def test_operation_result_invalid_uses_first_error(self):
        """Test that a rejected operation reports the first error."""
        validation = ValidationResult(issues=[
            ValidationIssue(field="amount", issue_type="x", message="First"),
            ValidationIssue(field="amount", issue_type="y", message="Second"),
        ])
        result = OperationResult.invalid(validation)
        assert result.success is False
        assert result.error == "First"
        assert result.error_kind == ErrorKind.VALIDATION
        assert len(result.issues) == 2

    def test_operation_result_invalid_with_kind(self):
        validation = ValidationResult(issues=[
            ValidationIssue(field="account_id", issue_type="not_found", message="Account not found"),
        ])
        result = OperationResult.invalid(validation, ErrorKind.NOT_FOUND)
        assert result.error_kind == ErrorKind.NOT_FOUND
        assert result.retryable is False

    def test_operation_result_ok(self):
        """Test the success shape."""
        result = OperationResult.ok(["t1"], entity_id="acc-1")
        assert result.success
        assert result.transaction_ids == ["t1"]
        assert result.error is None


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.WALLET_FUNDED,
            description="Wallet funded with 50.00",
        )
        assert event.event_id is not None
        assert event.timestamp is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.ACCOUNT_CREATED,
            entity_id="acc-1",
            description="Account created: Main",
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "account_created"
        assert log_dict["entity_id"] == "acc-1"
        assert isinstance(log_dict["event_id"], str)

    def test_builder_rollback_is_a_warning(self):
        """Test that rolled-back operations stand out in the log."""
        event = AuditEventBuilder.operation_rolled_back("transfer_internal", "Incorrect PIN")
        assert event.event_type == AuditEventType.OPERATION_ROLLED_BACK
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "Incorrect PIN"

    def test_builder_goal_event_description(self):
        """Test the wording of goal events."""
        event = AuditEventBuilder.goal_event(AuditEventType.GOAL_ALLOCATED, "g1", "Trip", "25.00")
        assert event.description == "Goal allocated: Trip (25.00)"
        assert event.details == {"title": "Trip", "amount": "25.00"}

    def test_builder_persistence_failed_is_an_error(self):
        """Test the severity of storage failures."""
        event = AuditEventBuilder.persistence_failed("accounts", "disk full")
        assert event.severity == AuditSeverity.ERROR
        assert event.entity_id == "accounts"

    def test_goal_model_round_trip_keeps_completion(self):
        """Test that stored completion fields read back."""
        goal = make_goal(is_completed=True, completed_at=datetime(2026, 10, 1, tzinfo=timezone.utc))
        restored = Goal.model_validate(goal.to_storage())
        assert restored.is_completed is True
        assert restored.completed_at == goal.completed_at
