"""Tests for the balance engine."""

from datetime import date, datetime, timezone
from decimal import Decimal

from wallet_ledger.ledger import (
    account_base_balance,
    chronological_key,
    recompute_balances,
    sort_newest_first,
)
from wallet_ledger.models.ledger import TransactionType

from conftest import make_account, make_transaction


CREDIT = TransactionType.CREDIT
DEBIT = TransactionType.DEBIT


def _by_id(transactions):
    return {t.id: t for t in transactions}


class TestOrdering:
    """Tests for chronological ordering."""

    def test_date_only_sorts_at_midnight_utc(self):
        """Test that a date-only transaction sorts before any timed one that day."""
        timed = make_transaction("b", "1.00", day=date(2026, 5, 1),
                                 timestamp=datetime(2026, 5, 1, 0, 1, tzinfo=timezone.utc))
        untimed = make_transaction("a", "1.00", day=date(2026, 5, 1))
        assert chronological_key(untimed) < chronological_key(timed)

    def test_ties_broken_by_id(self):
        """Test that equal instants order by id, newest-first reversing it."""
        moment = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
        first = make_transaction("tx-1", "1.00", timestamp=moment)
        second = make_transaction("tx-2", "1.00", timestamp=moment)
        assert [t.id for t in sort_newest_first([first, second])] == ["tx-2", "tx-1"]


class TestRecomputeBalances:
    """Tests for peel-back-then-replay running balances."""

    def test_worked_example(self):
        """Test the three-transaction example from the module docs."""
        account = make_account("a", "150.00")
        transactions = [
            make_transaction("jan", "100.00", CREDIT, account_id="a", day=date(2026, 1, 5)),
            make_transaction("feb", "50.00", DEBIT, account_id="a", day=date(2026, 2, 5)),
            make_transaction("mar", "50.00", CREDIT, account_id="a", day=date(2026, 3, 5)),
        ]

        result = recompute_balances([account], transactions)

        assert [t.id for t in result] == ["mar", "feb", "jan"]
        balances = {t.id: t.running_balance for t in result}
        assert balances == {
            "jan": Decimal("150.00"),
            "feb": Decimal("100.00"),
            "mar": Decimal("150.00"),
        }

    def test_newest_equals_anchor(self):
        """Test that the latest running balance always equals the account balance."""
        account = make_account("a", "42.10")
        transactions = [
            make_transaction("t1", "10.00", CREDIT, account_id="a", day=date(2026, 1, 1)),
            make_transaction("t2", "3.33", DEBIT, account_id="a", day=date(2026, 1, 2)),
        ]
        result = recompute_balances([account], transactions)
        assert result[0].running_balance == Decimal("42.10")

    def test_accounts_are_independent(self):
        """Test that each account replays only its own transactions."""
        accounts = [make_account("a", "100.00"), make_account("b", "20.00")]
        transactions = [
            make_transaction("a1", "30.00", CREDIT, account_id="a", day=date(2026, 1, 1)),
            make_transaction("b1", "5.00", DEBIT, account_id="b", day=date(2026, 1, 2)),
        ]
        result = _by_id(recompute_balances(accounts, transactions))
        assert result["a1"].running_balance == Decimal("100.00")
        assert result["b1"].running_balance == Decimal("20.00")

    def test_idempotent(self):
        """Test that a second pass changes nothing."""
        account = make_account("a", "75.25")
        transactions = [
            make_transaction("t1", "20.00", CREDIT, account_id="a", day=date(2026, 1, 1)),
            make_transaction("t2", "4.75", DEBIT, account_id="a", day=date(2026, 1, 3)),
            make_transaction("t3", "11.00", DEBIT, account_id="a", day=date(2026, 1, 2)),
        ]
        once = recompute_balances([account], transactions)
        twice = recompute_balances([account], once)
        assert [(t.id, t.running_balance) for t in once] == [
            (t.id, t.running_balance) for t in twice
        ]

    def test_ignores_stale_running_balances(self):
        """Test that cached running balances are never trusted as input."""
        account = make_account("a", "10.00")
        stale = make_transaction("t1", "10.00", CREDIT, account_id="a",
                                 running_balance=Decimal("999.99"))
        [result] = recompute_balances([account], [stale])
        assert result.running_balance == Decimal("10.00")

    def test_backdated_transaction_reflows(self):
        """Test that inserting an older transaction shifts only later balances."""
        account = make_account("a", "90.00")
        transactions = [
            make_transaction("new", "10.00", DEBIT, account_id="a", day=date(2026, 6, 1)),
            make_transaction("old", "20.00", CREDIT, account_id="a", day=date(2026, 1, 1)),
        ]
        result = _by_id(recompute_balances([account], transactions))
        assert result["old"].running_balance == Decimal("100.00")
        assert result["new"].running_balance == Decimal("90.00")

    def test_orphans_kept_without_balance(self):
        """Test that transactions of unknown accounts survive unstamped."""
        account = make_account("a", "10.00")
        transactions = [
            make_transaction("mine", "10.00", CREDIT, account_id="a"),
            make_transaction("orphan", "5.00", DEBIT, account_id="gone",
                             running_balance=Decimal("1.00")),
        ]
        result = _by_id(recompute_balances([account], transactions))
        assert set(result) == {"mine", "orphan"}
        assert result["orphan"].running_balance is None

    def test_empty_inputs_returned_unchanged(self):
        """Test the degenerate cases."""
        transactions = [make_transaction("t1", "1.00")]
        assert recompute_balances([], transactions) is transactions
        assert recompute_balances([make_account()], []) == []

    def test_inputs_not_mutated(self):
        """Test that the engine copies instead of editing its input."""
        account = make_account("a", "10.00")
        original = make_transaction("t1", "10.00", CREDIT, account_id="a")
        recompute_balances([account], [original])
        assert original.running_balance is None


class TestBaseBalance:
    """Tests for the balance before an account's first transaction."""

    def test_sum_invariant(self):
        """Test balance == base + credits - debits."""
        account = make_account("a", "250.00")
        transactions = [
            make_transaction("t1", "100.00", CREDIT, account_id="a"),
            make_transaction("t2", "30.00", DEBIT, account_id="a"),
            make_transaction("t3", "500.00", CREDIT, account_id="other"),
        ]
        base = account_base_balance(account, transactions)
        assert base == Decimal("180.00")
        credits = Decimal("100.00")
        debits = Decimal("30.00")
        assert account.balance == base + credits - debits
