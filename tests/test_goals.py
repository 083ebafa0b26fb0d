"""Tests for goal completion syncing and the clocks that drive it."""

from datetime import date, datetime, timezone
from decimal import Decimal

from wallet_ledger.ledger import FixedClock, is_goal_complete, newly_completed, sync_goal, sync_goals

from conftest import NOW, make_goal


class TestGoalCompletion:
    """Tests for the two-condition completion rule."""

    def test_needs_both_amount_and_date(self):
        """Test that an over-funded goal is not complete before its date."""
        goal = make_goal(target="100.00", allocated="150.00", target_date=date(2026, 11, 1))
        assert not is_goal_complete(goal, date(2026, 10, 31))
        assert is_goal_complete(goal, date(2026, 11, 1))

    def test_underfunded_goal_never_completes(self):
        """Test that passing the date alone is not enough."""
        goal = make_goal(target="100.00", allocated="99.99", target_date=date(2026, 1, 1))
        assert not is_goal_complete(goal, date(2026, 10, 18))

    def test_first_completion_stamps_completed_at(self):
        """Test that completed_at is set on the False to True transition."""
        goal = make_goal(target="100.00", allocated="100.00", target_date=date(2026, 10, 1))
        synced = sync_goal(goal, date(2026, 10, 18), NOW)
        assert synced.is_completed
        assert synced.completed_at == NOW

    def test_completed_at_never_overwritten(self):
        """Test that a later sync keeps the original stamp."""
        first = datetime(2026, 10, 2, tzinfo=timezone.utc)
        goal = make_goal(
            target="100.00", allocated="100.00", target_date=date(2026, 10, 1),
            is_completed=True, completed_at=first,
        )
        assert sync_goal(goal, date(2026, 10, 18), NOW).completed_at == first

    def test_regression_keeps_completed_at(self):
        """Test that dropping below target un-completes but keeps the stamp."""
        first = datetime(2026, 10, 2, tzinfo=timezone.utc)
        goal = make_goal(
            target="100.00", allocated="40.00", target_date=date(2026, 10, 1),
            is_completed=True, completed_at=first,
        )
        synced = sync_goal(goal, date(2026, 10, 18), NOW)
        assert synced.is_completed is False
        assert synced.completed_at == first

    def test_unchanged_goal_is_same_object(self):
        """Test that syncing a settled goal does not copy it."""
        goal = make_goal(target="100.00", allocated="10.00")
        assert sync_goal(goal, date(2026, 10, 18), NOW) is goal

    def test_sync_goals_preserves_order(self):
        """Test that the list keeps its order."""
        goals = [make_goal("g2"), make_goal("g1")]
        assert [g.id for g in sync_goals(goals, date(2026, 10, 18), NOW)] == ["g2", "g1"]

    def test_newly_completed(self):
        """Test detection of goals that just completed."""
        before = [make_goal("g1", target="10.00", allocated="10.00", target_date=date(2026, 10, 1))]
        after = sync_goals(before, date(2026, 10, 18), NOW)
        assert newly_completed(before, set()) == []
        assert [g.id for g in newly_completed(after, set())] == ["g1"]
        assert newly_completed(after, {"g1"}) == []


class TestFixedClock:
    """Tests for the test clock."""

    def test_today_follows_now(self):
        """Test that today defaults to the date of now."""
        clock = FixedClock(datetime(2026, 10, 18, 23, 0))
        assert clock.now().tzinfo == timezone.utc
        assert clock.today() == date(2026, 10, 18)

    def test_advance(self):
        """Test moving time forward."""
        clock = FixedClock(NOW, today=date(2026, 10, 18))
        clock.advance(days=14)
        assert clock.today() == date(2026, 11, 1)
        assert clock.now() == datetime(2026, 11, 1, 12, 0, tzinfo=timezone.utc)

    def test_goal_completes_as_clock_moves(self):
        """Test completion gated purely by the passing of time."""
        clock = FixedClock(NOW)
        goal = make_goal(target="50.00", allocated=str(Decimal("50.00")), target_date=date(2026, 10, 20))
        assert not sync_goal(goal, clock.today(), clock.now()).is_completed
        clock.advance(days=2)
        assert sync_goal(goal, clock.today(), clock.now()).is_completed
