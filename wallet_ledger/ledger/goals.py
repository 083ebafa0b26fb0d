"""
Goal Synchronizer

A goal is completed only when BOTH hold:
- allocated_amount >= target_amount
- today >= target_date (date-only comparison)

An over-funded goal whose date has not arrived is NOT completed.

completed_at records the first time a goal completed and is never cleared.
is_completed itself is live: withdrawing below target after completion
flips it back to False while completed_at keeps the historical stamp.
"""

from datetime import date, datetime

from wallet_ledger.models.ledger import Goal


def is_goal_complete(goal: Goal, today: date) -> bool:
    return goal.allocated_amount >= goal.target_amount and today >= goal.target_date


def sync_goal(goal: Goal, today: date, now: datetime) -> Goal:
    """Recompute one goal's completion; returns the same object if unchanged."""
    completed = is_goal_complete(goal, today)
    update = {}
    if completed != goal.is_completed:
        update["is_completed"] = completed
    if completed and goal.completed_at is None:
        update["completed_at"] = now
    if not update:
        return goal
    return goal.model_copy(update=update)


def sync_goals(goals: list[Goal], today: date, now: datetime) -> list[Goal]:
    """Recompute completion for every goal, preserving order."""
    return [sync_goal(goal, today, now) for goal in goals]


def newly_completed(goals: list[Goal], reported: set[str]) -> list[Goal]:
    """Completed goals whose completion has not been reported yet."""
    return [goal for goal in goals if goal.is_completed and goal.id not in reported]
