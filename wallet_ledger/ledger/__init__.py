"""Ledger core: balance engine, goal synchronizer and clocks."""

from wallet_ledger.ledger.balances import (
    account_base_balance,
    chronological_key,
    recompute_balances,
    sort_newest_first,
)
from wallet_ledger.ledger.clock import FixedClock, SystemClock
from wallet_ledger.ledger.goals import (
    is_goal_complete,
    newly_completed,
    sync_goal,
    sync_goals,
)

__all__ = [
    "FixedClock",
    "SystemClock",
    "account_base_balance",
    "chronological_key",
    "is_goal_complete",
    "newly_completed",
    "recompute_balances",
    "sort_newest_first",
    "sync_goal",
    "sync_goals",
]
