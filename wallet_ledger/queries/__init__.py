"""Query package: transaction filtering and spending analytics."""

from wallet_ledger.queries.analytics import (
    MonthlyTotals,
    NamedAmount,
    SpendingPatterns,
    SpendingSummary,
    spending_by_day,
    summarize_spending,
    total_assets,
)
from wallet_ledger.queries.filters import (
    apply_filters,
    available_categories,
    available_tags,
    has_active_filters,
    matches,
)

__all__ = [
    "MonthlyTotals",
    "NamedAmount",
    "SpendingPatterns",
    "SpendingSummary",
    "apply_filters",
    "available_categories",
    "available_tags",
    "has_active_filters",
    "matches",
    "spending_by_day",
    "summarize_spending",
    "total_assets",
]
