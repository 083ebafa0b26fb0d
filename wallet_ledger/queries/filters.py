"""
Transaction Filter Engine

DESIGN DECISION: Filtering is a pure, order-preserving function.
The store hands it the balance engine's newest-first list and gets back
a subset in the same order. Nothing here touches state.

All active predicates are AND-combined. An inactive predicate (empty
string, empty list, None) matches everything, so default Filters is the
identity.
"""

from typing import Iterable

from wallet_ledger.models.ledger import Filters, Transaction


def has_active_filters(filters: Filters) -> bool:
    """True if at least one predicate would exclude something."""
    return bool(
        filters.search_query.strip()
        or filters.category.strip()
        or filters.categories
        or filters.merchant.strip()
        or filters.date_from
        or filters.date_to
        or filters.amount_min is not None
        or filters.amount_max is not None
        or filters.tags
    )


def _matches_search(transaction: Transaction, query: str) -> bool:
    haystack = [transaction.merchant, transaction.category, transaction.notes or ""]
    haystack.extend(transaction.tags or [])
    return any(query in field.lower() for field in haystack)


def matches(transaction: Transaction, filters: Filters) -> bool:
    """Check one transaction against every active predicate."""
    query = filters.search_query.strip().lower()
    if query and not _matches_search(transaction, query):
        return False

    # A non-empty category set wins over the legacy single category
    if filters.categories:
        if transaction.category not in filters.categories:
            return False
    elif filters.category and transaction.category != filters.category:
        return False

    merchant = filters.merchant.strip().lower()
    if merchant and merchant not in transaction.merchant.lower():
        return False

    # ISO date strings order the same way as the dates themselves
    day = transaction.date.isoformat()
    if filters.date_from and day < filters.date_from.isoformat():
        return False
    if filters.date_to and day > filters.date_to.isoformat():
        return False

    if filters.amount_min is not None and transaction.amount < filters.amount_min:
        return False
    if filters.amount_max is not None and transaction.amount > filters.amount_max:
        return False

    if filters.tags:
        if not set(filters.tags).intersection(transaction.tags or []):
            return False

    return True


def apply_filters(
    transactions: Iterable[Transaction],
    filters: Filters,
) -> list[Transaction]:
    """Return the transactions matching `filters`, in their original order."""
    transactions = list(transactions)
    if not has_active_filters(filters):
        return transactions
    return [t for t in transactions if matches(t, filters)]


def available_tags(transactions: Iterable[Transaction]) -> list[str]:
    """Every tag in use, sorted, for building a tag picker."""
    return sorted({tag for t in transactions for tag in (t.tags or [])})


def available_categories(transactions: Iterable[Transaction]) -> list[str]:
    """Every category in use, sorted."""
    return sorted({t.category for t in transactions})
