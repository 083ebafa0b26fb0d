"""
Spending Analytics

DESIGN DECISION: Analytics are DETERMINISTIC aggregations over the
transaction list. They never read storage and never estimate beyond the
one explicit projection (this month's spend extrapolated to month end).

Amounts are aggregated as magnitudes. Expenses are debits, income is credits.
"""

import calendar
from collections import Counter, defaultdict
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from wallet_ledger.models.ledger import Transaction, TransactionType, to_money


WEEKDAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
]

TOP_CATEGORIES = 8
TOP_MERCHANTS = 5
MONTHS_OF_HISTORY = 6


class NamedAmount(BaseModel):
    """A label with a total, e.g. a category or merchant."""

    name: str
    amount: Decimal


class MonthlyTotals(BaseModel):
    """Income and expenses for one calendar month."""

    month: str = Field(..., description="Label like 'Oct 2026'")
    income: Decimal
    expenses: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class SpendingPatterns(BaseModel):
    """Transaction counts by time of day."""

    morning: int = 0    # 06:00-11:59
    afternoon: int = 0  # 12:00-17:59
    evening: int = 0    # 18:00-05:59


class SpendingSummary(BaseModel):
    """Everything the analytics view shows."""

    total_transactions: int
    this_month_transactions: int
    average_transaction: Decimal
    most_active_day: str
    this_month_expenses: Decimal
    last_month_expenses: Decimal
    projected_monthly: Decimal
    top_categories: list[NamedAmount]
    top_merchants: list[NamedAmount]
    monthly: list[MonthlyTotals]
    patterns: SpendingPatterns

    @property
    def month_over_month_change(self) -> Optional[Decimal]:
        """Percent change of expenses vs last month, None if last month had none."""
        if not self.last_month_expenses:
            return None
        change = (self.this_month_expenses - self.last_month_expenses) * 100
        return to_money(change / self.last_month_expenses)


def _month_start(day: date, months_back: int = 0) -> date:
    year, month = day.year, day.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return date(year, month, 1)


def _next_month(start: date) -> date:
    if start.month == 12:
        return date(start.year + 1, 1, 1)
    return date(start.year, start.month + 1, 1)


def _transaction_day(transaction: Transaction) -> date:
    if transaction.timestamp is not None:
        return transaction.occurred_at.date()
    return transaction.date


def _ranked(totals: dict[str, Decimal], limit: int) -> list[NamedAmount]:
    ranked = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return [NamedAmount(name=name, amount=to_money(amount)) for name, amount in ranked[:limit]]


def _expenses(transactions: Iterable[Transaction]) -> Decimal:
    return sum(
        (t.amount for t in transactions if t.type is TransactionType.DEBIT),
        Decimal("0"),
    )


def summarize_spending(
    transactions: Iterable[Transaction],
    today: date,
) -> Optional[SpendingSummary]:
    """
    Aggregate a transaction list into a SpendingSummary.

    Returns None when there are no transactions, since every figure would
    be meaningless.
    """
    transactions = list(transactions)
    if not transactions:
        return None

    dated = [(t, _transaction_day(t)) for t in transactions]

    month_start = _month_start(today)
    last_month_start = _month_start(today, 1)
    this_month = [t for t, day in dated if day >= month_start]
    last_month = [t for t, day in dated if last_month_start <= day < month_start]

    total = sum((t.amount for t in transactions), Decimal("0"))
    average = to_money(total / len(transactions))

    weekday_counts = Counter(day.weekday() for _, day in dated)
    busiest = max(sorted(weekday_counts), key=lambda d: weekday_counts[d])

    category_totals: dict[str, Decimal] = defaultdict(Decimal)
    merchant_totals: dict[str, Decimal] = defaultdict(Decimal)
    for t in transactions:
        category_totals[t.category] += t.amount
        merchant_totals[t.merchant] += t.amount

    this_month_expenses = _expenses(this_month)
    days_in_month = calendar.monthrange(today.year, today.month)[1]
    projected = this_month_expenses / today.day * days_in_month

    monthly = []
    for months_back in range(MONTHS_OF_HISTORY - 1, -1, -1):
        start = _month_start(today, months_back)
        end = _next_month(start)
        in_month = [t for t, day in dated if start <= day < end]
        income = sum(
            (t.amount for t in in_month if t.type is TransactionType.CREDIT),
            Decimal("0"),
        )
        monthly.append(MonthlyTotals(
            month=start.strftime("%b %Y"),
            income=to_money(income),
            expenses=to_money(_expenses(in_month)),
        ))

    patterns = SpendingPatterns()
    for t in transactions:
        if t.timestamp is None:
            continue
        hour = t.occurred_at.hour
        if 6 <= hour < 12:
            patterns.morning += 1
        elif 12 <= hour < 18:
            patterns.afternoon += 1
        else:
            patterns.evening += 1

    return SpendingSummary(
        total_transactions=len(transactions),
        this_month_transactions=len(this_month),
        average_transaction=average,
        most_active_day=WEEKDAY_NAMES[busiest],
        this_month_expenses=to_money(this_month_expenses),
        last_month_expenses=to_money(_expenses(last_month)),
        projected_monthly=to_money(projected),
        top_categories=_ranked(category_totals, TOP_CATEGORIES),
        top_merchants=_ranked(merchant_totals, TOP_MERCHANTS),
        monthly=monthly,
        patterns=patterns,
    )


def total_assets(balances: Iterable[Decimal]) -> Decimal:
    """Sum of account balances, rounded to cents."""
    return to_money(sum(balances, Decimal("0")))


def spending_by_day(
    transactions: Iterable[Transaction],
    start: date,
    end: date,
) -> list[NamedAmount]:
    """Daily debit totals for every day in [start, end], zero-filled."""
    totals: dict[date, Decimal] = defaultdict(Decimal)
    for t in transactions:
        if t.type is TransactionType.DEBIT:
            totals[_transaction_day(t)] += t.amount

    days = []
    current = start
    while current <= end:
        days.append(NamedAmount(
            name=current.isoformat(),
            amount=to_money(totals.get(current, Decimal("0"))),
        ))
        current = date.fromordinal(current.toordinal() + 1)
    return days

