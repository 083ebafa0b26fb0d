"""
Shared fixtures for the wallet ledger tests.

Test strategy:
1. Unit tests for pure components (models, balance engine, filters)
2. Store tests against InMemoryStorage with a fixed clock
3. No real I/O except JSON-file storage tests under tmp_path
"""

import asyncio
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio

from wallet_ledger.config import LedgerSettings
from wallet_ledger.ledger import FixedClock
from wallet_ledger.models.ledger import Account, Goal, Transaction, TransactionType
from wallet_ledger.seed import SeedData
from wallet_ledger.services.confirmation import (
    ConfirmationFailedError,
    ConfirmationGateway,
    ConfirmationRequest,
)
from wallet_ledger.services.storage import InMemoryStorage, StorageError
from wallet_ledger.store import LedgerStore


NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def make_account(
    account_id: str = "acc-a",
    balance: str = "100.00",
    name: Optional[str] = None,
    **extra,
) -> Account:
    return Account(
        id=account_id,
        name=name or f"Account {account_id}",
        balance=Decimal(balance),
        **extra,
    )


def make_transaction(
    transaction_id: str,
    amount: str,
    type: TransactionType = TransactionType.DEBIT,
    account_id: str = "acc-a",
    day: date = date(2026, 10, 1),
    timestamp: Optional[datetime] = None,
    **extra,
) -> Transaction:
    return Transaction(
        id=transaction_id,
        date=day,
        timestamp=timestamp,
        merchant=extra.pop("merchant", "Corner Shop"),
        category=extra.pop("category", "Food"),
        amount=Decimal(amount),
        type=type,
        account_id=account_id,
        **extra,
    )


def make_goal(
    goal_id: str = "goal-1",
    target: str = "1000.00",
    allocated: str = "0.00",
    target_date: date = date(2026, 12, 31),
    account_id: str = "acc-a",
    **extra,
) -> Goal:
    return Goal(
        id=goal_id,
        title=extra.pop("title", "Holiday"),
        target_amount=Decimal(target),
        allocated_amount=Decimal(allocated),
        target_date=target_date,
        account_id=account_id,
        created_at=NOW,
        **extra,
    )


class RejectingGateway(ConfirmationGateway):
    """Fails every confirmation."""

    def __init__(self, retryable: bool = True):
        self.requests: list[ConfirmationRequest] = []
        self.retryable = retryable

    async def confirm(self, request: ConfirmationRequest) -> None:
        self.requests.append(request)
        raise ConfirmationFailedError("Incorrect PIN", retryable=self.retryable)


class HangingGateway(ConfirmationGateway):
    """Never answers, so the store's timeout has to fire."""

    async def confirm(self, request: ConfirmationRequest) -> None:
        await asyncio.sleep(60)


class ManualGateway(ConfirmationGateway):
    """Holds each request until the test approves or declines it."""

    def __init__(self):
        self.decisions: list[asyncio.Future] = []

    async def confirm(self, request: ConfirmationRequest) -> None:
        decision = asyncio.get_running_loop().create_future()
        self.decisions.append(decision)
        if not await decision:
            raise ConfirmationFailedError("Declined")

    async def wait_pending(self, count: int = 1) -> None:
        async def _poll():
            while len(self.decisions) < count:
                await asyncio.sleep(0)
        await asyncio.wait_for(_poll(), timeout=1)

    def decide(self, approved: bool, index: int = -1) -> None:
        self.decisions[index].set_result(approved)


class FailingWriteStorage(InMemoryStorage):
    """InMemoryStorage whose writes to selected collections always fail."""

    def __init__(self, failing: set[str], initial=None):
        super().__init__(initial)
        self.failing = failing

    async def set(self, collection, value):
        if collection in self.failing:
            raise StorageError(f"disk full while writing {collection}")
        await super().set(collection, value)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def settings() -> LedgerSettings:
    return LedgerSettings(confirmation_timeout_seconds=0.2, confirmation_delay_seconds=0)


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def seed() -> SeedData:
    return SeedData(
        accounts=[
            make_account("acc-a", "100.00", name="Everyday"),
            make_account("acc-b", "50.00", name="Savings"),
        ],
    )


@pytest_asyncio.fixture
async def store(storage, clock, settings, seed) -> LedgerStore:
    ledger = LedgerStore(storage=storage, clock=clock, settings=settings)
    await ledger.load(seed)
    return ledger
