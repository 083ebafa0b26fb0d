"""
Balance Engine

Recomputes the running balance cached on every transaction.

The account balance is the ANCHOR: it already contains every transaction.
So the engine works backwards first. It peels all of an account's
transactions off the anchor to find the balance before the earliest one,
then replays them forwards and stamps each resulting balance.

  anchor 150.00, transactions [+100 (Jan), -50 (Feb), +50 (Mar)]
  peel back:   150 - 50 + 50 - 100 = 50.00  (before January)
  replay:      150.00, 100.00, 150.00

This keeps running balances consistent with the anchor no matter which
transactions were added, removed, or backdated since the last pass.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable

from wallet_ledger.models.ledger import Account, Transaction, TransactionType, to_money


def chronological_key(transaction: Transaction) -> tuple[datetime, str]:
    """Sort key: instant (timestamp, else midnight UTC of date), then id."""
    return (transaction.occurred_at, transaction.id)


def sort_newest_first(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Display order: newest first, ties broken by descending id."""
    return sorted(transactions, key=chronological_key, reverse=True)


def account_base_balance(account: Account, transactions: Iterable[Transaction]) -> Decimal:
    """
    Balance of `account` before its earliest transaction.

    Peels every transaction belonging to the account back off the anchor.
    """
    balance = account.balance
    for transaction in transactions:
        if transaction.account_id != account.id:
            continue
        if transaction.type is TransactionType.CREDIT:
            balance -= transaction.amount
        else:
            balance += transaction.amount
    return to_money(balance)


def recompute_balances(
    accounts: list[Account],
    transactions: list[Transaction],
) -> list[Transaction]:
    """
    Stamp running_balance on every transaction.

    Returns a new list sorted newest first. Input models are not mutated.
    When either collection is empty there is nothing to anchor against and
    the input is returned unchanged.

    Transactions whose account is unknown are kept, without a running
    balance, so history is never lost because an account record is missing.
    """
    if not transactions or not accounts:
        return transactions

    by_account: dict[str, list[Transaction]] = defaultdict(list)
    for transaction in transactions:
        by_account[transaction.account_id].append(transaction)

    known_ids = {account.id for account in accounts}
    stamped: list[Transaction] = []

    for account in accounts:
        ordered = sorted(by_account.get(account.id, []), key=chronological_key)
        if not ordered:
            continue

        balance = account.balance
        for transaction in reversed(ordered):
            if transaction.type is TransactionType.CREDIT:
                balance -= transaction.amount
            else:
                balance += transaction.amount

        for transaction in ordered:
            if transaction.type is TransactionType.CREDIT:
                balance += transaction.amount
            else:
                balance -= transaction.amount
            stamped.append(
                transaction.model_copy(update={"running_balance": to_money(balance)})
            )

    for account_id, orphans in by_account.items():
        if account_id not in known_ids:
            stamped.extend(
                t.model_copy(update={"running_balance": None}) for t in orphans
            )

    return sort_newest_first(stamped)
