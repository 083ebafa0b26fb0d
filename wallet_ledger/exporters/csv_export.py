"""
CSV Export

Turns an already filtered, already sorted transaction list into CSV text.
No ledger logic lives here: what you pass is what you get, in that order.
"""

import csv
from datetime import date
from typing import Iterable

import pandas as pd

from wallet_ledger.models.ledger import Transaction


CSV_HEADERS = [
    "Date",
    "Time",
    "Merchant",
    "Category",
    "Type",
    "Amount",
    "Balance",
    "Notes",
    "Tags",
    "Transaction ID",
]


class ExportError(Exception):
    """Nothing exportable was given."""
    pass


def _row(transaction: Transaction) -> list[str]:
    if transaction.timestamp is not None:
        moment = transaction.occurred_at
        day, time = moment.strftime("%Y-%m-%d"), moment.strftime("%H:%M:%S")
    else:
        day, time = transaction.date.isoformat(), ""
    balance = transaction.running_balance
    return [
        day,
        time,
        transaction.merchant,
        transaction.category,
        transaction.type.value,
        f"{transaction.amount:.2f}",
        f"{balance:.2f}" if balance is not None else "",
        transaction.notes or "",
        "; ".join(transaction.tags or []),
        transaction.id,
    ]


def transactions_to_csv(transactions: Iterable[Transaction]) -> str:
    """
    Render transactions as CSV with every cell quoted.

    Raises:
        ExportError: If there are no transactions
    """
    transactions = list(transactions)
    if not transactions:
        raise ExportError("No transactions to export")

    frame = pd.DataFrame([_row(t) for t in transactions], columns=CSV_HEADERS, dtype=str)
    return frame.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def default_export_filename(today: date) -> str:
    return f"transactions-{today.isoformat()}.csv"
