"""Tests for CSV export."""

import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from wallet_ledger.exporters import (
    CSV_HEADERS,
    ExportError,
    default_export_filename,
    transactions_to_csv,
)
from wallet_ledger.models.ledger import TransactionType

from conftest import make_transaction


class TestTransactionsToCsv:
    """Tests for transactions_to_csv."""

    def test_empty_list_raises(self):
        with pytest.raises(ExportError, match="No transactions to export"):
            transactions_to_csv([])

    def test_every_cell_quoted(self):
        tx = make_transaction("t1", "5.00", day=date(2026, 10, 1))
        first_line, second_line = transactions_to_csv([tx]).splitlines()
        assert first_line == ",".join(f'"{h}"' for h in CSV_HEADERS)
        assert second_line.startswith('"2026-10-01",""')

    def test_row_contents(self):
        tx = make_transaction(
            "t1",
            "1234.5",
            TransactionType.CREDIT,
            merchant='Joe\'s "Best" Deli',
            timestamp=datetime(2026, 10, 1, 14, 5, 9, tzinfo=timezone.utc),
            running_balance=Decimal("99"),
            notes="lunch, with team",
            tags=["work", "food"],
        )
        [header, row] = list(csv.reader(io.StringIO(transactions_to_csv([tx]))))
        record = dict(zip(header, row))
        assert record["Date"] == "2026-10-01"
        assert record["Time"] == "14:05:09"
        assert record["Merchant"] == 'Joe\'s "Best" Deli'
        assert record["Type"] == "credit"
        assert record["Amount"] == "1234.50"
        assert record["Balance"] == "99.00"
        assert record["Notes"] == "lunch, with team"
        assert record["Tags"] == "work; food"
        assert record["Transaction ID"] == "t1"

    def test_order_is_kept(self):
        rows = transactions_to_csv([
            make_transaction("b", "1.00"),
            make_transaction("a", "1.00"),
        ]).splitlines()[1:]
        assert [r.rsplit(",", 1)[1] for r in rows] == ['"b"', '"a"']

    def test_missing_balance_is_blank(self):
        [_, row] = list(csv.reader(io.StringIO(transactions_to_csv([make_transaction("t", "1.00")]))))
        assert row[CSV_HEADERS.index("Balance")] == ""


def test_default_export_filename():
    assert default_export_filename(date(2026, 10, 18)) == "transactions-2026-10-18.csv"
