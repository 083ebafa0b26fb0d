"""Export package."""

from wallet_ledger.exporters.csv_export import (
    CSV_HEADERS,
    ExportError,
    default_export_filename,
    transactions_to_csv,
)

__all__ = [
    "CSV_HEADERS",
    "ExportError",
    "default_export_filename",
    "transactions_to_csv",
]
