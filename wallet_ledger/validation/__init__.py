"""Validation package."""

from wallet_ledger.validation.validator import (
    LedgerValidator,
    decimal_places,
    format_currency,
)

__all__ = ["LedgerValidator", "decimal_places", "format_currency"]
