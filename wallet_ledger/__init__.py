"""
Wallet Ledger - Source Package

The balance-consistency core of a personal-finance wallet: accounts,
transactions with running balances, savings goals, and the filters
that query them.

DESIGN PRINCIPLES:
1. Validate everything → apply tentatively → confirm → commit
2. Fail early, fail visibly (results, not surprises)
3. No silent corrections
4. Every mutation must be auditable
5. Storage layer is swappable
"""

from wallet_ledger.models import (
    Account,
    AccountType,
    ErrorKind,
    ExternalRecipient,
    FilterPreset,
    Filters,
    Goal,
    OperationResult,
    Transaction,
    TransactionType,
    User,
)
from wallet_ledger.seed import SeedData
from wallet_ledger.store import LedgerStore

__version__ = "1.0.0"
__author__ = "Wallet Ledger Team"

__all__ = [
    "Account",
    "AccountType",
    "ErrorKind",
    "ExternalRecipient",
    "FilterPreset",
    "Filters",
    "Goal",
    "LedgerStore",
    "OperationResult",
    "SeedData",
    "Transaction",
    "TransactionType",
    "User",
]
