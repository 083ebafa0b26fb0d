"""
Data Models Package

This package contains all Pydantic models used by the Wallet Ledger.
All data flowing through the store must conform to these schemas.
"""

from wallet_ledger.models.ledger import (
    Account,
    AccountType,
    ErrorKind,
    ExternalRecipient,
    FilterPreset,
    Filters,
    Goal,
    LedgerState,
    OperationResult,
    Transaction,
    TransactionType,
    User,
    ValidationIssue,
    ValidationResult,
    to_money,
)
from wallet_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    "ErrorKind",
    "ExternalRecipient",
    "FilterPreset",
    "Filters",
    "Goal",
    "LedgerState",
    "OperationResult",
    "Transaction",
    "TransactionType",
    "User",
    "ValidationIssue",
    "ValidationResult",
    "to_money",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
