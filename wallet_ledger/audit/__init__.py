"""Audit logging package."""

from wallet_ledger.audit.logger import AuditLogger

__all__ = ["AuditLogger"]
