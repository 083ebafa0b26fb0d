"""
Audit Logger

DESIGN DECISION: Every ledger mutation is logged.
This provides:
1. A trail for every balance change
2. Debugging capability when confirmations or storage writes fail
3. A record of rolled-back operations, which leave no transactions behind

The audit logger:
- Always logs locally through structlog
- Optionally appends to the `auditLog` collection
- Gracefully handles failures (never breaks a mutation because logging failed)
"""

from typing import Optional

import structlog

from wallet_ledger.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from wallet_ledger.services.storage import AUDIT_LOG, CollectionStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit collection (for persistence), when storage is given
    """

    def __init__(
        self,
        storage: Optional[CollectionStorageInterface] = None,
        max_events: int = 1000,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
            max_events: Oldest events are dropped beyond this many.
        """
        self._storage = storage
        self._max_events = max_events
        self._logger = structlog.get_logger("wallet_ledger.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                existing = await self._storage.get(AUDIT_LOG) or []
                existing.append(event.to_storage())
                await self._storage.set(AUDIT_LOG, existing[-self._max_events:])
                return True
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """Most recent persisted events, newest first."""
        if not self._storage:
            return []
        stored = await self._storage.get(AUDIT_LOG) or []
        return [AuditEvent.model_validate(e) for e in reversed(stored[-limit:])]

    async def log_account_event(
        self,
        event_type: AuditEventType,
        account_id: str,
        name: str,
    ) -> None:
        """Log an account lifecycle change."""
        await self.log(AuditEventBuilder.account_changed(event_type, account_id, name))

    async def log_wallet_funded(
        self,
        account_id: str,
        amount: str,
        transaction_ids: list[str],
    ) -> None:
        """Log a confirmed wallet funding."""
        await self.log(AuditEventBuilder.wallet_funded(account_id, amount, transaction_ids))

    async def log_transfer(
        self,
        from_account_id: str,
        destination: str,
        amount: str,
        transaction_ids: list[str],
    ) -> None:
        """Log a confirmed transfer."""
        await self.log(AuditEventBuilder.transfer_completed(
            from_account_id, destination, amount, transaction_ids,
        ))

    async def log_transaction_recorded(
        self,
        transaction_id: str,
        account_id: str,
        amount: str,
        direction: str,
    ) -> None:
        """Log a manual transaction entry."""
        await self.log(AuditEventBuilder.transaction_recorded(
            transaction_id, account_id, amount, direction,
        ))

    async def log_transaction_updated(self, transaction_id: str, fields: list[str]) -> None:
        """Log a notes/tags edit."""
        await self.log(AuditEventBuilder.transaction_updated(transaction_id, fields))

    async def log_rollback(self, operation: str, reason: str) -> None:
        """Log an operation whose tentative state was discarded."""
        await self.log(AuditEventBuilder.operation_rolled_back(operation, reason))

    async def log_goal_event(
        self,
        event_type: AuditEventType,
        goal_id: str,
        title: str,
        amount: Optional[str] = None,
    ) -> None:
        """Log a goal lifecycle change or fund movement."""
        await self.log(AuditEventBuilder.goal_event(event_type, goal_id, title, amount))

    async def log_validation_rejected(self, operation: str, issues: list[dict]) -> None:
        """Log a mutation refused by validation."""
        await self.log(AuditEventBuilder.validation_rejected(operation, issues))

    async def log_preset_event(
        self,
        event_type: AuditEventType,
        preset_id: str,
        name: str,
    ) -> None:
        """Log a filter preset change."""
        await self.log(AuditEventBuilder.preset_changed(event_type, preset_id, name))

    async def log_user_updated(self, user_id: str, fields: list[str]) -> None:
        """Log a profile update."""
        await self.log(AuditEventBuilder.user_updated(user_id, fields))

    async def log_persistence_failed(self, collection: str, error_message: str) -> None:
        """Log a failed collection write."""
        await self.log(AuditEventBuilder.persistence_failed(collection, error_message))
