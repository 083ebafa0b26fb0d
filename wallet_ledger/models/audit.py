"""
Audit Models for the Wallet Ledger

Every mutation of the ledger is logged for audit purposes.
This provides:
1. Traceability of every balance change
2. Debugging information when a confirmation or a storage write fails
3. A record of rolled-back operations, which leave no transactions behind

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every mutation operation of the store has its own event type.
    """
    # Accounts
    ACCOUNT_CREATED = "account_created"
    ACCOUNT_UPDATED = "account_updated"
    ACCOUNT_ARCHIVED = "account_archived"
    ACCOUNT_UNARCHIVED = "account_unarchived"
    ACCOUNT_DELETED = "account_deleted"

    # Money movement
    WALLET_FUNDED = "wallet_funded"
    TRANSFER_COMPLETED = "transfer_completed"
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_UPDATED = "transaction_updated"
    OPERATION_ROLLED_BACK = "operation_rolled_back"

    # Goals
    GOAL_CREATED = "goal_created"
    GOAL_ALLOCATED = "goal_allocated"
    GOAL_WITHDRAWN = "goal_withdrawn"
    GOAL_COMPLETED = "goal_completed"
    GOAL_DELETED = "goal_deleted"

    # Rejections
    VALIDATION_REJECTED = "validation_rejected"

    # Presets and profile
    PRESET_SAVED = "preset_saved"
    PRESET_DELETED = "preset_deleted"
    USER_UPDATED = "user_updated"

    # System events
    PERSISTENCE_FAILED = "persistence_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every mutation creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'account', 'goal', 'transaction')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_storage(self) -> dict:
        """Convert to the JSON-compatible dict appended to the audit collection."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.wallet_funded(account_id, "50.00", [tx_id])
        event = AuditEventBuilder.goal_completed(goal_id, "Trip")
    """

    @staticmethod
    def account_changed(
        event_type: AuditEventType,
        account_id: str,
        name: str,
    ) -> AuditEvent:
        verb = event_type.value.split("_", 1)[1]
        return AuditEvent(
            event_type=event_type,
            entity_type="account",
            entity_id=account_id,
            description=f"Account {verb}: {name}",
            details={"name": name},
        )

    @staticmethod
    def wallet_funded(
        account_id: str,
        amount: str,
        transaction_ids: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.WALLET_FUNDED,
            entity_type="account",
            entity_id=account_id,
            description=f"Wallet funded with {amount}",
            details={
                "amount": amount,
                "transaction_ids": transaction_ids,
            },
        )

    @staticmethod
    def transfer_completed(
        from_account_id: str,
        destination: str,
        amount: str,
        transaction_ids: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSFER_COMPLETED,
            entity_type="account",
            entity_id=from_account_id,
            description=f"Transferred {amount} to {destination}",
            details={
                "destination": destination,
                "amount": amount,
                "transaction_ids": transaction_ids,
            },
        )

    @staticmethod
    def transaction_recorded(
        transaction_id: str,
        account_id: str,
        amount: str,
        direction: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Recorded {direction} of {amount}",
            details={
                "account_id": account_id,
                "amount": amount,
                "type": direction,
            },
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction updated: {', '.join(fields)}",
            details={"fields": fields},
        )

    @staticmethod
    def operation_rolled_back(
        operation: str,
        reason: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OPERATION_ROLLED_BACK,
            severity=AuditSeverity.WARNING,
            entity_type="operation",
            description=f"{operation} rolled back",
            error_message=reason,
            details={"operation": operation},
        )

    @staticmethod
    def goal_event(
        event_type: AuditEventType,
        goal_id: str,
        title: str,
        amount: Optional[str] = None,
    ) -> AuditEvent:
        description = f"Goal {event_type.value.split('_', 1)[1]}: {title}"
        if amount is not None:
            description = f"{description} ({amount})"
        details: dict[str, Any] = {"title": title}
        if amount is not None:
            details["amount"] = amount
        return AuditEvent(
            event_type=event_type,
            entity_type="goal",
            entity_id=goal_id,
            description=description,
            details=details,
        )

    @staticmethod
    def validation_rejected(
        operation: str,
        issues: list[dict],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="operation",
            description=f"{operation} rejected with {len(issues)} issue(s)",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def preset_changed(
        event_type: AuditEventType,
        preset_id: str,
        name: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            entity_type="filter_preset",
            entity_id=preset_id,
            description=f"Filter preset {event_type.value.split('_', 1)[1]}: {name}",
        )

    @staticmethod
    def user_updated(
        user_id: str,
        fields: list[str],
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_UPDATED,
            entity_type="user",
            entity_id=user_id,
            description="Profile updated",
            details={"fields": fields},
        )

    @staticmethod
    def persistence_failed(
        collection: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSISTENCE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="collection",
            entity_id=collection,
            description=f"Failed to persist {collection}",
            error_message=error_message,
        )
