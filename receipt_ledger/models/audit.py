"""
Audit Models for Receipt Ledger

Every significant step of a receipt allocation and every ledger append is
recorded as an audit event. This gives:
1. Traceability from a photographed receipt to the transactions it produced
2. Debugging information when OCR or storage misbehaves
3. A history both housemates can inspect

Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Each workflow stage has its own event types.
    """
    # Image intake
    IMAGE_LOADED = "image_loaded"
    IMAGE_REJECTED = "image_rejected"

    # OCR processing
    OCR_STARTED = "ocr_started"
    OCR_COMPLETED = "ocr_completed"
    OCR_FAILED = "ocr_failed"
    OCR_RESULT_DISCARDED = "ocr_result_discarded"

    # Review and categorization
    ITEM_ADDED = "item_added"
    ITEM_EDITED = "item_edited"
    ITEM_DELETED = "item_deleted"
    CATEGORIZATION_STARTED = "categorization_started"
    ALLOCATION_COMPLETED = "allocation_completed"

    # Human decision
    USER_CONFIRMED = "user_confirmed"
    USER_CANCELLED = "user_cancelled"

    # Ledger
    TRANSACTION_APPENDED = "transaction_appended"
    SUBMISSION_FAILED = "submission_failed"
    DEBT_SETTLED = "debt_settled"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
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
        description="Type of entity (e.g., 'image', 'workflow', 'transaction')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - all events of one allocation workflow share this
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events"
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

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

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
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.image_loaded(upload_id, filename, size, correlation_id)
        event = AuditEventBuilder.user_confirmed(total, correlation_id)
    """

    @staticmethod
    def image_loaded(
        upload_id: UUID,
        filename: str,
        file_size: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_LOADED,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Receipt image loaded: {filename}",
            details={
                "filename": filename,
                "file_size_bytes": file_size,
            },
            is_user_action=True,
        )

    @staticmethod
    def image_rejected(
        filename: str,
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="image",
            correlation_id=correlation_id,
            description=f"Receipt image rejected: {filename}",
            details={
                "filename": filename,
                "reason": reason,
            },
        )

    @staticmethod
    def ocr_started(
        upload_id: UUID,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_STARTED,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description="Text extraction started",
            is_user_action=True,
        )

    @staticmethod
    def ocr_completed(
        upload_id: UUID,
        line_count: int,
        item_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_COMPLETED,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description=f"Receipt scanned: {item_count} items from {line_count} lines",
            details={
                "line_count": line_count,
                "item_count": item_count,
            },
        )

    @staticmethod
    def ocr_failed(
        upload_id: UUID,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description="Text extraction failed",
            error_message=error_message,
        )

    @staticmethod
    def ocr_result_discarded(
        upload_id: UUID,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OCR_RESULT_DISCARDED,
            entity_type="image",
            entity_id=upload_id,
            correlation_id=correlation_id,
            description="Scan finished after the workflow was cancelled; result discarded",
        )

    @staticmethod
    def review_item_changed(
        action: str,
        item_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        event_type = {
            "added": AuditEventType.ITEM_ADDED,
            "edited": AuditEventType.ITEM_EDITED,
            "deleted": AuditEventType.ITEM_DELETED,
        }[action]
        return AuditEvent(
            event_type=event_type,
            entity_type="workflow",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Review item {action}: {item_id}",
            details={
                "item_id": item_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def categorization_started(
        item_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORIZATION_STARTED,
            entity_type="workflow",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Categorization started for {item_count} items",
            details={
                "item_count": item_count,
            },
            is_user_action=True,
        )

    @staticmethod
    def allocation_completed(
        self_share: str,
        other_share: str,
        total: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ALLOCATION_COMPLETED,
            entity_type="workflow",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Allocation completed: total {total}",
            details={
                "self_share": self_share,
                "other_share": other_share,
                "total": total,
            },
        )

    @staticmethod
    def user_confirmed(
        total: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CONFIRMED,
            entity_type="workflow",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description="User confirmed allocation",
            details={
                "total": total,
            },
            is_user_action=True,
        )

    @staticmethod
    def user_cancelled(
        from_state: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CANCELLED,
            entity_type="workflow",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"User cancelled the workflow during {from_state}",
            details={
                "from_state": from_state,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_appended(
        transaction_id: UUID,
        kind: str,
        amount: str,
        paid_by: str,
        split_with: Optional[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_APPENDED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Ledger entry appended: {kind} {amount} paid by {paid_by}",
            details={
                "kind": kind,
                "amount": amount,
                "paid_by": paid_by,
                "split_with": split_with,
            },
        )

    @staticmethod
    def submission_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SUBMISSION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="workflow",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description="Submitting ledger entries failed",
            error_message=error_message,
        )

    @staticmethod
    def debt_settled(
        transaction_id: UUID,
        paid_by: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_SETTLED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Debt settlement of {amount} paid by {paid_by}",
            details={
                "paid_by": paid_by,
                "amount": amount,
            },
            is_user_action=True,
        )
