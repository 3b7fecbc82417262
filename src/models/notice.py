"""
Notice Models for Finanzas Pro

Store failures never crash the app. They become notices: logged locally
and shown to the user as a non-fatal message, while the engine keeps working
on the last snapshot it received.

DESIGN DECISION: Notices live in memory only. They are not an edit history.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class NoticeType(str, Enum):
    """What went wrong (or right) at the store boundary."""
    # Store access
    STORE_CONNECTION_FAILED = "store_connection_failed"
    STORE_READ_FAILED = "store_read_failed"
    STORE_WRITE_FAILED = "store_write_failed"
    RECORD_NOT_FOUND = "record_not_found"

    # Input
    INPUT_REJECTED = "input_rejected"

    # Sync
    SNAPSHOT_REFRESHED = "snapshot_refreshed"


class NoticeSeverity(str, Enum):
    """Severity level for notices."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Notice(BaseModel):
    """A single user-visible notice."""

    notice_id: UUID = Field(
        default_factory=uuid4,
        description="Unique notice identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When it happened (UTC)"
    )
    notice_type: NoticeType
    severity: NoticeSeverity = NoticeSeverity.WARNING

    # What the user tried to do (e.g. 'add_transaction')
    operation: Optional[str] = None
    entity_id: Optional[str] = None

    message: str = Field(
        ...,
        max_length=500,
        description="Human-readable description"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "notice_id": str(self.notice_id),
            "timestamp": self.timestamp.isoformat(),
            "notice_type": self.notice_type.value,
            "severity": self.severity.value,
            "operation": self.operation,
            "entity_id": self.entity_id,
            "message": self.message,
            "details": self.details,
            "error_message": self.error_message,
        }


class NoticeBuilder:
    """
    Helper class to build notices with common patterns.

    Usage:
        notice = NoticeBuilder.write_failed("add_transaction", error)
    """

    @staticmethod
    def connection_failed(error_message: str) -> Notice:
        return Notice(
            notice_type=NoticeType.STORE_CONNECTION_FAILED,
            severity=NoticeSeverity.ERROR,
            message="No se pudo conectar con el almacenamiento. Mostrando los últimos datos sincronizados.",
            error_message=error_message,
        )

    @staticmethod
    def read_failed(operation: str, error_message: str) -> Notice:
        return Notice(
            notice_type=NoticeType.STORE_READ_FAILED,
            severity=NoticeSeverity.WARNING,
            operation=operation,
            message="No se pudieron actualizar los datos. Mostrando los últimos datos sincronizados.",
            error_message=error_message,
        )

    @staticmethod
    def write_failed(
        operation: str,
        error_message: str,
        entity_id: Optional[str] = None,
    ) -> Notice:
        return Notice(
            notice_type=NoticeType.STORE_WRITE_FAILED,
            severity=NoticeSeverity.ERROR,
            operation=operation,
            entity_id=entity_id,
            message=f"No se pudo guardar el cambio ({operation}).",
            error_message=error_message,
        )

    @staticmethod
    def not_found(operation: str, entity_id: str) -> Notice:
        return Notice(
            notice_type=NoticeType.RECORD_NOT_FOUND,
            severity=NoticeSeverity.WARNING,
            operation=operation,
            entity_id=entity_id,
            message=f"El registro {entity_id} ya no existe.",
        )

    @staticmethod
    def input_rejected(operation: str, issues: list[dict]) -> Notice:
        return Notice(
            notice_type=NoticeType.INPUT_REJECTED,
            severity=NoticeSeverity.INFO,
            operation=operation,
            message=f"Datos no válidos: {len(issues)} problema(s).",
            details={"issues": issues},
        )

    @staticmethod
    def snapshot_refreshed(transaction_count: int, fixed_expense_count: int) -> Notice:
        return Notice(
            notice_type=NoticeType.SNAPSHOT_REFRESHED,
            severity=NoticeSeverity.DEBUG,
            operation="refresh",
            message="Datos sincronizados.",
            details={
                "transactions": transaction_count,
                "fixed_expenses": fixed_expense_count,
            },
        )
