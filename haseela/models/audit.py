"""
Audit Models for Haseela

Every state transition and every sync decision is logged as an event.
This provides:
1. A trace of how the current state came to be
2. Debugging information when remote sync misbehaves
3. Visibility into rejected input and discarded data

DESIGN DECISION: Events go to the structured log only. They are not
part of AppState and are never synced.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Mutations
    CLIENT_ADDED = "client_added"
    CLIENT_DELETED = "client_deleted"
    TASK_ADDED = "task_added"
    TASK_DELETED = "task_deleted"
    TASK_TOGGLED = "task_toggled"
    GOAL_SET = "goal_set"
    STATE_RESET = "state_reset"
    MUTATION_REJECTED = "mutation_rejected"

    # Persistence and sync
    STATE_LOADED = "state_loaded"
    LOCAL_DATA_MIGRATED = "local_data_migrated"
    LOCAL_CACHE_CORRUPTED = "local_cache_corrupted"
    LOCAL_SAVE_FAILED = "local_save_failed"
    REMOTE_SYNC_FAILED = "remote_sync_failed"

    # Backup
    STATE_EXPORTED = "state_exported"
    DOCUMENT_IMPORTED = "document_imported"
    DOCUMENT_REJECTED = "document_rejected"

    # Identity
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    SESSION_ENDED = "session_ended"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """A single audit event."""

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # What entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'client', 'task', 'goal', 'state')"
    )
    entity_id: Optional[str] = None

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)
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
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.client_added(client_id, name)
        event = AuditEventBuilder.remote_sync_failed("upsert", str(exc))
    """

    @staticmethod
    def client_added(client_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENT_ADDED,
            entity_type="client",
            entity_id=client_id,
            description=f"Client added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def client_deleted(client_id: str, task_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLIENT_DELETED,
            entity_type="client",
            entity_id=client_id,
            description=f"Client deleted with {task_count} tasks",
            details={"task_count": task_count},
            is_user_action=True,
        )

    @staticmethod
    def task_added(client_id: str, task_id: str, price: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TASK_ADDED,
            entity_type="task",
            entity_id=task_id,
            description="Task added",
            details={"client_id": client_id, "price": price},
            is_user_action=True,
        )

    @staticmethod
    def task_deleted(client_id: str, task_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TASK_DELETED,
            entity_type="task",
            entity_id=task_id,
            description="Task deleted",
            details={"client_id": client_id},
            is_user_action=True,
        )

    @staticmethod
    def task_toggled(client_id: str, task_id: str, is_completed: bool) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TASK_TOGGLED,
            entity_type="task",
            entity_id=task_id,
            description=f"Task marked {'complete' if is_completed else 'open'}",
            details={"client_id": client_id, "is_completed": is_completed},
            is_user_action=True,
        )

    @staticmethod
    def goal_set(month: int, year: int, target_amount: float) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.GOAL_SET,
            entity_type="goal",
            entity_id=f"{year:04d}-{month:02d}",
            description=f"Goal set for {year:04d}-{month:02d}",
            details={"target_amount": target_amount},
            is_user_action=True,
        )

    @staticmethod
    def state_reset() -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description="All data cleared",
            is_user_action=True,
        )

    @staticmethod
    def mutation_rejected(operation: str, reasons: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_REJECTED,
            severity=AuditSeverity.WARNING,
            description=f"{operation} not applied",
            details={"operation": operation, "reasons": reasons},
            is_user_action=True,
        )

    @staticmethod
    def state_loaded(source: str, client_count: int, goal_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_LOADED,
            entity_type="state",
            description=f"State loaded from {source}",
            details={
                "source": source,
                "client_count": client_count,
                "goal_count": goal_count,
            },
        )

    @staticmethod
    def local_data_migrated(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOCAL_DATA_MIGRATED,
            entity_type="state",
            entity_id=user_id,
            description="Local data copied to the remote store on first sign-in",
        )

    @staticmethod
    def local_cache_corrupted(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOCAL_CACHE_CORRUPTED,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description="Local cache discarded",
            error_message=error_message,
        )

    @staticmethod
    def local_save_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOCAL_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="state",
            description="Could not write the local cache",
            error_message=error_message,
        )

    @staticmethod
    def remote_sync_failed(operation: str, error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REMOTE_SYNC_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="state",
            description=f"Remote {operation} failed",
            details={"operation": operation},
            error_message=error_message,
        )

    @staticmethod
    def state_exported(filename: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STATE_EXPORTED,
            entity_type="state",
            description=f"State exported to {filename}",
            details={"filename": filename},
            is_user_action=True,
        )

    @staticmethod
    def document_imported(client_count: int, goal_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_IMPORTED,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description="State replaced from imported document",
            details={"client_count": client_count, "goal_count": goal_count},
            is_user_action=True,
        )

    @staticmethod
    def document_rejected(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DOCUMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="state",
            description="Imported document rejected",
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def signed_in(user_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_IN,
            entity_type="session",
            entity_id=user_id,
            description="Signed in",
            is_user_action=True,
        )

    @staticmethod
    def signed_out(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SIGNED_OUT,
            entity_type="session",
            entity_id=user_id,
            description="Signed out, local data cleared",
            is_user_action=True,
        )

    @staticmethod
    def session_ended(user_id: Optional[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SESSION_ENDED,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            entity_id=user_id,
            description="Identity session ended outside the app",
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
