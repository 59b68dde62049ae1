"""
SQLite Audit Storage

Audit events are append-only rows in `audit_log`. Event details are
JSON-serialized into a single column.
"""

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import literal_column, select

from src.models.audit import AuditEvent, AuditEventType, AuditSeverity
from src.services.storage.database import Database, audit_log_table
from src.services.storage.interface import AuditStorageInterface, StorageError

logger = structlog.get_logger(__name__)


class SQLiteAuditStorage(AuditStorageInterface):
    """SQLite implementation of audit log storage."""

    def __init__(self, database: Database):
        self._db = database

    def _event_to_row(self, event: AuditEvent) -> dict:
        return {
            "event_id": str(event.event_id),
            "timestamp": event.timestamp.isoformat(),
            "event_type": event.event_type.value,
            "severity": event.severity.value,
            "entity_type": event.entity_type,
            "entity_id": event.entity_id,
            "correlation_id": str(event.correlation_id) if event.correlation_id else None,
            "description": event.description,
            "details_json": json.dumps(event.details, default=str),
            "error_message": event.error_message,
            "is_user_action": 1 if event.is_user_action else 0,
        }

    def _row_to_event(self, row) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(row["event_id"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            event_type=AuditEventType(row["event_type"]),
            severity=AuditSeverity(row["severity"]),
            entity_type=row["entity_type"],
            entity_id=row["entity_id"],
            correlation_id=UUID(row["correlation_id"]) if row["correlation_id"] else None,
            description=row["description"],
            details=json.loads(row["details_json"]) if row["details_json"] else {},
            error_message=row["error_message"],
            is_user_action=bool(row["is_user_action"]),
        )

    def _select(self, *conditions, newest_first: bool = False, limit: Optional[int] = None):
        # rowid breaks ties between events logged in the same microsecond
        rowid = literal_column("rowid")
        if newest_first:
            order = (audit_log_table.c.timestamp.desc(), rowid.desc())
        else:
            order = (audit_log_table.c.timestamp, rowid)
        stmt = select(audit_log_table).order_by(*order)
        if conditions:
            stmt = stmt.where(*conditions)
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._db.transaction("read audit events") as conn:
            rows = conn.execute(stmt).mappings().all()
        return [self._row_to_event(row) for row in rows]

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            with self._db.transaction("append audit event") as conn:
                conn.execute(audit_log_table.insert().values(**self._event_to_row(event)))
            return True
        except StorageError as e:
            # Audit logging should not break the main flow
            logger.warning("audit_append_failed", event_id=str(event.event_id), error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return self._select(audit_log_table.c.correlation_id == str(correlation_id))

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        return self._select(
            audit_log_table.c.entity_type == entity_type,
            audit_log_table.c.entity_id == entity_id,
        )

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return self._select(newest_first=True, limit=limit)
