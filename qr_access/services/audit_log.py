# =======================================================================================
# qr_access/services/audit_log.py - Audit Log Store
# =======================================================================================
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.engine import Connection

from ..models.enums import ScanKind
from ..models.tables import scan_events


class AuditLogStore:
    """
    Append-only scan event log. Only append and reads are exposed; events
    are never updated or deleted through this layer.
    """

    def append(self, conn: Connection, identity_id: Optional[str], scan_kind: ScanKind,
               actor: str, location: str, occurred_at: datetime,
               note: Optional[str] = None) -> str:
        """Insert one event and return its generated id."""
        event_id = str(uuid.uuid4())
        conn.execute(
            insert(scan_events).values(
                id=event_id,
                identity_id=identity_id,
                scan_kind=scan_kind.value,
                actor=actor,
                location=location,
                note=note,
                occurred_at=occurred_at,
            )
        )
        return event_id

    def history_for(self, conn: Connection, identity_id: str,
                    limit: int = 20, offset: int = 0) -> List[Dict[str, Any]]:
        """Events of one identity, newest first."""
        rows = conn.execute(
            select(scan_events)
            .where(scan_events.c.identity_id == identity_id)
            .order_by(scan_events.c.occurred_at.desc(), scan_events.c.id.desc())
            .limit(limit)
            .offset(offset)
        ).mappings().all()
        return [dict(row) for row in rows]

    def count_for(self, conn: Connection, identity_id: str) -> int:
        return conn.execute(
            select(func.count()).select_from(scan_events)
            .where(scan_events.c.identity_id == identity_id)
        ).scalar_one()
