# =======================================================================================
# qr_access/services/role_service.py - Role Membership Set
# =======================================================================================
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import exists, insert, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ..models.tables import role_memberships
from ..utils.clock import utcnow

logger = logging.getLogger(__name__)


class RoleService:
    """
    The admin set. Membership is checked against role_memberships on every
    call and is never read from, or cached on, the identity row.
    """

    def is_member(self, conn: Connection, identity_id: Optional[str]) -> bool:
        if not identity_id:
            return False
        return bool(conn.execute(
            select(exists().where(role_memberships.c.identity_id == identity_id))
        ).scalar())

    def grant(self, conn: Connection, identity_id: str, display_name: str) -> bool:
        """Add a member. Returns False when the membership already existed."""
        try:
            with conn.begin_nested():
                conn.execute(
                    insert(role_memberships).values(
                        identity_id=identity_id,
                        display_name=display_name,
                        created_at=utcnow(),
                    )
                )
        except IntegrityError:
            conn.execute(
                update(role_memberships)
                .where(role_memberships.c.identity_id == identity_id)
                .values(display_name=display_name)
            )
            return False
        return True

    def touch(self, conn: Connection, identity_id: str, at: Optional[datetime] = None) -> None:
        """Stamp the member's last activity (set on every accepted scan they perform)."""
        conn.execute(
            update(role_memberships)
            .where(role_memberships.c.identity_id == identity_id)
            .values(last_activity_at=at or utcnow())
        )

    def get(self, conn: Connection, identity_id: str) -> Optional[Dict[str, Any]]:
        row = conn.execute(
            select(role_memberships).where(role_memberships.c.identity_id == identity_id)
        ).mappings().first()
        return dict(row) if row else None

    def list_members(self, conn: Connection) -> List[Dict[str, Any]]:
        rows = conn.execute(
            select(role_memberships).order_by(role_memberships.c.display_name)
        ).mappings().all()
        return [dict(row) for row in rows]
