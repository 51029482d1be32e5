# =======================================================================================
# qr_access/services/user_service.py - Identity Provisioning & Profiles
# =======================================================================================
import logging
from datetime import date
from typing import Optional

from sqlalchemy import exists, select, update
from sqlalchemy.engine import Connection

from ..models.enums import RoleClaim
from ..models.schemas import IdentityProfile
from ..models.tables import identities
from ..utils.clock import utcnow
from .credential_service import CredentialService
from .role_service import RoleService
from .subscription import subscription_status

logger = logging.getLogger(__name__)


class UserService:
    """Handles identity provisioning and profile operations."""

    def __init__(self, credentials: Optional[CredentialService] = None,
                 roles: Optional[RoleService] = None):
        self.credentials = credentials or CredentialService()
        self.roles = roles or RoleService()

    def on_identity_registered(self, conn: Connection, identity_id: str, display_name: str,
                               role_claim: RoleClaim = RoleClaim.STANDARD,
                               valid_until: Optional[date] = None) -> RoleClaim:
        """
        Post-registration hook, called synchronously by the registration flow.

        An admin claim creates a role membership; anything else creates (or
        refreshes) a standard identity with an issued credential. The claim is
        taken as given: whoever calls this must have vetted it.
        """
        if role_claim == RoleClaim.ADMIN:
            created = self.roles.grant(conn, identity_id, display_name)
            logger.warning("Admin role membership %s for %s from registration claim",
                           "granted" if created else "refreshed", identity_id)
            return RoleClaim.ADMIN

        self.credentials.issue(conn, identity_id, display_name, valid_until)
        logger.info("Identity %s provisioned", identity_id)
        return RoleClaim.STANDARD

    def is_registered(self, conn: Connection, identity_id: str) -> bool:
        return bool(conn.execute(
            select(exists().where(identities.c.id == identity_id))
        ).scalar())

    def get_profile(self, conn: Connection, identity_id: str, today: date) -> Optional[IdentityProfile]:
        row = conn.execute(
            select(identities).where(identities.c.id == identity_id)
        ).mappings().first()
        if not row:
            return None
        return IdentityProfile(
            id=row["id"],
            display_name=row["display_name"],
            valid_until=row["valid_until"],
            credential=row["credential"],
            subscription_status=subscription_status(row["valid_until"], today),
            created_at=row["created_at"],
        )

    def update_subscription(self, conn: Connection, identity_id: str,
                            valid_until: Optional[date]) -> bool:
        """Set (or clear, with None) the subscription window. False for unknown identities."""
        result = conn.execute(
            update(identities)
            .where(identities.c.id == identity_id)
            .values(valid_until=valid_until, updated_at=utcnow())
        )
        if result.rowcount:
            logger.info("Subscription for %s set to %s", identity_id, valid_until or "none")
        return bool(result.rowcount)
