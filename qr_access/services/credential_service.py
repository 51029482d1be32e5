# =======================================================================================
# qr_access/services/credential_service.py - Credential Issuance & Rotation
# =======================================================================================
import hashlib
import logging
import secrets
import time
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy import func, insert, select, update
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError

from ..config import config
from ..models.tables import identities
from ..utils.clock import utcnow
from ..utils.exceptions import CredentialConflictError

logger = logging.getLogger(__name__)


def generate_credential(identity_id: str) -> str:
    """
    Opaque QR token: SHA-256 over the identity id, a nanosecond timestamp and
    a 128-bit random nonce, hex encoded (64 chars).
    """
    material = f"{identity_id}:{time.time_ns()}:{secrets.token_hex(16)}"
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


def fingerprint(credential: str) -> str:
    """Short, non-reversible tag for log lines. Raw tokens never reach the log."""
    return hashlib.sha256(credential.encode("utf-8")).hexdigest()[:12]


class CredentialService:
    """Issues, resolves and rotates QR credentials. Owns credential uniqueness."""

    def __init__(self, max_attempts: Optional[int] = None):
        self.max_attempts = max_attempts or config.CREDENTIAL_MAX_ATTEMPTS

    # ----------------- issue -----------------

    def issue(self, conn: Connection, identity_id: str, display_name: str,
              valid_until: Optional[date] = None) -> str:
        """
        Create-or-preserve. An existing credential is kept while the name and
        validity are overwritten (no validity clears it); otherwise a new one
        is generated.

        Each attempt runs in a savepoint: a concurrent insert of the same
        identity or a credential collision rolls the attempt back and the
        loop tries again, so only one credential ever wins.
        """
        for attempt in range(1, self.max_attempts + 1):
            candidate = generate_credential(identity_id)
            now = utcnow()

            values: Dict[str, Any] = {
                "display_name": display_name,
                "valid_until": valid_until,
                "credential": func.coalesce(identities.c.credential, candidate),
                "updated_at": now,
            }

            try:
                with conn.begin_nested():
                    result = conn.execute(
                        update(identities).where(identities.c.id == identity_id).values(**values)
                    )
                    if result.rowcount == 0:
                        conn.execute(
                            insert(identities).values(
                                id=identity_id,
                                display_name=display_name,
                                valid_until=valid_until,
                                credential=candidate,
                                created_at=now,
                                updated_at=now,
                            )
                        )
                        logger.info("Identity %s created with credential %s",
                                    identity_id, fingerprint(candidate))
            except IntegrityError:
                logger.debug("Issue attempt %d for %s conflicted, retrying", attempt, identity_id)
                continue

            credential = conn.execute(
                select(identities.c.credential).where(identities.c.id == identity_id)
            ).scalar_one()
            return credential

        raise CredentialConflictError(f"Could not issue a credential for {identity_id}")

    # ----------------- rotate -----------------

    def rotate(self, conn: Connection, identity_id: str) -> Optional[str]:
        """
        Replace the credential unconditionally. The old value stops resolving
        the moment this commits. Returns None for an unknown identity.
        """
        for attempt in range(1, self.max_attempts + 1):
            row = conn.execute(
                select(identities.c.credential).where(identities.c.id == identity_id)
            ).mappings().first()
            if not row:
                return None

            old = row["credential"]
            new = generate_credential(identity_id)

            # compare-and-set: only swap the value we just read
            guard = identities.c.credential.is_(None) if old is None else identities.c.credential == old
            try:
                with conn.begin_nested():
                    result = conn.execute(
                        update(identities)
                        .where(identities.c.id == identity_id, guard)
                        .values(credential=new, updated_at=utcnow())
                    )
            except IntegrityError:
                logger.debug("Rotate attempt %d for %s collided, retrying", attempt, identity_id)
                continue

            if result.rowcount == 1:
                logger.info("Credential rotated for %s (%s -> %s)", identity_id,
                            fingerprint(old) if old else "none", fingerprint(new))
                return new
            logger.debug("Credential for %s changed underneath rotation, retrying", identity_id)

        raise CredentialConflictError(f"Could not rotate the credential for {identity_id}")

    # ----------------- lookup -----------------

    def find_holder(self, conn: Connection, credential: str,
                    for_share: bool = False) -> Optional[Dict[str, Any]]:
        """
        Identity row holding this credential, or None.
        for_share takes a shared row lock (where the dialect has one) so a
        concurrent rotation waits for the caller's transaction.
        """
        if not credential:
            return None
        query = select(
            identities.c.id,
            identities.c.display_name,
            identities.c.valid_until,
        ).where(identities.c.credential == credential)
        if for_share:
            query = query.with_for_update(read=True)
        row = conn.execute(query).mappings().first()
        return dict(row) if row else None

    def resolve(self, conn: Connection, credential: str) -> Optional[str]:
        """Identity id for a credential; None for unknown, stale or empty tokens."""
        holder = self.find_holder(conn, credential)
        return holder["id"] if holder else None
