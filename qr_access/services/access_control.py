# =======================================================================================
# qr_access/services/access_control.py - Core Scan Decision
# =======================================================================================
import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.engine import Connection

from ..models.enums import ScanError, ScanKind, SubscriptionStatus
from ..models.schemas import ScanResult
from ..utils.clock import utcnow
from ..utils.validators import InputValidator
from .audit_log import AuditLogStore
from .credential_service import CredentialService, fingerprint
from .subscription import subscription_status

logger = logging.getLogger(__name__)


class ScanValidator:
    """
    Decides a single scan: Start -> LookupFailed | SubscriptionRejected | Accepted.

    Only an accepted scan writes anything. There is no entry/exit alternation
    and no duplicate-scan window; every accepted scan is recorded as asked.
    """

    def __init__(self, credentials: Optional[CredentialService] = None,
                 audit_log: Optional[AuditLogStore] = None):
        self.credentials = credentials or CredentialService()
        self.audit_log = audit_log or AuditLogStore()

    @staticmethod
    def rejection_for(status: SubscriptionStatus) -> Optional[ScanError]:
        if status == SubscriptionStatus.INACTIVE:
            return ScanError.SUBSCRIPTION_MISSING
        if status == SubscriptionStatus.EXPIRED:
            return ScanError.SUBSCRIPTION_EXPIRED
        return None

    def validate(self, conn: Connection, credential: str, scan_kind: Union[str, ScanKind],
                 actor: str, location: str, now: Optional[datetime] = None,
                 note: Optional[str] = None) -> ScanResult:
        """
        Run the scan pipeline and return a structured result.
        Rejections are results, not exceptions; store failures propagate.
        """
        kind = InputValidator.parse_scan_kind(scan_kind)
        now = now or utcnow()

        # 1) Resolve the token; the shared lock keeps a rotation from committing mid-scan
        holder = self.credentials.find_holder(conn, credential, for_share=True)
        if not holder:
            logger.warning("Scan rejected at %s by %s: unknown credential %s",
                           location, actor, fingerprint(credential) if credential else "<empty>")
            return ScanResult(success=False, error=ScanError.INVALID_CREDENTIAL)

        identity_id = holder["id"]
        name = holder["display_name"]

        # 2) Subscription window at validation time
        error = self.rejection_for(subscription_status(holder["valid_until"], now))
        if error is not None:
            logger.warning("Scan rejected at %s by %s: %s for %s",
                           location, actor, error.value, identity_id)
            return ScanResult(success=False, error=error, identity_id=identity_id, name=name)

        # 3) Accepted - record the event
        scan_id = self.audit_log.append(
            conn, identity_id, kind, actor=actor, location=location, occurred_at=now, note=note
        )
        logger.info("Scan %s accepted: %s %s at %s", scan_id, identity_id, kind.value, location)

        return ScanResult(
            success=True,
            scan_id=scan_id,
            identity_id=identity_id,
            name=name,
            scan_kind=kind,
            location=location,
            actor=actor,
            timestamp=now,
        )
