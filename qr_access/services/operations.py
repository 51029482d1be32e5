# =======================================================================================
# qr_access/services/operations.py - Guarded Operation Surface
# =======================================================================================
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional

from sqlalchemy.engine import Connection

from ..config import config
from ..models.enums import Entity, Operation, RoleClaim, ScanKind
from ..models.schemas import (
    HistoryPage,
    IdentityList,
    IdentityProfile,
    ProvisionResponse,
    Rollup,
    RoleMembershipOut,
    ScanEventOut,
    ScanResult,
    Summary,
)
from ..utils.clock import utcnow
from ..utils.validators import InputValidator
from .access_control import ScanValidator
from .audit_log import AuditLogStore
from .credential_service import CredentialService
from .dashboard_service import DashboardService
from .policy import AccessPolicy, Principal, guarded
from .role_service import RoleService
from .user_service import UserService


def _empty_history() -> HistoryPage:
    return HistoryPage(scans=[], total_count=0, has_more=False)

def _empty_identity_list() -> IdentityList:
    return IdentityList(identities=[], total_count=0, has_more=False)


class AccessOperations:
    """
    Caller-facing operations. Every method is dispatched through the access
    policy first; a denied call returns the same empty value as a miss.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock
        self.roles = RoleService()
        self.policy = AccessPolicy(self.roles)
        self.credentials = CredentialService()
        self.audit_log = AuditLogStore()
        self.users = UserService(self.credentials, self.roles)
        self.validator = ScanValidator(self.credentials, self.audit_log)
        self.dashboard = DashboardService()

    # ---------- identities + credentials ----------

    @guarded(Entity.IDENTITY, Operation.CREATE)
    def provision_identity(self, conn: Connection, principal: Principal, identity_id: str,
                           display_name: str, role_claim: RoleClaim = RoleClaim.STANDARD,
                           valid_until: Optional[date] = None) -> Optional[ProvisionResponse]:
        if role_claim == RoleClaim.ADMIN and not self.policy.permits(
            conn, principal, Entity.ROLE_MEMBERSHIP, Operation.CREATE, identity_id
        ):
            return None
        role = self.users.on_identity_registered(conn, identity_id, display_name, role_claim, valid_until)
        return ProvisionResponse(identity_id=identity_id, role=role)

    @guarded(Entity.IDENTITY, Operation.UPDATE)
    def issue_credential(self, conn: Connection, principal: Principal, identity_id: str,
                         display_name: str, valid_until: Optional[date] = None) -> Optional[str]:
        # issuing for an unknown id creates the identity row
        if not self.users.is_registered(conn, identity_id) and not self.policy.permits(
            conn, principal, Entity.IDENTITY, Operation.CREATE, identity_id
        ):
            return None
        return self.credentials.issue(conn, identity_id, display_name, valid_until)

    @guarded(Entity.IDENTITY, Operation.UPDATE)
    def rotate_credential(self, conn: Connection, principal: Principal,
                          identity_id: str) -> Optional[str]:
        return self.credentials.rotate(conn, identity_id)

    @guarded(Entity.IDENTITY, Operation.READ)
    def get_profile(self, conn: Connection, principal: Principal,
                    identity_id: str) -> Optional[IdentityProfile]:
        return self.users.get_profile(conn, identity_id, self.clock().date())

    @guarded(Entity.SUBSCRIPTION, Operation.UPDATE)
    def update_subscription(self, conn: Connection, principal: Principal, identity_id: str,
                            valid_until: Optional[date]) -> Optional[IdentityProfile]:
        if not self.users.update_subscription(conn, identity_id, valid_until):
            return None
        return self.users.get_profile(conn, identity_id, self.clock().date())

    @guarded(Entity.IDENTITY, Operation.READ, subject=None, empty=_empty_identity_list)
    def list_identities(self, conn: Connection, principal: Principal, limit: int = 50,
                        offset: int = 0, search: Optional[str] = None) -> IdentityList:
        limit, offset = InputValidator.validate_paging(limit, offset, config.HISTORY_MAX_LIMIT)
        return self.dashboard.list_identities(conn, self.clock().date(), limit, offset, search)

    # ---------- scans ----------

    @guarded(Entity.SCAN_EVENT, Operation.CREATE, subject=None)
    def validate_scan(self, conn: Connection, principal: Principal, credential: str,
                      scan_kind: ScanKind, actor: Optional[str] = None,
                      location: Optional[str] = None, note: Optional[str] = None) -> Optional[ScanResult]:
        if not actor:
            membership = self.roles.get(conn, principal.identity_id)
            actor = membership["display_name"] if membership else (principal.display_name or principal.identity_id)

        return self.validator.validate(
            conn, credential, scan_kind,
            actor=actor,
            location=location or config.DEFAULT_SCAN_LOCATION,
            now=self.clock(),
            note=note,
        )

    @guarded(Entity.ROLE_MEMBERSHIP, Operation.UPDATE, subject=None, empty=lambda: False)
    def record_scanner_activity(self, conn: Connection, principal: Principal,
                                at: Optional[datetime] = None) -> bool:
        """
        Stamp the scanning admin's last activity. Runs in its own transaction
        after the scan commits, so the membership row lock never spans a scan.
        """
        self.roles.touch(conn, principal.identity_id, at=at or self.clock())
        return True

    @guarded(Entity.SCAN_EVENT, Operation.READ, empty=_empty_history)
    def history_for(self, conn: Connection, principal: Principal, identity_id: str,
                    limit: int = config.HISTORY_DEFAULT_LIMIT, offset: int = 0) -> HistoryPage:
        limit, offset = InputValidator.validate_paging(limit, offset, config.HISTORY_MAX_LIMIT)
        total = self.audit_log.count_for(conn, identity_id)
        events = self.audit_log.history_for(conn, identity_id, limit, offset)
        return HistoryPage(
            scans=[ScanEventOut(**event) for event in events],
            total_count=total,
            has_more=offset + limit < total,
        )

    # ---------- analytics ----------

    @guarded(Entity.SCAN_EVENT, Operation.READ, subject=None)
    def rollup(self, conn: Connection, principal: Principal, start_date: Optional[date] = None,
               end_date: Optional[date] = None) -> Optional[Rollup]:
        end_date = end_date or self.clock().date()
        start_date = start_date or end_date - timedelta(days=config.ROLLUP_DEFAULT_DAYS)
        return self.dashboard.rollup(conn, start_date, end_date)

    @guarded(Entity.IDENTITY, Operation.READ, subject=None)
    def summary(self, conn: Connection, principal: Principal) -> Optional[Summary]:
        return self.dashboard.get_summary(conn, self.clock().date())

    # ---------- role memberships ----------

    @guarded(Entity.ROLE_MEMBERSHIP, Operation.READ)
    def get_membership(self, conn: Connection, principal: Principal,
                       identity_id: str) -> Optional[RoleMembershipOut]:
        row = self.roles.get(conn, identity_id)
        return RoleMembershipOut(**row) if row else None

    @guarded(Entity.ROLE_MEMBERSHIP, Operation.READ, subject=None, empty=list)
    def list_memberships(self, conn: Connection, principal: Principal) -> List[RoleMembershipOut]:
        return [RoleMembershipOut(**row) for row in self.roles.list_members(conn)]
