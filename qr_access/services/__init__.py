# =======================================================================================
# qr_access/services/__init__.py - Services Package
# =======================================================================================
from .access_control import ScanValidator
from .audit_log import AuditLogStore
from .credential_service import CredentialService
from .dashboard_service import DashboardService
from .operations import AccessOperations
from .policy import AccessPolicy, Principal
from .role_service import RoleService
from .subscription import subscription_status
from .user_service import UserService

__all__ = [
    "ScanValidator", "AuditLogStore", "CredentialService", "DashboardService",
    "AccessOperations", "AccessPolicy", "Principal", "RoleService",
    "subscription_status", "UserService",
]
