# =======================================================================================
# qr_access/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "ProvisionRequest", "ProvisionResponse", "IssueCredentialRequest", "CredentialResponse",
    "SubscriptionUpdateRequest", "IdentityProfile", "IdentityStats", "IdentityList",
    "ScanRequest", "ScanResult", "ScanEventOut", "HistoryPage", "DailyStat", "Rollup",
    "Summary", "RoleMembershipOut", "HealthResponse",
    "ScanKind", "SubscriptionStatus", "ScanError", "RoleClaim", "Entity", "Operation",
]
