# =======================================================================================
# qr_access/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
ScanKindValue = Literal["entry", "exit"]
RoleClaimValue = Literal["standard", "admin"]


class ScanKind(str, Enum):
    """Direction recorded on a scan event."""
    ENTRY = "entry"
    EXIT = "exit"


class SubscriptionStatus(str, Enum):
    INACTIVE = "inactive"
    EXPIRED = "expired"
    ACTIVE = "active"


class ScanError(str, Enum):
    """Reasons a scan is rejected. Returned in results, never raised."""
    INVALID_CREDENTIAL = "InvalidCredential"
    SUBSCRIPTION_MISSING = "SubscriptionMissing"
    SUBSCRIPTION_EXPIRED = "SubscriptionExpired"


class RoleClaim(str, Enum):
    STANDARD = "standard"
    ADMIN = "admin"


class Entity(str, Enum):
    """Entities guarded by the authorization policy."""
    IDENTITY = "identity"
    SUBSCRIPTION = "subscription"
    SCAN_EVENT = "scan_event"
    ROLE_MEMBERSHIP = "role_membership"


class Operation(str, Enum):
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
