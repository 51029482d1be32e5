# =======================================================================================
# qr_access/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, Field
from .enums import RoleClaim, ScanError, ScanKind, SubscriptionStatus

# ========== Identities + credentials ==========

class ProvisionRequest(BaseModel):
    """Post-registration provisioning request."""
    identity_id: str = Field(..., min_length=1, max_length=64, description="Verified identity id")
    display_name: str = Field(..., min_length=1, max_length=255)
    role_claim: RoleClaim = Field(RoleClaim.STANDARD, description="Role claimed at registration")
    valid_until: Optional[date] = Field(None, description="Last day of the subscription")

class ProvisionResponse(BaseModel):
    identity_id: str
    role: RoleClaim

class IssueCredentialRequest(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=255)
    valid_until: Optional[date] = None

class CredentialResponse(BaseModel):
    identity_id: str
    credential: str

class SubscriptionUpdateRequest(BaseModel):
    valid_until: Optional[date] = Field(None, description="null removes the subscription")

class IdentityProfile(BaseModel):
    id: str
    display_name: str
    valid_until: Optional[date] = None
    credential: Optional[str] = None
    subscription_status: SubscriptionStatus
    created_at: datetime

class IdentityStats(BaseModel):
    id: str
    display_name: str
    valid_until: Optional[date] = None
    subscription_status: SubscriptionStatus
    total_scans: int = 0
    entry_scans: int = 0
    exit_scans: int = 0
    created_at: datetime

class IdentityList(BaseModel):
    identities: List[IdentityStats]
    total_count: int
    has_more: bool

# ========== Scans ==========

class ScanRequest(BaseModel):
    """QR scan request model."""
    credential: str = Field(..., max_length=128, description="Scanned QR token")
    scan_kind: ScanKind = Field(..., description="entry or exit")
    location: Optional[str] = Field(None, max_length=255, description="Where the scan happened")
    actor: Optional[str] = Field(None, max_length=255, description="Who performed the scan")
    note: Optional[str] = Field(None, max_length=1000)

class ScanResult(BaseModel):
    """Outcome of a single scan decision."""
    success: bool
    error: Optional[ScanError] = None
    scan_id: Optional[str] = None
    identity_id: Optional[str] = None
    name: Optional[str] = None
    scan_kind: Optional[ScanKind] = None
    location: Optional[str] = None
    actor: Optional[str] = None
    timestamp: Optional[datetime] = None

class ScanEventOut(BaseModel):
    id: str
    identity_id: Optional[str] = None
    scan_kind: ScanKind
    actor: str
    location: str
    note: Optional[str] = None
    occurred_at: datetime

class HistoryPage(BaseModel):
    scans: List[ScanEventOut]
    total_count: int
    has_more: bool

# ========== Analytics ==========

class DailyStat(BaseModel):
    day: date
    total_scans: int
    unique_identities: int
    entry_scans: int
    exit_scans: int

class Rollup(BaseModel):
    start_date: date
    end_date: date
    total_scans: int
    unique_identities: int
    entry_scans: int
    exit_scans: int
    daily: List[DailyStat] = []

class Summary(BaseModel):
    total_identities: int
    active: int
    expired: int
    inactive: int

# ========== Role memberships ==========

class RoleMembershipOut(BaseModel):
    identity_id: str
    display_name: str
    last_activity_at: Optional[datetime] = None
    created_at: datetime

# ========== Health ==========

class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    message: Optional[str] = None
