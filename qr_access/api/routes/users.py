# =======================================================================================
# qr_access/api/routes/users.py - Identity & Credential Endpoints
# =======================================================================================
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...config import config
from ...database import DatabaseManager
from ...models.schemas import (
    CredentialResponse,
    HistoryPage,
    IdentityList,
    IdentityProfile,
    IssueCredentialRequest,
    ProvisionRequest,
    ProvisionResponse,
    SubscriptionUpdateRequest,
)
from ...services.operations import AccessOperations
from ...services.policy import Principal
from ..dependencies import get_database, get_operations, get_principal

router = APIRouter()


def _not_found():
    # denied and missing look the same to the caller
    return HTTPException(status_code=404, detail="Not found")


@router.post("/identities", response_model=ProvisionResponse, status_code=201)
def provision_identity(
    request: ProvisionRequest,
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    """Post-registration hook for the signup flow. Callers provision themselves only."""
    with db.get_connection() as conn:
        result = ops.provision_identity(
            conn, principal, request.identity_id, request.display_name,
            request.role_claim, request.valid_until,
        )
    if result is None:
        raise _not_found()
    return result


@router.get("/identities", response_model=IdentityList)
def list_identities(
    limit: int = Query(50, ge=1),
    offset: int = Query(0, ge=0),
    search: Optional[str] = Query(None, description="Name or identity id fragment"),
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        return ops.list_identities(conn, principal, limit=limit, offset=offset, search=search)


@router.get("/identities/{identity_id}", response_model=IdentityProfile)
def get_profile(
    identity_id: str,
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        profile = ops.get_profile(conn, principal, identity_id)
    if profile is None:
        raise _not_found()
    return profile


@router.put("/identities/{identity_id}/subscription", response_model=IdentityProfile)
def update_subscription(
    identity_id: str,
    request: SubscriptionUpdateRequest,
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        profile = ops.update_subscription(conn, principal, identity_id, request.valid_until)
    if profile is None:
        raise _not_found()
    return profile


@router.post("/identities/{identity_id}/credential", response_model=CredentialResponse)
def issue_credential(
    identity_id: str,
    request: IssueCredentialRequest,
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    """Create-or-preserve: an existing credential is returned unchanged."""
    with db.get_connection() as conn:
        credential = ops.issue_credential(
            conn, principal, identity_id, request.display_name, request.valid_until
        )
    if credential is None:
        raise _not_found()
    return CredentialResponse(identity_id=identity_id, credential=credential)


@router.post("/identities/{identity_id}/credential/rotate", response_model=CredentialResponse)
def rotate_credential(
    identity_id: str,
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        credential = ops.rotate_credential(conn, principal, identity_id)
    if credential is None:
        raise _not_found()
    return CredentialResponse(identity_id=identity_id, credential=credential)


@router.get("/identities/{identity_id}/scans", response_model=HistoryPage)
def scan_history(
    identity_id: str,
    limit: int = Query(config.HISTORY_DEFAULT_LIMIT, ge=1),
    offset: int = Query(0, ge=0),
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        return ops.history_for(conn, principal, identity_id, limit=limit, offset=offset)
