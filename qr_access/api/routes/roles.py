# =======================================================================================
# qr_access/api/routes/roles.py - Role Membership Endpoints
# =======================================================================================
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ...database import DatabaseManager
from ...models.schemas import RoleMembershipOut
from ...services.operations import AccessOperations
from ...services.policy import Principal
from ..dependencies import get_database, get_operations, get_principal

router = APIRouter()


@router.get("/roles", response_model=List[RoleMembershipOut])
def list_memberships(
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        return ops.list_memberships(conn, principal)


@router.get("/roles/{identity_id}", response_model=RoleMembershipOut)
def get_membership(
    identity_id: str,
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        membership = ops.get_membership(conn, principal, identity_id)
    if membership is None:
        raise HTTPException(status_code=404, detail="Not found")
    return membership
