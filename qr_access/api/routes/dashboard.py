# =======================================================================================
# qr_access/api/routes/dashboard.py - Analytics Endpoints
# =======================================================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ...database import DatabaseManager
from ...models.schemas import Rollup, Summary
from ...services.operations import AccessOperations
from ...services.policy import Principal
from ..dependencies import get_database, get_operations, get_principal

router = APIRouter()


@router.get("/analytics/rollup", response_model=Rollup)
def get_rollup(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        rollup = ops.rollup(conn, principal, start_date, end_date)
    if rollup is None:
        raise HTTPException(status_code=404, detail="Not found")
    return rollup


@router.get("/analytics/summary", response_model=Summary)
def get_summary(
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    with db.get_connection() as conn:
        summary = ops.summary(conn, principal)
    if summary is None:
        raise HTTPException(status_code=404, detail="Not found")
    return summary
