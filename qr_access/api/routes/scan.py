# =======================================================================================
# qr_access/api/routes/scan.py - Scan Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, HTTPException

from ...database import DatabaseManager
from ...models.schemas import ScanRequest, ScanResult
from ...services.operations import AccessOperations
from ...services.policy import Principal
from ..dependencies import get_database, get_operations, get_principal

router = APIRouter()


@router.post("/scan", response_model=ScanResult, response_model_exclude_none=True)
def handle_scan(
    request: ScanRequest,
    db: DatabaseManager = Depends(get_database),
    principal: Principal = Depends(get_principal),
    ops: AccessOperations = Depends(get_operations),
):
    """
    Validate a scanned QR token. Rejections come back as 200 with
    success=false and an error code; callers branch on `success`.
    """
    with db.get_connection() as conn:
        result = ops.validate_scan(
            conn, principal, request.credential, request.scan_kind,
            actor=request.actor, location=request.location, note=request.note,
        )
    if result is None:
        raise HTTPException(status_code=404, detail="Not found")

    # the event is committed; the scanner stamp is a separate short transaction
    if result.success:
        with db.get_connection() as conn:
            ops.record_scanner_activity(conn, principal, at=result.timestamp)
    return result
