# =======================================================================================
# qr_access/api/errors.py - Exception Handlers
# =======================================================================================
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..utils.exceptions import AccessControlError


def _error_body(code: str, message: str) -> dict:
    return {"error": {"code": code, "message": message}}


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the custom exception handlers to the FastAPI app."""

    @app.exception_handler(AccessControlError)
    async def access_control_error_handler(request: Request, exc: AccessControlError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.code, exc.message),
        )
