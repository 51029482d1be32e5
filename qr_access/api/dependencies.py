# =======================================================================================
# qr_access/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import Request

from ..config import config
from ..database import DatabaseManager, db_manager
from ..services.operations import AccessOperations
from ..services.policy import Principal
from ..utils.exceptions import UnauthenticatedError

operations = AccessOperations()


def get_database() -> DatabaseManager:
    """
    Endpoints open their own transaction with ``db.get_connection()`` so the
    commit (and any storage failure it raises) happens before the response
    is built.
    """
    return db_manager


def get_principal(request: Request) -> Principal:
    """Identity verified by the upstream authenticator and forwarded in headers."""
    identity_id = (request.headers.get(config.IDENTITY_HEADER) or "").strip()
    if not identity_id:
        raise UnauthenticatedError()
    name = (request.headers.get(config.IDENTITY_NAME_HEADER) or "").strip() or None
    return Principal(identity_id=identity_id, display_name=name)


def get_operations() -> AccessOperations:
    return operations
