# =======================================================================================
# qr_access/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *
from .clock import utcnow

__all__ = [
    "AccessControlError", "StorageUnavailableError", "MalformedInputError",
    "UnauthenticatedError", "CredentialConflictError", "InputValidator", "utcnow",
]
