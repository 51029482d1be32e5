# =======================================================================================
# qr_access/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class AccessControlError(Exception):
    """Base exception for the QR access control system."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str = "Internal error"):
        self.message = message
        super().__init__(message)

class StorageUnavailableError(AccessControlError):
    """Raised when the backing store cannot be reached. Never retried here."""
    status_code = 503
    code = "STORAGE_UNAVAILABLE"

class MalformedInputError(AccessControlError):
    """Raised when input falls outside its enumerated or valid domain."""
    status_code = 422
    code = "MALFORMED_INPUT"

class UnauthenticatedError(AccessControlError):
    """Raised when a request carries no verified identity."""
    status_code = 401
    code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message)

class CredentialConflictError(AccessControlError):
    """Raised when a fresh credential could not be stored after every retry."""
    status_code = 409
    code = "CREDENTIAL_CONFLICT"
