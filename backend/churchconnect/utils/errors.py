"""Exception taxonomy translated to JSON error responses."""
from typing import Any, Dict, Optional

class APIError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None, status_code: int = None, payload: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

class ValidationError(APIError):
    """Malformed or missing input."""
    status_code = 400
    default_message = "Invalid request data"

class AuthenticationError(APIError):
    """Credentials missing, wrong, or no longer valid."""
    status_code = 401
    default_message = "Authentication required"

class AuthorizationError(APIError):
    """Caller is authenticated but not allowed to touch the resource."""
    status_code = 403
    default_message = "Insufficient permissions"

class NotFoundError(APIError):
    status_code = 404
    default_message = "Resource not found"

class ConflictError(APIError):
    status_code = 409
    default_message = "Resource already exists"

class DuplicateCheckInError(ConflictError):
    """Person already has an attendance record for this event and day."""

    default_message = "Already checked in to this event today"

    def __init__(self, message: str = None):
        super().__init__(message, payload={'isDuplicate': True})

class FeatureNotAvailableError(AuthorizationError):
    """Subscription tier does not include a feature or usage allowance."""

    default_message = "Feature not available"

    def __init__(self, message: str = None, **payload):
        payload.setdefault('upgradeRequired', True)
        super().__init__(message, payload=payload)
