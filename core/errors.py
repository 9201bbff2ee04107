# core/errors.py

"""
Access error taxonomy.

Every failure the authorization engine (or the access administration
services) can report is a subclass of AccessError. The engine raises these
at the point of failure and never converts one kind into another; the
FastAPI exception handler in main.py is the only place they are mapped to
HTTP responses.
"""

from typing import Iterable, Optional

from core.logging_config import logger


class AccessError(Exception):
    """Base class for all access errors."""

    status_code: int = 500
    code: str = "ACCESS_ERROR"
    default_message: str = "Access error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        # Pipeline stage the request was in when this was raised, if any.
        self.stage: Optional[str] = None
        super().__init__(self.message)


class Unauthenticated(AccessError):
    status_code = 401
    code = "UNAUTHENTICATED"
    default_message = "Unauthorized"


class OrgScopeRequired(AccessError):
    status_code = 403
    code = "ORG_SCOPE_REQUIRED"
    default_message = "Org scope required"


class NotFound(AccessError):
    # Also used for resources owned by another org.
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Resource not found"


class Forbidden(AccessError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Forbidden"


class Conflict(AccessError):
    status_code = 409
    code = "CONFLICT"
    default_message = "Already exists"


class InvalidRequest(AccessError):
    status_code = 400
    code = "BAD_REQUEST"
    default_message = "Bad request"


class InvalidOrgScope(AccessError):
    status_code = 400
    code = "INVALID_ORG_SCOPE"
    default_message = "Invalid org scope"


class _UnknownKeys(AccessError):
    status_code = 400
    label = "keys"

    def __init__(self, keys: Iterable[str]):
        self.keys = sorted(set(keys))
        super().__init__(f"Unknown {self.label}: {', '.join(self.keys)}")


class UnknownPermissionKey(_UnknownKeys):
    code = "UNKNOWN_PERMISSION_KEY"
    label = "permission keys"


class UnknownRoleKey(_UnknownKeys):
    code = "UNKNOWN_ROLE_KEY"
    label = "role keys"


class StorageError(AccessError):
    status_code = 503
    code = "STORAGE_UNAVAILABLE"
    default_message = "Storage lookup failed"


def extract_supabase_error(error: Exception) -> str:
    """
    Safely extract readable details from Supabase Python client errors.
    Handles:
      • PostgREST errors
      • GoTrue (Auth) errors
      • Generic Python exceptions
    """
    message = getattr(error, "message", None)
    if message:
        return str(message)

    if error.args:
        return str(error.args[0])

    return str(error) or error.__class__.__name__


def storage_error(error: Exception, operation: str) -> StorageError:
    """
    Wrap a failed Supabase call. Returns the exception so the caller
    can `raise ... from error`.
    """
    detail = extract_supabase_error(error)
    logger.error(f"{operation}: {detail}", exc_info=error)
    return StorageError(f"{operation} failed")
