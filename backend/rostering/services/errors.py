from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class RosterError(APIException):
    """Base class of the errors the rostering API reports as ``{"error": ...}``."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"
    default_code = "error"


# Not a subclass of NotAuthenticated: DRF rewrites that one to 403 when no
# authenticator is configured.
class AuthenticationMissing(RosterError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"
    default_code = "not_authenticated"


class AuthorizationDenied(RosterError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"
    default_code = "forbidden"


class ValidationFailed(RosterError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request"
    default_code = "invalid"


class ConflictDetected(RosterError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"
    default_code = "conflict"


class StateLocked(RosterError):
    status_code = status.HTTP_423_LOCKED
    default_detail = "Locked"
    default_code = "locked"


class NotFoundError(RosterError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"
    default_code = "not_found"


class UpstreamFailure(RosterError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Database error"
    default_code = "upstream"
