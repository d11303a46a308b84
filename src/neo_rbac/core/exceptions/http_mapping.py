"""HTTP status code mapping for exceptions.

Static exception-to-status mapping plus per-kind overrides for the cases
where one exception class spans several statuses.
"""

from typing import Dict, Type

from .base import NeoRbacError
from .auth import AuthenticationError, AuthErrorKind
from .directory import DirectoryError
from .domain import ConflictError, NotFoundError, OperationError, ValidationError


HTTP_STATUS_MAP: Dict[Type[Exception], int] = {
    # 400 Bad Request
    ValidationError: 400,

    # 401 Unauthorized
    AuthenticationError: 401,

    # 404 Not Found
    NotFoundError: 404,

    # 409 Conflict
    ConflictError: 409,

    # 500 Internal Server Error
    OperationError: 500,
    DirectoryError: 500,

    # Default for NeoRbacError
    NeoRbacError: 500,
}

KIND_STATUS_OVERRIDES: Dict[object, int] = {
    AuthErrorKind.PASSWORD_CHANGE_NOT_ALLOWED: 403,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for exception.

    Walks the exception's MRO so subclasses inherit their parent's status.

    Args:
        exception: The exception instance

    Returns:
        HTTP status code
    """
    kind = getattr(exception, "kind", None)
    if kind in KIND_STATUS_OVERRIDES:
        return KIND_STATUS_OVERRIDES[kind]

    for cls in type(exception).__mro__:
        if cls in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[cls]
    return 500
