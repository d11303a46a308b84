"""Exception hierarchy for neo-rbac."""

from .base import NeoRbacError, create_error_response
from .domain import (
    ValidationErrorKind,
    NotFoundKind,
    ConflictKind,
    OperationKind,
    ValidationError,
    NotFoundError,
    ConflictError,
    OperationError,
)
from .auth import AuthErrorKind, AuthenticationError
from .directory import ResultCode, DirectoryError
from .http_mapping import HTTP_STATUS_MAP, get_http_status_code

__all__ = [
    "NeoRbacError",
    "create_error_response",
    "ValidationErrorKind",
    "NotFoundKind",
    "ConflictKind",
    "OperationKind",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "OperationError",
    "AuthErrorKind",
    "AuthenticationError",
    "ResultCode",
    "DirectoryError",
    "HTTP_STATUS_MAP",
    "get_http_status_code",
]
