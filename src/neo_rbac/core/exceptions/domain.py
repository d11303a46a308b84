"""Domain-specific exceptions for neo-rbac.

Each exception carries a ``kind`` drawn from a fixed vocabulary so callers
can branch on the precise failure without parsing messages.
"""

from enum import Enum
from typing import Any, Dict, Optional

from .base import NeoRbacError


class ValidationErrorKind(str, Enum):
    """Syntactic failures detected before any directory I/O."""

    EMPTY = "Empty"
    TOO_LONG = "TooLong"
    WRONG_LENGTH = "WrongLength"
    BAD_FORMAT = "BadFormat"
    UNSAFE_CHARS = "UnsafeChars"
    OUT_OF_RANGE = "OutOfRange"
    MALFORMED_CONSTRAINT = "MalformedConstraint"


class NotFoundKind(str, Enum):
    USER_NOT_FOUND = "UserNotFound"
    ASSIGNMENT_NOT_FOUND = "AssignmentNotFound"


class ConflictKind(str, Enum):
    ASSIGNMENT_EXISTS = "AssignmentExists"


class OperationKind(str, Enum):
    """Unexpected backing-store failures, by operation."""

    CREATE_FAILED = "CreateFailed"
    UPDATE_FAILED = "UpdateFailed"
    DELETE_FAILED = "DeleteFailed"
    READ_FAILED = "ReadFailed"
    SEARCH_FAILED = "SearchFailed"
    ASSIGN_FAILED = "AssignFailed"
    DEASSIGN_FAILED = "DeassignFailed"
    LOCK_FAILED = "LockFailed"
    UNLOCK_FAILED = "UnlockFailed"
    RESET_FAILED = "ResetFailed"
    POLICY_DELETE_FAILED = "PolicyDeleteFailed"
    PASSWORD_CHANGE_FAILED = "PasswordChangeFailed"


class ValidationError(NeoRbacError):
    """Raised when a field value violates its syntax or length rules."""

    def __init__(
        self,
        kind: ValidationErrorKind,
        detail: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            detail,
            error_code=kind.value,
            details={"field": field, **(details or {})}
        )
        self.kind = kind
        self.detail = detail
        self.field = field


class NotFoundError(NeoRbacError):
    """Raised when a read finds nothing or a deassign target does not exist."""

    def __init__(self, kind: NotFoundKind, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code=kind.value, details=details)
        self.kind = kind


class ConflictError(NeoRbacError):
    """Raised on duplicate-grant attempts."""

    def __init__(self, kind: ConflictKind, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code=kind.value, details=details)
        self.kind = kind


class OperationError(NeoRbacError):
    """Wraps an unexpected backing-store failure.

    The low-level directory result code is preserved in ``result_code`` for
    diagnostics; the operation name and identifying key are kept in ``details``.
    """

    def __init__(
        self,
        kind: OperationKind,
        message: str,
        result_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message,
            error_code=kind.value,
            details={"result_code": result_code, **(details or {})}
        )
        self.kind = kind
        self.result_code = result_code
