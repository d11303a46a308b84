"""Authentication-specific exceptions for neo-rbac."""

from enum import Enum
from typing import Any, Dict, Optional

from .base import NeoRbacError


class AuthErrorKind(str, Enum):
    """Precise reasons an authentication or password operation was rejected."""

    INVALID_CREDENTIALS = "InvalidCredentials"
    ACCOUNT_LOCKED = "AccountLocked"
    PASSWORD_EXPIRED = "PasswordExpired"
    PASSWORD_MUST_BE_RESET = "PasswordMustBeReset"
    PASSWORD_CHANGE_NOT_ALLOWED = "PasswordChangeNotAllowed"
    OLD_PASSWORD_REQUIRED = "OldPasswordRequired"
    PASSWORD_TOO_WEAK = "PasswordTooWeak"
    PASSWORD_TOO_SHORT = "PasswordTooShort"
    PASSWORD_TOO_YOUNG = "PasswordTooYoung"
    PASSWORD_REUSED = "PasswordReused"
    POLICY_CHECK_FAILED = "PolicyCheckFailed"


class AuthenticationError(NeoRbacError):
    """Raised when credentials or password state reject a login or password change."""

    def __init__(
        self,
        kind: AuthErrorKind,
        message: str,
        user_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message,
            error_code=kind.value,
            details={"user_id": user_id, **(details or {})}
        )
        self.kind = kind
        self.user_id = user_id

    @property
    def is_credential_issue(self) -> bool:
        """Check if the failure is plain bad credentials rather than password state."""
        return self.kind == AuthErrorKind.INVALID_CREDENTIALS
