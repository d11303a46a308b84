"""Authentication session and password check outcome."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from ....core.exceptions import AuthErrorKind, AuthenticationError
from .user import User
from .user_role import UserRole


class PolicyWarning(str, Enum):
    """Non-blocking conditions reported with a successful password check."""

    NONE = "None"
    NO_CONTROLS_FOUND = "NoControlsFound"
    POLICY_NOT_ENABLED = "PolicyNotEnabled"
    RESET_PENDING = "ResetPending"
    PASSWORD_EXPIRATION_WARNING = "PasswordExpirationWarning"
    GRACE_LOGIN_WARNING = "GraceLoginWarning"


@dataclass(frozen=True)
class PasswordCheckOutcome:
    """Result of interpreting one password-policy signal.

    ``error`` is None when authentication may proceed; a warning may be set
    either way.
    """

    authenticated: bool
    error: Optional[AuthErrorKind] = None
    warning: PolicyWarning = PolicyWarning.NONE
    message: str = ""
    time_before_expiration: Optional[int] = None
    grace_logins_remaining: Optional[int] = None

    @classmethod
    def success(cls, warning: PolicyWarning = PolicyWarning.NONE, message: str = "", **extra) -> "PasswordCheckOutcome":
        return cls(authenticated=True, warning=warning, message=message, **extra)

    @classmethod
    def failure(cls, error: AuthErrorKind, message: str) -> "PasswordCheckOutcome":
        return cls(authenticated=False, error=error, message=message)

    @property
    def error_id(self) -> int:
        """Numeric error classification, 0 when there is none."""
        if self.error is None:
            return 0
        return list(AuthErrorKind).index(self.error) + 1

    @property
    def warning_id(self) -> int:
        """Numeric warning classification, 0 when there is none."""
        return list(PolicyWarning).index(self.warning)

    def to_error(self, user_id: Optional[str] = None) -> AuthenticationError:
        """Exception form of a failed outcome."""
        if self.error is None:
            raise ValueError("a successful outcome has no error")
        return AuthenticationError(self.error, self.message, user_id=user_id)


@dataclass
class Session:
    """Authenticated session for one user.

    Produced by every authentication attempt; ``authenticated`` is False when
    the attempt was rejected.
    """

    user_id: str
    internal_id: Optional[str] = None
    authenticated: bool = False
    user: Optional[User] = None
    roles: List[UserRole] = field(default_factory=list)
    error: Optional[AuthErrorKind] = None
    warning: PolicyWarning = PolicyWarning.NONE
    message: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def apply(self, outcome: PasswordCheckOutcome) -> None:
        """Record a password check outcome on the session."""
        self.authenticated = outcome.authenticated
        self.error = outcome.error
        self.warning = outcome.warning
        self.message = outcome.message
