"""Password policy interpreter.

Turns the password-policy control returned by the directory (or the absence
of one) into a PasswordCheckOutcome. Conditions are checked in a fixed
order and the first match wins.
"""

import logging
from typing import Optional, Tuple

from ....core.exceptions import AuthErrorKind
from ....core.protocols.directory_client import PasswordPolicyControl, PolicyCondition
from ..entities.session import PasswordCheckOutcome, PolicyWarning

logger = logging.getLogger(__name__)

# Blocking conditions after the reset check, in match order
FAILURE_TABLE: Tuple[Tuple[PolicyCondition, AuthErrorKind, str], ...] = (
    (PolicyCondition.ACCOUNT_LOCKED, AuthErrorKind.ACCOUNT_LOCKED, "account is locked"),
    (PolicyCondition.PASSWORD_EXPIRED, AuthErrorKind.PASSWORD_EXPIRED, "password has expired"),
    (PolicyCondition.MODIFICATION_NOT_ALLOWED, AuthErrorKind.PASSWORD_CHANGE_NOT_ALLOWED,
     "password modification is not allowed"),
    (PolicyCondition.MUST_SUPPLY_OLD_PASSWORD, AuthErrorKind.OLD_PASSWORD_REQUIRED,
     "old password must be supplied"),
    (PolicyCondition.INSUFFICIENT_QUALITY, AuthErrorKind.PASSWORD_TOO_WEAK, "password quality is insufficient"),
    (PolicyCondition.TOO_SHORT, AuthErrorKind.PASSWORD_TOO_SHORT, "password is too short"),
    (PolicyCondition.TOO_YOUNG, AuthErrorKind.PASSWORD_TOO_YOUNG, "password was changed too recently"),
    (PolicyCondition.HISTORY_VIOLATION, AuthErrorKind.PASSWORD_REUSED, "password is in history"),
)


class PasswordPolicyInterpreter:
    """Decision table over password-policy conditions.

    ``enabled`` False short-circuits every check to success. ``is_realm``
    lets a forced-reset account log in with a warning so the caller can
    prompt for a new password.
    """

    def __init__(self, enabled: bool = True, is_realm: bool = False):
        self.enabled = enabled
        self.is_realm = is_realm

    def check(self, control: Optional[PasswordPolicyControl], user_id: Optional[str] = None) -> PasswordCheckOutcome:
        """Interpret one policy control."""
        if not self.enabled:
            return PasswordCheckOutcome.success(
                PolicyWarning.POLICY_NOT_ENABLED, "password policy is not enabled"
            )

        if control is None:
            logger.warning(f"No password policy control returned for user {user_id}")
            return PasswordCheckOutcome.success(
                PolicyWarning.NO_CONTROLS_FOUND, "no password policy control found"
            )

        if not control.has_error:
            return self._warn(control, user_id)

        code = control.error
        if code == PolicyCondition.PASSWORD_RESET_REQUIRED:
            if self.is_realm:
                logger.debug(f"Password reset pending for {user_id}, allowed in realm mode")
                return PasswordCheckOutcome.success(PolicyWarning.RESET_PENDING, "password reset is pending")
            return self._fail(AuthErrorKind.PASSWORD_MUST_BE_RESET, "password must be reset", user_id)

        for condition, kind, message in FAILURE_TABLE:
            if code == condition:
                return self._fail(kind, message, user_id)

        return self._fail(
            AuthErrorKind.POLICY_CHECK_FAILED,
            f"password policy check failed with unknown condition [{code}]",
            user_id
        )

    @staticmethod
    def _fail(kind: AuthErrorKind, message: str, user_id: Optional[str]) -> PasswordCheckOutcome:
        logger.debug(f"Password policy rejected {user_id}: {kind.value}")
        return PasswordCheckOutcome.failure(kind, message)

    @staticmethod
    def _warn(control: PasswordPolicyControl, user_id: Optional[str]) -> PasswordCheckOutcome:
        if control.time_before_expiration:
            logger.debug(f"Password of {user_id} expires in {control.time_before_expiration}s")
            return PasswordCheckOutcome.success(
                PolicyWarning.PASSWORD_EXPIRATION_WARNING,
                f"password expires in {control.time_before_expiration} seconds",
                time_before_expiration=control.time_before_expiration,
            )
        if control.grace_logins_remaining is not None:
            logger.debug(f"Password of {user_id} has {control.grace_logins_remaining} grace logins left")
            return PasswordCheckOutcome.success(
                PolicyWarning.GRACE_LOGIN_WARNING,
                f"{control.grace_logins_remaining} grace logins remaining",
                grace_logins_remaining=control.grace_logins_remaining,
            )
        return PasswordCheckOutcome.success()
