"""Neo-RBAC - user and role authorization core for directory-backed RBAC/ARBAC.

This library manages user accounts, their temporal activation constraints
and role grants in a directory, and interprets directory password-policy
signals into precise authentication outcomes.

Call ``setup_logging()`` once at application startup to apply the
environment-driven logging configuration.
"""

from .__version__ import __version__

from .config import (
    DirectoryConfig,
    DirectorySettings,
    SettingsConfigProvider,
    setup_logging,
)

from .core.exceptions import (
    NeoRbacError,
    ValidationError,
    ValidationErrorKind,
    NotFoundError,
    NotFoundKind,
    ConflictError,
    ConflictKind,
    AuthenticationError,
    AuthErrorKind,
    OperationError,
    OperationKind,
    DirectoryError,
    ResultCode,
    get_http_status_code,
    create_error_response,
)

from .core.protocols import (
    ConfigProvider,
    RoleHierarchy,
    DirectoryClient,
    DirectoryPool,
    PasswordPolicyControl,
    PolicyCondition,
)

from .features.constraints import Constraint, ConstraintCodec, FieldValidator

from .features.users import (
    User,
    Address,
    UserRole,
    UserAdminRole,
    Session,
    PasswordCheckOutcome,
    PolicyWarning,
    PasswordPolicyInterpreter,
    UserDirectoryGateway,
)

__all__ = [
    "__version__",
    "DirectoryConfig",
    "DirectorySettings",
    "SettingsConfigProvider",
    "setup_logging",
    "NeoRbacError",
    "ValidationError",
    "ValidationErrorKind",
    "NotFoundError",
    "NotFoundKind",
    "ConflictError",
    "ConflictKind",
    "AuthenticationError",
    "AuthErrorKind",
    "OperationError",
    "OperationKind",
    "DirectoryError",
    "ResultCode",
    "get_http_status_code",
    "create_error_response",
    "ConfigProvider",
    "RoleHierarchy",
    "DirectoryClient",
    "DirectoryPool",
    "PasswordPolicyControl",
    "PolicyCondition",
    "Constraint",
    "ConstraintCodec",
    "FieldValidator",
    "User",
    "Address",
    "UserRole",
    "UserAdminRole",
    "Session",
    "PasswordCheckOutcome",
    "PolicyWarning",
    "PasswordPolicyInterpreter",
    "UserDirectoryGateway",
]
