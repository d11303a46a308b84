"""Request and response models for the user directory API."""

from .requests import (
    ConstraintModel,
    AddressModel,
    RoleAssignRequest,
    AdminRoleAssignRequest,
    UserCreateRequest,
    UserUpdateRequest,
    PropertiesRequest,
    PasswordResetRequest,
    PasswordChangeRequest,
    AuthenticateRequest,
)
from .responses import (
    ConstraintResponse,
    UserRoleResponse,
    UserAdminRoleResponse,
    UserResponse,
    UserListResponse,
    UserIdsResponse,
    RoleNamesResponse,
    AuthenticateResponse,
)

__all__ = [
    "ConstraintModel",
    "AddressModel",
    "RoleAssignRequest",
    "AdminRoleAssignRequest",
    "UserCreateRequest",
    "UserUpdateRequest",
    "PropertiesRequest",
    "PasswordResetRequest",
    "PasswordChangeRequest",
    "AuthenticateRequest",
    "ConstraintResponse",
    "UserRoleResponse",
    "UserAdminRoleResponse",
    "UserResponse",
    "UserListResponse",
    "UserIdsResponse",
    "RoleNamesResponse",
    "AuthenticateResponse",
]
