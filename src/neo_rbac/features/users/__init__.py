"""Users feature: user aggregates, role grants, password policy and the directory gateway."""

from .entities import (
    User,
    Address,
    UserRole,
    UserAdminRole,
    Session,
    PasswordCheckOutcome,
    PolicyWarning,
)
from .repositories import RoleAssignmentEngine, UserRecordAssembler
from .services import PasswordPolicyInterpreter, UserDirectoryGateway

__all__ = [
    "User",
    "Address",
    "UserRole",
    "UserAdminRole",
    "Session",
    "PasswordCheckOutcome",
    "PolicyWarning",
    "RoleAssignmentEngine",
    "UserRecordAssembler",
    "PasswordPolicyInterpreter",
    "UserDirectoryGateway",
]
