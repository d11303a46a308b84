"""User domain entities."""

from .user import User, Address
from .user_role import UserRole, UserAdminRole
from .session import Session, PasswordCheckOutcome, PolicyWarning

__all__ = [
    "User",
    "Address",
    "UserRole",
    "UserAdminRole",
    "Session",
    "PasswordCheckOutcome",
    "PolicyWarning",
]
