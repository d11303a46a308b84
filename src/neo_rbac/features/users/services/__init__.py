"""User directory services."""

from .password_policy import PasswordPolicyInterpreter
from .user_directory_gateway import UserDirectoryGateway

__all__ = [
    "PasswordPolicyInterpreter",
    "UserDirectoryGateway",
]
