"""Protocols for the collaborators neo-rbac consumes."""

from .config_provider import ConfigProvider
from .role_hierarchy import RoleHierarchy
from .directory_client import (
    PolicyCondition,
    PasswordPolicyControl,
    ModOp,
    Modification,
    Record,
    BindResult,
    DirectoryClient,
    DirectoryPool,
)

__all__ = [
    "ConfigProvider",
    "RoleHierarchy",
    "PolicyCondition",
    "PasswordPolicyControl",
    "ModOp",
    "Modification",
    "Record",
    "BindResult",
    "DirectoryClient",
    "DirectoryPool",
]
