"""User domain entity.

This module defines the User aggregate held in the directory and its
postal address value.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ....utils.ids import generate_internal_id
from ...constraints.entities.constraint import Constraint
from .user_role import UserAdminRole, UserRole


@dataclass
class Address:
    """Postal address of a user."""

    addresses: List[str] = field(default_factory=list)
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    post_office_box: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.addresses or self.city or self.state or self.postal_code or self.post_office_box)


@dataclass
class User:
    """User domain entity.

    ``user_id`` is the login id and is immutable after creation;
    ``internal_id`` is generated exactly once by the directory layer.
    For updates every unset (None or empty) field is left untouched in the store.
    """

    # Identity
    user_id: Optional[str] = None
    internal_id: Optional[str] = None
    cn: Optional[str] = None
    sn: Optional[str] = None
    description: Optional[str] = None
    ou: Optional[str] = None

    # Write-only, never populated on read
    password: Optional[str] = field(default=None, repr=False)
    pw_policy: Optional[str] = None

    # Contact
    properties: Optional[Dict[str, str]] = None
    address: Optional[Address] = None
    phones: Optional[List[str]] = None
    mobiles: Optional[List[str]] = None
    emails: Optional[List[str]] = None

    # Access control
    constraint: Optional[Constraint] = None
    roles: Optional[List[UserRole]] = None
    admin_roles: Optional[List[UserAdminRole]] = None

    # Password state
    locked: bool = False
    reset: bool = False

    # Runtime properties (not persisted)
    sequence_id: Optional[int] = field(default=None, compare=False)
    dn: Optional[str] = field(default=None, compare=False)

    def assign_internal_id(self) -> str:
        """Generate the internal id if it has never been set."""
        if not self.internal_id:
            self.internal_id = generate_internal_id()
        return self.internal_id

    def role_names(self) -> List[str]:
        return [role.name for role in self.roles or []]
