"""Request models for the user directory API.

Structural checks only; field grammar is enforced by the gateway's
validator so the API and library report the same error kinds.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ...features.constraints.entities.constraint import Constraint
from ...features.users.entities.user import Address, User
from ...features.users.entities.user_role import UserAdminRole, UserRole


class ConstraintModel(BaseModel):
    """Temporal activation window."""

    timeout: Optional[int] = Field(default=None, description="Inactivity timeout in seconds, 0 disables")
    begin_time: Optional[str] = Field(default=None, description="HHmm")
    end_time: Optional[str] = Field(default=None, description="HHmm")
    begin_date: Optional[str] = Field(default=None, description="yyyyMMdd or 'none'")
    end_date: Optional[str] = Field(default=None, description="yyyyMMdd or 'none'")
    begin_lock_date: Optional[str] = Field(default=None, description="yyyyMMdd or 'none'")
    end_lock_date: Optional[str] = Field(default=None, description="yyyyMMdd or 'none'")
    day_mask: Optional[str] = Field(default=None, description="Weekday digits 1-7 or 'all'")

    def to_entity(self, name: Optional[str] = None) -> Constraint:
        return Constraint(name=name, **self.model_dump())


class AddressModel(BaseModel):
    addresses: List[str] = Field(default_factory=list)
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    post_office_box: Optional[str] = None

    def to_entity(self) -> Address:
        return Address(**self.model_dump())


class RoleAssignRequest(BaseModel):
    """Request model for granting an RBAC role."""

    name: str = Field(..., min_length=1, description="Role name")
    constraint: ConstraintModel = Field(default_factory=ConstraintModel)

    def to_entity(self, user_id: str) -> UserRole:
        return UserRole(user_id=user_id, name=self.name, constraint=self.constraint.to_entity(self.name))


class AdminRoleAssignRequest(RoleAssignRequest):
    """Request model for granting an administrative role."""

    perm_ous: List[str] = Field(default_factory=list, description="Permission organizational units")
    user_ous: List[str] = Field(default_factory=list, description="User organizational units")
    begin_range: Optional[str] = None
    end_range: Optional[str] = None
    begin_inclusive: bool = True
    end_inclusive: bool = True

    def to_entity(self, user_id: str) -> UserAdminRole:
        return UserAdminRole(
            user_id=user_id,
            name=self.name,
            constraint=self.constraint.to_entity(self.name),
            perm_ous=list(self.perm_ous),
            user_ous=list(self.user_ous),
            begin_range=self.begin_range,
            end_range=self.end_range,
            begin_inclusive=self.begin_inclusive,
            end_inclusive=self.end_inclusive,
        )


class UserUpdateRequest(BaseModel):
    """Request model for partial user updates; omitted fields are left unchanged."""

    cn: Optional[str] = None
    sn: Optional[str] = None
    description: Optional[str] = None
    ou: Optional[str] = None
    password: Optional[str] = None
    pw_policy: Optional[str] = None
    properties: Optional[Dict[str, str]] = None
    address: Optional[AddressModel] = None
    phones: Optional[List[str]] = None
    mobiles: Optional[List[str]] = None
    emails: Optional[List[str]] = None
    constraint: Optional[ConstraintModel] = None
    roles: Optional[List[RoleAssignRequest]] = None
    admin_roles: Optional[List[AdminRoleAssignRequest]] = None

    def to_entity(self, user_id: str) -> User:
        return User(
            user_id=user_id,
            cn=self.cn,
            sn=self.sn,
            description=self.description,
            ou=self.ou,
            password=self.password,
            pw_policy=self.pw_policy,
            properties=self.properties,
            address=self.address.to_entity() if self.address else None,
            phones=self.phones,
            mobiles=self.mobiles,
            emails=self.emails,
            constraint=self.constraint.to_entity(user_id) if self.constraint else None,
            roles=[role.to_entity(user_id) for role in self.roles] if self.roles is not None else None,
            admin_roles=(
                [role.to_entity(user_id) for role in self.admin_roles] if self.admin_roles is not None else None
            ),
        )


class UserCreateRequest(UserUpdateRequest):
    """Request model for creating a user."""

    user_id: str = Field(..., min_length=1, description="Login id")

    def to_entity(self, user_id: Optional[str] = None) -> User:
        return super().to_entity(user_id or self.user_id)


class PropertiesRequest(BaseModel):
    properties: Dict[str, str] = Field(..., min_length=1)


class PasswordResetRequest(BaseModel):
    new_password: str = Field(..., min_length=1)


class PasswordChangeRequest(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1)


class AuthenticateRequest(BaseModel):
    user_id: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
