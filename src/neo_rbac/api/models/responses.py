"""Response models for the user directory API."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from ...features.constraints.entities.constraint import Constraint
from ...features.users.entities.session import PasswordCheckOutcome, Session
from ...features.users.entities.user import User
from ...features.users.entities.user_role import UserAdminRole, UserRole


class ConstraintResponse(BaseModel):
    timeout: Optional[int] = None
    begin_time: Optional[str] = None
    end_time: Optional[str] = None
    begin_date: Optional[str] = None
    end_date: Optional[str] = None
    begin_lock_date: Optional[str] = None
    end_lock_date: Optional[str] = None
    day_mask: Optional[str] = None

    @classmethod
    def from_entity(cls, constraint: Optional[Constraint]) -> Optional["ConstraintResponse"]:
        if constraint is None:
            return None
        return cls(**{name: getattr(constraint, name) for name in Constraint.TEMPORAL_FIELDS})


class UserRoleResponse(BaseModel):
    name: str
    constraint: Optional[ConstraintResponse] = None

    @classmethod
    def from_entity(cls, role: UserRole) -> "UserRoleResponse":
        return cls(name=role.name, constraint=ConstraintResponse.from_entity(role.constraint))


class UserAdminRoleResponse(UserRoleResponse):
    perm_ous: List[str] = Field(default_factory=list)
    user_ous: List[str] = Field(default_factory=list)
    begin_range: Optional[str] = None
    end_range: Optional[str] = None
    begin_inclusive: bool = True
    end_inclusive: bool = True

    @classmethod
    def from_entity(cls, role: UserAdminRole) -> "UserAdminRoleResponse":
        return cls(
            name=role.name,
            constraint=ConstraintResponse.from_entity(role.constraint),
            perm_ous=role.perm_ous,
            user_ous=role.user_ous,
            begin_range=role.begin_range,
            end_range=role.end_range,
            begin_inclusive=role.begin_inclusive,
            end_inclusive=role.end_inclusive,
        )


class UserResponse(BaseModel):
    """User as returned by the API; the password is never included."""

    user_id: str
    internal_id: Optional[str] = None
    cn: Optional[str] = None
    sn: Optional[str] = None
    description: Optional[str] = None
    ou: Optional[str] = None
    pw_policy: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)
    addresses: List[str] = Field(default_factory=list)
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    post_office_box: Optional[str] = None
    phones: List[str] = Field(default_factory=list)
    mobiles: List[str] = Field(default_factory=list)
    emails: List[str] = Field(default_factory=list)
    constraint: Optional[ConstraintResponse] = None
    roles: List[UserRoleResponse] = Field(default_factory=list)
    admin_roles: List[UserAdminRoleResponse] = Field(default_factory=list)
    locked: bool = False
    reset: bool = False
    sequence_id: Optional[int] = None

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        address = user.address
        return cls(
            user_id=user.user_id,
            internal_id=user.internal_id,
            cn=user.cn,
            sn=user.sn,
            description=user.description,
            ou=user.ou,
            pw_policy=user.pw_policy,
            properties=user.properties or {},
            addresses=address.addresses if address else [],
            city=address.city if address else None,
            state=address.state if address else None,
            postal_code=address.postal_code if address else None,
            post_office_box=address.post_office_box if address else None,
            phones=user.phones or [],
            mobiles=user.mobiles or [],
            emails=user.emails or [],
            constraint=ConstraintResponse.from_entity(user.constraint),
            roles=[UserRoleResponse.from_entity(role) for role in user.roles or []],
            admin_roles=[UserAdminRoleResponse.from_entity(role) for role in user.admin_roles or []],
            locked=user.locked,
            reset=user.reset,
            sequence_id=user.sequence_id,
        )


class UserListResponse(BaseModel):
    users: List[UserResponse]
    total: int


class UserIdsResponse(BaseModel):
    user_ids: List[str]
    total: int


class RoleNamesResponse(BaseModel):
    user_id: str
    roles: List[str]


class AuthenticateResponse(BaseModel):
    """Authentication outcome; a rejected login is reported, not raised."""

    user_id: str
    authenticated: bool
    internal_id: Optional[str] = None
    error: Optional[str] = None
    error_id: int = 0
    warning: str
    warning_id: int = 0
    message: str = ""
    time_before_expiration: Optional[int] = None
    grace_logins_remaining: Optional[int] = None

    @classmethod
    def from_result(cls, session: Session, outcome: PasswordCheckOutcome) -> "AuthenticateResponse":
        return cls(
            user_id=session.user_id,
            authenticated=outcome.authenticated,
            internal_id=session.internal_id,
            error=outcome.error.value if outcome.error else None,
            error_id=outcome.error_id,
            warning=outcome.warning.value,
            warning_id=outcome.warning_id,
            message=outcome.message,
            time_before_expiration=outcome.time_before_expiration,
            grace_logins_remaining=outcome.grace_logins_remaining,
        )
