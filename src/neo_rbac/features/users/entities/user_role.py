"""Role grant entities.

A UserRole is an RBAC role assigned to a user together with the temporal
constraint of the grant; a UserAdminRole adds the ARBAC scope fields. Both
are stored as one delimited record value plus the bare role name.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from ....config.constants import Delimiters
from ....core.exceptions import ValidationError, ValidationErrorKind
from ...constraints.entities.constraint import Constraint
from ...constraints.services.constraint_codec import ConstraintCodec, default_codec


@dataclass
class UserRole:
    """RBAC role grant identified by role name and owning user id."""

    user_id: str
    name: str
    constraint: Constraint = field(default_factory=Constraint)

    # Literal stored value this grant was decoded from; deletes need it verbatim
    raw_data: Optional[str] = field(default=None, compare=False)
    sequence_id: Optional[int] = field(default=None, compare=False)

    def matches(self, role_name: str) -> bool:
        """Role names compare case-insensitively, as in the directory index."""
        return self.name.lower() == role_name.lower()

    def _record_fields(self, codec: ConstraintCodec) -> List[str]:
        constraint = Constraint(name=self.name)
        constraint.copy_temporal_from(self.constraint)
        return codec.encode_fields(constraint)

    def to_record(self, codec: ConstraintCodec = default_codec) -> str:
        """Encode the full grant record stored in the role data attribute."""
        return codec.delimiter.join(self._record_fields(codec))

    @classmethod
    def from_record(
        cls,
        raw: str,
        user_id: str,
        sequence_id: Optional[int] = None,
        codec: ConstraintCodec = default_codec
    ) -> "UserRole":
        constraint = codec.decode(raw)
        if not constraint.name:
            raise ValidationError(
                ValidationErrorKind.MALFORMED_CONSTRAINT,
                f"role record [{raw}] carries no role name"
            )
        return cls(
            user_id=user_id,
            name=constraint.name,
            constraint=constraint,
            raw_data=raw,
            sequence_id=sequence_id,
        )


@dataclass
class UserAdminRole(UserRole):
    """ARBAC role grant with organizational-unit and role-range scoping.

    Scope fields follow the constraint fields in the stored record:
    ``P:<ou>`` for each permission OU, ``U:<ou>`` for each user OU and
    ``R:[begin:end]`` for the role range, where ``[``/``]`` mark inclusive
    and ``(``/``)`` exclusive bounds.
    """

    perm_ous: List[str] = field(default_factory=list)
    user_ous: List[str] = field(default_factory=list)
    begin_range: Optional[str] = None
    end_range: Optional[str] = None
    begin_inclusive: bool = True
    end_inclusive: bool = True

    PERM_OU_PREFIX = "P"
    USER_OU_PREFIX = "U"
    RANGE_PREFIX = "R"

    def _scope_fields(self) -> List[str]:
        sep = Delimiters.PROPERTY
        scope = [f"{self.PERM_OU_PREFIX}{sep}{ou}" for ou in self.perm_ous]
        scope += [f"{self.USER_OU_PREFIX}{sep}{ou}" for ou in self.user_ous]
        if self.begin_range or self.end_range:
            left = "[" if self.begin_inclusive else "("
            right = "]" if self.end_inclusive else ")"
            scope.append(
                f"{self.RANGE_PREFIX}{sep}{left}{self.begin_range or ''}{sep}{self.end_range or ''}{right}"
            )
        return scope

    def to_record(self, codec: ConstraintCodec = default_codec) -> str:
        return codec.delimiter.join(self._record_fields(codec) + self._scope_fields())

    @classmethod
    def from_record(
        cls,
        raw: str,
        user_id: str,
        sequence_id: Optional[int] = None,
        codec: ConstraintCodec = default_codec
    ) -> "UserAdminRole":
        constraint, extras = codec.decode_fields(raw)
        if not constraint.name:
            raise ValidationError(
                ValidationErrorKind.MALFORMED_CONSTRAINT,
                f"admin role record [{raw}] carries no role name"
            )

        role = cls(
            user_id=user_id,
            name=constraint.name,
            constraint=constraint,
            raw_data=raw,
            sequence_id=sequence_id,
        )
        for item in extras:
            if not item:
                continue
            prefix, sep, value = item.partition(Delimiters.PROPERTY)
            if not sep:
                raise ValidationError(
                    ValidationErrorKind.MALFORMED_CONSTRAINT,
                    f"admin role scope field [{item}] has no prefix"
                )
            if prefix == cls.PERM_OU_PREFIX:
                role.perm_ous.append(value)
            elif prefix == cls.USER_OU_PREFIX:
                role.user_ous.append(value)
            elif prefix == cls.RANGE_PREFIX:
                role._load_range(value)
            else:
                raise ValidationError(
                    ValidationErrorKind.MALFORMED_CONSTRAINT,
                    f"admin role scope field [{item}] has unknown prefix"
                )
        return role

    def _load_range(self, value: str) -> None:
        if len(value) < 3 or value[0] not in "[(" or value[-1] not in "])":
            raise ValidationError(
                ValidationErrorKind.MALFORMED_CONSTRAINT,
                f"admin role range [{value}] is malformed"
            )
        self.begin_inclusive = value[0] == "["
        self.end_inclusive = value[-1] == "]"
        begin, _, end = value[1:-1].partition(Delimiters.PROPERTY)
        self.begin_range = begin or None
        self.end_range = end or None
