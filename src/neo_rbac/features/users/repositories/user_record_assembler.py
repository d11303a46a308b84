"""User record assembler.

Two-way mapping between directory entries and the User aggregate: the read
path decodes a Record into a User, the write paths build the attribute set
for a new entry and the modification list for a partial update.
"""

import logging
from typing import Dict, List, Mapping, Optional

from ....config.constants import Attributes, Delimiters, ObjectClasses, Sentinels
from ....config.settings import DirectoryConfig
from ....core.protocols.directory_client import Modification, Record
from ...constraints.entities.constraint import Constraint
from ...constraints.services.constraint_codec import ConstraintCodec, default_codec
from ..entities.user import Address, User
from .role_assignment import RoleAssignmentEngine, arbac_engine, rbac_engine

logger = logging.getLogger(__name__)


def encode_property(name: str, value: str) -> str:
    return f"{name}{Delimiters.PROPERTY}{value}"


def decode_properties(values: List[str]) -> Dict[str, str]:
    """Decode ``name:value`` pairs; values without a separator are skipped."""
    props = {}
    for raw in values:
        name, sep, value = raw.partition(Delimiters.PROPERTY)
        if not sep:
            logger.warning(f"Skipping malformed property value [{raw}]")
            continue
        props[name] = value
    return props


class UserRecordAssembler:
    """Build User aggregates from records and directory changes from Users."""

    def __init__(
        self,
        config: DirectoryConfig,
        codec: ConstraintCodec = default_codec,
        roles: Optional[RoleAssignmentEngine] = None,
        admin_roles: Optional[RoleAssignmentEngine] = None
    ):
        self.config = config
        self.codec = codec
        self.roles = roles or rbac_engine(codec)
        self.admin_roles = admin_roles or arbac_engine(codec)

    # Keys

    def user_dn(self, user_id: str) -> str:
        return f"{Attributes.USER_ID}={user_id},{self.config.user_root}"

    def policy_dn(self, policy_name: str) -> str:
        return f"{ObjectClasses.POLICY_NODE_TYPE}={policy_name},{self.config.policy_root}"

    @staticmethod
    def policy_name(policy_dn: Optional[str]) -> Optional[str]:
        """Leading RDN value of a policy subentry DN."""
        if not policy_dn:
            return None
        rdn = policy_dn.split(",", 1)[0]
        _, sep, value = rdn.partition("=")
        return value if sep else rdn

    # Read path

    def to_user(self, record: Record, sequence_id: Optional[int] = None, with_roles: bool = True) -> User:
        """Decode a directory record into a User."""
        user_id = record.get(Attributes.USER_ID)
        user = User(
            user_id=user_id,
            internal_id=record.get(Attributes.INTERNAL_ID),
            cn=record.get(Attributes.COMMON_NAME),
            sn=record.get(Attributes.SURNAME),
            description=record.get(Attributes.DESCRIPTION),
            ou=record.get(Attributes.ORG_UNIT),
            pw_policy=self.policy_name(record.get(Attributes.POLICY_SUBENTRY)),
            properties=decode_properties(record.get_all(Attributes.PROPERTIES)),
            phones=record.get_all(Attributes.TELEPHONE),
            mobiles=record.get_all(Attributes.MOBILE),
            emails=record.get_all(Attributes.MAIL),
            locked=record.get(Attributes.LOCKED_TIME) == Sentinels.LOCK_VALUE,
            reset=(record.get(Attributes.RESET_FLAG) or "").upper() == Sentinels.RESET_VALUE,
            sequence_id=sequence_id,
            dn=record.dn,
        )

        raw_constraint = record.get(Attributes.CONSTRAINT)
        if raw_constraint:
            user.constraint = self.codec.decode(raw_constraint)

        address = Address(
            addresses=record.get_all(Attributes.POSTAL_ADDRESS),
            city=record.get(Attributes.LOCALITY),
            state=record.get(Attributes.STATE),
            postal_code=record.get(Attributes.POSTAL_CODE),
            post_office_box=record.get(Attributes.POST_OFFICE_BOX),
        )
        user.address = None if address.is_empty() else address

        if with_roles:
            user.roles = self.roles.decode(record, user_id)
            user.admin_roles = self.admin_roles.decode(record, user_id)
        else:
            user.roles = []
            user.admin_roles = []
        return user

    # Write paths

    def _object_classes(self) -> List[str]:
        return [
            ObjectClasses.TOP,
            self.config.user_object_class,
            ObjectClasses.USER_AUX,
            ObjectClasses.PROPERTIES_AUX,
            ObjectClasses.MODIFIER_AUX,
        ]

    def _user_constraint(self, user: User) -> str:
        constraint = Constraint(name=user.user_id)
        constraint.copy_temporal_from(user.constraint)
        return self.codec.encode(constraint)

    @staticmethod
    def _address_attributes(address: Address) -> Dict[str, List[str]]:
        """Attributes for the address sub-fields that are set."""
        attrs = {}
        if address.addresses:
            attrs[Attributes.POSTAL_ADDRESS] = list(address.addresses)
        for name, value in (
            (Attributes.LOCALITY, address.city),
            (Attributes.STATE, address.state),
            (Attributes.POSTAL_CODE, address.postal_code),
            (Attributes.POST_OFFICE_BOX, address.post_office_box),
        ):
            if value:
                attrs[name] = [value]
        return attrs

    def for_create(self, user: User) -> Dict[str, List[str]]:
        """Attribute set for a new user entry.

        Generates the internal id if unset and defaults cn and sn to the
        user id. The initialization property is always added.
        """
        user.assign_internal_id()
        cn = user.cn or user.user_id
        sn = user.sn or user.user_id

        attrs: Dict[str, List[str]] = {
            Attributes.OBJECT_CLASS: self._object_classes(),
            Attributes.INTERNAL_ID: [user.internal_id],
            Attributes.USER_ID: [user.user_id],
            Attributes.COMMON_NAME: [cn],
            Attributes.SURNAME: [sn],
            Attributes.DISPLAY_NAME: [cn],
        }
        if user.password:
            attrs[Attributes.PASSWORD] = [user.password]
        if user.description:
            attrs[Attributes.DESCRIPTION] = [user.description]
        if user.ou:
            attrs[Attributes.ORG_UNIT] = [user.ou]
        if user.pw_policy:
            attrs[Attributes.POLICY_SUBENTRY] = [self.policy_dn(user.pw_policy)]
        if user.constraint is not None and user.constraint.is_temporal_set():
            attrs[Attributes.CONSTRAINT] = [self._user_constraint(user)]

        props = {Sentinels.INIT_PROPERTY: ""}
        props.update(user.properties or {})
        attrs[Attributes.PROPERTIES] = [encode_property(k, v) for k, v in props.items()]

        if user.address is not None:
            attrs.update(self._address_attributes(user.address))
        for name, values in (
            (Attributes.TELEPHONE, user.phones),
            (Attributes.MOBILE, user.mobiles),
            (Attributes.MAIL, user.emails),
        ):
            if values:
                attrs[name] = list(values)

        attrs.update(self.roles.load_for_create(user.roles))
        attrs.update(self.admin_roles.load_for_create(user.admin_roles))
        return attrs

    def for_update(self, user: User) -> List[Modification]:
        """Modifications for the fields the caller set.

        None and empty values are skipped, so a partial User never clears
        stored attributes. Role lists that are set replace the stored grants.
        """
        changes: List[Modification] = []
        if user.cn:
            changes.append(Modification.replace(Attributes.COMMON_NAME, user.cn))
            changes.append(Modification.replace(Attributes.DISPLAY_NAME, user.cn))
        if user.sn:
            changes.append(Modification.replace(Attributes.SURNAME, user.sn))
        if user.description:
            changes.append(Modification.replace(Attributes.DESCRIPTION, user.description))
        if user.ou:
            changes.append(Modification.replace(Attributes.ORG_UNIT, user.ou))
        if user.password:
            changes.append(Modification.replace(Attributes.PASSWORD, user.password))
        if user.pw_policy:
            changes.append(Modification.replace(Attributes.POLICY_SUBENTRY, self.policy_dn(user.pw_policy)))
        if user.constraint is not None and user.constraint.is_temporal_set():
            changes.append(Modification.replace(Attributes.CONSTRAINT, self._user_constraint(user)))
        if user.properties:
            changes.extend(self.property_changes(user.properties, replace=True))
        if user.address is not None:
            changes.extend(
                Modification.replace(name, *values)
                for name, values in self._address_attributes(user.address).items()
            )
        for name, values in (
            (Attributes.TELEPHONE, user.phones),
            (Attributes.MOBILE, user.mobiles),
            (Attributes.MAIL, user.emails),
        ):
            if values:
                changes.append(Modification.replace(name, *values))
        if user.roles:
            changes.extend(self.roles.load_for_update(user.roles))
        if user.admin_roles:
            changes.extend(self.admin_roles.load_for_update(user.admin_roles))
        return changes

    @staticmethod
    def property_changes(
        props: Mapping[str, str],
        replace: bool,
        existing: Optional[Mapping[str, str]] = None
    ) -> List[Modification]:
        """Modifications that store ``props``.

        With ``replace`` the stored set becomes exactly ``props``. Otherwise
        the properties are merged into ``existing``: a name already stored
        with a different value has that value removed first.
        """
        if replace:
            return [Modification.replace(
                Attributes.PROPERTIES, *(encode_property(k, v) for k, v in props.items())
            )]

        existing = existing or {}
        removed = [
            encode_property(name, existing[name])
            for name, value in props.items()
            if name in existing and existing[name] != value
        ]
        added = [
            encode_property(name, value)
            for name, value in props.items()
            if existing.get(name) != value
        ]
        changes = []
        if removed:
            changes.append(Modification.delete(Attributes.PROPERTIES, *removed))
        if added:
            changes.append(Modification.add(Attributes.PROPERTIES, *added))
        return changes
