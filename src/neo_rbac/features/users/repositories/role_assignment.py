"""Role assignment engine.

A role grant is stored twice on the user entry: the full encoded record in a
data attribute and the bare role name in an index attribute used by search.
Both values are always written and removed in one modify request.
"""

import logging
from typing import Dict, Generic, List, Optional, Sequence, Type, TypeVar

from ....config.constants import Attributes
from ....core.exceptions import (
    ConflictError,
    ConflictKind,
    DirectoryError,
    NotFoundError,
    NotFoundKind,
    OperationError,
    OperationKind,
    ResultCode,
)
from ....core.protocols.directory_client import DirectoryClient, Modification, Record
from ...constraints.services.constraint_codec import ConstraintCodec, default_codec
from ..entities.user_role import UserAdminRole, UserRole

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=UserRole)


class RoleAssignmentEngine(Generic[R]):
    """Grant and revoke one kind of role (RBAC or ARBAC) on user entries."""

    def __init__(
        self,
        role_type: Type[R],
        data_attribute: str,
        index_attribute: str,
        codec: ConstraintCodec = default_codec
    ):
        self.role_type = role_type
        self.data_attribute = data_attribute
        self.index_attribute = index_attribute
        self.codec = codec

    @property
    def label(self) -> str:
        return "admin role" if issubclass(self.role_type, UserAdminRole) else "role"

    async def assign(self, client: DirectoryClient, dn: str, role: R) -> None:
        """Add the role record and index values to the user entry.

        Raises:
            ConflictError: the role is already assigned
            NotFoundError: the user entry does not exist
            OperationError: any other directory failure
        """
        changes = [
            Modification.add(self.data_attribute, role.to_record(self.codec)),
            Modification.add(self.index_attribute, role.name),
        ]
        try:
            await client.modify(dn, changes)
        except DirectoryError as e:
            if e.is_code(ResultCode.ATTRIBUTE_OR_VALUE_EXISTS):
                raise ConflictError(
                    ConflictKind.ASSIGNMENT_EXISTS,
                    f"{self.label} [{role.name}] already assigned to user [{role.user_id}]",
                    details={"user_id": role.user_id, "role": role.name}
                )
            if e.is_code(ResultCode.NO_SUCH_OBJECT):
                raise NotFoundError(
                    NotFoundKind.USER_NOT_FOUND,
                    f"assign {self.label} [{role.name}] user [{role.user_id}] not found",
                    details={"user_id": role.user_id}
                )
            logger.error(f"Failed to assign {self.label} {role.name} to {role.user_id}: {e}")
            raise OperationError(
                OperationKind.ASSIGN_FAILED,
                f"assign {self.label} [{role.name}] to user [{role.user_id}] caught directory error [{e.result_code}]",
                result_code=e.result_code,
                details={"user_id": role.user_id, "role": role.name, "operation": "assign"}
            )
        logger.debug(f"Assigned {self.label} {role.name} to {role.user_id}")

    async def deassign(self, client: DirectoryClient, dn: str, user_id: str, role_name: str) -> R:
        """Remove a role grant, deleting the exact stored record value.

        The current records are read and the removal issued on the same
        client. Returns the grant that was removed.

        Raises:
            NotFoundError: the user or the assignment does not exist
            OperationError: any other directory failure
        """
        try:
            record = await client.read(dn, [self.data_attribute])
        except DirectoryError as e:
            if e.is_code(ResultCode.NO_SUCH_OBJECT):
                raise NotFoundError(
                    NotFoundKind.USER_NOT_FOUND,
                    f"deassign {self.label} [{role_name}] user [{user_id}] not found",
                    details={"user_id": user_id}
                )
            logger.error(f"Failed to read {self.label}s of {user_id}: {e}")
            raise OperationError(
                OperationKind.DEASSIGN_FAILED,
                f"deassign {self.label} [{role_name}] user [{user_id}] caught directory error [{e.result_code}] on read",
                result_code=e.result_code,
                details={"user_id": user_id, "role": role_name, "operation": "deassign"}
            )

        target = self.find(self.decode(record, user_id), role_name)
        if target is None:
            raise NotFoundError(
                NotFoundKind.ASSIGNMENT_NOT_FOUND,
                f"deassign {self.label} [{role_name}] not assigned to user [{user_id}]",
                details={"user_id": user_id, "role": role_name}
            )

        changes = [
            Modification.delete(self.data_attribute, target.raw_data),
            Modification.delete(self.index_attribute, target.name),
        ]
        try:
            await client.modify(dn, changes)
        except DirectoryError as e:
            if e.is_code(ResultCode.NO_SUCH_ATTRIBUTE):
                # Removed concurrently; the requested state already holds
                logger.info(f"Deassign {self.label} {role_name} from {user_id}: value already removed")
                return target
            logger.error(f"Failed to deassign {self.label} {role_name} from {user_id}: {e}")
            raise OperationError(
                OperationKind.DEASSIGN_FAILED,
                f"deassign {self.label} [{role_name}] user [{user_id}] caught directory error [{e.result_code}]",
                result_code=e.result_code,
                details={"user_id": user_id, "role": role_name, "operation": "deassign"}
            )

        logger.debug(f"Deassigned {self.label} {role_name} from {user_id}")
        return target

    @staticmethod
    def find(roles: Sequence[R], role_name: str) -> Optional[R]:
        """First grant whose role name matches, ignoring case."""
        for role in roles:
            if role.matches(role_name):
                return role
        return None

    def decode(self, record: Record, user_id: str) -> List[R]:
        """Decode every stored record value into grants, in stored order."""
        return [
            self.role_type.from_record(raw, user_id, sequence_id=sequence, codec=self.codec)
            for sequence, raw in enumerate(record.get_all(self.data_attribute))
        ]

    def names(self, record: Record) -> List[str]:
        return record.get_all(self.index_attribute)

    def load_for_create(self, roles: Optional[Sequence[R]]) -> Dict[str, List[str]]:
        """Attribute set for a new entry; empty when there are no roles."""
        if not roles:
            return {}
        return {
            self.data_attribute: [role.to_record(self.codec) for role in roles],
            self.index_attribute: [role.name for role in roles],
        }

    def load_for_update(self, roles: Sequence[R]) -> List[Modification]:
        """Replace both attributes wholesale; an empty list clears them."""
        return [
            Modification.replace(self.data_attribute, *(role.to_record(self.codec) for role in roles)),
            Modification.replace(self.index_attribute, *(role.name for role in roles)),
        ]


def rbac_engine(codec: ConstraintCodec = default_codec) -> RoleAssignmentEngine[UserRole]:
    return RoleAssignmentEngine(UserRole, Attributes.ROLE_DATA, Attributes.ROLE_ASSIGN, codec)


def arbac_engine(codec: ConstraintCodec = default_codec) -> RoleAssignmentEngine[UserAdminRole]:
    return RoleAssignmentEngine(UserAdminRole, Attributes.ADMIN_ROLE_DATA, Attributes.ADMIN_ROLE_ASSIGN, codec)
