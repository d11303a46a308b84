"""User directory gateway.

The façade the rest of the system calls for user management: account
lifecycle, password state, authentication, searches and role grants.
Every operation validates its input before any I/O, acquires one pooled
connection for its duration and translates directory failures into the
neo-rbac error taxonomy.
"""

import logging
from typing import List, Mapping, Optional, Sequence, Tuple

from ....config.constants import (
    AUTHN_ATTRS,
    DEFAULT_ATTRS,
    Attributes,
    ConnectionType,
    FieldLimits,
    SearchScope,
    Sentinels,
)
from ....config.settings import DirectoryConfig
from ....core.exceptions import (
    AuthErrorKind,
    AuthenticationError,
    DirectoryError,
    NeoRbacError,
    NotFoundError,
    NotFoundKind,
    OperationError,
    OperationKind,
    ResultCode,
    ValidationErrorKind,
)
from ....core.protocols.directory_client import DirectoryClient, DirectoryPool, Modification, Record
from ....core.protocols.role_hierarchy import RoleHierarchy
from ...constraints.services.constraint_codec import ConstraintCodec
from ...constraints.validators.field_validator import FieldValidator
from ..entities.session import PasswordCheckOutcome, Session
from ..entities.user import User
from ..entities.user_role import UserAdminRole, UserRole
from ..repositories.role_assignment import arbac_engine, rbac_engine
from ..repositories.user_record_assembler import UserRecordAssembler, decode_properties
from .password_policy import PasswordPolicyInterpreter

logger = logging.getLogger(__name__)


class UserDirectoryGateway:
    """User management operations against a pooled directory."""

    def __init__(
        self,
        pool: DirectoryPool,
        config: DirectoryConfig,
        role_hierarchy: Optional[RoleHierarchy] = None
    ):
        """Initialize the gateway.

        Args:
            pool: Directory connection pool owned by the caller
            config: Immutable directory configuration
            role_hierarchy: Descendant lookup used by users_authorized
        """
        if pool is None:
            raise ValueError("Directory pool is required")
        self.pool = pool
        self.config = config
        self.role_hierarchy = role_hierarchy

        self.validator = FieldValidator(config.field_length)
        self.codec = ConstraintCodec(validator=self.validator)
        self.roles = rbac_engine(self.codec)
        self.admin_roles = arbac_engine(self.codec)
        self.assembler = UserRecordAssembler(config, self.codec, self.roles, self.admin_roles)
        self.policy = PasswordPolicyInterpreter(config.password_policy_enabled, config.is_realm)

    # Error translation

    @staticmethod
    def _directory_failure(e: DirectoryError, kind: OperationKind, action: str, user_id: Optional[str]) -> NeoRbacError:
        if e.is_code(ResultCode.NO_SUCH_OBJECT):
            return NotFoundError(
                NotFoundKind.USER_NOT_FOUND,
                f"{action} user [{user_id}] not found",
                details={"user_id": user_id, "operation": action}
            )
        logger.error(f"Failed to {action} user {user_id}: {e}")
        return OperationError(
            kind,
            f"{action} user [{user_id}] caught directory error [{e.result_code}]",
            result_code=e.result_code,
            details={"user_id": user_id, "operation": action}
        )

    # Validation

    def _validate_role(self, role: UserRole) -> None:
        self.validator.user_id(role.user_id)
        self.validator.safe_text(role.name)
        self.validator.constraint(role.constraint)
        if isinstance(role, UserAdminRole):
            for ou in role.perm_ous + role.user_ous:
                self.validator.org_unit(ou)
                self.validator.safe_text(ou)
            for bound in (role.begin_range, role.end_range):
                if bound is not None:
                    self.validator.safe_text(bound)
                    self.validator.no_pair_delimiter(bound, "role range")

    def _validate_user(self, user: User, creating: bool) -> None:
        self.validator.assert_not_null(user, method="create" if creating else "update")
        self.validator.user_id(user.user_id)
        if user.password:
            self.validator.password(user.password)
        if user.description:
            self.validator.description(user.description)
        if user.ou:
            self.validator.org_unit(user.ou)
        for name in (user.cn, user.sn, user.pw_policy):
            if name:
                self.validator.safe_text(name)
        self.validator.properties(user.properties)
        if user.constraint is not None:
            self.validator.constraint(user.constraint)
        for role in (user.roles or []) + (user.admin_roles or []):
            self._validate_role(role)

    # Lifecycle

    async def create(self, user: User) -> User:
        """Create a user entry and return the user with its internal id set."""
        self._validate_user(user, creating=True)
        dn = self.assembler.user_dn(user.user_id)
        attrs = self.assembler.for_create(user)

        async with self.pool.get_connection() as conn:
            try:
                await conn.add(dn, attrs)
            except DirectoryError as e:
                logger.error(f"Failed to create user {user.user_id}: {e}")
                raise OperationError(
                    OperationKind.CREATE_FAILED,
                    f"create user [{user.user_id}] caught directory error [{e.result_code}]",
                    result_code=e.result_code,
                    details={"user_id": user.user_id, "operation": "create"}
                ) from e

        logger.info(f"Created user {user.user_id} with internal id {user.internal_id}")
        user.dn = dn
        return user

    async def update(self, user: User) -> User:
        """Write the fields the caller set; unset fields keep their stored values."""
        self._validate_user(user, creating=False)
        dn = self.assembler.user_dn(user.user_id)
        changes = self.assembler.for_update(user)
        if not changes:
            logger.debug(f"Update of user {user.user_id} carried no changes")
            return user

        async with self.pool.get_connection() as conn:
            try:
                await conn.modify(dn, changes)
            except DirectoryError as e:
                raise self._directory_failure(e, OperationKind.UPDATE_FAILED, "update", user.user_id) from e

        logger.debug(f"Updated user {user.user_id} ({len(changes)} changes)")
        return user

    async def update_properties(self, user_id: str, properties: Mapping[str, str], replace: bool = False) -> None:
        """Store properties on a user.

        With ``replace`` the stored set becomes exactly ``properties``;
        otherwise they are merged into the stored set, overwriting values of
        names already present.
        """
        self.validator.user_id(user_id)
        self.validator.assert_not_null_or_empty(properties, method="update_properties")
        self.validator.properties(properties)
        dn = self.assembler.user_dn(user_id)

        async with self.pool.get_connection() as conn:
            try:
                existing = None
                if not replace:
                    record = await conn.read(dn, [Attributes.PROPERTIES])
                    existing = decode_properties(record.get_all(Attributes.PROPERTIES))
                changes = self.assembler.property_changes(properties, replace, existing)
                if changes:
                    await conn.modify(dn, changes)
            except DirectoryError as e:
                raise self._directory_failure(e, OperationKind.UPDATE_FAILED, "update properties of", user_id) from e

    async def remove(self, user_id: str) -> None:
        """Delete a user entry."""
        self.validator.user_id(user_id)
        async with self.pool.get_connection() as conn:
            try:
                await conn.delete(self.assembler.user_dn(user_id))
            except DirectoryError as e:
                raise self._directory_failure(e, OperationKind.DELETE_FAILED, "remove", user_id) from e
        logger.info(f"Removed user {user_id}")

    # Password state

    async def lock(self, user_id: str) -> None:
        self.validator.user_id(user_id)
        async with self.pool.get_connection() as conn:
            try:
                await conn.modify(
                    self.assembler.user_dn(user_id),
                    [Modification.replace(Attributes.LOCKED_TIME, Sentinels.LOCK_VALUE)]
                )
            except DirectoryError as e:
                raise self._directory_failure(e, OperationKind.LOCK_FAILED, "lock", user_id) from e
        logger.info(f"Locked user {user_id}")

    async def unlock(self, user_id: str) -> None:
        """Clear the lock; unlocking an account that is not locked succeeds."""
        self.validator.user_id(user_id)
        async with self.pool.get_connection() as conn:
            try:
                await conn.modify(self.assembler.user_dn(user_id), [Modification.delete(Attributes.LOCKED_TIME)])
            except DirectoryError as e:
                if not e.is_code(ResultCode.NO_SUCH_ATTRIBUTE):
                    raise self._directory_failure(e, OperationKind.UNLOCK_FAILED, "unlock", user_id) from e
                logger.info(f"Unlock user {user_id}: account was not locked")
                return
        logger.info(f"Unlocked user {user_id}")

    async def reset_password(self, user_id: str, new_password: str) -> None:
        """Set a new password and flag it for change on next login."""
        self.validator.user_id(user_id)
        self.validator.assert_not_null_or_empty(new_password, method="reset_password")
        self.validator.password(new_password)
        async with self.pool.get_connection() as conn:
            try:
                await conn.modify(self.assembler.user_dn(user_id), [
                    Modification.replace(Attributes.PASSWORD, new_password),
                    Modification.replace(Attributes.RESET_FLAG, Sentinels.RESET_VALUE),
                ])
            except DirectoryError as e:
                raise self._directory_failure(e, OperationKind.RESET_FAILED, "reset password of", user_id) from e
        logger.info(f"Reset password of user {user_id}")

    async def delete_policy(self, user_id: str) -> None:
        """Detach the password policy from a user."""
        self.validator.user_id(user_id)
        async with self.pool.get_connection() as conn:
            try:
                await conn.modify(self.assembler.user_dn(user_id), [Modification.delete(Attributes.POLICY_SUBENTRY)])
            except DirectoryError as e:
                raise self._directory_failure(e, OperationKind.POLICY_DELETE_FAILED, "delete policy of", user_id) from e

    async def change_password(self, user_id: str, old_password: str, new_password: str) -> None:
        """Change a password as the user, enforcing the password policy.

        Raises:
            AuthenticationError: the old password was rejected or the new one
                violates the policy
            OperationError: any other directory failure
        """
        self.validator.user_id(user_id)
        self.validator.assert_not_null_or_empty(old_password, method="change_password")
        self.validator.assert_not_null_or_empty(new_password, method="change_password")
        self.validator.password(new_password)
        dn = self.assembler.user_dn(user_id)

        async with self.pool.get_connection(ConnectionType.USER) as conn:
            await self._bind_for_change(conn, dn, user_id, old_password)
            try:
                await conn.modify(dn, [Modification.replace(Attributes.PASSWORD, new_password)])
            except DirectoryError as e:
                if e.is_code(ResultCode.CONSTRAINT_VIOLATION):
                    outcome = self.policy.check(e.policy, user_id)
                    if outcome.error is not None:
                        raise outcome.to_error(user_id) from e
                    raise AuthenticationError(
                        AuthErrorKind.POLICY_CHECK_FAILED,
                        f"change password user [{user_id}] constraint violation without policy detail",
                        user_id=user_id
                    ) from e
                if e.is_code(ResultCode.INSUFFICIENT_ACCESS_RIGHTS):
                    raise AuthenticationError(
                        AuthErrorKind.PASSWORD_CHANGE_NOT_ALLOWED,
                        f"change password user [{user_id}] not allowed",
                        user_id=user_id
                    ) from e
                raise self._directory_failure(
                    e, OperationKind.PASSWORD_CHANGE_FAILED, "change password of", user_id
                ) from e
        logger.info(f"Changed password of user {user_id}")

    async def _bind_for_change(self, conn: DirectoryClient, dn: str, user_id: str, password: str) -> None:
        try:
            await conn.bind(dn, password)
        except DirectoryError as e:
            if e.is_code(ResultCode.INVALID_CREDENTIALS):
                outcome = self.policy.check(e.policy, user_id)
                if outcome.error is not None:
                    raise outcome.to_error(user_id) from e
                raise AuthenticationError(
                    AuthErrorKind.INVALID_CREDENTIALS,
                    f"change password user [{user_id}] invalid credentials",
                    user_id=user_id
                ) from e
            raise self._directory_failure(
                e, OperationKind.PASSWORD_CHANGE_FAILED, "change password of", user_id
            ) from e

    # Authentication

    async def authenticate(self, user_id: str, password: str) -> Tuple[Session, PasswordCheckOutcome]:
        """Bind as the user and interpret the password policy.

        A rejected login is reported in the returned session and outcome,
        not raised. Directory failures other than a credential rejection
        raise OperationError.
        """
        self.validator.user_id(user_id)
        self.validator.assert_not_null_or_empty(password, ValidationErrorKind.EMPTY, "authenticate")
        self.validator.password(password)
        session = Session(user_id=user_id)
        dn = self.assembler.user_dn(user_id)

        async with self.pool.get_connection(ConnectionType.USER) as conn:
            try:
                result = await conn.bind(dn, password)
            except DirectoryError as e:
                if not e.is_code(ResultCode.INVALID_CREDENTIALS):
                    logger.error(f"Bind failed for user {user_id}: {e}")
                    raise OperationError(
                        OperationKind.READ_FAILED,
                        f"authenticate user [{user_id}] caught directory error [{e.result_code}]",
                        result_code=e.result_code,
                        details={"user_id": user_id, "operation": "authenticate"}
                    ) from e
                outcome = self.policy.check(e.policy, user_id)
                if outcome.authenticated:
                    outcome = PasswordCheckOutcome.failure(
                        AuthErrorKind.INVALID_CREDENTIALS,
                        f"authenticate user [{user_id}] invalid credentials"
                    )
                logger.info(f"Authentication rejected for user {user_id}: {outcome.error.value}")
                session.apply(outcome)
                return session, outcome

        outcome = self.policy.check(result.policy, user_id)
        session.apply(outcome)
        if not outcome.authenticated:
            logger.info(f"Authentication rejected for user {user_id} after bind: {outcome.error.value}")
            return session, outcome

        user = await self.read(user_id, with_roles=False)
        session.user = user
        session.internal_id = user.internal_id
        logger.debug(f"Authenticated user {user_id} (warning {outcome.warning.value})")
        return session, outcome

    # Reads

    async def read(self, user_id: str, with_roles: bool = True) -> User:
        """Read one user; without roles only the authentication attributes are fetched."""
        self.validator.user_id(user_id)
        attrs = DEFAULT_ATTRS if with_roles else AUTHN_ATTRS
        async with self.pool.get_connection() as conn:
            try:
                record = await conn.read(self.assembler.user_dn(user_id), attrs)
            except DirectoryError as e:
                raise self._directory_failure(e, OperationKind.READ_FAILED, "read", user_id) from e
        return self.assembler.to_user(record, with_roles=with_roles)

    async def _read_attribute(self, user_id: str, attribute: str) -> Record:
        self.validator.user_id(user_id)
        async with self.pool.get_connection() as conn:
            try:
                return await conn.read(self.assembler.user_dn(user_id), [attribute])
            except DirectoryError as e:
                raise self._directory_failure(e, OperationKind.READ_FAILED, "read roles of", user_id) from e

    async def read_roles(self, user_id: str) -> List[str]:
        """Names of the RBAC roles assigned to a user."""
        return self.roles.names(await self._read_attribute(user_id, Attributes.ROLE_ASSIGN))

    async def read_user_roles(self, user_id: str) -> List[UserRole]:
        record = await self._read_attribute(user_id, Attributes.ROLE_DATA)
        return self.roles.decode(record, user_id)

    async def read_admin_roles(self, user_id: str) -> List[UserAdminRole]:
        record = await self._read_attribute(user_id, Attributes.ADMIN_ROLE_DATA)
        return self.admin_roles.decode(record, user_id)

    # Searches

    def _filter(self, *clauses: str) -> str:
        object_class = f"({Attributes.OBJECT_CLASS}={self.config.user_object_class})"
        return f"(&{object_class}{''.join(clauses)})"

    async def _search(
        self,
        filter: str,
        attributes: Sequence[str],
        size_limit: int = 0,
        action: str = "search"
    ) -> List[Record]:
        records = []
        async with self.pool.get_connection() as conn:
            try:
                async for record in conn.search(
                    self.config.user_root, SearchScope.ONE, filter, attributes, size_limit
                ):
                    records.append(record)
            except DirectoryError as e:
                if e.is_code(ResultCode.SIZE_LIMIT_EXCEEDED):
                    logger.debug(f"{action} reached size limit {size_limit} with {len(records)} entries")
                    return records
                logger.error(f"Failed to {action} with filter {filter}: {e}")
                raise OperationError(
                    OperationKind.SEARCH_FAILED,
                    f"{action} caught directory error [{e.result_code}]",
                    result_code=e.result_code,
                    details={"filter": filter, "operation": action}
                ) from e
        return records

    def _to_users(self, records: List[Record]) -> List[User]:
        return [self.assembler.to_user(record, sequence_id=seq) for seq, record in enumerate(records)]

    async def find(
        self,
        user_id: Optional[str] = None,
        internal_id: Optional[str] = None,
        limit: int = 0
    ) -> List[User]:
        """Find users by internal id, by user id prefix, or all users."""
        if internal_id:
            clause = f"({Attributes.INTERNAL_ID}={self.validator.encode_safe_text(internal_id)})"
        elif user_id:
            clause = f"({Attributes.USER_ID}={self.validator.encode_safe_text(user_id, FieldLimits.USER_ID_LEN)}*)"
        else:
            clause = ""
        records = await self._search(self._filter(clause), DEFAULT_ATTRS, limit, "find users")
        return self._to_users(records)

    async def find_ids(self, prefix: str, limit: int = 0) -> List[str]:
        """User ids starting with ``prefix``."""
        value = self.validator.encode_safe_text(prefix, FieldLimits.USER_ID_LEN)
        records = await self._search(
            self._filter(f"({Attributes.USER_ID}={value}*)"), [Attributes.USER_ID], limit, "find user ids"
        )
        return [record.get(Attributes.USER_ID) for record in records]

    async def users_in_org_unit(self, ou: str, limited: bool = False) -> List[User]:
        """Users of an organizational unit, capped at the configured limit when ``limited``."""
        value = self.validator.encode_safe_text(ou)
        size_limit = self.config.ou_search_limit if limited else 0
        records = await self._search(
            self._filter(f"({Attributes.ORG_UNIT}={value})"), DEFAULT_ATTRS, size_limit, "find users in ou"
        )
        return self._to_users(records)

    async def users_assigned(self, role_name: str) -> List[User]:
        value = self.validator.encode_safe_text(role_name)
        records = await self._search(
            self._filter(f"({Attributes.ROLE_ASSIGN}={value})"), DEFAULT_ATTRS, 0, "find assigned users"
        )
        return self._to_users(records)

    async def users_assigned_admin(self, admin_role_name: str) -> List[User]:
        value = self.validator.encode_safe_text(admin_role_name)
        records = await self._search(
            self._filter(f"({Attributes.ADMIN_ROLE_ASSIGN}={value})"), DEFAULT_ATTRS, 0, "find assigned admin users"
        )
        return self._to_users(records)

    async def users_authorized(self, role_name: str, limit: int = 0) -> List[str]:
        """Ids of users assigned the role or any of its descendants."""
        self.validator.safe_text(role_name)
        names = [role_name]
        if self.role_hierarchy is not None:
            names += sorted(await self.role_hierarchy.descendants(role_name))
        else:
            logger.debug(f"No role hierarchy configured, authorizing {role_name} directly")

        clauses = [f"({Attributes.ROLE_ASSIGN}={self.validator.encode_safe_text(name)})" for name in names]
        records = await self._search(
            self._filter(f"(|{''.join(clauses)})"), [Attributes.USER_ID], limit, "find authorized users"
        )
        return [record.get(Attributes.USER_ID) for record in records]

    async def find_ids_by_roles(self, role_names: Sequence[str]) -> List[str]:
        """Sorted, de-duplicated ids of users assigned any of the roles.

        Role names are searched in batches of the configured batch size,
        one search per batch.
        """
        clauses = [
            f"({Attributes.ROLE_ASSIGN}={self.validator.encode_safe_text(name)})" for name in role_names
        ]
        user_ids = set()
        for start in range(0, len(clauses), self.config.batch_size):
            batch = "".join(clauses[start:start + self.config.batch_size])
            records = await self._search(
                self._filter(f"(|{batch})"), [Attributes.USER_ID], 0, "find user ids by roles"
            )
            user_ids.update(record.get(Attributes.USER_ID) for record in records)
        return sorted(user_ids)

    # Role grants

    async def assign_role(self, role: UserRole) -> UserRole:
        """Grant an RBAC role; a second grant of the same role is a conflict."""
        self._validate_role(role)
        async with self.pool.get_connection() as conn:
            await self.roles.assign(conn, self.assembler.user_dn(role.user_id), role)
        return role

    async def deassign_role(self, user_id: str, role_name: str) -> UserRole:
        """Revoke an RBAC role; revoking a role not assigned raises NotFoundError."""
        self.validator.user_id(user_id)
        self.validator.safe_text(role_name)
        async with self.pool.get_connection() as conn:
            return await self.roles.deassign(conn, self.assembler.user_dn(user_id), user_id, role_name)

    async def assign_admin_role(self, role: UserAdminRole) -> UserAdminRole:
        self._validate_role(role)
        async with self.pool.get_connection() as conn:
            await self.admin_roles.assign(conn, self.assembler.user_dn(role.user_id), role)
        return role

    async def deassign_admin_role(self, user_id: str, role_name: str) -> UserAdminRole:
        self.validator.user_id(user_id)
        self.validator.safe_text(role_name)
        async with self.pool.get_connection() as conn:
            return await self.admin_roles.deassign(conn, self.assembler.user_dn(user_id), user_id, role_name)
