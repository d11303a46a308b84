"""Tests for UserDirectoryGateway against the in-memory directory."""

from dataclasses import replace

import pytest

from neo_rbac.config.settings import DirectoryConfig
from neo_rbac.core.exceptions import (
    AuthenticationError,
    AuthErrorKind,
    ConflictError,
    ConflictKind,
    NotFoundError,
    NotFoundKind,
    OperationError,
    OperationKind,
    ResultCode,
    ValidationError,
    ValidationErrorKind,
)
from neo_rbac.core.protocols.directory_client import PasswordPolicyControl, PolicyCondition
from neo_rbac.features.constraints.entities.constraint import Constraint
from neo_rbac.features.users.entities.session import PolicyWarning
from neo_rbac.features.users.entities.user import Address, User
from neo_rbac.features.users.entities.user_role import UserAdminRole, UserRole
from neo_rbac.features.users.services.user_directory_gateway import UserDirectoryGateway
from neo_rbac.infrastructure.adapters.memory_directory import InMemoryDirectory
from neo_rbac.utils.ids import is_internal_id


async def _create_users(gateway, *user_ids, **fields):
    for user_id in user_ids:
        await gateway.create(User(user_id=user_id, password="secret", **fields))


class TestLifecycle:
    """Tests for create, read, update and remove."""

    @pytest.mark.asyncio
    async def test_create_and_read(self, gateway, created_user):
        assert is_internal_id(created_user.internal_id)
        assert created_user.dn == "uid=u1,ou=People,dc=example,dc=com"

        user = await gateway.read("u1")

        assert user.internal_id == created_user.internal_id
        assert user.cn == "u1"
        assert user.sn == "u1"
        assert user.properties == {"init": ""}
        assert user.locked is False
        assert user.reset is False
        assert user.roles == []
        assert user.password is None

    @pytest.mark.asyncio
    async def test_create_with_roles_and_constraint(self, gateway, sample_role):
        await gateway.create(User(
            user_id="u2",
            ou="dev",
            constraint=Constraint(timeout=30),
            roles=[UserRole(user_id="u2", name="r1", constraint=sample_role.constraint)],
        ))

        user = await gateway.read("u2")

        assert user.ou == "dev"
        assert user.constraint.name == "u2"
        assert user.constraint.timeout == 30
        assert user.role_names() == ["r1"]
        assert user.roles[0].constraint.begin_date == "20240101"

    @pytest.mark.asyncio
    async def test_duplicate_create_fails(self, gateway, created_user):
        with pytest.raises(OperationError) as exc_info:
            await gateway.create(User(user_id="u1"))
        assert exc_info.value.kind == OperationKind.CREATE_FAILED
        assert exc_info.value.result_code == ResultCode.ENTRY_ALREADY_EXISTS

    @pytest.mark.asyncio
    async def test_create_validates_before_io(self, gateway, memory_directory):
        with pytest.raises(ValidationError) as exc_info:
            await gateway.create(User(user_id="u" * 41))
        assert exc_info.value.kind == ValidationErrorKind.TOO_LONG
        assert memory_directory.connections_opened == 0

    @pytest.mark.asyncio
    async def test_read_missing_user(self, gateway):
        with pytest.raises(NotFoundError) as exc_info:
            await gateway.read("ghost")
        assert exc_info.value.kind == NotFoundKind.USER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_partial_update_keeps_unset_fields(self, gateway):
        await gateway.create(User(user_id="u1", description="first", ou="dev"))

        await gateway.update(User(user_id="u1", cn="Alice"))
        user = await gateway.read("u1")

        assert user.cn == "Alice"
        assert user.description == "first"
        assert user.ou == "dev"

    @pytest.mark.asyncio
    async def test_update_replaces_roles_wholesale(self, gateway, sample_role):
        await gateway.create(User(user_id="u1", roles=[sample_role]))

        await gateway.update(User(user_id="u1", roles=[UserRole(user_id="u1", name="r2")]))
        assert await gateway.read_roles("u1") == ["r2"]

    @pytest.mark.asyncio
    async def test_update_with_empty_lists_keeps_stored_values(self, gateway, sample_role):
        await gateway.create(User(user_id="u1", roles=[sample_role], emails=["a@x"], phones=["555"]))

        await gateway.update(User(user_id="u1", cn="Alice", roles=[], admin_roles=[], emails=[], phones=[]))
        user = await gateway.read("u1")

        assert user.cn == "Alice"
        assert user.role_names() == ["r1"]
        assert user.emails == ["a@x"]
        assert user.phones == ["555"]

    @pytest.mark.asyncio
    async def test_partial_address_update_keeps_other_fields(self, gateway):
        await gateway.create(User(
            user_id="u1", address=Address(addresses=["1 Main St"], city="Austin", state="TX", postal_code="78701")
        ))

        await gateway.update(User(user_id="u1", address=Address(city="Dallas")))
        address = (await gateway.read("u1")).address

        assert address.city == "Dallas"
        assert address.state == "TX"
        assert address.postal_code == "78701"
        assert address.addresses == ["1 Main St"]

    @pytest.mark.asyncio
    async def test_update_without_changes_does_no_io(self, gateway, memory_directory):
        await gateway.update(User(user_id="u1"))
        assert memory_directory.connections_opened == 0

    @pytest.mark.asyncio
    async def test_update_missing_user(self, gateway):
        with pytest.raises(NotFoundError):
            await gateway.update(User(user_id="ghost", cn="x"))

    @pytest.mark.asyncio
    async def test_remove(self, gateway, created_user):
        await gateway.remove("u1")

        with pytest.raises(NotFoundError):
            await gateway.read("u1")
        with pytest.raises(NotFoundError):
            await gateway.remove("u1")


class TestProperties:
    """Tests for additive and replacing property updates."""

    @pytest.mark.asyncio
    async def test_additive_overwrites_same_name(self, gateway, created_user):
        await gateway.update_properties("u1", {"a": "0", "b": "2"})
        await gateway.update_properties("u1", {"a": "1"})

        user = await gateway.read("u1")
        assert user.properties == {"init": "", "a": "1", "b": "2"}

    @pytest.mark.asyncio
    async def test_replace(self, gateway, created_user):
        await gateway.update_properties("u1", {"a": "0", "b": "2"})
        await gateway.update_properties("u1", {"c": "3"}, replace=True)

        user = await gateway.read("u1")
        assert user.properties == {"c": "3"}

    @pytest.mark.asyncio
    async def test_empty_properties_rejected(self, gateway, created_user):
        with pytest.raises(ValidationError):
            await gateway.update_properties("u1", {})

    @pytest.mark.asyncio
    async def test_key_with_pair_separator_rejected(self, gateway, created_user, memory_directory):
        opened = memory_directory.connections_opened

        with pytest.raises(ValidationError) as exc_info:
            await gateway.update_properties("u1", {"a:b": "c"}, replace=True)

        assert exc_info.value.kind == ValidationErrorKind.UNSAFE_CHARS
        assert memory_directory.connections_opened == opened

    @pytest.mark.asyncio
    async def test_missing_user(self, gateway):
        with pytest.raises(NotFoundError):
            await gateway.update_properties("ghost", {"a": "1"})


class TestPasswordState:
    """Tests for lock, unlock, reset and policy detachment."""

    @pytest.mark.asyncio
    async def test_lock_and_unlock(self, gateway, created_user):
        await gateway.lock("u1")
        assert (await gateway.read("u1")).locked is True

        await gateway.unlock("u1")
        assert (await gateway.read("u1")).locked is False

    @pytest.mark.asyncio
    async def test_unlock_when_not_locked(self, gateway, created_user):
        await gateway.unlock("u1")

    @pytest.mark.asyncio
    async def test_lock_missing_user(self, gateway):
        with pytest.raises(NotFoundError):
            await gateway.lock("ghost")

    @pytest.mark.asyncio
    async def test_reset_sets_flag(self, gateway, created_user):
        await gateway.reset_password("u1", "temp123")
        assert (await gateway.read("u1")).reset is True

    @pytest.mark.asyncio
    async def test_reset_requires_password(self, gateway, created_user):
        with pytest.raises(ValidationError):
            await gateway.reset_password("u1", "")

    @pytest.mark.asyncio
    async def test_delete_policy(self, gateway):
        await gateway.create(User(user_id="u1", pw_policy="strict"))
        assert (await gateway.read("u1")).pw_policy == "strict"

        await gateway.delete_policy("u1")
        assert (await gateway.read("u1")).pw_policy is None


class TestAuthenticate:
    """Tests for bind plus password-policy interpretation."""

    @pytest.mark.asyncio
    async def test_success(self, gateway, created_user):
        session, outcome = await gateway.authenticate("u1", "secret")

        assert outcome.authenticated
        assert outcome.warning == PolicyWarning.NONE
        assert session.authenticated
        assert session.internal_id == created_user.internal_id
        assert session.user.user_id == "u1"

    @pytest.mark.asyncio
    async def test_wrong_password(self, gateway, created_user):
        session, outcome = await gateway.authenticate("u1", "wrong")

        assert not outcome.authenticated
        assert outcome.error == AuthErrorKind.INVALID_CREDENTIALS
        assert session.error == AuthErrorKind.INVALID_CREDENTIALS
        assert session.user is None

    @pytest.mark.asyncio
    async def test_unknown_user_is_invalid_credentials(self, gateway):
        _, outcome = await gateway.authenticate("ghost", "secret")
        assert outcome.error == AuthErrorKind.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_locked_account(self, gateway, created_user):
        await gateway.lock("u1")

        _, outcome = await gateway.authenticate("u1", "secret")

        assert outcome.error == AuthErrorKind.ACCOUNT_LOCKED

    @pytest.mark.asyncio
    async def test_reset_required(self, gateway, created_user):
        await gateway.reset_password("u1", "temp123")

        session, outcome = await gateway.authenticate("u1", "temp123")

        assert outcome.error == AuthErrorKind.PASSWORD_MUST_BE_RESET
        assert not session.authenticated

    @pytest.mark.asyncio
    async def test_reset_pending_in_realm_mode(self, memory_directory, directory_config):
        config = DirectoryConfig(user_root=directory_config.user_root, policy_root="", is_realm=True)
        gateway = UserDirectoryGateway(memory_directory, config)
        await _create_users(gateway, "u1")
        await gateway.reset_password("u1", "temp123")

        session, outcome = await gateway.authenticate("u1", "temp123")

        assert outcome.authenticated
        assert outcome.warning == PolicyWarning.RESET_PENDING
        assert session.user.reset is True

    @pytest.mark.asyncio
    async def test_expiration_warning(self, gateway, memory_directory, created_user):
        memory_directory.set_bind_policy(created_user.dn, PasswordPolicyControl(time_before_expiration=60))

        _, outcome = await gateway.authenticate("u1", "secret")

        assert outcome.authenticated
        assert outcome.warning == PolicyWarning.PASSWORD_EXPIRATION_WARNING

    @pytest.mark.asyncio
    async def test_expired_password(self, gateway, memory_directory, created_user):
        memory_directory.set_bind_policy(
            created_user.dn, PasswordPolicyControl(error=PolicyCondition.PASSWORD_EXPIRED)
        )

        _, outcome = await gateway.authenticate("u1", "secret")

        assert outcome.error == AuthErrorKind.PASSWORD_EXPIRED

    @pytest.mark.asyncio
    async def test_no_controls_from_server(self, directory_config):
        gateway = UserDirectoryGateway(InMemoryDirectory(policy_controls=False), directory_config)
        await _create_users(gateway, "u1")

        _, outcome = await gateway.authenticate("u1", "secret")

        assert outcome.authenticated
        assert outcome.warning == PolicyWarning.NO_CONTROLS_FOUND

    @pytest.mark.asyncio
    async def test_policy_disabled(self, memory_directory, directory_config):
        config = DirectoryConfig(
            user_root=directory_config.user_root, policy_root="", password_policy_enabled=False
        )
        gateway = UserDirectoryGateway(memory_directory, config)
        await _create_users(gateway, "u1")

        _, outcome = await gateway.authenticate("u1", "secret")

        assert outcome.warning == PolicyWarning.POLICY_NOT_ENABLED

    @pytest.mark.asyncio
    async def test_directory_failure_raises(self, gateway, memory_directory, created_user):
        memory_directory.inject_error("bind", ResultCode.UNAVAILABLE)

        with pytest.raises(OperationError) as exc_info:
            await gateway.authenticate("u1", "secret")
        assert exc_info.value.kind == OperationKind.READ_FAILED
        assert memory_directory.active_connections == 0

    @pytest.mark.asyncio
    async def test_empty_password_rejected(self, gateway):
        with pytest.raises(ValidationError) as exc_info:
            await gateway.authenticate("u1", "")
        assert exc_info.value.kind == ValidationErrorKind.EMPTY


class TestChangePassword:
    """Tests for self-service password changes."""

    @pytest.mark.asyncio
    async def test_change_and_login(self, gateway, created_user):
        await gateway.change_password("u1", "secret", "newsecret")

        _, outcome = await gateway.authenticate("u1", "newsecret")
        assert outcome.authenticated

    @pytest.mark.asyncio
    async def test_change_clears_reset(self, gateway, created_user):
        await gateway.reset_password("u1", "temp123")

        await gateway.change_password("u1", "temp123", "newsecret")

        assert (await gateway.read("u1")).reset is False

    @pytest.mark.asyncio
    async def test_wrong_old_password(self, gateway, created_user):
        with pytest.raises(AuthenticationError) as exc_info:
            await gateway.change_password("u1", "wrong", "newsecret")
        assert exc_info.value.kind == AuthErrorKind.INVALID_CREDENTIALS

    @pytest.mark.asyncio
    async def test_history_violation(self, gateway, memory_directory, created_user):
        memory_directory.set_password_policy(
            created_user.dn, PasswordPolicyControl(error=PolicyCondition.HISTORY_VIOLATION)
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await gateway.change_password("u1", "secret", "secret")
        assert exc_info.value.kind == AuthErrorKind.PASSWORD_REUSED

    @pytest.mark.asyncio
    async def test_insufficient_access(self, gateway, memory_directory, created_user):
        memory_directory.inject_error("modify", ResultCode.INSUFFICIENT_ACCESS_RIGHTS)

        with pytest.raises(AuthenticationError) as exc_info:
            await gateway.change_password("u1", "secret", "newsecret")
        assert exc_info.value.kind == AuthErrorKind.PASSWORD_CHANGE_NOT_ALLOWED

    @pytest.mark.asyncio
    async def test_admin_reset_ignores_password_policy(self, gateway, memory_directory, created_user):
        memory_directory.set_password_policy(
            created_user.dn, PasswordPolicyControl(error=PolicyCondition.TOO_SHORT)
        )
        await gateway.reset_password("u1", "x")


class TestSearches:
    """Tests for user searches."""

    @pytest.mark.asyncio
    async def test_find_all_and_by_prefix(self, gateway):
        await _create_users(gateway, "alice", "alan", "bob")

        assert [u.user_id for u in await gateway.find()] == ["alice", "alan", "bob"]
        assert [u.user_id for u in await gateway.find(user_id="al")] == ["alice", "alan"]

    @pytest.mark.asyncio
    async def test_find_by_internal_id(self, gateway):
        await _create_users(gateway, "alice", "bob")
        bob = await gateway.read("bob")

        found = await gateway.find(internal_id=bob.internal_id)

        assert [u.user_id for u in found] == ["bob"]

    @pytest.mark.asyncio
    async def test_find_ids_respects_limit(self, gateway):
        await _create_users(gateway, "u1", "u2", "u3")

        assert await gateway.find_ids("u") == ["u1", "u2", "u3"]
        assert await gateway.find_ids("u", limit=2) == ["u1", "u2"]

    @pytest.mark.asyncio
    async def test_unsafe_filter_input_rejected(self, gateway, memory_directory):
        with pytest.raises(ValidationError) as exc_info:
            await gateway.find_ids("u*)(uid=*")
        assert exc_info.value.kind == ValidationErrorKind.UNSAFE_CHARS
        assert memory_directory.connections_opened == 0

    @pytest.mark.asyncio
    async def test_org_unit_limited(self, gateway):
        await _create_users(gateway, "u1", "u2", "u3", ou="dev")
        await _create_users(gateway, "u4", ou="ops")

        assert len(await gateway.users_in_org_unit("dev")) == 3
        assert len(await gateway.users_in_org_unit("dev", limited=True)) == 2

    @pytest.mark.asyncio
    async def test_search_failure(self, gateway, memory_directory):
        memory_directory.inject_error("search", ResultCode.BUSY)

        with pytest.raises(OperationError) as exc_info:
            await gateway.find()
        assert exc_info.value.kind == OperationKind.SEARCH_FAILED
        assert memory_directory.active_connections == 0

    @pytest.mark.asyncio
    async def test_users_assigned(self, gateway):
        await _create_users(gateway, "u1", "u2")
        await gateway.assign_role(UserRole(user_id="u2", name="r1"))
        await gateway.assign_admin_role(UserAdminRole(user_id="u1", name="ar1"))

        assert [u.user_id for u in await gateway.users_assigned("R1")] == ["u2"]
        assert [u.user_id for u in await gateway.users_assigned_admin("ar1")] == ["u1"]

    @pytest.mark.asyncio
    async def test_users_authorized_includes_descendants(self, gateway, mock_role_hierarchy):
        mock_role_hierarchy.descendants.return_value = {"r2"}
        await _create_users(gateway, "u1", "u2", "u3")
        await gateway.assign_role(UserRole(user_id="u1", name="r1"))
        await gateway.assign_role(UserRole(user_id="u2", name="r2"))

        assert await gateway.users_authorized("r1") == ["u1", "u2"]
        mock_role_hierarchy.descendants.assert_awaited_once_with("r1")

    @pytest.mark.asyncio
    async def test_users_authorized_without_hierarchy(self, memory_directory, directory_config):
        gateway = UserDirectoryGateway(memory_directory, directory_config)
        await _create_users(gateway, "u1", "u2")
        await gateway.assign_role(UserRole(user_id="u1", name="r1"))
        await gateway.assign_role(UserRole(user_id="u2", name="r2"))

        assert await gateway.users_authorized("r1") == ["u1"]

    @pytest.mark.asyncio
    async def test_find_ids_by_roles(self, gateway):
        await _create_users(gateway, "u2", "u1", "u3")
        await gateway.assign_role(UserRole(user_id="u1", name="r1"))
        await gateway.assign_role(UserRole(user_id="u2", name="r2"))
        await gateway.assign_role(UserRole(user_id="u2", name="r1"))

        assert await gateway.find_ids_by_roles(["r2", "r1"]) == ["u1", "u2"]
        assert await gateway.find_ids_by_roles([]) == []

    @pytest.mark.asyncio
    async def test_find_ids_by_roles_searches_in_batches(self, memory_directory, directory_config):
        gateway = UserDirectoryGateway(memory_directory, replace(directory_config, batch_size=2))
        await _create_users(gateway, "u1", "u2")
        await gateway.assign_role(UserRole(user_id="u1", name="r1"))
        await gateway.assign_role(UserRole(user_id="u2", name="r3"))
        opened = memory_directory.connections_opened

        assert await gateway.find_ids_by_roles(["r1", "r2", "r3"]) == ["u1", "u2"]
        assert memory_directory.connections_opened == opened + 2


class TestRoleGrants:
    """Tests for role grant operations."""

    @pytest.mark.asyncio
    async def test_assign_and_read(self, gateway, created_user, sample_role):
        await gateway.assign_role(sample_role)

        roles = await gateway.read_user_roles("u1")

        assert len(roles) == 1
        assert roles[0].name == "r1"
        assert roles[0].constraint.begin_date == "20240101"
        assert roles[0].constraint.is_end_date_unconstrained
        assert roles[0] == UserRole(user_id="u1", name="r1", constraint=roles[0].constraint)
        assert await gateway.read_roles("u1") == ["r1"]

    @pytest.mark.asyncio
    async def test_second_grant_is_conflict(self, gateway, created_user, sample_role):
        await gateway.assign_role(sample_role)

        with pytest.raises(ConflictError) as exc_info:
            await gateway.assign_role(UserRole(user_id="u1", name="r1"))
        assert exc_info.value.kind == ConflictKind.ASSIGNMENT_EXISTS
        assert await gateway.read_roles("u1") == ["r1"]

    @pytest.mark.asyncio
    async def test_assign_to_missing_user(self, gateway, sample_role):
        with pytest.raises(NotFoundError) as exc_info:
            await gateway.assign_role(sample_role)
        assert exc_info.value.kind == NotFoundKind.USER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_assign_rejects_bad_constraint(self, gateway, created_user):
        with pytest.raises(ValidationError):
            await gateway.assign_role(UserRole(user_id="u1", name="r1", constraint=Constraint(day_mask="9")))

    @pytest.mark.asyncio
    async def test_deassign(self, gateway, created_user, sample_role):
        await gateway.assign_role(sample_role)

        removed = await gateway.deassign_role("u1", "R1")

        assert removed.name == "r1"
        assert await gateway.read_user_roles("u1") == []
        assert await gateway.read_roles("u1") == []

    @pytest.mark.asyncio
    async def test_deassign_unassigned(self, gateway, created_user):
        with pytest.raises(NotFoundError) as exc_info:
            await gateway.deassign_role("u1", "r1")
        assert exc_info.value.kind == NotFoundKind.ASSIGNMENT_NOT_FOUND

    @pytest.mark.asyncio
    async def test_admin_role_round_trip(self, gateway, created_user):
        role = UserAdminRole(user_id="u1", name="ar1", perm_ous=["p1"], user_ous=["ou1"],
                             begin_range="r1", end_range="r9", begin_inclusive=False)
        await gateway.assign_admin_role(role)

        stored = await gateway.read_admin_roles("u1")
        assert stored[0].perm_ous == ["p1"]
        assert stored[0].begin_inclusive is False

        await gateway.deassign_admin_role("u1", "ar1")
        assert await gateway.read_admin_roles("u1") == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("begin,end", [("a:b", "c"), ("a", "c:d")])
    async def test_admin_role_range_rejects_pair_separator(self, gateway, created_user, begin, end):
        with pytest.raises(ValidationError) as exc_info:
            await gateway.assign_admin_role(UserAdminRole(user_id="u1", name="ar1", begin_range=begin, end_range=end))

        assert exc_info.value.kind == ValidationErrorKind.UNSAFE_CHARS
        assert await gateway.read_admin_roles("u1") == []

    @pytest.mark.asyncio
    async def test_connections_released(self, gateway, memory_directory, created_user):
        with pytest.raises(NotFoundError):
            await gateway.deassign_role("u1", "r1")
        assert memory_directory.active_connections == 0


def test_gateway_requires_pool(directory_config):
    with pytest.raises(ValueError):
        UserDirectoryGateway(None, directory_config)


@pytest.mark.asyncio
async def test_gateway_over_empty_directory(directory_config):
    directory = InMemoryDirectory()
    assert len(directory) == 0

    gateway = UserDirectoryGateway(directory, directory_config)

    assert gateway.pool is directory
    assert await gateway.find() == []
