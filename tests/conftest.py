"""Pytest configuration and fixtures for neo-rbac tests."""

import pytest
import pytest_asyncio
from unittest.mock import AsyncMock

from neo_rbac.config.settings import DirectoryConfig
from neo_rbac.core.protocols.role_hierarchy import RoleHierarchy
from neo_rbac.features.constraints.entities.constraint import Constraint
from neo_rbac.features.constraints.validators.field_validator import FieldValidator
from neo_rbac.features.users.entities.user import User
from neo_rbac.features.users.entities.user_role import UserRole
from neo_rbac.features.users.services.user_directory_gateway import UserDirectoryGateway
from neo_rbac.infrastructure.adapters.memory_directory import InMemoryDirectory


USER_ROOT = "ou=People,dc=example,dc=com"
POLICY_ROOT = "ou=Policies,dc=example,dc=com"


@pytest.fixture
def directory_config():
    """Directory configuration used by most tests."""
    return DirectoryConfig(
        user_root=USER_ROOT,
        policy_root=POLICY_ROOT,
        ou_search_limit=2,
    )


@pytest.fixture
def validator():
    return FieldValidator()


@pytest.fixture
def memory_directory():
    """Empty in-memory directory with password-policy controls enabled."""
    return InMemoryDirectory()


@pytest.fixture
def mock_role_hierarchy():
    """Mock role hierarchy returning no descendants."""
    hierarchy = AsyncMock(spec=RoleHierarchy)
    hierarchy.descendants.return_value = set()
    return hierarchy


@pytest.fixture
def gateway(memory_directory, directory_config, mock_role_hierarchy):
    """Gateway over the in-memory directory."""
    return UserDirectoryGateway(memory_directory, directory_config, mock_role_hierarchy)


@pytest.fixture
def mock_directory_client():
    """Mock directory client for engine-level tests."""
    client = AsyncMock()
    client.read = AsyncMock()
    client.modify = AsyncMock()
    return client


@pytest.fixture
def sample_constraint():
    """Role constraint active from 2024-01-01 with no end date."""
    return Constraint(begin_date="20240101", end_date="none")


@pytest.fixture
def sample_role(sample_constraint):
    return UserRole(user_id="u1", name="r1", constraint=sample_constraint)


@pytest_asyncio.fixture
async def created_user(gateway):
    """User u1 with a password and no password policy."""
    return await gateway.create(User(user_id="u1", password="secret"))
