"""
Directory configuration for neo-rbac.

Settings are loaded once at startup through Pydantic settings (environment
variables prefixed with NEO_RBAC_ or a .env file), exposed to the rest of the
library through the ConfigProvider protocol, and frozen into a DirectoryConfig
that is injected into the gateway.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..core.protocols.config_provider import ConfigProvider
from .constants import FieldLimits

logger = logging.getLogger(__name__)


class ConfigKeys:
    """Property names understood by DirectoryConfig.from_provider."""

    USER_ROOT = "user.root"
    POLICY_ROOT = "policy.root"
    USER_OBJECT_CLASS = "user.objectclass"
    FIELD_LENGTH = "field.length"
    PASSWORD_POLICY_ENABLED = "password.policy"
    IS_REALM = "realm"
    BATCH_SIZE = "batch.size"
    OU_SEARCH_LIMIT = "ou.search.limit"


class DirectorySettings(BaseSettings):
    """Environment-backed directory settings."""

    model_config = SettingsConfigDict(
        env_prefix="NEO_RBAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    user_root: str = Field(default="ou=People,dc=example,dc=com")
    policy_root: str = Field(default="ou=Policies,dc=example,dc=com")
    user_object_class: str = Field(default="inetOrgPerson")
    field_length: int = Field(default=FieldLimits.DEFAULT_FIELD_LEN, gt=0)
    password_policy_enabled: bool = Field(default=True)
    is_realm: bool = Field(default=False)
    batch_size: int = Field(default=100, gt=0)
    ou_search_limit: int = Field(default=10, ge=0)


class SettingsConfigProvider:
    """ConfigProvider backed by DirectorySettings."""

    _KEY_MAP = {
        ConfigKeys.USER_ROOT: "user_root",
        ConfigKeys.POLICY_ROOT: "policy_root",
        ConfigKeys.USER_OBJECT_CLASS: "user_object_class",
        ConfigKeys.FIELD_LENGTH: "field_length",
        ConfigKeys.PASSWORD_POLICY_ENABLED: "password_policy_enabled",
        ConfigKeys.IS_REALM: "is_realm",
        ConfigKeys.BATCH_SIZE: "batch_size",
        ConfigKeys.OU_SEARCH_LIMIT: "ou_search_limit",
    }

    def __init__(self, settings: Optional[DirectorySettings] = None):
        self.settings = settings or DirectorySettings()

    def get(self, name: str) -> Optional[str]:
        """Get a property value as a string, or None when unknown."""
        attr = self._KEY_MAP.get(name)
        if attr is None:
            return None
        value = getattr(self.settings, attr)
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)


def _get_bool(provider: ConfigProvider, key: str, default: bool) -> bool:
    value = provider.get(key)
    if value is None:
        return default
    return value.strip().lower() in ("true", "1", "yes", "on")


def _get_int(provider: ConfigProvider, key: str, default: int) -> int:
    value = provider.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        logger.warning(f"Invalid integer for config key {key}: {value!r}, using {default}")
        return default


@dataclass(frozen=True)
class DirectoryConfig:
    """Immutable configuration injected into the user directory gateway."""

    user_root: str
    policy_root: str
    user_object_class: str = "inetOrgPerson"
    field_length: int = FieldLimits.DEFAULT_FIELD_LEN
    password_policy_enabled: bool = True
    is_realm: bool = False
    batch_size: int = 100
    ou_search_limit: int = 10

    @classmethod
    def from_provider(cls, provider: ConfigProvider) -> "DirectoryConfig":
        """Build configuration from a config provider."""
        user_root = provider.get(ConfigKeys.USER_ROOT)
        policy_root = provider.get(ConfigKeys.POLICY_ROOT)
        if not user_root:
            raise ValueError(f"Missing required config key: {ConfigKeys.USER_ROOT}")

        return cls(
            user_root=user_root,
            policy_root=policy_root or "",
            user_object_class=provider.get(ConfigKeys.USER_OBJECT_CLASS) or "inetOrgPerson",
            field_length=_get_int(provider, ConfigKeys.FIELD_LENGTH, FieldLimits.DEFAULT_FIELD_LEN),
            password_policy_enabled=_get_bool(provider, ConfigKeys.PASSWORD_POLICY_ENABLED, True),
            is_realm=_get_bool(provider, ConfigKeys.IS_REALM, False),
            batch_size=_get_int(provider, ConfigKeys.BATCH_SIZE, 100),
            ou_search_limit=_get_int(provider, ConfigKeys.OU_SEARCH_LIMIT, 10),
        )

    @classmethod
    def from_settings(cls, settings: Optional[DirectorySettings] = None) -> "DirectoryConfig":
        """Build configuration from environment settings."""
        return cls.from_provider(SettingsConfigProvider(settings))
