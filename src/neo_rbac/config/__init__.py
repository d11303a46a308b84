"""Configuration module for neo-rbac."""

from .constants import (
    Attributes,
    ObjectClasses,
    Sentinels,
    FieldLimits,
    Delimiters,
    SearchScope,
    ConnectionType,
    AUTHN_ATTRS,
    DEFAULT_ATTRS,
)
from .settings import (
    ConfigKeys,
    DirectorySettings,
    SettingsConfigProvider,
    DirectoryConfig,
)
from .logging_config import (
    setup_logging,
    get_logger,
    LogVerbosity,
    LogFormat,
    LoggingConfig,
)

__all__ = [
    "Attributes",
    "ObjectClasses",
    "Sentinels",
    "FieldLimits",
    "Delimiters",
    "SearchScope",
    "ConnectionType",
    "AUTHN_ATTRS",
    "DEFAULT_ATTRS",
    "ConfigKeys",
    "DirectorySettings",
    "SettingsConfigProvider",
    "DirectoryConfig",
    "setup_logging",
    "get_logger",
    "LogVerbosity",
    "LogFormat",
    "LoggingConfig",
]
