"""Protocol for configuration property lookup."""

from abc import abstractmethod
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class ConfigProvider(Protocol):
    """Protocol for property lookup (schema roots, object classes, flags)."""

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        """Get a property value, or None when absent."""
        ...
