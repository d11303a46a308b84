"""Protocol for role-hierarchy descendant expansion."""

from abc import abstractmethod
from typing import Protocol, Set, runtime_checkable


@runtime_checkable
class RoleHierarchy(Protocol):
    """Protocol for expanding a role into its junior roles."""

    @abstractmethod
    async def descendants(self, role_name: str) -> Set[str]:
        """Get the names of every role below role_name in the hierarchy."""
        ...
