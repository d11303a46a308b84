"""Protocol interfaces for the directory backing store.

Defines the contracts the user directory gateway consumes: a connection pool
that hands out directory clients, the client operations themselves, and the
value types exchanged with them (records, modifications, password-policy
controls).
"""

from abc import abstractmethod
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import (
    AsyncContextManager, AsyncIterator, Dict, List, Mapping, Optional, Protocol,
    Sequence, Tuple, runtime_checkable
)

from ...config.constants import ConnectionType, SearchScope


class PolicyCondition(IntEnum):
    """Password-policy conditions reported by the directory.

    Values are the draft ppolicy response error numbers offset by 100 so
    that 0 stays free to mean "no condition".
    """

    GOOD = 0
    PASSWORD_EXPIRED = 100
    ACCOUNT_LOCKED = 101
    PASSWORD_RESET_REQUIRED = 102
    MODIFICATION_NOT_ALLOWED = 103
    MUST_SUPPLY_OLD_PASSWORD = 104
    INSUFFICIENT_QUALITY = 105
    TOO_SHORT = 106
    TOO_YOUNG = 107
    HISTORY_VIOLATION = 108

    @classmethod
    def from_ppolicy_error(cls, error: int) -> int:
        """Translate a raw ppolicy response error (0-8) to a condition code."""
        return error + 100


@dataclass(frozen=True)
class PasswordPolicyControl:
    """Password-policy response control returned with a bind or modify.

    ``error`` is a condition code (see PolicyCondition) or None/0 when the
    server reported no error; unknown codes are kept as-is.
    """

    error: Optional[int] = None
    time_before_expiration: Optional[int] = None
    grace_logins_remaining: Optional[int] = None

    @property
    def has_error(self) -> bool:
        return bool(self.error)


class ModOp(str, Enum):
    """Modification operations."""

    ADD = "add"
    REPLACE = "replace"
    DELETE = "delete"


@dataclass(frozen=True)
class Modification:
    """One attribute change within an atomic modify request.

    A DELETE with no values removes the whole attribute; a REPLACE with no
    values removes it as well.
    """

    op: ModOp
    attribute: str
    values: Tuple[str, ...] = ()

    @classmethod
    def add(cls, attribute: str, *values: str) -> "Modification":
        return cls(ModOp.ADD, attribute, tuple(values))

    @classmethod
    def replace(cls, attribute: str, *values: str) -> "Modification":
        return cls(ModOp.REPLACE, attribute, tuple(values))

    @classmethod
    def delete(cls, attribute: str, *values: str) -> "Modification":
        return cls(ModOp.DELETE, attribute, tuple(values))


@dataclass
class Record:
    """One directory entry: its key plus multi-valued attributes.

    Attribute lookups are case-insensitive, as in the directory itself.
    """

    dn: str
    attributes: Dict[str, List[str]] = field(default_factory=dict)

    def _lookup(self, name: str) -> Optional[List[str]]:
        lowered = name.lower()
        for key, values in self.attributes.items():
            if key.lower() == lowered:
                return values
        return None

    def get(self, name: str) -> Optional[str]:
        """First value of an attribute, or None."""
        values = self._lookup(name)
        return values[0] if values else None

    def get_all(self, name: str) -> List[str]:
        """All values of an attribute in stored order."""
        return list(self._lookup(name) or [])

    def has(self, name: str) -> bool:
        return bool(self._lookup(name))


@dataclass(frozen=True)
class BindResult:
    """Successful bind outcome, with the policy control if one was returned."""

    dn: str
    policy: Optional[PasswordPolicyControl] = None


@runtime_checkable
class DirectoryClient(Protocol):
    """Protocol for directory protocol operations on one connection.

    Every failure is raised as DirectoryError carrying the protocol result
    code and, where the server attached one, the password-policy control.
    """

    @abstractmethod
    async def read(self, dn: str, attributes: Sequence[str]) -> Record:
        """Read one entry; raises NO_SUCH_OBJECT when absent."""
        ...

    @abstractmethod
    def search(
        self,
        base: str,
        scope: SearchScope,
        filter: str,
        attributes: Sequence[str],
        size_limit: int = 0
    ) -> AsyncIterator[Record]:
        """Search entries below base; size_limit 0 means unlimited."""
        ...

    @abstractmethod
    async def add(self, dn: str, attributes: Mapping[str, Sequence[str]]) -> None:
        """Add a new entry."""
        ...

    @abstractmethod
    async def modify(self, dn: str, changes: Sequence[Modification]) -> None:
        """Apply all changes atomically."""
        ...

    @abstractmethod
    async def delete(self, dn: str) -> None:
        """Delete an entry."""
        ...

    @abstractmethod
    async def bind(self, dn: str, secret: str) -> BindResult:
        """Bind as dn; raises INVALID_CREDENTIALS on a rejected secret."""
        ...


@runtime_checkable
class DirectoryPool(Protocol):
    """Protocol for the externally-owned connection pool."""

    @abstractmethod
    def get_connection(self, conn_type: ConnectionType = ConnectionType.ADMIN) -> AsyncContextManager[DirectoryClient]:
        """Acquire a connection for the duration of the context."""
        ...
