"""In-memory directory adapter for neo-rbac.

A process-local DirectoryPool / DirectoryClient pair with directory
semantics: value uniqueness per attribute, delete by literal value, atomic
modification lists, one-level and subtree searches with a filter evaluator,
size limits, and password-policy controls on bind. Policy controls can be
scripted per entry and one-shot failures injected per operation.
"""

import asyncio
import copy
import logging
import re
from collections import OrderedDict
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ...config.constants import Attributes, ConnectionType, SearchScope, Sentinels
from ...core.exceptions import DirectoryError, ResultCode
from ...core.protocols.directory_client import (
    BindResult,
    ModOp,
    Modification,
    PasswordPolicyControl,
    PolicyCondition,
    Record,
)

logger = logging.getLogger(__name__)

Attrs = Dict[str, List[str]]
Predicate = Callable[[Attrs], bool]

_HEX_ESCAPE = re.compile(r"\\([0-9a-fA-F]{2})")


def _normalize_dn(dn: str) -> str:
    return ",".join(part.strip() for part in dn.lower().split(","))


def _find_key(attrs: Mapping[str, List[str]], name: str) -> Optional[str]:
    lowered = name.lower()
    for key in attrs:
        if key.lower() == lowered:
            return key
    return None


def _index_of(values: List[str], value: str) -> int:
    lowered = value.lower()
    for index, existing in enumerate(values):
        if existing.lower() == lowered:
            return index
    return -1


# Filters

def _unescape(value: str) -> str:
    return _HEX_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), value)


def _values(attrs: Attrs, name: str) -> List[str]:
    key = _find_key(attrs, name)
    return attrs[key] if key is not None else []


def _substring_match(value: str, parts: List[str]) -> bool:
    value = value.lower()
    initial, *middle, final = [part.lower() for part in parts]
    if not value.startswith(initial):
        return False
    pos = len(initial)
    for part in middle:
        found = value.find(part, pos)
        if found < 0:
            return False
        pos = found + len(part)
    return len(value) - pos >= len(final) and value.endswith(final)


class FilterParser:
    """Parse a string search filter into a predicate over entry attributes.

    Supports ``&``, ``|``, ``!``, equality, presence (``attr=*``) and
    substring (``attr=ab*c*``) items. Values may carry ``\\XX`` hex escapes;
    matching ignores case.
    """

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def parse(self) -> Predicate:
        predicate = self._filter()
        if self.pos != len(self.text):
            self._error("unexpected trailing text")
        return predicate

    def _error(self, reason: str):
        raise DirectoryError(ResultCode.PROTOCOL_ERROR, f"bad search filter [{self.text}]: {reason} at {self.pos}")

    def _expect(self, ch: str) -> None:
        if self.pos >= len(self.text) or self.text[self.pos] != ch:
            self._error(f"expected '{ch}'")
        self.pos += 1

    def _filter(self) -> Predicate:
        self._expect("(")
        op = self.text[self.pos] if self.pos < len(self.text) else ""
        if op == "&":
            self.pos += 1
            items = self._list()
            predicate = lambda attrs: all(item(attrs) for item in items)
        elif op == "|":
            self.pos += 1
            items = self._list()
            predicate = lambda attrs: any(item(attrs) for item in items)
        elif op == "!":
            self.pos += 1
            inner = self._filter()
            predicate = lambda attrs: not inner(attrs)
        else:
            predicate = self._item()
        self._expect(")")
        return predicate

    def _list(self) -> List[Predicate]:
        items = []
        while self.pos < len(self.text) and self.text[self.pos] == "(":
            items.append(self._filter())
        return items

    def _item(self) -> Predicate:
        end = self.text.find(")", self.pos)
        if end < 0:
            self._error("unterminated item")
        attr, sep, raw = self.text[self.pos:end].partition("=")
        if not sep or not attr:
            self._error("item is not attr=value")
        self.pos = end

        if raw == "*":
            return lambda attrs: bool(_values(attrs, attr))
        if "*" in raw:
            parts = [_unescape(part) for part in raw.split("*")]
            return lambda attrs: any(_substring_match(v, parts) for v in _values(attrs, attr))
        value = _unescape(raw).lower()
        return lambda attrs: any(v.lower() == value for v in _values(attrs, attr))


# Entries and clients

@dataclass
class MemoryEntry:
    """Directory entry with its scripted password-policy behaviour."""

    dn: str
    attributes: Attrs = field(default_factory=dict)
    bind_policy: Optional[PasswordPolicyControl] = None
    password_policy: Optional[PasswordPolicyControl] = None

    def to_record(self, attributes: Sequence[str] = ()) -> Record:
        if not attributes:
            return Record(self.dn, copy.deepcopy(self.attributes))
        selected = {}
        for name in attributes:
            key = _find_key(self.attributes, name)
            if key is not None:
                selected[key] = list(self.attributes[key])
        return Record(self.dn, selected)


class InMemoryDirectoryClient:
    """One connection to an InMemoryDirectory."""

    def __init__(self, directory: "InMemoryDirectory", conn_type: ConnectionType = ConnectionType.ADMIN):
        self.directory = directory
        self.conn_type = conn_type
        self.bound_dn: Optional[str] = None

    def _entry(self, dn: str) -> MemoryEntry:
        entry = self.directory._entries.get(_normalize_dn(dn))
        if entry is None:
            raise DirectoryError(ResultCode.NO_SUCH_OBJECT, f"no such object [{dn}]")
        return entry

    async def read(self, dn: str, attributes: Sequence[str]) -> Record:
        self.directory._raise_injected("read")
        async with self.directory._lock:
            return self._entry(dn).to_record(attributes)

    async def search(
        self,
        base: str,
        scope: SearchScope,
        filter: str,
        attributes: Sequence[str],
        size_limit: int = 0
    ) -> AsyncIterator[Record]:
        self.directory._raise_injected("search")
        predicate = FilterParser(filter).parse()
        base_key = _normalize_dn(base)

        async with self.directory._lock:
            matches = [
                entry.to_record(attributes)
                for key, entry in self.directory._entries.items()
                if self._in_scope(key, base_key, scope) and predicate(entry.attributes)
            ]

        for count, record in enumerate(matches):
            if size_limit and count >= size_limit:
                raise DirectoryError(
                    ResultCode.SIZE_LIMIT_EXCEEDED,
                    f"size limit {size_limit} exceeded ({len(matches)} matches)"
                )
            yield record

    @staticmethod
    def _in_scope(key: str, base_key: str, scope: SearchScope) -> bool:
        if scope == SearchScope.BASE:
            return key == base_key
        if scope == SearchScope.ONE:
            parent = key.split(",", 1)[1] if "," in key else ""
            return parent == base_key
        return key == base_key or key.endswith("," + base_key)

    async def add(self, dn: str, attributes: Mapping[str, Sequence[str]]) -> None:
        self.directory._raise_injected("add")
        key = _normalize_dn(dn)
        async with self.directory._lock:
            if key in self.directory._entries:
                raise DirectoryError(ResultCode.ENTRY_ALREADY_EXISTS, f"entry already exists [{dn}]")
            attrs: Attrs = {}
            for name, values in attributes.items():
                stored = []
                for value in values:
                    if _index_of(stored, value) >= 0:
                        raise DirectoryError(
                            ResultCode.ATTRIBUTE_OR_VALUE_EXISTS,
                            f"duplicate value [{value}] for attribute {name}"
                        )
                    stored.append(value)
                if stored:
                    attrs[name] = stored
            self.directory._entries[key] = MemoryEntry(dn, attrs)
        logger.debug(f"Added entry {dn}")

    async def modify(self, dn: str, changes: Sequence[Modification]) -> None:
        self.directory._raise_injected("modify")
        async with self.directory._lock:
            entry = self._entry(dn)
            password_change = any(
                change.attribute.lower() == Attributes.PASSWORD.lower() for change in changes
            )
            user_password_change = password_change and self.conn_type == ConnectionType.USER
            if user_password_change and entry.password_policy is not None:
                if entry.password_policy.has_error:
                    raise DirectoryError(
                        ResultCode.CONSTRAINT_VIOLATION,
                        f"password policy rejected change of [{dn}]",
                        policy=entry.password_policy
                    )

            # Applied to a copy so a failing change leaves the entry untouched
            attrs = copy.deepcopy(entry.attributes)
            for change in changes:
                self._apply(attrs, change)

            if user_password_change:
                key = _find_key(attrs, Attributes.RESET_FLAG)
                if key is not None:
                    del attrs[key]
            entry.attributes = attrs
        logger.debug(f"Modified entry {dn} ({len(changes)} changes)")

    @staticmethod
    def _apply(attrs: Attrs, change: Modification) -> None:
        key = _find_key(attrs, change.attribute)

        if change.op == ModOp.ADD:
            stored = attrs.setdefault(key or change.attribute, [])
            for value in change.values:
                if _index_of(stored, value) >= 0:
                    raise DirectoryError(
                        ResultCode.ATTRIBUTE_OR_VALUE_EXISTS,
                        f"value [{value}] already present on attribute {change.attribute}"
                    )
                stored.append(value)
            if not stored:
                del attrs[key or change.attribute]

        elif change.op == ModOp.DELETE:
            if key is None:
                raise DirectoryError(ResultCode.NO_SUCH_ATTRIBUTE, f"no such attribute {change.attribute}")
            if not change.values:
                del attrs[key]
                return
            for value in change.values:
                index = _index_of(attrs[key], value)
                if index < 0:
                    raise DirectoryError(
                        ResultCode.NO_SUCH_ATTRIBUTE,
                        f"value [{value}] not present on attribute {change.attribute}"
                    )
                attrs[key].pop(index)
            if not attrs[key]:
                del attrs[key]

        elif change.op == ModOp.REPLACE:
            if key is not None:
                del attrs[key]
            values: List[str] = []
            for value in change.values:
                if _index_of(values, value) < 0:
                    values.append(value)
            if values:
                attrs[change.attribute] = values

    async def delete(self, dn: str) -> None:
        self.directory._raise_injected("delete")
        async with self.directory._lock:
            self._entry(dn)
            del self.directory._entries[_normalize_dn(dn)]
        logger.debug(f"Deleted entry {dn}")

    async def bind(self, dn: str, secret: str) -> BindResult:
        """Bind as an entry, applying its lock and reset state.

        A locked entry or a scripted blocking control rejects the bind with
        invalid credentials and the control attached; a pending reset binds
        successfully and reports the reset condition.
        """
        self.directory._raise_injected("bind")
        async with self.directory._lock:
            entry = self.directory._entries.get(_normalize_dn(dn))
            if entry is None:
                raise DirectoryError(ResultCode.INVALID_CREDENTIALS, f"invalid credentials for [{dn}]")

            control = self._policy_state(entry)
            if not secret or secret not in _values(entry.attributes, Attributes.PASSWORD):
                raise DirectoryError(ResultCode.INVALID_CREDENTIALS, f"invalid credentials for [{dn}]", policy=control)
            if control is not None and control.has_error and control.error != PolicyCondition.PASSWORD_RESET_REQUIRED:
                raise DirectoryError(ResultCode.INVALID_CREDENTIALS, f"bind rejected by policy for [{dn}]", policy=control)

        self.bound_dn = entry.dn
        return BindResult(entry.dn, control)

    def _policy_state(self, entry: MemoryEntry) -> Optional[PasswordPolicyControl]:
        if entry.bind_policy is not None:
            return entry.bind_policy
        if not self.directory.policy_controls:
            return None
        if _values(entry.attributes, Attributes.LOCKED_TIME)[:1] == [Sentinels.LOCK_VALUE]:
            return PasswordPolicyControl(error=PolicyCondition.ACCOUNT_LOCKED)
        reset = _values(entry.attributes, Attributes.RESET_FLAG)
        if reset and reset[0].upper() == Sentinels.RESET_VALUE:
            return PasswordPolicyControl(error=PolicyCondition.PASSWORD_RESET_REQUIRED)
        return PasswordPolicyControl()


class InMemoryDirectory:
    """DirectoryPool over a process-local entry store.

    With ``policy_controls`` disabled no password-policy control is ever
    returned, as with a server that has no policy overlay.
    """

    def __init__(self, policy_controls: bool = True):
        self.policy_controls = policy_controls
        self._entries: "OrderedDict[str, MemoryEntry]" = OrderedDict()
        self._lock = asyncio.Lock()
        self._injected: Dict[str, Tuple[int, Optional[PasswordPolicyControl]]] = {}
        self.active_connections = 0
        self.connections_opened = 0

    @asynccontextmanager
    async def get_connection(self, conn_type: ConnectionType = ConnectionType.ADMIN):
        """Hand out a client; the connection count is restored on every exit."""
        self.active_connections += 1
        self.connections_opened += 1
        try:
            yield InMemoryDirectoryClient(self, conn_type)
        finally:
            self.active_connections -= 1

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, dn: str) -> Optional[MemoryEntry]:
        return self._entries.get(_normalize_dn(dn))

    def set_bind_policy(self, dn: str, control: Optional[PasswordPolicyControl]) -> None:
        """Report ``control`` on every bind as dn, overriding lock/reset state."""
        self._require(dn).bind_policy = control

    def set_password_policy(self, dn: str, control: Optional[PasswordPolicyControl]) -> None:
        """Reject password modifications on dn with ``control``."""
        self._require(dn).password_policy = control

    def inject_error(
        self,
        operation: str,
        result_code: int,
        policy: Optional[PasswordPolicyControl] = None
    ) -> None:
        """Fail the next call of ``operation`` (read, search, add, modify, delete, bind)."""
        self._injected[operation] = (result_code, policy)

    def _require(self, dn: str) -> MemoryEntry:
        entry = self.entry(dn)
        if entry is None:
            raise KeyError(dn)
        return entry

    def _raise_injected(self, operation: str) -> None:
        injected = self._injected.pop(operation, None)
        if injected is not None:
            result_code, policy = injected
            logger.debug(f"Raising injected result code {result_code} for {operation}")
            raise DirectoryError(result_code, f"injected failure for {operation}", policy=policy)
