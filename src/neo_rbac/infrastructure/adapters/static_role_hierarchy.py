"""Role hierarchy backed by a static parent -> children mapping."""

import logging
from typing import Dict, Iterable, Mapping, Optional, Set

logger = logging.getLogger(__name__)


class StaticRoleHierarchy:
    """RoleHierarchy over an in-process graph of junior roles.

    Names compare case-insensitively; descendants are returned in the case
    they were declared with.
    """

    def __init__(self, juniors: Optional[Mapping[str, Iterable[str]]] = None):
        self._juniors: Dict[str, Set[str]] = {}
        for parent, children in (juniors or {}).items():
            for child in children:
                self.add_inheritance(parent, child)

    def add_inheritance(self, parent: str, child: str) -> None:
        self._juniors.setdefault(parent.lower(), set()).add(child)

    async def descendants(self, role_name: str) -> Set[str]:
        """All roles reachable below role_name, excluding the role itself."""
        found: Set[str] = set()
        seen = {role_name.lower()}
        pending = [role_name.lower()]
        while pending:
            for child in self._juniors.get(pending.pop(), ()):
                if child.lower() in seen:
                    continue
                seen.add(child.lower())
                found.add(child)
                pending.append(child.lower())
        logger.debug(f"Role {role_name} has {len(found)} descendants")
        return found
