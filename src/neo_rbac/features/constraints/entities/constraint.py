"""Constraint domain entity.

A temporal activation window attached to a user or to a role grant.
"""

from dataclasses import dataclass, fields
from typing import Optional

from ....config.constants import Sentinels


@dataclass
class Constraint:
    """Temporal activation window.

    ``name`` is the user id for a user constraint and the role name for a
    role grant. Unset fields are None and are left out of the stored form.
    Dates may hold the "none" sentinel and the day mask the "all" sentinel,
    both meaning unconstrained.
    """

    name: Optional[str] = None
    timeout: Optional[int] = None
    begin_time: Optional[str] = None
    end_time: Optional[str] = None
    begin_date: Optional[str] = None
    end_date: Optional[str] = None
    begin_lock_date: Optional[str] = None
    end_lock_date: Optional[str] = None
    day_mask: Optional[str] = None

    TEMPORAL_FIELDS = (
        "timeout", "begin_time", "end_time", "begin_date", "end_date",
        "begin_lock_date", "end_lock_date", "day_mask",
    )

    def is_temporal_set(self) -> bool:
        """Check if any temporal field carries a value."""
        return any(getattr(self, name) not in (None, "") for name in self.TEMPORAL_FIELDS)

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) in (None, "") for f in fields(self))

    def copy_temporal_from(self, other: "Constraint") -> None:
        """Copy every temporal field from another constraint, keeping the name."""
        for name in self.TEMPORAL_FIELDS:
            setattr(self, name, getattr(other, name))

    @property
    def is_end_date_unconstrained(self) -> bool:
        return self.end_date is None or self.end_date.lower() == Sentinels.NONE

    @property
    def is_every_day(self) -> bool:
        return self.day_mask is None or self.day_mask.lower() == Sentinels.ALL
