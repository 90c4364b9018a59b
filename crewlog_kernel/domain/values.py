"""
Values -- Immutable, self-validating day-ledger value objects.

Responsibility:
    Provides the value types every engine consumes: the vessel state
    vocabulary, a single day's record, and an inclusive validity window.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    No outward dependencies except crewlog_kernel.exceptions.

Invariants enforced:
    - All dates are ``datetime.date`` values at day granularity; no
      time-of-day, no timezone.  Callers normalize before construction.
    - ``ValidityWindow.start <= ValidityWindow.end``.

Failure modes:
    - InvalidRangeError on construction of an inverted window.
    - TypeError when a ``datetime`` (or non-date) is passed where a calendar
      date is required.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

from crewlog_kernel.exceptions import InvalidRangeError


class VesselState(str, Enum):
    """Daily vessel/crew state vocabulary used by logbooks."""

    UNDERWAY = "underway"
    AT_ANCHOR = "at-anchor"
    IN_PORT = "in-port"
    ON_LEAVE = "on-leave"
    IN_YARD = "in-yard"


def _require_calendar_date(name: str, value: object) -> None:
    # datetime is a date subclass; reject it so comparisons stay day-granular
    if isinstance(value, datetime) or not isinstance(value, date):
        raise TypeError(
            f"{name} must be a datetime.date, got {type(value).__name__}"
        )


@dataclass(frozen=True, slots=True)
class DayRecord:
    """
    One ledger entry: the state a subject was in on a calendar day.

    Contract:
        ``state`` is any hashable symbol.  ``VesselState`` members compare
        equal to their string values, so either form may be used as long as
        both ledgers being compared share a vocabulary.
    """

    date: date
    state: Hashable

    def __post_init__(self) -> None:
        _require_calendar_date("date", self.date)


@dataclass(frozen=True, slots=True)
class ValidityWindow:
    """
    Inclusive date bounds, e.g. a visa's issue and expiry dates.

    Contract:
        Both ends are included.  A single-day window has start == end.
    Guarantees:
        - start <= end (enforced at construction).
    Non-goals:
        - Does not enumerate its days; see ``crewlog_engines.intervals``.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        _require_calendar_date("start", self.start)
        _require_calendar_date("end", self.end)
        if self.start > self.end:
            raise InvalidRangeError(self.start.isoformat(), self.end.isoformat())

    def contains(self, day: date) -> bool:
        """True if ``day`` falls inside the window (inclusive)."""
        return self.start <= day <= self.end

    @property
    def length_days(self) -> int:
        """Inclusive day count of the window."""
        return (self.end - self.start).days + 1
