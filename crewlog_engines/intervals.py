"""
Module: crewlog_engines.intervals
Responsibility:
    Calendar/interval utilities shared by every engine: day counting,
    day enumeration, day normalization, ledger indexing and grouping of
    dates into contiguous runs, and detection of the unrecorded days
    trailing a ledger.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Leaf module; the budget,
    accrual and reconciliation engines all build on it.

Invariants enforced:
    - Inclusive counting for totals ("Jan 1 to Jan 5" is 5 days).
    - Exclusive counting for gaps (Jan 2 -> Jan 4 has a gap of 1 day).
    - Runs are maximal: consecutive runs are separated by a gap strictly
      larger than the tolerance.
    - Duplicate dates never create runs or inflate run length.

Failure modes:
    - InvalidRangeError for an inclusive count or window with start > end.
    - InvalidParameterError when gap_tolerance_days < 0.
    - DuplicateDayRecordError when a ledger holds conflicting states for a day.
    - TypeError when a non-date value is normalized.

Usage:
    from datetime import date
    from crewlog_engines.intervals import days_between, group_into_runs

    days_between(date(2024, 1, 1), date(2024, 1, 5), inclusive=True)  # 5
    group_into_runs([date(2024, 1, 1), date(2024, 1, 2)], 0)  # one run
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from crewlog_kernel.domain.values import DayRecord, ValidityWindow
from crewlog_kernel.exceptions import (
    DuplicateDayRecordError,
    InvalidParameterError,
    InvalidRangeError,
)
from crewlog_kernel.logging_config import get_logger

logger = get_logger("engines.intervals")

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class Run:
    """
    A maximal group of qualifying dates.

    Contract:
        Frozen dataclass describing one run of qualifying days.
    Guarantees:
        - start_date <= end_date.
        - length_days is the number of distinct qualifying dates in the run.
        - 0 <= counted_days <= length_days.
    Non-goals:
        - Does not keep the individual dates; callers that need them still
          hold the ledger.
    """

    start_date: date
    end_date: date
    length_days: int
    counted_days: int

    @property
    def span_days(self) -> int:
        """Inclusive calendar span; exceeds length_days when gaps were bridged."""
        return (self.end_date - self.start_date).days + 1

    def capped(self, cap: int) -> Run:
        """Return a copy with counted_days limited to ``cap``."""
        return Run(
            start_date=self.start_date,
            end_date=self.end_date,
            length_days=self.length_days,
            counted_days=min(self.length_days, cap),
        )


def to_calendar_date(value: date) -> date:
    """Normalize a date-like value to day granularity.

    ``datetime`` values lose their time-of-day (no timezone conversion is
    performed); plain dates pass through.

    Raises:
        TypeError: If ``value`` is not a date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected a date, got {type(value).__name__}")


def days_between(a: date, b: date, *, inclusive: bool) -> int:
    """Count days from ``a`` to ``b``.

    Args:
        a: First date.
        b: Second date.
        inclusive: Required.  True counts both ends ("total days"),
            False returns the plain signed difference.

    Raises:
        InvalidRangeError: If inclusive and a > b.
    """
    if inclusive:
        if a > b:
            raise InvalidRangeError(a.isoformat(), b.isoformat())
        return (b - a).days + 1
    return (b - a).days


def gap_days(earlier: date, later: date) -> int:
    """Number of calendar days strictly between two dates.

    Consecutive days have a gap of 0; the same day twice has a gap of -1.
    """
    return (later - earlier).days - 1


def enumerate_days(window: ValidityWindow) -> tuple[date, ...]:
    """Every date in ``[window.start, window.end]``, ascending.

    Returns a tuple so the result can be iterated any number of times.

    Raises:
        InvalidRangeError: If window.start > window.end.
    """
    if window.start > window.end:
        raise InvalidRangeError(window.start.isoformat(), window.end.isoformat())
    count = (window.end - window.start).days + 1
    return tuple(window.start + timedelta(days=i) for i in range(count))


def group_into_runs(
    dates: Iterable[date],
    gap_tolerance_days: int,
) -> tuple[Run, ...]:
    """Group dates into maximal runs.

    Dates are sorted and de-duplicated first.  A new run starts whenever
    the gap (days strictly between) to the previous date exceeds
    ``gap_tolerance_days``.  No cap is applied: every run has
    ``counted_days == length_days``.

    Raises:
        InvalidParameterError: If gap_tolerance_days < 0.
    """
    if gap_tolerance_days < 0:
        raise InvalidParameterError(
            "gap_tolerance_days", gap_tolerance_days, "must be >= 0"
        )

    ordered = sorted(set(dates))
    if not ordered:
        return ()

    runs: list[Run] = []
    start = prev = ordered[0]
    length = 1
    for current in ordered[1:]:
        if gap_days(prev, current) > gap_tolerance_days:
            runs.append(Run(start, prev, length, length))
            start = current
            length = 0
        length += 1
        prev = current
    runs.append(Run(start, prev, length, length))

    logger.debug("runs_grouped", extra={
        "date_count": len(ordered),
        "run_count": len(runs),
        "gap_tolerance_days": gap_tolerance_days,
    })
    return tuple(runs)


def ledger_to_mapping(records: Sequence[DayRecord]) -> dict[date, Hashable]:
    """Index day records by date.

    Identical duplicates collapse to one entry.

    Raises:
        DuplicateDayRecordError: If one date carries two different states.
    """
    by_date: dict[date, Hashable] = {}
    for record in records:
        existing = by_date.get(record.date, record.state)
        if existing != record.state:
            raise DuplicateDayRecordError(
                record.date.isoformat(),
                (str(_state_label(existing)), str(_state_label(record.state))),
            )
        by_date[record.date] = record.state
    return by_date


def _state_label(state: Hashable) -> object:
    return getattr(state, "value", state)


@dataclass(frozen=True)
class MissingDays:
    """
    Days with no record between the latest ledger entry and ``as_of``.

    Guarantees:
        - missing_days is ascending and contiguous, starting the day after
          last_logged_date and ending on as_of.
        - missing_days is empty when the ledger is empty or already
          reaches as_of.
    """

    last_logged_date: date | None
    last_logged_state: Hashable | None
    missing_days: tuple[date, ...] = ()

    def fill_records(self) -> tuple[DayRecord, ...]:
        """Records carrying the last logged state forward over the missing days."""
        return tuple(DayRecord(day, self.last_logged_state) for day in self.missing_days)


def find_missing_days(records: Sequence[DayRecord], as_of: date) -> MissingDays:
    """Find the unrecorded days after the latest ledger entry, up to ``as_of``.

    Only the trailing gap is reported; holes earlier in the ledger are not.
    A latest entry on or after ``as_of`` leaves nothing missing.

    Raises:
        DuplicateDayRecordError: If one date carries two different states.
    """
    by_date = ledger_to_mapping(records)
    if not by_date:
        return MissingDays(last_logged_date=None, last_logged_state=None)

    last_date = max(by_date)
    last_state = by_date[last_date]
    missing: tuple[date, ...] = ()
    if last_date < as_of:
        missing = enumerate_days(ValidityWindow(last_date + ONE_DAY, as_of))

    logger.debug("missing_days_found", extra={
        "last_logged_date": last_date.isoformat(),
        "as_of": as_of.isoformat(),
        "missing_count": len(missing),
    })
    return MissingDays(
        last_logged_date=last_date,
        last_logged_state=last_state,
        missing_days=missing,
    )
