"""
Module: crewlog_engines.accrual
Responsibility:
    Capped, run-based day counting.  Groups the days a ledger spends in a
    set of qualifying states into runs and credits each run up to a
    per-run cap.  Also composes the vessel "standby" calculation (standby
    days credited after each voyage) from the same primitives.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on crewlog_engines.intervals and kernel value objects only.

Invariants enforced:
    - The cap resets at the start of every run: a regulation crediting
      "the first K days of an uninterrupted stint" is applied per stint,
      never once globally.
    - counted_days <= length_days for every run.
    - Standby credited never exceeds total sea days.

Failure modes:
    - InvalidParameterError at rule construction for cap_per_run < 0 or
      gap_tolerance_days < 0.
    - DuplicateDayRecordError when the ledger holds conflicting states for
      a single date.

Usage:
    from crewlog_engines.accrual import AccrualRule, evaluate_accrual
    from crewlog_kernel.domain.values import VesselState

    rule = AccrualRule(
        qualifying_states=frozenset({VesselState.AT_ANCHOR, VesselState.IN_PORT}),
        cap_per_run=14,
    )
    result = evaluate_accrual(ledger, rule)
    result.total_counted_days
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date

from crewlog_kernel.domain.values import DayRecord, VesselState
from crewlog_kernel.exceptions import InvalidParameterError
from crewlog_kernel.logging_config import get_logger
from crewlog_engines.intervals import ONE_DAY, Run, group_into_runs, ledger_to_mapping
from crewlog_engines.tracer import traced_engine

logger = get_logger("engines.accrual")

DEFAULT_STANDBY_CAP_DAYS = 14


@dataclass(frozen=True)
class AccrualRule:
    """
    Which states accrue, how far apart days may be and still share a run,
    and how many days of each run are credited.

    Guarantees:
        - qualifying_states is a frozenset.
        - cap_per_run >= 0, gap_tolerance_days >= 0.
    """

    qualifying_states: frozenset[Hashable]
    cap_per_run: int
    gap_tolerance_days: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "qualifying_states", frozenset(self.qualifying_states))
        if self.cap_per_run < 0:
            raise InvalidParameterError("cap_per_run", self.cap_per_run, "must be >= 0")
        if self.gap_tolerance_days < 0:
            raise InvalidParameterError(
                "gap_tolerance_days", self.gap_tolerance_days, "must be >= 0"
            )


@dataclass(frozen=True)
class AccrualResult:
    """Runs found in the ledger and the capped total they contribute."""

    runs: tuple[Run, ...]
    total_counted_days: int
    total_qualifying_days: int = 0

    @property
    def run_count(self) -> int:
        return len(self.runs)

    @property
    def forfeited_days(self) -> int:
        """Qualifying days not credited because of the per-run cap."""
        return self.total_qualifying_days - self.total_counted_days


@traced_engine("accrual", "1.0", fingerprint_fields=("ledger", "rule"))
def evaluate_accrual(
    ledger: Sequence[DayRecord],
    rule: AccrualRule,
) -> AccrualResult:
    """
    Group qualifying days into runs and sum the capped per-run counts.

    Postconditions:
        - Each run's counted_days == min(length_days, rule.cap_per_run).
        - total_counted_days == sum of counted_days.
        - No qualifying records -> no runs, total 0.
    """
    by_date = ledger_to_mapping(ledger)
    qualifying = [d for d, state in by_date.items() if state in rule.qualifying_states]
    runs = tuple(
        run.capped(rule.cap_per_run)
        for run in group_into_runs(qualifying, rule.gap_tolerance_days)
    )
    total = sum(run.counted_days for run in runs)

    logger.info("accrual_evaluated", extra={
        "record_count": len(ledger),
        "qualifying_days": len(qualifying),
        "run_count": len(runs),
        "cap_per_run": rule.cap_per_run,
        "gap_tolerance_days": rule.gap_tolerance_days,
        "total_counted_days": total,
    })
    return AccrualResult(
        runs=runs,
        total_counted_days=total,
        total_qualifying_days=len(qualifying),
    )


# ---------------------------------------------------------------------------
# Standby composition
# ---------------------------------------------------------------------------


def _states(values: Iterable[Hashable]) -> frozenset[Hashable]:
    return frozenset(values)


@dataclass(frozen=True)
class StandbyRule:
    """
    Standby crediting parameters.

    A standby block is the uninterrupted stretch of standby-state days
    starting the day after a voyage ends.  It is credited up to
    ``min(cap_per_run, length of the preceding voyage)``.
    """

    voyage_states: frozenset[Hashable] = field(
        default_factory=lambda: _states({VesselState.UNDERWAY})
    )
    standby_states: frozenset[Hashable] = field(
        default_factory=lambda: _states({VesselState.IN_PORT, VesselState.AT_ANCHOR})
    )
    cap_per_run: int = DEFAULT_STANDBY_CAP_DAYS

    def __post_init__(self) -> None:
        object.__setattr__(self, "voyage_states", _states(self.voyage_states))
        object.__setattr__(self, "standby_states", _states(self.standby_states))
        if self.cap_per_run < 0:
            raise InvalidParameterError("cap_per_run", self.cap_per_run, "must be >= 0")
        overlap = self.voyage_states & self.standby_states
        if overlap:
            raise InvalidParameterError(
                "standby_states",
                sorted(str(s) for s in overlap),
                "must not overlap voyage_states",
            )


@dataclass(frozen=True)
class StandbyPeriod:
    """One standby block following a voyage."""

    start_date: date
    end_date: date
    length_days: int
    preceding_voyage_days: int
    allowed_days: int
    counted_days: int


@dataclass(frozen=True)
class StandbyResult:
    """
    Sea and standby totals.

    Guarantees:
        - total_standby_days == min(uncapped_standby_days, total_sea_days).
        - uncapped_standby_days is the sum of per-period counted_days.
    """

    voyages: tuple[Run, ...]
    standby_periods: tuple[StandbyPeriod, ...]
    total_sea_days: int
    uncapped_standby_days: int
    total_standby_days: int


@traced_engine("standby", "1.0", fingerprint_fields=("ledger", "rule"))
def evaluate_standby(
    ledger: Sequence[DayRecord],
    rule: StandbyRule | None = None,
) -> StandbyResult:
    """
    Credit standby days that immediately follow voyages.

    Voyages are runs of consecutive voyage-state days.  For each voyage the
    days from the next calendar day onward are walked while they carry a
    standby state; a missing record or any other state ends the block.
    """
    if rule is None:
        rule = StandbyRule()

    by_date = ledger_to_mapping(ledger)
    voyage_dates = [d for d, state in by_date.items() if state in rule.voyage_states]
    voyages = group_into_runs(voyage_dates, 0)
    total_sea_days = sum(v.length_days for v in voyages)

    periods: list[StandbyPeriod] = []
    for voyage in voyages:
        start = voyage.end_date + ONE_DAY
        current = start
        while by_date.get(current) in rule.standby_states:
            current += ONE_DAY
        length = (current - start).days
        if length == 0:
            continue
        allowed = min(rule.cap_per_run, voyage.length_days)
        periods.append(StandbyPeriod(
            start_date=start,
            end_date=current - ONE_DAY,
            length_days=length,
            preceding_voyage_days=voyage.length_days,
            allowed_days=allowed,
            counted_days=min(length, allowed),
        ))

    uncapped = sum(p.counted_days for p in periods)
    total_standby = min(uncapped, total_sea_days)

    logger.info("standby_evaluated", extra={
        "voyage_count": len(voyages),
        "standby_period_count": len(periods),
        "total_sea_days": total_sea_days,
        "uncapped_standby_days": uncapped,
        "total_standby_days": total_standby,
    })
    return StandbyResult(
        voyages=voyages,
        standby_periods=tuple(periods),
        total_sea_days=total_sea_days,
        uncapped_standby_days=uncapped,
        total_standby_days=total_standby,
    )
