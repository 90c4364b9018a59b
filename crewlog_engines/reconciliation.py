"""
Module: crewlog_engines.reconciliation
Responsibility:
    Day-by-day comparison of two independently recorded day ledgers (e.g. the
    days a crew member claims on a testimonial against the vessel's own
    logbook), with aggregate match statistics.  Also rebuilds a day ledger
    from aggregate day counts so a claim can be compared day by day.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on crewlog_engines.intervals and kernel value objects only.

Invariants enforced:
    - Exclusion is decided by party A alone: a day party A marks with an
      excluded state never contributes to any aggregate, whatever party B
      recorded.
    - match_rate is Decimal("0") when no days were compared, never a
      division error.
    - No vocabulary normalization: both ledgers must already share a state
      vocabulary.

Failure modes:
    - InvalidRangeError for an inverted comparison range
      (``compare_over_range``).
    - InvalidParameterError for a negative requested day count
      (``reconstruct_ledger``).
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from crewlog_kernel.domain.values import ValidityWindow
from crewlog_kernel.exceptions import InvalidParameterError
from crewlog_kernel.logging_config import get_logger
from crewlog_engines.intervals import enumerate_days
from crewlog_engines.tracer import traced_engine

logger = get_logger("engines.reconciliation")


class DayStatus(str, Enum):
    """Classification of a single compared day."""

    MATCH = "match"
    DISCREPANCY = "discrepancy"
    MISSING_FROM_A = "missing_from_a"
    MISSING_FROM_B = "missing_from_b"
    EXCLUDED = "excluded"
    UNRECORDED = "unrecorded"  # neither party has a record


@dataclass(frozen=True)
class ComparisonDay:
    """One day of a reconciliation.  Derived, never persisted."""

    date: date
    party_a_state: Hashable | None
    party_b_state: Hashable | None
    excluded: bool
    match: bool

    @property
    def status(self) -> DayStatus:
        if self.excluded:
            return DayStatus.EXCLUDED
        if self.match:
            return DayStatus.MATCH
        if self.party_a_state is not None and self.party_b_state is not None:
            return DayStatus.DISCREPANCY
        if self.party_a_state is not None:
            return DayStatus.MISSING_FROM_B
        if self.party_b_state is not None:
            return DayStatus.MISSING_FROM_A
        return DayStatus.UNRECORDED


@dataclass(frozen=True)
class ReconciliationResult:
    """
    Per-day comparison plus aggregates.

    Guarantees:
        - matching_days <= compared_days.
        - discrepancies, missing_from_a and missing_from_b never contain
          excluded days.
        - match_rate == matching_days / compared_days, or 0 when nothing
          was compared.
    """

    per_day: tuple[ComparisonDay, ...]
    matching_days: int
    compared_days: int
    discrepancies: tuple[ComparisonDay, ...]
    missing_from_a: tuple[ComparisonDay, ...]
    missing_from_b: tuple[ComparisonDay, ...]
    match_rate: Decimal
    excluded_days: int = 0

    @property
    def match_percentage(self) -> int:
        """match_rate as a whole percent, rounded half up."""
        return int((self.match_rate * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @property
    def is_clean(self) -> bool:
        """True when nothing disagrees and nothing is missing on either side."""
        return not (self.discrepancies or self.missing_from_a or self.missing_from_b)


@traced_engine(
    "reconciliation", "1.0",
    fingerprint_fields=("window_dates", "party_a", "party_b", "excluded_states"),
)
def compare_ledgers(
    window_dates: Iterable[date],
    party_a: Mapping[date, Hashable],
    party_b: Mapping[date, Hashable],
    excluded_states: Iterable[Hashable] = frozenset(),
) -> ReconciliationResult:
    """
    Compare two day ledgers over the given dates.

    Args:
        window_dates: Dates to compare.  Supplied by the caller, not derived
            from either ledger; duplicates are collapsed and output is
            ascending.
        party_a: The primary reporting party's date -> state mapping.
        party_b: The independent party's date -> state mapping.
        excluded_states: States which, when reported by party A, remove the
            day from comparison (e.g. leave days).

    Returns:
        ReconciliationResult with per-day rows and aggregates.
    """
    excluded_set = frozenset(excluded_states)
    per_day: list[ComparisonDay] = []
    discrepancies: list[ComparisonDay] = []
    missing_from_a: list[ComparisonDay] = []
    missing_from_b: list[ComparisonDay] = []
    compared = 0
    matching = 0
    excluded_count = 0

    for day in sorted(set(window_dates)):
        a_state = party_a.get(day)
        b_state = party_b.get(day)
        excluded = a_state is not None and a_state in excluded_set
        match = (
            not excluded
            and a_state is not None
            and b_state is not None
            and a_state == b_state
        )
        row = ComparisonDay(
            date=day,
            party_a_state=a_state,
            party_b_state=b_state,
            excluded=excluded,
            match=match,
        )
        per_day.append(row)

        if excluded:
            excluded_count += 1
            continue
        if a_state is not None:
            compared += 1
        if match:
            matching += 1
        elif a_state is not None and b_state is not None:
            discrepancies.append(row)
        elif a_state is not None:
            missing_from_b.append(row)
        elif b_state is not None:
            missing_from_a.append(row)

    match_rate = Decimal(matching) / Decimal(compared) if compared else Decimal("0")

    logger.info("ledgers_compared", extra={
        "day_count": len(per_day),
        "compared_days": compared,
        "matching_days": matching,
        "excluded_days": excluded_count,
        "discrepancy_count": len(discrepancies),
        "missing_from_a_count": len(missing_from_a),
        "missing_from_b_count": len(missing_from_b),
    })
    if discrepancies:
        logger.warning("ledger_discrepancies_found", extra={
            "discrepancy_count": len(discrepancies),
            "first_discrepancy": discrepancies[0].date.isoformat(),
        })

    return ReconciliationResult(
        per_day=tuple(per_day),
        matching_days=matching,
        compared_days=compared,
        discrepancies=tuple(discrepancies),
        missing_from_a=tuple(missing_from_a),
        missing_from_b=tuple(missing_from_b),
        match_rate=match_rate,
        excluded_days=excluded_count,
    )


def compare_over_range(
    window: ValidityWindow,
    party_a: Mapping[date, Hashable],
    party_b: Mapping[date, Hashable],
    excluded_states: Iterable[Hashable] = frozenset(),
) -> ReconciliationResult:
    """Compare two ledgers over every day of an inclusive range."""
    return compare_ledgers(enumerate_days(window), party_a, party_b, excluded_states)


def tally_states(
    ledger: Mapping[date, Hashable],
    window_dates: Iterable[date],
) -> dict[Hashable, int]:
    """Count days per state for the dates in range that have a record."""
    counts: Counter[Hashable] = Counter()
    for day in set(window_dates):
        state = ledger.get(day)
        if state is not None:
            counts[state] += 1
    return dict(counts)


# ---------------------------------------------------------------------------
# Ledger reconstruction from aggregate day counts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RequestedDays:
    """
    An aggregate claim: ``days`` days of a category.

    Contract:
        ``states`` are the ledger states that satisfy the category (standby
        is satisfied by either in-port or at-anchor); ``fill_state`` is the
        state written for days that could not be aligned with the reference
        ledger.
    """

    category: str
    states: frozenset[Hashable]
    fill_state: Hashable
    days: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "states", frozenset(self.states))
        if self.days < 0:
            raise InvalidParameterError(f"{self.category}.days", self.days, "must be >= 0")


@traced_engine(
    "ledger_reconstruction", "1.0",
    fingerprint_fields=("window_dates", "requested", "reference", "overflow_state"),
)
def reconstruct_ledger(
    window_dates: Iterable[date],
    requested: Sequence[RequestedDays],
    reference: Mapping[date, Hashable],
    overflow_state: Hashable,
) -> dict[date, Hashable]:
    """
    Spread aggregate day counts across a date range.

    First pass, in date order: where the reference ledger's state belongs to
    a category that still has quota, the day takes the reference state.
    Second pass: remaining quota is laid out category by category (in the
    order given) over unclaimed days using each category's fill_state.
    Days still unclaimed take ``overflow_state``.

    Returns:
        Mapping covering every window date exactly once.
    """
    ordered = sorted(set(window_dates))
    assigned_counts = [0] * len(requested)
    assigned: dict[date, Hashable] = {}

    for day in ordered:
        ref_state = reference.get(day)
        if ref_state is None:
            continue
        for index, claim in enumerate(requested):
            if ref_state in claim.states and assigned_counts[index] < claim.days:
                assigned[day] = ref_state
                assigned_counts[index] += 1
                break

    aligned_days = len(assigned)
    remaining: list[Hashable] = []
    for index, claim in enumerate(requested):
        remaining.extend([claim.fill_state] * max(0, claim.days - assigned_counts[index]))

    fill = iter(remaining)
    for day in ordered:
        if day not in assigned:
            assigned[day] = next(fill, overflow_state)

    logger.debug("ledger_reconstructed", extra={
        "day_count": len(ordered),
        "requested_days": sum(c.days for c in requested),
        "aligned_days": aligned_days,
    })
    return {day: assigned[day] for day in ordered}
