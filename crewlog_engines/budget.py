"""
Module: crewlog_engines.budget
Responsibility:
    Day-budget calculator for residency/visa compliance.  Evaluates a set of
    days spent in a region against either a fixed allowance over a validity
    window or a rolling "N days in any M" rule.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends on crewlog_engines.intervals and kernel value objects only.

Invariants enforced:
    - Purity: no clock access; ``as_of`` is always an explicit parameter.
    - Only ledger dates inside ``[window.start, min(window.end, as_of)]``
      are ever counted.
    - ``compliant`` is True exactly when ``violations`` is empty, for both
      rule kinds.
    - The rolling evaluation is a single ascending pass over a moving
      window: O(n) in the number of ledger dates.

Failure modes:
    - InvalidParameterError at rule construction for allowed_days < 0 or
      (rolling) window_days <= 0.
    - TypeError for a rule object that is neither FixedAllowance nor
      RollingWindow.

Usage:
    from datetime import date
    from crewlog_engines.budget import RollingWindow, evaluate_budget
    from crewlog_kernel.domain.values import ValidityWindow

    result = evaluate_budget(
        ledger_dates={date(2024, 1, 1), date(2024, 1, 2)},
        window=ValidityWindow(date(2024, 1, 1), date(2024, 12, 31)),
        rule=RollingWindow(allowed_days=90, window_days=180),
        as_of=date(2024, 3, 1),
    )
    result.days_remaining  # 88
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from enum import Enum

from crewlog_kernel.domain.values import ValidityWindow
from crewlog_kernel.exceptions import InvalidParameterError
from crewlog_kernel.logging_config import get_logger
from crewlog_engines.tracer import traced_engine

logger = get_logger("engines.budget")

# Warning fires when remaining days drop to max(10, 10% of the allowance)
DEFAULT_WARNING_FLOOR_DAYS = Decimal("10")
DEFAULT_WARNING_FRACTION = Decimal("0.1")


class BudgetRuleKind(str, Enum):
    """Discriminator for the BudgetRule union."""

    FIXED = "fixed"
    ROLLING = "rolling"


@dataclass(frozen=True)
class FixedAllowance:
    """Total qualifying days within the validity window must not exceed allowed_days."""

    allowed_days: int

    def __post_init__(self) -> None:
        if self.allowed_days < 0:
            raise InvalidParameterError("allowed_days", self.allowed_days, "must be >= 0")

    @property
    def kind(self) -> BudgetRuleKind:
        return BudgetRuleKind.FIXED


@dataclass(frozen=True)
class RollingWindow:
    """
    At every date, the trailing window_days-day window ending on that date
    may hold at most allowed_days qualifying days.

    Contract:
        ``RollingWindow(90, 180)`` is the "90 days in any 180" pattern.
    Guarantees:
        - window_days >= 1 and allowed_days >= 0.
    """

    allowed_days: int
    window_days: int

    def __post_init__(self) -> None:
        if self.allowed_days < 0:
            raise InvalidParameterError("allowed_days", self.allowed_days, "must be >= 0")
        if self.window_days <= 0:
            raise InvalidParameterError("window_days", self.window_days, "must be >= 1")

    @property
    def kind(self) -> BudgetRuleKind:
        return BudgetRuleKind.ROLLING


BudgetRule = FixedAllowance | RollingWindow


@dataclass(frozen=True)
class BudgetViolation:
    """A ledger date at which the rule's count exceeded its limit."""

    date: date
    days_in_window: int
    limit: int


@dataclass(frozen=True)
class BudgetResult:
    """
    Outcome of a budget evaluation.

    Contract:
        Frozen snapshot as of ``as_of``.
    Guarantees:
        - days_remaining == max(0, days_allowed - days_used).
        - compliant == (not violations).
        - violations are in ascending date order.
        - next_available_date is only set for an exhausted rolling allowance.
    """

    rule_kind: BudgetRuleKind
    as_of: date
    days_used: int
    days_allowed: int
    days_remaining: int
    compliant: bool
    violations: tuple[BudgetViolation, ...] = ()
    peak_days_in_window: int = 0
    warning: bool = False
    next_available_date: date | None = None

    @property
    def violation_dates(self) -> tuple[date, ...]:
        return tuple(v.date for v in self.violations)


@dataclass(frozen=True)
class DateCheck:
    """Whether one more qualifying day can be added without breaching the rule."""

    candidate: date
    allowed: bool
    days_in_window: int
    limit: int
    reason: str | None = None


def _trailing_counts(
    ordered: Iterable[date],
    window_days: int,
) -> Iterator[tuple[date, int]]:
    """Yield (date, count of dates in the trailing window ending there).

    ``ordered`` must be ascending and free of duplicates.  Each date enters
    and leaves the deque once.
    """
    in_window: deque[date] = deque()
    span = timedelta(days=window_days - 1)
    for current in ordered:
        oldest_allowed = current - span
        while in_window and in_window[0] < oldest_allowed:
            in_window.popleft()
        in_window.append(current)
        yield current, len(in_window)


def _require_rule(rule: object) -> None:
    if not isinstance(rule, (FixedAllowance, RollingWindow)):
        raise TypeError(f"Unsupported budget rule: {type(rule).__name__}")


def _is_warning(compliant: bool, days_remaining: int, allowed_days: int,
                threshold: int | None) -> bool:
    if not compliant:
        return True
    if threshold is None:
        limit = max(DEFAULT_WARNING_FLOOR_DAYS, Decimal(allowed_days) * DEFAULT_WARNING_FRACTION)
    else:
        limit = Decimal(threshold)
    return Decimal(days_remaining) <= limit


def _filter_ledger(ledger_dates: Iterable[date], window: ValidityWindow,
                   upper: date) -> list[date]:
    return sorted({d for d in ledger_dates if window.start <= d <= upper})


@traced_engine("budget", "1.0", fingerprint_fields=("ledger_dates", "window", "rule", "as_of"))
def evaluate_budget(
    ledger_dates: Iterable[date],
    window: ValidityWindow,
    rule: BudgetRule,
    as_of: date,
    warning_threshold_days: int | None = None,
) -> BudgetResult:
    """
    Evaluate a day ledger against a budget rule as of a given date.

    Preconditions:
        - ``ledger_dates`` are day-granular dates (a set, or any iterable;
          duplicates are collapsed).
    Postconditions:
        - Dates outside the validity window or after ``as_of`` are ignored.
        - Fixed: days_used counts every remaining date.
        - Rolling: days_used counts dates in the trailing window ending at
          ``as_of``; every ledger date whose own trailing window holds more
          than allowed_days is reported as a violation.
    Raises:
        TypeError: If ``rule`` is not a FixedAllowance or RollingWindow.
    """
    _require_rule(rule)
    upper = min(window.end, as_of)
    filtered = _filter_ledger(ledger_dates, window, upper)
    allowed = rule.allowed_days
    next_available: date | None = None

    if isinstance(rule, RollingWindow):
        violations: list[BudgetViolation] = []
        peak = 0
        for current, count in _trailing_counts(filtered, rule.window_days):
            peak = max(peak, count)
            if count > allowed:
                violations.append(BudgetViolation(current, count, allowed))

        trailing_start = as_of - timedelta(days=rule.window_days - 1)
        current_window = [d for d in filtered if d >= trailing_start]
        days_used = len(current_window)
        if allowed > 0 and days_used >= allowed:
            # The (used - allowed + 1)th oldest day must age out first
            next_available = current_window[days_used - allowed] + timedelta(days=rule.window_days)
    else:
        days_used = len(filtered)
        peak = days_used
        violations = [
            BudgetViolation(current, position, allowed)
            for position, current in enumerate(filtered, start=1)
            if position > allowed
        ]
    days_remaining = max(0, allowed - days_used)
    compliant = not violations
    result = BudgetResult(
        rule_kind=rule.kind,
        as_of=as_of,
        days_used=days_used,
        days_allowed=allowed,
        days_remaining=days_remaining,
        compliant=compliant,
        violations=tuple(violations),
        peak_days_in_window=peak,
        warning=_is_warning(compliant, days_remaining, allowed, warning_threshold_days),
        next_available_date=next_available,
    )

    logger.info("budget_evaluated", extra={
        "rule_kind": rule.kind.value,
        "as_of": as_of.isoformat(),
        "ledger_days_considered": len(filtered),
        "days_used": days_used,
        "days_allowed": allowed,
        "violation_count": len(violations),
        "compliant": compliant,
    })
    return result


@traced_engine("budget_check", "1.0", fingerprint_fields=("ledger_dates", "window", "rule", "candidate"))
def check_date(
    ledger_dates: Iterable[date],
    window: ValidityWindow,
    rule: BudgetRule,
    candidate: date,
) -> DateCheck:
    """
    Check whether adding ``candidate`` to the ledger keeps it within the rule.

    For a rolling rule every trailing window that would contain the
    candidate is checked, including windows ending on later ledger dates.
    A candidate already present in the ledger is not counted twice.

    Returns:
        DateCheck; ``days_in_window`` includes the candidate.
    """
    _require_rule(rule)
    allowed = rule.allowed_days
    if not window.contains(candidate):
        return DateCheck(
            candidate=candidate,
            allowed=False,
            days_in_window=0,
            limit=allowed,
            reason=(
                f"{candidate.isoformat()} is outside the validity window "
                f"{window.start.isoformat()} to {window.end.isoformat()}."
            ),
        )

    combined = sorted({d for d in ledger_dates if window.contains(d)} | {candidate})

    if isinstance(rule, RollingWindow):
        last_affected = candidate + timedelta(days=rule.window_days - 1)
        days_in_window = max(
            count
            for current, count in _trailing_counts(combined, rule.window_days)
            if candidate <= current <= last_affected
        )
        reason = (
            f"This date would exceed the limit of {allowed} days in any "
            f"{rule.window_days}-day period. You would have {days_in_window} "
            f"days in this window."
        )
    else:
        days_in_window = len(combined)
        reason = f"All {allowed} days allowed in the validity window are already used."
    is_allowed = days_in_window <= allowed
    logger.debug("budget_date_checked", extra={
        "candidate": candidate.isoformat(),
        "rule_kind": rule.kind.value,
        "days_in_window": days_in_window,
        "allowed": is_allowed,
    })
    return DateCheck(
        candidate=candidate,
        allowed=is_allowed,
        days_in_window=days_in_window,
        limit=allowed,
        reason=None if is_allowed else reason,
    )
