"""
Module: crewlog_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    calendar, testimonial, visa tracker and inbox screens.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import crewlog_kernel (and sibling engine modules).
    MUST NOT import crewlog_config; callers translate profiles into rules.

Invariants enforced:
    - Purity: engines NEVER call ``date.today()`` or ``datetime.now()``.
      Evaluation dates are always explicit parameters.
    - Determinism: identical inputs always produce identical outputs.
    - No instance state: every call is self-contained, so engines may be
      invoked from any number of threads or tasks without coordination.

Failure modes:
    - InvalidRangeError / InvalidParameterError propagated from individual
      engines on invalid input.  Nothing is retried.

Audit relevance:
    Every public engine invocation is traced via ``@traced_engine``
    (see ``crewlog_engines.tracer``), emitting CREWLOG_ENGINE_TRACE log
    records with engine name, version, input fingerprint and duration.

Usage:
    from crewlog_engines.budget import evaluate_budget, RollingWindow
    from crewlog_engines.accrual import evaluate_accrual, AccrualRule
    from crewlog_engines.reconciliation import compare_ledgers
"""

from crewlog_kernel.logging_config import get_logger

logger = get_logger("engines")

from crewlog_engines.accrual import (
    AccrualResult,
    AccrualRule,
    StandbyPeriod,
    StandbyResult,
    StandbyRule,
    evaluate_accrual,
    evaluate_standby,
)
from crewlog_engines.budget import (
    BudgetResult,
    BudgetRule,
    BudgetRuleKind,
    BudgetViolation,
    DateCheck,
    FixedAllowance,
    RollingWindow,
    check_date,
    evaluate_budget,
)
from crewlog_engines.intervals import (
    MissingDays,
    Run,
    days_between,
    enumerate_days,
    find_missing_days,
    gap_days,
    group_into_runs,
    ledger_to_mapping,
    to_calendar_date,
)
from crewlog_engines.reconciliation import (
    ComparisonDay,
    DayStatus,
    ReconciliationResult,
    RequestedDays,
    compare_ledgers,
    compare_over_range,
    reconstruct_ledger,
    tally_states,
)

__all__ = [
    # Calendar/interval utilities
    "MissingDays",
    "Run",
    "days_between",
    "enumerate_days",
    "find_missing_days",
    "gap_days",
    "group_into_runs",
    "ledger_to_mapping",
    "to_calendar_date",
    # Budget
    "BudgetRule",
    "BudgetRuleKind",
    "FixedAllowance",
    "RollingWindow",
    "BudgetResult",
    "BudgetViolation",
    "DateCheck",
    "evaluate_budget",
    "check_date",
    # Accrual
    "AccrualRule",
    "AccrualResult",
    "evaluate_accrual",
    "StandbyRule",
    "StandbyPeriod",
    "StandbyResult",
    "evaluate_standby",
    # Reconciliation
    "ComparisonDay",
    "DayStatus",
    "ReconciliationResult",
    "RequestedDays",
    "compare_ledgers",
    "compare_over_range",
    "reconstruct_ledger",
    "tally_states",
]

logger.debug("engines_package_loaded", extra={
    "module_count": 4,
    "modules": ["intervals", "budget", "accrual", "reconciliation"],
})
