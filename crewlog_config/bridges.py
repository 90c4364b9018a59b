"""
Config -> Engine Bridges.

Functions that convert profile definitions into engine rule objects.  These
live in crewlog_config (the producer) because the engines must NEVER import
crewlog_config.

State names are resolved against ``VesselState``; an unknown name raises
``ValueError`` so a typo in a profile cannot silently exclude a state.

Usage:
    from crewlog_config import get_engine_config
    from crewlog_config.bridges import build_budget_rule

    config = get_engine_config()
    rule = build_budget_rule(config.budget_profile("rolling_90_180"))
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from crewlog_config.schema import (
    AccrualProfileDef,
    BudgetProfileDef,
    ReconciliationProfileDef,
    StandbyProfileDef,
)
from crewlog_engines.accrual import AccrualRule, StandbyRule
from crewlog_engines.budget import BudgetRule, FixedAllowance, RollingWindow
from crewlog_kernel.domain.values import VesselState


def resolve_states(names: Iterable[str]) -> frozenset[VesselState]:
    """Map state names (e.g. "at-anchor") to VesselState members."""
    return frozenset(VesselState(name) for name in names)


def build_budget_rule(profile: BudgetProfileDef) -> BudgetRule:
    """Build a FixedAllowance or RollingWindow from a budget profile."""
    if profile.rule_type == "rolling":
        return RollingWindow(
            allowed_days=profile.allowed_days,
            window_days=profile.window_days,
        )
    return FixedAllowance(allowed_days=profile.allowed_days)


def budget_evaluation_kwargs(profile: BudgetProfileDef) -> dict[str, Any]:
    """Keyword arguments for ``evaluate_budget`` carried by a budget profile.

    Usage::

        evaluate_budget(dates, window, as_of=as_of, **budget_evaluation_kwargs(profile))
    """
    return {
        "rule": build_budget_rule(profile),
        "warning_threshold_days": profile.warning_threshold_days,
    }


def build_accrual_rule(profile: AccrualProfileDef) -> AccrualRule:
    """Build an AccrualRule from an accrual profile."""
    return AccrualRule(
        qualifying_states=resolve_states(profile.qualifying_states),
        cap_per_run=profile.cap_per_run,
        gap_tolerance_days=profile.gap_tolerance_days,
    )


def build_standby_rule(profile: StandbyProfileDef) -> StandbyRule:
    """Build a StandbyRule from a standby profile."""
    return StandbyRule(
        voyage_states=resolve_states(profile.voyage_states),
        standby_states=resolve_states(profile.standby_states),
        cap_per_run=profile.cap_per_run,
    )


def build_excluded_states(profile: ReconciliationProfileDef) -> frozenset[VesselState]:
    """Exclusion set for ``compare_ledgers``."""
    return resolve_states(profile.excluded_states)
