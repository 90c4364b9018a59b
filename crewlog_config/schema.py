"""
EngineConfigSet schema.

Defines the human-authored, reviewable source artifact for engine rule
parameters.  YAML files are parsed into these types by the loader and
translated into engine rule objects by the bridges.

Key distinction:
  *ProfileDef      = declarative data, plain strings and ints
  engine rule types = validated runtime objects (FixedAllowance, AccrualRule, ...)

Profiles are looked up by name only.  Deciding which profile applies to a
region, vessel or crew member is the caller's business.
"""

from __future__ import annotations

from dataclasses import dataclass

from crewlog_kernel.exceptions import ProfileNotFoundError

# ---------------------------------------------------------------------------
# Profile definitions (declarative data, no executable logic)
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BudgetProfileDef:
    """Parameters for a fixed or rolling day budget."""

    name: str
    rule_type: str  # "fixed" or "rolling"
    allowed_days: int
    window_days: int | None = None  # required for rolling
    warning_threshold_days: int | None = None
    description: str = ""


@dataclass(frozen=True)
class AccrualProfileDef:
    """Parameters for capped run-based accrual."""

    name: str
    qualifying_states: tuple[str, ...]
    cap_per_run: int
    gap_tolerance_days: int = 0
    description: str = ""


@dataclass(frozen=True)
class StandbyProfileDef:
    """Parameters for standby-after-voyage crediting."""

    name: str
    voyage_states: tuple[str, ...]
    standby_states: tuple[str, ...]
    cap_per_run: int
    description: str = ""


@dataclass(frozen=True)
class ReconciliationProfileDef:
    """Parameters for day-by-day ledger comparison."""

    name: str
    excluded_states: tuple[str, ...] = ()
    description: str = ""


# ---------------------------------------------------------------------------
# Configuration set
# ---------------------------------------------------------------------------


def _find(profiles: tuple, kind: str, name: str):
    for profile in profiles:
        if profile.name == name:
            return profile
    raise ProfileNotFoundError(kind, name)


@dataclass(frozen=True)
class EngineConfigSet:
    """A versioned set of named engine profiles."""

    config_id: str
    version: int
    budget_profiles: tuple[BudgetProfileDef, ...] = ()
    accrual_profiles: tuple[AccrualProfileDef, ...] = ()
    standby_profiles: tuple[StandbyProfileDef, ...] = ()
    reconciliation_profiles: tuple[ReconciliationProfileDef, ...] = ()
    checksum: str = ""

    def budget_profile(self, name: str) -> BudgetProfileDef:
        return _find(self.budget_profiles, "budget", name)

    def accrual_profile(self, name: str) -> AccrualProfileDef:
        return _find(self.accrual_profiles, "accrual", name)

    def standby_profile(self, name: str) -> StandbyProfileDef:
        return _find(self.standby_profiles, "standby", name)

    def reconciliation_profile(self, name: str) -> ReconciliationProfileDef:
        return _find(self.reconciliation_profiles, "reconciliation", name)

    @property
    def profile_count(self) -> int:
        return (
            len(self.budget_profiles)
            + len(self.accrual_profiles)
            + len(self.standby_profiles)
            + len(self.reconciliation_profiles)
        )
