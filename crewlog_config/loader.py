"""
Configuration Loader (``crewlog_config.loader``).

Responsibility
--------------
Loads a YAML profile file and parses it into typed
``crewlog_config.schema`` dataclass instances.  Runtime callers use
``crewlog_config.get_engine_config()`` rather than calling this directly.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on the kernel for
exception types only; never imported by the engines.

Invariants enforced
-------------------
* No silent defaults for required fields: missing keys raise ``KeyError``.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in parsed dict  -> ``KeyError`` propagates.
* Unknown ``rule_type`` or duplicate profile names -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from crewlog_config.schema import (
    AccrualProfileDef,
    BudgetProfileDef,
    EngineConfigSet,
    ReconciliationProfileDef,
    StandbyProfileDef,
)

RULE_TYPES = ("fixed", "rolling")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Postconditions:
        - Returns a ``dict`` (possibly empty if the YAML is empty).
    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


def parse_budget_profile(data: dict[str, Any]) -> BudgetProfileDef:
    """
    Parse a ``BudgetProfileDef`` from a dict.

    Preconditions:
        - ``data`` contains ``name``, ``rule_type`` and ``allowed_days``;
          rolling profiles also contain ``window_days``.
    Raises:
        KeyError: if required keys are missing.
        ValueError: if ``rule_type`` is not "fixed" or "rolling".
    """
    rule_type = str(data["rule_type"]).lower()
    if rule_type not in RULE_TYPES:
        raise ValueError(
            f"Budget profile '{data['name']}' has unknown rule_type {data['rule_type']!r}"
        )
    window_days = int(data["window_days"]) if rule_type == "rolling" else None
    return BudgetProfileDef(
        name=data["name"],
        rule_type=rule_type,
        allowed_days=int(data["allowed_days"]),
        window_days=window_days,
        warning_threshold_days=_optional_int(data.get("warning_threshold_days")),
        description=data.get("description", ""),
    )


def parse_accrual_profile(data: dict[str, Any]) -> AccrualProfileDef:
    """Parse an AccrualProfileDef from a dict."""
    return AccrualProfileDef(
        name=data["name"],
        qualifying_states=tuple(data["qualifying_states"]),
        cap_per_run=int(data["cap_per_run"]),
        gap_tolerance_days=int(data.get("gap_tolerance_days", 0)),
        description=data.get("description", ""),
    )


def parse_standby_profile(data: dict[str, Any]) -> StandbyProfileDef:
    """Parse a StandbyProfileDef from a dict."""
    return StandbyProfileDef(
        name=data["name"],
        voyage_states=tuple(data["voyage_states"]),
        standby_states=tuple(data["standby_states"]),
        cap_per_run=int(data["cap_per_run"]),
        description=data.get("description", ""),
    )


def parse_reconciliation_profile(data: dict[str, Any]) -> ReconciliationProfileDef:
    """Parse a ReconciliationProfileDef from a dict."""
    return ReconciliationProfileDef(
        name=data["name"],
        excluded_states=tuple(data.get("excluded_states", ())),
        description=data.get("description", ""),
    )


def _unique(kind: str, profiles: tuple) -> tuple:
    seen: set[str] = set()
    for profile in profiles:
        if profile.name in seen:
            raise ValueError(f"Duplicate {kind} profile name '{profile.name}'")
        seen.add(profile.name)
    return profiles


def parse_config_set(data: dict[str, Any]) -> EngineConfigSet:
    """
    Parse a complete ``EngineConfigSet`` from a dict.

    Postconditions:
        - ``checksum`` is the SHA-256 of the canonical form of ``data``.
    Raises:
        KeyError: if ``config_id`` or a profile's required keys are missing.
        ValueError: on duplicate profile names or unknown rule types.
    """
    return EngineConfigSet(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        budget_profiles=_unique("budget", tuple(
            parse_budget_profile(p) for p in data.get("budget_profiles", [])
        )),
        accrual_profiles=_unique("accrual", tuple(
            parse_accrual_profile(p) for p in data.get("accrual_profiles", [])
        )),
        standby_profiles=_unique("standby", tuple(
            parse_standby_profile(p) for p in data.get("standby_profiles", [])
        )),
        reconciliation_profiles=_unique("reconciliation", tuple(
            parse_reconciliation_profile(p) for p in data.get("reconciliation_profiles", [])
        )),
        checksum=compute_checksum(data),
    )


def load_config_set(path: Path) -> EngineConfigSet:
    """Load and parse a YAML profile file."""
    return parse_config_set(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Returns a hex-encoded SHA-256 hash string.
        - Identical ``data`` always produces identical checksums, regardless
          of key order.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
