"""
crewlog_config -- single public entrypoint for engine rule profiles.

Responsibility:
    Provides ``get_engine_config()``, which loads the named rule profiles
    (budget, accrual, standby, reconciliation) that callers translate into
    engine rule objects via ``crewlog_config.bridges``.

Architecture position:
    Configuration -- YAML-driven parameter profiles.
    Sits above ``crewlog_kernel`` and ``crewlog_engines``.  The engines
    MUST NEVER import from ``crewlog_config``.

Invariants enforced:
    - Deterministic loading: the same YAML always produces the same
      ``EngineConfigSet`` checksum.
    - Profiles are selected by name only; no region or vessel heuristics.

Failure modes:
    - ``FileNotFoundError`` -- the requested profile file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``KeyError`` / ``ValueError`` -- missing keys, unknown rule types,
      duplicate profile names.

Audit relevance:
    Every successful ``get_engine_config()`` call emits a
    ``CREWLOG_CONFIG_TRACE`` log entry containing the config_id, version,
    checksum and profile counts, tying each computed figure back to the
    exact parameter set that produced it.
"""

from __future__ import annotations

from pathlib import Path

from crewlog_config.loader import load_config_set
from crewlog_config.schema import EngineConfigSet
from crewlog_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_engine_config(config_path: Path | None = None) -> EngineConfigSet:
    """Load the engine profile set.

    Args:
        config_path: Override path to a profile YAML file.  Defaults to
            the bundled ``crewlog_config/sets/default.yaml``.

    Returns:
        EngineConfigSet with its checksum computed.

    Raises:
        FileNotFoundError: If the file does not exist.
        KeyError: If required keys are missing.
        ValueError: If a profile is malformed.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    config = load_config_set(path)

    _logger.info(
        "CREWLOG_CONFIG_TRACE",
        extra={
            "trace_type": "CREWLOG_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source": str(path),
            "budget_profile_count": len(config.budget_profiles),
            "accrual_profile_count": len(config.accrual_profiles),
            "standby_profile_count": len(config.standby_profiles),
            "reconciliation_profile_count": len(config.reconciliation_profiles),
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "EngineConfigSet",
    "get_engine_config",
]
