"""
Pure domain layer.

Day-granular value objects with NO dependencies on:
- Storage or data access
- Time/clock
- I/O

All domain objects are immutable and deterministic.
"""

from crewlog_kernel.domain.values import (
    DayRecord,
    ValidityWindow,
    VesselState,
)

__all__ = [
    "DayRecord",
    "ValidityWindow",
    "VesselState",
]
