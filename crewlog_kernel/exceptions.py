"""
Typed Exception Hierarchy for the crewlog engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Compliance numbers end up on visa badges and signed testimonials. A caller
that has to parse ``str(exc)`` to tell an inverted date range from a negative
cap will eventually show the wrong message to a crew member.

Every error therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        evaluate_budget(dates, window, rule, as_of)
    except Exception as e:
        if "window_days" in str(e):  # FRAGILE - message might change
            ...

Example - RIGHT way:
    try:
        evaluate_budget(dates, window, rule, as_of)
    except InvalidParameterError as e:
        api_response(code=e.code, parameter=e.parameter, value=e.value)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CrewlogError (base)
    |
    +-- CalendarError
    |   +-- InvalidRangeError
    |
    +-- ParameterError
    |   +-- InvalidParameterError
    |
    +-- LedgerError
    |   +-- DuplicateDayRecordError
    |
    +-- ConfigError
        +-- ProfileNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                 | When Raised
-----------|----------------------|--------------------------------------------
Calendar   | INVALID_RANGE        | Window or comparison range has start > end
-----------|----------------------|--------------------------------------------
Parameter  | INVALID_PARAMETER    | Negative cap, negative gap tolerance,
           |                      | non-positive rolling window, negative
           |                      | allowance or requested day count
-----------|----------------------|--------------------------------------------
Ledger     | DUPLICATE_DAY_RECORD | Same date carries two different states
-----------|----------------------|--------------------------------------------
Config     | PROFILE_NOT_FOUND    | Named rule profile missing from config set

All of these are raised synchronously by pure code and are never transient.
Nothing in the engine retries or downgrades them to defaults.
"""


class CrewlogError(Exception):
    """
    Base exception for all crewlog errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CREWLOG_ERROR"


# Calendar exceptions


class CalendarError(CrewlogError):
    """Base exception for calendar/date-range errors."""

    code: str = "CALENDAR_ERROR"


class InvalidRangeError(CalendarError):
    """A validity window or comparison range ends before it starts."""

    code: str = "INVALID_RANGE"

    def __init__(self, start: str, end: str):
        self.start = start
        self.end = end
        super().__init__(f"Invalid date range: start {start} is after end {end}")


# Parameter exceptions


class ParameterError(CrewlogError):
    """Base exception for rule parameter errors."""

    code: str = "PARAMETER_ERROR"


class InvalidParameterError(ParameterError):
    """A rule parameter is outside its legal domain."""

    code: str = "INVALID_PARAMETER"

    def __init__(self, parameter: str, value: object, reason: str):
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {parameter}={value!r}: {reason}")


# Ledger exceptions


class LedgerError(CrewlogError):
    """Base exception for day-ledger integrity errors."""

    code: str = "LEDGER_ERROR"


class DuplicateDayRecordError(LedgerError):
    """
    A ledger holds two different states for the same calendar day.

    Ledgers carry at most one state per date per subject. Identical
    duplicates are tolerated; conflicting ones are not.
    """

    code: str = "DUPLICATE_DAY_RECORD"

    def __init__(self, day: str, states: tuple[str, ...]):
        self.day = day
        self.states = states
        super().__init__(
            f"Conflicting states for {day}: {', '.join(states)}"
        )


# Configuration exceptions


class ConfigError(CrewlogError):
    """Base exception for rule profile configuration errors."""

    code: str = "CONFIG_ERROR"


class ProfileNotFoundError(ConfigError):
    """No profile with the requested name exists in the config set."""

    code: str = "PROFILE_NOT_FOUND"

    def __init__(self, profile_kind: str, name: str):
        self.profile_kind = profile_kind
        self.name = name
        super().__init__(f"No {profile_kind} profile named '{name}'")
