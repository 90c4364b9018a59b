"""
Tests for the calendar/interval utilities.

Covers:
- Inclusive and exclusive day counting
- Gap measurement
- Day enumeration
- Run grouping with gap tolerance
- Ledger indexing and duplicate detection
- Trailing unrecorded days
"""

from datetime import date, datetime

import pytest

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
from crewlog_kernel.domain.values import DayRecord, ValidityWindow, VesselState
from crewlog_kernel.exceptions import (
    DuplicateDayRecordError,
    InvalidParameterError,
    InvalidRangeError,
)


def _jan(day: int) -> date:
    return date(2024, 1, day)


class TestDayCounting:
    """Inclusive totals, exclusive gaps."""

    def test_inclusive_counts_both_ends(self):
        """Jan 1 to Jan 5 inclusive is 5 days."""
        assert days_between(_jan(1), _jan(5), inclusive=True) == 5

    def test_inclusive_same_day_is_one(self):
        """A single day counted inclusively is 1."""
        assert days_between(_jan(1), _jan(1), inclusive=True) == 1

    def test_exclusive_is_plain_difference(self):
        """Exclusive counting is the plain date difference."""
        assert days_between(_jan(1), _jan(5), inclusive=False) == 4

    def test_exclusive_is_signed(self):
        """Exclusive counting keeps the sign of an inverted pair."""
        assert days_between(_jan(5), _jan(1), inclusive=False) == -4

    def test_inclusive_inverted_range_raises(self):
        """An inverted inclusive range raises InvalidRangeError."""
        with pytest.raises(InvalidRangeError) as exc_info:
            days_between(_jan(5), _jan(1), inclusive=True)
        assert exc_info.value.code == "INVALID_RANGE"
        assert exc_info.value.start == "2024-01-05"

    def test_inclusive_flag_is_required(self):
        """Callers must choose inclusive or exclusive explicitly."""
        with pytest.raises(TypeError):
            days_between(_jan(1), _jan(5))

    def test_gap_between_consecutive_days_is_zero(self):
        """Consecutive days have no gap."""
        assert gap_days(_jan(1), _jan(2)) == 0

    def test_gap_counts_days_strictly_between(self):
        """Gap counts only the days strictly between."""
        assert gap_days(_jan(2), _jan(4)) == 1
        assert gap_days(_jan(1), _jan(10)) == 8

    def test_leap_day_counted(self):
        """Feb 29 is counted in a leap year."""
        assert days_between(date(2024, 2, 28), date(2024, 3, 1), inclusive=True) == 3


class TestNormalization:
    """Day-granular normalization."""

    def test_datetime_drops_time_of_day(self):
        """A datetime is truncated to its calendar date."""
        assert to_calendar_date(datetime(2024, 1, 1, 23, 59)) == _jan(1)

    def test_date_passes_through(self):
        """A plain date is returned unchanged."""
        assert to_calendar_date(_jan(3)) == _jan(3)

    def test_string_rejected(self):
        """Strings are not parsed."""
        with pytest.raises(TypeError):
            to_calendar_date("2024-01-01")


class TestEnumerateDays:
    """Enumerating a window."""

    def test_every_day_ascending(self):
        """Every day across a month boundary, in order."""
        days = enumerate_days(ValidityWindow(_jan(30), date(2024, 2, 2)))

        assert days == (_jan(30), _jan(31), date(2024, 2, 1), date(2024, 2, 2))

    def test_single_day_window(self):
        """A single-day window yields that day."""
        assert enumerate_days(ValidityWindow(_jan(1), _jan(1))) == (_jan(1),)

    def test_result_is_restartable(self):
        """The result can be iterated more than once."""
        days = enumerate_days(ValidityWindow(_jan(1), _jan(3)))

        assert list(days) == list(days)

    def test_inverted_window_raises(self):
        """An inverted window cannot be built."""
        with pytest.raises(InvalidRangeError):
            enumerate_days(ValidityWindow(_jan(3), _jan(1)))

    def test_window_length_matches_enumeration(self):
        """length_days equals the number of enumerated days."""
        window = ValidityWindow(_jan(1), date(2024, 12, 31))

        assert len(enumerate_days(window)) == window.length_days == 366


class TestGroupIntoRuns:
    """Grouping sorted dates into maximal runs."""

    def test_consecutive_days_form_one_run(self):
        """Five consecutive days form one run."""
        runs = group_into_runs([_jan(d) for d in range(1, 6)], 0)

        assert runs == (Run(_jan(1), _jan(5), 5, 5),)

    def test_gap_splits_runs(self):
        """A missing day splits the run."""
        runs = group_into_runs([_jan(1), _jan(2), _jan(4), _jan(5)], 0)

        assert [(r.start_date, r.end_date, r.length_days) for r in runs] == [
            (_jan(1), _jan(2), 2),
            (_jan(4), _jan(5), 2),
        ]

    def test_gap_within_tolerance_merges(self):
        """A gap no larger than the tolerance keeps one run."""
        runs = group_into_runs([_jan(1), _jan(2), _jan(4), _jan(5)], 1)

        assert len(runs) == 1
        assert runs[0].length_days == 4
        assert runs[0].span_days == 5

    def test_gap_one_beyond_tolerance_splits(self):
        """A gap one larger than the tolerance splits."""
        runs = group_into_runs([_jan(1), _jan(5)], 2)  # gap of 3

        assert len(runs) == 2

    def test_unsorted_input_is_sorted(self):
        """Input order does not matter."""
        runs = group_into_runs([_jan(3), _jan(1), _jan(2)], 0)

        assert runs == (Run(_jan(1), _jan(3), 3, 3),)

    def test_duplicates_do_not_inflate_length(self):
        """Repeated dates count once."""
        runs = group_into_runs([_jan(1), _jan(1), _jan(2), _jan(2)], 0)

        assert runs == (Run(_jan(1), _jan(2), 2, 2),)

    def test_empty_input_no_runs(self):
        """No dates, no runs."""
        assert group_into_runs([], 0) == ()

    def test_single_date_single_run(self):
        """One date is a run of length 1."""
        assert group_into_runs([_jan(7)], 0) == (Run(_jan(7), _jan(7), 1, 1),)

    def test_negative_tolerance_raises(self):
        """A negative tolerance is rejected."""
        with pytest.raises(InvalidParameterError) as exc_info:
            group_into_runs([_jan(1)], -1)
        assert exc_info.value.parameter == "gap_tolerance_days"

    def test_runs_are_uncapped(self):
        """Grouping applies no cap."""
        runs = group_into_runs([_jan(d) for d in range(1, 21)], 0)

        assert runs[0].counted_days == runs[0].length_days == 20

    def test_capped_copy(self):
        """capped() limits counted_days and leaves the original intact."""
        run = Run(_jan(1), _jan(5), 5, 5)

        assert run.capped(3).counted_days == 3
        assert run.capped(10).counted_days == 5
        assert run.counted_days == 5


class TestLedgerToMapping:
    """Indexing day records by date."""

    def test_indexes_by_date(self):
        """Each record maps its date to its state."""
        ledger = [
            DayRecord(_jan(1), VesselState.UNDERWAY),
            DayRecord(_jan(2), VesselState.IN_PORT),
        ]

        assert ledger_to_mapping(ledger) == {
            _jan(1): VesselState.UNDERWAY,
            _jan(2): VesselState.IN_PORT,
        }

    def test_identical_duplicates_collapse(self):
        """The same state twice on one day is tolerated."""
        ledger = [
            DayRecord(_jan(1), VesselState.UNDERWAY),
            DayRecord(_jan(1), VesselState.UNDERWAY),
        ]

        assert len(ledger_to_mapping(ledger)) == 1

    def test_conflicting_duplicates_raise(self):
        """Two states on one day raise DuplicateDayRecordError."""
        ledger = [
            DayRecord(_jan(1), VesselState.UNDERWAY),
            DayRecord(_jan(1), VesselState.IN_PORT),
        ]

        with pytest.raises(DuplicateDayRecordError) as exc_info:
            ledger_to_mapping(ledger)
        assert exc_info.value.day == "2024-01-01"
        assert exc_info.value.states == ("underway", "in-port")


class TestFindMissingDays:
    """Unrecorded days after the latest ledger entry."""

    def test_empty_ledger(self):
        """An empty ledger has no last entry and nothing missing."""
        result = find_missing_days([], _jan(10))

        assert result == MissingDays(last_logged_date=None, last_logged_state=None)
        assert result.missing_days == ()

    def test_trailing_gap_listed_through_as_of(self):
        """Days from the day after the last entry through as_of are missing."""
        ledger = [
            DayRecord(_jan(1), VesselState.UNDERWAY),
            DayRecord(_jan(2), VesselState.AT_ANCHOR),
        ]

        result = find_missing_days(ledger, _jan(5))

        assert result.last_logged_date == _jan(2)
        assert result.last_logged_state == VesselState.AT_ANCHOR
        assert result.missing_days == (_jan(3), _jan(4), _jan(5))

    def test_latest_entry_found_in_unsorted_ledger(self):
        """The latest date wins regardless of record order."""
        ledger = [
            DayRecord(_jan(4), VesselState.IN_PORT),
            DayRecord(_jan(1), VesselState.UNDERWAY),
        ]

        result = find_missing_days(ledger, _jan(5))

        assert result.last_logged_state == VesselState.IN_PORT
        assert result.missing_days == (_jan(5),)

    def test_no_gap_when_ledger_reaches_as_of(self):
        """A ledger ending on as_of has nothing missing."""
        result = find_missing_days([DayRecord(_jan(5), VesselState.IN_PORT)], _jan(5))

        assert result.last_logged_date == _jan(5)
        assert result.missing_days == ()

    def test_future_last_entry_has_no_gap(self):
        """An entry after as_of leaves nothing missing."""
        result = find_missing_days([DayRecord(_jan(9), VesselState.IN_YARD)], _jan(5))

        assert result.last_logged_date == _jan(9)
        assert result.last_logged_state == VesselState.IN_YARD
        assert result.missing_days == ()

    def test_earlier_holes_not_reported(self):
        """Only the trailing gap is reported."""
        ledger = [
            DayRecord(_jan(1), VesselState.UNDERWAY),
            DayRecord(_jan(4), VesselState.UNDERWAY),
        ]

        assert find_missing_days(ledger, _jan(5)).missing_days == (_jan(5),)

    def test_fill_records_carry_last_state(self):
        """fill_records repeats the last state over each missing day."""
        result = find_missing_days([DayRecord(_jan(1), VesselState.UNDERWAY)], _jan(3))

        assert result.fill_records() == (
            DayRecord(_jan(2), VesselState.UNDERWAY),
            DayRecord(_jan(3), VesselState.UNDERWAY),
        )

    def test_conflicting_records_raise(self):
        """Conflicting states on one day are rejected."""
        ledger = [
            DayRecord(_jan(1), VesselState.UNDERWAY),
            DayRecord(_jan(1), VesselState.IN_PORT),
        ]

        with pytest.raises(DuplicateDayRecordError):
            find_missing_days(ledger, _jan(3))
