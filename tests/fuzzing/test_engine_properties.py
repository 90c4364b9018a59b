"""
Hypothesis-based property tests for the calculation engines.

Properties checked:
- Rolling budget violations equal a brute-force trailing-window count
- compliant is exactly "no violations" for both rule kinds
- Adding a ledger day never lowers usage or clears a violation
- Runs partition the input dates and respect the gap tolerance
- Accrual totals equal the sum of capped run lengths
- Reconciliation aggregates stay within their bounds
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st

from crewlog_engines.accrual import AccrualRule, evaluate_accrual
from crewlog_engines.budget import FixedAllowance, RollingWindow, evaluate_budget
from crewlog_engines.intervals import gap_days, group_into_runs
from crewlog_engines.reconciliation import compare_ledgers
from crewlog_kernel.domain.values import DayRecord, ValidityWindow, VesselState

BASE = date(2024, 1, 1)
HORIZON_DAYS = 120
WINDOW = ValidityWindow(BASE, BASE + timedelta(days=HORIZON_DAYS))

day_offsets = st.integers(min_value=0, max_value=HORIZON_DAYS)
ledger_dates = st.sets(day_offsets, max_size=80).map(
    lambda offsets: {BASE + timedelta(days=o) for o in offsets}
)
rolling_rules = st.builds(
    RollingWindow,
    allowed_days=st.integers(min_value=0, max_value=30),
    window_days=st.integers(min_value=1, max_value=60),
)
states = st.sampled_from(list(VesselState))
state_ledgers = st.dictionaries(
    day_offsets.map(lambda o: BASE + timedelta(days=o)), states, max_size=60
)


def _brute_force_violations(dates: set[date], rule: RollingWindow) -> list[date]:
    found = []
    for current in sorted(dates):
        start = current - timedelta(days=rule.window_days - 1)
        count = sum(1 for d in dates if start <= d <= current)
        if count > rule.allowed_days:
            found.append(current)
    return found


class TestBudgetProperties:

    @given(dates=ledger_dates, rule=rolling_rules)
    @settings(max_examples=200)
    def test_rolling_matches_brute_force(self, dates, rule):
        result = evaluate_budget(dates, WINDOW, rule, WINDOW.end)

        assert list(result.violation_dates) == _brute_force_violations(dates, rule)

    @given(dates=ledger_dates, rule=rolling_rules, as_of=day_offsets)
    def test_rolling_compliance_consistent(self, dates, rule, as_of):
        result = evaluate_budget(dates, WINDOW, rule, BASE + timedelta(days=as_of))

        assert result.compliant == (not result.violations)
        assert result.days_remaining == max(0, rule.allowed_days - result.days_used)
        assert all(v.date <= result.as_of for v in result.violations)

    @given(dates=ledger_dates, allowed=st.integers(min_value=0, max_value=100), as_of=day_offsets)
    def test_fixed_counts_every_day_up_to_as_of(self, dates, allowed, as_of):
        cutoff = BASE + timedelta(days=as_of)
        result = evaluate_budget(dates, WINDOW, FixedAllowance(allowed), cutoff)

        used = len([d for d in dates if d <= cutoff])
        assert result.days_used == used
        assert result.compliant == (used <= allowed)
        assert len(result.violations) == max(0, used - allowed)

    @given(dates=ledger_dates, rule=rolling_rules, extra=day_offsets)
    def test_adding_a_day_is_monotonic(self, dates, rule, extra):
        before = evaluate_budget(dates, WINDOW, rule, WINDOW.end)
        after = evaluate_budget(dates | {BASE + timedelta(days=extra)}, WINDOW, rule, WINDOW.end)

        assert after.days_used >= before.days_used
        assert after.peak_days_in_window >= before.peak_days_in_window
        if not before.compliant:
            assert not after.compliant


class TestRunProperties:

    @given(dates=ledger_dates, tolerance=st.integers(min_value=0, max_value=5))
    def test_runs_partition_dates(self, dates, tolerance):
        runs = group_into_runs(dates, tolerance)

        assert sum(r.length_days for r in runs) == len(dates)
        for earlier, later in zip(runs, runs[1:]):
            assert gap_days(earlier.end_date, later.start_date) > tolerance
        for run in runs:
            assert run.start_date <= run.end_date
            assert run.span_days >= run.length_days

    @given(
        offsets=st.sets(day_offsets, max_size=80),
        cap=st.integers(min_value=0, max_value=20),
        tolerance=st.integers(min_value=0, max_value=3),
    )
    def test_accrual_total_is_sum_of_capped_runs(self, offsets, cap, tolerance):
        ledger = [DayRecord(BASE + timedelta(days=o), VesselState.IN_PORT) for o in offsets]
        rule = AccrualRule(frozenset({VesselState.IN_PORT}), cap, tolerance)

        result = evaluate_accrual(ledger, rule)

        assert all(r.counted_days == min(r.length_days, cap) for r in result.runs)
        assert result.total_counted_days == sum(r.counted_days for r in result.runs)
        assert 0 <= result.total_counted_days <= len(offsets)


class TestReconciliationProperties:

    @given(party_a=state_ledgers, party_b=state_ledgers)
    def test_aggregates_bounded(self, party_a, party_b):
        window_dates = [BASE + timedelta(days=o) for o in range(HORIZON_DAYS + 1)]

        result = compare_ledgers(
            window_dates, party_a, party_b, excluded_states={VesselState.ON_LEAVE},
        )

        assert result.matching_days <= result.compared_days
        assert Decimal("0") <= result.match_rate <= Decimal("1")
        assert len(result.per_day) == len(window_dates)
        flagged = result.discrepancies + result.missing_from_a + result.missing_from_b
        assert not any(row.excluded for row in flagged)
        assert result.excluded_days == sum(
            1 for state in party_a.values() if state == VesselState.ON_LEAVE
        )
