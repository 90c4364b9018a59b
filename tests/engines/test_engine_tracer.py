"""Tests for the @traced_engine decorator and input fingerprints."""

from dataclasses import dataclass
from datetime import date

from crewlog_engines.tracer import compute_input_fingerprint, traced_engine
from crewlog_kernel.domain.values import VesselState


@dataclass(frozen=True)
class _Params:
    cap: int


@traced_engine("sample", "2.1", fingerprint_fields=("ledger", "params"))
def _sample_engine(ledger, params, note="unused"):
    return len(ledger)


class TestFingerprint:

    def test_deterministic(self):
        """Equal inputs give equal fingerprints."""
        args = {"ledger": {date(2024, 1, 1): VesselState.UNDERWAY}}

        assert compute_input_fingerprint(("ledger",), args) == compute_input_fingerprint(
            ("ledger",), dict(args)
        )

    def test_set_order_irrelevant(self):
        """Set ordering does not change the fingerprint."""
        a = compute_input_fingerprint(("dates",), {"dates": {date(2024, 1, 2), date(2024, 1, 1)}})
        b = compute_input_fingerprint(("dates",), {"dates": {date(2024, 1, 1), date(2024, 1, 2)}})

        assert a == b

    def test_list_order_matters(self):
        """List ordering changes the fingerprint."""
        a = compute_input_fingerprint(("dates",), {"dates": [date(2024, 1, 1), date(2024, 1, 2)]})
        b = compute_input_fingerprint(("dates",), {"dates": [date(2024, 1, 2), date(2024, 1, 1)]})

        assert a != b

    def test_enum_and_value_equivalent(self):
        """An enum member fingerprints like its value."""
        a = compute_input_fingerprint(("s",), {"s": VesselState.IN_PORT})
        b = compute_input_fingerprint(("s",), {"s": "in-port"})

        assert a == b

    def test_missing_field_recorded_as_null(self):
        """A missing field still yields a 16-character fingerprint."""
        assert len(compute_input_fingerprint(("absent",), {})) == 16

    def test_dataclass_fields_included(self):
        """Dataclass field values feed the fingerprint."""
        a = compute_input_fingerprint(("p",), {"p": _Params(1)})
        b = compute_input_fingerprint(("p",), {"p": _Params(2)})

        assert a != b


class TestTracedEngine:

    def test_result_passed_through(self):
        """The wrapped function's result is returned unchanged."""
        assert _sample_engine([1, 2, 3], _Params(1)) == 3

    def test_trace_record_emitted(self, captured_logs):
        """Each call emits one engine trace record."""
        _sample_engine([1], _Params(1))

        trace = next(r for r in captured_logs() if r["message"] == "CREWLOG_ENGINE_TRACE")
        assert trace["trace_type"] == "CREWLOG_ENGINE_TRACE"
        assert trace["engine_name"] == "sample"
        assert trace["engine_version"] == "2.1"
        assert trace["function"] == "_sample_engine"
        assert trace["duration_ms"] >= 0

    def test_positional_and_keyword_calls_share_fingerprint(self, captured_logs):
        """Positional and keyword calls fingerprint the same."""
        _sample_engine([1], _Params(1))
        _sample_engine(ledger=[1], params=_Params(1))

        traces = [r for r in captured_logs() if r["message"] == "CREWLOG_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_unlisted_argument_does_not_affect_fingerprint(self, captured_logs):
        """Arguments outside fingerprint_fields are ignored."""
        _sample_engine([1], _Params(1), note="a")
        _sample_engine([1], _Params(1), note="b")

        traces = [r for r in captured_logs() if r["message"] == "CREWLOG_ENGINE_TRACE"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]
