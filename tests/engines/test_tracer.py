"""
Tests for the engine tracer.

Covers:
- Deterministic input fingerprints
- Canonical forms of Decimal, enums, dataclasses and collections
- PROCUREMENT_ENGINE_TRACE emission with positional and keyword binding
"""

from decimal import Decimal

from procurement_kernel.domain.purchases import RefundStatus
from procurement_engines.tracer import (
    _canonicalize,
    compute_input_fingerprint,
    traced_engine,
)
from tests.builders import make_item, make_purchase


class TestCanonicalize:
    def test_decimal_is_normalized(self):
        assert _canonicalize(Decimal("100.00")) == _canonicalize(Decimal("100"))

    def test_enum_uses_value(self):
        assert _canonicalize(RefundStatus.COMPLETED) == "completed"

    def test_bool_and_none(self):
        assert _canonicalize(True) == "true"
        assert _canonicalize(None) == "null"

    def test_dict_keys_sorted(self):
        assert _canonicalize({"b": 1, "a": 2}) == _canonicalize({"a": 2, "b": 1})

    def test_dataclass_expanded(self):
        text = _canonicalize(make_item(2, received=1))

        assert "quantity:2" in text
        assert "received_quantity:1" in text


class TestComputeInputFingerprint:
    def test_deterministic(self):
        purchase = make_purchase("1000", [make_item(10, received=10)])
        args = {"purchase": purchase, "amount_paid": Decimal("5")}

        first = compute_input_fingerprint(("purchase", "amount_paid"), args)
        second = compute_input_fingerprint(("purchase", "amount_paid"), dict(args))

        assert first == second
        assert len(first) == 16

    def test_sensitive_to_inputs(self):
        fields = ("amount_paid",)

        assert compute_input_fingerprint(fields, {"amount_paid": Decimal("1")}) != (
            compute_input_fingerprint(fields, {"amount_paid": Decimal("2")})
        )

    def test_missing_field_is_null(self):
        assert compute_input_fingerprint(("x",), {}) == (
            compute_input_fingerprint(("x",), {"x": None})
        )


class TestTracedEngine:
    def test_result_unchanged_and_trace_emitted(self, captured_logs):
        @traced_engine("double", "2.1", fingerprint_fields=("value",))
        def double(value):
            return value * 2

        assert double(Decimal("4")) == Decimal("8")

        trace = captured_logs()[-1]
        assert trace["message"] == "PROCUREMENT_ENGINE_TRACE"
        assert trace["trace_type"] == "PROCUREMENT_ENGINE_TRACE"
        assert trace["engine_name"] == "double"
        assert trace["engine_version"] == "2.1"
        assert trace["duration_ms"] >= 0

    def test_positional_and_keyword_calls_share_fingerprint(self, captured_logs):
        @traced_engine("add", "1.0", fingerprint_fields=("a", "b"))
        def add(a, b=Decimal("0")):
            return a + b

        add(Decimal("1"), Decimal("2"))
        add(a=Decimal("1"), b=Decimal("2"))

        traces = [r for r in captured_logs() if r.get("engine_name") == "add"]
        assert traces[0]["input_fingerprint"] == traces[1]["input_fingerprint"]

    def test_no_fingerprint_fields(self, captured_logs):
        @traced_engine("noop", "1.0")
        def noop():
            return None

        noop()

        assert captured_logs()[-1]["input_fingerprint"] == ""
