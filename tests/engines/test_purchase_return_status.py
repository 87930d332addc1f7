"""
Tests for the return-status classifier.

Covers:
- Every branch of classify_return_status at its boundary
- Aggregation over multiple line items
- The revert-to-pending rule for a fully returned partial shipment
"""

import pytest

from procurement_kernel.domain.purchases import PurchaseStatus
from procurement_engines.returns import (
    calculate_purchase_return_status,
    classify_return_status,
)
from tests.builders import make_item


class TestClassifyReturnStatus:
    """Boundary combinations of ordered/received/returned."""

    @pytest.mark.parametrize(
        "ordered, received, returned, expected",
        [
            (0, 0, 0, PurchaseStatus.PENDING),
            (10, 0, 0, PurchaseStatus.PENDING),
            (10, 5, 0, PurchaseStatus.PARTIALLY_RECEIVED),
            (10, 10, 0, PurchaseStatus.RECEIVED),
            (10, 10, 10, PurchaseStatus.RETURNED),
            (10, 5, 5, PurchaseStatus.PENDING),
            (10, 10, 5, PurchaseStatus.PARTIALLY_RETURNED),
            (10, 5, 2, PurchaseStatus.PARTIALLY_RECEIVED),
        ],
    )
    def test_boundary_table(self, ordered, received, returned, expected):
        assert classify_return_status(ordered, received, returned) is expected

    def test_fully_returned_partial_shipment_reverts_to_pending(self):
        """A partial receipt sent back in full is awaiting receipt again."""
        assert classify_return_status(8, 3, 3) is PurchaseStatus.PENDING

    def test_never_cancelled(self):
        """Cancellation is not derived from quantities."""
        seen = {
            classify_return_status(o, r, x)
            for o in range(4)
            for r in range(o + 1)
            for x in range(r + 1)
        }
        assert PurchaseStatus.CANCELLED not in seen


class TestCalculatePurchaseReturnStatus:
    """Aggregation of line items before classification."""

    def test_sums_across_items(self):
        """Two fully received items, one partly returned."""
        items = [
            make_item(5, received=5, returned=2),
            make_item(5, received=5, returned=0),
        ]

        assert calculate_purchase_return_status(items) is PurchaseStatus.PARTIALLY_RETURNED

    def test_totals_mask_per_item_shortfall(self):
        """Classification uses totals, not per-item states."""
        items = [
            make_item(5, received=3, returned=0),
            make_item(5, received=7, returned=0),
        ]

        assert calculate_purchase_return_status(items) is PurchaseStatus.RECEIVED

    def test_no_items_is_pending(self):
        assert calculate_purchase_return_status([]) is PurchaseStatus.PENDING

    def test_accepts_generator(self):
        items = (make_item(4, received=4, returned=4) for _ in range(2))

        assert calculate_purchase_return_status(items) is PurchaseStatus.RETURNED

    def test_emits_engine_trace(self, captured_logs):
        calculate_purchase_return_status([make_item(1, received=1)])

        traces = [r for r in captured_logs() if r["message"] == "PROCUREMENT_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "purchase_return_status"
        assert len(traces[0]["input_fingerprint"]) == 16
