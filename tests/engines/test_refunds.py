"""
Tests for the refund rules engine.

Covers:
- FIFO allocation across original payments
- Already-refunded amounts and non-completed payments
- Refund window boundaries
- Roll-up of refund transactions by status
"""

from datetime import timedelta
from decimal import Decimal

from procurement_kernel.domain.purchases import RefundStatus, RefundTransaction
from procurement_engines.refunds import (
    DEFAULT_REFUND_WINDOW_DAYS,
    allocate_refund_fifo,
    check_refund_window,
    summarize_refund_transactions,
)
from tests.builders import BASE_TIME, make_payment


class TestAllocateRefundFifo:
    """Oldest payment first, never more than it has left."""

    def setup_method(self):
        self.payments = [
            make_payment("PAY-2", "300", days=2, method="card"),
            make_payment("PAY-1", "500", days=1),
            make_payment("PAY-3", "200", days=3, method="cash"),
        ]

    def test_single_payment_covers_refund(self):
        allocations = allocate_refund_fifo(self.payments, Decimal("150"))

        assert len(allocations) == 1
        assert allocations[0].payment_id == "PAY-1"
        assert allocations[0].refund_amount == Decimal("150")
        assert allocations[0].payment_method == "bank_transfer"

    def test_spills_into_next_payment(self):
        allocations = allocate_refund_fifo(self.payments, Decimal("650"))

        assert [(a.payment_id, a.refund_amount) for a in allocations] == [
            ("PAY-1", Decimal("500")),
            ("PAY-2", Decimal("150")),
        ]

    def test_already_refunded_is_skipped(self):
        allocations = allocate_refund_fifo(
            self.payments, Decimal("400"), {"PAY-1": Decimal("500"), "PAY-2": Decimal("100")},
        )

        assert [(a.payment_id, a.refund_amount) for a in allocations] == [
            ("PAY-2", Decimal("200")),
            ("PAY-3", Decimal("200")),
        ]

    def test_shortfall_allocates_what_exists(self, captured_logs):
        allocations = allocate_refund_fifo(self.payments, Decimal("1500"))

        assert sum(a.refund_amount for a in allocations) == Decimal("1000")
        shortfall = [r for r in captured_logs() if r["message"] == "refund_allocation_shortfall"]
        assert shortfall[0]["unallocated"] == "500"

    def test_ignores_payments_not_completed(self):
        payments = [
            make_payment("PAY-0", "900", days=0, status="voided"),
            make_payment("PAY-1", "100", days=1),
        ]

        allocations = allocate_refund_fifo(payments, Decimal("50"))

        assert [a.payment_id for a in allocations] == ["PAY-1"]

    def test_non_positive_amount_allocates_nothing(self):
        assert allocate_refund_fifo(self.payments, Decimal("0")) == ()
        assert allocate_refund_fifo(self.payments, Decimal("-5")) == ()

    def test_payment_date_carried_through(self):
        allocations = allocate_refund_fifo(self.payments, Decimal("10"))

        assert allocations[0].payment_date == BASE_TIME + timedelta(days=1)


class TestCheckRefundWindow:
    """Calendar-day window measured from the purchase date."""

    def test_same_day(self):
        result = check_refund_window(BASE_TIME, BASE_TIME)

        assert result.eligible is True
        assert result.days_since_purchase == 0
        assert result.reason is None

    def test_last_day_is_inclusive(self):
        result = check_refund_window(BASE_TIME, BASE_TIME + timedelta(days=30))

        assert result.eligible is True
        assert result.days_since_purchase == 30

    def test_past_window(self):
        result = check_refund_window(BASE_TIME, BASE_TIME + timedelta(days=31))

        assert result.eligible is False
        assert result.days_since_purchase == 31
        assert result.reason == "Purchase exceeds 30-day refund limit"

    def test_counts_calendar_days_not_hours(self):
        """Late on day 30 is still day 30."""
        result = check_refund_window(BASE_TIME, BASE_TIME + timedelta(days=30, hours=11))

        assert result.days_since_purchase == 30
        assert result.eligible is True

    def test_custom_window(self):
        result = check_refund_window(BASE_TIME, BASE_TIME + timedelta(days=8), window_days=7)

        assert result.eligible is False
        assert result.reason == "Purchase exceeds 7-day refund limit"

    def test_default_window(self):
        assert DEFAULT_REFUND_WINDOW_DAYS == 30


class TestSummarizeRefundTransactions:
    """Counts and totals by status bucket."""

    @staticmethod
    def _txn(txn_id, amount, status):
        return RefundTransaction(
            transaction_id=txn_id,
            payment_id="PAY-1",
            amount=Decimal(amount),
            method="card",
            status=status,
        )

    def test_buckets(self):
        summary = summarize_refund_transactions([
            self._txn("T1", "10", RefundStatus.PENDING),
            self._txn("T2", "20", RefundStatus.PROCESSING),
            self._txn("T3", "30", RefundStatus.COMPLETED),
            self._txn("T4", "40", RefundStatus.FAILED),
            self._txn("T5", "50", RefundStatus.CANCELLED),
        ])

        assert summary.total_pending == 2
        assert summary.pending_amount == Decimal("30")
        assert summary.total_completed == 1
        assert summary.completed_amount == Decimal("30")
        assert summary.total_failed == 1
        assert summary.failed_amount == Decimal("40")

    def test_empty(self):
        summary = summarize_refund_transactions([])

        assert summary.total_pending == 0
        assert summary.completed_amount == Decimal("0")
