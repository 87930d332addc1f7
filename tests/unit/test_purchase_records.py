"""
Tests for purchase input records.

Covers:
- Decimal coercion of monetary fields
- Timestamp parsing and UTC defaulting
- Building records from data-store rows
- Event classification
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from procurement_kernel.domain import (
    Purchase,
    PurchaseEvent,
    PurchaseEventType,
    PurchaseLineItem,
    PurchasePayment,
    PurchaseReturn,
    RefundStatus,
    RefundTransaction,
    to_datetime,
    to_decimal,
)


class TestCoercion:
    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_none_is_zero(self):
        assert to_decimal(None) == Decimal("0")

    def test_invalid_amount(self):
        with pytest.raises(ValueError, match="Invalid refund_amount"):
            to_decimal("ten", "refund_amount")

    def test_naive_datetime_is_utc(self):
        parsed = to_datetime("2024-03-01T10:00:00")

        assert parsed.tzinfo is timezone.utc
        assert parsed.hour == 10

    def test_date_becomes_midnight(self):
        assert to_datetime(date(2024, 3, 1)) == datetime(2024, 3, 1, tzinfo=timezone.utc)

    def test_unparseable(self):
        with pytest.raises(ValueError):
            to_datetime(12345)


class TestFromRow:
    """Records built from row mappings."""

    def test_purchase_with_items(self):
        purchase = Purchase.from_row(
            {"id": 42, "total_amount": "1000.00", "created_at": "2024-01-01T00:00:00Z"},
            items=[{"id": 7, "quantity": 10, "received_quantity": 10,
                    "returned_quantity": None, "purchase_price": 100}],
        )

        assert purchase.id == "42"
        assert purchase.total_amount == Decimal("1000.00")
        assert purchase.items[0].returned_quantity == 0
        assert purchase.items[0].purchase_price == Decimal("100")
        assert purchase.items[0].id == "7"
        assert purchase.created_at.tzinfo is not None

    def test_purchase_nested_items(self):
        purchase = Purchase.from_row({
            "id": "PUR-1",
            "total_amount": 50,
            "items": [{"quantity": 1, "purchase_price": "50"}],
        })

        assert len(purchase.items) == 1
        assert purchase.created_at is None

    def test_return_row(self):
        record = PurchaseReturn.from_row({
            "id": "RET-1", "purchase_id": "PUR-1", "total_amount": "300",
            "refund_status": "completed", "refund_amount": "300",
        })

        assert record.refund_status is RefundStatus.COMPLETED
        assert record.refund_amount == Decimal("300")

    def test_return_row_defaults_to_pending(self):
        record = PurchaseReturn.from_row({"purchase_id": "PUR-1", "total_amount": 10})

        assert record.refund_status is RefundStatus.PENDING
        assert record.refund_amount is None

    def test_payment_row(self):
        payment = PurchasePayment.from_row({
            "id": "PAY-1", "purchase_id": "PUR-1", "amount": "12.30",
            "payment_method": None, "created_at": "2024-01-05T09:00:00",
        })

        assert payment.payment_method == "other"
        assert payment.status == "completed"
        assert payment.amount == Decimal("12.30")

    def test_refund_transaction_row(self):
        txn = RefundTransaction.from_row({
            "id": "T1", "original_payment_id": "PAY-1", "refund_amount": "5",
            "refund_method": "card", "status": "failed", "failure_reason": "card expired",
        })

        assert txn.payment_id == "PAY-1"
        assert txn.status is RefundStatus.FAILED
        assert txn.failure_reason == "card expired"


class TestPurchaseEvent:
    def test_known_types_become_enum(self):
        event = PurchaseEvent("PUR-1", "full_return", "2024-01-01T00:00:00")

        assert event.event_type is PurchaseEventType.FULL_RETURN
        assert event.is_return is True
        assert event.is_payment is False

    def test_unknown_types_kept(self):
        event = PurchaseEvent("PUR-1", "note_added", "2024-01-01T00:00:00")

        assert event.event_type == "note_added"
        assert event.is_return is False
        assert event.is_payment is False

    def test_payment(self):
        event = PurchaseEvent.from_row({
            "purchase_id": "PUR-1", "event_type": "payment_made",
            "created_at": datetime(2024, 1, 1),
        })

        assert event.is_payment is True


class TestLineItem:
    def test_returned_value(self):
        item = PurchaseLineItem(
            quantity=4, received_quantity=4, returned_quantity=3, purchase_price="19.99",
        )

        assert item.returned_value == Decimal("59.97")

    def test_frozen(self):
        item = PurchaseLineItem(1, 1, 0, Decimal("1"))

        with pytest.raises(AttributeError):
            item.quantity = 2
