"""Pure domain values for the procurement kernel."""

from procurement_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from procurement_kernel.domain.purchases import (
    RETURN_EVENT_TYPES,
    Purchase,
    PurchaseEvent,
    PurchaseEventType,
    PurchaseLineItem,
    PurchasePayment,
    PurchaseReturn,
    PurchaseStatus,
    RefundStatus,
    RefundTransaction,
    to_datetime,
    to_decimal,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "Purchase",
    "PurchaseLineItem",
    "PurchaseReturn",
    "PurchaseEvent",
    "PurchaseEventType",
    "PurchasePayment",
    "PurchaseStatus",
    "RefundStatus",
    "RefundTransaction",
    "RETURN_EVENT_TYPES",
    "to_decimal",
    "to_datetime",
]
