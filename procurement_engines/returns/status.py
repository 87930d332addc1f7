"""
Return-status classifier.

Maps the aggregated ordered/received/returned quantities of a purchase to
exactly one ``PurchaseStatus``:

    returned == 0:
        received == 0             -> PENDING
        received <  ordered       -> PARTIALLY_RECEIVED
        otherwise                 -> RECEIVED
    returned > 0, net held == 0:
        received == ordered       -> RETURNED
        otherwise                 -> PENDING
    returned > 0, net held != 0:
        received == ordered       -> PARTIALLY_RETURNED
        otherwise                 -> PARTIALLY_RECEIVED

A partial shipment that has been sent back in full reverts to PENDING:
the order is awaiting receipt again, it is not a terminal return.
"""

from __future__ import annotations

from collections.abc import Iterable

from procurement_kernel.domain.purchases import PurchaseLineItem, PurchaseStatus
from procurement_kernel.logging_config import get_logger
from procurement_engines.tracer import traced_engine

logger = get_logger("engines.returns.status")


def classify_return_status(
    total_ordered: int,
    total_received: int,
    total_returned: int,
) -> PurchaseStatus:
    """Classify aggregated quantities.  Total over all integer inputs."""
    net_received = total_received - total_returned

    if total_returned == 0:
        if total_received == 0:
            return PurchaseStatus.PENDING
        if total_received < total_ordered:
            return PurchaseStatus.PARTIALLY_RECEIVED
        return PurchaseStatus.RECEIVED

    if net_received == 0:
        if total_received == total_ordered:
            return PurchaseStatus.RETURNED
        return PurchaseStatus.PENDING

    if total_received == total_ordered:
        return PurchaseStatus.PARTIALLY_RETURNED
    return PurchaseStatus.PARTIALLY_RECEIVED


@traced_engine("purchase_return_status", "1.0", fingerprint_fields=("items",))
def calculate_purchase_return_status(
    items: Iterable[PurchaseLineItem],
) -> PurchaseStatus:
    """Sum the line items of one purchase and classify the totals."""
    items = tuple(items)
    total_ordered = sum(i.quantity for i in items)
    total_received = sum(i.received_quantity for i in items)
    total_returned = sum(i.returned_quantity for i in items)

    status = classify_return_status(total_ordered, total_received, total_returned)

    logger.debug(
        "purchase_return_status_classified",
        extra={
            "total_ordered": total_ordered,
            "total_received": total_received,
            "total_returned": total_returned,
            "status": status.value,
        },
    )
    return status
