"""
Module: procurement_engines.refunds
Responsibility:
    Pure refund rules: how a refund is split across the buyer's original
    payments (oldest first), whether a purchase is still inside the refund
    window, and how refund transactions roll up by status.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Backs the in-memory refund
    gateway and mirrors what the data store computes server-side.

Invariants enforced:
    - Decimal-only arithmetic.
    - FIFO allocation never takes more from a payment than it has left
      after earlier refunds, and never allocates more than requested.
    - The refund window is measured in whole calendar days, inclusive.

Failure modes:
    - None for well-typed input.  A non-positive refund amount allocates
      nothing.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from procurement_kernel.domain.purchases import (
    PurchasePayment,
    RefundStatus,
    RefundTransaction,
)
from procurement_kernel.logging_config import get_logger
from procurement_engines.tracer import traced_engine

logger = get_logger("engines.refunds")

_ZERO = Decimal("0")

DEFAULT_REFUND_WINDOW_DAYS = 30


@dataclass(frozen=True)
class RefundAllocation:
    """Portion of a refund drawn from one original payment."""

    payment_id: str
    payment_method: str
    refund_amount: Decimal
    payment_date: datetime


@dataclass(frozen=True)
class RefundWindowResult:
    """Outcome of the refund-window check."""

    eligible: bool
    days_since_purchase: int
    reason: str | None = None


@dataclass(frozen=True)
class RefundTransactionSummary:
    """Counts and totals of refund transactions by status bucket."""

    total_pending: int = 0
    total_completed: int = 0
    total_failed: int = 0
    pending_amount: Decimal = _ZERO
    completed_amount: Decimal = _ZERO
    failed_amount: Decimal = _ZERO


@traced_engine(
    "refund_allocation", "1.0",
    fingerprint_fields=("payments", "refund_amount", "already_refunded"),
)
def allocate_refund_fifo(
    payments: Sequence[PurchasePayment],
    refund_amount: Decimal,
    already_refunded: Mapping[str, Decimal] | None = None,
) -> tuple[RefundAllocation, ...]:
    """
    Split ``refund_amount`` across completed payments, oldest first.

    ``already_refunded`` maps payment id to the amount already refunded
    (completed or processing) from that payment.  Allocation stops as soon
    as the requested amount is covered; any shortfall is left unallocated.
    """
    already_refunded = already_refunded or {}
    remaining = refund_amount
    allocations: list[RefundAllocation] = []

    completed = [p for p in payments if p.status == "completed"]
    for payment in sorted(completed, key=lambda p: p.created_at):
        if remaining <= 0:
            break
        available = max(_ZERO, payment.amount - already_refunded.get(payment.id, _ZERO))
        if available <= 0:
            continue
        take = min(remaining, available)
        allocations.append(RefundAllocation(
            payment_id=payment.id,
            payment_method=payment.payment_method,
            refund_amount=take,
            payment_date=payment.created_at,
        ))
        remaining -= take

    if remaining > 0:
        logger.info(
            "refund_allocation_shortfall",
            extra={"requested": refund_amount, "unallocated": remaining},
        )
    return tuple(allocations)


def check_refund_window(
    purchase_created_at: datetime,
    as_of: datetime,
    window_days: int = DEFAULT_REFUND_WINDOW_DAYS,
) -> RefundWindowResult:
    """Eligible while no more than ``window_days`` calendar days have passed."""
    days = (as_of.date() - purchase_created_at.date()).days
    if days <= window_days:
        return RefundWindowResult(eligible=True, days_since_purchase=days)
    return RefundWindowResult(
        eligible=False,
        days_since_purchase=days,
        reason=f"Purchase exceeds {window_days}-day refund limit",
    )


def summarize_refund_transactions(
    transactions: Iterable[RefundTransaction],
) -> RefundTransactionSummary:
    """Roll transactions up into pending, completed and failed buckets."""
    counts = {"pending": 0, "completed": 0, "failed": 0}
    amounts = {"pending": _ZERO, "completed": _ZERO, "failed": _ZERO}

    for txn in transactions:
        if txn.status in (RefundStatus.PENDING, RefundStatus.PROCESSING):
            bucket = "pending"
        elif txn.status is RefundStatus.COMPLETED:
            bucket = "completed"
        elif txn.status is RefundStatus.FAILED:
            bucket = "failed"
        else:
            continue
        counts[bucket] += 1
        amounts[bucket] += txn.amount

    return RefundTransactionSummary(
        total_pending=counts["pending"],
        total_completed=counts["completed"],
        total_failed=counts["failed"],
        pending_amount=amounts["pending"],
        completed_amount=amounts["completed"],
        failed_amount=amounts["failed"],
    )
