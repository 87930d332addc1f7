"""
Module: procurement_engines.returns.payment
Responsibility:
    Derive payment and refund positions for a purchase that may have had
    goods returned: net payable amount, payment status on the original and
    net bases, refund still due, the chronology-aware net status, and the
    composed display status.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import procurement_kernel domain values and sibling engines.

Invariants enforced:
    - Decimal-only arithmetic for all monetary amounts.
    - ``net_amount >= 0`` and ``0 <= refund_due <= min(return_amount, amount_paid)``.
    - The value returned is always derived from line items
      (``returned_quantity * purchase_price``), never from the return
      records' own totals.
    - Progress percentages are rounded half-up and are not capped at 100.

Failure modes:
    - None for well-typed input.  Inconsistent quantities or amounts are
      clamped where a negative result would be meaningless and otherwise
      computed as the formulas give.

Usage:
    from procurement_engines.returns import calculate_complete_payment_status

    status = calculate_complete_payment_status(
        purchase, Decimal("1000"), returns=returns, timeline=events,
    )
    status.display_status      # "Paid - Refunded"
    status.display_badge_color # BadgeColor.GREEN
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from procurement_kernel.domain.purchases import (
    Purchase,
    PurchaseEvent,
    PurchaseReturn,
    RefundStatus,
)
from procurement_kernel.logging_config import get_logger
from procurement_engines.returns.chronology import payment_made_after_returns
from procurement_engines.returns.types import (
    BadgeColor,
    CompletePaymentStatus,
    NetPaymentAmount,
    NetPaymentStatus,
    OriginalPaymentStatus,
    PaymentState,
    PaymentStatus,
    RefundDue,
)
from procurement_engines.tracer import traced_engine

logger = get_logger("engines.returns.payment")

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")

_PENDING_REFUND_STATUSES = frozenset({RefundStatus.PENDING, RefundStatus.PROCESSING})

_BASE_LABELS: dict[PaymentState, tuple[str, BadgeColor]] = {
    PaymentState.UNPAID: ("Unpaid", BadgeColor.RED),
    PaymentState.PARTIAL: ("Partially Paid", BadgeColor.YELLOW),
    PaymentState.PAID: ("Paid", BadgeColor.GREEN),
    PaymentState.OVERPAID: ("Overpaid", BadgeColor.PURPLE),
}

# Unpaid and partial both read "Partial" once refunds are involved
_REFUND_PREFIXES: dict[PaymentState, str] = {
    PaymentState.PAID: "Paid",
    PaymentState.OVERPAID: "Overpaid",
}


# -----------------------------------------------------------------
# Shared helpers
# -----------------------------------------------------------------


def _classify_payment(
    amount_paid: Decimal,
    reference: Decimal,
) -> tuple[PaymentState, Decimal, Decimal]:
    """Return (state, remaining, overpaid) of ``amount_paid`` against ``reference``."""
    if amount_paid == 0:
        return PaymentState.UNPAID, reference, _ZERO
    if amount_paid < reference:
        return PaymentState.PARTIAL, reference - amount_paid, _ZERO
    if amount_paid == reference:
        return PaymentState.PAID, _ZERO, _ZERO
    return PaymentState.OVERPAID, _ZERO, amount_paid - reference


def _progress_percentage(
    state: PaymentState,
    amount_paid: Decimal,
    reference: Decimal,
) -> int:
    """Share of ``reference`` covered by ``amount_paid``, as a whole percent.

    A zero reference is fully covered by any payment, so every branch but
    UNPAID reports 100.
    """
    if state is PaymentState.UNPAID:
        return 0
    if state is PaymentState.PAID or reference == 0:
        return 100
    ratio = amount_paid / reference * _HUNDRED
    return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _refund_totals(
    returns: Sequence[PurchaseReturn] | None,
) -> tuple[Decimal, Decimal]:
    """Sum (refunded, pending) over the return records."""
    refunded = _ZERO
    pending = _ZERO
    for record in returns or ():
        if record.refund_status is RefundStatus.COMPLETED:
            refunded += record.refund_amount or _ZERO
        elif record.refund_status in _PENDING_REFUND_STATUSES:
            pending += record.total_amount
    return refunded, pending


# -----------------------------------------------------------------
# Net amount
# -----------------------------------------------------------------


@traced_engine("net_payment_amount", "1.0", fingerprint_fields=("purchase",))
def calculate_net_payment_amount(purchase: Purchase) -> NetPaymentAmount:
    """Order total less the value of returned units, floored at zero."""
    original_amount = purchase.total_amount
    return_amount = sum((i.returned_value for i in purchase.items), _ZERO)
    net_amount = max(_ZERO, original_amount - return_amount)

    return NetPaymentAmount(
        original_amount=original_amount,
        return_amount=return_amount,
        net_amount=net_amount,
    )


# -----------------------------------------------------------------
# Payment status (net and original bases)
# -----------------------------------------------------------------


@traced_engine(
    "payment_status", "1.0", fingerprint_fields=("purchase", "amount_paid"),
)
def calculate_payment_status(
    purchase: Purchase,
    amount_paid: Decimal,
) -> PaymentStatus:
    """Classify ``amount_paid`` against the post-return net amount."""
    net = calculate_net_payment_amount(purchase)
    state, remaining, overpaid = _classify_payment(amount_paid, net.net_amount)
    return PaymentStatus(
        status=state,
        remaining_amount=remaining,
        overpaid_amount=overpaid,
    )


@traced_engine(
    "original_payment_status", "1.0", fingerprint_fields=("purchase", "amount_paid"),
)
def calculate_original_payment_status(
    purchase: Purchase,
    amount_paid: Decimal,
) -> OriginalPaymentStatus:
    """Classify ``amount_paid`` against the order total, ignoring returns."""
    original_amount = purchase.total_amount
    state, remaining, overpaid = _classify_payment(amount_paid, original_amount)
    return OriginalPaymentStatus(
        status=state,
        remaining_amount=remaining,
        overpaid_amount=overpaid,
        progress_percentage=_progress_percentage(state, amount_paid, original_amount),
    )


# -----------------------------------------------------------------
# Refund due
# -----------------------------------------------------------------


@traced_engine(
    "refund_due", "1.0",
    fingerprint_fields=("purchase", "amount_paid", "returns", "timeline"),
)
def calculate_refund_due(
    purchase: Purchase,
    amount_paid: Decimal,
    returns: Sequence[PurchaseReturn] | None = None,
    timeline: Sequence[PurchaseEvent] | None = None,
) -> RefundDue:
    """
    Refund still owed for returned goods.

    Nothing is due when nothing was returned, nothing was paid, or the
    first payment came after the last return (the payment is taken to be
    already net of the returned value).  Otherwise the refundable amount
    is capped at what was paid, less what has already been refunded.
    """
    return_amount = calculate_net_payment_amount(purchase).return_amount
    has_returns = return_amount > 0
    refunded_amount, pending_refund_amount = _refund_totals(returns)
    after_returns = payment_made_after_returns(timeline, has_returns)

    refund_due = _ZERO
    if has_returns and amount_paid > 0 and not after_returns:
        max_refundable = min(return_amount, amount_paid)
        refund_due = max(_ZERO, max_refundable - refunded_amount)

    return RefundDue(
        refund_due=refund_due,
        return_amount=return_amount,
        has_returns=has_returns,
        refunded_amount=refunded_amount,
        pending_refund_amount=pending_refund_amount,
        payment_made_after_returns=after_returns,
    )


# -----------------------------------------------------------------
# Chronology-aware net payment status
# -----------------------------------------------------------------


@traced_engine(
    "net_payment_status", "1.0",
    fingerprint_fields=("purchase", "amount_paid", "timeline"),
)
def calculate_net_payment_status(
    purchase: Purchase,
    amount_paid: Decimal,
    timeline: Sequence[PurchaseEvent] | None = None,
) -> NetPaymentStatus:
    """Classify against the net amount if paid after returns, else the original."""
    net = calculate_net_payment_amount(purchase)
    after_returns = payment_made_after_returns(timeline, net.return_amount > 0)
    base_amount = net.net_amount if after_returns else net.original_amount

    state, remaining, overpaid = _classify_payment(amount_paid, base_amount)
    return NetPaymentStatus(
        status=state,
        remaining_amount=remaining,
        overpaid_amount=overpaid,
        progress_percentage=_progress_percentage(state, amount_paid, base_amount),
        base_amount=base_amount,
        payment_made_after_returns=after_returns,
    )


# -----------------------------------------------------------------
# Complete status
# -----------------------------------------------------------------


def _display_for(
    state: PaymentState,
    refund: RefundDue,
) -> tuple[str, BadgeColor]:
    if refund.payment_made_after_returns:
        return _BASE_LABELS[state]
    if refund.refunded_amount > 0 and refund.refund_due == 0:
        return f"{_REFUND_PREFIXES.get(state, 'Partial')} - Refunded", BadgeColor.GREEN
    if refund.refund_due > 0:
        return f"{_REFUND_PREFIXES.get(state, 'Partial')} - Refund Due", BadgeColor.ORANGE
    return _BASE_LABELS[state]


@traced_engine(
    "complete_payment_status", "1.0",
    fingerprint_fields=("purchase", "amount_paid", "returns", "timeline"),
)
def calculate_complete_payment_status(
    purchase: Purchase,
    amount_paid: Decimal,
    returns: Sequence[PurchaseReturn] | None = None,
    timeline: Sequence[PurchaseEvent] | None = None,
) -> CompletePaymentStatus:
    """Combine the net payment status with refund obligations for display."""
    net_payment = calculate_net_payment_status(purchase, amount_paid, timeline)
    refund = calculate_refund_due(purchase, amount_paid, returns, timeline)

    display_status, badge_color = _display_for(net_payment.status, refund)
    show_refund_section = (
        (refund.refund_due > 0 or refund.refunded_amount > 0)
        and not refund.payment_made_after_returns
    )

    logger.debug(
        "complete_payment_status_computed",
        extra={
            "purchase_id": purchase.id,
            "payment_status": net_payment.status.value,
            "display_status": display_status,
            "refund_due": refund.refund_due,
        },
    )

    return CompletePaymentStatus(
        payment_status=net_payment.status,
        remaining_amount=net_payment.remaining_amount,
        overpaid_amount=net_payment.overpaid_amount,
        progress_percentage=net_payment.progress_percentage,
        refund_due=refund.refund_due,
        return_amount=refund.return_amount,
        has_returns=refund.has_returns,
        refunded_amount=refund.refunded_amount,
        pending_refund_amount=refund.pending_refund_amount,
        payment_made_after_returns=refund.payment_made_after_returns,
        display_status=display_status,
        display_badge_color=badge_color,
        show_refund_section=show_refund_section,
    )
