"""
Derived value objects for purchase-return reconciliation.

Every object here is computed on demand from a purchase, an amount paid
and the optional return/timeline records.  None of them is persisted.
``to_dict()`` renders the camelCase keys the presentation layer reads.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any


# =============================================================================
# Enums
# =============================================================================


class PaymentState(str, Enum):
    """Four-way payment classification against a reference amount."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"
    OVERPAID = "overpaid"


class BadgeColor(str, Enum):
    """Badge colours used for the display status."""

    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    PURPLE = "purple"
    ORANGE = "orange"


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


class _Presentable:
    """Mixin rendering dataclass fields under camelCase keys."""

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in dataclasses.fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if isinstance(value, Enum):
                value = value.value
            result[_camel(f.name)] = value
        return result


# =============================================================================
# Result types
# =============================================================================


@dataclass(frozen=True)
class NetPaymentAmount(_Presentable):
    """Order total, value returned (from line items) and what is still owed."""

    original_amount: Decimal
    return_amount: Decimal
    net_amount: Decimal


@dataclass(frozen=True)
class PaymentStatus(_Presentable):
    """
    Payment classification against a reference amount.

    Guarantees:
        - ``remaining_amount + amount_paid == reference`` for UNPAID/PARTIAL.
        - ``overpaid_amount == amount_paid - reference`` for OVERPAID.
        - Both amounts are zero for PAID.
    """

    status: PaymentState
    remaining_amount: Decimal
    overpaid_amount: Decimal


@dataclass(frozen=True)
class OriginalPaymentStatus(PaymentStatus):
    """Payment classification against the pre-return order total."""

    progress_percentage: int = 0


@dataclass(frozen=True)
class RefundDue(_Presentable):
    """How much of the returned value is still owed back to the buyer."""

    refund_due: Decimal
    return_amount: Decimal
    has_returns: bool
    refunded_amount: Decimal
    pending_refund_amount: Decimal
    payment_made_after_returns: bool


@dataclass(frozen=True)
class NetPaymentStatus(PaymentStatus):
    """
    Chronology-aware payment classification.

    ``base_amount`` is the net amount when the first payment followed the
    last return, otherwise the original order total.
    """

    progress_percentage: int = 0
    base_amount: Decimal = Decimal("0")
    payment_made_after_returns: bool = False


@dataclass(frozen=True)
class CompletePaymentStatus(_Presentable):
    """Net payment status and refund obligations with display labels."""

    payment_status: PaymentState
    remaining_amount: Decimal
    overpaid_amount: Decimal
    progress_percentage: int

    refund_due: Decimal
    return_amount: Decimal
    has_returns: bool
    refunded_amount: Decimal
    pending_refund_amount: Decimal
    payment_made_after_returns: bool

    display_status: str
    display_badge_color: BadgeColor
    show_refund_section: bool
