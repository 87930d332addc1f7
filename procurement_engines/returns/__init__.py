"""
Returns - Purchase-return reconciliation engine.

Pure functions turning a purchase, the amount paid and the optional return
and timeline records into fulfilment status, payment status and refund
positions.
"""

from procurement_kernel.logging_config import get_logger

logger = get_logger("engines.returns")

from procurement_engines.returns.chronology import payment_made_after_returns
from procurement_engines.returns.payment import (
    calculate_complete_payment_status,
    calculate_net_payment_amount,
    calculate_net_payment_status,
    calculate_original_payment_status,
    calculate_payment_status,
    calculate_refund_due,
)
from procurement_engines.returns.status import (
    calculate_purchase_return_status,
    classify_return_status,
)
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

__all__ = [
    # Status classifier
    "classify_return_status",
    "calculate_purchase_return_status",
    # Payment and refund calculators
    "calculate_net_payment_amount",
    "calculate_payment_status",
    "calculate_original_payment_status",
    "calculate_refund_due",
    "calculate_net_payment_status",
    "calculate_complete_payment_status",
    "payment_made_after_returns",
    # Result types
    "BadgeColor",
    "PaymentState",
    "NetPaymentAmount",
    "PaymentStatus",
    "OriginalPaymentStatus",
    "RefundDue",
    "NetPaymentStatus",
    "CompletePaymentStatus",
]
