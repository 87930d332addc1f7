"""
Module: procurement_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the import surface for
    procurement_services and the presentation layer.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import procurement_kernel domain values (and sibling engines).
    MUST NOT import procurement_services or procurement_config.

Invariants enforced:
    - Purity: engines never read the clock.  Dates are passed in.
    - Decimal-only arithmetic for monetary amounts.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine invocations are traced via ``@traced_engine``
    (see ``procurement_engines.tracer``), emitting PROCUREMENT_ENGINE_TRACE
    records with engine name, version, input fingerprint and duration.

Usage:
    from procurement_engines.returns import calculate_complete_payment_status
    from procurement_engines.refunds import allocate_refund_fifo
"""

from procurement_kernel.logging_config import get_logger

logger = get_logger("engines")

from procurement_engines.refunds import (
    DEFAULT_REFUND_WINDOW_DAYS,
    RefundAllocation,
    RefundTransactionSummary,
    RefundWindowResult,
    allocate_refund_fifo,
    check_refund_window,
    summarize_refund_transactions,
)
from procurement_engines.returns import (
    BadgeColor,
    CompletePaymentStatus,
    NetPaymentAmount,
    NetPaymentStatus,
    OriginalPaymentStatus,
    PaymentState,
    PaymentStatus,
    RefundDue,
    calculate_complete_payment_status,
    calculate_net_payment_amount,
    calculate_net_payment_status,
    calculate_original_payment_status,
    calculate_payment_status,
    calculate_purchase_return_status,
    calculate_refund_due,
    classify_return_status,
    payment_made_after_returns,
)

__all__ = [
    # Return reconciliation
    "classify_return_status",
    "calculate_purchase_return_status",
    "calculate_net_payment_amount",
    "calculate_payment_status",
    "calculate_original_payment_status",
    "calculate_refund_due",
    "calculate_net_payment_status",
    "calculate_complete_payment_status",
    "payment_made_after_returns",
    "BadgeColor",
    "PaymentState",
    "NetPaymentAmount",
    "PaymentStatus",
    "OriginalPaymentStatus",
    "RefundDue",
    "NetPaymentStatus",
    "CompletePaymentStatus",
    # Refunds
    "DEFAULT_REFUND_WINDOW_DAYS",
    "RefundAllocation",
    "RefundWindowResult",
    "RefundTransactionSummary",
    "allocate_refund_fifo",
    "check_refund_window",
    "summarize_refund_transactions",
]
