"""
procurement_services -- Package init and public API.

Responsibility:
    Async orchestration that composes the pure engines
    (procurement_engines/) with data store access.  This is the only layer
    that holds sessions, makes remote procedure calls, or reads the clock.

Architecture position:
    Services -- orchestration over engines + kernel.

    Dependency direction:
        procurement_services/ -> procurement_engines/  (allowed)
        procurement_services/ -> procurement_kernel/   (allowed)
        procurement_engines/  -> procurement_services/ (FORBIDDEN)
        procurement_kernel/   -> procurement_services/ (FORBIDDEN)

Invariants enforced:
    - DI transparency: dependencies are passed in; the wiring lives in
      ``procurement_services.bootstrap``.
"""

from procurement_kernel.logging_config import get_logger

logger = get_logger("services")

from procurement_services.bootstrap import (
    ProcurementServices,
    build_services,
    open_services,
)
from procurement_services.cache import RequestCoalescer, TtlCache
from procurement_services.gateways import (
    InMemoryRefundProcedureGateway,
    RefundProcedureGateway,
    SqlRefundProcedureGateway,
)
from procurement_services.purchase_status_service import (
    PurchaseSnapshot,
    PurchaseStatusService,
)
from procurement_services.refund_service import (
    RefundBreakdownResponse,
    RefundEligibilityResponse,
    RefundService,
    RefundTransactionDraft,
)
from procurement_services.repositories import (
    InMemoryPurchaseRepository,
    PurchaseRepository,
    SqlPurchaseRepository,
)

__all__ = [
    "InMemoryPurchaseRepository",
    "InMemoryRefundProcedureGateway",
    "ProcurementServices",
    "PurchaseRepository",
    "PurchaseSnapshot",
    "PurchaseStatusService",
    "RefundBreakdownResponse",
    "RefundEligibilityResponse",
    "RefundProcedureGateway",
    "RefundService",
    "RefundTransactionDraft",
    "RequestCoalescer",
    "SqlPurchaseRepository",
    "SqlRefundProcedureGateway",
    "TtlCache",
    "build_services",
    "open_services",
]
