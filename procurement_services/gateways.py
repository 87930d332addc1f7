"""
procurement_services.gateways -- Remote refund procedures behind one interface.

Responsibility:
    ``RefundProcedureGateway`` is the only seam through which refund logic
    reaches the data store.  ``SqlRefundProcedureGateway`` calls the stored
    procedures (``calculate_refund_breakdown``, ``is_return_refund_eligible``)
    over an async SQLAlchemy session.  ``InMemoryRefundProcedureGateway``
    answers the same questions from in-memory records using the pure
    refund engine, for offline use and tests.

Architecture position:
    Services -- I/O adapters.  Returns raw row mappings; response shaping is
    the job of ``procurement_services.refund_service``.

Failure modes:
    - Driver errors (``sqlalchemy.exc.DBAPIError``) and
      ``DataStoreNotConnectedError`` propagate to the caller.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from sqlalchemy import text

from procurement_kernel.db.client import DataStoreClient
from procurement_kernel.domain.clock import Clock, SystemClock
from procurement_kernel.domain.purchases import (
    Purchase,
    PurchasePayment,
    PurchaseReturn,
    RefundStatus,
    RefundTransaction,
    to_datetime,
)
from procurement_engines.refunds import (
    DEFAULT_REFUND_WINDOW_DAYS,
    allocate_refund_fifo,
    check_refund_window,
)


@runtime_checkable
class RefundProcedureGateway(Protocol):
    """Async queries the refund service needs from the data store."""

    async def fetch_return(self, return_id: str) -> PurchaseReturn | None:
        """The return record, or None when it does not exist."""
        ...

    async def calculate_refund_breakdown(
        self,
        purchase_id: str,
        refund_amount: Decimal,
    ) -> Sequence[Mapping[str, Any]]:
        """Rows of {payment_id, refund_amount, payment_method, payment_date}."""
        ...

    async def is_return_refund_eligible(self, purchase_id: str) -> Any:
        """A boolean, a {eligible, reason} mapping, or None."""
        ...

    async def fetch_purchase_created_at(self, purchase_id: str) -> datetime | None:
        ...

    async def list_refund_transactions(self) -> Sequence[RefundTransaction]:
        ...


# ---------------------------------------------------------------------------
# SQL implementation
# ---------------------------------------------------------------------------

_FETCH_RETURN = text(
    "SELECT id, purchase_id, total_amount, refund_status, refund_amount "
    "FROM purchase_returns WHERE id = :return_id"
)

_REFUND_BREAKDOWN = text(
    "SELECT payment_id, refund_amount, payment_method, payment_date "
    "FROM calculate_refund_breakdown("
    "p_purchase_id => :purchase_id, p_refund_amount => :refund_amount)"
)

_REFUND_ELIGIBLE = text(
    "SELECT is_return_refund_eligible(p_purchase_id => :purchase_id)"
)

_PURCHASE_CREATED_AT = text(
    "SELECT created_at FROM purchases WHERE id = :purchase_id"
)

_REFUND_TRANSACTIONS = text(
    "SELECT id, original_payment_id, refund_amount, refund_method, status, "
    "failure_reason, bank_reference, check_number "
    "FROM refund_transactions ORDER BY created_at DESC"
)


class SqlRefundProcedureGateway:
    """Stored-procedure calls over the injected ``DataStoreClient``."""

    def __init__(self, client: DataStoreClient) -> None:
        self._client = client

    async def fetch_return(self, return_id: str) -> PurchaseReturn | None:
        async with self._client.session() as session:
            result = await session.execute(_FETCH_RETURN, {"return_id": return_id})
            row = result.mappings().first()
        return PurchaseReturn.from_row(row) if row is not None else None

    async def calculate_refund_breakdown(
        self,
        purchase_id: str,
        refund_amount: Decimal,
    ) -> Sequence[Mapping[str, Any]]:
        async with self._client.session() as session:
            result = await session.execute(
                _REFUND_BREAKDOWN,
                {"purchase_id": purchase_id, "refund_amount": refund_amount},
            )
            return [dict(row) for row in result.mappings().all()]

    async def is_return_refund_eligible(self, purchase_id: str) -> Any:
        async with self._client.session() as session:
            result = await session.execute(_REFUND_ELIGIBLE, {"purchase_id": purchase_id})
            return result.scalar_one_or_none()

    async def fetch_purchase_created_at(self, purchase_id: str) -> datetime | None:
        async with self._client.session() as session:
            result = await session.execute(_PURCHASE_CREATED_AT, {"purchase_id": purchase_id})
            value = result.scalar_one_or_none()
        return to_datetime(value) if value is not None else None

    async def list_refund_transactions(self) -> Sequence[RefundTransaction]:
        async with self._client.session() as session:
            result = await session.execute(_REFUND_TRANSACTIONS)
            rows = result.mappings().all()
        return [RefundTransaction.from_row(row) for row in rows]


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

_ACTIVE_REFUND_STATUSES = (RefundStatus.COMPLETED, RefundStatus.PROCESSING)


class InMemoryRefundProcedureGateway:
    """
    Answers refund queries from records held in memory.

    Mirrors the stored procedures: FIFO allocation over completed payments,
    net of refunds already completed or processing, and a calendar-day
    refund window measured from the purchase's creation.
    """

    def __init__(
        self,
        purchases: Iterable[Purchase] = (),
        returns: Iterable[PurchaseReturn] = (),
        payments: Iterable[PurchasePayment] = (),
        refund_transactions: Iterable[RefundTransaction] = (),
        clock: Clock | None = None,
        window_days: int = DEFAULT_REFUND_WINDOW_DAYS,
    ) -> None:
        self._purchases = {p.id: p for p in purchases}
        self._returns = {r.id: r for r in returns if r.id is not None}
        self._payments = list(payments)
        self._refund_transactions = list(refund_transactions)
        self._clock = clock or SystemClock()
        self._window_days = window_days

    def _already_refunded(self) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = defaultdict(Decimal)
        for txn in self._refund_transactions:
            if txn.status in _ACTIVE_REFUND_STATUSES:
                totals[txn.payment_id] += txn.amount
        return dict(totals)

    async def fetch_return(self, return_id: str) -> PurchaseReturn | None:
        return self._returns.get(return_id)

    async def calculate_refund_breakdown(
        self,
        purchase_id: str,
        refund_amount: Decimal,
    ) -> Sequence[Mapping[str, Any]]:
        payments = [p for p in self._payments if p.purchase_id == purchase_id]
        allocations = allocate_refund_fifo(
            payments, refund_amount, self._already_refunded(),
        )
        return [
            {
                "payment_id": a.payment_id,
                "refund_amount": a.refund_amount,
                "payment_method": a.payment_method,
                "payment_date": a.payment_date,
            }
            for a in allocations
        ]

    async def is_return_refund_eligible(self, purchase_id: str) -> Any:
        purchase = self._purchases.get(purchase_id)
        if purchase is None or purchase.created_at is None:
            return None
        window = check_refund_window(
            purchase.created_at, self._clock.now(), self._window_days,
        )
        return window.eligible

    async def fetch_purchase_created_at(self, purchase_id: str) -> datetime | None:
        purchase = self._purchases.get(purchase_id)
        return purchase.created_at if purchase is not None else None

    async def list_refund_transactions(self) -> Sequence[RefundTransaction]:
        return list(self._refund_transactions)
