"""
procurement_services.purchase_status_service -- Status lookups for one purchase.

Responsibility:
    Loads a purchase, its amount paid, return records and timeline through a
    ``PurchaseRepository`` and runs the reconciliation engine over them.

Architecture position:
    Services -- async orchestration.  Composes the pure engines in
    ``procurement_engines.returns`` with repository I/O.

Invariants enforced:
    - The engine always sees one consistent snapshot of the four inputs.
    - Snapshots are memoised only through the injected ``TtlCache``;
      concurrent loads of the same purchase share one round trip via the
      injected ``RequestCoalescer``.

Failure modes:
    - PurchaseNotFoundError when the purchase does not exist.
    - Repository errors propagate unchanged.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from decimal import Decimal

from procurement_kernel.domain.purchases import (
    Purchase,
    PurchaseEvent,
    PurchaseReturn,
    PurchaseStatus,
)
from procurement_kernel.exceptions import PurchaseNotFoundError
from procurement_kernel.logging_config import LogContext, get_logger
from procurement_engines.returns import (
    CompletePaymentStatus,
    calculate_complete_payment_status,
    calculate_purchase_return_status,
)
from procurement_services.cache import RequestCoalescer, TtlCache
from procurement_services.repositories import PurchaseRepository

logger = get_logger("services.purchase_status")


@dataclass(frozen=True)
class PurchaseSnapshot:
    """Everything the reconciliation engine needs for one purchase."""

    purchase: Purchase
    amount_paid: Decimal
    returns: tuple[PurchaseReturn, ...]
    timeline: tuple[PurchaseEvent, ...]


class PurchaseStatusService:
    """Fulfilment and payment status of purchases, computed on demand."""

    def __init__(
        self,
        repository: PurchaseRepository,
        cache: TtlCache | None = None,
        coalescer: RequestCoalescer | None = None,
    ) -> None:
        self._repository = repository
        self._cache = cache
        self._coalescer = coalescer or RequestCoalescer()

    @staticmethod
    def _cache_key(purchase_id: str) -> tuple[str, str]:
        return ("purchase_snapshot", purchase_id)

    async def _fetch_snapshot(self, purchase_id: str) -> PurchaseSnapshot:
        purchase = await self._repository.get_purchase(purchase_id)
        if purchase is None:
            raise PurchaseNotFoundError(purchase_id)

        amount_paid, returns, timeline = await asyncio.gather(
            self._repository.get_amount_paid(purchase_id),
            self._repository.list_returns(purchase_id),
            self._repository.list_timeline(purchase_id),
        )
        return PurchaseSnapshot(
            purchase=purchase,
            amount_paid=amount_paid,
            returns=tuple(returns),
            timeline=tuple(timeline),
        )

    async def load_snapshot(self, purchase_id: str) -> PurchaseSnapshot:
        key = self._cache_key(purchase_id)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return cached

        snapshot = await self._coalescer.run(
            key, lambda: self._fetch_snapshot(purchase_id),
        )
        if self._cache is not None:
            self._cache.set(key, snapshot)
        return snapshot

    def invalidate(self, purchase_id: str) -> None:
        """Drop the cached snapshot, e.g. after a payment or return is recorded."""
        if self._cache is not None:
            self._cache.invalidate(self._cache_key(purchase_id))

    async def get_return_status(self, purchase_id: str) -> PurchaseStatus:
        with LogContext.bind(purchase_id=purchase_id):
            snapshot = await self.load_snapshot(purchase_id)
            return calculate_purchase_return_status(snapshot.purchase.items)

    async def get_complete_payment_status(self, purchase_id: str) -> CompletePaymentStatus:
        with LogContext.bind(purchase_id=purchase_id):
            snapshot = await self.load_snapshot(purchase_id)
            status = calculate_complete_payment_status(
                snapshot.purchase,
                snapshot.amount_paid,
                returns=snapshot.returns,
                timeline=snapshot.timeline,
            )
            logger.info(
                "purchase_payment_status_resolved",
                extra={
                    "payment_status": status.payment_status.value,
                    "display_status": status.display_status,
                },
            )
            return status
