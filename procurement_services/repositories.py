"""
procurement_services.repositories -- Read access to purchases and their history.

Responsibility:
    ``PurchaseRepository`` supplies the inputs of the reconciliation engine:
    the purchase with its line items, the amount paid, return records and
    the event timeline.  Read-only; nothing here writes.

Architecture position:
    Services -- I/O adapters over ``DataStoreClient``.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Protocol, runtime_checkable

from sqlalchemy import text

from procurement_kernel.db.client import DataStoreClient
from procurement_kernel.domain.purchases import (
    Purchase,
    PurchaseEvent,
    PurchaseReturn,
    to_decimal,
)


@runtime_checkable
class PurchaseRepository(Protocol):
    async def get_purchase(self, purchase_id: str) -> Purchase | None:
        ...

    async def get_amount_paid(self, purchase_id: str) -> Decimal:
        ...

    async def list_returns(self, purchase_id: str) -> Sequence[PurchaseReturn]:
        ...

    async def list_timeline(self, purchase_id: str) -> Sequence[PurchaseEvent]:
        ...


_PURCHASE = text(
    "SELECT id, total_amount, created_at FROM purchases WHERE id = :purchase_id"
)

_PURCHASE_ITEMS = text(
    "SELECT id, item_type, quantity, received_quantity, returned_quantity, "
    "purchase_price FROM purchase_items WHERE purchase_id = :purchase_id "
    "ORDER BY created_at"
)

_AMOUNT_PAID = text(
    "SELECT amount_paid FROM purchases WHERE id = :purchase_id"
)

_RETURNS = text(
    "SELECT id, purchase_id, total_amount, refund_status, refund_amount "
    "FROM purchase_returns WHERE purchase_id = :purchase_id ORDER BY created_at"
)

_TIMELINE = text(
    "SELECT purchase_id, event_type, created_at FROM purchase_events "
    "WHERE purchase_id = :purchase_id ORDER BY created_at"
)


class SqlPurchaseRepository:
    """Purchase reads over the injected ``DataStoreClient``."""

    def __init__(self, client: DataStoreClient) -> None:
        self._client = client

    async def get_purchase(self, purchase_id: str) -> Purchase | None:
        params = {"purchase_id": purchase_id}
        async with self._client.session() as session:
            row = (await session.execute(_PURCHASE, params)).mappings().first()
            if row is None:
                return None
            items = (await session.execute(_PURCHASE_ITEMS, params)).mappings().all()
        return Purchase.from_row(row, items=list(items))

    async def get_amount_paid(self, purchase_id: str) -> Decimal:
        async with self._client.session() as session:
            value = (await session.execute(
                _AMOUNT_PAID, {"purchase_id": purchase_id},
            )).scalar_one_or_none()
        return to_decimal(value, "amount_paid")

    async def list_returns(self, purchase_id: str) -> Sequence[PurchaseReturn]:
        async with self._client.session() as session:
            rows = (await session.execute(
                _RETURNS, {"purchase_id": purchase_id},
            )).mappings().all()
        return [PurchaseReturn.from_row(row) for row in rows]

    async def list_timeline(self, purchase_id: str) -> Sequence[PurchaseEvent]:
        async with self._client.session() as session:
            rows = (await session.execute(
                _TIMELINE, {"purchase_id": purchase_id},
            )).mappings().all()
        return [PurchaseEvent.from_row(row) for row in rows]


class InMemoryPurchaseRepository:
    """Purchase reads from records held in memory."""

    def __init__(
        self,
        purchases: Iterable[Purchase] = (),
        amounts_paid: Mapping[str, Decimal] | None = None,
        returns: Iterable[PurchaseReturn] = (),
        timeline: Iterable[PurchaseEvent] = (),
    ) -> None:
        self._purchases = {p.id: p for p in purchases}
        self._amounts_paid = dict(amounts_paid or {})
        self._returns: dict[str, list[PurchaseReturn]] = defaultdict(list)
        for record in returns:
            self._returns[record.purchase_id].append(record)
        self._timeline: dict[str, list[PurchaseEvent]] = defaultdict(list)
        for event in timeline:
            self._timeline[event.purchase_id].append(event)

    async def get_purchase(self, purchase_id: str) -> Purchase | None:
        return self._purchases.get(purchase_id)

    async def get_amount_paid(self, purchase_id: str) -> Decimal:
        return to_decimal(self._amounts_paid.get(purchase_id), "amount_paid")

    async def list_returns(self, purchase_id: str) -> Sequence[PurchaseReturn]:
        return list(self._returns.get(purchase_id, ()))

    async def list_timeline(self, purchase_id: str) -> Sequence[PurchaseEvent]:
        return list(self._timeline.get(purchase_id, ()))
