"""
Purchase input records.

Responsibility:
    Immutable, store-agnostic representations of the rows the data store
    hands to the reconciliation engine: purchases with their line items,
    purchase returns, timeline events, payments and refund transactions.

Architecture position:
    Kernel > Domain -- pure values, zero I/O.  Populated by the service
    layer (``procurement_services``) and consumed by ``procurement_engines``.

Invariants enforced:
    - Monetary values are ``Decimal`` (never float).  Construction coerces
      ints, strings and floats through ``str`` so ``0.1`` stays ``0.1``.
    - Timestamps are timezone-aware; naive values are taken as UTC.

Non-goals:
    - ``returned_quantity <= received_quantity <= quantity`` is expected
      upstream but not checked here.  Engines tolerate violations.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any


class PurchaseStatus(str, Enum):
    """Fulfilment/return status of a purchase."""

    PENDING = "pending"
    PARTIALLY_RECEIVED = "partially_received"
    RECEIVED = "received"
    PARTIALLY_RETURNED = "partially_returned"
    RETURNED = "returned"
    CANCELLED = "cancelled"


class RefundStatus(str, Enum):
    """Lifecycle of money owed back for a purchase return."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PurchaseEventType(str, Enum):
    """Timeline event kinds recorded against a purchase."""

    ORDER_PLACED = "order_placed"
    PARTIAL_RECEIPT = "partial_receipt"
    FULL_RECEIPT = "full_receipt"
    PARTIAL_RETURN = "partial_return"
    FULL_RETURN = "full_return"
    CANCELLED = "cancelled"
    STATUS_CHANGE = "status_change"
    BALANCE_RESOLVED = "balance_resolved"
    PAYMENT_MADE = "payment_made"
    PAYMENT_VOIDED = "payment_voided"


RETURN_EVENT_TYPES = frozenset({
    PurchaseEventType.PARTIAL_RETURN,
    PurchaseEventType.FULL_RETURN,
})


def to_decimal(value: Any, field_name: str = "amount") -> Decimal:
    """Coerce a store value to ``Decimal``; ``None`` becomes zero."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid {field_name}: {value!r}") from e


def to_datetime(value: Any, field_name: str = "created_at") -> datetime:
    """Parse an ISO-8601 string or datetime into an aware ``datetime``."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = datetime.fromisoformat(value.strip())
    else:
        raise ValueError(f"Cannot parse {field_name} from {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_str(value: Any) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True)
class PurchaseLineItem:
    """One product or package entry on a purchase."""

    quantity: int
    received_quantity: int
    returned_quantity: int
    purchase_price: Decimal
    id: str | None = None
    item_type: str = "product"

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "purchase_price", to_decimal(self.purchase_price, "purchase_price")
        )

    @property
    def returned_value(self) -> Decimal:
        """Value of the units sent back, at the purchase price."""
        return self.returned_quantity * self.purchase_price

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PurchaseLineItem:
        return cls(
            quantity=int(row.get("quantity") or 0),
            received_quantity=int(row.get("received_quantity") or 0),
            returned_quantity=int(row.get("returned_quantity") or 0),
            purchase_price=to_decimal(row.get("purchase_price"), "purchase_price"),
            id=_optional_str(row.get("id")),
            item_type=row.get("item_type") or "product",
        )


@dataclass(frozen=True)
class Purchase:
    """
    A supplier order with its line items.

    ``total_amount`` is taken as recorded at order time and is never
    re-derived from the items.
    """

    id: str
    total_amount: Decimal
    items: tuple[PurchaseLineItem, ...] = ()
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_amount", to_decimal(self.total_amount, "total_amount"))
        object.__setattr__(self, "items", tuple(self.items))

    @classmethod
    def from_row(
        cls,
        row: Mapping[str, Any],
        items: list[Mapping[str, Any]] | None = None,
    ) -> Purchase:
        """Build from a purchase row; items default to a nested ``items`` key."""
        raw_items = items if items is not None else row.get("items") or []
        created_at = row.get("created_at")
        return cls(
            id=str(row["id"]),
            total_amount=to_decimal(row.get("total_amount"), "total_amount"),
            items=tuple(PurchaseLineItem.from_row(i) for i in raw_items),
            created_at=to_datetime(created_at) if created_at is not None else None,
        )


@dataclass(frozen=True)
class PurchaseReturn:
    """Goods sent back against a purchase, with its refund lifecycle."""

    purchase_id: str
    total_amount: Decimal
    refund_status: RefundStatus
    refund_amount: Decimal | None = None
    id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_amount", to_decimal(self.total_amount, "total_amount"))
        if self.refund_amount is not None:
            object.__setattr__(
                self, "refund_amount", to_decimal(self.refund_amount, "refund_amount")
            )
        object.__setattr__(self, "refund_status", RefundStatus(self.refund_status))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PurchaseReturn:
        refund_amount = row.get("refund_amount")
        return cls(
            purchase_id=str(row["purchase_id"]),
            total_amount=to_decimal(row.get("total_amount"), "total_amount"),
            refund_status=RefundStatus(row.get("refund_status") or RefundStatus.PENDING),
            refund_amount=None if refund_amount is None else to_decimal(refund_amount, "refund_amount"),
            id=_optional_str(row.get("id")),
        )


@dataclass(frozen=True)
class PurchaseEvent:
    """
    A timeline entry for a purchase.

    ``event_type`` holds a ``PurchaseEventType`` for known kinds; unknown
    kinds from the store are kept as the raw string.
    """

    purchase_id: str
    event_type: PurchaseEventType | str
    created_at: datetime

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "event_type", PurchaseEventType(self.event_type))
        except ValueError:
            pass
        object.__setattr__(self, "created_at", to_datetime(self.created_at))

    @property
    def is_return(self) -> bool:
        return self.event_type in RETURN_EVENT_TYPES

    @property
    def is_payment(self) -> bool:
        return self.event_type == PurchaseEventType.PAYMENT_MADE

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PurchaseEvent:
        return cls(
            purchase_id=str(row["purchase_id"]),
            event_type=row["event_type"],
            created_at=to_datetime(row["created_at"]),
        )


@dataclass(frozen=True)
class PurchasePayment:
    """A payment recorded against a purchase (input to FIFO refund allocation)."""

    id: str
    purchase_id: str
    amount: Decimal
    payment_method: str
    created_at: datetime
    status: str = "completed"

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "created_at", to_datetime(self.created_at))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PurchasePayment:
        return cls(
            id=str(row["id"]),
            purchase_id=str(row["purchase_id"]),
            amount=to_decimal(row.get("amount")),
            payment_method=row.get("payment_method") or "other",
            created_at=to_datetime(row["created_at"]),
            status=row.get("status") or "completed",
        )


@dataclass(frozen=True)
class RefundTransaction:
    """A refund issued (or being issued) against one original payment."""

    transaction_id: str
    payment_id: str
    amount: Decimal
    method: str
    status: RefundStatus
    failure_reason: str | None = None
    bank_reference: str | None = None
    check_number: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", to_decimal(self.amount))
        object.__setattr__(self, "status", RefundStatus(self.status))

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> RefundTransaction:
        return cls(
            transaction_id=str(row["id"]),
            payment_id=str(row["original_payment_id"]),
            amount=to_decimal(row.get("refund_amount")),
            method=row.get("refund_method") or "other",
            status=RefundStatus(row.get("status") or RefundStatus.PENDING),
            failure_reason=row.get("failure_reason"),
            bank_reference=row.get("bank_reference"),
            check_number=row.get("check_number"),
        )
