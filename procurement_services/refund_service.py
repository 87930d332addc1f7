"""
procurement_services.refund_service -- Refund breakdown and eligibility.

Responsibility:
    Asks the data store how a return's refund splits across the buyer's
    original payments, whether a purchase is still refund-eligible, and how
    refund transactions stand overall.  Shapes the answers into response
    objects.

Architecture position:
    Services -- async orchestration over a ``RefundProcedureGateway``.
    The only place refund logic touches I/O; the pure calculators in
    ``procurement_engines`` stay testable offline.

Invariants enforced:
    - ``calculate_refund_breakdown`` and ``check_refund_eligibility`` never
      raise.  Every failure, including a timeout, is returned as
      ``success=False`` / ``eligible=False`` with the error message.
      Callers check the flag.
    - Each remote call is bounded by ``timeout_seconds``.  There is no
      retry; retry policy belongs to the caller.
    - Breakdown drafts are always ``pending`` and their ``total_amount`` is
      the sum of the draft amounts.

Usage:
    service = RefundService(SqlRefundProcedureGateway(client), clock=SystemClock())
    breakdown = await service.calculate_refund_breakdown("PRET1700000000")
    if not breakdown.success:
        show_errors(breakdown.errors)
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Mapping
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar

from procurement_kernel.domain.clock import Clock, SystemClock
from procurement_kernel.domain.purchases import RefundStatus, to_datetime, to_decimal
from procurement_kernel.exceptions import RemoteProcedureError, ReturnNotFoundError
from procurement_kernel.logging_config import LogContext, get_logger
from procurement_engines.refunds import (
    DEFAULT_REFUND_WINDOW_DAYS,
    RefundTransactionSummary,
    RefundWindowResult,
    check_refund_window,
    summarize_refund_transactions,
)
from procurement_services.gateways import RefundProcedureGateway

logger = get_logger("services.refunds")

T = TypeVar("T")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class RefundTransactionDraft:
    """A proposed refund against one original payment, not yet persisted."""

    id: str
    return_id: str
    payment_id: str
    refund_amount: Decimal
    refund_method: str
    status: RefundStatus
    payment_date: datetime | None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class RefundBreakdownResponse:
    success: bool
    refunds: tuple[RefundTransactionDraft, ...] = ()
    total_amount: Decimal = _ZERO
    errors: tuple[str, ...] = ()

    @classmethod
    def failure(cls, message: str) -> RefundBreakdownResponse:
        return cls(success=False, errors=(message,))


@dataclass(frozen=True)
class RefundEligibilityResponse:
    eligible: bool
    reason: str | None = None
    days_since_purchase: int | None = None


def _error_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class RefundService:
    """Refund queries with structured failure results."""

    def __init__(
        self,
        gateway: RefundProcedureGateway,
        clock: Clock | None = None,
        timeout_seconds: float = 10.0,
        refund_window_days: int = DEFAULT_REFUND_WINDOW_DAYS,
    ) -> None:
        self._gateway = gateway
        self._clock = clock or SystemClock()
        self._timeout = timeout_seconds
        self._window_days = refund_window_days

    async def _call(self, procedure: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except TimeoutError as exc:
            raise RemoteProcedureError(
                procedure, f"timed out after {self._timeout}s",
            ) from exc

    # -----------------------------------------------------------------
    # Breakdown
    # -----------------------------------------------------------------

    def _draft(
        self,
        return_id: str,
        row: Mapping[str, Any],
        now: datetime,
    ) -> RefundTransactionDraft:
        payment_id = str(row["payment_id"])
        payment_date = row.get("payment_date")
        return RefundTransactionDraft(
            id=f"temp-{payment_id}",
            return_id=return_id,
            payment_id=payment_id,
            refund_amount=to_decimal(row.get("refund_amount"), "refund_amount"),
            refund_method=row.get("payment_method") or "other",
            status=RefundStatus.PENDING,
            payment_date=to_datetime(payment_date) if payment_date is not None else None,
            created_at=now,
            updated_at=now,
        )

    async def calculate_refund_breakdown(self, return_id: str) -> RefundBreakdownResponse:
        """
        Split a return's total across the purchase's payments.

        Looks up the return for its purchase and total, then asks the data
        store for the allocation.  A missing return yields the error
        "Return not found".
        """
        with LogContext.bind(return_id=return_id):
            try:
                record = await self._call(
                    "fetch_return", self._gateway.fetch_return(return_id),
                )
                if record is None:
                    raise ReturnNotFoundError(return_id)

                rows = await self._call(
                    "calculate_refund_breakdown",
                    self._gateway.calculate_refund_breakdown(
                        record.purchase_id, record.total_amount,
                    ),
                )
                now = self._clock.now()
                refunds = tuple(self._draft(return_id, row, now) for row in rows or ())
            except Exception as exc:
                logger.error(
                    "refund_breakdown_failed",
                    extra={"error": _error_message(exc)},
                    exc_info=True,
                )
                return RefundBreakdownResponse.failure(_error_message(exc))

            total = sum((r.refund_amount for r in refunds), _ZERO)
            logger.info(
                "refund_breakdown_calculated",
                extra={
                    "purchase_id": record.purchase_id,
                    "refund_count": len(refunds),
                    "total_amount": total,
                },
            )
            return RefundBreakdownResponse(
                success=True, refunds=refunds, total_amount=total,
            )

    # -----------------------------------------------------------------
    # Eligibility
    # -----------------------------------------------------------------

    async def _refund_window(self, purchase_id: str) -> RefundWindowResult | None:
        try:
            created_at = await self._call(
                "fetch_purchase_created_at",
                self._gateway.fetch_purchase_created_at(purchase_id),
            )
        except Exception:
            logger.warning("purchase_date_lookup_failed", exc_info=True)
            return None
        if created_at is None:
            return None
        return check_refund_window(created_at, self._clock.now(), self._window_days)

    async def check_refund_eligibility(self, purchase_id: str) -> RefundEligibilityResponse:
        """
        Ask the data store whether ``purchase_id`` may still be refunded.

        A mapping answer is taken as {eligible, reason}.  A plain boolean
        only confirms the purchase exists: the configured refund window,
        measured from the purchase's creation date, decides eligibility.
        The boolean stands when that date cannot be read.  No answer
        means not eligible.
        """
        with LogContext.bind(purchase_id=purchase_id):
            try:
                answer = await self._call(
                    "is_return_refund_eligible",
                    self._gateway.is_return_refund_eligible(purchase_id),
                )
            except Exception as exc:
                logger.error(
                    "refund_eligibility_failed",
                    extra={"error": _error_message(exc)},
                    exc_info=True,
                )
                return RefundEligibilityResponse(
                    eligible=False, reason=_error_message(exc),
                )

            if answer is None:
                return RefundEligibilityResponse(eligible=False, reason="No data returned")

            if isinstance(answer, Mapping):
                days = answer.get("days_since_purchase")
                return RefundEligibilityResponse(
                    eligible=bool(answer.get("eligible")),
                    reason=answer.get("reason"),
                    days_since_purchase=None if days is None else int(days),
                )

            window = await self._refund_window(purchase_id)
            if window is None:
                response = RefundEligibilityResponse(
                    eligible=bool(answer),
                    reason=None if answer else (
                        f"Purchase exceeds {self._window_days}-day refund limit"
                    ),
                )
            else:
                if window.eligible != bool(answer):
                    logger.info(
                        "refund_window_overrides_store",
                        extra={"store_answer": bool(answer), "window_days": self._window_days},
                    )
                response = RefundEligibilityResponse(
                    eligible=window.eligible,
                    reason=window.reason,
                    days_since_purchase=window.days_since_purchase,
                )
            logger.info(
                "refund_eligibility_checked",
                extra={
                    "eligible": response.eligible,
                    "days_since_purchase": response.days_since_purchase,
                },
            )
            return response

    # -----------------------------------------------------------------
    # Summary
    # -----------------------------------------------------------------

    async def get_refund_summary(self) -> RefundTransactionSummary:
        """
        Counts and totals of all refund transactions by status.

        Unlike the two queries above this propagates failures
        (``RemoteProcedureError`` on timeout).
        """
        transactions = await self._call(
            "list_refund_transactions", self._gateway.list_refund_transactions(),
        )
        return summarize_refund_transactions(transactions)
