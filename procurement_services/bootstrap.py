"""
procurement_services.bootstrap -- Composition root.

Builds the data store client, gateways, cache and services from
``Settings`` and owns their lifecycle: the client is connected on entry
and closed on exit.  Nothing else constructs a ``DataStoreClient``.

Usage:
    settings = load_settings("deploy/settings.yaml")
    async with open_services(settings) as services:
        status = await services.purchase_status.get_complete_payment_status(pid)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from procurement_config import Settings
from procurement_kernel.db.client import DataStoreClient
from procurement_kernel.domain.clock import Clock, SystemClock
from procurement_kernel.logging_config import configure_logging, get_logger
from procurement_services.cache import RequestCoalescer, TtlCache
from procurement_services.gateways import SqlRefundProcedureGateway
from procurement_services.purchase_status_service import PurchaseStatusService
from procurement_services.refund_service import RefundService
from procurement_services.repositories import SqlPurchaseRepository

logger = get_logger("services.bootstrap")


@dataclass(frozen=True)
class ProcurementServices:
    client: DataStoreClient
    refunds: RefundService
    purchase_status: PurchaseStatusService


def build_client(settings: Settings) -> DataStoreClient:
    return DataStoreClient(
        settings.database_url,
        echo=settings.echo,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        pool_recycle=settings.pool_recycle,
    )


def build_services(
    settings: Settings,
    client: DataStoreClient,
    clock: Clock | None = None,
) -> ProcurementServices:
    """Wire services around an existing client without touching its lifecycle."""
    clock = clock or SystemClock()
    cache = None
    if settings.status_cache_ttl_seconds > 0:
        cache = TtlCache(settings.status_cache_ttl_seconds, clock=clock)

    return ProcurementServices(
        client=client,
        refunds=RefundService(
            SqlRefundProcedureGateway(client),
            clock=clock,
            timeout_seconds=settings.request_timeout_seconds,
            refund_window_days=settings.refund_window_days,
        ),
        purchase_status=PurchaseStatusService(
            SqlPurchaseRepository(client),
            cache=cache,
            coalescer=RequestCoalescer(),
        ),
    )


@asynccontextmanager
async def open_services(
    settings: Settings,
    clock: Clock | None = None,
) -> AsyncIterator[ProcurementServices]:
    configure_logging(level=settings.log_level)
    client = build_client(settings)
    client.connect()
    try:
        yield build_services(settings, client, clock)
    finally:
        await client.close()
