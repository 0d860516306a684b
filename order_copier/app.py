"""
Application wiring: build clients and pipeline from config, run one session.

Source credentials go to the stream side, destination credentials to the
submitter side.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Sequence

from order_copier.config import ReplicatorConfig
from order_copier.errors import StreamTerminatedError
from order_copier.exchange import ExchangeClient, PaperExchangeClient, StreamEndReason
from order_copier.replication import (
    OrderSubmitter,
    ReplicationObserver,
    ReplicationOrchestrator,
    ReplicationRecord,
    StreamLifecycleManager,
    log_summary,
)
from order_copier.translator import OrderTranslator

logger = logging.getLogger(__name__)


def build_clients(config: ReplicatorConfig) -> tuple[ExchangeClient, ExchangeClient]:
    """Live source client; live destination client, or a paper one when dry_run."""
    from order_copier.exchange.bitunix import BitunixExchangeClient

    source = BitunixExchangeClient(config.source.api_key, config.source.api_secret)
    if config.dry_run:
        logger.warning("DRY RUN: orders are recorded locally, nothing is placed on the destination account")
        destination: ExchangeClient = PaperExchangeClient()
    else:
        destination = BitunixExchangeClient(config.destination.api_key, config.destination.api_secret)
    return source, destination


def build_pipeline(
    source: ExchangeClient,
    destination: ExchangeClient,
    *,
    observers: Sequence[ReplicationObserver] = (),
    max_records: int = 1000,
) -> StreamLifecycleManager:
    """Stream manager over source, feeding an orchestrator that submits to destination."""
    orchestrator = ReplicationOrchestrator(
        OrderTranslator(destination.normalize_symbol),
        OrderSubmitter(destination),
        observers=observers,
        max_records=max_records,
    )
    return StreamLifecycleManager(source, orchestrator)


async def run_replication(
    config: ReplicatorConfig,
    *,
    source: ExchangeClient | None = None,
    destination: ExchangeClient | None = None,
    cancel: asyncio.Event | None = None,
    observers: Sequence[ReplicationObserver] = (),
) -> list[ReplicationRecord]:
    """
    Run one replication session until cancel is set.

    Clients default to those from build_clients(config). Returns the
    replication records. Raises StreamConnectionError / SubscriptionError on
    startup failure and StreamTerminatedError if the stream ends by itself.
    """
    if source is None and destination is None:
        source, destination = build_clients(config)
    elif source is None or destination is None:
        raise ValueError("Pass both source and destination clients, or neither")
    if cancel is None:
        cancel = asyncio.Event()

    manager = build_pipeline(source, destination, observers=observers, max_records=config.max_records)
    try:
        reason = await manager.run(cancel)
    finally:
        await source.aclose()
        await destination.aclose()

    records = manager.orchestrator.get_records()
    log_summary(records)
    if reason != StreamEndReason.CANCELLED:
        raise StreamTerminatedError(reason)
    return records


def install_signal_handlers(cancel: asyncio.Event, loop: asyncio.AbstractEventLoop | None = None) -> None:
    """Set cancel on SIGINT/SIGTERM."""
    loop = loop or asyncio.get_running_loop()

    def _request_shutdown() -> None:
        if not cancel.is_set():
            logger.info("Shutting down...")
        cancel.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _request_shutdown)
        except NotImplementedError:
            # No loop signal support (Windows); fall back to the plain handler.
            signal.signal(sig, lambda *_: loop.call_soon_threadsafe(_request_shutdown))
