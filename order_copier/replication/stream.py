"""
Stream lifecycle manager: owns the source account's private stream.

DISCONNECTED → CONNECTING → SUBSCRIBING → STREAMING → CLOSING → DISCONNECTED.
Received events are published onto a single-consumer queue drained by the
orchestrator, so arrival order is preserved and at most one event is in
flight. The stream is disconnected on every exit path.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from order_copier.errors import StreamConnectionError, SubscriptionError
from order_copier.exchange.client import ExchangeClient, PrivateStream
from order_copier.exchange.types import StreamEndReason

from order_copier.replication.orchestrator import STREAM_CLOSED, ReplicationOrchestrator

logger = logging.getLogger(__name__)


class StreamState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    CLOSING = "closing"


class StreamLifecycleManager:
    """
    Connect to the source account, subscribe to order events and run the
    receive loop until cancellation or the connection ends.

    Connection and subscription failures are raised (StreamConnectionError,
    SubscriptionError); they are the only failures that leave run().
    """

    def __init__(self, client: ExchangeClient, orchestrator: ReplicationOrchestrator) -> None:
        self.client = client
        self.orchestrator = orchestrator
        self._state = StreamState.DISCONNECTED

    @property
    def state(self) -> StreamState:
        return self._state

    def _transition(self, state: StreamState) -> None:
        logger.debug("Stream state: %s -> %s", self._state.value, state.value)
        self._state = state

    async def run(self, cancel: asyncio.Event) -> StreamEndReason:
        """
        Run one streaming session. Returns CANCELLED after a requested shutdown,
        REMOTE_CLOSED or TRANSPORT_ERROR when the connection ended on its own.
        """
        if self._state != StreamState.DISCONNECTED:
            raise RuntimeError(f"Stream already active (state={self._state.value})")
        if cancel.is_set():
            logger.info("Cancellation requested before connecting; not starting stream")
            return StreamEndReason.CANCELLED

        self._transition(StreamState.CONNECTING)
        try:
            stream = await self.client.connect_private_stream()
        except Exception as e:  # noqa: BLE001
            self._transition(StreamState.DISCONNECTED)
            raise StreamConnectionError(f"Failed to connect to source account stream: {e!s}") from e

        try:
            return await self._stream(stream, cancel)
        finally:
            self._transition(StreamState.CLOSING)
            try:
                await stream.disconnect()
            finally:
                self._transition(StreamState.DISCONNECTED)

    async def _stream(self, stream: PrivateStream, cancel: asyncio.Event) -> StreamEndReason:
        queue: asyncio.Queue[Any] = asyncio.Queue()
        self._transition(StreamState.SUBSCRIBING)
        try:
            await stream.subscribe_order_events(queue.put_nowait)
        except Exception as e:  # noqa: BLE001
            raise SubscriptionError(f"Failed to subscribe to source order events: {e!s}") from e

        self._transition(StreamState.STREAMING)
        logger.info("Started monitoring orders on source account")
        consumer = asyncio.create_task(self.orchestrator.consume(queue, cancel))
        try:
            reason = await stream.run(cancel)
        finally:
            # Let the consumer finish the event in flight before the connection goes away.
            queue.put_nowait(STREAM_CLOSED)
            processed = await consumer
            logger.info("Processed %d order event(s) this session", processed)
        logger.info("Source stream ended: %s", reason.value)
        return reason
