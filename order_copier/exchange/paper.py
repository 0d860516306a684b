"""
Paper exchange client: scripted source events and simulated order placement.

No network. The private stream replays a fixed list of events; place_order
acknowledges (or rejects) and keeps an order log. Used for dry runs, examples
and tests.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Iterable
from datetime import datetime

from order_copier.events import OrderEvent
from order_copier.order import OrderRequest

from order_copier.exchange.client import ExchangeClient, OrderEventCallback, PrivateStream
from order_copier.exchange.types import OrderAck, StreamEndReason

logger = logging.getLogger(__name__)


class PaperOrderRejected(Exception):
    """Simulated rejection from the paper destination."""


class PaperPrivateStream(PrivateStream):
    """
    Replays events to the subscribed callback, one per loop iteration.
    After the script: REMOTE_CLOSED if close_when_exhausted, otherwise
    waits for cancellation.
    """

    def __init__(
        self,
        events: Iterable[OrderEvent] = (),
        *,
        event_delay: float = 0.0,
        close_when_exhausted: bool = False,
        subscribe_error: Exception | None = None,
    ) -> None:
        self._events = list(events)
        self._event_delay = event_delay
        self._close_when_exhausted = close_when_exhausted
        self._subscribe_error = subscribe_error
        self._callback: OrderEventCallback | None = None
        self.delivered = 0
        self.disconnect_calls = 0

    @property
    def connected(self) -> bool:
        return self.disconnect_calls == 0

    async def subscribe_order_events(self, callback: OrderEventCallback) -> None:
        if self._subscribe_error is not None:
            raise self._subscribe_error
        self._callback = callback

    async def run(self, cancel: asyncio.Event) -> StreamEndReason:
        if self._callback is None:
            raise RuntimeError("run() called before subscribe_order_events()")
        for event in self._events:
            if self._event_delay > 0 and await _wait_cancelled(cancel, self._event_delay):
                return StreamEndReason.CANCELLED
            if cancel.is_set():
                return StreamEndReason.CANCELLED
            self._callback(event)
            self.delivered += 1
            # Let the consumer pick the event up before the next one arrives.
            await asyncio.sleep(0)
        if self._close_when_exhausted:
            return StreamEndReason.REMOTE_CLOSED
        await cancel.wait()
        return StreamEndReason.CANCELLED

    async def disconnect(self) -> None:
        self.disconnect_calls += 1


async def _wait_cancelled(cancel: asyncio.Event, timeout: float) -> bool:
    """Sleep up to timeout; True if cancel was set meanwhile."""
    try:
        await asyncio.wait_for(cancel.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        return False
    return True


class PaperExchangeClient(ExchangeClient):
    """
    Paper exchange client. Source side: connect_private_stream returns a
    PaperPrivateStream over the scripted events. Destination side: place_order
    acknowledges every request unless reject_when returns a reason.
    connect_error / subscribe_error simulate startup failures.
    """

    def __init__(
        self,
        events: Iterable[OrderEvent] = (),
        *,
        event_delay: float = 0.0,
        close_when_exhausted: bool = False,
        connect_error: Exception | None = None,
        subscribe_error: Exception | None = None,
        reject_when: Callable[[OrderRequest], str | None] | None = None,
        order_latency: float = 0.0,
    ) -> None:
        self._events = list(events)
        self._event_delay = event_delay
        self._close_when_exhausted = close_when_exhausted
        self._connect_error = connect_error
        self._subscribe_error = subscribe_error
        self._reject_when = reject_when
        self._order_latency = order_latency
        self._order_log: list[tuple[OrderRequest, OrderAck | None]] = []
        self.streams: list[PaperPrivateStream] = []
        self.closed = False

    async def connect_private_stream(self) -> PaperPrivateStream:
        if self._connect_error is not None:
            raise self._connect_error
        stream = PaperPrivateStream(
            self._events,
            event_delay=self._event_delay,
            close_when_exhausted=self._close_when_exhausted,
            subscribe_error=self._subscribe_error,
        )
        self.streams.append(stream)
        return stream

    async def place_order(self, request: OrderRequest) -> OrderAck:
        """Simulate placement; raises PaperOrderRejected when reject_when says so."""
        if self._order_latency > 0:
            await asyncio.sleep(self._order_latency)
        reason = self._reject_when(request) if self._reject_when is not None else None
        if reason:
            self._order_log.append((request, None))
            logger.info("Paper order rejected: %s %s %s: %s", request.side.value, request.quantity, request.symbol, reason)
            raise PaperOrderRejected(reason)
        ack = OrderAck(
            order_id=f"paper-{uuid.uuid4().hex[:12]}",
            accepted_at=datetime.now(),
            client_order_id=request.client_order_id,
        )
        self._order_log.append((request, ack))
        return ack

    def get_order_log(self) -> list[tuple[OrderRequest, OrderAck | None]]:
        """Return every placement attempt with its ack (None if rejected)."""
        return list(self._order_log)

    async def aclose(self) -> None:
        self.closed = True
