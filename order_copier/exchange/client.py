"""
Exchange client abstraction.

ExchangeClient ABC: connect_private_stream, place_order, normalize_symbol.
PrivateStream ABC: subscribe_order_events, run, disconnect.
One client per account; the client owns its credentials. Paper and Bitunix
adapters implement these interfaces.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable

from order_copier.events import OrderEvent
from order_copier.order import OrderRequest

from order_copier.exchange.types import OrderAck, StreamEndReason

OrderEventCallback = Callable[[OrderEvent], None]


class PrivateStream(ABC):
    """
    Authenticated push stream for one account. Order events are delivered to
    the registered callback in arrival order.
    """

    @abstractmethod
    async def subscribe_order_events(self, callback: OrderEventCallback) -> None:
        """Register callback for the order channel. Raises on failure."""
        ...

    @abstractmethod
    async def run(self, cancel: asyncio.Event) -> StreamEndReason:
        """
        Receive and deliver events until cancel is set, the remote side closes
        the connection, or the transport fails. Returns why it stopped.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection. Idempotent; safe to call in any state."""
        ...


class ExchangeClient(ABC):
    """
    Abstract exchange client. Same interface for paper and live accounts.
    """

    @abstractmethod
    async def connect_private_stream(self) -> PrivateStream:
        """Open an authenticated private stream for this account. Raises on failure."""
        ...

    @abstractmethod
    async def place_order(self, request: OrderRequest) -> OrderAck:
        """
        Place one order on this account. Returns the exchange acknowledgment.
        Raises on network errors, rejections and invalid parameters.
        """
        ...

    def normalize_symbol(self, symbol: str) -> str:
        """Map a raw symbol to this exchange's format. Raises ValueError if unparseable."""
        normalized = symbol.strip().upper()
        if not normalized:
            raise ValueError("empty symbol")
        return normalized

    async def aclose(self) -> None:
        """Release client resources. Idempotent."""
        return None
