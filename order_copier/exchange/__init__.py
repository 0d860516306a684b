"""
Exchange layer: client abstraction and paper/live adapters.

ExchangeClient / PrivateStream interfaces; paper adapter for dry runs and tests.
The live Bitunix adapter lives in order_copier.exchange.bitunix.
"""

from order_copier.exchange.client import ExchangeClient, OrderEventCallback, PrivateStream
from order_copier.exchange.paper import PaperExchangeClient, PaperOrderRejected, PaperPrivateStream
from order_copier.exchange.types import OrderAck, StreamEndReason

__all__ = [
    "ExchangeClient",
    "OrderAck",
    "OrderEventCallback",
    "PaperExchangeClient",
    "PaperOrderRejected",
    "PaperPrivateStream",
    "PrivateStream",
    "StreamEndReason",
]
