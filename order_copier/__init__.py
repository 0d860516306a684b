"""
order-copier: replicate orders from a source exchange account to a destination account.

Source order events flow through filter → translator → submitter; every
replicated order opens a new position on the destination.
"""

__version__ = "0.1.0"

from order_copier.errors import (
    ConfigurationError,
    OrderCopierError,
    StreamConnectionError,
    StreamTerminatedError,
    SubmissionError,
    SubscriptionError,
    TranslationError,
)
from order_copier.events import OrderEvent
from order_copier.filter import ELIGIBLE_STATUSES, is_eligible
from order_copier.order import OrderRequest, OrderType, PositionIntent, Side
from order_copier.translator import OrderTranslator, translate

__all__ = [
    "ConfigurationError",
    "ELIGIBLE_STATUSES",
    "OrderCopierError",
    "OrderEvent",
    "OrderRequest",
    "OrderTranslator",
    "OrderType",
    "PositionIntent",
    "Side",
    "StreamConnectionError",
    "StreamTerminatedError",
    "SubmissionError",
    "SubscriptionError",
    "TranslationError",
    "is_eligible",
    "translate",
]
