"""
Error taxonomy for the order copier.

Startup and stream-level errors are fatal to the run; translation and submission
errors are contained per event by the orchestrator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from order_copier.exchange.types import StreamEndReason
    from order_copier.order import OrderRequest


class OrderCopierError(Exception):
    """Base exception for all order copier errors."""


class ConfigurationError(OrderCopierError):
    """Required configuration (credentials) is missing or invalid."""

    def __init__(self, message: str, missing: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing = missing


class StreamConnectionError(OrderCopierError):
    """The private stream to the source account could not be established."""


class SubscriptionError(OrderCopierError):
    """Registering for order events on the source stream failed."""


class StreamTerminatedError(OrderCopierError):
    """The source stream ended without a cancellation request."""

    def __init__(self, reason: "StreamEndReason") -> None:
        super().__init__(f"Source stream ended: {reason.value}")
        self.reason = reason


class TranslationError(OrderCopierError):
    """A source order event could not be mapped to a destination order request."""

    def __init__(self, message: str, *, field: str | None = None, value: Any = None) -> None:
        super().__init__(message)
        self.field = field
        self.value = value


class SubmissionError(OrderCopierError):
    """The destination account did not accept an order request."""

    def __init__(self, message: str, *, request: "OrderRequest | None" = None) -> None:
        super().__init__(message)
        self.request = request
