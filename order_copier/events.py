"""
Order events observed on the source account.

Events are immutable data carriers. The replication pipeline only reads them
to build new order requests; it never changes them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any


def _to_decimal(value: Any) -> Any:
    """Coerce numeric input to Decimal. Unparseable values are returned unchanged."""
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return value
    try:
        # str() first so floats keep their shortest repr instead of binary noise
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return value


@dataclass(frozen=True)
class OrderEvent:
    """
    One order lifecycle notification from the source account.

    side, type and status are the exchange's raw tokens; the translator
    normalizes them. price may be None or zero for market orders.
    """

    symbol: str
    side: str
    quantity: Decimal
    price: Decimal | None
    type: str
    status: str
    order_id: str | None = None
    event_type: str | None = None
    timestamp: datetime | None = None
    raw: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", _to_decimal(self.quantity))
        object.__setattr__(self, "price", _to_decimal(self.price))
