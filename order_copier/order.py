"""
OrderRequest: the instruction sent to the destination account.

Immutable. Built once per eligible event, submitted once, then discarded.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Side(Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderType(Enum):
    LIMIT = "LIMIT"
    MARKET = "MARKET"


class PositionIntent(Enum):
    """Whether an order opens a new position or closes an existing one."""

    OPEN = "OPEN"
    CLOSE = "CLOSE"


@dataclass(frozen=True)
class OrderRequest:
    """An order for the destination account. No exchange id; no fill state here."""

    symbol: str
    side: Side
    quantity: Decimal
    price: Decimal | None
    order_type: OrderType
    position_intent: PositionIntent = PositionIntent.OPEN
    client_order_id: str | None = None
