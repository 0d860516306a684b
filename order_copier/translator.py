"""
Order translator: maps a source order event to a destination order request.

Pure and deterministic. Symbols go through the exchange client's normalizer;
side and type tokens are mapped to the destination vocabulary; quantity and
price are copied without rounding or unit conversion. Every replicated order
opens a new position.
"""

from __future__ import annotations

from collections.abc import Callable
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from order_copier.errors import TranslationError
from order_copier.events import OrderEvent
from order_copier.order import OrderRequest, OrderType, PositionIntent, Side

E = TypeVar("E", bound=Enum)


def _parse_token(enum_cls: type[E], token: Any, field: str) -> E:
    """Map a raw exchange token to an enum member by name, case-insensitively."""
    if not isinstance(token, str) or not token.strip():
        raise TranslationError(f"Missing {field} token", field=field, value=token)
    try:
        return enum_cls[token.strip().upper()]
    except KeyError:
        raise TranslationError(f"Unrecognized {field} token: {token!r}", field=field, value=token) from None


def _is_positive(value: Any) -> bool:
    return isinstance(value, Decimal) and value.is_finite() and value > 0


class OrderTranslator:
    """
    Build OrderRequests from OrderEvents.

    normalize_symbol is the exchange client's symbol normalizer; it may raise
    ValueError for symbols it cannot parse.
    """

    def __init__(self, normalize_symbol: Callable[[str], str] = str.strip) -> None:
        self.normalize_symbol = normalize_symbol

    def translate(self, event: OrderEvent) -> OrderRequest:
        """
        Translate one event. Raises TranslationError if a required field
        cannot be parsed.
        """
        symbol = self._symbol(event.symbol)
        side = _parse_token(Side, event.side, "side")
        order_type = _parse_token(OrderType, event.type, "type")

        if not _is_positive(event.quantity):
            raise TranslationError(
                f"Quantity must be a positive decimal, got {event.quantity!r}",
                field="quantity",
                value=event.quantity,
            )
        if order_type == OrderType.LIMIT and not _is_positive(event.price):
            raise TranslationError(
                f"Limit order needs a positive price, got {event.price!r}",
                field="price",
                value=event.price,
            )

        return OrderRequest(
            symbol=symbol,
            side=side,
            quantity=event.quantity,
            price=event.price,
            order_type=order_type,
            position_intent=PositionIntent.OPEN,
        )

    def _symbol(self, raw: Any) -> str:
        if not isinstance(raw, str) or not raw.strip():
            raise TranslationError("Missing symbol", field="symbol", value=raw)
        try:
            symbol = self.normalize_symbol(raw)
        except ValueError as e:
            raise TranslationError(f"Unrecognized symbol {raw!r}: {e}", field="symbol", value=raw) from e
        if not symbol:
            raise TranslationError(f"Symbol {raw!r} normalized to nothing", field="symbol", value=raw)
        return symbol


def translate(event: OrderEvent, normalize_symbol: Callable[[str], str] = str.strip) -> OrderRequest:
    """Translate one event without keeping a translator around."""
    return OrderTranslator(normalize_symbol).translate(event)
