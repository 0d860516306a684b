"""
Event filter: decides which source order events are replicated.

Only newly placed and partially filled orders are actionable. Fills, cancels,
rejections, expiries and unknown statuses are ignored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from order_copier.events import OrderEvent


ELIGIBLE_STATUSES = frozenset({"NEW", "PARTIALLY_FILLED"})


def is_eligible(event: "OrderEvent") -> bool:
    """True if the event's status is NEW or PARTIALLY_FILLED. Non-string statuses are never eligible."""
    return isinstance(event.status, str) and event.status in ELIGIBLE_STATUSES
