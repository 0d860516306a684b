"""
Exchange-side types: order acknowledgment and stream end reason.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class StreamEndReason(Enum):
    """Why a private stream stopped delivering events."""

    CANCELLED = "cancelled"
    REMOTE_CLOSED = "remote_closed"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class OrderAck:
    """Exchange acknowledgment of a placed order. Immutable."""

    order_id: str
    accepted_at: datetime
    client_order_id: str | None = None
    raw: Mapping[str, Any] | None = field(default=None, compare=False, repr=False)
