"""
Replication-layer types: submission result and per-event replication record.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from order_copier.errors import SubmissionError
from order_copier.events import OrderEvent
from order_copier.exchange.types import OrderAck
from order_copier.order import OrderRequest


class SubmissionStatus(Enum):
    ACCEPTED = "accepted"
    FAILED = "failed"


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of submitting one request. error is set iff status is FAILED."""

    status: SubmissionStatus
    request: OrderRequest
    timestamp: datetime
    ack: OrderAck | None = None
    error: SubmissionError | None = None

    @property
    def ok(self) -> bool:
        return self.status == SubmissionStatus.ACCEPTED


class ReplicationStage(Enum):
    """Where processing of one source event ended."""

    FILTERED = "filtered"
    TRANSLATION_FAILED = "translation_failed"
    SUBMITTED = "submitted"
    SUBMISSION_FAILED = "submission_failed"


@dataclass(frozen=True)
class ReplicationRecord:
    """One entry per processed event (request set once translation succeeded)."""

    stage: ReplicationStage
    event: OrderEvent
    timestamp: datetime
    request: OrderRequest | None = None
    order_id: str | None = None
    error: str | None = None
