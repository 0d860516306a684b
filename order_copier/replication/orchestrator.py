"""
Replication orchestrator: filter → translate → submit for each source event.

Events are handled one at a time in arrival order. Every per-event failure
(translation or submission) is logged and recorded, never raised back into
the stream.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter, deque
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol

from order_copier.errors import TranslationError
from order_copier.events import OrderEvent
from order_copier.filter import is_eligible
from order_copier.order import OrderRequest
from order_copier.translator import OrderTranslator

from order_copier.replication.submitter import OrderSubmitter
from order_copier.replication.types import ReplicationRecord, ReplicationStage

logger = logging.getLogger(__name__)


class _StreamClosed:
    def __repr__(self) -> str:
        return "STREAM_CLOSED"


# Published by the stream manager after the last event.
STREAM_CLOSED: Any = _StreamClosed()


class ReplicationObserver(Protocol):
    """Called with each record after an event is processed (e.g. journal, metrics)."""

    def __call__(self, record: ReplicationRecord) -> None:
        ...


class ReplicationOrchestrator:
    """
    Wire Filter → Translator → Submitter for each inbound order event.

    NEW and every PARTIALLY_FILLED update are independently eligible, so a
    source order that fills in several increments is copied once per update,
    each as a fresh opening order. There is no order-id deduplication.
    """

    def __init__(
        self,
        translator: OrderTranslator,
        submitter: OrderSubmitter,
        *,
        observers: Sequence[ReplicationObserver] = (),
        max_records: int = 1000,
    ) -> None:
        self.translator = translator
        self.submitter = submitter
        self.observers: list[ReplicationObserver] = list(observers)
        self._records: deque[ReplicationRecord] = deque(maxlen=max_records)
        self._counts: Counter[ReplicationStage] = Counter()

    def get_records(self) -> list[ReplicationRecord]:
        """Return the most recent replication records, oldest first."""
        return list(self._records)

    def counts(self) -> dict[ReplicationStage, int]:
        """Events processed per outcome stage since start."""
        return {stage: self._counts[stage] for stage in ReplicationStage}

    async def on_event(self, event: OrderEvent) -> None:
        """Process one event. Never raises for translation or submission failures."""
        if not is_eligible(event):
            logger.debug(
                "Ignoring order event: status=%s, symbol=%s, order_id=%s",
                event.status,
                event.symbol,
                event.order_id,
            )
            self._record(ReplicationStage.FILTERED, event)
            return

        try:
            request = self.translator.translate(event)
        except TranslationError as e:
            logger.error("Replication failed at translation stage: order_id=%s: %s", event.order_id, e)
            self._record(ReplicationStage.TRANSLATION_FAILED, event, error=str(e))
            return

        result = await self.submitter.submit(request)
        if result.ok:
            order_id = result.ack.order_id if result.ack else None
            logger.info(
                "Copied order to destination: source_order_id=%s, destination_order_id=%s",
                event.order_id,
                order_id,
            )
            self._record(ReplicationStage.SUBMITTED, event, request=request, order_id=order_id)
        else:
            logger.error(
                "Replication failed at submission stage: source_order_id=%s: %s",
                event.order_id,
                result.error,
            )
            self._record(ReplicationStage.SUBMISSION_FAILED, event, request=request, error=str(result.error))

    async def consume(self, queue: "asyncio.Queue[Any]", cancel: asyncio.Event) -> int:
        """
        Take events from queue until STREAM_CLOSED. Once cancel is set, the event
        in flight finishes and events still queued are discarded. An unexpected
        error while handling one event is logged and the next event is taken.
        Returns the number of events processed.
        """
        processed = 0
        discarded = 0
        while True:
            item = await queue.get()
            try:
                if item is STREAM_CLOSED:
                    break
                if cancel.is_set():
                    discarded += 1
                    continue
                try:
                    await self.on_event(item)
                except Exception:  # noqa: BLE001
                    logger.exception(
                        "Replication failed for order event: order_id=%s", getattr(item, "order_id", None)
                    )
                processed += 1
            finally:
                queue.task_done()
        if discarded:
            logger.info("Discarded %d queued event(s) after cancellation", discarded)
        return processed

    def _record(
        self,
        stage: ReplicationStage,
        event: OrderEvent,
        *,
        request: OrderRequest | None = None,
        order_id: str | None = None,
        error: str | None = None,
    ) -> None:
        record = ReplicationRecord(
            stage=stage,
            event=event,
            timestamp=datetime.now(),
            request=request,
            order_id=order_id,
            error=error,
        )
        self._records.append(record)
        self._counts[stage] += 1
        for obs in self.observers:
            try:
                obs(record)
            except Exception:  # noqa: BLE001
                logger.exception("Replication observer %r failed", obs)
