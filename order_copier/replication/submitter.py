"""
Order submitter: sends one translated request to the destination account.

Each request is submitted at most once; there is no retry. Failures are
returned as a FAILED SubmissionResult carrying a SubmissionError whose cause
is the client's exception.
"""

from __future__ import annotations

import logging
from datetime import datetime

from order_copier.errors import SubmissionError
from order_copier.exchange.client import ExchangeClient
from order_copier.order import OrderRequest

from order_copier.replication.types import SubmissionResult, SubmissionStatus

logger = logging.getLogger(__name__)


class OrderSubmitter:
    """Place orders on the destination account through its ExchangeClient."""

    def __init__(self, client: ExchangeClient) -> None:
        self.client = client

    async def submit(self, request: OrderRequest) -> SubmissionResult:
        """
        Place the order once. Never raises for exchange or network failures;
        inspect result.status / result.error instead.
        """
        logger.info(
            "Submitting order: symbol=%s, side=%s, qty=%s, price=%s, type=%s, intent=%s",
            request.symbol,
            request.side.value,
            request.quantity,
            request.price,
            request.order_type.value,
            request.position_intent.value,
        )
        try:
            ack = await self.client.place_order(request)
        except Exception as e:  # noqa: BLE001
            error = SubmissionError(f"Failed to place order on destination account: {e!s}", request=request)
            error.__cause__ = e
            return SubmissionResult(
                status=SubmissionStatus.FAILED,
                request=request,
                timestamp=datetime.now(),
                error=error,
            )
        return SubmissionResult(
            status=SubmissionStatus.ACCEPTED,
            request=request,
            timestamp=datetime.now(),
            ack=ack,
        )
