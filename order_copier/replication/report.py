"""
Replication report: tabulate and summarize orchestrator records.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from order_copier.replication.types import ReplicationRecord, ReplicationStage

logger = logging.getLogger(__name__)

COLUMNS = [
    "timestamp",
    "stage",
    "source_order_id",
    "status",
    "symbol",
    "side",
    "quantity",
    "price",
    "type",
    "destination_order_id",
    "error",
]


def records_to_frame(records: Sequence[ReplicationRecord]) -> pd.DataFrame:
    """
    One row per record, indexed by timestamp.

    symbol/side/type come from the translated request when there is one,
    otherwise from the raw source event.
    """
    rows = []
    for r in records:
        req = r.request
        rows.append(
            {
                "timestamp": r.timestamp,
                "stage": r.stage.value,
                "source_order_id": r.event.order_id,
                "status": r.event.status,
                "symbol": req.symbol if req else r.event.symbol,
                "side": req.side.value if req else r.event.side,
                "quantity": req.quantity if req else r.event.quantity,
                "price": req.price if req else r.event.price,
                "type": req.order_type.value if req else r.event.type,
                "destination_order_id": r.order_id,
                "error": r.error,
            }
        )
    df = pd.DataFrame(rows, columns=COLUMNS)
    return df.set_index("timestamp")


def summarize(records: Sequence[ReplicationRecord]) -> dict[str, int]:
    """Count of records per stage; every stage is present."""
    df = records_to_frame(records)
    counts = df["stage"].value_counts()
    return {stage.value: int(counts.get(stage.value, 0)) for stage in ReplicationStage}


def log_summary(records: Sequence[ReplicationRecord]) -> dict[str, int]:
    """Log the per-stage summary at info level and return it."""
    summary = summarize(records)
    logger.info(
        "Replication summary: submitted=%d, submission_failed=%d, translation_failed=%d, filtered=%d",
        summary[ReplicationStage.SUBMITTED.value],
        summary[ReplicationStage.SUBMISSION_FAILED.value],
        summary[ReplicationStage.TRANSLATION_FAILED.value],
        summary[ReplicationStage.FILTERED.value],
    )
    return summary
