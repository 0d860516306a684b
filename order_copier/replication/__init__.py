"""
Replication layer: stream lifecycle, orchestration and order submission.

StreamLifecycleManager feeds source events through a queue to the
ReplicationOrchestrator, which runs filter → translator → OrderSubmitter.
"""

from order_copier.replication.orchestrator import STREAM_CLOSED, ReplicationObserver, ReplicationOrchestrator
from order_copier.replication.report import log_summary, records_to_frame, summarize
from order_copier.replication.stream import StreamLifecycleManager, StreamState
from order_copier.replication.submitter import OrderSubmitter
from order_copier.replication.types import (
    ReplicationRecord,
    ReplicationStage,
    SubmissionResult,
    SubmissionStatus,
)

__all__ = [
    "OrderSubmitter",
    "ReplicationObserver",
    "ReplicationOrchestrator",
    "ReplicationRecord",
    "ReplicationStage",
    "STREAM_CLOSED",
    "StreamLifecycleManager",
    "StreamState",
    "SubmissionResult",
    "SubmissionStatus",
    "log_summary",
    "records_to_frame",
    "summarize",
]
