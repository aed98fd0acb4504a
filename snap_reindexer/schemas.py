"""Pydantic models for queue messages and cluster observations.

Everything that crosses the queue transport is one of these models serialized
with ``model_dump_json``. Consumers rebuild them with ``model_validate`` so an
unknown action tag or a missing field is rejected before any cluster call.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

WORKING_COPY_SUFFIX = "-base"


def working_copy_name(index: str) -> str:
    """Name of the restored, not yet reindexed copy of ``index``."""
    return f"{index}{WORKING_COPY_SUFFIX}"


class Topic(str, Enum):
    """Job topics on the work queue."""
    SNAPSHOT_OPS = "snapshot-ops"
    REINDEX_OPS = "reindex-ops"


class SnapshotAction(str, Enum):
    SNAPSHOT = "snapshot"
    RESTORE = "restore"


class ClusterHealth(str, Enum):
    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"


class SnapshotState:
    """Snapshot states reported by the snapshot status API."""
    SUCCESS = "SUCCESS"
    IN_PROGRESS = "IN_PROGRESS"
    STARTED = "STARTED"
    FAILED = "FAILED"
    PARTIAL = "PARTIAL"


class SnapshotRecord(BaseModel):
    """One archived index: a backlog entry."""
    model_config = ConfigDict(frozen=True)

    snapshot: str = Field(..., min_length=1)
    index: str = Field(..., min_length=1)


class SnapshotJob(BaseModel):
    """Work for the snapshot manager."""
    model_config = ConfigDict(frozen=True)

    action: SnapshotAction
    snapshot: str = Field(..., min_length=1)
    index: str = Field(..., min_length=1)

    @classmethod
    def restore(cls, record: SnapshotRecord) -> "SnapshotJob":
        return cls(action=SnapshotAction.RESTORE, snapshot=record.snapshot, index=record.index)


class ReindexJob(BaseModel):
    """Work for a reindex worker.

    ``snapshot`` is the name the reindexed index will be archived under and
    ``index`` is the target index; the source is ``working_copy_name(index)``.
    """
    model_config = ConfigDict(frozen=True)

    snapshot: str = Field(..., min_length=1)
    index: str = Field(..., min_length=1)

    @property
    def source(self) -> str:
        return working_copy_name(self.index)


class TaskStatus(BaseModel):
    """Observed state of an asynchronous reindex task."""
    task_id: str
    completed: bool = False
    created: int = 0
    total: int = 0
    failures: int = 0
    error: Optional[Dict[str, Any]] = None


class FailedJob(BaseModel):
    """A job that raised in a worker loop; kept for operator inspection."""
    topic: str
    payload: Dict[str, Any]
    error: str
    failed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QueueStats(BaseModel):
    """Queue depths for the operator surfaces."""
    topics: Dict[str, int]
    backlog: int
    failed: int
