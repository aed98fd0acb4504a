"""Work queue contract shared by the transport backends."""

import json
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

from ..schemas import FailedJob, QueueStats, SnapshotRecord, Topic


class BaseWorkQueue:
    """Durable job topics plus the ordered snaplist backlog.

    Topics are FIFO per producer and each popped job goes to exactly one
    consumer. The backlog is a list that ``backlog_push`` prepends to and
    ``backlog_pop_front`` removes from, so a seeder pushes newest-first to have
    consumers pop oldest-first.
    """

    async def push(self, topic: Topic, job: BaseModel) -> None:
        raise NotImplementedError

    async def pop(self, topic: Topic, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        """Block until a job arrives on ``topic``; ``None`` once ``timeout`` elapses."""
        raise NotImplementedError

    async def requeue(self, topic: Topic, payload: Dict[str, Any]) -> None:
        """Put a popped job back at the head of ``topic``."""
        raise NotImplementedError

    async def size(self, topic: Topic) -> int:
        raise NotImplementedError

    async def backlog_push(self, record: SnapshotRecord) -> None:
        raise NotImplementedError

    async def backlog_pop_front(self) -> Optional[SnapshotRecord]:
        """Next backlog record, or ``None`` when the backlog is exhausted."""
        raise NotImplementedError

    async def backlog_size(self) -> int:
        raise NotImplementedError

    async def clear_topics(self) -> None:
        """Empty both job topics. The backlog is left untouched."""
        raise NotImplementedError

    async def record_failure(self, topic: Topic, payload: Dict[str, Any], error: str) -> None:
        raise NotImplementedError

    async def failed_size(self) -> int:
        raise NotImplementedError

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass

    async def stats(self) -> QueueStats:
        return QueueStats(
            topics={topic.value: await self.size(topic) for topic in Topic},
            backlog=await self.backlog_size(),
            failed=await self.failed_size(),
        )

    @staticmethod
    def _serialize(job: Union[BaseModel, Dict[str, Any]]) -> str:
        if isinstance(job, BaseModel):
            return job.model_dump_json()
        return json.dumps(job, default=str)

    @staticmethod
    def _deserialize(data: Union[str, bytes, None]) -> Optional[Dict[str, Any]]:
        if data is None:
            return None
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        return json.loads(data)

    @staticmethod
    def _failure_entry(topic: Topic, payload: Dict[str, Any], error: str) -> FailedJob:
        return FailedJob(topic=Topic(topic).value, payload=payload, error=error)
