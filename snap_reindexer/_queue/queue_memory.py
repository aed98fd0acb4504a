"""In-process work queue for tests and offline dry runs."""

import asyncio
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from pydantic import BaseModel

from .base import BaseWorkQueue
from ..schemas import FailedJob, SnapshotRecord, Topic


class MemoryWorkQueue(BaseWorkQueue):
    """Work queue held in memory; shares nothing across processes."""

    def __init__(self):
        self._topics: Dict[Topic, Deque[str]] = {topic: deque() for topic in Topic}
        self._backlog: Deque[str] = deque()
        self._failed: List[FailedJob] = []
        self._conditions: Dict[Topic, asyncio.Condition] = {}

    def _condition(self, topic: Topic) -> asyncio.Condition:
        if topic not in self._conditions:
            self._conditions[topic] = asyncio.Condition()
        return self._conditions[topic]

    async def push(self, topic: Topic, job: BaseModel) -> None:
        topic = Topic(topic)
        condition = self._condition(topic)
        async with condition:
            self._topics[topic].append(self._serialize(job))
            condition.notify()

    async def pop(self, topic: Topic, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        topic = Topic(topic)
        condition = self._condition(topic)
        async with condition:
            try:
                await asyncio.wait_for(
                    condition.wait_for(lambda: len(self._topics[topic]) > 0),
                    timeout=timeout,
                )
            except asyncio.TimeoutError:
                return None
            return self._deserialize(self._topics[topic].popleft())

    async def requeue(self, topic: Topic, payload: Dict[str, Any]) -> None:
        topic = Topic(topic)
        condition = self._condition(topic)
        async with condition:
            self._topics[topic].appendleft(self._serialize(payload))
            condition.notify()

    async def size(self, topic: Topic) -> int:
        return len(self._topics[Topic(topic)])

    async def backlog_push(self, record: SnapshotRecord) -> None:
        self._backlog.appendleft(self._serialize(record))

    async def backlog_pop_front(self) -> Optional[SnapshotRecord]:
        if not self._backlog:
            return None
        return SnapshotRecord.model_validate(self._deserialize(self._backlog.popleft()))

    async def backlog_size(self) -> int:
        return len(self._backlog)

    async def clear_topics(self) -> None:
        for jobs in self._topics.values():
            jobs.clear()

    async def record_failure(self, topic: Topic, payload: Dict[str, Any], error: str) -> None:
        self._failed.append(self._failure_entry(topic, payload, error))

    async def failed_size(self) -> int:
        return len(self._failed)

    @property
    def failed_jobs(self) -> List[FailedJob]:
        return list(self._failed)
