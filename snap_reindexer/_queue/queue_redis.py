"""Redis-backed work queue for production deployments."""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import redis.asyncio as aioredis
from pydantic import BaseModel
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from .base import BaseWorkQueue
from .._utils import logger
from ..config import QueueConfig
from ..exceptions import QueueError
from ..schemas import SnapshotRecord, Topic


@asynccontextmanager
async def _translate_errors(op: str):
    try:
        yield
    except RedisError as e:
        logger.error(f"Redis {op} failed: {e}")
        raise QueueError(op, e) from e


class RedisWorkQueue(BaseWorkQueue):
    """Job topics and the snaplist stored as Redis lists.

    Topics use RPUSH/BLPOP so jobs leave in arrival order and each one is
    handed to a single blocked consumer. The backlog uses LPUSH/LPOP.
    """

    def __init__(self, config: QueueConfig, client: Optional[Any] = None):
        self.config = config
        self._prefix = f"{config.key_prefix}:"
        self._redis_client = client
        self._connection_pool = None

    def _ensure_client(self):
        if self._redis_client is not None:
            return self._redis_client

        retry = Retry(
            ExponentialBackoff(cap=10, base=1),
            retries=3,
            supported_errors=(RedisConnectionError, RedisTimeoutError, ConnectionError)
        )

        self._connection_pool = aioredis.ConnectionPool.from_url(
            self.config.redis_url,
            password=self.config.redis_password,
            max_connections=self.config.redis_max_connections,
            socket_timeout=self.config.redis_socket_timeout,
            socket_connect_timeout=self.config.redis_connection_timeout,
            decode_responses=False,
            retry=retry,
            health_check_interval=self.config.redis_health_check_interval
        )
        self._redis_client = aioredis.Redis(connection_pool=self._connection_pool)
        logger.info(f"Using Redis queue at {self.config.redis_url} (prefix {self._prefix})")
        return self._redis_client

    def topic_key(self, topic: Topic) -> str:
        return f"{self._prefix}queue:{Topic(topic).value}"

    @property
    def backlog_key(self) -> str:
        return f"{self._prefix}{self.config.snaplist_key}"

    @property
    def failed_key(self) -> str:
        return f"{self._prefix}failed"

    async def push(self, topic: Topic, job: BaseModel) -> None:
        client = self._ensure_client()
        async with _translate_errors("push"):
            await client.rpush(self.topic_key(topic), self._serialize(job))
        logger.debug(f"Pushed job to {Topic(topic).value}: {job}")

    async def pop(self, topic: Topic, timeout: Optional[float] = None) -> Optional[Dict[str, Any]]:
        client = self._ensure_client()
        async with _translate_errors("pop"):
            # BLPOP treats 0 as "wait forever"
            result = await client.blpop([self.topic_key(topic)], timeout=timeout or 0)
        if result is None:
            return None
        _, data = result
        return self._deserialize(data)

    async def requeue(self, topic: Topic, payload: Dict[str, Any]) -> None:
        client = self._ensure_client()
        async with _translate_errors("requeue"):
            await client.lpush(self.topic_key(topic), self._serialize(payload))
        logger.debug(f"Returned job to the head of {Topic(topic).value}: {payload}")

    async def size(self, topic: Topic) -> int:
        client = self._ensure_client()
        async with _translate_errors("size"):
            return int(await client.llen(self.topic_key(topic)))

    async def backlog_push(self, record: SnapshotRecord) -> None:
        client = self._ensure_client()
        async with _translate_errors("backlog_push"):
            await client.lpush(self.backlog_key, self._serialize(record))

    async def backlog_pop_front(self) -> Optional[SnapshotRecord]:
        client = self._ensure_client()
        async with _translate_errors("backlog_pop_front"):
            data = await client.lpop(self.backlog_key)
        if data is None:
            return None
        return SnapshotRecord.model_validate(self._deserialize(data))

    async def backlog_size(self) -> int:
        client = self._ensure_client()
        async with _translate_errors("backlog_size"):
            return int(await client.llen(self.backlog_key))

    async def clear_topics(self) -> None:
        client = self._ensure_client()
        async with _translate_errors("clear_topics"):
            await client.delete(*(self.topic_key(topic) for topic in Topic))
        logger.info("Cleared job topics")

    async def record_failure(self, topic: Topic, payload: Dict[str, Any], error: str) -> None:
        client = self._ensure_client()
        entry = self._failure_entry(topic, payload, error)
        async with _translate_errors("record_failure"):
            await client.rpush(self.failed_key, entry.model_dump_json())

    async def failed_size(self) -> int:
        client = self._ensure_client()
        async with _translate_errors("failed_size"):
            return int(await client.llen(self.failed_key))

    async def ping(self) -> bool:
        client = self._ensure_client()
        async with _translate_errors("ping"):
            return bool(await client.ping())

    async def close(self) -> None:
        if self._redis_client is not None:
            await self._redis_client.aclose()
        if self._connection_pool is not None:
            await self._connection_pool.disconnect()
        self._redis_client = None
        self._connection_pool = None
