"""Tests for the Redis work queue with a mocked client."""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from redis.exceptions import ConnectionError as RedisConnectionError

from snap_reindexer._queue.queue_redis import RedisWorkQueue
from snap_reindexer.config import QueueConfig
from snap_reindexer.exceptions import QueueError
from snap_reindexer.schemas import ReindexJob, SnapshotRecord, Topic


@pytest.fixture
def mock_client():
    client = AsyncMock()
    client.rpush = AsyncMock(return_value=1)
    client.lpush = AsyncMock(return_value=1)
    client.llen = AsyncMock(return_value=0)
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def redis_queue(mock_client):
    return RedisWorkQueue(QueueConfig(key_prefix="test"), client=mock_client)


def test_keys(redis_queue):
    assert redis_queue.topic_key(Topic.SNAPSHOT_OPS) == "test:queue:snapshot-ops"
    assert redis_queue.topic_key(Topic.REINDEX_OPS) == "test:queue:reindex-ops"
    assert redis_queue.backlog_key == "test:pending-snapshots"
    assert redis_queue.failed_key == "test:failed"


@pytest.mark.asyncio
async def test_push_appends_json(redis_queue, mock_client):
    await redis_queue.push(Topic.REINDEX_OPS, ReindexJob(snapshot="s", index="i"))

    key, data = mock_client.rpush.call_args.args
    assert key == "test:queue:reindex-ops"
    assert json.loads(data) == {"snapshot": "s", "index": "i"}


@pytest.mark.asyncio
async def test_pop_blocks_with_timeout(redis_queue, mock_client):
    mock_client.blpop = AsyncMock(return_value=(b"test:queue:reindex-ops", b'{"snapshot": "s", "index": "i"}'))

    job = await redis_queue.pop(Topic.REINDEX_OPS, timeout=5)

    assert job == {"snapshot": "s", "index": "i"}
    mock_client.blpop.assert_awaited_once_with(["test:queue:reindex-ops"], timeout=5)


@pytest.mark.asyncio
async def test_pop_returns_none_on_timeout(redis_queue, mock_client):
    mock_client.blpop = AsyncMock(return_value=None)

    assert await redis_queue.pop(Topic.SNAPSHOT_OPS, timeout=1) is None


@pytest.mark.asyncio
async def test_backlog_uses_head_of_list(redis_queue, mock_client):
    record = SnapshotRecord(snapshot="logstash-20190801", index="logstash-2019.08.01")
    mock_client.lpop = AsyncMock(return_value=record.model_dump_json().encode())

    await redis_queue.backlog_push(record)
    popped = await redis_queue.backlog_pop_front()

    assert mock_client.lpush.call_args.args[0] == "test:pending-snapshots"
    mock_client.lpop.assert_awaited_once_with("test:pending-snapshots")
    assert popped == record


@pytest.mark.asyncio
async def test_backlog_pop_empty(redis_queue, mock_client):
    mock_client.lpop = AsyncMock(return_value=None)

    assert await redis_queue.backlog_pop_front() is None


@pytest.mark.asyncio
async def test_clear_topics_deletes_topic_keys_only(redis_queue, mock_client):
    mock_client.delete = AsyncMock(return_value=2)

    await redis_queue.clear_topics()

    deleted = set(mock_client.delete.call_args.args)
    assert deleted == {"test:queue:snapshot-ops", "test:queue:reindex-ops"}


@pytest.mark.asyncio
async def test_stats(redis_queue, mock_client):
    lengths = {
        "test:queue:snapshot-ops": 1,
        "test:queue:reindex-ops": 2,
        "test:pending-snapshots": 30,
        "test:failed": 4,
    }
    mock_client.llen = AsyncMock(side_effect=lambda key: lengths[key])

    stats = await redis_queue.stats()

    assert stats.topics == {"snapshot-ops": 1, "reindex-ops": 2}
    assert stats.backlog == 30
    assert stats.failed == 4


@pytest.mark.asyncio
async def test_record_failure(redis_queue, mock_client):
    await redis_queue.record_failure(Topic.SNAPSHOT_OPS, {"action": "restore"}, "ClusterError: boom")

    key, data = mock_client.rpush.call_args.args
    entry = json.loads(data)
    assert key == "test:failed"
    assert entry["topic"] == "snapshot-ops"
    assert entry["payload"] == {"action": "restore"}
    assert entry["error"] == "ClusterError: boom"
    assert "failed_at" in entry


@pytest.mark.asyncio
async def test_redis_errors_become_queue_errors(redis_queue, mock_client):
    mock_client.rpush = AsyncMock(side_effect=RedisConnectionError("connection refused"))

    with pytest.raises(QueueError) as exc_info:
        await redis_queue.push(Topic.REINDEX_OPS, ReindexJob(snapshot="s", index="i"))

    assert exc_info.value.op == "push"
    assert isinstance(exc_info.value.cause, RedisConnectionError)


@pytest.mark.asyncio
async def test_lazy_client_uses_connection_pool():
    config = QueueConfig(redis_url="redis://queue:6379", redis_password="secret")

    with patch("snap_reindexer._queue.queue_redis.aioredis") as mock_aioredis:
        mock_pool = MagicMock()
        mock_pool.disconnect = AsyncMock()
        mock_client = AsyncMock()
        mock_aioredis.ConnectionPool.from_url.return_value = mock_pool
        mock_aioredis.Redis.return_value = mock_client

        queue = RedisWorkQueue(config)
        mock_aioredis.ConnectionPool.from_url.assert_not_called()

        assert await queue.ping() is True

        args, kwargs = mock_aioredis.ConnectionPool.from_url.call_args
        assert args[0] == "redis://queue:6379"
        assert kwargs["password"] == "secret"
        assert kwargs["max_connections"] == 10
        mock_aioredis.Redis.assert_called_once_with(connection_pool=mock_pool)

        await queue.close()
        mock_client.aclose.assert_awaited_once()
        mock_pool.disconnect.assert_awaited_once()


@pytest.mark.asyncio
async def test_requeue_pushes_to_head(redis_queue, mock_client):
    await redis_queue.requeue(Topic.REINDEX_OPS, {"snapshot": "s", "index": "i"})

    key, data = mock_client.lpush.call_args.args
    assert key == "test:queue:reindex-ops"
    assert json.loads(data) == {"snapshot": "s", "index": "i"}
