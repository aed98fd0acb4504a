"""Backlog seeding, pipeline priming and operator recovery actions."""

import re
from typing import Any, Dict, Iterable, List, Optional, Union

from ._queue import BaseWorkQueue
from ._utils import logger
from .cluster import ClusterClient
from .config import ReindexerConfig
from .schemas import (
    QueueStats,
    ReindexJob,
    SnapshotJob,
    SnapshotRecord,
    SnapshotState,
    Topic,
    working_copy_name,
)


def filter_snapshots(
    snapshots: Iterable[Dict[str, Any]],
    pattern: Union[str, "re.Pattern[str]"],
) -> List[SnapshotRecord]:
    """Select archive entries the pipeline can process.

    An entry qualifies when its name matches ``pattern``, it completed
    successfully and it holds exactly one index. The result is sorted by
    snapshot name, ascending.
    """
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    records = []
    for snap in snapshots:
        name = snap.get("snapshot", "")
        indices = snap.get("indices") or []
        if not regex.match(name):
            continue
        if snap.get("state") != SnapshotState.SUCCESS:
            logger.debug(f"Skipping {name}: state {snap.get('state')}")
            continue
        if len(indices) != 1:
            logger.debug(f"Skipping {name}: holds {len(indices)} indices")
            continue
        records.append(SnapshotRecord(snapshot=name, index=indices[0]))
    return sorted(records, key=lambda record: record.snapshot)


async def seed_backlog(
    cluster: ClusterClient,
    queue: BaseWorkQueue,
    config: ReindexerConfig,
) -> List[SnapshotRecord]:
    """Load the archive listing and push every qualifying entry onto the backlog.

    Entries are pushed newest-first; the backlog prepends, so consumers pop
    them oldest-first.
    """
    raw = await cluster.list_snapshots(config.cluster.repository)
    records = filter_snapshots(raw, config.pipeline.snapshot_regex)
    logger.info(
        f"{len(records)} of {len(raw)} snapshots in {config.cluster.repository} "
        f"match {config.pipeline.snapshot_pattern}"
    )
    for record in reversed(records):
        await queue.backlog_push(record)
    return records


async def prime(queue: BaseWorkQueue, count: int) -> List[SnapshotJob]:
    """Start ``count`` tokens by moving backlog entries onto the restore topic.

    ``count`` is the number of reindex workers to keep busy.
    """
    if count <= 0:
        raise ValueError(f"count must be positive, got {count}")
    jobs = []
    for _ in range(count):
        record = await queue.backlog_pop_front()
        if record is None:
            logger.info("Backlog exhausted while priming")
            break
        job = SnapshotJob.restore(record)
        await queue.push(Topic.SNAPSHOT_OPS, job)
        jobs.append(job)
    logger.info(f"Primed pipeline with {len(jobs)} restore jobs")
    return jobs


async def inject(
    cluster: ClusterClient,
    queue: BaseWorkQueue,
    snapshot: str,
    index: str,
    restore: Optional[bool] = None,
) -> Union[SnapshotJob, ReindexJob]:
    """Resume one snapshot/index pair left behind by a crashed job.

    When the working copy still exists the stale target is deleted and a
    reindex job is queued. Otherwise both indexes are deleted and a restore
    job is queued. ``restore`` forces either path. The backlog is not
    touched; the injected job replaces the token the crash lost.
    """
    base = working_copy_name(index)
    if restore is None:
        restore = not await cluster.index_exists(base)

    if restore:
        await cluster.delete_index(index)
        await cluster.delete_index(base)
        job: Union[SnapshotJob, ReindexJob] = SnapshotJob.restore(
            SnapshotRecord(snapshot=snapshot, index=index)
        )
        await queue.push(Topic.SNAPSHOT_OPS, job)
        logger.info(f"Injected restore of {snapshot} ({index})")
    else:
        await cluster.delete_index(index)
        job = ReindexJob(snapshot=snapshot, index=index)
        await queue.push(Topic.REINDEX_OPS, job)
        logger.info(f"Injected reindex of {base} into {index}")
    return job


async def clear_topics(queue: BaseWorkQueue) -> QueueStats:
    """Zero both job topics; the backlog survives."""
    await queue.clear_topics()
    return await queue.stats()


async def queue_stats(queue: BaseWorkQueue) -> QueueStats:
    return await queue.stats()
