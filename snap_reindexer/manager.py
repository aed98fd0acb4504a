"""The snapshot manager role: serialized snapshot and restore operations."""

from typing import Any, Dict, Optional

from ._poll import Poller, SleepFunc
from ._queue import BaseWorkQueue
from ._utils import logger
from .cluster import ClusterClient
from .config import ReindexerConfig
from .exceptions import ClusterError
from .schemas import (
    ClusterHealth,
    ReindexJob,
    SnapshotAction,
    SnapshotJob,
    SnapshotState,
    Topic,
    working_copy_name,
)

RENAME_PATTERN = "^(.*)$"
RENAME_REPLACEMENT = "$1-base"


class SnapshotManager:
    """Consume ``snapshot-ops`` jobs one at a time.

    A restore job restores the archived index as its ``-base`` working copy,
    waits for the snapshot and for a green cluster, then hands a
    ``ReindexJob`` to the reindex pool. A snapshot job archives a reindexed
    index under the original snapshot name and deletes both indexes.

    Only one manager may run against a cluster. Elasticsearch rejects
    concurrent snapshot operations, and nothing in this process guards
    against a second manager being started.
    """

    def __init__(
        self,
        config: ReindexerConfig,
        cluster: ClusterClient,
        queue: BaseWorkQueue,
        sleep: Optional[SleepFunc] = None,
    ):
        self.config = config
        self.cluster = cluster
        self.queue = queue
        self.repository = config.cluster.repository
        self._snapshot_poller = Poller(config.pipeline.snapshot_poll_interval, sleep=sleep)
        self._health_poller = Poller(config.pipeline.health_poll_interval, sleep=sleep)

    async def perform(self, payload: Dict[str, Any]) -> None:
        """Worker-loop entry point."""
        job = SnapshotJob.model_validate(payload)
        logger.info(f"Picked up {job.action.value} job for {job.snapshot} ({job.index})")
        match job.action:
            case SnapshotAction.RESTORE:
                await self.restore(job.snapshot, job.index)
            case SnapshotAction.SNAPSHOT:
                await self.snapshot(job.snapshot, job.index)

    async def restore(self, snapshot: str, index: str) -> ReindexJob:
        """Restore ``index`` from ``snapshot`` as its working copy and queue the reindex."""
        await self.cluster.snapshot_restore(
            self.repository,
            snapshot,
            index,
            rename_pattern=RENAME_PATTERN,
            rename_replacement=RENAME_REPLACEMENT,
        )
        await self.wait_for_snapshot(snapshot)
        await self.wait_for_green()

        job = ReindexJob(snapshot=snapshot, index=index)
        await self.queue.push(Topic.REINDEX_OPS, job)
        logger.info(f"Restored {working_copy_name(index)}; queued reindex for {snapshot}")
        return job

    async def snapshot(self, snapshot: str, index: str) -> None:
        """Archive ``index`` as ``snapshot`` and delete the index pair."""
        try:
            await self.cluster.snapshot_delete(self.repository, snapshot)
        except ClusterError as e:
            logger.warning(f"Removal of existing snapshot {snapshot} failed, continuing: {e}")

        await self.cluster.snapshot_create(self.repository, snapshot, index)
        await self.wait_for_snapshot(snapshot)

        await self.cluster.delete_index(index)
        await self.cluster.delete_index(working_copy_name(index))
        logger.info(f"Snapshot {snapshot} complete; removed {index} and its working copy")

    async def wait_for_snapshot(self, snapshot: str) -> str:
        """Block until ``snapshot`` reports SUCCESS."""
        logger.info(f"Waiting for snapshot {snapshot}")
        return await self._snapshot_poller.until(
            lambda: self.cluster.snapshot_status(self.repository, snapshot),
            lambda state: state == SnapshotState.SUCCESS,
        )

    async def wait_for_green(self) -> ClusterHealth:
        """Block until the cluster is green.

        The cluster is red while restored primaries initialize and yellow
        while replicas are built.
        """
        logger.info("Waiting for cluster health green")
        return await self._health_poller.until(
            self.cluster.health,
            lambda health: health == ClusterHealth.GREEN,
        )
