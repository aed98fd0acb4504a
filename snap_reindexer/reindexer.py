"""The reindex worker role: mapping mutation and asynchronous reindex."""

from typing import Any, Dict, List, Optional

from ._poll import Poller, SleepFunc
from ._queue import BaseWorkQueue
from ._utils import logger
from .cluster import ClusterClient
from .config import ReindexerConfig
from .exceptions import ClusterError
from .mapping import SOURCE_TYPES_KEY, BaseMappingTransform, DefaultMappingTransform
from .schemas import ReindexJob, SnapshotAction, SnapshotJob, TaskStatus, Topic


class ReindexWorker:
    """Consume ``reindex-ops`` jobs.

    For a job ``{snapshot, index}`` the worker builds ``index`` from the
    transformed mapping of ``index-base``, reindexes into it, asks the manager
    to archive it, and then feeds the pipe with the next backlog entry.

    ``test_reindex`` runs the same mutate + reindex steps against any pair of
    indexes without touching the queue, for checking a transform before
    letting it loose on the archive.
    """

    def __init__(
        self,
        config: ReindexerConfig,
        cluster: ClusterClient,
        queue: Optional[BaseWorkQueue] = None,
        transform: Optional[BaseMappingTransform] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.config = config
        self.cluster = cluster
        self.queue = queue
        self.transform = transform or DefaultMappingTransform.from_config(config.pipeline)
        self._task_poller = Poller(config.pipeline.task_poll_interval, sleep=sleep)

    async def perform(self, payload: Dict[str, Any]) -> Optional[SnapshotJob]:
        """Worker-loop entry point. Returns the restore job emitted, if any."""
        job = ReindexJob.model_validate(payload)
        logger.info(f"Picked up reindexing job, {job.snapshot}")
        body = await self.mutate_mapping(job.source, job.index)
        await self.reindex(job.source, job.index, source_types=body.get(SOURCE_TYPES_KEY))
        return await self.complete(job)

    async def test_reindex(self, source: str, target: str) -> TaskStatus:
        """Mutate and reindex ``source`` into ``target`` with no queue side effects."""
        logger.info(f"Beginning test reindex of {source} into {target}")
        body = await self.mutate_mapping(source, target)
        status = await self.reindex(source, target, source_types=body.get(SOURCE_TYPES_KEY))
        logger.info("Terminating without snapshot. Go check your work.")
        return status

    async def mutate_mapping(self, source: str, target: str) -> Dict[str, Any]:
        """Create ``target`` from the transformed mapping and settings of ``source``."""
        mapping = await self.cluster.get_mapping(source)
        settings = await self.cluster.get_settings(source)
        stats = await self.cluster.get_stats(source)

        body = self.transform(mapping, settings, stats)
        await self.cluster.create_index(target, body)
        logger.info(f"Created target index, {target}.")
        return body

    async def reindex(
        self,
        source: str,
        target: str,
        source_types: Optional[List[str]] = None,
    ) -> TaskStatus:
        """Copy every document of ``source`` into ``target`` and wait for it.

        ``source_types`` names the document types of a typed source; when set,
        every copied document is retyped to the configured ``doc_type``.
        """
        logger.info(f"Beginning reindex of {source} to {target}")
        # Commit deletes made while mutating so merges cannot bring them back
        await self.cluster.flush(source)

        target_settings = await self.cluster.get_settings(target)
        slices = int(target_settings.get("index", {}).get("number_of_shards", 1))

        task_id = await self.cluster.submit_reindex(
            source,
            target,
            script=self._doc_type_script(source_types),
            slices=slices,
            size=self.config.pipeline.bulk_size,
        )
        logger.info(f"Submitted reindex task {task_id} ({slices} slices)")

        status = await self._task_poller.until(
            lambda: self.cluster.poll_task(task_id),
            lambda task: task.completed,
        )
        if status.error or status.failures:
            raise ClusterError(
                "reindex",
                RuntimeError(f"task {task_id} finished with {status.failures} failures: {status.error}"),
            )

        logger.info(f"Finished reindexing of {target}: {status.created}/{status.total} documents")
        return status

    async def complete(self, job: ReindexJob) -> Optional[SnapshotJob]:
        """Hand the finished index to the manager and start the next restore."""
        await self.queue.push(
            Topic.SNAPSHOT_OPS,
            SnapshotJob(action=SnapshotAction.SNAPSHOT, snapshot=job.snapshot, index=job.index),
        )
        return await self.push_new()

    async def push_new(self) -> Optional[SnapshotJob]:
        """Pop the next snapshot off the backlog and submit it for restore."""
        record = await self.queue.backlog_pop_front()
        if record is None:
            logger.info("Backlog is empty; pipeline is draining")
            return None

        job = SnapshotJob.restore(record)
        await self.queue.push(Topic.SNAPSHOT_OPS, job)
        logger.info(f"Queued restore of {record.snapshot} ({record.index})")
        return job

    def _doc_type_script(self, source_types: Optional[List[str]]) -> Optional[Dict[str, Any]]:
        if not source_types:
            return None
        return {
            "lang": "painless",
            "source": "ctx._type = params.doc_type",
            "params": {"doc_type": self.config.pipeline.doc_type},
        }
