"""Job-processing loop shared by both worker roles, with cooperative control."""

import asyncio
import os
import signal
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional

from ._queue import BaseWorkQueue, create_work_queue
from ._utils import logger
from .cluster import ClusterClient
from .config import ReindexerConfig
from .exceptions import QueueError
from .manager import SnapshotManager
from .reindexer import ReindexWorker
from .schemas import Topic

JobHandler = Callable[[Dict[str, Any]], Awaitable[Any]]

# Resque conventions: USR2 pauses, CONT resumes, QUIT finishes the job and exits
CONTROL_SIGNALS = {
    "pause": signal.SIGUSR2,
    "resume": signal.SIGCONT,
    "stop": signal.SIGQUIT,
}


class WorkerLoop:
    """Pop jobs from one topic and run them one at a time.

    ``pause`` and ``stop`` never interrupt the job in progress: pause stops
    taking new jobs until ``resume``; stop lets the current job finish and
    then returns from ``run``. A job popped after either arrives is put back
    at the head of its topic unprocessed. A job that raises is logged,
    recorded on the failed list and dropped; losing the queue transport ends
    the loop.
    """

    def __init__(
        self,
        queue: BaseWorkQueue,
        topic: Topic,
        handler: JobHandler,
        pop_timeout: float = 5.0,
        name: Optional[str] = None,
    ):
        self.queue = queue
        self.topic = Topic(topic)
        self.handler = handler
        self.pop_timeout = pop_timeout
        self.name = name or self.topic.value
        self.jobs_processed = 0
        self.jobs_failed = 0
        self._stopping = False
        self._running = asyncio.Event()
        self._running.set()

    @property
    def paused(self) -> bool:
        return not self._running.is_set()

    @property
    def stopping(self) -> bool:
        return self._stopping

    def pause(self) -> None:
        logger.info(f"{self.name}: pausing after current job")
        self._running.clear()

    def resume(self) -> None:
        logger.info(f"{self.name}: resuming")
        self._running.set()

    def stop(self) -> None:
        logger.info(f"{self.name}: stopping after current job")
        self._stopping = True
        self._running.set()

    def install_signal_handlers(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        loop = loop or asyncio.get_running_loop()
        loop.add_signal_handler(CONTROL_SIGNALS["pause"], self.pause)
        loop.add_signal_handler(CONTROL_SIGNALS["resume"], self.resume)
        for sig in (signal.SIGQUIT, signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self.stop)

    async def run(self, max_jobs: Optional[int] = None) -> None:
        """Process jobs until stopped, or until ``max_jobs`` have been handled."""
        logger.info(f"{self.name}: worker started on {self.topic.value}")
        while not self._stopping:
            if self.paused:
                logger.info(f"{self.name}: paused")
                await self._running.wait()
                continue

            payload = await self.queue.pop(self.topic, timeout=self.pop_timeout)
            if payload is None:
                continue
            if self._stopping or self.paused:
                # Control arrived while blocked in pop; the job was never started
                await self.queue.requeue(self.topic, payload)
                logger.info(f"{self.name}: returned {payload} to {self.topic.value}")
                continue

            await self.process(payload)
            if max_jobs is not None and self.jobs_processed + self.jobs_failed >= max_jobs:
                break

        logger.info(
            f"{self.name}: worker stopped ({self.jobs_processed} done, {self.jobs_failed} failed)"
        )

    async def process(self, payload: Dict[str, Any]) -> bool:
        """Run one job. Returns False if it failed."""
        try:
            await self.handler(payload)
        except QueueError:
            raise
        except Exception as e:
            logger.exception(f"{self.name}: job {payload} failed: {e}")
            await self.queue.record_failure(self.topic, payload, f"{type(e).__name__}: {e}")
            self.jobs_failed += 1
            return False
        self.jobs_processed += 1
        return True


def send_control_signal(pid: int, action: str) -> None:
    """Send the pause/resume/stop signal for ``action`` to worker ``pid``."""
    if action not in CONTROL_SIGNALS:
        raise ValueError(f"Unknown control action: {action}. Available: {set(CONTROL_SIGNALS)}")
    os.kill(pid, CONTROL_SIGNALS[action])
    logger.info(f"Sent {CONTROL_SIGNALS[action].name} ({action}) to {pid}")


def build_loop(
    role: str,
    config: ReindexerConfig,
    cluster: ClusterClient,
    queue: BaseWorkQueue,
) -> WorkerLoop:
    """Wire a worker role to its topic."""
    if role == "manager":
        logger.warning(
            "Only one snapshot manager may run per cluster; this is not enforced. "
            "Make sure no other manager is consuming snapshot-ops."
        )
        manager = SnapshotManager(config, cluster, queue)
        return WorkerLoop(queue, Topic.SNAPSHOT_OPS, manager.perform, config.queue.pop_timeout, name="manager")
    if role == "reindexer":
        worker = ReindexWorker(config, cluster, queue)
        return WorkerLoop(queue, Topic.REINDEX_OPS, worker.perform, config.queue.pop_timeout, name="reindexer")
    raise ValueError(f"Unknown worker role: {role}")


async def run_worker(role: str, config: ReindexerConfig, pidfile: Optional[str] = None) -> None:
    """Run a worker process until it is signalled to stop."""
    cluster = ClusterClient(config.cluster)
    queue = create_work_queue("redis", config.queue)
    pid_path = Path(pidfile) if pidfile else None
    try:
        loop = build_loop(role, config, cluster, queue)
        loop.install_signal_handlers()
        if pid_path:
            pid_path.write_text(str(os.getpid()))
        await loop.run()
    finally:
        if pid_path and pid_path.exists():
            pid_path.unlink()
        await queue.close()
        await cluster.close()
