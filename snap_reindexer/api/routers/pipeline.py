"""Pipeline status and operator actions."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException

from ..config import settings
from ..dependencies import get_cluster, get_queue
from ..exceptions import ClusterUnavailableError, QueueUnavailableError
from ..models import InjectRequest, InjectResponse, PrimeRequest
from ... import bootstrap
from ...cluster import ClusterClient
from ...exceptions import ClusterError, QueueError
from ...schemas import QueueStats, ReindexJob, SnapshotJob, Topic
from ..._queue import BaseWorkQueue

router = APIRouter(prefix="/pipeline", tags=["pipeline"])


@router.get("/status", response_model=QueueStats)
async def pipeline_status(queue: BaseWorkQueue = Depends(get_queue)) -> QueueStats:
    """Topic depths, backlog size and failed job count."""
    try:
        return await bootstrap.queue_stats(queue)
    except QueueError as e:
        raise QueueUnavailableError(e)


@router.post("/prime", response_model=List[SnapshotJob])
async def prime_pipeline(
    request: PrimeRequest,
    queue: BaseWorkQueue = Depends(get_queue),
) -> List[SnapshotJob]:
    """Move ``count`` backlog entries onto the restore topic."""
    if request.count > settings.max_prime_count:
        raise HTTPException(
            status_code=400,
            detail=f"count {request.count} exceeds maximum of {settings.max_prime_count}",
        )
    try:
        return await bootstrap.prime(queue, request.count)
    except QueueError as e:
        raise QueueUnavailableError(e)


@router.post("/inject", response_model=InjectResponse)
async def inject_job(
    request: InjectRequest,
    cluster: ClusterClient = Depends(get_cluster),
    queue: BaseWorkQueue = Depends(get_queue),
) -> InjectResponse:
    """Resume a snapshot/index pair left behind by a crashed job."""
    try:
        job = await bootstrap.inject(
            cluster, queue, request.snapshot, request.index, restore=request.restore
        )
    except ClusterError as e:
        raise ClusterUnavailableError(e)
    except QueueError as e:
        raise QueueUnavailableError(e)

    topic = Topic.REINDEX_OPS if isinstance(job, ReindexJob) else Topic.SNAPSHOT_OPS
    return InjectResponse(topic=topic.value, job=job.model_dump(mode="json"))


@router.delete("/topics", response_model=QueueStats)
async def clear_topics(queue: BaseWorkQueue = Depends(get_queue)) -> QueueStats:
    """Empty both job topics. The backlog is kept."""
    try:
        return await bootstrap.clear_topics(queue)
    except QueueError as e:
        raise QueueUnavailableError(e)
