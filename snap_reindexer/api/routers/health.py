"""Health check endpoints."""

import asyncio
from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..dependencies import get_cluster, get_queue
from ..models import HealthStatus
from ...cluster import ClusterClient
from ..._queue import BaseWorkQueue
from ..._utils import logger

router = APIRouter(prefix="/health", tags=["health"])


async def check_cluster(cluster: ClusterClient) -> Optional[str]:
    """Cluster health colour, or None if the cluster is unreachable."""
    try:
        return (await cluster.health()).value
    except Exception as e:
        logger.warning(f"Cluster health check failed: {e}")
        return None


async def check_redis(queue: BaseWorkQueue) -> bool:
    """Check queue transport connectivity."""
    try:
        return await queue.ping()
    except Exception as e:
        logger.warning(f"Queue health check failed: {e}")
        return False


@router.get("", response_model=HealthStatus)
async def health_check(
    cluster: ClusterClient = Depends(get_cluster),
    queue: BaseWorkQueue = Depends(get_queue),
) -> HealthStatus:
    """Health of the cluster and the queue transport."""
    cluster_status, redis_ok = await asyncio.gather(
        check_cluster(cluster),
        check_redis(queue),
    )

    if cluster_status == "green" and redis_ok:
        status = "healthy"
    elif cluster_status is None and not redis_ok:
        status = "unhealthy"
    else:
        status = "degraded"

    return HealthStatus(status=status, cluster=cluster_status, redis=redis_ok)


@router.get("/ready")
async def readiness_check(
    cluster: ClusterClient = Depends(get_cluster),
    queue: BaseWorkQueue = Depends(get_queue),
) -> Dict[str, str]:
    """Kubernetes readiness endpoint."""
    health = await health_check(cluster, queue)
    if health.status == "unhealthy":
        raise HTTPException(status_code=503, detail="Service not ready")
    return {"status": "ready"}


@router.get("/live")
async def liveness_check() -> Dict[str, str]:
    """Kubernetes liveness endpoint."""
    return {"status": "alive"}
