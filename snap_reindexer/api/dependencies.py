"""Dependency injection for FastAPI."""

from fastapi import Request
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from snap_reindexer.cluster import ClusterClient
    from snap_reindexer._queue import BaseWorkQueue


async def get_cluster(request: Request) -> "ClusterClient":
    """Get the cluster client from app state."""
    return request.app.state.cluster


async def get_queue(request: Request) -> "BaseWorkQueue":
    """Get the work queue from app state."""
    return request.app.state.queue
