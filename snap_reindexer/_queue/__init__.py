"""Work queue backends with lazy loading support."""

from typing import TYPE_CHECKING, Optional

from .base import BaseWorkQueue

if TYPE_CHECKING:
    from .queue_memory import MemoryWorkQueue
    from .queue_redis import RedisWorkQueue
    from ..config import QueueConfig

ALLOWED_BACKENDS = {"redis", "memory"}


def create_work_queue(backend: str = "redis", config: Optional["QueueConfig"] = None) -> BaseWorkQueue:
    """Create a work queue for ``backend``.

    Raises:
        ValueError: If backend is not one of ALLOWED_BACKENDS
    """
    if backend not in ALLOWED_BACKENDS:
        raise ValueError(f"Unknown queue backend: {backend}. Available: {ALLOWED_BACKENDS}")
    if backend == "memory":
        from .queue_memory import MemoryWorkQueue
        return MemoryWorkQueue()
    from .queue_redis import RedisWorkQueue
    from ..config import QueueConfig
    return RedisWorkQueue(config or QueueConfig())


def __getattr__(name):
    """Lazy import queue backends."""
    if name == "MemoryWorkQueue":
        from .queue_memory import MemoryWorkQueue
        return MemoryWorkQueue
    elif name == "RedisWorkQueue":
        from .queue_redis import RedisWorkQueue
        return RedisWorkQueue
    else:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "BaseWorkQueue",
    "create_work_queue",
    "MemoryWorkQueue",
    "RedisWorkQueue",
]
