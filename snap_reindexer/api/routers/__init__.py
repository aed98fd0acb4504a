"""API routers."""

from . import health, pipeline

__all__ = ["health", "pipeline"]
