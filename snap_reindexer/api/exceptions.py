"""Custom exceptions for the FastAPI application."""

from fastapi import HTTPException
from starlette.status import HTTP_502_BAD_GATEWAY, HTTP_503_SERVICE_UNAVAILABLE

from ..exceptions import ClusterError, QueueError


class PipelineAPIError(HTTPException):
    """Base exception for pipeline API errors."""
    pass


class ClusterUnavailableError(PipelineAPIError):
    def __init__(self, error: ClusterError):
        super().__init__(HTTP_502_BAD_GATEWAY, f"Cluster call {error.op} failed: {error.cause}")


class QueueUnavailableError(PipelineAPIError):
    def __init__(self, error: QueueError):
        super().__init__(HTTP_503_SERVICE_UNAVAILABLE, f"Queue {error.op} failed: {error.cause}")
