"""Pydantic models for API requests and responses."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthStatus(BaseModel):
    status: str  # "healthy", "degraded", "unhealthy"
    cluster: Optional[str] = None
    redis: bool
    timestamp: datetime = Field(default_factory=_utcnow)


class PrimeRequest(BaseModel):
    count: int = Field(..., ge=1)


class InjectRequest(BaseModel):
    snapshot: str = Field(..., min_length=1)
    index: str = Field(..., min_length=1)
    restore: Optional[bool] = None


class InjectResponse(BaseModel):
    topic: str
    job: dict
