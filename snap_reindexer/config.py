"""Configuration management for snap-reindexer."""

import os
import re
from dataclasses import dataclass, field
from typing import Optional


GIB = 1024 * 1024 * 1024


@dataclass(frozen=True)
class ClusterConfig:
    """Elasticsearch cluster configuration."""
    host: str = "http://localhost:9200"
    repository: str = "logstash-repository"
    request_timeout: float = 360.0

    @classmethod
    def from_env(cls) -> 'ClusterConfig':
        """Create config from environment variables."""
        return cls(
            host=os.getenv("ES_HOST", "http://localhost:9200"),
            repository=os.getenv("ES_REPO", "logstash-repository"),
            request_timeout=float(os.getenv("ES_REQUEST_TIMEOUT", "360"))
        )

    def __post_init__(self):
        """Validate configuration."""
        if not self.repository:
            raise ValueError("repository must not be empty")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive, got {self.request_timeout}")


@dataclass(frozen=True)
class QueueConfig:
    """Redis queue transport configuration."""
    redis_url: str = "redis://localhost:6379"
    redis_password: Optional[str] = None
    redis_max_connections: int = 10
    redis_socket_timeout: Optional[float] = None
    redis_connection_timeout: float = 5.0
    redis_health_check_interval: int = 30
    key_prefix: str = "snap_reindexer"
    snaplist_key: str = "pending-snapshots"
    pop_timeout: int = 5

    @classmethod
    def from_env(cls) -> 'QueueConfig':
        """Create config from environment variables."""
        socket_timeout = os.getenv("REDIS_SOCKET_TIMEOUT")
        return cls(
            redis_url=os.getenv("REDIS_URL", "redis://localhost:6379"),
            redis_password=os.getenv("REDIS_PASSWORD", None),
            redis_max_connections=int(os.getenv("REDIS_MAX_CONNECTIONS", "10")),
            # Blocking pops hold the socket open, so no read timeout by default
            redis_socket_timeout=float(socket_timeout) if socket_timeout else None,
            redis_connection_timeout=float(os.getenv("REDIS_CONNECTION_TIMEOUT", "5.0")),
            redis_health_check_interval=int(os.getenv("REDIS_HEALTH_CHECK_INTERVAL", "30")),
            key_prefix=os.getenv("QUEUE_KEY_PREFIX", "snap_reindexer"),
            snaplist_key=os.getenv("SNAPLIST_KEY", "pending-snapshots"),
            pop_timeout=int(os.getenv("QUEUE_POP_TIMEOUT", "5"))
        )

    def __post_init__(self):
        """Validate configuration."""
        if self.redis_max_connections <= 0:
            raise ValueError(f"redis_max_connections must be positive, got {self.redis_max_connections}")
        if self.pop_timeout <= 0:
            raise ValueError(f"pop_timeout must be positive, got {self.pop_timeout}")
        if not self.snaplist_key:
            raise ValueError("snaplist_key must not be empty")


@dataclass(frozen=True)
class PipelineConfig:
    """Snapshot selection, mapping and polling behaviour."""
    snapshot_pattern: str = r"^logstash-\d{8}"
    shard_target_bytes: int = 50 * GIB
    field_limit: int = 1000
    bulk_size: int = 1000
    doc_type: str = "_doc"
    mapping_overrides_path: Optional[str] = None
    snapshot_poll_interval: float = 5.0
    health_poll_interval: float = 5.0
    task_poll_interval: float = 10.0

    @classmethod
    def from_env(cls) -> 'PipelineConfig':
        """Create config from environment variables."""
        return cls(
            snapshot_pattern=os.getenv("SNAP_REGEX", r"^logstash-\d{8}"),
            shard_target_bytes=int(os.getenv("SHARD_TARGET_BYTES", str(50 * GIB))),
            field_limit=int(os.getenv("FIELD_LIMIT", "1000")),
            bulk_size=int(os.getenv("BULK_SIZE", "1000")),
            doc_type=os.getenv("DOC_TYPE", "_doc"),
            mapping_overrides_path=os.getenv("MAPPING_OVERRIDES_PATH", None),
            snapshot_poll_interval=float(os.getenv("SNAPSHOT_POLL_INTERVAL", "5")),
            health_poll_interval=float(os.getenv("HEALTH_POLL_INTERVAL", "5")),
            task_poll_interval=float(os.getenv("TASK_POLL_INTERVAL", "10"))
        )

    def __post_init__(self):
        """Validate configuration."""
        try:
            re.compile(self.snapshot_pattern)
        except re.error as e:
            raise ValueError(f"snapshot_pattern is not a valid regex: {e}")
        if self.shard_target_bytes <= 0:
            raise ValueError(f"shard_target_bytes must be positive, got {self.shard_target_bytes}")
        if self.field_limit <= 0:
            raise ValueError(f"field_limit must be positive, got {self.field_limit}")
        if self.bulk_size <= 0:
            raise ValueError(f"bulk_size must be positive, got {self.bulk_size}")
        for name in ("snapshot_poll_interval", "health_poll_interval", "task_poll_interval"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be non-negative, got {getattr(self, name)}")

    @property
    def snapshot_regex(self) -> "re.Pattern[str]":
        return re.compile(self.snapshot_pattern)


@dataclass(frozen=True)
class ReindexerConfig:
    """Complete configuration, passed explicitly to every component."""
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    queue: QueueConfig = field(default_factory=QueueConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> 'ReindexerConfig':
        """Create complete config from environment variables."""
        return cls(
            cluster=ClusterConfig.from_env(),
            queue=QueueConfig.from_env(),
            pipeline=PipelineConfig.from_env(),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_file=os.getenv("LOG_FILE", None)
        )

    def to_dict(self) -> dict:
        """Flatten the active configuration for display; secrets are masked."""
        return {
            'es_host': self.cluster.host,
            'es_repository': self.cluster.repository,
            'es_request_timeout': self.cluster.request_timeout,
            'redis_url': self.queue.redis_url,
            'redis_password': "***" if self.queue.redis_password else None,
            'snaplist_key': self.queue.snaplist_key,
            'snapshot_pattern': self.pipeline.snapshot_pattern,
            'shard_target_bytes': self.pipeline.shard_target_bytes,
            'field_limit': self.pipeline.field_limit,
            'bulk_size': self.pipeline.bulk_size,
            'doc_type': self.pipeline.doc_type,
            'mapping_overrides_path': self.pipeline.mapping_overrides_path,
            'snapshot_poll_interval': self.pipeline.snapshot_poll_interval,
            'health_poll_interval': self.pipeline.health_poll_interval,
            'task_poll_interval': self.pipeline.task_poll_interval,
        }
