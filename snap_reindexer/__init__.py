from .config import ReindexerConfig, ClusterConfig, QueueConfig, PipelineConfig
from .exceptions import SnapReindexerError, ClusterError, QueueError
from .schemas import SnapshotRecord, SnapshotJob, ReindexJob, SnapshotAction, ClusterHealth
from .cluster import ClusterClient
from .manager import SnapshotManager
from .reindexer import ReindexWorker
from .mapping import BaseMappingTransform, DefaultMappingTransform, compute_shard_count

__version__ = "0.3.0"
__author__ = "snap-reindexer contributors"
