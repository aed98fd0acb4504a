"""Test utilities for snap-reindexer tests."""
import copy
from typing import Any, Dict, List, Optional

from snap_reindexer.config import PipelineConfig, QueueConfig, ReindexerConfig
from snap_reindexer.exceptions import ClusterError
from snap_reindexer.schemas import ClusterHealth, SnapshotState, TaskStatus, working_copy_name

GIB = 1024 * 1024 * 1024


def create_test_config(**pipeline_overrides) -> ReindexerConfig:
    """Create test config with zero poll intervals."""
    pipeline_kwargs = {
        "snapshot_poll_interval": 0,
        "health_poll_interval": 0,
        "task_poll_interval": 0,
    }
    pipeline_kwargs.update(pipeline_overrides)
    return ReindexerConfig(
        queue=QueueConfig(pop_timeout=1),
        pipeline=PipelineConfig(**pipeline_kwargs),
    )


def make_index(
    mappings: Optional[Dict[str, Any]] = None,
    replicas: int = 1,
    store_bytes: int = GIB,
    docs: int = 100,
) -> Dict[str, Any]:
    """Index description as the fake cluster stores it."""
    return {
        "mappings": mappings if mappings is not None else {
            "properties": {"message": {"type": "text"}, "status": {"type": "long"}}
        },
        "settings": {"index": {"number_of_shards": "5", "number_of_replicas": str(replicas)}},
        "stats": {"total": {"store": {"size_in_bytes": store_bytes}, "docs": {"count": docs}}},
        "docs": docs,
    }


class FakeCluster:
    """In-memory stand-in for ClusterClient.

    Indexes and snapshots are plain dicts. ``health_sequence`` and
    ``status_sequence`` are consumed one value per poll before the fake
    settles on GREEN / the stored snapshot state.
    """

    def __init__(self, repository: str = "logstash-repository"):
        self.repository = repository
        self.indexes: Dict[str, Dict[str, Any]] = {}
        self.snapshots: Dict[str, Dict[str, Any]] = {}
        self.tasks: Dict[str, TaskStatus] = {}
        self.health_sequence: List[ClusterHealth] = []
        self.status_sequence: List[str] = []
        self.task_polls_before_complete = 0
        self.task_error: Optional[Dict[str, Any]] = None
        self.calls: List[tuple] = []
        self.closed = False

    def add_snapshot(self, name: str, index: str, body: Optional[Dict[str, Any]] = None,
                     state: str = SnapshotState.SUCCESS) -> None:
        self.snapshots[name] = {
            "snapshot": name,
            "indices": [index],
            "state": state,
            "contents": {index: body or make_index()},
        }

    def _index(self, op: str, name: str) -> Dict[str, Any]:
        if name not in self.indexes:
            raise ClusterError(op, KeyError(f"no such index [{name}]"))
        return self.indexes[name]

    async def get_mapping(self, index: str) -> Dict[str, Any]:
        self.calls.append(("get_mapping", index))
        return copy.deepcopy(self._index("get_mapping", index)["mappings"])

    async def get_settings(self, index: str) -> Dict[str, Any]:
        self.calls.append(("get_settings", index))
        return copy.deepcopy(self._index("get_settings", index)["settings"])

    async def get_stats(self, index: str) -> Dict[str, Any]:
        self.calls.append(("get_stats", index))
        return copy.deepcopy(self._index("get_stats", index)["stats"])

    async def index_exists(self, index: str) -> bool:
        return index in self.indexes

    async def create_index(self, name: str, body: Dict[str, Any]) -> None:
        self.calls.append(("create_index", name))
        if name in self.indexes:
            raise ClusterError("create_index", ValueError(f"index [{name}] already exists"))
        self.indexes[name] = {
            "mappings": copy.deepcopy(body.get("mappings", {})),
            "settings": copy.deepcopy(body.get("settings", {})),
            "stats": {"total": {"store": {"size_in_bytes": 0}, "docs": {"count": 0}}},
            "docs": 0,
        }

    async def delete_index(self, name: str) -> bool:
        self.calls.append(("delete_index", name))
        return self.indexes.pop(name, None) is not None

    async def flush(self, index: str) -> None:
        self.calls.append(("flush", index))
        self._index("flush", index)

    async def health(self) -> ClusterHealth:
        self.calls.append(("health",))
        if self.health_sequence:
            return self.health_sequence.pop(0)
        return ClusterHealth.GREEN

    async def list_snapshots(self, repository: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            {key: copy.deepcopy(value) for key, value in snap.items() if key != "contents"}
            for snap in self.snapshots.values()
        ]

    async def snapshot_create(self, repository: str, name: str, index: str) -> None:
        self.calls.append(("snapshot_create", name, index))
        body = copy.deepcopy(self._index("snapshot_create", index))
        self.snapshots[name] = {
            "snapshot": name,
            "indices": [index],
            "state": SnapshotState.SUCCESS,
            "contents": {index: body},
        }

    async def snapshot_delete(self, repository: str, name: str) -> None:
        self.calls.append(("snapshot_delete", name))
        if name not in self.snapshots:
            raise ClusterError("snapshot_delete", KeyError(f"no such snapshot [{name}]"))
        del self.snapshots[name]

    async def snapshot_status(self, repository: str, name: str) -> str:
        self.calls.append(("snapshot_status", name))
        if self.status_sequence:
            return self.status_sequence.pop(0)
        if name not in self.snapshots:
            raise ClusterError("snapshot_status", KeyError(f"no such snapshot [{name}]"))
        return self.snapshots[name]["state"]

    async def snapshot_restore(self, repository: str, name: str, index: Optional[str],
                               rename_pattern: str, rename_replacement: str) -> None:
        self.calls.append(("snapshot_restore", name, index))
        if name not in self.snapshots:
            raise ClusterError("snapshot_restore", KeyError(f"no such snapshot [{name}]"))
        for source, body in self.snapshots[name]["contents"].items():
            if index and source != index:
                continue
            target = working_copy_name(source)
            if target in self.indexes:
                raise ClusterError("snapshot_restore", ValueError(f"index [{target}] already exists"))
            self.indexes[target] = copy.deepcopy(body)

    async def submit_reindex(self, source: str, target: str, script=None, slices: int = 1,
                             size: Optional[int] = None) -> str:
        self.calls.append(("submit_reindex", source, target, script, slices, size))
        docs = self._index("submit_reindex", source)["docs"]
        self._index("submit_reindex", target)["docs"] = docs
        task_id = f"node-1:{len(self.tasks) + 1}"
        self.tasks[task_id] = TaskStatus(
            task_id=task_id, completed=True, created=docs, total=docs, error=self.task_error
        )
        return task_id

    async def poll_task(self, task_id: str) -> TaskStatus:
        self.calls.append(("poll_task", task_id))
        if self.task_polls_before_complete:
            self.task_polls_before_complete -= 1
            return TaskStatus(task_id=task_id, completed=False)
        return self.tasks[task_id]

    async def close(self) -> None:
        self.closed = True

    def called(self, op: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == op]
