"""Thin async wrapper over the Elasticsearch administrative API."""

from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from elasticsearch import ApiError, AsyncElasticsearch, NotFoundError, TransportError

from ._utils import logger
from .config import ClusterConfig
from .exceptions import ClusterError
from .schemas import ClusterHealth, TaskStatus


@asynccontextmanager
async def _translate_errors(op: str):
    try:
        yield
    except (ApiError, TransportError) as e:
        raise ClusterError(op, e) from e


def _body(response: Any) -> Any:
    """Unwrap an ObjectApiResponse to its decoded body."""
    return getattr(response, "body", response)


class ClusterClient:
    """Administrative calls used by the pipeline.

    Every engine or transport failure surfaces as ``ClusterError``. Nothing
    here retries; retry policy belongs to the caller.
    """

    def __init__(self, config: ClusterConfig, client: Optional[AsyncElasticsearch] = None):
        self.config = config
        self.repository = config.repository
        self._es = client or AsyncElasticsearch(
            hosts=[config.host],
            request_timeout=config.request_timeout,
        )

    # Index operations

    async def get_mapping(self, index: str) -> Dict[str, Any]:
        async with _translate_errors("get_mapping"):
            response = _body(await self._es.indices.get_mapping(index=index))
        return response[index]["mappings"]

    async def get_settings(self, index: str) -> Dict[str, Any]:
        async with _translate_errors("get_settings"):
            response = _body(await self._es.indices.get_settings(index=index))
        return response[index]["settings"]

    async def get_stats(self, index: str) -> Dict[str, Any]:
        async with _translate_errors("get_stats"):
            response = _body(await self._es.indices.stats(index=index, metric=["store", "docs"]))
        return response["indices"][index]

    async def index_exists(self, index: str) -> bool:
        async with _translate_errors("index_exists"):
            return bool(await self._es.indices.exists(index=index))

    async def create_index(self, name: str, body: Dict[str, Any]) -> None:
        kwargs = {key: body[key] for key in ("settings", "mappings", "aliases") if body.get(key)}
        async with _translate_errors("create_index"):
            await self._es.indices.create(index=name, **kwargs)
        logger.info(f"Created index {name}")

    async def delete_index(self, name: str) -> bool:
        """Delete ``name``. Returns False if it did not exist."""
        async with _translate_errors("delete_index"):
            try:
                await self._es.indices.delete(index=name)
            except NotFoundError:
                logger.debug(f"Index {name} already absent")
                return False
        logger.info(f"Deleted index {name}")
        return True

    async def flush(self, index: str) -> None:
        async with _translate_errors("flush"):
            await self._es.indices.flush(index=index)

    # Cluster

    async def health(self) -> ClusterHealth:
        async with _translate_errors("health"):
            response = _body(await self._es.cluster.health())
        return ClusterHealth(response["status"])

    # Snapshots

    async def list_snapshots(self, repository: Optional[str] = None) -> List[Dict[str, Any]]:
        async with _translate_errors("list_snapshots"):
            response = _body(await self._es.snapshot.get(
                repository=repository or self.repository,
                snapshot="_all",
            ))
        return response.get("snapshots", [])

    async def snapshot_create(self, repository: str, name: str, index: str) -> None:
        async with _translate_errors("snapshot_create"):
            await self._es.snapshot.create(
                repository=repository,
                snapshot=name,
                indices=index,
                ignore_unavailable=True,
                include_global_state=False,
            )
        logger.info(f"Started snapshot {name} of {index}")

    async def snapshot_delete(self, repository: str, name: str) -> None:
        async with _translate_errors("snapshot_delete"):
            await self._es.snapshot.delete(repository=repository, snapshot=name)
        logger.info(f"Deleted snapshot {name}")

    async def snapshot_status(self, repository: str, name: str) -> str:
        async with _translate_errors("snapshot_status"):
            response = _body(await self._es.snapshot.status(repository=repository, snapshot=name))
        return response["snapshots"][0]["state"]

    async def snapshot_restore(
        self,
        repository: str,
        name: str,
        index: Optional[str],
        rename_pattern: str,
        rename_replacement: str,
    ) -> None:
        kwargs: Dict[str, Any] = {}
        if index:
            kwargs["indices"] = index
        async with _translate_errors("snapshot_restore"):
            await self._es.snapshot.restore(
                repository=repository,
                snapshot=name,
                rename_pattern=rename_pattern,
                rename_replacement=rename_replacement,
                include_global_state=False,
                **kwargs,
            )
        logger.info(f"Started restore of {name}")

    # Reindex tasks

    async def submit_reindex(
        self,
        source: str,
        target: str,
        script: Optional[Dict[str, Any]] = None,
        slices: int = 1,
        size: Optional[int] = None,
    ) -> str:
        """Start an asynchronous reindex and return its task id."""
        source_body: Dict[str, Any] = {"index": source}
        if size:
            source_body["size"] = size
        kwargs: Dict[str, Any] = {}
        if script:
            kwargs["script"] = script
        async with _translate_errors("submit_reindex"):
            response = _body(await self._es.reindex(
                source=source_body,
                dest={"index": target},
                slices=slices,
                wait_for_completion=False,
                **kwargs,
            ))
        return response["task"]

    async def poll_task(self, task_id: str) -> TaskStatus:
        async with _translate_errors("poll_task"):
            response = _body(await self._es.tasks.get(task_id=task_id))
        status = response.get("task", {}).get("status", {})
        result = response.get("response", {})
        return TaskStatus(
            task_id=task_id,
            completed=bool(response.get("completed", False)),
            created=result.get("created", status.get("created", 0)),
            total=result.get("total", status.get("total", 0)),
            failures=len(result.get("failures", [])),
            error=response.get("error"),
        )

    async def close(self) -> None:
        await self._es.close()
