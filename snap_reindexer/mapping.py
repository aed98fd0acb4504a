"""Mapping and settings transform applied when building a reindex target.

The transform is the one place where deployment-specific schema evolution
happens. The pipeline only requires that it be pure and that the ``settings``
and ``mappings`` of its result can be passed straight to index creation.
"""

import copy
import json
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ._utils import logger
from .config import PipelineConfig

# Field definition used when merged types disagree on a field
TYPE_STRING = {
    "type": "text",
    "norms": False,
    "fields": {"raw": {"type": "keyword", "ignore_above": 256}},
}
TYPE_LONG = {"type": "long"}

# Body key listing the document types a typed source mapping was flattened from
SOURCE_TYPES_KEY = "source_types"


def compute_shard_count(store_size_bytes: int, replicas: int, shard_target_bytes: int) -> int:
    """Primary shard count that keeps shards under ``shard_target_bytes``.

    ``store_size_bytes`` includes replicas, so the primary size is approximated
    by dividing it by ``replicas + 1``.
    """
    if shard_target_bytes <= 0:
        raise ValueError(f"shard_target_bytes must be positive, got {shard_target_bytes}")
    primary_bytes = store_size_bytes / (max(replicas, 0) + 1)
    return max(1, math.ceil(primary_bytes / shard_target_bytes))


def load_field_overrides(path: Optional[str]) -> Dict[str, Dict[str, Any]]:
    """Read ``{field: definition}`` overrides from a JSON file."""
    if not path:
        return {}
    with open(Path(path), "r") as f:
        overrides = json.load(f)
    if not isinstance(overrides, dict):
        raise ValueError(f"Mapping overrides in {path} must be a JSON object")
    logger.info(f"Loaded {len(overrides)} field overrides from {path}")
    return overrides


def is_typed_mapping(mapping: Dict[str, Any]) -> bool:
    """True for pre-7.x mappings keyed by document type."""
    if not mapping or "properties" in mapping:
        return False
    return all(isinstance(value, dict) and "properties" in value for value in mapping.values())


def _field_type(definition: Dict[str, Any]) -> str:
    if "type" in definition:
        return definition["type"]
    return "object" if "properties" in definition else "unknown"


class BaseMappingTransform:
    """Turns a source index description into the body of the target index."""

    def transform(
        self,
        source_mapping: Dict[str, Any],
        source_settings: Dict[str, Any],
        source_stats: Dict[str, Any],
    ) -> Dict[str, Any]:
        raise NotImplementedError

    def __call__(self, source_mapping, source_settings, source_stats) -> Dict[str, Any]:
        return self.transform(source_mapping, source_settings, source_stats)


class DefaultMappingTransform(BaseMappingTransform):
    """Copy the mapping, resize shards and collapse typed mappings.

    Targets are always typeless. A pre-7.x mapping keyed by document type is
    flattened into one ``properties`` block and the source type names are
    returned under ``SOURCE_TYPES_KEY`` so the reindex step can rewrite each
    document's type. A field whose type differs between source types is set
    to ``TYPE_STRING``, which every value can be indexed as.
    ``field_overrides`` are applied last.
    """

    def __init__(
        self,
        shard_target_bytes: int,
        field_limit: int = 1000,
        field_overrides: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        self.shard_target_bytes = shard_target_bytes
        self.field_limit = field_limit
        self.field_overrides = field_overrides or {}

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "DefaultMappingTransform":
        return cls(
            shard_target_bytes=config.shard_target_bytes,
            field_limit=config.field_limit,
            field_overrides=load_field_overrides(config.mapping_overrides_path),
        )

    def transform(
        self,
        source_mapping: Dict[str, Any],
        source_settings: Dict[str, Any],
        source_stats: Dict[str, Any],
    ) -> Dict[str, Any]:
        index_settings = source_settings.get("index", {})
        replicas = int(index_settings.get("number_of_replicas", 0))
        store_bytes = int(source_stats.get("total", {}).get("store", {}).get("size_in_bytes", 0))
        shards = compute_shard_count(store_bytes, replicas, self.shard_target_bytes)

        source_limit = int(
            index_settings.get("mapping", {}).get("total_fields", {}).get("limit", 0)
        )
        settings: Dict[str, Any] = {
            "number_of_shards": shards,
            "number_of_replicas": replicas,
            "mapping": {"total_fields": {"limit": max(self.field_limit, source_limit)}},
        }

        allocation = index_settings.get("routing", {}).get("allocation")
        if allocation:
            settings["routing"] = {"allocation": copy.deepcopy(allocation)}

        mappings, source_types = self.merge_types(source_mapping)
        self.apply_overrides(mappings)

        logger.info(
            f"Target sized at {shards} shards for {store_bytes:,} store bytes "
            f"({replicas} replicas)"
        )
        body = {"settings": {"index": settings}, "mappings": mappings}
        if source_types:
            body[SOURCE_TYPES_KEY] = source_types
        return body

    def merge_types(self, mapping: Dict[str, Any]) -> Tuple[Dict[str, Any], List[str]]:
        """Flatten a typed mapping into a typeless one.

        Returns the new mapping and the source type names, empty when the
        mapping was already typeless.
        """
        mapping = copy.deepcopy(mapping)
        if not is_typed_mapping(mapping):
            return mapping, []

        type_names = sorted(mapping)
        merged = {
            k: v for k, v in mapping[type_names[0]].items()
            if k not in ("properties", "_all")
        }
        properties: Dict[str, Any] = {}

        for type_name in type_names:
            for field_name, definition in mapping[type_name]["properties"].items():
                existing = properties.get(field_name)
                if existing is None:
                    properties[field_name] = definition
                elif _field_type(existing) != _field_type(definition):
                    logger.warning(
                        f"Field '{field_name}' is {_field_type(existing)} and "
                        f"{_field_type(definition)} across types; coercing to string"
                    )
                    properties[field_name] = copy.deepcopy(TYPE_STRING)

        merged["properties"] = properties
        logger.info(f"Flattened mapping types {type_names} into a typeless mapping")
        return merged, type_names

    def apply_overrides(self, mappings: Dict[str, Any]) -> None:
        properties = mappings.get("properties", {})
        for field_name, definition in self.field_overrides.items():
            if field_name in properties:
                properties[field_name] = copy.deepcopy(definition)
