"""Rename context entities."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Any

from oas_joiner.reference_graph import (
    PrimaryOperationPolicy,
    ReferenceGraph,
    select_primary_operation,
)

from .template_functions import path_resource


@dataclass(frozen=True)
class RenameContext:  # pylint: disable=too-many-instance-attributes
    """Values a rename template can reference; unset operation fields stay empty."""

    name: str
    source: str
    index: int
    path: str = ""
    method: str = ""
    operation_id: str = ""
    tags: tuple[str, ...] = ()
    usage_type: str = ""
    status_code: str = ""
    param_name: str = ""
    media_type: str = ""
    primary_resource: str = ""
    all_paths: tuple[str, ...] = ()
    all_methods: tuple[str, ...] = ()
    all_operation_ids: tuple[str, ...] = ()
    all_tags: tuple[str, ...] = ()
    ref_count: int = 0
    is_shared: bool = False

    @property
    def has_operation_context(self) -> bool:
        return self.ref_count > 0

    def template_values(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Source": self.source,
            "Index": self.index,
            "Path": self.path,
            "Method": self.method,
            "OperationID": self.operation_id,
            "Tags": self.tags,
            "UsageType": self.usage_type,
            "StatusCode": self.status_code,
            "ParamName": self.param_name,
            "MediaType": self.media_type,
            "PrimaryResource": self.primary_resource,
            "AllPaths": self.all_paths,
            "AllMethods": self.all_methods,
            "AllOperationIDs": self.all_operation_ids,
            "AllTags": self.all_tags,
            "RefCount": self.ref_count,
            "IsShared": self.is_shared,
        }


def sanitize_source_identifier(source_path: str) -> str:
    """Reduce a source identifier to its file stem with `-`, space and `.` as `_`."""
    if not source_path:
        return ""
    stem = PurePath(source_path).stem
    for character in ("-", " ", "."):
        stem = stem.replace(character, "_")
    return stem


def build_rename_context(
    name: str,
    source_path: str,
    index: int,
    graph: ReferenceGraph | None,
    policy: PrimaryOperationPolicy,
) -> RenameContext:
    """Assemble the context for one rename decision.

    Operation fields are filled only when a graph is given and the schema has
    a non-empty lineage in it.
    """
    core = RenameContext(name=name, source=sanitize_source_identifier(source_path), index=index)
    if graph is None:
        return core
    refs = graph.lineage(name)
    if not refs:
        return core

    primary = select_primary_operation(refs, policy)
    return RenameContext(
        name=core.name,
        source=core.source,
        index=core.index,
        path=primary.path,
        method=primary.method,
        operation_id=primary.operation_id,
        tags=primary.tags,
        usage_type=primary.usage_type.value,
        status_code=primary.status_code,
        param_name=primary.param_name,
        media_type=primary.media_type,
        primary_resource=path_resource(primary.path),
        all_paths=tuple(sorted({ref.path for ref in refs})),
        all_methods=tuple(sorted({ref.method for ref in refs})),
        all_operation_ids=tuple(sorted({ref.operation_id for ref in refs if ref.operation_id})),
        all_tags=tuple(sorted({tag for ref in refs for tag in ref.tags})),
        ref_count=len(refs),
        is_shared=len(refs) > 1,
    )
