"""Collision resolution domain exports."""

from .collision_models import (
    CollisionContext,
    CollisionError,
    CollisionHandler,
    CollisionRecord,
    CollisionReport,
    CollisionResolution,
    CollisionType,
    JoinWarning,
    ResolutionAction,
    ResolutionKind,
    ResolutionState,
    WarningCategory,
)
from .collision_resolver import (
    MergeSide,
    ResolutionContext,
    apply_namespace_prefix,
    merge_components,
    merge_paths,
    merge_schemas,
    schema_section,
)

__all__ = [
    "CollisionContext",
    "CollisionError",
    "CollisionHandler",
    "CollisionRecord",
    "CollisionReport",
    "CollisionResolution",
    "CollisionType",
    "JoinWarning",
    "ResolutionAction",
    "ResolutionKind",
    "ResolutionState",
    "WarningCategory",
    "MergeSide",
    "ResolutionContext",
    "apply_namespace_prefix",
    "merge_components",
    "merge_paths",
    "merge_schemas",
    "schema_section",
]
