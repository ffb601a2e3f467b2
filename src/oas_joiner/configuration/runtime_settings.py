"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath

from oas_joiner.reference_graph.graph_models import PrimaryOperationPolicy
from oas_joiner.schema_equivalence.equivalence_comparator import EquivalenceMode

DEFAULT_RENAME_TEMPLATE = "{Name}_{Source}"


class EntityCategory(str, Enum):
    """Entity category a collision strategy applies to."""

    PATHS = "paths"
    SCHEMAS = "schemas"
    COMPONENTS = "components"


class CollisionStrategy(str, Enum):
    """How a name present in both merge sides is resolved."""

    FAIL = "fail"
    ACCEPT_LEFT = "accept-left"
    ACCEPT_RIGHT = "accept-right"
    FAIL_ON_PATHS = "fail-on-paths"
    RENAME_LEFT = "rename-left"
    RENAME_RIGHT = "rename-right"
    DEDUPLICATE = "deduplicate"

    @property
    def is_rename(self) -> bool:
        return self in (CollisionStrategy.RENAME_LEFT, CollisionStrategy.RENAME_RIGHT)


@dataclass(frozen=True)
class JoinConfiguration:  # pylint: disable=too-many-instance-attributes
    """Join behaviour knobs with their documented defaults."""

    default_strategy: CollisionStrategy = CollisionStrategy.FAIL
    path_strategy: CollisionStrategy | None = None
    schema_strategy: CollisionStrategy | None = None
    component_strategy: CollisionStrategy | None = None
    rename_template: str = DEFAULT_RENAME_TEMPLATE
    namespace_prefixes: Mapping[str, str] = field(default_factory=dict)
    always_apply_prefix: bool = False
    equivalence_mode: EquivalenceMode = EquivalenceMode.NONE
    operation_context: bool = False
    primary_operation_policy: PrimaryOperationPolicy = PrimaryOperationPolicy.FIRST_ENCOUNTERED
    trace_both_sides: bool = False
    collision_report: bool = False
    semantic_deduplication: bool = False
    merge_arrays: bool = True
    deduplicate_tags: bool = True

    def strategy_for(self, category: EntityCategory) -> CollisionStrategy:
        """Return the category strategy, falling back to the default strategy."""
        override = {
            EntityCategory.PATHS: self.path_strategy,
            EntityCategory.SCHEMAS: self.schema_strategy,
            EntityCategory.COMPONENTS: self.component_strategy,
        }[category]
        return override if override is not None else self.default_strategy

    def prefix_for(self, source_path: str) -> str | None:
        """Look up a namespace prefix by source path, file name, then file stem."""
        candidate = PurePath(source_path)
        for key in (source_path, candidate.name, candidate.stem):
            prefix = self.namespace_prefixes.get(key)
            if prefix:
                return prefix
        return None
