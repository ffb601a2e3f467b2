"""Collision resolution service for one pairwise merge step."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from oas_joiner.configuration import CollisionStrategy, EntityCategory, JoinConfiguration
from oas_joiner.document_model import (
    COMPONENT_SECTIONS,
    Document,
    DocumentFamily,
    SourceMap,
    component_to_mapping,
    escape_pointer_token,
)
from oas_joiner.reference_graph import ReferenceGraph, build_reference_graph
from oas_joiner.reference_rewriting import rename_schema_entry, rewrite_document_references
from oas_joiner.renaming import RenameDecision, Template, decide_schema_name, prefixed_schema_name
from oas_joiner.schema_equivalence import EquivalenceMode, compare_schemas, container_resolver

from .collision_models import (
    CollisionContext,
    CollisionError,
    CollisionHandler,
    CollisionRecord,
    CollisionResolution,
    CollisionType,
    ResolutionAction,
    ResolutionKind,
    ResolutionState,
    WarningCategory,
)

_LOGGER = logging.getLogger("oas_joiner.collision_resolution")
_LOGGER.addHandler(logging.NullHandler())

_KEPT = "kept from first document"
_OVERWRITTEN = "overwritten"
_DEDUPLICATED = "deduplicated"
_CUSTOM = "replaced by a custom value"

_COMPONENT_LABELS = {
    "parameters": "parameter",
    "responses": "response",
    "request_bodies": "requestBody",
    "headers": "header",
    "callbacks": "callback",
    "path_items": "pathItem",
    "examples": "example",
    "security_schemes": "securityScheme",
    "links": "link",
}

_FLAT_COMPONENT_POINTERS = {
    "parameters": "/parameters",
    "responses": "/responses",
    "security_schemes": "/securityDefinitions",
}

_HANDLER_STRATEGIES = {
    ResolutionAction.ACCEPT_LEFT: CollisionStrategy.ACCEPT_LEFT,
    ResolutionAction.ACCEPT_RIGHT: CollisionStrategy.ACCEPT_RIGHT,
    ResolutionAction.RENAME: CollisionStrategy.RENAME_RIGHT,
}


@dataclass(frozen=True)
class MergeSide:
    """One side of a merge step: a document shell owned by the step and its origin."""

    document: Document
    source_path: str
    index: int


@dataclass(frozen=True)
class ResolutionContext:
    """Join-wide inputs shared by every merge step."""

    configuration: JoinConfiguration
    template: Template
    family: DocumentFamily
    source_maps: Mapping[str, SourceMap] = field(default_factory=dict)
    collision_handler: CollisionHandler | None = None
    handler_types: frozenset[CollisionType] = frozenset()

    def locate(self, source_path: str, pointer: str) -> str:
        """Describe a node as `source:line:column` when a source map knows it."""
        source_map = self.source_maps.get(source_path)
        if source_map is None:
            return source_path
        return source_map.describe(pointer)

    def handles(self, collision_type: CollisionType) -> bool:
        """True when the collision handler wants to see this kind of collision."""
        if self.collision_handler is None:
            return False
        return not self.handler_types or collision_type in self.handler_types


@dataclass(frozen=True)
class _Section:
    label: str
    category: EntityCategory
    pointer: str
    collision_type: CollisionType
    warning_category: WarningCategory

    def entry_pointer(self, name: str) -> str:
        return f"{self.pointer}/{escape_pointer_token(name)}"


@dataclass(frozen=True)
class _Collision:  # pylint: disable=too-many-instance-attributes
    section: _Section
    name: str
    left_source: str
    right_source: str
    strategy: CollisionStrategy
    context: ResolutionContext

    @property
    def pointer(self) -> str:
        return self.section.entry_pointer(self.name)

    @property
    def left_location(self) -> str:
        return self.context.locate(self.left_source, self.pointer)

    @property
    def right_location(self) -> str:
        return self.context.locate(self.right_source, self.pointer)

    def fatal(self, reason: str | None = None) -> CollisionError:
        return CollisionError(
            section=self.section.label,
            name=self.name,
            left_source=self.left_location,
            right_source=self.right_location,
            strategy=self.strategy,
            reason=reason,
        )

    def resolved(  # pylint: disable=too-many-arguments
        self,
        state: ResolutionState,
        warning: str,
        resolution: ResolutionKind,
        new_name: str | None = None,
        category: WarningCategory | None = None,
    ) -> None:
        state.collision_count += 1
        state.warn(
            category or self.section.warning_category,
            warning,
            source_path=self.right_source,
            pointer=self.pointer,
        )
        if self.context.configuration.collision_report:
            state.records.append(
                CollisionRecord(
                    category=self.section.category,
                    section=self.section.label,
                    name=self.name,
                    left_source=self.left_source,
                    right_source=self.right_source,
                    strategy=self.strategy,
                    resolution=resolution,
                    new_name=new_name,
                    left_location=self.left_location,
                    right_location=self.right_location,
                )
            )
        _LOGGER.debug("%s '%s' resolved as %s", self.section.label, self.name, resolution.value)


def _consult_handler(
    collision: _Collision, left_value: Any, right_value: Any, state: ResolutionState
) -> CollisionResolution | None:
    """Ask the collision handler; None means the configured strategy applies.

    A handler that raises or returns something other than a resolution is
    reported as a warning and the configured strategy takes over.
    """
    context = collision.context
    if context.collision_handler is None or not context.handles(
        collision.section.collision_type
    ):
        return None
    request = CollisionContext(
        collision_type=collision.section.collision_type,
        name=collision.name,
        pointer=collision.pointer,
        left_source=collision.left_source,
        right_source=collision.right_source,
        left_location=collision.left_location,
        right_location=collision.right_location,
        left_value=left_value,
        right_value=right_value,
        configured_strategy=collision.strategy,
    )
    fallback = f"using {collision.strategy.value} strategy"
    try:
        resolution = context.collision_handler(request)
    except Exception as exc:  # pylint: disable=broad-exception-caught
        _LOGGER.debug("collision handler failed for %s", collision.pointer, exc_info=True)
        state.warn(
            WarningCategory.HANDLER_ERROR,
            f"collision handler error: {exc}; {fallback}",
            source_path=collision.right_source,
            pointer=collision.pointer,
        )
        return None
    if not isinstance(resolution, CollisionResolution):
        state.warn(
            WarningCategory.HANDLER_ERROR,
            f"collision handler returned {type(resolution).__name__} "
            f"instead of a resolution; {fallback}",
            source_path=collision.right_source,
            pointer=collision.pointer,
        )
        return None
    if resolution.action is ResolutionAction.FAIL:
        raise collision.fatal(resolution.message or "rejected by the collision handler")
    if resolution.message:
        state.warn(
            WarningCategory.HANDLER_RESOLUTION,
            f"{collision.section.label} '{collision.name}' {resolution.action.value} "
            f"by collision handler: {resolution.message}",
            source_path=collision.right_source,
            pointer=collision.pointer,
        )
    if resolution.action is ResolutionAction.CONTINUE:
        return None
    return resolution


def _custom_value(collision: _Collision, resolution: CollisionResolution, left_value: Any) -> Any:
    value = resolution.custom_value
    if value is None:
        raise collision.fatal("a custom resolution requires a custom value")
    if not isinstance(value, type(left_value)):
        raise collision.fatal(
            f"custom value must be a {type(left_value).__name__}, got {type(value).__name__}"
        )
    return value


def merge_paths(
    left: MergeSide, right: MergeSide, context: ResolutionContext, state: ResolutionState
) -> None:
    """Merge paths and webhooks of the incoming side into the accumulator side."""
    for label, pointer, collision_type, warning_category, left_entries, right_entries in (
        (
            "path",
            "/paths",
            CollisionType.PATH,
            WarningCategory.PATH_COLLISION,
            left.document.paths,
            right.document.paths,
        ),
        (
            "webhook",
            "/webhooks",
            CollisionType.WEBHOOK,
            WarningCategory.WEBHOOK_COLLISION,
            left.document.webhooks,
            right.document.webhooks,
        ),
    ):
        _merge_named_entries(
            left_entries,
            right_entries,
            section=_Section(
                label=label,
                category=EntityCategory.PATHS,
                pointer=pointer,
                collision_type=collision_type,
                warning_category=warning_category,
            ),
            left=left,
            right=right,
            context=context,
            state=state,
        )


def merge_components(
    left: MergeSide, right: MergeSide, context: ResolutionContext, state: ResolutionState
) -> None:
    """Merge every named component section except schemas."""
    for attribute, key in COMPONENT_SECTIONS.items():
        if context.family is DocumentFamily.FLAT:
            pointer = _FLAT_COMPONENT_POINTERS.get(attribute, f"/components/{key}")
        else:
            pointer = f"/components/{key}"
        label = _COMPONENT_LABELS[attribute]
        _merge_named_entries(
            getattr(left.document.components, attribute),
            getattr(right.document.components, attribute),
            section=_Section(
                label=label,
                category=EntityCategory.COMPONENTS,
                pointer=pointer,
                collision_type=CollisionType(label),
                warning_category=WarningCategory.COMPONENT_COLLISION,
            ),
            left=left,
            right=right,
            context=context,
            state=state,
        )


def _merge_named_entries(  # pylint: disable=too-many-arguments
    left_entries: dict[str, Any],
    right_entries: Mapping[str, Any],
    *,
    section: _Section,
    left: MergeSide,
    right: MergeSide,
    context: ResolutionContext,
    state: ResolutionState,
) -> None:
    strategy = context.configuration.strategy_for(section.category)
    for name, entry in right_entries.items():
        if name not in left_entries:
            left_entries[name] = entry
            state.set_origin(section.label, name, right.source_path)
            continue
        if _same_content(left_entries[name], entry):
            continue
        collision = _Collision(
            section=section,
            name=name,
            left_source=state.origin_of(section.label, name, left.source_path),
            right_source=right.source_path,
            strategy=strategy,
            context=context,
        )
        resolution = _consult_handler(collision, left_entries[name], entry, state)
        if resolution is None:
            _resolve_entry(collision, strategy, left_entries, entry, state)
        elif resolution.action is ResolutionAction.CUSTOM:
            left_entries[name] = _custom_value(collision, resolution, left_entries[name])
            collision.resolved(state, _entry_warning(collision, _CUSTOM), ResolutionKind.CUSTOM)
        elif resolution.action is ResolutionAction.DEDUPLICATE:
            collision.resolved(
                state, _entry_warning(collision, _DEDUPLICATED), ResolutionKind.DEDUPLICATED
            )
        else:
            _resolve_entry(
                collision, _HANDLER_STRATEGIES[resolution.action], left_entries, entry, state
            )


def _resolve_entry(
    collision: _Collision,
    strategy: CollisionStrategy,
    left_entries: dict[str, Any],
    entry: Any,
    state: ResolutionState,
) -> None:
    section = collision.section
    if _keeps_left(strategy, section):
        collision.resolved(state, _entry_warning(collision, _KEPT), ResolutionKind.KEPT_LEFT)
    elif strategy is CollisionStrategy.ACCEPT_RIGHT:
        left_entries[collision.name] = entry
        state.set_origin(section.label, collision.name, collision.right_source)
        collision.resolved(
            state, _entry_warning(collision, _OVERWRITTEN), ResolutionKind.KEPT_RIGHT
        )
    elif strategy.is_rename:
        raise collision.fatal("rename strategies only apply to schemas")
    elif strategy is CollisionStrategy.DEDUPLICATE:
        raise collision.fatal("definitions differ and only schemas can be deduplicated")
    else:
        raise collision.fatal()


def _keeps_left(strategy: CollisionStrategy, section: _Section) -> bool:
    if strategy is CollisionStrategy.ACCEPT_LEFT:
        return True
    return (
        strategy is CollisionStrategy.FAIL_ON_PATHS and section.category is not EntityCategory.PATHS
    )


def _entry_warning(collision: _Collision, resolution: str) -> str:
    if collision.section.category is EntityCategory.PATHS:
        return (
            f"{collision.section.label} '{collision.name}' {resolution}: "
            f"{collision.left_location} -> {collision.right_location}"
        )
    return (
        f"{collision.section.label} '{collision.name}' {resolution}: "
        f"source {collision.right_location}"
    )


def _same_content(left: Any, right: Any) -> bool:
    return left is right or component_to_mapping(left) == component_to_mapping(right)


@dataclass
class _SchemaPlan:
    """Schema collision decisions of one step, applied after every name is decided."""

    left_renames: dict[str, str] = field(default_factory=dict)
    right_renames: dict[str, str] = field(default_factory=dict)
    keep_left: set[str] = field(default_factory=set)
    take_right: set[str] = field(default_factory=set)
    custom: dict[str, Any] = field(default_factory=dict)

    @property
    def reserved(self) -> set[str]:
        return set(self.left_renames.values()) | set(self.right_renames.values())


@dataclass
class _Tracing:
    """Reference graphs built on first use, before any rename touches a side."""

    left_document: Document
    right_document: Document
    configuration: JoinConfiguration
    graphs: dict[str, ReferenceGraph] = field(default_factory=dict)

    def right_graph(self) -> ReferenceGraph | None:
        if not self.configuration.operation_context:
            return None
        if "right" not in self.graphs:
            self.graphs["right"] = build_reference_graph(self.right_document)
        return self.graphs["right"]

    def left_graph(self) -> ReferenceGraph | None:
        if not (self.configuration.operation_context and self.configuration.trace_both_sides):
            return None
        if "left" not in self.graphs:
            self.graphs["left"] = build_reference_graph(self.left_document)
        return self.graphs["left"]


def schema_section(family: DocumentFamily) -> str:
    """Return the label schemas are reported under."""
    return "definition" if family is DocumentFamily.FLAT else "schema"


def merge_schemas(  # pylint: disable=too-many-arguments
    left: MergeSide,
    right: MergeSide,
    context: ResolutionContext,
    state: ResolutionState,
    *,
    left_owned: Document | None = None,
) -> None:
    """Merge the incoming schema container, renaming or deduplicating collisions.

    Every collision is decided first. Renames are then rewritten into the
    losing side and its container key is moved before the entries are merged.
    `left_owned` holds the accumulator's own paths and components when entries
    of the incoming side were already merged into `left`; left-side tracing and
    rewriting are limited to it.
    """
    section = _Section(
        label=schema_section(context.family),
        category=EntityCategory.SCHEMAS,
        pointer=context.family.schema_container_pointer,
        collision_type=CollisionType.SCHEMA,
        warning_category=WarningCategory.SCHEMA_COLLISION,
    )
    strategy = context.configuration.strategy_for(EntityCategory.SCHEMAS)
    left_schemas = left.document.components.schemas
    right_schemas = right.document.components.schemas
    left_references = left_owned if left_owned is not None else left.document
    plan = _SchemaPlan()
    tracing = _Tracing(
        left_document=left_references,
        right_document=right.document,
        configuration=context.configuration,
    )

    for name, schema in right_schemas.items():
        if name not in left_schemas or _same_content(left_schemas[name], schema):
            continue
        collision = _Collision(
            section=section,
            name=name,
            left_source=state.origin_of(section.label, name, left.source_path),
            right_source=right.source_path,
            strategy=strategy,
            context=context,
        )
        resolution = _consult_handler(collision, left_schemas[name], schema, state)
        if resolution is None:
            _decide_schema_collision(collision, strategy, left, right, plan, tracing, state)
        elif resolution.action is ResolutionAction.CUSTOM:
            plan.custom[name] = _custom_value(collision, resolution, left_schemas[name])
            collision.resolved(state, _entry_warning(collision, _CUSTOM), ResolutionKind.CUSTOM)
        elif resolution.action is ResolutionAction.DEDUPLICATE:
            plan.keep_left.add(name)
            collision.resolved(
                state,
                f"{section.label} '{name}' deduplicated (collision handler): "
                f"{collision.right_location}",
                ResolutionKind.DEDUPLICATED,
                category=WarningCategory.SCHEMA_DEDUPLICATED,
            )
        else:
            _decide_schema_collision(
                collision,
                _HANDLER_STRATEGIES[resolution.action],
                left,
                right,
                plan,
                tracing,
                state,
            )

    _apply_renames(left, plan.left_renames, section, state, references=left_references)
    _apply_renames(right, plan.right_renames, section, state)
    for name, custom in plan.custom.items():
        left_schemas[name] = custom
    for name, schema in right_schemas.items():
        if name in left_schemas and name not in plan.take_right:
            continue
        left_schemas[name] = schema
        state.set_origin(section.label, name, right.source_path)


def _decide_schema_collision(  # pylint: disable=too-many-arguments
    collision: _Collision,
    strategy: CollisionStrategy,
    left: MergeSide,
    right: MergeSide,
    plan: _SchemaPlan,
    tracing: _Tracing,
    state: ResolutionState,
) -> None:
    name = collision.name
    if strategy in (CollisionStrategy.ACCEPT_LEFT, CollisionStrategy.FAIL_ON_PATHS):
        plan.keep_left.add(name)
        collision.resolved(state, _entry_warning(collision, _KEPT), ResolutionKind.KEPT_LEFT)
    elif strategy is CollisionStrategy.ACCEPT_RIGHT:
        plan.take_right.add(name)
        collision.resolved(
            state, _entry_warning(collision, _OVERWRITTEN), ResolutionKind.KEPT_RIGHT
        )
    elif strategy is CollisionStrategy.DEDUPLICATE:
        _deduplicate(collision, left, right, state)
        plan.keep_left.add(name)
    elif strategy is CollisionStrategy.RENAME_RIGHT:
        decision = _rename_decision(
            collision, collision.right_source, right.index, tracing.right_graph()
        )
        _reserve(collision, decision.new_name, left, right, plan)
        plan.right_renames[name] = decision.new_name
        collision.resolved(
            state,
            _rename_warning(collision, collision.right_location, decision),
            ResolutionKind.RENAMED_RIGHT,
            decision.new_name,
            category=WarningCategory.SCHEMA_RENAMED,
        )
    elif strategy is CollisionStrategy.RENAME_LEFT:
        decision = _rename_decision(
            collision, collision.left_source, left.index, tracing.left_graph()
        )
        _reserve(collision, decision.new_name, left, right, plan)
        plan.left_renames[name] = decision.new_name
        collision.resolved(
            state,
            _rename_warning(collision, collision.left_location, decision),
            ResolutionKind.RENAMED_LEFT,
            decision.new_name,
            category=WarningCategory.SCHEMA_RENAMED,
        )
    else:
        raise collision.fatal()


def _deduplicate(
    collision: _Collision, left: MergeSide, right: MergeSide, state: ResolutionState
) -> None:
    mode = collision.context.configuration.equivalence_mode
    if mode is EquivalenceMode.NONE:
        raise collision.fatal("deduplicate requires equivalence mode 'shallow' or 'deep'")
    prefix = collision.context.family.schema_ref_prefix
    left_schemas = left.document.components.schemas
    right_schemas = right.document.components.schemas
    result = compare_schemas(
        left_schemas[collision.name],
        right_schemas[collision.name],
        mode,
        resolve_left=container_resolver(left_schemas, prefix),
        resolve_right=container_resolver(right_schemas, prefix),
    )
    if not result.equivalent:
        raise collision.fatal(
            f"schemas are not equivalent in {mode.value} mode "
            f"(found {len(result.differences)} differences)"
        )
    collision.resolved(
        state,
        f"{collision.section.label} '{collision.name}' deduplicated (structurally equivalent): "
        f"{collision.right_location}",
        ResolutionKind.DEDUPLICATED,
        category=WarningCategory.SCHEMA_DEDUPLICATED,
    )


def _rename_decision(
    collision: _Collision, source_path: str, index: int, graph: ReferenceGraph | None
) -> RenameDecision:
    configuration = collision.context.configuration
    prefix = None if configuration.always_apply_prefix else configuration.prefix_for(source_path)
    return decide_schema_name(
        collision.name,
        source_path=source_path,
        index=index,
        template=collision.context.template,
        prefix=prefix,
        graph=graph,
        policy=configuration.primary_operation_policy,
    )


def _reserve(
    collision: _Collision,
    new_name: str,
    left: MergeSide,
    right: MergeSide,
    plan: _SchemaPlan,
) -> None:
    if (
        new_name in left.document.components.schemas
        or new_name in right.document.components.schemas
        or new_name in plan.reserved
    ):
        raise collision.fatal(f"generated name '{new_name}' is already taken")


def _rename_warning(collision: _Collision, location: str, decision: RenameDecision) -> str:
    warning = (
        f"{collision.section.label} '{collision.name}' from {location} "
        f"renamed to '{decision.new_name}'"
    )
    if collision.context.configuration.operation_context and decision.degraded:
        warning = f"{warning} (no operation context found)"
    return warning


def _apply_renames(  # pylint: disable=too-many-arguments
    side: MergeSide,
    renames: Mapping[str, str],
    section: _Section,
    state: ResolutionState,
    *,
    references: Document | None = None,
) -> None:
    if not renames:
        return
    summary = rewrite_document_references(
        references if references is not None else side.document, renames
    )
    for old_name, new_name in renames.items():
        rename_schema_entry(side.document.components, old_name, new_name)
        origin = state.origins.pop(f"{section.label}/{old_name}", side.source_path)
        state.set_origin(section.label, new_name, origin)
    _LOGGER.debug(
        "renamed %d schema(s) in %s, rewrote %d reference(s)",
        len(renames),
        side.source_path,
        summary.rewritten_count,
    )


def apply_namespace_prefix(
    side: MergeSide, prefix: str, context: ResolutionContext, state: ResolutionState
) -> None:
    """Prefix every schema of one document with its namespace prefix."""
    schemas = side.document.components.schemas
    if not schemas:
        return
    label = schema_section(context.family)
    renames = {name: prefixed_schema_name(prefix, name) for name in schemas}
    rewrite_document_references(side.document, renames)
    renamed = {renames[name]: schema for name, schema in schemas.items()}
    schemas.clear()
    schemas.update(renamed)
    for old_name, new_name in renames.items():
        state.warn(
            WarningCategory.NAMESPACE_PREFIXED,
            f"{label} '{old_name}' prefixed to '{new_name}' "
            f"(namespace prefix from {side.source_path})",
            source_path=side.source_path,
        )
