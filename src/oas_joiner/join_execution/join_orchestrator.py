"""Join orchestration service."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any

from oas_joiner.collision_resolution import (
    CollisionError,
    CollisionHandler,
    CollisionRecord,
    CollisionReport,
    CollisionType,
    JoinWarning,
    MergeSide,
    ResolutionContext,
    ResolutionState,
    WarningCategory,
    apply_namespace_prefix,
    merge_components,
    merge_paths,
    merge_schemas,
)
from oas_joiner.configuration import JoinConfiguration
from oas_joiner.document_model import (
    Document,
    DocumentError,
    DocumentFamily,
    SourceDocument,
    SourceMap,
    copy_document_shell,
)
from oas_joiner.renaming import TemplateError, parse_template
from oas_joiner.schema_equivalence import deduplicate_equivalent_schemas

from .join_contracts import DocumentHook, JoinResult, JoinStatistics

_LOGGER = logging.getLogger("oas_joiner.join_execution")
_LOGGER.addHandler(logging.NullHandler())


class JoinError(Exception):
    """Raised when documents cannot be joined."""


@dataclass(frozen=True)
class _JoinAccumulator:
    """Running merge result; every fold step returns a new value."""

    document: Document
    source_path: str
    warnings: tuple[JoinWarning, ...] = ()
    records: tuple[CollisionRecord, ...] = ()
    collision_count: int = 0
    origins: Mapping[str, str] = field(default_factory=dict)


def join_documents(
    sources: Sequence[SourceDocument],
    configuration: JoinConfiguration | None = None,
    *,
    source_maps: Mapping[str, SourceMap] | None = None,
    pre_merge_hooks: Iterable[DocumentHook] = (),
    post_merge_hooks: Iterable[DocumentHook] = (),
    collision_handler: CollisionHandler | None = None,
    collision_handler_types: Iterable[CollisionType] = (),
) -> JoinResult:
    """Fold an ordered list of documents into one, left to right.

    The first document seeds the accumulator and supplies version, format and
    root metadata. Fatal collisions, template errors and unsupported documents
    abort the join with `JoinError`; nothing partial is returned.

    A collision handler is consulted before the configured strategy for every
    collision, or only for `collision_handler_types` when any are given.
    """
    resolved_configuration = configuration or JoinConfiguration()
    handler_types = frozenset(collision_handler_types)
    if handler_types and collision_handler is None:
        raise JoinError("Collision handler types were given without a collision handler.")
    try:
        return _join(
            _validate_shapes(sources),
            resolved_configuration,
            source_maps=dict(source_maps or {}),
            pre_merge_hooks=tuple(pre_merge_hooks),
            post_merge_hooks=tuple(post_merge_hooks),
            collision_handler=collision_handler,
            handler_types=handler_types,
        )
    except (CollisionError, TemplateError, DocumentError) as exc:
        raise JoinError(str(exc)) from exc


def _join(  # pylint: disable=too-many-arguments
    sources: tuple[SourceDocument, ...],
    configuration: JoinConfiguration,
    *,
    source_maps: dict[str, SourceMap],
    pre_merge_hooks: tuple[DocumentHook, ...],
    post_merge_hooks: tuple[DocumentHook, ...],
    collision_handler: CollisionHandler | None,
    handler_types: frozenset[CollisionType],
) -> JoinResult:
    template = parse_template(configuration.rename_template)
    prepared = tuple(_apply_pre_merge_hooks(source, pre_merge_hooks) for source in sources)
    family = _validate_family(prepared)
    context = ResolutionContext(
        configuration=configuration,
        template=template,
        family=family,
        source_maps=source_maps,
        collision_handler=collision_handler,
        handler_types=handler_types,
    )

    accumulator = _seed(prepared[0], context, _source_warnings(prepared, family))
    for index, incoming in enumerate(prepared[1:], start=1):
        accumulator = _merge_step(accumulator, incoming, index, context)

    document = accumulator.document
    warnings = list(accumulator.warnings)
    if configuration.semantic_deduplication:
        outcome = deduplicate_equivalent_schemas(document)
        warnings.extend(
            JoinWarning(category=WarningCategory.SEMANTIC_DEDUP, message=message)
            for message in outcome.warnings
        )
        _LOGGER.debug("semantic deduplication removed %d schema(s)", outcome.removed_count)
    for hook in post_merge_hooks:
        document = _run_hook(hook, document, "post-merge")
    for warning in warnings:
        _LOGGER.info("%s", warning.message)

    first = prepared[0]
    return JoinResult(
        document=document,
        version=first.version,
        source_format=first.source_format,
        source_path=first.source_path,
        warnings=tuple(warning.message for warning in warnings),
        structured_warnings=tuple(warnings),
        collision_count=accumulator.collision_count,
        statistics=JoinStatistics.of(document),
        collision_report=(
            CollisionReport(records=accumulator.records)
            if configuration.collision_report
            else None
        ),
    )


def _validate_shapes(sources: Sequence[Any]) -> tuple[SourceDocument, ...]:
    items = tuple(sources)
    if len(items) < 2:
        raise JoinError(f"At least two documents are required to join, got {len(items)}.")
    for index, item in enumerate(items):
        if not isinstance(item, SourceDocument) or not isinstance(item.document, Document):
            raise JoinError(
                f"Document {index} has an unsupported shape: "
                f"expected a source document, got {type(item).__name__}."
            )
    return items


def _validate_family(sources: tuple[SourceDocument, ...]) -> DocumentFamily:
    first = sources[0]
    try:
        family = first.document.family
        for source in sources[1:]:
            if source.document.family is not family:
                raise JoinError(
                    f"Version mismatch: {first.source_path} declares {first.version} but "
                    f"{source.source_path} declares {source.version}; documents of different "
                    "families cannot be joined."
                )
    except ValueError as exc:
        raise JoinError(str(exc)) from exc
    return family


def _source_warnings(
    sources: tuple[SourceDocument, ...], family: DocumentFamily
) -> list[JoinWarning]:
    warnings = []
    for index, source in enumerate(sources):
        if not source.source_path.strip():
            warnings.append(
                JoinWarning(
                    category=WarningCategory.GENERIC_SOURCE_NAME,
                    message=f"document {index} has an empty source name; collision reports "
                    "will not identify it",
                )
            )
    if family is DocumentFamily.NAMESPACED:
        first = sources[0]
        for source in sources[1:]:
            if _minor_version(source.version) != _minor_version(first.version):
                warnings.append(
                    JoinWarning(
                        category=WarningCategory.VERSION_MISMATCH,
                        message="joining documents with different minor versions: "
                        f"{first.source_path} ({first.version}) and "
                        f"{source.source_path} ({source.version}). "
                        f"Result will use version {first.version}",
                        source_path=source.source_path,
                    )
                )
    return warnings


def _minor_version(version: str) -> str:
    return ".".join(version.split(".")[:2])


def _apply_pre_merge_hooks(
    source: SourceDocument, hooks: tuple[DocumentHook, ...]
) -> SourceDocument:
    if not hooks:
        return source
    document = source.document
    for hook in hooks:
        document = _run_hook(hook, document, "pre-merge")
    return replace(source, document=document)


def _run_hook(hook: DocumentHook, document: Document, stage: str) -> Document:
    result = hook(document)
    if not isinstance(result, Document):
        raise JoinError(f"A {stage} hook returned {type(result).__name__} instead of a document.")
    return result


def _seed(
    first: SourceDocument, context: ResolutionContext, warnings: list[JoinWarning]
) -> _JoinAccumulator:
    side = MergeSide(
        document=copy_document_shell(first.document), source_path=first.source_path, index=0
    )
    state = ResolutionState(warnings=warnings)
    _prefix_all_schemas(side, context, state)
    return _JoinAccumulator(
        document=side.document,
        source_path=first.source_path,
        warnings=tuple(state.warnings),
        origins=state.origins,
    )


def _merge_step(
    accumulator: _JoinAccumulator,
    incoming: SourceDocument,
    index: int,
    context: ResolutionContext,
) -> _JoinAccumulator:
    _LOGGER.debug("merging %s into the accumulator", incoming.source_path)
    left = MergeSide(
        document=copy_document_shell(accumulator.document),
        source_path=accumulator.source_path,
        index=0,
    )
    right = MergeSide(
        document=copy_document_shell(incoming.document),
        source_path=incoming.source_path,
        index=index,
    )
    state = ResolutionState(origins=dict(accumulator.origins))
    _prefix_all_schemas(right, context, state)
    merge_paths(left, right, context, state)
    # accumulator.document still lacks the incoming paths merged into left
    merge_schemas(left, right, context, state, left_owned=accumulator.document)
    merge_components(left, right, context, state)
    _merge_root_fields(left.document, right, context.configuration, state)
    return replace(
        accumulator,
        document=left.document,
        warnings=accumulator.warnings + tuple(state.warnings),
        records=accumulator.records + tuple(state.records),
        collision_count=accumulator.collision_count + state.collision_count,
        origins=state.origins,
    )


def _prefix_all_schemas(
    side: MergeSide, context: ResolutionContext, state: ResolutionState
) -> None:
    if not context.configuration.always_apply_prefix:
        return
    prefix = context.configuration.prefix_for(side.source_path)
    if prefix:
        apply_namespace_prefix(side, prefix, context, state)


def _merge_root_fields(
    target: Document,
    incoming: MergeSide,
    configuration: JoinConfiguration,
    state: ResolutionState,
) -> None:
    source = incoming.document
    if configuration.merge_arrays:
        _extend_unique(target.servers, source.servers)
        _extend_unique(target.security, source.security)
        _extend_unique(target.schemes, source.schemes)
        _extend_unique(target.consumes, source.consumes)
        _extend_unique(target.produces, source.produces)
        if configuration.deduplicate_tags:
            known = {tag.get("name") for tag in target.tags}
            for tag in source.tags:
                if tag.get("name") not in known:
                    target.tags.append(tag)
                    known.add(tag.get("name"))
        else:
            target.tags.extend(source.tags)
    for key, kept, ignored in (
        ("host", target.host, source.host),
        ("basePath", target.base_path, source.base_path),
    ):
        if kept is not None and ignored is not None and kept != ignored:
            state.warn(
                WarningCategory.METADATA_OVERRIDE,
                f"{key} '{ignored}' from {incoming.source_path} ignored "
                f"(kept '{kept}' from first document)",
                source_path=incoming.source_path,
            )


def _extend_unique(target: list[Any], values: Iterable[Any]) -> None:
    for value in values:
        if value not in target:
            target.append(value)
