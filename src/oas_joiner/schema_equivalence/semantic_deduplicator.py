"""Semantic schema deduplication service."""

from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass

from oas_joiner.document_model.document_models import Document, Schema
from oas_joiner.reference_rewriting import rewrite_document_references

from .equivalence_comparator import (
    EquivalenceMode,
    compare_schemas,
    container_resolver,
    is_empty_schema,
)

_LOGGER = logging.getLogger("oas_joiner.schema_equivalence")
_LOGGER.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class ConsolidationEvent:
    """One equivalence class folded into its canonical schema."""

    canonical_name: str
    folded_names: tuple[str, ...]

    @property
    def warning(self) -> str:
        return (
            f"semantic deduplication: consolidated {len(self.folded_names)} duplicate "
            f"schema(s) into '{self.canonical_name}': {', '.join(self.folded_names)}"
        )


@dataclass(frozen=True)
class DeduplicationOutcome:
    """Result of one deduplication pass."""

    events: tuple[ConsolidationEvent, ...]
    rewritten_count: int

    @property
    def removed_count(self) -> int:
        return sum(len(event.folded_names) for event in self.events)

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(event.warning for event in self.events)

    @property
    def aliases(self) -> dict[str, str]:
        return {
            name: event.canonical_name for event in self.events for name in event.folded_names
        }


def deduplicate_equivalent_schemas(document: Document) -> DeduplicationOutcome:
    """Fold deep-equivalent container schemas into the alphabetically first name.

    Empty schemas and pure pointer aliases never take part. Removed names are
    rewritten to their canonical name across the whole document.
    """
    schemas = document.components.schemas
    resolver = container_resolver(schemas, document.schema_ref_prefix)

    buckets: dict[Hashable, list[str]] = {}
    for name in sorted(schemas):
        schema = schemas[name]
        if schema.ref is not None or is_empty_schema(schema):
            continue
        buckets.setdefault(_fingerprint(schema), []).append(name)

    events: list[ConsolidationEvent] = []
    for names in buckets.values():
        if len(names) < 2:
            continue
        groups: list[list[str]] = []
        for name in names:
            for group in groups:
                result = compare_schemas(
                    schemas[group[0]],
                    schemas[name],
                    EquivalenceMode.DEEP,
                    resolve_left=resolver,
                    resolve_right=resolver,
                )
                if result.equivalent:
                    group.append(name)
                    break
            else:
                groups.append([name])
        events.extend(
            ConsolidationEvent(canonical_name=group[0], folded_names=tuple(group[1:]))
            for group in groups
            if len(group) > 1
        )

    events.sort(key=lambda event: event.canonical_name)
    outcome = DeduplicationOutcome(events=tuple(events), rewritten_count=0)
    aliases = outcome.aliases
    if not aliases:
        return outcome

    for name in aliases:
        del schemas[name]
    summary = rewrite_document_references(document, aliases)
    _LOGGER.debug(
        "deduplication folded %d schema(s), rewrote %d reference(s)",
        len(aliases),
        summary.rewritten_count,
    )
    return DeduplicationOutcome(events=outcome.events, rewritten_count=summary.rewritten_count)


def _fingerprint(schema: Schema) -> Hashable:
    schema_type = schema.type
    if isinstance(schema_type, list):
        schema_type = tuple(sorted(str(item) for item in schema_type))
    return (
        schema_type,
        schema.format or None,
        tuple(sorted(schema.required)),
        tuple(sorted(schema.properties)),
    )
