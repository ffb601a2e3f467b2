"""Schema equivalence domain exports."""

from .equivalence_comparator import (
    EquivalenceMode,
    EquivalenceResult,
    SchemaDifference,
    SchemaResolver,
    compare_schemas,
    container_resolver,
    is_empty_schema,
)
from .semantic_deduplicator import (
    ConsolidationEvent,
    DeduplicationOutcome,
    deduplicate_equivalent_schemas,
)

__all__ = [
    "EquivalenceMode",
    "EquivalenceResult",
    "SchemaDifference",
    "SchemaResolver",
    "compare_schemas",
    "container_resolver",
    "is_empty_schema",
    "ConsolidationEvent",
    "DeduplicationOutcome",
    "deduplicate_equivalent_schemas",
]
