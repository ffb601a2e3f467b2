"""Join execution entities."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from oas_joiner.collision_resolution import CollisionReport, JoinWarning, WarningCategory
from oas_joiner.document_model import COMPONENT_SECTIONS, Document, SourceDocument, SourceFormat

DocumentHook = Callable[[Document], Document]


@dataclass(frozen=True)
class JoinStatistics:  # pylint: disable=too-many-instance-attributes
    """Counts of the merged document."""

    path_count: int
    webhook_count: int
    operation_count: int
    schema_count: int
    component_count: int
    tag_count: int
    server_count: int

    @classmethod
    def of(cls, document: Document) -> JoinStatistics:
        path_items = [*document.paths.values(), *document.webhooks.values()]
        return cls(
            path_count=len(document.paths),
            webhook_count=len(document.webhooks),
            operation_count=sum(len(item.operations) for item in path_items),
            schema_count=len(document.components.schemas),
            component_count=sum(
                len(getattr(document.components, attribute)) for attribute in COMPONENT_SECTIONS
            ),
            tag_count=len(document.tags),
            server_count=len(document.servers),
        )


@dataclass(frozen=True)
class JoinResult:  # pylint: disable=too-many-instance-attributes
    """Output contract of one join."""

    document: Document
    version: str
    source_format: SourceFormat
    source_path: str
    warnings: tuple[str, ...]
    collision_count: int
    statistics: JoinStatistics
    collision_report: CollisionReport | None = None
    structured_warnings: tuple[JoinWarning, ...] = ()

    def warnings_of(self, category: WarningCategory) -> tuple[JoinWarning, ...]:
        """Structured warnings of one category, in emission order."""
        return tuple(
            warning for warning in self.structured_warnings if warning.category is category
        )

    def to_source_document(self, source_path: str | None = None) -> SourceDocument:
        """Re-package the merged document as input for another join."""
        return SourceDocument(
            document=self.document,
            source_path=source_path or self.source_path,
            source_format=self.source_format,
        )


@dataclass(frozen=True)
class JoinRequest:
    """Input contract for joining documents stored as files."""

    spec_paths: tuple[str, ...]
    output_path: str
    config_path: str | None = None
    report_path: str | None = None


@dataclass(frozen=True)
class JoinOutcome:
    """Output contract for one completed file join."""

    output_path: Path
    report_path: Path | None
    result: JoinResult
