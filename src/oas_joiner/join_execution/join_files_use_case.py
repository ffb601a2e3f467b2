"""File join use-case service."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from oas_joiner.configuration import ConfigurationError, JoinConfiguration, load_configuration
from oas_joiner.document_model import (
    DocumentError,
    SourceDocument,
    SourceFormat,
    SourceMap,
    load_source_document,
    load_source_map,
    write_document,
)
from oas_joiner.results_writing import JoinSummary, write_collision_report_workbook

from .join_contracts import JoinOutcome, JoinRequest, JoinResult
from .join_orchestrator import JoinError, join_documents


def execute_join_run(request: JoinRequest) -> JoinOutcome:
    """Join API documents from disk, write the merged document and the optional report."""
    configuration = _load_join_configuration(request.config_path)
    if request.report_path:
        configuration = replace(configuration, collision_report=True)
    sources, source_maps = _load_sources(request.spec_paths)

    result = join_documents(sources, configuration, source_maps=source_maps)
    output_path = _write_output(result, request.output_path)
    report_path = None
    if request.report_path:
        report_path = write_collision_report_workbook(
            result.collision_report,
            _join_summary(result, output_path),
            request.report_path,
        )
    return JoinOutcome(output_path=output_path, report_path=report_path, result=result)


def _load_join_configuration(config_path: str | None) -> JoinConfiguration:
    if not config_path:
        return JoinConfiguration()
    try:
        return load_configuration(config_path)
    except ConfigurationError as exc:
        raise JoinError(str(exc)) from exc


def _load_sources(
    spec_paths: tuple[str, ...],
) -> tuple[list[SourceDocument], dict[str, SourceMap]]:
    sources = []
    source_maps = {}
    try:
        for spec_path in spec_paths:
            source = load_source_document(spec_path)
            sources.append(source)
            source_maps[source.source_path] = load_source_map(spec_path)
    except (DocumentError, OSError) as exc:
        raise JoinError(str(exc)) from exc
    return sources, source_maps


def _write_output(result: JoinResult, output_path: str) -> Path:
    source_document = result.to_source_document(output_path)
    output_format = _output_format(Path(output_path), source_document.source_format)
    try:
        return write_document(replace(source_document, source_format=output_format), output_path)
    except (DocumentError, OSError) as exc:
        raise JoinError(str(exc)) from exc


def _output_format(path: Path, inherited: SourceFormat) -> SourceFormat:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return SourceFormat.JSON
    if suffix in {".yaml", ".yml"}:
        return SourceFormat.YAML
    return inherited


def _join_summary(result: JoinResult, output_path: Path) -> JoinSummary:
    statistics = result.statistics
    return JoinSummary(
        version=result.version,
        source_format=result.source_format.value,
        output_path=output_path,
        collision_count=result.collision_count,
        counts={
            "paths": statistics.path_count,
            "webhooks": statistics.webhook_count,
            "operations": statistics.operation_count,
            "schemas": statistics.schema_count,
            "components": statistics.component_count,
            "tags": statistics.tag_count,
            "servers": statistics.server_count,
        },
        warnings=result.warnings,
    )
