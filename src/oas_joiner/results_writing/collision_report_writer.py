"""Collision report workbook writer service."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from oas_joiner.collision_resolution import CollisionRecord, CollisionReport

from .report_models import JoinSummary

COLLISIONS_SHEET_NAME = "Collisions"
JOIN_INFO_SHEET_NAME = "JoinInfo"

COLLISION_COLUMNS = (
    "category",
    "section",
    "name",
    "left_source",
    "right_source",
    "strategy",
    "resolution",
    "new_name",
    "left_location",
    "right_location",
)


def write_collision_report_workbook(
    report: CollisionReport | None, summary: JoinSummary, output_path: Path | str
) -> Path:
    """Write the collision report and join summary of one join as an xlsx workbook."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = COLLISIONS_SHEET_NAME
    records = report.records if report is not None else ()
    _write_collisions_sheet(sheet, records)
    _write_join_info_sheet(workbook.create_sheet(JOIN_INFO_SHEET_NAME), summary)

    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(output)
    return output.resolve()


def _write_collisions_sheet(sheet, records: Sequence[CollisionRecord]) -> None:
    for column, header in enumerate(COLLISION_COLUMNS, start=1):
        cell = sheet.cell(row=1, column=column, value=header)
        cell.font = Font(bold=True)
    rows = [_record_values(record) for record in records]
    for row, values in enumerate(rows, start=2):
        for column, value in enumerate(values, start=1):
            sheet.cell(row=row, column=column, value=value)
    for column, header in enumerate(COLLISION_COLUMNS, start=1):
        widest = max([len(header), *(len(str(values[column - 1])) for values in rows)])
        sheet.column_dimensions[get_column_letter(column)].width = min(widest + 2, 80)
    sheet.freeze_panes = "A2"


def _record_values(record: CollisionRecord) -> tuple[Any, ...]:
    return (
        record.category.value,
        record.section,
        record.name,
        record.left_source,
        record.right_source,
        record.strategy.value,
        record.resolution.value,
        record.new_name or "",
        record.left_location or "",
        record.right_location or "",
    )


def _write_join_info_sheet(sheet, summary: JoinSummary) -> None:
    entries: list[tuple[str, Any]] = [
        ("version", summary.version),
        ("format", summary.source_format),
        ("output_path", str(summary.output_path)),
        ("collisions", summary.collision_count),
    ]
    entries.extend(summary.counts.items())
    entries.append(("warnings", len(summary.warnings)))
    entries.extend((f"warning_{number}", text) for number, text in enumerate(summary.warnings, 1))
    for row, (key, value) in enumerate(entries, start=1):
        sheet.cell(row=row, column=1, value=key)
        sheet.cell(row=row, column=2, value=value)
