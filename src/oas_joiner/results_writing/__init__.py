"""Results writing domain exports."""

from .collision_report_writer import (
    COLLISION_COLUMNS,
    COLLISIONS_SHEET_NAME,
    JOIN_INFO_SHEET_NAME,
    write_collision_report_workbook,
)
from .report_models import JoinSummary

__all__ = [
    "COLLISION_COLUMNS",
    "COLLISIONS_SHEET_NAME",
    "JOIN_INFO_SHEET_NAME",
    "JoinSummary",
    "write_collision_report_workbook",
]
