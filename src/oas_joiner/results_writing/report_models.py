"""Results writing entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class JoinSummary:
    """Metadata rendered into the JoinInfo sheet."""

    version: str
    source_format: str
    output_path: Path
    collision_count: int
    counts: Mapping[str, int]
    warnings: tuple[str, ...]
