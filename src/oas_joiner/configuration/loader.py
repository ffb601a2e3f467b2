"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any, TypeVar

import yaml

from oas_joiner.renaming.template_engine import TemplateError, parse_template

from .runtime_settings import (
    DEFAULT_RENAME_TEMPLATE,
    CollisionStrategy,
    EquivalenceMode,
    JoinConfiguration,
    PrimaryOperationPolicy,
)

_EnumT = TypeVar("_EnumT", bound=Enum)

_TOP_LEVEL_KEYS = {
    "strategies",
    "rename",
    "equivalence_mode",
    "semantic_deduplication",
    "collision_report",
    "merge_arrays",
    "deduplicate_tags",
}


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> JoinConfiguration:
    """Load and validate the join configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")
    return parse_configuration(parsed)


def parse_configuration(parsed: Mapping[str, Any]) -> JoinConfiguration:
    """Validate an already-parsed configuration mapping."""
    unknown = sorted(set(parsed) - _TOP_LEVEL_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}.")

    strategies = _optional_mapping(parsed.get("strategies"), "strategies")
    rename = _optional_mapping(parsed.get("rename"), "rename")

    template = _require_non_empty_string(
        rename.get("template", DEFAULT_RENAME_TEMPLATE), "rename.template"
    )
    try:
        parse_template(template)
    except TemplateError as exc:
        raise ConfigurationError(f"rename.template is invalid: {exc}") from exc

    return JoinConfiguration(
        default_strategy=_require_enum(
            strategies.get("default", CollisionStrategy.FAIL.value),
            CollisionStrategy,
            "strategies.default",
        ),
        path_strategy=_optional_enum(
            strategies.get("paths"), CollisionStrategy, "strategies.paths"
        ),
        schema_strategy=_optional_enum(
            strategies.get("schemas"), CollisionStrategy, "strategies.schemas"
        ),
        component_strategy=_optional_enum(
            strategies.get("components"), CollisionStrategy, "strategies.components"
        ),
        rename_template=template,
        namespace_prefixes=_parse_prefixes(rename.get("namespace_prefixes")),
        always_apply_prefix=_optional_bool(
            rename.get("always_apply_prefix"), "rename.always_apply_prefix", default=False
        ),
        equivalence_mode=_require_enum(
            parsed.get("equivalence_mode", EquivalenceMode.NONE.value),
            EquivalenceMode,
            "equivalence_mode",
        ),
        operation_context=_optional_bool(
            rename.get("operation_context"), "rename.operation_context", default=False
        ),
        primary_operation_policy=_require_enum(
            rename.get("primary_operation_policy", PrimaryOperationPolicy.FIRST_ENCOUNTERED.value),
            PrimaryOperationPolicy,
            "rename.primary_operation_policy",
        ),
        trace_both_sides=_optional_bool(
            rename.get("trace_both_sides"), "rename.trace_both_sides", default=False
        ),
        collision_report=_optional_bool(
            parsed.get("collision_report"), "collision_report", default=False
        ),
        semantic_deduplication=_optional_bool(
            parsed.get("semantic_deduplication"), "semantic_deduplication", default=False
        ),
        merge_arrays=_optional_bool(parsed.get("merge_arrays"), "merge_arrays", default=True),
        deduplicate_tags=_optional_bool(
            parsed.get("deduplicate_tags"), "deduplicate_tags", default=True
        ),
    )


def _parse_prefixes(value: Any) -> dict[str, str]:
    section = _optional_mapping(value, "rename.namespace_prefixes")
    prefixes: dict[str, str] = {}
    for source, prefix in section.items():
        if not isinstance(source, str) or not source.strip():
            raise ConfigurationError("rename.namespace_prefixes keys must be source identifiers.")
        prefixes[source.strip()] = _require_non_empty_string(
            prefix, f"rename.namespace_prefixes.{source}"
        )
    return prefixes


def _optional_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' must be a mapping.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_bool(value: Any, field_name: str, *, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigurationError(f"{field_name} must be true or false.")
    return value


def _require_enum(value: Any, enum_type: type[_EnumT], field_name: str) -> _EnumT:
    raw = _require_non_empty_string(value, field_name).lower()
    try:
        return enum_type(raw)
    except ValueError as exc:
        allowed = ", ".join(str(member.value) for member in enum_type)
        raise ConfigurationError(f"{field_name} must be one of: {allowed}.") from exc


def _optional_enum(value: Any, enum_type: type[_EnumT], field_name: str) -> _EnumT | None:
    if value is None:
        return None
    return _require_enum(value, enum_type, field_name)
