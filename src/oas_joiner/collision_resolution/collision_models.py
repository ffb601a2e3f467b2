"""Collision resolution entities."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from oas_joiner.configuration import CollisionStrategy, EntityCategory


class ResolutionKind(str, Enum):
    """Outcome recorded for one resolved collision."""

    KEPT_LEFT = "kept-left"
    KEPT_RIGHT = "kept-right"
    RENAMED_LEFT = "renamed-left"
    RENAMED_RIGHT = "renamed-right"
    DEDUPLICATED = "deduplicated"
    CUSTOM = "custom"


class WarningCategory(str, Enum):
    """Kind of a non-fatal join warning."""

    VERSION_MISMATCH = "version_mismatch"
    GENERIC_SOURCE_NAME = "generic_source_name"
    PATH_COLLISION = "path_collision"
    WEBHOOK_COLLISION = "webhook_collision"
    SCHEMA_COLLISION = "schema_collision"
    COMPONENT_COLLISION = "component_collision"
    SCHEMA_RENAMED = "schema_renamed"
    SCHEMA_DEDUPLICATED = "schema_deduplicated"
    NAMESPACE_PREFIXED = "namespace_prefixed"
    METADATA_OVERRIDE = "metadata_override"
    SEMANTIC_DEDUP = "semantic_dedup"
    HANDLER_ERROR = "handler_error"
    HANDLER_RESOLUTION = "handler_resolution"


@dataclass(frozen=True)
class JoinWarning:
    """One non-fatal join event; renders as its plain message."""

    category: WarningCategory
    message: str
    source_path: str | None = None
    pointer: str | None = None

    def __str__(self) -> str:
        return self.message


class CollisionType(str, Enum):
    """Kind of entry a collision handler is consulted for."""

    PATH = "path"
    WEBHOOK = "webhook"
    SCHEMA = "schema"
    PARAMETER = "parameter"
    RESPONSE = "response"
    REQUEST_BODY = "requestBody"
    HEADER = "header"
    CALLBACK = "callback"
    PATH_ITEM = "pathItem"
    EXAMPLE = "example"
    SECURITY_SCHEME = "securityScheme"
    LINK = "link"


class ResolutionAction(str, Enum):
    """What a collision handler decided for one collision."""

    CONTINUE = "continue"
    ACCEPT_LEFT = "accept-left"
    ACCEPT_RIGHT = "accept-right"
    RENAME = "rename"
    DEDUPLICATE = "deduplicate"
    FAIL = "fail"
    CUSTOM = "custom"


@dataclass(frozen=True)
class CollisionContext:  # pylint: disable=too-many-instance-attributes
    """Everything a collision handler gets to see about one collision."""

    collision_type: CollisionType
    name: str
    pointer: str
    left_source: str
    right_source: str
    left_location: str
    right_location: str
    left_value: Any
    right_value: Any
    configured_strategy: CollisionStrategy


@dataclass(frozen=True)
class CollisionResolution:
    """A collision handler's answer.

    `continue` defers to the configured strategy, `custom` stores
    `custom_value` under the colliding name. A message is reported as a
    warning, or as the failure reason for `fail`.
    """

    action: ResolutionAction
    custom_value: Any = None
    message: str | None = None


CollisionHandler = Callable[[CollisionContext], CollisionResolution]


@dataclass(frozen=True)
class CollisionRecord:  # pylint: disable=too-many-instance-attributes
    """One resolved collision as it appears in the collision report."""

    category: EntityCategory
    section: str
    name: str
    left_source: str
    right_source: str
    strategy: CollisionStrategy
    resolution: ResolutionKind
    new_name: str | None = None
    left_location: str | None = None
    right_location: str | None = None


@dataclass(frozen=True)
class CollisionReport:
    """Ordered collision records of one join."""

    records: tuple[CollisionRecord, ...] = ()

    @property
    def count(self) -> int:
        return len(self.records)

    def by_category(self) -> Mapping[EntityCategory, tuple[CollisionRecord, ...]]:
        grouped: dict[EntityCategory, list[CollisionRecord]] = {}
        for record in self.records:
            grouped.setdefault(record.category, []).append(record)
        return {category: tuple(records) for category, records in grouped.items()}


@dataclass
class ResolutionState:
    """Mutable collector for the warnings and records of one merge step."""

    warnings: list[JoinWarning] = field(default_factory=list)
    records: list[CollisionRecord] = field(default_factory=list)
    collision_count: int = 0
    origins: dict[str, str] = field(default_factory=dict)

    @property
    def messages(self) -> list[str]:
        return [warning.message for warning in self.warnings]

    def warn(
        self,
        category: WarningCategory,
        message: str,
        *,
        source_path: str | None = None,
        pointer: str | None = None,
    ) -> None:
        self.warnings.append(
            JoinWarning(
                category=category, message=message, source_path=source_path, pointer=pointer
            )
        )

    def origin_of(self, section: str, name: str, fallback: str) -> str:
        return self.origins.get(f"{section}/{name}", fallback)

    def set_origin(self, section: str, name: str, source_path: str) -> None:
        self.origins[f"{section}/{name}"] = source_path


class CollisionError(Exception):
    """Raised when a collision cannot be resolved under the configured strategy."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        *,
        section: str,
        name: str,
        left_source: str,
        right_source: str,
        strategy: CollisionStrategy,
        reason: str | None = None,
    ) -> None:
        message = (
            f"{section} '{name}' collides between {left_source} and {right_source} "
            f"(strategy '{strategy.value}')"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.section = section
        self.name = name
        self.left_source = left_source
        self.right_source = right_source
        self.strategy = strategy
        self.reason = reason
