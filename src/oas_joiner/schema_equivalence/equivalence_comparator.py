"""Structural schema equivalence service."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from oas_joiner.document_model.document_models import Schema

SchemaResolver = Callable[[str], "Schema | None"]


class EquivalenceMode(str, Enum):
    """Depth of structural schema comparison."""

    NONE = "none"
    SHALLOW = "shallow"
    DEEP = "deep"


@dataclass(frozen=True)
class SchemaDifference:
    """One structural difference between two compared schemas."""

    path: str
    left_value: Any
    right_value: Any
    description: str


@dataclass(frozen=True)
class EquivalenceResult:
    """Outcome of a schema comparison."""

    equivalent: bool
    differences: tuple[SchemaDifference, ...] = ()

    def describe(self) -> str:
        if self.equivalent:
            return "schemas are equivalent"
        if not self.differences:
            return "schemas are not comparable"
        return "; ".join(
            f"{difference.path or '<root>'}: {difference.description}"
            for difference in self.differences
        )


def container_resolver(schemas: Mapping[str, Schema], prefix: str) -> SchemaResolver:
    """Build a resolver for local pointers into a schema container."""

    def resolve(ref: str) -> Schema | None:
        if not ref.startswith(prefix):
            return None
        name = ref[len(prefix) :].replace("~1", "/").replace("~0", "~")
        return schemas.get(name)

    return resolve


def is_empty_schema(schema: Schema) -> bool:
    """Return True when a schema declares no structural constraint.

    Title, description, example, deprecated and extension keys are metadata
    and never make a schema non-empty.
    """
    return not (
        schema.type is not None
        or schema.format
        or schema.required
        or schema.enum
        or schema.constraints
        or schema.properties
        or schema.items is not None
        or schema.additional_properties is not None
        or schema.all_of
        or schema.any_of
        or schema.one_of
        or schema.not_ is not None
        or schema.discriminator is not None
    )


def compare_schemas(
    left: Schema,
    right: Schema,
    mode: EquivalenceMode,
    *,
    resolve_left: SchemaResolver | None = None,
    resolve_right: SchemaResolver | None = None,
) -> EquivalenceResult:
    """Compare two schemas structurally under the given mode.

    Pointers are followed through the resolvers so resolved structure is
    compared instead of pointer strings. Empty schemas are never equivalent
    to anything, and mode `none` never reports equivalence.
    """
    if mode is EquivalenceMode.NONE:
        return EquivalenceResult(equivalent=False)

    comparison = _Comparison(
        resolve_left=resolve_left or _resolve_nothing,
        resolve_right=resolve_right or _resolve_nothing,
    )
    resolved_left = comparison.left(left)
    resolved_right = comparison.right(right)
    if is_empty_schema(resolved_left) or is_empty_schema(resolved_right):
        return EquivalenceResult(equivalent=False)

    if mode is EquivalenceMode.SHALLOW:
        comparison.shallow(resolved_left, resolved_right)
    else:
        comparison.deep(resolved_left, resolved_right, "")
    return EquivalenceResult(
        equivalent=not comparison.differences,
        differences=tuple(comparison.differences),
    )


def _resolve_nothing(_ref: str) -> Schema | None:
    return None


def _resolve_chain(schema: Schema, resolver: SchemaResolver) -> Schema:
    seen: set[int] = set()
    current = schema
    while current.ref is not None and id(current) not in seen:
        seen.add(id(current))
        target = resolver(current.ref)
        if target is None:
            break
        current = target
    return current


def _normalized_type(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(sorted(str(item) for item in value))
    return value


def _join(path: str, segment: str) -> str:
    return f"{path}.{segment}" if path else segment


@dataclass
class _Comparison:
    """Mutable collector for one comparison; the visited set holds identity pairs."""

    resolve_left: SchemaResolver
    resolve_right: SchemaResolver
    differences: list[SchemaDifference] = field(default_factory=list)
    visited: set[tuple[int, int]] = field(default_factory=set)

    def left(self, schema: Schema) -> Schema:
        return _resolve_chain(schema, self.resolve_left)

    def right(self, schema: Schema) -> Schema:
        return _resolve_chain(schema, self.resolve_right)

    def _differ(self, path: str, left: Any, right: Any, description: str) -> None:
        self.differences.append(
            SchemaDifference(path=path, left_value=left, right_value=right, description=description)
        )

    def common(self, left: Schema, right: Schema, path: str) -> None:
        if left.ref != right.ref:
            self._differ(_join(path, "$ref"), left.ref, right.ref, "unresolved reference mismatch")
        if _normalized_type(left.type) != _normalized_type(right.type):
            self._differ(_join(path, "type"), left.type, right.type, "type mismatch")
        if (left.format or None) != (right.format or None):
            self._differ(_join(path, "format"), left.format, right.format, "format mismatch")
        if sorted(left.required) != sorted(right.required):
            self._differ(
                _join(path, "required"), left.required, right.required, "required fields mismatch"
            )
        if (left.enum or None) != (right.enum or None):
            self._differ(_join(path, "enum"), left.enum, right.enum, "enum values mismatch")
        if set(left.properties) != set(right.properties):
            self._differ(
                _join(path, "properties"),
                sorted(left.properties),
                sorted(right.properties),
                "property names mismatch",
            )

    def shallow(self, left: Schema, right: Schema) -> None:
        self.common(left, right, "")
        for name in sorted(set(left.properties) & set(right.properties)):
            left_type = self.left(left.properties[name]).type
            right_type = self.right(right.properties[name]).type
            if _normalized_type(left_type) != _normalized_type(right_type):
                self._differ(
                    f"properties.{name}.type", left_type, right_type, "property type mismatch"
                )
        left_items = self._top_level_items_type(left.items, self.left)
        right_items = self._top_level_items_type(right.items, self.right)
        if left_items != right_items:
            self._differ("items.type", left_items, right_items, "items type mismatch")

    @staticmethod
    def _top_level_items_type(
        items: Schema | list[Schema] | None, resolve: Callable[[Schema], Schema]
    ) -> Any:
        if items is None:
            return None
        if isinstance(items, list):
            return tuple(_normalized_type(resolve(item).type) for item in items)
        return _normalized_type(resolve(items).type)

    def deep(self, left: Schema, right: Schema, path: str) -> None:
        pair = (id(left), id(right))
        if pair in self.visited:
            return
        self.visited.add(pair)

        self.common(left, right, path)
        for key in sorted(set(left.constraints) | set(right.constraints)):
            left_value = left.constraints.get(key)
            right_value = right.constraints.get(key)
            if left_value != right_value:
                self._differ(_join(path, key), left_value, right_value, f"{key} mismatch")

        for name in sorted(set(left.properties) & set(right.properties)):
            self._child(
                left.properties[name],
                right.properties[name],
                f"{_join(path, 'properties')}.{name}",
            )
        self._items(left.items, right.items, _join(path, "items"))
        self._additional(left.additional_properties, right.additional_properties, path)
        for key, left_list, right_list in (
            ("allOf", left.all_of, right.all_of),
            ("anyOf", left.any_of, right.any_of),
            ("oneOf", left.one_of, right.one_of),
        ):
            self._schema_list(left_list, right_list, _join(path, key))
        if (left.not_ is None) != (right.not_ is None):
            self._differ(
                _join(path, "not"),
                left.not_ is not None,
                right.not_ is not None,
                "not presence mismatch",
            )
        elif left.not_ is not None and right.not_ is not None:
            self._child(left.not_, right.not_, _join(path, "not"))
        self._discriminator(left, right, path)

    def _child(self, left: Schema, right: Schema, path: str) -> None:
        self.deep(self.left(left), self.right(right), path)

    def _items(
        self, left: Schema | list[Schema] | None, right: Schema | list[Schema] | None, path: str
    ) -> None:
        if left is None and right is None:
            return
        if isinstance(left, Schema) and isinstance(right, Schema):
            self._child(left, right, path)
        elif isinstance(left, list) and isinstance(right, list):
            self._schema_list(left, right, path)
        else:
            self._differ(path, left is not None, right is not None, "items shape mismatch")

    def _additional(
        self, left: Schema | bool | None, right: Schema | bool | None, path: str
    ) -> None:
        child_path = _join(path, "additionalProperties")
        if isinstance(left, Schema) and isinstance(right, Schema):
            self._child(left, right, child_path)
        elif isinstance(left, Schema) or isinstance(right, Schema) or left != right:
            self._differ(
                child_path,
                left if not isinstance(left, Schema) else "schema",
                right if not isinstance(right, Schema) else "schema",
                "additionalProperties mismatch",
            )

    def _schema_list(self, left: Sequence[Schema], right: Sequence[Schema], path: str) -> None:
        if len(left) != len(right):
            self._differ(path, len(left), len(right), "composition length mismatch")
            return
        for index, (left_child, right_child) in enumerate(zip(left, right, strict=True)):
            self._child(left_child, right_child, f"{path}[{index}]")

    def _discriminator(self, left: Schema, right: Schema, path: str) -> None:
        left_value = (
            None
            if left.discriminator is None
            else (left.discriminator.property_name, dict(left.discriminator.mapping))
        )
        right_value = (
            None
            if right.discriminator is None
            else (right.discriminator.property_name, dict(right.discriminator.mapping))
        )
        if left_value != right_value:
            self._differ(
                _join(path, "discriminator"), left_value, right_value, "discriminator mismatch"
            )
