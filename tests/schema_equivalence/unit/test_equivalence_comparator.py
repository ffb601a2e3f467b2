"""Structural schema comparison tests."""

from __future__ import annotations

import itertools

import pytest
from oas_joiner.document_model import Schema, read_document
from oas_joiner.schema_equivalence import (
    EquivalenceMode,
    compare_schemas,
    container_resolver,
    is_empty_schema,
)

PREFIX = "#/components/schemas/"


def _schemas(definitions: dict) -> dict[str, Schema]:
    document = read_document({"openapi": "3.0.0", "components": {"schemas": definitions}})
    return document.components.schemas


def _compare(schemas: dict[str, Schema], left: str, right: str, mode: EquivalenceMode):
    resolver = container_resolver(schemas, PREFIX)
    return compare_schemas(
        schemas[left], schemas[right], mode, resolve_left=resolver, resolve_right=resolver
    )


def _sample_schemas() -> dict[str, Schema]:
    return _schemas(
        {
            "Address": {
                "type": "object",
                "required": ["street"],
                "properties": {
                    "street": {"type": "string", "maxLength": 80},
                    "geo": {"type": "object", "properties": {"lat": {"type": "number"}}},
                },
            },
            "Location": {
                "type": "object",
                "required": ["street"],
                "properties": {
                    "geo": {"type": "object", "properties": {"lat": {"type": "number"}}},
                    "street": {"type": "string", "maxLength": 80},
                },
            },
            "LooseAddress": {
                "type": "object",
                "required": ["street"],
                "properties": {
                    "street": {"type": "string"},
                    "geo": {"type": "object", "properties": {"lng": {"type": "number"}}},
                },
            },
            "Tags": {"type": "array", "items": {"type": "string"}},
            "Codes": {"type": "array", "items": {"type": "integer"}},
            "Nullable": {"type": ["string", "null"]},
            "NullableToo": {"type": ["null", "string"]},
            "AddressAlias": {"$ref": f"{PREFIX}Address"},
            "Blank": {"description": "anything goes"},
        }
    )


def test_structurally_identical_schemas_are_equivalent_in_both_modes() -> None:
    schemas = _sample_schemas()

    for mode in (EquivalenceMode.SHALLOW, EquivalenceMode.DEEP):
        result = _compare(schemas, "Address", "Location", mode)
        assert result.equivalent
        assert result.differences == ()


def test_shallow_ignores_nested_structure_that_deep_compares() -> None:
    schemas = _sample_schemas()

    shallow = _compare(schemas, "Address", "LooseAddress", EquivalenceMode.SHALLOW)
    deep = _compare(schemas, "Address", "LooseAddress", EquivalenceMode.DEEP)

    assert shallow.equivalent
    assert not deep.equivalent
    paths = {difference.path for difference in deep.differences}
    assert "properties.street.maxLength" in paths
    assert "properties.geo.properties" in paths


def test_top_level_items_type_is_part_of_the_shallow_comparison() -> None:
    result = _compare(_sample_schemas(), "Tags", "Codes", EquivalenceMode.SHALLOW)

    assert not result.equivalent
    assert result.differences[0].path == "items.type"


def test_type_lists_compare_as_sets() -> None:
    assert _compare(_sample_schemas(), "Nullable", "NullableToo", EquivalenceMode.DEEP).equivalent


def test_pointers_are_resolved_before_comparing() -> None:
    schemas = _sample_schemas()

    assert _compare(schemas, "AddressAlias", "Location", EquivalenceMode.DEEP).equivalent


def test_unresolved_pointers_compare_by_target() -> None:
    left = Schema(type="object", properties={"owner": Schema(ref=f"{PREFIX}External")})
    right = Schema(type="object", properties={"owner": Schema(ref=f"{PREFIX}Other")})

    result = compare_schemas(left, right, EquivalenceMode.DEEP)

    assert not result.equivalent
    assert "properties.owner.$ref: unresolved reference mismatch" in result.describe()
    dangling = Schema(ref=f"{PREFIX}External")
    assert not compare_schemas(dangling, left, EquivalenceMode.DEEP).equivalent


def test_empty_schemas_are_never_equivalent() -> None:
    schemas = _sample_schemas()

    assert is_empty_schema(schemas["Blank"])
    assert not is_empty_schema(schemas["Tags"])
    for mode in EquivalenceMode:
        assert not _compare(schemas, "Blank", "Blank", mode).equivalent
        assert not compare_schemas(Schema(), Schema(), mode).equivalent


def test_mode_none_never_reports_equivalence() -> None:
    schemas = _sample_schemas()

    assert not _compare(schemas, "Address", "Address", EquivalenceMode.NONE).equivalent


def test_cyclic_schemas_terminate() -> None:
    schemas = _schemas(
        {
            "Node": {"type": "object", "properties": {"next": {"$ref": f"{PREFIX}Node"}}},
            "Link": {"type": "object", "properties": {"next": {"$ref": f"{PREFIX}Link"}}},
        }
    )

    assert _compare(schemas, "Node", "Link", EquivalenceMode.DEEP).equivalent


@pytest.mark.parametrize("mode", [EquivalenceMode.SHALLOW, EquivalenceMode.DEEP])
def test_comparison_is_reflexive_and_symmetric(mode: EquivalenceMode) -> None:
    schemas = _sample_schemas()
    non_empty = [name for name in schemas if not is_empty_schema(schemas[name])]

    for name in non_empty:
        assert _compare(schemas, name, name, mode).equivalent
    for left, right in itertools.combinations(schemas, 2):
        forward = _compare(schemas, left, right, mode).equivalent
        backward = _compare(schemas, right, left, mode).equivalent
        assert forward == backward


def test_deep_equivalence_implies_shallow_equivalence() -> None:
    schemas = _sample_schemas()

    for left, right in itertools.product(schemas, repeat=2):
        if _compare(schemas, left, right, EquivalenceMode.DEEP).equivalent:
            assert _compare(schemas, left, right, EquivalenceMode.SHALLOW).equivalent


def test_describe_lists_each_difference() -> None:
    schemas = _schemas(
        {
            "A": {"type": "object", "properties": {"id": {"type": "string"}}},
            "B": {"type": "string", "format": "uuid"},
        }
    )

    description = _compare(schemas, "A", "B", EquivalenceMode.SHALLOW).describe()

    assert "type: type mismatch" in description
    assert "format: format mismatch" in description
    assert "properties: property names mismatch" in description
