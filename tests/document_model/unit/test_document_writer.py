"""Document writer tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from oas_joiner.document_model import (
    DocumentError,
    Schema,
    SourceDocument,
    SourceFormat,
    copy_document_shell,
    document_to_mapping,
    read_document,
    render_document,
    schema_to_mapping,
    write_document,
)


def _namespaced_document() -> dict:
    return {
        "openapi": "3.0.3",
        "info": {"title": "Orders", "version": "2"},
        "tags": [{"name": "orders"}],
        "paths": {
            "/orders": {
                "post": {
                    "operationId": "createOrder",
                    "requestBody": {
                        "content": {
                            "application/json": {
                                "schema": {"$ref": "#/components/schemas/Order"}
                            }
                        }
                    },
                    "responses": {"201": {"description": "created"}},
                }
            }
        },
        "components": {
            "schemas": {
                "Order": {
                    "type": "object",
                    "additionalProperties": False,
                    "properties": {"lines": {"type": "array", "items": {"type": "string"}}},
                }
            }
        },
        "x-owner": "orders-team",
    }


def test_document_to_mapping_preserves_read_content() -> None:
    raw = _namespaced_document()

    assert document_to_mapping(read_document(raw)) == raw


def test_flat_document_is_written_with_swagger_root_keys() -> None:
    raw = {
        "swagger": "2.0",
        "info": {"title": "Pets", "version": "1"},
        "host": "pets.example.com",
        "paths": {},
        "definitions": {"Pet": {"type": "object", "discriminator": "kind"}},
    }

    mapping = document_to_mapping(read_document(raw))

    assert mapping["swagger"] == "2.0"
    assert "openapi" not in mapping
    assert mapping["host"] == "pets.example.com"
    assert mapping["definitions"]["Pet"]["discriminator"] == "kind"
    assert "components" not in mapping


def test_writes_json_and_yaml_in_source_format(tmp_path: Path) -> None:
    document = read_document(_namespaced_document())

    json_path = write_document(
        SourceDocument(document, "orders.json", SourceFormat.JSON), tmp_path / "out" / "a.json"
    )
    yaml_path = write_document(
        SourceDocument(document, "orders.yaml", SourceFormat.YAML), tmp_path / "out" / "a.yaml"
    )

    assert json_path == (tmp_path / "out" / "a.json").resolve()
    assert json.loads(json_path.read_text(encoding="utf-8"))["info"]["title"] == "Orders"
    parsed = yaml.safe_load(yaml_path.read_text(encoding="utf-8"))
    assert list(parsed)[:2] == ["openapi", "info"]


def test_render_document_keeps_declaration_order() -> None:
    raw = _namespaced_document()
    raw["components"]["schemas"] = {"Zeta": {"type": "string"}, "Alpha": {"type": "string"}}
    document = read_document(raw)

    rendered = render_document(SourceDocument(document, "orders.yaml"))

    assert rendered.index("Zeta") < rendered.index("Alpha")


def test_in_memory_schema_cycle_is_rejected() -> None:
    node = Schema(type="object")
    node.properties["self"] = node

    with pytest.raises(DocumentError, match="cycle"):
        schema_to_mapping(node)


def test_document_shell_copy_shares_nodes_but_not_containers() -> None:
    document = read_document(_namespaced_document())

    copy = copy_document_shell(document)
    copy.components.schemas["Extra"] = Schema(type="string")
    copy.tags.append({"name": "extra"})

    assert copy.components.schemas["Order"] is document.components.schemas["Order"]
    assert copy.paths["/orders"] is document.paths["/orders"]
    assert "Extra" not in document.components.schemas
    assert document.tags == [{"name": "orders"}]
