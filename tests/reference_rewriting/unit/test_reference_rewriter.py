"""Schema reference rewriting tests."""

from __future__ import annotations

import json

import pytest
from oas_joiner.document_model import Schema, document_to_mapping, read_document
from oas_joiner.reference_rewriting import (
    rename_schema_entry,
    rewrite_document_references,
    rewrite_schema_references,
)

USER_REF = "#/components/schemas/User"


def _user() -> dict:
    return {"$ref": USER_REF}


def _json(schema: dict) -> dict:
    return {"content": {"application/json": {"schema": schema}}}


def _document_with_every_reference_form():
    return read_document(
        {
            "openapi": "3.1.0",
            "paths": {
                "/users/{id}": {
                    "parameters": [{"name": "id", "in": "path", "schema": _user()}],
                    "post": {
                        "parameters": [{"$ref": "#/components/parameters/Filter"}],
                        "requestBody": _json({"allOf": [_user(), {"type": "object"}]}),
                        "responses": {
                            "200": {
                                "description": "ok",
                                "headers": {"X-User": {"schema": _user()}},
                                **_json({"type": "array", "items": _user()}),
                            },
                            "404": {"$ref": "#/components/responses/Missing"},
                        },
                        "callbacks": {
                            "changed": {
                                "{$request.body#/url}": {"post": {"requestBody": _json(_user())}}
                            }
                        },
                    },
                }
            },
            "webhooks": {"userCreated": {"post": {"requestBody": _json(_user())}}},
            "components": {
                "schemas": {
                    "User": {"type": "object", "properties": {"id": {"type": "string"}}},
                    "UserList": {"type": "array", "items": _user()},
                    "UserId": {"$ref": f"{USER_REF}/properties/id"},
                    "Pet": {
                        "oneOf": [_user()],
                        "additionalProperties": _user(),
                        "discriminator": {
                            "propertyName": "kind",
                            "mapping": {"pointer": USER_REF, "bare": "User", "other": "Cat"},
                        },
                    },
                    "Cat": {"type": "object"},
                },
                "parameters": {"Filter": {"name": "filter", "in": "query", "schema": _user()}},
                "responses": {"Missing": {"description": "missing", **_json(_user())}},
            },
        }
    )


def test_every_reference_form_points_at_the_renamed_schema() -> None:
    document = _document_with_every_reference_form()

    summary = rewrite_document_references(document, {"User": "Account"})

    text = json.dumps(document_to_mapping(document))
    assert f'"{USER_REF}"' not in text
    assert text.count('"#/components/schemas/Account"') == 12
    assert document.components.schemas["UserId"].ref == "#/components/schemas/Account/properties/id"
    mapping = document.components.schemas["Pet"].discriminator.mapping
    assert mapping == {"pointer": "#/components/schemas/Account", "bare": "Account", "other": "Cat"}
    assert summary.rewritten_count == 14


def test_container_keys_and_unrelated_names_are_untouched() -> None:
    document = _document_with_every_reference_form()

    rewrite_document_references(document, {"User": "Account"})

    assert "User" in document.components.schemas
    assert "Account" not in document.components.schemas
    assert document.components.schemas["Cat"].ref is None


def test_empty_renames_touch_nothing() -> None:
    document = _document_with_every_reference_form()

    summary = rewrite_document_references(document, {})

    assert (summary.visited_count, summary.rewritten_count) == (0, 0)


def test_names_with_slashes_are_pointer_escaped() -> None:
    schema = Schema(ref="#/components/schemas/v1~1User")

    rewrite_schema_references(
        [schema], {"v1/User": "v2/User"}, prefix="#/components/schemas/"
    )

    assert schema.ref == "#/components/schemas/v2~1User"


def test_flat_documents_use_the_definitions_prefix() -> None:
    document = read_document(
        {
            "swagger": "2.0",
            "paths": {
                "/pets": {"get": {"responses": {"200": {"schema": {"$ref": "#/definitions/Pet"}}}}}
            },
            "definitions": {"Pet": {"type": "object"}},
        }
    )

    rewrite_document_references(document, {"Pet": "Animal"})

    response = document.paths["/pets"].operations["get"].responses["200"]
    assert response.schema.ref == "#/definitions/Animal"


def test_cyclic_schema_graph_terminates_and_visits_each_node_once() -> None:
    node = Schema(type="object")
    child = Schema(ref=USER_REF)
    node.properties["self"] = node
    node.properties["user"] = child
    child_list = Schema(type="array", items=node)
    node.properties["children"] = child_list

    summary = rewrite_schema_references(
        [node, child_list], {"User": "Account"}, prefix="#/components/schemas/"
    )

    assert child.ref == "#/components/schemas/Account"
    assert summary.visited_count == 3
    assert summary.rewritten_count == 1


def test_shared_schema_instances_are_rewritten_once() -> None:
    shared = Schema(ref=USER_REF)
    holder = Schema(type="object", properties={"a": shared, "b": shared})

    summary = rewrite_schema_references(
        [holder, shared], {"User": "Account"}, prefix="#/components/schemas/"
    )

    assert summary.rewritten_count == 1
    assert shared.ref == "#/components/schemas/Account"


def test_rename_schema_entry_keeps_declaration_order() -> None:
    document = read_document(
        {"openapi": "3.0.0", "components": {"schemas": {"A": {}, "User": {}, "Z": {}}}}
    )
    user = document.components.schemas["User"]

    rename_schema_entry(document.components, "User", "User_orders")

    assert list(document.components.schemas) == ["A", "User_orders", "Z"]
    assert document.components.schemas["User_orders"] is user


def test_rename_schema_entry_rejects_missing_and_taken_names() -> None:
    document = read_document(
        {"openapi": "3.0.0", "components": {"schemas": {"A": {}, "B": {}}}}
    )

    with pytest.raises(KeyError):
        rename_schema_entry(document.components, "Missing", "C")
    with pytest.raises(ValueError, match="Schema 'B' already exists."):
        rename_schema_entry(document.components, "A", "B")
