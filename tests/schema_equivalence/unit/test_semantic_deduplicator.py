from __future__ import annotations

from oas_joiner.document_model import read_document
from oas_joiner.schema_equivalence import deduplicate_equivalent_schemas

PREFIX = "#/components/schemas/"


def _address() -> dict:
    return {
        "type": "object",
        "required": ["street"],
        "properties": {"street": {"type": "string"}, "city": {"type": "string"}},
    }


def _json(name: str) -> dict:
    return {"content": {"application/json": {"schema": {"$ref": f"{PREFIX}{name}"}}}}


def _document():
    return read_document(
        {
            "openapi": "3.0.0",
            "paths": {
                "/orders": {
                    "post": {
                        "requestBody": _json("ShippingAddress"),
                        "responses": {"200": _json("BillingAddress")},
                    }
                }
            },
            "components": {
                "schemas": {
                    "ShippingAddress": _address(),
                    "Order": {
                        "type": "object",
                        "properties": {
                            "shipping": {"$ref": f"{PREFIX}ShippingAddress"},
                            "billing": {"$ref": f"{PREFIX}BillingAddress"},
                        },
                    },
                    "BillingAddress": _address(),
                    "Address": _address(),
                    "AnyA": {},
                    "AnyB": {"description": "free form"},
                    "AddressAlias": {"$ref": f"{PREFIX}Address"},
                }
            },
        }
    )


def test_equivalent_schemas_fold_into_the_alphabetically_first_name() -> None:
    document = _document()

    outcome = deduplicate_equivalent_schemas(document)

    schemas = document.components.schemas
    assert "ShippingAddress" not in schemas
    assert "BillingAddress" not in schemas
    assert "Address" in schemas
    assert outcome.removed_count == 2
    assert outcome.aliases == {"BillingAddress": "Address", "ShippingAddress": "Address"}
    assert outcome.warnings == (
        "semantic deduplication: consolidated 2 duplicate schema(s) into 'Address': "
        "BillingAddress, ShippingAddress",
    )


def test_references_to_folded_schemas_point_at_the_canonical_schema() -> None:
    document = _document()

    outcome = deduplicate_equivalent_schemas(document)

    order = document.components.schemas["Order"]
    assert order.properties["shipping"].ref == f"{PREFIX}Address"
    assert order.properties["billing"].ref == f"{PREFIX}Address"
    operation = document.paths["/orders"].operations["post"]
    assert operation.request_body.content["application/json"].schema.ref == f"{PREFIX}Address"
    response = operation.responses["200"]
    assert response.content["application/json"].schema.ref == f"{PREFIX}Address"
    assert outcome.rewritten_count == 4


def test_empty_schemas_and_pointer_aliases_are_kept() -> None:
    document = _document()

    deduplicate_equivalent_schemas(document)

    assert {"AnyA", "AnyB", "AddressAlias", "Order"} <= set(document.components.schemas)


def test_schemas_differing_in_nested_constraints_are_not_folded() -> None:
    strict = _address()
    strict["properties"]["street"]["maxLength"] = 10
    document = read_document(
        {"openapi": "3.0.0", "components": {"schemas": {"A": _address(), "B": strict}}}
    )

    outcome = deduplicate_equivalent_schemas(document)

    assert outcome.events == ()
    assert outcome.warnings == ()
    assert set(document.components.schemas) == {"A", "B"}
