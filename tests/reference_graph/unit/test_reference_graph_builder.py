"""Reference graph builder tests."""

from __future__ import annotations

from oas_joiner.document_model import read_document
from oas_joiner.reference_graph import UsageType, build_reference_graph


def _schema_ref(name: str) -> dict:
    return {"$ref": f"#/components/schemas/{name}"}


def _json_content(name: str) -> dict:
    return {"content": {"application/json": {"schema": _schema_ref(name)}}}


def _shop_document() -> dict:
    return {
        "openapi": "3.1.0",
        "paths": {
            "/orders": {
                "post": {
                    "operationId": "createOrder",
                    "tags": ["orders"],
                    "requestBody": _json_content("Order"),
                    "responses": {
                        "201": {
                            "description": "created",
                            "headers": {"X-Trace": {"schema": _schema_ref("TraceId")}},
                            **_json_content("Order"),
                        }
                    },
                    "callbacks": {
                        "shipped": {
                            "{$request.body#/callback}": {
                                "post": {"requestBody": _json_content("Shipment")}
                            }
                        }
                    },
                }
            },
            "/shipping/{id}": {
                "parameters": [{"name": "id", "in": "path", "schema": _schema_ref("ShipmentId")}],
                "get": {"responses": {"200": _json_content("Shipment")}},
            },
        },
        "webhooks": {"orderPaid": {"post": {"requestBody": _json_content("Payment")}}},
        "components": {
            "schemas": {
                "Order": {
                    "type": "object",
                    "properties": {
                        "address": _schema_ref("Address"),
                        "lines": {"type": "array", "items": _schema_ref("OrderLine")},
                    },
                },
                "OrderLine": {"type": "object"},
                "Address": {"type": "object", "properties": {"country": _schema_ref("Country")}},
                "Country": {"type": "string"},
                "Shipment": {"type": "object", "properties": {"to": _schema_ref("Address")}},
                "ShipmentId": {"type": "string"},
                "TraceId": {"type": "string"},
                "Payment": {"type": "object"},
                "Orphan": {"type": "object"},
            }
        },
    }


def test_direct_operation_references_carry_usage_and_metadata() -> None:
    graph = build_reference_graph(read_document(_shop_document()))

    order_refs = graph.lineage("Order")
    assert [(ref.path, ref.method, ref.usage_type) for ref in order_refs] == [
        ("/orders", "post", UsageType.REQUEST),
        ("/orders", "post", UsageType.RESPONSE),
    ]
    assert order_refs[0].media_type == "application/json"
    assert order_refs[1].status_code == "201"
    assert order_refs[0].operation_id == "createOrder"
    assert order_refs[0].tags == ("orders",)

    trace_ref = graph.lineage("TraceId")[0]
    assert trace_ref.usage_type is UsageType.HEADER
    assert trace_ref.param_name == "X-Trace"

    parameter_ref = graph.lineage("ShipmentId")[0]
    assert parameter_ref.usage_type is UsageType.PARAMETER
    assert parameter_ref.param_name == "id"


def test_lineage_follows_schema_to_schema_edges_transitively() -> None:
    graph = build_reference_graph(read_document(_shop_document()))

    country_operations = {(ref.path, ref.method) for ref in graph.lineage("Country")}

    assert country_operations == {
        ("/orders", "post"),
        ("/orders->shipped:{$request.body#/callback}", "post"),
        ("/shipping/{id}", "get"),
    }
    assert graph.referencing_schemas("Address") == ("Order", "Shipment")


def test_callbacks_and_webhooks_use_synthetic_paths() -> None:
    graph = build_reference_graph(read_document(_shop_document()))

    shipment_refs = graph.lineage("Shipment")
    callback_ref = shipment_refs[0]
    assert callback_ref.path == "/orders->shipped:{$request.body#/callback}"
    assert callback_ref.usage_type is UsageType.CALLBACK
    assert shipment_refs[1].path == "/shipping/{id}"

    payment_ref = graph.lineage("Payment")[0]
    assert payment_ref.path == "webhook:orderPaid"
    assert payment_ref.usage_type is UsageType.REQUEST


def test_unreferenced_and_unknown_schemas_have_empty_lineage() -> None:
    graph = build_reference_graph(read_document(_shop_document()))

    assert graph.lineage("Orphan") == ()
    assert graph.lineage("Missing") == ()
    assert graph.has_schema("Orphan")
    assert not graph.has_schema("Missing")


def test_lineage_is_cached_per_schema() -> None:
    graph = build_reference_graph(read_document(_shop_document()))

    assert graph.lineage("Address") is graph.lineage("Address")


def test_lineage_cache_belongs_to_one_graph() -> None:
    shop = build_reference_graph(read_document(_shop_document()))
    bare = build_reference_graph(
        read_document(
            {"openapi": "3.1.0", "components": {"schemas": {"Address": {"type": "object"}}}}
        )
    )

    assert shop.lineage("Address")
    assert bare.lineage("Address") == ()
    assert shop.graph.has_node(("schema", "Address"))


def test_self_referencing_schema_terminates() -> None:
    document = read_document(
        {
            "openapi": "3.0.0",
            "paths": {"/nodes": {"get": {"responses": {"200": _json_content("Node")}}}},
            "components": {
                "schemas": {
                    "Node": {
                        "type": "object",
                        "properties": {
                            "children": {"type": "array", "items": _schema_ref("Node")}
                        },
                    }
                }
            },
        }
    )

    graph = build_reference_graph(document)

    assert [(ref.path, ref.method) for ref in graph.lineage("Node")] == [("/nodes", "get")]


def test_flat_body_parameters_count_as_requests() -> None:
    document = read_document(
        {
            "swagger": "2.0",
            "paths": {
                "/pets": {
                    "post": {
                        "parameters": [
                            {"name": "pet", "in": "body", "schema": {"$ref": "#/definitions/Pet"}}
                        ],
                        "responses": {"200": {"schema": {"$ref": "#/definitions/Pet"}}},
                    }
                }
            },
            "definitions": {"Pet": {"type": "object"}},
        }
    )

    graph = build_reference_graph(document)

    assert [ref.usage_type for ref in graph.lineage("Pet")] == [
        UsageType.REQUEST,
        UsageType.RESPONSE,
    ]


def test_discriminator_bare_name_mapping_creates_schema_edge() -> None:
    document = read_document(
        {
            "openapi": "3.0.0",
            "paths": {"/pets": {"get": {"responses": {"200": _json_content("Pet")}}}},
            "components": {
                "schemas": {
                    "Pet": {
                        "type": "object",
                        "discriminator": {"propertyName": "kind", "mapping": {"cat": "Cat"}},
                    },
                    "Cat": {"type": "object"},
                }
            },
        }
    )

    graph = build_reference_graph(document)

    assert graph.referencing_schemas("Cat") == ("Pet",)
    assert [ref.path for ref in graph.lineage("Cat")] == ["/pets"]
