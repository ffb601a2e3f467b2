from __future__ import annotations

import pytest
from oas_joiner.document_model import read_document
from oas_joiner.reference_graph import (
    OperationRef,
    PrimaryOperationPolicy,
    UsageType,
    build_reference_graph,
    select_primary_operation,
)


def _ref(path: str, method: str, order: int, **extra) -> OperationRef:
    return OperationRef(
        path=path, method=method, usage_type=UsageType.RESPONSE, order=order, **extra
    )


def test_first_encountered_picks_earliest_traversal_order() -> None:
    refs = [_ref("/b", "get", 3), _ref("/a", "get", 1), _ref("/c", "get", 2)]

    primary = select_primary_operation(refs, PrimaryOperationPolicy.FIRST_ENCOUNTERED)

    assert primary.path == "/a"


def test_most_specific_prefers_operation_id_then_tags() -> None:
    bare = _ref("/bare", "get", 0)
    tagged = _ref("/tagged", "get", 1, tags=("pets",))
    identified = _ref("/identified", "get", 2, operation_id="getIdentified")
    other_identified = _ref("/other", "get", 3, operation_id="getOther")

    policy = PrimaryOperationPolicy.MOST_SPECIFIC
    ranked = [bare, tagged, other_identified, identified]
    assert select_primary_operation(ranked, policy) is identified
    assert select_primary_operation([bare, tagged], policy) is tagged
    assert select_primary_operation([bare], policy) is bare


def test_alphabetical_sorts_by_path_and_method_concatenation() -> None:
    refs = [_ref("/shipping", "get", 0), _ref("/orders", "post", 1)]

    primary = select_primary_operation(refs, PrimaryOperationPolicy.ALPHABETICAL)

    assert (primary.path, primary.method) == ("/orders", "post")


@pytest.mark.parametrize("policy", list(PrimaryOperationPolicy))
def test_every_policy_ignores_input_order(policy: PrimaryOperationPolicy) -> None:
    refs = [
        _ref("/x", "put", 4, tags=("x",)),
        _ref("/a", "get", 2),
        _ref("/m", "post", 0, operation_id="createM"),
        _ref("/a", "delete", 1),
    ]

    forward = select_primary_operation(refs, policy)
    backward = select_primary_operation(list(reversed(refs)), policy)

    assert forward is backward


def test_empty_lineage_is_rejected() -> None:
    with pytest.raises(ValueError, match="empty lineage"):
        select_primary_operation([], PrimaryOperationPolicy.FIRST_ENCOUNTERED)


def test_alphabetical_policy_on_a_built_graph_selects_post_orders() -> None:
    schema_ref = {"$ref": "#/components/schemas/Parcel"}
    document = read_document(
        {
            "openapi": "3.0.3",
            "paths": {
                "/shipping": {
                    "get": {
                        "responses": {
                            "200": {"content": {"application/json": {"schema": schema_ref}}}
                        }
                    }
                },
                "/orders": {
                    "post": {
                        "requestBody": {"content": {"application/json": {"schema": schema_ref}}},
                        "responses": {"204": {"description": "accepted"}},
                    }
                },
            },
            "components": {"schemas": {"Parcel": {"type": "object"}}},
        }
    )
    lineage = build_reference_graph(document).lineage("Parcel")

    alphabetical = select_primary_operation(lineage, PrimaryOperationPolicy.ALPHABETICAL)
    first = select_primary_operation(lineage, PrimaryOperationPolicy.FIRST_ENCOUNTERED)

    assert (alphabetical.path, alphabetical.method) == ("/orders", "post")
    assert (first.path, first.method) == ("/shipping", "get")
