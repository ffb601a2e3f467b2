"""Primary operation selection service."""

from __future__ import annotations

from collections.abc import Sequence

from .graph_models import OperationRef, PrimaryOperationPolicy


def select_primary_operation(
    refs: Sequence[OperationRef], policy: PrimaryOperationPolicy
) -> OperationRef:
    """Pick the operation that supplies rename context for a lineage.

    Every policy is a total order that ends in the traversal order, so the
    result never depends on the order of `refs`.
    """
    if not refs:
        raise ValueError("Cannot select a primary operation from an empty lineage.")
    if policy is PrimaryOperationPolicy.ALPHABETICAL:
        return min(refs, key=lambda ref: (ref.path + ref.method, ref.order))
    if policy is PrimaryOperationPolicy.MOST_SPECIFIC:
        return min(refs, key=lambda ref: (_specificity_rank(ref), ref.order))
    return min(refs, key=lambda ref: ref.order)


def _specificity_rank(ref: OperationRef) -> int:
    if ref.operation_id:
        return 0
    if ref.tags:
        return 1
    return 2
