"""Reference graph domain exports."""

from .graph_models import OperationRef, PrimaryOperationPolicy, UsageType
from .primary_operation import select_primary_operation
from .reference_graph_builder import ReferenceGraph, build_reference_graph

__all__ = [
    "OperationRef",
    "PrimaryOperationPolicy",
    "UsageType",
    "select_primary_operation",
    "ReferenceGraph",
    "build_reference_graph",
]
