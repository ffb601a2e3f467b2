"""Schema rename decision service."""

from __future__ import annotations

from dataclasses import dataclass

from oas_joiner.reference_graph import PrimaryOperationPolicy, ReferenceGraph

from .rename_context import RenameContext, build_rename_context
from .template_engine import Template, render_template


@dataclass(frozen=True)
class RenameDecision:
    """New name for a schema and the context it was derived from."""

    old_name: str
    new_name: str
    context: RenameContext | None
    prefixed: bool = False

    @property
    def degraded(self) -> bool:
        """True when a template rename had no operation context to draw from."""
        return (
            not self.prefixed
            and self.context is not None
            and not self.context.has_operation_context
        )


def prefixed_schema_name(prefix: str, name: str) -> str:
    return f"{prefix}_{name}"


def decide_schema_name(
    name: str,
    *,
    source_path: str,
    index: int,
    template: Template,
    prefix: str | None = None,
    graph: ReferenceGraph | None = None,
    policy: PrimaryOperationPolicy = PrimaryOperationPolicy.FIRST_ENCOUNTERED,
) -> RenameDecision:
    """Name the losing side of a schema collision.

    A configured namespace prefix wins over the template. The template is
    evaluated against a context built from the graph when one is given.
    """
    if prefix:
        return RenameDecision(
            old_name=name,
            new_name=prefixed_schema_name(prefix, name),
            context=None,
            prefixed=True,
        )
    context = build_rename_context(name, source_path, index, graph, policy)
    return RenameDecision(
        old_name=name,
        new_name=render_template(template, context.template_values()),
        context=context,
    )
