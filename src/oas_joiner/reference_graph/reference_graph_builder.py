"""Reference lineage graph service."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from oas_joiner.document_model.document_models import (
    Components,
    Document,
    DocumentFamily,
    Header,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    Schema,
    iter_child_schemas,
)

from .graph_models import OperationRef, UsageType

_LOGGER = logging.getLogger("oas_joiner.reference_graph")
_LOGGER.addHandler(logging.NullHandler())

OPERATION_NODE = "operation"
SCHEMA_NODE = "schema"


class ReferenceGraph:
    """Operation-to-schema and schema-to-schema edges of one document."""

    def __init__(self, graph: nx.MultiDiGraph) -> None:
        self._graph = graph
        self._lineage_cache: dict[tuple[str, str], tuple[OperationRef, ...]] = {}

    @property
    def graph(self) -> nx.MultiDiGraph:
        return self._graph

    def has_schema(self, schema_name: str) -> bool:
        return self._graph.has_node((SCHEMA_NODE, schema_name))

    def referencing_schemas(self, schema_name: str) -> tuple[str, ...]:
        """Names of schemas holding a direct reference to the given schema."""
        node = (SCHEMA_NODE, schema_name)
        if not self._graph.has_node(node):
            return ()
        names = {
            source[1] for source in self._graph.predecessors(node) if source[0] == SCHEMA_NODE
        }
        return tuple(sorted(names))

    def lineage(self, schema_name: str) -> tuple[OperationRef, ...]:
        """Operations reaching a schema directly or through intermediate schemas.

        Results are ordered by traversal order, de-duplicated per path, method,
        usage and status code, and cached per schema node. A container entry is
        one node, so its name identifies the schema within one graph.
        """
        node = (SCHEMA_NODE, schema_name)
        cached = self._lineage_cache.get(node)
        if cached is not None:
            return cached
        _LOGGER.debug("resolving lineage of schema %s", schema_name)

        lineage: tuple[OperationRef, ...] = ()
        if self._graph.has_node(node):
            targets = {node}
            targets.update(
                ancestor
                for ancestor in nx.ancestors(self._graph, node)
                if ancestor[0] == SCHEMA_NODE
            )
            refs = sorted(
                (
                    ref
                    for source, _target, ref in self._graph.in_edges(targets, data="ref")
                    if source[0] == OPERATION_NODE
                ),
                key=lambda ref: ref.order,
            )
            seen: set[tuple[str, str, str, str]] = set()
            unique: list[OperationRef] = []
            for ref in refs:
                if ref.identity not in seen:
                    seen.add(ref.identity)
                    unique.append(ref)
            lineage = tuple(unique)
        self._lineage_cache[node] = lineage
        return lineage


def build_reference_graph(document: Document) -> ReferenceGraph:
    """Build the reference graph of one document.

    Paths are traversed in declaration order with methods in canonical
    order, followed by webhooks; callbacks are traversed with their parent
    operation.
    """
    builder = _GraphBuilder(
        components=document.components,
        prefix=document.schema_ref_prefix,
        family=document.family,
    )
    for name in document.components.schemas:
        builder.graph.add_node((SCHEMA_NODE, name))
    for name, schema in document.components.schemas.items():
        builder.record_schema_edges(name, schema)
    for path, path_item in document.paths.items():
        builder.record_path_item(path, path_item)
    for name, path_item in document.webhooks.items():
        builder.record_path_item(f"webhook:{name}", path_item)
    return ReferenceGraph(builder.graph)


@dataclass(frozen=True)
class _OperationScope:
    """Identity of the operation whose references are being recorded."""

    path: str
    method: str
    operation_id: str
    tags: tuple[str, ...]
    in_callback: bool = False


@dataclass
class _GraphBuilder:
    """Mutable collector for one graph build."""

    components: Components
    prefix: str
    family: DocumentFamily
    graph: nx.MultiDiGraph = field(default_factory=nx.MultiDiGraph)
    order: int = 0

    def schema_name(self, ref: str) -> str | None:
        if not ref.startswith(self.prefix):
            return None
        token = ref[len(self.prefix) :].split("/", 1)[0]
        name = token.replace("~1", "/").replace("~0", "~")
        return name or None

    def referenced_names(self, schema: Schema) -> Iterator[tuple[str, str]]:
        """Yield (schema name, location) for every pointer reachable inside a schema tree."""
        visited: set[int] = set()
        pending: list[tuple[Schema, str]] = [(schema, "")]
        while pending:
            node, location = pending.pop()
            if id(node) in visited:
                continue
            visited.add(id(node))
            if node.ref is not None:
                name = self.schema_name(node.ref)
                if name is not None:
                    yield name, location or "$ref"
            if node.discriminator is not None:
                for value, target in node.discriminator.mapping.items():
                    name = self.schema_name(target) if target.startswith("#") else target
                    if name is not None and name in self.components.schemas:
                        yield name, f"discriminator.mapping.{value}"
            pending.extend(
                (child, _child_location(location, index))
                for index, child in enumerate(iter_child_schemas(node))
            )

    def record_schema_edges(self, name: str, schema: Schema) -> None:
        for target, location in self.referenced_names(schema):
            self.graph.add_edge((SCHEMA_NODE, name), (SCHEMA_NODE, target), location=location)

    def record_operation_schema(
        self,
        scope: _OperationScope,
        schema: Schema | None,
        usage: UsageType,
        *,
        status_code: str = "",
        param_name: str = "",
        media_type: str = "",
    ) -> None:
        if schema is None:
            return
        operation_node = (OPERATION_NODE, scope.path, scope.method)
        for target, _location in self.referenced_names(schema):
            ref = OperationRef(
                path=scope.path,
                method=scope.method,
                usage_type=UsageType.CALLBACK if scope.in_callback else usage,
                order=self.order,
                operation_id=scope.operation_id,
                tags=scope.tags,
                status_code=status_code,
                param_name=param_name,
                media_type=media_type,
            )
            self.order += 1
            self.graph.add_edge(operation_node, (SCHEMA_NODE, target), ref=ref)

    def record_path_item(
        self, path: str, path_item: PathItem, *, in_callback: bool = False
    ) -> None:
        path_item = self._resolve_component(path_item, "pathItems", self.components.path_items)
        for method, operation in path_item.canonical_operations():
            scope = _OperationScope(
                path=path,
                method=method,
                operation_id=operation.operation_id or "",
                tags=tuple(operation.tags),
                in_callback=in_callback,
            )
            self.graph.add_node((OPERATION_NODE, path, method))
            for parameter in [*path_item.parameters, *operation.parameters]:
                self._record_parameter(scope, parameter)
            self._record_request_body(scope, operation)
            for status_code, response in operation.responses.items():
                self._record_response(scope, status_code, response)
            self._record_callbacks(scope, operation)

    def _record_parameter(self, scope: _OperationScope, parameter: Parameter) -> None:
        parameter = self._resolve_component(parameter, "parameters", self.components.parameters)
        if parameter.is_body:
            self.record_operation_schema(scope, parameter.schema, UsageType.REQUEST)
            return
        name = parameter.name or ""
        self.record_operation_schema(scope, parameter.schema, UsageType.PARAMETER, param_name=name)
        self._record_content(scope, parameter.content, UsageType.PARAMETER, param_name=name)

    def _record_request_body(self, scope: _OperationScope, operation: Operation) -> None:
        if operation.request_body is None:
            return
        request_body: RequestBody = self._resolve_component(
            operation.request_body, "requestBodies", self.components.request_bodies
        )
        self._record_content(scope, request_body.content, UsageType.REQUEST)

    def _record_response(
        self, scope: _OperationScope, status_code: str, response: Response
    ) -> None:
        response = self._resolve_component(response, "responses", self.components.responses)
        self.record_operation_schema(
            scope, response.schema, UsageType.RESPONSE, status_code=status_code
        )
        self._record_content(scope, response.content, UsageType.RESPONSE, status_code=status_code)
        for header_name, header in response.headers.items():
            header = self._resolve_component(header, "headers", self.components.headers)
            self._record_header(scope, header, status_code, header_name)

    def _record_header(
        self, scope: _OperationScope, header: Header, status_code: str, header_name: str
    ) -> None:
        self.record_operation_schema(
            scope, header.schema, UsageType.HEADER, status_code=status_code, param_name=header_name
        )
        self._record_content(
            scope, header.content, UsageType.HEADER, status_code=status_code, param_name=header_name
        )

    def _record_content(
        self,
        scope: _OperationScope,
        content: Mapping[str, MediaType],
        usage: UsageType,
        *,
        status_code: str = "",
        param_name: str = "",
    ) -> None:
        for media_type, entry in content.items():
            self.record_operation_schema(
                scope,
                entry.schema,
                usage,
                status_code=status_code,
                param_name=param_name,
                media_type=media_type,
            )

    def _record_callbacks(self, scope: _OperationScope, operation: Operation) -> None:
        for callback_name, callback in operation.callbacks.items():
            callback = self._resolve_component(callback, "callbacks", self.components.callbacks)
            for expression, path_item in callback.expressions.items():
                self.record_path_item(
                    f"{scope.path}->{callback_name}:{expression}", path_item, in_callback=True
                )

    def _resolve_component(self, entry: Any, section: str, entries: Mapping[str, Any]) -> Any:
        """Follow a local component pointer one level; unknown pointers keep the entry."""
        ref = getattr(entry, "ref", None)
        if not ref:
            return entry
        flat_sections = {"parameters": "#/parameters/", "responses": "#/responses/"}
        if self.family is DocumentFamily.FLAT:
            prefix = flat_sections.get(section)
        else:
            prefix = f"#/components/{section}/"
        if prefix is None or not ref.startswith(prefix):
            return entry
        name = ref[len(prefix) :].replace("~1", "/").replace("~0", "~")
        return entries.get(name, entry)


def _child_location(location: str, index: int) -> str:
    return f"{location}.{index}" if location else str(index)
