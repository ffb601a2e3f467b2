"""Schema reference rewriting service."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from oas_joiner.document_model.document_models import (
    Callback,
    Components,
    Document,
    Header,
    MediaType,
    Operation,
    Parameter,
    PathItem,
    RequestBody,
    Response,
    Schema,
    escape_pointer_token,
    iter_child_schemas,
)


@dataclass(frozen=True)
class RewriteSummary:
    """Counters of one rewrite pass."""

    visited_count: int
    rewritten_count: int


def rewrite_document_references(
    document: Document, renames: Mapping[str, str], *, prefix: str | None = None
) -> RewriteSummary:
    """Point every schema reference of a document at its renamed target, in place.

    Covers container schemas, named components, paths and webhooks, including
    discriminator mappings stored as full pointers or bare names. Container
    keys are left alone; see `rename_schema_entry`.
    """
    rewrite = _RewritePass(renames=renames, prefix=prefix or document.schema_ref_prefix)
    if renames:
        rewrite.components(document.components)
        rewrite.path_items(document.paths.values())
        rewrite.path_items(document.webhooks.values())
    return rewrite.summary()


def rewrite_schema_references(
    schemas: Iterable[Schema], renames: Mapping[str, str], *, prefix: str
) -> RewriteSummary:
    """Rewrite references inside standalone schema trees, in place."""
    rewrite = _RewritePass(renames=renames, prefix=prefix)
    if renames:
        for schema in schemas:
            rewrite.schema(schema)
    return rewrite.summary()


def rename_schema_entry(components: Components, old_name: str, new_name: str) -> None:
    """Rename one schema container key in place, keeping declaration order."""
    schemas = components.schemas
    if old_name not in schemas:
        raise KeyError(old_name)
    if new_name in schemas and new_name != old_name:
        raise ValueError(f"Schema '{new_name}' already exists.")
    entries = list(schemas.items())
    schemas.clear()
    for name, schema in entries:
        schemas[new_name if name == old_name else name] = schema


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


@dataclass
class _RewritePass:
    """Traversal state shared by one pass; nodes are tracked by identity."""

    renames: Mapping[str, str]
    prefix: str
    visited: set[int] = field(default_factory=set)
    rewritten_count: int = 0

    def summary(self) -> RewriteSummary:
        return RewriteSummary(visited_count=len(self.visited), rewritten_count=self.rewritten_count)

    def ref(self, ref: str) -> str:
        if not ref.startswith(self.prefix):
            return ref
        token, separator, rest = ref[len(self.prefix) :].partition("/")
        new_name = self.renames.get(_unescape(token))
        if new_name is None:
            return ref
        self.rewritten_count += 1
        return f"{self.prefix}{escape_pointer_token(new_name)}{separator}{rest}"

    def schema(self, schema: Schema) -> None:
        pending = [schema]
        while pending:
            node = pending.pop()
            if id(node) in self.visited:
                continue
            self.visited.add(id(node))
            if node.ref is not None:
                node.ref = self.ref(node.ref)
            if node.discriminator is not None:
                self._discriminator_mapping(node.discriminator.mapping)
            pending.extend(reversed(list(iter_child_schemas(node))))

    def _discriminator_mapping(self, mapping: dict[str, str]) -> None:
        for key, target in mapping.items():
            if target.startswith("#"):
                mapping[key] = self.ref(target)
            elif target in self.renames:
                mapping[key] = self.renames[target]
                self.rewritten_count += 1

    def content(self, content: Mapping[str, MediaType]) -> None:
        for media_type in content.values():
            if media_type.schema is not None:
                self.schema(media_type.schema)

    def parameter(self, parameter: Parameter) -> None:
        if parameter.schema is not None:
            self.schema(parameter.schema)
        self.content(parameter.content)

    def request_body(self, request_body: RequestBody) -> None:
        self.content(request_body.content)

    def header(self, header: Header) -> None:
        if header.schema is not None:
            self.schema(header.schema)
        self.content(header.content)

    def response(self, response: Response) -> None:
        if response.schema is not None:
            self.schema(response.schema)
        for header in response.headers.values():
            self.header(header)
        self.content(response.content)

    def callback(self, callback: Callback) -> None:
        self.path_items(callback.expressions.values())

    def operation(self, operation: Operation) -> None:
        for parameter in operation.parameters:
            self.parameter(parameter)
        if operation.request_body is not None:
            self.request_body(operation.request_body)
        for response in operation.responses.values():
            self.response(response)
        for callback in operation.callbacks.values():
            self.callback(callback)

    def path_items(self, path_items: Iterable[PathItem]) -> None:
        for path_item in path_items:
            if id(path_item) in self.visited:
                continue
            self.visited.add(id(path_item))
            for parameter in path_item.parameters:
                self.parameter(parameter)
            for operation in path_item.operations.values():
                self.operation(operation)

    def components(self, components: Components) -> None:
        for schema in components.schemas.values():
            self.schema(schema)
        for parameter in components.parameters.values():
            self.parameter(parameter)
        for response in components.responses.values():
            self.response(response)
        for request_body in components.request_bodies.values():
            self.request_body(request_body)
        for header in components.headers.values():
            self.header(header)
        for callback in components.callbacks.values():
            self.callback(callback)
        self.path_items(components.path_items.values())
