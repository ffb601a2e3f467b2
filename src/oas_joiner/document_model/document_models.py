"""Document model entities."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

CANONICAL_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")

CONSTRAINT_KEYS = (
    "const",
    "pattern",
    "minimum",
    "maximum",
    "exclusiveMinimum",
    "exclusiveMaximum",
    "multipleOf",
    "minLength",
    "maxLength",
    "minItems",
    "maxItems",
    "uniqueItems",
    "minProperties",
    "maxProperties",
    "nullable",
    "readOnly",
    "writeOnly",
    "collectionFormat",
)


class DocumentFamily(str, Enum):
    """Schema-container family of an API document."""

    FLAT = "flat"
    NAMESPACED = "namespaced"

    @property
    def schema_ref_prefix(self) -> str:
        if self is DocumentFamily.FLAT:
            return "#/definitions/"
        return "#/components/schemas/"

    @property
    def schema_container_pointer(self) -> str:
        if self is DocumentFamily.FLAT:
            return "/definitions"
        return "/components/schemas"


class SourceFormat(str, Enum):
    """Textual format an API document was read from."""

    JSON = "json"
    YAML = "yaml"


def family_for_version(version: str) -> DocumentFamily:
    """Return the schema-container family for a declared document version."""
    if version == "2.0":
        return DocumentFamily.FLAT
    if version.startswith("3."):
        return DocumentFamily.NAMESPACED
    raise ValueError(f"Unsupported document version '{version}'.")


@dataclass(eq=False)
class Discriminator:
    """Discriminator of a polymorphic schema."""

    property_name: str
    mapping: dict[str, str] = field(default_factory=dict)
    property_name_only: bool = False
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Schema:  # pylint: disable=too-many-instance-attributes
    """One schema node; identity is the object, never the name."""

    ref: str | None = None
    type: Any = None
    format: str | None = None
    title: str | None = None
    description: str | None = None
    example: Any = None
    deprecated: bool | None = None
    required: list[str] = field(default_factory=list)
    enum: list[Any] | None = None
    constraints: dict[str, Any] = field(default_factory=dict)
    properties: dict[str, Schema] = field(default_factory=dict)
    items: Schema | list[Schema] | None = None
    additional_properties: Schema | bool | None = None
    all_of: list[Schema] = field(default_factory=list)
    any_of: list[Schema] = field(default_factory=list)
    one_of: list[Schema] = field(default_factory=list)
    not_: Schema | None = None
    discriminator: Discriminator | None = None
    extensions: dict[str, Any] = field(default_factory=dict)


def iter_child_schemas(schema: Schema) -> Iterator[Schema]:
    """Yield the direct child schemas of a schema node in declaration order."""
    yield from schema.properties.values()
    if isinstance(schema.items, Schema):
        yield schema.items
    elif isinstance(schema.items, list):
        yield from schema.items
    if isinstance(schema.additional_properties, Schema):
        yield schema.additional_properties
    yield from schema.all_of
    yield from schema.any_of
    yield from schema.one_of
    if schema.not_ is not None:
        yield schema.not_


@dataclass(eq=False)
class MediaType:
    """Content entry keyed by media type."""

    schema: Schema | None = None
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Parameter:
    """Operation or path-level parameter."""

    ref: str | None = None
    name: str | None = None
    location: str | None = None
    schema: Schema | None = None
    content: dict[str, MediaType] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def is_body(self) -> bool:
        return self.location == "body"


@dataclass(eq=False)
class RequestBody:
    """Request body of a namespaced-family operation."""

    ref: str | None = None
    content: dict[str, MediaType] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Header:
    """Response header."""

    ref: str | None = None
    schema: Schema | None = None
    content: dict[str, MediaType] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Response:
    """Operation response for one status code."""

    ref: str | None = None
    schema: Schema | None = None
    headers: dict[str, Header] = field(default_factory=dict)
    content: dict[str, MediaType] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Callback:
    """Callback map from runtime expression to path item."""

    ref: str | None = None
    expressions: dict[str, PathItem] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class Operation:
    """One HTTP operation of a path item."""

    operation_id: str | None = None
    tags: list[str] = field(default_factory=list)
    parameters: list[Parameter] = field(default_factory=list)
    request_body: RequestBody | None = None
    responses: dict[str, Response] = field(default_factory=dict)
    callbacks: dict[str, Callback] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)


@dataclass(eq=False)
class PathItem:
    """Operations and shared parameters of one path."""

    ref: str | None = None
    operations: dict[str, Operation] = field(default_factory=dict)
    parameters: list[Parameter] = field(default_factory=list)
    extensions: dict[str, Any] = field(default_factory=dict)

    def canonical_operations(self) -> Iterator[tuple[str, Operation]]:
        """Yield operations in canonical method order."""
        for method in CANONICAL_METHODS:
            operation = self.operations.get(method)
            if operation is not None:
                yield method, operation


@dataclass(eq=False)
class Components:  # pylint: disable=too-many-instance-attributes
    """Named reusable entries; the flat family stores its root-level maps here."""

    schemas: dict[str, Schema] = field(default_factory=dict)
    parameters: dict[str, Parameter] = field(default_factory=dict)
    responses: dict[str, Response] = field(default_factory=dict)
    request_bodies: dict[str, RequestBody] = field(default_factory=dict)
    headers: dict[str, Header] = field(default_factory=dict)
    callbacks: dict[str, Callback] = field(default_factory=dict)
    path_items: dict[str, PathItem] = field(default_factory=dict)
    examples: dict[str, Any] = field(default_factory=dict)
    security_schemes: dict[str, Any] = field(default_factory=dict)
    links: dict[str, Any] = field(default_factory=dict)
    extensions: dict[str, Any] = field(default_factory=dict)


COMPONENT_SECTIONS: Mapping[str, str] = {
    "parameters": "parameters",
    "responses": "responses",
    "request_bodies": "requestBodies",
    "headers": "headers",
    "callbacks": "callbacks",
    "path_items": "pathItems",
    "examples": "examples",
    "security_schemes": "securitySchemes",
    "links": "links",
}


@dataclass(eq=False)
class Document:  # pylint: disable=too-many-instance-attributes
    """In-memory API document of either family."""

    version: str
    info: dict[str, Any] = field(default_factory=dict)
    paths: dict[str, PathItem] = field(default_factory=dict)
    webhooks: dict[str, PathItem] = field(default_factory=dict)
    components: Components = field(default_factory=Components)
    tags: list[dict[str, Any]] = field(default_factory=list)
    servers: list[dict[str, Any]] = field(default_factory=list)
    security: list[dict[str, Any]] = field(default_factory=list)
    host: str | None = None
    base_path: str | None = None
    schemes: list[str] = field(default_factory=list)
    consumes: list[str] = field(default_factory=list)
    produces: list[str] = field(default_factory=list)
    extensions: dict[str, Any] = field(default_factory=dict)

    @property
    def family(self) -> DocumentFamily:
        return family_for_version(self.version)

    @property
    def schema_ref_prefix(self) -> str:
        return self.family.schema_ref_prefix


@dataclass(frozen=True)
class SourceDocument:
    """Document tagged with the identifier and format it was read from."""

    document: Document
    source_path: str
    source_format: SourceFormat = SourceFormat.YAML

    @property
    def version(self) -> str:
        return self.document.version


@dataclass(frozen=True)
class SourceLocation:
    """Line and column of a node in the source text, both one-based."""

    line: int
    column: int


@dataclass(frozen=True)
class SourceMap:
    """Source positions keyed by JSON pointer."""

    source_path: str
    locations: Mapping[str, SourceLocation]

    def describe(self, pointer: str) -> str:
        """Return `source:line:column` for a pointer, or `source#pointer` when unknown."""
        location = self.locations.get(pointer)
        if location is None:
            return f"{self.source_path}#{pointer}"
        return f"{self.source_path}:{location.line}:{location.column}"


def escape_pointer_token(token: str) -> str:
    """Escape one JSON pointer reference token."""
    return token.replace("~", "~0").replace("/", "~1")


def copy_document_shell(document: Document) -> Document:
    """Copy a document's containers; schema, path and component nodes stay shared."""
    components = document.components
    return Document(
        version=document.version,
        info=dict(document.info),
        paths=dict(document.paths),
        webhooks=dict(document.webhooks),
        components=Components(
            schemas=dict(components.schemas),
            parameters=dict(components.parameters),
            responses=dict(components.responses),
            request_bodies=dict(components.request_bodies),
            headers=dict(components.headers),
            callbacks=dict(components.callbacks),
            path_items=dict(components.path_items),
            examples=dict(components.examples),
            security_schemes=dict(components.security_schemes),
            links=dict(components.links),
            extensions=dict(components.extensions),
        ),
        tags=[dict(tag) for tag in document.tags],
        servers=[dict(server) for server in document.servers],
        security=[dict(requirement) for requirement in document.security],
        host=document.host,
        base_path=document.base_path,
        schemes=list(document.schemes),
        consumes=list(document.consumes),
        produces=list(document.produces),
        extensions=dict(document.extensions),
    )
