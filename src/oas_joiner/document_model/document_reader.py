"""Document reading service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from .document_models import (
    CANONICAL_METHODS,
    CONSTRAINT_KEYS,
    Callback,
    Components,
    Discriminator,
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
    SourceDocument,
    SourceFormat,
    SourceLocation,
    SourceMap,
    escape_pointer_token,
    family_for_version,
)

_SCHEMA_LIST_KEYS = {"allOf": "all_of", "anyOf": "any_of", "oneOf": "one_of"}
_SCHEMA_SCALAR_KEYS = {
    "type": "type",
    "format": "format",
    "title": "title",
    "description": "description",
    "example": "example",
    "deprecated": "deprecated",
}


class DocumentError(Exception):
    """Raised when an API document cannot be read or has an unsupported shape."""


def load_source_document(source_path: Path | str) -> SourceDocument:
    """Read a JSON or YAML API document from disk."""
    path = Path(source_path)
    text = _read_text(path)
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise DocumentError(f"Failed to parse document {path}: {exc}") from exc
    return SourceDocument(
        document=read_document(parsed),
        source_path=str(path),
        source_format=_detect_format(path, text),
    )


def load_source_map(source_path: Path | str) -> SourceMap:
    """Build the line/column map of an API document on disk."""
    path = Path(source_path)
    return build_source_map(_read_text(path), str(path))


def build_source_map(text: str, source_path: str) -> SourceMap:
    """Map every JSON pointer of a JSON/YAML text to its one-based line and column."""
    try:
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as exc:
        raise DocumentError(f"Failed to parse document {source_path}: {exc}") from exc
    locations: dict[str, SourceLocation] = {}
    if root is not None:
        locations[""] = _location_of(root)
        _collect_locations(root, "", locations, set())
    return SourceMap(source_path=source_path, locations=locations)


def read_document(value: Any) -> Document:
    """Convert a parsed mapping into the document model."""
    return _DocumentReader().read(value)


def _read_text(path: Path) -> str:
    if not path.exists():
        raise DocumentError(f"Document file not found: {path}")
    return path.read_text(encoding="utf-8")


def _detect_format(path: Path, text: str) -> SourceFormat:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return SourceFormat.JSON
    if suffix in {".yaml", ".yml"}:
        return SourceFormat.YAML
    return SourceFormat.JSON if text.lstrip().startswith("{") else SourceFormat.YAML


def _location_of(node: yaml.Node) -> SourceLocation:
    return SourceLocation(line=node.start_mark.line + 1, column=node.start_mark.column + 1)


def _collect_locations(
    node: yaml.Node,
    pointer: str,
    locations: dict[str, SourceLocation],
    visited: set[int],
) -> None:
    if id(node) in visited:
        return
    visited.add(id(node))
    if isinstance(node, yaml.MappingNode):
        for key_node, value_node in node.value:
            child = f"{pointer}/{escape_pointer_token(str(key_node.value))}"
            locations.setdefault(child, _location_of(key_node))
            _collect_locations(value_node, child, locations, visited)
    elif isinstance(node, yaml.SequenceNode):
        for index, item_node in enumerate(node.value):
            child = f"{pointer}/{index}"
            locations.setdefault(child, _location_of(item_node))
            _collect_locations(item_node, child, locations, visited)


def _require_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise DocumentError(f"Expected a mapping at '{where or '/'}'.")
    return value


def _require_sequence(value: Any, where: str) -> Sequence[Any]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise DocumentError(f"Expected a list at '{where}'.")
    return value


def _require_string(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise DocumentError(f"Expected a string at '{where}'.")
    return value


def _string_list(value: Any, where: str) -> list[str]:
    return [
        _require_string(item, f"{where}/{index}")
        for index, item in enumerate(_require_sequence(value, where))
    ]


def _mapping_list(value: Any, where: str) -> list[dict[str, Any]]:
    return [
        dict(_require_mapping(item, f"{where}/{index}"))
        for index, item in enumerate(_require_sequence(value, where))
    ]


class _DocumentReader:
    """Single-use reader; shared mappings (YAML aliases) become shared schema nodes."""

    def __init__(self) -> None:
        self._schemas: dict[int, Schema] = {}

    def read(self, value: Any) -> Document:
        root = _require_mapping(value, "")
        version_key = "swagger" if "swagger" in root else "openapi"
        version = root.get(version_key)
        if not isinstance(version, str) or not version:
            raise DocumentError("Document must declare a 'swagger' or 'openapi' version string.")
        try:
            family = family_for_version(version)
        except ValueError as exc:
            raise DocumentError(str(exc)) from exc

        document = Document(version=version)
        for key, item in root.items():
            if key == version_key:
                continue
            if key == "info":
                document.info = dict(_require_mapping(item, "/info"))
            elif key == "paths":
                document.paths = self._path_items(item, "/paths")
            elif key == "webhooks" and family is DocumentFamily.NAMESPACED:
                document.webhooks = self._path_items(item, "/webhooks")
            elif key == "components" and family is DocumentFamily.NAMESPACED:
                document.components = self._components(item)
            elif key in {"tags", "servers", "security"}:
                setattr(document, key, _mapping_list(item, f"/{key}"))
            elif family is DocumentFamily.FLAT and self._read_flat_root_key(document, key, item):
                continue
            else:
                document.extensions[key] = item
        return document

    def _read_flat_root_key(self, document: Document, key: str, item: Any) -> bool:
        components = document.components
        if key == "definitions":
            components.schemas = self._schemas_map(item, "/definitions")
        elif key == "parameters":
            components.parameters = {
                name: self._parameter(entry, f"/parameters/{escape_pointer_token(name)}")
                for name, entry in _require_mapping(item, "/parameters").items()
            }
        elif key == "responses":
            components.responses = {
                name: self._response(entry, f"/responses/{escape_pointer_token(name)}")
                for name, entry in _require_mapping(item, "/responses").items()
            }
        elif key == "securityDefinitions":
            components.security_schemes = dict(_require_mapping(item, "/securityDefinitions"))
        elif key == "host":
            document.host = _require_string(item, "/host")
        elif key == "basePath":
            document.base_path = _require_string(item, "/basePath")
        elif key in {"schemes", "consumes", "produces"}:
            setattr(document, key, _string_list(item, f"/{key}"))
        else:
            return False
        return True

    def _components(self, value: Any) -> Components:
        section = _require_mapping(value, "/components")
        components = Components()
        readers = {
            "parameters": ("parameters", self._parameter),
            "responses": ("responses", self._response),
            "requestBodies": ("request_bodies", self._request_body),
            "headers": ("headers", self._header),
            "callbacks": ("callbacks", self._callback),
            "pathItems": ("path_items", self._path_item),
        }
        for key, item in section.items():
            where = f"/components/{key}"
            if key == "schemas":
                components.schemas = self._schemas_map(item, where)
            elif key in readers:
                attribute, reader = readers[key]
                setattr(
                    components,
                    attribute,
                    {
                        name: reader(entry, f"{where}/{escape_pointer_token(name)}")
                        for name, entry in _require_mapping(item, where).items()
                    },
                )
            elif key in {"examples", "securitySchemes", "links"}:
                attribute = "security_schemes" if key == "securitySchemes" else key
                setattr(components, attribute, dict(_require_mapping(item, where)))
            else:
                components.extensions[key] = item
        return components

    def _schemas_map(self, value: Any, where: str) -> dict[str, Schema]:
        return {
            name: self.schema(entry, f"{where}/{escape_pointer_token(name)}")
            for name, entry in _require_mapping(value, where).items()
        }

    def schema(self, value: Any, where: str) -> Schema:
        mapping = _require_mapping(value, where)
        cached = self._schemas.get(id(mapping))
        if cached is not None:
            return cached
        schema = Schema()
        self._schemas[id(mapping)] = schema
        for key, item in mapping.items():
            child = f"{where}/{escape_pointer_token(key)}"
            if key == "$ref":
                schema.ref = _require_string(item, child)
            elif key in _SCHEMA_SCALAR_KEYS:
                setattr(schema, _SCHEMA_SCALAR_KEYS[key], item)
            elif key == "required" and isinstance(item, list):
                schema.required = _string_list(item, child)
            elif key == "enum":
                schema.enum = list(_require_sequence(item, child))
            elif key in CONSTRAINT_KEYS:
                schema.constraints[key] = item
            elif key == "properties":
                schema.properties = self._schemas_map(item, child)
            elif key == "items":
                schema.items = (
                    [self.schema(entry, f"{child}/{i}") for i, entry in enumerate(item)]
                    if isinstance(item, list)
                    else self.schema(item, child)
                )
            elif key == "additionalProperties":
                schema.additional_properties = (
                    item if isinstance(item, bool) else self.schema(item, child)
                )
            elif key in _SCHEMA_LIST_KEYS:
                setattr(
                    schema,
                    _SCHEMA_LIST_KEYS[key],
                    [
                        self.schema(entry, f"{child}/{i}")
                        for i, entry in enumerate(_require_sequence(item, child))
                    ],
                )
            elif key == "not":
                schema.not_ = self.schema(item, child)
            elif key == "discriminator":
                schema.discriminator = _discriminator(item, child)
            else:
                schema.extensions[key] = item
        return schema

    def _optional_schema(self, mapping: Mapping[str, Any], where: str) -> Schema | None:
        if "schema" not in mapping:
            return None
        return self.schema(mapping["schema"], f"{where}/schema")

    def _content(self, value: Any, where: str) -> dict[str, MediaType]:
        content: dict[str, MediaType] = {}
        for media_type, entry in _require_mapping(value, where).items():
            child = f"{where}/{escape_pointer_token(media_type)}"
            mapping = _require_mapping(entry, child)
            content[media_type] = MediaType(
                schema=self._optional_schema(mapping, child),
                extensions={k: v for k, v in mapping.items() if k != "schema"},
            )
        return content

    def _parameter(self, value: Any, where: str) -> Parameter:
        mapping = _require_mapping(value, where)
        return Parameter(
            ref=mapping.get("$ref"),
            name=mapping.get("name"),
            location=mapping.get("in"),
            schema=self._optional_schema(mapping, where),
            content=self._content(mapping.get("content", {}), f"{where}/content"),
            extensions=_remaining(mapping, {"$ref", "name", "in", "schema", "content"}),
        )

    def _request_body(self, value: Any, where: str) -> RequestBody:
        mapping = _require_mapping(value, where)
        return RequestBody(
            ref=mapping.get("$ref"),
            content=self._content(mapping.get("content", {}), f"{where}/content"),
            extensions=_remaining(mapping, {"$ref", "content"}),
        )

    def _header(self, value: Any, where: str) -> Header:
        mapping = _require_mapping(value, where)
        return Header(
            ref=mapping.get("$ref"),
            schema=self._optional_schema(mapping, where),
            content=self._content(mapping.get("content", {}), f"{where}/content"),
            extensions=_remaining(mapping, {"$ref", "schema", "content"}),
        )

    def _response(self, value: Any, where: str) -> Response:
        mapping = _require_mapping(value, where)
        headers = _require_mapping(mapping.get("headers", {}), f"{where}/headers")
        return Response(
            ref=mapping.get("$ref"),
            schema=self._optional_schema(mapping, where),
            headers={
                name: self._header(entry, f"{where}/headers/{escape_pointer_token(name)}")
                for name, entry in headers.items()
            },
            content=self._content(mapping.get("content", {}), f"{where}/content"),
            extensions=_remaining(mapping, {"$ref", "schema", "headers", "content"}),
        )

    def _callback(self, value: Any, where: str) -> Callback:
        mapping = _require_mapping(value, where)
        callback = Callback(ref=mapping.get("$ref"))
        for expression, entry in mapping.items():
            if expression == "$ref":
                continue
            if expression.startswith("x-"):
                callback.extensions[expression] = entry
            else:
                callback.expressions[expression] = self._path_item(
                    entry, f"{where}/{escape_pointer_token(expression)}"
                )
        return callback

    def _operation(self, value: Any, where: str) -> Operation:
        mapping = _require_mapping(value, where)
        operation = Operation()
        for key, item in mapping.items():
            child = f"{where}/{key}"
            if key == "operationId":
                operation.operation_id = _require_string(item, child)
            elif key == "tags":
                operation.tags = _string_list(item, child)
            elif key == "parameters":
                operation.parameters = self._parameters(item, child)
            elif key == "requestBody":
                operation.request_body = self._request_body(item, child)
            elif key == "responses":
                operation.responses = {
                    str(status): self._response(entry, f"{child}/{status}")
                    for status, entry in _require_mapping(item, child).items()
                }
            elif key == "callbacks":
                operation.callbacks = {
                    name: self._callback(entry, f"{child}/{escape_pointer_token(name)}")
                    for name, entry in _require_mapping(item, child).items()
                }
            else:
                operation.extensions[key] = item
        return operation

    def _parameters(self, value: Any, where: str) -> list[Parameter]:
        return [
            self._parameter(entry, f"{where}/{index}")
            for index, entry in enumerate(_require_sequence(value, where))
        ]

    def _path_item(self, value: Any, where: str) -> PathItem:
        mapping = _require_mapping(value, where)
        path_item = PathItem()
        for key, item in mapping.items():
            if key == "$ref":
                path_item.ref = _require_string(item, f"{where}/$ref")
            elif key in CANONICAL_METHODS:
                path_item.operations[key] = self._operation(item, f"{where}/{key}")
            elif key == "parameters":
                path_item.parameters = self._parameters(item, f"{where}/parameters")
            else:
                path_item.extensions[key] = item
        return path_item

    def _path_items(self, value: Any, where: str) -> dict[str, PathItem]:
        return {
            str(name): self._path_item(entry, f"{where}/{escape_pointer_token(str(name))}")
            for name, entry in _require_mapping(value, where).items()
        }


def _discriminator(value: Any, where: str) -> Discriminator:
    if isinstance(value, str):
        return Discriminator(property_name=value, property_name_only=True)
    mapping = _require_mapping(value, where)
    raw_mapping = _require_mapping(mapping.get("mapping", {}), f"{where}/mapping")
    return Discriminator(
        property_name=_require_string(mapping.get("propertyName"), f"{where}/propertyName"),
        mapping={
            str(key): _require_string(target, f"{where}/mapping/{key}")
            for key, target in raw_mapping.items()
        },
        extensions=_remaining(mapping, {"propertyName", "mapping"}),
    )


def _remaining(mapping: Mapping[str, Any], consumed: set[str]) -> dict[str, Any]:
    return {key: item for key, item in mapping.items() if key not in consumed}
