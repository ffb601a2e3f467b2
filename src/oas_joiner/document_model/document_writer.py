"""Document writing service."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

from .document_models import (
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
)
from .document_reader import DocumentError


def write_document(source_document: SourceDocument, output_path: Path | str) -> Path:
    """Write a document in its source format and return the resolved destination."""
    destination = Path(output_path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(render_document(source_document), encoding="utf-8")
    return destination.resolve()


def render_document(source_document: SourceDocument) -> str:
    """Render a document as JSON or YAML text."""
    mapping = document_to_mapping(source_document.document)
    if source_document.source_format is SourceFormat.JSON:
        return json.dumps(mapping, indent=2, ensure_ascii=False) + "\n"
    return yaml.safe_dump(mapping, sort_keys=False, allow_unicode=True)


def document_to_mapping(document: Document) -> dict[str, Any]:
    """Convert a document model into plain mappings and lists."""
    family = document.family
    result: dict[str, Any] = {}
    result["swagger" if family is DocumentFamily.FLAT else "openapi"] = document.version
    if document.info:
        result["info"] = dict(document.info)
    if family is DocumentFamily.FLAT:
        if document.host is not None:
            result["host"] = document.host
        if document.base_path is not None:
            result["basePath"] = document.base_path
        for key in ("schemes", "consumes", "produces"):
            if getattr(document, key):
                result[key] = list(getattr(document, key))
    if document.servers:
        result["servers"] = [dict(server) for server in document.servers]
    if document.tags:
        result["tags"] = [dict(tag) for tag in document.tags]
    if document.security:
        result["security"] = [dict(requirement) for requirement in document.security]
    result["paths"] = {path: path_item_to_mapping(item) for path, item in document.paths.items()}
    if document.webhooks:
        result["webhooks"] = {
            name: path_item_to_mapping(item) for name, item in document.webhooks.items()
        }
    if family is DocumentFamily.FLAT:
        result.update(_flat_components_to_mapping(document.components))
    else:
        components = _components_to_mapping(document.components)
        if components:
            result["components"] = components
    result.update(document.extensions)
    return result


def _flat_components_to_mapping(components: Components) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if components.schemas:
        result["definitions"] = {
            name: schema_to_mapping(schema) for name, schema in components.schemas.items()
        }
    if components.parameters:
        result["parameters"] = {
            name: component_to_mapping(entry) for name, entry in components.parameters.items()
        }
    if components.responses:
        result["responses"] = {
            name: component_to_mapping(entry) for name, entry in components.responses.items()
        }
    if components.security_schemes:
        result["securityDefinitions"] = dict(components.security_schemes)
    return result


def _components_to_mapping(components: Components) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if components.schemas:
        result["schemas"] = {
            name: schema_to_mapping(schema) for name, schema in components.schemas.items()
        }
    sections = (
        ("parameters", components.parameters),
        ("responses", components.responses),
        ("requestBodies", components.request_bodies),
        ("headers", components.headers),
        ("callbacks", components.callbacks),
        ("pathItems", components.path_items),
        ("examples", components.examples),
        ("securitySchemes", components.security_schemes),
        ("links", components.links),
    )
    for key, entries in sections:
        if entries:
            result[key] = {name: component_to_mapping(entry) for name, entry in entries.items()}
    result.update(components.extensions)
    return result


def component_to_mapping(entry: Any) -> Any:
    """Convert any named component entry (typed or raw) into plain data."""
    if isinstance(entry, Schema):
        return schema_to_mapping(entry)
    if isinstance(entry, Parameter):
        return _parameter_to_mapping(entry)
    if isinstance(entry, Response):
        return _response_to_mapping(entry)
    if isinstance(entry, RequestBody):
        return _with_ref(entry.ref, _content_section(entry.content), entry.extensions)
    if isinstance(entry, Header):
        return _header_to_mapping(entry)
    if isinstance(entry, Callback):
        return _callback_to_mapping(entry)
    if isinstance(entry, PathItem):
        return path_item_to_mapping(entry)
    return entry


def schema_to_mapping(schema: Schema) -> dict[str, Any]:
    """Convert a schema tree into plain data; in-memory cycles are rejected."""
    return _SchemaSerializer().serialize(schema)


class _SchemaSerializer:
    def __init__(self) -> None:
        self._active: set[int] = set()

    def serialize(self, schema: Schema) -> dict[str, Any]:
        if id(schema) in self._active:
            raise DocumentError("Schema graph contains an in-memory cycle without a $ref.")
        self._active.add(id(schema))
        try:
            return self._fields(schema)
        finally:
            self._active.discard(id(schema))

    def _fields(self, schema: Schema) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if schema.ref is not None:
            result["$ref"] = schema.ref
        for key, value in (
            ("type", schema.type),
            ("format", schema.format),
            ("title", schema.title),
            ("description", schema.description),
            ("example", schema.example),
            ("deprecated", schema.deprecated),
        ):
            if value is not None:
                result[key] = value
        if schema.required:
            result["required"] = list(schema.required)
        if schema.enum is not None:
            result["enum"] = list(schema.enum)
        result.update(schema.constraints)
        if schema.properties:
            result["properties"] = {
                name: self.serialize(child) for name, child in schema.properties.items()
            }
        if isinstance(schema.items, list):
            result["items"] = [self.serialize(child) for child in schema.items]
        elif schema.items is not None:
            result["items"] = self.serialize(schema.items)
        if isinstance(schema.additional_properties, bool):
            result["additionalProperties"] = schema.additional_properties
        elif schema.additional_properties is not None:
            result["additionalProperties"] = self.serialize(schema.additional_properties)
        for key, children in (
            ("allOf", schema.all_of),
            ("anyOf", schema.any_of),
            ("oneOf", schema.one_of),
        ):
            if children:
                result[key] = [self.serialize(child) for child in children]
        if schema.not_ is not None:
            result["not"] = self.serialize(schema.not_)
        if schema.discriminator is not None:
            result["discriminator"] = _discriminator_to_mapping(schema.discriminator)
        result.update(schema.extensions)
        return result


def _discriminator_to_mapping(discriminator: Discriminator) -> Any:
    if discriminator.property_name_only and not discriminator.mapping:
        return discriminator.property_name
    result: dict[str, Any] = {"propertyName": discriminator.property_name}
    if discriminator.mapping:
        result["mapping"] = dict(discriminator.mapping)
    result.update(discriminator.extensions)
    return result


def _with_ref(ref: str | None, body: dict[str, Any], extensions: dict[str, Any]) -> dict:
    result: dict[str, Any] = {"$ref": ref} if ref is not None else {}
    result.update(body)
    result.update(extensions)
    return result


def _media_type_to_mapping(media_type: MediaType) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if media_type.schema is not None:
        result["schema"] = schema_to_mapping(media_type.schema)
    result.update(media_type.extensions)
    return result


def _content_section(content: dict[str, MediaType]) -> dict[str, Any]:
    if not content:
        return {}
    return {
        "content": {name: _media_type_to_mapping(entry) for name, entry in content.items()}
    }


def _parameter_to_mapping(parameter: Parameter) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if parameter.name is not None:
        body["name"] = parameter.name
    if parameter.location is not None:
        body["in"] = parameter.location
    if parameter.schema is not None:
        body["schema"] = schema_to_mapping(parameter.schema)
    body.update(_content_section(parameter.content))
    return _with_ref(parameter.ref, body, parameter.extensions)


def _header_to_mapping(header: Header) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if header.schema is not None:
        body["schema"] = schema_to_mapping(header.schema)
    body.update(_content_section(header.content))
    return _with_ref(header.ref, body, header.extensions)


def _response_to_mapping(response: Response) -> dict[str, Any]:
    body: dict[str, Any] = {}
    if response.schema is not None:
        body["schema"] = schema_to_mapping(response.schema)
    if response.headers:
        body["headers"] = {
            name: _header_to_mapping(header) for name, header in response.headers.items()
        }
    body.update(_content_section(response.content))
    return _with_ref(response.ref, body, response.extensions)


def _callback_to_mapping(callback: Callback) -> dict[str, Any]:
    body = {
        expression: path_item_to_mapping(item) for expression, item in callback.expressions.items()
    }
    return _with_ref(callback.ref, body, callback.extensions)


def _operation_to_mapping(operation: Operation) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if operation.operation_id is not None:
        result["operationId"] = operation.operation_id
    if operation.tags:
        result["tags"] = list(operation.tags)
    if operation.parameters:
        result["parameters"] = [_parameter_to_mapping(entry) for entry in operation.parameters]
    if operation.request_body is not None:
        result["requestBody"] = component_to_mapping(operation.request_body)
    if operation.responses:
        result["responses"] = {
            status: _response_to_mapping(response)
            for status, response in operation.responses.items()
        }
    if operation.callbacks:
        result["callbacks"] = {
            name: _callback_to_mapping(callback) for name, callback in operation.callbacks.items()
        }
    result.update(operation.extensions)
    return result


def path_item_to_mapping(path_item: PathItem) -> dict[str, Any]:
    """Convert a path item and its operations into plain data."""
    body: dict[str, Any] = {
        method: _operation_to_mapping(operation)
        for method, operation in path_item.operations.items()
    }
    if path_item.parameters:
        body["parameters"] = [_parameter_to_mapping(entry) for entry in path_item.parameters]
    return _with_ref(path_item.ref, body, path_item.extensions)
