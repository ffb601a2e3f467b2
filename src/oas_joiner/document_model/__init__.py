"""Document model domain exports."""

from .document_models import (
    CANONICAL_METHODS,
    COMPONENT_SECTIONS,
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
    copy_document_shell,
    escape_pointer_token,
    family_for_version,
    iter_child_schemas,
)
from .document_reader import (
    DocumentError,
    build_source_map,
    load_source_document,
    load_source_map,
    read_document,
)
from .document_writer import (
    component_to_mapping,
    document_to_mapping,
    path_item_to_mapping,
    render_document,
    schema_to_mapping,
    write_document,
)

__all__ = [
    "CANONICAL_METHODS",
    "COMPONENT_SECTIONS",
    "Callback",
    "Components",
    "Discriminator",
    "Document",
    "DocumentFamily",
    "Header",
    "MediaType",
    "Operation",
    "Parameter",
    "PathItem",
    "RequestBody",
    "Response",
    "Schema",
    "SourceDocument",
    "SourceFormat",
    "SourceLocation",
    "SourceMap",
    "copy_document_shell",
    "escape_pointer_token",
    "family_for_version",
    "iter_child_schemas",
    "DocumentError",
    "build_source_map",
    "load_source_document",
    "load_source_map",
    "read_document",
    "component_to_mapping",
    "document_to_mapping",
    "path_item_to_mapping",
    "render_document",
    "schema_to_mapping",
    "write_document",
]
