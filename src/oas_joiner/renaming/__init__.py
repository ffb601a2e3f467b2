"""Renaming domain exports."""

from .template_engine import (
    TEMPLATE_FIELDS,
    Template,
    TemplateError,
    parse_template,
    render_template,
)
from .template_functions import TEMPLATE_FUNCTIONS, TemplateFunction, split_words
from .rename_context import RenameContext, build_rename_context, sanitize_source_identifier
from .schema_namer import RenameDecision, decide_schema_name, prefixed_schema_name

__all__ = [
    "TEMPLATE_FIELDS",
    "Template",
    "TemplateError",
    "parse_template",
    "render_template",
    "TEMPLATE_FUNCTIONS",
    "TemplateFunction",
    "split_words",
    "RenameContext",
    "build_rename_context",
    "sanitize_source_identifier",
    "RenameDecision",
    "decide_schema_name",
    "prefixed_schema_name",
]
