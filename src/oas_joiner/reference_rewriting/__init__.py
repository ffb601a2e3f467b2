"""Reference rewriting domain exports."""

from .reference_rewriter import (
    RewriteSummary,
    rename_schema_entry,
    rewrite_document_references,
    rewrite_schema_references,
)

__all__ = [
    "RewriteSummary",
    "rename_schema_entry",
    "rewrite_document_references",
    "rewrite_schema_references",
]
