"""Source parsers for schema modules.

These walk the syntax tree of schema files to recover what is not
available at runtime: doc comments and legacy relation join columns.
"""

from .base import ParsedSource, iter_schema_files, parse_source
from .comments import (
    DocComment,
    SchemaComments,
    TableComment,
    extract_comments,
    extract_comments_from_source,
    normalize_doc_comment,
)
from .relations import ParsedRelation, extract_relations, extract_relations_from_source

__all__ = [
    "ParsedSource",
    "iter_schema_files",
    "parse_source",
    "DocComment",
    "SchemaComments",
    "TableComment",
    "extract_comments",
    "extract_comments_from_source",
    "normalize_doc_comment",
    "ParsedRelation",
    "extract_relations",
    "extract_relations_from_source",
]
