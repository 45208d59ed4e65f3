"""Intermediate schema construction.

This module loads schema modules, reconciles them with what the source
parsers recover, and produces the dialect-independent ``IntermediateSchema``
consumed by the output formatters.
"""

from .models import (
    ColumnDefinition,
    ConstraintDefinition,
    EnumDefinition,
    IndexDefinition,
    IntermediateSchema,
    RelationDefinition,
    TableDefinition,
)
from .dialects import DialectRules, MySqlRules, PostgresRules, SqliteRules, SUPPORTED_DIALECTS, get_dialect_rules
from .loader import SchemaExports, load_schema
from .builder import SchemaBuilder, build_schema, format_default_value

__all__ = [
    # Data models
    "ColumnDefinition",
    "ConstraintDefinition",
    "EnumDefinition",
    "IndexDefinition",
    "IntermediateSchema",
    "RelationDefinition",
    "TableDefinition",
    # Dialects
    "DialectRules",
    "MySqlRules",
    "PostgresRules",
    "SqliteRules",
    "SUPPORTED_DIALECTS",
    "get_dialect_rules",
    # Loading
    "SchemaExports",
    "load_schema",
    # Building
    "SchemaBuilder",
    "build_schema",
    "format_default_value",
]
