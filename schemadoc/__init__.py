"""schemadoc - documentation generator for declarative table schemas."""

__version__ = "0.1.0"

from .builder import IntermediateSchema, SchemaBuilder, build_schema, load_schema
from .errors import OutputError, SchemaDocError, SchemaLoadError, SchemaSourceError
from .formatters import DbmlFormatter, MarkdownFormatter

__all__ = [
    "__version__",
    "IntermediateSchema",
    "SchemaBuilder",
    "build_schema",
    "load_schema",
    "OutputError",
    "SchemaDocError",
    "SchemaLoadError",
    "SchemaSourceError",
    "DbmlFormatter",
    "MarkdownFormatter",
]
