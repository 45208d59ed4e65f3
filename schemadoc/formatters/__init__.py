"""Output formatters for intermediate schemas."""

from .base import FormatterOptions, OutputFormatter
from .dbml import DbmlBuilder, DbmlFormatter
from .markdown import MarkdownFormatter, MarkdownFormatterOptions
from .mermaid import MermaidFormatter, MermaidFormatterOptions

FORMATS = ("dbml", "markdown", "mermaid")


def get_formatter(
    output_format: str,
    include_comments: bool = True,
    include_indexes: bool = True,
    include_constraints: bool = True,
    use_relative_links: bool = True,
) -> OutputFormatter:
    """Create the formatter for an output format.

    Raises:
        ValueError: If the format is not supported
    """
    if output_format == "dbml":
        return DbmlFormatter(
            FormatterOptions(
                include_comments=include_comments,
                include_indexes=include_indexes,
                include_constraints=include_constraints,
            )
        )
    if output_format == "markdown":
        return MarkdownFormatter(
            MarkdownFormatterOptions(
                include_comments=include_comments,
                include_indexes=include_indexes,
                include_constraints=include_constraints,
                use_relative_links=use_relative_links,
            )
        )
    if output_format == "mermaid":
        return MermaidFormatter(
            MermaidFormatterOptions(
                include_comments=include_comments,
                include_indexes=include_indexes,
                include_constraints=include_constraints,
            )
        )
    raise ValueError(f"Unsupported format: {output_format}. Supported: {', '.join(FORMATS)}")


__all__ = [
    "FormatterOptions",
    "OutputFormatter",
    "DbmlBuilder",
    "DbmlFormatter",
    "MarkdownFormatter",
    "MarkdownFormatterOptions",
    "MermaidFormatter",
    "MermaidFormatterOptions",
    "FORMATS",
    "get_formatter",
]
