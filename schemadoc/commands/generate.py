"""Documentation generation command."""

import logging
from pathlib import Path
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.markup import escape

from ..builder import SUPPORTED_DIALECTS, build_schema
from ..config import settings
from ..errors import OutputError, SchemaDocError
from ..formatters import FORMATS, MarkdownFormatter, get_formatter

logger = logging.getLogger(__name__)

console = Console()
# Generated documents go to stdout, status messages to stderr
err_console = Console(stderr=True)


def _check_writable(paths: Dict[Path, str], force: bool) -> None:
    """Refuse to overwrite existing files unless forced.

    Raises:
        OutputError: If a target exists and ``force`` is False
    """
    if force:
        return
    existing = [str(path) for path in paths if path.exists()]
    if existing:
        raise OutputError(
            f"Output file already exists: {existing[0]}. Use --force to overwrite.",
            details={"paths": existing},
        )


def write_outputs(files: Dict[Path, str], force: bool = False) -> None:
    """Write rendered documents, creating parent directories.

    Args:
        files: Target path -> content
        force: Overwrite files that already exist

    Raises:
        OutputError: If a file exists without ``force``, or cannot be written
    """
    _check_writable(files, force)
    for path, content in files.items():
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise OutputError(f"Could not write {path}: {e}", details={"path": str(path)}) from e
        logger.debug("Wrote %s", path)


def make_formatter(output_format: str):
    """Create a formatter configured from settings."""
    return get_formatter(
        output_format,
        include_comments=settings.include_comments,
        include_indexes=settings.include_indexes,
        include_constraints=settings.include_constraints,
        use_relative_links=settings.markdown_relative_links,
    )


def render(formatter, schema, output: str, single_file: bool) -> Dict[Path, str]:
    """Render a schema into the files to write.

    Multi-file Markdown goes into the ``output`` directory; everything else
    is a single document at ``output``.
    """
    if isinstance(formatter, MarkdownFormatter) and not single_file:
        directory = Path(output)
        return {directory / name: content for name, content in formatter.format_files(schema).items()}

    return {Path(output): formatter.format(schema) + "\n"}


def generate(
    schema: str = typer.Argument(..., help="Schema file or directory of schema files"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file (or directory for multi-file Markdown); stdout if omitted"),
    dialect: Optional[str] = typer.Option(None, "--dialect", "-d", help="Database dialect: postgresql, mysql, sqlite (default: detected)"),
    output_format: Optional[str] = typer.Option(None, "--format", "-f", help="Output format: dbml, markdown or mermaid"),
    relational: Optional[bool] = typer.Option(None, "--relational/--foreign-keys", "-r", help="Derive relations from relations()/define_relations() instead of foreign keys"),
    single_file: bool = typer.Option(False, "--single-file", help="Write Markdown as one file instead of a directory"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing output files"),
):
    """Generate DBML, Markdown or Mermaid documentation from schema files.

    Examples:

        schemadoc generate schema.py -o schema.dbml

        schemadoc generate ./db -f markdown -r -o docs/
    """
    dialect = dialect or settings.default_dialect
    output_format = output_format or settings.default_format
    relational = settings.relational if relational is None else relational

    if dialect and dialect not in SUPPORTED_DIALECTS:
        err_console.print(f"[red]Unsupported dialect: {dialect}. Use one of: {', '.join(SUPPORTED_DIALECTS)}[/red]")
        raise typer.Exit(1)
    if output_format not in FORMATS:
        err_console.print(f"[red]Unsupported format: {output_format}. Use one of: {', '.join(FORMATS)}[/red]")
        raise typer.Exit(1)

    try:
        intermediate = build_schema(schema, relational=relational, dialect=dialect)
        formatter = make_formatter(output_format)

        if not output:
            console.print(formatter.format(intermediate), markup=False, emoji=False, highlight=False, soft_wrap=True)
            return

        files = render(formatter, intermediate, output, single_file)
        write_outputs(files, force=force)
    except SchemaDocError as e:
        logger.debug("Generation failed: %s", e.to_dict())
        err_console.print(f"[red]Error: {escape(e.message)}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    target = output if len(files) == 1 else f"{output} ({len(files)} files)"
    err_console.print(f"[green]Generated {output_format} for {len(intermediate.tables)} tables: {target}[/green]")
