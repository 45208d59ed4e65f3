"""schemadoc - Main entry point."""

import logging

import typer
from rich.console import Console

from .commands import generate
from .config import settings

app = typer.Typer(
    name="schemadoc",
    help="Generate DBML, Markdown and Mermaid documentation from declarative table schemas",
    add_completion=False,
)

app.command("generate")(generate.generate)

console = Console()


@app.command()
def config():
    """Show current configuration."""
    console.print("[bold]Current Configuration[/bold]")
    console.print(f"  Default Dialect: {settings.default_dialect or 'Detected from tables'}")
    console.print(f"  Default Format: {settings.default_format}")
    console.print(f"  Relational Mode: {'Yes' if settings.relational else 'No'}")
    console.print(f"  Include Comments: {'Yes' if settings.include_comments else 'No'}")
    console.print(f"  Include Indexes: {'Yes' if settings.include_indexes else 'No'}")
    console.print(f"  Include Constraints: {'Yes' if settings.include_constraints else 'No'}")
    console.print(f"  Markdown Links: {'Yes' if settings.markdown_relative_links else 'No'}")
    console.print(f"  Log Level: {settings.log_level}")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """
    schemadoc - Document table schemas declared in Python.

    Reads pg_table/mysql_table/sqlite_table declarations, their #: doc
    comments and their relations, and renders DBML, Markdown or Mermaid.

    Examples:

        schemadoc generate schema.py

        schemadoc generate schema.py -o schema.dbml --force

        schemadoc generate ./db -f markdown -r -o docs/
    """
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


if __name__ == "__main__":
    app()
