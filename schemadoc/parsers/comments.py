"""Documentation comment extraction for table and column declarations.

Doc comments are ``#:`` blocks directly above a declaration:

    #: User accounts
    users = pg_table(
        "users",
        {
            #: Primary key
            "id": serial("id").primary_key(),
        },
    )

Without a ``#:`` block, the first line of a plain ``#`` run directly above
is used. Declarations that share their line with earlier code (a key on
the same line as ``{``, a one-line table) have no column comments.
Comments are keyed by DB names (``"users"``, ``"id"``), not identifiers.
"""

import ast
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..schema.tables import TABLE_CONSTRUCTORS
from .base import (
    ParsedSource,
    call_name,
    iter_assigned_calls,
    iter_schema_files,
    parse_file,
    parse_source,
    string_value,
)

logger = logging.getLogger(__name__)

DOC_MARKER = "#:"
_DECORATION = re.compile(r"^\s*\*\s?")


@dataclass(frozen=True)
class DocComment:
    """Normalized text of a documentation comment."""
    text: str


@dataclass
class TableComment:
    """Comments for one table and its columns."""
    comment: Optional[DocComment] = None
    columns: Dict[str, DocComment] = field(default_factory=dict)


@dataclass
class SchemaComments:
    """All comments found in a schema source, keyed by table name."""

    tables: Dict[str, TableComment] = field(default_factory=dict)

    def merge(self, other: "SchemaComments") -> "SchemaComments":
        """Add another fragment; a redeclared table replaces the earlier one."""
        self.tables.update(other.tables)
        return self

    def table_comment(self, table_name: str) -> Optional[str]:
        table = self.tables.get(table_name)
        if table is None or table.comment is None:
            return None
        return table.comment.text

    def column_comment(self, table_name: str, column_name: str) -> Optional[str]:
        table = self.tables.get(table_name)
        if table is None:
            return None
        comment = table.columns.get(column_name)
        return comment.text if comment is not None else None


def normalize_doc_comment(lines: List[str]) -> str:
    """Turn raw ``#:`` lines into documentation text.

    Strips the marker and ``*`` decoration, drops everything from the first
    ``@tag`` line on, trims blank lines at both ends, joins with newlines.
    """
    content: List[str] = []
    for raw in lines:
        line = raw.strip()
        if line.startswith(DOC_MARKER):
            line = line[len(DOC_MARKER):]
        line = _DECORATION.sub("", line).strip()
        if line.startswith("@"):
            break
        content.append(line)

    while content and content[-1] == "":
        content.pop()
    while content and content[0] == "":
        content.pop(0)

    return "\n".join(content).strip()


def get_doc_comment(source: ParsedSource, node: ast.AST) -> Optional[DocComment]:
    """Find the documentation comment attached to ``node``.

    The ``#:`` block closest to the node wins. Without one, the first line
    of a plain ``#`` run is used.
    """
    run = source.leading_comments(node)
    if not run:
        return None

    doc_block: List[str] = []
    for line in reversed(run):
        if line.startswith(DOC_MARKER):
            doc_block.insert(0, line)
        elif doc_block:
            break
    if doc_block:
        return DocComment(normalize_doc_comment(doc_block))

    return DocComment(run[0].lstrip("#").strip())


def extract_column_name(node: ast.AST) -> Optional[str]:
    """Find a column's DB name inside its builder expression.

    ``serial("id").primary_key().unique()`` -> ``"id"``. Method calls are
    unwrapped down to the innermost call, whose first argument must be a
    string literal.
    """
    current = node
    while isinstance(current, ast.Call):
        func = current.func
        if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Call):
            current = func.value
            continue
        # Base factory call, plain or module-qualified (``cols.serial("id")``)
        if isinstance(func, (ast.Name, ast.Attribute)):
            return string_value(current.args[0]) if current.args else None
        return None
    return None


def _parse_table_definition(source: ParsedSource, stmt: ast.stmt) -> Optional[tuple]:
    call = stmt.value
    if call_name(call) not in TABLE_CONSTRUCTORS:
        return None

    table_name = string_value(call.args[0]) if call.args else None
    if table_name is None:
        return None

    table_comment = TableComment(comment=get_doc_comment(source, stmt))

    columns_arg = call.args[1] if len(call.args) > 1 else None
    if isinstance(columns_arg, ast.Dict):
        for key, value in zip(columns_arg.keys, columns_arg.values):
            if string_value(key) is None:
                continue
            column_name = extract_column_name(value)
            comment = get_doc_comment(source, key)
            if column_name and comment is not None:
                table_comment.columns[column_name] = comment

    return table_name, table_comment


def extract_comments_from_source(text: str, filename: str = "<schema>") -> SchemaComments:
    """Extract table and column doc comments from one schema file's text."""
    return _extract(parse_source(text, filename))


def _extract(source: ParsedSource) -> SchemaComments:
    comments = SchemaComments()
    for stmt in iter_assigned_calls(source.tree):
        if isinstance(stmt, ast.Expr):
            continue
        parsed = _parse_table_definition(source, stmt)
        if parsed:
            table_name, table_comment = parsed
            comments.tables[table_name] = table_comment
    logger.debug("Found comments for %d tables in %s", len(comments.tables), source.filename)
    return comments


def extract_comments(source_path: str) -> SchemaComments:
    """Extract doc comments from a schema file or directory.

    Args:
        source_path: Path to a ``.py`` schema file or a directory of them

    Returns:
        Comments merged across all files, keyed by table name

    Raises:
        SchemaSourceError: If a file is missing, unreadable, or not valid Python
    """
    comments = SchemaComments()
    for path in iter_schema_files(source_path):
        comments.merge(_extract(parse_file(path)))
    return comments
