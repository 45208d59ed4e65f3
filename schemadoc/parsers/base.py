"""Shared helpers for the schema source parsers."""

import ast
import io
import logging
import tokenize
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from ..errors import SchemaSourceError

logger = logging.getLogger(__name__)

# Files that are never schema sources when scanning a directory
EXCLUDED_PATTERNS = ("test_*.py", "*_test.py", "conftest.py")


def iter_schema_files(source_path: str) -> List[Path]:
    """List the Python files making up a schema source.

    Args:
        source_path: A single ``.py`` file or a directory to scan recursively

    Returns:
        Sorted list of files; test modules and ``__pycache__`` are skipped

    Raises:
        SchemaSourceError: If the path does not exist
    """
    path = Path(source_path)

    if path.is_file():
        return [path] if path.suffix == ".py" else []

    if path.is_dir():
        files = []
        for candidate in sorted(path.rglob("*.py")):
            if "__pycache__" in candidate.parts:
                continue
            if any(candidate.match(pattern) for pattern in EXCLUDED_PATTERNS):
                continue
            files.append(candidate)
        return files

    raise SchemaSourceError(f"Schema source does not exist: {source_path}", path=str(source_path))


def read_source(path: Path) -> str:
    """Read a schema file as UTF-8 text."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SchemaSourceError(f"Could not read schema file {path}: {e}", path=str(path)) from e


@dataclass
class ParsedSource:
    """A parsed schema file: its syntax tree plus standalone comment lines."""

    filename: str
    tree: ast.Module
    # line number -> comment text, for lines holding nothing but a comment
    comment_lines: Dict[int, str] = field(default_factory=dict)
    lines: List[str] = field(default_factory=list)

    def starts_line(self, node: ast.AST) -> bool:
        """Check that nothing but whitespace precedes ``node`` on its first line."""
        if not 0 < node.lineno <= len(self.lines):
            return False
        # col_offset counts UTF-8 bytes
        prefix = self.lines[node.lineno - 1].encode("utf-8")[:node.col_offset]
        return not prefix.strip()

    def leading_comments(self, node: ast.AST) -> List[str]:
        """Return the unbroken run of comment lines directly above ``node``.

        Nodes sharing their line with earlier code (a key on the same line
        as ``{``, a one-line table) own no comments.
        """
        if not self.starts_line(node):
            return []
        run: List[str] = []
        current = node.lineno - 1
        while current in self.comment_lines:
            run.insert(0, self.comment_lines[current])
            current -= 1
        return run


def parse_source(text: str, filename: str = "<schema>") -> ParsedSource:
    """Parse Python source into a ``ParsedSource``.

    Raises:
        SchemaSourceError: If the text is not valid Python
    """
    try:
        tree = ast.parse(text, filename=filename)
    except SyntaxError as e:
        raise SchemaSourceError(f"Invalid Python in {filename}: {e.msg}", path=filename, line=e.lineno) from e

    return ParsedSource(
        filename=filename,
        tree=tree,
        comment_lines=_collect_comment_lines(text),
        lines=text.split("\n"),
    )


def parse_file(path: Path) -> ParsedSource:
    return parse_source(read_source(path), str(path))


def _collect_comment_lines(text: str) -> Dict[int, str]:
    comments: Dict[int, str] = {}
    tokens = tokenize.generate_tokens(io.StringIO(text).readline)
    for token in tokens:
        if token.type != tokenize.COMMENT:
            continue
        row, col = token.start
        # Only comments that stand alone on their line
        if token.line[:col].strip():
            continue
        comments[row] = token.string
    return comments


def call_name(call: ast.Call) -> Optional[str]:
    """Name of the called function: ``f(...)`` -> ``f``, ``m.f(...)`` -> ``f``."""
    func = call.func
    if isinstance(func, ast.Name):
        return func.id
    if isinstance(func, ast.Attribute):
        return func.attr
    return None


def identifier_name(node: ast.AST) -> Optional[str]:
    if isinstance(node, ast.Name):
        return node.id
    return None


def string_value(node: Optional[ast.AST]) -> Optional[str]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        return node.value
    return None


def iter_assigned_calls(tree: ast.AST) -> Iterator[ast.stmt]:
    """Yield statements that assign or evaluate a call, at any nesting depth.

    Covers ``x = f(...)``, ``x: T = f(...)`` and bare ``f(...)``.
    """
    for node in ast.walk(tree):
        if isinstance(node, (ast.Assign, ast.AnnAssign, ast.Expr)) and isinstance(node.value, ast.Call):
            yield node
