"""Extraction of legacy ``relations()`` declarations from source code.

Example of what is recognised:

    posts_relations = relations(posts, lambda h: {
        "author": h.one(users, fields=[posts.authorId], references=[users.id]),
        "comments": h.many(comments),
    })

yields ``ParsedRelation("posts", "users", SINGLE, ("authorId",), ("id",))``
and ``ParsedRelation("posts", "comments", MULTI, (), ())``. Names are
declaration identifiers and property names; translating them to DB names
is the legacy adapter's job.
"""

import ast
import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

from ..schema.relations import RelationKind
from .base import (
    ParsedSource,
    call_name,
    identifier_name,
    iter_assigned_calls,
    iter_schema_files,
    parse_file,
    parse_source,
    string_value,
)

logger = logging.getLogger(__name__)

RELATIONS_FUNCTION = "relations"
HELPER_KINDS = {
    "one": RelationKind.SINGLE,
    "many": RelationKind.MULTI,
}


@dataclass(frozen=True)
class ParsedRelation:
    """One ``one()``/``many()`` entry of a ``relations()`` callback.

    A MULTI relation never carries join columns; they belong to the
    inverse SINGLE declaration.
    """

    source_table: str
    target_table: str
    kind: RelationKind
    fields: Tuple[str, ...] = ()
    references: Tuple[str, ...] = ()

    @property
    def has_join(self) -> bool:
        return bool(self.fields) and bool(self.references)


def _column_names(node: ast.AST) -> Tuple[str, ...]:
    """``[posts.authorId, posts.tenantId]`` -> ``("authorId", "tenantId")``."""
    if not isinstance(node, (ast.List, ast.Tuple)):
        return ()
    names = []
    for element in node.elts:
        if isinstance(element, ast.Attribute):
            names.append(element.attr)
        elif isinstance(element, ast.Name):
            names.append(element.id)
    return tuple(names)


def _join_columns(call: ast.Call) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    fields: Tuple[str, ...] = ()
    references: Tuple[str, ...] = ()

    config = call.args[1] if len(call.args) > 1 else None
    if isinstance(config, ast.Dict):
        for key, value in zip(config.keys, config.values):
            name = string_value(key)
            if name == "fields":
                fields = _column_names(value)
            elif name == "references":
                references = _column_names(value)

    for keyword in call.keywords:
        if keyword.arg == "fields":
            fields = _column_names(keyword.value)
        elif keyword.arg == "references":
            references = _column_names(keyword.value)

    return fields, references


def _parse_relation_call(source_table: str, call: ast.Call) -> Optional[ParsedRelation]:
    kind = HELPER_KINDS.get(call_name(call))
    if kind is None or not call.args:
        return None

    target_table = identifier_name(call.args[0])
    if target_table is None:
        return None

    if kind is RelationKind.MULTI:
        return ParsedRelation(source_table, target_table, kind)

    fields, references = _join_columns(call)
    return ParsedRelation(source_table, target_table, kind, fields, references)


def _parse_relations_call(call: ast.Call) -> Optional[List[ParsedRelation]]:
    if call_name(call) != RELATIONS_FUNCTION or len(call.args) < 2:
        return None

    source_table = identifier_name(call.args[0])
    callback = call.args[1]
    if source_table is None or not isinstance(callback, ast.Lambda):
        return None
    if not isinstance(callback.body, ast.Dict):
        return None

    parsed = []
    for value in callback.body.values:
        if not isinstance(value, ast.Call):
            continue
        relation = _parse_relation_call(source_table, value)
        if relation:
            parsed.append(relation)
    return parsed


def _extract(source: ParsedSource) -> List[ParsedRelation]:
    found: List[ParsedRelation] = []
    for stmt in iter_assigned_calls(source.tree):
        parsed = _parse_relations_call(stmt.value)
        if parsed is None:
            continue
        found.extend(parsed)
    logger.debug("Found %d relation declarations in %s", len(found), source.filename)
    return found


def extract_relations_from_source(text: str, filename: str = "<schema>") -> List[ParsedRelation]:
    """Extract legacy relation declarations from one schema file's text."""
    return _extract(parse_source(text, filename))


def extract_relations(source_path: str) -> List[ParsedRelation]:
    """Extract legacy relation declarations from a schema file or directory.

    Args:
        source_path: Path to a ``.py`` schema file or a directory of them

    Returns:
        All parsed relations, in file then declaration order

    Raises:
        SchemaSourceError: If a file is missing, unreadable, or not valid Python
    """
    relations: List[ParsedRelation] = []
    for path in iter_schema_files(source_path):
        relations.extend(_extract(parse_file(path)))
    return relations
