"""Relation declaration APIs.

Two generations are supported:

* ``relations(table, lambda h: {...})``, the legacy API. Its runtime object
  only remembers the table and the callback; join columns are recovered
  from source code by ``schemadoc.parsers.relations``.
* ``define_relations(schema, lambda r: {...})``, the modern API. It returns
  live ``TableRelationalConfig`` entries whose relations carry column
  objects directly.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from .columns import Column
from .tables import Table, get_table_name, is_table


class RelationKind(str, Enum):
    """Which side of a relation a declaration describes."""

    SINGLE = "single"  # one(): references at most one target row
    MULTI = "multi"  # many(): informational inverse


# --- legacy API -----------------------------------------------------------


class LegacyRelationHelpers:
    """The helper object passed to a legacy ``relations()`` callback."""

    def one(self, target: Table, fields: Optional[Sequence[Column]] = None,
            references: Optional[Sequence[Column]] = None) -> Dict[str, Any]:
        return {"kind": RelationKind.SINGLE, "target": target,
                "fields": list(fields or []), "references": list(references or [])}

    def many(self, target: Table) -> Dict[str, Any]:
        return {"kind": RelationKind.MULTI, "target": target}


@dataclass
class LegacyRelations:
    """Result of ``relations()``: a table plus its unevaluated callback."""

    table: Table
    config: Callable[[LegacyRelationHelpers], Dict[str, Any]]


def relations(table: Table, config: Callable[[LegacyRelationHelpers], Dict[str, Any]]) -> LegacyRelations:
    return LegacyRelations(table=table, config=config)


# --- modern API -----------------------------------------------------------


@dataclass
class Relation:
    """A relation of the modern API.

    ``is_reversed`` marks a relation whose join columns were not declared
    on it but copied (reversed) from the inverse declaration on the
    target table.
    """

    kind: RelationKind
    source_table: Table
    target_table: Table
    source_columns: List[Column] = field(default_factory=list)
    target_columns: List[Column] = field(default_factory=list)
    is_reversed: bool = False


@dataclass
class TableRelationalConfig:
    """One table's entry in a ``define_relations()`` result."""

    table: Table
    name: str
    relations: Dict[str, Relation] = field(default_factory=dict)


ColumnRef = Union[Column, Sequence[Column]]


def _as_columns(value: Optional[ColumnRef]) -> List[Column]:
    if value is None:
        return []
    if isinstance(value, Column):
        return [value]
    return list(value)


class _RelationFactory:
    """``r.one`` / ``r.many``: attribute access selects the target table."""

    def __init__(self, kind: RelationKind, schema: Dict[str, Table]):
        self._kind = kind
        self._schema = schema

    def __getattr__(self, key: str) -> Callable[..., Dict[str, Any]]:
        if key not in self._schema:
            raise AttributeError(f"Unknown table in relations schema: {key!r}")
        target = self._schema[key]
        kind = self._kind

        def build(from_: Optional[ColumnRef] = None, to: Optional[ColumnRef] = None) -> Dict[str, Any]:
            return {"kind": kind, "target": target,
                    "from": _as_columns(from_), "to": _as_columns(to)}

        return build


class RelationsBuilder:
    """The ``r`` object passed to a ``define_relations()`` callback."""

    def __init__(self, schema: Dict[str, Table]):
        self.one = _RelationFactory(RelationKind.SINGLE, schema)
        self.many = _RelationFactory(RelationKind.MULTI, schema)
        self._schema = schema

    def __getattr__(self, key: str) -> Table:
        schema = self.__dict__.get("_schema", {})
        if key in schema:
            return schema[key]
        raise AttributeError(f"Unknown table in relations schema: {key!r}")


def define_relations(
    schema: Dict[str, Any],
    config: Callable[[RelationsBuilder], Dict[str, Dict[str, Dict[str, Any]]]],
) -> Dict[str, TableRelationalConfig]:
    """Declare relations for a set of tables.

    Every table of ``schema`` gets an entry, even without relations.
    Relations declared without ``from_``/``to`` take their columns from
    the inverse relation on the target table, reversed.

    Example:
        define_relations({"users": users, "posts": posts}, lambda r: {
            "users": {"posts": r.many.posts()},
            "posts": {"author": r.one.users(from_=r.posts.authorId, to=r.users.id)},
        })
    """
    tables = {key: value for key, value in schema.items() if is_table(value)}
    declared = config(RelationsBuilder(tables)) or {}

    entries: Dict[str, TableRelationalConfig] = {
        key: TableRelationalConfig(table=table, name=key) for key, table in tables.items()
    }

    for key, table_relations in declared.items():
        if key not in entries:
            raise KeyError(f"Relations declared for unknown table: {key!r}")
        entry = entries[key]
        for relation_name, spec in table_relations.items():
            entry.relations[relation_name] = Relation(
                kind=spec["kind"],
                source_table=entry.table,
                target_table=spec["target"],
                source_columns=spec["from"],
                target_columns=spec["to"],
            )

    _reverse_undeclared_joins(list(entries.values()))
    return entries


def _reverse_undeclared_joins(entries: List[TableRelationalConfig]) -> None:
    by_table = {id(entry.table): entry for entry in entries}

    for entry in entries:
        for relation in entry.relations.values():
            if relation.source_columns:
                continue
            target_entry = by_table.get(id(relation.target_table))
            if target_entry is None:
                continue
            for inverse in target_entry.relations.values():
                if inverse is relation or inverse.is_reversed or not inverse.source_columns:
                    continue
                if inverse.target_table is not entry.table:
                    continue
                relation.source_columns = list(inverse.target_columns)
                relation.target_columns = list(inverse.source_columns)
                relation.is_reversed = True
                break


def describe_relation(relation: Relation) -> str:
    """Short human-readable form used in debug logs."""
    src = ", ".join(c.name for c in relation.source_columns)
    dst = ", ".join(c.name for c in relation.target_columns)
    return (f"{get_table_name(relation.source_table)}({src}) -> "
            f"{get_table_name(relation.target_table)}({dst}) [{relation.kind.value}]")
