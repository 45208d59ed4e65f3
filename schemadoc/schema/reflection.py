"""Reflection over declared tables.

``SchemaReflection`` is the read-only view the builder and the legacy
relation adapter use: table names, ordered columns, and table-level
indexes/constraints, all as plain data.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .columns import EnumType, SQL
from .tables import Table, get_table_columns, get_table_config, get_table_dialect, get_table_name


@dataclass
class ColumnInfo:
    """A reflected column."""
    name: str  # property name in the table's column map
    db_name: str
    sql_type: str
    nullable: bool = True
    primary_key: bool = False
    unique: bool = False
    has_default: bool = False
    default_value: Any = None
    auto_increment: bool = False
    enum: Optional[EnumType] = None

    @property
    def default_is_expression(self) -> bool:
        return isinstance(self.default_value, SQL)


@dataclass
class IndexInfo:
    columns: List[str]
    name: Optional[str] = None
    unique: bool = False
    method: Optional[str] = None


@dataclass
class KeyInfo:
    """A primary key or unique constraint."""
    columns: List[str]
    name: Optional[str] = None


@dataclass
class ForeignKeyInfo:
    columns: List[str]
    foreign_table: str
    foreign_columns: List[str]
    name: Optional[str] = None
    on_delete: Optional[str] = None
    on_update: Optional[str] = None


@dataclass
class TableConfigInfo:
    indexes: List[IndexInfo] = field(default_factory=list)
    primary_keys: List[KeyInfo] = field(default_factory=list)
    unique_constraints: List[KeyInfo] = field(default_factory=list)
    foreign_keys: List[ForeignKeyInfo] = field(default_factory=list)


class SchemaReflection:
    """Reflects a set of declared tables keyed by their declaration identifier."""

    def __init__(self, tables: Dict[str, Table]):
        self._tables = dict(tables)

    def list_tables(self) -> List[Table]:
        """Return each declared table once, in declaration order.

        A table exported under several identifiers (``u = users``) is
        listed once; ``identifiers()`` keeps every alias.
        """
        tables: List[Table] = []
        seen = set()
        for table in self._tables.values():
            if id(table) not in seen:
                seen.add(id(table))
                tables.append(table)
        return tables

    def identifiers(self) -> Dict[str, str]:
        """Map declaration identifiers to DB table names."""
        return {ident: get_table_name(table) for ident, table in self._tables.items()}

    def get(self, identifier: str) -> Optional[Table]:
        return self._tables.get(identifier)

    def table_name(self, table: Table) -> str:
        return get_table_name(table)

    def dialect(self, table: Table) -> str:
        return get_table_dialect(table)

    def columns(self, table: Table) -> List[ColumnInfo]:
        return [
            ColumnInfo(
                name=prop,
                db_name=column.name,
                sql_type=column.sql_type,
                nullable=not column.not_null_flag,
                primary_key=column.primary,
                unique=column.is_unique,
                has_default=column.has_default,
                default_value=column.default_value,
                auto_increment=column.auto_increment_flag,
                enum=column.enum,
            )
            for prop, column in get_table_columns(table).items()
        ]

    def table_config(self, table: Table) -> TableConfigInfo:
        config = get_table_config(table)
        return TableConfigInfo(
            indexes=[
                IndexInfo(
                    columns=[c.name for c in idx.columns],
                    name=idx.name,
                    unique=idx.unique,
                    method=idx.method,
                )
                for idx in config.indexes
            ],
            primary_keys=[KeyInfo(columns=[c.name for c in pk.columns], name=pk.name) for pk in config.primary_keys],
            unique_constraints=[
                KeyInfo(columns=[c.name for c in uc.columns], name=uc.name) for uc in config.unique_constraints
            ],
            foreign_keys=[
                ForeignKeyInfo(
                    columns=[c.name for c in fk.columns],
                    foreign_table=get_table_name(fk.foreign_columns[0].table) if fk.foreign_columns else "",
                    foreign_columns=[c.name for c in fk.foreign_columns],
                    name=fk.name,
                    on_delete=fk.on_delete,
                    on_update=fk.on_update,
                )
                for fk in config.foreign_keys
            ],
        )
