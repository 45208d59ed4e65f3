"""Declarative table DSL and reflection layer.

Schema modules import from here:

    from schemadoc.schema import pg_table, serial, integer, relations
"""

from .columns import (
    SQL,
    Column,
    EnumType,
    bigint,
    bigserial,
    boolean,
    char,
    date,
    double_precision,
    integer,
    json,
    jsonb,
    numeric,
    pg_enum,
    real,
    serial,
    smallint,
    sql,
    text,
    timestamp,
    uuid,
    varchar,
)
from .tables import (
    TABLE_CONSTRUCTORS,
    Table,
    foreign_key,
    get_table_columns,
    get_table_config,
    get_table_dialect,
    get_table_name,
    index,
    is_table,
    mysql_table,
    pg_table,
    primary_key,
    sqlite_table,
    unique,
    unique_index,
)
from .relations import (
    LegacyRelations,
    Relation,
    RelationKind,
    TableRelationalConfig,
    define_relations,
    relations,
)
from .reflection import ColumnInfo, SchemaReflection, TableConfigInfo

__all__ = [
    # Columns
    "SQL",
    "Column",
    "EnumType",
    "bigint",
    "bigserial",
    "boolean",
    "char",
    "date",
    "double_precision",
    "integer",
    "json",
    "jsonb",
    "numeric",
    "pg_enum",
    "real",
    "serial",
    "smallint",
    "sql",
    "text",
    "timestamp",
    "uuid",
    "varchar",
    # Tables
    "TABLE_CONSTRUCTORS",
    "Table",
    "foreign_key",
    "get_table_columns",
    "get_table_config",
    "get_table_dialect",
    "get_table_name",
    "index",
    "is_table",
    "mysql_table",
    "pg_table",
    "primary_key",
    "sqlite_table",
    "unique",
    "unique_index",
    # Relations
    "LegacyRelations",
    "Relation",
    "RelationKind",
    "TableRelationalConfig",
    "define_relations",
    "relations",
    # Reflection
    "ColumnInfo",
    "SchemaReflection",
    "TableConfigInfo",
]
