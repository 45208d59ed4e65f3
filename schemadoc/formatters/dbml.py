"""DBML output."""

import re
from typing import List

from ..adapters.base import Cardinality
from ..builder.models import (
    ColumnDefinition,
    EnumDefinition,
    IndexDefinition,
    IntermediateSchema,
    RelationDefinition,
    TableDefinition,
)
from .base import OutputFormatter

_PLAIN_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_NUMBER = re.compile(r"^-?\d+(\.\d+)?$")

# Defaults that are expressions even without parentheses
SQL_KEYWORDS = (
    "now",
    "current_timestamp",
    "current_date",
    "current_time",
    "gen_random_uuid",
    "uuid_generate_v4",
    "autoincrement",
    "auto_increment",
)

RELATION_SYMBOLS = {
    Cardinality.ONE_TO_ONE: "-",
    Cardinality.MANY_TO_ONE: ">",
    Cardinality.ONE_TO_MANY: "<",
}


class DbmlBuilder:
    """Accumulates indented DBML lines."""

    def __init__(self):
        self.lines: List[str] = []
        self.indent_level = 0

    def indent(self) -> "DbmlBuilder":
        self.indent_level += 1
        return self

    def dedent(self) -> "DbmlBuilder":
        self.indent_level = max(0, self.indent_level - 1)
        return self

    def line(self, content: str = "") -> "DbmlBuilder":
        """Add a line at the current indentation; no content adds a blank line."""
        self.lines.append(f"{'  ' * self.indent_level}{content}" if content else "")
        return self

    def build(self) -> str:
        return "\n".join(self.lines)


def escape_name(name: str) -> str:
    """Quote a name unless it is a plain identifier."""
    if _PLAIN_NAME.match(name):
        return name
    return f'"{name}"'


def escape_string(value: str) -> str:
    """Escape text for a single-quoted DBML string."""
    return value.replace("\\", "\\\\").replace("'", "\\'").replace("\n", "\\n")


class DbmlFormatter(OutputFormatter):
    """Renders a schema as DBML (https://dbml.dbdiagram.io)."""

    extension = "dbml"

    def format(self, schema: IntermediateSchema) -> str:
        dbml = DbmlBuilder()

        for enum in schema.enums:
            self._format_enum(dbml, enum)
            dbml.line()

        for table in schema.tables:
            self._format_table(dbml, table)
            dbml.line()

        for relation in schema.relations:
            dbml.line(self.format_relation(relation))

        return dbml.build().strip()

    def _format_enum(self, dbml: DbmlBuilder, enum: EnumDefinition) -> None:
        dbml.line(f"Enum {escape_name(enum.name)} {{")
        dbml.indent()
        for value in enum.values:
            dbml.line(value)
        dbml.dedent()
        dbml.line("}")

    def _format_table(self, dbml: DbmlBuilder, table: TableDefinition) -> None:
        dbml.line(f"Table {escape_name(table.name)} {{")
        dbml.indent()

        for column in table.columns:
            dbml.line(self.format_column(column))

        if self.options.include_indexes and table.indexes:
            self._format_indexes(dbml, table.indexes)

        if self.options.include_comments and table.comment:
            dbml.line()
            dbml.line(f"Note: '{escape_string(table.comment)}'")

        dbml.dedent()
        dbml.line("}")

    def format_column(self, column: ColumnDefinition) -> str:
        """Render one column line, e.g. ``id serial [primary key, not null, increment]``."""
        attrs = []
        if column.primary_key:
            attrs.append("primary key")
        if not column.nullable:
            attrs.append("not null")
        if column.unique:
            attrs.append("unique")
        if column.auto_increment:
            attrs.append("increment")
        if column.default_value is not None:
            attrs.append(f"default: {self.format_default(column.default_value)}")
        if self.options.include_comments and column.comment:
            attrs.append(f"note: '{escape_string(column.comment)}'")

        line = f"{escape_name(column.name)} {column.type}"
        if attrs:
            line += f" [{', '.join(attrs)}]"
        return line

    @staticmethod
    def format_default(value: str) -> str:
        """Render a formatted default value as a DBML default.

        Expressions are wrapped in backticks; null, booleans and numbers are
        left bare; anything else becomes a single-quoted string.
        """
        # Already a quoted SQL string literal
        if len(value) >= 2 and value.startswith("'") and value.endswith("'"):
            inner = value[1:-1].replace("''", "'")
            return f"'{escape_string(inner)}'"
        if "(" in value or "::" in value or any(kw in value.lower() for kw in SQL_KEYWORDS):
            return f"`{value}`"
        if value in ("null", "NULL", "true", "false") or _NUMBER.match(value):
            return value
        return f"'{escape_string(value)}'"

    def _format_indexes(self, dbml: DbmlBuilder, indexes: List[IndexDefinition]) -> None:
        dbml.line()
        dbml.line("indexes {")
        dbml.indent()

        for index in indexes:
            attrs = []
            if index.unique:
                attrs.append("unique")
            if index.name:
                attrs.append(f"name: '{index.name}'")
            if index.type:
                attrs.append(f"type: {index.type}")

            columns = ", ".join(escape_name(c) for c in index.columns)
            dbml.line(f"({columns})" + (f" [{', '.join(attrs)}]" if attrs else ""))

        dbml.dedent()
        dbml.line("}")

    @staticmethod
    def _endpoint(table: str, columns: List[str]) -> str:
        if len(columns) == 1:
            return f"{escape_name(table)}.{escape_name(columns[0])}"
        return f"{escape_name(table)}.({', '.join(escape_name(c) for c in columns)})"

    def format_relation(self, relation: RelationDefinition) -> str:
        """Render a relation as a ``Ref:`` line."""
        symbol = RELATION_SYMBOLS.get(relation.type, ">")
        line = (
            f"Ref: {self._endpoint(relation.from_table, relation.from_columns)} "
            f"{symbol} {self._endpoint(relation.to_table, relation.to_columns)}"
        )

        attrs = []
        if relation.on_delete and relation.on_delete.lower() != "no action":
            attrs.append(f"delete: {relation.on_delete.lower()}")
        if relation.on_update and relation.on_update.lower() != "no action":
            attrs.append(f"update: {relation.on_update.lower()}")
        if attrs:
            line += f" [{', '.join(attrs)}]"

        return line
