"""Mermaid ER diagram output."""

import re
from typing import Dict, List, Optional, Set

from pydantic import Field

from ..adapters.base import Cardinality
from ..builder.models import ColumnDefinition, IntermediateSchema, RelationDefinition, TableDefinition
from .base import FormatterOptions, OutputFormatter

_PLAIN_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
_TYPE_ARGUMENTS = re.compile(r"\([^)]*\)")

RELATION_SYMBOLS = {
    Cardinality.ONE_TO_ONE: "||--||",
    Cardinality.ONE_TO_MANY: "||--o{",
    Cardinality.MANY_TO_ONE: "}o--||",
}

# Short names for SQL types; anything else is shown lowercased as declared
TYPE_ALIASES = {
    "integer": "int",
    "timestamp with time zone": "timestamptz",
    "time with time zone": "timetz",
    "double precision": "double",
}


class MermaidFormatterOptions(FormatterOptions):
    """Options for ``MermaidFormatter``."""
    include_column_types: bool = Field(default=True, description="Show column types on attributes")


def escape_name(name: str) -> str:
    """Make a name usable as a Mermaid entity or attribute name."""
    if _PLAIN_NAME.match(name):
        return name
    return re.sub(r"[^a-zA-Z0-9_]", "_", name)


def escape_string(value: str) -> str:
    """Escape text for a double-quoted Mermaid string."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", " ")


def simplify_type(sql_type: str) -> str:
    """Drop type arguments and shorten common names: ``varchar(255)`` -> ``varchar``."""
    simplified = _TYPE_ARGUMENTS.sub("", sql_type).strip().lower()
    simplified = TYPE_ALIASES.get(simplified, simplified)
    # Attribute types must be a single word
    return re.sub(r"\s+", "_", simplified)


class MermaidFormatter(OutputFormatter):
    """Renders a schema as a Mermaid ``erDiagram``.

    Relations come first, one edge per relation labelled with the source
    columns, followed by one entity block per table. Attributes carry
    ``PK``, ``FK`` and ``UK`` markers; foreign keys are the source columns
    of the relations.
    """

    extension = "mmd"

    def __init__(self, options: Optional[MermaidFormatterOptions] = None):
        super().__init__(options or MermaidFormatterOptions())

    def format(self, schema: IntermediateSchema) -> str:
        return self._diagram(schema.tables, schema.relations)

    def format_focused(self, schema: IntermediateSchema, table_name: str) -> str:
        """Render one table together with the tables it is related to.

        Args:
            schema: The schema to render
            table_name: The table to focus on

        Returns:
            The diagram; just ``erDiagram`` when the table does not exist
        """
        if schema.get_table(table_name) is None:
            return "erDiagram"

        relations = [r for r in schema.relations if table_name in (r.from_table, r.to_table)]
        related = {table_name}
        for relation in relations:
            related.update((relation.from_table, relation.to_table))

        return self._diagram([t for t in schema.tables if t.name in related], relations)

    def _diagram(self, tables: List[TableDefinition], relations: List[RelationDefinition]) -> str:
        lines = ["erDiagram"]
        foreign_keys = self._foreign_key_columns(relations)

        for relation in relations:
            lines.append(f"    {self.format_relation(relation)}")

        if relations and tables:
            lines.append("")

        for table in tables:
            lines.extend(self._table_lines(table, foreign_keys.get(table.name, set())))

        return "\n".join(lines)

    @staticmethod
    def _foreign_key_columns(relations: List[RelationDefinition]) -> Dict[str, Set[str]]:
        columns: Dict[str, Set[str]] = {}
        for relation in relations:
            columns.setdefault(relation.from_table, set()).update(relation.from_columns)
        return columns

    def _table_lines(self, table: TableDefinition, foreign_keys: Set[str]) -> List[str]:
        primary_keys = set(table.get_primary_key_columns())
        lines = [f"    {escape_name(table.name)} {{"]
        for column in table.columns:
            lines.append(f"        {self.format_column(column, column.name in primary_keys, column.name in foreign_keys)}")
        lines.append("    }")
        return lines

    def format_column(self, column: ColumnDefinition, primary_key: bool = False, foreign_key: bool = False) -> str:
        """Render one attribute line of an entity block."""
        parts = []
        if self.options.include_column_types:
            parts.append(simplify_type(column.type))
        parts.append(escape_name(column.name))

        primary_key = primary_key or column.primary_key
        markers = []
        if primary_key:
            markers.append("PK")
        if foreign_key:
            markers.append("FK")
        if column.unique and not primary_key:
            markers.append("UK")
        if markers:
            parts.append(",".join(markers))

        if self.options.include_comments and column.comment:
            parts.append(f'"{escape_string(column.comment)}"')

        return " ".join(parts)

    @staticmethod
    def format_relation(relation: RelationDefinition) -> str:
        symbol = RELATION_SYMBOLS[relation.type]
        label = ", ".join(relation.from_columns)
        return f'{escape_name(relation.from_table)} {symbol} {escape_name(relation.to_table)} : "{label}"'
