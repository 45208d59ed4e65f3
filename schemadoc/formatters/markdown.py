"""Markdown output in the style of tbls."""

import re
from typing import Dict, List, Optional, Tuple

from pydantic import Field

from ..adapters.base import Cardinality
from ..builder.models import (
    ColumnDefinition,
    ConstraintDefinition,
    EnumDefinition,
    IndexDefinition,
    IntermediateSchema,
    RelationDefinition,
    TableDefinition,
)
from .base import FormatterOptions, OutputFormatter

INDEX_FILE = "README.md"

CONSTRAINT_LABELS = {
    "primary_key": "PRIMARY KEY",
    "foreign_key": "FOREIGN KEY",
    "unique": "UNIQUE",
}

RELATION_LABELS = {
    Cardinality.ONE_TO_ONE: "One to One",
    Cardinality.ONE_TO_MANY: "One to Many",
    Cardinality.MANY_TO_ONE: "Many to One",
}


class MarkdownFormatterOptions(FormatterOptions):
    """Options for ``MarkdownFormatter``."""
    use_relative_links: bool = Field(default=True, description="Link table references")


def slugify(value: str) -> str:
    """Create a URL-safe anchor from a table name."""
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def escape_markdown(value: str) -> str:
    """Escape text for use inside a Markdown table cell."""
    return value.replace("|", "\\|").replace("\n", " ")


class MarkdownFormatter(OutputFormatter):
    """Renders a schema as Markdown documentation.

    ``format()`` produces one document holding the table index, the enums
    and every table. ``format_files()`` splits the same content into a
    ``README.md`` index plus one file per table, with links between files.
    """

    extension = "md"

    def __init__(self, options: Optional[MarkdownFormatterOptions] = None):
        super().__init__(options or MarkdownFormatterOptions())
        # Link targets point at anchors in one document, or at sibling files
        self._multi_file = False

    @property
    def use_relative_links(self) -> bool:
        return getattr(self.options, "use_relative_links", True)

    def format(self, schema: IntermediateSchema) -> str:
        self._multi_file = False
        sections = [self.generate_index(schema)]

        if schema.enums:
            sections.append(self.generate_enums_section(schema.enums))

        for table in schema.tables:
            sections.append(self.generate_table_doc(table, schema))

        return "\n\n---\n\n".join(sections).strip()

    def format_files(self, schema: IntermediateSchema) -> Dict[str, str]:
        """Render the schema as separate documents.

        Returns:
            File name -> content, starting with ``README.md``
        """
        self._multi_file = True
        try:
            index = self.generate_index(schema)
            if schema.enums:
                index += "\n\n" + self.generate_enums_section(schema.enums)

            files = {INDEX_FILE: index.strip() + "\n"}
            for table in schema.tables:
                files[self.table_file_name(table.name)] = self.generate_table_doc(table, schema).strip() + "\n"
            return files
        finally:
            self._multi_file = False

    @staticmethod
    def table_file_name(table_name: str) -> str:
        return f"{slugify(table_name) or 'table'}.md"

    def _link(self, text: str, table_name: str) -> str:
        if not self.use_relative_links:
            return text
        target = self.table_file_name(table_name) if self._multi_file else f"#{slugify(table_name)}"
        return f"[{text}]({target})"

    # --- index ------------------------------------------------------------

    def generate_index(self, schema: IntermediateSchema) -> str:
        """Generate the table index."""
        lines = ["# Tables", ""]

        if not schema.tables:
            lines.append("No tables defined.")
            return "\n".join(lines)

        lines.append("| Name | Columns | Comment |")
        lines.append("|------|---------|---------|")
        for table in schema.tables:
            comment = escape_markdown(table.comment) if self.options.include_comments and table.comment else ""
            lines.append(f"| {self._link(table.name, table.name)} | {len(table.columns)} | {comment} |")

        return "\n".join(lines)

    def generate_enums_section(self, enums: List[EnumDefinition]) -> str:
        lines = ["# Enums", ""]
        for enum in enums:
            lines.append(f"## {enum.name}")
            lines.append("")
            lines.append("| Value |")
            lines.append("|-------|")
            for value in enum.values:
                lines.append(f"| {escape_markdown(value)} |")
            lines.append("")
        return "\n".join(lines).strip()

    # --- tables -----------------------------------------------------------

    def generate_table_doc(self, table: TableDefinition, schema: IntermediateSchema) -> str:
        """Generate the documentation of one table."""
        lines = [f"## {table.name}", ""]

        if self.options.include_comments and table.comment:
            lines.append(escape_markdown(table.comment))
            lines.append("")

        lines.append(self._columns_table(table.columns, table.name, schema.relations))

        if self.options.include_constraints and table.constraints:
            lines.append("")
            lines.append(self._constraints_table(table.constraints))

        if self.options.include_indexes and table.indexes:
            lines.append("")
            lines.append(self._indexes_table(table.indexes))

        table_relations = [r for r in schema.relations if table.name in (r.from_table, r.to_table)]
        if table_relations:
            lines.append("")
            lines.append(self._relations_table(table_relations, table.name))

        return "\n".join(lines)

    def _columns_table(
        self,
        columns: List[ColumnDefinition],
        table_name: str,
        relations: List[RelationDefinition],
    ) -> str:
        lines = ["### Columns", ""]

        if not columns:
            lines.append("No columns defined.")
            return "\n".join(lines)

        lines.append("| Name | Type | Default | Nullable | Children | Parents | Comment |")
        lines.append("|------|------|---------|----------|----------|---------|---------|")

        for column in columns:
            # Children reference this column; parents are referenced by it
            children = [
                (r.from_table, ", ".join(r.from_columns))
                for r in relations
                if r.to_table == table_name and column.name in r.to_columns
            ]
            parents = [
                (r.to_table, ", ".join(r.to_columns))
                for r in relations
                if r.from_table == table_name and column.name in r.from_columns
            ]

            name = f"**{column.name}**" if column.primary_key else column.name
            default = f"`{escape_markdown(column.default_value)}`" if column.default_value is not None else "-"
            nullable = "YES" if column.nullable else "NO"
            comment = escape_markdown(column.comment) if self.options.include_comments and column.comment else "-"

            lines.append(
                f"| {name} | {escape_markdown(column.type)} | {default} | {nullable} | "
                f"{self._relation_links(children)} | {self._relation_links(parents)} | {comment} |"
            )

        return "\n".join(lines)

    def _relation_links(self, endpoints: List[Tuple[str, str]]) -> str:
        if not endpoints:
            return "-"
        return ", ".join(self._link(f"{table}.{columns}", table) for table, columns in endpoints)

    def _constraints_table(self, constraints: List[ConstraintDefinition]) -> str:
        lines = ["### Constraints", ""]
        lines.append("| Name | Type | Definition |")
        lines.append("|------|------|------------|")

        for constraint in constraints:
            columns = ", ".join(constraint.columns)
            if constraint.is_foreign_key and constraint.referenced_table:
                referenced = ", ".join(constraint.referenced_columns or [])
                definition = f"({columns}) → {constraint.referenced_table}({referenced})"
            else:
                definition = f"({columns})"
            label = CONSTRAINT_LABELS.get(constraint.type, constraint.type)
            lines.append(f"| {constraint.name or '-'} | {label} | {definition} |")

        return "\n".join(lines)

    def _indexes_table(self, indexes: List[IndexDefinition]) -> str:
        lines = ["### Indexes", ""]
        lines.append("| Name | Columns | Unique | Type |")
        lines.append("|------|---------|--------|------|")

        for index in indexes:
            unique = "YES" if index.unique else "NO"
            lines.append(f"| {index.name or '-'} | {', '.join(index.columns)} | {unique} | {index.type or '-'} |")

        return "\n".join(lines)

    def _relations_table(self, relations: List[RelationDefinition], table_name: str) -> str:
        lines = ["### Relations", ""]
        lines.append("| Parent | Child | Type |")
        lines.append("|--------|-------|------|")

        for relation in relations:
            parent = self._link(f"{relation.to_table}.{', '.join(relation.to_columns)}", relation.to_table)
            child = self._link(f"{relation.from_table}.{', '.join(relation.from_columns)}", relation.from_table)

            # Highlight the side belonging to the current table
            if relation.to_table == table_name:
                parent = f"**{parent}**"
            else:
                child = f"**{child}**"

            label = RELATION_LABELS.get(relation.type, str(relation.type))
            lines.append(f"| {parent} | {child} | {label} |")

        return "\n".join(lines)
