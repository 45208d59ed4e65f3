"""Intermediate schema data models.

These are the dialect-independent shapes every output formatter consumes.
"""

from typing import Optional, List
from dataclasses import dataclass, field

from ..adapters.base import Cardinality, UnifiedRelation


@dataclass
class ColumnDefinition:
    """Represents a table column."""
    name: str
    type: str
    nullable: bool = True
    default_value: Optional[str] = None
    primary_key: bool = False
    unique: bool = False
    auto_increment: bool = False
    comment: Optional[str] = None


@dataclass
class IndexDefinition:
    """Represents an index on one or more columns."""
    name: str
    columns: List[str]
    unique: bool = False
    type: Optional[str] = None


@dataclass
class ConstraintDefinition:
    """Represents a table constraint.

    ``type`` is one of ``primary_key``, ``unique`` or ``foreign_key``; the
    referenced fields are only set for foreign keys.
    """
    name: str
    type: str
    columns: List[str]
    referenced_table: Optional[str] = None
    referenced_columns: Optional[List[str]] = None

    @property
    def is_foreign_key(self) -> bool:
        return self.type == "foreign_key"


@dataclass
class TableDefinition:
    """Represents a table with its columns, indexes and constraints."""
    name: str
    comment: Optional[str] = None
    columns: List[ColumnDefinition] = field(default_factory=list)
    indexes: List[IndexDefinition] = field(default_factory=list)
    constraints: List[ConstraintDefinition] = field(default_factory=list)

    def get_column(self, name: str) -> Optional[ColumnDefinition]:
        """Get a column by name."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def get_primary_key_columns(self) -> List[str]:
        """Get the names of the primary key columns, composite keys included."""
        names = [column.name for column in self.columns if column.primary_key]
        for constraint in self.constraints:
            if constraint.type == "primary_key":
                for name in constraint.columns:
                    if name not in names:
                        names.append(name)
        return names


@dataclass
class RelationDefinition:
    """Represents a relation between two tables."""
    from_table: str
    from_columns: List[str]
    to_table: str
    to_columns: List[str]
    type: Cardinality
    on_delete: Optional[str] = None
    on_update: Optional[str] = None

    @classmethod
    def from_unified(cls, relation: UnifiedRelation) -> "RelationDefinition":
        """Convert an adapter relation into its intermediate form."""
        return cls(
            from_table=relation.source_table,
            from_columns=list(relation.source_columns),
            to_table=relation.target_table,
            to_columns=list(relation.target_columns),
            type=relation.cardinality,
            on_delete=relation.on_delete,
            on_update=relation.on_update,
        )


@dataclass
class EnumDefinition:
    """Represents a PostgreSQL enum type."""
    name: str
    values: List[str]


@dataclass
class IntermediateSchema:
    """A whole schema, ready to be rendered."""
    dialect: str
    tables: List[TableDefinition] = field(default_factory=list)
    relations: List[RelationDefinition] = field(default_factory=list)
    enums: List[EnumDefinition] = field(default_factory=list)

    def get_table(self, name: str) -> Optional[TableDefinition]:
        """Get a table by name."""
        for table in self.tables:
            if table.name == name:
                return table
        return None
