"""Intermediate schema builder.

Combines the loaded tables, the doc comments found in source, and the
declared relations into one ``IntermediateSchema``.
"""

import json
import logging
from typing import Dict, List, Optional, Tuple

from ..adapters.base import Cardinality, RelationAdapter, UnifiedRelation
from ..adapters.v0 import LegacyRelationAdapter
from ..adapters.v1 import ModernRelationAdapter
from ..parsers.comments import SchemaComments, extract_comments
from ..parsers.relations import ParsedRelation, extract_relations
from ..schema.columns import SQL
from ..schema.reflection import ColumnInfo, ForeignKeyInfo, SchemaReflection, TableConfigInfo
from ..schema.tables import Table
from .dialects import DialectRules, get_dialect_rules
from .loader import SchemaExports, load_schema
from .models import (
    ColumnDefinition,
    ConstraintDefinition,
    EnumDefinition,
    IndexDefinition,
    IntermediateSchema,
    RelationDefinition,
    TableDefinition,
)

logger = logging.getLogger(__name__)

DEFAULT_DIALECT = "postgresql"


def format_default_value(column: ColumnInfo) -> Optional[str]:
    """Render a column default the way it reads in SQL.

    Raw SQL expressions pass through as text, strings are single-quoted
    with ``''`` escaping, and dicts/lists become JSON.
    """
    if not column.has_default:
        return None

    value = column.default_value
    if value is None:
        return "null"
    if isinstance(value, SQL):
        return value.text
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    # bool is an int subclass, so it goes first
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return None


class SchemaBuilder:
    """Builds an ``IntermediateSchema`` from loaded schema exports.

    In relational mode relations come from ``define_relations()`` entries
    if there are any, otherwise from legacy ``relations()`` declarations.
    Otherwise every foreign key becomes a many-to-one relation.
    """

    def __init__(
        self,
        exports: SchemaExports,
        comments: Optional[SchemaComments] = None,
        parsed_relations: Optional[List[ParsedRelation]] = None,
        relational: bool = True,
        dialect: Optional[str] = None,
    ):
        """Initialize the builder.

        Args:
            exports: Classified exports of the schema modules
            comments: Doc comments extracted from the schema source
            parsed_relations: Legacy relations extracted from the schema source
            relational: Derive relations from relation declarations instead of foreign keys
            dialect: Force a dialect instead of detecting it from the tables
        """
        self.exports = exports
        self.comments = comments or SchemaComments()
        self.parsed_relations = parsed_relations or []
        self.relational = relational
        self.reflection = SchemaReflection(exports.tables)
        self.dialect = self._resolve_dialect(dialect)
        self.rules: DialectRules = get_dialect_rules(self.dialect)

    def _resolve_dialect(self, dialect: Optional[str]) -> str:
        if dialect:
            return dialect
        tables = self.reflection.list_tables()
        if tables:
            return self.reflection.dialect(tables[0])
        return DEFAULT_DIALECT

    def build(self) -> IntermediateSchema:
        """Build the intermediate schema.

        Returns:
            A freshly built schema; nothing is shared with earlier builds
        """
        tables = self.reflection.list_tables()
        configs = {self.reflection.table_name(t): self.reflection.table_config(t) for t in tables}

        table_definitions = [self._table_to_definition(t, configs[self.reflection.table_name(t)]) for t in tables]

        if self.relational:
            relations = self._relations_from_declarations(configs)
        else:
            relations = self._relations_from_foreign_keys(configs)

        enums = self._collect_enums(tables) if self.rules.supports_enums() else []

        logger.info(
            "Built %s schema: %d tables, %d relations, %d enums",
            self.dialect,
            len(table_definitions),
            len(relations),
            len(enums),
        )
        return IntermediateSchema(
            dialect=self.dialect,
            tables=table_definitions,
            relations=relations,
            enums=enums,
        )

    # --- tables -----------------------------------------------------------

    def _table_to_definition(self, table: Table, config: TableConfigInfo) -> TableDefinition:
        table_name = self.reflection.table_name(table)
        return TableDefinition(
            name=table_name,
            comment=self.comments.table_comment(table_name),
            columns=[self._column_to_definition(c, table_name) for c in self.reflection.columns(table)],
            indexes=self._extract_indexes(config),
            constraints=self._extract_constraints(config),
        )

    def _column_to_definition(self, column: ColumnInfo, table_name: str) -> ColumnDefinition:
        return ColumnDefinition(
            name=column.db_name,
            type=column.sql_type,
            nullable=column.nullable,
            default_value=format_default_value(column),
            primary_key=column.primary_key,
            unique=column.unique,
            auto_increment=self.rules.is_auto_increment(column),
            comment=self.comments.column_comment(table_name, column.db_name),
        )

    def _extract_indexes(self, config: TableConfigInfo) -> List[IndexDefinition]:
        indexes = []
        for idx in config.indexes:
            if not idx.columns:
                continue
            indexes.append(
                IndexDefinition(
                    name=idx.name or f"idx_{'_'.join(idx.columns)}",
                    columns=list(idx.columns),
                    unique=idx.unique,
                    type=idx.method,
                )
            )
        return indexes

    def _extract_constraints(self, config: TableConfigInfo) -> List[ConstraintDefinition]:
        constraints = []

        for pk in config.primary_keys:
            if pk.columns:
                constraints.append(
                    ConstraintDefinition(
                        name=pk.name or f"pk_{'_'.join(pk.columns)}",
                        type="primary_key",
                        columns=list(pk.columns),
                    )
                )

        for uc in config.unique_constraints:
            if uc.columns:
                constraints.append(
                    ConstraintDefinition(
                        name=uc.name or f"uq_{'_'.join(uc.columns)}",
                        type="unique",
                        columns=list(uc.columns),
                    )
                )

        for fk in config.foreign_keys:
            constraints.append(
                ConstraintDefinition(
                    name=fk.name or f"fk_{'_'.join(fk.columns)}_{fk.foreign_table}",
                    type="foreign_key",
                    columns=list(fk.columns),
                    referenced_table=fk.foreign_table,
                    referenced_columns=list(fk.foreign_columns),
                )
            )

        return constraints

    # --- relations --------------------------------------------------------

    def create_relation_adapter(self) -> Optional[RelationAdapter]:
        """Pick the adapter matching the relation API the schema uses."""
        if self.exports.has_relational_entries:
            return ModernRelationAdapter(self.exports.relational_entries)
        if self.exports.has_legacy_relations or self.parsed_relations:
            return LegacyRelationAdapter(self.reflection, self.parsed_relations)
        return None

    def _relations_from_declarations(self, configs: Dict[str, TableConfigInfo]) -> List[RelationDefinition]:
        adapter = self.create_relation_adapter()
        if adapter is None:
            logger.debug("No relation declarations found")
            return []

        try:
            unified = adapter.extract()
        except Exception as e:
            logger.warning("Could not extract relations with %s: %s", type(adapter).__name__, e)
            return []

        foreign_keys = self._index_foreign_keys(configs)
        return [RelationDefinition.from_unified(self._with_actions(r, foreign_keys)) for r in unified]

    @staticmethod
    def _index_foreign_keys(configs: Dict[str, TableConfigInfo]) -> Dict[Tuple, ForeignKeyInfo]:
        index: Dict[Tuple, ForeignKeyInfo] = {}
        for table_name, config in configs.items():
            for fk in config.foreign_keys:
                key = (table_name, tuple(fk.columns), fk.foreign_table, tuple(fk.foreign_columns))
                index.setdefault(key, fk)
        return index

    @staticmethod
    def _with_actions(relation: UnifiedRelation, foreign_keys: Dict[Tuple, ForeignKeyInfo]) -> UnifiedRelation:
        """Copy referential actions from the foreign key backing a relation."""
        forward = (relation.source_table, relation.source_columns, relation.target_table, relation.target_columns)
        backward = (relation.target_table, relation.target_columns, relation.source_table, relation.source_columns)
        fk = foreign_keys.get(forward) or foreign_keys.get(backward)
        if fk is None:
            return relation
        return UnifiedRelation(
            source_table=relation.source_table,
            source_columns=relation.source_columns,
            target_table=relation.target_table,
            target_columns=relation.target_columns,
            cardinality=relation.cardinality,
            on_delete=fk.on_delete,
            on_update=fk.on_update,
        )

    @staticmethod
    def _relations_from_foreign_keys(configs: Dict[str, TableConfigInfo]) -> List[RelationDefinition]:
        relations = []
        for table_name, config in configs.items():
            for fk in config.foreign_keys:
                relations.append(
                    RelationDefinition(
                        from_table=table_name,
                        from_columns=list(fk.columns),
                        to_table=fk.foreign_table,
                        to_columns=list(fk.foreign_columns),
                        type=Cardinality.MANY_TO_ONE,
                        on_delete=fk.on_delete,
                        on_update=fk.on_update,
                    )
                )
        return relations

    # --- enums ------------------------------------------------------------

    def _collect_enums(self, tables: List[Table]) -> List[EnumDefinition]:
        enums: Dict[str, EnumDefinition] = {}
        for table in tables:
            for column in self.reflection.columns(table):
                if column.enum is not None and column.enum.name not in enums:
                    enums[column.enum.name] = EnumDefinition(name=column.enum.name, values=list(column.enum.values))
        return list(enums.values())


def build_schema(
    source_path: str,
    relational: bool = True,
    dialect: Optional[str] = None,
    exports: Optional[SchemaExports] = None,
) -> IntermediateSchema:
    """Load, parse and build a schema in one go.

    Args:
        source_path: Schema file or directory
        relational: Derive relations from relation declarations instead of foreign keys
        dialect: Force a dialect instead of detecting it
        exports: Already loaded exports; loaded from ``source_path`` when omitted

    Returns:
        The intermediate schema

    Raises:
        SchemaSourceError: If a source file is missing, unreadable or invalid
        SchemaLoadError: If a schema module fails to import
    """
    comments = extract_comments(source_path)
    if exports is None:
        exports = load_schema(source_path)
    parsed_relations = extract_relations(source_path) if relational else []

    builder = SchemaBuilder(
        exports,
        comments=comments,
        parsed_relations=parsed_relations,
        relational=relational,
        dialect=dialect,
    )
    return builder.build()
