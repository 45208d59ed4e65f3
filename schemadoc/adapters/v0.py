"""Adapter for the legacy ``relations()`` API."""

import logging
from typing import Dict, Iterable, List, Optional

from ..parsers.relations import ParsedRelation
from ..schema.reflection import SchemaReflection
from ..schema.relations import RelationKind
from .base import JoinDeclaration, JoinEndpoint, RelationAdapter

logger = logging.getLogger(__name__)


class LegacyRelationAdapter(RelationAdapter):
    """Resolves relations parsed from ``relations()`` calls.

    Parsed relations name tables by declaration identifier and columns by
    property name; both are translated to DB names through the live
    reflection of the loaded schema.
    """

    def __init__(self, reflection: SchemaReflection, parsed_relations: Optional[List[ParsedRelation]]):
        """Initialize the adapter.

        Args:
            reflection: Reflection of the loaded tables, keyed by identifier
            parsed_relations: Output of ``extract_relations()``; may be None
        """
        self.reflection = reflection
        self.parsed_relations = parsed_relations or []
        self.table_names = reflection.identifiers()
        # identifier -> {property name -> DB column name}, filled lazily
        self._column_name_mappings: Dict[str, Dict[str, str]] = {}

    def declarations(self) -> Iterable[ParsedRelation]:
        return self.parsed_relations

    def resolve(self, declaration: ParsedRelation) -> Optional[JoinDeclaration]:
        if declaration.kind is not RelationKind.SINGLE or not declaration.has_join:
            return None

        source_table = self.table_names.get(declaration.source_table)
        target_table = self.table_names.get(declaration.target_table)
        if not source_table or not target_table:
            logger.debug(
                "Unresolved table in relation %s -> %s",
                declaration.source_table,
                declaration.target_table,
            )
            return None

        source_mapping = self._column_name_mapping(declaration.source_table)
        target_mapping = self._column_name_mapping(declaration.target_table)

        return JoinDeclaration(
            source=JoinEndpoint(
                source_table,
                tuple(source_mapping.get(field, field) for field in declaration.fields),
            ),
            target=JoinEndpoint(
                target_table,
                tuple(target_mapping.get(ref, ref) for ref in declaration.references),
            ),
        )

    def _column_name_mapping(self, identifier: str) -> Dict[str, str]:
        """Property name -> DB column name for one table, memoized."""
        if identifier in self._column_name_mappings:
            return self._column_name_mappings[identifier]

        mapping: Dict[str, str] = {}
        table = self.reflection.get(identifier)
        if table is not None:
            for column in self.reflection.columns(table):
                mapping[column.name] = column.db_name

        self._column_name_mappings[identifier] = mapping
        return mapping
