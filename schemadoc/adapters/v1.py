"""Adapter for the modern ``define_relations()`` API."""

import logging
from typing import Iterable, List, Optional

from ..schema.relations import Relation, RelationKind, TableRelationalConfig, describe_relation
from ..schema.tables import get_table_name
from .base import JoinDeclaration, JoinEndpoint, RelationAdapter

logger = logging.getLogger(__name__)


class ModernRelationAdapter(RelationAdapter):
    """Resolves live relation entries returned by ``define_relations()``.

    Relations already hold column objects, so DB names are read directly.
    Reversed relations (join copied from the inverse declaration) are kept
    as one-to-one evidence but never emitted.
    """

    def __init__(self, entries: List[TableRelationalConfig]):
        self.entries = entries

    def declarations(self) -> Iterable[Relation]:
        for entry in self.entries:
            yield from entry.relations.values()

    def resolve(self, declaration: Relation) -> Optional[JoinDeclaration]:
        if declaration.kind is not RelationKind.SINGLE:
            return None

        source_columns = tuple(column.name for column in declaration.source_columns)
        target_columns = tuple(column.name for column in declaration.target_columns)
        if not source_columns or not target_columns:
            logger.debug("Skipping relation without join columns: %s", describe_relation(declaration))
            return None

        return JoinDeclaration(
            source=JoinEndpoint(get_table_name(declaration.source_table), source_columns),
            target=JoinEndpoint(get_table_name(declaration.target_table), target_columns),
            authoritative=not declaration.is_reversed,
        )
