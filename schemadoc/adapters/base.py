"""Unified relation model and the matching algorithm shared by both adapters."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class Cardinality(str, Enum):
    """Cardinality of a relation, read from source to target."""

    ONE_TO_ONE = "one-to-one"
    MANY_TO_ONE = "many-to-one"
    ONE_TO_MANY = "one-to-many"


@dataclass(frozen=True)
class UnifiedRelation:
    """A relation in canonical form, whichever API declared it.

    Table and column names are DB names. ``source_columns`` and
    ``target_columns`` always have the same non-zero length.
    """

    source_table: str
    source_columns: Tuple[str, ...]
    target_table: str
    target_columns: Tuple[str, ...]
    cardinality: Cardinality
    on_delete: Optional[str] = None
    on_update: Optional[str] = None


@dataclass(frozen=True)
class JoinEndpoint:
    table: str
    columns: Tuple[str, ...]

    def __str__(self) -> str:
        return f"{self.table}.{','.join(self.columns)}"


@dataclass(frozen=True)
class JoinDeclaration:
    """A single-record declaration resolved to DB names.

    ``authoritative`` is False for auto-generated inverses: they count as
    evidence for one-to-one but are never emitted themselves.
    """

    source: JoinEndpoint
    target: JoinEndpoint
    authoritative: bool = True

    @property
    def key(self) -> Tuple[JoinEndpoint, JoinEndpoint]:
        return (self.source, self.target)

    @property
    def reverse_key(self) -> Tuple[JoinEndpoint, JoinEndpoint]:
        return (self.target, self.source)


class RelationAdapter(ABC):
    """Turns one relation API's declarations into ``UnifiedRelation`` records.

    Subclasses only say where declarations come from and how to resolve
    one to DB names; dedup and cardinality are decided here, once.
    """

    @abstractmethod
    def declarations(self) -> Iterable[Any]:
        """Yield the raw declarations in declaration order."""
        pass

    @abstractmethod
    def resolve(self, declaration: Any) -> Optional[JoinDeclaration]:
        """Resolve a declaration, or None if it carries no usable join.

        Multi-record relations, relations without join columns, and
        relations naming unknown tables resolve to None.
        """
        pass

    def extract(self) -> List[UnifiedRelation]:
        """Extract deduplicated relations with inferred cardinality.

        A declaration is skipped if it, or its exact reverse, was already
        emitted. It is one-to-one if some single-record declaration joins
        the same columns in the opposite direction; the column order must
        match exactly. Otherwise it is many-to-one.
        """
        joins = []
        for declaration in self.declarations():
            join = self.resolve(declaration)
            if join is None:
                logger.debug("Dropped relation without usable join: %r", declaration)
                continue
            if not join.source.columns or len(join.source.columns) != len(join.target.columns):
                logger.debug("Dropped relation with mismatched join columns: %s -> %s", join.source, join.target)
                continue
            joins.append(join)

        declared_keys = {join.key for join in joins}
        emitted: Set[Tuple[JoinEndpoint, JoinEndpoint]] = set()
        relations: List[UnifiedRelation] = []

        for join in joins:
            if not join.authoritative:
                continue
            if join.key in emitted or join.reverse_key in emitted:
                continue
            emitted.add(join.key)

            one_to_one = join.reverse_key in declared_keys
            relations.append(
                UnifiedRelation(
                    source_table=join.source.table,
                    source_columns=join.source.columns,
                    target_table=join.target.table,
                    target_columns=join.target.columns,
                    cardinality=Cardinality.ONE_TO_ONE if one_to_one else Cardinality.MANY_TO_ONE,
                )
            )
            logger.debug("Relation %s -> %s (%s)", join.source, join.target, relations[-1].cardinality.value)

        return relations
