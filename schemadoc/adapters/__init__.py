"""Relation adapters.

Both relation APIs are normalized into ``UnifiedRelation`` records by an
adapter: ``LegacyRelationAdapter`` for ``relations()`` (join columns parsed
from source) and ``ModernRelationAdapter`` for ``define_relations()`` (join
columns read from live objects).
"""

from .base import Cardinality, JoinDeclaration, JoinEndpoint, RelationAdapter, UnifiedRelation
from .v0 import LegacyRelationAdapter
from .v1 import ModernRelationAdapter

__all__ = [
    "Cardinality",
    "JoinDeclaration",
    "JoinEndpoint",
    "RelationAdapter",
    "UnifiedRelation",
    "LegacyRelationAdapter",
    "ModernRelationAdapter",
]
