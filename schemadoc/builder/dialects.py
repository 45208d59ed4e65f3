"""Dialect-specific column rules."""

from abc import ABC, abstractmethod
from typing import Dict

from ..schema.reflection import ColumnInfo


class DialectRules(ABC):
    """Abstract base class for per-dialect column rules."""

    name: str = ""

    @abstractmethod
    def is_auto_increment(self, column: ColumnInfo) -> bool:
        """Whether the database generates the column's value."""
        pass

    def supports_enums(self) -> bool:
        """Whether the dialect has named enum types."""
        return False


class PostgresRules(DialectRules):
    """Rules for PostgreSQL."""

    name = "postgresql"

    def is_auto_increment(self, column: ColumnInfo) -> bool:
        # serial, bigserial, smallserial
        return "serial" in column.sql_type.lower()

    def supports_enums(self) -> bool:
        return True


class MySqlRules(DialectRules):
    """Rules for MySQL."""

    name = "mysql"

    def is_auto_increment(self, column: ColumnInfo) -> bool:
        return column.auto_increment


class SqliteRules(DialectRules):
    """Rules for SQLite."""

    name = "sqlite"

    def is_auto_increment(self, column: ColumnInfo) -> bool:
        # INTEGER PRIMARY KEY aliases the rowid
        return column.sql_type.lower() == "integer" and column.primary_key


_RULES: Dict[str, DialectRules] = {
    rules.name: rules for rules in (PostgresRules(), MySqlRules(), SqliteRules())
}

SUPPORTED_DIALECTS = tuple(_RULES)


def get_dialect_rules(dialect: str) -> DialectRules:
    """Look up the rules for a dialect.

    Args:
        dialect: One of ``postgresql``, ``mysql`` or ``sqlite``

    Raises:
        ValueError: If the dialect is not supported
    """
    try:
        return _RULES[dialect]
    except KeyError:
        raise ValueError(
            f"Unsupported dialect: {dialect}. Supported: {', '.join(SUPPORTED_DIALECTS)}"
        ) from None
