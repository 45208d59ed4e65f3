"""Column builders for the declarative table DSL."""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional


@dataclass(frozen=True)
class SQL:
    """A raw SQL expression, used for defaults like ``now()``."""

    text: str

    def __str__(self) -> str:
        return self.text


def sql(text: str) -> SQL:
    """Wrap raw SQL text so it is rendered as an expression, not a literal."""
    return SQL(text)


@dataclass
class ForeignKeyReference:
    """Inline foreign key declared with ``Column.references()``.

    The target is a zero-argument callable so tables can reference each
    other before both are defined.
    """

    target: Callable[[], "Column"]
    on_delete: Optional[str] = None
    on_update: Optional[str] = None

    def resolve(self) -> "Column":
        return self.target()


@dataclass(frozen=True)
class EnumType:
    """A named PostgreSQL enum type."""

    name: str
    values: tuple


class Column:
    """A column of a declared table.

    Builder methods mutate the column and return it so they can be
    chained: ``integer("author_id").not_null().references(lambda: users.id)``.
    """

    def __init__(self, name: str, sql_type: str, enum: Optional[EnumType] = None):
        self.name = name
        self.sql_type = sql_type
        self.enum = enum
        self.not_null_flag = False
        self.primary = False
        self.is_unique = False
        self.has_default = False
        self.default_value: Any = None
        self.auto_increment_flag = False
        self.foreign_keys: List[ForeignKeyReference] = []
        # Set when the column is attached to a table
        self.table = None
        self.property_name: Optional[str] = None

    def __repr__(self) -> str:
        return f"Column({self.name!r}, {self.sql_type!r})"

    def primary_key(self) -> "Column":
        self.primary = True
        self.not_null_flag = True
        return self

    def not_null(self) -> "Column":
        self.not_null_flag = True
        return self

    def unique(self) -> "Column":
        self.is_unique = True
        return self

    def default(self, value: Any) -> "Column":
        self.has_default = True
        self.default_value = value
        return self

    def default_now(self) -> "Column":
        return self.default(sql("now()"))

    def default_random(self) -> "Column":
        return self.default(sql("gen_random_uuid()"))

    def auto_increment(self) -> "Column":
        self.auto_increment_flag = True
        return self

    def references(
        self,
        target: Callable[[], "Column"],
        on_delete: Optional[str] = None,
        on_update: Optional[str] = None,
    ) -> "Column":
        self.foreign_keys.append(ForeignKeyReference(target, on_delete=on_delete, on_update=on_update))
        return self


def _column_factory(sql_type: str) -> Callable[[str], Column]:
    def factory(name: str) -> Column:
        return Column(name, sql_type)

    factory.__name__ = sql_type
    return factory


serial = _column_factory("serial")
bigserial = _column_factory("bigserial")
integer = _column_factory("integer")
bigint = _column_factory("bigint")
smallint = _column_factory("smallint")
text = _column_factory("text")
boolean = _column_factory("boolean")
timestamp = _column_factory("timestamp")
date = _column_factory("date")
uuid = _column_factory("uuid")
json = _column_factory("json")
jsonb = _column_factory("jsonb")
real = _column_factory("real")
double_precision = _column_factory("double precision")


def varchar(name: str, length: Optional[int] = None) -> Column:
    sql_type = f"varchar({length})" if length is not None else "varchar"
    return Column(name, sql_type)


def char(name: str, length: Optional[int] = None) -> Column:
    sql_type = f"char({length})" if length is not None else "char"
    return Column(name, sql_type)


def numeric(name: str, precision: Optional[int] = None, scale: Optional[int] = None) -> Column:
    if precision is None:
        return Column(name, "numeric")
    if scale is None:
        return Column(name, f"numeric({precision})")
    return Column(name, f"numeric({precision}, {scale})")


def pg_enum(enum_name: str, values: List[str]) -> Callable[[str], Column]:
    """Declare a PostgreSQL enum type and return a column factory for it.

    Example:
        mood = pg_enum("mood", ["sad", "ok", "happy"])
        people = pg_table("people", {"mood": mood("mood")})
    """
    enum_type = EnumType(enum_name, tuple(values))

    def factory(name: str) -> Column:
        return Column(name, enum_name, enum=enum_type)

    factory.enum = enum_type
    return factory
