"""Table constructors, table-level constraints, and reflection accessors."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .columns import Column

DIALECTS = ("postgresql", "mysql", "sqlite")


class IndexBuilder:
    """Built by ``index()`` / ``unique_index()``; finished with ``.on(...)``."""

    def __init__(self, name: Optional[str] = None, unique: bool = False):
        self.name = name
        self.unique = unique
        self.columns: List[Column] = []
        self.method: Optional[str] = None

    def on(self, *columns: Column) -> "IndexBuilder":
        self.columns = list(columns)
        return self

    def using(self, method: str) -> "IndexBuilder":
        self.method = method
        return self


class UniqueConstraintBuilder:
    """Built by ``unique()``; finished with ``.on(...)``."""

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self.columns: List[Column] = []

    def on(self, *columns: Column) -> "UniqueConstraintBuilder":
        self.columns = list(columns)
        return self


@dataclass
class PrimaryKeyBuilder:
    columns: List[Column]
    name: Optional[str] = None


@dataclass
class ForeignKeyBuilder:
    columns: List[Column]
    foreign_columns: List[Column]
    name: Optional[str] = None
    on_delete: Optional[str] = None
    on_update: Optional[str] = None


def index(name: Optional[str] = None) -> IndexBuilder:
    return IndexBuilder(name)


def unique_index(name: Optional[str] = None) -> IndexBuilder:
    return IndexBuilder(name, unique=True)


def unique(name: Optional[str] = None) -> UniqueConstraintBuilder:
    return UniqueConstraintBuilder(name)


def primary_key(columns: List[Column], name: Optional[str] = None) -> PrimaryKeyBuilder:
    return PrimaryKeyBuilder(list(columns), name)


def foreign_key(
    columns: List[Column],
    foreign_columns: List[Column],
    name: Optional[str] = None,
    on_delete: Optional[str] = None,
    on_update: Optional[str] = None,
) -> ForeignKeyBuilder:
    return ForeignKeyBuilder(list(columns), list(foreign_columns), name, on_delete, on_update)


@dataclass
class TableMeta:
    """Internal state of a table, kept off the attribute namespace."""

    name: str
    dialect: str
    columns: Dict[str, Column]
    extra_config: Optional[Callable[["Table"], List[Any]]] = None


class Table:
    """A declared table.

    Columns are reachable as attributes by their property name, so the
    table's own bookkeeping lives under ``_meta`` to avoid clashing with
    columns called ``name`` or ``columns``.
    """

    def __init__(self, meta: TableMeta):
        object.__setattr__(self, "_meta", meta)
        for prop, column in meta.columns.items():
            column.table = self
            column.property_name = prop

    def __getattr__(self, item: str) -> Column:
        columns = self._meta.columns
        if item in columns:
            return columns[item]
        raise AttributeError(f"Table {self._meta.name!r} has no column {item!r}")

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError("Tables are immutable once declared")

    def __repr__(self) -> str:
        return f"<{self._meta.dialect} table {self._meta.name!r}>"


def _table_constructor(dialect: str) -> Callable[..., Table]:
    def constructor(
        name: str,
        columns: Dict[str, Column],
        extra_config: Optional[Callable[[Table], List[Any]]] = None,
    ) -> Table:
        return Table(TableMeta(name=name, dialect=dialect, columns=dict(columns), extra_config=extra_config))

    return constructor


pg_table = _table_constructor("postgresql")
pg_table.__name__ = "pg_table"
mysql_table = _table_constructor("mysql")
mysql_table.__name__ = "mysql_table"
sqlite_table = _table_constructor("sqlite")
sqlite_table.__name__ = "sqlite_table"

# Constructor names recognised when scanning source code for tables
TABLE_CONSTRUCTORS = frozenset({"pg_table", "mysql_table", "sqlite_table"})


@dataclass
class TableConfig:
    """Table-level structure gathered from columns and ``extra_config``."""

    indexes: List[IndexBuilder] = field(default_factory=list)
    primary_keys: List[PrimaryKeyBuilder] = field(default_factory=list)
    unique_constraints: List[UniqueConstraintBuilder] = field(default_factory=list)
    foreign_keys: List[ForeignKeyBuilder] = field(default_factory=list)


def is_table(value: Any) -> bool:
    """Check whether a value has the shape of a declared table."""
    meta = getattr(value, "__dict__", {}).get("_meta")
    return isinstance(meta, TableMeta) and meta.dialect in DIALECTS


def get_table_name(table: Table) -> str:
    return table._meta.name


def get_table_dialect(table: Table) -> str:
    return table._meta.dialect


def get_table_columns(table: Table) -> Dict[str, Column]:
    """Return the ordered property-name -> column map of a table."""
    return dict(table._meta.columns)


def get_table_config(table: Table) -> TableConfig:
    """Collect indexes and constraints declared on a table.

    Inline ``references()`` on columns become foreign keys ahead of the
    ones listed in ``extra_config``.
    """
    config = TableConfig()
    meta = table._meta

    for column in meta.columns.values():
        for ref in column.foreign_keys:
            config.foreign_keys.append(
                ForeignKeyBuilder(
                    columns=[column],
                    foreign_columns=[ref.resolve()],
                    on_delete=ref.on_delete,
                    on_update=ref.on_update,
                )
            )

    if meta.extra_config is None:
        return config

    extras = meta.extra_config(table)
    if isinstance(extras, dict):
        extras = list(extras.values())

    for item in extras or []:
        if isinstance(item, IndexBuilder):
            config.indexes.append(item)
        elif isinstance(item, PrimaryKeyBuilder):
            config.primary_keys.append(item)
        elif isinstance(item, UniqueConstraintBuilder):
            config.unique_constraints.append(item)
        elif isinstance(item, ForeignKeyBuilder):
            config.foreign_keys.append(item)

    return config
