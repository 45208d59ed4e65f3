"""Loading schema modules and classifying what they export."""

import importlib.util
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Set

from ..errors import SchemaLoadError
from ..parsers.base import iter_schema_files
from ..schema.relations import LegacyRelations, RelationKind, TableRelationalConfig
from ..schema.tables import Table, is_table

logger = logging.getLogger(__name__)

MODULE_PREFIX = "_schemadoc_schema"


def _is_relational_entry(value: Any) -> bool:
    """Check whether a value has the shape of a ``define_relations()`` entry."""
    if isinstance(value, TableRelationalConfig):
        return True
    relations = getattr(value, "relations", None)
    return (
        is_table(getattr(value, "table", None))
        and isinstance(getattr(value, "name", None), str)
        and isinstance(relations, Mapping)
        and all(isinstance(getattr(r, "kind", None), RelationKind) for r in relations.values())
    )


@dataclass
class SchemaExports:
    """The module-level values of a schema, classified once.

    Attributes:
        tables: Declaration identifier -> table
        legacy_relations: ``relations()`` results
        relational_entries: ``define_relations()`` entries, exported one by
            one or as the whole result dict
    """

    tables: Dict[str, Table] = field(default_factory=dict)
    legacy_relations: List[LegacyRelations] = field(default_factory=list)
    relational_entries: List[TableRelationalConfig] = field(default_factory=list)

    @classmethod
    def from_namespace(cls, namespace: Mapping[str, Any]) -> "SchemaExports":
        exports = cls()
        exports.add_namespace(namespace)
        return exports

    def add_namespace(self, namespace: Mapping[str, Any]) -> None:
        """Classify the values of a module namespace and add them."""
        for identifier, value in namespace.items():
            if identifier.startswith("__"):
                continue
            if is_table(value):
                self.tables[identifier] = value
            elif isinstance(value, LegacyRelations):
                self.legacy_relations.append(value)
            elif _is_relational_entry(value):
                self._add_entry(value)
            elif isinstance(value, Mapping) and value and all(_is_relational_entry(v) for v in value.values()):
                for entry in value.values():
                    self._add_entry(entry)

    def _add_entry(self, entry: TableRelationalConfig) -> None:
        # The same entry can be exported alone and inside its result dict
        if not any(existing is entry for existing in self.relational_entries):
            self.relational_entries.append(entry)

    @property
    def has_relational_entries(self) -> bool:
        return bool(self.relational_entries)

    @property
    def has_legacy_relations(self) -> bool:
        return bool(self.legacy_relations)


@contextmanager
def _on_sys_path(directory: Path) -> Iterator[None]:
    """Temporarily make sibling modules of a schema file importable."""
    entry = str(directory)
    sys.path.insert(0, entry)
    try:
        yield
    finally:
        try:
            sys.path.remove(entry)
        except ValueError:
            pass


def _module_file(module: ModuleType) -> Optional[Path]:
    filename = getattr(module, "__file__", None)
    return Path(filename).resolve() if isinstance(filename, str) else None


@contextmanager
def _isolated_modules(root: Path) -> Iterator[Set[str]]:
    """Forget schema modules imported while loading once loading is done.

    Schema files importing each other by plain name (``from accounts import
    accounts``) land in ``sys.modules``; dropping them makes the next load
    read the files again instead of reusing stale tables.
    """
    before = set(sys.modules)
    try:
        yield before
    finally:
        for name in [n for n in sys.modules if n not in before]:
            module_file = _module_file(sys.modules[name])
            if name.startswith(MODULE_PREFIX) or (module_file is not None and root in module_file.parents):
                del sys.modules[name]


def _find_loaded(path: Path, before: Set[str]) -> Optional[ModuleType]:
    """Return the module a sibling already imported from ``path`` during this load."""
    target = path.resolve()
    for name, module in list(sys.modules.items()):
        if name not in before and _module_file(module) == target:
            return module
    return None


def _load_module(path: Path, index: int) -> ModuleType:
    module_name = f"{MODULE_PREFIX}_{index}_{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise SchemaLoadError(f"Cannot load schema module: {path}", details={"path": str(path)})

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    # Siblings importing this file by plain name get the same tables
    alias = path.stem if path.stem.isidentifier() and path.stem not in sys.modules else None
    if alias:
        sys.modules[alias] = module
    try:
        with _on_sys_path(path.parent):
            spec.loader.exec_module(module)
    except Exception as e:
        sys.modules.pop(module_name, None)
        if alias:
            sys.modules.pop(alias, None)
        raise SchemaLoadError(
            f"Failed to import schema file {path}: {e}",
            details={"path": str(path), "error": type(e).__name__},
        ) from e

    logger.debug("Loaded schema module %s from %s", module_name, path)
    return module


def load_schema(source_path: str) -> SchemaExports:
    """Import a schema file, or every schema file of a directory.

    Every call reads the files again; modules imported along the way are
    not kept between calls.

    Args:
        source_path: Path to a ``.py`` schema file or a directory of them

    Returns:
        The classified exports of all loaded modules

    Raises:
        SchemaSourceError: If the path does not exist
        SchemaLoadError: If a module fails to import or execute
    """
    exports = SchemaExports()
    files = iter_schema_files(source_path)
    if not files:
        raise SchemaLoadError(f"No schema files found at {source_path}", details={"path": str(source_path)})

    # Files may have been written since the last import from their directory
    importlib.invalidate_caches()
    source = Path(source_path).resolve()
    root = source if source.is_dir() else source.parent
    with _isolated_modules(root) as before:
        for index, path in enumerate(files):
            module = _find_loaded(path, before) or _load_module(path, index)
            exports.add_namespace(vars(module))

    logger.info(
        "Loaded %d tables, %d legacy relation sets, %d relational entries from %s",
        len(exports.tables),
        len(exports.legacy_relations),
        len(exports.relational_entries),
        source_path,
    )
    return exports
