"""Shared pytest fixtures for schemadoc tests."""

import textwrap
from pathlib import Path

import pytest

from schemadoc.builder import SchemaExports
from schemadoc.schema import integer, mysql_table, pg_table, serial, sqlite_table, text

FIXTURES_DIR = Path(__file__).parent / "fixtures"

# Fixture schema modules are loaded by the tests, never collected
collect_ignore_glob = ["fixtures/*"]


@pytest.fixture
def fixtures_dir():
    """Directory holding the sample schema modules."""
    return FIXTURES_DIR


@pytest.fixture
def pg_v0_schema():
    """Path to the blog schema declared with relations()."""
    return str(FIXTURES_DIR / "pg_v0" / "schema.py")


@pytest.fixture
def pg_v1_schema():
    """Path to the blog schema declared with define_relations()."""
    return str(FIXTURES_DIR / "pg_v1" / "schema.py")


@pytest.fixture
def split_schema_dir():
    """Directory with a schema split over two modules plus a test module."""
    return str(FIXTURES_DIR / "split")


@pytest.fixture
def write_schema(tmp_path):
    """Write dedented schema source to a file and return its path."""

    def _write(source: str, name: str = "schema.py") -> str:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source), encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def blog_tables():
    """Users and posts tables declared in-process."""
    users = pg_table(
        "users",
        {
            "id": serial("id").primary_key(),
            "name": text("name").not_null(),
        },
    )
    posts = pg_table(
        "posts",
        {
            "id": serial("id").primary_key(),
            "authorId": integer("author_id").not_null().references(lambda: users.id, on_delete="cascade"),
        },
    )
    return {"users": users, "posts": posts}


@pytest.fixture
def blog_exports(blog_tables):
    """Exports of the in-process blog tables."""
    return SchemaExports.from_namespace(blog_tables)


@pytest.fixture
def mysql_exports():
    """Exports of a single MySQL table."""
    items = mysql_table(
        "items",
        {
            "id": integer("id").primary_key().auto_increment(),
            "label": text("label"),
        },
    )
    return SchemaExports.from_namespace({"items": items})


@pytest.fixture
def sqlite_exports():
    """Exports of a single SQLite table."""
    notes = sqlite_table(
        "notes",
        {
            "id": integer("id").primary_key(),
            "body": text("body"),
        },
    )
    return SchemaExports.from_namespace({"notes": notes})
