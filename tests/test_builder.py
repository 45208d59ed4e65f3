"""Tests for schema loading and intermediate schema building."""

import logging
import sys

import pytest

from schemadoc.adapters import Cardinality
from schemadoc.builder import (
    SchemaBuilder,
    SchemaExports,
    build_schema,
    format_default_value,
    load_schema,
)
from schemadoc.builder.loader import MODULE_PREFIX
from schemadoc.errors import SchemaLoadError, SchemaSourceError
from schemadoc.parsers.relations import ParsedRelation
from schemadoc.schema import (
    ColumnInfo,
    define_relations,
    foreign_key,
    get_table_config,
    index,
    integer,
    jsonb,
    pg_table,
    primary_key,
    relations,
    serial,
    sql,
    text,
    unique,
)
from schemadoc.schema.relations import RelationKind


def _column(value, has_default=True):
    return ColumnInfo(name="c", db_name="c", sql_type="text", has_default=has_default, default_value=value)


class TestFormatDefaultValue:
    """Test rendering of column defaults."""

    def test_no_default(self):
        assert format_default_value(_column(None, has_default=False)) is None

    def test_null_default(self):
        assert format_default_value(_column(None)) == "null"

    def test_sql_expression_passes_through(self):
        assert format_default_value(_column(sql("now()"))) == "now()"

    def test_string_is_quoted_and_escaped(self):
        assert format_default_value(_column("it's")) == "'it''s'"

    def test_booleans(self):
        assert format_default_value(_column(True)) == "true"
        assert format_default_value(_column(False)) == "false"

    def test_numbers(self):
        assert format_default_value(_column(0)) == "0"
        assert format_default_value(_column(1.5)) == "1.5"

    def test_json_values(self):
        assert format_default_value(_column({"a": 1})) == '{"a": 1}'
        assert format_default_value(_column([1, 2])) == "[1, 2]"


class TestSchemaExports:
    """Test classification of module-level values."""

    def test_classifies_tables_and_relations(self, blog_tables):
        legacy = relations(blog_tables["posts"], lambda h: {})
        modern = define_relations(blog_tables, lambda r: {})

        exports = SchemaExports.from_namespace({
            **blog_tables,
            "posts_relations": legacy,
            "schema_relations": modern,
            "not_a_table": {"name": "users"},
            "number": 3,
        })

        assert list(exports.tables) == ["users", "posts"]
        assert exports.legacy_relations == [legacy]
        assert len(exports.relational_entries) == 2

    def test_entries_exported_twice_are_kept_once(self, blog_tables):
        modern = define_relations(blog_tables, lambda r: {})

        exports = SchemaExports.from_namespace({"all": modern, "users_entry": modern["users"]})

        assert len(exports.relational_entries) == 2


class TestLoadSchema:
    """Test importing schema modules."""

    def test_load_file(self, pg_v0_schema):
        exports = load_schema(pg_v0_schema)

        assert list(exports.tables) == ["users", "profiles", "posts"]
        assert len(exports.legacy_relations) == 3
        assert not exports.has_relational_entries

    def test_load_modern_file(self, pg_v1_schema):
        exports = load_schema(pg_v1_schema)

        assert exports.has_relational_entries
        assert {entry.name for entry in exports.relational_entries} == {"users", "profiles", "posts"}

    def test_load_directory_skips_test_modules(self, split_schema_dir):
        exports = load_schema(split_schema_dir)

        assert set(exports.tables) == {"accounts", "orders"}

    def test_missing_path(self, tmp_path):
        with pytest.raises(SchemaSourceError):
            load_schema(str(tmp_path / "nope.py"))

    def test_import_error_becomes_load_error(self, write_schema):
        path = write_schema('''
            raise ValueError("broken schema")
        ''')

        with pytest.raises(SchemaLoadError) as exc_info:
            load_schema(path)

        assert "broken schema" in exc_info.value.message
        assert exc_info.value.details["error"] == "ValueError"

    def test_empty_directory(self, tmp_path):
        with pytest.raises(SchemaLoadError):
            load_schema(str(tmp_path))


ACCOUNTS_SOURCE = '''
    from schemadoc.schema import integer, sqlite_table, text

    accounts = sqlite_table("accounts", {{
        "id": integer("id").primary_key(),
        {extra}
    }})
'''

ORDERS_SOURCE = '''
    from schemadoc.schema import integer, sqlite_table

    from {accounts_module} import accounts

    orders = sqlite_table("orders", {{
        "id": integer("id").primary_key(),
        "accountId": integer("account_id").references(lambda: accounts.id),
    }})
'''


class TestLoadSchemaImports:
    """Test schema files that import each other by module name."""

    def _write_pair(self, write_schema, accounts_module, orders_module, extra=""):
        write_schema(ACCOUNTS_SOURCE.format(extra=extra), f"{accounts_module}.py")
        write_schema(ORDERS_SOURCE.format(accounts_module=accounts_module), f"{orders_module}.py")

    def test_imported_table_is_loaded_once(self, write_schema, tmp_path):
        self._write_pair(write_schema, "ledger_accounts", "ledger_orders")

        exports = load_schema(str(tmp_path))

        assert set(exports.tables) == {"accounts", "orders"}
        fk = get_table_config(exports.tables["orders"]).foreign_keys[0]
        assert fk.foreign_columns[0].table is exports.tables["accounts"]

    def test_importer_sorted_before_imported_file(self, write_schema, tmp_path):
        self._write_pair(write_schema, "z_accounts", "a_orders")

        schema = build_schema(str(tmp_path))

        assert sorted(t.name for t in schema.tables) == ["accounts", "orders"]

    def test_rebuild_reads_edited_files(self, write_schema, tmp_path):
        self._write_pair(write_schema, "ledger_accounts", "ledger_orders")
        first = build_schema(str(tmp_path))

        self._write_pair(write_schema, "ledger_accounts", "ledger_orders", extra='"email": text("email"),')
        second = build_schema(str(tmp_path))

        assert [c.name for c in first.get_table("accounts").columns] == ["id"]
        assert [c.name for c in second.get_table("accounts").columns] == ["id", "email"]

    def test_schema_modules_are_forgotten(self, write_schema, tmp_path):
        self._write_pair(write_schema, "ledger_accounts", "ledger_orders")

        load_schema(str(tmp_path))

        assert "ledger_accounts" not in sys.modules
        assert not any(name.startswith(MODULE_PREFIX) for name in sys.modules)


class TestSchemaBuilderTables:
    """Test table, column, index and constraint conversion."""

    def test_columns(self, blog_exports):
        schema = SchemaBuilder(blog_exports).build()
        users = schema.get_table("users")

        assert [c.name for c in users.columns] == ["id", "name"]
        id_column = users.get_column("id")
        assert id_column.primary_key
        assert not id_column.nullable
        assert id_column.auto_increment
        assert users.get_column("name").nullable is False

    def test_aliased_table_is_listed_once(self, blog_tables):
        users = blog_tables["users"]
        exports = SchemaExports.from_namespace({"users": users, "u": users})

        builder = SchemaBuilder(exports)

        assert [t.name for t in builder.build().tables] == ["users"]
        assert builder.reflection.identifiers() == {"users": "users", "u": "users"}

    def test_dialect_detected_from_first_table(self, mysql_exports):
        assert SchemaBuilder(mysql_exports).build().dialect == "mysql"

    def test_explicit_dialect_wins(self, blog_exports):
        assert SchemaBuilder(blog_exports, dialect="sqlite").build().dialect == "sqlite"

    def test_empty_schema_defaults_to_postgresql(self):
        schema = SchemaBuilder(SchemaExports()).build()

        assert schema.dialect == "postgresql"
        assert schema.tables == []
        assert schema.relations == []

    def test_mysql_auto_increment_is_explicit(self, mysql_exports):
        items = SchemaBuilder(mysql_exports).build().get_table("items")
        assert items.get_column("id").auto_increment
        assert not items.get_column("label").auto_increment

    def test_sqlite_integer_primary_key_auto_increments(self, sqlite_exports):
        notes = SchemaBuilder(sqlite_exports).build().get_table("notes")
        assert notes.get_column("id").auto_increment
        assert not notes.get_column("body").auto_increment

    def test_synthesized_names(self):
        members = pg_table(
            "members",
            {
                "orgId": integer("org_id"),
                "userId": integer("user_id"),
                "email": text("email"),
            },
            lambda t: [
                primary_key([t.orgId, t.userId]),
                unique().on(t.email),
                index().on(t.email).using("btree"),
            ],
        )
        orgs = pg_table("orgs", {"id": serial("id").primary_key()})
        grants = pg_table(
            "grants",
            {"orgId": integer("org_id")},
            lambda t: [foreign_key([t.orgId], [orgs.id])],
        )

        schema = SchemaBuilder(SchemaExports.from_namespace({"members": members, "orgs": orgs, "grants": grants})).build()

        member_table = schema.get_table("members")
        assert [(c.name, c.type, c.columns) for c in member_table.constraints] == [
            ("pk_org_id_user_id", "primary_key", ["org_id", "user_id"]),
            ("uq_email", "unique", ["email"]),
        ]
        assert member_table.indexes[0].name == "idx_email"
        assert member_table.indexes[0].type == "btree"

        fk = schema.get_table("grants").constraints[0]
        assert fk.name == "fk_org_id_orgs"
        assert fk.referenced_table == "orgs"
        assert fk.referenced_columns == ["id"]

    def test_json_default(self):
        settings_table = pg_table("settings", {"data": jsonb("data").default({"theme": "dark"})})
        schema = SchemaBuilder(SchemaExports.from_namespace({"settings": settings_table})).build()

        assert schema.tables[0].columns[0].default_value == '{"theme": "dark"}'


class TestSchemaBuilderRelations:
    """Test relation derivation in both modes."""

    def test_foreign_key_mode(self, blog_exports):
        schema = SchemaBuilder(blog_exports, relational=False).build()

        assert len(schema.relations) == 1
        relation = schema.relations[0]
        assert (relation.from_table, relation.from_columns) == ("posts", ["author_id"])
        assert (relation.to_table, relation.to_columns) == ("users", ["id"])
        assert relation.type is Cardinality.MANY_TO_ONE
        assert relation.on_delete == "cascade"

    def test_relational_mode_without_declarations(self, blog_exports):
        assert SchemaBuilder(blog_exports, relational=True).build().relations == []

    def test_modern_entries_preferred_over_legacy(self, blog_tables):
        posts = blog_tables["posts"]
        modern = define_relations(blog_tables, lambda r: {
            "posts": {"author": r.one.users(from_=r.posts.authorId, to=r.users.id)},
        })
        exports = SchemaExports.from_namespace({
            **blog_tables,
            "legacy": relations(posts, lambda h: {}),
            "modern": modern,
        })

        builder = SchemaBuilder(exports)

        assert type(builder.create_relation_adapter()).__name__ == "ModernRelationAdapter"
        assert len(builder.build().relations) == 1

    def test_actions_copied_from_foreign_key(self, blog_tables):
        modern = define_relations(blog_tables, lambda r: {
            "posts": {"author": r.one.users(from_=r.posts.authorId, to=r.users.id)},
        })
        exports = SchemaExports.from_namespace({**blog_tables, "modern": modern})

        relation = SchemaBuilder(exports).build().relations[0]

        assert relation.on_delete == "cascade"
        assert relation.on_update is None

    def test_adapter_failure_is_not_fatal(self, blog_exports, monkeypatch, caplog):
        def explode(self):
            raise RuntimeError("adapter exploded")

        monkeypatch.setattr("schemadoc.adapters.v0.LegacyRelationAdapter.extract", explode)

        builder = SchemaBuilder(
            blog_exports,
            parsed_relations=[ParsedRelation("posts", "users", RelationKind.SINGLE, ("authorId",), ("id",))],
        )
        with caplog.at_level(logging.WARNING):
            schema = builder.build()

        assert schema.relations == []
        assert len(schema.tables) == 2
        assert "adapter exploded" in caplog.text


class TestBuildSchema:
    """Test the whole pipeline on fixture files."""

    def test_legacy_fixture(self, pg_v0_schema):
        schema = build_schema(pg_v0_schema)

        assert schema.dialect == "postgresql"
        assert [t.name for t in schema.tables] == ["users", "profiles", "posts"]

        users = schema.get_table("users")
        assert users.comment == "User accounts"
        assert users.get_column("id").comment == "Primary key"
        assert users.get_column("email").comment is None
        assert users.get_column("role").default_value == "'member'"
        assert users.get_column("created_at").default_value == "now()"
        assert users.indexes[0].name == "users_email_idx"
        assert users.indexes[0].unique

        assert schema.get_table("posts").get_column("published").default_value == "false"
        assert schema.get_table("posts").indexes[0].name == "idx_author_id"

        assert [(e.name, e.values) for e in schema.enums] == [("user_role", ["admin", "member", "guest"])]

        assert [(r.from_table, r.from_columns, r.to_table, r.to_columns, r.type) for r in schema.relations] == [
            ("users", ["profile_id"], "profiles", ["id"], Cardinality.ONE_TO_ONE),
            ("posts", ["author_id"], "users", ["id"], Cardinality.MANY_TO_ONE),
        ]
        assert schema.relations[0].on_delete == "set null"
        assert schema.relations[1].on_delete == "cascade"

    def test_modern_fixture(self, pg_v1_schema):
        schema = build_schema(pg_v1_schema)

        assert [(r.from_table, r.to_table, r.type) for r in schema.relations] == [
            ("profiles", "users", Cardinality.ONE_TO_ONE),
            ("posts", "users", Cardinality.MANY_TO_ONE),
        ]

    def test_foreign_key_mode_fixture(self, pg_v0_schema):
        schema = build_schema(pg_v0_schema, relational=False)

        assert [(r.from_table, r.to_table, r.type) for r in schema.relations] == [
            ("users", "profiles", Cardinality.MANY_TO_ONE),
            ("posts", "users", Cardinality.MANY_TO_ONE),
        ]

    def test_directory_fixture(self, split_schema_dir):
        schema = build_schema(split_schema_dir)

        assert schema.dialect == "sqlite"
        orders = schema.get_table("orders")
        assert orders.get_column("id").auto_increment
        assert [(r.from_table, r.to_table) for r in schema.relations] == [("orders", "accounts")]

    def test_relation_endpoints_exist(self, pg_v0_schema):
        schema = build_schema(pg_v0_schema)

        for relation in schema.relations:
            from_table = schema.get_table(relation.from_table)
            to_table = schema.get_table(relation.to_table)
            assert all(from_table.get_column(c) for c in relation.from_columns)
            assert all(to_table.get_column(c) for c in relation.to_columns)

    def test_builds_are_independent(self, pg_v0_schema):
        assert build_schema(pg_v0_schema) == build_schema(pg_v0_schema)
        assert build_schema(pg_v0_schema) is not build_schema(pg_v0_schema)
