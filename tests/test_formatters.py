"""Tests for the DBML, Markdown and Mermaid formatters."""

import pytest

from schemadoc.adapters import Cardinality
from schemadoc.builder import (
    ColumnDefinition,
    ConstraintDefinition,
    EnumDefinition,
    IndexDefinition,
    IntermediateSchema,
    RelationDefinition,
    TableDefinition,
    build_schema,
)
from schemadoc.formatters import (
    DbmlFormatter,
    FormatterOptions,
    MarkdownFormatter,
    MarkdownFormatterOptions,
    MermaidFormatter,
    MermaidFormatterOptions,
    get_formatter,
)


@pytest.fixture
def schema():
    """A small hand-built schema with one relation of each direction."""
    users = TableDefinition(
        name="users",
        comment="User accounts",
        columns=[
            ColumnDefinition(name="id", type="serial", nullable=False, primary_key=True, auto_increment=True,
                             comment="Primary key"),
            ColumnDefinition(name="email", type="varchar(255)", unique=True),
            ColumnDefinition(name="role", type="user_role", default_value="'member'"),
            ColumnDefinition(name="created_at", type="timestamp", nullable=False, default_value="now()"),
        ],
        indexes=[IndexDefinition(name="users_email_idx", columns=["email"], unique=True)],
        constraints=[],
    )
    posts = TableDefinition(
        name="posts",
        columns=[
            ColumnDefinition(name="id", type="serial", nullable=False, primary_key=True, auto_increment=True),
            ColumnDefinition(name="author_id", type="integer", nullable=False),
        ],
        constraints=[
            ConstraintDefinition(name="fk_author_id_users", type="foreign_key", columns=["author_id"],
                                 referenced_table="users", referenced_columns=["id"]),
        ],
    )
    return IntermediateSchema(
        dialect="postgresql",
        tables=[users, posts],
        relations=[
            RelationDefinition(from_table="posts", from_columns=["author_id"], to_table="users", to_columns=["id"],
                               type=Cardinality.MANY_TO_ONE, on_delete="cascade", on_update="no action"),
        ],
        enums=[EnumDefinition(name="user_role", values=["admin", "member"])],
    )


class TestDbmlFormatter:
    """Test DBML rendering."""

    def test_enum_block(self, schema):
        output = DbmlFormatter().format(schema)
        assert output.startswith("Enum user_role {\n  admin\n  member\n}")

    def test_table_block(self, schema):
        output = DbmlFormatter().format(schema)

        assert "Table users {" in output
        assert "  id serial [primary key, not null, increment, note: 'Primary key']" in output
        assert "  email varchar(255) [unique]" in output
        assert "  role user_role [default: 'member']" in output
        assert "  created_at timestamp [not null, default: `now()`]" in output
        assert "  Note: 'User accounts'" in output

    def test_indexes_block(self, schema):
        output = DbmlFormatter().format(schema)
        assert "  indexes {\n    (email) [unique, name: 'users_email_idx']\n  }" in output

    def test_ref_line_skips_no_action(self, schema):
        output = DbmlFormatter().format(schema)
        assert output.endswith("Ref: posts.author_id > users.id [delete: cascade]")

    @pytest.mark.parametrize("cardinality,symbol", [
        (Cardinality.ONE_TO_ONE, "-"),
        (Cardinality.MANY_TO_ONE, ">"),
        (Cardinality.ONE_TO_MANY, "<"),
    ])
    def test_ref_symbols(self, cardinality, symbol):
        relation = RelationDefinition("a", ["x"], "b", ["y"], cardinality)
        assert DbmlFormatter().format_relation(relation) == f"Ref: a.x {symbol} b.y"

    def test_composite_ref(self):
        relation = RelationDefinition("lines", ["order_id", "tenant_id"], "orders", ["id", "tenant_id"],
                                      Cardinality.MANY_TO_ONE)
        assert DbmlFormatter().format_relation(relation) == \
            "Ref: lines.(order_id, tenant_id) > orders.(id, tenant_id)"

    def test_names_with_special_characters_are_quoted(self):
        column = ColumnDefinition(name="first name", type="text")
        assert DbmlFormatter().format_column(column) == '"first name" text'

    def test_comment_escaping(self):
        column = ColumnDefinition(name="bio", type="text", comment="It's\nlong")
        assert DbmlFormatter().format_column(column) == "bio text [note: 'It\\'s\\nlong']"

    @pytest.mark.parametrize("value,expected", [
        ("now()", "`now()`"),
        ("CURRENT_TIMESTAMP", "`CURRENT_TIMESTAMP`"),
        ("null", "null"),
        ("true", "true"),
        ("42", "42"),
        ("-1.5", "-1.5"),
        ("'it''s'", "'it\\'s'"),
        ("'now is the time'", "'now is the time'"),
    ])
    def test_default_values(self, value, expected):
        assert DbmlFormatter.format_default(value) == expected

    def test_options_hide_comments_and_indexes(self, schema):
        formatter = DbmlFormatter(FormatterOptions(include_comments=False, include_indexes=False))
        output = formatter.format(schema)

        assert "Note:" not in output
        assert "note:" not in output
        assert "indexes {" not in output

    def test_empty_schema(self):
        assert DbmlFormatter().format(IntermediateSchema(dialect="postgresql")) == ""


class TestMarkdownFormatter:
    """Test Markdown rendering."""

    def test_index(self, schema):
        index = MarkdownFormatter().generate_index(schema)

        assert index.startswith("# Tables")
        assert "| [users](#users) | 4 | User accounts |" in index
        assert "| [posts](#posts) | 2 |  |" in index

    def test_index_without_tables(self):
        assert "No tables defined." in MarkdownFormatter().generate_index(IntermediateSchema(dialect="mysql"))

    def test_columns_table(self, schema):
        output = MarkdownFormatter().format(schema)

        assert "| **id** | serial | - | NO | [posts.author_id](#posts) | - | Primary key |" in output
        assert "| author_id | integer | - | NO | - | [users.id](#users) | - |" in output
        assert "| created_at | timestamp | `now()` | NO | - | - | - |" in output

    def test_constraints_and_indexes(self, schema):
        output = MarkdownFormatter().format(schema)

        assert "| fk_author_id_users | FOREIGN KEY | (author_id) → users(id) |" in output
        assert "| users_email_idx | email | YES | - |" in output

    def test_relations_highlight_current_table(self, schema):
        users_doc = MarkdownFormatter().generate_table_doc(schema.tables[0], schema)
        posts_doc = MarkdownFormatter().generate_table_doc(schema.tables[1], schema)

        assert "| **[users.id](#users)** | [posts.author_id](#posts) | Many to One |" in users_doc
        assert "| [users.id](#users) | **[posts.author_id](#posts)** | Many to One |" in posts_doc

    def test_enums_section(self, schema):
        output = MarkdownFormatter().format(schema)
        assert "# Enums\n\n## user_role\n\n| Value |\n|-------|\n| admin |\n| member |" in output

    def test_without_links(self, schema):
        formatter = MarkdownFormatter(MarkdownFormatterOptions(use_relative_links=False))
        output = formatter.format(schema)

        assert "](#" not in output
        assert "| users | 4 | User accounts |" in output

    def test_escapes_pipes_and_newlines(self):
        table = TableDefinition(name="t", comment="a | b\nc")
        schema = IntermediateSchema(dialect="postgresql", tables=[table])

        assert "| [t](#t) | 0 | a \\| b c |" in MarkdownFormatter().format(schema)

    def test_escapes_default_values(self):
        column = ColumnDefinition(name="sep", type="text", default_value="'a|b\nc'")
        schema = IntermediateSchema(dialect="postgresql", tables=[TableDefinition(name="t", columns=[column])])

        assert "| sep | text | `'a\\|b c'` | YES | - | - | - |" in MarkdownFormatter().format(schema)

    def test_format_files(self, schema):
        files = MarkdownFormatter().format_files(schema)

        assert list(files) == ["README.md", "users.md", "posts.md"]
        assert "| [users](users.md) | 4 | User accounts |" in files["README.md"]
        assert "# Enums" in files["README.md"]
        assert files["posts.md"].startswith("## posts")
        assert "[users.id](users.md)" in files["posts.md"]

    def test_format_after_format_files_uses_anchors(self, schema):
        formatter = MarkdownFormatter()
        formatter.format_files(schema)
        assert "[users](#users)" in formatter.format(schema)


class TestMermaidFormatter:
    """Test Mermaid ER diagram rendering."""

    def test_full_diagram(self, schema):
        assert MermaidFormatter().format(schema) == "\n".join([
            "erDiagram",
            '    posts }o--|| users : "author_id"',
            "",
            "    users {",
            '        serial id PK "Primary key"',
            "        varchar email UK",
            "        user_role role",
            "        timestamp created_at",
            "    }",
            "    posts {",
            "        serial id PK",
            "        int author_id FK",
            "    }",
        ])

    @pytest.mark.parametrize("cardinality,symbol", [
        (Cardinality.ONE_TO_ONE, "||--||"),
        (Cardinality.MANY_TO_ONE, "}o--||"),
        (Cardinality.ONE_TO_MANY, "||--o{"),
    ])
    def test_relation_symbols(self, cardinality, symbol):
        relation = RelationDefinition("a", ["x", "y"], "b", ["id", "k"], cardinality)
        assert MermaidFormatter.format_relation(relation) == f'a {symbol} b : "x, y"'

    def test_composite_primary_key_marks_every_column(self):
        table = TableDefinition(
            name="memberships",
            columns=[
                ColumnDefinition(name="org_id", type="integer", unique=True),
                ColumnDefinition(name="user_id", type="integer"),
            ],
            constraints=[ConstraintDefinition(name="pk_org_id_user_id", type="primary_key",
                                              columns=["org_id", "user_id"])],
        )
        output = MermaidFormatter().format(IntermediateSchema(dialect="postgresql", tables=[table]))

        assert "        int org_id PK\n        int user_id PK\n" in output

    def test_types_are_simplified(self):
        formatter = MermaidFormatter()

        assert formatter.format_column(ColumnDefinition(name="price", type="NUMERIC(10, 2)")) == "numeric price"
        assert formatter.format_column(ColumnDefinition(name="ratio", type="double precision")) == "double ratio"
        assert formatter.format_column(ColumnDefinition(name="at", type="timestamp with time zone")) == \
            "timestamptz at"

    def test_names_and_comments_are_escaped(self):
        column = ColumnDefinition(name="first name", type="text", comment='Say "hi"\nplease')
        assert MermaidFormatter().format_column(column) == 'text first_name "Say \\"hi\\" please"'

    def test_options_hide_types_and_comments(self, schema):
        formatter = MermaidFormatter(MermaidFormatterOptions(include_column_types=False, include_comments=False))
        output = formatter.format(schema)

        assert "        id PK\n" in output
        assert "Primary key" not in output

    def test_focused_diagram(self, schema):
        orphan = TableDefinition(name="audit_log", columns=[ColumnDefinition(name="id", type="integer")])
        schema.tables.append(orphan)
        formatter = MermaidFormatter()

        focused = formatter.format_focused(schema, "users")

        assert '    posts }o--|| users : "author_id"' in focused
        assert "    posts {" in focused
        assert "audit_log" not in focused
        assert formatter.format_focused(schema, "audit_log") == "erDiagram\n    audit_log {\n        int id\n    }"
        assert formatter.format_focused(schema, "missing") == "erDiagram"

    def test_empty_schema(self):
        assert MermaidFormatter().format(IntermediateSchema(dialect="sqlite")) == "erDiagram"


class TestGetFormatter:
    """Test formatter selection."""

    def test_known_formats(self):
        assert isinstance(get_formatter("dbml"), DbmlFormatter)
        assert isinstance(get_formatter("markdown"), MarkdownFormatter)
        assert isinstance(get_formatter("mermaid"), MermaidFormatter)

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            get_formatter("html")

    def test_options_are_passed(self):
        formatter = get_formatter("markdown", include_comments=False, use_relative_links=False)
        assert formatter.options.include_comments is False
        assert formatter.options.use_relative_links is False


class TestFixtureOutput:
    """Test rendering of a whole fixture schema."""

    def test_legacy_fixture_dbml(self, pg_v0_schema):
        output = DbmlFormatter().format(build_schema(pg_v0_schema))

        assert "Note: 'Public profile\\nshown on the user\\'s page'" in output
        assert "Ref: users.profile_id - profiles.id [delete: set null]" in output
        assert "Ref: posts.author_id > users.id [delete: cascade]" in output
