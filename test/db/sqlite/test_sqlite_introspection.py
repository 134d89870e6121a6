"""Introspection of a SQLite file through its pragmas and stored ``CREATE TABLE`` statements."""

import pytest

from schemalens.db.connection import SqliteConfig
from schemalens.db.sqlite import SqliteConnection, parse_create_table
from schemalens.db.types import ColumnTypeMapper, is_integer_type
from schemalens.onto import ColumnKind
from schemalens.errors import DatabaseConnectionError, SchemaParseError, TableNotFoundError


@pytest.fixture
def sqlite_conn(shop_db):
    conn = SqliteConnection(SqliteConfig(path=str(shop_db)))
    yield conn
    conn.close()


def test_parse_create_table_columns():
    definition = parse_create_table(
        "CREATE TABLE items (id INTEGER PRIMARY KEY, title TEXT NOT NULL, "
        "qty INTEGER DEFAULT 1, note TEXT)",
        "items",
    )

    assert [c.name for c in definition.columns] == ["id", "title", "qty", "note"]
    assert [c.ordinal_position for c in definition.columns] == [1, 2, 3, 4]
    assert definition.primary_key == ["id"]

    by_name = {c.name: c for c in definition.columns}
    assert is_integer_type(by_name["id"].raw_type)
    assert by_name["id"].is_nullable is False
    assert by_name["title"].is_nullable is False
    assert by_name["note"].is_nullable is True
    assert by_name["qty"].default == "1"


def test_parse_table_level_constraints():
    definition = parse_create_table(
        "CREATE TABLE order_items ("
        "order_id INTEGER, product_id INTEGER, "
        "PRIMARY KEY (order_id, product_id), "
        "FOREIGN KEY (product_id) REFERENCES products(id))",
        "order_items",
    )

    assert definition.primary_key == ["order_id", "product_id"]
    assert len(definition.foreign_keys) == 1
    fk = definition.foreign_keys[0]
    assert fk.column == "product_id"
    assert fk.target_table == "products"
    assert fk.target_column == "id"


def test_parse_column_reference_without_target_column():
    definition = parse_create_table(
        "CREATE TABLE posts (id INTEGER PRIMARY KEY, author INTEGER REFERENCES users)",
        "posts",
    )
    assert definition.foreign_keys[0].target_table == "users"
    assert definition.foreign_keys[0].target_column == ""


@pytest.mark.parametrize("sql", ["", "SELECT 1"])
def test_parse_rejects_non_table_statements(sql):
    with pytest.raises(SchemaParseError):
        parse_create_table(sql, "broken")


def test_missing_file(tmp_path):
    with pytest.raises(DatabaseConnectionError):
        SqliteConnection(SqliteConfig(path=str(tmp_path / "nope.db")))


def test_list_tables(sqlite_conn):
    refs = sqlite_conn.list_tables()
    assert [r.name for r in refs] == [
        "accounts",
        "order_items",
        "organizations",
        "posts",
        "products",
        "users",
        "widgets",
    ]
    assert {r.schema_name for r in refs} == {"main"}


def test_describe_table(sqlite_conn):
    columns = sqlite_conn.describe_table("users")
    assert [c.name for c in columns] == ["id", "name", "email"]
    assert columns[1].is_nullable is False


def test_describe_unknown_table(sqlite_conn):
    with pytest.raises(TableNotFoundError):
        sqlite_conn.describe_table("ghosts")


def test_primary_keys(sqlite_conn):
    assert sqlite_conn.get_primary_keys("users") == ["id"]
    assert sqlite_conn.get_primary_keys("order_items") == ["order_id", "product_id"]
    assert sqlite_conn.get_primary_keys("widgets") == []


def test_foreign_keys(sqlite_conn):
    fks = sqlite_conn.get_foreign_keys("accounts")
    assert [(fk.column, fk.target_table, fk.target_column) for fk in fks] == [
        ("org_id", "organizations", "id")
    ]
    assert fks[0].target_schema == "main"
    assert sqlite_conn.get_foreign_keys("posts") == []


def test_unparseable_definition_keeps_columns_and_keys(sqlite_conn, monkeypatch):
    def _fail(sql, table_name):
        raise SchemaParseError(table_name, "unsupported syntax")

    monkeypatch.setattr("schemalens.db.sqlite.conn.parse_create_table", _fail)

    assert [c.name for c in sqlite_conn.describe_table("users")] == ["id", "name", "email"]
    assert sqlite_conn.get_primary_keys("order_items") == ["order_id", "product_id"]
    fks = sqlite_conn.get_foreign_keys("accounts")
    assert [(fk.column, fk.target_table, fk.constraint_name) for fk in fks] == [
        ("org_id", "organizations", None)
    ]


def test_enum_labels_are_empty(sqlite_conn):
    assert sqlite_conn.describe_enum("anything") == []


def test_read_only(sqlite_conn):
    with pytest.raises(DatabaseConnectionError):
        sqlite_conn.read("INSERT INTO users (name) VALUES ('x')")


def test_closed_connection(sqlite_conn):
    sqlite_conn.close()
    with pytest.raises(DatabaseConnectionError):
        sqlite_conn.test()


def test_parse_typeless_columns():
    definition = parse_create_table("CREATE TABLE notes (id, author_id INTEGER, body)", "notes")
    assert [c.name for c in definition.columns] == ["id", "author_id", "body"]
    by_name = {c.name: c for c in definition.columns}
    assert by_name["id"].raw_type == ""
    assert by_name["body"].raw_type == ""
    assert is_integer_type(by_name["author_id"].raw_type)


def _open(path) -> SqliteConnection:
    return SqliteConnection(SqliteConfig(path=str(path)))


def test_typeless_columns(build_sqlite_db):
    conn = _open(build_sqlite_db("CREATE TABLE notes (id, author_id INTEGER, body);"))
    try:
        columns = conn.describe_table("notes")
        assert [c.name for c in columns] == ["id", "author_id", "body"]
        assert [c.raw_type for c in columns] == ["", "INTEGER", ""]
        assert [c.ordinal_position for c in columns] == [1, 2, 3]
        assert conn.get_primary_keys("notes") == []
    finally:
        conn.close()


def test_table_created_from_select(build_sqlite_db):
    conn = _open(
        build_sqlite_db(
            "CREATE TABLE src (id INTEGER PRIMARY KEY, title TEXT);"
            "CREATE TABLE snapshot AS SELECT id, title, id * 2 AS doubled FROM src;"
        )
    )
    try:
        assert [c.name for c in conn.describe_table("snapshot")] == ["id", "title", "doubled"]
    finally:
        conn.close()


def test_declared_type_text_is_kept(build_sqlite_db):
    conn = _open(
        build_sqlite_db(
            "CREATE TABLE t1 ("
            "a UNSIGNED BIG INT, b VARYING CHARACTER(255), c NATIVE CHARACTER(70), "
            "d INT8, e INTEGER, f DOUBLE PRECISION);"
        )
    )
    mapper = ColumnTypeMapper()
    try:
        columns = {c.name: c for c in conn.describe_table("t1")}
        assert columns["a"].raw_type == "UNSIGNED BIG INT"
        assert columns["b"].raw_type == "VARYING CHARACTER(255)"
        assert columns["d"].raw_type == "INT8"
        assert columns["e"].raw_type == "INTEGER"
        assert mapper.map_type(columns["a"].raw_type) == ColumnKind.NUMERIC.value
        assert mapper.map_type(columns["b"].raw_type) == ColumnKind.TEXT.value
        assert mapper.map_type(columns["c"].raw_type) == ColumnKind.TEXT.value
        assert mapper.map_type(columns["f"].raw_type) == ColumnKind.NUMERIC.value
    finally:
        conn.close()


def test_strict_table_with_any_column(build_sqlite_db):
    conn = _open(
        build_sqlite_db("CREATE TABLE t2 (id INTEGER PRIMARY KEY, payload ANY) STRICT;")
    )
    try:
        columns = conn.describe_table("t2")
        assert [(c.name, c.raw_type) for c in columns] == [
            ("id", "INTEGER"),
            ("payload", "ANY"),
        ]
        assert conn.get_primary_keys("t2") == ["id"]
    finally:
        conn.close()


def test_generated_columns_and_defaults(build_sqlite_db):
    conn = _open(
        build_sqlite_db(
            "CREATE TABLE prices ("
            "net REAL NOT NULL, qty INTEGER DEFAULT 1, "
            "gross REAL GENERATED ALWAYS AS (net * 1.2) VIRTUAL);"
        )
    )
    try:
        columns = {c.name: c for c in conn.describe_table("prices")}
        assert list(columns) == ["net", "qty", "gross"]
        assert columns["net"].is_nullable is False
        assert columns["qty"].default == "1"
        assert columns["gross"].is_generated is True
        assert columns["net"].is_generated is False
    finally:
        conn.close()


def test_foreign_key_details(build_sqlite_db):
    conn = _open(
        build_sqlite_db(
            "CREATE TABLE authors (code TEXT PRIMARY KEY, name TEXT);"
            "CREATE TABLE books ("
            "id INTEGER PRIMARY KEY, author TEXT REFERENCES authors, "
            "editor_code TEXT, "
            "CONSTRAINT fk_editor FOREIGN KEY (editor_code) REFERENCES authors(code));"
        )
    )
    try:
        fks = {fk.column: fk for fk in conn.get_foreign_keys("books")}
        assert fks["author"].target_table == "authors"
        assert fks["author"].target_column == "code"
        assert fks["author"].constraint_name is None
        assert fks["editor_code"].target_column == "code"
        assert fks["editor_code"].constraint_name == "fk_editor"
        assert {fk.target_schema for fk in fks.values()} == {"main"}
    finally:
        conn.close()
