import sqlite3
from pathlib import Path

import pytest

from schemalens.architecture.metadata import (
    ColumnMetadata,
    Connection,
    TableDetails,
    TableMetadata,
)
from schemalens.db.registry import ConnectionRegistry
from schemalens.db.types import ColumnTypeMapper
from schemalens.hq.icons import CachedIconResolver, KeywordIconResolver
from schemalens.hq.normalizer import normalize_name
from schemalens.store import MetadataStore

SHOP_DDL = """
CREATE TABLE users (
    id INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    email TEXT
);
CREATE TABLE posts (
    id INTEGER PRIMARY KEY,
    user_id INTEGER,
    title TEXT
);
CREATE TABLE organizations (
    id INTEGER PRIMARY KEY,
    name TEXT
);
CREATE TABLE accounts (
    id INTEGER PRIMARY KEY,
    org_id INTEGER REFERENCES organizations(id),
    label TEXT
);
CREATE TABLE widgets (
    sku TEXT,
    qty INTEGER
);
CREATE TABLE products (
    id INTEGER PRIMARY KEY,
    category_uuid UUID,
    title TEXT
);
CREATE TABLE order_items (
    order_id INTEGER NOT NULL,
    product_id INTEGER NOT NULL,
    quantity INTEGER DEFAULT 1,
    PRIMARY KEY (order_id, product_id),
    FOREIGN KEY (product_id) REFERENCES products(id)
);
"""


def make_sqlite_db(path: Path, ddl: str) -> Path:
    conn = sqlite3.connect(path)
    try:
        conn.executescript(ddl)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture(scope="function")
def shop_db(tmp_path) -> Path:
    return make_sqlite_db(tmp_path / "shop.db", SHOP_DDL)


@pytest.fixture(scope="function")
def build_sqlite_db(tmp_path):
    def _build(ddl: str, name: str = "extra.db") -> Path:
        return make_sqlite_db(tmp_path / name, ddl)

    return _build


@pytest.fixture(scope="function")
def store(tmp_path):
    store = MetadataStore(f"sqlite:///{tmp_path / 'state' / 'state.db'}")
    store.boot()
    yield store
    store.dispose()


@pytest.fixture(scope="function")
def shop_connection(store, shop_db) -> Connection:
    connection = Connection(name="shop", type="sqlite", details={"path": str(shop_db)})
    store.save_connection(connection)
    return connection


@pytest.fixture(scope="function")
def registry(store):
    registry = ConnectionRegistry(store)
    yield registry
    registry.close_all()


@pytest.fixture(scope="session")
def icon_resolver():
    return CachedIconResolver(KeywordIconResolver.from_package())


_mapper = ColumnTypeMapper()


def _make_column(name: str, raw_type: str = "text", **kwargs) -> ColumnMetadata:
    """Column metadata as discovery would produce it."""
    return ColumnMetadata(
        name=name,
        normalized_name=normalize_name(name),
        type=raw_type,
        kind=kwargs.pop("kind", _mapper.map_type(raw_type)),
        **kwargs,
    )


def _make_table(
    name: str,
    columns: list[ColumnMetadata],
    pk: list[str] | None = None,
    schema_name: str = "public",
    connection_id: str = "c1",
) -> TableMetadata:
    return TableMetadata(
        connection_id=connection_id,
        name=name,
        schema_name=schema_name,
        details=TableDetails(
            normalized_name=normalize_name(name),
            pk=pk if pk is not None else ([columns[0].name] if columns else []),
            columns={c.name: c for c in columns},
        ),
    )


@pytest.fixture(scope="session")
def make_column():
    return _make_column


@pytest.fixture(scope="session")
def make_table():
    return _make_table
