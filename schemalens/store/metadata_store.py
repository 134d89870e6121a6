"""Local state store for connections and per-table metadata.

The store is a small SQLite database accessed through SQLAlchemy Core with two
tables::

    connections (id, name, type, details JSON)
    tables      (id, name, schema, connectionId, details JSON)

``details`` blobs are typed models everywhere in the code base and are only
(de)serialized here. Each write runs in its own transaction, so a table's
metadata is either replaced entirely or left untouched.

Example:
    >>> store = MetadataStore("sqlite:///state.db")
    >>> store.boot()
    >>> store.save_connection(Connection(name="shop", type="sqlite", details={"path": "shop.db"}))
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Iterable

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection as SAConnection
from sqlalchemy.engine import make_url

from schemalens.architecture.metadata import Connection, TableDetails, TableMetadata

logger = logging.getLogger(__name__)

metadata_obj = MetaData()

connections_table = Table(
    "connections",
    metadata_obj,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("type", String, nullable=False),
    Column("details", Text, nullable=False, default="{}"),
)

tables_table = Table(
    "tables",
    metadata_obj,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("schema", String, nullable=False),
    Column("connectionId", String, nullable=False, index=True),
    Column("details", Text, nullable=False, default="{}"),
    UniqueConstraint("connectionId", "name", name="uq_tables_connection_name"),
)


class MetadataStore:
    """Persistence of connections and table metadata.

    Attributes:
        url: SQLAlchemy database URL
        engine: SQLAlchemy engine
    """

    def __init__(self, url: str):
        self.url = url
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite" and parsed.database not in (
            None,
            "",
            ":memory:",
        ):
            Path(parsed.database).expanduser().parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(url)
        self._write_lock = threading.Lock()

    def boot(self) -> None:
        """Create the state tables if they do not exist."""
        metadata_obj.create_all(self.engine)
        logger.info(f"State store ready at {self.engine.url.render_as_string()}")

    def dispose(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    @staticmethod
    def _connection_from_row(row) -> Connection:
        return Connection(
            id=row.id, name=row.name, type=row.type, details=json.loads(row.details)
        )

    def list_connections(self) -> list[Connection]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(connections_table).order_by(connections_table.c.name)
            ).all()
        return [self._connection_from_row(row) for row in rows]

    def get_connection(self, connection_id: str) -> Connection | None:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(connections_table).where(connections_table.c.id == connection_id)
            ).first()
        return self._connection_from_row(row) if row is not None else None

    def save_connection(self, connection: Connection) -> Connection:
        """Insert a new connection or update an existing one."""
        values = {
            "name": connection.name,
            "type": str(connection.type),
            "details": json.dumps(connection.details),
        }
        with self._write_lock, self.engine.begin() as conn:
            exists = conn.execute(
                select(connections_table.c.id).where(
                    connections_table.c.id == connection.id
                )
            ).first()
            if exists is not None:
                conn.execute(
                    update(connections_table)
                    .where(connections_table.c.id == connection.id)
                    .values(**values)
                )
            else:
                conn.execute(insert(connections_table).values(id=connection.id, **values))
        logger.debug(f"Saved connection '{connection.name}' ({connection.id})")
        return connection

    def delete_connection(self, connection_id: str) -> bool:
        """Delete a connection and every table metadata row referencing it.

        Returns:
            bool: Whether the connection existed
        """
        with self._write_lock, self.engine.begin() as conn:
            removed_tables = conn.execute(
                delete(tables_table).where(tables_table.c.connectionId == connection_id)
            ).rowcount
            removed = conn.execute(
                delete(connections_table).where(connections_table.c.id == connection_id)
            ).rowcount
        logger.info(
            f"Deleted connection {connection_id} and {removed_tables} table metadata row(s)"
        )
        return bool(removed)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    @staticmethod
    def _table_from_row(row) -> TableMetadata:
        return TableMetadata(
            connection_id=row.connectionId,
            name=row.name,
            schema_name=row.schema,
            details=TableDetails.from_json(row.details),
        )

    def get_tables(self, connection_id: str) -> list[TableMetadata]:
        """All table metadata of a connection, sorted by normalized name."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(tables_table).where(tables_table.c.connectionId == connection_id)
            ).all()
        tables = [self._table_from_row(row) for row in rows]
        return sorted(tables, key=lambda t: (t.details.normalized_name, t.name))

    def get_table(self, connection_id: str, name: str) -> TableMetadata | None:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(tables_table).where(
                    tables_table.c.connectionId == connection_id,
                    tables_table.c.name == name,
                )
            ).first()
        return self._table_from_row(row) if row is not None else None

    @staticmethod
    def _upsert_table(conn: SAConnection, table: TableMetadata) -> None:
        values = {
            "schema": table.schema_name,
            "details": table.details.to_json(),
        }
        existing = conn.execute(
            select(tables_table.c.id).where(
                tables_table.c.connectionId == table.connection_id,
                tables_table.c.name == table.name,
            )
        ).first()
        if existing is not None:
            conn.execute(
                update(tables_table)
                .where(tables_table.c.id == existing.id)
                .values(**values)
            )
        else:
            conn.execute(
                insert(tables_table).values(
                    name=table.name, connectionId=table.connection_id, **values
                )
            )

    def save_table(self, table: TableMetadata) -> None:
        """Replace the stored metadata of one table, in one transaction."""
        with self._write_lock, self.engine.begin() as conn:
            self._upsert_table(conn, table)
        logger.debug(f"Saved metadata of table '{table.name}' ({table.connection_id})")

    def save_tables(self, tables: Iterable[TableMetadata]) -> int:
        """Replace the stored metadata of several tables in one transaction."""
        count = 0
        with self._write_lock, self.engine.begin() as conn:
            for table in tables:
                self._upsert_table(conn, table)
                count += 1
        return count

    def delete_table(self, connection_id: str, name: str) -> bool:
        with self._write_lock, self.engine.begin() as conn:
            removed = conn.execute(
                delete(tables_table).where(
                    tables_table.c.connectionId == connection_id,
                    tables_table.c.name == name,
                )
            ).rowcount
        return bool(removed)

    def clear_tables_for_connection(self, connection_id: str) -> int:
        """Delete every table metadata row of a connection.

        Returns:
            int: Number of rows removed
        """
        with self._write_lock, self.engine.begin() as conn:
            removed = conn.execute(
                delete(tables_table).where(tables_table.c.connectionId == connection_id)
            ).rowcount
        logger.info(f"Cleared {removed} table metadata row(s) of connection {connection_id}")
        return removed
