"""SQLite adapter for schema introspection.

Tables are read from ``sqlite_master``. Columns, declared types, nullability,
defaults and primary key order come from ``PRAGMA table_xinfo``; declared
foreign keys from ``PRAGMA foreign_key_list``. The stored ``CREATE TABLE``
statement is parsed only to recover foreign key constraint names, so a
statement sqlglot cannot parse costs the names and nothing else.

The file is opened read-only. One ``sqlite3`` connection is shared between
threads and access to it is serialized with a lock.

Example:
    >>> from schemalens.db.sqlite import SqliteConnection
    >>> from schemalens.db.connection import SqliteConfig
    >>> with SqliteConnection(SqliteConfig(path="app.db")) as conn:
    ...     conn.describe_table("users")
"""

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from schemalens.architecture.onto_sql import DeclaredForeignKey, RawColumnInfo, TableRef
from schemalens.db.connection.onto import SqliteConfig
from schemalens.db.plugin import DatabaseAdapter
from schemalens.db.sqlite.ddl_parser import parse_create_table
from schemalens.errors import DatabaseConnectionError, SchemaParseError, TableNotFoundError
from schemalens.onto import DBType

logger = logging.getLogger(__name__)

SQLITE_SCHEMA = "main"

# table_xinfo "hidden" values: 1 hidden virtual-table column, 2/3 generated
_HIDDEN_VIRTUAL = 1
_GENERATED = (2, 3)


class SqliteConnection(DatabaseAdapter):
    """SQLite schema reader.

    Attributes:
        config: SQLite connection configuration
        conn: Shared sqlite3 connection
    """

    db_type = DBType.SQLITE

    def __init__(self, config: SqliteConfig):
        """Open the database file read-only.

        Raises:
            DatabaseConnectionError: If the file does not exist or cannot be opened
        """
        self.config = config
        self._lock = threading.Lock()
        path = Path(config.path).expanduser()
        if not path.is_file():
            raise DatabaseConnectionError(f"SQLite database file not found: {path}")
        try:
            self.conn = sqlite3.connect(
                f"{path.resolve().as_uri()}?mode=ro",
                uri=True,
                check_same_thread=False,
            )
            self.conn.row_factory = sqlite3.Row
        except sqlite3.Error as e:
            raise DatabaseConnectionError(f"Failed to open {path}: {e}") from e
        logger.info(f"Opened SQLite database {config.describe()}")

    def read(self, query: str, params: tuple = ()) -> list[dict[str, Any]]:
        """Execute a SELECT query and return rows as dictionaries."""
        if self.conn is None:
            raise DatabaseConnectionError(f"Connection to {self.config.describe()} is closed")
        with self._lock:
            try:
                cursor = self.conn.execute(query, params)
                return [dict(row) for row in cursor.fetchall()]
            except sqlite3.OperationalError as e:
                raise DatabaseConnectionError(str(e)) from e

    def test(self) -> None:
        self.read("SELECT 1 AS ok")

    def close(self):
        if getattr(self, "conn", None) is not None:
            with self._lock:
                self.conn.close()
                self.conn = None
            logger.debug(f"Closed SQLite database {self.config.describe()}")

    def list_tables(self, schema_name: str | None = None) -> list[TableRef]:
        """List user tables; SQLite internal tables are excluded.

        ``schema_name`` is ignored: attached databases are not browsed.
        """
        rows = self.read(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' "
            "ORDER BY name"
        )
        return [TableRef(name=row["name"], schema_name=SQLITE_SCHEMA) for row in rows]

    def _statement(self, table_name: str) -> str:
        rows = self.read(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        if not rows:
            raise TableNotFoundError(table_name)
        return rows[0]["sql"] or ""

    def _column_rows(self, table_name: str) -> list[dict[str, Any]]:
        self._statement(table_name)
        rows = self.read(
            "SELECT * FROM pragma_table_xinfo(?) ORDER BY cid", (table_name,)
        )
        return [row for row in rows if row["hidden"] != _HIDDEN_VIRTUAL]

    def describe_table(
        self, table_name: str, schema_name: str | None = None
    ) -> list[RawColumnInfo]:
        """Columns in declaration order.

        ``raw_type`` is the declared type text, empty for a column declared
        without a type.
        """
        return [
            RawColumnInfo(
                name=row["name"],
                raw_type=row["type"] or "",
                is_nullable=not (row["notnull"] or row["pk"]),
                default=row["dflt_value"],
                is_generated=row["hidden"] in _GENERATED,
                ordinal_position=position,
            )
            for position, row in enumerate(self._column_rows(table_name), start=1)
        ]

    def describe_enum(self, type_name: str) -> list[str]:
        # SQLite has no enum types
        return []

    def get_primary_keys(
        self, table_name: str, schema_name: str | None = None
    ) -> list[str]:
        keyed = [row for row in self._column_rows(table_name) if row["pk"]]
        return [row["name"] for row in sorted(keyed, key=lambda row: row["pk"])]

    def _constraint_names(self, table_name: str) -> dict[str, str]:
        """Foreign key constraint names by source column."""
        try:
            definition = parse_create_table(self._statement(table_name), table_name)
        except SchemaParseError as e:
            logger.warning(f"{e.message}; foreign key constraint names unavailable")
            return {}
        return {
            fk.column: fk.constraint_name
            for fk in definition.foreign_keys
            if fk.constraint_name
        }

    def get_foreign_keys(
        self, table_name: str, schema_name: str | None = None
    ) -> list[DeclaredForeignKey]:
        """Declared foreign keys of a table.

        ``REFERENCES other`` without a column list targets the referenced
        table's primary key, as SQLite does.
        """
        self._statement(table_name)
        rows = self.read(
            "SELECT * FROM pragma_foreign_key_list(?) ORDER BY id, seq", (table_name,)
        )
        if not rows:
            return []

        names = self._constraint_names(table_name)
        foreign_keys = []
        for row in rows:
            target_table = row["table"]
            target_column = row["to"]
            if not target_column:
                try:
                    target_pk = self.get_primary_keys(target_table)
                except TableNotFoundError:
                    logger.warning(
                        f"Foreign key {table_name}.{row['from']} references "
                        f"missing table '{target_table}'"
                    )
                    continue
                if row["seq"] >= len(target_pk):
                    continue
                target_column = target_pk[row["seq"]]
            foreign_keys.append(
                DeclaredForeignKey(
                    column=row["from"],
                    target_table=target_table,
                    target_column=target_column,
                    target_schema=SQLITE_SCHEMA,
                    constraint_name=names.get(row["from"]),
                )
            )
        return foreign_keys
