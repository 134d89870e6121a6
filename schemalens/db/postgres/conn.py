"""PostgreSQL adapter for schema introspection.

Reads tables, columns, enum labels, primary keys and foreign keys from the
catalog. ``information_schema`` is queried first; ``pg_catalog`` is used as a
fallback when it returns nothing (restricted privileges, partitioned tables).

Key Features:
    - Pooled connections (psycopg2 ThreadedConnectionPool) safe to share
      between concurrent analyses
    - Columns reported with canonical ``udt_name`` types
    - Composite foreign keys reported one row per column

Example:
    >>> from schemalens.db.postgres import PostgresConnection
    >>> from schemalens.db.connection import PostgresConfig
    >>> with PostgresConnection(PostgresConfig(database="shop")) as conn:
    ...     tables = conn.list_tables()
"""

import logging
from decimal import Decimal
from typing import Any

import psycopg2
from psycopg2.extras import RealDictCursor
from psycopg2.pool import PoolError, ThreadedConnectionPool

from schemalens.architecture.onto_sql import DeclaredForeignKey, RawColumnInfo, TableRef
from schemalens.db.connection.onto import PostgresConfig
from schemalens.db.plugin import DatabaseAdapter
from schemalens.errors import DatabaseConnectionError
from schemalens.onto import DBType

logger = logging.getLogger(__name__)


class PostgresConnection(DatabaseAdapter):
    """PostgreSQL schema reader.

    Attributes:
        config: PostgreSQL connection configuration
        pool: psycopg2 connection pool
    """

    db_type = DBType.POSTGRES

    def __init__(self, config: PostgresConfig):
        """Open the connection pool.

        Args:
            config: PostgreSQL connection configuration

        Raises:
            DatabaseConnectionError: If the server cannot be reached
        """
        self.config = config
        try:
            self.pool = ThreadedConnectionPool(
                minconn=1, maxconn=config.pool_size, **config.to_connect_params()
            )
            logger.info(f"Connected to PostgreSQL database {config.describe()}")
        except psycopg2.Error as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}", exc_info=True)
            raise DatabaseConnectionError(
                f"Failed to connect to {config.describe()}: {e}"
            ) from e

    def _schema(self, schema_name: str | None) -> str:
        return schema_name or self.config.schema_name or "public"

    def read(self, query: str, params: tuple | None = None) -> list[dict[str, Any]]:
        """Execute a SELECT query and return rows as dictionaries.

        Args:
            query: SQL SELECT query to execute
            params: Optional tuple of parameters for parameterized queries

        Returns:
            List of dictionaries keyed by column name. Decimal values are
            converted to float.

        Raises:
            DatabaseConnectionError: If the pool has been closed or the
                server cannot be reached
        """
        pool = self.pool
        if pool is None or pool.closed:
            raise DatabaseConnectionError(f"Connection to {self.config.describe()} is closed")
        try:
            conn = pool.getconn()
        except PoolError as e:
            raise DatabaseConnectionError(str(e)) from e
        try:
            conn.autocommit = True
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute(query, params)
                results = []
                for row in cursor.fetchall():
                    row_dict = dict(row)
                    for key, value in row_dict.items():
                        if isinstance(value, Decimal):
                            row_dict[key] = float(value)
                    results.append(row_dict)
                return results
        except psycopg2.OperationalError as e:
            raise DatabaseConnectionError(str(e)) from e
        finally:
            if not pool.closed:
                pool.putconn(conn)

    def test(self) -> None:
        self.read("SELECT 1 AS ok")

    def close(self):
        """Close every pooled connection."""
        if getattr(self, "pool", None) is not None:
            try:
                self.pool.closeall()
                logger.debug("PostgreSQL connection pool closed")
            except psycopg2.Error as e:
                logger.warning(
                    f"Error closing PostgreSQL connection pool: {e}", exc_info=True
                )
            self.pool = None

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _list_tables_pg_catalog(self, schema_name: str) -> list[dict[str, Any]]:
        query = """
            SELECT
                c.relname as table_name,
                n.nspname as table_schema
            FROM pg_catalog.pg_class c
            JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = %s
              AND c.relkind IN ('r', 'p')
              AND NOT c.relispartition
            ORDER BY c.relname;
        """
        return self.read(query, (schema_name,))

    def list_tables(self, schema_name: str | None = None) -> list[TableRef]:
        """List base tables of a schema.

        Tries information_schema first, falls back to pg_catalog.
        """
        schema_name = self._schema(schema_name)
        query = """
            SELECT table_name, table_schema
            FROM information_schema.tables
            WHERE table_schema = %s
              AND table_type = 'BASE TABLE'
            ORDER BY table_name;
        """
        rows = self.read(query, (schema_name,))
        if not rows:
            logger.debug(
                f"information_schema returned no tables, "
                f"falling back to pg_catalog for schema '{schema_name}'"
            )
            rows = self._list_tables_pg_catalog(schema_name)
        return [
            TableRef(name=row["table_name"], schema_name=row["table_schema"])
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def _describe_table_pg_catalog(
        self, table_name: str, schema_name: str
    ) -> list[dict[str, Any]]:
        query = """
            SELECT
                a.attname as name,
                t.typname as udt_name,
                t.typtype = 'e' as is_enum,
                NOT a.attnotnull as is_nullable,
                pg_catalog.pg_get_expr(d.adbin, d.adrelid) as column_default,
                a.attgenerated <> '' as is_generated,
                a.attnum as ordinal_position
            FROM pg_catalog.pg_attribute a
            JOIN pg_catalog.pg_class c ON c.oid = a.attrelid
            JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
            JOIN pg_catalog.pg_type t ON t.oid = a.atttypid
            LEFT JOIN pg_catalog.pg_attrdef d ON d.adrelid = a.attrelid AND d.adnum = a.attnum
            WHERE n.nspname = %s
              AND c.relname = %s
              AND a.attnum > 0
              AND NOT a.attisdropped
            ORDER BY a.attnum;
        """
        return self.read(query, (schema_name, table_name))

    def describe_table(
        self, table_name: str, schema_name: str | None = None
    ) -> list[RawColumnInfo]:
        """Describe a table's columns in declaration order.

        Tries information_schema first, falls back to pg_catalog.
        """
        schema_name = self._schema(schema_name)
        query = """
            SELECT
                c.column_name as name,
                c.udt_name,
                c.data_type = 'USER-DEFINED' AND EXISTS (
                    SELECT 1
                    FROM pg_catalog.pg_type t
                    JOIN pg_catalog.pg_namespace tn ON tn.oid = t.typnamespace
                    WHERE t.typname = c.udt_name
                      AND tn.nspname = c.udt_schema
                      AND t.typtype = 'e'
                ) as is_enum,
                c.is_nullable = 'YES' as is_nullable,
                c.column_default,
                c.is_generated = 'ALWAYS' as is_generated,
                c.ordinal_position
            FROM information_schema.columns c
            WHERE c.table_schema = %s
              AND c.table_name = %s
            ORDER BY c.ordinal_position;
        """
        rows = self.read(query, (schema_name, table_name))
        if not rows:
            logger.debug(
                f"information_schema returned no columns, "
                f"falling back to pg_catalog for table '{schema_name}.{table_name}'"
            )
            rows = self._describe_table_pg_catalog(table_name, schema_name)

        return [
            RawColumnInfo(
                name=row["name"],
                raw_type=row["udt_name"] or "",
                is_nullable=bool(row["is_nullable"]),
                default=row["column_default"],
                is_user_defined_enum=bool(row["is_enum"]),
                is_generated=bool(row["is_generated"]),
                ordinal_position=row["ordinal_position"],
            )
            for row in rows
        ]

    def describe_enum(self, type_name: str) -> list[str]:
        """List the labels of an enum type in declaration order."""
        query = """
            SELECT e.enumlabel as value
            FROM pg_catalog.pg_enum e
            JOIN pg_catalog.pg_type t ON t.oid = e.enumtypid
            WHERE t.typname = %s
            ORDER BY e.enumsortorder;
        """
        return [row["value"] for row in self.read(query, (type_name,))]

    # ------------------------------------------------------------------
    # Constraints
    # ------------------------------------------------------------------

    def _get_primary_keys_pg_catalog(
        self, table_name: str, schema_name: str
    ) -> list[str]:
        query = """
            SELECT a.attname as column_name
            FROM pg_catalog.pg_constraint con
            JOIN pg_catalog.pg_class c ON c.oid = con.conrelid
            JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
            JOIN pg_catalog.pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = ANY(con.conkey)
            WHERE n.nspname = %s
              AND c.relname = %s
              AND con.contype = 'p'
            ORDER BY array_position(con.conkey, a.attnum);
        """
        return [row["column_name"] for row in self.read(query, (schema_name, table_name))]

    def get_primary_keys(
        self, table_name: str, schema_name: str | None = None
    ) -> list[str]:
        """Declared primary key columns ordered by ordinal position.

        Tries information_schema first, falls back to pg_catalog.
        """
        schema_name = self._schema(schema_name)
        query = """
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
                AND tc.table_name = kcu.table_name
            WHERE tc.constraint_type = 'PRIMARY KEY'
              AND tc.table_schema = %s
              AND tc.table_name = %s
            ORDER BY kcu.ordinal_position;
        """
        results = [row["column_name"] for row in self.read(query, (schema_name, table_name))]
        if results:
            return results
        return self._get_primary_keys_pg_catalog(table_name, schema_name)

    def get_foreign_keys(
        self, table_name: str, schema_name: str | None = None
    ) -> list[DeclaredForeignKey]:
        """Declared foreign keys whose source is the given table.

        Uses pg_catalog directly: information_schema cannot pair the columns
        of multi-column foreign keys reliably.
        """
        schema_name = self._schema(schema_name)
        query = """
            SELECT
                a.attname as column,
                ref_c.relname as references_table,
                ref_n.nspname as references_schema,
                ref_a.attname as references_column,
                con.conname as constraint_name
            FROM pg_catalog.pg_constraint con
            JOIN pg_catalog.pg_class c ON c.oid = con.conrelid
            JOIN pg_catalog.pg_namespace n ON n.oid = c.relnamespace
            JOIN pg_catalog.pg_class ref_c ON ref_c.oid = con.confrelid
            JOIN pg_catalog.pg_namespace ref_n ON ref_n.oid = ref_c.relnamespace
            JOIN generate_subscripts(con.conkey, 1) AS i ON true
            JOIN pg_catalog.pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = con.conkey[i]
            JOIN pg_catalog.pg_attribute ref_a ON ref_a.attrelid = con.confrelid AND ref_a.attnum = con.confkey[i]
            WHERE n.nspname = %s
              AND c.relname = %s
              AND con.contype = 'f'
            ORDER BY con.conname, i;
        """
        return [
            DeclaredForeignKey(
                column=row["column"],
                target_table=row["references_table"],
                target_column=row["references_column"],
                target_schema=row["references_schema"],
                constraint_name=row["constraint_name"],
            )
            for row in self.read(query, (schema_name, table_name))
        ]
