"""PostgreSQL adapter.

Key Components:
    - PostgresConnection: catalog-based schema reader over a psycopg2 pool

Example:
    >>> from schemalens.db.postgres import PostgresConnection
    >>> from schemalens.db.connection import PostgresConfig
    >>> conn = PostgresConnection(PostgresConfig(database="shop"))
    >>> conn.get_primary_keys("users")
    >>> conn.close()
"""

from .conn import PostgresConnection

__all__ = [
    "PostgresConnection",
]
