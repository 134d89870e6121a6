"""Database adapters and the live connection registry.

Key Components:
    - DatabaseAdapter: Abstract schema reader
    - PostgresConnection: PostgreSQL implementation
    - SqliteConnection: SQLite implementation
    - ConnectionRegistry: Owned map of open adapters
    - ColumnTypeMapper: Raw type to semantic kind classifier

Example:
    >>> from schemalens.db import ConnectionRegistry
    >>> registry = ConnectionRegistry(store)
    >>> registry.open(connection_id).list_tables()
"""

from .connection import DBConfig, PostgresConfig, SqliteConfig
from .plugin import DatabaseAdapter
from .postgres import PostgresConnection
from .registry import ADAPTER_MAPPING, ConnectionRegistry, create_adapter
from .sqlite import SqliteConnection
from .types import ColumnTypeMapper, base_type, is_integer_type

__all__ = [
    "ADAPTER_MAPPING",
    "ColumnTypeMapper",
    "ConnectionRegistry",
    "DBConfig",
    "DatabaseAdapter",
    "PostgresConfig",
    "PostgresConnection",
    "SqliteConfig",
    "SqliteConnection",
    "base_type",
    "create_adapter",
    "is_integer_type",
]
