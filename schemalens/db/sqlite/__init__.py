"""SQLite adapter.

Key Components:
    - SqliteConnection: schema reader over a read-only sqlite3 connection
    - parse_create_table: sqlglot-based parser for stored table definitions
"""

from .conn import SqliteConnection
from .ddl_parser import TableDefinition, parse_create_table

__all__ = [
    "SqliteConnection",
    "TableDefinition",
    "parse_create_table",
]
