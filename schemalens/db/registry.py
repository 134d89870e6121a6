"""Registry of live database adapters keyed by connection id.

The registry owns every adapter it opens: callers borrow them through
:meth:`ConnectionRegistry.open` and never close them directly. Editing or
deleting a stored connection must go through :meth:`ConnectionRegistry.close`
so the next ``open`` picks up the new parameters.

Example:
    >>> registry = ConnectionRegistry(store)
    >>> adapter = registry.open(connection_id)
    >>> adapter.list_tables()
    >>> registry.close_all()
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Callable, Dict, Type

from schemalens.architecture.metadata import Connection
from schemalens.db.connection.config_mapping import parse_connection_config
from schemalens.db.plugin import DatabaseAdapter
from schemalens.db.postgres.conn import PostgresConnection
from schemalens.db.sqlite.conn import SqliteConnection
from schemalens.errors import ConnectionNotFoundError, UnsupportedDatabaseError
from schemalens.onto import DBType

if TYPE_CHECKING:
    from schemalens.store.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

ADAPTER_MAPPING: Dict[DBType, Type[DatabaseAdapter]] = {
    DBType.POSTGRES: PostgresConnection,
    DBType.SQLITE: SqliteConnection,
}


def create_adapter(connection: Connection) -> DatabaseAdapter:
    """Instantiate the adapter for a stored connection.

    Raises:
        UnsupportedDatabaseError: If the connection type has no adapter
        DatabaseConnectionError: If the database cannot be reached
    """
    config = parse_connection_config(connection)
    adapter_class = ADAPTER_MAPPING.get(DBType(connection.type))
    if adapter_class is None:
        raise UnsupportedDatabaseError(str(connection.type))
    return adapter_class(config)


class ConnectionRegistry:
    """Owned map of open adapters.

    Attributes:
        store: State store the connection definitions are read from
        adapter_factory: Callable building an adapter from a connection
    """

    def __init__(
        self,
        store: MetadataStore,
        adapter_factory: Callable[[Connection], DatabaseAdapter] = create_adapter,
    ):
        self.store = store
        self.adapter_factory = adapter_factory
        self._adapters: dict[str, DatabaseAdapter] = {}
        self._lock = threading.Lock()

    def open(self, connection_id: str) -> DatabaseAdapter:
        """Return the live adapter for a connection, opening it on first use.

        Raises:
            ConnectionNotFoundError: If the connection id is not stored
            DatabaseConnectionError: If the database cannot be reached
        """
        with self._lock:
            adapter = self._adapters.get(connection_id)
            if adapter is not None:
                return adapter

            connection = self.store.get_connection(connection_id)
            if connection is None:
                raise ConnectionNotFoundError(connection_id)

            adapter = self.adapter_factory(connection)
            self._adapters[connection_id] = adapter
            logger.info(
                f"Opened {connection.type} connection '{connection.name}' ({connection_id})"
            )
            return adapter

    def close(self, connection_id: str) -> bool:
        """Close and forget the adapter of a connection.

        Returns:
            bool: Whether an adapter was open
        """
        with self._lock:
            adapter = self._adapters.pop(connection_id, None)
        if adapter is None:
            return False
        adapter.close()
        logger.info(f"Closed connection {connection_id}")
        return True

    def close_all(self) -> None:
        with self._lock:
            adapters = list(self._adapters.items())
            self._adapters.clear()
        for connection_id, adapter in adapters:
            adapter.close()
            logger.debug(f"Closed connection {connection_id}")

    def is_open(self, connection_id: str) -> bool:
        with self._lock:
            return connection_id in self._adapters

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close_all()
        return False
