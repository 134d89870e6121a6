"""Abstract database adapter used by the analysis pipeline.

Every supported source database implements this narrow capability: list
tables, describe their columns, and report declared primary and foreign keys.
Adapters own their live driver resources and release them in :meth:`close`.
"""

from __future__ import annotations

import abc
import logging

from schemalens.architecture.onto_sql import DeclaredForeignKey, RawColumnInfo, TableRef
from schemalens.onto import DBType

logger = logging.getLogger(__name__)


class DatabaseAdapter(abc.ABC):
    """Schema reader capability for one live database connection."""

    db_type: DBType

    @abc.abstractmethod
    def list_tables(self, schema_name: str | None = None) -> list[TableRef]:
        """List base tables of a schema."""

    @abc.abstractmethod
    def describe_table(
        self, table_name: str, schema_name: str | None = None
    ) -> list[RawColumnInfo]:
        """Describe a table's columns in declaration order."""

    @abc.abstractmethod
    def describe_enum(self, type_name: str) -> list[str]:
        """List the labels of a user-defined enum type."""

    @abc.abstractmethod
    def get_primary_keys(
        self, table_name: str, schema_name: str | None = None
    ) -> list[str]:
        """Declared primary key columns ordered by ordinal position."""

    @abc.abstractmethod
    def get_foreign_keys(
        self, table_name: str, schema_name: str | None = None
    ) -> list[DeclaredForeignKey]:
        """Declared foreign keys whose source is the given table."""

    @abc.abstractmethod
    def test(self) -> None:
        """Run a trivial query; raises DatabaseConnectionError when unreachable."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release driver resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, exc_traceback):
        self.close()
        return False
