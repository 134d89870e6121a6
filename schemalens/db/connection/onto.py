"""Connection parameter models for the supported source databases.

These are the kind-specific ``details`` of a stored :class:`Connection`.
"""

from __future__ import annotations

import abc
from typing import Any, ClassVar

from pydantic import Field as PydanticField

from schemalens.architecture.base import ConfigBaseModel
from schemalens.onto import DBType


class DBConfig(ConfigBaseModel):
    """Base class for connection parameters."""

    db_type: ClassVar[DBType]

    @abc.abstractmethod
    def describe(self) -> str:
        """Credential-free description used in log messages."""


class PostgresConfig(DBConfig):
    """PostgreSQL connection parameters."""

    db_type: ClassVar[DBType] = DBType.POSTGRES

    host: str = "localhost"
    port: int = 5432
    database: str = "postgres"
    username: str = "postgres"
    password: str | None = None
    schema_name: str = "public"
    ssl_mode: str = PydanticField(
        default="prefer",
        description="libpq sslmode: disable, allow, prefer, require, verify-ca, verify-full.",
    )
    connect_timeout: int = 10
    pool_size: int = PydanticField(
        default=5, ge=1, description="Maximum pooled connections per registry entry."
    )


    def describe(self) -> str:
        return f"{self.username}@{self.host}:{self.port}/{self.database}"

    def to_connect_params(self) -> dict[str, Any]:
        """Keyword arguments for ``psycopg2.connect``."""
        params: dict[str, Any] = {
            "host": self.host,
            "port": self.port,
            "dbname": self.database,
            "user": self.username,
            "sslmode": self.ssl_mode,
            "connect_timeout": self.connect_timeout,
        }
        if self.password:
            params["password"] = self.password
        return params


class SqliteConfig(DBConfig):
    """SQLite connection parameters."""

    db_type: ClassVar[DBType] = DBType.SQLITE

    path: str

    def describe(self) -> str:
        return self.path
