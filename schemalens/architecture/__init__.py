"""Data model of schemalens.

Key Components:
    - ConfigBaseModel / PersistedModel: Pydantic bases
    - TableRef, RawColumnInfo, DeclaredForeignKey: adapter introspection records
    - TableMetadata, TableDetails, ColumnMetadata, ForeignKeyLink: inferred metadata
    - ViewConfiguration, ViewColumn, CalculatedColumn: view configuration
    - Connection: configured database endpoint
"""

from .base import ConfigBaseModel, PersistedModel
from .metadata import (
    CALCULATED_COLUMN_PREFIX,
    CalculatedColumn,
    ColumnMetadata,
    Connection,
    ForeignKeyLink,
    TableDetails,
    TableMetadata,
    ViewColumn,
    ViewConfiguration,
)
from .onto_sql import DeclaredForeignKey, RawColumnInfo, TableRef

__all__ = [
    "CALCULATED_COLUMN_PREFIX",
    "CalculatedColumn",
    "ColumnMetadata",
    "ConfigBaseModel",
    "Connection",
    "DeclaredForeignKey",
    "ForeignKeyLink",
    "PersistedModel",
    "RawColumnInfo",
    "TableDetails",
    "TableMetadata",
    "TableRef",
    "ViewColumn",
    "ViewConfiguration",
]
