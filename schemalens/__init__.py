"""schemalens: schema introspection and semantic metadata for database browsing.

schemalens connects to relational databases, reads their schemas and infers
the metadata a record browser needs: human-friendly names, icons, display
columns and foreign-key relationships, including ones that are not declared
as constraints. The results are kept in a local state store.

Key Features:
    - PostgreSQL and SQLite schema readers
    - Foreign-key guessing from naming conventions
    - Display-column and view configuration defaults
    - Bounded concurrent analysis of whole connections

Example:
    >>> from schemalens import MetadataEngine, MetadataStore, ConnectionRegistry
    >>> store = MetadataStore("sqlite:///state.db")
    >>> store.boot()
    >>> engine = MetadataEngine(store, ConnectionRegistry(store))
    >>> asyncio.run(engine.analyze_connection(connection_id))
"""

# --- Core orchestration ---------------------------------------------------
from .hq import (
    AnalysisResult,
    AnalysisSummary,
    BulkAnalysisResult,
    MetadataEngine,
    TableAnalyzer,
)

# --- Architecture ----------------------------------------------------------
from .architecture import (
    ColumnMetadata,
    Connection,
    ForeignKeyLink,
    TableDetails,
    TableMetadata,
    ViewConfiguration,
)

# --- Databases --------------------------------------------------------------
from .db import (
    ConnectionRegistry,
    DatabaseAdapter,
    PostgresConfig,
    PostgresConnection,
    SqliteConfig,
    SqliteConnection,
)

# --- Storage and settings ----------------------------------------------------
from .errors import SchemaLensError
from .onto import AnalysisState, ColumnKind, DBType, ViewKind
from .settings import SchemaLensSettings
from .store import MetadataStore

__all__ = [
    "AnalysisResult",
    "AnalysisState",
    "AnalysisSummary",
    "BulkAnalysisResult",
    "ColumnKind",
    "ColumnMetadata",
    "Connection",
    "ConnectionRegistry",
    "DBType",
    "DatabaseAdapter",
    "ForeignKeyLink",
    "MetadataEngine",
    "MetadataStore",
    "PostgresConfig",
    "PostgresConnection",
    "SchemaLensError",
    "SchemaLensSettings",
    "SqliteConfig",
    "SqliteConnection",
    "TableAnalyzer",
    "TableDetails",
    "TableMetadata",
    "ViewConfiguration",
    "ViewKind",
]
