"""Error hierarchy for schemalens.

All exceptions inherit from SchemaLensError so callers at the action layer
can convert any of them into the structured failure result returned to the UI.
"""


class SchemaLensError(Exception):
    """Base exception for all schemalens errors."""

    def __init__(self, message: str, code: str = "SCHEMALENS_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to the structured failure result."""
        return {"success": False, "error": self.message, "code": self.code}


# =============================================================================
# Connection errors
# =============================================================================


class ConnectionNotFoundError(SchemaLensError):
    """Raised when a connection id is not present in the state store."""

    def __init__(self, connection_id: str):
        super().__init__(
            f"Connection {connection_id} not found", "CONNECTION_NOT_FOUND"
        )
        self.connection_id = connection_id


class DatabaseConnectionError(SchemaLensError):
    """Raised when the target database cannot be reached (network, auth, timeout)."""

    def __init__(self, message: str):
        super().__init__(message, "DATABASE_CONNECTION_FAILED")


class UnsupportedDatabaseError(SchemaLensError):
    """Raised when a connection declares a database kind without an adapter."""

    def __init__(self, db_type: str):
        super().__init__(
            f"Unsupported database type '{db_type}'", "UNSUPPORTED_DATABASE"
        )
        self.db_type = db_type


# =============================================================================
# Introspection errors
# =============================================================================


class SchemaParseError(SchemaLensError):
    """Raised when a table definition statement cannot be parsed."""

    def __init__(self, table_name: str, reason: str):
        super().__init__(
            f"Could not parse definition of table '{table_name}': {reason}",
            "SCHEMA_PARSE_FAILED",
        )
        self.table_name = table_name


class PrimaryKeyResolutionError(SchemaLensError):
    """Raised when a primary key is requested for a table without columns.

    This is a contract violation: upstream introspection returned
    inconsistent data.
    """

    def __init__(self, table_name: str):
        super().__init__(
            f"Cannot resolve a primary key for table '{table_name}' without columns",
            "PRIMARY_KEY_PRECONDITION",
        )
        self.table_name = table_name


class TableNotFoundError(SchemaLensError):
    """Raised when a table is not present in the live schema."""

    def __init__(self, table_name: str):
        super().__init__(f"Table '{table_name}' not found", "TABLE_NOT_FOUND")
        self.table_name = table_name


# =============================================================================
# Analysis errors
# =============================================================================


class AnalysisInProgressError(SchemaLensError):
    """Raised when the same table is analyzed twice concurrently."""

    def __init__(self, connection_id: str, table_name: str):
        super().__init__(
            f"Analysis of table '{table_name}' on connection {connection_id} "
            f"is already running",
            "ANALYSIS_IN_PROGRESS",
        )
        self.connection_id = connection_id
        self.table_name = table_name
