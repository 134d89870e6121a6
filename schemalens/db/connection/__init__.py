from .config_mapping import DB_TYPE_MAPPING, get_config_class, parse_connection_config
from .onto import DBConfig, PostgresConfig, SqliteConfig

__all__ = [
    "DB_TYPE_MAPPING",
    "DBConfig",
    "PostgresConfig",
    "SqliteConfig",
    "get_config_class",
    "parse_connection_config",
]
