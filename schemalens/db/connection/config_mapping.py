from typing import Dict, Type

from schemalens.architecture.metadata import Connection
from schemalens.errors import UnsupportedDatabaseError
from schemalens.onto import DBType

from .onto import DBConfig, PostgresConfig, SqliteConfig

# Define this mapping in a separate file to avoid circular imports
DB_TYPE_MAPPING: Dict[DBType, Type[DBConfig]] = {
    config_class.db_type: config_class for config_class in (PostgresConfig, SqliteConfig)
}


def get_config_class(db_type: DBType | str) -> Type[DBConfig]:
    """Get the config class for a database type.

    Raises:
        UnsupportedDatabaseError: If the db_type has no config class
    """
    if db_type not in DBType:
        raise UnsupportedDatabaseError(str(db_type))
    return DB_TYPE_MAPPING[DBType(db_type)]


def parse_connection_config(connection: Connection) -> DBConfig:
    """Validate a stored connection's ``details`` into its typed config."""
    return get_config_class(connection.type).model_validate(connection.details)
