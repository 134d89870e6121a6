"""Primary key resolution.

The declared constraint wins; tables without one use their first column so
that every table with columns has a usable record identity.
"""

import logging
from typing import Sequence

from schemalens.db.plugin import DatabaseAdapter
from schemalens.errors import PrimaryKeyResolutionError

logger = logging.getLogger(__name__)


def resolve_primary_key(
    declared_pk: Sequence[str], columns: Sequence[str], table_name: str = ""
) -> list[str]:
    """Resolve the primary key of a table.

    Args:
        declared_pk: Constraint columns ordered by ordinal position
        columns: Column names in declaration order
        table_name: Used in error messages

    Returns:
        list[str]: ``declared_pk`` verbatim when non-empty, else the first column

    Raises:
        PrimaryKeyResolutionError: If ``columns`` is empty
    """
    if not columns:
        raise PrimaryKeyResolutionError(table_name)
    if declared_pk:
        return list(declared_pk)
    logger.debug(
        f"No declared primary key for table '{table_name}', using first column '{columns[0]}'"
    )
    return [columns[0]]


def fetch_primary_key(
    adapter: DatabaseAdapter,
    table_name: str,
    columns: Sequence[str],
    schema_name: str | None = None,
) -> list[str]:
    """Read the declared key from the catalog and resolve it."""
    declared = adapter.get_primary_keys(table_name, schema_name)
    return resolve_primary_key(declared, columns, table_name)
