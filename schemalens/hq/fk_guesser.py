"""Foreign key guessing from column naming conventions.

A column like ``customer_id`` (integer or uuid) is guessed to reference the
table whose normalized name is ``customer``. Matching is exact on normalized
names and the first matching table wins; there is no fuzzy scoring.

The guesser needs the normalized names of every table of the connection and
must only run once all tables have been discovered.
"""

from __future__ import annotations

import logging
import re
from typing import Iterable

from pydantic import ConfigDict

from schemalens.architecture.base import ConfigBaseModel
from schemalens.architecture.metadata import ColumnMetadata, TableMetadata
from schemalens.db.types import is_integer_type
from schemalens.onto import ColumnKind

logger = logging.getLogger(__name__)

ID_SUFFIX = re.compile(r"\b(id|uuid|guid)$")
BARE_ID_NAMES = frozenset({"id", "uuid", "guid"})


class ForeignKeyGuess(ConfigBaseModel):
    """Guessed reference of one source column.

    The no-match sentinel has empty strings and zero confidence.
    """

    model_config = ConfigDict(frozen=True)

    source_column: str
    target_schema: str
    target_table: str
    target_column: str
    confidence: float

    @property
    def is_match(self) -> bool:
        return self.confidence > 0


NO_MATCH = ForeignKeyGuess(
    source_column="", target_schema="", target_table="", target_column="", confidence=0.0
)


def is_identifier_like(column: ColumnMetadata) -> bool:
    """Integer and uuid columns may hold identifiers."""
    if column.kind == ColumnKind.UUID:
        return True
    return column.kind == ColumnKind.NUMERIC and is_integer_type(column.type)


def strip_id_suffix(normalized_name: str) -> str:
    """``customer id`` -> ``customer``; ``id`` -> empty string."""
    return ID_SUFFIX.sub("", normalized_name).strip()


def is_id_column(column: ColumnMetadata) -> bool:
    """Identifier-like column whose name ends with a whole-word id suffix."""
    return is_identifier_like(column) and bool(ID_SUFFIX.search(column.normalized_name))


def _target_column(table: TableMetadata) -> str | None:
    id_columns = [c for c in table.column_list if is_id_column(c)]
    own_name = table.details.normalized_name
    for column in id_columns:
        if column.normalized_name in BARE_ID_NAMES:
            return column.name
        if strip_id_suffix(column.normalized_name) == own_name:
            return column.name
    if id_columns:
        return id_columns[0].name
    if table.details.pk:
        return table.details.pk[0]
    return None


def guess_foreign_key(
    column: ColumnMetadata, all_tables: Iterable[TableMetadata]
) -> ForeignKeyGuess:
    """Guess the reference of a single column; :data:`NO_MATCH` if none."""
    if not is_identifier_like(column):
        return NO_MATCH

    remainder = strip_id_suffix(column.normalized_name)
    if not remainder:
        return NO_MATCH

    target = next(
        (t for t in all_tables if t.details.normalized_name == remainder), None
    )
    if target is None:
        return NO_MATCH

    target_column = _target_column(target)
    if target_column is None:
        return NO_MATCH

    return ForeignKeyGuess(
        source_column=column.name,
        target_schema=target.schema_name,
        target_table=target.name,
        target_column=target_column,
        confidence=1.0,
    )


def guess_foreign_keys(
    source_columns: Iterable[ColumnMetadata], all_tables: Iterable[TableMetadata]
) -> list[ForeignKeyGuess]:
    """Guess references for every source column.

    Args:
        source_columns: Columns of the table being enriched
        all_tables: Every table of the connection, with normalized names,
            columns and resolved primary keys

    Returns:
        list[ForeignKeyGuess]: One entry per source column, in input order
    """
    tables = list(all_tables)
    guesses = [guess_foreign_key(column, tables) for column in source_columns]
    logger.debug(
        f"Guessed {sum(1 for g in guesses if g.is_match)} of {len(guesses)} columns"
    )
    return guesses
