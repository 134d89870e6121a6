"""Selection of the columns used to label a record of a table."""

from typing import Sequence

from schemalens.architecture.metadata import ColumnMetadata
from schemalens.onto import ColumnKind

DISPLAY_VOCABULARY = ("name", "title", "label", "description")
IDENTIFIER_NAMES = frozenset({"id", "uuid", "guid", "pk"})


def select_display_columns(
    columns: Sequence[ColumnMetadata], primary_key: Sequence[str]
) -> list[str]:
    """Pick the columns that best describe a record.

    Rules are tried in order and the first one that yields a column wins:

    1. the first of ``name``, ``title``, ``label``, ``description``
    2. ``first name`` and ``last name`` together
    3. a column whose normalized name starts with ``email``
    4. the first text column outside the primary key that is not an identifier
    5. the first primary key column
    6. the first column

    Args:
        columns: Columns in declaration order, with normalized names and kinds
        primary_key: Resolved primary key

    Returns:
        list[str]: Column names; empty only when ``columns`` is empty
    """
    if not columns:
        return []

    by_normalized: dict[str, ColumnMetadata] = {}
    for column in columns:
        by_normalized.setdefault(column.normalized_name, column)

    for word in DISPLAY_VOCABULARY:
        if word in by_normalized:
            return [by_normalized[word].name]

    first_name = by_normalized.get("first name")
    last_name = by_normalized.get("last name")
    if first_name is not None and last_name is not None:
        return [first_name.name, last_name.name]

    for column in columns:
        if column.normalized_name.startswith("email"):
            return [column.name]

    for column in columns:
        if (
            column.kind == ColumnKind.TEXT
            and column.name not in primary_key
            and column.normalized_name not in IDENTIFIER_NAMES
        ):
            return [column.name]

    if primary_key:
        return [primary_key[0]]

    return [columns[0].name]
