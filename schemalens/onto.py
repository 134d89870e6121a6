"""Core ontology and base enums shared across schemalens.

This module provides the string enums used throughout the metadata engine:
the supported source database kinds, the closed semantic column-type union,
the view kinds and the per-table analysis states.

Key Components:
    - BaseEnum: Base class for string-based enumerations with flexible membership testing
    - DBType: Supported source database kinds
    - ColumnKind: Semantic data-type classification of a column
    - ViewKind: Record view kinds carrying their own column configuration
    - AnalysisState: Lifecycle of a single table's analysis

Example:
    >>> "postgres" in DBType  # True
    >>> "oracle" in DBType  # False
"""

from enum import EnumMeta

from strenum import StrEnum


class MetaEnum(EnumMeta):
    """Metaclass for flexible enumeration membership testing.

    Allows checking whether a raw value is a valid member of the enum using
    the `in` operator.

    Example:
        >>> class MyEnum(BaseEnum):
        ...     VALUE = "value"
        >>> "value" in MyEnum  # True
        >>> "invalid" in MyEnum  # False
    """

    def __contains__(self, member: object) -> bool:
        if isinstance(member, self):
            return True
        try:
            self(member)
            return True
        except ValueError:
            return False


class BaseEnum(StrEnum, metaclass=MetaEnum):
    """Base class for string-based enumerations."""

    def __str__(self) -> str:
        """Return the enum value as string for proper serialization."""
        return self.value

    def __repr__(self) -> str:
        """Return the enum value as string for proper serialization."""
        return self.value


class DBType(BaseEnum):
    """Source database kinds that can be introspected."""

    POSTGRES = "postgres"
    SQLITE = "sqlite"


class ColumnKind(BaseEnum):
    """Closed semantic classification of a column's declared type.

    Computed once at introspection time from the raw type string so that the
    inference code never has to re-inspect raw types.

    Attributes:
        TEXT: Character data
        NUMERIC: Integer and decimal numbers
        DATE: Dates, times and timestamps
        BOOLEAN: Boolean flags
        JSON: JSON documents
        UUID: UUID identifiers
        ENUM: User-defined enumerations
        UNKNOWN: Anything else (binary, geometric, arrays, ...)
    """

    TEXT = "text"
    NUMERIC = "numeric"
    DATE = "date"
    BOOLEAN = "boolean"
    JSON = "json"
    UUID = "uuid"
    ENUM = "enum"
    UNKNOWN = "unknown"


class ViewKind(BaseEnum):
    """Record view kinds; each has its own column order/visibility."""

    INLINE = "inline"
    CARD = "card"
    LIST = "list"


class AnalysisState(BaseEnum):
    """Lifecycle of a single table's analysis.

    There is no failed state: a failed attempt leaves the table as it was.
    """

    UNANALYZED = "unanalyzed"
    ANALYZING = "analyzing"
    ANALYZED = "analyzed"
