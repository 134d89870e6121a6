"""Typed metadata computed by the analysis pipeline and persisted in the state store.

The ``details`` JSON blob stored per table is exactly the serialized form of
:class:`TableDetails`; it is only (de)serialized at the store boundary.

Key Components:
    - ForeignKeyLink: Declared or guessed reference from a column to another table
    - ColumnMetadata: Per-column semantic metadata
    - ViewConfiguration: Column order/visibility for one view kind
    - CalculatedColumn: Template-based synthetic column
    - TableDetails: Everything inferred about one table
    - TableMetadata: One (connection, table) entry
    - Connection: A configured database endpoint

Example:
    >>> details = TableDetails(normalized_name="user", singular_name="User",
    ...                        plural_name="Users")
    >>> table = TableMetadata(connection_id="c1", name="users", details=details)
    >>> table.details.to_json()
"""

from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import Field as PydanticField

from schemalens.architecture.base import ConfigBaseModel, PersistedModel
from schemalens.onto import ColumnKind, DBType, ViewKind

CALCULATED_COLUMN_PREFIX = "calc_"


class ForeignKeyLink(PersistedModel):
    """Reference from a column to a target table column.

    ``confidence`` is only set for guessed links.
    """

    target_table: str
    target_column: str
    target_schema: str | None = None
    is_guessed: bool = False
    confidence: float | None = PydanticField(default=None, ge=0.0, le=1.0)


class ColumnMetadata(PersistedModel):
    """Semantic metadata for one column."""

    name: str
    normalized_name: str = ""
    display_name: str = ""
    type: str = PydanticField(
        default="", description="Raw type string as reported by the adapter."
    )
    kind: ColumnKind = ColumnKind.UNKNOWN
    nullable: bool = True
    default: str | None = None
    hidden: bool = False
    icon: str = ""
    order: int = 0
    enum_options: list[str] | None = None
    is_generated: bool = False
    foreign_key: ForeignKeyLink | None = None


class ViewColumn(PersistedModel):
    """Position and visibility of a column inside a view."""

    order: int = 0
    hidden: bool = False


class ViewConfiguration(PersistedModel):
    """Column configuration of one view kind, keyed by column (or calc) key."""

    columns: dict[str, ViewColumn] = PydanticField(default_factory=dict)


class CalculatedColumn(PersistedModel):
    """Synthetic column computed from a ``{column}`` template."""

    id: str = PydanticField(default_factory=lambda: uuid4().hex[:8])
    display_name: str
    template: str
    icon: str = "Calculator"
    hidden: bool = False
    order: int = 0

    @property
    def key(self) -> str:
        return f"{CALCULATED_COLUMN_PREFIX}{self.id}"


class TableDetails(PersistedModel):
    """Everything inferred about a table; persisted as the ``details`` blob."""

    normalized_name: str = ""
    singular_name: str = ""
    plural_name: str = ""
    icon: str = "Table"
    color: str = "green"
    display_columns: list[str] = PydanticField(default_factory=list)
    pk: list[str] = PydanticField(default_factory=list)
    columns: dict[str, ColumnMetadata] = PydanticField(default_factory=dict)
    calculated_columns: list[CalculatedColumn] = PydanticField(default_factory=list)
    inline_view: ViewConfiguration = PydanticField(default_factory=ViewConfiguration)
    card_view: ViewConfiguration = PydanticField(default_factory=ViewConfiguration)
    list_view: ViewConfiguration = PydanticField(default_factory=ViewConfiguration)

    def view(self, kind: ViewKind | str) -> ViewConfiguration:
        """Return the view configuration for a view kind.

        Raises:
            ValueError: If ``kind`` is not a known view kind
        """
        if kind not in ViewKind:
            raise ValueError(f"Invalid view type '{kind}'")
        return getattr(self, f"{ViewKind(kind).value}_view")

    def set_view(self, kind: ViewKind | str, view: ViewConfiguration) -> None:
        if kind not in ViewKind:
            raise ValueError(f"Invalid view type '{kind}'")
        setattr(self, f"{ViewKind(kind).value}_view", view)


class TableMetadata(ConfigBaseModel):
    """Metadata of one table of one connection."""

    connection_id: str
    name: str
    schema_name: str = "public"
    details: TableDetails = PydanticField(default_factory=TableDetails)

    @property
    def column_list(self) -> list[ColumnMetadata]:
        """Columns in declaration order."""
        return list(self.details.columns.values())


class Connection(ConfigBaseModel):
    """A configured database endpoint.

    ``details`` holds the kind-specific parameters; see
    :func:`schemalens.db.connection.config_mapping.parse_connection_config`.
    """

    id: str = PydanticField(default_factory=lambda: str(uuid4()))
    name: str
    type: DBType
    details: dict[str, Any] = PydanticField(default_factory=dict)
