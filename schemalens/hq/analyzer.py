"""Per-table analysis pipeline.

Analysis of a table is split in two steps:

- discovery reads the live schema (columns, kinds, enum labels, primary and
  declared foreign keys) and computes normalized names;
- enrichment needs the discovered metadata of every table of the connection
  and adds guessed foreign keys, display columns, icons, human names and
  view configuration.

Both steps are synchronous; :class:`schemalens.hq.engine.MetadataEngine`
runs them in worker threads.
"""

from __future__ import annotations

import logging
from typing import Sequence

from pydantic import Field as PydanticField

from schemalens.architecture.base import ConfigBaseModel
from schemalens.architecture.metadata import ColumnMetadata, TableDetails, TableMetadata
from schemalens.architecture.onto_sql import DeclaredForeignKey, RawColumnInfo, TableRef
from schemalens.db.plugin import DatabaseAdapter
from schemalens.db.types import ColumnTypeMapper
from schemalens.hq.display_columns import select_display_columns
from schemalens.hq.fk_guesser import guess_foreign_keys
from schemalens.hq.fk_merger import merge_foreign_keys
from schemalens.hq.icons import IconResolver
from schemalens.hq.normalizer import (
    display_name,
    normalize_name,
    plural_name,
    singular_name,
)
from schemalens.hq.primary_key import fetch_primary_key
from schemalens.hq.views import reset_views, should_hide_column, sync_view_columns
from schemalens.onto import ColumnKind, ViewKind

logger = logging.getLogger(__name__)


class DiscoveredTable(ConfigBaseModel):
    """Result of the discovery step for one table."""

    metadata: TableMetadata
    declared_foreign_keys: list[DeclaredForeignKey] = PydanticField(
        default_factory=list
    )


class TableAnalyzer:
    """Discovery and enrichment of tables read through one adapter.

    Attributes:
        adapter: Live schema reader
        icon_resolver: Icon assignment capability
        type_mapper: Raw type classifier
        default_color: Color given to newly analyzed tables
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        icon_resolver: IconResolver,
        type_mapper: ColumnTypeMapper | None = None,
        default_color: str = "green",
    ):
        self.adapter = adapter
        self.icon_resolver = icon_resolver
        self.type_mapper = type_mapper or ColumnTypeMapper()
        self.default_color = default_color

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def _column_metadata(self, raw: RawColumnInfo, order: int) -> ColumnMetadata:
        kind = self.type_mapper.map_type(raw.raw_type, raw.is_user_defined_enum)
        enum_options = None
        if kind == ColumnKind.ENUM:
            enum_options = self.adapter.describe_enum(raw.raw_type)

        column = ColumnMetadata(
            name=raw.name,
            normalized_name=normalize_name(raw.name),
            display_name=display_name(raw.name),
            type=raw.raw_type,
            kind=kind,
            nullable=raw.is_nullable,
            default=raw.default,
            order=order,
            enum_options=enum_options,
            is_generated=raw.is_generated,
        )
        column.hidden = should_hide_column(column)
        return column

    def discover(self, connection_id: str, table: TableRef) -> DiscoveredTable:
        """Read one table's structure from the live schema.

        A table the adapter reports without columns gets no primary key and
        no display columns.
        """
        raw_columns = self.adapter.describe_table(table.name, table.schema_name)
        columns = {
            raw.name: self._column_metadata(raw, order)
            for order, raw in enumerate(raw_columns)
        }

        if columns:
            pk = fetch_primary_key(
                self.adapter, table.name, list(columns), table.schema_name
            )
            declared = self.adapter.get_foreign_keys(table.name, table.schema_name)
        else:
            logger.warning(f"Table '{table.name}' has no readable columns")
            pk, declared = [], []

        normalized = normalize_name(table.name)
        metadata = TableMetadata(
            connection_id=connection_id,
            name=table.name,
            schema_name=table.schema_name,
            details=TableDetails(
                normalized_name=normalized,
                singular_name=singular_name(table.name),
                plural_name=plural_name(table.name),
                color=self.default_color,
                pk=pk,
                columns=columns,
            ),
        )
        return DiscoveredTable(metadata=metadata, declared_foreign_keys=declared)

    # ------------------------------------------------------------------
    # Enrichment
    # ------------------------------------------------------------------

    def enrich(
        self,
        discovered: DiscoveredTable,
        all_tables: Sequence[TableMetadata],
        previous: TableMetadata | None = None,
    ) -> TableMetadata:
        """Complete a discovered table using the metadata of every table.

        Calculated columns, color and view configuration of ``previous`` are
        carried over; views are reconciled with the current columns.

        Args:
            discovered: Output of :meth:`discover`
            all_tables: Discovered metadata of every table of the connection
            previous: Stored metadata of the same table, if any

        Returns:
            TableMetadata: Metadata ready to be saved
        """
        metadata = discovered.metadata.model_copy(deep=True)
        details = metadata.details
        columns = metadata.column_list

        guesses = guess_foreign_keys(columns, all_tables)
        links = merge_foreign_keys(discovered.declared_foreign_keys, guesses)
        for column in columns:
            column.foreign_key = links.get(column.name)
            column.icon = self.icon_resolver.best_icon_for_kind(column.kind)

        details.display_columns = select_display_columns(columns, details.pk)
        details.icon = self.icon_resolver.best_icon_for(details.normalized_name)

        if previous is not None:
            old = previous.details
            details.color = old.color
            details.calculated_columns = [
                c.model_copy() for c in old.calculated_columns
            ]
            for kind in ViewKind:
                details.set_view(
                    kind,
                    sync_view_columns(
                        old.view(kind), columns, details.calculated_columns
                    ),
                )
        else:
            reset_views(details, columns)

        logger.debug(
            f"Enriched table '{metadata.name}': {len(links)} foreign keys, "
            f"display columns {details.display_columns}"
        )
        return metadata

    def analyze(
        self,
        connection_id: str,
        table: TableRef,
        all_tables: Sequence[TableMetadata],
        previous: TableMetadata | None = None,
    ) -> TableMetadata:
        """Discover and enrich a single table.

        ``all_tables`` is the known metadata of the other tables; the freshly
        discovered table replaces its own entry.
        """
        discovered = self.discover(connection_id, table)
        others = [t for t in all_tables if t.name != table.name]
        return self.enrich(discovered, [*others, discovered.metadata], previous)
