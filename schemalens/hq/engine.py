"""Orchestration of table analysis.

:class:`MetadataEngine` ties the registry of live adapters, the analysis
pipeline and the state store together:

- ``analyze_table`` refreshes a single table;
- ``analyze_connection`` clears a connection's metadata, discovers every table
  and then enriches them, with a bounded number of tables in flight.

Blocking database I/O runs in worker threads (``asyncio.to_thread``) under an
``asyncio.Semaphore``. Failures are reported per table and never abort the
other tables.

Example:
    >>> engine = MetadataEngine(store, registry)
    >>> result = asyncio.run(engine.analyze_connection(connection_id))
    >>> result.details.failed
    0
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Callable

from pydantic import Field as PydanticField
from suthing import Timer

from schemalens.architecture.base import ConfigBaseModel
from schemalens.architecture.metadata import CalculatedColumn, Connection, TableMetadata
from schemalens.architecture.onto_sql import TableRef
from schemalens.db.connection.config_mapping import parse_connection_config
from schemalens.db.connection.onto import PostgresConfig
from schemalens.db.registry import ConnectionRegistry
from schemalens.errors import (
    AnalysisInProgressError,
    ConnectionNotFoundError,
    SchemaLensError,
    TableNotFoundError,
)
from schemalens.hq.analyzer import DiscoveredTable, TableAnalyzer
from schemalens.hq.calculated import add_calculated_column, remove_calculated_column
from schemalens.hq.icons import CachedIconResolver, IconResolver, KeywordIconResolver
from schemalens.hq.views import update_view_column
from schemalens.onto import AnalysisState, ViewKind
from schemalens.settings import SchemaLensSettings
from schemalens.store.metadata_store import MetadataStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str, list[str]], None]


class AnalysisResult(ConfigBaseModel):
    """Outcome of analyzing one table."""

    name: str
    success: bool
    error: str | None = None
    icon: str | None = None
    column_count: int = 0


class FailedTable(ConfigBaseModel):
    name: str
    error: str


class AnalysisSummary(ConfigBaseModel):
    """Aggregate outcome of a full-connection analysis."""

    total: int = 0
    successful: int = 0
    failed: int = 0
    failed_tables: list[FailedTable] = PydanticField(default_factory=list)

    @classmethod
    def from_results(cls, results: list[AnalysisResult]) -> AnalysisSummary:
        failed = [
            FailedTable(name=r.name, error=r.error or "Unknown error")
            for r in results
            if not r.success
        ]
        return cls(
            total=len(results),
            successful=len(results) - len(failed),
            failed=len(failed),
            failed_tables=failed,
        )


class BulkAnalysisResult(ConfigBaseModel):
    success: bool
    message: str
    details: AnalysisSummary | None = None


def _error_message(error: Exception) -> str:
    if isinstance(error, SchemaLensError):
        return error.message
    return str(error) or type(error).__name__


class MetadataEngine:
    """Runs table analyses and persists their results.

    Attributes:
        store: State store
        registry: Live adapter registry
        icon_resolver: Icon assignment capability
        settings: Engine settings
        max_concurrent: Upper bound on tables analyzed at once
    """

    def __init__(
        self,
        store: MetadataStore,
        registry: ConnectionRegistry,
        icon_resolver: IconResolver | None = None,
        settings: SchemaLensSettings | None = None,
        max_concurrent: int | None = None,
    ):
        self.store = store
        self.registry = registry
        self.settings = settings or SchemaLensSettings()
        self.icon_resolver = icon_resolver or CachedIconResolver(
            KeywordIconResolver.from_package()
        )
        self.max_concurrent = max_concurrent or self.settings.max_concurrent_analyses
        self._in_progress: set[tuple[str, str]] = set()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # State tracking
    # ------------------------------------------------------------------

    def _begin(self, connection_id: str, table_names: list[str]) -> None:
        with self._lock:
            for name in table_names:
                if (connection_id, name) in self._in_progress:
                    raise AnalysisInProgressError(connection_id, name)
            self._in_progress.update((connection_id, name) for name in table_names)

    def _end(self, connection_id: str, table_name: str) -> None:
        with self._lock:
            self._in_progress.discard((connection_id, table_name))

    def state(self, connection_id: str, table_name: str) -> AnalysisState:
        """Analysis state of a table: running, stored, or never analyzed."""
        with self._lock:
            if (connection_id, table_name) in self._in_progress:
                return AnalysisState.ANALYZING
        if self.store.get_table(connection_id, table_name) is not None:
            return AnalysisState.ANALYZED
        return AnalysisState.UNANALYZED

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def save_connection(self, connection: Connection) -> Connection:
        """Store a connection; an open adapter for it is closed."""
        parse_connection_config(connection)
        self.store.save_connection(connection)
        self.registry.close(connection.id)
        return connection

    def delete_connection(self, connection_id: str) -> bool:
        """Delete a connection with its table metadata and close its adapter."""
        self.registry.close(connection_id)
        return self.store.delete_connection(connection_id)

    def test_connection(self, connection_id: str) -> dict:
        """Check that a stored connection can be reached.

        Returns:
            dict: ``{"success": True}`` or the structured failure result
        """
        try:
            self.registry.open(connection_id).test()
        except SchemaLensError as e:
            logger.warning(f"Connection test for {connection_id} failed: {e.message}")
            return e.to_dict()
        return {"success": True}

    # ------------------------------------------------------------------
    # Table settings
    # ------------------------------------------------------------------

    def _stored_table(self, connection_id: str, table_name: str) -> TableMetadata:
        table = self.store.get_table(connection_id, table_name)
        if table is None:
            raise TableNotFoundError(table_name)
        return table

    def update_view_column(
        self,
        connection_id: str,
        table_name: str,
        view_kind: ViewKind | str,
        key: str,
        order: int | None = None,
        hidden: bool | None = None,
    ) -> TableMetadata:
        """Move and/or hide a column in one view of a stored table.

        Raises:
            TableNotFoundError: If the table has no stored metadata
            ValueError: If ``view_kind`` is not a view kind
            KeyError: If ``key`` is not part of the view
        """
        table = self._stored_table(connection_id, table_name)
        update_view_column(table.details, view_kind, key, order=order, hidden=hidden)
        self.store.save_table(table)
        return table

    def add_calculated_column(
        self, connection_id: str, table_name: str, display_name: str, template: str
    ) -> CalculatedColumn:
        table = self._stored_table(connection_id, table_name)
        calculated = add_calculated_column(table.details, display_name, template)
        self.store.save_table(table)
        return calculated

    def remove_calculated_column(
        self, connection_id: str, table_name: str, calculated_id: str
    ) -> bool:
        table = self._stored_table(connection_id, table_name)
        removed = remove_calculated_column(table.details, calculated_id)
        if removed:
            self.store.save_table(table)
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _schema_for(self, connection_id: str) -> str | None:
        connection = self.store.get_connection(connection_id)
        if connection is None:
            raise ConnectionNotFoundError(connection_id)
        config = parse_connection_config(connection)
        if isinstance(config, PostgresConfig):
            return config.schema_name or self.settings.default_schema
        return None

    def _analyzer(self, connection_id: str) -> TableAnalyzer:
        adapter = self.registry.open(connection_id)
        return TableAnalyzer(
            adapter, self.icon_resolver, default_color=self.settings.default_color
        )

    def _table_ref(
        self, analyzer: TableAnalyzer, table_name: str, schema_name: str | None
    ) -> TableRef:
        for ref in analyzer.adapter.list_tables(schema_name):
            if ref.name == table_name:
                return ref
        raise TableNotFoundError(table_name)

    # ------------------------------------------------------------------
    # Single table
    # ------------------------------------------------------------------

    def _analyze_table_sync(
        self, connection_id: str, table_name: str, schema_name: str | None
    ) -> TableMetadata:
        schema_name = schema_name or self._schema_for(connection_id)
        analyzer = self._analyzer(connection_id)
        ref = self._table_ref(analyzer, table_name, schema_name)
        known = self.store.get_tables(connection_id)
        previous = next((t for t in known if t.name == table_name), None)
        metadata = analyzer.analyze(connection_id, ref, known, previous)
        self.store.save_table(metadata)
        return metadata

    async def analyze_table(
        self, connection_id: str, table_name: str, schema_name: str | None = None
    ) -> AnalysisResult:
        """Analyze (or refresh) one table and save its metadata.

        Other tables are matched against their stored metadata when guessing
        foreign keys. On failure nothing is written and the previous
        metadata stays in place.

        Raises:
            AnalysisInProgressError: If the table is already being analyzed
        """
        self._begin(connection_id, [table_name])
        try:
            metadata = await asyncio.to_thread(
                self._analyze_table_sync, connection_id, table_name, schema_name
            )
        except Exception as e:
            logger.error(
                f"Analysis of table '{table_name}' on connection {connection_id} failed: {e}",
                exc_info=True,
            )
            return AnalysisResult(name=table_name, success=False, error=_error_message(e))
        finally:
            self._end(connection_id, table_name)

        logger.info(f"Analyzed table '{table_name}' on connection {connection_id}")
        return AnalysisResult(
            name=table_name,
            success=True,
            icon=metadata.details.icon,
            column_count=len(metadata.details.columns),
        )

    # ------------------------------------------------------------------
    # Whole connection
    # ------------------------------------------------------------------

    def _prepare_connection(self, connection_id: str) -> tuple[TableAnalyzer, list[TableRef]]:
        schema_name = self._schema_for(connection_id)
        analyzer = self._analyzer(connection_id)
        return analyzer, analyzer.adapter.list_tables(schema_name)

    async def analyze_connection(
        self, connection_id: str, on_progress: ProgressCallback | None = None
    ) -> BulkAnalysisResult:
        """Re-analyze every table of a connection.

        The connection's stored metadata is cleared first so tables that no
        longer exist do not linger. Every table is discovered before any is
        enriched, because guessing foreign keys needs all normalized names.

        Args:
            connection_id: Connection to analyze
            on_progress: Called as ``(completed, total, table_name, pending)``
                after each table finishes, plus once before the first table
                with every table pending and once at the end, both with an
                empty ``table_name``

        Returns:
            BulkAnalysisResult: Failure without details if the database could
                not be read or one of its tables is already being analyzed;
                otherwise a summary of per-table outcomes
        """
        try:
            analyzer, refs = await asyncio.to_thread(
                self._prepare_connection, connection_id
            )
        except Exception as e:
            logger.error(
                f"Could not read tables of connection {connection_id}: {e}", exc_info=True
            )
            return BulkAnalysisResult(success=False, message=_error_message(e))

        names = [ref.name for ref in refs]
        try:
            self._begin(connection_id, names)
        except AnalysisInProgressError as e:
            logger.warning(f"Not analyzing connection {connection_id}: {e.message}")
            return BulkAnalysisResult(success=False, message=e.message)
        try:
            with Timer() as klepsidra:
                results = await self._analyze_all(connection_id, analyzer, refs, on_progress)
        finally:
            for name in names:
                self._end(connection_id, name)

        summary = AnalysisSummary.from_results(results)
        logger.info(
            f"Analyzed {summary.successful}/{summary.total} tables of connection "
            f"{connection_id} in {klepsidra.elapsed:.1f} sec"
        )
        return BulkAnalysisResult(
            success=True,
            message=(
                f"Analysis completed: {summary.successful}/{summary.total} "
                f"tables processed successfully"
            ),
            details=summary,
        )

    async def _analyze_all(
        self,
        connection_id: str,
        analyzer: TableAnalyzer,
        refs: list[TableRef],
        on_progress: ProgressCallback | None,
    ) -> list[AnalysisResult]:
        await asyncio.to_thread(self.store.clear_tables_for_connection, connection_id)

        semaphore = asyncio.Semaphore(self.max_concurrent)
        total = len(refs)
        pending = [ref.name for ref in refs]
        results: dict[str, AnalysisResult] = {}
        if on_progress is not None:
            on_progress(0, total, "", list(pending))

        def _finish(result: AnalysisResult) -> None:
            results[result.name] = result
            if result.name in pending:
                pending.remove(result.name)
            if on_progress is not None:
                on_progress(len(results), total, result.name, list(pending))

        # first pass: discovery
        async def _discover(ref: TableRef) -> DiscoveredTable | None:
            async with semaphore:
                try:
                    return await asyncio.to_thread(analyzer.discover, connection_id, ref)
                except Exception as e:
                    logger.error(
                        f"Discovery of table '{ref.name}' failed: {e}", exc_info=True
                    )
                    _finish(
                        AnalysisResult(name=ref.name, success=False, error=_error_message(e))
                    )
                    return None

        discovered = [
            d for d in await asyncio.gather(*[_discover(ref) for ref in refs]) if d
        ]
        all_tables = [d.metadata for d in discovered]

        # second pass: enrichment and save
        def _enrich_and_save(item: DiscoveredTable) -> TableMetadata:
            metadata = analyzer.enrich(item, all_tables)
            self.store.save_table(metadata)
            return metadata

        async def _enrich(item: DiscoveredTable) -> None:
            name = item.metadata.name
            async with semaphore:
                try:
                    metadata = await asyncio.to_thread(_enrich_and_save, item)
                except Exception as e:
                    logger.error(f"Enrichment of table '{name}' failed: {e}", exc_info=True)
                    _finish(AnalysisResult(name=name, success=False, error=_error_message(e)))
                    return
            _finish(
                AnalysisResult(
                    name=name,
                    success=True,
                    icon=metadata.details.icon,
                    column_count=len(metadata.details.columns),
                )
            )

        await asyncio.gather(*[_enrich(item) for item in discovered])
        if on_progress is not None:
            on_progress(len(results), total, "", [])
        return [results[ref.name] for ref in refs if ref.name in results]
