"""Shared protocol of the metadata category retrievers."""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from ..config import RetrievalStrategy, Settings
from ..database.base import DatabaseIntrospector
from ..database.catalog import Catalog
from ..database.models import Table
from ..errors import (
    CategoryQueryFailed,
    CategoryUnavailable,
    QueryExecutionError,
    RowResolutionSkipped,
    UnsupportedMetadataCall,
)
from .diagnostics import CrawlDiagnostics
from .inclusion import InclusionRules
from .rows import MetadataRow
from .strategy import DialectQueries, MetadataCategory, StrategySelector

logger = logging.getLogger(__name__)


@dataclass
class CrawlContext:
    """Everything a retriever reads from or writes into during one crawl."""

    introspector: DatabaseIntrospector
    catalog: Catalog
    settings: Settings
    queries: DialectQueries
    selector: StrategySelector
    diagnostics: CrawlDiagnostics
    inclusion: InclusionRules


class MetadataRetriever:
    """Retrieves one optional metadata category into the catalog.

    Subclasses implement ``retrieve_from_data_dictionary`` (one bulk query
    per pass) and ``retrieve_from_metadata`` (native calls per table).
    A failing query abandons the category; a failing native call for one
    table, or a row that cannot be resolved, is skipped. Connection
    failures are never caught here.
    """

    category: MetadataCategory

    def __init__(self, context: CrawlContext):
        self.context = context
        self.introspector = context.introspector
        self.catalog = context.catalog
        self.queries = context.queries
        self.diagnostics = context.diagnostics

    @property
    def category_name(self) -> str:
        return self.category.value

    def retrieve(self) -> None:
        strategy = self.context.selector.select(self.category)
        self.diagnostics.strategies[self.category_name] = strategy.value

        if strategy == RetrievalStrategy.NONE:
            logger.info("Not retrieving %s, since no query or metadata call is available", self.category_name)
            self.diagnostics.unavailable(self.category_name, CategoryUnavailable(self.category_name))
            return

        with self.diagnostics.time(self.category_name):
            try:
                if strategy == RetrievalStrategy.DATA_DICTIONARY:
                    self.retrieve_from_data_dictionary()
                else:
                    self.retrieve_from_metadata()
            except CategoryQueryFailed as e:
                logger.warning("Could not retrieve %s: %s", self.category_name, e.message)
                self.diagnostics.category_failed(self.category_name, e)

    def retrieve_from_data_dictionary(self) -> None:
        raise NotImplementedError

    def retrieve_from_metadata(self) -> None:
        raise NotImplementedError

    def execute_query(self, query_name: str) -> List[MetadataRow]:
        """Run a data dictionary query.

        Raises:
            CategoryQueryFailed: If the query is not configured or fails.
        """
        sql = self.queries.get_query(query_name)
        if sql is None:
            raise CategoryQueryFailed(
                self.category_name,
                f"No {query_name} query is configured",
                details={"query_name": query_name},
            )
        logger.debug("Executing %s query", query_name)
        try:
            rows = self.introspector.execute_query(sql)
        except QueryExecutionError as e:
            raise CategoryQueryFailed(
                self.category_name,
                f"{query_name} query failed: {e.message}",
                details={"query_name": query_name},
            ) from e
        return [MetadataRow(self.category_name, row) for row in rows]

    def call_native(self, call: Callable, table: Table) -> Optional[List[MetadataRow]]:
        """Issue a native metadata call for one table; None if it failed."""
        try:
            rows = call(table.schema.catalog_name, table.schema.name, table.name)
        except (QueryExecutionError, UnsupportedMetadataCall) as e:
            logger.warning(
                "Could not retrieve %s for %s: %s", self.category_name, table.full_name, e.message
            )
            self.diagnostics.warning(self.category_name, e)
            return None
        return [MetadataRow(self.category_name, row) for row in rows or []]

    def process_rows(self, rows: Iterable[MetadataRow], handler: Callable[[MetadataRow], None]) -> int:
        """Apply handler to every row, skipping rows that cannot be resolved.

        Returns the number of rows handled.
        """
        handled = 0
        for row in rows:
            try:
                handler(row)
            except RowResolutionSkipped as e:
                logger.debug("Skipping %s row: %s", self.category_name, e.message)
                self.diagnostics.row_skipped(self.category_name, e)
                continue
            handled += 1
        return handled

    def tables(self, include_views: bool = True) -> List[Table]:
        """Fully retrieved tables in crawl order."""
        return [t for t in self.catalog.tables if include_views or not t.is_view]

    def lookup_table(self, row: MetadataRow, catalog_name, schema_name, table_name) -> Table:
        """Resolve a row's table; rows for tables outside the crawl are skipped."""
        table = None
        if table_name:
            table = self.catalog.lookup_table(catalog_name, schema_name, table_name)
        if table is None:
            raise RowResolutionSkipped(
                self.category_name,
                f"Table {table_name!r} is not in the catalog",
                details=self._names(catalog_name, schema_name, table_name),
            )
        return table

    @staticmethod
    def _names(catalog_name, schema_name, table_name) -> Dict[str, Optional[str]]:
        return {"catalog": catalog_name, "schema": schema_name, "table": table_name}
