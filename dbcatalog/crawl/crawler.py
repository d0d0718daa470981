"""The crawl pipeline: one introspector in, one assembled catalog out."""

import logging
from dataclasses import dataclass
from typing import Optional

from ..analysis.weak_associations import NamingRules, WeakAssociationsLoader
from ..config import Settings
from ..config import settings as default_settings
from ..database.base import DatabaseIntrospector
from ..database.catalog import Catalog
from ..database.keys import NameNormalizer
from ..database.models import CrawlInfo
from ..errors import QueryExecutionError
from .constraints import CheckConstraintRetriever
from .diagnostics import CrawlDiagnostics
from .foreign_keys import ForeignKeyRetriever
from .inclusion import InclusionRules
from .privileges import ColumnPrivilegeRetriever, TablePrivilegeRetriever
from .retriever import CrawlContext
from .strategy import DialectQueries, StrategySelector
from .tables import TableRetriever
from .triggers import TriggerRetriever
from .views import ViewRetriever

logger = logging.getLogger(__name__)

WEAK_ASSOCIATIONS = "weak_associations"

# Declared relationships first, so later passes can see them
RETRIEVERS = (
    ForeignKeyRetriever,
    CheckConstraintRetriever,
    TriggerRetriever,
    ViewRetriever,
    TablePrivilegeRetriever,
    ColumnPrivilegeRetriever,
)


@dataclass
class CrawlResult:
    """The assembled, read-only catalog and what was absorbed building it."""

    catalog: Catalog
    diagnostics: CrawlDiagnostics


class CatalogCrawler:
    """Runs the retrievers in order over a single connection.

    Example usage:
        with DuckDBIntrospector(database_path="shop.duckdb") as introspector:
            result = CatalogCrawler(introspector).crawl()

        for table in result.catalog.tables:
            print(table.full_name, len(table.foreign_keys))

    Only ConnectionFailure escapes ``crawl()``; every other failure is
    recorded in the returned diagnostics.
    """

    def __init__(
        self,
        introspector: DatabaseIntrospector,
        settings: Optional[Settings] = None,
        inclusion: Optional[InclusionRules] = None,
    ):
        self.introspector = introspector
        self.settings = settings or default_settings
        self.inclusion = inclusion or InclusionRules.from_settings(self.settings)

    def _crawl_info(self) -> CrawlInfo:
        try:
            return self.introspector.get_crawl_info()
        except QueryExecutionError as e:
            logger.warning("Could not retrieve database product information: %s", e.message)
            return CrawlInfo(product_name=self.introspector.PRODUCT_NAME)

    def _context(self) -> CrawlContext:
        identifier_case = self.settings.identifier_case or self.introspector.IDENTIFIER_CASE
        catalog = Catalog(
            normalizer=NameNormalizer(identifier_case),
            crawl_info=self._crawl_info(),
        )
        queries = DialectQueries.for_introspector(self.introspector, self.settings.dialect_queries)
        return CrawlContext(
            introspector=self.introspector,
            catalog=catalog,
            settings=self.settings,
            queries=queries,
            selector=StrategySelector(self.settings, queries, self.introspector),
            diagnostics=CrawlDiagnostics(),
            inclusion=self.inclusion,
        )

    def crawl(self) -> CrawlResult:
        context = self._context()
        catalog = context.catalog
        logger.info(
            "Crawling %s %s", catalog.crawl_info.product_name or "database", catalog.crawl_info.product_version
        )

        for category, strategy in context.selector.decide_all().items():
            context.diagnostics.strategies[category.value] = strategy.value

        TableRetriever(context).retrieve()
        for retriever_class in RETRIEVERS:
            retriever_class(context).retrieve()

        if self.settings.weak_associations:
            with context.diagnostics.time(WEAK_ASSOCIATIONS):
                loader = WeakAssociationsLoader(
                    catalog,
                    naming_rules=NamingRules.from_settings(self.settings),
                    type_mapper=self.introspector.type_mapper,
                )
                associations = loader.load()
            logger.info("Added %d weak associations", len(associations))
        else:
            logger.debug("Not retrieving weak associations, since they are not enabled")

        catalog.freeze()
        degraded = context.diagnostics.degraded_categories
        if degraded:
            logger.warning("Crawl completed with degraded categories: %s", ", ".join(degraded))
        else:
            logger.info("Crawl completed: %r", catalog)
        return CrawlResult(catalog=catalog, diagnostics=context.diagnostics)


def crawl_catalog(
    introspector: DatabaseIntrospector,
    settings: Optional[Settings] = None,
    inclusion: Optional[InclusionRules] = None,
) -> CrawlResult:
    """Crawl a database into a catalog."""
    return CatalogCrawler(introspector, settings=settings, inclusion=inclusion).crawl()
