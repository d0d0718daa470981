"""Shared pytest fixtures for dbcatalog tests."""

import pytest

from dbcatalog.config import Settings
from dbcatalog.crawl import (
    CrawlContext,
    CrawlDiagnostics,
    DialectQueries,
    InclusionRules,
    StrategySelector,
    TableRetriever,
)
from dbcatalog.database import Catalog, NameNormalizer
from dbcatalog.logging import CrawlRunLogger, run_service

from .crawl.fixtures import create_shop_introspector


@pytest.fixture
def crawl_settings():
    """Default crawl settings, independent of the environment."""
    return Settings(_env_file=None, run_logging_enabled=False)


@pytest.fixture
def catalog():
    """An empty catalog with case-preserving names."""
    return Catalog()


@pytest.fixture
def shop():
    """Mock introspector for the order-entry schema."""
    return create_shop_introspector()


@pytest.fixture
def make_context(crawl_settings):
    """Build a crawl context for an introspector, with the table pass already run."""

    def _make(introspector, settings=None, inclusion=None, run_tables=True):
        settings = settings or crawl_settings
        queries = DialectQueries.for_introspector(introspector, settings.dialect_queries)
        context = CrawlContext(
            introspector=introspector,
            catalog=Catalog(normalizer=NameNormalizer(settings.identifier_case or introspector.IDENTIFIER_CASE)),
            settings=settings,
            queries=queries,
            selector=StrategySelector(settings, queries, introspector),
            diagnostics=CrawlDiagnostics(),
            inclusion=inclusion or InclusionRules.include_all(),
        )
        if run_tables:
            TableRetriever(context).retrieve()
        return context

    return _make


@pytest.fixture
def run_logger(tmp_path, monkeypatch):
    """Crawl run logger writing to a temporary database, installed globally."""
    logger = CrawlRunLogger(db_path=str(tmp_path / "crawl_runs.db"))
    monkeypatch.setattr(run_service, "_run_logger", logger)
    yield logger
    if logger.db is not None:
        logger.db.close()
