"""dbcatalog - Crawl relational database metadata into a navigable catalog."""

__version__ = "0.1.0"

from .crawl import CatalogCrawler, CrawlResult, crawl_catalog
from .database import Catalog, DatabaseIntrospector

__all__ = [
    "__version__",
    "Catalog",
    "CatalogCrawler",
    "CrawlResult",
    "DatabaseIntrospector",
    "crawl_catalog",
]
