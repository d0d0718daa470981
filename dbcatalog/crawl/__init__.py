"""Metadata retrieval: strategy selection, category retrievers and the crawl pipeline."""

from .strategy import DialectQueries, MetadataCategory, StrategySelector
from .rows import MetadataRow
from .diagnostics import CrawlDiagnostics, DiagnosticRecord
from .inclusion import InclusionRule, InclusionRules
from .retriever import CrawlContext, MetadataRetriever
from .tables import TableRetriever
from .foreign_keys import ForeignKeyRetriever, construct_foreign_key_name
from .constraints import CheckConstraintRetriever
from .triggers import TriggerRetriever
from .views import ViewRetriever
from .privileges import ColumnPrivilegeRetriever, TablePrivilegeRetriever
from .crawler import CatalogCrawler, CrawlResult, crawl_catalog

__all__ = [
    "DialectQueries",
    "MetadataCategory",
    "StrategySelector",
    "MetadataRow",
    "CrawlDiagnostics",
    "DiagnosticRecord",
    "InclusionRule",
    "InclusionRules",
    "CrawlContext",
    "MetadataRetriever",
    "TableRetriever",
    "ForeignKeyRetriever",
    "construct_foreign_key_name",
    "CheckConstraintRetriever",
    "TriggerRetriever",
    "ViewRetriever",
    "ColumnPrivilegeRetriever",
    "TablePrivilegeRetriever",
    "CatalogCrawler",
    "CrawlResult",
    "crawl_catalog",
]
