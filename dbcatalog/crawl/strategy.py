"""Per-category choice between data dictionary queries and native metadata calls."""

import logging
from enum import Enum
from typing import Dict, List, Optional

from ..config import RetrievalStrategy, Settings

logger = logging.getLogger(__name__)


class MetadataCategory(str, Enum):
    """Optional metadata categories, retrieved after the primary table pass."""

    FOREIGN_KEYS = "foreign_keys"
    CHECK_CONSTRAINTS = "check_constraints"
    TRIGGERS = "triggers"
    VIEWS = "views"
    TABLE_PRIVILEGES = "table_privileges"
    COLUMN_PRIVILEGES = "column_privileges"


# Query names, as used as keys of dialect query mappings
FOREIGN_KEYS_QUERY = "foreign_keys"
TABLE_CONSTRAINTS_QUERY = "table_constraints"
CHECK_CONSTRAINTS_QUERY = "check_constraints"
TRIGGERS_QUERY = "triggers"
VIEWS_QUERY = "views"
TABLE_PRIVILEGES_QUERY = "table_privileges"
COLUMN_PRIVILEGES_QUERY = "column_privileges"

# The query a category needs before the data dictionary path can run
REQUIRED_QUERY: Dict[MetadataCategory, str] = {
    MetadataCategory.FOREIGN_KEYS: FOREIGN_KEYS_QUERY,
    MetadataCategory.CHECK_CONSTRAINTS: TABLE_CONSTRAINTS_QUERY,
    MetadataCategory.TRIGGERS: TRIGGERS_QUERY,
    MetadataCategory.VIEWS: VIEWS_QUERY,
    MetadataCategory.TABLE_PRIVILEGES: TABLE_PRIVILEGES_QUERY,
    MetadataCategory.COLUMN_PRIVILEGES: COLUMN_PRIVILEGES_QUERY,
}


class DialectQueries:
    """Data dictionary SQL keyed by query name.

    An absent or blank entry means the query is not configured.
    """

    def __init__(self, queries: Optional[Dict[str, str]] = None):
        self._queries: Dict[str, str] = {}
        for name, sql in (queries or {}).items():
            if sql and sql.strip():
                self._queries[name.lower()] = sql

    @classmethod
    def for_introspector(cls, introspector, overrides: Optional[Dict[str, str]] = None) -> "DialectQueries":
        """The introspector's dialect queries with configured overrides applied.

        An override with blank SQL removes the dialect's query.
        """
        queries = dict(introspector.DIALECT_QUERIES)
        for name, sql in (overrides or {}).items():
            queries[name.lower()] = sql
        return cls(queries)

    def has_query(self, name: str) -> bool:
        return name.lower() in self._queries

    def get_query(self, name: str) -> Optional[str]:
        return self._queries.get(name.lower())

    @property
    def names(self) -> List[str]:
        return sorted(self._queries)


class StrategySelector:
    """Decides once per category how it is retrieved.

    The configured strategy is preferred; when it is not available the
    other one is used, and when neither is available the category is
    skipped. A category configured as ``none`` is always skipped.
    """

    def __init__(self, settings: Settings, queries: DialectQueries, introspector):
        self.settings = settings
        self.queries = queries
        self.introspector = introspector
        self._decisions: Dict[MetadataCategory, RetrievalStrategy] = {}

    def _available(self, category: MetadataCategory, strategy: RetrievalStrategy) -> bool:
        if strategy == RetrievalStrategy.DATA_DICTIONARY:
            return self.queries.has_query(REQUIRED_QUERY[category])
        if strategy == RetrievalStrategy.METADATA:
            return self.introspector.supports_native(category.value)
        return False

    def _decide(self, category: MetadataCategory) -> RetrievalStrategy:
        configured = self.settings.strategy_for(category.value)
        if configured == RetrievalStrategy.NONE:
            return RetrievalStrategy.NONE

        if configured == RetrievalStrategy.DATA_DICTIONARY:
            fallback = RetrievalStrategy.METADATA
        else:
            fallback = RetrievalStrategy.DATA_DICTIONARY

        for strategy in (configured, fallback):
            if self._available(category, strategy):
                return strategy
        return RetrievalStrategy.NONE

    def select(self, category: MetadataCategory) -> RetrievalStrategy:
        category = MetadataCategory(category)
        if category not in self._decisions:
            strategy = self._decide(category)
            self._decisions[category] = strategy
            logger.info("Retrieving %s using %s", category.value, strategy.value)
        return self._decisions[category]

    def decide_all(self) -> Dict[MetadataCategory, RetrievalStrategy]:
        """Decide every category up front, before any query runs."""
        return {category: self.select(category) for category in MetadataCategory}
