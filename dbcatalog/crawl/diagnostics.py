"""Diagnostics accumulated during a crawl.

Retrievers absorb recoverable failures locally; each one leaves a record
here so callers can tell which categories are degraded without inspecting
the catalog.
"""

import logging
import time
from collections import Counter
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..errors import CrawlError

logger = logging.getLogger(__name__)


@dataclass
class DiagnosticRecord:
    """One absorbed condition."""

    category: str
    code: str
    message: str
    level: int = logging.WARNING
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "level": logging.getLevelName(self.level),
            "details": self.details,
        }


@dataclass
class CrawlDiagnostics:
    """Accumulator threaded through the crawl pipeline."""

    records: List[DiagnosticRecord] = field(default_factory=list)
    timings: Dict[str, float] = field(default_factory=dict)
    strategies: Dict[str, str] = field(default_factory=dict)

    def record(self, category: str, error: CrawlError, level: int = logging.WARNING) -> DiagnosticRecord:
        entry = DiagnosticRecord(
            category=category,
            code=error.code,
            message=error.message,
            level=level,
            details=dict(error.details),
        )
        self.records.append(entry)
        return entry

    def unavailable(self, category: str, error: CrawlError) -> None:
        self.record(category, error, level=logging.INFO)

    def category_failed(self, category: str, error: CrawlError) -> None:
        self.record(category, error, level=logging.WARNING)

    def row_skipped(self, category: str, error: CrawlError) -> None:
        self.record(category, error, level=logging.DEBUG)

    def warning(self, category: str, error: CrawlError) -> None:
        self.record(category, error, level=logging.WARNING)

    @contextmanager
    def time(self, task: str):
        """Stop watch for one pipeline task."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.timings[task] = self.timings.get(task, 0.0) + elapsed
            logger.debug("%s took %.3fs", task, elapsed)

    def for_category(self, category: str) -> List[DiagnosticRecord]:
        return [r for r in self.records if r.category == category]

    @property
    def degraded_categories(self) -> List[str]:
        """Categories that lost data to a failure, in first-failure order."""
        seen: Dict[str, None] = {}
        for r in self.records:
            if r.level >= logging.WARNING:
                seen.setdefault(r.category, None)
        return list(seen)

    @property
    def skipped_rows(self) -> Dict[str, int]:
        counts = Counter(r.category for r in self.records if r.level == logging.DEBUG)
        return dict(counts)

    def is_degraded(self, category: Optional[str] = None) -> bool:
        if category is None:
            return bool(self.degraded_categories)
        return category in self.degraded_categories

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strategies": dict(self.strategies),
            "degraded_categories": self.degraded_categories,
            "skipped_rows": self.skipped_rows,
            "timings": {k: round(v, 4) for k, v in self.timings.items()},
            "records": [r.to_dict() for r in self.records],
        }
