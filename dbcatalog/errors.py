"""Error types for catalog crawling."""

from typing import Optional, Dict, Any


class CrawlError(Exception):
    """Base exception for crawl errors."""

    def __init__(self, message: str, code: str = "CRAWL_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for diagnostics output."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConnectionFailure(CrawlError):
    """The connection to the database is unusable. Aborts the crawl."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CONNECTION_FAILURE", details=details)


class QueryExecutionError(CrawlError):
    """A statement failed at the driver."""

    def __init__(self, message: str, query: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="QUERY_EXECUTION_ERROR", details=details)
        self.query = query


class UnsupportedMetadataCall(CrawlError):
    """The introspector does not implement a native metadata call."""

    def __init__(self, call_name: str, introspector: str):
        super().__init__(
            f"{introspector} does not support {call_name}",
            code="UNSUPPORTED_METADATA_CALL",
            details={"call": call_name, "introspector": introspector},
        )


class CategoryUnavailable(CrawlError):
    """No query or native call is available for a metadata category."""

    def __init__(self, category: str):
        super().__init__(
            f"No retrieval available for {category}",
            code="CATEGORY_UNAVAILABLE",
            details={"category": category},
        )
        self.category = category


class CategoryQueryFailed(CrawlError):
    """A metadata category query executed but failed."""

    def __init__(self, category: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="CATEGORY_QUERY_FAILED", details={"category": category, **(details or {})})
        self.category = category


class RowResolutionSkipped(CrawlError):
    """A result row references objects that cannot be resolved."""

    def __init__(self, category: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="ROW_RESOLUTION_SKIPPED", details={"category": category, **(details or {})})
        self.category = category


class InvariantViolation(RowResolutionSkipped):
    """A result row does not have the expected shape."""

    def __init__(self, category: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(category, message, details=details)
        self.code = "INVARIANT_VIOLATION"


class CatalogFrozenError(CrawlError):
    """The catalog was mutated after assembly completed."""

    def __init__(self, operation: str):
        super().__init__(
            f"Catalog is read-only after assembly: cannot {operation}",
            code="CATALOG_FROZEN",
            details={"operation": operation},
        )
