"""Crawl run logging service for dbcatalog.

Provides a high-level interface for logging crawl runs,
including automatic context capture and error handling.
"""

import logging
import os
import sys
import time
import traceback
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dbcatalog.logging.run_db import CrawlRunDatabase

logger = logging.getLogger(__name__)

# Global logger instance
_run_logger: Optional["CrawlRunLogger"] = None


def get_run_logger() -> "CrawlRunLogger":
    """Get or create the global crawl run logger, configured from settings."""
    global _run_logger
    if _run_logger is None:
        from dbcatalog.config import settings

        _run_logger = CrawlRunLogger(
            db_path=settings.run_logging_db_path,
            enabled=settings.run_logging_enabled,
            retention_days=settings.run_logging_retention_days,
        )
    return _run_logger


@dataclass
class RunContext:
    """Context for a crawl run."""

    run_id: str
    command: str
    database_type: Optional[str] = None
    database_path: Optional[str] = None
    schema_filter: Optional[str] = None
    arguments: Dict[str, Any] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)

    # Results that get populated during the run
    schemas_count: int = 0
    tables_count: int = 0
    columns_count: int = 0
    foreign_keys_count: int = 0
    weak_associations_count: int = 0
    degraded_categories: List[str] = field(default_factory=list)
    skipped_rows: int = 0

    def record_result(self, result) -> None:
        """Copy counts from a CrawlResult."""
        catalog = result.catalog
        self.schemas_count = len(catalog.schemas)
        self.tables_count = len(catalog.tables)
        self.columns_count = catalog.column_count()
        self.foreign_keys_count = len(catalog.foreign_keys)
        self.weak_associations_count = len(catalog.weak_associations)
        self.degraded_categories = list(result.diagnostics.degraded_categories)
        self.skipped_rows = sum(result.diagnostics.skipped_rows.values())


class CrawlRunLogger:
    """High-level logger for crawl runs.

    Example usage:
        run_logger = get_run_logger()

        with run_logger.log_run(
            command="crawl",
            database_type="duckdb",
            database_path="/path/to/db.duckdb",
        ) as ctx:
            result = crawl_catalog(introspector)
            ctx.record_result(result)

            # If error occurs, it's automatically logged
    """

    def __init__(self, db_path: Optional[str] = None, enabled: bool = True, retention_days: int = 30):
        """Initialize the crawl run logger.

        Args:
            db_path: Path to the SQLite database. If None, uses default.
            enabled: Whether logging is enabled.
            retention_days: Runs older than this are deleted on startup.
        """
        self.enabled = enabled
        self._db: Optional[CrawlRunDatabase] = None
        self._db_path = db_path

        if self.enabled:
            try:
                self._db = CrawlRunDatabase(db_path)
                self._db.initialize()
                # Clean up old logs on initialization
                self._db.cleanup_old_runs(retention_days)
            except Exception as e:
                logger.warning("Failed to initialize crawl run logging: %s", e)
                self.enabled = False

    @property
    def db(self) -> Optional[CrawlRunDatabase]:
        """Get the database instance."""
        return self._db

    def _get_environment_info(self) -> Dict[str, str]:
        """Get environment information for logging."""
        return {
            "python_version": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
            "package_version": self._get_package_version(),
            "working_directory": os.getcwd(),
        }

    def _get_package_version(self) -> str:
        """Get the dbcatalog package version."""
        try:
            from importlib.metadata import version
            return version("dbcatalog")
        except Exception:
            return "unknown"

    @contextmanager
    def log_run(
        self,
        command: str,
        database_type: Optional[str] = None,
        database_path: Optional[str] = None,
        schema_filter: Optional[str] = None,
        arguments: Optional[Dict[str, Any]] = None,
    ):
        """Context manager for logging a crawl run.

        Args:
            command: CLI command (e.g., 'crawl')
            database_type: Database type
            database_path: Database path
            schema_filter: Schema filter
            arguments: All command arguments

        Yields:
            RunContext that can be updated during the run
        """
        run_id = str(uuid.uuid4())[:8]
        ctx = RunContext(
            run_id=run_id,
            command=command,
            database_type=database_type,
            database_path=database_path,
            schema_filter=schema_filter,
            arguments=arguments or {},
        )

        if not self.enabled or self._db is None:
            # If logging disabled, just yield context and return
            yield ctx
            return

        try:
            env_info = self._get_environment_info()
            self._db.insert_run(
                run_id=run_id,
                command=command,
                database_type=database_type,
                database_path=database_path,
                schema_filter=schema_filter,
                arguments=arguments,
                python_version=env_info["python_version"],
                package_version=env_info["package_version"],
                working_directory=env_info["working_directory"],
            )
        except Exception as e:
            logger.warning("Failed to log run start: %s", e)

        try:
            yield ctx

            self._update_run_results(ctx)

            duration_ms = int((time.time() - ctx.start_time) * 1000)
            self._db.update_success(run_id, duration_ms)

            logger.debug(
                "Crawl run %s completed successfully in %dms",
                run_id,
                duration_ms,
            )

        except Exception as e:
            duration_ms = int((time.time() - ctx.start_time) * 1000)
            try:
                self._update_run_results(ctx)
                self._db.update_error(
                    run_id=run_id,
                    error_message=str(e),
                    error_type=type(e).__name__,
                    error_traceback=traceback.format_exc(),
                    duration_ms=duration_ms,
                )
            except Exception as log_err:
                logger.warning("Failed to log run error: %s", log_err)

            logger.debug(
                "Crawl run %s failed after %dms: %s",
                run_id,
                duration_ms,
                str(e),
            )

            # Re-raise the original exception
            raise

    def _update_run_results(self, ctx: RunContext) -> None:
        """Update the run entry with collected results."""
        if not self._db:
            return

        try:
            self._db.update_crawl_results(
                run_id=ctx.run_id,
                schemas_count=ctx.schemas_count,
                tables_count=ctx.tables_count,
                columns_count=ctx.columns_count,
                foreign_keys_count=ctx.foreign_keys_count,
                weak_associations_count=ctx.weak_associations_count,
                degraded_categories=ctx.degraded_categories,
                skipped_rows=ctx.skipped_rows,
            )
        except Exception as e:
            logger.warning("Failed to update run results: %s", e)

    def query_runs(
        self,
        status: Optional[str] = None,
        database_type: Optional[str] = None,
        since_hours: int = 24,
        limit: int = 100,
    ) -> List[Dict[str, Any]]:
        """Query crawl runs with optional filters."""
        if not self.enabled or not self._db:
            return []

        return self._db.query_runs(
            status=status,
            database_type=database_type,
            since_hours=since_hours,
            limit=limit,
        )

    def get_stats(self, since_hours: int = 24) -> Dict[str, Any]:
        """Get statistics about crawl runs."""
        if not self.enabled or not self._db:
            return {"error": "Logging not enabled"}

        return self._db.get_stats(since_hours=since_hours)

    def get_run(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get a specific run by ID."""
        if not self.enabled or not self._db:
            return None

        return self._db.get_run_by_id(run_id)


def log_crawl_run(
    command: str = "crawl",
    database_type: Optional[str] = None,
    database_path: Optional[str] = None,
    schema_filter: Optional[str] = None,
    arguments: Optional[Dict[str, Any]] = None,
):
    """Convenience function to get a logging context manager.

    Example:
        with log_crawl_run("crawl", "duckdb", "/path/to/db") as ctx:
            ctx.record_result(crawl_catalog(introspector))
    """
    return get_run_logger().log_run(
        command=command,
        database_type=database_type,
        database_path=database_path,
        schema_filter=schema_filter,
        arguments=arguments,
    )
