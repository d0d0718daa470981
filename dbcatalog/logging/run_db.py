"""Database operations for crawl run logging."""

import sqlite3
import logging
import json
from pathlib import Path
from typing import Optional, List, Dict, Any
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)


# SQL schema for crawl run logging
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS crawl_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    run_id TEXT UNIQUE NOT NULL,
    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
    command TEXT NOT NULL,
    database_type TEXT,
    database_path TEXT,
    schema_filter TEXT,
    arguments TEXT,  -- JSON of all arguments
    status TEXT DEFAULT 'started',  -- 'started', 'success', 'error'
    duration_ms INTEGER,

    -- Crawl results
    schemas_count INTEGER,
    tables_count INTEGER,
    columns_count INTEGER,
    foreign_keys_count INTEGER,
    weak_associations_count INTEGER,
    degraded_categories TEXT,  -- JSON array of category names
    skipped_rows INTEGER,

    -- Error information
    error_message TEXT,
    error_type TEXT,
    error_traceback TEXT,

    -- Environment info
    python_version TEXT,
    package_version TEXT,
    working_directory TEXT
);

CREATE INDEX IF NOT EXISTS idx_crawl_runs_timestamp ON crawl_runs(timestamp);
CREATE INDEX IF NOT EXISTS idx_crawl_runs_status ON crawl_runs(status);
CREATE INDEX IF NOT EXISTS idx_crawl_runs_database_type ON crawl_runs(database_type);
"""


def get_default_run_db_path() -> str:
    """Get the default database path (~/.dbcatalog/crawl_runs.db)."""
    home = Path.home()
    dbcatalog_dir = home / ".dbcatalog"
    dbcatalog_dir.mkdir(exist_ok=True)
    return str(dbcatalog_dir / "crawl_runs.db")


def _utc_cutoff(delta: timedelta) -> str:
    # Same text format as SQLite's CURRENT_TIMESTAMP, so comparisons sort correctly
    return (datetime.now(timezone.utc) - delta).strftime("%Y-%m-%d %H:%M:%S")


class CrawlRunDatabase:
    """SQLite database for crawl run logging."""

    def __init__(self, db_path: Optional[str] = None):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. If None, uses default.
        """
        self.db_path = db_path or get_default_run_db_path()
        self._connection: Optional[sqlite3.Connection] = None
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._connection is None:
            self._connection = sqlite3.connect(
                self.db_path,
                check_same_thread=False,
                isolation_level=None,  # Auto-commit mode
            )
            self._connection.row_factory = sqlite3.Row
        return self._connection

    def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        try:
            conn = self._get_connection()
            conn.executescript(SCHEMA_SQL)
            self._initialized = True
            logger.debug("Crawl run database initialized at %s", self.db_path)
        except Exception as e:
            logger.error("Failed to initialize crawl run database: %s", e)
            raise

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            self._initialized = False

    def insert_run(
        self,
        run_id: str,
        command: str,
        database_type: Optional[str] = None,
        database_path: Optional[str] = None,
        schema_filter: Optional[str] = None,
        arguments: Optional[Dict[str, Any]] = None,
        python_version: Optional[str] = None,
        package_version: Optional[str] = None,
        working_directory: Optional[str] = None,
    ) -> int:
        """Insert a new crawl run entry.

        Args:
            run_id: Unique identifier for this run
            command: CLI command (e.g., 'crawl')
            database_type: Type of database ('duckdb', 'snowflake')
            database_path: Path or identifier of database
            schema_filter: Schema filter if specified
            arguments: Dictionary of all command arguments
            python_version: Python version
            package_version: dbcatalog version
            working_directory: Current working directory

        Returns:
            The row ID of the inserted entry
        """
        self.initialize()
        conn = self._get_connection()

        arguments_json = json.dumps(arguments, default=str) if arguments else None

        cursor = conn.execute(
            """
            INSERT INTO crawl_runs (
                run_id, command, database_type, database_path,
                schema_filter, arguments, status,
                python_version, package_version, working_directory
            )
            VALUES (?, ?, ?, ?, ?, ?, 'started', ?, ?, ?)
            """,
            (
                run_id, command, database_type, database_path,
                schema_filter, arguments_json,
                python_version, package_version, working_directory,
            ),
        )
        return cursor.lastrowid

    def update_crawl_results(
        self,
        run_id: str,
        schemas_count: int,
        tables_count: int,
        columns_count: int,
        foreign_keys_count: int,
        weak_associations_count: int,
        degraded_categories: Optional[List[str]] = None,
        skipped_rows: int = 0,
    ) -> None:
        """Update run with the shape of the crawled catalog."""
        conn = self._get_connection()
        conn.execute(
            """
            UPDATE crawl_runs
            SET schemas_count = ?, tables_count = ?, columns_count = ?,
                foreign_keys_count = ?, weak_associations_count = ?,
                degraded_categories = ?, skipped_rows = ?
            WHERE run_id = ?
            """,
            (
                schemas_count, tables_count, columns_count,
                foreign_keys_count, weak_associations_count,
                json.dumps(degraded_categories or []), skipped_rows,
                run_id,
            ),
        )

    def update_success(
        self,
        run_id: str,
        duration_ms: int,
    ) -> None:
        """Mark run as successful.

        Args:
            run_id: Run identifier
            duration_ms: Total duration in milliseconds
        """
        conn = self._get_connection()
        conn.execute(
            """
            UPDATE crawl_runs
            SET status = 'success', duration_ms = ?
            WHERE run_id = ?
            """,
            (duration_ms, run_id),
        )

    def update_error(
        self,
        run_id: str,
        error_message: str,
        error_type: Optional[str] = None,
        error_traceback: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        """Mark run as failed with error details.

        Args:
            run_id: Run identifier
            error_message: Error message
            error_type: Exception type
            error_traceback: Full traceback
            duration_ms: Duration until error
        """
        conn = self._get_connection()
        conn.execute(
            """
            UPDATE crawl_runs
            SET status = 'error', error_message = ?, error_type = ?,
                error_traceback = ?, duration_ms = ?
            WHERE run_id = ?
            """,
            (error_message, error_type, error_traceback, duration_ms, run_id),
        )

    def query_runs(
        self,
        status: Optional[str] = None,
        database_type: Optional[str] = None,
        since_hours: int = 24,
        limit: int = 100,
        offset: int = 0,
    ) -> List[Dict[str, Any]]:
        """Query run entries with optional filters.

        Args:
            status: Filter by status
            database_type: Filter by database type
            since_hours: Look back N hours (default 24)
            limit: Maximum number of results
            offset: Offset for pagination

        Returns:
            List of run entries as dictionaries, newest first
        """
        self.initialize()
        conn = self._get_connection()

        conditions = ["timestamp >= ?"]
        params: List[Any] = [_utc_cutoff(timedelta(hours=since_hours))]

        if status:
            conditions.append("status = ?")
            params.append(status)

        if database_type:
            conditions.append("database_type = ?")
            params.append(database_type)

        where_clause = " AND ".join(conditions)
        params.extend([limit, offset])

        query = f"""
            SELECT * FROM crawl_runs
            WHERE {where_clause}
            ORDER BY timestamp DESC, id DESC
            LIMIT ? OFFSET ?
        """

        cursor = conn.execute(query, params)
        return [self._decode(row) for row in cursor.fetchall()]

    @staticmethod
    def _decode(row: sqlite3.Row) -> Dict[str, Any]:
        entry = dict(row)
        for name in ("arguments", "degraded_categories"):
            if entry.get(name):
                entry[name] = json.loads(entry[name])
        return entry

    def get_run_by_id(self, run_id: str) -> Optional[Dict[str, Any]]:
        """Get a specific run by ID."""
        self.initialize()
        conn = self._get_connection()

        cursor = conn.execute(
            "SELECT * FROM crawl_runs WHERE run_id = ?",
            (run_id,),
        )
        row = cursor.fetchone()

        return self._decode(row) if row else None

    def get_stats(self, since_hours: int = 24) -> Dict[str, Any]:
        """Get statistics about crawl runs.

        Args:
            since_hours: Look back N hours

        Returns:
            Dict with statistics
        """
        self.initialize()
        conn = self._get_connection()

        since_time = _utc_cutoff(timedelta(hours=since_hours))

        cursor = conn.execute(
            """
            SELECT
                COUNT(*) as total,
                SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) as success_count,
                SUM(CASE WHEN status = 'error' THEN 1 ELSE 0 END) as error_count,
                AVG(duration_ms) as avg_duration_ms,
                SUM(tables_count) as total_tables,
                SUM(foreign_keys_count) as total_foreign_keys,
                SUM(weak_associations_count) as total_weak_associations
            FROM crawl_runs
            WHERE timestamp >= ?
            """,
            (since_time,),
        )
        row = cursor.fetchone()

        cursor = conn.execute(
            """
            SELECT database_type, COUNT(*) as count,
                   SUM(CASE WHEN status = 'success' THEN 1 ELSE 0 END) as success,
                   SUM(CASE WHEN status = 'error' THEN 1 ELSE 0 END) as errors
            FROM crawl_runs
            WHERE timestamp >= ? AND database_type IS NOT NULL
            GROUP BY database_type
            ORDER BY count DESC
            """,
            (since_time,),
        )
        db_stats = [dict(r) for r in cursor.fetchall()]

        cursor = conn.execute(
            """
            SELECT run_id, timestamp, command, error_message, error_type
            FROM crawl_runs
            WHERE timestamp >= ? AND status = 'error'
            ORDER BY timestamp DESC
            LIMIT 5
            """,
            (since_time,),
        )
        recent_errors = [dict(r) for r in cursor.fetchall()]

        return {
            "total_runs": row["total"] or 0,
            "success_count": row["success_count"] or 0,
            "error_count": row["error_count"] or 0,
            "avg_duration_ms": round(row["avg_duration_ms"] or 0, 2),
            "total_tables_crawled": row["total_tables"] or 0,
            "total_foreign_keys_found": row["total_foreign_keys"] or 0,
            "total_weak_associations_found": row["total_weak_associations"] or 0,
            "since_hours": since_hours,
            "by_database_type": db_stats,
            "recent_errors": recent_errors,
        }

    def cleanup_old_runs(self, retention_days: int = 30) -> int:
        """Delete runs older than retention period.

        Args:
            retention_days: Number of days to retain runs

        Returns:
            Number of deleted rows
        """
        self.initialize()
        conn = self._get_connection()

        cursor = conn.execute(
            """
            DELETE FROM crawl_runs
            WHERE timestamp < ?
            """,
            (_utc_cutoff(timedelta(days=retention_days)),),
        )

        deleted = cursor.rowcount
        if deleted > 0:
            logger.info("Cleaned up %d old crawl run entries", deleted)

        return deleted

    def __enter__(self):
        """Context manager entry."""
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
