"""DuckDB database introspector."""

import logging
from pathlib import Path
from typing import Any, List, Optional

from ..config import IdentifierCase
from .base import DatabaseIntrospector, Row
from .models import CrawlInfo
from .type_mappers import DuckDBTypeMapper

logger = logging.getLogger(__name__)


# DuckDB names a CHECK after its table and first column, so several checks
# on one column share a name; repeated names get the constraint index.
_CHECK_CONSTRAINTS = """
    SELECT
        *,
        CASE
            WHEN count(*) OVER (PARTITION BY database_name, schema_name, constraint_name) > 1
            THEN constraint_name || '_' || CAST(constraint_index AS VARCHAR)
            ELSE constraint_name
        END AS unique_constraint_name
    FROM duckdb_constraints()
    WHERE constraint_type = 'CHECK'
"""

# Data dictionary queries. DuckDB keeps constraints in duckdb_constraints(),
# with multi-column keys as lists; generate_subscripts() yields one row per
# column pair with a 1-based key sequence.
DUCKDB_QUERIES = {
    "foreign_keys": """
        SELECT
            database_name AS pktable_cat,
            schema_name AS pktable_schem,
            referenced_table AS pktable_name,
            referenced_column_names[k] AS pkcolumn_name,
            database_name AS fktable_cat,
            schema_name AS fktable_schem,
            table_name AS fktable_name,
            constraint_column_names[k] AS fkcolumn_name,
            k AS key_seq,
            NULL AS update_rule,
            NULL AS delete_rule,
            NULL AS deferrability,
            constraint_name AS fk_name
        FROM (
            SELECT *, generate_subscripts(constraint_column_names, 1) AS k
            FROM duckdb_constraints()
            WHERE constraint_type = 'FOREIGN KEY'
        )
        ORDER BY fktable_schem, fktable_name, fk_name, key_seq
    """,
    "table_constraints": f"""
        SELECT
            database_name AS constraint_catalog,
            schema_name AS constraint_schema,
            unique_constraint_name AS constraint_name,
            database_name AS table_catalog,
            schema_name AS table_schema,
            table_name,
            'CHECK' AS constraint_type,
            'NO' AS is_deferrable,
            'NO' AS initially_deferred
        FROM ({_CHECK_CONSTRAINTS})
        ORDER BY schema_name, table_name, constraint_index
    """,
    "check_constraints": f"""
        SELECT
            database_name AS constraint_catalog,
            schema_name AS constraint_schema,
            unique_constraint_name AS constraint_name,
            expression AS check_clause
        FROM ({_CHECK_CONSTRAINTS})
        ORDER BY schema_name, table_name, constraint_index
    """,
    "views": """
        SELECT
            database_name AS table_catalog,
            schema_name AS table_schema,
            view_name AS table_name,
            sql AS view_definition,
            NULL AS check_option,
            'NO' AS is_updatable
        FROM duckdb_views()
        WHERE NOT internal
        ORDER BY schema_name, view_name
    """,
}


class DuckDBIntrospector(DatabaseIntrospector):
    """Client for introspecting DuckDB database schema."""

    EXCLUDED_SCHEMAS = {'information_schema', 'pg_catalog'}
    IDENTIFIER_CASE = IdentifierCase.PRESERVE
    DIALECT_QUERIES = DUCKDB_QUERIES
    PRODUCT_NAME = "DuckDB"

    type_mapper = DuckDBTypeMapper()

    def __init__(
        self,
        database_path: Optional[str] = None,
        connection_string: Optional[str] = None,
        read_only: bool = True,
        connection: Any = None,
    ):
        """Initialize DuckDB introspector.

        Args:
            database_path: Path to .duckdb file (can be :memory: for in-memory)
            connection_string: Alternative connection string format
                               (e.g., duckdb:///path/to/db.duckdb)
            read_only: Open database in read-only mode (default True for introspection)
            connection: An already open duckdb connection; it is not closed by close()
        """
        self.database_path = database_path
        self.connection_string = connection_string
        self.read_only = read_only
        self._connection = connection
        self._owns_connection = connection is None
        self._database_name = self._extract_database_name()

    def _extract_database_name(self) -> str:
        """Extract database name from path or connection string."""
        if self.database_path:
            if self.database_path == ':memory:':
                return 'memory'
            return Path(self.database_path).stem
        elif self.connection_string:
            # Format: duckdb:///path/to/file.duckdb
            if ':///' in self.connection_string:
                path_part = self.connection_string.split(':///')[-1]
                if '?' in path_part:
                    path_part = path_part.split('?')[0]
                return Path(path_part).stem
        return 'memory'

    def connect(self):
        """Connect to DuckDB database."""
        try:
            import duckdb
        except ImportError:
            raise ImportError(
                "duckdb is required. "
                "Install it with: pip install duckdb"
            )

        self.CONNECTION_ERRORS = (duckdb.ConnectionException,)
        if self._connection is not None:
            return self._connection

        if self.database_path:
            self._connection = duckdb.connect(
                self.database_path,
                read_only=self.read_only
            )
        elif self.connection_string:
            # Remove duckdb:/// prefix if present
            path = self.connection_string
            if path.startswith('duckdb:///'):
                path = path[10:]
            elif path.startswith('duckdb://'):
                path = path[9:]
            if '?' in path:
                path = path.split('?')[0]
            self._connection = duckdb.connect(path, read_only=self.read_only)
        else:
            self._connection = duckdb.connect(':memory:')

        logger.debug("Connected to DuckDB database %s", self._database_name)
        return self._connection

    def close(self):
        """Close the DuckDB connection."""
        if self._connection is not None and self._owns_connection:
            self._connection.close()
        self._connection = None

    def _cursor(self):
        return self._connection.cursor()

    def get_crawl_info(self) -> CrawlInfo:
        info = super().get_crawl_info()
        rows = self.execute_query("SELECT version() AS version")
        if rows:
            info.product_version = str(rows[0]["version"])
        info.driver_name = "duckdb"
        return info

    def get_schemas(self) -> List[Row]:
        """Get all user schemas in the current database."""
        rows = self.execute_query("""
            SELECT catalog_name, schema_name
            FROM information_schema.schemata
            WHERE catalog_name = current_database()
            ORDER BY schema_name
        """)
        return [r for r in rows if r["schema_name"].lower() not in self.EXCLUDED_SCHEMAS]

    def get_tables(self, catalog: Optional[str], schema: Optional[str]) -> List[Row]:
        """Get all tables and views in a schema."""
        rows = self.execute_query("""
            SELECT
                table_name,
                CASE WHEN table_type = 'VIEW' THEN 'VIEW' ELSE 'TABLE' END AS table_type,
                NULL AS remarks
            FROM information_schema.tables
            WHERE table_catalog = ?
              AND table_schema = ?
            ORDER BY table_name
        """, (catalog, schema))
        return rows

    def get_columns(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        """Get all columns for a table."""
        return self.execute_query("""
            SELECT
                column_name,
                ordinal_position,
                data_type,
                is_nullable,
                column_default,
                NULL AS remarks
            FROM information_schema.columns
            WHERE table_catalog = ?
              AND table_schema = ?
              AND table_name = ?
            ORDER BY ordinal_position
        """, (catalog, schema, table))

    def _constraint_columns(
        self,
        catalog: Optional[str],
        schema: Optional[str],
        table: str,
        constraint_type: str,
    ) -> List[List[str]]:
        rows = self.execute_query("""
            SELECT constraint_column_names
            FROM duckdb_constraints()
            WHERE database_name = ?
              AND schema_name = ?
              AND table_name = ?
              AND constraint_type = ?
            ORDER BY constraint_index
        """, (catalog, schema, table, constraint_type))
        result = []
        for row in rows:
            names = row["constraint_column_names"]
            result.append(list(names) if isinstance(names, (list, tuple)) else [names])
        return result

    def get_primary_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[str]:
        """Get primary key columns for a table.

        DuckDB stores constraint info in duckdb_constraints() table function.
        """
        keys = self._constraint_columns(catalog, schema, table, 'PRIMARY KEY')
        return keys[0] if keys else []

    def get_unique_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[List[str]]:
        return self._constraint_columns(catalog, schema, table, 'UNIQUE')
