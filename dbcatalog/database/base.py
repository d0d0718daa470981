"""Abstract base class for database introspection."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from ..config import IdentifierCase
from ..errors import ConnectionFailure, QueryExecutionError, UnsupportedMetadataCall
from .models import CrawlInfo
from .type_mappers import GenericTypeMapper, TypeMapper

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class DatabaseIntrospector(ABC):
    """Abstract base class for database introspection.

    An introspector owns one connection. It executes data dictionary
    queries and answers the native, per-object metadata calls. Rows are
    dicts keyed by lower-cased column names; native calls return rows in
    the shape of the matching data dictionary query.

    Subclasses must implement the abstract methods to provide
    database-specific introspection logic.
    """

    # Override in subclasses to exclude system schemas
    EXCLUDED_SCHEMAS: set = {'INFORMATION_SCHEMA'}

    IDENTIFIER_CASE: IdentifierCase = IdentifierCase.PRESERVE

    # Data dictionary queries keyed by query name
    DIALECT_QUERIES: Dict[str, str] = {}

    # Retrieval categories answered by native per-table calls
    NATIVE_CATEGORIES: FrozenSet[str] = frozenset()

    # Driver exceptions meaning the connection itself is gone
    CONNECTION_ERRORS: Tuple[type, ...] = ()

    PRODUCT_NAME: str = ""

    type_mapper: TypeMapper = GenericTypeMapper()

    @abstractmethod
    def connect(self):
        """Establish connection to the database."""
        pass

    @abstractmethod
    def close(self):
        """Close the database connection."""
        pass

    @abstractmethod
    def _cursor(self):
        """Open a DB-API cursor on the current connection."""
        pass

    def execute_query(self, sql: str, params: Optional[Tuple[Any, ...]] = None) -> List[Row]:
        """Execute a statement and return all rows.

        The cursor is closed before this method returns, on every path.

        Raises:
            ConnectionFailure: If the connection is unusable.
            QueryExecutionError: If the statement fails.
        """
        try:
            self.connect()
            cursor = self._cursor()
        except ConnectionFailure:
            raise
        except Exception as e:
            raise ConnectionFailure(f"Could not open a cursor: {e}") from e

        try:
            if params:
                cursor.execute(sql, params)
            else:
                cursor.execute(sql)
            if cursor.description is None:
                return []
            columns = [str(desc[0]).lower() for desc in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        except Exception as e:
            if self.CONNECTION_ERRORS and isinstance(e, self.CONNECTION_ERRORS):
                raise ConnectionFailure(f"Connection lost: {e}") from e
            raise QueryExecutionError(f"Query execution failed: {e}", query=sql) from e
        finally:
            cursor.close()

    def get_crawl_info(self) -> CrawlInfo:
        """Describe the database product. Subclasses add version details."""
        return CrawlInfo(product_name=self.PRODUCT_NAME, driver_name=type(self).__name__)

    def supports_native(self, category: str) -> bool:
        return category in self.NATIVE_CATEGORIES

    # Primary pass

    @abstractmethod
    def get_schemas(self) -> List[Row]:
        """Get all user schemas.

        Returns:
            Rows with catalog_name and schema_name (excluding system schemas)
        """
        pass

    @abstractmethod
    def get_tables(self, catalog: Optional[str], schema: Optional[str]) -> List[Row]:
        """Get all tables and views in a schema.

        Returns:
            Rows with table_name, table_type ('TABLE' or 'VIEW') and remarks
        """
        pass

    @abstractmethod
    def get_columns(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        """Get all columns for a table.

        Returns:
            Rows with column_name, ordinal_position, data_type, is_nullable,
            column_default and remarks
        """
        pass

    @abstractmethod
    def get_primary_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[str]:
        """Get primary key column names for a table, in key order."""
        pass

    def get_unique_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[List[str]]:
        """Get the column lists of unique constraints on a table."""
        return []

    # Native metadata calls, one round trip per table

    def _unsupported(self, call_name: str):
        raise UnsupportedMetadataCall(call_name, type(self).__name__)

    def get_imported_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        """Foreign keys declared on this table, in the foreign_keys row shape."""
        self._unsupported("get_imported_keys")

    def get_exported_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        """Foreign keys on other tables that reference this table."""
        self._unsupported("get_exported_keys")

    def get_check_constraints(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        """Check constraints with their check_clause, one or more rows each."""
        self._unsupported("get_check_constraints")

    def get_triggers(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        self._unsupported("get_triggers")

    def get_view_definition(self, catalog: Optional[str], schema: Optional[str], view: str) -> List[Row]:
        self._unsupported("get_view_definition")

    def get_table_privileges(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        self._unsupported("get_table_privileges")

    def get_column_privileges(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        self._unsupported("get_column_privileges")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
