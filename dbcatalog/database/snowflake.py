"""Snowflake database introspector."""

import logging
import os
from typing import List, Optional

from ..config import IdentifierCase
from ..errors import ConnectionFailure
from .base import DatabaseIntrospector, Row
from .models import CrawlInfo
from .type_mappers import SnowflakeTypeMapper

logger = logging.getLogger(__name__)


# Snowflake's INFORMATION_SCHEMA has no KEY_COLUMN_USAGE or TRIGGERS view,
# so foreign keys come from the SHOW commands instead.
SNOWFLAKE_QUERIES = {
    "views": """
        SELECT
            TABLE_CATALOG,
            TABLE_SCHEMA,
            TABLE_NAME,
            VIEW_DEFINITION,
            CHECK_OPTION,
            IS_UPDATABLE
        FROM INFORMATION_SCHEMA.VIEWS
        WHERE TABLE_SCHEMA <> 'INFORMATION_SCHEMA'
        ORDER BY TABLE_SCHEMA, TABLE_NAME
    """,
    "table_privileges": """
        SELECT
            TABLE_CATALOG,
            TABLE_SCHEMA,
            TABLE_NAME,
            GRANTOR,
            GRANTEE,
            PRIVILEGE_TYPE,
            IS_GRANTABLE
        FROM INFORMATION_SCHEMA.TABLE_PRIVILEGES
        WHERE TABLE_SCHEMA <> 'INFORMATION_SCHEMA'
        ORDER BY TABLE_SCHEMA, TABLE_NAME, PRIVILEGE_TYPE
    """,
}


class SnowflakeIntrospector(DatabaseIntrospector):
    """Client for introspecting Snowflake schema."""

    EXCLUDED_SCHEMAS = {'INFORMATION_SCHEMA'}
    IDENTIFIER_CASE = IdentifierCase.UPPER
    DIALECT_QUERIES = SNOWFLAKE_QUERIES
    NATIVE_CATEGORIES = frozenset({"foreign_keys"})
    PRODUCT_NAME = "Snowflake"

    type_mapper = SnowflakeTypeMapper()

    def __init__(
        self,
        database: Optional[str] = None,
        account: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        warehouse: Optional[str] = None,
        role: Optional[str] = None,
    ):
        self.database = database or os.environ.get("SNOWFLAKE_DATABASE")
        self.account = account or os.environ.get("SNOWFLAKE_ACCOUNT")
        self.user = user or os.environ.get("SNOWFLAKE_USER")
        self.password = password or os.environ.get("SNOWFLAKE_PASSWORD")
        self.warehouse = warehouse or os.environ.get("SNOWFLAKE_WAREHOUSE")
        self.role = role or os.environ.get("SNOWFLAKE_ROLE")
        self._connection = None

    def connect(self):
        """Connect to Snowflake."""
        try:
            import snowflake.connector
            from snowflake.connector.errors import DatabaseError, OperationalError
        except ImportError:
            raise ImportError(
                "snowflake-connector-python is required. "
                "Install it with: pip install snowflake-connector-python"
            )

        self.CONNECTION_ERRORS = (OperationalError,)
        if self._connection is not None:
            return self._connection

        try:
            self._connection = snowflake.connector.connect(
                account=self.account,
                user=self.user,
                password=self.password,
                warehouse=self.warehouse,
                database=self.database,
                role=self.role,
            )
        except DatabaseError as e:
            raise ConnectionFailure(
                f"Could not connect to Snowflake: {e}",
                details={"account": self.account, "database": self.database},
            ) from e
        return self._connection

    def close(self):
        """Close the connection."""
        if self._connection:
            self._connection.close()
            self._connection = None

    def _cursor(self):
        return self._connection.cursor()

    def get_crawl_info(self) -> CrawlInfo:
        info = super().get_crawl_info()
        rows = self.execute_query("SELECT CURRENT_VERSION() AS VERSION")
        if rows:
            info.product_version = str(rows[0]["version"])
        info.driver_name = "snowflake-connector-python"
        return info

    @staticmethod
    def _quote(*names: Optional[str]) -> str:
        return ".".join('"{}"'.format(n.replace('"', '""')) for n in names if n)

    def get_schemas(self) -> List[Row]:
        """Get all schemas in the database (excludes INFORMATION_SCHEMA)."""
        rows = self.execute_query("""
            SELECT CATALOG_NAME, SCHEMA_NAME
            FROM INFORMATION_SCHEMA.SCHEMATA
            ORDER BY SCHEMA_NAME
        """)
        return [r for r in rows if r["schema_name"] not in self.EXCLUDED_SCHEMAS]

    def get_tables(self, catalog: Optional[str], schema: Optional[str]) -> List[Row]:
        """Get all tables and views in a schema."""
        return self.execute_query("""
            SELECT
                TABLE_NAME,
                CASE WHEN TABLE_TYPE = 'VIEW' THEN 'VIEW' ELSE 'TABLE' END AS TABLE_TYPE,
                COMMENT AS REMARKS
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = %s
            ORDER BY TABLE_NAME
        """, (schema,))

    def get_columns(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        """Get all columns in a table."""
        return self.execute_query("""
            SELECT
                COLUMN_NAME,
                ORDINAL_POSITION,
                DATA_TYPE,
                IS_NULLABLE,
                COLUMN_DEFAULT,
                COMMENT AS REMARKS
            FROM INFORMATION_SCHEMA.COLUMNS
            WHERE TABLE_SCHEMA = %s
              AND TABLE_NAME = %s
            ORDER BY ORDINAL_POSITION
        """, (schema, table))

    def get_primary_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[str]:
        """Get primary key columns for a table."""
        rows = self.execute_query(f"SHOW PRIMARY KEYS IN TABLE {self._quote(catalog, schema, table)}")
        rows.sort(key=lambda r: r.get("key_sequence") or 0)
        return [r["column_name"] for r in rows]

    def get_unique_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[List[str]]:
        rows = self.execute_query(f"SHOW UNIQUE KEYS IN TABLE {self._quote(catalog, schema, table)}")
        keys = {}
        for row in sorted(rows, key=lambda r: r.get("key_sequence") or 0):
            keys.setdefault(row.get("constraint_name"), []).append(row["column_name"])
        return list(keys.values())

    @staticmethod
    def _to_foreign_key_row(row: Row) -> Row:
        """Rename SHOW ... KEYS output to the foreign_keys row shape."""
        return {
            "pktable_cat": row.get("pk_database_name"),
            "pktable_schem": row.get("pk_schema_name"),
            "pktable_name": row.get("pk_table_name"),
            "pkcolumn_name": row.get("pk_column_name"),
            "fktable_cat": row.get("fk_database_name"),
            "fktable_schem": row.get("fk_schema_name"),
            "fktable_name": row.get("fk_table_name"),
            "fkcolumn_name": row.get("fk_column_name"),
            "key_seq": row.get("key_sequence"),
            "update_rule": row.get("update_rule"),
            "delete_rule": row.get("delete_rule"),
            "deferrability": row.get("deferrability"),
            "fk_name": row.get("fk_name"),
            "pk_name": row.get("pk_name"),
            "remarks": row.get("comment"),
        }

    def get_imported_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        rows = self.execute_query(f"SHOW IMPORTED KEYS IN TABLE {self._quote(catalog, schema, table)}")
        return [self._to_foreign_key_row(r) for r in rows]

    def get_exported_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        rows = self.execute_query(f"SHOW EXPORTED KEYS IN TABLE {self._quote(catalog, schema, table)}")
        return [self._to_foreign_key_row(r) for r in rows]
