"""Mock introspector for testing without a real database."""

import copy
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from dbcatalog.config import IdentifierCase
from dbcatalog.database.base import DatabaseIntrospector, Row
from dbcatalog.errors import ConnectionFailure, QueryExecutionError


class MockIntrospector(DatabaseIntrospector):
    """Introspector serving canned rows.

    Data dictionary queries are registered by query name; the SQL text of
    each query is the name itself, so ``execute_query`` can look the rows
    up directly. Native calls are registered per call name and table name.
    """

    PRODUCT_NAME = "MockDB"

    def __init__(
        self,
        schemas: Optional[List[Tuple[Optional[str], Optional[str]]]] = None,
        identifier_case: IdentifierCase = IdentifierCase.PRESERVE,
    ):
        self.IDENTIFIER_CASE = identifier_case
        self.DIALECT_QUERIES: Dict[str, str] = {}
        self.NATIVE_CATEGORIES = frozenset()
        self._schemas = list(schemas or [("DB", "main")])
        self._tables: Dict[Tuple[Optional[str], Optional[str]], List[Row]] = {}
        self._columns: Dict[str, List[Row]] = {}
        self._primary_keys: Dict[str, List[str]] = {}
        self._unique_keys: Dict[str, List[List[str]]] = {}
        self._query_rows: Dict[str, List[Row]] = {}
        self._failing_queries: Set[str] = set()
        self._native_rows: Dict[str, Dict[str, List[Row]]] = {}
        self._native_failures: Set[Tuple[str, str]] = set()
        self._connection_lost = False
        self.call_history: List[Dict[str, Any]] = []
        self.closed = False

    # Setup

    def add_table(
        self,
        table_name: str,
        columns: Iterable[Tuple[str, str]],
        schema: Optional[Tuple[Optional[str], Optional[str]]] = None,
        table_type: str = "BASE TABLE",
        primary_key: Optional[List[str]] = None,
        unique_keys: Optional[List[List[str]]] = None,
    ) -> "MockIntrospector":
        """Register a table with (name, data type) columns."""
        schema = schema or self._schemas[0]
        self._tables.setdefault(schema, []).append(
            {"table_name": table_name, "table_type": table_type, "remarks": None}
        )
        self._columns[table_name] = [
            {
                "column_name": name,
                "ordinal_position": position,
                "data_type": data_type,
                "is_nullable": "NO" if primary_key and name in primary_key else "YES",
                "column_default": None,
                "remarks": None,
            }
            for position, (name, data_type) in enumerate(columns, start=1)
        ]
        self._primary_keys[table_name] = list(primary_key or [])
        self._unique_keys[table_name] = [list(k) for k in unique_keys or []]
        return self

    def add_query(self, name: str, rows: List[Row]) -> "MockIntrospector":
        """Register a data dictionary query and the rows it returns."""
        self.DIALECT_QUERIES[name] = name
        self._query_rows[name] = rows
        return self

    def fail_query(self, name: str) -> "MockIntrospector":
        """Register a data dictionary query that fails at the driver."""
        self.DIALECT_QUERIES[name] = name
        self._failing_queries.add(name)
        return self

    def add_native(self, category: str, call: str, table_name: str, rows: List[Row]) -> "MockIntrospector":
        """Register the rows a native call returns for one table."""
        self.NATIVE_CATEGORIES = self.NATIVE_CATEGORIES | {category}
        self._native_rows.setdefault(call, {})[table_name] = rows
        return self

    def fail_native(self, category: str, call: str, table_name: str) -> "MockIntrospector":
        self.NATIVE_CATEGORIES = self.NATIVE_CATEGORIES | {category}
        self._native_failures.add((call, table_name))
        return self

    def lose_connection(self) -> "MockIntrospector":
        """Make every later query fail with a connection failure."""
        self._connection_lost = True
        return self

    # DatabaseIntrospector

    def connect(self):
        if self._connection_lost:
            raise ConnectionFailure("Connection lost")

    def close(self):
        self.closed = True

    def _cursor(self):
        raise NotImplementedError("MockIntrospector serves rows without a cursor")

    def execute_query(self, sql: str, params=None) -> List[Row]:
        self.call_history.append({"method": "execute_query", "sql": sql})
        self.connect()
        if sql in self._failing_queries:
            raise QueryExecutionError(f"relation for {sql} does not exist", query=sql)
        if sql not in self._query_rows:
            raise QueryExecutionError(f"Unknown query {sql}", query=sql)
        return copy.deepcopy(self._query_rows[sql])

    def get_schemas(self) -> List[Row]:
        self.connect()
        return [{"catalog_name": c, "schema_name": s} for c, s in self._schemas]

    def get_tables(self, catalog: Optional[str], schema: Optional[str]) -> List[Row]:
        self.connect()
        return copy.deepcopy(self._tables.get((catalog, schema), []))

    def get_columns(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[Row]:
        return copy.deepcopy(self._columns.get(table, []))

    def get_primary_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[str]:
        return list(self._primary_keys.get(table, []))

    def get_unique_keys(self, catalog: Optional[str], schema: Optional[str], table: str) -> List[List[str]]:
        return [list(k) for k in self._unique_keys.get(table, [])]

    def _native(self, call: str, table: str) -> List[Row]:
        self.call_history.append({"method": call, "table": table})
        self.connect()
        if (call, table) in self._native_failures:
            raise QueryExecutionError(f"{call} failed for {table}")
        if call not in self._native_rows:
            self._unsupported(call)
        return copy.deepcopy(self._native_rows[call].get(table, []))

    def get_imported_keys(self, catalog, schema, table):
        return self._native("get_imported_keys", table)

    def get_exported_keys(self, catalog, schema, table):
        return self._native("get_exported_keys", table)

    def get_check_constraints(self, catalog, schema, table):
        return self._native("get_check_constraints", table)

    def get_triggers(self, catalog, schema, table):
        return self._native("get_triggers", table)

    def get_view_definition(self, catalog, schema, view):
        return self._native("get_view_definition", view)

    def get_table_privileges(self, catalog, schema, table):
        return self._native("get_table_privileges", table)

    def get_column_privileges(self, catalog, schema, table):
        return self._native("get_column_privileges", table)


def foreign_key_row(
    pk_table: str,
    pk_column: str,
    fk_table: str,
    fk_column: str,
    key_seq: int = 1,
    fk_name: Optional[str] = "fk_test",
    catalog: Optional[str] = "DB",
    schema: Optional[str] = "main",
    pk_catalog: Optional[str] = None,
    pk_schema: Optional[str] = None,
    update_rule: Any = 3,
    delete_rule: Any = 3,
    deferrability: Any = 7,
) -> Row:
    """One column pair of a foreign key, in the foreign_keys query shape."""
    return {
        "pktable_cat": pk_catalog or catalog,
        "pktable_schem": pk_schema or schema,
        "pktable_name": pk_table,
        "pkcolumn_name": pk_column,
        "fktable_cat": catalog,
        "fktable_schem": schema,
        "fktable_name": fk_table,
        "fkcolumn_name": fk_column,
        "key_seq": key_seq,
        "update_rule": update_rule,
        "delete_rule": delete_rule,
        "deferrability": deferrability,
        "fk_name": fk_name,
    }


def create_shop_introspector(**kwargs) -> MockIntrospector:
    """A small order-entry schema with no optional categories configured."""
    introspector = MockIntrospector(**kwargs)
    introspector.add_table(
        "customers",
        [("id", "INTEGER"), ("name", "VARCHAR"), ("email", "VARCHAR")],
        primary_key=["id"],
        unique_keys=[["email"]],
    )
    introspector.add_table(
        "orders",
        [("id", "INTEGER"), ("customer_id", "INTEGER"), ("total", "DECIMAL(10,2)")],
        primary_key=["id"],
    )
    introspector.add_table(
        "order_items",
        [("order_id", "INTEGER"), ("line_no", "INTEGER"), ("product_code", "VARCHAR")],
        primary_key=["order_id", "line_no"],
    )
    introspector.add_table(
        "products",
        [("product_code", "VARCHAR"), ("title", "VARCHAR")],
        primary_key=["product_code"],
    )
    introspector.add_table(
        "big_orders",
        [("id", "INTEGER"), ("customer_id", "INTEGER")],
        table_type="VIEW",
    )
    return introspector
