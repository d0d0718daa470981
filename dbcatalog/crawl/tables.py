"""Primary pass: schemas, tables, views and columns."""

import logging
from typing import List

from ..database.models import Schema, Table, TableKind
from ..errors import CategoryQueryFailed, QueryExecutionError, RowResolutionSkipped
from .retriever import CrawlContext
from .rows import MetadataRow

logger = logging.getLogger(__name__)

TABLES = "tables"


class TableRetriever:
    """Retrieves every in-scope schema, table and column.

    Everything later categories attach to is created here. A failing
    call for one schema or table is recorded and the pass continues.
    """

    def __init__(self, context: CrawlContext):
        self.context = context
        self.introspector = context.introspector
        self.catalog = context.catalog
        self.inclusion = context.inclusion
        self.diagnostics = context.diagnostics

    def retrieve(self) -> None:
        with self.diagnostics.time(TABLES):
            try:
                schema_rows = self.introspector.get_schemas()
            except QueryExecutionError as e:
                error = CategoryQueryFailed(TABLES, f"Could not list schemas: {e.message}")
                logger.warning("%s", error.message)
                self.diagnostics.category_failed(TABLES, error)
                return

            for values in schema_rows:
                row = MetadataRow(TABLES, values)
                catalog_name = row.get_string("catalog_name", "table_catalog", "table_cat")
                schema_name = row.get_string("schema_name", "table_schema", "table_schem")
                full_name = ".".join(n for n in (catalog_name, schema_name) if n)
                if not self.inclusion.schemas.test(full_name):
                    logger.debug("Excluding schema %s", full_name)
                    continue
                schema = self.catalog.lookup_or_create_schema(catalog_name, schema_name)
                self._retrieve_tables(schema)

        logger.info(
            "Retrieved %d tables with %d columns in %d schemas",
            len(self.catalog.tables), self.catalog.column_count(), len(self.catalog.schemas),
        )

    def _warn(self, message: str, error: QueryExecutionError) -> None:
        logger.warning("%s: %s", message, error.message)
        self.diagnostics.warning(TABLES, error)

    def _retrieve_tables(self, schema: Schema) -> None:
        try:
            table_rows = self.introspector.get_tables(schema.catalog_name, schema.name)
        except QueryExecutionError as e:
            self._warn(f"Could not list tables in {schema.full_name}", e)
            return

        for values in table_rows:
            row = MetadataRow(TABLES, values)
            name = row.get_string("table_name")
            if not name:
                self.diagnostics.row_skipped(TABLES, RowResolutionSkipped(TABLES, "Table row has no name"))
                continue
            full_name = f"{schema.full_name}.{name}" if schema.full_name else name
            if not self.inclusion.tables.test(full_name):
                logger.debug("Excluding table %s", full_name)
                continue

            table_type = (row.get_string("table_type") or "").upper()
            kind = TableKind.VIEW if "VIEW" in table_type else TableKind.TABLE
            table = self.catalog.add_table(schema, name, kind=kind, remarks=row.get_string("remarks") or "")
            self._retrieve_columns(table)
            if not table.is_view:
                self._retrieve_keys(table)

    def _retrieve_columns(self, table: Table) -> None:
        schema = table.schema
        try:
            column_rows = self.introspector.get_columns(schema.catalog_name, schema.name, table.name)
        except QueryExecutionError as e:
            self._warn(f"Could not retrieve columns for {table.full_name}", e)
            return

        for position, values in enumerate(column_rows, start=1):
            row = MetadataRow(TABLES, values)
            name = row.get_string("column_name")
            if not name or not self.inclusion.columns.test(f"{table.full_name}.{name}"):
                continue
            try:
                self._add_column(table, name, row, position)
            except RowResolutionSkipped as e:
                logger.debug("Skipping column %s.%s: %s", table.full_name, name, e.message)
                self.diagnostics.row_skipped(TABLES, e)

    def _add_column(self, table: Table, name: str, row: MetadataRow, position: int) -> None:
        nullable = row.get("is_nullable")
        self.catalog.add_column(
            table,
            name,
            ordinal_position=row.get_int("ordinal_position", default=position),
            data_type=row.get_string("data_type", "type_name") or "",
            is_nullable=True if nullable is None else row.get_bool("is_nullable"),
            default_value=row.get_string("column_default", "column_def"),
            remarks=row.get_string("remarks") or "",
        )

    def _lookup_columns(self, table: Table, names: List[str]) -> List:
        normalizer = self.catalog.normalizer
        columns = []
        for name in names:
            column = table.lookup_column(table.key.with_name(normalizer.normalize_name(name)))
            if column is not None:
                columns.append(column)
        return columns

    def _retrieve_keys(self, table: Table) -> None:
        schema = table.schema
        try:
            primary_key = self.introspector.get_primary_keys(schema.catalog_name, schema.name, table.name)
            unique_keys = self.introspector.get_unique_keys(schema.catalog_name, schema.name, table.name)
        except QueryExecutionError as e:
            self._warn(f"Could not retrieve keys for {table.full_name}", e)
            return

        table.primary_key_columns = list(primary_key)
        for column in self._lookup_columns(table, primary_key):
            column.is_part_of_primary_key = True
        for unique_key in unique_keys:
            for column in self._lookup_columns(table, unique_key):
                column.is_part_of_unique_index = True
