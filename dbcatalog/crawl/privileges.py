"""Table and column privilege retrieval."""

import logging
from typing import Optional

from ..database.models import Privilege, Table
from ..errors import RowResolutionSkipped
from .retriever import MetadataRetriever
from .rows import MetadataRow
from .strategy import COLUMN_PRIVILEGES_QUERY, TABLE_PRIVILEGES_QUERY, MetadataCategory

logger = logging.getLogger(__name__)


def _privilege(row: MetadataRow, category: str, parent_name: str) -> Privilege:
    name = row.get_string("privilege_type", "privilege")
    if not name:
        raise RowResolutionSkipped(category, "Privilege row has no privilege name")
    return Privilege(
        name=name,
        grantor=row.get_string("grantor"),
        grantee=row.get_string("grantee"),
        is_grantable=row.get_bool("is_grantable"),
        parent_name=parent_name,
    )


class TablePrivilegeRetriever(MetadataRetriever):
    """One grant record per row."""

    category = MetadataCategory.TABLE_PRIVILEGES

    def retrieve_from_data_dictionary(self) -> None:
        rows = self.execute_query(TABLE_PRIVILEGES_QUERY)
        count = self.process_rows(rows, self.add_privilege)
        logger.info("Retrieved %d table privileges", count)

    def retrieve_from_metadata(self) -> None:
        for table in self.tables():
            rows = self.call_native(self.introspector.get_table_privileges, table)
            if rows is not None:
                self.process_rows(rows, lambda row, table=table: self.add_privilege(row, table))

    def add_privilege(self, row: MetadataRow, table: Optional[Table] = None) -> Privilege:
        if table is None:
            table = self.lookup_table(
                row,
                row.get_string("table_catalog", "table_cat"),
                row.get_string("table_schema", "table_schem"),
                row.get_string("table_name"),
            )
        privilege = _privilege(row, self.category_name, table.full_name)
        table.add_privilege(privilege)
        return privilege


class ColumnPrivilegeRetriever(MetadataRetriever):
    """One grant record per row, on a column."""

    category = MetadataCategory.COLUMN_PRIVILEGES

    def retrieve_from_data_dictionary(self) -> None:
        rows = self.execute_query(COLUMN_PRIVILEGES_QUERY)
        count = self.process_rows(rows, self.add_privilege)
        logger.info("Retrieved %d column privileges", count)

    def retrieve_from_metadata(self) -> None:
        for table in self.tables():
            rows = self.call_native(self.introspector.get_column_privileges, table)
            if rows is not None:
                self.process_rows(rows, lambda row, table=table: self.add_privilege(row, table))

    def add_privilege(self, row: MetadataRow, table: Optional[Table] = None) -> Privilege:
        if table is None:
            table = self.lookup_table(
                row,
                row.get_string("table_catalog", "table_cat"),
                row.get_string("table_schema", "table_schem"),
                row.get_string("table_name"),
            )
        column_name = row.get_string("column_name")
        column = None
        if column_name:
            column = table.lookup_column(table.key.with_name(self.catalog.normalizer.normalize_name(column_name)))
        if column is None:
            raise RowResolutionSkipped(
                self.category_name,
                f"Column {column_name!r} is not in {table.full_name}",
                details={"table": table.full_name, "column": column_name},
            )
        privilege = _privilege(row, self.category_name, column.full_name)
        column.add_privilege(privilege)
        return privilege
