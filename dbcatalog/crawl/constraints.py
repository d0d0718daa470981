"""Check constraint retrieval."""

import logging
from typing import Optional

from ..database.index import NamedObjectIndex
from ..database.models import CheckConstraint, Table
from ..errors import RowResolutionSkipped
from .retriever import MetadataRetriever
from .rows import MetadataRow
from .strategy import CHECK_CONSTRAINTS_QUERY, TABLE_CONSTRAINTS_QUERY, MetadataCategory

logger = logging.getLogger(__name__)


class CheckConstraintRetriever(MetadataRetriever):
    """Retrieves check constraints in two passes.

    The declaration pass creates each constraint on its table; the
    definition pass appends check clause text, matched by constraint name.
    Constraints are attached to their tables only once both passes
    succeed.
    """

    category = MetadataCategory.CHECK_CONSTRAINTS

    def __init__(self, context):
        super().__init__(context)
        self._constraints: NamedObjectIndex[CheckConstraint] = NamedObjectIndex()

    def retrieve_from_data_dictionary(self) -> None:
        declarations = self.execute_query(TABLE_CONSTRAINTS_QUERY)
        self.process_rows(declarations, self.declare)

        if self.queries.has_query(CHECK_CONSTRAINTS_QUERY):
            definitions = self.execute_query(CHECK_CONSTRAINTS_QUERY)
            self.process_rows(definitions, self.define)
        else:
            logger.info("No check constraint definitions query, keeping declarations only")

        self._attach()

    def retrieve_from_metadata(self) -> None:
        for table in self.tables(include_views=False):
            rows = self.call_native(self.introspector.get_check_constraints, table)
            if rows is None:
                continue

            def _declare_and_define(row: MetadataRow, table: Table = table) -> None:
                self._declare_on_table(row, table)
                self.define(row, table)

            self.process_rows(rows, _declare_and_define)
        self._attach()

    def _constraint_key(self, row: MetadataRow, table: Optional[Table] = None):
        name = row.get_string("constraint_name")
        catalog_name = row.get_string("constraint_catalog")
        schema_name = row.get_string("constraint_schema")
        if table is not None and schema_name is None:
            catalog_name, schema_name = table.schema.catalog_name, table.schema.name
        key = self.catalog.normalizer.key(catalog_name, schema_name, name)
        if key.is_empty():
            raise RowResolutionSkipped(self.category_name, "Check constraint row has no constraint name")
        return key, name

    def declare(self, row: MetadataRow) -> None:
        """Declaration pass: one row per table constraint, checks only."""
        constraint_type = (row.get_string("constraint_type") or "").strip().lower()
        if constraint_type and constraint_type != "check":
            return
        table = self.lookup_table(
            row,
            row.get_string("table_catalog", "constraint_catalog"),
            row.get_string("table_schema", "constraint_schema"),
            row.get_string("table_name"),
        )
        self._declare_on_table(row, table)

    def _declare_on_table(self, row: MetadataRow, table: Table) -> CheckConstraint:
        key, name = self._constraint_key(row, table)
        constraint = self._constraints.lookup_or_create(
            key, lambda: CheckConstraint(name=name, table=table)
        )
        if row.get("is_deferrable") is not None:
            constraint.is_deferrable = row.get_bool("is_deferrable")
        if row.get("initially_deferred") is not None:
            constraint.initially_deferred = row.get_bool("initially_deferred")
        remarks = row.get_string("remarks")
        if remarks:
            constraint.remarks = remarks
        return constraint

    def define(self, row: MetadataRow, table: Optional[Table] = None) -> None:
        """Definition pass: continuation rows append to the text so far."""
        key, name = self._constraint_key(row, table)
        constraint = self._constraints.lookup(key)
        if constraint is None:
            raise RowResolutionSkipped(
                self.category_name,
                f"No declaration for check constraint {name!r}",
                details={"constraint": str(key)},
            )
        constraint.append_definition(row.get_string("check_clause"))

    def _attach(self) -> None:
        for constraint in self._constraints:
            constraint.table.add_check_constraint(constraint)
        logger.info("Retrieved %d check constraints", len(self._constraints))
