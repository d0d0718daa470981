"""View definition retrieval."""

import logging
from typing import Optional

from ..database.models import CheckOption, Table
from ..errors import RowResolutionSkipped
from .retriever import MetadataRetriever
from .rows import MetadataRow
from .strategy import VIEWS_QUERY, MetadataCategory

logger = logging.getLogger(__name__)


class ViewRetriever(MetadataRetriever):
    """Retrieves view definitions.

    Views are declared by the table pass; this pass appends definition
    text, so definitions split over several rows are joined in row order.
    """

    category = MetadataCategory.VIEWS

    def retrieve_from_data_dictionary(self) -> None:
        rows = self.execute_query(VIEWS_QUERY)
        count = self.process_rows(rows, self.add_view_information)
        logger.info("Retrieved %d view definition rows", count)

    def retrieve_from_metadata(self) -> None:
        for view in self.tables():
            if not view.is_view:
                continue
            rows = self.call_native(self.introspector.get_view_definition, view)
            if rows is not None:
                self.process_rows(rows, lambda row, view=view: self.add_view_information(row, view))

    def add_view_information(self, row: MetadataRow, view: Optional[Table] = None) -> None:
        if view is None:
            view = self.lookup_table(
                row,
                row.get_string("table_catalog"),
                row.get_string("table_schema"),
                row.get_string("table_name"),
            )
        if not view.is_view or view.view is None:
            raise RowResolutionSkipped(
                self.category_name,
                f"{view.full_name} is not a view",
                details={"table": view.full_name},
            )

        check_option = row.get_enum(CheckOption, "check_option")
        view.view.append_definition(row.get_string("view_definition"))
        if check_option != CheckOption.UNKNOWN:
            view.view.check_option = check_option
        if row.get("is_updatable") is not None:
            view.view.is_updatable = row.get_bool("is_updatable")
