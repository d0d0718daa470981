"""Trigger retrieval."""

import logging
from typing import Optional

from ..database.models import ActionOrientation, ConditionTiming, EventManipulation, Table, Trigger
from ..errors import RowResolutionSkipped
from .retriever import MetadataRetriever
from .rows import MetadataRow
from .strategy import TRIGGERS_QUERY, MetadataCategory

logger = logging.getLogger(__name__)


class TriggerRetriever(MetadataRetriever):
    """Retrieves triggers; each row is one complete trigger."""

    category = MetadataCategory.TRIGGERS

    def retrieve_from_data_dictionary(self) -> None:
        rows = self.execute_query(TRIGGERS_QUERY)
        count = self.process_rows(rows, self.add_trigger)
        logger.info("Retrieved %d triggers", count)

    def retrieve_from_metadata(self) -> None:
        for table in self.tables():
            rows = self.call_native(self.introspector.get_triggers, table)
            if rows is not None:
                self.process_rows(rows, lambda row, table=table: self.add_trigger(row, table))

    def add_trigger(self, row: MetadataRow, table: Optional[Table] = None) -> Trigger:
        name = row.get_string("trigger_name")
        if not name:
            raise RowResolutionSkipped(self.category_name, "Trigger row has no trigger name")

        if table is None:
            table = self.lookup_table(
                row,
                row.get_string("event_object_catalog", "trigger_catalog"),
                row.get_string("event_object_schema", "trigger_schema"),
                row.get_string("event_object_table"),
            )

        trigger = Trigger(
            name=name,
            table=table,
            event_manipulation=row.get_enum(EventManipulation, "event_manipulation"),
            action_order=row.get_int("action_order"),
            action_condition=row.get_string("action_condition") or "",
            action_statement=row.get_string("action_statement") or "",
            action_orientation=row.get_enum(ActionOrientation, "action_orientation"),
            condition_timing=row.get_enum(ConditionTiming, "condition_timing", "action_timing"),
            remarks=row.get_string("remarks") or "",
        )
        table.add_trigger(trigger)
        return trigger
