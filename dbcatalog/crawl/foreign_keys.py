"""Foreign key retrieval."""

import logging
import zlib

from ..database.models import (
    Column,
    ForeignKey,
    ForeignKeyDeferrability,
    ForeignKeyRule,
    ReferenceKind,
    Table,
)
from ..database.partials import lookup_or_create_column
from ..errors import RowResolutionSkipped
from .retriever import MetadataRetriever
from .rows import MetadataRow
from .strategy import FOREIGN_KEYS_QUERY, MetadataCategory

logger = logging.getLogger(__name__)

FOREIGN_KEY_COLUMNS = (
    "pktable_cat",
    "pktable_schem",
    "pktable_name",
    "pkcolumn_name",
    "fktable_cat",
    "fktable_schem",
    "fktable_name",
    "fkcolumn_name",
    "key_seq",
    "update_rule",
    "delete_rule",
    "deferrability",
    "fk_name",
    "remarks",
)


def _checksum(text: str) -> str:
    return f"{zlib.crc32(text.encode('utf-8')) & 0xFFFFFFFF:08X}"


def construct_foreign_key_name(pk_table: Table, fk_table: Table) -> str:
    """Stable name for an unnamed foreign key between two tables."""
    return f"SC_{_checksum(pk_table.full_name)}_{_checksum(fk_table.full_name)}"


class ForeignKeyRetriever(MetadataRetriever):
    """Retrieves declared foreign keys, merging multi-column keys row by row."""

    category = MetadataCategory.FOREIGN_KEYS

    def retrieve_from_data_dictionary(self) -> None:
        rows = self.execute_query(FOREIGN_KEYS_QUERY)
        count = self.process_rows(rows, self.add_foreign_key)
        logger.info("Retrieved %d foreign key column references", count)

    def retrieve_from_metadata(self) -> None:
        # Exported keys cover references from tables outside the crawl
        for table in self.tables(include_views=False):
            imported = self.call_native(self.introspector.get_imported_keys, table)
            if imported is not None:
                self.process_rows(imported, self.add_foreign_key)
            exported = self.call_native(self.introspector.get_exported_keys, table)
            if exported is not None:
                self.process_rows(exported, self.add_foreign_key)

    def _resolve_columns(self, row: MetadataRow):
        pk_names = (
            row.get_string("pktable_cat"),
            row.get_string("pktable_schem"),
            row.get_string("pktable_name"),
            row.get_string("pkcolumn_name"),
        )
        fk_names = (
            row.get_string("fktable_cat"),
            row.get_string("fktable_schem"),
            row.get_string("fktable_name"),
            row.get_string("fkcolumn_name"),
        )
        if not all(pk_names[2:]) or not all(fk_names[2:]):
            raise RowResolutionSkipped(
                self.category_name,
                "Foreign key row has no table or column name",
                details={"primary_key": list(pk_names), "foreign_key": list(fk_names)},
            )

        pk_column = self.catalog.lookup_column(*pk_names)
        fk_column = self.catalog.lookup_column(*fk_names)
        if pk_column is None and fk_column is None:
            raise RowResolutionSkipped(
                self.category_name,
                "Both ends of the foreign key are outside the crawl",
                details={
                    "primary_key": ".".join(n for n in pk_names if n),
                    "foreign_key": ".".join(n for n in fk_names if n),
                },
            )
        pk_column = pk_column or lookup_or_create_column(self.catalog, *pk_names)
        fk_column = fk_column or lookup_or_create_column(self.catalog, *fk_names)
        return pk_column, fk_column, fk_names

    def add_foreign_key(self, row: MetadataRow) -> ForeignKey:
        """Merge one column-pair row into its foreign key and link it."""
        pk_column, fk_column, fk_names = self._resolve_columns(row)

        key_sequence = row.get_int("key_seq")
        update_rule = row.get_enum(ForeignKeyRule, "update_rule")
        delete_rule = row.get_enum(ForeignKeyRule, "delete_rule")
        deferrability = row.get_enum(ForeignKeyDeferrability, "deferrability")

        name = row.get_string("fk_name")
        if name is not None and not name.strip():
            name = None
        specific_name = name or construct_foreign_key_name(pk_column.table, fk_column.table)
        key = self.catalog.normalizer.key(fk_names[0], fk_names[1], specific_name)

        foreign_key = self.catalog.lookup_or_create_foreign_key(
            key,
            lambda: ForeignKey(
                name=name,
                specific_name=specific_name,
                key=key,
                kind=ReferenceKind.DECLARED,
            ),
        )
        if foreign_key.add_column_reference(key_sequence, pk_column, fk_column):
            logger.debug("Added %s --> %s to %s", fk_column.full_name, pk_column.full_name, specific_name)

        foreign_key.update_rule = update_rule
        foreign_key.delete_rule = delete_rule
        foreign_key.deferrability = deferrability
        remarks = row.get_string("remarks")
        if remarks:
            foreign_key.remarks = remarks
        foreign_key.attributes.update(row.attributes(FOREIGN_KEY_COLUMNS))

        self._mark_columns(pk_column, fk_column)
        self.catalog.link_foreign_key(foreign_key)
        return foreign_key

    @staticmethod
    def _mark_columns(pk_column: Column, fk_column: Column) -> None:
        fk_column.is_part_of_foreign_key = True
        fk_column.referenced_column = pk_column
