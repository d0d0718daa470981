"""Mutable catalog: the root aggregate of one crawl."""

import logging
from typing import Callable, List, Optional

from ..errors import CatalogFrozenError
from .index import NamedObjectIndex
from .keys import NamedObjectKey, NameNormalizer
from .models import (
    Column,
    CrawlInfo,
    ForeignKey,
    Schema,
    Table,
    TableKind,
    ViewInfo,
)

logger = logging.getLogger(__name__)


class Catalog:
    """Owns every schema, table and column of a crawl, keyed by NamedObjectKey.

    Retrievers mutate the catalog while the crawl assembles it. After
    ``freeze()`` structural mutation raises CatalogFrozenError; remarks and
    attributes stay writable so overlays can annotate entities.
    """

    def __init__(self, normalizer: Optional[NameNormalizer] = None, crawl_info: Optional[CrawlInfo] = None):
        self.normalizer = normalizer or NameNormalizer()
        self.crawl_info = crawl_info or CrawlInfo()
        self._schemas: NamedObjectIndex[Schema] = NamedObjectIndex()
        self._tables: NamedObjectIndex[Table] = NamedObjectIndex()
        self._partial_schemas: NamedObjectIndex[Schema] = NamedObjectIndex()
        self._partial_tables: NamedObjectIndex[Table] = NamedObjectIndex()
        self._partial_columns: NamedObjectIndex[Column] = NamedObjectIndex()
        self._foreign_keys: NamedObjectIndex[ForeignKey] = NamedObjectIndex()
        self._weak_associations: NamedObjectIndex[ForeignKey] = NamedObjectIndex()
        self._frozen = False

    # Assembly

    def _check_mutable(self, operation: str) -> None:
        if self._frozen:
            raise CatalogFrozenError(operation)

    def freeze(self) -> None:
        """Mark assembly as complete."""
        self._frozen = True
        logger.debug("Catalog frozen: %r", self)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    def lookup_or_create_schema(self, catalog_name: Optional[str], schema_name: Optional[str]) -> Schema:
        key = self.normalizer.schema_key(catalog_name, schema_name)
        existing = self._schemas.lookup(key)
        if existing is not None:
            return existing
        self._check_mutable("add schema")
        return self._schemas.lookup_or_create(
            key,
            lambda: Schema(
                catalog_name=catalog_name or None,
                name=schema_name or None,
                key=key,
            ),
        )

    def add_table(
        self,
        schema: Schema,
        name: str,
        kind: TableKind = TableKind.TABLE,
        remarks: str = "",
    ) -> Table:
        """Create a table in a schema, or return the one already registered."""
        self._check_mutable("add table")
        key = schema.key.with_name(self.normalizer.normalize_name(name))

        def _create() -> Table:
            return Table(
                name=name,
                schema=schema,
                key=key,
                kind=kind,
                remarks=remarks or "",
                view=ViewInfo() if kind == TableKind.VIEW else None,
            )

        return self._tables.lookup_or_create(key, _create)

    def add_column(self, table: Table, name: str, **attributes) -> Column:
        """Create a column on a table, or return the one already registered."""
        self._check_mutable("add column")
        key = table.key.with_name(self.normalizer.normalize_name(name))
        existing = table.lookup_column(key)
        if existing is not None:
            return existing
        return table.add_column(Column(name=name, table=table, key=key, **attributes))

    def add_partial_schema(self, catalog_name: Optional[str], schema_name: Optional[str]) -> Schema:
        key = self.normalizer.schema_key(catalog_name, schema_name)
        existing = self._schemas.lookup(key) or self._partial_schemas.lookup(key)
        if existing is not None:
            return existing
        self._check_mutable("add partial schema")
        return self._partial_schemas.lookup_or_create(
            key, lambda: Schema(catalog_name=catalog_name or None, name=schema_name or None, key=key)
        )

    def add_partial_table(self, table: Table) -> Table:
        self._check_mutable("add partial table")
        return self._partial_tables.add(table.key, table)

    def add_partial_column(self, column: Column) -> Column:
        self._check_mutable("add partial column")
        return self._partial_columns.add(column.key, column)

    def lookup_partial_table(self, key: NamedObjectKey) -> Optional[Table]:
        return self._partial_tables.lookup(key)

    def lookup_partial_column(self, key: NamedObjectKey) -> Optional[Column]:
        return self._partial_columns.lookup(key)

    def lookup_or_create_foreign_key(self, key: NamedObjectKey, factory: Callable[[], ForeignKey]) -> ForeignKey:
        """Return the relationship registered under key, creating it on first sight."""
        existing = self._foreign_keys.lookup(key)
        if existing is not None:
            return existing
        self._check_mutable("add foreign key")
        return self._foreign_keys.lookup_or_create(key, factory)

    def add_weak_association(self, association: ForeignKey) -> ForeignKey:
        self._check_mutable("add weak association")
        return self._weak_associations.add(association.key, association)

    def link_foreign_key(self, foreign_key: ForeignKey) -> None:
        """Attach a relationship to every endpoint table that is fully retrieved."""
        self._check_mutable("link foreign key")
        for reference in foreign_key.column_references:
            for column in (reference.foreign_key_column, reference.primary_key_column):
                if not column.is_partial and not column.table.is_partial:
                    column.table.add_foreign_key(foreign_key)

    # Read API

    @property
    def schemas(self) -> List[Schema]:
        return self._schemas.all()

    @property
    def tables(self) -> List[Table]:
        return self._tables.all()

    @property
    def partial_tables(self) -> List[Table]:
        return self._partial_tables.all()

    def get_tables(self, schema: Schema) -> List[Table]:
        return [t for t in self._tables if t.schema is schema]

    @property
    def foreign_keys(self) -> List[ForeignKey]:
        """All declared foreign keys, each once, in retrieval order."""
        return self._foreign_keys.all()

    @property
    def weak_associations(self) -> List[ForeignKey]:
        return self._weak_associations.all()

    def lookup_schema(self, catalog_name: Optional[str], schema_name: Optional[str]) -> Optional[Schema]:
        return self._schemas.lookup(self.normalizer.schema_key(catalog_name, schema_name))

    def lookup_table(
        self,
        catalog_name: Optional[str],
        schema_name: Optional[str],
        table_name: str,
    ) -> Optional[Table]:
        """Find a fully retrieved table by qualified name."""
        key = self.normalizer.key(catalog_name, schema_name, table_name)
        if key.is_empty():
            return None
        return self._tables.lookup(key)

    def lookup_column(
        self,
        catalog_name: Optional[str],
        schema_name: Optional[str],
        table_name: str,
        column_name: str,
    ) -> Optional[Column]:
        """Find a column of a fully retrieved table by qualified name."""
        table = self.lookup_table(catalog_name, schema_name, table_name)
        if table is None:
            return None
        return table.lookup_column(table.key.with_name(self.normalizer.normalize_name(column_name)))

    def column_count(self) -> int:
        return sum(len(t.columns) for t in self._tables)

    def __repr__(self) -> str:
        return (
            f"Catalog(schemas={len(self._schemas)}, tables={len(self._tables)}, "
            f"partial_tables={len(self._partial_tables)}, frozen={self._frozen})"
        )
