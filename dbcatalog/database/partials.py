"""Placeholders for objects referenced from outside the crawl's scope."""

import logging
from typing import Optional

from .catalog import Catalog
from .models import Column, Resolution, Table

logger = logging.getLogger(__name__)


def create_partial_table(
    catalog: Catalog,
    catalog_name: Optional[str],
    schema_name: Optional[str],
    table_name: str,
) -> Table:
    """Get or create a partial table carrying identity only."""
    key = catalog.normalizer.key(catalog_name, schema_name, table_name)
    existing = catalog.lookup_partial_table(key)
    if existing is not None:
        return existing

    schema = catalog.add_partial_schema(catalog_name, schema_name)
    table = Table(
        name=table_name,
        schema=schema,
        key=key,
        resolution=Resolution.PARTIAL,
    )
    logger.debug("Creating partial table %s", table.full_name)
    return catalog.add_partial_table(table)


def create_partial_column(
    catalog: Catalog,
    catalog_name: Optional[str],
    schema_name: Optional[str],
    table_name: str,
    column_name: str,
    table: Optional[Table] = None,
) -> Column:
    """Get or create a partial column carrying identity only.

    The parent is the given table when the table itself was retrieved but
    the column was filtered out; otherwise a partial table is used.
    """
    key = catalog.normalizer.key(catalog_name, schema_name, table_name, column_name)
    existing = catalog.lookup_partial_column(key)
    if existing is not None:
        return existing

    parent = table or create_partial_table(catalog, catalog_name, schema_name, table_name)
    column = Column(
        name=column_name,
        table=parent,
        key=key,
        resolution=Resolution.PARTIAL,
    )
    logger.debug("Creating partial column %s", column.full_name)
    return catalog.add_partial_column(column)


def lookup_or_create_column(
    catalog: Catalog,
    catalog_name: Optional[str],
    schema_name: Optional[str],
    table_name: Optional[str],
    column_name: Optional[str],
) -> Optional[Column]:
    """Look up a column, falling back to a partial stand-in.

    Returns None only when the names themselves are missing, so a
    relationship never ends up pointing at nothing.
    """
    if not table_name or not column_name:
        return None

    column = catalog.lookup_column(catalog_name, schema_name, table_name, column_name)
    if column is not None:
        return column

    table = catalog.lookup_table(catalog_name, schema_name, table_name)
    return create_partial_column(
        catalog, catalog_name, schema_name, table_name, column_name, table=table
    )
