"""Catalog model and database introspection for dbcatalog.

This module provides the catalog entities, name normalization and
database-agnostic introspection with specific implementations for
Snowflake and DuckDB.
"""

from .keys import NamedObjectKey, NameNormalizer
from .index import NamedObjectIndex
from .models import (
    CheckConstraint,
    CheckOption,
    Column,
    ColumnReference,
    CrawlInfo,
    ForeignKey,
    ForeignKeyDeferrability,
    ForeignKeyRule,
    Privilege,
    ReferenceKind,
    Resolution,
    Schema,
    Table,
    TableKind,
    Trigger,
    ViewInfo,
)
from .catalog import Catalog
from .partials import create_partial_column, create_partial_table, lookup_or_create_column
from .base import DatabaseIntrospector
from .type_mappers import TypeFamily, TypeMapper, GenericTypeMapper, SnowflakeTypeMapper, DuckDBTypeMapper
from .snowflake import SnowflakeIntrospector
from .duckdb import DuckDBIntrospector

__all__ = [
    # Keys and registries
    "NamedObjectKey",
    "NameNormalizer",
    "NamedObjectIndex",
    # Data models
    "Catalog",
    "CheckConstraint",
    "CheckOption",
    "Column",
    "ColumnReference",
    "CrawlInfo",
    "ForeignKey",
    "ForeignKeyDeferrability",
    "ForeignKeyRule",
    "Privilege",
    "ReferenceKind",
    "Resolution",
    "Schema",
    "Table",
    "TableKind",
    "Trigger",
    "ViewInfo",
    # Partial placeholders
    "create_partial_column",
    "create_partial_table",
    "lookup_or_create_column",
    # Base classes
    "DatabaseIntrospector",
    # Type mappers
    "TypeFamily",
    "TypeMapper",
    "GenericTypeMapper",
    "SnowflakeTypeMapper",
    "DuckDBTypeMapper",
    # Introspectors
    "SnowflakeIntrospector",
    "DuckDBIntrospector",
]
