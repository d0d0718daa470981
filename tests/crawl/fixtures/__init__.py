"""Test fixtures package."""

from .mock_introspector import MockIntrospector, create_shop_introspector, foreign_key_row

__all__ = [
    "MockIntrospector",
    "create_shop_introspector",
    "foreign_key_row",
]
