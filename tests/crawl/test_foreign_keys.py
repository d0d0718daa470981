"""Tests for foreign key retrieval."""

import zlib

import pytest

from dbcatalog.config import RetrievalStrategy, Settings
from dbcatalog.crawl import ForeignKeyRetriever, construct_foreign_key_name
from dbcatalog.database.models import ForeignKeyDeferrability, ForeignKeyRule

from .fixtures import create_shop_introspector, foreign_key_row


def _retrieve(make_context, introspector, settings=None):
    context = make_context(introspector, settings=settings)
    ForeignKeyRetriever(context).retrieve()
    return context


@pytest.fixture
def shipments():
    """Shop schema plus a table with a two-column key into order_items."""
    introspector = create_shop_introspector()
    introspector.add_table(
        "shipments",
        [("id", "INTEGER"), ("order_id", "INTEGER"), ("line_no", "INTEGER")],
        primary_key=["id"],
    )
    return introspector


def _composite_rows():
    return [
        foreign_key_row("order_items", "line_no", "shipments", "line_no", key_seq=2, fk_name="fk_shipment_item"),
        foreign_key_row("order_items", "order_id", "shipments", "order_id", key_seq=1, fk_name="fk_shipment_item"),
    ]


class TestDeclaredForeignKeys:
    """Test merging of foreign key rows."""

    def test_single_column_foreign_key(self, make_context, shop):
        shop.add_query("foreign_keys", [
            foreign_key_row("customers", "id", "orders", "customer_id", fk_name="fk_orders_customer"),
        ])
        context = _retrieve(make_context, shop)
        catalog = context.catalog

        assert len(catalog.foreign_keys) == 1
        fk = catalog.foreign_keys[0]
        assert fk.name == "fk_orders_customer"
        assert fk.update_rule == ForeignKeyRule.NO_ACTION
        assert fk.deferrability == ForeignKeyDeferrability.NOT_DEFERRABLE

        orders = catalog.lookup_table("DB", "main", "orders")
        customers = catalog.lookup_table("DB", "main", "customers")
        assert orders.foreign_keys == [fk]
        assert customers.foreign_keys == [fk]
        assert orders.imported_foreign_keys == [fk]
        assert customers.exported_foreign_keys == [fk]

        customer_id = catalog.lookup_column("DB", "main", "orders", "customer_id")
        assert customer_id.is_part_of_foreign_key
        assert customer_id.referenced_column is catalog.lookup_column("DB", "main", "customers", "id")

    def test_key_sequence_ordering(self, make_context, shipments):
        """Rows arriving out of key order are sorted by key sequence."""
        shipments.add_query("foreign_keys", _composite_rows())
        catalog = _retrieve(make_context, shipments).catalog

        fk = catalog.foreign_keys[0]
        assert [r.key_sequence for r in fk.column_references] == [1, 2]
        assert [r.foreign_key_column.name for r in fk.column_references] == ["order_id", "line_no"]
        assert [r.primary_key_column.name for r in fk.column_references] == ["order_id", "line_no"]

    def test_repeated_rows_are_idempotent(self, make_context, shipments):
        shipments.add_query("foreign_keys", _composite_rows() + _composite_rows())
        catalog = _retrieve(make_context, shipments).catalog

        assert len(catalog.foreign_keys) == 1
        assert len(catalog.foreign_keys[0].column_references) == 2
        shipments_table = catalog.lookup_table("DB", "main", "shipments")
        assert len(shipments_table.foreign_keys) == 1

    def test_row_order_does_not_matter(self, make_context, shipments):
        shipments.add_query("foreign_keys", list(reversed(_composite_rows())))
        catalog = _retrieve(make_context, shipments).catalog

        fk = catalog.foreign_keys[0]
        assert [r.foreign_key_column.name for r in fk.column_references] == ["order_id", "line_no"]

    def test_rules_are_last_write_wins(self, make_context, shop):
        shop.add_query("foreign_keys", [
            foreign_key_row("customers", "id", "orders", "customer_id", delete_rule=3),
            foreign_key_row("customers", "id", "orders", "customer_id", delete_rule="CASCADE"),
        ])
        catalog = _retrieve(make_context, shop).catalog
        assert catalog.foreign_keys[0].delete_rule == ForeignKeyRule.CASCADE

    def test_unnamed_foreign_key_gets_stable_name(self, make_context, shop):
        shop.add_query("foreign_keys", [
            foreign_key_row("customers", "id", "orders", "customer_id", fk_name=None),
        ])
        catalog = _retrieve(make_context, shop).catalog

        fk = catalog.foreign_keys[0]
        customers = catalog.lookup_table("DB", "main", "customers")
        orders = catalog.lookup_table("DB", "main", "orders")
        assert fk.name is None
        assert fk.specific_name == construct_foreign_key_name(customers, orders)
        assert fk.specific_name == (
            f"SC_{zlib.crc32(b'DB.main.customers'):08X}_{zlib.crc32(b'DB.main.orders'):08X}"
        )

    def test_extra_columns_become_attributes(self, make_context, shop):
        row = foreign_key_row("customers", "id", "orders", "customer_id")
        row["match_option"] = "SIMPLE"
        shop.add_query("foreign_keys", [row])
        catalog = _retrieve(make_context, shop).catalog
        assert catalog.foreign_keys[0].attributes == {"match_option": "SIMPLE"}


class TestPartialEndpoints:
    """Test relationships that cross the crawl boundary."""

    def test_referenced_table_outside_crawl(self, make_context, shop):
        shop.add_query("foreign_keys", [
            foreign_key_row("accounts", "id", "orders", "customer_id", pk_schema="billing", fk_name="fk_account"),
        ])
        catalog = _retrieve(make_context, shop).catalog

        fk = catalog.foreign_keys[0]
        reference = fk.column_references[0]
        assert reference.primary_key_column.is_partial
        assert reference.primary_key_column.table.is_partial
        assert reference.primary_key_column.full_name == "DB.billing.accounts.id"
        assert not reference.foreign_key_column.is_partial

        orders = catalog.lookup_table("DB", "main", "orders")
        assert orders.foreign_keys == [fk]
        assert len(catalog.partial_tables) == 1
        assert catalog.lookup_table("DB", "billing", "accounts") is None

    def test_both_ends_outside_crawl_are_dropped(self, make_context, shop):
        shop.add_query("foreign_keys", [
            foreign_key_row("ext_a", "id", "ext_b", "a_id", schema="elsewhere", fk_name="fk_ext"),
        ])
        context = _retrieve(make_context, shop)

        assert context.catalog.foreign_keys == []
        assert context.catalog.partial_tables == []
        assert context.diagnostics.skipped_rows == {"foreign_keys": 1}
        assert not context.diagnostics.is_degraded("foreign_keys")

    def test_no_dangling_references(self, make_context, shipments):
        rows = _composite_rows() + [
            foreign_key_row("customers", "id", "orders", "customer_id", fk_name="fk_orders_customer"),
            foreign_key_row("accounts", "id", "orders", "customer_id", pk_schema="billing", fk_name="fk_account"),
            foreign_key_row("ext_a", "id", "ext_b", "a_id", schema="elsewhere", fk_name="fk_ext"),
        ]
        shipments.add_query("foreign_keys", rows)
        catalog = _retrieve(make_context, shipments).catalog

        assert len(catalog.foreign_keys) == 3
        for fk in catalog.foreign_keys:
            assert fk.column_references
            for reference in fk.column_references:
                assert reference.primary_key_column is not None
                assert reference.foreign_key_column is not None
                assert reference.primary_key_column.table is not None


class TestMalformedRows:
    """Rows with the wrong shape are skipped."""

    def test_unrecognized_rule_skips_row(self, make_context, shop):
        shop.add_query("foreign_keys", [
            foreign_key_row("customers", "id", "orders", "customer_id", update_rule="sideways"),
        ])
        context = _retrieve(make_context, shop)

        assert context.catalog.foreign_keys == []
        codes = [r.code for r in context.diagnostics.for_category("foreign_keys")]
        assert codes == ["INVARIANT_VIOLATION"]

    def test_missing_column_name_skips_row(self, make_context, shop):
        row = foreign_key_row("customers", "id", "orders", "customer_id")
        row["fkcolumn_name"] = None
        shop.add_query("foreign_keys", [row])
        context = _retrieve(make_context, shop)
        assert context.catalog.foreign_keys == []
        assert context.diagnostics.skipped_rows == {"foreign_keys": 1}

    def test_failed_query_degrades_category(self, make_context, shop):
        shop.fail_query("foreign_keys")
        context = _retrieve(make_context, shop)

        assert context.catalog.foreign_keys == []
        assert context.diagnostics.degraded_categories == ["foreign_keys"]
        assert context.diagnostics.for_category("foreign_keys")[0].code == "CATEGORY_QUERY_FAILED"


class TestNativeForeignKeys:
    """Test retrieval through per-table native calls."""

    def _settings(self):
        return Settings(
            _env_file=None,
            run_logging_enabled=False,
            foreign_keys_strategy=RetrievalStrategy.METADATA,
        )

    def test_imported_and_exported_keys_merge(self, make_context, shop):
        row = foreign_key_row("customers", "id", "orders", "customer_id", fk_name="fk_orders_customer")
        shop.add_native("foreign_keys", "get_imported_keys", "orders", [row])
        shop.add_native("foreign_keys", "get_exported_keys", "customers", [row])
        context = _retrieve(make_context, shop, settings=self._settings())

        assert context.diagnostics.strategies["foreign_keys"] == "metadata"
        assert len(context.catalog.foreign_keys) == 1
        assert len(context.catalog.foreign_keys[0].column_references) == 1

    def test_views_are_not_asked(self, make_context, shop):
        shop.add_native("foreign_keys", "get_imported_keys", "orders", [])
        shop.add_native("foreign_keys", "get_exported_keys", "orders", [])
        _retrieve(make_context, shop, settings=self._settings())

        asked = {call["table"] for call in shop.call_history}
        assert "big_orders" not in asked
        assert "orders" in asked

    def test_failed_call_is_a_warning(self, make_context, shop):
        row = foreign_key_row("customers", "id", "orders", "customer_id", fk_name="fk_orders_customer")
        shop.add_native("foreign_keys", "get_imported_keys", "orders", [row])
        shop.add_native("foreign_keys", "get_exported_keys", "customers", [])
        shop.fail_native("foreign_keys", "get_exported_keys", "orders")
        context = _retrieve(make_context, shop, settings=self._settings())

        assert len(context.catalog.foreign_keys) == 1
        assert context.diagnostics.is_degraded("foreign_keys")
        assert [r.code for r in context.diagnostics.for_category("foreign_keys")] == ["QUERY_EXECUTION_ERROR"]
