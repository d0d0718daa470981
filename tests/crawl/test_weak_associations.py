"""Tests for weak association detection."""

from dbcatalog.analysis import (
    NamingRules,
    WeakAssociationsAnalyzer,
    WeakAssociationsLoader,
    analyze,
    plural,
    singular,
)
from dbcatalog.crawl import ForeignKeyRetriever
from dbcatalog.database.models import ReferenceKind

from .fixtures import MockIntrospector, foreign_key_row


def _pairs(proposals):
    return [
        (p.foreign_key_column.full_name, p.primary_key_column.full_name)
        for p in proposals
    ]


class TestInflection:
    """Test singular and plural forms of table names."""

    def test_singular(self):
        assert singular("customers") == "customer"
        assert singular("categories") == "category"
        assert singular("boxes") == "box"
        assert singular("address") == "address"

    def test_plural(self):
        assert plural("customer") == "customers"
        assert plural("category") == "categories"
        assert plural("box") == "boxes"
        assert plural("day") == "days"


class TestWeakAssociationsAnalyzer:
    """Test naming-based proposals."""

    def test_proposals_for_shop(self, make_context, shop):
        catalog = make_context(shop).catalog
        proposals = analyze(catalog.tables)

        assert _pairs(proposals) == [
            ("DB.main.order_items.order_id", "DB.main.orders.id"),
            ("DB.main.order_items.product_code", "DB.main.products.product_code"),
            ("DB.main.orders.customer_id", "DB.main.customers.id"),
        ]

    def test_declared_foreign_keys_are_not_repeated(self, make_context, shop):
        shop.add_query("foreign_keys", [
            foreign_key_row("customers", "id", "orders", "customer_id", fk_name="fk_orders_customer"),
        ])
        context = make_context(shop)
        ForeignKeyRetriever(context).retrieve()
        proposals = analyze(context.catalog.tables)

        assert ("DB.main.orders.customer_id", "DB.main.customers.id") not in _pairs(proposals)
        assert len(proposals) == 2

    def test_views_are_ignored(self, make_context, shop):
        catalog = make_context(shop).catalog
        proposals = analyze(catalog.tables)
        assert all(not p.foreign_key_column.table.is_view for p in proposals)

    def test_analysis_is_deterministic(self, make_context, shop):
        catalog = make_context(shop).catalog
        first = _pairs(analyze(catalog.tables))
        second = _pairs(analyze(list(reversed(catalog.tables))))
        assert first == second

    def test_prefixes_and_suffixes(self, make_context):
        introspector = MockIntrospector()
        introspector.add_table("tbl_region_dim", [("id", "INTEGER"), ("name", "VARCHAR")], primary_key=["id"])
        introspector.add_table("stores", [("id", "INTEGER"), ("region_id", "INTEGER")], primary_key=["id"])
        catalog = make_context(introspector).catalog

        assert _pairs(analyze(catalog.tables)) == [
            ("DB.main.stores.region_id", "DB.main.tbl_region_dim.id"),
        ]

    def test_incompatible_types_are_not_matched(self, make_context):
        introspector = MockIntrospector()
        introspector.add_table("customers", [("id", "INTEGER")], primary_key=["id"])
        introspector.add_table("orders", [("id", "INTEGER"), ("customer_id", "TIMESTAMP")], primary_key=["id"])
        catalog = make_context(introspector).catalog
        assert analyze(catalog.tables) == []

    def test_composite_key_tables_are_not_targets(self, make_context):
        introspector = MockIntrospector()
        introspector.add_table("accounts", [("bank", "INTEGER"), ("number", "INTEGER")], primary_key=["bank", "number"])
        introspector.add_table("payments", [("id", "INTEGER"), ("account_id", "INTEGER")], primary_key=["id"])
        catalog = make_context(introspector).catalog
        assert analyze(catalog.tables) == []

    def test_shared_key_column_name(self, make_context):
        introspector = MockIntrospector()
        introspector.add_table("people", [("person_ref", "VARCHAR"), ("name", "VARCHAR")], primary_key=["person_ref"])
        introspector.add_table("visits", [("id", "INTEGER"), ("person_ref", "VARCHAR")], primary_key=["id"])
        catalog = make_context(introspector).catalog

        assert _pairs(analyze(catalog.tables)) == [
            ("DB.main.visits.person_ref", "DB.main.people.person_ref"),
        ]

    def test_custom_naming_rules(self, make_context):
        introspector = MockIntrospector()
        introspector.add_table("warehouses", [("id", "INTEGER")], primary_key=["id"])
        introspector.add_table("stock", [("id", "INTEGER"), ("warehouse_no", "INTEGER")], primary_key=["id"])
        catalog = make_context(introspector).catalog

        assert analyze(catalog.tables) == []
        rules = NamingRules(key_suffixes=("_no",))
        assert len(WeakAssociationsAnalyzer(catalog.tables, naming_rules=rules).analyze()) == 1


class TestWeakAssociationsLoader:
    """Test linking proposals into the catalog."""

    def test_load_links_both_tables(self, make_context, shop):
        catalog = make_context(shop).catalog
        associations = WeakAssociationsLoader(catalog).load()

        assert len(associations) == 3
        assert catalog.weak_associations == associations
        orders = catalog.lookup_table("DB", "main", "orders")
        customers = catalog.lookup_table("DB", "main", "customers")
        weak = [a for a in associations if a.foreign_key_table is orders][0]
        assert weak.kind == ReferenceKind.WEAK
        assert weak.specific_name.startswith("SCWA_")
        assert weak in orders.weak_associations
        assert len(orders.weak_associations) == 2
        assert customers.weak_associations == [weak]
        assert orders.foreign_keys == []
        assert weak in orders.table_references

    def test_load_twice_does_not_duplicate(self, make_context, shop):
        catalog = make_context(shop).catalog
        first = WeakAssociationsLoader(catalog).load()
        second = WeakAssociationsLoader(catalog).load()

        assert [a.specific_name for a in first] == [a.specific_name for a in second]
        assert len(catalog.weak_associations) == 3
        for association in catalog.weak_associations:
            assert len(association.column_references) == 1
