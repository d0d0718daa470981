"""Tests for check constraint, trigger, view and privilege retrieval."""

from dbcatalog.config import RetrievalStrategy, Settings
from dbcatalog.crawl import (
    CheckConstraintRetriever,
    ColumnPrivilegeRetriever,
    TablePrivilegeRetriever,
    TriggerRetriever,
    ViewRetriever,
)
from dbcatalog.database.models import ActionOrientation, CheckOption, ConditionTiming, EventManipulation


def _declaration(name, table, constraint_type="CHECK"):
    return {
        "constraint_catalog": "DB",
        "constraint_schema": "main",
        "constraint_name": name,
        "table_catalog": "DB",
        "table_schema": "main",
        "table_name": table,
        "constraint_type": constraint_type,
        "is_deferrable": "NO",
        "initially_deferred": "NO",
    }


def _definition(name, clause):
    return {
        "constraint_catalog": "DB",
        "constraint_schema": "main",
        "constraint_name": name,
        "check_clause": clause,
    }


def _trigger(name="trg_audit", table="orders", **overrides):
    row = {
        "trigger_catalog": "DB",
        "trigger_schema": "main",
        "trigger_name": name,
        "event_object_catalog": "DB",
        "event_object_schema": "main",
        "event_object_table": table,
        "event_manipulation": "INSERT",
        "action_order": 1,
        "action_condition": None,
        "action_statement": "EXECUTE FUNCTION audit()",
        "action_orientation": "ROW",
        "action_timing": "AFTER",
    }
    row.update(overrides)
    return row


def _view_row(table, definition, **overrides):
    row = {
        "table_catalog": "DB",
        "table_schema": "main",
        "table_name": table,
        "view_definition": definition,
        "check_option": None,
        "is_updatable": None,
    }
    row.update(overrides)
    return row


def _grant(table, privilege="SELECT", column=None, grantee="analyst"):
    row = {
        "table_catalog": "DB",
        "table_schema": "main",
        "table_name": table,
        "grantor": "admin",
        "grantee": grantee,
        "privilege_type": privilege,
        "is_grantable": "YES",
    }
    if column is not None:
        row["column_name"] = column
    return row


class TestCheckConstraints:
    """Test the two-pass check constraint retrieval."""

    def test_definition_rows_are_concatenated(self, make_context, shop):
        shop.add_query("table_constraints", [
            _declaration("ck_total", "orders"),
            _declaration("pk_orders", "orders", constraint_type="PRIMARY KEY"),
        ])
        shop.add_query("check_constraints", [
            _definition("ck_total", "A := "),
            _definition("ck_total", "x > 0"),
        ])
        context = make_context(shop)
        CheckConstraintRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert [c.name for c in orders.check_constraints] == ["ck_total"]
        assert orders.check_constraints[0].definition == "A := x > 0"
        assert orders.check_constraints[0].table is orders
        assert not orders.check_constraints[0].is_deferrable

    def test_undeclared_definition_is_skipped(self, make_context, shop):
        shop.add_query("table_constraints", [_declaration("ck_total", "orders")])
        shop.add_query("check_constraints", [
            _definition("ck_total", "total >= 0"),
            _definition("ck_unknown", "1 = 1"),
        ])
        context = make_context(shop)
        CheckConstraintRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert len(orders.check_constraints) == 1
        assert context.diagnostics.skipped_rows == {"check_constraints": 1}

    def test_declarations_without_definition_query(self, make_context, shop):
        shop.add_query("table_constraints", [_declaration("ck_total", "orders")])
        context = make_context(shop)
        CheckConstraintRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert len(orders.check_constraints) == 1
        assert orders.check_constraints[0].definition == ""

    def test_failed_definition_query_attaches_nothing(self, make_context, shop):
        shop.add_query("table_constraints", [_declaration("ck_total", "orders")])
        shop.fail_query("check_constraints")
        context = make_context(shop)
        CheckConstraintRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert orders.check_constraints == []
        assert context.diagnostics.degraded_categories == ["check_constraints"]

    def test_native_constraints(self, make_context, shop):
        shop.add_native("check_constraints", "get_check_constraints", "orders", [
            {"constraint_name": "ck_total", "check_clause": "(total "},
            {"constraint_name": "ck_total", "check_clause": ">= 0)"},
        ])
        context = make_context(shop)
        CheckConstraintRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert [c.definition for c in orders.check_constraints] == ["(total >= 0)"]
        assert context.catalog.lookup_table("DB", "main", "customers").check_constraints == []


class TestTriggers:
    """Test trigger retrieval."""

    def test_trigger_fields(self, make_context, shop):
        shop.add_query("triggers", [_trigger()])
        context = make_context(shop)
        TriggerRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert len(orders.triggers) == 1
        trigger = orders.triggers[0]
        assert trigger.name == "trg_audit"
        assert trigger.event_manipulation == EventManipulation.INSERT
        assert trigger.condition_timing == ConditionTiming.AFTER
        assert trigger.action_orientation == ActionOrientation.ROW
        assert trigger.action_order == 1
        assert trigger.action_statement == "EXECUTE FUNCTION audit()"
        assert trigger.action_condition == ""

    def test_one_row_per_trigger(self, make_context, shop):
        shop.add_query("triggers", [
            _trigger("trg_audit", event_manipulation="INSERT"),
            _trigger("trg_audit", event_manipulation="UPDATE"),
        ])
        context = make_context(shop)
        TriggerRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert [t.event_manipulation for t in orders.triggers] == [
            EventManipulation.INSERT,
            EventManipulation.UPDATE,
        ]

    def test_missing_enum_is_unknown(self, make_context, shop):
        shop.add_query("triggers", [_trigger(event_manipulation=None, action_timing="INSTEAD OF")])
        context = make_context(shop)
        TriggerRetriever(context).retrieve()

        trigger = context.catalog.lookup_table("DB", "main", "orders").triggers[0]
        assert trigger.event_manipulation == EventManipulation.UNKNOWN
        assert trigger.condition_timing == ConditionTiming.INSTEAD_OF

    def test_unrecognized_enum_skips_row(self, make_context, shop):
        shop.add_query("triggers", [
            _trigger("trg_truncate", event_manipulation="TRUNCATE"),
            _trigger("trg_audit"),
        ])
        context = make_context(shop)
        TriggerRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert [t.name for t in orders.triggers] == ["trg_audit"]
        assert context.diagnostics.for_category("triggers")[0].code == "INVARIANT_VIOLATION"

    def test_trigger_on_unknown_table_is_skipped(self, make_context, shop):
        shop.add_query("triggers", [_trigger(table="archive")])
        context = make_context(shop)
        TriggerRetriever(context).retrieve()

        assert all(not t.triggers for t in context.catalog.tables)
        assert context.diagnostics.skipped_rows == {"triggers": 1}


class TestViews:
    """Test view definition retrieval."""

    def test_definition_rows_are_joined(self, make_context, shop):
        shop.add_query("views", [
            _view_row("big_orders", "SELECT * FROM orders ", check_option="NONE"),
            _view_row("big_orders", "WHERE total > 100", is_updatable="YES"),
        ])
        context = make_context(shop)
        ViewRetriever(context).retrieve()

        view = context.catalog.lookup_table("DB", "main", "big_orders")
        assert view.view.definition == "SELECT * FROM orders WHERE total > 100"
        assert view.view.check_option == CheckOption.NONE
        assert view.view.is_updatable

    def test_table_rows_are_skipped(self, make_context, shop):
        shop.add_query("views", [_view_row("orders", "SELECT 1")])
        context = make_context(shop)
        ViewRetriever(context).retrieve()

        assert context.catalog.lookup_table("DB", "main", "orders").view is None
        assert context.diagnostics.skipped_rows == {"views": 1}

    def test_native_view_definition(self, make_context, shop):
        shop.add_native("views", "get_view_definition", "big_orders", [
            {"view_definition": "SELECT id, customer_id FROM orders"},
        ])
        context = make_context(shop)
        ViewRetriever(context).retrieve()

        view = context.catalog.lookup_table("DB", "main", "big_orders")
        assert view.view.definition == "SELECT id, customer_id FROM orders"
        assert [c["table"] for c in shop.call_history] == ["big_orders"]


class TestPrivileges:
    """Test table and column privilege retrieval."""

    def test_table_privileges(self, make_context, shop):
        shop.add_query("table_privileges", [
            _grant("orders", "SELECT"),
            _grant("orders", "INSERT", grantee="loader"),
        ])
        context = make_context(shop)
        TablePrivilegeRetriever(context).retrieve()

        orders = context.catalog.lookup_table("DB", "main", "orders")
        assert [(p.name, p.grantee) for p in orders.privileges] == [
            ("SELECT", "analyst"),
            ("INSERT", "loader"),
        ]
        assert orders.privileges[0].is_grantable
        assert orders.privileges[0].parent_name == "DB.main.orders"

    def test_column_privileges(self, make_context, shop):
        shop.add_query("column_privileges", [
            _grant("customers", "SELECT", column="email"),
            _grant("customers", "SELECT", column="ssn"),
        ])
        context = make_context(shop)
        ColumnPrivilegeRetriever(context).retrieve()

        email = context.catalog.lookup_column("DB", "main", "customers", "email")
        assert [p.name for p in email.privileges] == ["SELECT"]
        assert email.privileges[0].parent_name == "DB.main.customers.email"
        assert context.diagnostics.skipped_rows == {"column_privileges": 1}

    def test_native_table_privileges(self, make_context, shop):
        settings = Settings(
            _env_file=None,
            run_logging_enabled=False,
            table_privileges_strategy=RetrievalStrategy.METADATA,
        )
        shop.add_native("table_privileges", "get_table_privileges", "products", [
            {"privilege": "SELECT", "grantee": "PUBLIC", "is_grantable": False},
        ])
        context = make_context(shop, settings=settings)
        TablePrivilegeRetriever(context).retrieve()

        products = context.catalog.lookup_table("DB", "main", "products")
        assert [p.grantee for p in products.privileges] == ["PUBLIC"]
        assert not products.privileges[0].is_grantable
