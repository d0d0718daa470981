"""Plain-dict rendering of an assembled catalog, for JSON output."""

from typing import Any, Dict, List

from .catalog import Catalog
from .models import Column, ForeignKey, Privilege, Table


def _privileges(privileges: List[Privilege]) -> List[Dict[str, Any]]:
    return [
        {
            "name": p.name,
            "grantor": p.grantor,
            "grantee": p.grantee,
            "is_grantable": p.is_grantable,
        }
        for p in privileges
    ]


def _column(column: Column) -> Dict[str, Any]:
    data = {
        "name": column.name,
        "ordinal_position": column.ordinal_position,
        "data_type": column.data_type,
        "is_nullable": column.is_nullable,
        "default_value": column.default_value,
        "is_part_of_primary_key": column.is_part_of_primary_key,
        "is_part_of_foreign_key": column.is_part_of_foreign_key,
        "is_part_of_unique_index": column.is_part_of_unique_index,
    }
    if column.referenced_column is not None:
        data["referenced_column"] = column.referenced_column.full_name
    if column.remarks:
        data["remarks"] = column.remarks
    if column.privileges:
        data["privileges"] = _privileges(column.privileges)
    return data


def foreign_key_to_dict(foreign_key: ForeignKey) -> Dict[str, Any]:
    return {
        "name": foreign_key.specific_name,
        "kind": foreign_key.kind.value,
        "update_rule": foreign_key.update_rule.value,
        "delete_rule": foreign_key.delete_rule.value,
        "deferrability": foreign_key.deferrability.value,
        "column_references": [
            {
                "key_sequence": r.key_sequence,
                "foreign_key_column": r.foreign_key_column.full_name,
                "primary_key_column": r.primary_key_column.full_name,
                "primary_key_partial": r.primary_key_column.is_partial,
                "foreign_key_partial": r.foreign_key_column.is_partial,
            }
            for r in foreign_key.column_references
        ],
    }


def table_to_dict(table: Table) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "name": table.name,
        "kind": table.kind.value,
        "remarks": table.remarks,
        "primary_key_columns": list(table.primary_key_columns),
        "columns": [_column(c) for c in table.columns],
        "foreign_keys": [fk.specific_name for fk in table.foreign_keys],
        "weak_associations": [wa.specific_name for wa in table.weak_associations],
        "check_constraints": [
            {"name": c.name, "definition": c.definition} for c in table.check_constraints
        ],
        "triggers": [
            {
                "name": t.name,
                "event_manipulation": t.event_manipulation.value,
                "condition_timing": t.condition_timing.value,
                "action_orientation": t.action_orientation.value,
                "action_order": t.action_order,
                "action_condition": t.action_condition,
                "action_statement": t.action_statement,
            }
            for t in table.triggers
        ],
        "privileges": _privileges(table.privileges),
    }
    if table.view is not None:
        data["view"] = {
            "definition": table.view.definition,
            "check_option": table.view.check_option.value,
            "is_updatable": table.view.is_updatable,
        }
    return data


def catalog_to_dict(catalog: Catalog) -> Dict[str, Any]:
    info = catalog.crawl_info
    return {
        "crawl_info": {
            "crawl_timestamp": info.crawl_timestamp.isoformat(),
            "product_name": info.product_name,
            "product_version": info.product_version,
            "driver_name": info.driver_name,
        },
        "schemas": [
            {
                "catalog_name": schema.catalog_name,
                "name": schema.name,
                "tables": [table_to_dict(t) for t in catalog.get_tables(schema)],
            }
            for schema in catalog.schemas
        ],
        "foreign_keys": [foreign_key_to_dict(fk) for fk in catalog.foreign_keys],
        "weak_associations": [foreign_key_to_dict(wa) for wa in catalog.weak_associations],
    }
