"""Catalog data models for schema crawling.

Entities reference each other directly (column to table, table to schema,
foreign key to both columns). Back-references are excluded from repr and
entities compare by identity, since the graph has cycles.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .index import NamedObjectIndex
from .keys import NamedObjectKey


class Resolution(str, Enum):
    """Whether an entity was fully retrieved or stands in for an out-of-scope object."""
    FULL = "full"
    PARTIAL = "partial"


class TableKind(str, Enum):
    TABLE = "table"
    VIEW = "view"


class ReferenceKind(str, Enum):
    """Declared foreign keys vs. associations inferred from naming patterns."""
    DECLARED = "declared"
    WEAK = "weak"


class _ParsedEnum(str, Enum):
    """Enum parsed from metadata values.

    Missing values parse to UNKNOWN; values that are present but not
    recognized raise ValueError so the caller can skip the row.
    """

    @classmethod
    def _aliases(cls) -> Dict[Any, str]:
        return {}

    @classmethod
    def parse(cls, value: Any) -> "_ParsedEnum":
        if value is None or (isinstance(value, str) and not value.strip()):
            return cls("unknown")
        aliases = cls._aliases()
        if isinstance(value, bool):
            raise ValueError(f"Not a valid {cls.__name__}: {value!r}")
        if isinstance(value, int):
            if value in aliases:
                return cls(aliases[value])
            raise ValueError(f"Not a valid {cls.__name__} id: {value}")
        text = str(value).strip()
        if text.lstrip("-").isdigit():
            return cls.parse(int(text))
        normalized = text.lower().replace(" ", "_")
        if normalized in aliases:
            return cls(aliases[normalized])
        try:
            return cls(normalized)
        except ValueError:
            raise ValueError(f"Not a valid {cls.__name__}: {value!r}") from None


class ForeignKeyRule(_ParsedEnum):
    """Update or delete rule; integer ids follow java.sql.DatabaseMetaData."""
    NO_ACTION = "no_action"
    CASCADE = "cascade"
    SET_NULL = "set_null"
    SET_DEFAULT = "set_default"
    RESTRICT = "restrict"
    UNKNOWN = "unknown"

    @classmethod
    def _aliases(cls) -> Dict[Any, str]:
        return {0: "cascade", 1: "restrict", 2: "set_null", 3: "no_action", 4: "set_default"}


class ForeignKeyDeferrability(_ParsedEnum):
    INITIALLY_DEFERRED = "initially_deferred"
    INITIALLY_IMMEDIATE = "initially_immediate"
    NOT_DEFERRABLE = "not_deferrable"
    UNKNOWN = "unknown"

    @classmethod
    def _aliases(cls) -> Dict[Any, str]:
        return {
            5: "initially_deferred",
            6: "initially_immediate",
            7: "not_deferrable",
            "deferred": "initially_deferred",
            "immediate": "initially_immediate",
        }


class EventManipulation(_ParsedEnum):
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    UNKNOWN = "unknown"


class ActionOrientation(_ParsedEnum):
    ROW = "row"
    STATEMENT = "statement"
    UNKNOWN = "unknown"


class ConditionTiming(_ParsedEnum):
    BEFORE = "before"
    AFTER = "after"
    INSTEAD_OF = "instead_of"
    UNKNOWN = "unknown"


class CheckOption(_ParsedEnum):
    NONE = "none"
    LOCAL = "local"
    CASCADED = "cascaded"
    UNKNOWN = "unknown"

    @classmethod
    def _aliases(cls) -> Dict[Any, str]:
        return {"cascade": "cascaded"}


@dataclass(eq=False)
class Schema:
    """Represents a catalog+schema namespace."""
    catalog_name: Optional[str]
    name: Optional[str]
    key: NamedObjectKey = field(default_factory=NamedObjectKey, repr=False)
    remarks: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def full_name(self) -> str:
        return ".".join(p for p in (self.catalog_name, self.name) if p)


@dataclass(eq=False)
class Privilege:
    """A single grant record on a table or a column."""
    name: str
    grantor: Optional[str] = None
    grantee: Optional[str] = None
    is_grantable: bool = False
    parent_name: str = ""


@dataclass(eq=False)
class Column:
    """Represents a table column, or a partial stand-in for one."""
    name: str
    table: "Table" = field(repr=False)
    key: NamedObjectKey = field(default_factory=NamedObjectKey, repr=False)
    ordinal_position: int = 0
    data_type: str = ""
    is_nullable: bool = True
    default_value: Optional[str] = None
    remarks: str = ""
    is_part_of_primary_key: bool = False
    is_part_of_foreign_key: bool = False
    is_part_of_unique_index: bool = False
    referenced_column: Optional["Column"] = field(default=None, repr=False)
    privileges: List[Privilege] = field(default_factory=list, repr=False)
    resolution: Resolution = Resolution.FULL
    attributes: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_partial(self) -> bool:
        return self.resolution == Resolution.PARTIAL

    @property
    def full_name(self) -> str:
        return f"{self.table.full_name}.{self.name}"

    def add_privilege(self, privilege: Privilege) -> None:
        self.privileges.append(privilege)


@dataclass(eq=False)
class ColumnReference:
    """One (primary key column, foreign key column) pair of a relationship."""
    key_sequence: int
    primary_key_column: Column
    foreign_key_column: Column

    def same_columns(self, other: "ColumnReference") -> bool:
        return (
            self.primary_key_column is other.primary_key_column
            and self.foreign_key_column is other.foreign_key_column
        )


@dataclass(eq=False)
class ForeignKey:
    """A declared foreign key, or a weak association inferred from naming.

    Column references are kept sorted by key sequence.
    """
    name: Optional[str]
    specific_name: str
    key: NamedObjectKey = field(default_factory=NamedObjectKey, repr=False)
    kind: ReferenceKind = ReferenceKind.DECLARED
    column_references: List[ColumnReference] = field(default_factory=list, repr=False)
    update_rule: ForeignKeyRule = ForeignKeyRule.UNKNOWN
    delete_rule: ForeignKeyRule = ForeignKeyRule.UNKNOWN
    deferrability: ForeignKeyDeferrability = ForeignKeyDeferrability.UNKNOWN
    remarks: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def is_weak(self) -> bool:
        return self.kind == ReferenceKind.WEAK

    def add_column_reference(self, key_sequence: int, pk_column: Column, fk_column: Column) -> bool:
        """Add a column pair; returns False if the same pair is already present."""
        reference = ColumnReference(key_sequence, pk_column, fk_column)
        for existing in self.column_references:
            if existing.key_sequence == key_sequence and existing.same_columns(reference):
                return False
        self.column_references.append(reference)
        self.column_references.sort(key=lambda r: r.key_sequence)
        return True

    @property
    def primary_key_table(self) -> Optional["Table"]:
        if not self.column_references:
            return None
        return self.column_references[0].primary_key_column.table

    @property
    def foreign_key_table(self) -> Optional["Table"]:
        if not self.column_references:
            return None
        return self.column_references[0].foreign_key_column.table

    def __str__(self) -> str:
        pairs = ", ".join(
            f"{r.foreign_key_column.full_name} --> {r.primary_key_column.full_name}"
            for r in self.column_references
        )
        return f"{self.specific_name} ({pairs})"


@dataclass(eq=False)
class CheckConstraint:
    """A declared row predicate."""
    name: str
    table: "Table" = field(repr=False)
    definition: str = ""
    is_deferrable: bool = False
    initially_deferred: bool = False
    remarks: str = ""

    def append_definition(self, text: Optional[str]) -> None:
        """Continuation rows append to the text accumulated so far."""
        if text:
            self.definition = f"{self.definition}{text}"


@dataclass(eq=False)
class Trigger:
    """A declared event handler on a table."""
    name: str
    table: "Table" = field(repr=False)
    event_manipulation: EventManipulation = EventManipulation.UNKNOWN
    action_order: int = 0
    action_condition: str = ""
    action_statement: str = ""
    action_orientation: ActionOrientation = ActionOrientation.UNKNOWN
    condition_timing: ConditionTiming = ConditionTiming.UNKNOWN
    remarks: str = ""


@dataclass(eq=False)
class ViewInfo:
    """View-only payload of a table."""
    definition: str = ""
    check_option: CheckOption = CheckOption.UNKNOWN
    is_updatable: bool = False

    def append_definition(self, text: Optional[str]) -> None:
        if text:
            self.definition = f"{self.definition}{text}"


@dataclass(eq=False)
class Table:
    """Represents a table or view, fully retrieved or partial."""
    name: str
    schema: Schema = field(repr=False)
    key: NamedObjectKey = field(default_factory=NamedObjectKey, repr=False)
    kind: TableKind = TableKind.TABLE
    resolution: Resolution = Resolution.FULL
    remarks: str = ""
    view: Optional[ViewInfo] = field(default=None, repr=False)
    primary_key_columns: List[str] = field(default_factory=list)
    check_constraints: List[CheckConstraint] = field(default_factory=list, repr=False)
    triggers: List[Trigger] = field(default_factory=list, repr=False)
    privileges: List[Privilege] = field(default_factory=list, repr=False)
    attributes: Dict[str, Any] = field(default_factory=dict, repr=False)
    _columns: NamedObjectIndex[Column] = field(default_factory=NamedObjectIndex, repr=False)
    _foreign_keys: NamedObjectIndex[ForeignKey] = field(default_factory=NamedObjectIndex, repr=False)
    _weak_associations: NamedObjectIndex[ForeignKey] = field(default_factory=NamedObjectIndex, repr=False)

    @property
    def is_partial(self) -> bool:
        return self.resolution == Resolution.PARTIAL

    @property
    def is_view(self) -> bool:
        return self.kind == TableKind.VIEW

    @property
    def full_name(self) -> str:
        prefix = self.schema.full_name
        return f"{prefix}.{self.name}" if prefix else self.name

    @property
    def columns(self) -> List[Column]:
        return self._columns.all()

    @property
    def foreign_keys(self) -> List[ForeignKey]:
        return self._foreign_keys.all()

    @property
    def weak_associations(self) -> List[ForeignKey]:
        return self._weak_associations.all()

    @property
    def table_references(self) -> List[ForeignKey]:
        """Declared foreign keys followed by weak associations."""
        return self.foreign_keys + self.weak_associations

    @property
    def imported_foreign_keys(self) -> List[ForeignKey]:
        return [fk for fk in self.foreign_keys if fk.foreign_key_table is self]

    @property
    def exported_foreign_keys(self) -> List[ForeignKey]:
        return [fk for fk in self.foreign_keys if fk.primary_key_table is self]

    def add_column(self, column: Column) -> Column:
        return self._columns.add(column.key, column)

    def lookup_column(self, key: NamedObjectKey) -> Optional[Column]:
        return self._columns.lookup(key)

    def add_foreign_key(self, foreign_key: ForeignKey) -> None:
        if foreign_key.is_weak:
            self._weak_associations.add(foreign_key.key, foreign_key)
        else:
            self._foreign_keys.add(foreign_key.key, foreign_key)

    def add_check_constraint(self, constraint: CheckConstraint) -> None:
        self.check_constraints.append(constraint)

    def add_trigger(self, trigger: Trigger) -> None:
        self.triggers.append(trigger)

    def add_privilege(self, privilege: Privilege) -> None:
        self.privileges.append(privilege)

    def __str__(self) -> str:
        return self.full_name


@dataclass
class CrawlInfo:
    """Information about the crawl and the database product."""
    crawl_timestamp: datetime = field(default_factory=datetime.now)
    product_name: str = ""
    product_version: str = ""
    driver_name: str = ""
