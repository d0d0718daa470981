"""Weak association detection between database tables.

A weak association is a relationship implied by column naming, such as
``orders.customer_id`` and ``customers.id``, without a declared foreign
key. Detection is a pure function of the table set and the naming rules.
"""

import logging
import zlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from ..config import Settings
from ..database.catalog import Catalog
from ..database.models import Column, ForeignKey, ReferenceKind, Table
from ..database.type_mappers import GenericTypeMapper, TypeMapper

logger = logging.getLogger(__name__)

# Key column names too common to imply a relationship by themselves
GENERIC_KEY_NAMES = {"id", "key", "code"}


@dataclass(frozen=True)
class NamingRules:
    """Name transformations used when matching columns to tables."""

    key_suffixes: Tuple[str, ...] = ("_id", "id", "_key", "_code")
    table_prefixes: Tuple[str, ...] = ("tbl_", "t_")
    table_suffixes: Tuple[str, ...] = ("_master", "_dim", "_lookup", "_ref")

    @classmethod
    def from_settings(cls, settings: Settings) -> "NamingRules":
        return cls(
            key_suffixes=tuple(s.lower() for s in settings.weak_association_key_suffixes),
            table_prefixes=tuple(p.lower() for p in settings.weak_association_table_prefixes),
            table_suffixes=tuple(s.lower() for s in settings.weak_association_table_suffixes),
        )


@dataclass(eq=False)
class ProposedWeakAssociation:
    """A (primary key column, foreign key column) pair implied by naming."""

    primary_key_column: Column
    foreign_key_column: Column

    def __str__(self) -> str:
        return f"{self.foreign_key_column.full_name} ~~> {self.primary_key_column.full_name}"


def singular(word: str) -> str:
    if word.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if word.endswith(("sses", "xes", "ches", "shes")):
        return word[:-2]
    if word.endswith("s") and not word.endswith("ss") and len(word) > 1:
        return word[:-1]
    return word


def plural(word: str) -> str:
    if word.endswith("y") and len(word) > 1 and word[-2] not in "aeiou":
        return word[:-1] + "ies"
    if word.endswith(("s", "x", "ch", "sh")):
        return word + "es"
    return word + "s"


class WeakAssociationsAnalyzer:
    """Proposes weak associations between fully retrieved tables.

    For every column ending in a key suffix, the remaining stem is matched
    against table names (with prefixes, suffixes and plural forms
    normalized); a column that repeats another table's key column name
    also matches. Column pairs already covered by a declared foreign key
    are never proposed.
    """

    def __init__(
        self,
        tables: Sequence[Table],
        naming_rules: Optional[NamingRules] = None,
        type_mapper: Optional[TypeMapper] = None,
    ):
        self.naming_rules = naming_rules or NamingRules()
        self.type_mapper = type_mapper or GenericTypeMapper()
        self.tables = sorted(
            (t for t in tables if not t.is_partial and not t.is_view),
            key=lambda t: t.full_name,
        )
        self._key_suffixes = sorted(self.naming_rules.key_suffixes, key=len, reverse=True)
        self._tables_by_stem = self._index_table_stems()
        self._declared_pairs = self._collect_declared_pairs()

    def _table_stems(self, table: Table) -> Set[str]:
        """Names a referencing column may use for this table."""
        name = table.name.lower()
        stems = {name}
        for prefix in self.naming_rules.table_prefixes:
            if name.startswith(prefix) and len(name) > len(prefix):
                stems.add(name[len(prefix):])
        for stem in list(stems):
            for suffix in self.naming_rules.table_suffixes:
                if stem.endswith(suffix) and len(stem) > len(suffix):
                    stems.add(stem[:-len(suffix)])
        for stem in list(stems):
            stems.add(singular(stem))
            stems.add(plural(stem))
        return stems

    def _index_table_stems(self) -> Dict[str, List[Table]]:
        index: Dict[str, List[Table]] = {}
        for table in self.tables:
            for stem in sorted(self._table_stems(table)):
                index.setdefault(stem, []).append(table)
        return index

    def _collect_declared_pairs(self) -> Set[Tuple[int, int]]:
        pairs = set()
        for table in self.tables:
            for foreign_key in table.foreign_keys:
                for reference in foreign_key.column_references:
                    pairs.add((id(reference.primary_key_column), id(reference.foreign_key_column)))
        return pairs

    @staticmethod
    def _key_column(table: Table) -> Optional[Column]:
        """The single column another table would reference."""
        primary_key = [c for c in table.columns if c.is_part_of_primary_key]
        if len(primary_key) == 1:
            return primary_key[0]
        if primary_key:
            return None
        unique = [c for c in table.columns if c.is_part_of_unique_index]
        if len(unique) == 1:
            return unique[0]
        for column in table.columns:
            if column.name.lower() == "id":
                return column
        return None

    def _stem(self, column_name: str) -> Optional[str]:
        name = column_name.lower()
        for suffix in self._key_suffixes:
            if name.endswith(suffix) and len(name) > len(suffix):
                return name[:-len(suffix)].rstrip("_")
        return None

    def _candidate_tables(self, column: Column) -> List[Table]:
        candidates: List[Table] = []
        stem = self._stem(column.name)
        if stem:
            candidates.extend(self._tables_by_stem.get(stem, []))
        # Same column name as another table's key, e.g. customer_id in both
        name = column.name.lower()
        if name not in GENERIC_KEY_NAMES and not column.is_part_of_primary_key:
            for table in self.tables:
                key_column = self._key_column(table)
                if key_column is not None and key_column.name.lower() == name and table not in candidates:
                    candidates.append(table)
        return candidates

    def _matches(self, key_column: Column, column: Column) -> bool:
        if key_column is column:
            return False
        if (id(key_column), id(column)) in self._declared_pairs:
            return False
        return self.type_mapper.compatible(key_column.data_type, column.data_type)

    def analyze(self) -> List[ProposedWeakAssociation]:
        """Proposals ordered by referencing table, column position, then referenced table."""
        proposals: List[ProposedWeakAssociation] = []
        seen: Set[Tuple[int, int]] = set()

        for table in self.tables:
            for column in sorted(table.columns, key=lambda c: c.ordinal_position):
                if column.is_partial:
                    continue
                for target in self._candidate_tables(column):
                    if target is table:
                        continue
                    key_column = self._key_column(target)
                    if key_column is None or not self._matches(key_column, column):
                        continue
                    pair = (id(key_column), id(column))
                    if pair in seen:
                        continue
                    seen.add(pair)
                    proposals.append(ProposedWeakAssociation(key_column, column))

        logger.debug("Proposed %d weak associations", len(proposals))
        return proposals


def analyze(
    tables: Sequence[Table],
    naming_rules: Optional[NamingRules] = None,
    type_mapper: Optional[TypeMapper] = None,
) -> List[ProposedWeakAssociation]:
    """Propose weak associations for a set of tables."""
    return WeakAssociationsAnalyzer(tables, naming_rules, type_mapper).analyze()


def _checksum(text: str) -> str:
    return f"{zlib.crc32(text.encode('utf-8')) & 0xFFFFFFFF:08X}"


def build_weak_association(catalog: Catalog, proposal: ProposedWeakAssociation) -> ForeignKey:
    """Turn a proposal into a weak association linked onto both tables."""
    pk_column = proposal.primary_key_column
    fk_column = proposal.foreign_key_column
    name = f"SCWA_{_checksum(pk_column.full_name)}_{_checksum(fk_column.full_name)}"
    key = fk_column.table.schema.key.with_name(name)

    association = ForeignKey(
        name=name,
        specific_name=name,
        key=key,
        kind=ReferenceKind.WEAK,
    )
    association = catalog.add_weak_association(association)
    association.add_column_reference(1, pk_column, fk_column)
    catalog.link_foreign_key(association)
    logger.info("Adding weak association %s", proposal)
    return association


@dataclass
class WeakAssociationsLoader:
    """Analyzes a catalog's tables and links the resulting weak associations."""

    catalog: Catalog
    naming_rules: NamingRules = field(default_factory=NamingRules)
    type_mapper: Optional[TypeMapper] = None

    def load(self) -> List[ForeignKey]:
        proposals = analyze(self.catalog.tables, self.naming_rules, self.type_mapper)
        return [build_weak_association(self.catalog, p) for p in proposals]
