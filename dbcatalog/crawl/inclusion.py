"""Inclusion rules over fully qualified object names."""

import re
from dataclasses import dataclass
from typing import Optional, Pattern

from ..config import Settings


class InclusionRule:
    """A name is included when it matches the include pattern and not the exclude pattern."""

    def __init__(self, include: Optional[str] = ".*", exclude: Optional[str] = None):
        self.include: Pattern = re.compile(include or ".*")
        self.exclude: Optional[Pattern] = re.compile(exclude) if exclude else None

    def test(self, full_name: Optional[str]) -> bool:
        name = full_name or ""
        if not self.include.fullmatch(name):
            return False
        if self.exclude is not None and self.exclude.fullmatch(name):
            return False
        return True

    def __repr__(self) -> str:
        exclude = self.exclude.pattern if self.exclude else None
        return f"InclusionRule(include={self.include.pattern!r}, exclude={exclude!r})"


@dataclass
class InclusionRules:
    schemas: InclusionRule
    tables: InclusionRule
    columns: InclusionRule

    @classmethod
    def include_all(cls) -> "InclusionRules":
        return cls(InclusionRule(), InclusionRule(), InclusionRule())

    @classmethod
    def from_settings(cls, settings: Settings) -> "InclusionRules":
        return cls(
            schemas=InclusionRule(settings.schema_include, settings.schema_exclude),
            tables=InclusionRule(settings.table_include, settings.table_exclude),
            columns=InclusionRule(settings.column_include, settings.column_exclude),
        )
