"""Name normalization and composite lookup keys."""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import IdentifierCase


@dataclass(frozen=True)
class NamedObjectKey:
    """Normalized (catalog, schema, name, ...) identity used as a map key.

    Absent catalog or schema parts are stored as None, so keys built from
    blank strings and keys built from nulls compare equal.
    """
    parts: Tuple[Optional[str], ...] = ()

    def with_name(self, name: Optional[str]) -> "NamedObjectKey":
        """Extend this key with one more (already normalized) part."""
        return NamedObjectKey(self.parts + (name,))

    @property
    def catalog_name(self) -> Optional[str]:
        return self.parts[0] if len(self.parts) > 0 else None

    @property
    def schema_name(self) -> Optional[str]:
        return self.parts[1] if len(self.parts) > 1 else None

    @property
    def name(self) -> Optional[str]:
        return self.parts[-1] if self.parts else None

    def is_empty(self) -> bool:
        return not any(self.parts)

    def __str__(self) -> str:
        return ".".join(p for p in self.parts if p)


class NameNormalizer:
    """Canonicalizes catalog, schema and object names.

    The case rule defaults to the target database's own rule and can be
    overridden from settings.
    """

    def __init__(self, identifier_case: IdentifierCase = IdentifierCase.PRESERVE):
        self.identifier_case = identifier_case

    def normalize_container_name(self, name: Optional[str]) -> Optional[str]:
        """Normalize a catalog or schema name; blank and null both mean absent."""
        if name is None:
            return None
        if not isinstance(name, str):
            name = str(name)
        name = name.strip()
        if not name:
            return None
        return self._fold(name)

    def normalize_name(self, name: Optional[str]) -> Optional[str]:
        """Normalize an object name for comparison."""
        if name is None:
            return None
        if not isinstance(name, str):
            name = str(name)
        if not name.strip():
            return None
        return self._fold(name)

    def _fold(self, name: str) -> str:
        if self.identifier_case == IdentifierCase.UPPER:
            return name.upper()
        if self.identifier_case == IdentifierCase.LOWER:
            return name.lower()
        return name

    def schema_key(self, catalog_name: Optional[str], schema_name: Optional[str]) -> NamedObjectKey:
        return NamedObjectKey((
            self.normalize_container_name(catalog_name),
            self.normalize_container_name(schema_name),
        ))

    def key(
        self,
        catalog_name: Optional[str],
        schema_name: Optional[str],
        *names: Optional[str],
    ) -> NamedObjectKey:
        """Build a key for an object inside a schema.

        Returns an empty key when any of the object names is missing.
        """
        normalized = tuple(self.normalize_name(n) for n in names)
        if not normalized or any(n is None for n in normalized):
            return NamedObjectKey()
        return NamedObjectKey(self.schema_key(catalog_name, schema_name).parts + normalized)
