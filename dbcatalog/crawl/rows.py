"""Case-insensitive access to metadata result rows."""

from typing import Any, Dict, Iterable, Optional, Type, TypeVar

from ..errors import InvariantViolation

E = TypeVar("E")

_TRUE_VALUES = {"yes", "y", "true", "t", "1"}


class MetadataRow:
    """One result row of a data dictionary query or native metadata call.

    Column names are matched case-insensitively. Typed getters return
    None (or a default) for missing values and raise InvariantViolation
    for values of the wrong shape, so the calling retriever skips the row.
    """

    def __init__(self, category: str, values: Dict[str, Any]):
        self.category = category
        self._values = {str(k).lower(): v for k, v in values.items()}

    def get(self, *names: str) -> Any:
        """First non-null value among the given column names."""
        for name in names:
            value = self._values.get(name.lower())
            if value is not None:
                return value
        return None

    def get_string(self, *names: str) -> Optional[str]:
        value = self.get(*names)
        if value is None:
            return None
        return value if isinstance(value, str) else str(value)

    def get_int(self, *names: str, default: int = 0) -> int:
        value = self.get(*names)
        if value is None or (isinstance(value, str) and not value.strip()):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            raise InvariantViolation(
                self.category,
                f"Expected an integer in {names[0]}, got {value!r}",
                details={"column": names[0], "value": repr(value)},
            ) from None

    def get_bool(self, *names: str) -> bool:
        value = self.get(*names)
        if value is None:
            return False
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE_VALUES

    def get_enum(self, enum_type: Type[E], *names: str) -> E:
        """Parse an enum column; absent values parse to the enum's unknown member."""
        value = self.get(*names)
        try:
            return enum_type.parse(value)
        except ValueError as e:
            raise InvariantViolation(
                self.category,
                str(e),
                details={"column": names[0], "value": repr(value)},
            ) from None

    def attributes(self, known: Iterable[str]) -> Dict[str, Any]:
        """Values of columns not consumed by the retriever."""
        known_names = {name.lower() for name in known}
        return {
            name: value
            for name, value in self._values.items()
            if name not in known_names and value is not None
        }

    def __repr__(self) -> str:
        return f"MetadataRow({self.category}, {self._values!r})"
