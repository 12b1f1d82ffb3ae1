"""Alias-driven mapping of raw export rows onto canonical trade fields."""

from collections.abc import Callable, Mapping, Sequence
from typing import Any

# An alias is a single column name, an ordered list of candidate columns
# (first non-empty wins), or a function deriving the value from the whole row.
FieldAlias = str | Sequence[str] | Callable[[Mapping[str, Any]], Any]
FieldMapping = Mapping[str, FieldAlias]


def normalize_header(name: str) -> str:
    """Header comparison key: case-, whitespace- and underscore-insensitive."""
    return "".join(str(name).replace("_", " ").split()).lower()


class _HeaderIndex:
    """Column lookup that tolerates case and spacing differences in headers."""

    def __init__(self, row: Mapping[str, Any]):
        self.row = row
        self._normalized: dict[str, str] | None = None

    def __contains__(self, column: str) -> bool:
        return self.key_for(column) is not None

    def key_for(self, column: str) -> str | None:
        if column in self.row:
            return column
        if self._normalized is None:
            self._normalized = {}
            for key in self.row:
                self._normalized.setdefault(normalize_header(key), key)
        return self._normalized.get(normalize_header(column))

    def get(self, column: str) -> Any:
        key = self.key_for(column)
        return None if key is None else self.row[key]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _resolve(index: _HeaderIndex, alias: FieldAlias) -> tuple[bool, Any]:
    if callable(alias):
        return True, alias(index.row)

    if isinstance(alias, str):
        if alias in index:
            return True, index.get(alias)
        return False, None

    for column in alias:
        value = index.get(column)
        if not _is_blank(value):
            return True, value
    return False, None


def resolve_field(row: Mapping[str, Any], alias: FieldAlias) -> Any:
    """Resolve a single alias against a row, returning None when unresolved."""
    _, value = _resolve(_HeaderIndex(row), alias)
    return value


def map_trade_fields(row: Mapping[str, Any], field_mapping: FieldMapping) -> dict[str, Any]:
    """Map a raw row onto canonical trade fields.

    Fields that cannot be resolved are left out of the result; that is not
    an error at this stage.

    Args:
        row: Raw row keyed by the export's column headers
        field_mapping: Canonical field name -> alias

    Returns:
        Partial mapping of canonical field name to raw value
    """
    index = _HeaderIndex(row)
    mapped: dict[str, Any] = {}
    for trade_field, alias in field_mapping.items():
        found, value = _resolve(index, alias)
        if found:
            mapped[trade_field] = value
    return mapped
