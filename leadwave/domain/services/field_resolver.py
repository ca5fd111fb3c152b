"""
Field Resolver
Maps heterogeneous spreadsheet column names to canonical lead fields.

Resolution order for each canonical field:
1. Column mapping entry naming a column present in the file (if its cell is non-empty)
2. Column mapping entry holding a literal value
3. Ordered header aliases (exact, then case/punctuation-insensitive)
4. Empty string

The alias table is configuration data (config/default.yaml,
lead_import.field_aliases) loaded through ConfigManager.get_field_aliases().
"""
import math
import re
from typing import Any, Dict, List, Mapping, Optional


CANONICAL_FIELDS = (
    "first_name",
    "last_name",
    "phone",
    "email",
    "alt_phone",
    "lead_source",
    "tag",
    "platform",
    "activity",
)

# Placeholder the UI sends for "no column selected"
COLUMN_PLACEHOLDER = "csv_column"

# Mapping keys the UI sends, by canonical field
MAPPING_KEYS: Dict[str, List[str]] = {
    "first_name": ["first_name", "firstName"],
    "last_name": ["last_name", "lastName"],
    "phone": ["phone"],
    "email": ["email"],
    "alt_phone": ["alt_phone", "altPhone"],
    "lead_source": ["lead_source", "leadSource"],
    "tag": ["tag"],
    "platform": ["platform"],
    "activity": ["activity"],
}


def _loose(header: str) -> str:
    return re.sub(r"[^a-z0-9]", "", header.lower())


def clean_value(value: Any) -> str:
    """Stringify a raw cell value; None and NaN become empty strings"""
    if value is None:
        return ""
    if isinstance(value, float):
        if math.isnan(value):
            return ""
        if value.is_integer():
            # Spreadsheet engines hand back phone numbers as floats
            return str(int(value))
    return str(value).strip()


class FieldResolver:
    """
    Resolves canonical lead fields from one raw row.

    Args:
        aliases: Canonical field -> ordered header spellings, as returned by
            ConfigManager.get_field_aliases(). Without a table only the
            column mapping is consulted.
    """

    def __init__(self, aliases: Optional[Mapping[str, List[str]]] = None):
        self.aliases: Dict[str, List[str]] = {
            name: list(headers)
            for name, headers in (aliases or {}).items()
            if name in CANONICAL_FIELDS and headers
        }

    def resolve(
        self,
        row: Mapping[str, Any],
        mapping: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, str]:
        """
        Produce the best-available raw value for every canonical field.

        Args:
            row: Column label -> raw cell value
            mapping: Canonical field -> source column (or literal value)

        Returns:
            Canonical field -> raw string (possibly empty)
        """
        mapping = mapping or {}
        loose_headers = {}
        for header in row:
            loose_headers.setdefault(_loose(str(header)), header)

        return {
            name: self._resolve_field(name, row, mapping, loose_headers)
            for name in CANONICAL_FIELDS
        }

    def _resolve_field(
        self,
        name: str,
        row: Mapping[str, Any],
        mapping: Mapping[str, Any],
        loose_headers: Dict[str, str],
    ) -> str:
        literal = None

        for key in MAPPING_KEYS[name]:
            for candidate_key in (key, f"{key}_csv"):
                target = mapping.get(candidate_key)
                if target is None or target == "" or target == COLUMN_PLACEHOLDER:
                    continue
                if isinstance(target, str) and target in row:
                    value = clean_value(row[target])
                    if value:
                        return value
                    # Blank mapped cell: fall through to the header aliases
                    continue
                if literal is None and candidate_key == key:
                    literal = clean_value(target)

        if literal:
            return literal

        for header in self.aliases.get(name, []):
            if header in row:
                value = clean_value(row[header])
                if value:
                    return value

        for header in self.aliases.get(name, []):
            original = loose_headers.get(_loose(header))
            if original is not None:
                value = clean_value(row[original])
                if value:
                    return value

        return ""
