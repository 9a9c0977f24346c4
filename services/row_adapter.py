"""
Row adapter: maps the known source row shapes onto canonical field names.

Spreadsheet uploads carry ``category``/``supplier``; rows built by the
name-based product API carry ``category_name``/``supplier_name``; order
payloads carry ``items``. Each shape has a fixed alias table, so the
validator only ever sees canonical keys.
"""

from enum import Enum
from typing import Any, Mapping
import math

from models.imports import CandidateRow


class RowShape(str, Enum):
    """Known source shapes of an import row."""
    SPREADSHEET = "spreadsheet"
    NAMED_REFERENCES = "named_references"
    ORDER_PAYLOAD = "order_payload"


# alias -> canonical key, per shape
SHAPE_ALIASES: dict[RowShape, dict[str, str]] = {
    RowShape.SPREADSHEET: {},
    RowShape.NAMED_REFERENCES: {
        "category_name": "category",
        "supplier_name": "supplier",
    },
    RowShape.ORDER_PAYLOAD: {},
}

# Store columns are dropped: rows never choose their own store
IGNORED_COLUMNS = {"supermarket", "supermarket_id", "supermarket_name", "store", "store_id"}


def detect_shape(values: Mapping[str, Any]) -> RowShape:
    """Pick the source shape of a raw row."""
    if "items" in values:
        return RowShape.ORDER_PAYLOAD
    if "category_name" in values or "supplier_name" in values:
        return RowShape.NAMED_REFERENCES
    return RowShape.SPREADSHEET


def is_blank(value: Any) -> bool:
    """True for None, NaN and whitespace-only strings (empty spreadsheet cells)."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _clean_value(value: Any) -> Any:
    if is_blank(value):
        return None
    if isinstance(value, str):
        return value.strip()
    return value


def adapt_row(row: CandidateRow) -> CandidateRow:
    """
    Return a copy of ``row`` with canonical keys and cleaned cells.

    Canonical keys win when a row carries both spellings.
    """
    shape = detect_shape(row.values)
    aliases = SHAPE_ALIASES[shape]

    adapted: dict[str, Any] = {}
    for key, value in row.values.items():
        key = str(key).strip()
        if key in IGNORED_COLUMNS:
            continue
        canonical = aliases.get(key, key)
        cleaned = _clean_value(value)
        if canonical != key:
            # alias only fills a gap left by the canonical column
            if adapted.get(canonical) is None:
                adapted[canonical] = cleaned
        elif cleaned is not None or canonical not in adapted:
            adapted[canonical] = cleaned

    return CandidateRow(index=row.index, values=adapted)
