"""
Schema validator for import rows.

One validator per import kind, chosen once per batch with get_validator().
Validation never raises on bad data: it returns a ValidationResult listing
every failing field, and the importer turns that into a row failure.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Optional
import math
import re
import structlog

import pandas as pd

from exceptions import RowValidationError
from models.imports import CandidateRow, ImportKind
from services.row_adapter import is_blank

logger = structlog.get_logger(__name__)


DATE_FORMATS = ["%Y-%m-%d", "%d/%m/%Y", "%m/%d/%Y", "%Y/%m/%d"]

# Free-text dates must name day, month and a four-digit year
MIN_DATE_YEAR = 1900
DATE_TOKEN = re.compile(r"[A-Za-z]+|\d+")

PRODUCT_TEXT_FIELDS = [
    "brand",
    "weight",
    "origin",
    "barcode",
    "description",
    "location",
    "halal_certification_body",
]

ORDER_TEXT_FIELDS = [
    "external_order_id",
    "customer_name",
    "customer_email",
    "customer_phone",
    "notes",
]


@dataclass
class FieldError:
    """Single failing field."""
    field: str
    error: str


@dataclass
class ValidationResult:
    """Outcome of validating one row."""
    row_index: int
    values: dict[str, Any] = field(default_factory=dict)
    errors: list[FieldError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def fields(self) -> list[str]:
        """Failing field names, in order of first failure."""
        seen: list[str] = []
        for e in self.errors:
            if e.field not in seen:
                seen.append(e.field)
        return seen

    def add(self, field_name: str, error: str) -> None:
        self.errors.append(FieldError(field=field_name, error=error))

    def raise_for_errors(self) -> None:
        """Raise RowValidationError if any field failed."""
        if self.errors:
            raise RowValidationError(
                self.fields,
                [{"field": e.field, "error": e.error} for e in self.errors]
            )


# ===================
# VALIDATORS
# ===================

class RowValidator:
    """Base class: one subclass per ImportKind."""

    kind: ImportKind

    def validate(self, row: CandidateRow) -> ValidationResult:
        raise NotImplementedError


class ProductRowValidator(RowValidator):
    """
    Product-import row contract.

    Required: name, category, supplier, quantity (>= 0), expiry_date, and at
    least one positive cost_price/selling_price.
    Optional: price (>= 0), min_stock_level (integer >= 0), free-text columns.
    """

    kind = ImportKind.PRODUCT

    def validate(self, row: CandidateRow) -> ValidationResult:
        values = row.values
        result = ValidationResult(row_index=row.index)
        out = result.values

        for name in ("name", "category", "supplier"):
            text = _as_text(values.get(name))
            if text is None:
                result.add(name, "Required field is empty")
            else:
                out[name] = text

        quantity = values.get("quantity")
        if is_blank(quantity):
            result.add("quantity", "Required field is empty")
        else:
            parsed = _parse_number(quantity)
            if parsed is None or parsed < 0:
                result.add("quantity", "Must be a non-negative number")
            else:
                out["quantity"] = parsed

        positive_price = False
        for name in ("cost_price", "selling_price"):
            raw = values.get(name)
            if is_blank(raw):
                out[name] = None
                continue
            parsed = _parse_number(raw)
            if parsed is None or parsed < 0:
                result.add(name, "Must be a non-negative number")
                continue
            out[name] = parsed
            positive_price = positive_price or parsed > 0
        if not positive_price and not any(e.field in ("cost_price", "selling_price") for e in result.errors):
            result.add("cost_price/selling_price", "At least one price must be a positive number")

        expiry = values.get("expiry_date")
        parsed_date = parse_date(expiry)
        if parsed_date is None:
            result.add("expiry_date", "Invalid or missing date (expected YYYY-MM-DD)")
        else:
            out["expiry_date"] = parsed_date

        price = values.get("price")
        if is_blank(price):
            out["price"] = None
        else:
            parsed = _parse_number(price)
            if parsed is None or parsed < 0:
                result.add("price", "Must be a non-negative number")
            else:
                out["price"] = parsed

        min_stock = values.get("min_stock_level")
        if is_blank(min_stock):
            out["min_stock_level"] = None
        else:
            parsed = _parse_number(min_stock)
            if parsed is None or parsed < 0 or parsed != int(parsed):
                result.add("min_stock_level", "Must be a whole non-negative number")
            else:
                out["min_stock_level"] = int(parsed)

        out["halal_certified"] = values.get("halal_certified")
        for name in PRODUCT_TEXT_FIELDS:
            out[name] = _as_text(values.get(name))

        return result


class OrderRowValidator(RowValidator):
    """
    Order-import row contract.

    Required: items, a non-empty list where every item has product
    (non-empty string), quantity (number) and unit_price (number). Numbers
    must be real JSON numbers; numeric strings are rejected.
    """

    kind = ImportKind.ORDER

    def validate(self, row: CandidateRow) -> ValidationResult:
        values = row.values
        result = ValidationResult(row_index=row.index)
        out = result.values

        items = values.get("items")
        if not isinstance(items, list) or not items:
            result.add("items", "Must be a non-empty list")
        else:
            cleaned_items = []
            for position, item in enumerate(items, start=1):
                label = f"items[{position}]"
                if not isinstance(item, dict):
                    result.add(label, "Must be an object")
                    continue

                product = item.get("product")
                if not isinstance(product, str) or not product.strip():
                    result.add(f"{label}.product", "Must be a non-empty string")
                for name in ("quantity", "unit_price"):
                    if not _is_json_number(item.get(name)):
                        result.add(f"{label}.{name}", "Must be a number")

                if isinstance(product, str) and product.strip():
                    cleaned_items.append({
                        "product": product.strip(),
                        "quantity": item.get("quantity"),
                        "unit_price": item.get("unit_price"),
                    })
            out["items"] = cleaned_items

        for name in ORDER_TEXT_FIELDS:
            out[name] = _as_text(values.get(name))

        return result


VALIDATORS: dict[ImportKind, RowValidator] = {
    ImportKind.PRODUCT: ProductRowValidator(),
    ImportKind.ORDER: OrderRowValidator(),
}


def get_validator(kind: ImportKind) -> RowValidator:
    """Validator for one import kind."""
    return VALIDATORS[ImportKind(kind)]


def validate(row: CandidateRow, kind: ImportKind) -> ValidationResult:
    """Validate one row against the contract of ``kind``."""
    result = get_validator(kind).validate(row)
    if not result.valid:
        logger.debug(
            "row_validation_failed",
            row=row.index,
            kind=ImportKind(kind).value,
            fields=result.fields
        )
    return result


# ===================
# HELPER FUNCTIONS
# ===================

def parse_date(value) -> Optional[date]:
    """Parse various date formats to date object."""
    if is_blank(value):
        return None

    # Already a date/datetime (pandas Timestamp is a datetime)
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    try:
        value_str = str(value).strip()
        for fmt in DATE_FORMATS:
            try:
                return datetime.strptime(value_str, fmt).date()
            except ValueError:
                continue
        # Try pandas parsing as fallback
        tokens = DATE_TOKEN.findall(value_str)
        if len(tokens) < 3 or not any(len(t) == 4 and t.isdigit() for t in tokens):
            return None
        parsed = pd.to_datetime(value_str, errors="coerce")
        if pd.isna(parsed) or parsed.year < MIN_DATE_YEAR:
            return None
        return parsed.date()
    except (ValueError, TypeError, OverflowError):
        return None


def _parse_number(value) -> Optional[float]:
    """Spreadsheet-tolerant number parsing: numbers and numeric strings."""
    if isinstance(value, bool) or is_blank(value):
        return None
    try:
        num = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def _is_json_number(value) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not (math.isnan(value) or math.isinf(value))


def _as_text(value) -> Optional[str]:
    """Cell value as text; integral floats lose their trailing '.0'."""
    if is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()
