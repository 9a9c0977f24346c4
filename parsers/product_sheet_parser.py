"""
Product sheet parser for bulk uploads.

Reads an Excel workbook (first sheet) or a CSV file into CandidateRows that
the batch importer consumes. No validation happens here beyond reading the
file: bad cells are reported per row by the importer.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union
import re
import structlog

import pandas as pd

from exceptions import SheetParseError
from models.imports import CandidateRow
from services.row_adapter import is_blank

logger = structlog.get_logger(__name__)


EXCEL_EXTENSIONS = {".xlsx", ".xlsm"}
CSV_EXTENSIONS = {".csv"}

TEMPLATE_COLUMNS = [
    "name",
    "category",
    "supplier",
    "brand",
    "quantity",
    "cost_price",
    "selling_price",
    "expiry_date",
    "weight",
    "origin",
    "description",
    "barcode",
    "halal_certified",
    "halal_certification_body",
    "location",
]

# Barcode left empty so the backend generates one
TEMPLATE_EXAMPLE_ROW = {
    "name": "Chicken Breast 1kg",
    "category": "Meat",
    "supplier": "Fresh Farms Ltd",
    "brand": "Fresh Farms",
    "quantity": 50,
    "cost_price": 8.50,
    "selling_price": 12.99,
    "expiry_date": "2024-12-25",
    "weight": "1kg",
    "origin": "Malaysia",
    "description": "Fresh halal chicken breast",
    "barcode": "",
    "halal_certified": "true",
    "halal_certification_body": "JAKIM",
    "location": "Freezer Section A",
}


FileInput = Union[bytes, BytesIO, str, Path]


def parse_product_sheet(
    file: FileInput,
    filename: Optional[str] = None
) -> list[CandidateRow]:
    """
    Parse an uploaded product sheet.

    Args:
        file: Raw bytes, file-like object, or path
        filename: Original file name; decides CSV vs Excel. Defaults to the
            path name when ``file`` is a path.

    Returns:
        CandidateRows numbered from 1, fully blank rows skipped

    Raises:
        SheetParseError: Unsupported extension or unreadable file
    """
    if filename is None and isinstance(file, (str, Path)):
        filename = str(file)
    extension = Path(filename or "").suffix.lower()

    if isinstance(file, bytes):
        file = BytesIO(file)

    logger.info("parsing_product_sheet", filename=filename, extension=extension)

    if extension in EXCEL_EXTENSIONS:
        df = _read(lambda: pd.read_excel(file, engine="openpyxl", dtype=object), filename)
    elif extension in CSV_EXTENSIONS:
        df = _read(lambda: pd.read_csv(file, dtype=object, skipinitialspace=True), filename)
    else:
        raise SheetParseError(
            "Unsupported file type, upload a .csv or .xlsx file",
            details={"filename": filename}
        )

    df.columns = [normalize_header(col) for col in df.columns]

    rows: list[CandidateRow] = []
    for record in df.to_dict(orient="records"):
        values = {
            key: (None if is_blank(value) else value)
            for key, value in record.items()
            if key
        }
        if all(v is None for v in values.values()):
            continue
        rows.append(CandidateRow(index=len(rows) + 1, values=values))

    logger.info("product_sheet_parsed", filename=filename, rows=len(rows))

    return rows


def _read(reader, filename: Optional[str]) -> pd.DataFrame:
    try:
        return reader()
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except Exception as e:
        logger.error("product_sheet_read_failed", filename=filename, error=str(e))
        raise SheetParseError(
            "Failed to read file",
            details={"filename": filename, "original_error": str(e)}
        )


def normalize_header(col) -> str:
    """
    Normalize a header cell to a field name.

    "Cost Price" -> "cost_price"
    "Expiry Date (YYYY-MM-DD)" -> "expiry_date_yyyy_mm_dd"
    """
    col = str(col).strip().lower()
    col = re.sub(r"[^0-9a-z]+", "_", col)
    return col.strip("_")


def product_template_csv() -> str:
    """Downloadable import template: header plus one example row."""
    df = pd.DataFrame([TEMPLATE_EXAMPLE_ROW], columns=TEMPLATE_COLUMNS)
    return df.to_csv(index=False)
