"""
Unit tests for the product sheet parser.
"""

from datetime import datetime
from io import BytesIO
import pytest
import pandas as pd

from parsers.product_sheet_parser import (
    TEMPLATE_COLUMNS,
    normalize_header,
    parse_product_sheet,
    product_template_csv,
)
from exceptions import SheetParseError


def create_excel_file(rows: list[dict], columns: list[str]) -> bytes:
    """Helper to create test Excel files in memory."""
    output = BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        pd.DataFrame(rows, columns=columns).to_excel(writer, sheet_name="Products", index=False)
    return output.getvalue()


# ===================
# CSV
# ===================

class TestCsvParsing:

    def test_rows_numbered_and_headers_normalized(self):
        content = (
            "Name,Category,Supplier,Quantity,Cost Price,Expiry Date\n"
            "Milk,Dairy,Acme,10,1.20,2025-01-01\n"
            ",,,,,\n"
            "Yogurt,dairy,Acme,5,1,2025-02-01\n"
        ).encode()

        rows = parse_product_sheet(content, "products.csv")

        assert [r.index for r in rows] == [1, 2]
        assert rows[0].values["name"] == "Milk"
        assert rows[0].values["cost_price"] == "1.20"
        assert rows[1].values["expiry_date"] == "2025-02-01"

    def test_blank_cells_become_none(self):
        content = "name,category,barcode\nMilk,Dairy,\n".encode()

        rows = parse_product_sheet(content, "products.csv")

        assert rows[0].values["barcode"] is None

    def test_barcode_kept_as_text(self):
        content = "name,barcode\nMilk,0012345\n".encode()

        rows = parse_product_sheet(content, "products.csv")

        assert rows[0].values["barcode"] == "0012345"

    def test_empty_file(self):
        assert parse_product_sheet(b"", "products.csv") == []


# ===================
# EXCEL
# ===================

class TestExcelParsing:

    def test_first_sheet_read(self):
        content = create_excel_file(
            [
                {"Name": "Milk", "Quantity": 10, "Expiry Date": datetime(2025, 1, 1)},
                {"Name": "Cheese", "Quantity": 3, "Expiry Date": datetime(2025, 3, 1)},
            ],
            ["Name", "Quantity", "Expiry Date"],
        )

        rows = parse_product_sheet(content, "upload.xlsx")

        assert len(rows) == 2
        assert rows[0].values["name"] == "Milk"
        assert rows[0].values["quantity"] == 10
        assert rows[1].values["expiry_date"].year == 2025

    def test_corrupt_workbook(self):
        with pytest.raises(SheetParseError) as exc_info:
            parse_product_sheet(b"not a workbook", "upload.xlsx")

        assert exc_info.value.code == "SHEET_PARSE_ERROR"


class TestUnsupported:

    @pytest.mark.parametrize("filename", ["products.xls", "products.txt", None])
    def test_unsupported_extension(self, filename):
        with pytest.raises(SheetParseError):
            parse_product_sheet(b"name\nMilk\n", filename)


# ===================
# HEADERS AND TEMPLATE
# ===================

class TestHeaders:

    @pytest.mark.parametrize("header, expected", [
        ("Cost Price", "cost_price"),
        ("  Expiry Date ", "expiry_date"),
        ("halal_certified", "halal_certified"),
        ("Min. Stock Level", "min_stock_level"),
    ])
    def test_normalize_header(self, header, expected):
        assert normalize_header(header) == expected


class TestTemplate:

    def test_template_round_trips_through_parser(self):
        csv_text = product_template_csv()

        rows = parse_product_sheet(csv_text.encode(), "template.csv")

        assert csv_text.splitlines()[0] == ",".join(TEMPLATE_COLUMNS)
        assert len(rows) == 1
        assert rows[0].values["name"] == "Chicken Breast 1kg"
        assert rows[0].values["barcode"] is None
        assert rows[0].values["halal_certification_body"] == "JAKIM"
