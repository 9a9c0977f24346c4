"""
File parsers for bulk uploads.
"""

from parsers.product_sheet_parser import (
    parse_product_sheet,
    product_template_csv,
    normalize_header,
)

__all__ = [
    "parse_product_sheet",
    "product_template_csv",
    "normalize_header",
]
