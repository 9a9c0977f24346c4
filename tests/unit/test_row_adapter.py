"""
Unit tests for the row shape adapter.
"""

import pytest

from models.imports import CandidateRow
from services.row_adapter import RowShape, adapt_row, detect_shape, is_blank


class TestDetectShape:

    def test_spreadsheet(self):
        assert detect_shape({"name": "Milk", "category": "Dairy"}) == RowShape.SPREADSHEET

    def test_named_references(self):
        assert detect_shape({"name": "Milk", "supplier_name": "Acme"}) == RowShape.NAMED_REFERENCES

    def test_order_payload(self):
        assert detect_shape({"items": []}) == RowShape.ORDER_PAYLOAD


class TestAdaptRow:
    """Canonical keys and cleaned cells."""

    def test_aliases_mapped(self):
        adapted = adapt_row(CandidateRow(1, {"category_name": "Dairy", "supplier_name": " Acme "}))

        assert adapted.values == {"category": "Dairy", "supplier": "Acme"}

    def test_canonical_key_wins_over_alias(self):
        adapted = adapt_row(CandidateRow(1, {"category_name": "Bakery", "category": "Dairy"}))

        assert adapted.values["category"] == "Dairy"

    def test_alias_fills_blank_canonical(self):
        adapted = adapt_row(CandidateRow(1, {"category": "  ", "category_name": "Dairy"}))

        assert adapted.values["category"] == "Dairy"

    def test_store_columns_dropped(self):
        adapted = adapt_row(CandidateRow(3, {"name": "Milk", "supermarket_id": "x", "store": "y"}))

        assert adapted.values == {"name": "Milk"}
        assert adapted.index == 3

    def test_original_row_untouched(self):
        original = CandidateRow(1, {"category_name": "Dairy"})

        adapt_row(original)

        assert original.values == {"category_name": "Dairy"}


class TestIsBlank:

    @pytest.mark.parametrize("value", [None, float("nan"), "", "   "])
    def test_blank(self, value):
        assert is_blank(value)

    @pytest.mark.parametrize("value", [0, 0.0, False, "x"])
    def test_not_blank(self, value):
        assert not is_blank(value)
