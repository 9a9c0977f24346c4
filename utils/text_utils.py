"""
Text utilities for matching free-text names typed into spreadsheets.

Used for category/supplier reference keys and customer name cleanup.
"""

import unicodedata
from typing import Any, Optional


def normalize_reference_name(name: Optional[str]) -> Optional[str]:
    """
    Normalize a category or supplier name into a lookup key.

    - "Beverages" → "beverages"
    - "  beverages " → "beverages"
    - "STRASSE" and "Straße" → "strasse"

    Args:
        name: Name as typed in the row (may have padding, mixed case)

    Returns:
        Trimmed, case-folded key, or None if input is empty
    """
    if name is None:
        return None

    name = str(name).strip()

    if not name:
        return None

    # NFC so composed and decomposed accents compare equal
    return unicodedata.normalize("NFC", name).casefold()


def clean_text(value: Any, max_length: int = 255) -> Optional[str]:
    """
    Clean a free-text cell for storage.

    - Strips whitespace
    - Truncates to max length
    - Returns None for empty/whitespace-only strings

    Args:
        value: Raw cell value
        max_length: Maximum characters to store

    Returns:
        Cleaned text or None
    """
    if value is None:
        return None

    text = str(value).strip()

    if not text:
        return None

    if len(text) > max_length:
        text = text[:max_length]

    return text
