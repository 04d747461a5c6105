"""
Text utilities for sheet cell values.

Hebrew sheets often carry invisible bidi marks (RLM/LRM) copied in from
phones and messaging apps; these break exact matching on container numbers
and customer keys.
"""

import re
import unicodedata
from typing import Any, Optional


# Bidi control characters that render as nothing
_BIDI_MARKS = dict.fromkeys(map(ord, "\u200e\u200f\u202a\u202b\u202c\u202d\u202e\u2066\u2067\u2068\u2069"))

_WHITESPACE_RUN = re.compile(r"\s+")


def clean_cell(value: Any) -> Optional[str]:
    """
    Clean a raw sheet cell into a string.

    - None / NaN / empty -> None
    - Strips bidi marks and collapses whitespace
    - Floats that are whole numbers lose the ".0" pandas adds ("1234.0" -> "1234")

    Args:
        value: Raw cell value

    Returns:
        Cleaned string, or None if empty
    """
    if value is None:
        return None
    if isinstance(value, float):
        if value != value:  # NaN
            return None
        if value.is_integer():
            value = int(value)

    text = unicodedata.normalize("NFC", str(value)).translate(_BIDI_MARKS)
    text = _WHITESPACE_RUN.sub(" ", text).strip()

    return text or None


def build_customer_key(name: Optional[str], phone: Optional[str]) -> str:
    """
    Composite customer identity: "{name}_{phone}".

    Args:
        name: Customer name
        phone: Customer phone (may be empty)

    Returns:
        Customer key string
    """
    return f"{name or ''}_{phone or ''}"
