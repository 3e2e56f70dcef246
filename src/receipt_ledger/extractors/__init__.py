"""
Receipt field extractors.

Provides:
- extract_fields: total, date token and merchant from recognized text
- normalize_date: date token to YYYY-MM-DD with a today fallback

Both are pure and never raise on noisy input.
"""

from .dates import DEFAULT_DATE_FORMATS, normalize_date, parse_date_token
from .fields import (
    TOTAL_LABELS,
    extract_date_token,
    extract_fields,
    extract_merchant,
    extract_total,
)

__all__ = [
    "DEFAULT_DATE_FORMATS",
    "TOTAL_LABELS",
    "extract_date_token",
    "extract_fields",
    "extract_merchant",
    "extract_total",
    "normalize_date",
    "parse_date_token",
]
