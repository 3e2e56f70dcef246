"""
Receipt schemas.

Defines:
- RawImage / NormalizedImage: pipeline inputs between stages
- FieldMatches: raw pattern matches from recognized text
- ExtractedReceiptData: the pipeline result
"""

from .receipt import (
    DEFAULT_CATEGORY,
    EXPENSE_CATEGORIES,
    UNKNOWN_MERCHANT,
    ExtractedReceiptData,
    FieldMatches,
    NormalizedImage,
    RawImage,
    validate_category,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "EXPENSE_CATEGORIES",
    "UNKNOWN_MERCHANT",
    "ExtractedReceiptData",
    "FieldMatches",
    "NormalizedImage",
    "RawImage",
    "validate_category",
]
