"""
Spending category classification (fixed, ordered keyword rules).
"""

from .classifier import CATEGORY_KEYWORDS, CategoryClassifier, KeywordTable, classify

__all__ = [
    "CATEGORY_KEYWORDS",
    "CategoryClassifier",
    "KeywordTable",
    "classify",
]
