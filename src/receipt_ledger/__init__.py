"""
Receipt photo → OCR → structured expense record

A deterministic, testable pipeline that turns a photographed receipt into
a best-effort expense record (total, date, merchant, category) that the
user reviews and edits before saving.
"""

__version__ = "0.1.0"
