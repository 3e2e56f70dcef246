"""
Receipt extraction pipeline.

Provides:
- ReceiptPipeline: image → ExtractedReceiptData (single or batch)
- ReceiptProcessor: pipeline run with receipt/expense record tracking
"""

from .orchestrator import ExtractionOutcome, ReceiptPipeline
from .processor import ProcessedReceipt, ReceiptProcessor

__all__ = [
    "ExtractionOutcome",
    "ProcessedReceipt",
    "ReceiptPipeline",
    "ReceiptProcessor",
]
