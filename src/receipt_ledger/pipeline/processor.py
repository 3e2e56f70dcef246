"""
Receipt processing with record tracking.

Wraps the pipeline with the host-side record lifecycle:
    uploading → processing → completed | failed

Nothing is written between "processing" and the terminal status.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..errors import ReceiptError
from ..schemas.receipt import (
    DEFAULT_CATEGORY,
    ExtractedReceiptData,
    RawImage,
    validate_category,
)
from ..state_store import ExpenseRecord, ReceiptStatus, ReceiptStore
from .orchestrator import ReceiptPipeline

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessedReceipt:
    """A completed receipt record and its extraction."""

    receipt_id: int
    data: ExtractedReceiptData


class ReceiptProcessor:
    """Runs the pipeline for one owner's upload and records the outcome."""

    def __init__(self, pipeline: ReceiptPipeline, store: ReceiptStore):
        self.pipeline = pipeline
        self.store = store

    def process(
        self,
        raw_image: RawImage,
        owner: str,
        image_url: Optional[str] = None,
        default_category: str = DEFAULT_CATEGORY,
    ) -> ProcessedReceipt:
        """
        Extract a receipt and track it in the store.

        Raises:
            ValueError: If default_category is unknown (no record is created)
            ImageDecodeError / RecognitionError: After marking the receipt failed
        """
        validate_category(default_category)

        receipt_id = self.store.create_receipt(owner, image_url=image_url)
        self.store.update_receipt_status(receipt_id, ReceiptStatus.PROCESSING)

        try:
            data = self.pipeline.extract(raw_image, default_category)
        except ReceiptError as e:
            logger.error("Receipt %s failed: %s", receipt_id, e)
            self._mark_failed(receipt_id, str(e))
            raise
        except Exception as e:
            logger.exception("Receipt %s failed unexpectedly", receipt_id)
            self._mark_failed(receipt_id, f"Unexpected error: {e}")
            raise

        self.store.update_receipt_status(receipt_id, ReceiptStatus.COMPLETED, extracted=data)
        logger.info("Receipt %s completed", receipt_id)
        return ProcessedReceipt(receipt_id=receipt_id, data=data)

    def _mark_failed(self, receipt_id: int, error_message: str) -> None:
        self.store.update_receipt_status(
            receipt_id, ReceiptStatus.FAILED, error_message=error_message
        )

    def save_expense(
        self,
        owner: str,
        processed: ProcessedReceipt,
        category: Optional[str] = None,
    ) -> ExpenseRecord:
        """
        Save the reviewed extraction as an expense.

        Args:
            owner: Expense owner
            processed: Result of process()
            category: User's category choice; overrides the suggestion
        """
        data = processed.data
        if category is not None:
            data = self.pipeline.override_category(data, category)

        expense = ExpenseRecord.from_extraction(owner, data, receipt_id=processed.receipt_id)
        self.store.save_expense(expense)
        logger.info(
            "Saved expense %s: %s %s (%s)",
            expense.id,
            expense.amount,
            expense.description,
            expense.category,
        )
        return expense
