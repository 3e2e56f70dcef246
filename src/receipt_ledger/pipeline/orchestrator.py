"""
Receipt extraction pipeline.

Sequence per receipt (strictly in order):
    normalize image → recognize text → extract fields
    → normalize date → classify category → assemble result

Only normalization and recognition can fail the run. Everything after
recognition degrades to absent or default fields.
"""

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..classification import CategoryClassifier
from ..config import Config
from ..errors import ReceiptError
from ..extractors import DEFAULT_DATE_FORMATS, extract_fields, normalize_date
from ..imaging import DEFAULT_CONTRAST, DEFAULT_TARGET_WIDTH, normalize_image
from ..recognition import RecognitionAdapter, create_engine_factory
from ..schemas.receipt import (
    DEFAULT_CATEGORY,
    UNKNOWN_MERCHANT,
    ExtractedReceiptData,
    RawImage,
    validate_category,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionOutcome:
    """Result of one receipt in a batch: data on success, error on failure."""

    result: Optional[ExtractedReceiptData] = None
    error: Optional[ReceiptError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReceiptPipeline:
    """
    Orchestrates one extraction per call.

    Holds no per-receipt state: each call gets its own normalized image
    and its own recognition engine, so calls may run concurrently.
    """

    def __init__(
        self,
        adapter: RecognitionAdapter,
        classifier: Optional[CategoryClassifier] = None,
        target_width: int = DEFAULT_TARGET_WIDTH,
        contrast: float = DEFAULT_CONTRAST,
        date_formats: Sequence[str] = DEFAULT_DATE_FORMATS,
        clock: Optional[Callable[[], date]] = None,
    ):
        """
        Initialize pipeline.

        Args:
            adapter: Recognition boundary (creates one engine per receipt)
            classifier: Category classifier (default keyword table if None)
            target_width: Normalized image width in pixels
            contrast: Contrast enhancement factor
            date_formats: strptime formats for the date token
            clock: Returns "today" for the date fallback
        """
        self.adapter = adapter
        self.classifier = classifier or CategoryClassifier()
        self.target_width = target_width
        self.contrast = contrast
        self.date_formats = tuple(date_formats)
        self.clock = clock or date.today

    @classmethod
    def from_config(cls, config: Config) -> "ReceiptPipeline":
        """Build a pipeline with the configured engine and settings."""
        adapter = RecognitionAdapter(create_engine_factory(config.recognition))
        return cls(
            adapter=adapter,
            target_width=config.normalizer.target_width,
            contrast=config.normalizer.contrast,
            date_formats=config.extraction.date_formats,
        )

    def extract(
        self, raw_image: RawImage, default_category: str = DEFAULT_CATEGORY
    ) -> ExtractedReceiptData:
        """
        Extract structured data from a receipt photo.

        Args:
            raw_image: Photographed receipt
            default_category: Category to use when no keyword matches

        Returns:
            ExtractedReceiptData (date and category always set)

        Raises:
            ImageDecodeError: Image bytes cannot be decoded
            RecognitionError: Recognition failed; no partial result
            ValueError: default_category is not a known category
        """
        validate_category(default_category)

        logger.info("Extracting receipt (%d bytes, %s)", len(raw_image.data), raw_image.media_type)

        normalized = normalize_image(
            raw_image, target_width=self.target_width, contrast=self.contrast
        )
        text = self.adapter.recognize(normalized)
        logger.debug("OCR output:\n%s", text)

        return self.extract_text(text, default_category)

    def extract_text(
        self, text: str, default_category: str = DEFAULT_CATEGORY
    ) -> ExtractedReceiptData:
        """Run the post-recognition stages on already recognized text."""
        validate_category(default_category)

        matches = extract_fields(text)
        receipt_date = normalize_date(matches.date_token, self.date_formats, today=self.clock())
        merchant = matches.merchant or UNKNOWN_MERCHANT

        category = self.classifier.classify(merchant, text)
        if category == DEFAULT_CATEGORY:
            category = default_category

        result = ExtractedReceiptData(
            date=receipt_date,
            category=category,
            total=matches.total,
            merchant=merchant,
        )
        logger.info(
            "Extracted receipt: merchant=%r total=%s date=%s category=%s",
            result.merchant,
            result.total or "-",
            result.date,
            result.category,
        )
        return result

    @staticmethod
    def override_category(result: ExtractedReceiptData, category: str) -> ExtractedReceiptData:
        """Replace the suggested category with the caller's choice before saving."""
        if category != result.category:
            logger.info("Category overridden: %s -> %s", result.category, category)
        return result.with_category(category)

    def extract_many(
        self,
        images: Sequence[RawImage],
        default_category: str = DEFAULT_CATEGORY,
        max_workers: int = 4,
    ) -> list[ExtractionOutcome]:
        """
        Extract several receipts concurrently.

        Each receipt is an independent run; a failing receipt is reported
        in its outcome and does not affect the others. Outcomes are in
        input order.
        """
        validate_category(default_category)

        def run(image: RawImage) -> ExtractionOutcome:
            try:
                return ExtractionOutcome(result=self.extract(image, default_category))
            except ReceiptError as e:
                logger.error("Receipt extraction failed: %s", e)
                return ExtractionOutcome(error=e)

        if not images:
            return []

        with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(images)))) as executor:
            return list(executor.map(run, images))
