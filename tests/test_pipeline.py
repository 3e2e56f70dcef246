"""
Tests for the extraction pipeline.

Recognition is replaced by FakeEngineFactory so the full sequence
(normalize → recognize → extract → date → classify) runs on real images.
"""

import io
import threading

import pytest
from PIL import Image

from receipt_ledger.errors import ImageDecodeError, RecognitionError
from receipt_ledger.schemas import ExtractedReceiptData, RawImage

from conftest import (
    SAMPLE_OCR_CAFE,
    SAMPLE_OCR_GROCERY,
    SAMPLE_OCR_NO_FIELDS,
    TODAY,
    FakeEngine,
    FakeEngineFactory,
    make_image_bytes,
)


class TestEndToEnd:
    """Full pipeline runs."""

    def test_cafe_receipt(self, make_pipeline, jpeg_bytes):
        pipeline = make_pipeline(FakeEngineFactory(text=SAMPLE_OCR_CAFE))

        result = pipeline.extract(RawImage(jpeg_bytes), default_category="Other")

        assert result.to_dict() == {
            "total": "8.50",
            "date": "2023-07-04",
            "merchant": "Joe's Cafe",
            "category": "Food & Dining",
        }

    def test_receipt_without_fields(self, make_pipeline, jpeg_bytes):
        """No total and no date: total absent, date today, category Other."""
        pipeline = make_pipeline(FakeEngineFactory(text=SAMPLE_OCR_NO_FIELDS))

        result = pipeline.extract(RawImage(jpeg_bytes), default_category="Other")

        assert result.total is None
        assert result.date == TODAY.isoformat()
        assert result.merchant == "XYZ Corp"
        assert result.category == "Other"
        assert "total" not in result.to_dict()

    def test_grocery_receipt(self, make_pipeline, jpeg_bytes):
        pipeline = make_pipeline(FakeEngineFactory(text=SAMPLE_OCR_GROCERY))

        result = pipeline.extract(RawImage(jpeg_bytes))

        assert result.total == "6.98"
        assert result.date == "2024-03-15"
        assert result.merchant == "FRESHWAY SUPERMARKET"
        # "market" is declared under Shopping before Groceries
        assert result.category == "Shopping"

    def test_unknown_merchant_sentinel(self, make_pipeline, jpeg_bytes):
        pipeline = make_pipeline(FakeEngineFactory(text="12 Main St\nTotal 3.00"))

        result = pipeline.extract(RawImage(jpeg_bytes))

        assert result.merchant == "Unknown Merchant"
        assert result.total == "3.00"

    def test_idempotent(self, make_pipeline, jpeg_bytes):
        """Same image and deterministic engine give identical results."""
        factory = FakeEngineFactory(text=SAMPLE_OCR_CAFE)
        pipeline = make_pipeline(factory)

        first = pipeline.extract(RawImage(jpeg_bytes))
        second = pipeline.extract(RawImage(jpeg_bytes))

        assert first == second
        assert factory.engines[0].recognize_calls == factory.engines[1].recognize_calls

    def test_engine_receives_normalized_image(self, make_pipeline, jpeg_bytes):

        factory = FakeEngineFactory(text=SAMPLE_OCR_CAFE)
        make_pipeline(factory).extract(RawImage(jpeg_bytes))

        image = Image.open(io.BytesIO(factory.engines[0].recognize_calls[0]))
        assert image.mode == "L"
        assert image.width == 800


class TestDefaultCategory:
    """Caller-chosen default category."""

    def test_used_when_no_keyword_matches(self, make_pipeline, jpeg_bytes):
        pipeline = make_pipeline(FakeEngineFactory(text=SAMPLE_OCR_NO_FIELDS))

        result = pipeline.extract(RawImage(jpeg_bytes), default_category="Shopping")

        assert result.category == "Shopping"

    def test_keyword_match_beats_default(self, make_pipeline, jpeg_bytes):
        pipeline = make_pipeline(FakeEngineFactory(text=SAMPLE_OCR_CAFE))

        result = pipeline.extract(RawImage(jpeg_bytes), default_category="Travel")

        assert result.category == "Food & Dining"

    def test_unknown_default_rejected(self, make_pipeline, jpeg_bytes):
        factory = FakeEngineFactory(text=SAMPLE_OCR_CAFE)

        with pytest.raises(ValueError, match="Unknown category"):
            make_pipeline(factory).extract(RawImage(jpeg_bytes), default_category="Pets")

        # Rejected before any engine was acquired
        assert factory.created == 0


class TestCategoryOverride:
    """The classifier's category is a suggestion the caller may replace."""

    def test_override(self, make_pipeline, jpeg_bytes):
        pipeline = make_pipeline(FakeEngineFactory(text=SAMPLE_OCR_CAFE))
        result = pipeline.extract(RawImage(jpeg_bytes))

        overridden = pipeline.override_category(result, "Entertainment")

        assert overridden.category == "Entertainment"
        assert overridden.total == result.total
        assert result.category == "Food & Dining"

    def test_override_rejects_unknown_category(self):
        result = ExtractedReceiptData(date="2023-07-04", category="Other")

        with pytest.raises(ValueError):
            result.with_category("Pets")


class TestFatalErrors:
    """Normalization and recognition failures abort the run."""

    def test_undecodable_image(self, make_pipeline):
        factory = FakeEngineFactory(text=SAMPLE_OCR_CAFE)

        with pytest.raises(ImageDecodeError):
            make_pipeline(factory).extract(RawImage(b"not an image"))

        # Recognition never started
        assert factory.created == 0

    def test_recognition_failure(self, make_pipeline, failing_factory, jpeg_bytes):
        with pytest.raises(RecognitionError, match="engine crashed"):
            make_pipeline(failing_factory).extract(RawImage(jpeg_bytes))

        assert failing_factory.created == 1
        assert failing_factory.terminated == 1


class TestResourceDiscipline:
    """Every acquired engine is released exactly once."""

    def test_success_path(self, make_pipeline, engine_factory, jpeg_bytes):
        make_pipeline(engine_factory).extract(RawImage(jpeg_bytes))

        assert engine_factory.created == 1
        assert [engine.terminate_count for engine in engine_factory.engines] == [1]

    def test_failure_path(self, make_pipeline, failing_factory, jpeg_bytes):
        pipeline = make_pipeline(failing_factory)

        for _ in range(3):
            with pytest.raises(RecognitionError):
                pipeline.extract(RawImage(jpeg_bytes))

        assert failing_factory.created == 3
        assert [engine.terminate_count for engine in failing_factory.engines] == [1, 1, 1]


class TestExtractText:
    """Post-recognition stages on plain text."""

    def test_extract_text(self, make_pipeline):
        pipeline = make_pipeline(FakeEngineFactory())

        result = pipeline.extract_text(SAMPLE_OCR_CAFE)

        assert result.total == "8.50"
        assert result.date == "2023-07-04"

    def test_configured_date_formats(self, make_pipeline):
        pipeline = make_pipeline(FakeEngineFactory(), date_formats=("%d.%m.%y", "%Y-%m-%d"))

        result = pipeline.extract_text("Shop\n2023-07-04\nTotal 1.00")

        assert result.date == "2023-07-04"


class TestExtractMany:
    """Concurrent independent invocations."""

    def test_results_in_input_order(self, make_pipeline):
        factory = _HeightEchoFactory()
        pipeline = make_pipeline(factory)
        # 400 px wide images normalize to 800 px, doubling each height
        heights = [100, 250, 50, 400, 175]
        images = [
            RawImage(make_image_bytes(size=(400, h), fmt="PNG"), "image/png") for h in heights
        ]

        outcomes = pipeline.extract_many(images, max_workers=3)

        assert all(outcome.ok for outcome in outcomes)
        assert [outcome.result.total for outcome in outcomes] == [str(h * 2) for h in heights]
        assert factory.created == 5
        assert factory.terminated == 5

    def test_failure_does_not_abort_batch(self, make_pipeline, jpeg_bytes):
        pipeline = make_pipeline(FakeEngineFactory(text=SAMPLE_OCR_CAFE))
        images = [
            RawImage(jpeg_bytes),
            RawImage(b"broken"),
            RawImage(make_image_bytes(size=(300, 300), fmt="PNG"), "image/png"),
        ]

        outcomes = pipeline.extract_many(images)

        assert [outcome.ok for outcome in outcomes] == [True, False, True]
        assert isinstance(outcomes[1].error, ImageDecodeError)
        assert outcomes[1].result is None

    def test_empty_batch(self, make_pipeline):
        assert make_pipeline(FakeEngineFactory()).extract_many([]) == []


class _HeightEchoEngine(FakeEngine):
    """Reports the normalized image height as the receipt total."""

    def recognize(self, image_bytes: bytes) -> str:
        super().recognize(image_bytes)
        height = Image.open(io.BytesIO(image_bytes)).height
        return f"Corner Shop\nTotal: {height}"


class _HeightEchoFactory(FakeEngineFactory):
    def __init__(self):
        super().__init__()
        self._lock = threading.Lock()

    def __call__(self) -> FakeEngine:
        with self._lock:
            engine = _HeightEchoEngine()
            self.engines.append(engine)
            return engine
