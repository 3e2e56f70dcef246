"""Test fixtures and utilities."""

import io
from datetime import date
from pathlib import Path

import pytest
from PIL import Image

from receipt_ledger.errors import RecognitionError
from receipt_ledger.recognition import RecognitionAdapter, RecognitionEngine
from receipt_ledger.pipeline import ReceiptPipeline

# Fixed "today" for date fallback assertions
TODAY = date(2026, 10, 18)

# Sample OCR text for testing
SAMPLE_OCR_CAFE = "Joe's Cafe\nTotal: $8.50\n04.07.23"

SAMPLE_OCR_NO_FIELDS = "XYZ Corp\nThank you for your business\nCome again"

SAMPLE_OCR_GROCERY = """
FRESHWAY SUPERMARKET
12 High Street
Springfield

Date: 15.03.24
Bananas 1kg                     1.29
Milk 2L                         2.49
Bread                           3.20

------------------------------------
Grand Total  $6.98

Paid by card
Thank you!
"""


def make_image_bytes(
    size: tuple[int, int] = (1600, 1200),
    fmt: str = "JPEG",
    color: tuple[int, int, int] = (200, 180, 160),
) -> bytes:
    """Encode a solid-color RGB image."""
    image = Image.new("RGB", size, color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeEngine(RecognitionEngine):
    """Recognition engine double that records its lifecycle."""

    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.recognize_calls: list[bytes] = []
        self.terminate_count = 0

    @property
    def name(self) -> str:
        return "fake"

    def recognize(self, image_bytes: bytes) -> str:
        self.recognize_calls.append(image_bytes)
        if self.error is not None:
            raise self.error
        return self.text

    def terminate(self) -> None:
        self.terminate_count += 1


class FakeEngineFactory:
    """Creates FakeEngines and keeps every instance for inspection."""

    def __init__(self, text: str = "", error: Exception | None = None):
        self.text = text
        self.error = error
        self.engines: list[FakeEngine] = []

    def __call__(self) -> FakeEngine:
        engine = FakeEngine(self.text, self.error)
        self.engines.append(engine)
        return engine

    @property
    def created(self) -> int:
        return len(self.engines)

    @property
    def terminated(self) -> int:
        return sum(engine.terminate_count for engine in self.engines)


@pytest.fixture
def jpeg_bytes() -> bytes:
    """A 1600x1200 JPEG photo."""
    return make_image_bytes()


@pytest.fixture
def engine_factory() -> FakeEngineFactory:
    """Fake engine factory returning the cafe receipt text."""
    return FakeEngineFactory(text=SAMPLE_OCR_CAFE)


@pytest.fixture
def make_pipeline():
    """Build a pipeline around a fake engine factory with a fixed clock."""

    def _make(factory: FakeEngineFactory, **kwargs) -> ReceiptPipeline:
        return ReceiptPipeline(RecognitionAdapter(factory), clock=lambda: TODAY, **kwargs)

    return _make


@pytest.fixture
def failing_factory() -> FakeEngineFactory:
    """Fake engine factory whose engines always fail."""
    return FakeEngineFactory(error=RecognitionError("engine crashed", engine="fake"))


@pytest.fixture
def temp_db(tmp_path) -> Path:
    """Temporary database path for testing."""
    return tmp_path / "test_receipts.db"
