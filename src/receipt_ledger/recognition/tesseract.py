"""
Tesseract recognition engine (via pytesseract).
"""

import io
import logging

import pytesseract
from PIL import Image, UnidentifiedImageError

from ..errors import RecognitionError
from .base import RecognitionEngine

logger = logging.getLogger(__name__)


class TesseractEngine(RecognitionEngine):
    """
    Local Tesseract OCR.

    Each recognize() runs one tesseract process; the timeout bounds it.
    """

    def __init__(self, lang: str = "eng", config: str = "--oem 3 --psm 6", timeout: int = 30):
        self.lang = lang
        self.config = config
        self.timeout = timeout
        self._terminated = False

    @property
    def name(self) -> str:
        return "tesseract"

    def recognize(self, image_bytes: bytes) -> str:
        if self._terminated:
            raise RecognitionError("Engine already terminated", engine=self.name)

        try:
            image = Image.open(io.BytesIO(image_bytes))
        except (UnidentifiedImageError, OSError) as e:
            raise RecognitionError(f"Cannot read normalized image: {e}", engine=self.name) from e

        try:
            return pytesseract.image_to_string(
                image,
                lang=self.lang,
                config=self.config,
                timeout=self.timeout,
            )
        except pytesseract.TesseractNotFoundError as e:
            raise RecognitionError(f"Tesseract is not installed: {e}", engine=self.name) from e
        except pytesseract.TesseractError as e:
            raise RecognitionError(f"Tesseract failed: {e}", engine=self.name) from e
        except RuntimeError as e:
            # pytesseract signals a killed process with RuntimeError
            raise RecognitionError(
                f"Tesseract timed out after {self.timeout}s: {e}", engine=self.name
            ) from e

    def terminate(self) -> None:
        self._terminated = True
