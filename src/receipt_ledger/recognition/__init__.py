"""
Text recognition boundary.

Provides:
- RecognitionEngine: engine interface (recognize/terminate)
- RecognitionAdapter: one fresh engine per receipt, always terminated
- TesseractEngine: local OCR via pytesseract
- RemoteOCREngine: OCR over HTTP
- create_engine_factory: engine selection from configuration

Engines are pluggable; nothing downstream depends on which one ran.
"""

from .base import EngineFactory, RecognitionAdapter, RecognitionEngine
from .factory import create_engine_factory
from .remote import RemoteOCREngine
from .tesseract import TesseractEngine

__all__ = [
    "EngineFactory",
    "RecognitionAdapter",
    "RecognitionEngine",
    "RemoteOCREngine",
    "TesseractEngine",
    "create_engine_factory",
]
