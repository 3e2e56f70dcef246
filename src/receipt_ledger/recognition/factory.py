"""
Engine factory selection from configuration.
"""

import functools

import pytesseract

from ..config import ConfigValidationError, RecognitionConfig
from .base import EngineFactory
from .remote import RemoteOCREngine
from .tesseract import TesseractEngine


def create_engine_factory(config: RecognitionConfig) -> EngineFactory:
    """
    Build a factory that creates one fresh engine per receipt.

    Raises:
        ConfigValidationError: If the engine name is unknown or incomplete
    """
    match config.engine:
        case "tesseract":
            if config.tesseract.cmd:
                pytesseract.pytesseract.tesseract_cmd = config.tesseract.cmd
            return functools.partial(
                TesseractEngine,
                lang=config.tesseract.lang,
                config=config.tesseract.config,
                timeout=config.tesseract.timeout,
            )
        case "remote":
            if not config.remote.url:
                raise ConfigValidationError("recognition.remote.url is required for the remote engine")
            return functools.partial(
                RemoteOCREngine,
                url=config.remote.url,
                token=config.remote.token,
                timeout=config.remote.timeout,
                max_retries=config.remote.max_retries,
            )
        case _:
            raise ConfigValidationError(
                f"Unknown recognition engine: {config.engine!r} (choose tesseract or remote)"
            )
