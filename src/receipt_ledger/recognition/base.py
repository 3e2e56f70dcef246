"""
Recognition engine interface and per-call lifecycle adapter.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from ..errors import RecognitionError
from ..schemas.receipt import NormalizedImage

logger = logging.getLogger(__name__)


class RecognitionEngine(ABC):
    """
    Base class for text recognition engines.

    An engine instance serves exactly one receipt: it is created right
    before recognition and terminated right after.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine name for logging and error messages."""
        pass

    @abstractmethod
    def recognize(self, image_bytes: bytes) -> str:
        """
        Recognize text in an encoded image.

        Args:
            image_bytes: Normalized image (PNG)

        Returns:
            Raw recognized text

        Raises:
            RecognitionError: On engine failure or timeout
        """
        pass

    @abstractmethod
    def terminate(self) -> None:
        """Release the engine's resources. Called exactly once per instance."""
        pass


EngineFactory = Callable[[], RecognitionEngine]


class RecognitionAdapter:
    """
    Boundary between the pipeline and a recognition engine.

    Every call acquires a fresh engine from the factory and terminates it
    afterwards, on success and on failure, so engines never outlive the
    receipt they were created for.
    """

    def __init__(self, engine_factory: EngineFactory):
        self._engine_factory = engine_factory

    def recognize(self, image: NormalizedImage) -> str:
        """
        Recognize text in a normalized receipt image.

        Raises:
            RecognitionError: If the engine cannot start, fails, times out,
                or returns no usable text
        """
        try:
            engine = self._engine_factory()
        except RecognitionError:
            raise
        except Exception as e:
            raise RecognitionError(f"Failed to start recognition engine: {e}") from e

        try:
            text = engine.recognize(image.data)
        except RecognitionError:
            raise
        except Exception as e:
            raise RecognitionError(f"Recognition failed: {e}", engine=engine.name) from e
        finally:
            self._release(engine)

        if not text or not text.strip():
            raise RecognitionError("Engine returned no usable output", engine=engine.name)

        logger.debug("Recognized %d characters with %s", len(text), engine.name)
        return text

    def _release(self, engine: RecognitionEngine) -> None:
        try:
            engine.terminate()
        except Exception:
            # The recognition outcome (or its error) is what the caller needs
            logger.warning("Failed to terminate %s engine", engine.name, exc_info=True)
