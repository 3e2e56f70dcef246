"""
Pipeline exceptions.

Only two conditions are fatal to an extraction run:
- the input bytes cannot be decoded as a raster image
- the recognition engine fails, times out or returns nothing usable

Everything else (missing total, unreadable date, unknown merchant) is
expressed as absent or default data on the result.
"""


class ReceiptError(Exception):
    """Base exception for receipt pipeline errors."""

    pass


class ImageDecodeError(ReceiptError):
    """Input bytes are not a decodable raster image."""

    pass


class RecognitionError(ReceiptError):
    """Recognition engine failed, timed out, or returned no usable text."""

    def __init__(self, message: str, engine: str | None = None):
        self.engine = engine
        self.message = message
        if engine:
            super().__init__(f"{engine}: {message}")
        else:
            super().__init__(message)
