"""
Image preprocessing for recognition.
"""

from .normalizer import DEFAULT_CONTRAST, DEFAULT_TARGET_WIDTH, normalize_image

__all__ = [
    "DEFAULT_CONTRAST",
    "DEFAULT_TARGET_WIDTH",
    "normalize_image",
]
