"""
Receipt image normalization.

Turns an arbitrary photo into a recognition-friendly image, in fixed order:
1. decode (EXIF orientation applied)
2. greyscale
3. fixed contrast boost
4. resize to the target width, height scaled proportionally

Never crops.
"""

import io
import logging

from PIL import Image, ImageEnhance, ImageOps, UnidentifiedImageError

from ..errors import ImageDecodeError
from ..schemas.receipt import NormalizedImage, RawImage

logger = logging.getLogger(__name__)

DEFAULT_TARGET_WIDTH = 800
DEFAULT_CONTRAST = 2.0

# Rejected at upload time even when Pillow could decode them
UNSUPPORTED_MEDIA_TYPES = frozenset({"image/webp"})


def decode_image(raw: RawImage) -> Image.Image:
    """Decode raw bytes into a Pillow image, upright per EXIF orientation."""
    if raw.media_type in UNSUPPORTED_MEDIA_TYPES:
        raise ImageDecodeError(f"Unsupported media type: {raw.media_type}")
    if not raw.data:
        raise ImageDecodeError("Empty image data")

    try:
        image = Image.open(io.BytesIO(raw.data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Cannot decode image ({raw.media_type}): {e}") from e

    return ImageOps.exif_transpose(image)


def scaled_height(width: int, height: int, target_width: int) -> int:
    """Height that keeps the aspect ratio at target_width (at least 1 px)."""
    return max(1, round(height * target_width / width))


def normalize_image(
    raw: RawImage,
    target_width: int = DEFAULT_TARGET_WIDTH,
    contrast: float = DEFAULT_CONTRAST,
) -> NormalizedImage:
    """
    Normalize a receipt photo for text recognition.

    Args:
        raw: Photographed receipt bytes
        target_width: Output width in pixels
        contrast: Contrast enhancement factor (1.0 = unchanged)

    Returns:
        NormalizedImage encoded as single-channel PNG

    Raises:
        ImageDecodeError: If the bytes are not a supported raster image
    """
    if target_width < 1:
        raise ValueError("target_width must be positive")

    image = decode_image(raw)
    original_size = image.size

    image = ImageOps.grayscale(image)
    image = ImageEnhance.Contrast(image).enhance(contrast)

    height = scaled_height(image.width, image.height, target_width)
    image = image.resize((target_width, height), Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")

    logger.debug(
        "Normalized image %sx%s -> %sx%s (contrast=%.2f)",
        original_size[0],
        original_size[1],
        image.width,
        image.height,
        contrast,
    )

    return NormalizedImage(data=buffer.getvalue(), width=image.width, height=image.height)
