"""Image encoding and resizing utilities."""

import base64
import binascii
from io import BytesIO
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

from .logger import get_logger
from .errors import ImageProcessingError

logger = get_logger(__name__)

PIL_FORMAT_TO_MIME = {
    "PNG": "image/png",
    "JPEG": "image/jpeg",
    "WEBP": "image/webp",
    "GIF": "image/gif",
    "BMP": "image/bmp",
}


def bytes_to_base64(image_bytes: bytes) -> str:
    """Convert image bytes to a base64 string."""
    return base64.b64encode(image_bytes).decode('utf-8')


def base64_to_bytes(base64_string: str) -> bytes:
    """
    Convert base64 string to bytes.

    Args:
        base64_string: Base64 encoded image, optionally a full data URL

    Returns:
        Image bytes

    Raises:
        ImageProcessingError: If the string is not valid base64
    """
    # Remove data URL prefix if present
    if "," in base64_string:
        base64_string = base64_string.split(",", 1)[1]

    try:
        return base64.b64decode(base64_string, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ImageProcessingError(f"Invalid base64 image data: {e}")


def bytes_to_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Encode image bytes as a ``data:`` URL."""
    return f"data:{mime_type};base64,{bytes_to_base64(image_bytes)}"


def guess_mime_type(image_bytes: bytes, default: Optional[str] = None) -> str:
    """
    Detect the MIME type of an image from its content.

    Args:
        image_bytes: Raw image bytes
        default: Returned when the content cannot be identified

    Returns:
        MIME type such as ``image/png``

    Raises:
        ImageProcessingError: If the content is unreadable and no default is given
    """
    try:
        with Image.open(BytesIO(image_bytes)) as image:
            image_format = image.format
    except (UnidentifiedImageError, OSError) as e:
        if default:
            return default
        raise ImageProcessingError(f"Failed to read image: {e}")

    mime_type = PIL_FORMAT_TO_MIME.get(image_format or "")
    if mime_type:
        return mime_type
    if default:
        return default
    raise ImageProcessingError(f"Unsupported image format: {image_format}")


def make_thumbnail(
    image_bytes: bytes,
    max_side: int = 256,
    quality: int = 80,
) -> Tuple[bytes, str]:
    """
    Downscale an image so its longest side is at most ``max_side``.

    Args:
        image_bytes: Original image bytes
        max_side: Max width or height in pixels
        quality: JPEG quality 1-100

    Returns:
        Tuple of (JPEG bytes, MIME type). The original bytes and their
        detected type are returned when the image cannot be decoded.
    """
    try:
        image = Image.open(BytesIO(image_bytes))

        # Convert to RGB if needed (for JPEG)
        if image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')

        width, height = image.size
        image.thumbnail((max_side, max_side), Image.LANCZOS)

        buffer = BytesIO()
        image.save(buffer, format='JPEG', quality=quality)

        logger.debug(
            f"Thumbnail: {width}x{height} -> {image.size[0]}x{image.size[1]}",
            extra={
                "original_kb": len(image_bytes) / 1024,
                "thumbnail_kb": len(buffer.getvalue()) / 1024,
            }
        )

        return buffer.getvalue(), "image/jpeg"

    except (UnidentifiedImageError, OSError) as e:
        logger.warning(f"Failed to build thumbnail: {e}, using original")
        return image_bytes, guess_mime_type(image_bytes, default="application/octet-stream")
