"""Caller image input decoding and validation.

Accepts raw bytes, plain base64 or a ``data:`` URL, and produces bytes
plus a MIME type the vision collaborator accepts. These are the only
errors the extraction entry points raise to their callers.
"""

import base64
import binascii
import io
import logging
import re
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from .config import get_settings
from .errors import InvalidImageError

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>[\w/+.\-]+)?(?:;[\w=\-]+)*;base64,", re.IGNORECASE)

# Formats both vision providers accept as-is
PASSTHROUGH_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
}

HEIF_BRANDS = (b"heic", b"heix", b"hevc", b"hevx", b"mif1", b"msf1", b"heif")

UNSUPPORTED_HEIC_MESSAGE = (
    "Unable to process HEIC file. Please convert the image to JPEG or PNG format and try again."
)


@dataclass(frozen=True)
class ImagePayload:
    """Decoded image ready for the vision and OCR collaborators."""

    data: bytes
    media_type: str


def _decode_base64(value: str) -> bytes:
    raw = value.strip()
    match = DATA_URL_PATTERN.match(raw)
    if match:
        raw = raw[match.end():]
    elif "," in raw[:100]:
        raw = raw.split(",", 1)[1]
    raw = re.sub(r"\s", "", raw)
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Image is not valid base64: {e}") from e


def _is_heif(data: bytes) -> bool:
    return data[4:8] == b"ftyp" and data[8:12] in HEIF_BRANDS


def load_image(image: bytes | bytearray | str | None, max_bytes: int | None = None) -> ImagePayload:
    """Decode and validate a caller-supplied image.

    Args:
        image: Raw bytes, base64 text, or a ``data:image/...;base64,`` URL
        max_bytes: Size cap for the decoded image; defaults to settings

    Returns:
        ImagePayload with the image bytes and MIME type

    Raises:
        InvalidImageError: If the image is missing, undecodable, too large
            or in an unsupported encoding
    """
    if max_bytes is None:
        max_bytes = get_settings().max_image_bytes

    if image is None or (isinstance(image, (str, bytes, bytearray)) and len(image) == 0):
        raise InvalidImageError("Missing image data")

    if isinstance(image, str):
        data = _decode_base64(image)
    elif isinstance(image, (bytes, bytearray)):
        data = bytes(image)
    else:
        raise InvalidImageError(f"Unsupported image input type: {type(image).__name__}")

    if not data:
        raise InvalidImageError("Missing image data")
    if len(data) > max_bytes:
        raise InvalidImageError("Image too large")
    if _is_heif(data):
        raise InvalidImageError(UNSUPPORTED_HEIC_MESSAGE)

    try:
        with Image.open(io.BytesIO(data)) as opened:
            image_format = opened.format or ""
            if image_format in PASSTHROUGH_FORMATS:
                return ImagePayload(data=data, media_type=PASSTHROUGH_FORMATS[image_format])

            logger.info(f"Re-encoding {image_format or 'unknown'} image as PNG")
            converted = opened.convert("RGB") if opened.mode not in ("RGB", "L") else opened
            buffer = io.BytesIO()
            converted.save(buffer, format="PNG")
            return ImagePayload(data=buffer.getvalue(), media_type="image/png")
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Unsupported image encoding: {e}") from e
