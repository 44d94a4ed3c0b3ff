"""
Decode and encode image bytes with Pillow.

Decoding sniffs the byte stream (magic markers), independent of the object
key. Encoding is driven by the extension the classifier extracted from the
key so the output format always matches the original file name.
"""

from __future__ import annotations

from io import BytesIO
from typing import Optional, Tuple

from PIL import Image

from .errors import DecodeError, EncodeError

REGISTERED_FORMATS = ("JPEG", "PNG")

_EXTENSION_FORMATS = {
    "png": "PNG",
    "jpg": "JPEG",
    "jpeg": "JPEG",
}

# Pillow reports JPEGs with a multi-picture APP2 segment (camera output) as MPO.
_FORMAT_ALIASES = {"MPO": "JPEG"}

# JPEG cannot carry alpha or palette data.
_JPEG_MODES = {"RGB", "L", "CMYK"}


def decode(data: bytes, key: Optional[str] = None) -> Tuple[Image.Image, str]:
    """Return the fully loaded image and its sniffed format name ("JPEG" or "PNG")."""
    try:
        image = Image.open(BytesIO(data), formats=REGISTERED_FORMATS)
        image.load()
    except Exception as exc:  # noqa: BLE001
        raise DecodeError(f"Invalid image data: {exc}", key=key) from exc
    return image, _FORMAT_ALIASES.get(image.format, image.format)


def format_matches(format_name: str, ext: str) -> bool:
    return _EXTENSION_FORMATS.get(ext.lower()) == format_name


def encode(image: Image.Image, ext: str, key: Optional[str] = None) -> bytes:
    """
    Encode `image` in the format implied by `ext`.

    PNG uses Pillow's lossless defaults, JPEG its default quality. Raises
    EncodeError for an extension outside jpg/jpeg/png.
    """
    target = _EXTENSION_FORMATS.get(ext.lower())
    if target is None:
        raise EncodeError(f"Unsupported extension for encoding: {ext!r}", key=key)

    if target == "JPEG" and image.mode not in _JPEG_MODES:
        image = image.convert("RGB")

    buf = BytesIO()
    try:
        image.save(buf, format=target)
    except Exception as exc:  # noqa: BLE001
        raise EncodeError(f"Failed to encode {target}: {exc}", key=key) from exc
    return buf.getvalue()
