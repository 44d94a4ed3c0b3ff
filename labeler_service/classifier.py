"""Extension-based classification of S3 object keys."""

from __future__ import annotations

import posixpath
from typing import Tuple

SUPPORTED_EXTENSIONS = (".jpg", ".jpeg", ".png")
DEFAULT_OUTPUT_PREFIX = "labeled-images/"


def classify(key: str) -> Tuple[bool, str]:
    """
    Decide whether `key` names a supported image.

    Returns `(True, ext)` with the lowercase extension minus its dot, or
    `(False, "")` for anything else.
    """
    lowered = key.lower()
    for ext in SUPPORTED_EXTENSIONS:
        if lowered.endswith(ext):
            return True, ext[1:]
    return False, ""


def output_key(key: str, prefix: str = DEFAULT_OUTPUT_PREFIX) -> str:
    """Destination key: the fixed prefix plus the original file name."""
    return f"{prefix}{posixpath.basename(key)}"


def content_type(ext: str) -> str:
    # "jpg" is kept verbatim, not normalized to "jpeg".
    return f"image/{ext}"
