"""Base64url decoding for JWT segments.

JWT segments use the URL-safe alphabet (``-`` and ``_``) and drop the
trailing ``=`` padding. Decoding maps back to the standard alphabet, restores
the padding and then decodes strictly, so stray characters are rejected
instead of silently discarded.
"""

from __future__ import annotations

import base64
import binascii

_TO_STANDARD = str.maketrans("-_", "+/")


def base64url_decode(value: str) -> bytes:
    """Decode base64url text (padding optional) to raw bytes.

    Raises:
        ValueError: If the input contains characters outside the alphabet or
            has a length no valid encoding can produce.
    """
    data = value.translate(_TO_STANDARD)
    data += "=" * (-len(data) % 4)
    try:
        return base64.b64decode(data, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64url data: {e}") from e
