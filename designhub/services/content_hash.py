from __future__ import annotations
import base64
import binascii
import hashlib
import re

from designhub.core.errors import ArtworkUnreadable

HASH_PREFIX = "sha256:"

_DATA_URI = re.compile(r"^data:image/[a-zA-Z0-9.+-]+;base64,")


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()

def compute_content_hash(data: bytes) -> str:
    # Exact bytes only: a re-encoded image is a different design.
    return HASH_PREFIX + sha256_hex(data)

def decode_artwork(encoded: str) -> bytes:
    """
    Decode base64 artwork as sent by clients (plain or as a data: URI).
    Raises ArtworkUnreadable on empty or malformed input.
    """
    raw = _DATA_URI.sub("", (encoded or "").strip(), count=1)
    if not raw:
        raise ArtworkUnreadable("Artwork is empty")
    try:
        data = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ArtworkUnreadable("Artwork is not valid base64", details=[{"error": str(e)}]) from e
    if not data:
        raise ArtworkUnreadable("Artwork is empty")
    return data
