from __future__ import annotations
from pathlib import Path
from urllib.parse import urlparse

from designhub.core.errors import ArtworkUnreadable


class LocalArtworkStore:
    """
    Filesystem stand-in for the artwork CDN.

    Objects are content-addressed, so writing the same artwork twice lands on
    the same key and returns the same URI.
    """

    def __init__(self, base_dir: str):
        self.base = Path(base_dir)
        self.base.mkdir(parents=True, exist_ok=True)

    def put_bytes(self, *, key: str, data: bytes) -> str:
        path = self.base / key
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return f"file://{path.resolve().as_posix()}"

    def put_artwork(self, *, content_hash: str, data: bytes) -> str:
        digest = content_hash.split(":", 1)[-1]
        return self.put_bytes(key=f"designs/{digest[:2]}/{digest}.bin", data=data)

    def resolve_path(self, uri: str) -> Path:
        """
        Resolve a storage URI to a local filesystem path.

        Supports:
          - file:///absolute/path
          - absolute filesystem paths
          - relative keys (resolved under self.base)
        """
        parsed = urlparse(uri)

        if parsed.scheme == "file":
            return Path(parsed.path)

        if parsed.scheme == "":
            p = Path(uri)
            if p.is_absolute():
                return p
            return self.base / p

        raise ValueError(f"Unsupported storage scheme: {parsed.scheme}")

    def read_bytes(self, uri: str) -> bytes:
        try:
            return self.resolve_path(uri).read_bytes()
        except (OSError, ValueError) as e:
            raise ArtworkUnreadable(f"Artwork not readable at {uri}", details=[{"error": str(e)}]) from e


def get_artwork_store() -> LocalArtworkStore:
    from designhub.core.config import settings

    return LocalArtworkStore(settings.artwork_storage_dir)
