"""Content digests for written artifacts."""

import hashlib
from pathlib import Path

__all__ = ["SHA256_PREFIX", "file_sha256"]

SHA256_PREFIX = "sha256:"
CHUNK_BYTES = 1 << 16


def file_sha256(path: Path) -> str:
    """Digest a file as ``sha256:<hex>``, reading it in chunks.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    """
    digest = hashlib.sha256()
    with Path(path).open("rb") as f:
        while chunk := f.read(CHUNK_BYTES):
            digest.update(chunk)
    return SHA256_PREFIX + digest.hexdigest()
