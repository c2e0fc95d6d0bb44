"""Shared helpers for timestamps and file digests."""

from bibdedupe.utils.hashing import SHA256_PREFIX, file_sha256
from bibdedupe.utils.timestamps import utc_timestamp

__all__ = [
    "SHA256_PREFIX",
    "file_sha256",
    "utc_timestamp",
]
