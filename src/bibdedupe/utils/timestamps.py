"""UTC timestamps for audit events and run identifiers."""

from datetime import UTC, datetime

__all__ = ["utc_timestamp"]


def utc_timestamp() -> str:
    """Return the current time as ISO 8601 with microseconds and a ``Z`` suffix.

    Examples
    --------
        >>> utc_timestamp()  # doctest: +SKIP
        '2026-02-03T12:34:56.123456Z'
    """
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")
