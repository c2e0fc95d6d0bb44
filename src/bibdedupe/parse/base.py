"""Base types and utilities for bibliographic parsers."""

import re
from typing import NamedTuple

__all__ = [
    "SUPPORTED_EXTENSIONS",
    "ParseResult",
    "Row",
    "detect_encoding",
    "normalize_line_endings",
    "sniff_format",
]

SUPPORTED_EXTENSIONS: dict[str, str] = {
    ".ris": "ris",
    ".txt": "ris",
    ".csv": "delimited",
    ".tsv": "delimited",
}

Row = dict[str, str | None]

_DELIMITER_CHARS = (",", "\t", ";", "|")


class ParseResult(NamedTuple):
    """Result of parsing a bibliographic file.

    Supports tuple unpacking:
    ``rows, warnings, errors, fields = parse_delimited(...)``.

    Attributes
    ----------
    rows : list[Row]
        One mapping per parsed record, keyed by canonical field name.
    warnings : list[str]
        Warning messages.
    errors : list[str]
        Error messages.
    fields : tuple[str, ...]
        Declared schema, for formats with a header row. Empty when the
        schema is only known from the rows themselves.
    """

    rows: list[Row]
    warnings: list[str]
    errors: list[str]
    fields: tuple[str, ...] = ()


def detect_encoding(file_bytes: bytes) -> str:
    """Detect encoding of file bytes using deterministic strategy.

    Parameters
    ----------
    file_bytes : bytes
        Complete file content as bytes.

    Returns
    -------
    str
        Detected encoding (utf-8-sig, utf-8 or latin-1).
    """
    if file_bytes.startswith(b"\xef\xbb\xbf"):
        return "utf-8-sig"

    try:
        file_bytes.decode("utf-8")
        return "utf-8"
    except UnicodeDecodeError:
        pass

    return "latin-1"


def normalize_line_endings(content: str) -> str:
    """Normalize line endings to LF."""
    content = content.replace("\r\n", "\n")
    return content.replace("\r", "\n")


def sniff_format(lines: list[str], suffix: str = "") -> str:
    """Sniff format by inspecting file content.

    RIS is recognised by its ``TY`` tag anywhere in the first 100 lines.
    Otherwise ``.csv``/``.tsv`` files, or files whose first non-empty line
    contains a delimiter character, are treated as delimited text.

    Parameters
    ----------
    lines : list[str]
        Lines of the file.
    suffix : str, optional
        File extension including the dot, by default "".

    Returns
    -------
    str
        Format identifier (ris|delimited|unknown).
    """
    sample_text = "\n".join(lines[:100])

    if re.search(r"^TY  - ", sample_text, re.MULTILINE):
        return "ris"

    if SUPPORTED_EXTENSIONS.get(suffix.lower()) == "delimited":
        return "delimited"

    header = next((line for line in lines if line.strip()), "")
    if any(ch in header for ch in _DELIMITER_CHARS):
        return "delimited"

    return "unknown"
