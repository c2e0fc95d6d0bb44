"""Bibliographic file import.

Supported formats:
- RIS (.ris, .txt) - Research Information Systems format
- Delimited text (.csv, .tsv) - database exports with a header row

Main entry points:
- read_files: Parse several files into one record table
- read_file: Parse a single file
"""

from bibdedupe.parse.base import (
    SUPPORTED_EXTENSIONS,
    ParseResult,
    detect_encoding,
    normalize_line_endings,
    sniff_format,
)
from bibdedupe.parse.delimited import parse_delimited
from bibdedupe.parse.ingestion import parse_file, read_file, read_files
from bibdedupe.parse.ris import parse_ris
from bibdedupe.parse.tag_mappings import COLUMN_ALIASES, TAG_MAPPINGS, canonical_column

__all__ = [
    "COLUMN_ALIASES",
    "SUPPORTED_EXTENSIONS",
    "TAG_MAPPINGS",
    "ParseResult",
    "canonical_column",
    "detect_encoding",
    "normalize_line_endings",
    "parse_delimited",
    "parse_file",
    "parse_ris",
    "read_file",
    "read_files",
    "sniff_format",
]
