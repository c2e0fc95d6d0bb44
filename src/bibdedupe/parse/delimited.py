"""Delimited-text (CSV/TSV) parser for database exports."""

import csv
import io

from bibdedupe.parse.base import ParseResult, Row
from bibdedupe.parse.tag_mappings import canonical_column

__all__ = ["parse_delimited"]

SNIFF_SAMPLE_CHARS = 8192


def _detect_delimiter(text: str) -> str:
    try:
        dialect = csv.Sniffer().sniff(text[:SNIFF_SAMPLE_CHARS], delimiters=",\t;|")
    except csv.Error:
        return ","
    return dialect.delimiter


def parse_delimited(
    text: str,
    source: str | None = None,
    delimiter: str | None = None,
) -> ParseResult:
    """Parse delimited text with a header row.

    Parameters
    ----------
    text : str
        Decoded file content.
    source : str | None, optional
        Label used in warning messages (usually the file name).
    delimiter : str | None, optional
        Column delimiter; sniffed from the content when None.

    Returns
    -------
    ParseResult
        One row per data line, keyed by canonical column name. Empty cells
        become None.
    """
    prefix = f"{source}: " if source else ""
    warnings: list[str] = []
    errors: list[str] = []
    rows: list[Row] = []

    if not text.strip():
        errors.append(f"{prefix}File is empty")
        return ParseResult(rows, warnings, errors)

    reader = csv.reader(io.StringIO(text), delimiter=delimiter or _detect_delimiter(text))
    try:
        header = next(reader)
    except csv.Error as e:
        errors.append(f"{prefix}Cannot read header row: {e}")
        return ParseResult(rows, warnings, errors)

    columns: list[str] = []
    for name in header:
        column = canonical_column(name)
        if column in columns:
            warnings.append(f"{prefix}Duplicate column {name!r} ignored")
            column = ""
        columns.append(column)

    try:
        for line_num, cells in enumerate(reader, start=2):
            if not any(cell.strip() for cell in cells):
                continue
            if len(cells) != len(columns):
                warnings.append(
                    f"{prefix}Line {line_num}: expected {len(columns)} columns, "
                    f"found {len(cells)}"
                )
            row: Row = {}
            for column, cell in zip(columns, cells, strict=False):
                if column:
                    row[column] = cell if cell.strip() else None
            rows.append(row)
    except csv.Error as e:
        errors.append(f"{prefix}Malformed delimited text: {e}")

    return ParseResult(rows, warnings, errors, tuple(c for c in columns if c))
