"""File ingestion: bytes on disk to a ``RecordTable``."""

import time
from collections.abc import Callable, Iterable
from pathlib import Path

from bibdedupe.audit.logger import AuditLogger
from bibdedupe.errors import ParseError
from bibdedupe.models.records import RecordTable
from bibdedupe.parse.base import (
    ParseResult,
    detect_encoding,
    normalize_line_endings,
    sniff_format,
)
from bibdedupe.parse.delimited import parse_delimited
from bibdedupe.parse.ris import parse_ris

__all__ = ["parse_file", "read_file", "read_files"]

STAGE_NAME = "parse"

_DELIMITERS_BY_SUFFIX: dict[str, str] = {
    ".csv": ",",
    ".tsv": "\t",
}


def _parse_ris(content: str, source: str, suffix: str) -> ParseResult:
    return parse_ris(content.split("\n"), source)


def _parse_delimited(content: str, source: str, suffix: str) -> ParseResult:
    return parse_delimited(content, source, delimiter=_DELIMITERS_BY_SUFFIX.get(suffix))


_PARSER_MAP: dict[str, Callable[[str, str, str], ParseResult]] = {
    "ris": _parse_ris,
    "delimited": _parse_delimited,
}


def parse_file(file_path: Path) -> ParseResult:
    """Read, decode and parse one file.

    Parameters
    ----------
    file_path : Path
        RIS or delimited-text file.

    Returns
    -------
    ParseResult
        Parsed rows plus parser warnings and errors.

    Raises
    ------
    ParseError
        If the file cannot be read or its format is not recognised.
    """
    file_path = Path(file_path)
    try:
        file_bytes = file_path.read_bytes()
    except OSError as e:
        raise ParseError(f"Failed to read file: {e}", file=str(file_path)) from e

    encoding = detect_encoding(file_bytes)
    content = normalize_line_endings(file_bytes.decode(encoding))
    suffix = file_path.suffix.lower()

    format_detected = sniff_format(content.split("\n"), suffix)
    parser = _PARSER_MAP.get(format_detected)
    if parser is None:
        raise ParseError(
            f"No parser available for format: {format_detected}", file=str(file_path)
        )

    return parser(content, file_path.name, suffix)


def read_file(file_path: Path | str, logger: AuditLogger | None = None) -> RecordTable:
    """Import one file as a record table.

    Each record's ``source`` is the file name. Parser warnings are emitted
    as ``parse_warning`` events when a logger is attached.

    Raises
    ------
    ParseError
        If the file cannot be read, its format is unknown, or the parser
        reported errors.
    """
    path = Path(file_path)
    rows, warnings, errors, fields = parse_file(path)

    if logger:
        for message in warnings:
            logger.event(
                "parse_warning",
                data={"message": message},
                level="WARN",
                stage=STAGE_NAME,
            )

    if errors:
        raise ParseError("; ".join(errors), file=str(path))

    return RecordTable.from_dicts(rows, fields=fields or None, sources=[path.name] * len(rows))


def read_files(
    file_paths: Iterable[Path | str],
    logger: AuditLogger | None = None,
) -> RecordTable:
    """Import several files into one table, in the order given.

    The schema is the ordered union of the files' schemas; fields a file
    does not have are missing (None) for its records.
    """
    paths = [Path(p) for p in file_paths]
    start = time.perf_counter()

    if logger:
        logger.stage_started(STAGE_NAME)

    tables = []
    for path in paths:
        table = read_file(path, logger=logger)
        tables.append(table)
        if logger:
            logger.event(
                "file_parsed",
                data={"file": path.name, "records": len(table)},
                stage=STAGE_NAME,
            )

    combined = RecordTable.concat(tables)

    if logger:
        logger.stage_finished(
            STAGE_NAME,
            duration_seconds=time.perf_counter() - start,
            counters={"files": len(paths), "records": len(combined)},
        )

    return combined
