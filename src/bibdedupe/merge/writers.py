"""Writers for deduplicated outputs (RIS, delimited text, JSONL)."""

import csv
import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from bibdedupe.models.records import Record, RecordTable
from bibdedupe.parse.tag_mappings import MULTI_VALUE_FIELDS, TAG_MAPPINGS

__all__ = [
    "format_ris_record",
    "write_delimited",
    "write_jsonl",
    "write_ris",
]

DEFAULT_RIS_TYPE = "JOUR"

# Field -> output tag (first tag of each mapping); type, pages handled apart
_RIS_TAGS: dict[str, str] = {
    field: tags[0]
    for field, tags in TAG_MAPPINGS.items()
    if field not in {"type", "pages_start", "pages_end"}
}


def format_ris_record(record: Record, line_ending: str = "\r\n") -> str:
    """Format one record as RIS.

    Multi-valued fields (authors, keywords) are split on ``"; "`` into one
    tag per value. ``pages`` of the form ``start-end`` becomes ``SP``/``EP``.
    Fields without an RIS tag are not written.
    """
    lines = [f"TY  - {record.get('type') or DEFAULT_RIS_TYPE}"]

    for field, tag in _RIS_TAGS.items():
        value = record.get(field)
        if value is None:
            continue
        if field in MULTI_VALUE_FIELDS:
            lines.extend(f"{tag}  - {part.strip()}" for part in value.split(";") if part.strip())
        else:
            lines.append(f"{tag}  - {value}")

    pages = record.get("pages")
    if pages:
        start, sep, end = pages.partition("-")
        lines.append(f"SP  - {start.strip()}")
        if sep and end.strip():
            lines.append(f"EP  - {end.strip()}")

    lines.append("ER  -")
    return line_ending.join(lines)


def write_ris(table: RecordTable, output_path: Path, line_ending: str = "\r\n") -> int:
    """Write records to an RIS file.

    Parameters
    ----------
    table : RecordTable
        Records to write.
    output_path : Path
        Output file path.
    line_ending : str, optional
        Line ending to use, by default "\\r\\n".

    Returns
    -------
    int
        Number of records written.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", encoding="utf-8", newline="") as f:
        for i, record in enumerate(table):
            if i:
                f.write(line_ending * 2)
            f.write(format_ris_record(record, line_ending))
        if len(table):
            f.write(line_ending)
    return len(table)


def write_delimited(table: RecordTable, output_path: Path, delimiter: str = ",") -> int:
    """Write records as delimited text with a header row.

    Missing values are written as empty cells. Returns the number of
    records written.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with output_path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f, delimiter=delimiter)
        writer.writerow(table.fields)
        for record in table:
            writer.writerow([record.get(name) or "" for name in table.fields])
    return len(table)


def write_jsonl(rows: Iterable[Mapping[str, Any]], output_path: Path) -> int:
    """Write one JSON object per line. Returns the number of lines written."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with output_path.open("w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(dict(row), ensure_ascii=False, sort_keys=True))
            f.write("\n")
            count += 1
    return count
