"""RIS format parser.

RIS specification: Two-letter tags, "TY  - " starts record, "ER  - " ends it.
Reference: https://refdb.sourceforge.net/manual-0.9.6/sect1-ris-format.html
"""

import re

from bibdedupe.parse.base import ParseResult, Row
from bibdedupe.parse.tag_mappings import MULTI_VALUE_FIELDS, TAG_MAPPINGS

__all__ = ["parse_ris"]

TAG_PATTERN = re.compile(r"^([A-Z0-9]{2})  - ?(.*)$")
YEAR_PATTERN = re.compile(r"\b(\d{4})\b")

Tag = tuple[str, str]


def parse_ris(lines: list[str], source: str | None = None) -> ParseResult:
    """Parse RIS lines into canonical field rows.

    Parameters
    ----------
    lines : list[str]
        File content as decoded lines (LF line endings).
    source : str | None, optional
        Label used in warning messages (usually the file name).

    Returns
    -------
    ParseResult
        Rows, warnings, and errors.
    """
    prefix = f"{source}: " if source else ""
    warnings: list[str] = []
    errors: list[str] = []
    rows: list[Row] = []

    current_tags: list[Tag] = []
    in_record = False
    current_tag: str | None = None
    current_value_lines: list[str] = []

    def flush_tag() -> None:
        nonlocal current_tag, current_value_lines
        if current_tag is not None:
            value = " ".join(part.strip() for part in current_value_lines if part.strip())
            current_tags.append((current_tag, value))
        current_tag = None
        current_value_lines = []

    for line_num, line in enumerate(lines, start=1):
        match = TAG_PATTERN.match(line)

        if match:
            flush_tag()
            tag, value = match.groups()

            if tag == "TY":
                if in_record:
                    warnings.append(
                        f"{prefix}Line {line_num}: Found TY without closing ER for previous record"
                    )
                    _append_row(rows, current_tags)
                in_record = True
                current_tags = []
                current_tag = tag
                current_value_lines = [value]

            elif tag == "ER":
                if not in_record:
                    warnings.append(f"{prefix}Line {line_num}: Found ER without opening TY")
                else:
                    _append_row(rows, current_tags)
                    in_record = False
                    current_tags = []

            elif in_record:
                current_tag = tag
                current_value_lines = [value]

        elif in_record:
            if line and line[0].isspace() and current_tag is not None:
                current_value_lines.append(line)
            elif line.strip():
                warnings.append(
                    f"{prefix}Line {line_num}: Unrecognized line in record: {line[:50]}"
                )

    if in_record:
        warnings.append(f"{prefix}End of file reached without closing ER tag")
        flush_tag()
        _append_row(rows, current_tags)

    return ParseResult(rows, warnings, errors)


def _append_row(rows: list[Row], tags: list[Tag]) -> None:
    row = _tags_to_row(tags)
    if row:
        rows.append(row)


def _tags_to_row(tags: list[Tag]) -> Row:
    """Map raw RIS tags to canonical fields via ``TAG_MAPPINGS``."""
    by_tag: dict[str, list[str]] = {}
    for tag, value in tags:
        if value:
            by_tag.setdefault(tag, []).append(value)

    row: Row = {}
    for field, tag_names in TAG_MAPPINGS.items():
        if field in MULTI_VALUE_FIELDS:
            values = [v for name in tag_names for v in by_tag.get(name, [])]
            if values:
                row[field] = "; ".join(values)
            continue
        for name in tag_names:
            if name in by_tag:
                row[field] = by_tag[name][0]
                break

    if "year" in row:
        found = YEAR_PATTERN.search(row["year"] or "")
        row["year"] = found.group(1) if found else None

    start = row.pop("pages_start", None)
    end = row.pop("pages_end", None)
    if start and end:
        row["pages"] = f"{start}-{end}"
    elif start or end:
        row["pages"] = start or end

    return row
