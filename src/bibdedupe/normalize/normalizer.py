"""Comparison-ready field normalization.

Every transform is pure, deterministic and locale-independent. The same
options are applied to both sides of every comparison, and the derived values
are never written back into the records.
"""

import re
import string
import unicodedata
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from bibdedupe.models.records import RecordTable

__all__ = [
    "NormalizerOptions",
    "normalize_text",
    "normalize_column",
    "normalize_fields",
]

WHITESPACE_RE = re.compile(r"\s+")
_ASCII_PUNCT = frozenset(string.punctuation)


@dataclass(frozen=True)
class NormalizerOptions:
    """Toggles for the field normalizer.

    Attributes
    ----------
    to_lower : bool
        Case-fold text with ``str.casefold``.
    rm_punctuation : bool
        Delete punctuation characters (Unicode ``P*`` categories and the
        ASCII punctuation set).
    trim_whitespace : bool
        Collapse whitespace runs to a single space and strip both ends.
    """

    to_lower: bool = False
    rm_punctuation: bool = False
    trim_whitespace: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _is_punctuation(char: str) -> bool:
    return char in _ASCII_PUNCT or unicodedata.category(char).startswith("P")


def strip_punctuation(text: str) -> str:
    """Remove punctuation characters, leaving everything else in place.

    Parameters
    ----------
    text : str
        Input text.

    Returns
    -------
    str
        Text without punctuation.
    """
    return "".join(c for c in text if not _is_punctuation(c))


def normalize_text(text: str | None, options: NormalizerOptions) -> str | None:
    """Normalize one value for comparison.

    Transforms run in a fixed order: case folding, punctuation removal,
    whitespace collapsing.

    Parameters
    ----------
    text : str | None
        Raw field value.
    options : NormalizerOptions
        Enabled transforms.

    Returns
    -------
    str | None
        Normalized value, or None when the input is missing or nothing but
        whitespace remains.

    Examples
    --------
        >>> normalize_text("  The  WOODPECKER. ", NormalizerOptions(to_lower=True))
        'the woodpecker.'
    """
    if text is None:
        return None

    if options.to_lower:
        text = text.casefold()
    if options.rm_punctuation:
        text = strip_punctuation(text)
    if options.trim_whitespace:
        text = WHITESPACE_RE.sub(" ", text).strip()

    if not text.strip():
        return None
    return text


def normalize_column(
    table: RecordTable,
    field: str,
    options: NormalizerOptions,
) -> list[str | None]:
    """Normalize *field* for every record, in record order."""
    return [normalize_text(record.get(field), options) for record in table]


def normalize_fields(
    table: RecordTable,
    fields: Sequence[str],
    options: NormalizerOptions,
) -> dict[str, list[str | None]]:
    """Normalize several fields at once.

    Returns
    -------
    dict[str, list[str | None]]
        Field name to per-record normalized values.
    """
    return {name: normalize_column(table, name, options) for name in fields}
