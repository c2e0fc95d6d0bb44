"""Mappings from source tags and column headers to canonical field names.

Adding a tag or a column spelling requires only an entry here; parsers
never hard-code source names.
"""

import re

__all__ = [
    "COLUMN_ALIASES",
    "MULTI_VALUE_FIELDS",
    "TAG_MAPPINGS",
    "canonical_column",
]

# RIS: field -> tags in priority order
TAG_MAPPINGS: dict[str, list[str]] = {
    "type": ["TY"],
    "title": ["TI", "T1"],
    "author": ["AU", "A1"],
    "year": ["PY", "Y1", "DA"],
    "journal": ["JF", "JO", "T2"],
    "journal_abbrev": ["JA", "J1", "J2"],
    "volume": ["VL"],
    "issue": ["IS"],
    "pages_start": ["SP"],
    "pages_end": ["EP"],
    "abstract": ["AB", "N2"],
    "doi": ["DO", "DI"],
    "issn": ["SN"],
    "url": ["UR", "L1", "L2"],
    "keywords": ["KW"],
    "language": ["LA"],
    "database": ["DB"],
}

# Fields that collect every occurrence instead of the first one
MULTI_VALUE_FIELDS = frozenset({"author", "keywords"})

# Delimited headers (lower-cased) -> canonical field
COLUMN_ALIASES: dict[str, str] = {
    "title": "title",
    "article title": "title",
    "document title": "title",
    "ti": "title",
    "author": "author",
    "authors": "author",
    "author full names": "author",
    "au": "author",
    "year": "year",
    "publication year": "year",
    "py": "year",
    "journal": "journal",
    "source title": "journal",
    "publication title": "journal",
    "so": "journal",
    "volume": "volume",
    "issue": "issue",
    "pages": "pages",
    "page": "pages",
    "abstract": "abstract",
    "ab": "abstract",
    "doi": "doi",
    "di": "doi",
    "issn": "issn",
    "url": "url",
    "link": "url",
    "keywords": "keywords",
    "author keywords": "keywords",
    "language": "language",
    "type": "type",
    "document type": "type",
}

_NON_WORD_RE = re.compile(r"[^0-9a-z]+")


def canonical_column(header: str) -> str:
    """Map a delimited-file header to a canonical field name.

    Known spellings go through ``COLUMN_ALIASES`` (case-insensitive); any
    other header is kept as a lower-cased snake_case name.

    Examples
    --------
        >>> canonical_column("Publication Year")
        'year'
        >>> canonical_column("Times Cited, All Databases")
        'times_cited_all_databases'
    """
    key = " ".join(header.strip().lower().split())
    if key in COLUMN_ALIASES:
        return COLUMN_ALIASES[key]
    return _NON_WORD_RE.sub("_", key).strip("_") or "column"
