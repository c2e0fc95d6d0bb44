"""Field normalization for comparison."""

from bibdedupe.normalize.normalizer import (
    NormalizerOptions,
    normalize_column,
    normalize_fields,
    normalize_text,
    strip_punctuation,
)

__all__ = [
    "NormalizerOptions",
    "normalize_column",
    "normalize_fields",
    "normalize_text",
    "strip_punctuation",
]
