"""Deduplication configuration.

A ``DedupConfig`` is passed explicitly to every deduplication call; there are
no package-level mutable defaults.
"""

import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema

from bibdedupe.candidates.factory import BLOCKER_REGISTRY, BlockerConfig
from bibdedupe.errors import ConfigurationError
from bibdedupe.normalize import NormalizerOptions
from bibdedupe.similarity.engine import (
    DEFAULT_THRESHOLD,
    MatchKind,
    MatchMethod,
    parse_method,
)

__all__ = [
    "CONFIG_SCHEMA",
    "MISSING_POLICIES",
    "DedupConfig",
    "load_config",
]

MISSING_POLICIES = ("fallback", "skip")

_STRING_OR_LIST = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {"type": "array", "items": {"type": "string", "minLength": 1}, "minItems": 1},
    ]
}

_BLOCKER_ITEM = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {
            "type": "object",
            "properties": {
                "type": {"type": "string"},
                "enabled": {"type": "boolean"},
                "params": {"type": "object"},
            },
            "required": ["type"],
            "additionalProperties": False,
        },
    ]
}

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "bibdedupe configuration",
    "type": "object",
    "properties": {
        "match_by": _STRING_OR_LIST,
        "method": {"type": "string", "minLength": 1},
        "threshold": {"type": "number", "minimum": 0, "maximum": 1},
        "to_lower": {"type": "boolean"},
        "rm_punctuation": {"type": "boolean"},
        "trim_whitespace": {"type": "boolean"},
        "missing_policy": {"enum": list(MISSING_POLICIES)},
        "blocking": {
            "oneOf": [
                {"const": "auto"},
                {"type": "array", "items": _BLOCKER_ITEM},
            ]
        },
        "workers": {"type": "integer", "minimum": 1},
    },
    "additionalProperties": False,
}


def _as_tuple(value: str | Sequence[str]) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class DedupConfig:
    """Configuration for one deduplication run.

    Attributes
    ----------
    match_by : tuple[str, ...]
        Fields compared, in priority order (a single string is accepted).
    method : str
        ``exact`` or ``fuzzy:<algorithm>`` (default ``exact``).
    threshold : float
        Minimum similarity ratio for fuzzy matches (default 0.9).
    to_lower : bool
        Case-fold values before comparing.
    rm_punctuation : bool
        Strip punctuation before comparing.
    trim_whitespace : bool
        Collapse whitespace before comparing (default True).
    missing_policy : str
        ``fallback``: a pair is decided on the first match field both
        records have. ``skip``: only the first match field is used.
    blocking : str | tuple[BlockerConfig, ...]
        ``auto`` (exact-value blocking for the exact method, full pairwise
        comparison otherwise) or explicit blocker configurations.
    workers : int
        Threads used for pairwise comparison (1 = sequential).
    """

    match_by: tuple[str, ...] = ("title",)
    method: str = "exact"
    threshold: float = DEFAULT_THRESHOLD
    to_lower: bool = False
    rm_punctuation: bool = False
    trim_whitespace: bool = True
    missing_policy: str = "fallback"
    blocking: str | tuple[BlockerConfig, ...] = "auto"
    workers: int = 1
    _method: MatchMethod = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Coerce list-like options and validate everything schema-free."""
        object.__setattr__(self, "match_by", _as_tuple(self.match_by))
        if self.blocking != "auto":
            if isinstance(self.blocking, (str, Mapping, BlockerConfig)):
                specs: Sequence[Any] = [self.blocking]
            else:
                specs = list(self.blocking)
            object.__setattr__(
                self, "blocking", tuple(BlockerConfig.parse(spec) for spec in specs)
            )

        if not self.match_by:
            raise ConfigurationError("match_by must name at least one field")
        if any(not isinstance(name, str) or not name for name in self.match_by):
            raise ConfigurationError(
                f"match_by entries must be non-empty strings: {self.match_by!r}"
            )

        object.__setattr__(self, "_method", parse_method(self.method))

        if isinstance(self.threshold, bool) or not isinstance(self.threshold, (int, float)):
            raise ConfigurationError(f"threshold must be a number, got {self.threshold!r}")
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigurationError(f"threshold must be in [0, 1], got {self.threshold}")

        if self.missing_policy not in MISSING_POLICIES:
            raise ConfigurationError(
                f"missing_policy must be one of {', '.join(MISSING_POLICIES)}, "
                f"got {self.missing_policy!r}"
            )

        if isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1:
            raise ConfigurationError(f"workers must be an integer >= 1, got {self.workers!r}")

        if self.blocking != "auto":
            for cfg in self.blocking:
                if cfg.type not in BLOCKER_REGISTRY:
                    valid = ", ".join(sorted(BLOCKER_REGISTRY))
                    raise ConfigurationError(
                        f"Unknown blocker type: {cfg.type!r}. Valid types: {valid}"
                    )

    @property
    def match_method(self) -> MatchMethod:
        return self._method

    @property
    def normalizer_options(self) -> NormalizerOptions:
        return NormalizerOptions(
            to_lower=self.to_lower,
            rm_punctuation=self.rm_punctuation,
            trim_whitespace=self.trim_whitespace,
        )

    @property
    def compare_fields(self) -> tuple[str, ...]:
        """Fields consulted when comparing a pair under ``missing_policy``."""
        if self.missing_policy == "skip":
            return self.match_by[:1]
        return self.match_by

    def blocker_configs(self) -> tuple[BlockerConfig, ...]:
        """Resolve ``blocking`` into concrete blocker configurations."""
        if self.blocking == "auto":
            kind = "exact" if self._method.kind is MatchKind.EXACT else "none"
            return (BlockerConfig(type=kind),)
        return self.blocking  # type: ignore[return-value]

    def validate(self, schema_fields: Sequence[str]) -> None:
        """Check the configuration against a record schema.

        Parameters
        ----------
        schema_fields : Sequence[str]
            Field names of the record table.

        Raises
        ------
        ConfigurationError
            If a match or blocking field is not in the schema.
        """
        available = set(schema_fields)
        unknown = [name for name in self.match_by if name not in available]
        if unknown:
            raise ConfigurationError(
                f"match_by field(s) not in record schema: {', '.join(unknown)}. "
                f"Available fields: {', '.join(schema_fields) or '(none)'}"
            )

        for cfg in self.blocker_configs():
            blocking_field = cfg.params.get("field")
            if cfg.type == "field" and blocking_field not in available:
                raise ConfigurationError(
                    f"Blocking field {blocking_field!r} not in record schema"
                )

    def with_overrides(self, **overrides: Any) -> "DedupConfig":
        """Return a copy with the given options replaced (None values ignored)."""
        data = self.to_dict()
        for key, value in overrides.items():
            if value is None:
                continue
            data[key] = list(value) if isinstance(value, tuple) else value
        return DedupConfig.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        blocking: Any
        if self.blocking == "auto":
            blocking = "auto"
        else:
            blocking = [cfg.to_dict() for cfg in self.blocking]  # type: ignore[union-attr]
        return {
            "match_by": list(self.match_by),
            "method": self.method,
            "threshold": self.threshold,
            "to_lower": self.to_lower,
            "rm_punctuation": self.rm_punctuation,
            "trim_whitespace": self.trim_whitespace,
            "missing_policy": self.missing_policy,
            "blocking": blocking,
            "workers": self.workers,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DedupConfig":
        """Build a configuration from a plain mapping.

        The mapping is validated against ``CONFIG_SCHEMA`` first.

        Raises
        ------
        ConfigurationError
            If the mapping does not satisfy the schema or the options are
            inconsistent.
        """
        try:
            jsonschema.validate(instance=dict(data), schema=CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            location = "/".join(str(p) for p in e.absolute_path) or "(root)"
            raise ConfigurationError(f"Invalid configuration at {location}: {e.message}") from e

        kwargs = dict(data)
        if "match_by" in kwargs:
            kwargs["match_by"] = _as_tuple(kwargs["match_by"])
        if isinstance(kwargs.get("blocking"), list):
            kwargs["blocking"] = tuple(BlockerConfig.parse(b) for b in kwargs["blocking"])
        return cls(**kwargs)


def load_config(path: str | Path) -> DedupConfig:
    """Load a JSON configuration file.

    Raises
    ------
    ConfigurationError
        If the file cannot be read, is not valid JSON, or fails validation.
    """
    config_path = Path(path)
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {config_path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {config_path} must contain a JSON object")
    return DedupConfig.from_dict(data)
