"""Registry-based factory for blocker instantiation.

New blocker types are added by extending ``BLOCKER_REGISTRY``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from bibdedupe.candidates.blockers import (
    Blocker,
    ExactValueBlocker,
    FieldBlocker,
    MinHashBlocker,
    NoBlocker,
    PrefixBlocker,
)
from bibdedupe.errors import ConfigurationError

# type → class returning a Blocker
BLOCKER_REGISTRY: dict[str, type] = {
    "none": NoBlocker,
    "exact": ExactValueBlocker,
    "prefix": PrefixBlocker,
    "field": FieldBlocker,
    "minhash": MinHashBlocker,
}


@dataclass(frozen=True)
class BlockerConfig:
    """Declarative configuration for a single blocker.

    Attributes
    ----------
    type : str
        Key in ``BLOCKER_REGISTRY``.
    enabled : bool
        Disabled configs are silently skipped by ``create_blockers``.
    params : dict[str, Any]
        Keyword arguments forwarded to the blocker constructor.
    """

    type: str
    enabled: bool = True
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, spec: str | Mapping[str, Any] | BlockerConfig) -> BlockerConfig:
        """Build a config from a name, a mapping or an existing config.

        Strings use the short form ``type`` or ``type:argument``, where the
        argument is the grouping field for ``field`` and the prefix length
        for ``prefix`` (e.g. ``field:year``, ``prefix:6``).

        Raises
        ------
        ConfigurationError
            If the specification is malformed.
        """
        if isinstance(spec, BlockerConfig):
            return spec
        if isinstance(spec, Mapping):
            if "type" not in spec:
                raise ConfigurationError(f"Blocker config needs a 'type': {dict(spec)!r}")
            return cls(
                type=str(spec["type"]),
                enabled=bool(spec.get("enabled", True)),
                params=dict(spec.get("params", {})),
            )

        name, _, arg = str(spec).strip().partition(":")
        if not arg:
            return cls(type=name)
        if name == "field":
            return cls(type=name, params={"field": arg})
        if name == "prefix":
            try:
                return cls(type=name, params={"prefix_len": int(arg)})
            except ValueError:
                raise ConfigurationError(f"Invalid prefix length in {spec!r}") from None
        raise ConfigurationError(f"Blocker {name!r} takes no argument: {spec!r}")

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "enabled": self.enabled, "params": dict(self.params)}


def create_blocker(config: BlockerConfig) -> Blocker:
    """Instantiate a single blocker from *config*.

    Parameters
    ----------
    config : BlockerConfig
        Blocker specification.

    Returns
    -------
    Blocker
        Ready-to-use blocker instance.

    Raises
    ------
    ConfigurationError
        If ``config.type`` is not in the registry or its parameters are
        rejected by the constructor.
    """
    cls = BLOCKER_REGISTRY.get(config.type)
    if cls is None:
        valid = ", ".join(sorted(BLOCKER_REGISTRY))
        raise ConfigurationError(f"Unknown blocker type: {config.type!r}. Valid types: {valid}")
    try:
        return cls(**config.params)  # type: ignore[no-any-return]
    except TypeError as e:
        raise ConfigurationError(f"Invalid parameters for blocker {config.type!r}: {e}") from e


def create_blockers(configs: list[BlockerConfig]) -> list[Blocker]:
    """Instantiate all *enabled* blockers from a config list."""
    return [create_blocker(cfg) for cfg in configs if cfg.enabled]
