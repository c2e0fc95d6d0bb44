"""Audit event envelope."""

import json
from dataclasses import asdict, dataclass, field
from typing import Any

__all__ = ["LEVELS", "LogEvent"]

LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


@dataclass(frozen=True)
class LogEvent:
    """One line of ``events.jsonl``.

    ``stage`` and ``index`` are always serialized, as null when the event
    is not tied to a stage or to a single record.

    Attributes
    ----------
    ts : str
        UTC timestamp, ``Z`` suffixed.
    run_id : str
        Run the event belongs to.
    level : str
        One of ``LEVELS``.
    event : str
        Event name, e.g. ``record_flagged``.
    stage : str | None
        Pipeline stage (``parse``, ``normalize``, ``candidates``, ...).
    index : int | None
        Position of the record in the input table.
    data : dict[str, Any]
        Event payload.
    """

    ts: str
    run_id: str
    level: str
    event: str
    stage: str | None = None
    index: int | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.level not in LEVELS:
            raise ValueError(f"Unknown log level: {self.level!r}")

    def to_json(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, separators=(",", ":"))
