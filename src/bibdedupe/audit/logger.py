"""JSONL audit log for deduplication runs.

Every stage of a run, every record flagged for data quality and every file
written is recorded as one JSON object per line. The log is opened in
append mode, so repeated runs into the same output directory accumulate.
"""

from pathlib import Path
from typing import Any

from bibdedupe.audit.models import LogEvent
from bibdedupe.utils import utc_timestamp

__all__ = ["AuditLogger"]


class AuditLogger:
    """Append-only event writer bound to one run.

    Events are flushed as they are written, so a log left behind by a
    failed run is complete up to the failure.

    Attributes
    ----------
    run_id : str
        Identifier stamped on every event.
    log_path : Path
        Target ``.jsonl`` file; parent directories are created.
    current_stage : str | None
        Stage inherited by events that do not name one.
    """

    def __init__(self, run_id: str, log_path: Path) -> None:
        self.run_id = run_id
        self.log_path = Path(log_path)
        self.current_stage: str | None = None

        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        self._file = self.log_path.open("a", encoding="utf-8")

    def __enter__(self) -> "AuditLogger":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def set_stage(self, stage: str | None) -> None:
        self.current_stage = stage

    def event(
        self,
        event_type: str,
        data: dict[str, Any] | None = None,
        level: str = "INFO",
        stage: str | None = None,
        index: int | None = None,
    ) -> None:
        """Write one event.

        Parameters
        ----------
        event_type : str
            Event name.
        data : dict[str, Any] | None, optional
            Payload, empty by default.
        level : str, optional
            ``DEBUG``, ``INFO``, ``WARN`` or ``ERROR``.
        stage : str | None, optional
            Overrides ``current_stage`` for this event.
        index : int | None, optional
            Record the event is about.

        Raises
        ------
        ValueError
            If *level* is not a known log level.
        """
        entry = LogEvent(
            ts=utc_timestamp(),
            run_id=self.run_id,
            level=level,
            event=event_type,
            stage=stage if stage is not None else self.current_stage,
            index=index,
            data=data or {},
        )
        self._file.write(entry.to_json() + "\n")
        self._file.flush()

    # Run lifecycle

    def run_started(self, command: list[str], parameters: dict[str, Any]) -> None:
        self.event("run_started", data={"command": command, "parameters": parameters})

    def run_finished(
        self,
        status: str,
        duration_seconds: float,
        records_processed: int | None = None,
    ) -> None:
        """Close the run with ``success`` or ``failed``."""
        data: dict[str, Any] = {"status": status, "duration_seconds": duration_seconds}
        if records_processed is not None:
            data["records_processed"] = records_processed
        self.event("run_finished", data=data)

    def error(self, exception_class: str, message: str, stage: str | None = None) -> None:
        self.event(
            "error",
            data={"exception_class": exception_class, "message": message},
            level="ERROR",
            stage=stage,
        )

    # Stages

    def stage_started(self, stage: str, expected_records: int | None = None) -> None:
        """Enter *stage*; later events inherit it until the next stage."""
        self.set_stage(stage)
        data = {} if expected_records is None else {"expected_records": expected_records}
        self.event("stage_started", data=data, stage=stage)

    def stage_finished(
        self,
        stage: str,
        duration_seconds: float,
        counters: dict[str, int] | None = None,
    ) -> None:
        """Report the stage duration and its integer counters.

        Parameters
        ----------
        stage : str
            Stage being closed.
        duration_seconds : float
            Wall time spent in the stage.
        counters : dict[str, int] | None, optional
            E.g. ``{"pairs_compared": 12, "pairs_matched": 3}``.
        """
        data: dict[str, Any] = {"duration_seconds": duration_seconds}
        if counters:
            data["counters"] = counters
        self.event("stage_finished", data=data, stage=stage)

    # Records and artifacts

    def record_flagged(
        self,
        index: int,
        flag_name: str,
        reason_code: str,
        stage: str | None = None,
        fields: tuple[str, ...] = (),
    ) -> None:
        """Warn that record *index* was left out of matching.

        Parameters
        ----------
        index : int
            Record position in the input table.
        flag_name : str
            Flag family, e.g. ``data_quality``.
        reason_code : str
            ``match_fields_missing`` or ``primary_field_missing``.
        stage : str | None, optional
            Stage that raised the flag.
        fields : tuple[str, ...], optional
            Match fields the record has no value for.
        """
        data: dict[str, Any] = {"flag_name": flag_name, "reason_code": reason_code}
        if fields:
            data["fields"] = list(fields)
        self.event("record_flagged", data=data, level="WARN", stage=stage, index=index)

    def artifact_written(
        self,
        path: str,
        sha256: str,
        stage: str | None = None,
        bytes_written: int | None = None,
        record_count: int | None = None,
    ) -> None:
        """Record an output file with its digest, size and record count."""
        data: dict[str, Any] = {"path": path, "sha256": sha256}
        if bytes_written is not None:
            data["bytes"] = bytes_written
        if record_count is not None:
            data["record_count"] = record_count
        self.event("artifact_written", data=data, stage=stage)
