"""Public API for importing and deduplicating bibliographic files.

This module provides the high-level entry points of bibdedupe:
- Reading files and folders into a RecordTable
- Running a deduplication over files with a full audit trail
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from bibdedupe.audit import AuditLogger, generate_run_id, get_package_version
from bibdedupe.engine import DedupConfig, deduplicate
from bibdedupe.errors import ConfigurationError
from bibdedupe.merge import extract_unique_records, write_delimited, write_jsonl, write_ris
from bibdedupe.models import DeduplicationResult, RecordTable
from bibdedupe.parse import SUPPORTED_EXTENSIONS, read_files
from bibdedupe.utils import file_sha256

__all__ = [
    "OUTPUT_FORMATS",
    "DedupeRun",
    "collect_input_files",
    "dedupe_files",
    "read_records",
]

OUTPUT_FORMATS = ("ris", "csv")

EVENTS_FILENAME = "events.jsonl"
CLUSTERS_FILENAME = "clusters.jsonl"


@dataclass(frozen=True)
class DedupeRun:
    """Outcome of ``dedupe_files``.

    Attributes
    ----------
    run_id : str
        Identifier shared by every event of the run.
    result : DeduplicationResult
        Clusters over the imported records.
    unique : RecordTable
        Surviving records as written to disk.
    output_files : dict[str, str]
        Map of artifact name to file path.
    """

    run_id: str
    result: DeduplicationResult
    unique: RecordTable
    output_files: dict[str, str] = field(default_factory=dict)

    @property
    def dedup_rate(self) -> float:
        """Fraction of input records removed (0.0-1.0)."""
        total = self.result.n_records
        return self.result.n_removed / total if total else 0.0


def collect_input_files(paths: Iterable[str | Path], recursive: bool = False) -> list[Path]:
    """Expand folders into the supported files they contain.

    Files are kept in the order given; files found in a folder are sorted
    by path.

    Raises
    ------
    FileNotFoundError
        If a path does not exist.
    """
    files: list[Path] = []
    for raw in paths:
        path = Path(raw)
        if not path.exists():
            raise FileNotFoundError(f"Input path not found: {raw}")
        if path.is_dir():
            found = path.rglob("*") if recursive else path.glob("*")
            files.extend(
                sorted(
                    f for f in found
                    if f.is_file() and f.suffix.lower() in SUPPORTED_EXTENSIONS
                )
            )
        else:
            files.append(path)
    return files


def read_records(
    paths: str | Path | Iterable[str | Path],
    *,
    recursive: bool = False,
    logger: AuditLogger | None = None,
) -> RecordTable:
    """Import bibliographic files into one record table.

    Parameters
    ----------
    paths : str | Path | Iterable[str | Path]
        Files and/or folders. Format is auto-detected from file content.
    recursive : bool, optional
        Search folders recursively, by default False.
    logger : AuditLogger | None, optional
        Audit logger for parse events.

    Returns
    -------
    RecordTable
        Records of all files, in input order.

    Raises
    ------
    FileNotFoundError
        If a path does not exist.
    ParseError
        If a file cannot be parsed.

    Examples
    --------
        >>> from bibdedupe import read_records
        >>> table = read_records(["scopus.csv", "wos.ris"])
        >>> table.fields[:3]
        ('title', 'author', 'year')
    """
    if isinstance(paths, (str, Path)):
        paths = [paths]
    return read_files(collect_input_files(paths, recursive=recursive), logger=logger)


def _artifact(logger: AuditLogger, path: Path, output_dir: Path, records: int) -> None:
    logger.artifact_written(
        path=str(path.relative_to(output_dir)),
        sha256=file_sha256(path),
        stage="export",
        bytes_written=path.stat().st_size,
        record_count=records,
    )


def dedupe_files(
    inputs: str | Path | Iterable[str | Path],
    output_dir: str | Path = "out",
    config: DedupConfig | None = None,
    *,
    strategy: str = "select",
    output_format: str = "ris",
    recursive: bool = False,
) -> DedupeRun:
    """Import, deduplicate and export bibliographic files.

    Writes ``unique.ris`` (or ``unique.csv``), ``clusters.jsonl`` and the
    audit log ``events.jsonl`` to *output_dir*.

    Parameters
    ----------
    inputs : str | Path | Iterable[str | Path]
        Files and/or folders to import.
    output_dir : str | Path, optional
        Directory for output files, by default "out".
    config : DedupConfig | None, optional
        Deduplication configuration. If None, uses defaults (exact match on
        title).
    strategy : str, optional
        ``select`` or ``merge`` (see ``extract_unique_records``).
    output_format : str, optional
        ``ris`` or ``csv``, by default "ris".
    recursive : bool, optional
        Search input folders recursively.

    Returns
    -------
    DedupeRun
        Result, surviving records and written file paths.

    Raises
    ------
    ConfigurationError
        If the configuration or output options are invalid.
    ParseError
        If an input file cannot be parsed.

    Examples
    --------
        >>> from bibdedupe import DedupConfig, dedupe_files
        >>> run = dedupe_files("data/", "results", DedupConfig(method="fuzzy:osa"))
        >>> run.output_files["unique"]
        'results/unique.ris'
    """
    if output_format not in OUTPUT_FORMATS:
        raise ConfigurationError(
            f"Unknown output format: {output_format!r}. Use one of: {', '.join(OUTPUT_FORMATS)}"
        )
    if config is None:
        config = DedupConfig()

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    run_id = generate_run_id()
    start = time.perf_counter()

    with AuditLogger(run_id, out / EVENTS_FILENAME) as logger:
        logger.run_started(
            command=["dedupe_files"],
            parameters={
                **config.to_dict(),
                "version": get_package_version(),
                "strategy": strategy,
                "output_format": output_format,
            },
        )
        try:
            table = read_records(inputs, recursive=recursive, logger=logger)
            result = deduplicate(table, config=config, logger=logger)
            unique = extract_unique_records(result, strategy=strategy)

            export_start = time.perf_counter()
            logger.stage_started("export")
            unique_path = out / f"unique.{output_format}"
            if output_format == "ris":
                write_ris(unique, unique_path)
            else:
                write_delimited(unique, unique_path)
            clusters_path = out / CLUSTERS_FILENAME
            write_jsonl((c.to_dict() for c in result.clusters), clusters_path)

            _artifact(logger, unique_path, out, len(unique))
            _artifact(logger, clusters_path, out, result.n_clusters)
            logger.stage_finished(
                "export",
                duration_seconds=time.perf_counter() - export_start,
                counters={"records_written": len(unique)},
            )
        except Exception as e:
            logger.error(type(e).__name__, str(e), stage=logger.current_stage)
            logger.run_finished("failed", time.perf_counter() - start)
            raise

        logger.run_finished("success", time.perf_counter() - start, len(table))

    return DedupeRun(
        run_id=run_id,
        result=result,
        unique=unique,
        output_files={
            "unique": str(unique_path),
            "clusters": str(clusters_path),
            "events": str(out / EVENTS_FILENAME),
        },
    )
