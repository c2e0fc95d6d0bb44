"""Audit trail of deduplication runs.

``AuditLogger`` writes ``events.jsonl``; ``LogEvent`` is one line of it.
"""

from bibdedupe.audit.helpers import generate_run_id, get_package_version
from bibdedupe.audit.logger import AuditLogger
from bibdedupe.audit.models import LEVELS, LogEvent

__all__ = [
    "AuditLogger",
    "LEVELS",
    "LogEvent",
    "generate_run_id",
    "get_package_version",
]
