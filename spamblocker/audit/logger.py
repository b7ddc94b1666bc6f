"""
Audit Logger — append-only JSON-lines record of risk assessments.

One line per assessed publication, keyed by evaluation id and stamped with the
evaluation clock, so an operator can replay why a given author got the tier
they did. The audit trail must never block publishing: write failures are
logged and dropped.
"""

from __future__ import annotations

import logging
from pathlib import Path

from spamblocker.models.audit_models import AuditEntry

logger = logging.getLogger("spamblocker.audit")


class AuditLogger:
    """Appends AuditEntry records to a JSON-lines file, creating its directory on first write."""

    def __init__(self, log_path: str | Path) -> None:
        self.log_path = Path(log_path)

    def log(self, entry: AuditEntry) -> bool:
        """Append one entry. Returns False if the line could not be written."""
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            with self.log_path.open("a", encoding="utf-8") as f:
                f.write(entry.model_dump_json() + "\n")
        except OSError as e:
            logger.error(f"[{entry.evaluation_id}] Audit record dropped ({self.log_path}): {e}")
            return False
        return True
