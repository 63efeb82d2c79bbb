"""Durable audit state: the results artifact and the resumable checkpoint."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from form_automation.models import AuditRecord, AuditSummary

logger = logging.getLogger(__name__)


class AuditStore:
    """Reads and writes the audit results file and checkpoint file.

    Unreadable files are treated as absent so a corrupt artifact never blocks
    a fresh run.
    """

    def __init__(self, results_file: str | Path, checkpoint_file: str | Path) -> None:
        self.results_file = Path(results_file)
        self.checkpoint_file = Path(checkpoint_file)

    def load_checkpoint(self) -> set[str]:
        """IDs recorded as completed by a previous run."""
        if not self.checkpoint_file.exists():
            return set()
        try:
            data = json.loads(self.checkpoint_file.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable checkpoint {self.checkpoint_file}: {e}")
            return set()
        if not isinstance(data, dict):
            return set()
        return {str(i) for i in data.get("completed") or []}

    def save_checkpoint(self, completed: set[str]) -> None:
        self.checkpoint_file.parent.mkdir(parents=True, exist_ok=True)
        self.checkpoint_file.write_text(
            json.dumps({"completed": sorted(completed)}, indent=2),
            encoding="utf-8",
        )

    def clear_checkpoint(self) -> None:
        self.checkpoint_file.unlink(missing_ok=True)

    def load_results(self) -> list[AuditRecord]:
        """Records from the last saved results artifact."""
        if not self.results_file.exists():
            return []
        try:
            summary = AuditSummary.model_validate_json(self.results_file.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable results {self.results_file}: {e}")
            return []
        return summary.results

    def save_results(self, records: list[AuditRecord]) -> AuditSummary:
        """Write a summary of ``records`` and return it."""
        summary = AuditSummary.from_records(records)
        self.results_file.parent.mkdir(parents=True, exist_ok=True)
        self.results_file.write_text(summary.model_dump_json(indent=2), encoding="utf-8")
        return summary
