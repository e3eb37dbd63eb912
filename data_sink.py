"""
Data Sink: best-effort archive of finished feasibility reports.

Each report is appended as one JSON line. A failed write is logged and
counted, never raised: persistence must not block report delivery.
"""

import json
import logging
import os
import time
from typing import Dict, Optional

from core.errors import PersistenceFailure
from core.models import FeasibilityReport

log = logging.getLogger("data_sink")


class ReportSink:
    """
    Appends reports to a JSONL file.

    Usage:
        sink = ReportSink("feasibility_reports.jsonl")
        sink.save(report)
    """

    def __init__(self, filename: str = "feasibility_reports.jsonl"):
        self.filepath = filename if os.path.isabs(filename) else os.path.join(os.getcwd(), filename)
        self._saved_count = 0
        self._errors_count = 0
        log.info(f"ReportSink initialized at {self.filepath}")

    def _write(self, entry: Dict) -> None:
        try:
            with open(self.filepath, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, sort_keys=True) + "\n")
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceFailure(f"could not write {self.filepath}: {e}") from e

    def save(self, report: FeasibilityReport) -> bool:
        """
        Persist a report.

        Returns:
            True on success, False on failure
        """
        entry = {"saved_at": time.time(), "report": report.to_dict()}
        try:
            self._write(entry)
        except PersistenceFailure as e:
            self._errors_count += 1
            log.error(f"[ReportSink] Failed to save report for {report.address!r}: {e}")
            return False

        self._saved_count += 1
        return True

    def get_stats(self) -> Dict:
        """Get persistence statistics."""
        return {
            'saved_count': self._saved_count,
            'errors_count': self._errors_count,
            'filepath': self.filepath,
        }


def create_report_sink(path: Optional[str]) -> Optional[ReportSink]:
    """Sink for the configured path, or None when persistence is disabled."""
    return ReportSink(path) if path else None
