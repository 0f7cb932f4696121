"""JSON reporter for harness runs.

Produces machine-readable output for CI systems that want more than the
console summary line.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from pathlib import Path

    from splitrun.reporting.results import FailureRecord, RunSummary


class JsonReporter:
    """Reporter that produces JSON output.

    JSON structure:
        {
            "summary": {
                "total": 5,
                "passed": 3,
                "failed": 2,
                "workers": 2,
                "started_at": "2024-01-01T12:00:00+00:00",
                "finished_at": "2024-01-01T12:00:00.004000+00:00",
                "elapsed_seconds": 0.004
            },
            "failures": [
                {
                    "test_index": 1,
                    "test_name": "test_connect",
                    "worker_id": 0,
                    "exception_type": "ConnectionRefusedError",
                    "message": "[Errno 111] Connection refused"
                },
                ...
            ]
        }
    """

    def to_json(self, summary: RunSummary) -> str:
        """Convert a run summary to a JSON string.

        Args:
            summary: The RunSummary to convert.

        Returns:
            Pretty-printed JSON string.
        """
        return json.dumps(self._build_report_data(summary), indent=2)

    def write_report(self, summary: RunSummary, output_path: Path) -> None:
        """Write a run report to a JSON file.

        Args:
            summary: The RunSummary to write.
            output_path: Path to the output JSON file.
        """
        output_path.write_text(self.to_json(summary))

    def _build_report_data(self, summary: RunSummary) -> dict[str, Any]:
        return {
            'summary': {
                'total': summary.total,
                'passed': summary.passed,
                'failed': summary.failed,
                'workers': summary.workers,
                'started_at': summary.started_at.isoformat(),
                'finished_at': summary.finished_at.isoformat(),
                'elapsed_seconds': summary.elapsed_seconds,
            },
            'failures': [self._build_failure(f) for f in summary.failures],
        }

    def _build_failure(self, failure: FailureRecord) -> dict[str, Any]:
        entry: dict[str, Any] = {
            'test_index': failure.test_index,
            'test_name': failure.test_name,
            'worker_id': failure.worker_id,
            'message': failure.message,
        }
        if failure.exception_type is not None:
            entry['exception_type'] = failure.exception_type
        return entry
