"""Console reporter for harness runs.

Writes one line per failure followed by the run summary:

    --- Total Tests: 5, Passed: 3, Failed: 2
    Tested with 4 threads in 1.2345 milliseconds.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, TextIO


if TYPE_CHECKING:
    from splitrun.reporting.results import FailureRecord, RunSummary


def format_elapsed(elapsed_seconds: float) -> str:
    """Format an elapsed time the way the summary line prints it.

    Durations under one second are shown in milliseconds, everything else in
    seconds, each with six significant digits.

    Args:
        elapsed_seconds: Duration in seconds.

    Returns:
        The number and unit, e.g. ``'250 milliseconds'``.

    Example:
        >>> format_elapsed(0.25)
        '250 milliseconds'
        >>> format_elapsed(2.5)
        '2.5 seconds'
    """
    if elapsed_seconds < 1:
        return f'{elapsed_seconds * 1000:g} milliseconds'
    return f'{elapsed_seconds:g} seconds'


class ConsoleReporter:
    """Reporter that writes run results as plain text.

    Attributes:
        output: The file-like object to write to.
        verbose: Prefix each failure with its worker and test name.
    """

    def __init__(self, output: TextIO | None = None, *, verbose: bool = False) -> None:
        """Initialize the console reporter.

        Args:
            output: File-like object to write to. Defaults to sys.stdout.
            verbose: Include provenance on failure lines.
        """
        self.output = output or sys.stdout
        self.verbose = verbose

    def write_report(self, summary: RunSummary) -> None:
        """Write the failures and summary of a run.

        Args:
            summary: The finished run.
        """
        for failure in summary.failures:
            self._write_line(self._format_failure(failure))
        self._write_summary(summary)
        self.output.flush()

    def _format_failure(self, failure: FailureRecord) -> str:
        if not self.verbose:
            return failure.message
        return f'[worker {failure.worker_id}] {failure.test_name}: {failure.message}'

    def _write_summary(self, summary: RunSummary) -> None:
        """Write the two summary lines."""
        self._write_line(f'--- Total Tests: {summary.total}, Passed: {summary.passed}, Failed: {summary.failed}')
        self._write_line(f'Tested with {summary.workers} threads in {format_elapsed(summary.elapsed_seconds)}.')

    def _write_line(self, text: str) -> None:
        """Write a line of text followed by newline."""
        self.output.write(text + '\n')
