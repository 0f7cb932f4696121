"""Reporting module for splitrun harness runs.

This module provides the result types produced by a run and the reporters
that present them (console text, JSON).
"""

from splitrun.reporting.console import ConsoleReporter, format_elapsed
from splitrun.reporting.json_reporter import JsonReporter
from splitrun.reporting.results import FailureRecord, RunSummary, TestOutcome, TestStatus


__all__ = [
    'ConsoleReporter',
    'FailureRecord',
    'JsonReporter',
    'RunSummary',
    'TestOutcome',
    'TestStatus',
    'format_elapsed',
]
