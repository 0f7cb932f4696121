"""Parallel execution module for splitrun.

This module provides the components the harness uses to run tests in
parallel:

- partition / TestSlice: Splits tests into contiguous per-worker slices
- Worker: Runs one slice on its own thread
- ResultAggregator: Merges worker outcomes in worker order
"""

from __future__ import annotations

from splitrun.parallel.aggregator import ResultAggregator
from splitrun.parallel.distribution import TestSlice, partition
from splitrun.parallel.worker import Worker


__all__ = ['ResultAggregator', 'TestSlice', 'Worker', 'partition']
