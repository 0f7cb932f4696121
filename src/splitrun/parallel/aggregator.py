"""Result aggregation for parallel test execution.

This module provides the ResultAggregator class that merges the outcome
lists of finished workers into one report-ordered sequence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Iterable

    from splitrun.reporting.results import TestOutcome


class ResultAggregator:
    """Merges per-worker outcomes in worker-major order.

    Outcomes are merged only after every worker has been joined, on the
    orchestrating thread, so no locking is involved. The merged order is
    worker 0's outcomes in slice order, then worker 1's, and so on,
    regardless of the order in which workers were added.

    Attributes:
        total_tests: Total number of tests in the run.

    Example:
        >>> from splitrun.reporting.results import TestOutcome, TestStatus
        >>> aggregator = ResultAggregator(total_tests=2)
        >>> aggregator.add_worker_outcomes(1, [TestOutcome(1, 'b', 1, TestStatus.FAILED, 'y')])
        >>> aggregator.add_worker_outcomes(0, [TestOutcome(0, 'a', 0, TestStatus.FAILED, 'x')])
        >>> [o.message for o in aggregator.get_outcomes()]
        ['x', 'y']
    """

    def __init__(self, total_tests: int) -> None:
        """Initialize the result aggregator.

        Args:
            total_tests: Total number of tests to be merged.
        """
        self._total_tests = total_tests
        self._by_worker: dict[int, tuple[TestOutcome, ...]] = {}

    @property
    def total_tests(self) -> int:
        """Return the total number of tests."""
        return self._total_tests

    def add_worker_outcomes(self, worker_id: int, outcomes: Iterable[TestOutcome]) -> None:
        """Take ownership of one worker's outcomes.

        Args:
            worker_id: Index of the worker that produced the outcomes.
            outcomes: The worker's outcomes in slice order.

        Raises:
            ValueError: If outcomes for the worker were already added.
        """
        if worker_id in self._by_worker:
            msg = f'Outcomes for worker {worker_id} were already added'
            raise ValueError(msg)
        self._by_worker[worker_id] = tuple(outcomes)

    def get_outcomes(self) -> list[TestOutcome]:
        """Get all outcomes in worker-major, slice order.

        Returns:
            List of merged TestOutcome objects.
        """
        merged: list[TestOutcome] = []
        for worker_id in sorted(self._by_worker):
            merged.extend(self._by_worker[worker_id])
        return merged
