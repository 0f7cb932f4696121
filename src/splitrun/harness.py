"""Parallel test harness.

The Harness owns the registered tests, partitions them into one contiguous
slice per worker, runs every slice on its own thread, waits for all workers,
merges their outcomes in worker order and reports the run.

Example:
    >>> from io import StringIO
    >>> from splitrun.reporting.console import ConsoleReporter
    >>> harness = Harness(workers=2, reporter=ConsoleReporter(StringIO()))
    >>> @harness.test
    ... def test_addition():
    ...     assert 1 + 1 == 2
    >>> summary = harness.run()
    >>> summary.total, summary.passed, summary.failed
    (1, 1, 0)
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
import logging
import time
from typing import TYPE_CHECKING, Protocol, TypeVar, overload

from splitrun.config import HarnessConfig
from splitrun.errors import DispatchError, HarnessStateError, RunTimeoutError
from splitrun.parallel.aggregator import ResultAggregator
from splitrun.parallel.distribution import partition
from splitrun.parallel.worker import Worker
from splitrun.registry import TestCase, TestRegistry
from splitrun.reporting.console import ConsoleReporter
from splitrun.reporting.results import RunSummary


if TYPE_CHECKING:
    from collections.abc import Sequence


logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[[], object])


def _remaining(deadline: float | None) -> float | None:
    """Return the seconds left until a monotonic deadline, or None for no deadline."""
    if deadline is None:
        return None
    return max(0.0, deadline - time.monotonic())


class Reporter(Protocol):
    """Anything that can present a finished run."""

    def write_report(self, summary: RunSummary) -> None:
        """Present the summary of a finished run."""
        ...


class HarnessState(Enum):
    """Lifecycle of a Harness.

    A harness moves forward through IDLE, DISPATCHED, JOINING, AGGREGATED
    and REPORTED exactly once. ABORTED is terminal and replaces the rest of
    the sequence when the run cannot be completed.
    """

    IDLE = 'idle'
    DISPATCHED = 'dispatched'
    JOINING = 'joining'
    AGGREGATED = 'aggregated'
    REPORTED = 'reported'
    ABORTED = 'aborted'


class Harness:
    """Registers zero-argument tests and runs them across worker threads.

    A harness supports exactly one run. Tests may be registered only before
    the run starts.

    Attributes:
        workers: Number of worker threads used for the run.
        timeout: Optional limit in seconds for the whole run.
        state: Current lifecycle state.
        summary: The RunSummary, once the run has been aggregated.
    """

    def __init__(
        self,
        workers: int | None = None,
        *,
        timeout: float | None = None,
        reporter: Reporter | None = None,
        verbose: bool = False,
    ) -> None:
        """Initialize the harness.

        Args:
            workers: Number of worker threads. None or 0 uses the CPU count.
            timeout: Optional limit in seconds for the whole run.
            reporter: Receives the summary when the run finishes. Defaults
                to a ConsoleReporter on stdout.
            verbose: Passed to the default ConsoleReporter.

        Raises:
            ValueError: If workers is negative or timeout is not positive.
        """
        config = HarnessConfig(workers=workers, timeout=timeout, verbose=verbose)
        self._workers = config.resolved_workers
        self._timeout = config.timeout
        self._reporter: Reporter = reporter if reporter is not None else ConsoleReporter(verbose=verbose)
        self._registry = TestRegistry()
        self._state = HarnessState.IDLE
        self._summary: RunSummary | None = None

    @classmethod
    def from_config(cls, config: HarnessConfig, reporter: Reporter | None = None) -> Harness:
        """Create a harness from a HarnessConfig.

        Args:
            config: Validated settings.
            reporter: Optional reporter, as for the constructor.

        Returns:
            A new idle Harness.
        """
        return cls(workers=config.workers, timeout=config.timeout, reporter=reporter, verbose=config.verbose)

    @property
    def workers(self) -> int:
        """Return the number of worker threads."""
        return self._workers

    @property
    def timeout(self) -> float | None:
        """Return the run timeout in seconds, if any."""
        return self._timeout

    @property
    def state(self) -> HarnessState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def summary(self) -> RunSummary | None:
        """Return the run summary, or None before the run is aggregated."""
        return self._summary

    @property
    def tests(self) -> tuple[TestCase, ...]:
        """Return the registered tests in registration order."""
        return tuple(self._registry)

    def __len__(self) -> int:
        return len(self._registry)

    def register(self, test: F, name: str | None = None) -> F:
        """Append a test to the run.

        Args:
            test: Zero-argument callable. It fails by raising.
            name: Display name. Defaults to the callable's qualified name.

        Returns:
            The callable, unchanged.

        Raises:
            HarnessStateError: If the run has already started.
            TypeError: If test is not callable.
        """
        if self._state != HarnessState.IDLE:
            msg = f'Cannot register tests: harness is already running or finished (state: {self._state.value})'
            raise HarnessStateError(msg)
        self._registry.add(test, name=name)
        return test

    @overload
    def test(self, func: F, *, name: str | None = None) -> F: ...

    @overload
    def test(self, func: None = None, *, name: str | None = None) -> Callable[[F], F]: ...

    def test(self, func: F | None = None, *, name: str | None = None) -> F | Callable[[F], F]:
        """Register a test, usable as ``@harness.test`` or ``@harness.test(name=...)``."""
        if func is None:
            return lambda f: self.register(f, name=name)
        return self.register(func, name=name)

    def run(self) -> RunSummary:
        """Run every registered test and report the results.

        Blocks until all workers have finished and the report was written.
        Test failures are recorded in the summary, never raised.

        Returns:
            The RunSummary of the run.

        Raises:
            HarnessStateError: If the harness has already run.
            DispatchError: If a worker could not be started or died from an
                error that is not a test failure.
            RunTimeoutError: If the run timeout expired before all workers
                finished.
        """
        if self._state != HarnessState.IDLE:
            msg = f'Harness can only run once (state: {self._state.value})'
            raise HarnessStateError(msg)

        self._registry.freeze()
        tests = self._registry[:]
        workers = [Worker(test_slice, tests) for test_slice in partition(len(tests), self._workers)]

        started_at = datetime.now(UTC)
        start_time = time.monotonic()
        deadline = None if self._timeout is None else start_time + self._timeout
        self._state = HarnessState.DISPATCHED
        self._dispatch(workers, deadline)

        self._state = HarnessState.JOINING
        self._join(workers, deadline)

        aggregator = ResultAggregator(total_tests=len(tests))
        for worker in workers:
            aggregator.add_worker_outcomes(worker.worker_id, worker.outcomes)
        elapsed_seconds = time.monotonic() - start_time
        finished_at = datetime.now(UTC)
        self._state = HarnessState.AGGREGATED

        summary = RunSummary.from_outcomes(
            aggregator.get_outcomes(),
            workers=self._workers,
            started_at=started_at,
            finished_at=finished_at,
            elapsed_seconds=elapsed_seconds,
        )
        self._summary = summary
        logger.debug('Run finished: %d total, %d failed in %.3fs', summary.total, summary.failed, elapsed_seconds)

        self._reporter.write_report(summary)
        self._state = HarnessState.REPORTED
        return summary

    def _dispatch(self, workers: Sequence[Worker], deadline: float | None) -> None:
        """Start one thread per worker, aborting the run if one cannot start."""
        logger.debug('Dispatching %d tests to %d workers', len(self._registry), len(workers))
        for worker in workers:
            try:
                worker.start()
            except RuntimeError as exc:
                self._state = HarnessState.ABORTED
                logger.warning('Could not start worker %d, aborting run: %s', worker.worker_id, exc)
                for started in workers:
                    started.join(_remaining(deadline))
                msg = f'Could not start worker {worker.worker_id}: {exc}'
                raise DispatchError(msg) from exc

    def _join(self, workers: Sequence[Worker], deadline: float | None) -> None:
        """Wait for every worker, honouring the run deadline if one is set."""
        for worker in workers:
            if not worker.join(_remaining(deadline)):
                self._state = HarnessState.ABORTED
                pending = [w.worker_id for w in workers if w.is_alive]
                logger.warning('Run timed out after %ss with workers %s still running', self._timeout, pending)
                msg = f'Run exceeded timeout of {self._timeout}s; workers still running: {pending}'
                raise RunTimeoutError(msg)

        for worker in workers:
            if worker.fatal_error is not None:
                self._state = HarnessState.ABORTED
                logger.warning('Worker %d stopped early: %r', worker.worker_id, worker.fatal_error)
                msg = f'Worker {worker.worker_id} stopped early: {worker.fatal_error!r}'
                raise DispatchError(msg) from worker.fatal_error
