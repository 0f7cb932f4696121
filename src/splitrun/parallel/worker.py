"""Worker thread that runs one slice of registered tests.

Each worker owns a slice and a private list of outcomes. Tests in the slice
run strictly in index order on the worker's own thread. A test that raises
is recorded as a failure and the worker moves on to the next test.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING

from splitrun.reporting.results import TestOutcome, TestStatus


if TYPE_CHECKING:
    from collections.abc import Sequence

    from splitrun.parallel.distribution import TestSlice
    from splitrun.registry import TestCase


logger = logging.getLogger(__name__)


def failure_message(exc: BaseException) -> str:
    """Return a human-readable message for a raised exception.

    Falls back to the exception class name when the exception carries no
    text, as with a bare ``assert``.

    Example:
        >>> failure_message(ValueError('bad port'))
        'bad port'
        >>> failure_message(AssertionError())
        'AssertionError'
    """
    return str(exc) or type(exc).__name__


def run_test(case: TestCase, worker_id: int) -> TestOutcome:
    """Invoke one test and convert the result into a TestOutcome.

    Args:
        case: The test to invoke.
        worker_id: Worker running the test, recorded for provenance.

    Returns:
        A PASSED outcome, or a FAILED outcome carrying the error message.
    """
    start_time = time.monotonic()
    try:
        case()
    except Exception as exc:
        duration_ms = (time.monotonic() - start_time) * 1000
        logger.debug('Test %d (%s) failed on worker %d: %s', case.index, case.name, worker_id, exc)
        return TestOutcome(
            test_index=case.index,
            test_name=case.name,
            worker_id=worker_id,
            status=TestStatus.FAILED,
            message=failure_message(exc),
            exception_type=type(exc).__name__,
            duration_ms=duration_ms,
        )
    return TestOutcome(
        test_index=case.index,
        test_name=case.name,
        worker_id=worker_id,
        status=TestStatus.PASSED,
        duration_ms=(time.monotonic() - start_time) * 1000,
    )


class Worker:
    """Runs the tests of one slice on a dedicated thread.

    Attributes:
        test_slice: The slice of test indices this worker owns.
        worker_id: Index of the worker, equal to the slice's worker_id.

    Example:
        >>> from splitrun.parallel.distribution import TestSlice
        >>> from splitrun.registry import TestRegistry
        >>> registry = TestRegistry()
        >>> _ = registry.add(lambda: None)
        >>> worker = Worker(TestSlice(worker_id=0, start=0, end=1), registry[:])
        >>> worker.run()
        >>> len(worker.outcomes)
        1
    """

    def __init__(self, test_slice: TestSlice, tests: Sequence[TestCase]) -> None:
        """Initialize the worker.

        Args:
            test_slice: The slice to run.
            tests: The full registered test sequence. Only indices inside
                the slice are read.

        Raises:
            ValueError: If the slice extends past the end of tests.
        """
        if test_slice.end > len(tests):
            msg = f'Slice [{test_slice.start}, {test_slice.end}) exceeds {len(tests)} registered tests'
            raise ValueError(msg)
        self.test_slice = test_slice
        self._tests = tests
        self._outcomes: list[TestOutcome] = []
        self._thread: threading.Thread | None = None
        self._fatal_error: BaseException | None = None

    @property
    def worker_id(self) -> int:
        """Return the worker index."""
        return self.test_slice.worker_id

    @property
    def outcomes(self) -> tuple[TestOutcome, ...]:
        """Return the outcomes recorded so far, in slice order."""
        return tuple(self._outcomes)

    @property
    def failures(self) -> tuple[TestOutcome, ...]:
        """Return the failed outcomes, in slice order."""
        return tuple(o for o in self._outcomes if o.is_failure)

    @property
    def fatal_error(self) -> BaseException | None:
        """Return the error that stopped the worker early, if any."""
        return self._fatal_error

    def run(self) -> None:
        """Run every test in the slice on the calling thread.

        Exceptions raised by tests are recorded as failures. Anything that is
        not an ``Exception`` (for example ``SystemExit`` from a test body)
        stops the worker and is kept in ``fatal_error``.
        """
        try:
            for index in self.test_slice.indices():
                self._outcomes.append(run_test(self._tests[index], self.worker_id))
        except BaseException as exc:  # noqa: BLE001
            logger.debug('Worker %d stopped by %r', self.worker_id, exc)
            self._fatal_error = exc

    def start(self) -> None:
        """Start running the slice on a new daemon thread.

        Raises:
            RuntimeError: If the worker was already started or the thread
                cannot be created.
        """
        if self._thread is not None:
            msg = f'Worker {self.worker_id} was already started'
            raise RuntimeError(msg)
        thread = threading.Thread(target=self.run, name=f'splitrun-worker-{self.worker_id}', daemon=True)
        thread.start()
        self._thread = thread

    def join(self, timeout: float | None = None) -> bool:
        """Wait for the worker thread to finish.

        Args:
            timeout: Maximum seconds to wait. None waits indefinitely.

        Returns:
            True if the worker has finished (or was never started).
        """
        if self._thread is None:
            return True
        self._thread.join(timeout)
        return not self._thread.is_alive()

    @property
    def is_alive(self) -> bool:
        """Return True while the worker thread is running."""
        return self._thread is not None and self._thread.is_alive()
