"""Result types for harness runs.

Each TestOutcome records what happened when a worker invoked one registered
test. Failed outcomes become FailureRecords, and a RunSummary aggregates a
whole run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime


class TestStatus(Enum):
    """Status of a single test after it was invoked.

    Attributes:
        PASSED: The test returned normally.
        FAILED: The test raised an exception.
    """

    __test__ = False

    PASSED = 'passed'
    FAILED = 'failed'


@dataclass(frozen=True)
class TestOutcome:
    """Result of invoking one registered test.

    Attributes:
        test_index: Registration position of the test.
        test_name: Display name of the test.
        worker_id: Index of the worker that ran the test.
        status: Whether the test passed or failed.
        message: Failure message, None when the test passed.
        exception_type: Name of the raised exception class, if any.
        duration_ms: Wall time spent inside the test.
    """

    __test__ = False

    test_index: int
    test_name: str
    worker_id: int
    status: TestStatus
    message: str | None = None
    exception_type: str | None = None
    duration_ms: float | None = None

    @property
    def is_failure(self) -> bool:
        """Return True if the test raised."""
        return self.status == TestStatus.FAILED


@dataclass(frozen=True)
class FailureRecord:
    """Captured description of one failed test.

    Attributes:
        message: Human-readable failure message.
        test_index: Registration position of the failed test.
        test_name: Display name of the failed test.
        worker_id: Index of the worker whose slice held the test.
        exception_type: Name of the raised exception class.
    """

    message: str
    test_index: int
    test_name: str
    worker_id: int
    exception_type: str | None = None

    @classmethod
    def from_outcome(cls, outcome: TestOutcome) -> FailureRecord:
        """Create a FailureRecord from a failed TestOutcome.

        Args:
            outcome: A failed outcome.

        Returns:
            FailureRecord carrying the outcome's message and provenance.

        Raises:
            ValueError: If the outcome did not fail.
        """
        if not outcome.is_failure:
            msg = f'Outcome for test {outcome.test_index} did not fail'
            raise ValueError(msg)
        return cls(
            message=outcome.message or '',
            test_index=outcome.test_index,
            test_name=outcome.test_name,
            worker_id=outcome.worker_id,
            exception_type=outcome.exception_type,
        )


@dataclass(frozen=True)
class RunSummary:
    """Aggregate statistics for one harness run.

    Attributes:
        total: Number of registered tests.
        failed: Number of tests that raised.
        workers: Number of workers the harness was configured with.
        started_at: Wall-clock time immediately before dispatch.
        finished_at: Wall-clock time after all workers were joined.
        elapsed_seconds: Monotonic time between dispatch and join.
        failures: Failure records in worker-major, slice order.
    """

    total: int
    failed: int
    workers: int
    started_at: datetime
    finished_at: datetime
    elapsed_seconds: float
    failures: tuple[FailureRecord, ...] = ()

    @classmethod
    def from_outcomes(
        cls,
        outcomes: Sequence[TestOutcome],
        *,
        workers: int,
        started_at: datetime,
        finished_at: datetime,
        elapsed_seconds: float,
    ) -> RunSummary:
        """Create a RunSummary from merged outcomes.

        Args:
            outcomes: Every outcome of the run, already in report order.
            workers: Configured worker count.
            started_at: Wall-clock start of the run.
            finished_at: Wall-clock end of the run.
            elapsed_seconds: Monotonic duration of the run.

        Returns:
            RunSummary with counts and failure records.
        """
        failures = tuple(FailureRecord.from_outcome(o) for o in outcomes if o.is_failure)
        return cls(
            total=len(outcomes),
            failed=len(failures),
            workers=workers,
            started_at=started_at,
            finished_at=finished_at,
            elapsed_seconds=elapsed_seconds,
            failures=failures,
        )

    @property
    def passed(self) -> int:
        """Return the number of tests that completed normally."""
        return self.total - self.failed

    @property
    def all_passed(self) -> bool:
        """Return True if no test failed."""
        return self.failed == 0
