"""Shared fixtures for splitrun tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from io import StringIO

import pytest

from splitrun.harness import Harness
from splitrun.reporting.console import ConsoleReporter
from splitrun.reporting.results import TestOutcome, TestStatus


@pytest.fixture
def output() -> StringIO:
    """Text stream that collects report output."""
    return StringIO()


@pytest.fixture
def make_harness(output: StringIO) -> Callable[..., Harness]:
    """Factory fixture for harnesses that report into the output fixture."""

    def _make_harness(workers: int | None = 1, **kwargs: object) -> Harness:
        kwargs.setdefault('reporter', ConsoleReporter(output))
        return Harness(workers, **kwargs)  # type: ignore[arg-type]

    return _make_harness


@pytest.fixture
def make_outcome() -> Callable[..., TestOutcome]:
    """Factory fixture for TestOutcome objects."""

    def _make_outcome(
        test_index: int = 0,
        *,
        worker_id: int = 0,
        message: str | None = None,
        test_name: str | None = None,
    ) -> TestOutcome:
        status = TestStatus.PASSED if message is None else TestStatus.FAILED
        return TestOutcome(
            test_index=test_index,
            test_name=test_name or f'test_{test_index}',
            worker_id=worker_id,
            status=status,
            message=message,
            exception_type=None if message is None else 'RuntimeError',
            duration_ms=0.5,
        )

    return _make_outcome


@pytest.fixture
def timestamps() -> tuple[datetime, datetime]:
    """A fixed start and finish time four milliseconds apart."""
    return (
        datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC),
        datetime(2024, 1, 1, 12, 0, 0, 4000, tzinfo=UTC),
    )
