"""Tests for the Harness.

These tests cover registration, the one-run lifecycle, failure capture,
report ordering and the summary output.
"""

from __future__ import annotations

from io import StringIO
import os
import threading
import time

import pytest

from splitrun.config import HarnessConfig
from splitrun.errors import DispatchError, HarnessStateError, RunTimeoutError
from splitrun.harness import Harness, HarnessState
from splitrun.parallel.worker import Worker
from splitrun.reporting.console import ConsoleReporter
from splitrun.reporting.results import RunSummary


def ok() -> None:
    pass


def fail(message: str):
    def _fail() -> None:
        raise RuntimeError(message)

    return _fail


class RecordingReporter:
    """Reporter that keeps the summaries it was given."""

    def __init__(self) -> None:
        self.summaries: list[RunSummary] = []

    def write_report(self, summary: RunSummary) -> None:
        self.summaries.append(summary)


class TestHarnessCreation:
    """Tests for Harness construction."""

    def test_uses_given_worker_count(self) -> None:
        """The configured worker count is kept."""
        assert Harness(workers=3).workers == 3

    @pytest.mark.parametrize('workers', [None, 0])
    def test_defaults_to_cpu_count(self, workers: int | None, monkeypatch: pytest.MonkeyPatch) -> None:
        """None or 0 workers means one per CPU."""
        monkeypatch.setattr(os, 'cpu_count', lambda: 6)
        assert Harness(workers=workers).workers == 6

    def test_rejects_negative_workers(self) -> None:
        """Negative worker counts are invalid."""
        with pytest.raises(ValueError, match='workers must be non-negative'):
            Harness(workers=-1)

    def test_rejects_non_positive_timeout(self) -> None:
        """A timeout must be positive."""
        with pytest.raises(ValueError, match='timeout must be positive'):
            Harness(workers=1, timeout=0)

    def test_starts_idle_and_empty(self) -> None:
        """A new harness has no tests and no summary."""
        harness = Harness(workers=1)
        assert harness.state == HarnessState.IDLE
        assert len(harness) == 0
        assert harness.summary is None

    def test_from_config(self) -> None:
        """from_config applies every setting."""
        harness = Harness.from_config(HarnessConfig(workers=2, timeout=30.0, verbose=True))
        assert harness.workers == 2
        assert harness.timeout == 30.0


class TestHarnessRegistration:
    """Tests for registering tests."""

    def test_register_appends_in_order(self) -> None:
        """Tests keep their registration order and positions."""
        harness = Harness(workers=1)
        harness.register(ok, name='a')
        harness.register(ok, name='b')

        assert [(t.index, t.name) for t in harness.tests] == [(0, 'a'), (1, 'b')]

    def test_register_returns_the_callable(self) -> None:
        """register() hands back the test unchanged."""
        assert Harness(workers=1).register(ok) is ok

    def test_no_deduplication(self) -> None:
        """The same callable can be registered more than once."""
        harness = Harness(workers=1)
        harness.register(ok)
        harness.register(ok)
        assert len(harness) == 2

    def test_default_name_is_qualname(self) -> None:
        """Unnamed tests are named after the callable."""
        harness = Harness(workers=1)
        harness.register(ok)
        assert harness.tests[0].name == 'ok'

    def test_decorator_forms(self) -> None:
        """harness.test works bare and with a name."""
        harness = Harness(workers=1)

        @harness.test
        def test_plain() -> None:
            pass

        @harness.test(name='custom')
        def test_named() -> None:
            pass

        assert [t.name for t in harness.tests] == [
            'TestHarnessRegistration.test_decorator_forms.<locals>.test_plain',
            'custom',
        ]
        assert callable(test_plain)
        assert callable(test_named)

    def test_rejects_non_callable(self) -> None:
        """Only callables can be registered."""
        with pytest.raises(TypeError, match='must be callable'):
            Harness(workers=1).register('not a test')  # type: ignore[arg-type]

    def test_register_after_run_fails(self, make_harness) -> None:
        """Registration is closed once the run has started."""
        harness = make_harness()
        harness.register(ok)
        harness.run()

        with pytest.raises(HarnessStateError, match='already running or finished'):
            harness.register(ok)

    def test_register_during_run_fails(self, make_harness) -> None:
        """A test body cannot register more tests."""
        harness = make_harness()
        errors: list[Exception] = []

        def registers_more() -> None:
            try:
                harness.register(ok)
            except HarnessStateError as exc:
                errors.append(exc)

        harness.register(registers_more)
        summary = harness.run()

        assert len(errors) == 1
        assert summary.total == 1


class TestHarnessRun:
    """Tests for Harness.run."""

    def test_all_passing(self, make_harness, output: StringIO) -> None:
        """Five no-ops on two workers all pass."""
        harness = make_harness(2)
        for _ in range(5):
            harness.register(ok)

        summary = harness.run()

        assert (summary.total, summary.passed, summary.failed) == (5, 5, 0)
        assert summary.workers == 2
        assert summary.all_passed
        assert '--- Total Tests: 5, Passed: 5, Failed: 0' in output.getvalue()

    def test_failures_in_registration_order_single_worker(self, make_harness, output: StringIO) -> None:
        """With one worker, failures are reported in registration order."""
        harness = make_harness(1)
        for test in (ok, fail('x'), ok, fail('y'), ok):
            harness.register(test)

        summary = harness.run()

        assert [f.message for f in summary.failures] == ['x', 'y']
        assert (summary.total, summary.passed, summary.failed) == (5, 3, 2)
        lines = output.getvalue().splitlines()
        assert lines[:3] == ['x', 'y', '--- Total Tests: 5, Passed: 3, Failed: 2']
        assert lines[3].startswith('Tested with 1 threads in ')

    def test_failure_provenance(self, make_harness) -> None:
        """Failure records name the test and the worker that ran it."""
        harness = make_harness(2)
        harness.register(ok, name='a')
        harness.register(ok, name='b')
        harness.register(fail('bad'), name='c')

        failure = harness.run().failures[0]

        assert failure.test_index == 2
        assert failure.test_name == 'c'
        assert failure.worker_id == 1
        assert failure.exception_type == 'RuntimeError'

    def test_first_test_failing_does_not_stop_others(self, make_harness) -> None:
        """Every registered test runs even when the first one fails."""
        ran: list[int] = []
        harness = make_harness(3)
        harness.register(fail('first'))
        for i in range(1, 8):
            harness.register(lambda i=i: ran.append(i))

        summary = harness.run()

        assert sorted(ran) == list(range(1, 8))
        assert summary.failed == 1

    @pytest.mark.parametrize('workers', range(1, 13))
    def test_counts_independent_of_worker_count(self, make_harness, workers: int) -> None:
        """passed == N - K and failed == K for any worker count."""
        failing_indices = {0, 3, 4}
        harness = make_harness(workers)
        for i in range(7):
            harness.register(fail(f'f{i}') if i in failing_indices else ok)

        summary = harness.run()

        assert summary.total == 7
        assert summary.failed == 3
        assert summary.passed == 4

    def test_failure_order_is_worker_major(self, make_harness) -> None:
        """Merged failures follow worker order, then slice order."""
        harness = make_harness(2)
        for i in range(5):
            harness.register(fail(f'f{i}'))

        summary = harness.run()

        assert [f.message for f in summary.failures] == ['f0', 'f1', 'f2', 'f3', 'f4']
        assert [f.worker_id for f in summary.failures] == [0, 0, 0, 1, 1]

    def test_failure_order_is_deterministic(self, output: StringIO) -> None:
        """Repeated runs of the same tests report failures identically."""
        orders = []
        for _ in range(5):
            harness = Harness(workers=4, reporter=ConsoleReporter(output))
            for i in range(11):
                harness.register(fail(f'f{i}') if i % 2 else ok)
            orders.append([f.message for f in harness.run().failures])

        assert all(order == orders[0] for order in orders)

    def test_more_workers_than_tests(self, make_harness, output: StringIO) -> None:
        """Extra workers run nothing and the run completes."""
        harness = make_harness(5)
        for _ in range(3):
            harness.register(ok)

        summary = harness.run()

        assert summary.total == 3
        assert summary.passed == 3
        assert 'Tested with 5 threads' in output.getvalue()

    def test_no_tests(self, make_harness, output: StringIO) -> None:
        """An empty harness still reports."""
        summary = make_harness(4).run()

        assert summary.total == 0
        assert '--- Total Tests: 0, Passed: 0, Failed: 0' in output.getvalue()

    def test_reaches_reported_state(self, make_harness) -> None:
        """A finished run ends in REPORTED with the summary stored."""
        harness = make_harness()
        harness.register(ok)

        summary = harness.run()

        assert harness.state == HarnessState.REPORTED
        assert harness.summary is summary

    def test_reporter_receives_summary_once(self) -> None:
        """The reporter is called exactly once with the run summary."""
        reporter = RecordingReporter()
        harness = Harness(workers=2, reporter=reporter)
        harness.register(ok)

        summary = harness.run()

        assert reporter.summaries == [summary]

    def test_run_twice_fails(self, make_harness) -> None:
        """A harness supports exactly one run."""
        harness = make_harness()
        harness.run()

        with pytest.raises(HarnessStateError, match='can only run once'):
            harness.run()

    def test_timestamps(self, make_harness) -> None:
        """Start precedes finish and elapsed time is non-negative."""
        harness = make_harness()
        harness.register(ok)

        summary = harness.run()

        assert summary.started_at <= summary.finished_at
        assert summary.elapsed_seconds >= 0

    def test_tests_run_on_worker_threads(self, make_harness) -> None:
        """Tests never run on the thread that called run()."""
        caller = threading.current_thread()
        seen: list[threading.Thread] = []
        harness = make_harness(2)
        for _ in range(4):
            harness.register(lambda: seen.append(threading.current_thread()))

        harness.run()

        assert len(seen) == 4
        assert caller not in seen


class TestHarnessAbortedRuns:
    """Tests for runs that cannot be completed."""

    def test_worker_start_failure_is_dispatch_error(self, make_harness, monkeypatch, output: StringIO) -> None:
        """A worker thread that cannot start aborts the run."""
        original_start = Worker.start

        def flaky_start(self: Worker) -> None:
            if self.worker_id == 1:
                msg = "can't start new thread"
                raise RuntimeError(msg)
            original_start(self)

        monkeypatch.setattr(Worker, 'start', flaky_start)
        harness = make_harness(2)
        harness.register(ok)
        harness.register(ok)

        with pytest.raises(DispatchError, match='Could not start worker 1'):
            harness.run()

        assert harness.state == HarnessState.ABORTED
        assert harness.summary is None
        assert output.getvalue() == ''

    def test_start_failure_waits_once_for_started_workers(self, make_harness, monkeypatch) -> None:
        """Started workers share one run deadline, not a full timeout each."""
        release = threading.Event()
        original_start = Worker.start

        def flaky_start(self: Worker) -> None:
            if self.worker_id == 3:
                msg = "can't start new thread"
                raise RuntimeError(msg)
            original_start(self)

        monkeypatch.setattr(Worker, 'start', flaky_start)
        harness = make_harness(4, timeout=0.3)
        for _ in range(4):
            harness.register(release.wait)

        started = time.monotonic()
        try:
            with pytest.raises(DispatchError, match='Could not start worker 3'):
                harness.run()
            elapsed = time.monotonic() - started
        finally:
            release.set()

        assert elapsed < 0.6

    def test_system_exit_in_test_is_dispatch_error(self, make_harness) -> None:
        """A test raising SystemExit kills its worker and aborts the run."""

        def exits() -> None:
            raise SystemExit(1)

        harness = make_harness(2)
        harness.register(ok)
        harness.register(exits)

        with pytest.raises(DispatchError, match='Worker 1 stopped early') as exc_info:
            harness.run()

        assert isinstance(exc_info.value.__cause__, SystemExit)
        assert harness.state == HarnessState.ABORTED

    def test_timeout_aborts_run(self, make_harness, output: StringIO) -> None:
        """Workers still running at the deadline abort the run."""
        release = threading.Event()
        harness = make_harness(2, timeout=0.05)
        harness.register(ok)
        harness.register(lambda: release.wait(5))

        try:
            with pytest.raises(RunTimeoutError, match=r'workers still running: \[1\]'):
                harness.run()
        finally:
            release.set()

        assert harness.state == HarnessState.ABORTED
        assert harness.summary is None
        assert output.getvalue() == ''

    def test_timeout_error_is_dispatch_error(self) -> None:
        """A run timeout is a kind of dispatch error."""
        assert issubclass(RunTimeoutError, DispatchError)

    def test_aborted_harness_cannot_run_again(self, make_harness) -> None:
        """An aborted harness stays unusable."""
        def exits() -> None:
            raise SystemExit(1)

        harness = make_harness(1)
        harness.register(exits)

        with pytest.raises(DispatchError):
            harness.run()
        with pytest.raises(HarnessStateError):
            harness.run()
