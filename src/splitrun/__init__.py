"""splitrun: a small parallel test harness.

Register zero-argument test functions, and splitrun splits them into
contiguous slices, runs each slice on its own thread, and reports every
failure without stopping the run.

Example:
    Register tests and run them on four threads::

        from splitrun import Harness

        harness = Harness(workers=4)

        @harness.test
        def test_connect():
            ...

        harness.run()

    Or collect ``test_*`` functions from files::

        $ splitrun --workers 4 tests/test_sockets.py
"""

from __future__ import annotations

from splitrun.config import HarnessConfig
from splitrun.errors import CollectionError, DispatchError, HarnessError, HarnessStateError, RunTimeoutError
from splitrun.harness import Harness, HarnessState
from splitrun.reporting.results import FailureRecord, RunSummary, TestOutcome, TestStatus


__version__ = '1.0.0'
__all__ = [
    'CollectionError',
    'DispatchError',
    'FailureRecord',
    'Harness',
    'HarnessConfig',
    'HarnessError',
    'HarnessState',
    'HarnessStateError',
    'RunSummary',
    'RunTimeoutError',
    'TestOutcome',
    'TestStatus',
    '__version__',
]
