"""Exceptions raised by the splitrun harness.

Test failures are never raised to the caller; they are captured by workers
and reported. Everything in this module signals a problem with how the
harness itself was used or with the run as a whole.
"""

from __future__ import annotations


class HarnessError(Exception):
    """Base class for errors raised by the harness API."""


class HarnessStateError(HarnessError):
    """The harness was used in a state that does not allow the operation.

    Raised when registering tests after a run has started, or when calling
    ``run()`` on a harness that has already run.
    """


class DispatchError(HarnessError):
    """The run could not be completed.

    Raised when a worker thread cannot be started or a worker dies from an
    error that is not a test failure. No summary is produced for the run.
    """


class RunTimeoutError(DispatchError):
    """Workers were still running when the run timeout expired."""


class CollectionError(HarnessError):
    """A test module could not be imported or loaded."""
