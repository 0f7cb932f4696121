"""Test partitioning for parallel execution.

Tests are split into contiguous slices, one per worker. The first
``total % workers`` slices hold one extra test, so slice sizes never differ
by more than one and the test-to-worker mapping is reproducible for a fixed
``(total, workers)`` pair.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TestSlice:
    """Half-open range ``[start, end)`` of test indices owned by one worker.

    Attributes:
        worker_id: Index of the worker that owns the slice.
        start: First test index in the slice.
        end: One past the last test index in the slice.
    """

    __test__ = False

    worker_id: int
    start: int
    end: int

    def __post_init__(self) -> None:
        """Validate slice bounds.

        Raises:
            ValueError: If the bounds are negative or reversed.
        """
        if self.start < 0 or self.end < self.start:
            msg = f'Invalid slice bounds: [{self.start}, {self.end})'
            raise ValueError(msg)

    def __len__(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        """Return True if the slice holds no tests."""
        return self.start == self.end

    def indices(self) -> range:
        """Return the test indices in the slice, ascending."""
        return range(self.start, self.end)


def partition(total: int, workers: int) -> list[TestSlice]:
    """Split ``total`` tests into one contiguous slice per worker.

    When there are more workers than tests, the extra workers receive empty
    slices. No slices are produced when there are no tests.

    Args:
        total: Number of registered tests.
        workers: Number of workers.

    Returns:
        List of ``workers`` slices covering ``[0, total)`` exactly once, or an
        empty list when ``total`` is zero.

    Raises:
        ValueError: If total is negative or workers is less than one.

    Example:
        >>> [(s.start, s.end) for s in partition(5, 2)]
        [(0, 3), (3, 5)]
        >>> [len(s) for s in partition(3, 5)]
        [1, 1, 1, 0, 0]
    """
    if total < 0:
        msg = f'total must be non-negative, got {total}'
        raise ValueError(msg)
    if workers < 1:
        msg = f'workers must be positive, got {workers}'
        raise ValueError(msg)
    if total == 0:
        return []

    base, remainder = divmod(total, workers)
    slices: list[TestSlice] = []
    start = 0
    for worker_id in range(workers):
        size = base + 1 if worker_id < remainder else base
        slices.append(TestSlice(worker_id=worker_id, start=start, end=start + size))
        start += size
    return slices

