"""Ordered storage for registered tests.

A test's registration position is its identity: it decides which worker
runs the test and where the test's failure appears in the report.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import overload


TestFunc = Callable[[], object]


def _default_name(func: TestFunc) -> str:
    return getattr(func, '__qualname__', None) or getattr(func, '__name__', None) or repr(func)


@dataclass(frozen=True)
class TestCase:
    """A registered zero-argument test.

    Attributes:
        index: Registration position.
        name: Display name used in verbose and JSON reports.
        func: The callable to invoke. Its return value is ignored.
    """

    __test__ = False

    index: int
    name: str
    func: TestFunc

    def __call__(self) -> None:
        """Invoke the test."""
        self.func()


class TestRegistry:
    """Append-only sequence of TestCases.

    Once frozen, the registry rejects further additions. The harness
    freezes it when a run starts.

    Example:
        >>> registry = TestRegistry()
        >>> case = registry.add(lambda: None, name='noop')
        >>> case.index, len(registry)
        (0, 1)
    """

    __test__ = False

    def __init__(self) -> None:
        self._tests: list[TestCase] = []
        self._frozen = False

    @property
    def frozen(self) -> bool:
        """Return True once no more tests may be added."""
        return self._frozen

    def freeze(self) -> None:
        """Stop accepting new tests."""
        self._frozen = True

    def add(self, func: TestFunc, name: str | None = None) -> TestCase:
        """Append a test.

        Args:
            func: Zero-argument callable.
            name: Display name. Defaults to the callable's qualified name.

        Returns:
            The new TestCase.

        Raises:
            TypeError: If func is not callable.
            RuntimeError: If the registry is frozen.
        """
        if not callable(func):
            msg = f'Test must be callable, got {type(func).__name__}'
            raise TypeError(msg)
        if self._frozen:
            msg = 'Cannot add tests to a frozen registry'
            raise RuntimeError(msg)

        case = TestCase(index=len(self._tests), name=name or _default_name(func), func=func)
        self._tests.append(case)
        return case

    def __len__(self) -> int:
        return len(self._tests)

    def __iter__(self) -> Iterator[TestCase]:
        return iter(self._tests)

    @overload
    def __getitem__(self, index: int) -> TestCase: ...

    @overload
    def __getitem__(self, index: slice) -> list[TestCase]: ...

    def __getitem__(self, index: int | slice) -> TestCase | list[TestCase]:
        return self._tests[index]
