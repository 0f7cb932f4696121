"""Discovery of test functions in modules and files.

A test is any module-level function whose name starts with ``test_`` and
that was defined in the module itself. Tests are returned in definition
order, which becomes their registration order.
"""

from __future__ import annotations

import importlib
import importlib.util
import inspect
from pathlib import Path
import sys
from typing import TYPE_CHECKING

from splitrun.errors import CollectionError


if TYPE_CHECKING:
    from collections.abc import Callable
    from types import ModuleType


TEST_PREFIX = 'test_'


def load_target(target: str) -> ModuleType:
    """Import a module given a dotted name or a path to a ``.py`` file.

    Args:
        target: Dotted module name, or a file path ending in ``.py``.

    Returns:
        The imported module.

    Raises:
        CollectionError: If the module cannot be found or fails to import.
    """
    if target.endswith('.py'):
        return _load_file(Path(target))
    try:
        return importlib.import_module(target)
    except Exception as exc:
        msg = f'Could not import {target!r}: {exc}'
        raise CollectionError(msg) from exc


def _load_file(path: Path) -> ModuleType:
    if not path.is_file():
        msg = f'No such file: {path}'
        raise CollectionError(msg)

    module_name = f'splitrun_target_{path.stem}'
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        msg = f'Cannot load {path} as a Python module'
        raise CollectionError(msg)

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        del sys.modules[module_name]
        msg = f'Could not import {path}: {exc}'
        raise CollectionError(msg) from exc
    return module


def collect_tests(module: ModuleType) -> list[tuple[str, Callable[[], object]]]:
    """Find the test functions defined in a module.

    Args:
        module: Module to search.

    Returns:
        List of ``(name, function)`` pairs in definition order.
    """
    return [
        (name, obj)
        for name, obj in vars(module).items()
        if name.startswith(TEST_PREFIX) and inspect.isfunction(obj) and obj.__module__ == module.__name__
    ]
