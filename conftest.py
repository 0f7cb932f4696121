"""Root pytest configuration for splitrun.

This conftest.py applies size markers to every collected item, doctests from
``src`` included. Shared fixtures live in tests/conftest.py.
"""

from __future__ import annotations

from pathlib import Path

import pytest


SIZE_MARKERS = ('small', 'medium', 'large')


def _has_size_marker(item: pytest.Item) -> bool:
    """Check if an item already has a size marker."""
    return any(marker.name in SIZE_MARKERS for marker in item.iter_markers())


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(
    config: pytest.Config,  # noqa: ARG001
    items: list[pytest.Item],
) -> None:
    """Mark each test with the size of the directory it lives in.

    Items that already carry a size marker are left alone. Doctests from
    ``src`` count as small.
    """
    for item in items:
        if _has_size_marker(item):
            continue

        path_parts = Path(str(item.path)).parts

        if 'medium' in path_parts:
            item.add_marker(pytest.mark.medium)
        elif 'large' in path_parts:
            item.add_marker(pytest.mark.large)
        elif 'small' in path_parts or 'src' in path_parts:
            item.add_marker(pytest.mark.small)
