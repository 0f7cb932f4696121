"""Configuration for splitrun.

This module reads configuration from the pyproject.toml [tool.splitrun]
section, validates it, and merges it with command-line values.

Example pyproject.toml section::

    [tool.splitrun]
    workers = 4
    timeout = 120
    verbose = false
"""

from __future__ import annotations

from dataclasses import dataclass
import math
import os
import tomllib
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from pathlib import Path


def default_workers() -> int:
    """Return the number of hardware execution contexts on this host."""
    return os.cpu_count() or 4


@dataclass(frozen=True, eq=True)
class HarnessConfig:
    """Construction-time settings for a Harness.

    Attributes:
        workers: Number of worker threads. None or 0 uses the host's CPU count.
        timeout: Optional limit in seconds for the whole run. None waits
            for the slowest worker indefinitely.
        verbose: Include worker and test name on failure lines.

    Example:
        >>> HarnessConfig(workers=3).resolved_workers
        3
    """

    workers: int | None = None
    timeout: float | None = None
    verbose: bool = False

    def __post_init__(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If any configuration value is invalid.
        """
        if self.workers is not None and (isinstance(self.workers, bool) or not isinstance(self.workers, int)):
            msg = f'workers must be an integer, got {self.workers!r}'
            raise ValueError(msg)

        if self.workers is not None and self.workers < 0:
            msg = f'workers must be non-negative, got {self.workers}'
            raise ValueError(msg)

        if self.timeout is not None and (isinstance(self.timeout, bool) or not isinstance(self.timeout, int | float)):
            msg = f'timeout must be a number, got {self.timeout!r}'
            raise ValueError(msg)

        if self.timeout is not None and not math.isfinite(self.timeout):
            msg = f'timeout must be finite, got {self.timeout}'
            raise ValueError(msg)

        if self.timeout is not None and self.timeout <= 0:
            msg = f'timeout must be positive, got {self.timeout}'
            raise ValueError(msg)

        if not isinstance(self.verbose, bool):
            msg = f'verbose must be a boolean, got {self.verbose!r}'
            raise ValueError(msg)

    @property
    def resolved_workers(self) -> int:
        """Return the worker count with 0/None replaced by the CPU count."""
        return self.workers or default_workers()


def _read_tool_section(rootdir: Path) -> dict[str, Any]:
    pyproject_path = rootdir / 'pyproject.toml'

    if not pyproject_path.exists():
        return {}

    with pyproject_path.open('rb') as f:
        data = tomllib.load(f)

    return data.get('tool', {}).get('splitrun', {})


def load_config(rootdir: Path) -> HarnessConfig:
    """Load configuration from pyproject.toml.

    Reads the [tool.splitrun] section from pyproject.toml in the given
    directory. Returns default configuration if the file or section does
    not exist.

    Args:
        rootdir: Directory containing pyproject.toml.

    Returns:
        HarnessConfig with values from pyproject.toml or defaults.

    Raises:
        ValueError: If the section holds invalid values.
    """
    tool_config = _read_tool_section(rootdir)

    return HarnessConfig(
        workers=tool_config.get('workers'),
        timeout=tool_config.get('timeout'),
        verbose=tool_config.get('verbose', False),
    )


def merge_configs(
    file_config: HarnessConfig,
    cli_workers: int | None = None,
    cli_timeout: float | None = None,
    *,
    cli_verbose: bool = False,
) -> HarnessConfig:
    """Merge CLI arguments with file configuration.

    CLI arguments take precedence over pyproject.toml configuration. A
    ``--verbose`` flag can only switch verbosity on.

    Args:
        file_config: Configuration loaded from pyproject.toml.
        cli_workers: Worker count from --workers, if given.
        cli_timeout: Run timeout from --timeout, if given.
        cli_verbose: Whether --verbose was passed.

    Returns:
        HarnessConfig with CLI values overriding file config where provided.
    """
    return HarnessConfig(
        workers=cli_workers if cli_workers is not None else file_config.workers,
        timeout=cli_timeout if cli_timeout is not None else file_config.timeout,
        verbose=cli_verbose or file_config.verbose,
    )
