"""Command-line entry point for splitrun.

Collects ``test_*`` functions from the given modules or files, runs them in
parallel and prints the report.

Example:
    Run the tests in two files on four threads::

        $ splitrun --workers 4 tests/test_sockets.py tests/test_codec.py

Exit codes: 0 when every test passed, 1 when any test failed, 2 when the
run could not be set up or completed.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import TYPE_CHECKING

from splitrun.collection import collect_tests, load_target
from splitrun.config import load_config, merge_configs
from splitrun.errors import HarnessError
from splitrun.harness import Harness
from splitrun.reporting.json_reporter import JsonReporter


if TYPE_CHECKING:
    from collections.abc import Sequence


EXIT_OK = 0
EXIT_TESTS_FAILED = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the splitrun command."""
    parser = argparse.ArgumentParser(
        prog='splitrun',
        description='Run test functions in parallel across worker threads.',
    )
    parser.add_argument(
        'targets',
        nargs='+',
        metavar='TARGET',
        help='Dotted module name or path to a .py file containing test_* functions',
    )
    parser.add_argument(
        '-w',
        '--workers',
        type=int,
        default=None,
        help='Number of worker threads (default: [tool.splitrun] workers, else CPU count)',
    )
    parser.add_argument(
        '-t',
        '--timeout',
        type=float,
        default=None,
        help='Abort the run if it takes longer than this many seconds',
    )
    parser.add_argument(
        '-v',
        '--verbose',
        action='store_true',
        default=False,
        help='Show worker and test name for each failure and enable debug logging',
    )
    parser.add_argument(
        '--json',
        type=Path,
        default=None,
        dest='json_path',
        help='Also write a JSON report to this path',
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the splitrun command.

    Args:
        argv: Arguments without the program name. Defaults to sys.argv[1:].

    Returns:
        Exit code (0 = all passed, 1 = failures, 2 = error).
    """
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    try:
        config = merge_configs(
            load_config(Path.cwd()),
            cli_workers=args.workers,
            cli_timeout=args.timeout,
            cli_verbose=args.verbose,
        )
        harness = Harness.from_config(config)
        for target in args.targets:
            for name, func in collect_tests(load_target(target)):
                harness.register(func, name=f'{target}::{name}')
        summary = harness.run()
    except (HarnessError, ValueError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return EXIT_ERROR

    if args.json_path is not None:
        try:
            JsonReporter().write_report(summary, args.json_path)
        except OSError as e:
            print(f'Error: could not write JSON report: {e}', file=sys.stderr)
            return EXIT_ERROR

    return EXIT_OK if summary.all_passed else EXIT_TESTS_FAILED


if __name__ == '__main__':
    sys.exit(main())
