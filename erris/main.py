#!/usr/bin/env python3
"""erris/main.py — command-line front end.

Usage examples
--------------
    # Check every package dump below the current directory
    erris ./...

    # Same, skipping test variants
    erris --ignore-tests ./...

    # Machine-readable output, one JSON object per line
    erris --format json ./dumps/...

Output
------
One line per finding, ``<file>:<line>:<column>\\t<message>``, in the
order the packages were loaded.

Exit codes
----------
    0   No findings.
    1   Findings reported, packages failed to load, or no pattern given.

The module doubles as ``python -m erris`` via the companion
``erris/__main__.py`` which simply calls :func:`main`.
"""

from __future__ import annotations

import argparse
import logging
import sys
import textwrap
from typing import Optional, Sequence, TextIO

from erris import __version__
from erris.checker import Checker, CheckResult, Outcome
from erris.issues import IssueList

_log = logging.getLogger("erris")

# Exit codes ----------------------------------------------------------------

EXIT_OK: int = 0
EXIT_ERROR: int = 1

USAGE = "Usage: erris ./..."


# ===========================================================================
# Utility helpers
# ===========================================================================

def _configure_logging(verbosity: int) -> None:
    """Set up the ``erris`` logger.

    Parameters
    ----------
    verbosity:
        0 → WARNING, 1 → INFO, 2+ → DEBUG.
    """
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-5.5s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    root = logging.getLogger("erris")
    root.setLevel(level)
    # main() may run several times in one process (tests, drivers)
    for old in [h for h in root.handlers if getattr(h, "_erris_cli", False)]:
        root.removeHandler(old)
    handler._erris_cli = True  # type: ignore[attr-defined]
    root.addHandler(handler)


def _render(issues: IssueList, fmt: str, out: TextIO) -> None:
    for issue in issues:
        if fmt == "json":
            out.write(issue.to_json_str() + "\n")
        else:
            out.write(f"{issue}\n")


def _build_parser() -> argparse.ArgumentParser:
    """Construct the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="erris",
        description=(
            "Report comparisons and type assertions on Go error values\n"
            "that should use errors.Is / errors.As instead."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            examples:
              erris ./...
              erris --ignore-tests ./dumps/...
              erris --format json app.dump
        """),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v info, -vv debug).",
    )
    parser.add_argument(
        "--ignore-tests", "--ignoretests", "-ignoretests",
        dest="ignore_tests",
        action="store_true",
        default=False,
        help="If set, checking of _test.go files is disabled.",
    )
    parser.add_argument(
        "-f", "--format",
        choices=["text", "json"],
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument(
        "patterns",
        nargs="*",
        metavar="PATTERN",
        help="Package dump, directory, or dir/... pattern.",
    )
    return parser


# ===========================================================================
# Entry point
# ===========================================================================

def run(args: argparse.Namespace, out: TextIO = sys.stdout) -> int:
    """Check ``args.patterns`` and report; returns the exit code."""
    if not args.patterns:
        out.write(USAGE + "\n")
        return EXIT_ERROR

    result: CheckResult = Checker(without_tests=args.ignore_tests).check_packages(*args.patterns)
    if result.outcome is Outcome.LOAD_FAILURE:
        _log.error("%s", result.description)
        return EXIT_ERROR
    if result.outcome is Outcome.ISSUES_FOUND:
        _render(result.issues, args.format, out)
        return EXIT_ERROR
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the erris CLI.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` → ``sys.argv[1:]``.

    Returns
    -------
    int
        Exit code (see module docstring for semantics).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)

    try:
        return run(args, sys.stdout)
    except KeyboardInterrupt:
        _log.info("Interrupted by user.")
        return 130  # Standard UNIX convention for SIGINT


if __name__ == "__main__":
    raise SystemExit(main())
