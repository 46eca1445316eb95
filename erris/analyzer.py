"""
erris/analyzer.py
=================

Analysis-framework adapter.

Drivers that run many checks over the same loaded units talk to erris
through :data:`ANALYZER`, an :class:`Analyzer` description with a ``run``
callable, instead of through :class:`~erris.checker.Checker`.  A
:class:`Pass` hands one unit's syntax trees and types to ``run``; findings
come back as :class:`Diagnostic` ranges through ``Pass.report``.

Example::

    from erris import ANALYZER, load, LoadConfig, run_analyzer

    for unit in load(LoadConfig(), "./..."):
        for diag in run_analyzer(ANALYZER, unit):
            print(diag)
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence

from erris.goast import Node
from erris.issues import Issue, SourceLocation
from erris.loader import Unit
from erris.oracle import TypeOracle
from erris.visitor import check_files

_log = logging.getLogger(__name__)

DOC = "checks that errors are compared or type asserted using errors.Is and errors.As"


@dataclass(frozen=True)
class Diagnostic:
    """A finding reported for a source range."""
    pos: SourceLocation
    end: Optional[SourceLocation]
    message: str

    def __str__(self) -> str:
        return f"{self.pos}: {self.message}"


@dataclass
class Pass:
    """One application of an :class:`Analyzer` to one unit."""
    analyzer: "Analyzer"
    files: Sequence[Node]
    types: TypeOracle
    report: Callable[[Diagnostic], None]

    def report_rangef(self, rng: Issue, fmt: str, *args: Any) -> None:
        """Report *fmt* % *args* over the range of *rng*."""
        message = fmt % args if args else fmt
        self.report(Diagnostic(rng.location, rng.end, message))


def _flags() -> argparse.ArgumentParser:
    flags = argparse.ArgumentParser(prog="erris", add_help=False)
    flags.add_argument(
        "-ignoretests",
        action="store_true",
        default=False,
        help="this flag is deprecated and has no effect",
    )
    return flags


@dataclass
class Analyzer:
    """Static description of an analysis."""
    name: str
    doc: str
    run: Callable[[Pass], Any]
    run_despite_errors: bool = False
    flags: argparse.ArgumentParser = field(default_factory=_flags)


def _run(p: Pass) -> None:
    for issue in check_files(p.types, p.files):
        p.report_rangef(issue, issue.message)
    return None


ANALYZER = Analyzer(
    name="erris",
    doc=DOC,
    run=_run,
    run_despite_errors=True,
)


def run_analyzer(analyzer: Analyzer, unit: Unit) -> List[Diagnostic]:
    """Apply *analyzer* to *unit* and collect what it reports.

    A unit the front end could not load cleanly is skipped unless the
    analyzer opts in with ``run_despite_errors``.
    """
    if unit.errors and not analyzer.run_despite_errors:
        _log.info("%s: skipping %s (%d load error(s))",
                  analyzer.name, unit.id, len(unit.errors))
        return []
    diagnostics: List[Diagnostic] = []
    p = Pass(analyzer, [f.root for f in unit.files], unit.types, diagnostics.append)
    analyzer.run(p)
    return diagnostics
