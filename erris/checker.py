"""
erris/checker.py
════════════════

Aggregation across units.

:meth:`Checker.check_packages` loads the requested packages, refuses to
analyse anything if the front end reported load errors, runs the
:class:`~erris.visitor.Visitor` over every file of every unit and merges
the findings into a single compacted :class:`~erris.issues.IssueList`.

The three possible results are kept apart by :class:`Outcome`, so a load
failure can never be mistaken for a list of findings (or vice versa).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Optional, Sequence

from erris.errors import LoadError
from erris.issues import IssueList
from erris.loader import LoadConfig, Unit, load
from erris.visitor import check_files

_log = logging.getLogger(__name__)


class Outcome(Enum):
    SUCCESS = auto()
    ISSUES_FOUND = auto()
    LOAD_FAILURE = auto()


@dataclass(frozen=True)
class CheckResult:
    """Tagged result of one :meth:`Checker.check_packages` call."""
    outcome: Outcome
    issues: IssueList = field(default_factory=IssueList)
    error: Optional[LoadError] = None

    @classmethod
    def success(cls) -> CheckResult:
        return cls(Outcome.SUCCESS)

    @classmethod
    def issues_found(cls, issues: IssueList) -> CheckResult:
        return cls(Outcome.ISSUES_FOUND, issues=IssueList(issues))

    @classmethod
    def load_failure(cls, error: LoadError) -> CheckResult:
        return cls(Outcome.LOAD_FAILURE, error=error)

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.SUCCESS

    @property
    def description(self) -> str:
        if self.outcome is Outcome.LOAD_FAILURE:
            return str(self.error)
        if self.outcome is Outcome.ISSUES_FOUND:
            return str(self.issues)
        return ""


def unit_load_error(units: Sequence[Unit]) -> Optional[LoadError]:
    """The error for the first unit carrying front-end load errors, if any."""
    for unit in units:
        if unit.errors:
            listed = ", ".join(unit.errors)
            return LoadError(f"errors while loading package {unit.id}: [{listed}]")
    return None


class Checker:
    """Checks packages for error comparisons and assertions."""

    def __init__(self, without_tests: bool = False, config: Optional[LoadConfig] = None) -> None:
        self.without_tests = without_tests
        self.config = replace(config or LoadConfig(), tests=not without_tests)

    def check_packages(self, *paths: str) -> CheckResult:
        try:
            units = load(self.config, *paths)
        except LoadError as exc:
            return CheckResult.load_failure(exc)

        failure = unit_load_error(units)
        if failure is not None:
            return CheckResult.load_failure(failure)

        issues = IssueList()
        for unit in units:
            found = check_files(unit.types, (f.root for f in unit.files))
            _log.debug("unit %s: %d issue(s)", unit.id, len(found))
            issues = issues + found

        _log.info("checked %d unit(s), %d issue(s)", len(units), len(issues))
        if not issues:
            return CheckResult.success()
        return CheckResult.issues_found(issues.compact())

