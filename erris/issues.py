"""
erris/issues.py
═══════════════

Issue model: one finding of the detection engine.

An :class:`Issue` pairs one of the two fixed rule messages with a resolved
:class:`SourceLocation`.  Locations are resolved eagerly so that Issues
outlive the syntax trees they were found in; the Checker merges them across
packages after every tree has been walked.

:class:`IssueList` is the ordered, immutable sequence handed back to
callers.  Insertion order is traversal order, and for a multi-package
check it is the concatenation of per-package lists in loader order.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional

COMPARE_MESSAGE = "use errors.Is to compare an error"
ASSERT_MESSAGE = "use errors.As to assert an error"


@dataclass(frozen=True)
class SourceLocation:
    """A specific point in a source file (1-based line and column)."""
    file: str = ""
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.column:
            return f"{self.file}:{self.line}:{self.column}"
        return f"{self.file}:{self.line}"


@dataclass(frozen=True)
class Issue:
    """
    A single finding.

    Attributes
    ----------
    message  : one of :data:`COMPARE_MESSAGE` / :data:`ASSERT_MESSAGE`
    location : where the offending expression starts
    end      : where it ends, when the front end recorded it; ignored by
               equality so that two visits of the same node compare equal
    """
    message: str
    location: SourceLocation
    end: Optional[SourceLocation] = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.location}\t{self.message}"

    def to_json(self) -> Dict[str, Any]:
        return {
            "file": self.location.file,
            "line": self.location.line,
            "column": self.location.column,
            "message": self.message,
        }

    def to_json_str(self) -> str:
        return json.dumps(self.to_json())


def make_issue(
    message: str,
    location: SourceLocation,
    end: Optional[SourceLocation] = None,
) -> Issue:
    """Construct an :class:`Issue`."""
    return Issue(message=message, location=location, end=end)


class IssueList(tuple):
    """Ordered, immutable sequence of :class:`Issue`."""

    def __new__(cls, issues: Iterable[Issue] = ()) -> "IssueList":
        return super().__new__(cls, issues)

    def __add__(self, other: Iterable[Issue]) -> "IssueList":
        return IssueList(tuple(self) + tuple(other))

    def __repr__(self) -> str:
        return f"IssueList({list(self)!r})"

    def __str__(self) -> str:
        return "erris issues found"

    def compact(self) -> "IssueList":
        """Collapse runs of equal adjacent issues into one occurrence.

        Only neighbours are compared; equal issues separated by a different
        one are all kept, and first-seen order is preserved.
        """
        kept = []
        for issue in self:
            if not kept or issue != kept[-1]:
                kept.append(issue)
        return IssueList(kept)
