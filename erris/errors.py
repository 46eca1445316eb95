# erris/errors.py
"""
Exception hierarchy for erris.

::

    ErrisError (base)
    ├── LoadError         - a package could not be loaded; fatal for a check
    │   └── DumpError     - a dump file is syntactically or structurally bad
    └── TypeStringError   - a go/types type string could not be parsed

Detected issues are *not* exceptions: they travel in
:class:`erris.checker.CheckResult`.  ``LoadError`` is the only failure
that aborts a check run.
"""

from __future__ import annotations

from typing import Optional


class ErrisError(Exception):
    """Base class for every error raised by erris."""


class LoadError(ErrisError):
    """Raised when the requested packages cannot be loaded."""


class DumpError(LoadError):
    """A dump file could not be decoded.

    Carries the offending file and, when known, the 1-based line and
    column inside it.
    """

    def __init__(
        self,
        message: str,
        path: str = "<string>",
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.message = message
        self.path = path
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.line is not None:
            return f"{self.path}:{self.line}:{self.column or 0}: {self.message}"
        return f"{self.path}: {self.message}"


class TypeStringError(ErrisError):
    """A type string produced by the front end is not valid go/types syntax."""

    def __init__(self, text: str, reason: str = "") -> None:
        self.text = text
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"invalid type string {text!r}{detail}")
