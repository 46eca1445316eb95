"""
erris — errors.Is / errors.As lint for type-checked Go syntax trees
===================================================================

``erris`` inspects Go packages that an external front end has already
parsed and type-checked, and reports two misuses of Go's error idioms:

* ``err == target`` / ``err != target`` where both operands are errors
  (use ``errors.Is``);
* ``err.(T)`` and ``switch err.(type)`` on an error value
  (use ``errors.As``).

Package layout
--------------
::

    erris/
    ├── __init__.py     ← this file
    ├── __main__.py     python -m erris
    ├── main.py         command-line front end
    ├── errors.py       exception hierarchy
    ├── issues.py       Issue / IssueList / SourceLocation
    ├── goast.py        syntax tree nodes and the walker
    ├── gotypes.py      Go type terms, method sets, implements()
    ├── typeparse.py    go/types type-string grammar
    ├── oracle.py       per-unit type table and TypeOracle
    ├── sexp.py         S-expression reader for dump files
    ├── dump.py         package dump decoder
    ├── loader.py       pattern resolution and unit loading
    ├── visitor.py      detection engine
    ├── checker.py      multi-unit aggregation
    └── analyzer.py     analysis-framework adapter

Quick start
-----------
>>> from erris import Checker, Outcome
>>> result = Checker(without_tests=True).check_packages("testdata/...")
>>> if result.outcome is Outcome.ISSUES_FOUND:
...     for issue in result.issues:
...         print(issue)
"""

from __future__ import annotations

import logging
from typing import List

__version__ = "0.2.0"
__license__ = "MIT"

_log = logging.getLogger(__name__)

from erris.errors import DumpError, ErrisError, LoadError, TypeStringError  # noqa: E402
from erris.issues import (  # noqa: E402
    ASSERT_MESSAGE,
    COMPARE_MESSAGE,
    Issue,
    IssueList,
    SourceLocation,
    make_issue,
)
from erris.goast import Node, Position, walk  # noqa: E402
from erris.oracle import TypeOracle  # noqa: E402
from erris.loader import LoadConfig, Unit, load  # noqa: E402
from erris.visitor import Visitor  # noqa: E402
from erris.checker import Checker, CheckResult, Outcome  # noqa: E402
from erris.analyzer import ANALYZER, Analyzer, Diagnostic, Pass, run_analyzer  # noqa: E402

__all__: List[str] = [
    "ANALYZER",
    "ASSERT_MESSAGE",
    "COMPARE_MESSAGE",
    "Analyzer",
    "CheckResult",
    "Checker",
    "Diagnostic",
    "DumpError",
    "ErrisError",
    "Issue",
    "IssueList",
    "LoadConfig",
    "LoadError",
    "Node",
    "Outcome",
    "Pass",
    "Position",
    "SourceLocation",
    "TypeOracle",
    "TypeStringError",
    "Unit",
    "Visitor",
    "load",
    "make_issue",
    "run_analyzer",
    "walk",
]
