"""
erris/visitor.py
================

Detection engine.

:class:`Visitor` is walked over every file of a unit with
:func:`erris.goast.walk`.  It classifies two node kinds:

``BinaryExpr``
    ``x == y`` / ``x != y`` where *both* operands implement ``error``
    (``if err == sql.ErrNoRows``, ``return err != io.EOF``).

``TypeAssertExpr``
    ``x.(T)`` where ``x`` implements ``error``.  This covers plain
    assertions, the comma-ok form and the ``x.(type)`` guard of a type
    switch, which the syntax tree represents with the same node kind.

All other kinds are ignored.  A node whose type is unknown to the oracle
never produces an issue.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from erris.goast import BINARY_EXPR, TYPE_ASSERT_EXPR, Node, walk
from erris.gotypes import GoType, error_interface, implements
from erris.issues import ASSERT_MESSAGE, COMPARE_MESSAGE, Issue, IssueList, make_issue
from erris.oracle import TypeOracle

__all__ = ["Visitor", "EQUALITY_OPS", "check_files"]

_log = logging.getLogger(__name__)

EQUALITY_OPS = frozenset({"==", "!="})

_Handler = Callable[["Visitor", Node], None]
_HANDLERS: Dict[str, _Handler] = {}


def visiting(kind: str):
    """Decorator: register a handler for nodes of *kind*."""
    def deco(fn: _Handler) -> _Handler:
        _HANDLERS[kind] = fn
        return fn
    return deco


class Visitor:
    """Collects :class:`Issue` objects for one unit."""

    def __init__(self, oracle: TypeOracle) -> None:
        self._oracle = oracle
        self._error_type: GoType = error_interface()
        self.issues: List[Issue] = []

    def visit(self, node: Optional[Node]) -> Optional["Visitor"]:
        if node is None:
            return self
        handler = _HANDLERS.get(node.kind)
        if handler is not None:
            handler(self, node)
        return self

    def is_error(self, *nodes: Optional[Node]) -> bool:
        """True when every node's static type implements ``error``."""
        for n in nodes:
            if not implements(self._oracle.type_of(n), self._error_type):
                return False
        return True

    def report(self, message: str, node: Node) -> None:
        issue = make_issue(message, node.location(), node.end_location())
        _log.debug("%s", issue)
        self.issues.append(issue)


# if err == sql.ErrNoRows
# return err != io.EOF
@visiting(BINARY_EXPR)
def _visit_binary(v: Visitor, node: Node) -> None:
    if node.op not in EQUALITY_OPS:
        return
    x, y = node.child("X"), node.child("Y")
    if x is None or y is None:
        return
    if v.is_error(x, y):
        v.report(COMPARE_MESSAGE, node)


# switch err.(type)
# _, ok := err.(T)
@visiting(TYPE_ASSERT_EXPR)
def _visit_type_assert(v: Visitor, node: Node) -> None:
    x = node.child("X")
    if x is not None and v.is_error(x):
        v.report(ASSERT_MESSAGE, node)


def check_files(oracle: TypeOracle, roots) -> IssueList:
    """Walk every tree in *roots* with one visitor and return its issues."""
    v = Visitor(oracle)
    for root in roots:
        walk(v, root)
    return IssueList(v.issues)
