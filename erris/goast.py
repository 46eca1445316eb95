"""
erris/goast.py
══════════════

Syntax tree for type-checked Go packages, as decoded from front-end dumps.

The tree mirrors ``go/ast`` loosely: every node has a *kind* (the go/ast
type name, e.g. ``BinaryExpr``), scalar attributes, and an ordered list of
named child slots.  Only the shape needed by the analyses is modelled;
nodes of any kind can appear and are walked uniformly.

Design invariants
-----------------
* Nodes are frozen dataclasses; child slots are tuples.
* Children are iterated slot by slot, left to right, in the order the
  front end wrote them.
* Node identity matters, equality does not: two structurally equal nodes
  at different places in the tree are different nodes (``eq=False``).

Traversal
---------
:func:`walk` follows ``go/ast.Walk``: ``visitor.visit(node)`` is called
pre-order; if it returns a visitor ``w`` the children are walked with
``w`` and then ``w.visit(None)`` closes the subtree.  The walk is
iterative so deeply nested expressions cannot exhaust the Python stack.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, List, Mapping, Optional, Protocol, Tuple

from erris.issues import SourceLocation

# Node kinds the detection engine dispatches on.
BINARY_EXPR = "BinaryExpr"
TYPE_ASSERT_EXPR = "TypeAssertExpr"
FILE = "File"


@dataclass(frozen=True)
class Position:
    """1-based line/column inside a file."""
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


@dataclass(frozen=True, eq=False)
class Node:
    """
    One syntax tree node.

    Attributes
    ----------
    kind   : go/ast node type name (``"Ident"``, ``"BinaryExpr"``, ...)
    file   : path of the file the node belongs to
    pos    : start position, if recorded
    end    : end position, if recorded
    attrs  : scalar attributes: ``op``, ``type``, ``name``, ``value`` ...
    slots  : ``((slot_name, (child, ...)), ...)`` in source order
    """
    kind: str
    file: str = ""
    pos: Optional[Position] = None
    end: Optional[Position] = None
    attrs: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    slots: Tuple[Tuple[str, Tuple["Node", ...]], ...] = ()

    # ── Slot access ──────────────────────────────────────────────────

    @property
    def children(self) -> Iterator["Node"]:
        for _, nodes in self.slots:
            yield from nodes

    def child(self, slot: str) -> Optional["Node"]:
        """First node stored in *slot*, or ``None``."""
        for name, nodes in self.slots:
            if name == slot:
                return nodes[0] if nodes else None
        return None

    def slot(self, slot: str) -> Tuple["Node", ...]:
        """All nodes stored in *slot* (empty tuple when absent)."""
        for name, nodes in self.slots:
            if name == slot:
                return nodes
        return ()

    # ── Common attributes ────────────────────────────────────────────

    @property
    def op(self) -> Optional[str]:
        return self.attrs.get("op")

    @property
    def type_expr(self) -> Optional[str]:
        """The static type recorded by the front end, as a type string."""
        return self.attrs.get("type")

    @property
    def name(self) -> Optional[str]:
        return self.attrs.get("name")

    def location(self) -> SourceLocation:
        if self.pos is None:
            return SourceLocation(file=self.file)
        return SourceLocation(self.file, self.pos.line, self.pos.column)

    def end_location(self) -> Optional[SourceLocation]:
        if self.end is None:
            return None
        return SourceLocation(self.file, self.end.line, self.end.column)

    def __repr__(self) -> str:
        where = f" {self.file}:{self.pos}" if self.pos else ""
        return f"<{self.kind}{where}>"


class Visitor(Protocol):
    """Anything with a ``go/ast``-style ``visit`` method."""

    def visit(self, node: Optional[Node]) -> Optional["Visitor"]:
        ...


def walk(visitor: Visitor, node: Node) -> None:
    """Traverse *node* depth-first, pre-order, left to right."""
    w = visitor.visit(node)
    if w is None:
        return
    stack: List[Tuple[Visitor, Iterator[Node]]] = [(w, node.children)]
    while stack:
        current, pending = stack[-1]
        child = next(pending, None)
        if child is None:
            stack.pop()
            current.visit(None)
            continue
        cw = current.visit(child)
        if cw is not None:
            stack.append((cw, child.children))

