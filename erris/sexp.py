"""
erris/sexp.py
═════════════

S-expression reader for front-end dump files.

The surface syntax is deliberately small::

    form    := list | string | integer | symbol
    list    := "(" form* ")"
    string  := '"' ( [^"\\] | '\\' any )* '"'
    integer := -?[0-9]+
    symbol  := any run of characters other than whitespace, parens, '"', ';'
    comment := ';' up to end of line

A Parsimonious grammar tokenises the input; nesting is rebuilt with an
explicit stack, so arbitrarily deep trees never hit the interpreter's
recursion limit.  Lists come back as :class:`SList` (a ``list`` that
remembers where it started) so that decoders can point errors at a line
and column.
"""

from __future__ import annotations

import bisect
import re
from typing import Any, List, Tuple, Union

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from erris.errors import DumpError

SEXP_GRAMMAR = Grammar(r'''
    stream   = _ token_ws*
    token_ws = token _
    token    = open / close / string / number / symbol
    open     = "("
    close    = ")"
    string   = ~r'"(?:[^"\\]|\\.)*"'s
    number   = ~r'-?[0-9]+(?![^\s()";])'
    symbol   = ~r'[^\s()";]+'
    _        = ~r"(?:\s|;[^\n]*)*"
''')

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", '"': '"', "\\": "\\"}
_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)


class Symbol(str):
    """A bare word in the dump, as opposed to a quoted string."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


class SList(list):
    """A parsed list that remembers its 1-based start line and column."""

    def __init__(self, line: int = 0, column: int = 0) -> None:
        super().__init__()
        self.line = line
        self.column = column


Sexp = Union[SList, Symbol, str, int]

_OPEN, _CLOSE, _ATOM = "open", "close", "atom"


class _Tokenizer(NodeVisitor):
    grammar = SEXP_GRAMMAR

    def generic_visit(self, node, visited_children):
        return visited_children or node

    def visit_stream(self, node, visited_children):
        _, tokens = visited_children
        return tokens if isinstance(tokens, list) else []

    def visit_token_ws(self, node, visited_children):
        return visited_children[0]

    def visit_token(self, node, visited_children):
        return visited_children[0]

    def visit_open(self, node, visited_children):
        return (_OPEN, None, node.start)

    def visit_close(self, node, visited_children):
        return (_CLOSE, None, node.start)

    def visit_string(self, node, visited_children):
        body = node.text[1:-1]
        value = _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m.group(1), m.group(1)), body)
        return (_ATOM, value, node.start)

    def visit_number(self, node, visited_children):
        return (_ATOM, int(node.text), node.start)

    def visit_symbol(self, node, visited_children):
        return (_ATOM, Symbol(node.text), node.start)


class _Lines:
    """Offset → (line, column) lookups for one text."""

    def __init__(self, text: str) -> None:
        self._starts = [0] + [m.end() for m in re.finditer("\n", text)]

    def __call__(self, offset: int) -> Tuple[int, int]:
        idx = bisect.bisect_right(self._starts, offset) - 1
        return idx + 1, offset - self._starts[idx] + 1


def read_all(text: str, path: str = "<string>") -> List[Sexp]:
    """Read every top-level form in *text*."""
    lines = _Lines(text)
    try:
        tokens = _Tokenizer().parse(text)
    except ParseError as exc:
        line, col = lines(exc.pos)
        raise DumpError("unexpected character", path, line, col) from exc

    top: List[Sexp] = []
    stack: List[SList] = []
    for kind, value, offset in tokens:
        if kind == _OPEN:
            line, col = lines(offset)
            stack.append(SList(line, col))
        elif kind == _CLOSE:
            if not stack:
                line, col = lines(offset)
                raise DumpError("unbalanced ')'", path, line, col)
            done = stack.pop()
            (stack[-1] if stack else top).append(done)
        else:
            (stack[-1] if stack else top).append(value)
    if stack:
        raise DumpError("unterminated list", path, stack[-1].line, stack[-1].column)
    return top


def read_one(text: str, path: str = "<string>") -> Sexp:
    """Read exactly one top-level form from *text*."""
    forms = read_all(text, path)
    if len(forms) != 1:
        raise DumpError(f"expected exactly one top-level form, found {len(forms)}", path)
    return forms[0]


def dumps(form: Any) -> str:
    """Render a form back to text (used for error messages and tests)."""
    if isinstance(form, list):
        return "(" + " ".join(dumps(f) for f in form) + ")"
    if isinstance(form, Symbol):
        return str(form)
    if isinstance(form, str):
        escaped = form.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return str(form)
