"""
erris/typeparse.py
══════════════════

Parser for go/types type strings.

The front end records every static type as the string produced by
``types.TypeString`` with fully qualified package paths, e.g.::

    error
    *example.com/app.MyError
    map[string][]byte
    func(ctx context.Context, args ...string) (int, error)
    interface{Error() string; Unwrap() error}
    struct{msg string; *example.com/app.Base "json:\\"base\\""}
    <-chan int
    untyped nil
    (int, error)

A Parsimonious PEG grammar recognises that syntax and a ``NodeVisitor``
lowers the parse tree into :class:`erris.gotypes.GoType` terms.  Named
types are not constructed here: every qualified name is handed to a
*resolve* callback, so the caller decides how names bind (universe scope,
package type table, aliases).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from parsimonious.exceptions import ParseError, VisitationError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from erris.errors import TypeStringError
from erris.gotypes import ChanDir, Field, GoType, Method

_log = logging.getLogger(__name__)

Resolver = Callable[[str], GoType]


# ═══════════════════════════════════════════════════════════════════
#  GRAMMAR (Parsimonious PEG)
# ═══════════════════════════════════════════════════════════════════

TYPE_GRAMMAR = Grammar(r'''
    type             = untyped / pointer / slice / array / map / chan
                     / func / interface / struct / params / named

    pointer          = "*" type
    slice            = "[]" type
    array            = "[" int_lit "]" type
    map              = "map[" type "]" type

    chan             = recv_chan / send_chan / bidi_chan
    recv_chan        = "<-chan" __ type
    send_chan        = "chan<-" _ type
    bidi_chan        = "chan" __ type

    # ─── Signatures ───────────────────────────────────────────────
    func             = "func" signature
    signature        = params result?
    result           = __ result_body
    result_body      = params / type
    params           = "(" _ param_list? _ ")"
    param_list       = param more_params*
    more_params      = _ "," _ param
    param            = named_param / param_type
    named_param      = ident __ param_type
    param_type       = variadic / type
    variadic         = "..." type

    # ─── Interfaces ───────────────────────────────────────────────
    interface        = "interface{" _ iface_elems? _ "}"
    iface_elems      = iface_elem more_iface_elems*
    more_iface_elems = _ ";" _ iface_elem
    iface_elem       = method_spec / type
    method_spec      = ident signature

    # ─── Structs ──────────────────────────────────────────────────
    struct           = "struct{" _ fields? _ "}"
    fields           = field more_fields*
    more_fields      = _ ";" _ field
    field            = field_body tag?
    field_body       = named_field / embedded_field
    named_field      = ident __ type
    embedded_field   = "*"? named
    tag              = __ string_lit

    # ─── Names ────────────────────────────────────────────────────
    untyped          = "untyped" __ ident
    named            = qualified type_args?
    type_args        = "[" _ type more_types* _ "]"
    more_types       = _ "," _ type
    qualified        = ~r"(?:[\w.\-~]+/)*[\w\-~]+(?:\.[\w\-~]+)*"
    ident            = ~r"(?!(?:chan|func|map|struct|interface|untyped)\b)[A-Za-z_][A-Za-z0-9_]*"
    int_lit          = ~r"[0-9]+"
    string_lit       = ~r'"(?:[^"\\]|\\.)*"' / ~r"`[^`]*`"

    __               = ~r"[ \t]+"
    _                = ~r"[ \t]*"
''')


@dataclass
class _Params:
    types: List[GoType]
    variadic: bool = False


def _optional(value: Any) -> Any:
    """Unwrap the visited result of an ``x?`` node (``None`` when absent)."""
    if isinstance(value, list):
        return value[0] if value else None
    return None


def _many(value: Any) -> List[Any]:
    """Visited results of an ``x*`` node."""
    return value if isinstance(value, list) else []


class TypeBuilder(NodeVisitor):
    """Transforms a Parsimonious parse tree into :class:`GoType` terms."""

    grammar = TYPE_GRAMMAR
    unwrapped_exceptions = (TypeStringError,)

    def __init__(self, resolve: Resolver) -> None:
        self._resolve = resolve

    def generic_visit(self, node, visited_children):
        return visited_children or node

    # ─── Composite types ─────────────────────────────────────────

    def visit_type(self, node, visited_children):
        inner = visited_children[0]
        if isinstance(inner, _Params):
            # a parenthesised list is a multi-value result tuple
            return GoType.tuple(inner.types)
        return inner

    def visit_pointer(self, node, visited_children):
        _, elem = visited_children
        return GoType.pointer(elem)

    def visit_slice(self, node, visited_children):
        _, elem = visited_children
        return GoType.slice(elem)

    def visit_array(self, node, visited_children):
        _, length, _, elem = visited_children
        return GoType.array(elem, length)

    def visit_map(self, node, visited_children):
        _, key, _, value = visited_children
        return GoType.map(key, value)

    def visit_chan(self, node, visited_children):
        return visited_children[0]

    def visit_recv_chan(self, node, visited_children):
        return GoType.chan(visited_children[-1], ChanDir.RECV)

    def visit_send_chan(self, node, visited_children):
        return GoType.chan(visited_children[-1], ChanDir.SEND)

    def visit_bidi_chan(self, node, visited_children):
        return GoType.chan(visited_children[-1], ChanDir.BOTH)

    # ─── Signatures ──────────────────────────────────────────────

    def visit_func(self, node, visited_children):
        return visited_children[1]

    def visit_signature(self, node, visited_children):
        params, result = visited_children
        results = _optional(result) or []
        return GoType.func(params.types, results, params.variadic)

    def visit_result(self, node, visited_children):
        return visited_children[1]

    def visit_result_body(self, node, visited_children):
        body = visited_children[0]
        if isinstance(body, _Params):
            return body.types
        return [body]

    def visit_params(self, node, visited_children):
        entries: List[Tuple[GoType, bool]] = _optional(visited_children[2]) or []
        variadic = bool(entries) and entries[-1][1]
        return _Params([t for t, _ in entries], variadic)

    def visit_param_list(self, node, visited_children):
        first, rest = visited_children
        return [first] + _many(rest)

    def visit_more_params(self, node, visited_children):
        return visited_children[-1]

    def visit_param(self, node, visited_children):
        return visited_children[0]

    def visit_named_param(self, node, visited_children):
        return visited_children[-1]

    def visit_param_type(self, node, visited_children):
        inner = visited_children[0]
        if isinstance(inner, tuple):
            return inner
        return (inner, False)

    def visit_variadic(self, node, visited_children):
        return (GoType.slice(visited_children[1]), True)

    # ─── Interfaces ──────────────────────────────────────────────

    def visit_interface(self, node, visited_children):
        elems = _optional(visited_children[2]) or []
        methods = [e for e in elems if isinstance(e, Method)]
        embedded = [e for e in elems if isinstance(e, GoType)]
        return GoType.interface(methods, embedded)

    def visit_iface_elems(self, node, visited_children):
        first, rest = visited_children
        return [first] + _many(rest)

    def visit_more_iface_elems(self, node, visited_children):
        return visited_children[-1]

    def visit_iface_elem(self, node, visited_children):
        return visited_children[0]

    def visit_method_spec(self, node, visited_children):
        name, sig = visited_children
        return Method(name, sig)

    # ─── Structs ─────────────────────────────────────────────────

    def visit_struct(self, node, visited_children):
        return GoType.struct(_optional(visited_children[2]) or [])

    def visit_fields(self, node, visited_children):
        first, rest = visited_children
        return [first] + _many(rest)

    def visit_more_fields(self, node, visited_children):
        return visited_children[-1]

    def visit_field(self, node, visited_children):
        body, tag = visited_children
        tag_text = _optional(tag)
        if tag_text:
            return Field(body.name, body.type, body.embedded, tag_text)
        return body

    def visit_field_body(self, node, visited_children):
        return visited_children[0]

    def visit_named_field(self, node, visited_children):
        name, _, typ = visited_children
        return Field(name, typ)

    def visit_embedded_field(self, node, visited_children):
        star, typ = visited_children
        # the embedded field is named after the unqualified type name
        name = re.sub(r"\[.*\]$", "", node.children[1].text).rsplit(".", 1)[-1]
        if isinstance(star, list):
            typ = GoType.pointer(typ)
        return Field(name, typ, embedded=True)

    def visit_tag(self, node, visited_children):
        return visited_children[1]

    def visit_string_lit(self, node, visited_children):
        return node.text

    # ─── Names ───────────────────────────────────────────────────

    def visit_untyped(self, node, visited_children):
        return self._resolve("untyped " + visited_children[-1])

    def visit_named(self, node, visited_children):
        # instantiated generics share the methods of their origin type
        return self._resolve(visited_children[0])

    def visit_qualified(self, node, visited_children):
        return node.text

    def visit_ident(self, node, visited_children):
        return node.text

    def visit_int_lit(self, node, visited_children):
        return int(node.text)


def parse_type(text: str, resolve: Resolver) -> GoType:
    """Parse *text* into a :class:`GoType`, binding names through *resolve*.

    Raises :class:`TypeStringError` when *text* is not a type string.
    """
    source = text.strip()
    if not source:
        raise TypeStringError(text, "empty")
    try:
        return TypeBuilder(resolve).parse(source)
    except ParseError as exc:
        _log.debug("unparseable type string %r: %s", text, exc)
        raise TypeStringError(text, str(exc)) from exc
    except VisitationError as exc:
        raise TypeStringError(text, str(exc)) from exc


def try_parse_type(text: Optional[str], resolve: Resolver) -> Optional[GoType]:
    """Like :func:`parse_type` but maps failures to ``None`` (unknown type)."""
    if text is None:
        return None
    try:
        return parse_type(text, resolve)
    except TypeStringError:
        return None
