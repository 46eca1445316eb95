"""erris/dump.py – package dump → syntax trees + type table.

A front end serialises one type-checked Go package as a single
S-expression::

    (package
      (id "example.com/app")
      (name "app")
      (types
        (named "example.com/app.MyError" "struct{msg string}"
          (method "Error" "func() string" pointer))
        (alias "example.com/app.Failure" "error"))
      (errors "app.go:3:1: expected declaration")
      (file "app.go"
        (File (pos 1 1)
          (Decls ...)))
      (file "app_ext_test.go" (package "app_test")
        (File ...)))

Node forms are ``(Kind item ...)``:

* an item whose head is lowercase is an attribute: ``(pos L C)``,
  ``(end L C)``, ``(op "==")``, ``(type "error")``, ``(name "err")`` ...
* an item whose head is capitalised is a child slot holding zero or more
  nodes: ``(X (Ident ...))``, ``(List (Ident ...) (Ident ...))``.

Design principles
-----------------
* **Head-symbol dispatch** – package-level items are dispatched on their
  head symbol through a registry.
* **Fail-fast with location** – every structural problem raises
  :class:`~erris.errors.DumpError` pointing at the offending list.
* **No implicit coercions** – unknown package items are errors, not
  silently ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, List, NoReturn, Optional, Set, Tuple

from erris.errors import DumpError
from erris.goast import FILE, Node, Position
from erris.oracle import MethodDecl, TypeOracle, TypeTable
from erris.sexp import Sexp, SList, Symbol, dumps, read_one

TEST_FILE_SUFFIX = "_test.go"


@dataclass(frozen=True)
class FileDump:
    """One source file of a package dump."""
    path: str
    package: str
    root: Node

    @property
    def is_test(self) -> bool:
        return self.path.endswith(TEST_FILE_SUFFIX)


@dataclass
class PackageDump:
    """Everything the front end recorded for one package."""
    id: str
    name: str
    source: str = ""
    files: List[FileDump] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    types: TypeOracle = field(default_factory=TypeOracle)


# ═══════════════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════════════

class _Decoder:
    """Decoding state for one dump file."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.type_texts: Set[str] = set()

    def fail(self, message: str, form: Any = None) -> NoReturn:
        if isinstance(form, SList):
            raise DumpError(message, self.path, form.line, form.column)
        raise DumpError(message, self.path)

    def sym_name(self, s: Sexp, where: Any = None) -> str:
        if isinstance(s, Symbol):
            return str(s)
        self.fail(f"expected symbol, got {dumps(s)}", where)

    def expect_list(self, s: Sexp, *, min_len: int = 0, where: Any = None) -> SList:
        if not isinstance(s, list):
            self.fail(f"expected list, got {dumps(s)}", where)
        if len(s) < min_len:
            self.fail(f"list too short: expected at least {min_len} elements, "
                      f"got {dumps(s)}", s)
        return s

    def as_str(self, s: Sexp, where: Any = None) -> str:
        if isinstance(s, str) and not isinstance(s, Symbol):
            return s
        self.fail(f"expected string, got {dumps(s)}", where)

    def as_int(self, s: Sexp, where: Any = None) -> int:
        if isinstance(s, int) and not isinstance(s, bool):
            return s
        self.fail(f"expected integer, got {dumps(s)}", where)

    def head(self, s: SList) -> str:
        return self.sym_name(s[0], s)

    # ── Syntax tree ──────────────────────────────────────────────────

    def position(self, item: SList) -> Position:
        if len(item) != 3:
            self.fail(f"expected ({self.head(item)} LINE COLUMN)", item)
        return Position(self.as_int(item[1], item), self.as_int(item[2], item))

    def attribute(self, frame: "_NodeFrame", head: str, item: SList) -> None:
        if head == "pos":
            frame.pos = self.position(item)
            return
        if head == "end":
            frame.end = self.position(item)
            return
        if len(item) != 2:
            self.fail(f"attribute {head!r} takes exactly one value", item)
        value = item[1]
        if isinstance(value, list):
            self.fail(f"attribute {head!r} must be a scalar", item)
        if head == "type":
            value = self.as_str(value, item)
            self.type_texts.add(value)
        frame.attrs[head] = str(value) if isinstance(value, Symbol) else value

    def node(self, form: Sexp, file: str) -> Node:
        """Decode a node form; nesting is unwound on an explicit stack."""
        stack = [_NodeFrame(self, form)]
        while True:
            frame = stack[-1]
            child = frame.next_child(self)
            if child is not None:
                stack.append(_NodeFrame(self, child))
                continue
            stack.pop()
            built = frame.build(file)
            if not stack:
                return built
            stack[-1].children.append(built)


class _NodeFrame:
    """A node under construction: the items still to read and the open slot."""

    def __init__(self, dec: _Decoder, form: Sexp) -> None:
        self.form = dec.expect_list(form, min_len=1)
        self.kind = dec.sym_name(self.form[0], self.form)
        if not self.kind[:1].isupper():
            dec.fail(f"expected a node kind, got {self.kind!r}", self.form)
        self.pos: Optional[Position] = None
        self.end: Optional[Position] = None
        self.attrs: Dict[str, Any] = {}
        self.slots: List[Tuple[str, Tuple[Node, ...]]] = []
        self.items: Iterator[Sexp] = iter(self.form[1:])
        self.slot: Optional[str] = None
        self.children: List[Node] = []
        self.pending: Iterator[Sexp] = iter(())

    def _close_slot(self) -> None:
        if self.slot is not None:
            self.slots.append((self.slot, tuple(self.children)))
            self.slot = None
            self.children = []

    def next_child(self, dec: _Decoder) -> Optional[Sexp]:
        """The next child form of the open slot, or None once every item is read."""
        while True:
            child = next(self.pending, None)
            if child is not None:
                return child
            self._close_slot()
            raw = next(self.items, None)
            if raw is None:
                return None
            item = dec.expect_list(raw, min_len=1, where=self.form)
            head = dec.head(item)
            if head[:1].isupper():
                self.slot = head
                self.pending = iter(item[1:])
            else:
                dec.attribute(self, head, item)

    def build(self, file: str) -> Node:
        return Node(self.kind, file, self.pos, self.end,
                    MappingProxyType(self.attrs), tuple(self.slots))


# ═══════════════════════════════════════════════════════════════════════
#  Dispatch registry
# ═══════════════════════════════════════════════════════════════════════

_PackageItem = Callable[[_Decoder, PackageDump, SList, Dict[str, Any]], None]
_PACKAGE_ITEM_DISPATCH: Dict[str, _PackageItem] = {}


def _register(tag: str):
    """Decorator: register a package-item decoder under *tag*."""
    def deco(fn):
        _PACKAGE_ITEM_DISPATCH[tag] = fn
        return fn
    return deco


@_register("id")
def _decode_id(dec: _Decoder, pkg: PackageDump, item: SList, ctx: Dict[str, Any]) -> None:
    dec.expect_list(item, min_len=2)
    pkg.id = dec.as_str(item[1], item)


@_register("name")
def _decode_name(dec: _Decoder, pkg: PackageDump, item: SList, ctx: Dict[str, Any]) -> None:
    dec.expect_list(item, min_len=2)
    pkg.name = dec.as_str(item[1], item)


@_register("errors")
def _decode_errors(dec: _Decoder, pkg: PackageDump, item: SList, ctx: Dict[str, Any]) -> None:
    pkg.errors.extend(dec.as_str(e, item) for e in item[1:])


@_register("types")
def _decode_types(dec: _Decoder, pkg: PackageDump, item: SList, ctx: Dict[str, Any]) -> None:
    named = ctx.setdefault("named", [])
    aliases = ctx.setdefault("aliases", [])
    for raw in item[1:]:
        entry = dec.expect_list(raw, min_len=3, where=item)
        tag = dec.head(entry)
        name = dec.as_str(entry[1], entry)
        target = dec.as_str(entry[2], entry)
        if tag == "alias":
            aliases.append((name, target))
        elif tag == "named":
            methods: List[MethodDecl] = []
            for mraw in entry[3:]:
                m = dec.expect_list(mraw, min_len=3, where=entry)
                if dec.head(m) != "method":
                    dec.fail(f"expected (method NAME SIGNATURE), got {dumps(m)}", m)
                flags = [dec.sym_name(f, m) for f in m[3:]]
                unknown = [f for f in flags if f != "pointer"]
                if unknown:
                    dec.fail(f"unknown method flag {unknown[0]!r}", m)
                methods.append((dec.as_str(m[1], m), dec.as_str(m[2], m), "pointer" in flags))
            named.append((name, target, methods))
        else:
            dec.fail(f"unknown type entry ({tag} ...)", entry)


@_register("file")
def _decode_file(dec: _Decoder, pkg: PackageDump, item: SList, ctx: Dict[str, Any]) -> None:
    dec.expect_list(item, min_len=3)
    path = dec.as_str(item[1], item)
    package = ""
    root = None
    for raw in item[2:]:
        sub = dec.expect_list(raw, min_len=1, where=item)
        if dec.head(sub) == "package":
            dec.expect_list(sub, min_len=2)
            package = dec.as_str(sub[1], sub)
        elif root is None:
            root = dec.node(sub, path)
        else:
            dec.fail(f"file {path!r} has more than one root node", sub)
    if root is None or root.kind != FILE:
        dec.fail(f"file {path!r} must hold one ({FILE} ...) node", item)
    ctx.setdefault("files", []).append((path, package, root))


# ═══════════════════════════════════════════════════════════════════════
#  Public API
# ═══════════════════════════════════════════════════════════════════════

def decode_package(form: Sexp, source: str = "<string>") -> PackageDump:
    """Decode a ``(package ...)`` form into a :class:`PackageDump`."""
    dec = _Decoder(source)
    form = dec.expect_list(form, min_len=1)
    if dec.head(form) != "package":
        dec.fail(f"expected (package ...), got ({dec.head(form)} ...)", form)

    pkg = PackageDump(id="", name="", source=source)
    ctx: Dict[str, Any] = {}
    for raw in form[1:]:
        item = dec.expect_list(raw, min_len=1, where=form)
        tag = dec.head(item)
        handler = _PACKAGE_ITEM_DISPATCH.get(tag)
        if handler is None:
            dec.fail(f"unknown package item ({tag} ...)", item)
        handler(dec, pkg, item, ctx)

    if not pkg.id:
        dec.fail("package has no (id ...)", form)
    if not pkg.name:
        pkg.name = pkg.id.rstrip("/").rsplit("/", 1)[-1]

    table = TypeTable()
    named = ctx.get("named", [])
    for name, _, _ in named:
        table.declare(name)
    for name, target in ctx.get("aliases", []):
        table.alias(name, target)
    for name, underlying, methods in named:
        table.define(name, underlying, methods)

    pkg.files = [FileDump(p, pkg_name or pkg.name, root)
                 for p, pkg_name, root in ctx.get("files", [])]
    pkg.types = table.oracle(dec.type_texts)
    return pkg


def parse_dump(text: str, source: str = "<string>") -> PackageDump:
    """Read and decode one dump file's contents."""
    return decode_package(read_one(text, source), source)
