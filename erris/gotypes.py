"""
erris/gotypes.py
════════════════

Go type terms and the subset of go/types semantics needed to decide
whether a static type implements an interface.

Theory
──────
Types form a term algebra:

    τ ::= basic(name)                       bool, string, int, untyped nil ...
        | named(qualified-name) ⟶ τ_u       defined type with methods
        | ptr(τ) | slice(τ) | array(τ, n)
        | map(τ_k, τ_v) | chan(τ, dir)
        | func([τ_p...], [τ_r...], variadic)
        | interface({m: sig}, [embedded...])
        | struct([field...])
        | tuple([τ...])                     multi-value call results

Named types may refer to themselves through their underlying type, so
``GoType`` uses identity equality and :func:`identical` implements the
structural notion of type identity.

Method sets follow the Go specification:

  * a named non-interface type ``T`` has its value-receiver methods;
  * ``*T`` has every method declared on ``T``;
  * an interface type has its (flattened) interface methods;
  * methods of embedded struct fields are promoted breadth-first by
    depth, the shallowest name wins and same-depth collisions cancel out.

License: MIT
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Dict, FrozenSet, List, Mapping, Optional, Set, Tuple


class TypeKind(Enum):
    """Discriminant for the type term algebra."""
    BASIC = auto()
    NAMED = auto()
    POINTER = auto()
    SLICE = auto()
    ARRAY = auto()
    MAP = auto()
    CHAN = auto()
    FUNC = auto()
    INTERFACE = auto()
    STRUCT = auto()
    TUPLE = auto()


class ChanDir(Enum):
    BOTH = auto()
    SEND = auto()
    RECV = auto()


@dataclass(frozen=True)
class Method:
    """A method declared on a named type or listed in an interface."""
    name: str
    signature: "GoType"
    pointer_recv: bool = False


@dataclass(frozen=True)
class Field:
    """A struct field; ``embedded`` fields are named after their type."""
    name: str
    type: "GoType"
    embedded: bool = False
    tag: str = ""


@dataclass(eq=False)
class GoType:
    """
    A node in the type term algebra.

    For compound types the children encode structure:
      - POINTER / SLICE / ARRAY / CHAN: children[0] = element type
      - MAP:       children = [key, value]
      - TUPLE:     children = element types
      - FUNC:      params / results, variadic flag
      - INTERFACE: methods (explicit), embedded (interface terms)
      - STRUCT:    fields
      - NAMED:     name, underlying (set once resolved), methods
    """

    kind: TypeKind
    children: List[GoType] = field(default_factory=list)

    # ── Kind-specific attributes ─────────────────────────────────────
    name: str = ""                                              # BASIC / NAMED
    underlying_type: Optional[GoType] = None                    # NAMED
    methods: List[Method] = field(default_factory=list)         # NAMED / INTERFACE
    embedded: List[GoType] = field(default_factory=list)        # INTERFACE
    fields: List[Field] = field(default_factory=list)           # STRUCT
    params: List[GoType] = field(default_factory=list)          # FUNC
    results: List[GoType] = field(default_factory=list)         # FUNC
    variadic: bool = False                                      # FUNC
    array_len: int = -1                                         # ARRAY
    chan_dir: ChanDir = ChanDir.BOTH                            # CHAN

    # ── Factory methods ──────────────────────────────────────────────

    @classmethod
    def basic(cls, name: str) -> GoType:
        return cls(kind=TypeKind.BASIC, name=name)

    @classmethod
    def named(cls, name: str, underlying: Optional[GoType] = None,
              methods: Optional[List[Method]] = None) -> GoType:
        return cls(kind=TypeKind.NAMED, name=name,
                   underlying_type=underlying, methods=list(methods or []))

    @classmethod
    def pointer(cls, elem: GoType) -> GoType:
        return cls(kind=TypeKind.POINTER, children=[elem])

    @classmethod
    def slice(cls, elem: GoType) -> GoType:
        return cls(kind=TypeKind.SLICE, children=[elem])

    @classmethod
    def array(cls, elem: GoType, length: int) -> GoType:
        return cls(kind=TypeKind.ARRAY, children=[elem], array_len=length)

    @classmethod
    def map(cls, key: GoType, value: GoType) -> GoType:
        return cls(kind=TypeKind.MAP, children=[key, value])

    @classmethod
    def chan(cls, elem: GoType, direction: ChanDir = ChanDir.BOTH) -> GoType:
        return cls(kind=TypeKind.CHAN, children=[elem], chan_dir=direction)

    @classmethod
    def func(cls, params: Optional[List[GoType]] = None,
             results: Optional[List[GoType]] = None,
             variadic: bool = False) -> GoType:
        return cls(kind=TypeKind.FUNC, params=list(params or []),
                   results=list(results or []), variadic=variadic)

    @classmethod
    def interface(cls, methods: Optional[List[Method]] = None,
                  embedded: Optional[List[GoType]] = None) -> GoType:
        return cls(kind=TypeKind.INTERFACE, methods=list(methods or []),
                   embedded=list(embedded or []))

    @classmethod
    def struct(cls, fields: Optional[List[Field]] = None) -> GoType:
        return cls(kind=TypeKind.STRUCT, fields=list(fields or []))

    @classmethod
    def tuple(cls, elems: List[GoType]) -> GoType:
        return cls(kind=TypeKind.TUPLE, children=list(elems))

    # ── Predicates ───────────────────────────────────────────────────

    @property
    def is_interface(self) -> bool:
        u = underlying(self)
        return u is not None and u.kind is TypeKind.INTERFACE

    @property
    def elem(self) -> Optional[GoType]:
        return self.children[0] if self.children else None

    def __str__(self) -> str:
        return type_to_str(self)

    def __repr__(self) -> str:
        return f"GoType({type_to_str(self)})"


# ═════════════════════════════════════════════════════════════════════════
#  UNIVERSE SCOPE
# ═════════════════════════════════════════════════════════════════════════

BASIC_NAMES: FrozenSet[str] = frozenset({
    "bool", "string",
    "int", "int8", "int16", "int32", "int64",
    "uint", "uint8", "uint16", "uint32", "uint64", "uintptr",
    "float32", "float64", "complex64", "complex128",
    "unsafe.Pointer",
})

UNTYPED_NAMES: FrozenSet[str] = frozenset({
    "untyped bool", "untyped int", "untyped rune", "untyped float",
    "untyped complex", "untyped string", "untyped nil",
})


def _build_universe() -> Dict[str, GoType]:
    scope: Dict[str, GoType] = {}
    for name in sorted(BASIC_NAMES | UNTYPED_NAMES):
        scope[name] = GoType.basic(name)
    # byte and rune are aliases, not distinct types
    scope["byte"] = scope["uint8"]
    scope["rune"] = scope["int32"]
    scope["any"] = GoType.interface()
    error_sig = GoType.func(results=[scope["string"]])
    scope["error"] = GoType.named(
        "error", GoType.interface([Method("Error", error_sig)]))
    return scope


_UNIVERSE: Mapping[str, GoType] = _build_universe()


def universe_lookup(name: str) -> Optional[GoType]:
    """Look up a predeclared type (``error``, ``string``, ``untyped nil`` ...)."""
    return _UNIVERSE.get(name)


def error_interface() -> GoType:
    """The underlying interface of the predeclared ``error`` type."""
    iface = underlying(_UNIVERSE["error"])
    assert iface is not None
    return iface


# ═════════════════════════════════════════════════════════════════════════
#  STRUCTURE
# ═════════════════════════════════════════════════════════════════════════

def underlying(t: Optional[GoType]) -> Optional[GoType]:
    """Follow named types to the first non-named type (``None`` if unknown)."""
    seen: Set[int] = set()
    while t is not None and t.kind is TypeKind.NAMED:
        if id(t) in seen:
            return None
        seen.add(id(t))
        t = t.underlying_type
    return t


def interface_methods(iface: GoType) -> Dict[str, Method]:
    """Flattened method set of an interface term, embedded interfaces included."""
    out: Dict[str, Method] = {}
    stack = [iface]
    seen: Set[int] = set()
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        for m in cur.methods:
            out.setdefault(m.name, m)
        for emb in reversed(cur.embedded):
            u = underlying(emb)
            if u is not None and u.kind is TypeKind.INTERFACE:
                stack.append(u)
    return out


def method_set(t: Optional[GoType]) -> Dict[str, Method]:
    """The Go method set of *t* (empty for unknown types)."""
    if t is None:
        return {}
    u = underlying(t)
    if u is not None and u.kind is TypeKind.INTERFACE:
        return interface_methods(u)
    if t.kind is TypeKind.POINTER:
        base = t.elem
        if base is None:
            return {}
        bu = underlying(base)
        # pointers to interfaces and to pointers have no methods
        if bu is not None and bu.kind in (TypeKind.INTERFACE, TypeKind.POINTER):
            return {}
        return _collect_methods(base, addressable=True)
    if t.kind is TypeKind.NAMED or (u is not None and u.kind is TypeKind.STRUCT):
        return _collect_methods(t, addressable=False)
    return {}


def _collect_methods(t: GoType, addressable: bool) -> Dict[str, Method]:
    """Declared plus promoted methods, searched breadth-first by depth."""
    result: Dict[str, Method] = {}
    blocked: Set[str] = set()
    level: List[Tuple[GoType, bool]] = [(t, addressable)]
    seen: Set[int] = set()

    while level:
        found: Dict[str, List[Method]] = defaultdict(list)
        field_names: Set[str] = set()
        next_level: List[Tuple[GoType, bool]] = []

        for typ, ptr in level:
            if typ.kind is TypeKind.NAMED:
                if id(typ) in seen:
                    continue
                seen.add(id(typ))
                for m in typ.methods:
                    if ptr or not m.pointer_recv:
                        found[m.name].append(m)
            u = underlying(typ)
            if u is None:
                continue
            if u.kind is TypeKind.INTERFACE and typ is not t:
                for name, m in interface_methods(u).items():
                    found[name].append(m)
            elif u.kind is TypeKind.STRUCT:
                for f in u.fields:
                    field_names.add(f.name)
                    if not f.embedded:
                        continue
                    if f.type.kind is TypeKind.POINTER and f.type.elem is not None:
                        next_level.append((f.type.elem, True))
                    else:
                        next_level.append((f.type, ptr))

        for name, candidates in found.items():
            if name in result or name in blocked:
                continue
            if len(candidates) == 1:
                result[name] = candidates[0]
            else:
                blocked.add(name)
        # a field at this depth hides deeper methods of the same name
        blocked.update(n for n in field_names if n not in result)
        level = next_level

    return result


# ═════════════════════════════════════════════════════════════════════════
#  IDENTITY AND IMPLEMENTATION
# ═════════════════════════════════════════════════════════════════════════

def identical(a: Optional[GoType], b: Optional[GoType]) -> bool:
    """Structural type identity; named types are identical by name."""
    if a is b:
        return a is not None
    if a is None or b is None or a.kind is not b.kind:
        return False
    kind = a.kind
    if kind in (TypeKind.BASIC, TypeKind.NAMED):
        return a.name == b.name
    if kind is TypeKind.ARRAY and a.array_len != b.array_len:
        return False
    if kind is TypeKind.CHAN and a.chan_dir is not b.chan_dir:
        return False
    if kind is TypeKind.FUNC:
        return (a.variadic == b.variadic
                and _all_identical(a.params, b.params)
                and _all_identical(a.results, b.results))
    if kind is TypeKind.STRUCT:
        if len(a.fields) != len(b.fields):
            return False
        return all(
            fa.name == fb.name and fa.embedded == fb.embedded
            and fa.tag == fb.tag and identical(fa.type, fb.type)
            for fa, fb in zip(a.fields, b.fields)
        )
    if kind is TypeKind.INTERFACE:
        ma, mb = interface_methods(a), interface_methods(b)
        if ma.keys() != mb.keys():
            return False
        return all(identical(ma[k].signature, mb[k].signature) for k in ma)
    return _all_identical(a.children, b.children)


def _all_identical(xs: List[GoType], ys: List[GoType]) -> bool:
    return len(xs) == len(ys) and all(identical(x, y) for x, y in zip(xs, ys))


def implements(t: Optional[GoType], iface: GoType) -> bool:
    """Report whether *t* implements the interface term *iface*.

    Unknown types (``None``) implement nothing.
    """
    if t is None:
        return False
    wanted = interface_methods(iface)
    have = method_set(t)
    for name, m in wanted.items():
        got = have.get(name)
        if got is None or not identical(got.signature, m.signature):
            return False
    return True


# ═════════════════════════════════════════════════════════════════════════
#  PRINTING
# ═════════════════════════════════════════════════════════════════════════

def type_to_str(t: Optional[GoType], depth: int = 0) -> str:
    """Render *t* in go/types ``TypeString`` syntax."""
    if t is None:
        return "invalid type"
    if depth > 20:
        return "..."
    k = t.kind
    d = depth + 1
    if k in (TypeKind.BASIC, TypeKind.NAMED):
        return t.name
    if k is TypeKind.POINTER:
        return "*" + type_to_str(t.elem, d)
    if k is TypeKind.SLICE:
        return "[]" + type_to_str(t.elem, d)
    if k is TypeKind.ARRAY:
        return f"[{t.array_len}]" + type_to_str(t.elem, d)
    if k is TypeKind.MAP:
        return f"map[{type_to_str(t.children[0], d)}]{type_to_str(t.children[1], d)}"
    if k is TypeKind.CHAN:
        prefix = {ChanDir.BOTH: "chan ", ChanDir.SEND: "chan<- ",
                  ChanDir.RECV: "<-chan "}[t.chan_dir]
        return prefix + type_to_str(t.elem, d)
    if k is TypeKind.FUNC:
        return "func" + _signature_str(t, d)
    if k is TypeKind.TUPLE:
        return "(" + ", ".join(type_to_str(c, d) for c in t.children) + ")"
    if k is TypeKind.INTERFACE:
        parts = [m.name + _signature_str(m.signature, d) for m in t.methods]
        parts += [type_to_str(e, d) for e in t.embedded]
        return "interface{" + "; ".join(parts) + "}"
    if k is TypeKind.STRUCT:
        parts = []
        for f in t.fields:
            s = type_to_str(f.type, d) if f.embedded else f"{f.name} {type_to_str(f.type, d)}"
            if f.tag:
                s += " " + f.tag
            parts.append(s)
        return "struct{" + "; ".join(parts) + "}"
    return "invalid type"


def _signature_str(sig: GoType, depth: int) -> str:
    params = []
    for i, p in enumerate(sig.params):
        s = type_to_str(p, depth)
        if sig.variadic and i == len(sig.params) - 1:
            s = "..." + type_to_str(p.elem, depth)
        params.append(s)
    out = "(" + ", ".join(params) + ")"
    if len(sig.results) == 1:
        out += " " + type_to_str(sig.results[0], depth)
    elif sig.results:
        out += " (" + ", ".join(type_to_str(r, depth) for r in sig.results) + ")"
    return out
