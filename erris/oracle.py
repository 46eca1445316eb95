"""
erris/oracle.py
═══════════════

Per-package type information.

:class:`TypeTable` binds the qualified names a front end declares for one
package (named types with their methods, plus aliases) and parses type
strings against them.  Once every type string of the package is known the
table produces a :class:`TypeOracle`: an immutable ``type string → GoType``
map with a ``type_of(node)`` lookup.  The oracle is built eagerly at load
time and never changes afterwards, so it can be shared by concurrent
readers.

Name resolution order
─────────────────────
  1. aliases declared by the package
  2. named types declared by the package
  3. the universe scope (``error``, ``string``, ``untyped nil`` ...)
  4. otherwise an opaque named type with no methods (it implements
     nothing, which keeps unresolvable types from producing findings)
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from erris.errors import TypeStringError
from erris.goast import Node
from erris.gotypes import GoType, Method, TypeKind, universe_lookup
from erris.typeparse import parse_type, try_parse_type

_log = logging.getLogger(__name__)

#: (name, signature type string, pointer receiver)
MethodDecl = Tuple[str, str, bool]


class TypeTable:
    """Mutable name table for one package; see the module docstring."""

    def __init__(self) -> None:
        self._named: Dict[str, GoType] = {}
        self._declared: Set[str] = set()
        self._aliases: Dict[str, str] = {}
        self._alias_cache: Dict[str, GoType] = {}
        self._resolving: Set[str] = set()
        self._cache: Dict[str, Optional[GoType]] = {}

    # ── Declarations ─────────────────────────────────────────────────

    def declare(self, name: str) -> GoType:
        """Declare a named type; its underlying type is set by :meth:`define`."""
        self._declared.add(name)
        return self._named.setdefault(name, GoType.named(name))

    def define(
        self,
        name: str,
        underlying: Optional[str],
        methods: Iterable[MethodDecl] = (),
    ) -> GoType:
        """Attach an underlying type and methods to a declared named type."""
        named = self.declare(name)
        if underlying is not None:
            try:
                u = parse_type(underlying, self.resolve)
            except TypeStringError as exc:
                _log.debug("named type %s left opaque: %s", name, exc)
                u = None
            named.underlying_type = u if u is not named else None
        for mname, sig_text, pointer in methods:
            sig = self._signature(sig_text)
            if sig is None:
                _log.debug("dropping method %s.%s with bad signature %r",
                           name, mname, sig_text)
                continue
            named.methods.append(Method(mname, sig, pointer))
        return named

    def alias(self, name: str, target: str) -> None:
        self._aliases[name] = target

    def _signature(self, text: str) -> Optional[GoType]:
        text = text.strip()
        if not text.startswith("func"):
            text = "func" + text
        sig = try_parse_type(text, self.resolve)
        if sig is None or sig.kind is not TypeKind.FUNC:
            return None
        return sig

    # ── Resolution ───────────────────────────────────────────────────

    def resolve(self, name: str) -> GoType:
        """Bind a qualified name to a type (never fails)."""
        if name in self._aliases:
            return self._resolve_alias(name)
        if name in self._declared:
            return self._named[name]
        predeclared = universe_lookup(name)
        if predeclared is not None:
            return predeclared
        return self._named.setdefault(name, GoType.named(name))

    def _resolve_alias(self, name: str) -> GoType:
        cached = self._alias_cache.get(name)
        if cached is not None:
            return cached
        if name in self._resolving:
            _log.debug("alias cycle through %s", name)
            return self._named.setdefault(name, GoType.named(name))
        self._resolving.add(name)
        try:
            target = try_parse_type(self._aliases[name], self.resolve)
        finally:
            self._resolving.discard(name)
        if target is None:
            target = self._named.setdefault(name, GoType.named(name))
        self._alias_cache[name] = target
        return target

    def lookup(self, text: str) -> Optional[GoType]:
        """Parse *text* against this table (``None`` if it is not a type)."""
        if text not in self._cache:
            self._cache[text] = try_parse_type(text, self.resolve)
        return self._cache[text]

    @property
    def declared_names(self) -> List[str]:
        return sorted(self._declared)

    def oracle(self, type_texts: Iterable[str]) -> "TypeOracle":
        """Resolve every string in *type_texts* and freeze the result."""
        return TypeOracle({text: self.lookup(text) for text in sorted(set(type_texts))})


class TypeOracle:
    """Read-only map from the type strings recorded on nodes to types."""

    def __init__(self, types: Optional[Mapping[str, Optional[GoType]]] = None) -> None:
        self._types: Mapping[str, Optional[GoType]] = MappingProxyType(dict(types or {}))

    def type_of(self, node: Optional[Node]) -> Optional[GoType]:
        """Static type of *node*; ``None`` means unknown."""
        if node is None:
            return None
        text = node.type_expr
        if text is None:
            return None
        return self._types.get(text)

    def __contains__(self, text: object) -> bool:
        return text in self._types

    def __len__(self) -> int:
        return len(self._types)
