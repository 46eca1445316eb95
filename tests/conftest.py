# tests/conftest.py
"""
Shared fixtures and dump builders for the erris test-suite.

Dumps are assembled with small builder helpers instead of being written
out by hand, so a test only states the nodes it cares about.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

import pytest

from erris.dump import PackageDump, parse_dump
from erris.goast import Node, walk
from erris.issues import IssueList
from erris.visitor import check_files

APP_ID = "example.com/app"
MY_ERROR = f"{APP_ID}.MyError"
VALUE_ERROR = f"{APP_ID}.ValueError"
CODE = f"{APP_ID}.Code"

Children = Union[str, Sequence[str]]


# ═══════════════════════════════════════════════════════════════════════
#  Builders
# ═══════════════════════════════════════════════════════════════════════

def q(text: str) -> str:
    """Quote *text* as a dump string."""
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def sx(head: str, *items: str) -> str:
    return "(" + " ".join((head,) + items) + ")"


def node(
    kind: str,
    pos: Optional[Tuple[int, int]] = None,
    *,
    end: Optional[Tuple[int, int]] = None,
    op: Optional[str] = None,
    typ: Optional[str] = None,
    name: Optional[str] = None,
    **slots: Children,
) -> str:
    items: List[str] = []
    if pos is not None:
        items.append(f"(pos {pos[0]} {pos[1]})")
    if end is not None:
        items.append(f"(end {end[0]} {end[1]})")
    for attr, value in (("op", op), ("type", typ), ("name", name)):
        if value is not None:
            items.append(sx(attr, q(value)))
    for slot, children in slots.items():
        if isinstance(children, str):
            children = [children]
        items.append(sx(slot, *children))
    return sx(kind, *items)


def ident(name: str, pos: Tuple[int, int], typ: Optional[str] = None) -> str:
    return node("Ident", pos, name=name, typ=typ)


def binary(op: str, x: str, y: str, pos: Tuple[int, int],
           end: Optional[Tuple[int, int]] = None, typ: str = "bool") -> str:
    return node("BinaryExpr", pos, end=end, op=op, typ=typ, X=x, Y=y)


def type_assert(x: str, pos: Tuple[int, int], type_node: Optional[str] = None,
                end: Optional[Tuple[int, int]] = None) -> str:
    if type_node is None:
        return node("TypeAssertExpr", pos, end=end, X=x)
    return node("TypeAssertExpr", pos, end=end, X=x, Type=type_node)


def func(name: str, line: int, *stmts: str) -> str:
    """A ``FuncDecl`` whose body holds *stmts*."""
    return node(
        "FuncDecl", (line, 1),
        Name=ident(name, (line, 6)),
        Body=node("BlockStmt", (line, 20), List=list(stmts)),
    )


def stmt(expr: str, line: int) -> str:
    return node("ExprStmt", (line, 2), X=expr)


def go_file(path: str, *decls: str, package: Optional[str] = None,
            pkg_name: str = "app") -> str:
    root = node("File", (1, 1), Name=ident(pkg_name, (1, 9)), Decls=list(decls))
    items = [q(path)]
    if package is not None:
        items.append(sx("package", q(package)))
    items.append(root)
    return sx("file", *items)


def method(name: str, signature: str, pointer: bool = False) -> str:
    items = [q(name), q(signature)]
    if pointer:
        items.append("pointer")
    return sx("method", *items)


def named(name: str, underlying: str, *methods: str) -> str:
    return sx("named", q(name), q(underlying), *methods)


def alias(name: str, target: str) -> str:
    return sx("alias", q(name), q(target))


def package(
    *files: str,
    pkg_id: str = APP_ID,
    name: Optional[str] = "app",
    types: Iterable[str] = (),
    errors: Iterable[str] = (),
) -> str:
    items = [sx("id", q(pkg_id))]
    if name is not None:
        items.append(sx("name", q(name)))
    types = list(types)
    if types:
        items.append(sx("types", *types))
    errors = list(errors)
    if errors:
        items.append(sx("errors", *(q(e) for e in errors)))
    items.extend(files)
    return sx("package", *items)


# ═══════════════════════════════════════════════════════════════════════
#  Canonical snippets
# ═══════════════════════════════════════════════════════════════════════

APP_TYPES = (
    # type MyError struct{ msg string }; func (e *MyError) Error() string
    named(MY_ERROR, "struct{msg string}", method("Error", "func() string", pointer=True)),
    # type ValueError string; func (e ValueError) Error() string
    named(VALUE_ERROR, "string", method("Error", "func() string")),
    named(CODE, "int"),
)


def err_ident(pos: Tuple[int, int], name: str = "err") -> str:
    return ident(name, pos, "error")


def sql_err_no_rows(pos: Tuple[int, int]) -> str:
    """``sql.ErrNoRows`` as a selector expression."""
    line, col = pos
    return node(
        "SelectorExpr", pos, typ="error",
        X=ident("sql", pos),
        Sel=ident("ErrNoRows", (line, col + 4), "error"),
    )


# return err == sql.ErrNoRows
SQL_COMPARE = binary("==", err_ident((9, 9)), sql_err_no_rows((9, 16)),
                     (9, 9), end=(9, 29))

# switch err.(type) { case *MyError: }
TYPE_SWITCH = node(
    "TypeSwitchStmt", (13, 2),
    Assign=node("ExprStmt", (13, 9),
                X=type_assert(err_ident((13, 9)), (13, 9), end=(13, 19))),
    Body=node("BlockStmt", (13, 20), List=node(
        "CaseClause", (14, 2),
        List=node("StarExpr", (14, 7), typ=f"*{MY_ERROR}",
                  X=ident("MyError", (14, 8), MY_ERROR)),
    )),
)

# if x == 2 {}
INT_COMPARE = binary("==", ident("x", (20, 5), "int"),
                     node("BasicLit", (20, 10), typ="untyped int"), (20, 5))

# if err != nil {}
NIL_COMPARE = binary("!=", err_ident((21, 5)), ident("nil", (21, 12), "untyped nil"),
                     (21, 5))


def clean_package(**kwargs) -> str:
    return package(
        go_file("clean.go", func("f", 3, stmt(INT_COMPARE, 20), stmt(NIL_COMPARE, 21))),
        pkg_id="example.com/clean", name="clean", **kwargs,
    )


def app_package(**kwargs) -> str:
    """Package with one comparison in app.go and one type switch in app_test.go."""
    return package(
        go_file("app.go", func("find", 8, node("ReturnStmt", (9, 2), Results=SQL_COMPARE))),
        go_file("app_test.go", func("kind", 12, TYPE_SWITCH)),
        types=APP_TYPES,
        **kwargs,
    )


def decode(text: str) -> PackageDump:
    return parse_dump(text, "test.dump")


def issues_in(*exprs: str, types: Iterable[str] = APP_TYPES) -> IssueList:
    """Run the detector over a single file whose function holds *exprs*."""
    stmts = [stmt(e, 30 + i) for i, e in enumerate(exprs)]
    dump = decode(package(go_file("a.go", func("f", 29, *stmts)), types=types))
    return check_files(dump.types, (f.root for f in dump.files))


class _KindCollector:

    def __init__(self, kind: str, found: List[Node]) -> None:
        self.kind = kind
        self.found = found

    def visit(self, n: Optional[Node]) -> "_KindCollector":
        if n is not None and n.kind == self.kind:
            self.found.append(n)
        return self


def find_all(root: Node, kind: str) -> List[Node]:
    """All nodes of *kind* under *root*, in walk order."""
    found: List[Node] = []
    walk(_KindCollector(kind, found), root)
    return found


# ═══════════════════════════════════════════════════════════════════════
#  Fixtures
# ═══════════════════════════════════════════════════════════════════════

@pytest.fixture
def write_dump(tmp_path):
    """Write dump text below ``tmp_path``; returns the file path as a string."""
    def _write(relpath: str, text: str) -> str:
        path = tmp_path / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def workspace(tmp_path, write_dump) -> Dict[str, str]:
    """A tree with a clean package, a package with findings and a broken one."""
    return {
        "root": str(tmp_path),
        "clean": write_dump("clean/clean.dump", clean_package()),
        "app": write_dump("app/app.dump", app_package()),
        "broken": write_dump(
            "broken/broken.dump",
            package(go_file("b.go"), pkg_id="example.com/broken", name="broken",
                    errors=["b.go:3:1: expected declaration, found 'IDENT' foo"]),
        ),
    }
