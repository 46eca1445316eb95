# tests/test_typeparse.py
"""
Tests for the go/types type-string grammar.
"""

import pytest

from erris.errors import TypeStringError
from erris.gotypes import ChanDir, GoType, TypeKind, type_to_str, universe_lookup
from erris.typeparse import parse_type, try_parse_type


@pytest.fixture
def resolve():
    declared = {}

    def _resolve(name):
        predeclared = universe_lookup(name)
        if predeclared is not None:
            return predeclared
        return declared.setdefault(name, GoType.named(name))
    return _resolve


class TestNames:

    def test_error(self, resolve):
        t = parse_type("error", resolve)
        assert t is universe_lookup("error")

    def test_qualified_name(self, resolve):
        t = parse_type("example.com/app.MyError", resolve)
        assert t.kind is TypeKind.NAMED
        assert t.name == "example.com/app.MyError"

    def test_same_name_resolves_to_same_term(self, resolve):
        a = parse_type("example.com/app.MyError", resolve)
        b = parse_type("*example.com/app.MyError", resolve)
        assert b.elem is a

    def test_byte_is_uint8(self, resolve):
        t = parse_type("[]byte", resolve)
        assert t.elem is universe_lookup("uint8")

    def test_untyped(self, resolve):
        assert parse_type("untyped nil", resolve) is universe_lookup("untyped nil")
        assert parse_type("untyped int", resolve).name == "untyped int"

    def test_generic_instance_resolves_origin(self, resolve):
        t = parse_type("example.com/app.List[int, example.com/app.Item]", resolve)
        assert t.name == "example.com/app.List"


class TestComposites:

    def test_pointer_slice_array(self, resolve):
        t = parse_type("*[][4]int", resolve)
        assert t.kind is TypeKind.POINTER
        assert t.elem.kind is TypeKind.SLICE
        assert t.elem.elem.kind is TypeKind.ARRAY
        assert t.elem.elem.array_len == 4

    def test_map(self, resolve):
        t = parse_type("map[string][]int", resolve)
        assert t.kind is TypeKind.MAP
        key, value = t.children
        assert key is universe_lookup("string")
        assert value.kind is TypeKind.SLICE

    @pytest.mark.parametrize("text,direction", [
        ("chan int", ChanDir.BOTH),
        ("chan<- int", ChanDir.SEND),
        ("<-chan int", ChanDir.RECV),
    ])
    def test_channels(self, resolve, text, direction):
        t = parse_type(text, resolve)
        assert t.kind is TypeKind.CHAN
        assert t.chan_dir is direction

    def test_tuple(self, resolve):
        t = parse_type("(int, error)", resolve)
        assert t.kind is TypeKind.TUPLE
        assert [type_to_str(c) for c in t.children] == ["int", "error"]


class TestSignatures:

    def test_no_params_no_results(self, resolve):
        t = parse_type("func()", resolve)
        assert t.kind is TypeKind.FUNC
        assert t.params == [] and t.results == []

    def test_single_result(self, resolve):
        t = parse_type("func() string", resolve)
        assert t.results == [universe_lookup("string")]

    def test_named_params_and_variadic(self, resolve):
        t = parse_type("func(ctx context.Context, args ...string) (int, error)", resolve)
        assert len(t.params) == 2
        assert t.variadic
        assert t.params[1].kind is TypeKind.SLICE
        assert [type_to_str(r) for r in t.results] == ["int", "error"]

    def test_func_result(self, resolve):
        t = parse_type("func(int) func() error", resolve)
        assert t.results[0].kind is TypeKind.FUNC

    def test_printing(self, resolve):
        t = parse_type("func(a int, b ...string) (int, error)", resolve)
        assert type_to_str(t) == "func(int, ...string) (int, error)"


class TestInterfacesAndStructs:

    def test_interface_methods(self, resolve):
        t = parse_type("interface{Error() string; Unwrap() error}", resolve)
        assert [m.name for m in t.methods] == ["Error", "Unwrap"]

    def test_interface_embedding(self, resolve):
        t = parse_type("interface{io.Reader; Close() error}", resolve)
        assert [m.name for m in t.methods] == ["Close"]
        assert [e.name for e in t.embedded] == ["io.Reader"]

    def test_empty_interface(self, resolve):
        t = parse_type("interface{}", resolve)
        assert t.kind is TypeKind.INTERFACE
        assert t.methods == [] and t.embedded == []

    def test_struct_fields(self, resolve):
        t = parse_type('struct{msg string; *example.com/app.Base "json:\\"base\\""}', resolve)
        assert t.kind is TypeKind.STRUCT
        msg, base = t.fields
        assert (msg.name, msg.embedded) == ("msg", False)
        assert (base.name, base.embedded) == ("Base", True)
        assert base.type.kind is TypeKind.POINTER
        assert base.tag == '"json:\\"base\\""'

    def test_empty_struct(self, resolve):
        assert parse_type("struct{}", resolve).fields == []


class TestInvalid:

    @pytest.mark.parametrize("text", ["", "   ", "map[", "func(", "interface{", "[]"])
    def test_raises(self, resolve, text):
        with pytest.raises(TypeStringError):
            parse_type(text, resolve)

    def test_try_parse_maps_failure_to_none(self, resolve):
        assert try_parse_type("map[", resolve) is None
        assert try_parse_type(None, resolve) is None
        assert try_parse_type("int", resolve) is universe_lookup("int")
