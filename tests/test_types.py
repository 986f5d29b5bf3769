"""Tests for the type layer: primitive keywords, nullability, unions and
parameterized types."""

import pytest

from webidlark import (
    IdlFrozenArrayType,
    IdlIdentifierType,
    IdlObservableArrayType,
    IdlPromiseType,
    IdlRecordType,
    IdlSequenceType,
    IdlType,
    IdlUnexpectedToken,
    IdlUnionType,
    parse,
)

# ###############
# Test Helpers
# ###############


def _typedef_type(type_source: str):
    """Parse ``typedef <type_source> T;`` and return the aliased type."""
    return parse(f"typedef {type_source} T;")[0].idl_type


def _attribute_type(type_source: str):
    return parse(f"interface Foo {{ attribute {type_source} x; }};")[0].members[0].idl_type


# ###############
# Primitive Types
# ###############


class TestPrimitiveTypes:
    @pytest.mark.parametrize(
        "source",
        [
            "boolean",
            "byte",
            "octet",
            "bigint",
            "short",
            "unsigned short",
            "long",
            "unsigned long",
            "long long",
            "unsigned long long",
            "float",
            "unrestricted float",
            "double",
            "unrestricted double",
        ],
    )
    def test_primitive_keyword_sequences(self, source: str) -> None:
        idl_type = _typedef_type(source)
        assert isinstance(idl_type, IdlType)
        assert idl_type.base_type == source
        assert idl_type.is_primitive_type

    def test_longest_keyword_sequence_wins(self) -> None:
        idl_type = _typedef_type("unsigned long long")
        assert idl_type.base_type == "unsigned long long"
        assert idl_type.name == "UnsignedLongLong"
        assert idl_type.is_integer_type

    def test_multi_word_type_tolerates_comments_between_keywords(self) -> None:
        assert _typedef_type("unsigned /* a */ long // b\n long").base_type == "unsigned long long"

    def test_dangling_unsigned_is_rejected(self) -> None:
        with pytest.raises(IdlUnexpectedToken):
            parse("typedef unsigned double T;")

    def test_string_types(self) -> None:
        for name in ("DOMString", "ByteString", "USVString"):
            assert _typedef_type(name).is_string_type

    def test_buffer_types(self) -> None:
        for name in ("ArrayBuffer", "DataView", "Uint8ClampedArray", "Float16Array", "BigUint64Array"):
            idl_type = _typedef_type(name)
            assert isinstance(idl_type, IdlType)
            assert idl_type.is_buffer_type

    def test_builtin_types(self) -> None:
        assert _typedef_type("object").name == "Object"
        assert _typedef_type("symbol").name == "Symbol"
        assert _typedef_type("undefined").is_undefined
        assert _typedef_type("void").is_undefined

    def test_any(self) -> None:
        idl_type = _typedef_type("any")
        assert idl_type.is_any
        assert not idl_type.is_nullable

    def test_identifier_type_is_not_resolved(self) -> None:
        idl_type = _typedef_type("NotDeclaredAnywhere")
        assert isinstance(idl_type, IdlIdentifierType)
        assert idl_type.name == "NotDeclaredAnywhere"

    def test_keyword_prefixed_identifier_is_an_identifier(self) -> None:
        idl_type = _typedef_type("longer")
        assert isinstance(idl_type, IdlIdentifierType)
        assert idl_type.name == "longer"

    def test_unrestricted_is_spelled_in_the_base_type(self) -> None:
        assert IdlType("unrestricted double").base_type == "unrestricted double"
        with pytest.raises(TypeError):
            IdlType("double", is_unrestricted=True)


# ###############
# Nullable Types
# ###############


class TestNullableTypes:
    def test_nullable_primitive(self) -> None:
        idl_type = _attribute_type("long?")
        assert idl_type.is_nullable
        assert str(idl_type) == "Long?"

    def test_nullable_identifier(self) -> None:
        idl_type = _attribute_type("Node?")
        assert isinstance(idl_type, IdlIdentifierType)
        assert idl_type.is_nullable

    def test_nullable_union(self) -> None:
        idl_type = _attribute_type("(Node or DOMString)?")
        assert isinstance(idl_type, IdlUnionType)
        assert idl_type.is_nullable

    def test_nullable_any_is_rejected(self) -> None:
        source = "interface Foo { attribute any? x; };"
        with pytest.raises(IdlUnexpectedToken) as info:
            parse(source)
        assert info.value.found == "?"
        assert info.value.offset == source.index("?")

    def test_nullable_promise_is_rejected(self) -> None:
        source = "interface Foo { Promise<long>? f(); };"
        with pytest.raises(IdlUnexpectedToken) as info:
            parse(source)
        assert info.value.found == "?"


# ###############
# Union Types
# ###############


class TestUnionTypes:
    def test_nested_union(self) -> None:
        idl_type = _typedef_type("(long or (DOMString or Node)? or sequence<long>)")
        assert isinstance(idl_type, IdlUnionType)
        assert len(idl_type.member_types) == 3
        nested = idl_type.member_types[1]
        assert isinstance(nested, IdlUnionType)
        assert nested.is_nullable
        assert idl_type.number_of_nullable_member_types == 1
        assert [t.name for t in idl_type.flattened_member_types] == [
            "Long", "String", "Node", "Sequence(Long)"
        ]

    def test_union_member_extended_attributes(self) -> None:
        idl_type = _typedef_type("([Clamp] long or DOMString)")
        assert idl_type.member_types[0].extattr_has_identifier("Clamp")

    def test_single_member_union_is_rejected(self) -> None:
        with pytest.raises(IdlUnexpectedToken):
            parse("typedef (long) T;")

    def test_union_members_are_separated_by_or(self) -> None:
        source = "typedef (long, DOMString) T;"
        with pytest.raises(IdlUnexpectedToken) as info:
            parse(source)
        assert info.value.found == ","
        assert "`or`" in info.value.expected

    def test_member_names(self) -> None:
        assert _typedef_type("(long or DOMString)").member_names == ["Long", "String"]

    def test_has_type_checks_direct_members(self) -> None:
        idl_type = _typedef_type("(long or FrozenArray<Node>)")
        assert idl_type.has_type("FrozenArray(Node)")
        assert idl_type.has_type("Node")
        assert idl_type.has_type("Long")
        assert not idl_type.has_type("String")

    def test_has_type_checks_nested_union_members(self) -> None:
        idl_type = _typedef_type("(long or (Node or DOMString))")
        assert idl_type.has_type("String")
        assert idl_type.has_type("Union(Node, String)")


# ###############
# Parameterized Types
# ###############


class TestParameterizedTypes:
    def test_sequence(self) -> None:
        idl_type = _typedef_type("sequence<DOMString>?")
        assert isinstance(idl_type, IdlSequenceType)
        assert idl_type.is_nullable
        assert idl_type.element_type.base_type == "DOMString"
        assert idl_type.name == "Sequence(String)"

    def test_frozen_and_observable_arrays(self) -> None:
        assert isinstance(_typedef_type("FrozenArray<long>"), IdlFrozenArrayType)
        assert isinstance(_attribute_type("ObservableArray<Node>"), IdlObservableArrayType)

    def test_element_type_extended_attributes(self) -> None:
        idl_type = _typedef_type("sequence<[EnforceRange] long>")
        assert idl_type.element_type.extattr_has_identifier("EnforceRange")

    def test_record(self) -> None:
        idl_type = _typedef_type("record<USVString, sequence<long>>")
        assert isinstance(idl_type, IdlRecordType)
        assert idl_type.key_type.base_type == "USVString"
        assert isinstance(idl_type.value_type, IdlSequenceType)

    def test_record_key_must_be_a_string_type(self) -> None:
        with pytest.raises(IdlUnexpectedToken):
            parse("typedef record<long, long> T;")

    def test_promise(self) -> None:
        op = parse("interface Foo { Promise<undefined> ready(); };")[0].members[0]
        assert isinstance(op.idl_type, IdlPromiseType)
        assert op.idl_type.nested_type.is_undefined
        assert op.idl_type.name == "Promise(Undefined)"

    def test_promise_of_nullable(self) -> None:
        idl_type = _typedef_type("Promise<long?>")
        assert idl_type.nested_type.is_nullable
        assert not idl_type.is_nullable

    def test_deeply_parameterized(self) -> None:
        idl_type = _typedef_type("sequence<record<DOMString, (long or FrozenArray<Node>)>>")
        value_type = idl_type.element_type.value_type
        assert isinstance(value_type, IdlUnionType)
        assert value_type.has_type("FrozenArray(Node)")
