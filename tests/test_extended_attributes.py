"""Tests for the five extended attribute forms and where they attach."""

import pytest

from webidlark import (
    IdlExtendedAttributeArgList,
    IdlExtendedAttributeIdent,
    IdlExtendedAttributeIdentList,
    IdlExtendedAttributeNamedArgList,
    IdlExtendedAttributeNoArgs,
    IdlIdentifier,
    IdlLiteral,
    IdlUnexpectedToken,
    parse,
)

# ###############
# Test Helpers
# ###############


def _attrs(attribute_source: str) -> tuple:
    """Parse ``[<attribute_source>] interface Foo {};`` and return the list."""
    return parse(f"[{attribute_source}] interface Foo {{}};")[0].extended_attributes


def _attr(attribute_source: str):
    attrs = _attrs(attribute_source)
    assert len(attrs) == 1
    return attrs[0]


# ###############
# Forms
# ###############


class TestForms:
    def test_no_args(self) -> None:
        attr = _attr("Replaceable")
        assert isinstance(attr, IdlExtendedAttributeNoArgs)
        assert attr.name == "Replaceable"

    def test_arg_list(self) -> None:
        attr = _attr("LegacyFactoryFunction(DOMString src, optional long width)")
        assert isinstance(attr, IdlExtendedAttributeArgList)
        assert [a.name for a in attr.arguments] == ["src", "width"]
        assert attr.arguments[1].is_optional

    def test_empty_arg_list(self) -> None:
        attr = _attr("Constructor()")
        assert isinstance(attr, IdlExtendedAttributeArgList)
        assert attr.arguments == ()

    def test_ident(self) -> None:
        attr = _attr("Exposed=Window")
        assert isinstance(attr, IdlExtendedAttributeIdent)
        assert attr.value == IdlIdentifier("Window")

    def test_ident_list(self) -> None:
        attr = _attr("Exposed=(Window, Worker)")
        assert isinstance(attr, IdlExtendedAttributeIdentList)
        assert [v.name for v in attr.values] == ["Window", "Worker"]

    def test_named_arg_list(self) -> None:
        attr = _attr("LegacyFactoryFunction=Image(unsigned long width, unsigned long height)")
        assert isinstance(attr, IdlExtendedAttributeNamedArgList)
        assert attr.value.name == "Image"
        assert [a.idl_type.base_type for a in attr.arguments] == ["unsigned long", "unsigned long"]

    def test_ident_with_wildcard(self) -> None:
        attr = _attr("Exposed=*")
        assert isinstance(attr, IdlExtendedAttributeIdent)
        assert attr.value == IdlLiteral("wildcard", "*")

    def test_ident_with_string_and_integer(self) -> None:
        string_attr, integer_attr = _attrs('Reflect="for", Priority=3')
        assert string_attr.value.kind == "string"
        assert string_attr.value.value == "for"
        assert integer_attr.value.value == 3

    def test_ident_list_with_strings(self) -> None:
        attr = _attr('ReflectOnly=("on", "off")')
        assert [v.value for v in attr.values] == ["on", "off"]

    def test_empty_list(self) -> None:
        assert _attrs("") == ()

    def test_absent_list_is_empty(self) -> None:
        assert parse("interface Foo {};")[0].extended_attributes == ()

    def test_list_order_is_source_order(self) -> None:
        attrs = _attrs("A, B=C, D(long x), E=(F), G=H(long y)")
        assert [a.name for a in attrs] == ["A", "B", "D", "E", "G"]
        assert [type(a) for a in attrs] == [
            IdlExtendedAttributeNoArgs,
            IdlExtendedAttributeIdent,
            IdlExtendedAttributeArgList,
            IdlExtendedAttributeIdentList,
            IdlExtendedAttributeNamedArgList,
        ]

    def test_empty_ident_list_is_rejected(self) -> None:
        with pytest.raises(IdlUnexpectedToken):
            parse("[Exposed=()] interface Foo {};")

    def test_trailing_comma_is_rejected(self) -> None:
        with pytest.raises(IdlUnexpectedToken):
            parse("[Replaceable,] interface Foo {};")


# ###############
# Lookup Helpers
# ###############


class TestLookupHelpers:
    def test_identifier_value(self) -> None:
        interface = parse("[Exposed=Window, SecureContext] interface Foo {};")[0]
        assert interface.extattr_has_identifier("SecureContext")
        assert not interface.extattr_has_identifier("Global")
        assert interface.extattr_get_identifier_value("Exposed") == "Window"
        assert interface.extattr_get_identifier_value("SecureContext") is None

    def test_identifier_list(self) -> None:
        interface = parse("[Exposed=(Window,DedicatedWorker)] interface Foo {};")[0]
        assert interface.extattr_get_identifier_list("Exposed") == ["Window", "DedicatedWorker"]

    def test_single_identifier_as_list(self) -> None:
        interface = parse("[Exposed=Window] interface Foo {};")[0]
        assert interface.extattr_get_identifier_list("Exposed") == ["Window"]

    def test_arguments(self) -> None:
        interface = parse("[LegacyFactoryFunction=Audio(optional DOMString src)] interface Foo {};")[0]
        name, arguments = interface.extattr_get_named_arguments("LegacyFactoryFunction")
        assert name == "Audio"
        assert arguments[0].name == "src"
        assert interface.extattr_get_arguments("LegacyFactoryFunction") == arguments


# ###############
# Attachment Points
# ###############


class TestAttachmentPoints:
    def test_on_argument(self) -> None:
        op = parse("interface Foo { undefined f([AllowShared] BufferSource data); };")[0].members[0]
        assert op.arguments[0].extattr_has_identifier("AllowShared")

    def test_on_optional_argument_type(self) -> None:
        op = parse("interface Foo { undefined f(optional [Clamp] long x); };")[0].members[0]
        argument = op.arguments[0]
        assert argument.extended_attributes == ()
        assert argument.idl_type.extattr_has_identifier("Clamp")

    def test_on_attribute_type(self) -> None:
        attr = parse("interface Foo { attribute [LegacyNullToEmptyString] DOMString x; };")[0].members[0]
        assert attr.extended_attributes == ()
        assert attr.idl_type.extattr_has_identifier("LegacyNullToEmptyString")

    def test_on_dictionary_member(self) -> None:
        member = parse("dictionary D { [Deprecated] long x; };")[0].members[0]
        assert member.extattr_has_identifier("Deprecated")

    def test_on_each_definition_kind(self) -> None:
        result = parse(
            "[A] callback C = undefined (); [B] enum E { \"e\" }; [C] typedef long T; "
            "[D] namespace N {}; [E] X includes Y;"
        )
        assert [d.extended_attributes[0].name for d in result] == ["A", "B", "C", "D", "E"]

    def test_type_attributes_do_not_change_type_equality_of_base(self) -> None:
        plain = parse("typedef long T;")[0].idl_type
        clamped = parse("typedef [Clamp] long T;")[0].idl_type
        assert plain.base_type == clamped.base_type
        assert plain != clamped
