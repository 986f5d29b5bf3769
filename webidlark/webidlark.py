
import logging
import threading
from typing import Union
from pathlib import Path
from lark import Lark, Transformer, Tree, Token, v_args
from lark.exceptions import UnexpectedInput, VisitError
from lark.tree import Meta

from .idl_common import IdlIdentifier, IdlLiteral, Span
from .idl_diagnostics import SourceText, ErrorReporter
from .idl_errors import IdlParseError, IdlUnexpectedToken, IdlNestingTooDeep
from .idl_extended_attributes import (
    IdlExtendedAttribute, IdlExtendedAttributeNoArgs, IdlExtendedAttributeArgList,
    IdlExtendedAttributeIdent, IdlExtendedAttributeIdentList,
    IdlExtendedAttributeNamedArgList
)
from .idl_types import (
    IdlTypeBase, IdlType, IdlIdentifierType, IdlPromiseType, IdlUnionType,
    IdlSequenceType, IdlFrozenArrayType, IdlObservableArrayType, IdlRecordType
)
from .idl_definitions import (
    IdlMember, IdlArgument, IdlAttribute, IdlOperation, IdlConstructor,
    IdlConstant, IdlIterable, IdlMaplike, IdlSetlike, IdlDictionaryMember,
    IdlInterface, IdlCallbackFunction, IdlNamespace, IdlDictionary,
    IdlEnum, IdlTypedef, IdlIncludes, IdlDefinitions
)

logger = logging.getLogger(__name__)

NODES_TYPE = list[Union[Tree, Token, IdlIdentifier, IdlLiteral, IdlTypeBase, IdlMember]]
GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"
DEFAULT_MAX_NESTING_DEPTH = 32

# Parse tree rules that open one nesting level.
NESTING_RULES = frozenset([
    'union_type',
    'sequence_type',
    'frozen_array_type',
    'observable_array_type',
    'record_type',
    'promise_type',
    'argument_list',
    'extended_attribute_list',
])

LITERAL_KINDS_BY_TOKEN = {
    'TRUE': 'boolean',
    'FALSE': 'boolean',
    'INTEGER': 'integer',
    'FLOAT': 'float',
    'INFINITY': 'float',
    'NEG_INFINITY': 'float',
    'NAN': 'float',
    'STRING': 'string',
    'WILDCARD': 'wildcard',
}

@v_args(meta=True)
class WebIDLTransformer(Transformer):
    """Builds the IDL node tree bottom-up from the lark parse tree.

    Rules that only produce part of a node (a member without its extended
    attributes, a type without its nullability) return a ``Token`` carrying
    the pieces; the enclosing rule builds the node and gives it its span.
    """

    def __init__(self, source:SourceText):
        Transformer.__init__(self)
        self.source = source

    def _span(self, meta:Meta) -> Union[Span, None]:
        if meta.empty:
            return None
        return (self.source.byte_offset(meta.start_pos), self.source.byte_offset(meta.end_pos))

    def _token_span(self, token:Token) -> Span:
        return (self.source.byte_offset(token.start_pos), self.source.byte_offset(token.end_pos))

    def _source_text(self, node:IdlMember) -> str:
        start, end = (self.source.char_offset(offset) for offset in node.span)
        return self.source.text[start:end]

    def _extended_attributes(self, nodes:NODES_TYPE) -> tuple[IdlExtendedAttribute, ...]:
        for node in nodes:
            if isinstance(node, Token) and node.type == 'EXTENDED_ATTRIBUTE_LIST':
                return node.value
        return ()

    def _parts(self, nodes:NODES_TYPE, token_type:str):
        for node in nodes:
            if isinstance(node, Token) and node.type == token_type:
                return node.value
        raise ValueError(f"No {token_type} among {nodes}")

    def _has_token(self, nodes:NODES_TYPE, token_type:str) -> bool:
        return any(isinstance(node, Token) and node.type == token_type for node in nodes)

    def _types(self, nodes:NODES_TYPE) -> list[IdlTypeBase]:
        return [node for node in nodes if isinstance(node, IdlTypeBase)]

    def _identifiers(self, nodes:NODES_TYPE) -> list[IdlIdentifier]:
        return [node for node in nodes if isinstance(node, IdlIdentifier)]

    def _arguments(self, nodes:NODES_TYPE) -> tuple[IdlArgument, ...]:
        for node in nodes:
            if isinstance(node, Token) and node.type == 'ARGUMENT_LIST':
                return node.value
        return ()

    def _keyword_identifier(self, node:Union[IdlIdentifier, Token]) -> IdlIdentifier:
        if isinstance(node, IdlIdentifier):
            return node
        return IdlIdentifier(str(node), span=self._token_span(node))

    # Definitions

    def definitions(self, meta:Meta, nodes:NODES_TYPE):
        return IdlDefinitions(nodes, span=(0, self.source.byte_length))

    def definition(self, meta:Meta, nodes:NODES_TYPE):
        cls, kwargs = self._parts(nodes, 'DEFINITION')
        return cls(
            extended_attributes=self._extended_attributes(nodes),
            span=self._span(meta), **kwargs
        )

    def _container(self, nodes:NODES_TYPE, **flags) -> dict:
        parent = None
        if self._has_token(nodes, 'INHERITANCE'):
            parent = self._parts(nodes, 'INHERITANCE')
        members = [node for node in nodes if isinstance(node, IdlMember)]
        kwargs = {'identifier': self._identifiers(nodes)[0], 'members': members}
        if parent:
            kwargs['parent'] = parent
        kwargs.update(flags)
        return kwargs

    def interface(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFINITION', (IdlInterface, self._container(nodes)))

    def callback_interface(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFINITION', (IdlInterface, self._container(nodes, is_callback=True)))

    def mixin_interface(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFINITION', (IdlInterface, self._container(nodes, is_mixin=True)))

    def partial_interface(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFINITION', (IdlInterface, self._container(nodes, is_partial=True)))

    def partial_mixin_interface(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = self._container(nodes, is_partial=True, is_mixin=True)
        return Token('DEFINITION', (IdlInterface, kwargs))

    def namespace(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFINITION', (IdlNamespace, self._container(nodes)))

    def partial_namespace(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFINITION', (IdlNamespace, self._container(nodes, is_partial=True)))

    def dictionary(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFINITION', (IdlDictionary, self._container(nodes)))

    def partial_dictionary(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFINITION', (IdlDictionary, self._container(nodes, is_partial=True)))

    def inheritance(self, meta:Meta, nodes:NODES_TYPE):
        return Token('INHERITANCE', nodes[0])

    def callback_function(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = {
            'identifier': self._identifiers(nodes)[0],
            'idl_type': self._types(nodes)[0],
            'arguments': self._arguments(nodes),
        }
        return Token('DEFINITION', (IdlCallbackFunction, kwargs))

    def enum(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = {
            'identifier': self._identifiers(nodes)[0],
            'values': self._parts(nodes, 'ENUM_VALUE_LIST'),
        }
        return Token('DEFINITION', (IdlEnum, kwargs))

    def enum_value_list(self, meta:Meta, nodes:NODES_TYPE):
        values = [
            IdlLiteral('string', str(node), span=self._token_span(node))
            for node in nodes if isinstance(node, Token) and node.type == 'STRING'
        ]
        return Token('ENUM_VALUE_LIST', values)

    def typedef(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = {
            'identifier': self._identifiers(nodes)[0],
            'idl_type': self._types(nodes)[0],
        }
        return Token('DEFINITION', (IdlTypedef, kwargs))

    def includes_statement(self, meta:Meta, nodes:NODES_TYPE):
        interface, mixin = self._identifiers(nodes)
        return Token('DEFINITION', (IdlIncludes, {'interface': interface, 'mixin': mixin}))

    # Members

    def interface_member(self, meta:Meta, nodes:NODES_TYPE):
        cls, kwargs = self._parts(nodes, 'MEMBER')
        return cls(
            extended_attributes=self._extended_attributes(nodes),
            span=self._span(meta), **kwargs
        )

    partial_interface_member = interface_member
    mixin_member = interface_member
    callback_interface_member = interface_member
    namespace_member = interface_member

    def dictionary_member(self, meta:Meta, nodes:NODES_TYPE):
        default_value = None
        if self._has_token(nodes, 'DEFAULT'):
            default_value = self._parts(nodes, 'DEFAULT')
        return IdlDictionaryMember(
            self._identifiers(nodes)[0], self._types(nodes)[0],
            is_required=self._has_token(nodes, 'REQUIRED'),
            default_value=default_value,
            extended_attributes=self._extended_attributes(nodes),
            span=self._span(meta)
        )

    def const_member(self, meta:Meta, nodes:NODES_TYPE):
        literals = [node for node in nodes if isinstance(node, IdlLiteral)]
        kwargs = {
            'identifier': self._identifiers(nodes)[0],
            'const_type': self._types(nodes)[0],
            'const_value': literals[0],
        }
        return Token('MEMBER', (IdlConstant, kwargs))

    def const_type(self, meta:Meta, nodes:NODES_TYPE):
        node = nodes[0]
        if isinstance(node, IdlIdentifier):
            return IdlIdentifierType(node, span=self._span(meta))
        cls, kwargs = node.value
        return cls(**kwargs)

    def _operation(self, nodes:NODES_TYPE, **flags) -> dict:
        identifier = None
        if self._has_token(nodes, 'OPERATION_NAME'):
            identifier = self._parts(nodes, 'OPERATION_NAME')
        idl_types = self._types(nodes)
        kwargs = {
            'identifier': identifier,
            'idl_type': idl_types[0] if idl_types else None,
            'arguments': self._arguments(nodes),
        }
        kwargs.update(flags)
        return kwargs

    def regular_operation(self, meta:Meta, nodes:NODES_TYPE):
        return Token('MEMBER', (IdlOperation, self._operation(nodes)))

    def special_operation(self, meta:Meta, nodes:NODES_TYPE):
        special = self._parts(nodes, 'SPECIAL')
        return Token('MEMBER', (IdlOperation, self._operation(nodes, special=special)))

    def special(self, meta:Meta, nodes:NODES_TYPE):
        return Token('SPECIAL', str(nodes[0]))

    def operation_name(self, meta:Meta, nodes:NODES_TYPE):
        return Token('OPERATION_NAME', self._keyword_identifier(nodes[0]))

    def stringifier_member(self, meta:Meta, nodes:NODES_TYPE):
        if self._has_token(nodes, 'MEMBER'):
            cls, kwargs = self._parts(nodes, 'MEMBER')
            return Token('MEMBER', (cls, dict(kwargs, is_stringifier=True)))
        return Token('MEMBER', (IdlOperation, self._operation(nodes, special='stringifier')))

    def static_member(self, meta:Meta, nodes:NODES_TYPE):
        cls, kwargs = self._parts(nodes, 'MEMBER')
        return Token('MEMBER', (cls, dict(kwargs, is_static=True)))

    def attribute_member(self, meta:Meta, nodes:NODES_TYPE):
        idl_type, identifier = self._parts(nodes, 'ATTRIBUTE_REST')
        kwargs = {
            'identifier': identifier,
            'idl_type': idl_type,
            'is_readonly': self._has_token(nodes, 'READONLY'),
        }
        return Token('MEMBER', (IdlAttribute, kwargs))

    namespace_attribute = attribute_member

    def inherit_attribute(self, meta:Meta, nodes:NODES_TYPE):
        idl_type, identifier = self._parts(nodes, 'ATTRIBUTE_REST')
        kwargs = {'identifier': identifier, 'idl_type': idl_type, 'is_inherit': True}
        return Token('MEMBER', (IdlAttribute, kwargs))

    def attribute_rest(self, meta:Meta, nodes:NODES_TYPE):
        return Token('ATTRIBUTE_REST', (self._types(nodes)[0], self._identifiers(nodes)[0]))

    def attribute_name(self, meta:Meta, nodes:NODES_TYPE):
        return self._keyword_identifier(nodes[0])

    def iterable(self, meta:Meta, nodes:NODES_TYPE):
        idl_types = self._types(nodes)
        kwargs = {'value_type': idl_types[-1]}
        if len(idl_types) == 2:
            kwargs['key_type'] = idl_types[0]
        return Token('MEMBER', (IdlIterable, kwargs))

    def async_iterable(self, meta:Meta, nodes:NODES_TYPE):
        cls, kwargs = self.iterable(meta, nodes).value
        kwargs.update(is_async=True, arguments=self._arguments(nodes))
        return Token('MEMBER', (cls, kwargs))

    def maplike(self, meta:Meta, nodes:NODES_TYPE):
        key_type, value_type = self._types(nodes)
        kwargs = {
            'key_type': key_type,
            'value_type': value_type,
            'is_read_only': self._has_token(nodes, 'READONLY'),
        }
        return Token('MEMBER', (IdlMaplike, kwargs))

    def setlike(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = {
            'value_type': self._types(nodes)[0],
            'is_read_only': self._has_token(nodes, 'READONLY'),
        }
        return Token('MEMBER', (IdlSetlike, kwargs))

    def constructor(self, meta:Meta, nodes:NODES_TYPE):
        return Token('MEMBER', (IdlConstructor, {'arguments': self._arguments(nodes)}))

    # Arguments and literals

    def argument_list(self, meta:Meta, nodes:NODES_TYPE):
        arguments = [node for node in nodes if isinstance(node, IdlArgument)]
        self._check_argument_order(arguments)
        return Token('ARGUMENT_LIST', tuple(arguments))

    def _check_argument_order(self, arguments:list[IdlArgument]):
        seen_optional = False
        for index, argument in enumerate(arguments):
            if argument.is_variadic and index != len(arguments) - 1:
                following = arguments[index + 1]
                raise IdlUnexpectedToken(
                    self._source_text(following), following.start, expected=('`)`',),
                    message=f"Unexpected argument after variadic argument {argument.name!r}"
                )
            if argument.is_optional:
                seen_optional = True
            elif seen_optional and not argument.is_variadic:
                raise IdlUnexpectedToken(
                    self._source_text(argument), argument.start, expected=('`optional`',),
                    message=f"Mandatory argument {argument.name!r} follows an optional argument"
                )

    def argument(self, meta:Meta, nodes:NODES_TYPE):
        default_value = None
        if self._has_token(nodes, 'DEFAULT'):
            default_value = self._parts(nodes, 'DEFAULT')
        return IdlArgument(
            self._identifiers(nodes)[0], self._types(nodes)[0],
            is_optional=self._has_token(nodes, 'OPTIONAL'),
            is_variadic=self._has_token(nodes, 'ELLIPSIS'),
            default_value=default_value,
            extended_attributes=self._extended_attributes(nodes),
            span=self._span(meta)
        )

    def argument_name(self, meta:Meta, nodes:NODES_TYPE):
        return self._keyword_identifier(nodes[0])

    def default(self, meta:Meta, nodes:NODES_TYPE):
        return Token('DEFAULT', nodes[0])

    def const_value(self, meta:Meta, nodes:NODES_TYPE):
        token = nodes[0]
        return IdlLiteral(LITERAL_KINDS_BY_TOKEN[token.type], str(token), span=self._span(meta))

    def string_value(self, meta:Meta, nodes:NODES_TYPE):
        return IdlLiteral('string', str(nodes[0]), span=self._span(meta))

    def empty_sequence(self, meta:Meta, nodes:NODES_TYPE):
        return IdlLiteral('sequence', '[]', span=self._span(meta))

    def empty_dictionary(self, meta:Meta, nodes:NODES_TYPE):
        return IdlLiteral('dictionary', '{}', span=self._span(meta))

    def null_value(self, meta:Meta, nodes:NODES_TYPE):
        return IdlLiteral('null', 'null', span=self._span(meta))

    def undefined_value(self, meta:Meta, nodes:NODES_TYPE):
        return IdlLiteral('undefined', 'undefined', span=self._span(meta))

    # Extended attributes

    def extended_attribute_list(self, meta:Meta, nodes:NODES_TYPE):
        attrs = tuple(node for node in nodes if isinstance(node, IdlExtendedAttribute))
        return Token('EXTENDED_ATTRIBUTE_LIST', attrs)

    def extended_attribute_no_args(self, meta:Meta, nodes:NODES_TYPE):
        return IdlExtendedAttributeNoArgs(nodes[0], span=self._span(meta))

    def extended_attribute_arg_list(self, meta:Meta, nodes:NODES_TYPE):
        return IdlExtendedAttributeArgList(
            nodes[0], self._arguments(nodes), span=self._span(meta)
        )

    def extended_attribute_named_arg_list(self, meta:Meta, nodes:NODES_TYPE):
        name, value = self._identifiers(nodes)
        return IdlExtendedAttributeNamedArgList(
            name, value, self._arguments(nodes), span=self._span(meta)
        )

    def extended_attribute_ident_list(self, meta:Meta, nodes:NODES_TYPE):
        return IdlExtendedAttributeIdentList(
            nodes[0], self._parts(nodes, 'EXTENDED_ATTRIBUTE_VALUE_LIST'),
            span=self._span(meta)
        )

    def extended_attribute_ident(self, meta:Meta, nodes:NODES_TYPE):
        return IdlExtendedAttributeIdent(nodes[0], nodes[-1], span=self._span(meta))

    def extended_attribute_value_list(self, meta:Meta, nodes:NODES_TYPE):
        return Token('EXTENDED_ATTRIBUTE_VALUE_LIST', tuple(nodes))

    def extended_attribute_value(self, meta:Meta, nodes:NODES_TYPE):
        node = nodes[0]
        if isinstance(node, IdlIdentifier):
            return node
        return IdlLiteral(LITERAL_KINDS_BY_TOKEN[node.type], str(node), span=self._span(meta))

    # Types

    def type_with_extended_attributes(self, meta:Meta, nodes:NODES_TYPE):
        idl_type = self._types(nodes)[0]
        attrs = self._extended_attributes(nodes)
        if attrs:
            return idl_type.with_extended_attributes(attrs, self._span(meta))
        return idl_type

    def type(self, meta:Meta, nodes:NODES_TYPE):
        node = nodes[0]
        if isinstance(node, IdlTypeBase):
            return node
        cls, kwargs = node.value
        return cls(**dict(kwargs, is_nullable=self._has_token(nodes, 'NULLABLE'), span=self._span(meta)))

    def any_type(self, meta:Meta, nodes:NODES_TYPE):
        return IdlType('any', span=self._span(meta))

    def promise_type(self, meta:Meta, nodes:NODES_TYPE):
        return IdlPromiseType(self._types(nodes)[0], span=self._span(meta))

    def union_type(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = {'member_types': self._types(nodes), 'span': self._span(meta)}
        return Token('TYPE', (IdlUnionType, kwargs))

    def union_member_type(self, meta:Meta, nodes:NODES_TYPE):
        idl_types = self._types(nodes)
        if not idl_types:
            return self.type(meta, nodes)
        attrs = self._extended_attributes(nodes)
        if attrs:
            return idl_types[0].with_extended_attributes(attrs, self._span(meta))
        return idl_types[0]

    def distinguishable_type(self, meta:Meta, nodes:NODES_TYPE):
        cls, kwargs = nodes[0].value
        return cls(**dict(kwargs, is_nullable=self._has_token(nodes, 'NULLABLE'), span=self._span(meta)))

    def primitive_type(self, meta:Meta, nodes:NODES_TYPE):
        base_type = ' '.join(str(node) for node in nodes)
        return Token('TYPE', (IdlType, {'base_type': base_type, 'span': self._span(meta)}))

    string_type = primitive_type
    builtin_type = primitive_type

    def identifier_type(self, meta:Meta, nodes:NODES_TYPE):
        return Token('TYPE', (IdlIdentifierType, {'identifier': nodes[0], 'span': self._span(meta)}))

    def sequence_type(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = {'element_type': self._types(nodes)[0], 'span': self._span(meta)}
        return Token('TYPE', (IdlSequenceType, kwargs))

    def frozen_array_type(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = {'element_type': self._types(nodes)[0], 'span': self._span(meta)}
        return Token('TYPE', (IdlFrozenArrayType, kwargs))

    def observable_array_type(self, meta:Meta, nodes:NODES_TYPE):
        kwargs = {'element_type': self._types(nodes)[0], 'span': self._span(meta)}
        return Token('TYPE', (IdlObservableArrayType, kwargs))

    def record_type(self, meta:Meta, nodes:NODES_TYPE):
        key_cls, key_kwargs = self._parts(nodes, 'TYPE')
        kwargs = {
            'key_type': key_cls(**key_kwargs),
            'value_type': self._types(nodes)[0],
            'span': self._span(meta),
        }
        return Token('TYPE', (IdlRecordType, kwargs))

    def identifier(self, meta:Meta, nodes:NODES_TYPE):
        return IdlIdentifier.from_source(str(nodes[0]), span=self._token_span(nodes[0]))

class WebIDLark:
    """A reusable WebIDL parser.

    The LALR tables are built once per instance; every ``parse`` call gets a
    fresh transformer, so one instance can be shared between callers.
    """

    def __init__(self, max_nesting_depth:int=DEFAULT_MAX_NESTING_DEPTH):
        self.max_nesting_depth = max_nesting_depth
        self.lark = Lark(
            GRAMMAR_PATH.read_text(encoding='utf-8'), start="definitions", parser="lalr",
            lexer="contextual", propagate_positions=True, maybe_placeholders=False
        )
        logger.debug("Built WebIDL parser from %s", GRAMMAR_PATH)

    def parse(self, text:str) -> IdlDefinitions:
        source = SourceText(text)
        try:
            tree = self.lark.parse(text)
        except UnexpectedInput as e:
            error = ErrorReporter(self.lark, source).translate(e)
            logger.debug("Parse failed: %s", error)
            raise error from e
        try:
            self._check_nesting(tree, source)
            definitions = WebIDLTransformer(source).transform(tree)
        except VisitError as e:
            if not isinstance(e.orig_exc, IdlParseError):
                raise
            error = ErrorReporter(self.lark, source).annotate(e.orig_exc)
            logger.debug("Parse failed: %s", error)
            raise error from None
        except IdlParseError as e:
            error = ErrorReporter(self.lark, source).annotate(e)
            logger.debug("Parse failed: %s", error)
            raise error from None
        logger.debug("Parsed %d definitions", len(definitions))
        return definitions

    def _check_nesting(self, tree:Tree, source:SourceText):
        deepest = None
        stack = [(tree, 0)]
        while stack:
            node, depth = stack.pop()
            if node.data in NESTING_RULES and not node.meta.empty:
                depth += 1
                if depth > self.max_nesting_depth:
                    if deepest is None or node.meta.start_pos < deepest:
                        deepest = node.meta.start_pos
                    continue
            stack.extend((child, depth) for child in node.children if isinstance(child, Tree))
        if deepest is not None:
            raise IdlNestingTooDeep(self.max_nesting_depth, source.byte_offset(deepest))

_default_parser:Union[WebIDLark, None] = None
_default_parser_lock = threading.Lock()

def parse(text:str) -> IdlDefinitions:
    """Parses WebIDL source text into an ``IdlDefinitions`` tree, raising an
    ``IdlParseError`` subclass on the first error."""
    global _default_parser
    if _default_parser is None:
        with _default_parser_lock:
            if _default_parser is None:
                _default_parser = WebIDLark()
    return _default_parser.parse(text)
