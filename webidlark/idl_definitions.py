from typing import Union, Iterable
from .idl_common import IdlNode, IdlIdentifier, IdlLiteral, Span
from .idl_extended_attributes import IdlExtendedAttribute, WithExtendedAttributes
from .idl_types import IdlTypeBase

SPECIAL_OPERATIONS = (
    'regular',
    'getter',
    'setter',
    'deleter',
    'legacycaller',
    'stringifier',
)

ExtendedAttributes = Iterable[IdlExtendedAttribute]

class WithIdlType:

    def __init__(self, idl_type:IdlTypeBase):
        self.idl_type = idl_type

class IdlMember(WithExtendedAttributes, IdlNode):
    """Base class for everything that appears between the braces of a
    definition, and for arguments.

    Equality compares the parsed content and ignores source spans.
    """

    def __init__(self, extended_attributes:ExtendedAttributes=(), span:Span=None):
        WithExtendedAttributes.__init__(self, extended_attributes)
        IdlNode.__init__(self, span)

    def __eq__(self, other:"IdlMember"):
        if type(self) is not type(other): return False
        return (
            self.extended_attributes == other.extended_attributes
            and self._key() == other._key()
        )

    def __ne__(self, other:"IdlMember"):
        return not self.__eq__(other)

    def __hash__(self):
        return hash((type(self).__name__, str(self)))

    def _key(self):
        raise NotImplementedError('_key() should be defined in subclasses')

class IdlArgument(IdlMember, WithIdlType):

    def __init__(
        self, identifier:IdlIdentifier, idl_type:IdlTypeBase, is_optional:bool=False,
        is_variadic:bool=False, default_value:IdlLiteral=None,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        WithIdlType.__init__(self, idl_type)
        assert not (is_variadic and default_value is not None)
        self.identifier = identifier
        self.is_optional = is_optional
        self.is_variadic = is_variadic
        self.default_value = default_value

    @property
    def name(self):
        return self.identifier.name

    def __str__(self):
        ellipsis = '...' if self.is_variadic else ''
        return f"{self.idl_type}{ellipsis} {self.name}"

    def _key(self):
        return (
            self.identifier, self.idl_type, self.is_optional,
            self.is_variadic, self.default_value
        )

class IdlAttribute(IdlMember, WithIdlType):

    def __init__(
        self, identifier:IdlIdentifier, idl_type:IdlTypeBase, is_readonly:bool=False,
        is_static:bool=False, is_stringifier:bool=False, is_inherit:bool=False,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        WithIdlType.__init__(self, idl_type)
        self.identifier = identifier
        self.is_readonly = is_readonly
        self.is_static = is_static
        self.is_stringifier = is_stringifier
        self.is_inherit = is_inherit

    @property
    def name(self):
        return self.identifier.name

    def __str__(self):
        return f"({self.idl_type.name}){self.name}"

    def _key(self):
        return (
            self.identifier, self.idl_type, self.is_readonly,
            self.is_static, self.is_stringifier, self.is_inherit
        )

class IdlOperation(IdlMember, WithIdlType):
    """A regular, static or special operation.

    ``special`` is one of SPECIAL_OPERATIONS. Special operations may have no
    identifier, and the bare ``stringifier;`` form has no return type either.
    """

    def __init__(
        self, identifier:Union[IdlIdentifier, None], idl_type:Union[IdlTypeBase, None],
        arguments:Iterable[IdlArgument]=(), special:str='regular', is_static:bool=False,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        WithIdlType.__init__(self, idl_type)
        assert special in SPECIAL_OPERATIONS, special
        assert identifier or special != 'regular', 'regular operations are named'
        self.identifier = identifier
        self.special = special
        self.is_static = is_static
        self.arguments:tuple[IdlArgument, ...] = tuple(arguments)
        self.arguments_dict:dict[str, IdlArgument] = {arg.name:arg for arg in self.arguments}

    @property
    def is_getter(self):
        return self.special == 'getter'

    @property
    def is_setter(self):
        return self.special == 'setter'

    @property
    def is_deleter(self):
        return self.special == 'deleter'

    @property
    def is_stringifier(self):
        return self.special == 'stringifier'

    @property
    def is_legacycaller(self):
        return self.special == 'legacycaller'

    @property
    def is_special(self):
        return self.special != 'regular'

    def argument(self, index:Union[str, int], expect_type:str=None):
        argument = None
        if isinstance(index, int):
            argument = self.arguments[index]
        elif isinstance(index, str):
            argument = self.arguments_dict.get(index)
        if isinstance(expect_type, str) and argument and argument.idl_type.name != expect_type:
            raise ValueError(f"The type of argument returned({argument.idl_type.name}) is not expected({expect_type})")
        return argument

    @property
    def name(self):
        if self.identifier:
            return self.identifier.name
        return f"({self.special})"

    def __str__(self):
        type_prefix = f"{self.idl_type.name} " if self.idl_type else ''
        return f"{type_prefix}{self.name}({', '.join(arg.idl_type.name for arg in self.arguments)})"

    def _key(self):
        return (
            self.identifier, self.idl_type, self.arguments,
            self.special, self.is_static
        )

    def has_same_arguments(self, other:"IdlOperation"):
        return self.arguments == other.arguments

class IdlConstructor(IdlMember):

    def __init__(
        self, arguments:Iterable[IdlArgument]=(),
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        self.arguments:tuple[IdlArgument, ...] = tuple(arguments)

    @property
    def name(self):
        return 'constructor'

    def __str__(self):
        return f"constructor({', '.join(arg.idl_type.name for arg in self.arguments)})"

    def _key(self):
        return self.arguments

class IdlConstant(IdlMember, WithIdlType):

    def __init__(
        self, identifier:IdlIdentifier, const_type:IdlTypeBase, const_value:IdlLiteral,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        WithIdlType.__init__(self, const_type)
        self.identifier = identifier
        self.value = const_value

    @property
    def name(self):
        return self.identifier.name

    def __str__(self):
        return f"{self.idl_type.name} {self.name} = {self.value}"

    def _key(self):
        return (self.identifier, self.idl_type, self.value)

class IdlIterable(IdlMember):
    """``iterable<V>``, ``iterable<K, V>`` and their ``async`` forms.

    Only async iterables take an argument list.
    """

    def __init__(
        self, value_type:IdlTypeBase, key_type:IdlTypeBase=None, is_async:bool=False,
        arguments:Iterable[IdlArgument]=(), extended_attributes:ExtendedAttributes=(),
        span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        self.key_type:Union[IdlTypeBase, None] = key_type
        self.value_type:IdlTypeBase = value_type
        self.is_async = is_async
        self.arguments:tuple[IdlArgument, ...] = tuple(arguments)

    @property
    def name(self):
        return 'async_iterable' if self.is_async else 'iterable'

    def __str__(self):
        types = ', '.join(str(t) for t in (self.key_type, self.value_type) if t)
        return f"{self.name}<{types}>"

    def _key(self):
        return (self.key_type, self.value_type, self.is_async, self.arguments)

class IdlMaplike(IdlMember):

    def __init__(
        self, key_type:IdlTypeBase, value_type:IdlTypeBase, is_read_only:bool=False,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        self.is_read_only = is_read_only
        self.key_type = key_type
        self.value_type = value_type

    @property
    def name(self):
        return 'maplike'

    def __str__(self):
        return f"maplike<{self.key_type}, {self.value_type}>"

    def _key(self):
        return (self.key_type, self.value_type, self.is_read_only)

class IdlSetlike(IdlMember):

    def __init__(
        self, value_type:IdlTypeBase, is_read_only:bool=False,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        self.is_read_only = is_read_only
        self.value_type = value_type

    @property
    def name(self):
        return 'setlike'

    def __str__(self):
        return f"setlike<{self.value_type}>"

    def _key(self):
        return (self.value_type, self.is_read_only)

class IdlDictionaryMember(IdlMember, WithIdlType):

    def __init__(
        self, identifier:IdlIdentifier, idl_type:IdlTypeBase, is_required:bool=False,
        default_value:IdlLiteral=None, extended_attributes:ExtendedAttributes=(),
        span:Span=None
    ):
        IdlMember.__init__(self, extended_attributes, span)
        WithIdlType.__init__(self, idl_type)
        assert not (is_required and default_value is not None)
        self.identifier = identifier
        self.is_required = is_required
        self.default_value = default_value

    @property
    def name(self):
        return self.identifier.name

    def __str__(self):
        return f"{self.idl_type.name} {self.name}"

    def _key(self):
        return (self.identifier, self.idl_type, self.is_required, self.default_value)

Member = Union[
    IdlAttribute, IdlOperation, IdlConstructor, IdlConstant,
    IdlIterable, IdlMaplike, IdlSetlike, IdlDictionaryMember
]

class WithMembers:

    def __init__(self, members:Iterable[Member]=()):
        self.members:tuple[Member, ...] = tuple(members)

    def member(self, name:str) -> Union[Member, None]:
        for member in self.members:
            if member.name == name:
                return member
        return None

    def find_members(self, member_type:str) -> list[Member]:
        return [
            member for member in self.members
            if isinstance(member, WithIdlType) and member.idl_type
            and member.idl_type.name == member_type
        ]

    def has_member(self, member:Union[str, Member]) -> bool:
        if isinstance(member, str):
            return self.member(member) is not None
        return member in self.members

class WithOperations:

    @property
    def operations(self) -> list[IdlOperation]:
        return [m for m in self.members if isinstance(m, IdlOperation)]

    def find_operations(
        self, name:str, argument_types:list[Union[IdlTypeBase, str, None]]=None, expect_count:int=None
    ) -> list[IdlOperation]:
        ops = []
        for op in self.operations:
            if op.name != name: continue
            if argument_types is not None:
                if len(op.arguments) != len(argument_types): continue
                matched = True
                for i in range(0, len(op.arguments)):
                    if argument_types[i] is None: continue
                    if isinstance(argument_types[i], str):
                        if argument_types[i] == op.arguments[i].idl_type.name: continue
                    elif isinstance(argument_types[i], IdlTypeBase):
                        if argument_types[i] == op.arguments[i].idl_type: continue
                    else:
                        raise TypeError(f"Invalid argument type: {type(argument_types[i])}")
                    matched = False
                    break
                if not matched: continue
            ops.append(op)
        if isinstance(expect_count, int) and len(ops) != expect_count:
            raise LookupError(f"The number of operations returned({len(ops)}) is not as expected({expect_count})! holder: {self}, op: {name}")
        return ops

    def operation(self, name:str, argument_types:list[Union[IdlTypeBase, str, None]]=None) -> IdlOperation:
        return self.find_operations(name, argument_types=argument_types, expect_count=1)[0]

    def has_operation(self, operation:Union[IdlOperation, str]) -> bool:
        if isinstance(operation, str):
            return bool(self.find_operations(operation))
        elif isinstance(operation, IdlOperation):
            return operation in self.operations
        else:
            raise TypeError(f"Invalid operation type {type(operation)}")

class WithAttributes:

    @property
    def attributes(self) -> list[IdlAttribute]:
        return [m for m in self.members if isinstance(m, IdlAttribute)]

    @property
    def readonly_attributes(self) -> list[IdlAttribute]:
        return [a for a in self.attributes if a.is_readonly]

    @property
    def mutable_attributes(self) -> list[IdlAttribute]:
        return [a for a in self.attributes if not a.is_readonly]

    def attribute(self, name:str) -> Union[IdlAttribute, None]:
        for attribute in self.attributes:
            if attribute.name == name:
                return attribute
        return None

    def find_attributes(self, type:str) -> list[IdlAttribute]:
        return [a for a in self.attributes if a.idl_type.name == type]

    def has_attribute(self, attribute:Union[IdlAttribute, str]) -> bool:
        if isinstance(attribute, IdlAttribute):
            return attribute in self.attributes
        elif isinstance(attribute, str):
            return self.attribute(attribute) is not None
        else:
            raise TypeError(f"Invalid attribute type {type(attribute)}")

class WithConstants:

    @property
    def constants(self) -> list[IdlConstant]:
        return [m for m in self.members if isinstance(m, IdlConstant)]

    def constant(self, name:str) -> Union[IdlConstant, None]:
        for constant in self.constants:
            if constant.name == name:
                return constant
        return None

class IdlDefinition(WithExtendedAttributes, IdlNode):

    def __init__(
        self, identifier:IdlIdentifier, extended_attributes:ExtendedAttributes=(),
        span:Span=None
    ):
        WithExtendedAttributes.__init__(self, extended_attributes)
        IdlNode.__init__(self, span)
        self.identifier = identifier

    @property
    def name(self) -> str:
        return self.identifier.name

    @property
    def kind(self) -> str:
        raise NotImplementedError('kind should be defined in subclasses')

    def __str__(self):
        return f"{type(self).__name__}({self.name})"

    __repr__ = __str__

    def __eq__(self, other:"IdlDefinition"):
        if type(self) is not type(other): return False
        return (
            self.identifier == other.identifier
            and self.extended_attributes == other.extended_attributes
            and self._key() == other._key()
        )

    def __ne__(self, other:"IdlDefinition"):
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash((self.kind, self.identifier))

    def _key(self):
        raise NotImplementedError('_key() should be defined in subclasses')

class IdlInterface(
    IdlDefinition, WithMembers, WithOperations, WithAttributes, WithConstants
):
    """Interfaces, interface mixins and callback interfaces, partial or not."""

    def __init__(
        self, identifier:IdlIdentifier, members:Iterable[Member]=(),
        parent:IdlIdentifier=None, is_partial:bool=False, is_mixin:bool=False,
        is_callback:bool=False, extended_attributes:ExtendedAttributes=(),
        span:Span=None
    ):
        IdlDefinition.__init__(self, identifier, extended_attributes, span)
        WithMembers.__init__(self, members)
        assert not (parent and (is_partial or is_mixin))
        self.parent:Union[IdlIdentifier, None] = parent
        self.is_partial = is_partial
        self.is_mixin = is_mixin
        self.is_callback = is_callback

    @property
    def kind(self) -> str:
        if self.is_callback:
            return 'CallbackInterface'
        if self.is_mixin:
            return 'PartialInterfaceMixin' if self.is_partial else 'InterfaceMixin'
        return 'PartialInterface' if self.is_partial else 'Interface'

    @property
    def parent_name(self) -> Union[str, None]:
        return self.parent.name if self.parent else None

    @property
    def constructors(self) -> list[IdlConstructor]:
        return [m for m in self.members if isinstance(m, IdlConstructor)]

    @property
    def iterable(self) -> Union[IdlIterable, None]:
        return next((m for m in self.members if isinstance(m, IdlIterable)), None)

    @property
    def maplike(self) -> Union[IdlMaplike, None]:
        return next((m for m in self.members if isinstance(m, IdlMaplike)), None)

    @property
    def setlike(self) -> Union[IdlSetlike, None]:
        return next((m for m in self.members if isinstance(m, IdlSetlike)), None)

    @property
    def is_stringifier(self) -> bool:
        return any(
            (isinstance(m, IdlOperation) and m.is_stringifier)
            or (isinstance(m, IdlAttribute) and m.is_stringifier)
            for m in self.members
        )

    def _key(self):
        return (self.kind, self.parent, self.members)

class IdlCallbackFunction(IdlDefinition, WithIdlType):

    def __init__(
        self, identifier:IdlIdentifier, idl_type:IdlTypeBase,
        arguments:Iterable[IdlArgument]=(), extended_attributes:ExtendedAttributes=(),
        span:Span=None
    ):
        IdlDefinition.__init__(self, identifier, extended_attributes, span)
        WithIdlType.__init__(self, idl_type)
        self.arguments:tuple[IdlArgument, ...] = tuple(arguments)

    @property
    def kind(self) -> str:
        return 'Callback'

    def _key(self):
        return (self.idl_type, self.arguments)

class IdlNamespace(
    IdlDefinition, WithMembers, WithOperations, WithAttributes, WithConstants
):

    def __init__(
        self, identifier:IdlIdentifier, members:Iterable[Member]=(),
        is_partial:bool=False, extended_attributes:ExtendedAttributes=(),
        span:Span=None
    ):
        IdlDefinition.__init__(self, identifier, extended_attributes, span)
        WithMembers.__init__(self, members)
        self.is_partial = is_partial

    @property
    def kind(self) -> str:
        return 'PartialNamespace' if self.is_partial else 'Namespace'

    def _key(self):
        return (self.is_partial, self.members)

class IdlDictionary(IdlDefinition, WithMembers):

    def __init__(
        self, identifier:IdlIdentifier, members:Iterable[IdlDictionaryMember]=(),
        parent:IdlIdentifier=None, is_partial:bool=False,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlDefinition.__init__(self, identifier, extended_attributes, span)
        WithMembers.__init__(self, members)
        assert not (parent and is_partial)
        self.parent:Union[IdlIdentifier, None] = parent
        self.is_partial = is_partial

    @property
    def kind(self) -> str:
        return 'PartialDictionary' if self.is_partial else 'Dictionary'

    @property
    def parent_name(self) -> Union[str, None]:
        return self.parent.name if self.parent else None

    @property
    def members_dict(self) -> dict[str, IdlDictionaryMember]:
        return {member.name:member for member in self.members}

    @property
    def required_members(self) -> list[IdlDictionaryMember]:
        return [member for member in self.members if member.is_required]

    def _key(self):
        return (self.is_partial, self.parent, self.members)

class IdlEnum(IdlDefinition):

    def __init__(
        self, identifier:IdlIdentifier, values:Iterable[IdlLiteral],
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlDefinition.__init__(self, identifier, extended_attributes, span)
        self.value_literals:tuple[IdlLiteral, ...] = tuple(values)
        assert self.value_literals, 'an enum has at least one value'

    @property
    def kind(self) -> str:
        return 'Enum'

    @property
    def values(self) -> list[str]:
        return [literal.value for literal in self.value_literals]

    def _key(self):
        return self.value_literals

class IdlTypedef(IdlDefinition, WithIdlType):

    def __init__(
        self, identifier:IdlIdentifier, idl_type:IdlTypeBase,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ) -> None:
        IdlDefinition.__init__(self, identifier, extended_attributes, span)
        WithIdlType.__init__(self, idl_type)

    @property
    def kind(self) -> str:
        return 'Typedef'

    def _key(self):
        return self.idl_type

class IdlIncludes(IdlDefinition):
    """``Interface includes Mixin;``. The identifier is the including
    interface."""

    def __init__(
        self, interface:IdlIdentifier, mixin:IdlIdentifier,
        extended_attributes:ExtendedAttributes=(), span:Span=None
    ):
        IdlDefinition.__init__(self, interface, extended_attributes, span)
        self.mixin = mixin

    @property
    def kind(self) -> str:
        return 'IncludesStatement'

    @property
    def interface(self) -> IdlIdentifier:
        return self.identifier

    @property
    def mixin_name(self) -> str:
        return self.mixin.name

    def _key(self):
        return self.mixin

Definition = Union[
    IdlInterface, IdlCallbackFunction, IdlNamespace, IdlDictionary,
    IdlEnum, IdlTypedef, IdlIncludes
]

class IdlDefinitions(IdlNode):
    """The parse result: every definition of the source, in source order."""

    def __init__(self, definitions:Iterable[Definition]=(), span:Span=None):
        IdlNode.__init__(self, span)
        self.definitions:tuple[Definition, ...] = tuple(definitions)

    def __iter__(self):
        return iter(self.definitions)

    def __len__(self):
        return len(self.definitions)

    def __getitem__(self, index):
        return self.definitions[index]

    def __eq__(self, other:"IdlDefinitions"):
        if not isinstance(other, IdlDefinitions): return False
        return self.definitions == other.definitions

    def __hash__(self) -> int:
        return hash(self.definitions)

    def __repr__(self):
        return f"IdlDefinitions({list(self.definitions)})"

    def _of_type(self, cls) -> list:
        return [d for d in self.definitions if isinstance(d, cls)]

    @property
    def interfaces(self) -> list[IdlInterface]:
        return self._of_type(IdlInterface)

    @property
    def callback_functions(self) -> list[IdlCallbackFunction]:
        return self._of_type(IdlCallbackFunction)

    @property
    def dictionaries(self) -> list[IdlDictionary]:
        return self._of_type(IdlDictionary)

    @property
    def enumerations(self) -> list[IdlEnum]:
        return self._of_type(IdlEnum)

    @property
    def typedefs(self) -> list[IdlTypedef]:
        return self._of_type(IdlTypedef)

    @property
    def namespaces(self) -> list[IdlNamespace]:
        return self._of_type(IdlNamespace)

    @property
    def includes(self) -> list[IdlIncludes]:
        return self._of_type(IdlIncludes)

    def find(self, name:str) -> list[Definition]:
        return [d for d in self.definitions if d.name == name]
