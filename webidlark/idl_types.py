# Copyright 2014 The Chromium Authors. All rights reserved.
# Use of this source code is governed by a BSD-style license that can be
# found in the LICENSE file.

from copy import copy
from typing import Iterable
from .idl_common import IdlNode, IdlIdentifier, Span
from .idl_extended_attributes import IdlExtendedAttribute, WithExtendedAttributes

INTEGER_TYPES = frozenset([
    'byte',
    'octet',
    'short',
    'unsigned short',
    'long',
    'unsigned long',
    'long long',
    'unsigned long long',
])

FLOATING_TYPES = frozenset([
    'float',
    'unrestricted float',
    'double',
    'unrestricted double',
])

STRING_TYPES = frozenset([
    'DOMString',
    'ByteString',
    'USVString',
])

BUFFER_TYPES = frozenset([
    'ArrayBuffer',
    'SharedArrayBuffer',
    'DataView',
    'Int8Array',
    'Int16Array',
    'Int32Array',
    'Uint8Array',
    'Uint16Array',
    'Uint32Array',
    'Uint8ClampedArray',
    'BigInt64Array',
    'BigUint64Array',
    'Float16Array',
    'Float32Array',
    'Float64Array',
])

NUMERIC_TYPES = (INTEGER_TYPES | FLOATING_TYPES)
PRIMITIVE_TYPES = (frozenset(['boolean', 'bigint']) | NUMERIC_TYPES)
BASIC_TYPES = (
    PRIMITIVE_TYPES | STRING_TYPES | frozenset([
        'void',
        'undefined'
    ])
)
TYPE_NAMES = {
    'any': 'Any',
    'boolean': 'Boolean',
    'bigint': 'BigInt',
    'byte': 'Byte',
    'octet': 'Octet',
    'short': 'Short',
    'unsigned short': 'UnsignedShort',
    'long': 'Long',
    'unsigned long': 'UnsignedLong',
    'long long': 'LongLong',
    'unsigned long long': 'UnsignedLongLong',
    'float': 'Float',
    'unrestricted float': 'UnrestrictedFloat',
    'double': 'Double',
    'unrestricted double': 'UnrestrictedDouble',
    'DOMString': 'String',
    'ByteString': 'ByteString',
    'USVString': 'USVString',
    'object': 'Object',
    'symbol': 'Symbol',
    'undefined': 'Undefined',
    'void': 'Undefined',
}

class IdlTypeBase(WithExtendedAttributes, IdlNode):
    """Base class for IdlType, IdlIdentifierType, IdlUnionType, IdlRecordType
    and the parameterized types.

    Nullability and extended attributes are flags on every type rather than
    wrapper types, so a union and a nullable union are the same class.
    """

    def __init__(
        self, is_nullable:bool=False,
        extended_attributes:Iterable[IdlExtendedAttribute]=(), span:Span=None
    ):
        WithExtendedAttributes.__init__(self, extended_attributes)
        IdlNode.__init__(self, span)
        self.is_nullable = is_nullable

    def __repr__(self):
        return str(self)

    def __str__(self):
        return f"{self.name}?" if self.is_nullable else self.name

    def __eq__(self, other:"IdlTypeBase"):
        if type(self) is not type(other): return False
        return (
            self.is_nullable == other.is_nullable
            and self.extended_attributes == other.extended_attributes
            and self._key() == other._key()
        )

    def __ne__(self, other:"IdlTypeBase"):
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.is_nullable, self._key()))

    def _key(self):
        raise NotImplementedError('_key() should be defined in subclasses')

    @property
    def name(self) -> str:
        raise NotImplementedError('name should be defined in subclasses')

    @property
    def is_union(self) -> bool:
        return False

    def with_extended_attributes(
        self, extended_attributes:Iterable[IdlExtendedAttribute], span:Span
    ) -> "IdlTypeBase":
        idl_type = copy(self)
        idl_type.extended_attributes = tuple(extended_attributes)
        idl_type.span = span
        return idl_type

class IdlType(IdlTypeBase):

    def __init__(
        self, base_type:str, is_nullable:bool=False,
        extended_attributes:Iterable[IdlExtendedAttribute]=(), span:Span=None
    ):
        IdlTypeBase.__init__(self, is_nullable, extended_attributes, span)
        self.base_type = base_type
        assert not (self.is_any and is_nullable), 'any is never nullable'

    @property
    def is_basic_type(self):
        return self.base_type in BASIC_TYPES

    @property
    def is_integer_type(self):
        return self.base_type in INTEGER_TYPES

    @property
    def is_floating_type(self):
        return self.base_type in FLOATING_TYPES

    @property
    def is_undefined(self):
        return self.base_type in ('undefined', 'void')

    @property
    def is_any(self):
        return self.base_type == 'any'

    @property
    def is_numeric_type(self):
        return self.base_type in NUMERIC_TYPES

    @property
    def is_primitive_type(self):
        return self.base_type in PRIMITIVE_TYPES

    @property
    def is_string_type(self):
        return self.base_type in STRING_TYPES

    @property
    def is_buffer_type(self):
        return self.base_type in BUFFER_TYPES

    def _key(self):
        return self.base_type

    @property
    def name(self):
        base_type = self.base_type
        return TYPE_NAMES.get(base_type, base_type)

class IdlIdentifierType(IdlTypeBase):
    """A reference to a definition by name. The name is not resolved."""

    def __init__(
        self, identifier:IdlIdentifier, is_nullable:bool=False,
        extended_attributes:Iterable[IdlExtendedAttribute]=(), span:Span=None
    ):
        IdlTypeBase.__init__(self, is_nullable, extended_attributes, span)
        self.identifier = identifier

    def _key(self):
        return self.identifier

    @property
    def name(self):
        return self.identifier.name

class IdlNestedType(IdlTypeBase):

    def __init__(
        self, nested_type:IdlTypeBase=None, member_types:Iterable[IdlTypeBase]=None,
        is_nullable:bool=False, extended_attributes:Iterable[IdlExtendedAttribute]=(),
        span:Span=None
    ):
        assert nested_type or member_types
        IdlTypeBase.__init__(self, is_nullable, extended_attributes, span)
        self.member_types:tuple[IdlTypeBase, ...] = (nested_type,) if not member_types else tuple(member_types)
        self.nested_type:IdlTypeBase = nested_type

    def has_type(self, type_name:str):
        for member in self.member_types:
            if member.name == type_name:
                return True
            if isinstance(member, IdlNestedType) and member.has_type(type_name):
                return True
        return False

    def get_nested_type(self) -> IdlTypeBase:
        return self.nested_type

    def get_types(self) -> list[IdlTypeBase]:
        return list(self.member_types)

    def _key(self):
        return self.member_types

class IdlPromiseType(IdlNestedType):

    def __init__(
        self, nested_type:IdlTypeBase,
        extended_attributes:Iterable[IdlExtendedAttribute]=(), span:Span=None
    ):
        IdlNestedType.__init__(
            self, nested_type=nested_type,
            extended_attributes=extended_attributes, span=span
        )

    @property
    def name(self):
        all_types = ', '.join(member_type.name for member_type in self.member_types)
        return f"Promise({all_types})"

class IdlUnionType(IdlNestedType):

    def __init__(
        self, member_types:Iterable[IdlTypeBase], is_nullable:bool=False,
        extended_attributes:Iterable[IdlExtendedAttribute]=(), span:Span=None
    ):
        IdlNestedType.__init__(
            self, member_types=member_types, is_nullable=is_nullable,
            extended_attributes=extended_attributes, span=span
        )
        assert len(self.member_types) >= 2, 'a union has at least two members'

    @property
    def is_union(self) -> bool:
        return True

    @property
    def number_of_nullable_member_types(self):
        count = 0
        for member in self.member_types:
            if member.is_nullable:
                count += 1
            if isinstance(member, IdlUnionType):
                count += member.number_of_nullable_member_types
        return count

    @property
    def flattened_member_types(self) -> list[IdlTypeBase]:
        flattened = []
        for member in self.member_types:
            if isinstance(member, IdlUnionType):
                flattened.extend(member.flattened_member_types)
            else:
                flattened.append(member)
        return flattened

    @property
    def name(self):
        all_types = ', '.join(member_type.name for member_type in self.member_types)
        return f"Union({all_types})"

    @property
    def member_names(self):
        return [member.name for member in self.member_types]

class IdlArrayTypeBase(IdlNestedType):
    """Base class for array-like types."""

    def __init__(
        self, element_type:IdlTypeBase, is_nullable:bool=False,
        extended_attributes:Iterable[IdlExtendedAttribute]=(), span:Span=None
    ):
        IdlNestedType.__init__(
            self, nested_type=element_type, is_nullable=is_nullable,
            extended_attributes=extended_attributes, span=span
        )
        self.element_type = element_type

class IdlSequenceType(IdlArrayTypeBase):

    @property
    def name(self):
        return f"Sequence({self.element_type.name})"

class IdlFrozenArrayType(IdlArrayTypeBase):

    @property
    def name(self):
        return f"FrozenArray({self.element_type.name})"

class IdlObservableArrayType(IdlArrayTypeBase):

    @property
    def name(self):
        return f"ObservableArray({self.element_type.name})"

class IdlRecordType(IdlTypeBase):
    def __init__(
        self, key_type:IdlType, value_type:IdlTypeBase, is_nullable:bool=False,
        extended_attributes:Iterable[IdlExtendedAttribute]=(), span:Span=None
    ):
        IdlTypeBase.__init__(self, is_nullable, extended_attributes, span)
        self.key_type = key_type
        self.value_type = value_type
        assert isinstance(key_type, IdlType) and key_type.is_string_type

    def _key(self):
        return (self.key_type, self.value_type)

    @property
    def name(self):
        return f"Record({self.key_type.name}, {self.value_type.name})"
