
from .webidlark import WebIDLark, parse, DEFAULT_MAX_NESTING_DEPTH
from .idl_common import IdlNode, IdlIdentifier, IdlLiteral
from .idl_errors import (
    IdlParseError, IdlUnexpectedToken, IdlUnexpectedEnd,
    IdlTrailingInput, IdlInvalidLiteral, IdlNestingTooDeep
)
from .idl_extended_attributes import (
    IdlExtendedAttribute, IdlExtendedAttributeNoArgs, IdlExtendedAttributeArgList,
    IdlExtendedAttributeIdent, IdlExtendedAttributeIdentList,
    IdlExtendedAttributeNamedArgList
)
from .idl_definitions import (
    IdlDefinitions, IdlDictionaryMember, IdlInterface, IdlNamespace,
    IdlOperation, IdlAttribute, IdlCallbackFunction, IdlConstructor,
    IdlTypedef, IdlEnum, IdlDictionary, IdlIncludes, IdlArgument,
    IdlConstant, IdlDefinition, IdlIterable, IdlMaplike, IdlSetlike
)
from .idl_types import (
    IdlSequenceType, IdlTypeBase, IdlType, IdlIdentifierType, IdlPromiseType,
    IdlArrayTypeBase, IdlUnionType, IdlRecordType,
    IdlFrozenArrayType, IdlObservableArrayType, IdlNestedType
)
