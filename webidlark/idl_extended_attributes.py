from typing import Union, Iterable
from .idl_common import IdlNode, IdlIdentifier, IdlLiteral, Span

ExtendedAttributeValue = Union[IdlIdentifier, IdlLiteral]

class IdlExtendedAttribute(IdlNode):
    """Base class of the five extended attribute forms."""

    def __init__(self, identifier:IdlIdentifier, span:Span=None):
        IdlNode.__init__(self, span)
        self.identifier = identifier

    @property
    def name(self) -> str:
        return self.identifier.name

    def __repr__(self):
        return f"{type(self).__name__}({self.name})"

    def __eq__(self, other:"IdlExtendedAttribute"):
        if type(self) is not type(other): return False
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.name))

    def _key(self):
        return (self.identifier,)

class IdlExtendedAttributeNoArgs(IdlExtendedAttribute):
    """``[Replaceable]``"""

class IdlExtendedAttributeArgList(IdlExtendedAttribute):
    """``[LegacyFactoryFunction(DOMString src)]`` style, without the ``=``."""

    def __init__(self, identifier:IdlIdentifier, arguments:Iterable["IdlArgument"], span:Span=None):
        IdlExtendedAttribute.__init__(self, identifier, span)
        self.arguments:tuple["IdlArgument", ...] = tuple(arguments)

    def _key(self):
        return (self.identifier, self.arguments)

class IdlExtendedAttributeIdent(IdlExtendedAttribute):
    """``[Exposed=Window]``, also ``[Exposed=*]`` and ``[Reflect="for"]``."""

    def __init__(self, identifier:IdlIdentifier, value:ExtendedAttributeValue, span:Span=None):
        IdlExtendedAttribute.__init__(self, identifier, span)
        self.value = value

    def __repr__(self):
        return f"IdlExtendedAttributeIdent({self.name}={self.value})"

    def _key(self):
        return (self.identifier, self.value)

class IdlExtendedAttributeIdentList(IdlExtendedAttribute):
    """``[Exposed=(Window,Worker)]``"""

    def __init__(self, identifier:IdlIdentifier, values:Iterable[ExtendedAttributeValue], span:Span=None):
        IdlExtendedAttribute.__init__(self, identifier, span)
        self.values:tuple[ExtendedAttributeValue, ...] = tuple(values)
        assert self.values

    def _key(self):
        return (self.identifier, self.values)

class IdlExtendedAttributeNamedArgList(IdlExtendedAttribute):
    """``[LegacyFactoryFunction=Image(unsigned long width)]``"""

    def __init__(
        self, identifier:IdlIdentifier, value:IdlIdentifier,
        arguments:Iterable["IdlArgument"], span:Span=None
    ):
        IdlExtendedAttribute.__init__(self, identifier, span)
        self.value = value
        self.arguments:tuple["IdlArgument", ...] = tuple(arguments)

    def _key(self):
        return (self.identifier, self.value, self.arguments)

class WithExtendedAttributes:

    def __init__(self, extended_attributes:Iterable[IdlExtendedAttribute]=()) -> None:
        self.extended_attributes:tuple[IdlExtendedAttribute, ...] = tuple(extended_attributes)

    def extattr(self, name:str) -> Union[IdlExtendedAttribute, None]:
        for attr in self.extended_attributes:
            if attr.name == name:
                return attr
        return None

    def extattr_has_identifier(self, identifier:str) -> bool:
        return self.extattr(identifier) is not None

    def extattr_get_identifier_value(self, identifier_key:str) -> Union[str, None]:
        attr = self.extattr(identifier_key)
        if isinstance(attr, (IdlExtendedAttributeIdent, IdlExtendedAttributeNamedArgList)):
            value = attr.value
            return value.name if isinstance(value, IdlIdentifier) else value.value
        return None

    def extattr_get_identifier_list(self, identifier_key:str) -> list[str]:
        attr = self.extattr(identifier_key)
        if isinstance(attr, IdlExtendedAttributeIdentList):
            return [v.name if isinstance(v, IdlIdentifier) else v.value for v in attr.values]
        if isinstance(attr, IdlExtendedAttributeIdent) and isinstance(attr.value, IdlIdentifier):
            return [attr.value.name]
        return []

    def extattr_get_arguments(self, identifier:str) -> list["IdlArgument"]:
        attr = self.extattr(identifier)
        if isinstance(attr, (IdlExtendedAttributeArgList, IdlExtendedAttributeNamedArgList)):
            return list(attr.arguments)
        return []

    def extattr_get_named_arguments(self, identifier:str) -> Union[tuple[str, list["IdlArgument"]], None]:
        attr = self.extattr(identifier)
        if isinstance(attr, IdlExtendedAttributeNamedArgList):
            return (attr.value.name, list(attr.arguments))
        return None
