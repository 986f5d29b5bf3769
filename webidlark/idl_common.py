import math
from typing import Any, Union

Span = tuple[int, int]

LITERAL_KINDS = frozenset([
    'boolean',
    'integer',
    'float',
    'string',
    'null',
    'undefined',
    'sequence',
    'dictionary',
    'wildcard',
])

class IdlNode:
    """Base class of every node produced by the parser.

    ``span`` is the (start, end) pair of UTF-8 byte offsets the node was
    parsed from. Spans are not part of node equality.
    """

    def __init__(self, span:Span=None):
        self.span:Span = span

    @property
    def start(self) -> Union[int, None]:
        return self.span[0] if self.span else None

    @property
    def end(self) -> Union[int, None]:
        return self.span[1] if self.span else None

class IdlIdentifier(IdlNode):

    def __init__(self, name:str, is_escaped:bool=False, span:Span=None):
        IdlNode.__init__(self, span)
        self.name = name
        self.is_escaped = is_escaped

    @classmethod
    def from_source(cls, text:str, span:Span=None) -> "IdlIdentifier":
        if text.startswith('_'):
            return cls(text[1:], is_escaped=True, span=span)
        return cls(text, span=span)

    @property
    def text(self):
        return f"_{self.name}" if self.is_escaped else self.name

    def __repr__(self):
        return f"IdlIdentifier({self.text})"

    def __str__(self):
        return self.name

    def __eq__(self, other:"IdlIdentifier"):
        if not isinstance(other, IdlIdentifier): return False
        return self.name == other.name and self.is_escaped == other.is_escaped

    def __hash__(self) -> int:
        return hash((self.name, self.is_escaped))

def _integer_value(text:str) -> int:
    sign = -1 if text.startswith('-') else 1
    digits = text.lstrip('-')
    if digits[:2] in ('0x', '0X'):
        return sign * int(digits[2:], 16)
    if len(digits) > 1 and digits.startswith('0'):
        return sign * int(digits[1:], 8)
    return sign * int(digits, 10)

def _float_value(text:str) -> float:
    if text == 'Infinity':
        return math.inf
    if text == '-Infinity':
        return -math.inf
    if text == 'NaN':
        return math.nan
    return float(text)

class IdlLiteral(IdlNode):
    """A constant, default or extended attribute value.

    ``text`` is the literal as written; ``value`` is its Python value
    (``[]`` and ``{}`` for the empty sequence and dictionary defaults).
    Two literals are equal when they have the same kind and spelling.
    """

    def __init__(self, kind:str, text:str, span:Span=None):
        IdlNode.__init__(self, span)
        assert kind in LITERAL_KINDS, kind
        self.kind = kind
        self.text = text

    @property
    def value(self) -> Any:
        if self.kind == 'integer':
            return _integer_value(self.text)
        elif self.kind == 'float':
            return _float_value(self.text)
        elif self.kind == 'boolean':
            return self.text == 'true'
        elif self.kind == 'string':
            return self.text[1:-1]
        elif self.kind == 'sequence':
            return []
        elif self.kind == 'dictionary':
            return {}
        elif self.kind == 'wildcard':
            return self.text
        return None

    def __repr__(self):
        return f"IdlLiteral({self.kind}, {self.text})"

    def __str__(self):
        return self.text

    def __eq__(self, other:"IdlLiteral"):
        if not isinstance(other, IdlLiteral): return False
        return self.kind == other.kind and self.text == other.text

    def __hash__(self) -> int:
        return hash((self.kind, self.text))
