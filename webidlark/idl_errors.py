from typing import Iterable

class IdlParseError(Exception):
    """Base class of every error ``parse`` raises.

    ``offset`` is a UTF-8 byte offset into the source; ``line`` and
    ``column`` are 1-based. ``expected`` lists human readable descriptions
    of the tokens that would have been accepted, and ``context`` the chain
    of enclosing constructs, outermost first.
    """

    def __init__(
        self, message:str, offset:int, line:int=None, column:int=None,
        expected:Iterable[str]=(), context:Iterable[str]=()
    ):
        Exception.__init__(self, message)
        self.message = message
        self.offset = offset
        self.line = line
        self.column = column
        self.expected:tuple[str, ...] = tuple(sorted(set(expected)))
        self.context:tuple[str, ...] = tuple(context)

    @property
    def kind(self) -> str:
        return type(self).__name__[len('Idl'):]

    def __str__(self):
        if self.line is not None:
            location = f"line {self.line}, column {self.column} (offset {self.offset})"
        else:
            location = f"offset {self.offset}"
        text = f"{self.message} at {location}"
        for context in self.context:
            text += f"\n  {context}"
        return text

class IdlUnexpectedToken(IdlParseError):

    def __init__(self, found:str, offset:int, expected:Iterable[str]=(), message:str=None, **kwargs):
        expected = tuple(sorted(set(expected)))
        if message is None:
            message = f"Unexpected {found!r}"
            if expected:
                message += f", expected one of: {', '.join(expected)}"
        IdlParseError.__init__(self, message, offset, expected=expected, **kwargs)
        self.found = found

class IdlUnexpectedEnd(IdlParseError):

    def __init__(self, offset:int, expected:Iterable[str]=(), **kwargs):
        expected = tuple(sorted(set(expected)))
        message = 'Unexpected end of input'
        if expected:
            message += f", expected one of: {', '.join(expected)}"
        IdlParseError.__init__(self, message, offset, expected=expected, **kwargs)

class IdlTrailingInput(IdlParseError):

    def __init__(self, found:str, offset:int, **kwargs):
        IdlParseError.__init__(
            self, f"Unexpected {found!r} after the last complete definition",
            offset, expected=('definition', 'end of input'), **kwargs
        )
        self.found = found

class IdlInvalidLiteral(IdlParseError):

    def __init__(self, literal:str, offset:int, reason:str='malformed literal', **kwargs):
        IdlParseError.__init__(self, f"Invalid literal {literal!r}: {reason}", offset, **kwargs)
        self.literal = literal

class IdlNestingTooDeep(IdlParseError):

    def __init__(self, limit:int, offset:int, **kwargs):
        IdlParseError.__init__(
            self, f"Nesting too deep: more than {limit} nested types, "
            "argument lists or extended attribute lists", offset, **kwargs
        )
        self.limit = limit
