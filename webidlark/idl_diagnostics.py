import re
import string
import logging
from bisect import bisect_left
from itertools import accumulate
from typing import Union
from lark import Lark, Token
from lark.exceptions import UnexpectedInput, UnexpectedCharacters, UnexpectedToken, UnexpectedEOF
from lark.lexer import PatternStr

from .idl_errors import (
    IdlParseError, IdlUnexpectedToken, IdlUnexpectedEnd,
    IdlTrailingInput, IdlInvalidLiteral
)

logger = logging.getLogger(__name__)

DEFINITION_KEYWORDS = frozenset([
    'CALLBACK',
    'DICTIONARY',
    'ENUM',
    'INTERFACE',
    'NAMESPACE',
    'PARTIAL',
    'TYPEDEF',
])

KIND_KEYWORDS = DEFINITION_KEYWORDS | frozenset(['MIXIN'])

NUMBER_RUN = re.compile(r'-?(?:[0-9A-Za-z_.]|(?<=[Ee])[+-])+')
NUMBER_CHARS = frozenset(string.ascii_letters + string.digits + '_.')
NUMBER_START = re.compile(r'-?\.?[0-9]')

class SourceText:
    """The text being parsed, with conversions from character offsets (what
    lark reports) to UTF-8 byte offsets (what nodes and errors carry)."""

    def __init__(self, text:str):
        self.text = text
        self._byte_offsets:Union[list[int], None] = None
        if not text.isascii():
            self._byte_offsets = list(accumulate(
                (len(c.encode('utf-8', 'surrogatepass')) for c in text), initial=0
            ))

    @property
    def byte_length(self) -> int:
        return self.byte_offset(len(self.text))

    def byte_offset(self, pos:int) -> int:
        if self._byte_offsets is None:
            return pos
        return self._byte_offsets[pos]

    def char_offset(self, offset:int) -> int:
        if self._byte_offsets is None:
            return offset
        return bisect_left(self._byte_offsets, offset)

    def location(self, pos:int) -> tuple[int, int]:
        line = self.text.count('\n', 0, pos) + 1
        column = pos - (self.text.rfind('\n', 0, pos) + 1) + 1
        return line, column

class _DefinitionScan:
    """Where the definition enclosing an error position starts, what it was
    declared as and how deep into its body the error is."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.first_token:Union[Token, None] = None
        self.header:list[Token] = []
        self.brace_depth = 0
        self.square_depth = 0

    def feed(self, token:Token):
        if self.first_token is None:
            self.first_token = token
        if token == '[':
            self.square_depth += 1
        elif token == ']':
            self.square_depth -= 1
        elif token == '{':
            self.brace_depth += 1
        elif token == '}':
            self.brace_depth -= 1
        elif token == ';' and not (self.brace_depth or self.square_depth):
            self.reset()
        elif not (self.brace_depth or self.square_depth):
            self.header.append(token)

    @property
    def started(self) -> bool:
        """A leading extended-attribute list already belongs to a definition."""
        return self.first_token == '[' or self.committed

    @property
    def committed(self) -> bool:
        if not self.header:
            return False
        if self.header[0].type in DEFINITION_KEYWORDS:
            return True
        return len(self.header) >= 2 and self.header[1].type == 'INCLUDES'

    def context(self) -> list[str]:
        if not self.committed:
            return []
        if self.header[0].type not in KIND_KEYWORDS:
            construct = f"includes statement `{self.header[0]}`"
        else:
            words = []
            name = None
            for token in self.header:
                if token.type in KIND_KEYWORDS:
                    words.append(str(token))
                else:
                    name = token
                    break
            kind = ' '.join(words)
            if kind == 'typedef' or name is None:
                construct = kind
            else:
                construct = f"{kind} `{name}`"
        context = [f"while parsing {construct}"]
        if self.brace_depth > 0 and self.header[0].type != 'ENUM':
            context.append(f"while parsing member of {construct}")
        return context

class ErrorReporter:
    """Turns lark exceptions into the ``IdlParseError`` family."""

    def __init__(self, lark:Lark, source:SourceText):
        self.lark = lark
        self.source = source
        self._integer = re.compile(lark.get_terminal('INTEGER').pattern.to_regexp())
        self._float = re.compile(lark.get_terminal('FLOAT').pattern.to_regexp())

    def describe_terminal(self, name:str) -> str:
        if name == '$END':
            return 'end of input'
        try:
            terminal = self.lark.get_terminal(name)
        except KeyError:
            return name.lower()
        if isinstance(terminal.pattern, PatternStr):
            return f"`{terminal.pattern.value}`"
        return name.lower()

    def _expected(self, error:UnexpectedInput) -> list[str]:
        # the lexer's own expected set omits keywords folded into IDENTIFIER
        interactive = getattr(error, 'interactive_parser', None)
        if interactive is None:
            return list(getattr(error, 'expected', None) or ())
        return sorted(interactive.accepts())

    def translate(self, error:UnexpectedInput) -> IdlParseError:
        text = self.source.text
        if isinstance(error, UnexpectedCharacters):
            pos = error.pos_in_stream
            found = text[pos]
            expected = self._expected(error)
        elif isinstance(error, UnexpectedToken):
            if error.token.type == '$END':
                pos, found = len(text), None
            else:
                pos, found = error.token.start_pos, str(error.token)
            expected = self._expected(error)
        elif isinstance(error, UnexpectedEOF):
            pos, found = len(text), None
            expected = self._expected(error)
        else:
            raise TypeError(f"Unsupported lark error {type(error)}")
        logger.debug("lark reported %s at character %d", type(error).__name__, pos)

        scan = self._scan_definition(pos)
        if not scan.started:
            first = scan.first_token
            if first is not None:
                return self.annotate(IdlTrailingInput(str(first), self.source.byte_offset(first.start_pos)))
            return self.annotate(IdlTrailingInput(found or '', self.source.byte_offset(pos)))

        context = scan.context()
        if found == '"':
            literal = text[pos:].split('\n', 1)[0]
            return self.annotate(IdlInvalidLiteral(
                literal, self.source.byte_offset(pos), 'unterminated string literal',
                context=context
            ))
        malformed = self._malformed_number(pos)
        if malformed is not None:
            start, literal = malformed
            return self.annotate(IdlInvalidLiteral(
                literal, self.source.byte_offset(start), context=context
            ))
        descriptions = [self.describe_terminal(name) for name in expected]
        if found is None:
            return self.annotate(IdlUnexpectedEnd(
                self.source.byte_length, descriptions, context=context
            ))
        return self.annotate(IdlUnexpectedToken(
            found, self.source.byte_offset(pos), descriptions, context=context
        ))

    def annotate(self, error:IdlParseError) -> IdlParseError:
        """Fills in line, column and, when missing, the enclosing context."""
        pos = self.source.char_offset(error.offset)
        error.line, error.column = self.source.location(pos)
        if not error.context:
            scan = self._scan_definition(pos)
            error.context = tuple(scan.context())
        return error

    def _scan_definition(self, pos:int) -> _DefinitionScan:
        scan = _DefinitionScan()
        try:
            for token in self.lark.lex(self.source.text):
                if token.start_pos >= pos:
                    break
                scan.feed(token)
        except UnexpectedInput:
            # the text up to the error lexed fine, the rest need not
            pass
        return scan

    def _malformed_number(self, pos:int) -> Union[tuple[int, str], None]:
        """A run of number-like characters around ``pos`` that starts like a
        number but is neither an INTEGER nor a FLOAT."""
        text = self.source.text
        start = pos
        while start > 0:
            char = text[start - 1]
            if char in NUMBER_CHARS or (char in '+-' and start > 1 and text[start - 2] in 'Ee'):
                start -= 1
            else:
                break
        if start > 0 and text[start - 1] == '-':
            start -= 1
        match = NUMBER_RUN.match(text, start)
        if match is None:
            return None
        literal = match.group(0)
        if not NUMBER_START.match(literal):
            return None
        if self._integer.fullmatch(literal) or self._float.fullmatch(literal):
            return None
        return start, literal
