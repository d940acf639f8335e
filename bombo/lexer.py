from collections import namedtuple
import enum
import logging
import re

from bombo.errors import LexError

log = logging.getLogger(__name__)
log.addHandler(logging.NullHandler())


class TokenKind(enum.Enum):
    NUMBER = 'Number'
    STRING = 'String'
    BOOLEAN = 'Boolean'
    WORD = 'Word'
    VARIABLE_OP = 'VariableOp'
    LIST_LITERAL = 'ListLiteral'


class Token(namedtuple('Token', 'text line column kind')):

    def __str__(self):
        s = '{}:{} {} {!r}'
        s = s.format(self.line, self.column, self.kind.value, self.text)
        return s


RE_INTEGER = re.compile(r'[+-]?\d+')
RE_FLOAT = re.compile(r'[+-]?(\d+\.\d*|\.\d+|\d+)([eE][+-]?\d+)?')

BOOLEANS = {'true', 'false'}
SIGILS = {'@', '!'}
COMMENT = '//'


def is_integer(text):
    return RE_INTEGER.fullmatch(text) is not None


def is_float(text):
    return RE_FLOAT.fullmatch(text) is not None


def classify(text):
    if is_integer(text) or is_float(text):
        return TokenKind.NUMBER
    if text in BOOLEANS:
        return TokenKind.BOOLEAN
    if len(text) > 1 and text[0] in SIGILS:
        return TokenKind.VARIABLE_OP
    return TokenKind.WORD


class Lexer:
    """Single left-to-right scan over source text"""

    def __init__(self, source, line=1, column=1):
        self.source = source
        self.pos = 0
        self.line = line
        self.column = column

    def peek(self, offset=0):
        index = self.pos + offset
        if index < len(self.source):
            return self.source[index]
        return None

    def advance(self):
        char = self.source[self.pos]
        self.pos += 1
        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def error(self, kind, message, line=None, column=None):
        line = self.line if line is None else line
        column = self.column if column is None else column
        return LexError(kind, message, line, column)

    def tokens(self):
        tokens = []
        while True:
            self.skip_whitespace()
            char = self.peek()
            if char is None:
                break
            if char == '/' and self.peek(1) == '/':
                self.skip_comment()
            elif char == '"':
                tokens.append(self.string())
            elif char == '[':
                tokens.append(self.list_literal())
            else:
                tokens.append(self.word())
        return tokens

    def skip_whitespace(self):
        while self.peek() is not None and self.peek().isspace():
            self.advance()

    def skip_comment(self):
        while self.peek() is not None and self.peek() != '\n':
            self.advance()

    def expect_delimiter(self, what, line, column):
        char = self.peek()
        if char is not None and not char.isspace():
            s = 'unexpected character {!r} after {} starting here'
            s = s.format(char, what)
            raise self.error('MalformedToken', s, line, column)

    def string(self):
        line, column = self.line, self.column
        self.advance()
        start = self.pos
        while self.peek() != '"':
            if self.peek() is None:
                raise self.error('UnterminatedString', 'string literal is never closed', line, column)
            self.advance()
        text = self.source[start:self.pos]
        self.advance()
        self.expect_delimiter('string literal', line, column)
        return Token(text, line, column, TokenKind.STRING)

    def list_literal(self):
        line, column = self.line, self.column
        start = self.pos
        depth = 0
        in_string = False
        while True:
            char = self.peek()
            if char is None:
                raise self.error('UnterminatedList', 'list literal is never closed', line, column)
            self.advance()
            if char == '"':
                in_string = not in_string
            elif in_string:
                continue
            elif char == '[':
                depth += 1
            elif char == ']':
                depth -= 1
                if depth == 0:
                    break
        text = self.source[start:self.pos]
        self.expect_delimiter('list literal', line, column)
        return Token(text, line, column, TokenKind.LIST_LITERAL)

    def word(self):
        line, column = self.line, self.column
        start = self.pos
        while self.peek() is not None and not self.peek().isspace():
            if self.peek() in '"[':
                s = 'unexpected {!r} inside word {!r}'
                s = s.format(self.peek(), self.source[start:self.pos])
                raise self.error('UnexpectedCharacter', s)
            self.advance()
        text = self.source[start:self.pos]
        return Token(text, line, column, classify(text))


def tokenize(source, line=1, column=1):
    """
    Split source text into classified tokens.

    :param source: Program source text
    :param line: Line number of the first character
    :param column: Column number of the first character
    :returns: List of tokens in source order
    """
    tokens = Lexer(source, line, column).tokens()
    log.debug('tokenized {} tokens'.format(len(tokens)))
    return tokens
