"""
Lexer for the Lox language
Converts source text into a lazy stream of tokens
"""

import logging
from typing import Iterator, List
from tokens import Token, TokenType, KEYWORDS
from errors import LexError, StaticErrors
from source_map import get_source_map, Span

logger = logging.getLogger(__name__)

_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    '0': '\0',
    '\\': '\\',
    '"': '"',
    "'": "'",
}

def _is_digit(char: str) -> bool:
    return '0' <= char <= '9'

class Lexer:
    def __init__(self, source: str, file_path: str = "<string>", collect_all: bool = False):
        self.source = source
        self.file_path = file_path
        self.collect_all = collect_all
        self.errors: List[LexError] = []
        self.current = 0
        self.line = 1
        self.column = 1
        self.start = 0  # Start of current token
        self.start_line = 1
        self.start_column = 1

        # Register file with source map
        self.file_id = get_source_map().add_file(file_path, source)

    def scan(self) -> Iterator[Token]:
        """Yield tokens one at a time, ending with EOF.

        In collect-all mode a bad token is recorded in ``self.errors`` and
        scanning resumes after it; otherwise the first LexError is raised.
        """
        while not self.is_at_end():
            self.start = self.current
            self.start_line = self.line
            self.start_column = self.column
            try:
                token = self.scan_token()
            except LexError as error:
                if not self.collect_all:
                    raise
                self.errors.append(error)
                continue
            if token is not None:
                yield token

        self.start = self.current
        self.start_line = self.line
        self.start_column = self.column
        yield self.make_token(TokenType.EOF)

    def tokenize(self) -> List[Token]:
        """Scan the whole source, raising StaticErrors if anything was rejected"""
        try:
            tokens = list(self.scan())
        except LexError as error:
            self.errors.append(error)
            tokens = []
        if self.errors:
            logger.debug("lexing %s failed with %d error(s)", self.file_path, len(self.errors))
            raise StaticErrors(self.errors)
        return tokens

    def is_at_end(self) -> bool:
        return self.current >= len(self.source)

    def scan_token(self):
        """Scan one lexeme; returns None for whitespace and comments"""
        c = self.advance()

        # Single-character tokens
        if c == '(':
            return self.make_token(TokenType.LEFT_PAREN)
        elif c == ')':
            return self.make_token(TokenType.RIGHT_PAREN)
        elif c == '{':
            return self.make_token(TokenType.LEFT_BRACE)
        elif c == '}':
            return self.make_token(TokenType.RIGHT_BRACE)
        elif c == '[':
            return self.make_token(TokenType.LEFT_BRACKET)
        elif c == ']':
            return self.make_token(TokenType.RIGHT_BRACKET)
        elif c == ',':
            return self.make_token(TokenType.COMMA)
        elif c == '.':
            return self.make_token(TokenType.DOT)
        elif c == ';':
            return self.make_token(TokenType.SEMICOLON)
        elif c == ':':
            return self.make_token(TokenType.COLON)
        elif c == '?':
            return self.make_token(TokenType.QUESTION)
        elif c == '%':
            return self.make_token(TokenType.PERCENT)
        elif c == '+':
            return self.make_token(TokenType.PLUS)
        elif c == '-':
            return self.make_token(TokenType.MINUS)

        # Multi-character operators
        elif c == '*':
            if self.match('*'):
                return self.make_token(TokenType.POWER)
            return self.make_token(TokenType.STAR)
        elif c == '/':
            if self.match('/'):
                while self.peek() != '\n' and not self.is_at_end():
                    self.advance()
                return None
            if self.match('*'):
                self.block_comment()
                return None
            return self.make_token(TokenType.SLASH)
        elif c == '=':
            if self.match('='):
                return self.make_token(TokenType.EQUAL)
            if self.match('>'):
                return self.make_token(TokenType.ARROW)
            return self.make_token(TokenType.ASSIGN)
        elif c == '!':
            if self.match('='):
                return self.make_token(TokenType.NOT_EQUAL)
            return self.make_token(TokenType.BANG)
        elif c == '<':
            if self.match('='):
                return self.make_token(TokenType.LESS_EQUAL)
            return self.make_token(TokenType.LESS)
        elif c == '>':
            if self.match('='):
                return self.make_token(TokenType.GREATER_EQUAL)
            return self.make_token(TokenType.GREATER)
        elif c == '&':
            if self.match('&'):
                return self.make_token(TokenType.AND)
            raise LexError.unexpected_character(self.create_span(), c)
        elif c == '|':
            if self.match('|'):
                return self.make_token(TokenType.OR)
            raise LexError.unexpected_character(self.create_span(), c)

        # Whitespace
        elif c in (' ', '\r', '\t', '\n'):
            return None

        # String literals
        elif c == '"' or c == "'":
            return self.string(c)

        # Numeric literals
        elif _is_digit(c):
            return self.number()

        # Identifiers and keywords
        elif c.isalpha() or c == '_':
            return self.identifier()

        raise LexError.unexpected_character(self.create_span(), c)

    def advance(self) -> str:
        """Consume and return the current character"""
        if self.is_at_end():
            return '\0'

        char = self.source[self.current]
        self.current += 1
        if char == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def match(self, expected: str) -> bool:
        """Consume the current character if it is the expected one"""
        if self.is_at_end() or self.source[self.current] != expected:
            return False
        self.advance()
        return True

    def peek(self) -> str:
        if self.is_at_end():
            return '\0'
        return self.source[self.current]

    def peek_next(self) -> str:
        if self.current + 1 >= len(self.source):
            return '\0'
        return self.source[self.current + 1]

    def string(self, quote_char: str) -> Token:
        """Handle string literals with escape sequences"""
        chars = []
        while self.peek() != quote_char and not self.is_at_end():
            char = self.advance()
            if char != '\\':
                chars.append(char)
                continue
            if self.is_at_end():
                break
            escaped = self.advance()
            # Unrecognized escapes keep the backslash
            chars.append(_ESCAPES.get(escaped, '\\' + escaped))

        if self.is_at_end():
            raise LexError.unterminated_string(self.create_span())

        self.advance()  # closing quote
        return self.make_token(TokenType.STRING, ''.join(chars))

    def number(self) -> Token:
        """Handle integer and decimal literals; every number is a float"""
        while _is_digit(self.peek()):
            self.advance()

        if self.peek() == '.' and _is_digit(self.peek_next()):
            self.advance()
            while _is_digit(self.peek()):
                self.advance()

        return self.make_token(TokenType.NUMBER, float(self.source[self.start:self.current]))

    def identifier(self) -> Token:
        while self.peek().isalnum() or self.peek() == '_':
            self.advance()

        text = self.source[self.start:self.current]
        token_type = KEYWORDS.get(text, TokenType.IDENTIFIER)

        if token_type == TokenType.TRUE:
            return self.make_token(token_type, True)
        if token_type == TokenType.FALSE:
            return self.make_token(token_type, False)
        return self.make_token(token_type)

    def block_comment(self):
        """Skip a /* ... */ comment; ends at the first '*/' (no nesting)"""
        while not self.is_at_end():
            if self.peek() == '*' and self.peek_next() == '/':
                self.advance()
                self.advance()
                return
            self.advance()

        raise LexError.unterminated_comment(Span(self.file_id, self.start, self.start + 2))

    def make_token(self, token_type: TokenType, literal=None) -> Token:
        text = self.source[self.start:self.current]
        return Token(token_type, text, literal, self.start_line, self.start_column, self.create_span())

    def create_span(self) -> Span:
        return Span(self.file_id, self.start, self.current)
