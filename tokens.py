"""
Token definitions for the Lox language
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional
from source_map import Span

class TokenCategory(Enum):
    """Coarse token classes"""
    LITERAL = "literal"
    IDENTIFIER = "identifier"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    PUNCTUATION = "punctuation"
    END = "end-of-input"

class TokenType(Enum):
    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENTIFIER = auto()

    # Keywords
    VAR = auto()
    CONST = auto()
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    DO = auto()
    FOR = auto()
    BREAK = auto()
    CONTINUE = auto()
    FUN = auto()
    RETURN = auto()
    CLASS = auto()
    THIS = auto()
    SUPER = auto()
    TRY = auto()
    CATCH = auto()
    FINALLY = auto()
    THROW = auto()
    PRINT = auto()
    DUMP = auto()
    TRUE = auto()
    FALSE = auto()
    NIL = auto()
    AND = auto()
    OR = auto()

    # Operators
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    SLASH = auto()          # /
    POWER = auto()          # **
    PERCENT = auto()        # %
    BANG = auto()           # !
    ASSIGN = auto()         # =
    EQUAL = auto()          # ==
    NOT_EQUAL = auto()      # !=
    LESS = auto()           # <
    LESS_EQUAL = auto()     # <=
    GREATER = auto()        # >
    GREATER_EQUAL = auto()  # >=
    ARROW = auto()          # =>
    QUESTION = auto()       # ?

    # Punctuation
    LEFT_PAREN = auto()     # (
    RIGHT_PAREN = auto()    # )
    LEFT_BRACE = auto()     # {
    RIGHT_BRACE = auto()    # }
    LEFT_BRACKET = auto()   # [
    RIGHT_BRACKET = auto()  # ]
    COMMA = auto()          # ,
    SEMICOLON = auto()      # ;
    DOT = auto()            # .
    COLON = auto()          # :

    EOF = auto()

@dataclass(frozen=True)
class Token:
    type: TokenType
    lexeme: str
    literal: Any = None
    line: int = 1
    column: int = 1
    span: Optional[Span] = None

    @property
    def category(self) -> TokenCategory:
        return category_of(self.type)

    def __repr__(self):
        if self.literal is not None:
            return f"Token({self.type.name}, '{self.lexeme}', {self.literal!r})"
        return f"Token({self.type.name}, '{self.lexeme}')"

# Keywords mapping
KEYWORDS = {
    'var': TokenType.VAR,
    'const': TokenType.CONST,
    'if': TokenType.IF,
    'else': TokenType.ELSE,
    'while': TokenType.WHILE,
    'do': TokenType.DO,
    'for': TokenType.FOR,
    'break': TokenType.BREAK,
    'continue': TokenType.CONTINUE,
    'fun': TokenType.FUN,
    'return': TokenType.RETURN,
    'class': TokenType.CLASS,
    'this': TokenType.THIS,
    'super': TokenType.SUPER,
    'try': TokenType.TRY,
    'catch': TokenType.CATCH,
    'finally': TokenType.FINALLY,
    'throw': TokenType.THROW,
    'print': TokenType.PRINT,
    'dump': TokenType.DUMP,
    'true': TokenType.TRUE,
    'false': TokenType.FALSE,
    'nil': TokenType.NIL,
    'and': TokenType.AND,
    'or': TokenType.OR,
}

_PUNCTUATION = {
    TokenType.LEFT_PAREN, TokenType.RIGHT_PAREN,
    TokenType.LEFT_BRACE, TokenType.RIGHT_BRACE,
    TokenType.LEFT_BRACKET, TokenType.RIGHT_BRACKET,
    TokenType.COMMA, TokenType.SEMICOLON, TokenType.DOT, TokenType.COLON,
}

_KEYWORD_TYPES = frozenset(KEYWORDS.values())

def category_of(token_type: TokenType) -> TokenCategory:
    if token_type in (TokenType.NUMBER, TokenType.STRING):
        return TokenCategory.LITERAL
    if token_type == TokenType.IDENTIFIER:
        return TokenCategory.IDENTIFIER
    if token_type in _KEYWORD_TYPES:
        return TokenCategory.KEYWORD
    if token_type in _PUNCTUATION:
        return TokenCategory.PUNCTUATION
    if token_type == TokenType.EOF:
        return TokenCategory.END
    return TokenCategory.OPERATOR
