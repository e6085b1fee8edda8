"""Parser module for pjsh."""

from .cursor import Cursor, Position
from .errors import LexError, ParseError, PjshSyntaxError
from .lexer import (
    Lexer,
    Token,
    TokenType,
    tokenize,
    lex_interpolation,
    is_valid_name,
    RESERVED_WORDS,
)
from .parser import (
    Parser,
    parse,
    parse_range,
    parse_words,
    parse_interpolation,
)

__all__ = [
    # Cursor
    "Cursor",
    "Position",
    # Errors
    "PjshSyntaxError",
    "LexError",
    "ParseError",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    "lex_interpolation",
    "is_valid_name",
    "RESERVED_WORDS",
    # Parser
    "Parser",
    "parse",
    "parse_range",
    "parse_words",
    "parse_interpolation",
]
