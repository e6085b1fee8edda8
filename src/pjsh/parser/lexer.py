"""Lexer for pjsh.

Turns source text into a flat sequence of tokens. Word-like tokens carry
their decoded payload: quoted strings are unescaped and dedented, backtick
strings are split into interpolation units, and ``$(...)``/``${...}``
carry the nested tokens they enclose.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Iterator, Optional

from .cursor import EOF_CHAR, Cursor, Position
from .errors import LexError, ParseError


class TokenType(Enum):
    # Words
    LITERAL = auto()
    QUOTED = auto()
    MULTILINE = auto()
    INTERPOLATED = auto()
    VARIABLE = auto()
    SPREAD = auto()
    VALUE_PIPELINE = auto()
    SUBSHELL = auto()
    KEYWORD = auto()

    # Operators
    ASSIGN = auto()
    ASSIGN_RESULT = auto()
    AND_IF = auto()
    OR_IF = auto()
    PIPE = auto()
    PIPE_START = auto()
    SEMI = auto()
    AMP = auto()
    REDIRECT = auto()

    # Punctuation
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    DLBRACKET = auto()
    DRBRACKET = auto()

    NEWLINE = auto()
    EOF = auto()


WORD_TOKENS = frozenset({
    TokenType.LITERAL,
    TokenType.QUOTED,
    TokenType.MULTILINE,
    TokenType.INTERPOLATED,
    TokenType.VARIABLE,
    TokenType.SPREAD,
    TokenType.VALUE_PIPELINE,
    TokenType.SUBSHELL,
    TokenType.KEYWORD,
})

RESERVED_WORDS = frozenset({
    "if", "else", "switch", "while", "until", "for", "in", "of", "fn",
})

# Characters that end an unquoted literal.
_LITERAL_STOP = set(" \t\r\n|&;<>(){}\"'`$]")

GLOB_CHARS = "*?["


@dataclass(frozen=True)
class Token:
    """A lexical token.

    ``value`` depends on the type: text for literals and quoted strings, a
    list of units for interpolations, a nested token list for subshells and
    value pipelines, and a ``(fd, mode, target)`` tuple for redirects.
    ``spaced`` records whether whitespace preceded the token, which decides
    whether adjacent word tokens join into one word.
    """

    type: TokenType
    text: str
    position: Position
    value: Any = None
    spaced: bool = True
    quote: str = ""

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.text!r})"


def is_valid_name(name: str) -> bool:
    if not name or not (name[0].isalpha() or name[0] == "_"):
        return False
    return all(c.isalnum() or c == "_" for c in name)


def dedent_multiline(raw: str, position: Position) -> str:
    """Strip the indentation of the first line from every line.

    The text must begin with a line break; trailing whitespace is dropped.
    """
    lines = raw.rstrip().split("\n")
    if lines[0].strip():
        raise LexError("multiline strings must start on a new line", position)
    lines = lines[1:]
    if not lines:
        return ""

    first = lines[0]
    indent = len(first) - len(first.lstrip())
    result = [first[indent:]]
    for line in lines[1:]:
        prefix = line[:indent]
        if prefix.strip():
            raise ParseError(position, f"an indentation of {indent}", prefix.strip()[0])
        result.append(line[indent:])
    return "\n".join(result)


class Lexer:
    """Produces tokens from source text.

    Iterating a lexer yields tokens until (and including) EOF. The lexer
    keeps no state that outlives one pass over the text.
    """

    def __init__(self, text: str):
        self.cursor = Cursor(text)
        self._spaced = True

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.EOF:
                return

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _error(self, reason: str, incomplete: bool = False) -> LexError:
        return LexError(reason, self.cursor.position, incomplete)

    def _make(
        self,
        type_: TokenType,
        start: int,
        position: Position,
        value: Any = None,
        quote: str = "",
    ) -> Token:
        token = Token(
            type=type_,
            text=self.cursor.text[start:self.cursor.offset],
            position=position,
            value=value,
            spaced=self._spaced,
            quote=quote,
        )
        self._spaced = False
        return token

    def _skip_blank(self) -> None:
        c = self.cursor
        while True:
            ch = c.peek()
            if ch in (" ", "\t", "\r") and not c.startswith("\r\n"):
                c.next()
                self._spaced = True
            elif c.startswith("\\\n"):
                c.skip(2)
                self._spaced = True
            elif ch == "#" and self._spaced:
                c.eat_while(lambda x: x != "\n")
            else:
                return

    # ------------------------------------------------------------------
    # Unquoted mode
    # ------------------------------------------------------------------

    def next_token(self) -> Token:
        self._skip_blank()
        c = self.cursor
        start = c.offset
        pos = c.position
        ch = c.peek()

        if ch == EOF_CHAR:
            return self._make(TokenType.EOF, start, pos)
        if ch == "\n" or c.startswith("\r\n"):
            c.skip(2 if ch == "\r" else 1)
            token = self._make(TokenType.NEWLINE, start, pos)
            self._spaced = True
            return token

        if ch == "|":
            c.next()
            if c.peek() == "|":
                c.next()
                return self._make(TokenType.OR_IF, start, pos)
            return self._make(TokenType.PIPE, start, pos)
        if ch == "&":
            c.next()
            if c.peek() == "&":
                c.next()
                return self._make(TokenType.AND_IF, start, pos)
            return self._make(TokenType.AMP, start, pos)
        if ch == ";":
            c.next()
            return self._make(TokenType.SEMI, start, pos)
        if ch in "<>" or (ch.isdigit() and self._at_fd_redirect()):
            return self._lex_redirect(start, pos)

        single = {
            "(": TokenType.LPAREN,
            ")": TokenType.RPAREN,
            "{": TokenType.LBRACE,
            "}": TokenType.RBRACE,
        }
        if ch in single:
            c.next()
            return self._make(single[ch], start, pos)
        if ch == "[":
            if c.startswith("[["):
                c.skip(2)
                return self._make(TokenType.DLBRACKET, start, pos)
            c.next()
            return self._make(TokenType.LBRACKET, start, pos)
        if ch == "]":
            if c.startswith("]]"):
                c.skip(2)
                return self._make(TokenType.DRBRACKET, start, pos)
            c.next()
            return self._make(TokenType.RBRACKET, start, pos)

        if ch in ("'", '"'):
            return self._lex_quoted(ch, start, pos)
        if ch == "`":
            return self._lex_backtick(start, pos)
        if ch == "$":
            c.next()
            type_, value = self._lex_dollar()
            return self._make(type_, start, pos, value)
        if c.startswith("->|"):
            c.skip(3)
            return self._make(TokenType.PIPE_START, start, pos)
        if c.startswith("...$") and self._spaced:
            c.skip(4)
            if not (c.peek().isalpha() or c.peek() == "_"):
                raise self._error("expected a variable name after '...$'")
            name = c.eat_while(lambda x: x.isalnum() or x == "_")
            return self._make(TokenType.SPREAD, start, pos, name)

        return self._lex_literal(start, pos)

    def _at_fd_redirect(self) -> bool:
        c = self.cursor
        if not self._spaced:
            return False
        i = 0
        while c.peek(i).isdigit():
            i += 1
        return c.peek(i) in ("<", ">")

    def _lex_redirect(self, start: int, pos: Position) -> Token:
        c = self.cursor
        digits = c.eat_while(str.isdigit)
        op = c.next()
        if op == "<":
            fd = int(digits) if digits else 0
            return self._make(TokenType.REDIRECT, start, pos, (fd, "in", None))

        fd = int(digits) if digits else 1
        if c.peek() == ">":
            c.next()
            return self._make(TokenType.REDIRECT, start, pos, (fd, "append", None))
        if c.peek() == "&":
            c.next()
            target = c.eat_while(str.isdigit)
            if not target:
                raise self._error("expected a file descriptor after '>&'")
            return self._make(TokenType.REDIRECT, start, pos, (fd, "dup", int(target)))
        return self._make(TokenType.REDIRECT, start, pos, (fd, "out", None))

    def _lex_literal(self, start: int, pos: Position) -> Token:
        """Lex unquoted text into (text, glob pattern or None)."""
        c = self.cursor
        text = ""
        pattern = ""
        is_glob = False
        while True:
            ch = c.peek()
            if ch == EOF_CHAR or ch in _LITERAL_STOP:
                break
            if ch == "\\":
                c.next()
                escaped = c.next()
                if escaped == EOF_CHAR:
                    raise self._error("unexpected end of input after '\\'", incomplete=True)
                if escaped == "\n":
                    continue
                text += escaped
                pattern += f"[{escaped}]" if escaped in GLOB_CHARS else escaped
                continue
            if ch == "[":
                close = c.text.find("]", c.offset + 1)
                blank = [c.text.find(b, c.offset + 1) for b in " \t\n"]
                blank = [b for b in blank if b != -1]
                if close != -1 and (not blank or close < min(blank)) and text:
                    klass = c.skip(close - c.offset + 1)
                    text += klass
                    pattern += klass
                    is_glob = True
                    continue
                c.next()
                text += ch
                pattern += "[[]"
                continue
            c.next()
            text += ch
            if ch in "*?":
                is_glob = True
            pattern += ch

        if not text:
            raise self._error(f"unexpected character {c.peek()!r}")
        if text == ":=":
            return self._make(TokenType.ASSIGN, start, pos)
        if text == "::=":
            return self._make(TokenType.ASSIGN_RESULT, start, pos)
        joins_next = c.peek() != EOF_CHAR and c.peek() in "\"'`$"
        if text in RESERVED_WORDS and self._spaced and not joins_next:
            return self._make(TokenType.KEYWORD, start, pos, text)
        return self._make(
            TokenType.LITERAL, start, pos, (text, pattern if is_glob else None)
        )

    # ------------------------------------------------------------------
    # Quoted forms
    # ------------------------------------------------------------------

    def _lex_quoted(self, delimiter: str, start: int, pos: Position) -> Token:
        c = self.cursor
        if c.startswith(delimiter * 3):
            c.skip(3)
            end = c.text.find(delimiter * 3, c.offset)
            if end == -1:
                raise self._error("unterminated multiline string", incomplete=True)
            raw = c.skip(end - c.offset)
            c.skip(3)
            value = dedent_multiline(raw, pos)
            return self._make(TokenType.MULTILINE, start, pos, value, quote=delimiter)

        c.next()
        value = ""
        while True:
            ch = c.next()
            if ch == EOF_CHAR:
                raise self._error("unterminated quoted string", incomplete=True)
            if ch == delimiter:
                break
            if ch == "\\" and c.peek() == delimiter:
                value += c.next()
                continue
            value += ch
        return self._make(TokenType.QUOTED, start, pos, value, quote=delimiter)

    def _lex_backtick(self, start: int, pos: Position) -> Token:
        c = self.cursor
        if c.startswith("```"):
            c.skip(3)
            end = c.text.find("```", c.offset)
            if end == -1:
                raise self._error("unterminated multiline interpolation", incomplete=True)
            raw = c.skip(end - c.offset)
            c.skip(3)
            units = lex_interpolation(dedent_multiline(raw, pos))
            return self._make(TokenType.INTERPOLATED, start, pos, units, quote="```")

        c.next()
        units = self._lex_interpolation_units("`")
        return self._make(TokenType.INTERPOLATED, start, pos, units, quote="`")

    def _lex_interpolation_units(self, delimiter: Optional[str]) -> list:
        """Split interpolated text into units.

        A unit is either a plain string or a VARIABLE, VALUE_PIPELINE or
        SUBSHELL token.
        """
        c = self.cursor
        units: list = []
        text = ""
        while True:
            ch = c.peek()
            if ch == EOF_CHAR:
                if delimiter is not None:
                    raise self._error("unterminated interpolation", incomplete=True)
                break
            if ch == delimiter:
                c.next()
                break
            if ch == "\\":
                c.next()
                text += self._lex_escape()
                continue
            if ch == "$":
                if text:
                    units.append(text)
                    text = ""
                unit_start = c.offset
                unit_pos = c.position
                c.next()
                type_, value = self._lex_dollar()
                units.append(Token(
                    type=type_,
                    text=c.text[unit_start:c.offset],
                    position=unit_pos,
                    value=value,
                ))
                continue
            text += c.next()
        if text:
            units.append(text)
        return units

    def _lex_escape(self) -> str:
        c = self.cursor
        ch = c.next()
        if ch == EOF_CHAR:
            raise self._error("unexpected end of input after '\\'", incomplete=True)
        if ch == "e":
            return "\x1b"
        if ch == "u":
            if c.next() != "{":
                raise self._error("expected '{' after '\\u'")
            digits = c.eat_while(lambda x: x != "}" and x != EOF_CHAR)
            if c.next() != "}":
                raise self._error("unterminated unicode escape", incomplete=True)
            try:
                return chr(int(digits, 16))
            except ValueError:
                raise self._error(f"invalid unicode escape '\\u{{{digits}}}'") from None
        return ch

    # ------------------------------------------------------------------
    # Dollar expansions
    # ------------------------------------------------------------------

    def _lex_dollar(self) -> tuple[TokenType, Any]:
        """Lex what follows a ``$`` that has already been consumed."""
        c = self.cursor
        ch = c.peek()
        if ch == "(":
            c.next()
            return TokenType.SUBSHELL, self._lex_nested(TokenType.LPAREN, TokenType.RPAREN)
        if ch == "{":
            c.next()
            return TokenType.VALUE_PIPELINE, self._lex_nested(
                TokenType.LBRACE, TokenType.RBRACE
            )
        if ch in ("?", "$"):
            c.next()
            return TokenType.VARIABLE, ch
        if ch.isdigit():
            return TokenType.VARIABLE, c.eat_while(str.isdigit)
        if ch.isalpha() or ch == "_":
            return TokenType.VARIABLE, c.eat_while(lambda x: x.isalnum() or x == "_")
        if ch == EOF_CHAR:
            raise self._error("unexpected end of input after '$'", incomplete=True)
        raise self._error(f"unexpected character {ch!r} after '$'")

    def _lex_nested(self, open_type: TokenType, close_type: TokenType) -> list[Token]:
        """Collect tokens up to the matching close token (excluded)."""
        saved_spaced = self._spaced
        self._spaced = True
        tokens: list[Token] = []
        depth = 0
        while True:
            token = self.next_token()
            if token.type is TokenType.EOF:
                raise self._error("unexpected end of input", incomplete=True)
            if token.type is open_type:
                depth += 1
            elif token.type is close_type:
                if depth == 0:
                    break
                depth -= 1
            tokens.append(token)
        tokens.append(Token(TokenType.EOF, "", self.cursor.position))
        self._spaced = saved_spaced
        return tokens


def lex_interpolation(text: str) -> list:
    """Split text into interpolation units, as if it were in backticks."""
    return Lexer(text)._lex_interpolation_units(None)


def tokenize(text: str) -> list[Token]:
    """Tokenize source text. The result always ends with an EOF token."""
    return list(Lexer(text))
