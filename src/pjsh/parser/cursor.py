"""Cursor over source text with line/column tracking."""

from __future__ import annotations

from dataclasses import dataclass

EOF_CHAR = ""


@dataclass(frozen=True)
class Position:
    """A location in source text (1-based line and column)."""

    offset: int = 0
    line: int = 1
    column: int = 1

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


class Cursor:
    """Yields code points from a source string, tracking position.

    The cursor is cheap to copy, so lookahead that may need to be undone
    is done on a clone.
    """

    def __init__(self, text: str):
        self.text = text
        self.offset = 0
        self.line = 1
        self.column = 1

    @property
    def position(self) -> Position:
        return Position(self.offset, self.line, self.column)

    def at_end(self) -> bool:
        return self.offset >= len(self.text)

    def peek(self, n: int = 0) -> str:
        """Return the code point n places ahead, or EOF_CHAR."""
        index = self.offset + n
        if index < len(self.text):
            return self.text[index]
        return EOF_CHAR

    def peek_str(self, n: int) -> str:
        return self.text[self.offset:self.offset + n]

    def startswith(self, prefix: str) -> bool:
        return self.text.startswith(prefix, self.offset)

    def next(self) -> str:
        """Consume and return one code point."""
        if self.at_end():
            return EOF_CHAR
        ch = self.text[self.offset]
        self.offset += 1
        if ch == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def skip(self, n: int) -> str:
        """Consume n code points and return them."""
        return "".join(self.next() for _ in range(n))

    def eat_while(self, predicate) -> str:
        start = self.offset
        while not self.at_end() and predicate(self.text[self.offset]):
            self.next()
        return self.text[start:self.offset]

    def clone(self) -> Cursor:
        other = Cursor(self.text)
        other.offset = self.offset
        other.line = self.line
        other.column = self.column
        return other
