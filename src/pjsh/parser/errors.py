"""Syntax errors raised while lexing and parsing."""

from __future__ import annotations

from typing import Optional

from .cursor import Position


class PjshSyntaxError(Exception):
    """Base class for errors that abort parsing of an input unit.

    ``incomplete`` is set when the error was caused by reaching the end of
    input, so an interactive reader can ask for a continuation line.
    """

    def __init__(self, message: str, position: Position, incomplete: bool = False):
        self.message = message
        self.position = position
        self.incomplete = incomplete
        super().__init__(f"{message} ({position})")


class LexError(PjshSyntaxError):
    """Malformed token or unterminated quote."""


class ParseError(PjshSyntaxError):
    """Unexpected token."""

    def __init__(
        self,
        position: Position,
        expected: str,
        found: Optional[str],
        incomplete: bool = False,
    ):
        self.expected = expected
        self.found = found
        if found is None:
            message = f"expected {expected}, found end of input"
        else:
            message = f"expected {expected}, found {found!r}"
        super().__init__(message, position, incomplete)
