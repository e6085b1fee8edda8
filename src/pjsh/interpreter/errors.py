"""Runtime errors raised during execution.

Syntax errors live in ``pjsh.parser.errors``.
"""

from __future__ import annotations


class ExpansionError(Exception):
    """A word could not be expanded.

    Raised for filter type mismatches, bad filter arguments and bad list
    indexes. Aborts the statement being expanded.
    """


class ResolutionError(Exception):
    """A command name did not resolve to a builtin, function or program."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"command not found: {name}")


class ExitError(Exception):
    """Raised by the exit builtin.

    Propagates to the nearest shell or subshell boundary, which exits with
    ``exit_code``.
    """

    def __init__(self, exit_code: int):
        self.exit_code = exit_code
        super().__init__(f"exit {exit_code}")
