"""Interpolate builtin implementation.

Usage: interpolate TEXT ...

Interpolate each argument as if it were the body of a backtick string
and print the result on its own line.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_interpolate(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the interpolate builtin."""
    from ...parser import PjshSyntaxError, parse_interpolation
    from ...types import ExecResult
    from ..errors import ExpansionError
    from ..expansion import interpolate

    if not args:
        return ExecResult(stdout="", stderr="pjsh: interpolate: text argument required\n", exit_code=2)

    stdout = ""
    stderr = ""
    exit_code = 0
    for text in args:
        try:
            stdout += await interpolate(ctx, parse_interpolation(text)) + "\n"
        except (PjshSyntaxError, ExpansionError) as e:
            stderr += f"pjsh: interpolate: {e}\n"
            exit_code = 1

    return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)
