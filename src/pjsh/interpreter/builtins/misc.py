"""Miscellaneous builtins: true, false, echo, exit, pwd, sleep.

These are simple builtins that don't need their own files.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult

_TIME_UNITS = {
    "seconds": 1,
    "minutes": 60,
    "hours": 3600,
}


def _result(stdout: str, stderr: str, exit_code: int) -> "ExecResult":
    """Create an ExecResult."""
    from ...types import ExecResult
    return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


async def handle_true(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the true builtin - always succeeds."""
    return _result("", "", 0)


async def handle_false(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the false builtin - always fails."""
    return _result("", "", 1)


async def handle_echo(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the echo builtin.

    Usage: echo [-n] [word ...]

    Words are printed separated by single spaces. ``-n`` suppresses the
    trailing newline.
    """
    newline = True
    if args and args[0] in ("-n", "--no-newline"):
        newline = False
        args = args[1:]
    return _result(" ".join(args) + ("\n" if newline else ""), "", 0)


async def handle_exit(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the exit builtin.

    Usage: exit [status]

    Without a status, exits with the last command's exit code.
    """
    from ..errors import ExitError

    if len(args) > 1:
        return _result("", "pjsh: exit: too many arguments\n", 1)
    if not args:
        raise ExitError(ctx.state.last_exit_code)
    try:
        code = int(args[0])
    except ValueError:
        return _result("", f"pjsh: exit: {args[0]}: numeric argument required\n", 2)
    raise ExitError(code & 0xFF)


async def handle_pwd(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the pwd builtin - print the working directory."""
    if args:
        return _result("", "pjsh: pwd: too many arguments\n", 1)
    return _result(ctx.state.cwd + "\n", "", 0)


async def handle_sleep(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the sleep builtin.

    Usage: sleep DURATION [seconds|minutes|hours]
    """
    if not args or len(args) > 2:
        return _result("", "pjsh: sleep: usage: sleep DURATION [seconds|minutes|hours]\n", 2)

    try:
        duration = float(args[0])
    except ValueError:
        return _result("", f"pjsh: sleep: invalid duration: {args[0]}\n", 1)
    if duration < 0:
        return _result("", f"pjsh: sleep: invalid duration: {args[0]}\n", 1)

    unit = args[1] if len(args) == 2 else "seconds"
    if unit not in _TIME_UNITS:
        return _result("", f"pjsh: sleep: invalid time unit: {unit}\n", 1)

    seconds = duration * _TIME_UNITS[unit]
    if seconds > 0:
        if ctx.sleep is not None:
            await ctx.sleep(seconds)
        else:
            await asyncio.sleep(seconds)
    return _result("", "", 0)
