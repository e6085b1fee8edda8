"""Command lookup builtins: type, which.

``type`` reports how each name would be resolved: alias, built-in,
function or program. ``which`` prints the path of each program.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def _result(stdout: str, stderr: str, exit_code: int) -> "ExecResult":
    """Create an ExecResult."""
    from ...types import ExecResult
    return ExecResult(stdout=stdout, stderr=stderr, exit_code=exit_code)


async def handle_type(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the type builtin.

    Usage: type name [name ...]
    """
    from . import BUILTINS
    from ..pipeline import resolve_program

    if not args:
        return _result("", "pjsh: type: usage: type name [name ...]\n", 2)

    stdout = ""
    stderr = ""
    exit_code = 0
    for name in args:
        if name in ctx.state.aliases:
            stdout += f"{name} is aliased to '{ctx.state.aliases[name]}'\n"
        elif name in BUILTINS:
            stdout += f"{name} is a shell built-in\n"
        elif ctx.state.scopes.lookup_function(name) is not None:
            stdout += f"{name} is a function\n"
        else:
            path = resolve_program(ctx, name)
            if path is None:
                stderr += f"pjsh: type: {name}: not found\n"
                exit_code = 1
            else:
                stdout += f"{name} is '{path}'\n"

    return _result(stdout, stderr, exit_code)


async def handle_which(
    ctx: "InterpreterContext", args: list[str]
) -> "ExecResult":
    """Execute the which builtin.

    Usage: which name [name ...]
    """
    from ..pipeline import resolve_program

    if not args:
        return _result("", "pjsh: which: usage: which name [name ...]\n", 2)

    stdout = ""
    stderr = ""
    exit_code = 0
    for name in args:
        path = resolve_program(ctx, name)
        if path is None:
            stderr += f"pjsh: which: no '{name}' in path\n"
            exit_code = 1
        else:
            stdout += path + "\n"

    return _result(stdout, stderr, exit_code)
