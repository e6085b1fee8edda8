"""Unset builtin implementation.

Usage: unset [-v] name ...
       unset -f name ...

Remove variables (-v, the default) or functions (-f). A name is removed
from the nearest scope that defines it. Without -v or -f, a name that is
not a variable is removed as a function.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_unset(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the unset builtin."""
    from ...types import ExecResult

    scopes = ctx.state.scopes
    mode = None
    names = []
    for arg in args:
        if arg == "-v":
            mode = "variable"
        elif arg == "-f":
            mode = "function"
        elif arg.startswith("-") and len(arg) > 1:
            return ExecResult(
                stdout="",
                stderr=f"pjsh: unset: {arg}: invalid option\n",
                exit_code=2,
            )
        else:
            names.append(arg)

    for name in names:
        if mode == "function":
            scopes.remove_function(name)
        elif not scopes.unset(name) and mode is None:
            scopes.remove_function(name)

    return ExecResult(stdout="", stderr="", exit_code=0)
