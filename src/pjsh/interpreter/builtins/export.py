"""Export builtin implementation.

Usage: export [name[=value] ...]

Mark variables for export to processes spawned from the current scope.
The mark is recorded in the current scope only, so it ends with that
scope. If no arguments are given, list all exported variables.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ...parser import is_valid_name

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_export(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the export builtin."""
    from ...types import ExecResult

    scopes = ctx.state.scopes

    # No arguments: list all exported variables
    if not args:
        env = scopes.exported_env()
        lines = [f"{name}={env[name]}\n" for name in sorted(env)]
        return ExecResult(stdout="".join(lines), stderr="", exit_code=0)

    stderr = ""
    exit_code = 0
    for arg in args:
        if "=" in arg:
            name, value = arg.split("=", 1)
        else:
            name, value = arg, None

        if not is_valid_name(name):
            stderr += f"pjsh: export: `{arg}': not a valid identifier\n"
            exit_code = 1
            continue

        if value is not None:
            scopes.set(name, value)
        elif scopes.lookup(name) is None:
            stderr += f"pjsh: export: {name}: no such variable\n"
            exit_code = 1
            continue
        scopes.export(name)

    return ExecResult(stdout="", stderr=stderr, exit_code=exit_code)
