"""Alias and unalias builtins.

Usage: alias
       alias name
       alias name value
       alias name = value
       unalias name ...

Aliases belong to the shell session, not to a scope. The value is split
on whitespace when the alias is used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


def _format_alias(name: str, value: str) -> str:
    return f'alias {name} "{value}"\n'


async def handle_alias(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the alias builtin."""
    from ...types import ExecResult

    aliases = ctx.state.aliases

    if not args:
        output = "".join(_format_alias(name, aliases[name]) for name in sorted(aliases))
        return ExecResult(stdout=output, stderr="", exit_code=0)

    name = args[0]
    if len(args) == 1:
        if name not in aliases:
            return ExecResult(stdout="", stderr=f"pjsh: alias: {name}: not found\n", exit_code=1)
        return ExecResult(stdout=_format_alias(name, aliases[name]), stderr="", exit_code=0)

    rest = args[1:]
    if rest[0] == "=":
        rest = rest[1:]
    if len(rest) != 1:
        return ExecResult(
            stdout="",
            stderr="pjsh: alias: usage: alias [name [=] value]\n",
            exit_code=2,
        )

    aliases[name] = rest[0]
    return ExecResult(stdout="", stderr="", exit_code=0)


async def handle_unalias(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the unalias builtin. Undefined names are ignored."""
    from ...types import ExecResult

    for name in args:
        ctx.state.aliases.pop(name, None)
    return ExecResult(stdout="", stderr="", exit_code=0)
