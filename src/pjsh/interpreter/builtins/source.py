"""Source builtin implementation.

Usage: source FILE [args ...]
       . FILE [args ...]

Execute a file's program in the current scope. Extra arguments are bound
as $1, $2, ... in the current scope.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult

logger = logging.getLogger(__name__)


async def handle_source(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the source builtin."""
    from ...parser import PjshSyntaxError, parse
    from ...types import ExecResult

    if not args:
        return ExecResult(stdout="", stderr="pjsh: source: filename argument required\n", exit_code=2)

    path = os.path.join(ctx.state.cwd, args[0])
    if not os.path.isfile(path):
        return ExecResult(stdout="", stderr=f"pjsh: source: {args[0]}: No such file\n", exit_code=1)

    try:
        with open(path, encoding="utf-8") as f:
            source = f.read()
    except OSError as e:
        return ExecResult(stdout="", stderr=f"pjsh: source: {args[0]}: {e.strerror}\n", exit_code=1)

    try:
        program = parse(source)
    except PjshSyntaxError as e:
        return ExecResult(stdout="", stderr=f"pjsh: {args[0]}: {e}\n", exit_code=2)

    for i, arg in enumerate(args[1:], start=1):
        ctx.state.scopes.set_local(str(i), arg)

    logger.debug("source %s", path)
    exit_code = await ctx.execute_program(program)
    return ExecResult(stdout="", stderr="", exit_code=exit_code)
