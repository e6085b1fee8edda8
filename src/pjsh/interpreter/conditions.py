"""Condition evaluation for ``[[ ... ]]`` segments.

Operators:
  -n WORD     True if WORD is not empty
  -z WORD     True if WORD is empty
  -d PATH     True if PATH is a directory        (also: is-dir)
  -f PATH     True if PATH is a regular file     (also: is-file)
  -e PATH     True if PATH exists                (also: is-path)
  A == B      True if the words are equal
  A != B      True if the words differ
  ! COND      Negates COND

Relative paths are resolved against the shell's working directory.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from ..ast.types import ConditionNode
from .expansion import expand_word_str

if TYPE_CHECKING:
    from .types import InterpreterContext


def _resolve_path(ctx: "InterpreterContext", path: str) -> str:
    return os.path.join(ctx.state.cwd, path)


async def evaluate_condition(ctx: "InterpreterContext", node: ConditionNode) -> bool:
    """Evaluate a condition segment to a boolean."""
    args = [await expand_word_str(ctx, arg) for arg in node.args]

    if node.op == "-n":
        result = args[0] != ""
    elif node.op == "-z":
        result = args[0] == ""
    elif node.op == "-d":
        result = bool(args[0]) and os.path.isdir(_resolve_path(ctx, args[0]))
    elif node.op == "-f":
        result = bool(args[0]) and os.path.isfile(_resolve_path(ctx, args[0]))
    elif node.op == "-e":
        result = bool(args[0]) and os.path.lexists(_resolve_path(ctx, args[0]))
    elif node.op == "==":
        result = args[0] == args[1]
    elif node.op == "!=":
        result = args[0] != args[1]
    else:
        raise ValueError(f"unknown condition operator: {node.op}")

    return not result if node.negated else result
