"""Shell builtins.

Builtins run inside the interpreter and can modify its state. Each one
is ``async def handle_<name>(ctx, args) -> ExecResult``; the pipeline
orchestrator writes the result's output to the segment's descriptors.
"""

from .alias import handle_alias, handle_unalias
from .cd import handle_cd
from .export import handle_export
from .interpolate import handle_interpolate
from .lookup import handle_type, handle_which
from .misc import (
    handle_echo,
    handle_exit,
    handle_false,
    handle_pwd,
    handle_sleep,
    handle_true,
)
from .source import handle_source
from .unset import handle_unset

BUILTINS = {
    "alias": handle_alias,
    "unalias": handle_unalias,
    "cd": handle_cd,
    "echo": handle_echo,
    "exit": handle_exit,
    "export": handle_export,
    "false": handle_false,
    "true": handle_true,
    "pwd": handle_pwd,
    "source": handle_source,
    ".": handle_source,
    "sleep": handle_sleep,
    "type": handle_type,
    "unset": handle_unset,
    "which": handle_which,
    "interpolate": handle_interpolate,
}

__all__ = ["BUILTINS"]
