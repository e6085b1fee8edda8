"""Cd builtin implementation.

Usage: cd [dir]
       cd -

Change the current working directory to dir. If dir is not specified,
change to $HOME. If dir is -, change to $OLDPWD and print it.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from ..types import value_to_str

if TYPE_CHECKING:
    from ..types import InterpreterContext
    from ...types import ExecResult


async def handle_cd(ctx: "InterpreterContext", args: list[str]) -> "ExecResult":
    """Execute the cd builtin."""
    from ...types import ExecResult

    scopes = ctx.state.scopes

    # cd accepts at most one argument
    if len(args) > 1:
        return ExecResult(
            stdout="",
            stderr="pjsh: cd: too many arguments\n",
            exit_code=1,
        )

    # Determine target directory
    print_dir = False
    if not args:
        home = scopes.lookup("HOME")
        if not home:
            return ExecResult(stdout="", stderr="pjsh: cd: HOME not set\n", exit_code=1)
        target = value_to_str(home)
    elif args[0] == "-":
        # cd - goes to previous directory
        oldpwd = scopes.lookup("OLDPWD")
        if not oldpwd:
            return ExecResult(stdout="", stderr="pjsh: cd: OLDPWD not set\n", exit_code=1)
        target = value_to_str(oldpwd)
        print_dir = True
    else:
        target = args[0]

    new_dir = os.path.normpath(os.path.join(ctx.state.cwd, target))
    if not os.path.isdir(new_dir):
        if os.path.exists(new_dir):
            message = f"pjsh: cd: {target}: Not a directory\n"
        else:
            message = f"pjsh: cd: {target}: No such file or directory\n"
        return ExecResult(stdout="", stderr=message, exit_code=1)

    scopes.set("OLDPWD", ctx.state.cwd)
    ctx.state.cwd = new_dir
    scopes.set("PWD", new_dir)

    return ExecResult(
        stdout=new_dir + "\n" if print_dir else "",
        stderr="",
        exit_code=0,
    )
