"""Command-line entry point for pjsh.

Usage:
    pjsh [-c COMMAND] [--no-init] [-x] [--log-level LEVEL] [script] [args ...]

Runs COMMAND, a script file, a program piped on stdin, or an interactive
session, in that order of preference.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import Optional

from . import __version__
from .interpreter import ShellOptions
from .shell import Shell

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "PJSH_LOG_LEVEL"


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="pjsh", description="A shell language interpreter")
    p.add_argument("-c", "--command", type=str, default=None, help="Program text to execute")
    p.add_argument("--no-init", action="store_true", help="Do not run the init scripts in ~/.pjsh")
    p.add_argument("-x", "--xtrace", action="store_true", help="Print each command to stderr before running it")
    p.add_argument(
        "--log-level",
        type=str,
        default=None,
        help=f"Logging level (default: ${LOG_LEVEL_ENV} or WARNING)",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("script", nargs="?", default=None, help="Script file to execute")
    p.add_argument("args", nargs=argparse.REMAINDER, help="Arguments bound to $1, $2, ...")
    return p


def _configure_logging(level_name: Optional[str]) -> None:
    level_name = (level_name or os.environ.get(LOG_LEVEL_ENV) or "WARNING").upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(name)s - %(levelname)s - %(message)s",
    )


async def _interactive(shell: Shell) -> int:
    """Read, execute and repeat until end of input or ``exit``."""
    while not shell.exited:
        try:
            source = input(await shell.prompt("PS1"))
            while not Shell.is_complete(source):
                source += "\n" + input(await shell.prompt("PS2"))
        except EOFError:
            print(file=sys.stderr)
            break
        except KeyboardInterrupt:
            print(file=sys.stderr)
            continue

        if source.strip():
            await shell.exec(source)
    return shell.exit_code


def _read_script(path: str) -> Optional[str]:
    try:
        with open(path, encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        print(f"pjsh: {path}: {e.strerror}", file=sys.stderr)
        return None


def main(argv: Optional[list[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    _configure_logging(args.log_level)

    interactive = args.command is None and args.script is None and sys.stdin.isatty()
    shell = Shell(
        options=ShellOptions(
            interactive=interactive,
            xtrace=args.xtrace,
            login_init=not args.no_init,
        ),
        capture=False,
    )

    if args.command is not None:
        positional = ([args.script] if args.script else []) + args.args
        result = asyncio.run(shell.exec(args.command, args=positional))
    elif args.script is not None:
        source = _read_script(args.script)
        if source is None:
            return 127
        result = asyncio.run(shell.exec(source, args=args.args))
    elif not interactive:
        result = asyncio.run(shell.exec(sys.stdin.read()))
    else:
        logger.debug("starting interactive session")
        return asyncio.run(_interactive(shell)) & 0xFF

    return result.exit_code & 0xFF


if __name__ == "__main__":
    sys.exit(main())
