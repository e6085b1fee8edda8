"""pjsh - a shell language interpreter.

Example usage:
    from pjsh import Shell

    shell = Shell()
    result = shell.run("for i in 1..=3 { echo $i }")
    print(result.stdout)  # "1\\n2\\n3\\n"
"""

from .interpreter import ShellOptions
from .parser import LexError, ParseError, PjshSyntaxError, parse
from .shell import Shell
from .types import ExecResult

__version__ = "0.1.0"

__all__ = [
    "Shell",
    "ShellOptions",
    "ExecResult",
    "parse",
    "PjshSyntaxError",
    "LexError",
    "ParseError",
]
