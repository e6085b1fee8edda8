"""Interpreter module for pjsh."""

from .errors import ExitError, ExpansionError, ResolutionError
from .interpreter import Interpreter
from .types import (
    InterpreterContext,
    InterpreterState,
    Scope,
    ScopeArena,
    ShellOptions,
    StageIO,
    Value,
)

__all__ = [
    "Interpreter",
    "InterpreterContext",
    "InterpreterState",
    "Scope",
    "ScopeArena",
    "ShellOptions",
    "StageIO",
    "Value",
    "ExitError",
    "ExpansionError",
    "ResolutionError",
]
