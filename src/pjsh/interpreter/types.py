"""Interpreter types for pjsh."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, Union

if TYPE_CHECKING:
    from ..ast.types import FunctionDefNode, Node, PipelineNode, ProgramNode

Value = Union[str, list[str]]
"""A Word-value (single string) or a List-value (ordered strings)."""

ENVIRONMENT = "environment"
SHELL_DEFAULT = "shell-default"
GLOBAL = "global"
FUNCTION = "function"
SUBSHELL = "subshell"
ITERATION = "iteration"

SHELL_DEFAULTS = {
    "PS1": "\\$ ",
    "PS2": "> ",
    "PS4": "+ ",
}


def value_to_str(value: Value) -> str:
    """Render a value as one string; lists join with a single space."""
    if isinstance(value, list):
        return " ".join(value)
    return value


@dataclass
class Scope:
    """One binding environment in the scope arena."""

    kind: str
    """environment, shell-default, global, function, subshell or iteration."""

    parent: Optional[int] = None
    """Arena index of the enclosing scope."""

    vars: dict[str, Value] = field(default_factory=dict)

    exported: set[str] = field(default_factory=set)
    """Names exported from this scope to spawned processes."""

    functions: dict[str, "FunctionDefNode"] = field(default_factory=dict)


class ScopeArena:
    """Nested scopes stored in a list and linked by parent index.

    The outermost scope is the process environment, followed by the
    shell defaults and the global scope. Function calls, subshells and
    loop iterations push child scopes that are popped when that unit of
    execution ends.

    Lookup walks outward from the current scope. Assignment rebinds the
    nearest scope that already defines the name, or binds in the current
    scope. ``export`` only records the name in the current scope's export
    set; it never writes into an ancestor.
    """

    def __init__(self, environ: Optional[dict[str, str]] = None):
        env_scope = Scope(kind=ENVIRONMENT, vars=dict(environ or {}))
        env_scope.exported.update(env_scope.vars)
        self.scopes: list[Scope] = [
            env_scope,
            Scope(kind=SHELL_DEFAULT, parent=0, vars=dict(SHELL_DEFAULTS)),
            Scope(kind=GLOBAL, parent=1),
        ]
        self.current = 2

    @property
    def global_index(self) -> int:
        return 2

    def _chain(self):
        """Yield (index, scope) from the current scope outward."""
        index: Optional[int] = self.current
        while index is not None:
            scope = self.scopes[index]
            yield index, scope
            index = scope.parent

    def push_scope(self, kind: str) -> int:
        """Create a child of the current scope and make it current."""
        self.scopes.append(Scope(kind=kind, parent=self.current))
        self.current = len(self.scopes) - 1
        return self.current

    def pop_scope(self) -> None:
        """Destroy the current scope and return to its parent."""
        if self.current <= self.global_index:
            raise RuntimeError("cannot pop the global scope")
        scope = self.scopes[self.current]
        del self.scopes[self.current:]
        self.current = scope.parent if scope.parent is not None else self.global_index

    def lookup(self, name: str) -> Optional[Value]:
        for _, scope in self._chain():
            if name in scope.vars:
                return scope.vars[name]
        return None

    def set(self, name: str, value: Value) -> None:
        """Rebind the nearest definition, or bind in the current scope."""
        for _, scope in self._chain():
            if name in scope.vars:
                scope.vars[name] = value
                return
        self.scopes[self.current].vars[name] = value

    def set_local(self, name: str, value: Value) -> None:
        """Bind in the current scope, shadowing outer bindings."""
        self.scopes[self.current].vars[name] = value

    def unset(self, name: str) -> bool:
        for _, scope in self._chain():
            if name in scope.vars:
                del scope.vars[name]
                scope.exported.discard(name)
                return True
        return False

    def export(self, name: str) -> None:
        self.scopes[self.current].exported.add(name)

    def is_exported(self, name: str) -> bool:
        return any(name in scope.exported for _, scope in self._chain())

    def exported_env(self) -> dict[str, str]:
        """Environment for a process spawned from the current scope."""
        env: dict[str, str] = {}
        for _, scope in reversed(list(self._chain())):
            for name in scope.exported:
                value = self.lookup(name)
                if value is not None:
                    env[name] = value_to_str(value)
        return env

    def visible_vars(self) -> dict[str, str]:
        """All bindings visible from the current scope, rendered as strings."""
        result: dict[str, str] = {}
        for _, scope in reversed(list(self._chain())):
            for name, value in scope.vars.items():
                result[name] = value_to_str(value)
        return result

    def define_function(self, node: "FunctionDefNode") -> None:
        self.scopes[self.current].functions[node.name] = node

    def lookup_function(self, name: str) -> Optional["FunctionDefNode"]:
        for _, scope in self._chain():
            if name in scope.functions:
                return scope.functions[name]
        return None

    def remove_function(self, name: str) -> bool:
        for _, scope in self._chain():
            if name in scope.functions:
                del scope.functions[name]
                return True
        return False

    def snapshot(self) -> ScopeArena:
        """Copy the arena up to the current scope for a subshell.

        Later mutation of either arena is not visible in the other.
        Function bodies are shared since the AST is never mutated.
        """
        new = ScopeArena.__new__(ScopeArena)
        new.scopes = [
            Scope(
                kind=scope.kind,
                parent=scope.parent,
                vars=copy.deepcopy(scope.vars),
                exported=set(scope.exported),
                functions=dict(scope.functions),
            )
            for scope in self.scopes[:self.current + 1]
        ]
        new.current = self.current
        return new


@dataclass
class StageIO:
    """Descriptors an in-process command reads from and writes to."""

    stdin: int = 0
    stdout: int = 1
    stderr: int = 2


@dataclass
class ShellOptions:
    """Shell options."""

    interactive: bool = False
    """Interactive sessions keep going after an expansion error."""

    xtrace: bool = False
    """Print PS4 and each expanded command to stderr before running it."""

    login_init: bool = False
    """Run the init scripts under ``$HOME/.pjsh`` when the shell starts."""


@dataclass
class InterpreterState:
    """Mutable state maintained by the interpreter."""

    scopes: ScopeArena = field(default_factory=ScopeArena)
    """Scope chain for variable and function lookup."""

    cwd: str = "/"
    """Current working directory."""

    aliases: dict[str, str] = field(default_factory=dict)
    """Session-level alias table."""

    last_exit_code: int = 0
    """Exit code of last command ($?)."""

    options: ShellOptions = field(default_factory=ShellOptions)
    """Shell options."""

    io: StageIO = field(default_factory=StageIO)
    """Descriptors of the stage currently executing in-process."""

    call_depth: int = 0
    """Current function call depth."""

    def fork(self) -> InterpreterState:
        """State for a subshell: snapshotted scopes, copied aliases."""
        return InterpreterState(
            scopes=self.scopes.snapshot(),
            cwd=self.cwd,
            aliases=dict(self.aliases),
            last_exit_code=self.last_exit_code,
            options=ShellOptions(
                interactive=False,
                xtrace=self.options.xtrace,
                login_init=False,
            ),
            io=StageIO(self.io.stdin, self.io.stdout, self.io.stderr),
            call_depth=self.call_depth,
        )


@dataclass
class InterpreterContext:
    """Context provided to interpreter modules and builtins."""

    state: InterpreterState
    """Mutable interpreter state."""

    exec_fn: Callable[[str], Awaitable[int]]
    """Function to parse and execute a program string in the current scope."""

    execute_program: Callable[["ProgramNode"], Awaitable[int]]
    """Function to execute a program AST."""

    execute_statement: Callable[["Node"], Awaitable[int]]
    """Function to execute a statement AST."""

    run_pipeline: Callable[["PipelineNode"], Awaitable[int]]
    """Function to run a pipeline through the orchestrator."""

    capture_subshell: Callable[["ProgramNode"], Awaitable[tuple[str, int]]]
    """Run a program in a subshell and capture its stdout."""

    capture_pipeline: Callable[["PipelineNode"], Awaitable[tuple[str, int]]]
    """Run a pipeline in the current scope and capture its stdout."""

    call_function: Callable[["FunctionDefNode", list[str]], Awaitable[int]]
    """Call a shell function with expanded arguments."""

    run_subshell: Callable[["ProgramNode"], Awaitable[int]]
    """Run a program on a snapshot of the current state."""

    fork: Callable[[], "InterpreterContext"]
    """Context on a snapshot of the current state, for a pipeline stage
    that runs beside the others."""

    sleep: Optional[Callable[[float], Awaitable[None]]] = None
    """Optional sleep function for testing with mock clocks."""
