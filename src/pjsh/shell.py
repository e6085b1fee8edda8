"""Main Shell class - the primary API for pjsh.

Example usage:
    from pjsh import Shell

    # Synchronous usage (for REPL, scripts)
    shell = Shell()
    result = shell.run("echo hello world")
    print(result.stdout)  # "hello world\\n"

    # Async usage (for async applications)
    shell = Shell()
    result = await shell.exec("items := [3 1 2]; echo ${items | sort | join ','}")
    print(result.stdout)  # "1,2,3\\n"

    # Output straight to the process's own stdout/stderr
    shell = Shell(capture=False)
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Optional

import nest_asyncio  # type: ignore[import-untyped]

from .interpreter import (
    ExitError,
    Interpreter,
    InterpreterState,
    ScopeArena,
    ShellOptions,
    StageIO,
)
from .interpreter.expansion import interpolate
from .interpreter.errors import ExpansionError
from .interpreter.pipeline import make_spool, read_spool, write_all
from .interpreter.types import value_to_str
from .parser import PjshSyntaxError, parse, parse_interpolation
from .types import ExecResult

logger = logging.getLogger(__name__)

INIT_DIR = ".pjsh"
INIT_ALWAYS = "init-always.pjsh"
INIT_INTERACTIVE = "init-interactive.pjsh"


class Shell:
    """Main pjsh interpreter class.

    Provides a high-level API for executing pjsh programs. State (variables,
    functions, aliases, working directory) persists across calls to
    ``exec`` and ``run`` until ``reset`` is called.
    """

    def __init__(
        self,
        *,
        cwd: Optional[str] = None,
        env: Optional[dict[str, str]] = None,
        options: Optional[ShellOptions] = None,
        capture: bool = True,
        inherit_env: bool = True,
    ):
        """Initialize the shell.

        Args:
            cwd: Initial working directory (defaults to the process's).
            env: Additional environment variables.
            options: Shell options.
            capture: Capture stdout and stderr into the returned ExecResult.
                Otherwise output goes to this process's own descriptors.
            inherit_env: Start from this process's environment.
        """
        self._cwd = os.path.abspath(cwd or os.getcwd())
        self._environ = dict(os.environ) if inherit_env else {}
        if env:
            self._environ.update(env)
        self._environ["PWD"] = self._cwd
        self._options = options or ShellOptions()
        self._capture = capture
        self._exited = False
        self._initialized = False
        self._interpreter = Interpreter(self._initial_state())

    def _initial_state(self) -> InterpreterState:
        return InterpreterState(
            scopes=ScopeArena(self._environ),
            cwd=self._cwd,
            options=ShellOptions(
                interactive=self._options.interactive,
                xtrace=self._options.xtrace,
                login_init=self._options.login_init,
            ),
        )

    @property
    def state(self) -> InterpreterState:
        """Get the interpreter state."""
        return self._interpreter.state

    @property
    def cwd(self) -> str:
        """Get the current working directory."""
        return self._interpreter.state.cwd

    @property
    def env(self) -> dict[str, str]:
        """Get all variables visible from the global scope."""
        return self._interpreter.state.scopes.visible_vars()

    @property
    def exit_code(self) -> int:
        """Exit code of the last executed statement."""
        return self._interpreter.state.last_exit_code

    @property
    def exited(self) -> bool:
        """True once ``exit`` has run at the top level."""
        return self._exited

    # -------------------------------------------------------------------------
    # Init scripts
    # -------------------------------------------------------------------------

    def init_scripts(self) -> list[str]:
        """Paths of the init scripts that apply to this session."""
        home = self._interpreter.state.scopes.lookup("HOME")
        if not home:
            return []
        init_dir = os.path.join(value_to_str(home), INIT_DIR)
        names = [INIT_ALWAYS]
        if self._options.interactive:
            names.append(INIT_INTERACTIVE)
        return [os.path.join(init_dir, name) for name in names]

    async def _run_init_scripts(self) -> None:
        self._initialized = True
        if not self._options.login_init:
            return
        for path in self.init_scripts():
            if not os.path.isfile(path):
                continue
            logger.debug("running init script %s", path)
            try:
                with open(path, encoding="utf-8") as f:
                    program = parse(f.read())
            except OSError as e:
                write_all(self.state.io.stderr, f"pjsh: {path}: {e.strerror}\n")
                continue
            except PjshSyntaxError as e:
                write_all(self.state.io.stderr, f"pjsh: {path}: {e}\n")
                continue
            await self._interpreter.execute_program(program)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def _execute(self, script: str, args: Optional[list[str]]) -> int:
        try:
            if not self._initialized:
                await self._run_init_scripts()

            try:
                program = parse(script)
            except PjshSyntaxError as e:
                write_all(self.state.io.stderr, f"pjsh: {e}\n")
                self.state.last_exit_code = 2
                return 2

            scopes = self.state.scopes
            for i, arg in enumerate(args or [], start=1):
                scopes.set_local(str(i), arg)

            return await self._interpreter.execute_program(program)
        except ExitError as error:
            self._exited = True
            self.state.last_exit_code = error.exit_code
            return error.exit_code

    async def exec(
        self,
        script: str,
        *,
        args: Optional[list[str]] = None,
    ) -> ExecResult:
        """Execute a pjsh program.

        Args:
            script: The program source.
            args: Values bound to ``$1``, ``$2``, ... in the global scope.

        Returns:
            ExecResult with stdout, stderr, exit_code, and final variables.
        """
        if not self._capture:
            exit_code = await self._execute(script, args)
            return ExecResult(exit_code=exit_code, env=self.env)

        state = self.state
        saved_io = state.io
        stdin = os.open(os.devnull, os.O_RDONLY)
        stdout = make_spool()
        stderr = make_spool()
        state.io = StageIO(stdin, stdout, stderr)
        try:
            exit_code = await self._execute(script, args)
            return ExecResult(
                stdout=read_spool(stdout),
                stderr=read_spool(stderr),
                exit_code=exit_code,
                env=self.env,
            )
        finally:
            state.io = saved_io
            for fd in (stdin, stdout, stderr):
                os.close(fd)

    def run(
        self,
        script: str,
        *,
        args: Optional[list[str]] = None,
    ) -> ExecResult:
        """Execute a pjsh program synchronously.

        This is a convenience wrapper around exec() that works in any context,
        including Jupyter notebooks and async frameworks.

        Example:
            >>> shell = Shell()
            >>> result = shell.run('echo "Hello, World!"')
            >>> print(result.stdout)
            Hello, World!
        """
        try:
            asyncio.get_running_loop()
            # We're in an existing event loop (Jupyter, async framework, etc.)
            # Apply nest_asyncio to allow nested event loops
            nest_asyncio.apply()
        except RuntimeError:
            # No running event loop, asyncio.run() will work fine
            pass
        return asyncio.run(self.exec(script, args=args))

    # -------------------------------------------------------------------------
    # Interactive helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def is_complete(source: str) -> bool:
        """Return False if ``source`` only fails to parse because it ends early."""
        try:
            parse(source)
        except PjshSyntaxError as e:
            return not e.incomplete
        return True

    async def prompt(self, name: str = "PS1") -> str:
        """Interpolate a prompt variable such as PS1 or PS2."""
        value = self._interpreter.state.scopes.lookup(name)
        if value is None:
            return ""
        text = value_to_str(value)
        try:
            return await interpolate(self._interpreter.ctx, parse_interpolation(text))
        except (PjshSyntaxError, ExpansionError) as e:
            logger.debug("cannot interpolate %s: %s", name, e)
            return text

    def reset(self) -> None:
        """Reset the interpreter state to initial values."""
        self._exited = False
        self._initialized = False
        self._interpreter = Interpreter(self._initial_state())
