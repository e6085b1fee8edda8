"""Interpreter - AST Execution Engine.

Main interpreter class that executes pjsh AST nodes. Statements return
integer exit codes; command output goes straight to the descriptors in
``state.io``.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

from ..ast.types import (
    AssignmentNode,
    ForInNode,
    ForInOfNode,
    FunctionDefNode,
    IfNode,
    ListNode,
    Node,
    PipelineNode,
    ProgramNode,
    StatementNode,
    SwitchNode,
    UntilNode,
    WhileNode,
    WordNode,
)
from ..parser import is_valid_name, parse
from .control_flow import (
    execute_block,
    execute_for_in,
    execute_for_in_of,
    execute_if,
    execute_switch,
    execute_until,
    execute_while,
)
from .errors import ExitError, ExpansionError
from .expansion import expand_value, expand_word_str, expand_words
from .pipeline import PipelineRunner, make_spool, read_spool, write_all
from .types import FUNCTION, SUBSHELL, InterpreterContext, InterpreterState, StageIO

logger = logging.getLogger(__name__)

MAX_CALL_DEPTH = 64


class Interpreter:
    """AST interpreter for pjsh programs."""

    def __init__(self, state: Optional[InterpreterState] = None):
        """Initialize the interpreter.

        Args:
            state: Optional initial state (creates default if not provided)
        """
        self._state = state or InterpreterState()

        # Build the context
        self._ctx = InterpreterContext(
            state=self._state,
            exec_fn=self._exec_fn,
            execute_program=self.execute_program,
            execute_statement=self.execute_statement,
            run_pipeline=self.run_pipeline,
            capture_subshell=self.capture_subshell,
            capture_pipeline=self.capture_pipeline,
            call_function=self.call_function,
            run_subshell=self.run_subshell,
            fork=self.fork,
        )
        self._pipelines = PipelineRunner(self._ctx)

    @property
    def state(self) -> InterpreterState:
        """Get the interpreter state."""
        return self._state

    @property
    def ctx(self) -> InterpreterContext:
        return self._ctx

    async def _exec_fn(self, source: str) -> int:
        """Parse and execute source text in the current scope."""
        return await self.execute_program(parse(source))

    def _report(self, message: str) -> None:
        try:
            write_all(self._state.io.stderr, f"pjsh: {message}\n")
        except OSError:
            logger.debug("could not report error: %s", message)

    # -------------------------------------------------------------------------
    # Programs and statements
    # -------------------------------------------------------------------------

    async def execute_program(self, node: ProgramNode) -> int:
        """Execute a program AST node.

        An expansion error aborts the statement it occurred in. A
        non-interactive shell then stops; an interactive one continues.
        """
        exit_code = 0
        for statement in node.statements:
            try:
                exit_code = await self.execute_statement(statement)
            except ExpansionError as error:
                self._report(str(error))
                exit_code = 1
                self._state.last_exit_code = exit_code
                if not self._state.options.interactive:
                    break
        return exit_code

    async def execute_statement(self, node: Node) -> int:
        """Execute a statement AST node and record its exit code as ``$?``."""
        logger.debug("execute %s", type(node).__name__)
        if isinstance(node, StatementNode):
            exit_code = await self._execute_and_or(node)
        elif isinstance(node, AssignmentNode):
            exit_code = await self._execute_assignment(node)
        elif isinstance(node, IfNode):
            exit_code = await execute_if(self._ctx, node)
        elif isinstance(node, SwitchNode):
            exit_code = await execute_switch(self._ctx, node)
        elif isinstance(node, WhileNode):
            exit_code = await execute_while(self._ctx, node)
        elif isinstance(node, UntilNode):
            exit_code = await execute_until(self._ctx, node)
        elif isinstance(node, ForInNode):
            exit_code = await execute_for_in(self._ctx, node)
        elif isinstance(node, ForInOfNode):
            exit_code = await execute_for_in_of(self._ctx, node)
        elif isinstance(node, FunctionDefNode):
            self._state.scopes.define_function(node)
            exit_code = 0
        else:
            raise TypeError(f"unknown statement node: {type(node).__name__}")

        self._state.last_exit_code = exit_code
        return exit_code

    async def _execute_and_or(self, node: StatementNode) -> int:
        exit_code = 0
        for i, pipeline in enumerate(node.pipelines):
            operator = node.operators[i - 1] if i > 0 else None

            if operator == "&&" and exit_code != 0:
                continue
            if operator == "||" and exit_code == 0:
                continue

            exit_code = await self.run_pipeline(pipeline)
            # Update $? after each pipeline
            self._state.last_exit_code = exit_code
        return exit_code

    async def run_pipeline(self, node: PipelineNode) -> int:
        return await self._pipelines.run(node)

    # -------------------------------------------------------------------------
    # Assignments
    # -------------------------------------------------------------------------

    async def _execute_assignment(self, node: AssignmentNode) -> int:
        """Execute ``key := value`` or ``key ::= pipeline``."""
        key = await expand_word_str(self._ctx, node.key)
        if not is_valid_name(key):
            raise ExpansionError(f"invalid variable name: {key}")

        exit_code = 0
        if isinstance(node.value, PipelineNode):
            output, exit_code = await self.capture_pipeline(node.value)
            value = output.rstrip("\n")
        elif isinstance(node.value, ListNode):
            value = await expand_words(self._ctx, node.value.items, glob=False)
        else:
            assert isinstance(node.value, WordNode)
            value = await expand_value(self._ctx, node.value)

        self._state.scopes.set(key, value)
        return exit_code

    # -------------------------------------------------------------------------
    # Functions and subshells
    # -------------------------------------------------------------------------

    async def call_function(self, function: FunctionDefNode, args: list[str]) -> int:
        """Call a shell function.

        The call runs in a new scope whose parent is the caller's scope.
        Named parameters bind by position, a list parameter takes the
        remaining arguments, and otherwise unbound arguments are exposed
        as ``$1``, ``$2``, ...
        """
        if len(args) < len(function.params):
            missing = function.params[len(args)]
            self._report(f"{function.name}: missing argument '{missing}'")
            return 1
        if self._state.call_depth >= MAX_CALL_DEPTH:
            self._report(f"{function.name}: maximum call depth exceeded ({MAX_CALL_DEPTH})")
            return 1

        scopes = self._state.scopes
        scopes.push_scope(FUNCTION)
        self._state.call_depth += 1
        try:
            for name, value in zip(function.params, args):
                scopes.set_local(name, value)
            rest = args[len(function.params):]
            if function.list_param is not None:
                scopes.set_local(function.list_param, list(rest))
            else:
                for i, value in enumerate(rest, start=1):
                    scopes.set_local(str(i), value)
            logger.debug("call %s with %d argument(s)", function.name, len(args))
            return await execute_block(self._ctx, function.body)
        finally:
            self._state.call_depth -= 1
            scopes.pop_scope()

    def _subshell(self) -> Interpreter:
        state = self._state.fork()
        state.scopes.push_scope(SUBSHELL)
        sub = Interpreter(state)
        sub.ctx.sleep = self._ctx.sleep
        return sub

    def fork(self) -> InterpreterContext:
        """Context for a pipeline stage that must not share this state."""
        return self._subshell().ctx

    async def run_subshell(self, program: ProgramNode) -> int:
        """Run a program on a snapshot of the current state.

        ``exit`` inside the program only leaves the subshell.
        """
        sub = self._subshell()
        try:
            return await sub.execute_program(program)
        except ExitError as e:
            return e.exit_code

    async def capture_subshell(self, program: ProgramNode) -> tuple[str, int]:
        """Run a program in a subshell and capture its standard output."""
        sub = self._subshell()
        fd = make_spool()
        sub.state.io.stdout = fd
        try:
            try:
                exit_code = await sub.execute_program(program)
            except ExitError as e:
                exit_code = e.exit_code
            return read_spool(fd), exit_code
        finally:
            os.close(fd)

    async def capture_pipeline(self, node: PipelineNode) -> tuple[str, int]:
        """Run a pipeline in the current scope and capture its standard output."""
        fd = make_spool()
        saved_io = self._state.io
        self._state.io = StageIO(saved_io.stdin, fd, saved_io.stderr)
        try:
            exit_code = await self.run_pipeline(node)
            return read_spool(fd), exit_code
        finally:
            self._state.io = saved_io
            os.close(fd)
