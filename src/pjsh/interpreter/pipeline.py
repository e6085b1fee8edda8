"""Pipeline Orchestrator.

Runs one pipeline:
1. Expand and resolve every segment (no descriptors are opened yet).
2. Connect adjacent segments with OS pipes.
3. Apply each segment's redirections on top of the wiring.
4. Spawn every external process, then run the in-process segments
   (builtin, function, condition or subshell) as tasks beside them.
5. Wait for every stage. The last segment's exit code is the result.

A stage closes its pipe ends as soon as it finishes, so a producer
feeding a stage that stops reading gets a broken pipe.

Exit codes: 127 for a command that cannot be found, 126 for one that
cannot be started, 128 + N for a process killed by signal N.
"""

from __future__ import annotations

import asyncio
import logging
import os
import stat
import tempfile
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Union

from ..ast.types import CommandNode, ConditionNode, PipelineNode, RedirectNode, SubshellNode, WordNode
from .builtins import BUILTINS
from .conditions import evaluate_condition
from .errors import ExitError, ResolutionError
from .expansion import expand_command_words, expand_word_str
from .types import StageIO, value_to_str

if TYPE_CHECKING:
    from ..ast.types import FunctionDefNode, SegmentNode
    from .types import InterpreterContext

logger = logging.getLogger(__name__)

BUILTIN = "builtin"
FUNCTION = "function"
EXTERNAL = "external"
CONDITION = "condition"
SUBSHELL = "subshell"
FAILED = "failed"
EMPTY = "empty"

_REDIRECT_FLAGS = {
    "in": os.O_RDONLY,
    "out": os.O_WRONLY | os.O_CREAT | os.O_TRUNC,
    "append": os.O_WRONLY | os.O_CREAT | os.O_APPEND,
}


# =============================================================================
# Command resolution
# =============================================================================


def _is_executable(path: str) -> bool:
    try:
        st = os.stat(path)
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode) and os.access(path, os.X_OK)


def find_in_path(ctx: "InterpreterContext", name: str) -> Optional[str]:
    """Search ``$PATH`` for an executable program.

    Extensions listed in the semicolon-separated ``$PATHEXT`` are also
    tried, after the bare name.
    """
    scopes = ctx.state.scopes
    extensions = [""]
    pathext = scopes.lookup("PATHEXT")
    if pathext:
        extensions.extend(ext for ext in value_to_str(pathext).split(";") if ext)

    path = value_to_str(scopes.lookup("PATH") or "")
    for directory in path.split(os.pathsep):
        directory = os.path.join(ctx.state.cwd, directory or ".")
        for extension in extensions:
            candidate = os.path.join(directory, name + extension)
            if _is_executable(candidate):
                return os.path.normpath(candidate)
    return None


def resolve_program(ctx: "InterpreterContext", name: str) -> Optional[str]:
    """Resolve a program name to a path: literal path, then ``$PATH``."""
    if "/" in name:
        path = os.path.normpath(os.path.join(ctx.state.cwd, name))
        return path if os.path.exists(path) else None
    return find_in_path(ctx, name)


def resolve_command(ctx: "InterpreterContext", name: str) -> tuple[str, object]:
    """Resolve a command name.

    Order: builtin, function, literal path, ``$PATH`` search.

    Returns:
        A (kind, target) pair: the builtin handler, the function
        definition or the program path.

    Raises:
        ResolutionError: If the name cannot be resolved.
    """
    if name in BUILTINS:
        return BUILTIN, BUILTINS[name]
    function = ctx.state.scopes.lookup_function(name)
    if function is not None:
        return FUNCTION, function
    path = resolve_program(ctx, name)
    if path is None:
        raise ResolutionError(name)
    return EXTERNAL, path


# =============================================================================
# Stages
# =============================================================================


@dataclass
class _Redirect:
    fd: int
    mode: str
    target: Union[str, int]


@dataclass
class _Stage:
    """One segment of a pipeline, ready to run."""

    segment: "SegmentNode"
    kind: str
    args: list[str] = field(default_factory=list)
    target: object = None
    redirects: list[_Redirect] = field(default_factory=list)
    message: str = ""

    stdin: int = 0
    stdout: int = 1
    stderr: int = 2
    owned: list[int] = field(default_factory=list)
    """Descriptors to close once the stage is started or finished."""

    process: Optional[asyncio.subprocess.Process] = None
    exit_code: Optional[int] = None

    @property
    def in_process(self) -> bool:
        return self.kind != EXTERNAL

    def release(self) -> None:
        while self.owned:
            os.close(self.owned.pop())


def make_spool() -> int:
    """Create an anonymous temp file and return its descriptor."""
    fd, path = tempfile.mkstemp(prefix="pjsh-")
    os.unlink(path)
    return fd


def write_all(fd: int, data: str) -> None:
    """Write the whole string to a descriptor."""
    view = memoryview(data.encode("utf-8", "surrogateescape"))
    while view:
        written = os.write(fd, view)
        view = view[written:]


async def write_all_async(fd: int, data: str) -> None:
    """Write from a worker thread so a full pipe never blocks the event loop.

    The reader of the pipe may be another stage of the same pipeline.
    """
    if data:
        await asyncio.get_running_loop().run_in_executor(None, write_all, fd, data)


def decode_output(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


def read_spool(fd: int) -> str:
    """Read a spool file from the start."""
    os.lseek(fd, 0, os.SEEK_SET)
    chunks = []
    while True:
        chunk = os.read(fd, 65536)
        if not chunk:
            break
        chunks.append(chunk)
    return decode_output(b"".join(chunks))


def _exit_status(returncode: int) -> int:
    if returncode < 0:
        return 128 - returncode
    return returncode


class PipelineRunner:
    """Runs pipelines for an interpreter context."""

    def __init__(self, ctx: "InterpreterContext"):
        self._ctx = ctx

    # -------------------------------------------------------------------------
    # Preparation
    # -------------------------------------------------------------------------

    async def _expand_redirects(self, redirects: list[RedirectNode]) -> list[_Redirect]:
        result = []
        for redirect in redirects:
            if isinstance(redirect.target, WordNode):
                target: Union[str, int] = await expand_word_str(self._ctx, redirect.target)
            else:
                target = redirect.target
            result.append(_Redirect(redirect.fd, redirect.mode, target))
        return result

    async def _prepare(self, segment: "SegmentNode") -> _Stage:
        """Expand and resolve a segment without opening descriptors."""
        ctx = self._ctx
        if isinstance(segment, ConditionNode):
            return _Stage(segment=segment, kind=CONDITION)
        if isinstance(segment, SubshellNode):
            return _Stage(
                segment=segment,
                kind=SUBSHELL,
                redirects=await self._expand_redirects(segment.redirects),
            )

        assert isinstance(segment, CommandNode)
        args = await expand_command_words(ctx, segment.words)
        redirects = await self._expand_redirects(segment.redirects)
        if not args:
            return _Stage(segment=segment, kind=EMPTY, redirects=redirects)

        if ctx.state.options.xtrace:
            ps4 = value_to_str(ctx.state.scopes.lookup("PS4") or "")
            write_all(ctx.state.io.stderr, ps4 + " ".join(args) + "\n")

        try:
            kind, target = resolve_command(ctx, args[0])
        except ResolutionError as e:
            logger.debug("resolution failed: %s", args[0])
            return _Stage(
                segment=segment,
                kind=FAILED,
                args=args,
                redirects=redirects,
                message=f"pjsh: {e}\n",
                exit_code=127,
            )
        logger.debug("resolved %s -> %s %s", args[0], kind, target if kind == EXTERNAL else "")
        return _Stage(segment=segment, kind=kind, args=args, target=target, redirects=redirects)

    # -------------------------------------------------------------------------
    # Wiring
    # -------------------------------------------------------------------------

    def _wire(self, stages: list[_Stage]) -> None:
        """Connect stage i's stdout to stage i+1's stdin."""
        io = self._ctx.state.io
        for stage in stages:
            stage.stdin, stage.stdout, stage.stderr = io.stdin, io.stdout, io.stderr

        for writer, reader in zip(stages, stages[1:]):
            r, w = os.pipe()
            reader.owned.append(r)
            reader.stdin = r
            writer.owned.append(w)
            writer.stdout = w

    def _apply_redirects(self, stage: _Stage) -> None:
        """Apply redirections left to right on top of the pipe wiring."""
        for redirect in stage.redirects:
            if redirect.mode == "dup":
                fd = {0: stage.stdin, 1: stage.stdout, 2: stage.stderr}[int(redirect.target)]
            else:
                path = os.path.join(self._ctx.state.cwd, str(redirect.target))
                try:
                    fd = os.open(path, _REDIRECT_FLAGS[redirect.mode], 0o666)
                except OSError as e:
                    stage.kind = FAILED
                    stage.message = f"pjsh: {redirect.target}: {e.strerror}\n"
                    stage.exit_code = 1
                    # Nothing will read this stage's pipe now.
                    stage.stderr = self._ctx.state.io.stderr
                    stage.release()
                    return
                stage.owned.append(fd)
            if redirect.fd == 0:
                stage.stdin = fd
            elif redirect.fd == 1:
                stage.stdout = fd
            else:
                stage.stderr = fd

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    async def _spawn(self, stage: _Stage) -> None:
        ctx = self._ctx
        path = str(stage.target)
        logger.debug("spawn %s %s", path, stage.args[1:])
        try:
            stage.process = await asyncio.create_subprocess_exec(
                stage.args[0],
                *stage.args[1:],
                executable=path,
                stdin=stage.stdin,
                stdout=stage.stdout,
                stderr=stage.stderr,
                cwd=ctx.state.cwd,
                env=ctx.state.scopes.exported_env(),
            )
        except FileNotFoundError as e:
            write_all(stage.stderr, f"pjsh: {stage.args[0]}: {e.strerror}\n")
            stage.exit_code = 127
        except OSError as e:
            write_all(stage.stderr, f"pjsh: {stage.args[0]}: {e.strerror}\n")
            stage.exit_code = 126

    async def _wait(self, stage: _Stage) -> None:
        if stage.process is not None and stage.exit_code is None:
            stage.exit_code = _exit_status(await stage.process.wait())

    async def _run_in_process(self, ctx: "InterpreterContext", stage: _Stage) -> int:
        if stage.kind == FAILED:
            try:
                await write_all_async(stage.stderr, stage.message)
            except BrokenPipeError:
                logger.debug("could not report: %s", stage.message.rstrip())
            return stage.exit_code if stage.exit_code is not None else 1
        if stage.kind == EMPTY:
            return 0

        state = ctx.state
        saved_io = state.io
        state.io = StageIO(stage.stdin, stage.stdout, stage.stderr)
        try:
            if stage.kind == CONDITION:
                assert isinstance(stage.segment, ConditionNode)
                return 0 if await evaluate_condition(ctx, stage.segment) else 1
            if stage.kind == SUBSHELL:
                assert isinstance(stage.segment, SubshellNode)
                return await ctx.run_subshell(stage.segment.program)
            if stage.kind == FUNCTION:
                function: "FunctionDefNode" = stage.target  # type: ignore[assignment]
                return await ctx.call_function(function, stage.args[1:])

            result = await stage.target(ctx, stage.args[1:])  # type: ignore[operator]
            await write_all_async(stage.stdout, result.stdout)
            await write_all_async(stage.stderr, result.stderr)
            return result.exit_code
        except BrokenPipeError:
            return 141
        finally:
            state.io = saved_io

    async def _run_stage(self, ctx: Optional["InterpreterContext"], stage: _Stage) -> None:
        """Run or wait for one stage, then close the descriptors it holds.

        ``ctx`` is None for a spawned process. A stage running on a forked
        context handles ``exit`` itself, like a subshell.
        """
        try:
            if ctx is None:
                await self._wait(stage)
                return
            try:
                stage.exit_code = await self._run_in_process(ctx, stage)
            except ExitError as e:
                if ctx is self._ctx:
                    raise
                stage.exit_code = e.exit_code
        finally:
            stage.release()

    def _stage_context(self, stage: _Stage, last: bool) -> Optional["InterpreterContext"]:
        if not stage.in_process:
            return None
        if last or stage.kind in (FAILED, EMPTY):
            return self._ctx
        return self._ctx.fork()

    def _kill(self, stages: list[_Stage]) -> None:
        for stage in stages:
            if stage.process is not None and stage.process.returncode is None:
                try:
                    stage.process.kill()
                except ProcessLookupError:
                    logger.debug("process %s already exited", stage.process.pid)

    async def run(self, node: PipelineNode) -> int:
        """Run a pipeline and return the exit code of its last segment.

        All stages run at the same time. Only the last stage runs on the
        current context; earlier in-process stages get a forked one so no
        two running stages share scopes.
        """
        stages = [await self._prepare(segment) for segment in node.segments]

        try:
            self._wire(stages)
            for stage in stages:
                self._apply_redirects(stage)

            for stage in stages:
                if not stage.in_process:
                    await self._spawn(stage)
                    stage.release()

            contexts = [
                self._stage_context(stage, i == len(stages) - 1)
                for i, stage in enumerate(stages)
            ]
            results = await asyncio.gather(
                *(self._run_stage(ctx, stage) for ctx, stage in zip(contexts, stages)),
                return_exceptions=True,
            )
        except BaseException:
            self._kill(stages)
            raise
        finally:
            for stage in stages:
                stage.release()
            for stage in stages:
                if stage.process is not None and stage.process.returncode is None:
                    await stage.process.wait()

        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            raise errors[-1]

        exit_code = stages[-1].exit_code
        return exit_code if exit_code is not None else 0
