"""Code executor.

Runs a single ToolCall in the session's working directory, under the
sandbox policy, with a hard timeout. Every outcome, including a process
that never started, comes back as a ToolResult.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import signal
import tempfile
import time
from collections.abc import Iterator
from contextlib import contextmanager

from pydantic import BaseModel, Field

from ..types.types import FailureKind, ToolCall, ToolKind, ToolResult
from .enforcer import SandboxEnforcer
from .output import DEFAULT_MAX_CHARS, log_line, strip_ansi, truncate_output
from .policy import SandboxPolicy

logger = logging.getLogger(__name__)

# Default execution timeout in seconds
DEFAULT_TIMEOUT_SECONDS = 30.0

# Bytes read from a pipe at a time
_READ_SIZE = 65536

# Grace period for reaping a killed process
_KILL_GRACE_SECONDS = 5.0

LANGUAGE_LABELS = {
    ToolKind.BASH: "Bash",
    ToolKind.JAVASCRIPT: "JavaScript",
    ToolKind.PYTHON: "Python",
}


class ExecutorConfig(BaseModel):
    """Configuration for CodeExecutor."""

    timeout_seconds: float = Field(default=DEFAULT_TIMEOUT_SECONDS, gt=0)
    max_output_chars: int = Field(default=DEFAULT_MAX_CHARS, gt=0)
    bash_binary: str = "bash"
    node_binary: str = "node"
    python_binary: str = "python3"
    script_dir: str | None = Field(
        default=None, description="Where script files are written (default: system temp dir)"
    )


@contextmanager
def script_file(code: str, suffix: str, directory: str | None = None) -> Iterator[str]:
    """Write ``code`` to a uniquely named file that is removed on exit."""
    fd, path = tempfile.mkstemp(prefix="codeact_", suffix=suffix, dir=directory)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(code)
        yield path
    finally:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass


async def _pump(
    stream: asyncio.StreamReader, logs: list[str], sink: list[bytes] | None, stderr: bool
):
    """Copy a pipe into ``logs`` line by line, keeping raw bytes in ``sink``."""
    pending = b""
    while True:
        chunk = await stream.read(_READ_SIZE)
        if not chunk:
            break
        if sink is not None:
            sink.append(chunk)
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for raw in lines:
            line = log_line(raw, stderr=stderr)
            if line is not None:
                logs.append(line)
    line = log_line(pending, stderr=stderr)
    if line is not None:
        logs.append(line)


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        os.killpg(proc.pid, signal.SIGKILL)
    except (ProcessLookupError, PermissionError):
        try:
            proc.kill()
        except ProcessLookupError:
            pass


async def _spawn(
    command: str,
    cwd: str,
    env: dict[str, str] | None,
    timeout: float,
) -> tuple[int | None, str, list[str]]:
    """Run ``command`` through ``sh -c`` and capture its output.

    Returns:
        Tuple of (exit_code, stdout, logs). ``exit_code`` is None on timeout.
    """
    proc_env = {**os.environ, **env} if env else None

    proc = await asyncio.create_subprocess_exec(
        "sh",
        "-c",
        command,
        cwd=cwd,
        env=proc_env,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        start_new_session=True,
    )

    logs: list[str] = []
    stdout_chunks: list[bytes] = []

    try:
        await asyncio.wait_for(
            asyncio.gather(
                _pump(proc.stdout, logs, stdout_chunks, stderr=False),
                _pump(proc.stderr, logs, None, stderr=True),
                proc.wait(),
            ),
            timeout=timeout,
        )
        exit_code = proc.returncode
    except asyncio.TimeoutError:
        _kill(proc)
        try:
            await asyncio.wait_for(proc.wait(), timeout=_KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning("Process %d did not exit after SIGKILL", proc.pid)
        exit_code = None
    except asyncio.CancelledError:
        _kill(proc)
        raise

    stdout = b"".join(stdout_chunks).decode("utf-8", errors="replace")
    return exit_code, stdout, logs


class CodeExecutor:
    """Executes ToolCalls under a SandboxPolicy.

    User-input calls are answered immediately with their payload. Code calls
    are turned into a shell command, wrapped by the SandboxEnforcer and
    spawned in the working directory.
    """

    def __init__(self, enforcer: SandboxEnforcer, config: ExecutorConfig | None = None) -> None:
        self._enforcer = enforcer
        self.config = config or ExecutorConfig()

    @contextmanager
    def _command_for(self, call: ToolCall) -> Iterator[tuple[str, dict[str, str]]]:
        code = call.payload
        if call.kind is ToolKind.BASH:
            yield f"{self.config.bash_binary} --noprofile --norc -c {shlex.quote(code)}", {}
        elif call.kind is ToolKind.JAVASCRIPT:
            with script_file(code, ".js", self.config.script_dir) as path:
                env = {"NODE_OPTIONS": "--no-warnings", "OPENSSL_CONF": "/dev/null"}
                yield f"{self.config.node_binary} {shlex.quote(path)}", env
        elif call.kind is ToolKind.PYTHON:
            with script_file(code, ".py", self.config.script_dir) as path:
                yield f"{self.config.python_binary} {shlex.quote(path)}", {}
        else:
            raise ValueError(f"Cannot execute tool call of kind {call.kind.value}")

    async def execute(
        self, call: ToolCall, policy: SandboxPolicy, working_directory: str
    ) -> ToolResult:
        """Run one call and return its result. Never raises for a single call."""
        start = time.monotonic()

        if call.kind is ToolKind.USER_INPUT:
            return ToolResult(
                tool_call_id=call.id,
                kind=call.kind,
                success=True,
                output=call.payload,
                logs=[f"User input received: {call.payload}"],
            )

        label = LANGUAGE_LABELS.get(call.kind, call.kind.value)
        timeout = self.config.timeout_seconds
        env: dict[str, str] = {}
        if call.kind is ToolKind.PYTHON:
            env = {"PYTHONPATH": working_directory, "PYTHONIOENCODING": "utf-8"}

        try:
            with self._command_for(call) as (command, lang_env):
                wrapped = await self._enforcer.wrap(policy, command)
                logger.debug("Executing %s call %s: %s", label, call.id, wrapped)
                exit_code, stdout, logs = await _spawn(
                    wrapped, cwd=working_directory, env={**env, **lang_env}, timeout=timeout
                )
        except Exception as e:
            logger.warning("%s call %s could not be started: %s", label, call.id, e)
            return ToolResult(
                tool_call_id=call.id,
                kind=call.kind,
                success=False,
                error=f"{label} execution could not be started: {e}",
                execution_time_ms=int((time.monotonic() - start) * 1000),
                failure=FailureKind.INTERNAL,
            )

        duration_ms = int((time.monotonic() - start) * 1000)
        output, _ = truncate_output(strip_ansi(stdout).strip(), self.config.max_output_chars)

        if exit_code is None:
            logger.info("%s call %s timed out after %ss", label, call.id, timeout)
            return ToolResult(
                tool_call_id=call.id,
                kind=call.kind,
                success=False,
                output=output or None,
                error=f"{label} execution timed out after {timeout:g}s",
                logs=logs,
                execution_time_ms=duration_ms,
                failure=FailureKind.TIMEOUT,
            )

        if exit_code != 0:
            return ToolResult(
                tool_call_id=call.id,
                kind=call.kind,
                success=False,
                output=output or None,
                error=f"{label} execution failed with exit code {exit_code}",
                logs=logs,
                execution_time_ms=duration_ms,
                exit_code=exit_code,
                failure=FailureKind.EXECUTION,
            )

        return ToolResult(
            tool_call_id=call.id,
            kind=call.kind,
            success=True,
            output=output,
            logs=logs,
            execution_time_ms=duration_ms,
            exit_code=0,
        )

    async def execute_batch(
        self, calls: list[ToolCall], policy: SandboxPolicy, working_directory: str
    ) -> list[ToolResult]:
        """Run calls one after another, stopping after a user-input call resolves."""
        results: list[ToolResult] = []
        for call in calls:
            result = await self.execute(call, policy, working_directory)
            results.append(result)
            if call.kind is ToolKind.USER_INPUT and result.success:
                break
        return results
