"""Task loop: drives one task from a user prompt to a result.

Each turn asks the model once, runs the tool calls in its reply one after
another, feeds the results back and decides whether the task is done.
A user-input request pauses the task until the next call to ``run``.
"""

import asyncio
import logging

from pydantic import BaseModel, Field

from ..execution.enforcer import SandboxEnforcer, SandboxRuntimeEnforcer
from ..execution.executor import CodeExecutor
from ..execution.output import STDERR_PREFIX
from ..llm.client import LLMClient, LLMRequest
from ..tools import ToolRegistry, default_registry
from ..types.types import (
    AgentState,
    ChatMessage,
    Task,
    TaskStatus,
    ToolCall,
    ToolKind,
    ToolResult,
)
from .completion import is_task_complete
from .parser import parse_tool_calls, strip_tool_calls
from .prompt import build_system_prompt
from .session import Session

logger = logging.getLogger(__name__)

FAILURE_MESSAGE = "Failed to generate a valid response."
LLM_ERROR_PREFIX = "LLM Error: "
RETRY_MESSAGE = "The previous request failed. Please continue with the task."

DEFAULT_MAX_TURNS = 10

# Timeout for a single LLM call in seconds
DEFAULT_LLM_TIMEOUT_SECONDS = 120.0


class OrchestratorConfig(BaseModel):
    """Configuration for the Orchestrator."""

    max_turns: int = Field(default=DEFAULT_MAX_TURNS, gt=0)
    llm_timeout_seconds: float = Field(default=DEFAULT_LLM_TIMEOUT_SECONDS, gt=0)
    send_tool_schemas: bool = Field(
        default=True, description="Offer the registered tools to the model as structured tools"
    )
    system_prompt: str | None = Field(
        default=None, description="Replaces the generated system prompt when set"
    )


class RunOutcome(BaseModel):
    """What a call to Orchestrator.run produced."""

    text: str
    status: TaskStatus
    task_id: str
    requires_input: bool = False
    input_prompt: str | None = None


def format_results(results: list[ToolResult]) -> str:
    """Render tool results as text for the conversation and the caller."""
    lines = []
    for result in results:
        tag = f"[{result.kind.value}]"
        if result.success:
            lines.append(f"{tag} {result.output or '(no output)'}")
            continue
        lines.append(f"{tag} error: {result.error}")
        if result.output:
            lines.append(result.output)
        lines.extend(log for log in result.logs if log.startswith(STDERR_PREFIX))
    return "\n".join(lines)


def _render_calls(calls: list[ToolCall]) -> str:
    parts = []
    for call in calls:
        if call.kind is ToolKind.USER_INPUT:
            parts.append(f"<tool>user_input</tool><input>{call.payload}</input>")
        else:
            parts.append(f"```{call.kind.value}\n{call.payload}\n```")
    return "\n\n".join(parts)


class Orchestrator:
    """Runs tasks for one session.

    Args:
        session: Working directory, security mode and sandbox policy.
        llm: Client used to talk to the model.
        executor: Runs tool calls. Defaults to a CodeExecutor using ``enforcer``.
        enforcer: Sandbox enforcer for the default executor. Defaults to the
            ``srt`` sandbox runtime.
        registry: Tools available through structured tool calls.
        config: Loop settings.

    Raises:
        ConfigurationError: If the default sandbox runtime is not available.
    """

    def __init__(
        self,
        session: Session,
        llm: LLMClient,
        executor: CodeExecutor | None = None,
        enforcer: SandboxEnforcer | None = None,
        registry: ToolRegistry | None = None,
        config: OrchestratorConfig | None = None,
    ):
        self.session = session
        self.llm = llm
        self.executor = executor or CodeExecutor(enforcer or SandboxRuntimeEnforcer())
        self.registry = registry if registry is not None else default_registry()
        self.config = config or OrchestratorConfig()
        self.state = AgentState()
        self.history: list[ChatMessage] = []

    @property
    def system_prompt(self) -> str:
        return self.config.system_prompt or build_system_prompt(self.session)

    def reset(self) -> None:
        """Forget the conversation and all tasks."""
        self.state = AgentState()
        self.history = []

    def change_working_directory(self, path: str) -> None:
        self.session.change_working_directory(path)

    async def run(self, prompt: str) -> RunOutcome:
        """Handle one user message.

        Resumes the current task if it is waiting for input, otherwise
        starts a new task. Never raises for model or execution failures.
        """
        self.state.touch()
        task = self.state.current_task

        if task is not None and task.status is TaskStatus.WAITING_FOR_INPUT:
            logger.info("Resuming task %s with user input", task.id)
            call = ToolCall(kind=ToolKind.USER_INPUT, payload=prompt)
            task.record(
                call,
                ToolResult(
                    tool_call_id=call.id,
                    kind=call.kind,
                    success=True,
                    output=prompt,
                    logs=[f"User input received: {prompt}"],
                ),
            )
            task.transition(TaskStatus.IN_PROGRESS)
        else:
            if task is not None and not task.is_terminal:
                # A previous run was abandoned mid-turn
                logger.warning("Abandoning unfinished task %s", task.id)
                self._fail(task)
            task = Task(description=prompt)
            task.transition(TaskStatus.IN_PROGRESS)
            self.state.current_task = task
            logger.info("Started task %s", task.id)

        self.history.append(ChatMessage(role="user", content=prompt))
        return await self._drive(task)

    async def _ask(self) -> tuple[str, list[ToolCall], bool]:
        """Call the model once.

        Returns:
            Tuple of (text, structured_calls, failed).
        """
        request = LLMRequest(
            system_prompt=self.system_prompt,
            history=list(self.history),
            tools=self.registry.definitions() if self.config.send_tool_schemas else None,
        )
        try:
            response = await asyncio.wait_for(
                self.llm.complete(request), timeout=self.config.llm_timeout_seconds
            )
        except asyncio.TimeoutError:
            reason = f"request timed out after {self.config.llm_timeout_seconds:g}s"
            logger.warning("LLM call failed: %s", reason)
            return f"{LLM_ERROR_PREFIX}{reason}", [], True
        except Exception as e:
            logger.warning("LLM call failed: %s", e)
            return f"{LLM_ERROR_PREFIX}{e}", [], True

        return response.content or "", self.registry.resolve(response.tool_calls), False

    async def _drive(self, task: Task) -> RunOutcome:
        session = self.session

        for turn in range(1, self.config.max_turns + 1):
            logger.debug("Task %s turn %d", task.id, turn)
            text, structured_calls, failed = await self._ask()

            if failed:
                self.history.append(ChatMessage(role="assistant", content=text))
                self.history.append(ChatMessage(role="user", content=RETRY_MESSAGE))
                continue

            calls = parse_tool_calls(text) + structured_calls
            content = "\n\n".join(p for p in (text, _render_calls(structured_calls)) if p)
            self.history.append(ChatMessage(role="assistant", content=content))

            if not calls:
                return self._complete(task, text)

            results = await self.executor.execute_batch(
                calls, session.policy, session.working_directory
            )
            for call, result in zip(calls, results):
                task.record(call, result)
            task.current_step += len(results)

            waiting = next(
                (r for r in results if r.kind is ToolKind.USER_INPUT and r.success), None
            )
            if waiting is not None:
                earlier = format_results([r for r in results if r is not waiting])
                if earlier:
                    self.history.append(
                        ChatMessage(role="user", content=f"Tool results:\n{earlier}")
                    )
                task.transition(TaskStatus.WAITING_FOR_INPUT)
                logger.info("Task %s waiting for user input", task.id)
                return RunOutcome(
                    text=waiting.output or "",
                    status=task.status,
                    task_id=task.id,
                    requires_input=True,
                    input_prompt=waiting.output,
                )

            formatted = format_results(results)
            self.history.append(ChatMessage(role="user", content=f"Tool results:\n{formatted}"))

            if is_task_complete(task, results, text):
                prose = strip_tool_calls(text).strip()
                return self._complete(task, "\n\n".join(p for p in (prose, formatted) if p))

        logger.info("Task %s failed after %d turns", task.id, self.config.max_turns)
        self._fail(task)
        return RunOutcome(text=FAILURE_MESSAGE, status=task.status, task_id=task.id)

    def _complete(self, task: Task, text: str) -> RunOutcome:
        task.transition(TaskStatus.COMPLETED)
        self.state.finish(task)
        logger.info("Task %s completed after %d step(s)", task.id, task.current_step)
        return RunOutcome(text=text, status=task.status, task_id=task.id)

    def _fail(self, task: Task) -> None:
        task.transition(TaskStatus.FAILED)
        self.state.finish(task)
