"""Core data types: tool calls, results, tasks and agent state."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from ..errors import InvalidTransitionError


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


# -- Tool invocations ---------------------------------------------------------


class ToolKind(str, Enum):
    """Kind of action a tool call performs."""

    USER_INPUT = "user_input"
    BASH = "bash"
    JAVASCRIPT = "javascript"
    PYTHON = "python"


class FailureKind(str, Enum):
    """Why a tool call did not succeed."""

    EXECUTION = "execution"  # non-zero exit
    TIMEOUT = "timeout"
    INTERNAL = "internal"  # the process could not be prepared or started


class ToolCall(BaseModel):
    """A single action requested by the model."""

    id: str = Field(default_factory=_new_id, description="Unique call identifier")
    kind: ToolKind = Field(description="What kind of action this is")
    payload: str = Field(description="Source code, or the prompt shown to the user")
    issued_at: datetime = Field(default_factory=_now)


class ToolResult(BaseModel):
    """Outcome of running one ToolCall."""

    tool_call_id: str
    kind: ToolKind
    success: bool
    output: str | None = Field(default=None, description="Captured stdout")
    error: str | None = Field(
        default=None, description="Failure message, set when success is False"
    )
    logs: list[str] = Field(
        default_factory=list, description="stdout lines and 'stderr: ' prefixed stderr lines"
    )
    execution_time_ms: int = 0
    exit_code: int | None = None
    failure: FailureKind | None = None


# -- Tasks ---------------------------------------------------------------------


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    WAITING_FOR_INPUT = "waiting_for_input"
    COMPLETED = "completed"
    FAILED = "failed"


_ALLOWED_TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.PENDING: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset(
        {TaskStatus.WAITING_FOR_INPUT, TaskStatus.COMPLETED, TaskStatus.FAILED}
    ),
    TaskStatus.WAITING_FOR_INPUT: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.COMPLETED: frozenset(),
    TaskStatus.FAILED: frozenset(),
}


class Task(BaseModel):
    """A user request being worked on by the agent.

    ``tool_calls`` and ``results`` are parallel lists: the i-th result belongs
    to the i-th call. ``current_step`` counts executed calls.
    """

    id: str = Field(default_factory=_new_id)
    description: str
    status: TaskStatus = TaskStatus.PENDING
    tool_calls: list[ToolCall] = Field(default_factory=list)
    results: list[ToolResult] = Field(default_factory=list)
    current_step: int = 0
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)

    @property
    def is_terminal(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    def can_transition(self, target: TaskStatus) -> bool:
        return target in _ALLOWED_TRANSITIONS[self.status]

    def transition(self, target: TaskStatus) -> None:
        """Move the task to ``target``.

        Raises:
            InvalidTransitionError: If ``target`` is not reachable from the current status.
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self.status.value, target.value)
        self.status = target
        self.updated_at = _now()

    def record(self, call: ToolCall, result: ToolResult) -> None:
        """Append one executed call and its result."""
        self.tool_calls.append(call)
        self.results.append(result)
        self.updated_at = _now()


class AgentState(BaseModel):
    """Session-level bookkeeping of the current and finished tasks."""

    current_task: Task | None = None
    completed_tasks: list[Task] = Field(default_factory=list)
    session_start: datetime = Field(default_factory=_now)
    last_activity: datetime = Field(default_factory=_now)

    def touch(self) -> None:
        self.last_activity = _now()

    def finish(self, task: Task) -> None:
        """Move a Completed or Failed task out of ``current_task``."""
        if not task.is_terminal:
            raise ValueError(f"Task {task.id} is not finished (status: {task.status.value})")
        self.completed_tasks.append(task)
        if self.current_task is task:
            self.current_task = None
        self.touch()


# -- Conversation --------------------------------------------------------------


class ChatMessage(BaseModel):
    role: Literal["system", "user", "assistant"]
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}
