"""The task loop and the pieces it is built from."""

from .completion import COMPLETION_MARKER, CompletionContext, is_task_complete
from .parser import parse_tool_calls, strip_tool_calls
from .prompt import build_system_prompt
from .session import Session, SessionConfig
from .task_loop import (
    FAILURE_MESSAGE,
    LLM_ERROR_PREFIX,
    Orchestrator,
    OrchestratorConfig,
    RunOutcome,
    format_results,
)

__all__ = [
    "COMPLETION_MARKER",
    "CompletionContext",
    "FAILURE_MESSAGE",
    "LLM_ERROR_PREFIX",
    "Orchestrator",
    "OrchestratorConfig",
    "RunOutcome",
    "Session",
    "SessionConfig",
    "build_system_prompt",
    "format_results",
    "is_task_complete",
    "parse_tool_calls",
    "strip_tool_calls",
]
