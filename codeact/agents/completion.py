"""Completion heuristics for tasks.

After each turn the task loop asks whether the task is finished. The answer
comes from an ordered list of rules; the first rule with an opinion wins.
Only the explicit completion marker is authoritative, the keyword rules are
best-effort.
"""

import logging
import re
from collections.abc import Callable

from pydantic import BaseModel, Field

from ..types.types import Task, ToolKind, ToolResult
from .parser import strip_tool_calls

logger = logging.getLogger(__name__)

COMPLETION_MARKER = "TASK COMPLETE"

MULTI_STEP_RE = re.compile(
    r"\b(and|also|again|then|after that|afterwards|next|finally|followed by)\b", re.IGNORECASE
)

ACTION_PATTERNS = {
    "create": re.compile(r"\b(create|creates|creating|make|makes|generate|generates)\b", re.I),
    "read": re.compile(r"\b(read|reads|reading|open|opens)\b", re.I),
    "write": re.compile(r"\b(write|writes|writing|save|saves)\b", re.I),
    "run": re.compile(r"\b(run|runs|running|execute|executes|executing)\b", re.I),
    "analyze": re.compile(
        r"\b(analy[sz]e|analy[sz]es|explain|explains|summari[sz]e|tell me)\b", re.I
    ),
    "check": re.compile(r"\b(check|checks|verify|verifies|inspect|inspects|list|lists)\b", re.I),
}

SUCCESS_MARKERS = ("success", "created", "written", "saved", "wrote")

# Analysis tasks need a reply of some substance
MIN_ANALYSIS_OUTPUT_CHARS = 50


class CompletionContext(BaseModel):
    """Everything the completion rules look at for one turn."""

    task: Task
    results: list[ToolResult] = Field(default_factory=list, description="Results of this turn")
    assistant_text: str = ""

    def actions(self) -> set[str]:
        description = self.task.description
        return {name for name, pattern in ACTION_PATTERNS.items() if pattern.search(description)}


CompletionRule = Callable[[CompletionContext], bool | None]


def any_failed(ctx: CompletionContext) -> bool | None:
    if any(not r.success for r in ctx.results):
        return False
    return None


def awaiting_user_input(ctx: CompletionContext) -> bool | None:
    if any(r.kind is ToolKind.USER_INPUT for r in ctx.results):
        return False
    return None


def has_completion_marker(ctx: CompletionContext) -> bool | None:
    if COMPLETION_MARKER in strip_tool_calls(ctx.assistant_text):
        return True
    return None


def is_multi_step(ctx: CompletionContext) -> bool | None:
    if MULTI_STEP_RE.search(ctx.task.description) or len(ctx.actions()) > 1:
        return False
    return None


def single_step_heuristics(ctx: CompletionContext) -> bool | None:
    """Keyword checks for single-action tasks.

    Creation needs a success word in the output; running or inspecting needs
    any successful result; analysis needs a non-trivial last output.
    """
    actions = ctx.actions()
    succeeded = [r for r in ctx.results if r.success]

    if actions & {"create", "write"}:
        for r in succeeded:
            text = " ".join([r.output or "", *r.logs]).lower()
            if any(marker in text for marker in SUCCESS_MARKERS):
                return True
        return False

    if actions & {"run", "check"}:
        return bool(succeeded)

    if "analyze" in actions:
        if not ctx.results:
            return False
        last = ctx.results[-1].output or ""
        return len(last.strip()) > MIN_ANALYSIS_OUTPUT_CHARS

    return None


def all_succeeded(ctx: CompletionContext) -> bool | None:
    return (
        len(ctx.results) >= 1
        and all(r.success for r in ctx.results)
        and ctx.task.current_step >= 1
    )


RULES: list[tuple[str, CompletionRule]] = [
    ("any_failed", any_failed),
    ("awaiting_user_input", awaiting_user_input),
    ("completion_marker", has_completion_marker),
    ("multi_step", is_multi_step),
    ("single_step", single_step_heuristics),
    ("all_succeeded", all_succeeded),
]


def is_task_complete(task: Task, results: list[ToolResult], assistant_text: str = "") -> bool:
    """Decide whether ``task`` is finished after the latest turn.

    Args:
        task: The task being worked on.
        results: Tool results produced this turn.
        assistant_text: The model reply for this turn.

    Returns:
        True if the task should be marked Completed.
    """
    ctx = CompletionContext(task=task, results=results, assistant_text=assistant_text or "")
    for name, rule in RULES:
        verdict = rule(ctx)
        if verdict is not None:
            logger.debug("Task %s completion decided by %s: %s", task.id, name, verdict)
            return verdict
    return False
