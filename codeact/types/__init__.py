from .types import (
    AgentState,
    ChatMessage,
    FailureKind,
    Task,
    TaskStatus,
    ToolCall,
    ToolKind,
    ToolResult,
)

__all__ = [
    "AgentState",
    "ChatMessage",
    "FailureKind",
    "Task",
    "TaskStatus",
    "ToolCall",
    "ToolKind",
    "ToolResult",
]
