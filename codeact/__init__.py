__version__ = "0.1.0"

# Core imports
from .agents import (
    COMPLETION_MARKER,
    FAILURE_MESSAGE,
    LLM_ERROR_PREFIX,
    Orchestrator,
    OrchestratorConfig,
    RunOutcome,
    Session,
    SessionConfig,
    build_system_prompt,
    format_results,
    is_task_complete,
    parse_tool_calls,
    strip_tool_calls,
)
from .errors import CodeActError, ConfigurationError, InvalidTransitionError

# Execution
from .execution import (
    CodeExecutor,
    ExecutorConfig,
    PolicyOverrides,
    SandboxEnforcer,
    SandboxPolicy,
    SandboxRuntimeEnforcer,
    SecurityMode,
    build_policy,
)

# LLM
from .llm import LLMClient, LLMProvider, LLMRequest, LLMResponse, ProviderLLMClient, get_provider

# Tools
from .tools import Tool, ToolRegistry, create_ask_user_tool, create_code_tool, default_registry

# Types
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
    "COMPLETION_MARKER",
    "ChatMessage",
    "CodeActError",
    "CodeExecutor",
    "ConfigurationError",
    "ExecutorConfig",
    "FAILURE_MESSAGE",
    "FailureKind",
    "InvalidTransitionError",
    "LLMClient",
    "LLMProvider",
    "LLMRequest",
    "LLMResponse",
    "LLM_ERROR_PREFIX",
    "Orchestrator",
    "OrchestratorConfig",
    "PolicyOverrides",
    "ProviderLLMClient",
    "RunOutcome",
    "SandboxEnforcer",
    "SandboxPolicy",
    "SandboxRuntimeEnforcer",
    "SecurityMode",
    "Session",
    "SessionConfig",
    "Task",
    "TaskStatus",
    "Tool",
    "ToolCall",
    "ToolKind",
    "ToolRegistry",
    "ToolResult",
    "build_policy",
    "build_system_prompt",
    "create_ask_user_tool",
    "create_code_tool",
    "default_registry",
    "format_results",
    "get_provider",
    "is_task_complete",
    "parse_tool_calls",
    "strip_tool_calls",
]
