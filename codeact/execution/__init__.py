"""Sandboxed code execution: policies, enforcement and the executor."""

from .enforcer import SandboxEnforcer, SandboxRuntimeEnforcer
from .executor import CodeExecutor, ExecutorConfig
from .output import strip_ansi, truncate_output
from .policy import PolicyOverrides, SandboxPolicy, build_policy
from .security import SecurityMode, domain_matches, match_glob, path_matches

__all__ = [
    "CodeExecutor",
    "ExecutorConfig",
    "PolicyOverrides",
    "SandboxEnforcer",
    "SandboxPolicy",
    "SandboxRuntimeEnforcer",
    "SecurityMode",
    "build_policy",
    "domain_matches",
    "match_glob",
    "path_matches",
    "strip_ansi",
    "truncate_output",
]
