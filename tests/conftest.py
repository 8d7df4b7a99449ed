"""Shared pytest configuration and fixtures."""

import re
import tempfile

import pytest

from codeact.execution.enforcer import SandboxEnforcer
from codeact.execution.policy import SandboxPolicy
from codeact.execution.security import path_matches
from codeact.llm.client import LLMClient, LLMRequest
from codeact.llm.providers.base import LLMResponse

_ABSOLUTE_PATH_RE = re.compile(r"(?<![\w.])/[\w./-]+")


class PassthroughEnforcer(SandboxEnforcer):
    """Runs commands unchanged and remembers what it was asked to wrap."""

    def __init__(self):
        self.wrapped: list[tuple[SandboxPolicy, str]] = []

    async def wrap(self, policy: SandboxPolicy, command: str) -> str:
        self.wrapped.append((policy, command))
        return command


class DenyWriteEnforcer(PassthroughEnforcer):
    """Rejects any command that mentions a path the policy write-protects."""

    async def wrap(self, policy: SandboxPolicy, command: str) -> str:
        await super().wrap(policy, command)
        for path in _ABSOLUTE_PATH_RE.findall(command):
            if any(path_matches(path, entry) for entry in policy.deny_write):
                return f"echo 'sandbox: write to {path} denied' >&2; exit 1"
        return command


class ScriptedLLM(LLMClient):
    """LLMClient that replays canned replies.

    Each reply is a string, an LLMResponse or an exception to raise. Once
    the script runs out, the last reply is repeated.
    """

    def __init__(self, *replies):
        self.replies = list(replies)
        self.requests: list[LLMRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def complete(self, request: LLMRequest) -> LLMResponse:
        self.requests.append(request)
        reply = self.replies[min(len(self.requests), len(self.replies)) - 1]
        if isinstance(reply, BaseException):
            raise reply
        if isinstance(reply, LLMResponse):
            return reply
        return LLMResponse(content=reply)


@pytest.fixture
def tmp_dir():
    """Create and clean up a temporary directory."""
    with tempfile.TemporaryDirectory() as d:
        yield d


@pytest.fixture
def enforcer():
    return PassthroughEnforcer()


@pytest.fixture
def deny_write_enforcer():
    return DenyWriteEnforcer()


@pytest.fixture
def scripted_llm():
    """Factory for ScriptedLLM clients."""
    return ScriptedLLM
