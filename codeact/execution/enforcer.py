"""Sandbox enforcement.

The executor never decides what a process may touch. It hands the policy
and the raw command to a ``SandboxEnforcer``, which returns the command
that actually gets spawned.
"""

from __future__ import annotations

import json
import logging
import os
import shlex
import shutil
import tempfile
from abc import ABC, abstractmethod

from ..errors import ConfigurationError
from .policy import SandboxPolicy

logger = logging.getLogger(__name__)

SANDBOX_RUNTIME_BINARY = "srt"


class SandboxEnforcer(ABC):
    """Wraps a shell command so that it runs under a SandboxPolicy."""

    @abstractmethod
    async def wrap(self, policy: SandboxPolicy, command: str) -> str:
        """Return the shell command that runs ``command`` under ``policy``."""

    async def close(self) -> None:
        """Release any resources held by the enforcer."""
        return None


class SandboxRuntimeEnforcer(SandboxEnforcer):
    """Enforcer backed by the ``srt`` sandbox runtime.

    The policy is written to a JSON settings file which ``srt`` reads on
    every invocation. The file is rewritten only when the policy changes.
    Settings live in a private directory that the enforced policy
    write-protects, so sandboxed code cannot edit the rules for later
    commands.
    """

    def __init__(self, binary: str = SANDBOX_RUNTIME_BINARY, settings_dir: str | None = None):
        resolved = shutil.which(binary)
        if resolved is None:
            raise ConfigurationError(
                f"Sandbox runtime '{binary}' not found on PATH. "
                "Install it or pass a different SandboxEnforcer."
            )
        self.binary = resolved
        self._settings_dir = settings_dir
        self._private_dir: str | None = None
        self._settings_path: str | None = None
        self._policy: SandboxPolicy | None = None

    @property
    def private_dir(self) -> str:
        """Directory holding the settings files, created on first use."""
        if self._private_dir is None:
            self._private_dir = tempfile.mkdtemp(prefix="codeact_srt_", dir=self._settings_dir)
        return self._private_dir

    def enforced_policy(self, policy: SandboxPolicy) -> SandboxPolicy:
        """Return ``policy`` with the settings directory write-protected."""
        private_dir = self.private_dir
        return SandboxPolicy(
            **{
                **policy.model_dump(),
                "deny_write": [*policy.deny_write, private_dir, os.path.realpath(private_dir)],
            }
        )

    def _write_settings(self, policy: SandboxPolicy) -> str:
        if self._settings_path is not None and self._policy == policy:
            return self._settings_path

        config = self.enforced_policy(policy).to_runtime_config()
        fd, path = tempfile.mkstemp(prefix="settings_", suffix=".json", dir=self.private_dir)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(config, f, indent=2)

        self._remove_settings()
        self._settings_path = path
        self._policy = policy
        logger.debug("Wrote sandbox settings to %s", path)
        return path

    def _remove_settings(self) -> None:
        if self._settings_path is not None:
            try:
                os.unlink(self._settings_path)
            except FileNotFoundError:
                pass
            self._settings_path = None
            self._policy = None

    async def wrap(self, policy: SandboxPolicy, command: str) -> str:
        settings = self._write_settings(policy)
        binary, settings = shlex.quote(self.binary), shlex.quote(settings)
        return f"{binary} --settings {settings} {shlex.quote(command)}"

    async def close(self) -> None:
        self._remove_settings()
        if self._private_dir is not None:
            shutil.rmtree(self._private_dir, ignore_errors=True)
            self._private_dir = None
