"""Per-session configuration: working directory, security mode and sandbox policy."""

import logging
import os

from pydantic import BaseModel, Field, ValidationError, field_validator

from ..errors import ConfigurationError
from ..execution.policy import PolicyOverrides, SandboxPolicy, build_policy
from ..execution.security import SecurityMode, expand_path

logger = logging.getLogger(__name__)


class SessionConfig(BaseModel):
    """Settings a session is created from."""

    working_directory: str = Field(default_factory=os.getcwd)
    mode: SecurityMode = SecurityMode.MODERATE
    overrides: PolicyOverrides = Field(default_factory=PolicyOverrides)

    @field_validator("working_directory")
    @classmethod
    def _absolute(cls, value: str) -> str:
        return os.path.abspath(expand_path(value))


class Session:
    """Holds one session's settings and its current sandbox policy.

    The policy is rebuilt, never mutated, when the working directory changes.

    Raises:
        ConfigurationError: If the settings are invalid or the working
            directory does not exist.
    """

    def __init__(
        self,
        working_directory: str | None = None,
        mode: SecurityMode | str = SecurityMode.MODERATE,
        overrides: PolicyOverrides | None = None,
    ):
        try:
            self.config = SessionConfig(
                working_directory=working_directory or os.getcwd(),
                mode=mode,
                overrides=overrides or PolicyOverrides(),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid session configuration: {e}") from e
        _require_directory(self.config.working_directory)
        self._policy = self._build()

    @classmethod
    def from_config(cls, config: SessionConfig) -> "Session":
        return cls(config.working_directory, config.mode, config.overrides)

    @property
    def working_directory(self) -> str:
        return self.config.working_directory

    @property
    def mode(self) -> SecurityMode:
        return self.config.mode

    @property
    def policy(self) -> SandboxPolicy:
        return self._policy

    def _build(self) -> SandboxPolicy:
        return build_policy(self.config.working_directory, self.config.mode, self.config.overrides)

    def change_working_directory(self, path: str) -> SandboxPolicy:
        """Switch to ``path`` and rebuild the policy for it."""
        resolved = os.path.abspath(expand_path(path))
        _require_directory(resolved)
        self.config = self.config.model_copy(update={"working_directory": resolved})
        self._policy = self._build()
        logger.info("Working directory changed to %s", resolved)
        return self._policy

    def requires_user_confirmation(self, operation: str) -> bool:
        return self.config.mode.requires_confirmation(operation)


def _require_directory(path: str) -> None:
    if not os.path.isdir(path):
        raise ConfigurationError(f"Working directory does not exist: {path}")
