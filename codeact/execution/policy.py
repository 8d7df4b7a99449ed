"""Sandbox policy construction.

Turns a security mode and a working directory into the concrete filesystem
and network rules handed to the sandbox runtime.
"""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .security import SecurityMode, domain_matches, expand_path, path_matches

logger = logging.getLogger(__name__)

# Name of the directory inside the working directory that is always write-protected
FORBIDDEN_AREA = "forbidden_area"

CREDENTIAL_PATHS = (
    "~/.ssh/id_*",
    "~/.aws/credentials",
    "~/.kube/config",
    "~/.config/gcloud/credentials.db",
    "/etc/shadow",
    "/etc/sudoers",
)

# Only denied in strict mode
STRICT_DENY_READ = ("/etc/passwd",)

SYSTEM_WRITE_DENY = (
    "/etc",
    "/bin",
    "/sbin",
    "/usr/bin",
    "/boot",
    "/proc",
    "/sys",
    "/System",
    "~/.ssh",
    "~/.aws",
    "~/.kube",
)

DEV_CACHE_DIRS = (
    "Downloads",
    "tmp",
    ".npm",
    ".yarn",
    ".cache",
    ".pnpm-store",
    ".cargo/registry",
)

DEFAULT_ALLOWED_DOMAINS = ("localhost", "127.0.0.1", "::1")


def _dedupe(values: Any) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for value in values or ():
        if value:
            seen.setdefault(value, None)
    return tuple(seen)


class SandboxPolicy(BaseModel):
    """Concrete filesystem and network rules for one session.

    Deny entries always win over allow entries. Policies are immutable;
    build a new one when the working directory changes.
    """

    model_config = ConfigDict(frozen=True)

    allow_write: tuple[str, ...] = Field(default=(), description="Paths that may be written")
    deny_write: tuple[str, ...] = Field(default=(), description="Paths that may never be written")
    deny_read: tuple[str, ...] = Field(default=(), description="Paths that may never be read")
    allowed_domains: tuple[str, ...] = Field(default=DEFAULT_ALLOWED_DOMAINS)
    denied_domains: tuple[str, ...] = Field(default=())
    allow_local_binding: bool = True

    @field_validator(
        "allow_write", "deny_write", "deny_read", "allowed_domains", "denied_domains", mode="before"
    )
    @classmethod
    def _unique(cls, value: Any) -> tuple[str, ...]:
        return _dedupe(value)

    def can_write(self, path: str) -> bool:
        if any(path_matches(path, entry) for entry in self.deny_write):
            return False
        return any(path_matches(path, entry) for entry in self.allow_write)

    def can_read(self, path: str) -> bool:
        return not any(path_matches(path, entry) for entry in self.deny_read)

    def allows_domain(self, host: str) -> bool:
        if any(domain_matches(host, entry) for entry in self.denied_domains):
            return False
        return any(domain_matches(host, entry) for entry in self.allowed_domains)

    def to_runtime_config(self) -> dict[str, Any]:
        """Render the settings document understood by the sandbox runtime."""
        return {
            "network": {
                "allowedDomains": list(self.allowed_domains),
                "deniedDomains": list(self.denied_domains),
                "allowLocalBinding": self.allow_local_binding,
            },
            "filesystem": {
                "denyRead": list(self.deny_read),
                "allowWrite": list(self.allow_write),
                "denyWrite": list(self.deny_write),
            },
        }


class PolicyOverrides(BaseModel):
    """Extra rules layered on top of a security mode's defaults."""

    extra_allow_write: list[str] = Field(default_factory=list)
    extra_deny_read: list[str] = Field(default_factory=list)
    extra_deny_write: list[str] = Field(default_factory=list)
    allowed_domains: list[str] | None = Field(
        default=None, description="Replaces the loopback-only default when set"
    )
    denied_domains: list[str] = Field(default_factory=list)
    allow_local_binding: bool = True


def default_write_paths() -> list[str]:
    """Device files and platform temp locations every process needs."""
    paths = ["/dev/stdout", "/dev/stderr", "/dev/null", "/dev/tty"]
    if sys.platform == "darwin":
        paths.extend(["/private/tmp", "/private/var/folders"])
    return paths


def dev_cache_paths() -> list[str]:
    home = os.path.expanduser("~")
    return [os.path.join(home, name) for name in DEV_CACHE_DIRS]


def build_policy(
    working_directory: str,
    mode: SecurityMode,
    overrides: PolicyOverrides | None = None,
) -> SandboxPolicy:
    """Build the sandbox policy for a working directory and security mode.

    The only filesystem access is an existence probe for the working
    directory's ``forbidden_area``, repeated on every call.

    Args:
        working_directory: Directory the session operates in.
        mode: Security mode selecting the default rules.
        overrides: Optional extra rules.

    Returns:
        A new immutable SandboxPolicy.
    """
    overrides = overrides or PolicyOverrides()
    workdir = os.path.abspath(expand_path(working_directory))

    allow_write = [tempfile.gettempdir(), workdir, *default_write_paths()]
    if mode is not SecurityMode.STRICT:
        allow_write.extend(dev_cache_paths())
    allow_write.extend(overrides.extra_allow_write)

    deny_read = list(CREDENTIAL_PATHS)
    if mode is SecurityMode.STRICT:
        deny_read.extend(STRICT_DENY_READ)
    deny_read.extend(overrides.extra_deny_read)

    deny_write = [*SYSTEM_WRITE_DENY, *overrides.extra_deny_write]
    forbidden = os.path.join(workdir, FORBIDDEN_AREA)
    if os.path.exists(forbidden):
        logger.debug("Write-protecting %s", forbidden)
        deny_write.append(forbidden)

    allowed_domains = (
        overrides.allowed_domains
        if overrides.allowed_domains is not None
        else list(DEFAULT_ALLOWED_DOMAINS)
    )

    policy = SandboxPolicy(
        allow_write=allow_write,
        deny_write=deny_write,
        deny_read=deny_read,
        allowed_domains=allowed_domains,
        denied_domains=overrides.denied_domains,
        allow_local_binding=overrides.allow_local_binding,
    )
    logger.debug(
        "Built %s policy for %s (%d writable, %d write-denied, %d read-denied)",
        mode.value,
        workdir,
        len(policy.allow_write),
        len(policy.deny_write),
        len(policy.deny_read),
    )
    return policy
