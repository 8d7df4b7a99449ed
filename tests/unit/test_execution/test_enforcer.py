"""Tests for the sandbox runtime enforcer."""

import json
import os
import shlex

import pytest

from codeact.errors import ConfigurationError
from codeact.execution.enforcer import SandboxRuntimeEnforcer
from codeact.execution.policy import PolicyOverrides, build_policy
from codeact.execution.security import SecurityMode

FAKE_SRT = "/opt/sandbox/bin/srt"


@pytest.fixture
def srt_on_path(monkeypatch):
    monkeypatch.setattr(
        "codeact.execution.enforcer.shutil.which",
        lambda binary: FAKE_SRT if binary == "srt" else None,
    )


class TestSandboxRuntimeEnforcerInit:
    """Tests for construction."""

    def test_missing_runtime_raises_configuration_error(self, monkeypatch):
        """A missing srt binary is a configuration error."""
        monkeypatch.setattr("codeact.execution.enforcer.shutil.which", lambda binary: None)
        with pytest.raises(ConfigurationError, match="not found"):
            SandboxRuntimeEnforcer()

    def test_resolves_binary(self, srt_on_path):
        """The binary path is resolved from PATH."""
        assert SandboxRuntimeEnforcer().binary == FAKE_SRT


class TestSandboxRuntimeEnforcerWrap:
    """Tests for wrap."""

    @pytest.mark.asyncio
    async def test_wraps_command_with_settings_file(self, srt_on_path, tmp_dir):
        """The command is passed to srt together with a settings file."""
        enforcer = SandboxRuntimeEnforcer(settings_dir=tmp_dir)
        policy = build_policy(tmp_dir, SecurityMode.STRICT)

        wrapped = await enforcer.wrap(policy, "echo 'hi there'")

        args = shlex.split(wrapped)
        assert args[0] == FAKE_SRT
        assert args[1] == "--settings"
        assert args[3] == "echo 'hi there'"
        with open(args[2], encoding="utf-8") as f:
            assert json.load(f) == enforcer.enforced_policy(policy).to_runtime_config()
        await enforcer.close()

    @pytest.mark.asyncio
    async def test_reuses_settings_for_same_policy(self, srt_on_path, tmp_dir):
        """The settings file is written once per policy."""
        enforcer = SandboxRuntimeEnforcer(settings_dir=tmp_dir)
        policy = build_policy(tmp_dir, SecurityMode.STRICT)

        first = shlex.split(await enforcer.wrap(policy, "true"))[2]
        second = shlex.split(await enforcer.wrap(policy, "false"))[2]

        assert first == second
        await enforcer.close()

    @pytest.mark.asyncio
    async def test_rewrites_settings_when_policy_changes(self, srt_on_path, tmp_dir):
        """A new policy gets a new settings file and the old one is removed."""
        enforcer = SandboxRuntimeEnforcer(settings_dir=tmp_dir)
        first_policy = build_policy(tmp_dir, SecurityMode.STRICT)
        second_policy = build_policy(
            tmp_dir, SecurityMode.STRICT, PolicyOverrides(denied_domains=["example.com"])
        )

        first = shlex.split(await enforcer.wrap(first_policy, "true"))[2]
        second = shlex.split(await enforcer.wrap(second_policy, "true"))[2]

        assert first != second
        assert not os.path.exists(first)
        with open(second, encoding="utf-8") as f:
            assert json.load(f)["network"]["deniedDomains"] == ["example.com"]
        await enforcer.close()

    @pytest.mark.asyncio
    async def test_close_removes_settings(self, srt_on_path, tmp_dir):
        """close() deletes the settings file."""
        enforcer = SandboxRuntimeEnforcer(settings_dir=tmp_dir)
        policy = build_policy(tmp_dir, SecurityMode.STRICT)
        settings = shlex.split(await enforcer.wrap(policy, "true"))[2]

        await enforcer.close()

        assert not os.path.exists(settings)

    @pytest.mark.asyncio
    async def test_close_removes_private_dir(self, srt_on_path, tmp_dir):
        """close() deletes the directory holding the settings."""
        enforcer = SandboxRuntimeEnforcer(settings_dir=tmp_dir)
        await enforcer.wrap(build_policy(tmp_dir, SecurityMode.STRICT), "true")
        private_dir = enforcer.private_dir

        await enforcer.close()

        assert not os.path.exists(private_dir)


class TestSettingsProtection:
    """Sandboxed commands must not be able to edit their own rules."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("mode", list(SecurityMode))
    async def test_settings_file_is_not_writable(self, srt_on_path, tmp_dir, mode):
        """The settings file sits under a write-denied directory in every mode."""
        enforcer = SandboxRuntimeEnforcer()
        policy = build_policy(tmp_dir, mode)

        settings = shlex.split(await enforcer.wrap(policy, "echo hi"))[2]

        assert policy.can_write(os.path.dirname(settings))
        assert not enforcer.enforced_policy(policy).can_write(settings)
        await enforcer.close()

    @pytest.mark.asyncio
    async def test_runtime_config_denies_settings_dir(self, srt_on_path, tmp_dir):
        """The written settings deny writes to their own directory."""
        enforcer = SandboxRuntimeEnforcer(settings_dir=tmp_dir)
        policy = build_policy(tmp_dir, SecurityMode.MODERATE)

        settings = shlex.split(await enforcer.wrap(policy, "true"))[2]

        with open(settings, encoding="utf-8") as f:
            deny_write = json.load(f)["filesystem"]["denyWrite"]
        assert enforcer.private_dir in deny_write
        assert os.path.dirname(settings) == enforcer.private_dir
        for entry in policy.deny_write:
            assert entry in deny_write
        await enforcer.close()

    def test_enforced_policy_keeps_other_rules(self, srt_on_path, tmp_dir):
        """Only deny_write grows."""
        enforcer = SandboxRuntimeEnforcer(settings_dir=tmp_dir)
        policy = build_policy(tmp_dir, SecurityMode.STRICT)

        enforced = enforcer.enforced_policy(policy)

        assert enforced.allow_write == policy.allow_write
        assert enforced.deny_read == policy.deny_read
        assert enforced.allowed_domains == policy.allowed_domains
        assert enforced.can_write(os.path.join(tmp_dir, "notes.txt"))
