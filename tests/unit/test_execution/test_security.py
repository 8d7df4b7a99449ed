"""Tests for security utilities: modes, glob, path and domain matching."""

import os

import pytest

from codeact.execution.security import (
    SecurityMode,
    domain_matches,
    is_within_restriction,
    match_glob,
    path_matches,
)


class TestSecurityMode:
    """Tests for SecurityMode."""

    def test_values(self):
        """The three modes have stable string values."""
        assert [m.value for m in SecurityMode] == ["strict", "moderate", "inquire"]

    def test_rejects_unknown_mode(self):
        """Unknown mode strings raise at construction."""
        with pytest.raises(ValueError):
            SecurityMode("permissive")

    def test_every_mode_has_a_description(self):
        """Each mode carries a human-readable description."""
        for mode in SecurityMode:
            assert mode.description

    def test_only_inquire_requires_confirmation_for_writes(self):
        """Inquire mode asks before writes; other modes never ask."""
        assert SecurityMode.INQUIRE.requires_confirmation("write") is True
        assert SecurityMode.INQUIRE.requires_confirmation("read") is False
        assert SecurityMode.STRICT.requires_confirmation("write") is False
        assert SecurityMode.MODERATE.requires_confirmation("write") is False


class TestMatchGlob:
    """Tests for match_glob."""

    def test_star_matches_any_sequence(self):
        """* matches any characters."""
        assert match_glob("/home/u/.ssh/id_rsa", "/home/u/.ssh/id_*")

    def test_question_mark_matches_one_character(self):
        """? matches exactly one character."""
        assert match_glob("file1.txt", "file?.txt")
        assert not match_glob("file12.txt", "file?.txt")

    def test_dots_are_literal(self):
        """Regex specials in the pattern are escaped."""
        assert not match_glob("fileXtxt", "file.txt")


class TestIsWithinRestriction:
    """Tests for is_within_restriction."""

    def test_path_inside_directory(self):
        """A child path is within its parent."""
        assert is_within_restriction("/etc/x", "/etc")

    def test_directory_itself(self):
        """The directory itself is within the restriction."""
        assert is_within_restriction("/etc", "/etc")

    def test_sibling_prefix_is_not_within(self):
        """/etcetera is not inside /etc."""
        assert not is_within_restriction("/etcetera", "/etc")


class TestPathMatches:
    """Tests for path_matches."""

    def test_plain_entry_covers_subtree(self):
        """A plain directory entry covers everything below it."""
        assert path_matches("/etc/nginx/nginx.conf", "/etc")

    def test_home_is_expanded(self):
        """~ in entries and paths refers to the home directory."""
        home = os.path.expanduser("~")
        assert path_matches(os.path.join(home, ".ssh", "config"), "~/.ssh")
        assert path_matches("~/.aws/credentials", "~/.aws/credentials")

    def test_glob_entry(self):
        """Entries with glob characters use glob semantics."""
        home = os.path.expanduser("~")
        assert path_matches(os.path.join(home, ".ssh", "id_ed25519"), "~/.ssh/id_*")
        assert not path_matches(os.path.join(home, ".ssh", "known_hosts"), "~/.ssh/id_*")

    def test_relative_paths_resolve_against_cwd(self, tmp_dir, monkeypatch):
        """Relative paths are made absolute first."""
        monkeypatch.chdir(tmp_dir)
        assert path_matches("notes.txt", os.getcwd())


class TestDomainMatches:
    """Tests for domain_matches."""

    def test_exact_match_is_case_insensitive(self):
        """Exact entries ignore case."""
        assert domain_matches("LocalHost", "localhost")

    def test_exact_entry_does_not_match_subdomain(self):
        """Exact entries do not cover subdomains."""
        assert not domain_matches("api.example.com", "example.com")

    def test_wildcard_matches_subdomains_and_apex(self):
        """*.example.com covers example.com and all of its subdomains."""
        assert domain_matches("example.com", "*.example.com")
        assert domain_matches("a.b.example.com", "*.example.com")

    def test_wildcard_does_not_match_lookalike(self):
        """*.example.com does not cover badexample.com."""
        assert not domain_matches("badexample.com", "*.example.com")
