"""Tests for squarebuild.git.metadata."""

from __future__ import annotations

import subprocess
from pathlib import Path

from squarebuild.git import GitMetadata


def test_branch_and_commit_use_rev_parse(tmp_path: Path) -> None:
    calls = []

    def runner(args, *, cwd=None):
        calls.append((args, cwd))
        return "feature/x\n" if "--abbrev-ref" in args else "1a2b3c4\n"

    metadata = GitMetadata(tmp_path, runner=runner)

    assert metadata.branch() == "feature/x"
    assert metadata.commit() == "1a2b3c4"
    assert calls == [
        (["git", "rev-parse", "--abbrev-ref", "HEAD"], tmp_path),
        (["git", "rev-parse", "--short", "HEAD"], tmp_path),
    ]


def test_failed_lookups_return_empty_strings(tmp_path: Path) -> None:
    def failing(args, *, cwd=None):
        raise subprocess.CalledProcessError(128, args, stderr="not a git repository")

    assert GitMetadata(tmp_path, runner=failing).branch() == ""


def test_missing_git_binary_returns_empty_strings(tmp_path: Path) -> None:
    def missing(args, *, cwd=None):
        raise FileNotFoundError("git")

    assert GitMetadata(tmp_path, runner=missing).commit() == ""
