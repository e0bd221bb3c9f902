"""Tests for git branch inspection."""

import shutil
import subprocess
from unittest.mock import patch

import pytest

from statusline.git import DETACHED, UNKNOWN, GitInspector


def completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=["git"], returncode=returncode, stdout=stdout, stderr=stderr)


class TestGitInspectorMocked:
    def test_named_branch(self, tmp_path):
        with patch("statusline.git.inspector.subprocess.run", return_value=completed("main\n")) as run:
            resolved = GitInspector().current_branch(str(tmp_path))
        assert resolved.value == "main"
        assert not resolved.degraded
        assert run.call_args[0][0] == ["git", "-C", str(tmp_path), "branch", "--show-current"]

    def test_detached_head(self, tmp_path):
        results = [completed(""), completed("abc123\n")]
        with patch("statusline.git.inspector.subprocess.run", side_effect=results):
            assert GitInspector().current_branch(str(tmp_path)).value == DETACHED

    def test_unresolvable_head(self, tmp_path):
        results = [completed(""), completed("", returncode=1)]
        with patch("statusline.git.inspector.subprocess.run", side_effect=results):
            assert GitInspector().current_branch(str(tmp_path)).value == UNKNOWN

    def test_not_a_repository(self, tmp_path):
        result = completed(returncode=128, stderr="fatal: not a git repository")
        with patch("statusline.git.inspector.subprocess.run", return_value=result):
            resolved = GitInspector().current_branch(str(tmp_path))
        assert resolved.value is None
        assert resolved.degraded
        assert "not a git repository" in resolved.reason

    def test_git_missing(self, tmp_path):
        with patch("statusline.git.inspector.subprocess.run", side_effect=FileNotFoundError()):
            resolved = GitInspector().current_branch(str(tmp_path))
        assert resolved.value is None
        assert resolved.degraded

    def test_timeout(self, tmp_path):
        error = subprocess.TimeoutExpired(cmd="git", timeout=2)
        with patch("statusline.git.inspector.subprocess.run", side_effect=error):
            assert GitInspector().current_branch(str(tmp_path)).value is None

    def test_undecodable_output_is_replaced(self, tmp_path):
        with patch("statusline.git.inspector.subprocess.run", return_value=completed("feat-�\n")) as run:
            resolved = GitInspector().current_branch(str(tmp_path))
        assert run.call_args.kwargs["errors"] == "replace"
        assert resolved.value == "feat-�"
        assert not resolved.degraded

    def test_missing_directory(self, tmp_path):
        with patch("statusline.git.inspector.subprocess.run") as run:
            resolved = GitInspector().current_branch(str(tmp_path / "gone"))
        assert resolved.value is None
        run.assert_not_called()

    def test_no_cwd(self):
        assert GitInspector().current_branch(None).value is None


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
class TestGitInspectorReal:
    def test_real_repository(self, tmp_path):
        subprocess.run(["git", "init", "-q", "-b", "feature-x", str(tmp_path)], check=True)
        assert GitInspector().current_branch(str(tmp_path)).value == "feature-x"

    def test_non_utf8_branch_name(self, tmp_path):
        subprocess.run(["git", "init", "-q", str(tmp_path)], check=True)
        created = subprocess.run(
            ["git", "-C", str(tmp_path), "symbolic-ref", "HEAD", b"refs/heads/caf\xe9"],
            capture_output=True
        )
        if created.returncode != 0:
            pytest.skip("git rejected the branch name")
        assert GitInspector().current_branch(str(tmp_path)).value == "caf�"

    def test_plain_directory(self, tmp_path):
        # tmp_path may live inside a repository on some machines
        inside = subprocess.run(
            ["git", "-C", str(tmp_path), "rev-parse", "--is-inside-work-tree"],
            capture_output=True, text=True
        )
        if inside.returncode == 0:
            pytest.skip("temporary directory is inside a git work tree")
        assert GitInspector().current_branch(str(tmp_path)).value is None
