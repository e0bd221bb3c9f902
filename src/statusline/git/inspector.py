"""Read the current branch from a working directory."""

import logging
import os
import subprocess
from typing import List, Optional

from ..core import Resolved
from ..core.exceptions import GitError

logger = logging.getLogger(__name__)

DETACHED = "detached"
UNKNOWN = "unknown"


class GitInspector:
    """
    Query git for the branch checked out in a directory.

    Failures never leave this class: callers get a ``Resolved`` whose
    value is ``None`` when no branch can be shown.
    """

    def __init__(self, timeout: float = 2.0, git_binary: str = "git"):
        self.timeout = timeout
        self.git_binary = git_binary

    def current_branch(self, cwd: Optional[str]) -> Resolved[Optional[str]]:
        """
        Get the branch name for ``cwd``.

        Returns:
            The branch name, ``"detached"`` for a detached HEAD,
            ``"unknown"`` when git reports a repository without a
            resolvable HEAD, or ``None`` outside version control.
        """
        if not cwd:
            return Resolved.fallback(None, "no working directory in session context")

        try:
            return Resolved.ok(self._branch(cwd))
        except GitError as e:
            logger.debug(str(e))
            return Resolved.fallback(None, str(e))

    def _branch(self, cwd: str) -> str:
        if not os.path.isdir(cwd):
            raise GitError(cwd, "directory does not exist")

        branch = self._run(cwd, ["branch", "--show-current"])
        if branch:
            return branch

        # Empty output inside a repository means HEAD is not on a branch
        try:
            self._run(cwd, ["rev-parse", "--verify", "--quiet", "HEAD"])
        except GitError:
            return UNKNOWN
        return DETACHED

    def _run(self, cwd: str, args: List[str]) -> str:
        """Run a git command and return stripped stdout."""
        try:
            result = subprocess.run(
                [self.git_binary, "-C", cwd] + args,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise GitError(cwd, f"{self.git_binary} executable not found")
        except (subprocess.TimeoutExpired, subprocess.SubprocessError, OSError) as e:
            raise GitError(cwd, str(e))

        if result.returncode != 0:
            raise GitError(cwd, result.stderr.strip() or f"exit status {result.returncode}")
        return result.stdout.strip()
