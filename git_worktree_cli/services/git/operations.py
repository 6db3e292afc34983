"""Git operations service"""

import os
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import git
from git.exc import GitCommandNotFound

from git_worktree_cli.constants import (
    DEFAULT_MAIN_BRANCHES,
    GIT_REMOTES_ORIGIN_PREFIX,
    REMOTE_NAME,
)
from git_worktree_cli.exceptions import GitOperationError
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]

UNMERGED_BRANCH_MARKER = "not fully merged"


class GitOperations:
    """Service for running git commands.

    Every command runs to completion in the given working directory; a
    non-zero exit raises GitOperationError carrying git's stderr verbatim.
    """

    def _get_git(self, cwd: Optional[PathLike]) -> git.Git:
        """Get a git.Git command wrapper bound to a working directory.

        A fresh wrapper per call keeps no state between commands.
        """
        return git.Git(str(cwd) if cwd is not None else None)

    def execute(self, args: Sequence[str], cwd: Optional[PathLike] = None) -> str:
        """Run ``git <args>`` and return its stripped stdout.

        Raises:
            GitOperationError: git exited non-zero or could not be started
        """
        command = ["git", *args]
        logger.debug(f"Running {' '.join(command)} in {cwd or os.getcwd()}")
        try:
            status, stdout, stderr = self._get_git(cwd).execute(
                command,
                with_extended_output=True,
                with_exceptions=False,
            )
        except GitCommandNotFound as e:
            raise GitOperationError(" ".join(args), f"could not run git: {e}") from e
        except OSError as e:
            raise GitOperationError(" ".join(args), str(e)) from e

        if status != 0:
            raise GitOperationError(" ".join(args), (stderr or stdout or "").strip(), status)

        if stderr:
            logger.debug(f"git {' '.join(args)}: {stderr.strip()}")
        return (stdout or "").strip()

    def try_execute(self, args: Sequence[str], cwd: Optional[PathLike] = None) -> Optional[str]:
        """Like execute(), but returns None instead of raising on failure."""
        try:
            return self.execute(args, cwd)
        except GitOperationError as e:
            logger.debug(str(e))
            return None

    def get_git_root(self, start: Optional[PathLike] = None) -> Optional[Path]:
        """Top-level directory of the checkout containing start, if any."""
        if start is not None and not Path(start).is_dir():
            return None
        output = self.try_execute(["rev-parse", "--show-toplevel"], start)
        if not output:
            return None
        return Path(output)

    def get_remote_origin_url(self, path: Optional[PathLike] = None) -> Optional[str]:
        if path is not None and not Path(path).is_dir():
            return None
        return self.try_execute(["remote", "get-url", REMOTE_NAME], path) or None

    def get_current_branch(self, repo_path: PathLike) -> str:
        return self.execute(["symbolic-ref", "--short", "HEAD"], repo_path)

    def get_remote_default_branch(self, repo_path: PathLike) -> str:
        """Default branch of origin.

        Tries origin/HEAD, then the usual main branch names on origin, then
        the currently checked out branch.
        """
        ref = self.try_execute(["symbolic-ref", f"{GIT_REMOTES_ORIGIN_PREFIX}HEAD"], repo_path)
        if ref and ref.startswith(GIT_REMOTES_ORIGIN_PREFIX):
            return ref[len(GIT_REMOTES_ORIGIN_PREFIX):]

        for branch in DEFAULT_MAIN_BRANCHES:
            if self.try_execute(["rev-parse", "--verify", "--quiet", f"{REMOTE_NAME}/{branch}"], repo_path):
                return branch

        return self.get_current_branch(repo_path)

    def fetch_origin(self, cwd: PathLike) -> None:
        self.execute(["fetch", REMOTE_NAME], cwd)

    def branch_exists(self, cwd: PathLike, branch_name: str) -> Tuple[bool, bool]:
        """Check whether a branch exists locally and on origin.

        Returns:
            (local_exists, remote_exists)
        """
        local = self.try_execute(["branch", "--list", branch_name], cwd) or ""
        remote = self.try_execute(["branch", "-r", "--list", f"{REMOTE_NAME}/{branch_name}"], cwd) or ""
        return bool(local.strip()), bool(remote.strip())

    def list_worktrees_porcelain(self, cwd: PathLike) -> str:
        return self.execute(["worktree", "list", "--porcelain"], cwd)

    def add_worktree(
        self,
        cwd: PathLike,
        path: PathLike,
        branch_name: str,
        new_branch: bool = False,
        start_point: Optional[str] = None,
        track: bool = True,
    ) -> str:
        """Create a worktree.

        Args:
            cwd: Checkout to run git from
            path: Location of the new worktree
            branch_name: Branch to check out (or create when new_branch)
            new_branch: Create branch_name with -b
            start_point: Commit-ish the new branch starts from
            track: When False, pass --no-track
        """
        args: List[str] = ["worktree", "add"]
        if not track:
            args.append("--no-track")
        args.append(str(path))
        if new_branch:
            args.extend(["-b", branch_name])
            if start_point:
                args.append(start_point)
        else:
            args.append(branch_name)
        return self.execute(args, cwd)

    def remove_worktree(self, cwd: PathLike, path: PathLike, force: bool = True) -> str:
        args = ["worktree", "remove", str(path)]
        if force:
            args.append("--force")
        return self.execute(args, cwd)

    def delete_branch(self, cwd: PathLike, branch_name: str, force: bool = False) -> str:
        return self.execute(["branch", "-D" if force else "-d", branch_name], cwd)

    @staticmethod
    def is_unmerged_error(error: GitOperationError) -> bool:
        return UNMERGED_BRANCH_MARKER in str(error)
