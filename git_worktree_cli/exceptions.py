"""Custom exceptions for git-worktree-cli"""

from pathlib import Path
from typing import Optional, Sequence


class GitWorktreeError(Exception):
    """Base exception for all git-worktree-cli errors."""
    pass


class GitOperationError(GitWorktreeError):
    """Exception raised when a git subprocess exits non-zero."""

    def __init__(self, operation: str, message: Optional[str] = None, status: Optional[int] = None):
        self.operation = operation
        self.message = message
        self.status = status

        error_msg = f"Git command '{operation}' failed"
        if status is not None:
            error_msg += f" (exit {status})"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class ConfigError(GitWorktreeError):
    """Exception raised when the project configuration cannot be read or written."""

    def __init__(self, message: str, path: Optional[Path] = None):
        self.path = path
        self.message = message
        if path:
            message = f"{message} ({path})"
        super().__init__(f"Configuration error: {message}")


class ProviderError(GitWorktreeError):
    """Exception raised for errors talking to a source control provider."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        self.message = message

        error_msg = f"Provider operation '{operation}' failed"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class AuthError(GitWorktreeError):
    """Exception raised when a credential is missing or rejected."""
    pass


class ProjectRootNotFoundError(GitWorktreeError):
    """Exception raised when no project root can be resolved from a directory."""

    def __init__(self, start: Path, in_git_repo: bool = False):
        self.start = start
        self.in_git_repo = in_git_repo

        if in_git_repo:
            error_msg = (
                f"'{start}' is inside a git checkout that is not managed by gwt "
                "(or whose repository has moved). Run 'gwt init' inside the repository, "
                "or 'git worktree repair' from the main checkout."
            )
        else:
            error_msg = (
                f"'{start}' is not inside a git repository. "
                "Run 'gwt init' inside a git repository."
            )

        super().__init__(error_msg)


class GitDirectoryNotFoundError(GitWorktreeError):
    """Exception raised when a project root holds no usable .git entry."""

    def __init__(self, root: Path, hint: Optional[str] = None):
        self.root = root
        error_msg = f"No git directory found in project at {root}"
        if hint:
            error_msg += f". {hint}"
        super().__init__(error_msg)


class BranchError(GitWorktreeError):
    """Exception raised for branch creation or deletion conflicts."""
    pass


class HookError(GitWorktreeError):
    """Exception raised when a hook command exits non-zero."""

    def __init__(self, command: str, returncode: Optional[int] = None, message: Optional[str] = None):
        self.command = command
        self.returncode = returncode

        error_msg = f"Hook '{command}' failed"
        if returncode is not None:
            error_msg += f" with exit code {returncode}"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class WorktreeNotFoundError(GitWorktreeError):
    """Exception raised when a worktree cannot be matched by branch or directory."""

    def __init__(self, name: Optional[str], available: Sequence[str] = ()):
        self.name = name
        self.available = list(available)

        if name is None:
            error_msg = "Not in a git worktree. Please specify a branch to remove."
        else:
            error_msg = f"Worktree for '{name}' not found"
        if self.available:
            error_msg += "\nAvailable worktrees:\n" + "\n".join(f"  {entry}" for entry in self.available)

        super().__init__(error_msg)


class BareWorktreeRemovalError(GitWorktreeError):
    """Exception raised when asked to remove the main checkout or the bare repository entry."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Cannot remove the main repository checkout at {path}.")
