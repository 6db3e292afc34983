"""Filesystem predicates used to recognise checkouts, worktrees and repositories.

Probing is exploratory: any ``OSError`` raised while looking at the
filesystem is treated as "absent" instead of being propagated.
"""

import os
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]

GITDIR_PREFIX = "gitdir:"


class GitEntry(Enum):
    """Kind of ``.git`` entry found in a directory."""
    NONE = "none"
    FILE = "file"  # linked worktree
    DIRECTORY = "directory"  # main repository


def has_git_entry(directory: PathLike) -> GitEntry:
    """Inspect ``<directory>/.git``.

    Args:
        directory: Directory to probe

    Returns:
        GitEntry.FILE for a linked worktree, GitEntry.DIRECTORY for a
        repository, GitEntry.NONE when absent or unreadable
    """
    git_path = Path(directory) / ".git"
    try:
        if git_path.is_file():
            return GitEntry.FILE
        if git_path.is_dir():
            return GitEntry.DIRECTORY
    except OSError as e:
        logger.debug(f"Could not probe {git_path}: {e}")
    return GitEntry.NONE


def read_gitdir_target(directory: PathLike) -> Optional[Path]:
    """Return the path a worktree's ``.git`` file points to, if it can be parsed."""
    directory = Path(directory)
    try:
        content = (directory / ".git").read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"Could not read {directory / '.git'}: {e}")
        return None

    for line in content.splitlines():
        if line.startswith(GITDIR_PREFIX):
            target = line[len(GITDIR_PREFIX):].strip()
            if not target:
                return None
            target_path = Path(target)
            if not target_path.is_absolute():
                target_path = directory / target_path
            return target_path
    return None


def is_orphaned_worktree(directory: PathLike) -> bool:
    """Check whether a worktree's back-pointer to its repository is dangling.

    True only when ``.git`` is a file whose ``gitdir:`` target no longer
    exists. Directories without a ``.git`` file, and ``.git`` files that
    cannot be read or parsed, are not considered orphaned.
    """
    if has_git_entry(directory) is not GitEntry.FILE:
        return False

    target = read_gitdir_target(directory)
    if target is None:
        return False

    try:
        return not target.exists()
    except OSError:
        return False


def subdirectories(directory: PathLike) -> List[Path]:
    """Immediate subdirectories in filesystem enumeration order.

    The order is whatever the operating system returns; callers that take
    the first match accept that non-determinism.
    """
    result = []
    try:
        with os.scandir(directory) as entries:
            for entry in entries:
                try:
                    if entry.is_dir():
                        result.append(Path(entry.path))
                except OSError:
                    continue
    except OSError as e:
        logger.debug(f"Could not list {directory}: {e}")
    return result


def has_checkout(directory: PathLike) -> bool:
    """True if the directory, or one of its immediate subdirectories, has a ``.git`` entry."""
    if has_git_entry(directory) is not GitEntry.NONE:
        return True
    return any(has_git_entry(sub) is not GitEntry.NONE for sub in subdirectories(directory))
