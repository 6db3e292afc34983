"""Project discovery for git-worktree-cli.

A project is the logical directory a set of worktrees belongs to. Supported
layouts:

    repo/.git                       plain checkout, worktrees in repo-worktrees/
    project/main/.git               main checkout nested one level down
    repo-worktrees/<branch>/.git    linked worktrees next to the project

Every function here is a pure probe of the filesystem (and, for the project
root, of ``git rev-parse``); nothing is cached between calls.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from git_worktree_cli.config import find_config
from git_worktree_cli.constants import WORKTREES_SUFFIX
from git_worktree_cli.core.path_probe import (
    GitEntry,
    has_checkout,
    has_git_entry,
    is_orphaned_worktree,
    subdirectories,
)
from git_worktree_cli.exceptions import GitDirectoryNotFoundError, ProjectRootNotFoundError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.services.git.operations import GitOperations

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class Project:
    """Resolved project root and the directory git commands can run from."""

    root: Path
    git_dir: Path

    @classmethod
    def find(cls, start: Optional[PathLike] = None, git: Optional[GitOperations] = None) -> "Project":
        """Resolve the project containing start (defaults to the current directory).

        Raises:
            ProjectRootNotFoundError: start is not inside a managed project
            GitDirectoryNotFoundError: the project root holds no checkout
        """
        root = find_project_root_from(Path(start) if start is not None else Path.cwd(), git)
        return cls(root=root, git_dir=find_git_directory_from(root))

    def bare_repo_dir(self) -> Path:
        return find_existing_worktree(self.root)


def find_main_project_from_worktrees_path(path: PathLike) -> Optional[Path]:
    """Map a path inside ``<name>-worktrees/`` to the sibling ``<name>/`` project.

    The nearest ancestor whose name ends with the suffix wins, provided the
    sibling (or one of its immediate subdirectories) holds a ``.git`` entry.
    """
    path = Path(path)
    for ancestor in (path, *path.parents):
        name = ancestor.name
        if not name.endswith(WORKTREES_SUFFIX) or name == WORKTREES_SUFFIX:
            continue
        candidate = ancestor.parent / name[: -len(WORKTREES_SUFFIX)]
        if has_checkout(candidate):
            logger.debug(f"{path} lives in {ancestor}, project is {candidate}")
            return candidate
    return None


def _inside_git_checkout(path: Path) -> bool:
    return any(has_git_entry(p) is not GitEntry.NONE for p in (path, *path.parents))


def find_project_root_from(start: PathLike, git: Optional[GitOperations] = None) -> Path:
    """Find the project root for start.

    Strategies, first match wins:
        1. git's top-level for start, mapped through the ``-worktrees`` rule
        2. start itself mapped through the ``-worktrees`` rule
        3. the projectPath recorded in the project configuration

    Raises:
        ProjectRootNotFoundError: no strategy matched
    """
    start = Path(start).resolve()
    git = git or GitOperations()

    git_root = git.get_git_root(start)
    if git_root is not None:
        return find_main_project_from_worktrees_path(git_root) or git_root

    main_project = find_main_project_from_worktrees_path(start)
    if main_project is not None:
        return main_project

    found = find_config(start, git)
    if found is not None:
        config_path, config = found
        if config.project_path is not None:
            logger.debug(f"Project root {config.project_path} taken from {config_path}")
            return config.project_path

    raise ProjectRootNotFoundError(start, in_git_repo=_inside_git_checkout(start))


def find_git_directory_from(root: PathLike) -> Path:
    """root when it holds ``.git``, else the first immediate subdirectory that does.

    Raises:
        GitDirectoryNotFoundError: neither root nor a subdirectory holds ``.git``
    """
    root = Path(root)
    if has_git_entry(root) is not GitEntry.NONE:
        return root
    for sub in subdirectories(root):
        if has_git_entry(sub) is not GitEntry.NONE:
            return sub
    raise GitDirectoryNotFoundError(root)


def _pick_checkout(root: Path, skip_orphaned: bool) -> Optional[Path]:
    """Worktree (``.git`` file) first, else the repository (``.git`` directory)."""
    repository: Optional[Path] = None
    for candidate in (root, *subdirectories(root)):
        entry = has_git_entry(candidate)
        if entry is GitEntry.FILE:
            if skip_orphaned and is_orphaned_worktree(candidate):
                logger.debug(f"Skipping orphaned worktree {candidate}")
                continue
            return candidate
        if entry is GitEntry.DIRECTORY and repository is None:
            repository = candidate
    return repository


def find_existing_worktree(root: PathLike) -> Path:
    """Directory to run git commands from, preferring a linked worktree.

    Raises:
        GitDirectoryNotFoundError: no checkout under root
    """
    root = Path(root)
    found = _pick_checkout(root, skip_orphaned=False)
    if found is None:
        raise GitDirectoryNotFoundError(root, hint="Have you run 'gwt init' yet?")
    return found


def find_valid_git_directory(root: PathLike) -> Path:
    """Like find_existing_worktree(), ignoring worktrees whose repository has moved.

    Raises:
        GitDirectoryNotFoundError: no usable checkout under root
    """
    root = Path(root)
    found = _pick_checkout(root, skip_orphaned=True)
    if found is None:
        raise GitDirectoryNotFoundError(root, hint="Every worktree in the project is orphaned.")
    return found


def resolve_execution_directory(root: PathLike) -> Path:
    """Checkout git commands for the project should run from."""
    candidate = find_existing_worktree(root)
    if is_orphaned_worktree(candidate):
        logger.warning(f"Worktree {candidate} is orphaned, looking for another checkout")
        return find_valid_git_directory(root)
    return candidate
