"""Worktree registry for git-worktree-cli.

Reads ``git worktree list --porcelain`` and answers lookups over the result.
Porcelain format, one blank-line separated block per worktree:

    worktree /path/to/worktree
    HEAD <commit sha>
    branch refs/heads/<name>     (or "detached", or "bare")
"""

import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Union

from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.worktree import Worktree, clean_branch_name
from git_worktree_cli.services.git.operations import GitOperations

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


class ParserState(Enum):
    NO_CURRENT = "no_current"
    BUILDING_ENTRY = "building_entry"


@dataclass
class PartialWorktree:
    """Fields collected so far for the entry being parsed."""

    path: Optional[Path] = None
    head: Optional[str] = None
    branch: Optional[str] = None
    bare: bool = False

    def to_worktree(self) -> Optional[Worktree]:
        if self.path is None or self.head is None:
            return None
        return Worktree(path=self.path, head=self.head, branch=self.branch, bare=self.bare)


class PorcelainParser:
    """State machine over porcelain lines.

    A ``worktree`` line flushes the entry in progress and starts a new one;
    ``HEAD``, ``branch`` and ``bare`` lines fill in the current entry and are
    ignored while no entry is open. Entries missing a path or a head are
    dropped when flushed.
    """

    def __init__(self):
        self.state = ParserState.NO_CURRENT
        self.current: Optional[PartialWorktree] = None
        self.worktrees: List[Worktree] = []

    def feed(self, line: str) -> None:
        line = line.rstrip("\r")
        keyword, _, value = line.partition(" ")

        if keyword == "worktree":
            self._flush()
            self.current = PartialWorktree(path=Path(value))
            self.state = ParserState.BUILDING_ENTRY
            return

        if self.state is ParserState.NO_CURRENT or self.current is None:
            return

        if keyword == "HEAD":
            self.current.head = value
        elif keyword == "branch":
            self.current.branch = value
        elif keyword == "bare":
            self.current.bare = True

    def finish(self) -> List[Worktree]:
        self._flush()
        return self.worktrees

    def _flush(self) -> None:
        if self.current is not None:
            worktree = self.current.to_worktree()
            if worktree is None:
                logger.debug(f"Dropping incomplete worktree entry: {self.current}")
            else:
                self.worktrees.append(worktree)
        self.current = None
        self.state = ParserState.NO_CURRENT


def parse_worktree_list(output: str) -> List[Worktree]:
    """Parse ``git worktree list --porcelain`` output, preserving git's order."""
    parser = PorcelainParser()
    for line in output.splitlines():
        parser.feed(line)
    return parser.finish()


class WorktreeRegistry:
    """Service for enumerating and looking up the worktrees of a repository."""

    def __init__(self, git: Optional[GitOperations] = None):
        self.git = git or GitOperations()

    def list(self, git_dir: PathLike) -> List[Worktree]:
        """All worktrees known to the repository at git_dir.

        Raises:
            GitOperationError: git worktree list failed
        """
        worktrees = parse_worktree_list(self.git.list_worktrees_porcelain(git_dir))
        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    @staticmethod
    def find_by_branch(worktrees: Sequence[Worktree], branch_name: str) -> Optional[Worktree]:
        wanted = clean_branch_name(branch_name)
        for wt in worktrees:
            if wt.branch is not None and clean_branch_name(wt.branch) == wanted:
                return wt
        return None

    @staticmethod
    def find_by_directory_name(worktrees: Sequence[Worktree], name: str) -> Optional[Worktree]:
        for wt in worktrees:
            if wt.directory_name == name:
                return wt
        return None

    @staticmethod
    def find_containing(worktrees: Sequence[Worktree], path: PathLike) -> Optional[Worktree]:
        """Worktree whose directory is path or one of its ancestors; the deepest wins."""
        path = Path(path).resolve()
        best: Optional[Worktree] = None
        best_depth = -1
        for wt in worktrees:
            wt_path = wt.path.resolve()
            if path == wt_path or wt_path in path.parents:
                depth = len(wt_path.parts)
                if depth > best_depth:
                    best, best_depth = wt, depth
        return best
