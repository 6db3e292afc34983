"""Worktree data models."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from git_worktree_cli.constants import GIT_REFS_HEADS_PREFIX


def clean_branch_name(branch: str) -> str:
    """Strip whitespace and a leading ``refs/heads/`` from a branch ref."""
    branch = branch.strip()
    if branch.startswith(GIT_REFS_HEADS_PREFIX):
        return branch[len(GIT_REFS_HEADS_PREFIX):]
    return branch


@dataclass(frozen=True)
class Worktree:
    """One entry of ``git worktree list --porcelain``."""

    path: Path
    head: str
    branch: Optional[str] = None  # fully qualified ref; None when HEAD is detached
    bare: bool = False

    @property
    def branch_name(self) -> Optional[str]:
        if self.branch is None:
            return None
        return clean_branch_name(self.branch)

    @property
    def is_detached(self) -> bool:
        return self.branch is None and not self.bare

    @property
    def directory_name(self) -> str:
        return self.path.name

    @property
    def display_name(self) -> str:
        """Branch name, ``(bare)`` for the bare entry, else the abbreviated head."""
        if self.branch is not None:
            return clean_branch_name(self.branch)
        if self.bare:
            return "(bare)"
        return self.head[:8]

    def __str__(self) -> str:
        return f"{self.display_name} -> {self.path}"
