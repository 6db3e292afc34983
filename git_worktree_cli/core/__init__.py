"""Project resolution and worktree lifecycle."""

from .lifecycle import RemoveResult, WorktreeLifecycle
from .project import Project

__all__ = ["Project", "RemoveResult", "WorktreeLifecycle"]
