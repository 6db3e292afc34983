"""
git-worktree-cli - Manage git worktrees with hooks and pull request status
"""

from .__version__ import __version__
from .core import Project, WorktreeLifecycle
from .cli.main import main

__all__ = ["Project", "WorktreeLifecycle", "main", "__version__"]
