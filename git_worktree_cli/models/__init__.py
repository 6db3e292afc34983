"""Data models for git-worktree-cli."""

from .listing import ListEntry, ListResult
from .pull_request import PrSummary, RemotePullRequest
from .worktree import Worktree, clean_branch_name

__all__ = [
    "ListEntry",
    "ListResult",
    "PrSummary",
    "RemotePullRequest",
    "Worktree",
    "clean_branch_name",
]
