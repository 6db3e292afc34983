"""Utility helpers for git-worktree-cli."""

from .threading import get_optimal_worker_count

__all__ = ["get_optimal_worker_count"]
