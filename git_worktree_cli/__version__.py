"""Version information for git-worktree-cli."""

__version__ = "0.4.0"
