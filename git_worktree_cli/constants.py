"""Shared constants for git-worktree-cli."""

from typing import Dict, FrozenSet

# Configuration file
CONFIG_FILENAME = "git-worktree-config.jsonc"
MAIN_CHECKOUT_DIRNAME = "main"
APP_NAME = "git-worktree-cli"
PROJECTS_DIRNAME = "projects"
CONFIG_DIR_ENV_VAR = "GWT_CONFIG_DIR"

# Sibling directory convention: <name>/ holds the repository, <name>-worktrees/ the checkouts
WORKTREES_SUFFIX = "-worktrees"

# Branches that are never deleted when their worktree is removed
PROTECTED_BRANCHES: FrozenSet[str] = frozenset({"main", "master", "dev", "develop"})

DEFAULT_MAIN_BRANCHES = ("main", "master")

# Git refs
GIT_REFS_HEADS_PREFIX = "refs/heads/"
GIT_REMOTES_ORIGIN_PREFIX = "refs/remotes/origin/"
REMOTE_NAME = "origin"

# Hook environment
HOOK_ENV: Dict[str, str] = {"FORCE_COLOR": "1"}

# Provider hosts and API endpoints
GITHUB_HOST = "github.com"
BITBUCKET_CLOUD_HOST = "bitbucket.org"
BITBUCKET_API_BASE = "https://api.bitbucket.org/2.0"
HTTP_TIMEOUT_SECONDS = 30
MAX_PR_WORKERS = 10
MAX_OPEN_PULL_REQUESTS = 100

# Pull request status display (Rich color names)
PR_STATUS_COLORS: Dict[str, str] = {
    "OPEN": "green",
    "MERGED": "green",
    "DRAFT": "yellow",
    "CLOSED": "red",
    "DECLINED": "red",
}
