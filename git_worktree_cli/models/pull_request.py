"""Pull request data models."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PrSummary:
    """What the listing shows about a pull request."""

    url: str
    status: str  # OPEN, DRAFT, MERGED, CLOSED or the provider's own state
    title: str = ""
    number: Optional[int] = None


@dataclass(frozen=True)
class RemotePullRequest:
    """An open pull request whose branch has no local worktree."""

    branch: str
    pr: PrSummary
