"""Result models for ``gwt list``."""

from dataclasses import dataclass, field
from typing import List, Optional

from .pull_request import PrSummary, RemotePullRequest
from .worktree import Worktree


@dataclass
class ListEntry:
    worktree: Worktree
    pr: Optional[PrSummary] = None

    @property
    def display_name(self) -> str:
        return self.worktree.display_name


@dataclass
class ListResult:
    entries: List[ListEntry] = field(default_factory=list)
    remote_pull_requests: List[RemotePullRequest] = field(default_factory=list)
    tip: Optional[str] = None  # set when pull request information is unavailable
