"""Provider client interface"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from git_worktree_cli.models.pull_request import PrSummary

OPEN = "OPEN"
DRAFT = "DRAFT"
MERGED = "MERGED"
CLOSED = "CLOSED"


class PullRequestProvider(ABC):
    """A hosting provider that can report pull requests for branches."""

    #: Shown by ``gwt list`` when the provider cannot be used
    auth_tip: str = ""

    @abstractmethod
    def fetch_pull_request(self, owner: str, repo: str, branch: str) -> Optional[PrSummary]:
        """Most relevant pull request whose source is branch, or None.

        Raises:
            ProviderError: the request failed
            AuthError: credentials are missing or rejected
        """

    @abstractmethod
    def list_open_pull_requests(self, owner: str, repo: str) -> List[Tuple[PrSummary, str]]:
        """Open pull requests paired with their source branch names."""

    @abstractmethod
    def has_credentials(self) -> bool:
        """Whether a credential is available without prompting."""

    @abstractmethod
    def test_connection(self) -> str:
        """Check the credential against the provider; returns a success message."""
