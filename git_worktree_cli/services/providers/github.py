"""GitHub pull request client"""

from threading import Lock
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from github import Auth, Github, GithubException

from git_worktree_cli.constants import HTTP_TIMEOUT_SECONDS, MAX_OPEN_PULL_REQUESTS
from git_worktree_cli.exceptions import AuthError, ProviderError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.pull_request import PrSummary
from git_worktree_cli.services.providers.auth import GitHubAuth
from git_worktree_cli.services.providers.base import CLOSED, DRAFT, MERGED, OPEN, PullRequestProvider

if TYPE_CHECKING:
    from github.PullRequest import PullRequest
    from github.Repository import Repository

logger = get_logger(__name__)


def pr_status(pr: "PullRequest") -> str:
    if pr.merged_at is not None:
        return MERGED
    if pr.state == "closed":
        return CLOSED
    if pr.draft:
        return DRAFT
    return OPEN


def _summary(pr: "PullRequest") -> PrSummary:
    return PrSummary(url=pr.html_url, status=pr_status(pr), title=pr.title, number=pr.number)


class GitHubProvider(PullRequestProvider):
    """Pull requests through the GitHub REST API (PyGithub)."""

    auth_tip = "Tip: Run 'gh auth login' to enable GitHub pull request information"

    def __init__(self, auth: Optional[GitHubAuth] = None, github: Optional[Github] = None):
        self.auth = auth or GitHubAuth()
        self._github = github
        self._repos: Dict[str, "Repository"] = {}
        self._lock = Lock()  # PR lookups run from worker threads

    def _client(self) -> Github:
        with self._lock:
            if self._github is None:
                self._github = Github(auth=Auth.Token(self.auth.get_token()), timeout=HTTP_TIMEOUT_SECONDS)
            return self._github

    def _repo(self, owner: str, repo: str) -> "Repository":
        full_name = f"{owner}/{repo}"
        client = self._client()
        with self._lock:
            cached = self._repos.get(full_name)
        if cached is not None:
            return cached
        try:
            gh_repo = client.get_repo(full_name)
        except GithubException as e:
            raise self._error("get repository", e) from e
        with self._lock:
            self._repos[full_name] = gh_repo
        logger.debug(f"[GitHub] GitHub integration enabled for: {full_name}")
        return gh_repo

    @staticmethod
    def _error(operation: str, e: GithubException) -> Exception:
        if e.status == 401:
            return AuthError("GitHub authentication failed. Run 'gh auth login' to authenticate.")
        message = e.data.get("message") if isinstance(e.data, dict) else None
        return ProviderError(operation, message or str(e))

    def fetch_pull_request(self, owner: str, repo: str, branch: str) -> Optional[PrSummary]:
        gh_repo = self._repo(owner, repo)
        try:
            pulls = list(gh_repo.get_pulls(state="all", head=f"{owner}:{branch}"))
        except GithubException as e:
            raise self._error("list pull requests", e) from e

        if not pulls:
            return None

        open_prs = [pr for pr in pulls if pr.state == "open"]
        latest = max(open_prs or pulls, key=lambda pr: pr.created_at)
        logger.debug(f"[GitHub] Branch {branch} has PR #{latest.number} ({pr_status(latest)})")
        return _summary(latest)

    def list_open_pull_requests(self, owner: str, repo: str) -> List[Tuple[PrSummary, str]]:
        gh_repo = self._repo(owner, repo)
        try:
            result = []
            for pr in gh_repo.get_pulls(state="open"):
                result.append((_summary(pr), pr.head.ref))
                if len(result) >= MAX_OPEN_PULL_REQUESTS:
                    break
            return result
        except GithubException as e:
            raise self._error("list pull requests", e) from e

    def has_credentials(self) -> bool:
        return self.auth.find_token() is not None

    def test_connection(self) -> str:
        try:
            login = self._client().get_user().login
        except GithubException as e:
            raise self._error("test connection", e) from e
        return f"GitHub API connection successful (authenticated as {login})"
