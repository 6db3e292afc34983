"""Bitbucket Data Center (Server) pull request client"""

from typing import List, Optional, Tuple

import requests

from git_worktree_cli.constants import GIT_REFS_HEADS_PREFIX, MAX_OPEN_PULL_REQUESTS
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.pull_request import PrSummary
from git_worktree_cli.services.providers.auth import BitbucketDataCenterAuth
from git_worktree_cli.services.providers.base import DRAFT, OPEN, PullRequestProvider
from git_worktree_cli.services.providers.http import get_json

logger = get_logger(__name__)

AUTH_FAILURE = (
    "Authentication failed. Please check your Bitbucket Data Center access token "
    "and run 'gwt auth bitbucket-data-center setup' to update it."
)


def _summary(pr: dict) -> PrSummary:
    state = pr.get("state", "")
    if state == OPEN and pr.get("draft"):
        state = DRAFT
    links = pr.get("links", {}).get("self") or [{}]
    return PrSummary(
        url=links[0].get("href", ""),
        status=state,
        title=pr.get("title", ""),
        number=pr.get("id"),
    )


def _source_branch(pr: dict) -> Optional[str]:
    return pr.get("fromRef", {}).get("displayId")


class BitbucketDataCenterProvider(PullRequestProvider):
    """Pull requests from the Bitbucket Data Center 1.0 REST API."""

    auth_tip = (
        "Tip: Run 'gwt auth bitbucket-data-center setup' to enable "
        "Bitbucket Data Center pull request information"
    )

    def __init__(
        self,
        base_url: str,
        auth: BitbucketDataCenterAuth,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.auth = auth
        self.session = session or requests.Session()

    def _get(self, path: str, operation: str, not_found: str, params: Optional[dict] = None):
        return get_json(
            self.session,
            f"{self.base_url}/rest/api/1.0{path}",
            operation,
            AUTH_FAILURE,
            not_found,
            params=params,
            headers={"Authorization": f"Bearer {self.auth.get_token()}"},
        )

    def get_pull_requests(self, project_key: str, repo_slug: str, params: Optional[dict] = None) -> List[dict]:
        data = self._get(
            f"/projects/{project_key}/repos/{repo_slug}/pull-requests",
            "list pull requests",
            f"Repository not found: {project_key}/{repo_slug}. "
            "Please check the project key and repository slug.",
            params,
        )
        return data.get("values", [])

    def fetch_pull_request(self, owner: str, repo: str, branch: str) -> Optional[PrSummary]:
        pulls = self.get_pull_requests(
            owner,
            repo,
            {
                "state": "ALL",
                "direction": "OUTGOING",
                "at": f"{GIT_REFS_HEADS_PREFIX}{branch}",
                "order": "NEWEST",
            },
        )
        matching = [pr for pr in pulls if _source_branch(pr) == branch]
        if not matching:
            return None
        open_prs = [pr for pr in matching if pr.get("state") == OPEN]
        return _summary((open_prs or matching)[0])

    def list_open_pull_requests(self, owner: str, repo: str) -> List[Tuple[PrSummary, str]]:
        pulls = self.get_pull_requests(owner, repo, {"state": OPEN, "limit": MAX_OPEN_PULL_REQUESTS})
        result = []
        for pr in pulls:
            branch = _source_branch(pr)
            if pr.get("state") == OPEN and branch:
                result.append((_summary(pr), branch))
        return result

    def has_credentials(self) -> bool:
        return self.auth.find_token() is not None

    def test_connection(self) -> str:
        self._get("/users", "test connection", f"No Bitbucket Data Center API at {self.base_url}", {"limit": 1})
        return f"Bitbucket Data Center API connection successful ({self.base_url})"
