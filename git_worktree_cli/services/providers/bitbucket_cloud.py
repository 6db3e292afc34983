"""Bitbucket Cloud pull request client"""

from typing import List, Optional, Tuple

import requests

from git_worktree_cli.constants import BITBUCKET_API_BASE, MAX_OPEN_PULL_REQUESTS
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.pull_request import PrSummary
from git_worktree_cli.services.providers.auth import BitbucketCloudAuth
from git_worktree_cli.services.providers.base import DRAFT, OPEN, PullRequestProvider
from git_worktree_cli.services.providers.http import get_json

logger = get_logger(__name__)

AUTH_FAILURE = (
    "Authentication failed. Please check your Bitbucket credentials "
    "and run 'gwt auth bitbucket-cloud setup' to update them."
)

ALL_STATES = ["OPEN", "MERGED", "DECLINED", "SUPERSEDED"]


def _summary(pr: dict) -> PrSummary:
    state = pr.get("state", "")
    if state == OPEN and pr.get("draft"):
        state = DRAFT
    return PrSummary(
        url=pr.get("links", {}).get("html", {}).get("href", ""),
        status=state,
        title=pr.get("title", ""),
        number=pr.get("id"),
    )


class BitbucketCloudProvider(PullRequestProvider):
    """Pull requests from the Bitbucket Cloud 2.0 REST API."""

    auth_tip = "Tip: Run 'gwt auth bitbucket-cloud setup' to enable Bitbucket Cloud pull request information"

    def __init__(self, auth: BitbucketCloudAuth, session: Optional[requests.Session] = None):
        self.auth = auth
        self.session = session or requests.Session()

    def _basic_auth(self) -> Tuple[str, str]:
        return self.auth.email or "user", self.auth.get_token()

    def _get(self, url: str, operation: str, not_found: str, params: Optional[dict] = None):
        return get_json(
            self.session,
            url,
            operation,
            AUTH_FAILURE,
            not_found,
            params=params,
            auth=self._basic_auth(),
        )

    def get_pull_requests(self, workspace: str, repo: str, params: Optional[dict] = None) -> List[dict]:
        url = f"{BITBUCKET_API_BASE}/repositories/{workspace}/{repo}/pullrequests"
        data = self._get(
            url,
            "list pull requests",
            f"Repository not found: {workspace}/{repo}. Please check the workspace and repository name.",
            params,
        )
        return data.get("values", [])

    def fetch_pull_request(self, owner: str, repo: str, branch: str) -> Optional[PrSummary]:
        pulls = self.get_pull_requests(
            owner,
            repo,
            {"q": f'source.branch.name="{branch}"', "state": ALL_STATES, "sort": "-updated_on"},
        )
        matching = [pr for pr in pulls if pr.get("source", {}).get("branch", {}).get("name") == branch]
        if not matching:
            return None
        open_prs = [pr for pr in matching if pr.get("state") == OPEN]
        return _summary((open_prs or matching)[0])

    def list_open_pull_requests(self, owner: str, repo: str) -> List[Tuple[PrSummary, str]]:
        pulls = self.get_pull_requests(owner, repo, {"state": OPEN, "pagelen": 50})
        result = []
        for pr in pulls[:MAX_OPEN_PULL_REQUESTS]:
            if pr.get("state") != OPEN:
                continue
            branch = pr.get("source", {}).get("branch", {}).get("name")
            if branch:
                result.append((_summary(pr), branch))
        return result

    def has_credentials(self) -> bool:
        return self.auth.find_token() is not None

    def test_connection(self) -> str:
        user = self._get(f"{BITBUCKET_API_BASE}/user", "test connection", "User endpoint not found")
        return f"Bitbucket Cloud API connection successful (authenticated as {user.get('display_name', 'unknown')})"
