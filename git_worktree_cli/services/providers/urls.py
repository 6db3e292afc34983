"""Remote URL parsing for the supported source control providers.

Patterns are tried most specific first: GitHub, Bitbucket Cloud, then the
Bitbucket Data Center path shapes, and only then the generic SSH shapes a
Data Center server also uses.
"""

import re
from typing import NamedTuple, Optional
from urllib.parse import urlparse

from git_worktree_cli.constants import BITBUCKET_CLOUD_HOST, GITHUB_HOST


class DataCenterRepo(NamedTuple):
    base_url: str
    project_key: str
    repo_slug: str


_BITBUCKET_CLOUD_RE = re.compile(r"bitbucket\.org[:/]([^/]+)/([^/]+?)(?:\.git)?/?$")
_DC_SCM_RE = re.compile(r"^(?:(https?)://)?(?:[^@/]+@)?([^/]+)(/.*)?/scm/([^/]+)/([^/]+?)(?:\.git)?/?$")
_DC_PROJECTS_RE = re.compile(
    r"^(?:(https?)://)?(?:[^@/]+@)?([^/]+)(/.*)?/projects/([^/]+)/repos/([^/]+?)(?:\.git)?(?:/.*)?$"
)
_DC_SSH_PROTOCOL_RE = re.compile(r"^ssh://[^@/]+@([^/:]+)(?::\d+)?/([^/]+)/([^/]+?)(?:\.git)?/?$")
_DC_SCP_RE = re.compile(r"^[^@/]+@([^:/]+):([^/]+)/([^/]+?)(?:\.git)?/?$")


def _strip_git_suffix(path: str) -> str:
    path = path.strip().rstrip("/")
    if path.endswith(".git"):
        return path[:-4]
    return path


def parse_github_url(url: str) -> Optional[tuple[str, str]]:
    """Extract (owner, repo) from a GitHub HTTPS or SSH remote URL."""
    url = url.strip()
    path = None
    if url.startswith(f"git@{GITHUB_HOST}:"):
        path = url.split(f"{GITHUB_HOST}:", 1)[1]
    elif "://" in url:
        parsed = urlparse(url)
        if (parsed.hostname or "").lower() == GITHUB_HOST:
            path = parsed.path.strip("/")

    if not path:
        return None

    parts = _strip_git_suffix(path).split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def extract_bitbucket_info_from_url(url: str) -> Optional[tuple[str, str]]:
    """Extract (workspace, repo) from a Bitbucket Cloud remote URL."""
    if BITBUCKET_CLOUD_HOST not in url:
        return None
    match = _BITBUCKET_CLOUD_RE.search(url.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def is_bitbucket_repository(remote_url: str) -> bool:
    return BITBUCKET_CLOUD_HOST in remote_url


def extract_bitbucket_data_center_info_from_url(url: str) -> Optional[DataCenterRepo]:
    """Extract the API base URL, project key and repository slug from a Data Center URL.

    Handles:
        https://git.acme.com/scm/PROJ/repo.git
        https://git.acme.com/projects/PROJ/repos/repo/browse
        ssh://git@git.acme.com:7999/PROJ/repo.git
        git@git.acme.com:PROJ/repo.git
    """
    url = url.strip()

    for pattern in (_DC_SCM_RE, _DC_PROJECTS_RE):
        match = pattern.match(url)
        if match:
            scheme, host, context, project, repo = match.groups()
            base_url = f"{scheme or 'https'}://{host}{context or ''}"
            return DataCenterRepo(base_url, project, repo)

    match = _DC_SSH_PROTOCOL_RE.match(url)
    if match:
        host, project, repo = match.groups()
        return DataCenterRepo(f"https://{host}", project, repo)

    match = _DC_SCP_RE.match(url)
    if match:
        host, project, repo = match.groups()
        return DataCenterRepo(f"https://{host}", project, repo)

    return None
