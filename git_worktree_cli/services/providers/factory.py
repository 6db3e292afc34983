"""Provider selection from the project configuration"""

from dataclasses import dataclass
from typing import Optional

from git_worktree_cli.config import ProjectConfig, SourceControl
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.services.command_runner import CommandRunner
from git_worktree_cli.services.providers.auth import (
    BitbucketCloudAuth,
    BitbucketDataCenterAuth,
    GitHubAuth,
)
from git_worktree_cli.services.providers.base import PullRequestProvider
from git_worktree_cli.services.providers.bitbucket_cloud import BitbucketCloudProvider
from git_worktree_cli.services.providers.bitbucket_data_center import BitbucketDataCenterProvider
from git_worktree_cli.services.providers.github import GitHubProvider
from git_worktree_cli.services.providers.urls import (
    extract_bitbucket_data_center_info_from_url,
    extract_bitbucket_info_from_url,
    parse_github_url,
)

logger = get_logger(__name__)


@dataclass
class ProviderTarget:
    """A provider client together with the repository it should query."""

    provider: PullRequestProvider
    owner: str  # GitHub owner, Bitbucket workspace or Data Center project key
    repo: str


def create_provider(config: ProjectConfig, runner: Optional[CommandRunner] = None) -> Optional[ProviderTarget]:
    """Provider client selected by the configured sourceControl.

    Returns None when the repository URL cannot be parsed for that provider.
    """
    url = config.repository_url

    if config.source_control is SourceControl.BITBUCKET_CLOUD:
        info = extract_bitbucket_info_from_url(url)
        if info is None:
            logger.debug(f"Not a Bitbucket Cloud URL: {url}")
            return None
        workspace, repo = info
        auth = BitbucketCloudAuth(workspace, repo, config.bitbucket_email)
        return ProviderTarget(BitbucketCloudProvider(auth), workspace, repo)

    if config.source_control is SourceControl.BITBUCKET_DATA_CENTER:
        data_center = extract_bitbucket_data_center_info_from_url(url)
        if data_center is None:
            logger.debug(f"Not a Bitbucket Data Center URL: {url}")
            return None
        auth = BitbucketDataCenterAuth(*data_center)
        provider = BitbucketDataCenterProvider(data_center.base_url, auth)
        return ProviderTarget(provider, data_center.project_key, data_center.repo_slug)

    github = parse_github_url(url)
    if github is None:
        logger.debug(f"Not a GitHub URL: {url}")
        return None
    owner, repo = github
    return ProviderTarget(GitHubProvider(GitHubAuth(runner)), owner, repo)


def auth_tip(source_control: SourceControl) -> str:
    return {
        SourceControl.GITHUB: GitHubProvider.auth_tip,
        SourceControl.BITBUCKET_CLOUD: BitbucketCloudProvider.auth_tip,
        SourceControl.BITBUCKET_DATA_CENTER: BitbucketDataCenterProvider.auth_tip,
    }[source_control]
