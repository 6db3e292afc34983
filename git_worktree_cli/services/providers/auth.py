"""Credential lookup for the pull request providers.

Environment variables always win; stored secrets come from the operating
system keyring, keyed by repository so different projects can use
different tokens.
"""

import os
from typing import List, Optional

import keyring
from keyring.errors import KeyringError

from git_worktree_cli.exceptions import AuthError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.services.command_runner import CommandRunner

logger = get_logger(__name__)

GITHUB_TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")
BITBUCKET_CLOUD_EMAIL_ENV_VAR = "BITBUCKET_CLOUD_EMAIL"
BITBUCKET_CLOUD_TOKEN_ENV_VAR = "BITBUCKET_CLOUD_API_TOKEN"
BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR = "BITBUCKET_DATA_CENTER_HTTP_ACCESS_TOKEN"

BITBUCKET_CLOUD_KEYRING_SERVICE = "git-worktree-cli-bitbucket"
BITBUCKET_DATA_CENTER_KEYRING_SERVICE = "git-worktree-cli-bitbucket-data-center"


def _env(name: str) -> Optional[str]:
    value = os.environ.get(name, "").strip()
    return value or None


def _keyring_secret(service: str, key: str) -> Optional[str]:
    try:
        return keyring.get_password(service, key)
    except KeyringError as e:
        logger.debug(f"Keyring lookup for {service}/{key} failed: {e}")
        return None


class GitHubAuth:
    """GitHub token from GITHUB_TOKEN, GH_TOKEN or ``gh auth token``."""

    def __init__(self, runner: Optional[CommandRunner] = None):
        self.runner = runner or CommandRunner()

    def _gh_cli_token(self) -> Optional[str]:
        try:
            result = self.runner.run(["gh", "auth", "token"])
        except OSError as e:
            logger.debug(f"gh CLI not available: {e}")
            return None
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def find_token(self) -> Optional[str]:
        for name in GITHUB_TOKEN_ENV_VARS:
            token = _env(name)
            if token:
                return token
        return self._gh_cli_token()

    def get_token(self) -> str:
        token = self.find_token()
        if not token:
            raise AuthError(
                "No GitHub token found. Set GITHUB_TOKEN or run 'gh auth login' to authenticate."
            )
        return token


class BitbucketCloudAuth:
    """Bitbucket Cloud API token plus the account email used for basic auth."""

    def __init__(self, workspace: str, repo: str, email: Optional[str] = None):
        self.key = f"{workspace}/{repo}"
        self._configured_email = email

    @property
    def email(self) -> Optional[str]:
        return _env(BITBUCKET_CLOUD_EMAIL_ENV_VAR) or self._configured_email

    def find_token(self) -> Optional[str]:
        return _env(BITBUCKET_CLOUD_TOKEN_ENV_VAR) or _keyring_secret(BITBUCKET_CLOUD_KEYRING_SERVICE, self.key)

    def get_token(self) -> str:
        token = self.find_token()
        if not token:
            raise AuthError(
                "No Bitbucket Cloud API token found. Please set the "
                f"{BITBUCKET_CLOUD_EMAIL_ENV_VAR} and {BITBUCKET_CLOUD_TOKEN_ENV_VAR} environment variables.\n"
                "Run 'gwt auth bitbucket-cloud setup' for instructions."
            )
        return token


class BitbucketDataCenterAuth:
    """HTTP access token for a Bitbucket Data Center server."""

    def __init__(self, base_url: str, project_key: str, repo_slug: str):
        self.key = f"{base_url}/{project_key}/{repo_slug}"

    def find_token(self) -> Optional[str]:
        return _env(BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR) or _keyring_secret(
            BITBUCKET_DATA_CENTER_KEYRING_SERVICE, self.key
        )

    def get_token(self) -> str:
        token = self.find_token()
        if not token:
            raise AuthError(
                "No Bitbucket Data Center access token found. Please set the "
                f"{BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR} environment variable.\n"
                "Run 'gwt auth bitbucket-data-center setup' for instructions."
            )
        return token


def github_setup_instructions() -> List[str]:
    return [
        "Setting up GitHub authentication",
        "",
        "Either authenticate the GitHub CLI:",
        "   gh auth login",
        "",
        "or export a personal access token with 'repo' scope:",
        "   export GITHUB_TOKEN=YOUR_TOKEN",
    ]


def bitbucket_cloud_setup_instructions() -> List[str]:
    return [
        "Setting up Bitbucket Cloud authentication",
        "",
        "1. Create an API token at:",
        "   https://id.atlassian.com/manage-profile/security/api-tokens",
        "",
        "2. Required permissions for the token:",
        "   - Repositories: Read",
        "   - Pull requests: Read",
        "",
        "3. Set environment variables:",
        f"   export {BITBUCKET_CLOUD_EMAIL_ENV_VAR}=your-email@example.com",
        f"   export {BITBUCKET_CLOUD_TOKEN_ENV_VAR}=YOUR_TOKEN",
        "",
        "Note: The email should match your Bitbucket account email.",
    ]


def bitbucket_data_center_setup_instructions() -> List[str]:
    return [
        "Setting up Bitbucket Data Center authentication",
        "",
        "1. In Bitbucket, open Manage account > HTTP access tokens",
        "2. Create a token with 'Repository read' permission",
        "3. Set the environment variable:",
        f"   export {BITBUCKET_DATA_CENTER_TOKEN_ENV_VAR}=YOUR_TOKEN",
    ]
