"""Shared JSON-over-HTTP handling for the Bitbucket REST clients"""

from typing import Any, Optional

import requests

from git_worktree_cli.constants import HTTP_TIMEOUT_SECONDS
from git_worktree_cli.exceptions import AuthError, ProviderError
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)


def get_json(
    session: requests.Session,
    url: str,
    operation: str,
    auth_failure: str,
    not_found: str,
    params: Optional[dict] = None,
    headers: Optional[dict] = None,
    **kwargs,
) -> Any:
    """GET url and decode the JSON body.

    Args:
        session: Session to send the request with
        url: Endpoint to fetch
        operation: Name used in error messages
        auth_failure: Message for a 401 response
        not_found: Message for a 404 response
        params: Query parameters
        headers: Extra request headers
        **kwargs: Passed through to ``session.get`` (e.g. ``auth``)

    Raises:
        AuthError: the provider answered 401
        ProviderError: any other failure
    """
    request_headers = {"Accept": "application/json", **(headers or {})}

    logger.debug(f"GET {url} {params or ''}")
    try:
        response = session.get(url, params=params, headers=request_headers, timeout=HTTP_TIMEOUT_SECONDS, **kwargs)
    except requests.RequestException as e:
        raise ProviderError(operation, f"request failed: {e}") from e

    if response.status_code == 401:
        raise AuthError(auth_failure)
    if response.status_code == 404:
        raise ProviderError(operation, not_found)
    if response.status_code >= 400:
        raise ProviderError(operation, f"API request failed with status {response.status_code}: {response.text}")

    try:
        return response.json()
    except ValueError as e:
        raise ProviderError(operation, f"could not parse response: {e}") from e
