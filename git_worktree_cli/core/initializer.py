"""``gwt init``: write the project configuration for an existing repository"""

from pathlib import Path
from typing import Optional, Tuple

from rich.console import Console

from git_worktree_cli.config import (
    ProjectConfig,
    SourceControl,
    derive_worktrees_path,
    generate_config_filename,
    projects_config_dir,
)
from git_worktree_cli.constants import CONFIG_FILENAME
from git_worktree_cli.exceptions import ConfigError, GitOperationError, ProviderError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.services.git.operations import GitOperations
from git_worktree_cli.services.providers.urls import (
    extract_bitbucket_data_center_info_from_url,
    is_bitbucket_repository,
    parse_github_url,
)

logger = get_logger(__name__)


def detect_source_control(repo_url: str) -> Optional[SourceControl]:
    """Provider implied by a remote URL; Data Center hosts cannot be told apart and return None."""
    if parse_github_url(repo_url) is not None:
        return SourceControl.GITHUB
    if is_bitbucket_repository(repo_url):
        return SourceControl.BITBUCKET_CLOUD
    return None


def init_project(
    start: Optional[Path] = None,
    local: bool = False,
    provider: Optional[SourceControl] = None,
    git: Optional[GitOperations] = None,
    console: Optional[Console] = None,
) -> Tuple[Path, ProjectConfig]:
    """Create the configuration for the repository containing start.

    Args:
        start: Directory inside the repository (defaults to the current directory)
        local: Store the config next to the repository instead of the global projects directory
        provider: Source control provider, overriding detection from the remote URL
        git: Git command service
        console: Output console

    Returns:
        (config path, config)

    Raises:
        GitOperationError: not in a repository, or no origin remote
        ProviderError: the provider cannot be determined
        ConfigError: the configuration could not be written
    """
    git = git or GitOperations()
    console = console or Console()
    start = Path(start or Path.cwd())

    git_root = git.get_git_root(start)
    if git_root is None:
        raise GitOperationError(
            "rev-parse --show-toplevel",
            "Not in a git repository. Please run this command from inside a git repository.",
        )

    repo_url = git.get_remote_origin_url(git_root)
    if not repo_url:
        raise GitOperationError("remote get-url origin", "No remote 'origin' found. Please add a remote first.")

    source_control = provider or detect_source_control(repo_url)
    if source_control is None:
        raise ProviderError(
            "detect provider",
            f"Could not detect repository provider from URL: {repo_url}\n"
            "Supported providers: GitHub, Bitbucket Cloud "
            "(use --provider bitbucket-data-center for Bitbucket Data Center)",
        )
    if source_control is SourceControl.BITBUCKET_DATA_CENTER and extract_bitbucket_data_center_info_from_url(
        repo_url
    ) is None:
        logger.warning(f"Cannot derive a Bitbucket Data Center API URL from {repo_url}")
    console.print(f"[green]✓ Detected provider: {source_control.value}[/green]")

    main_branch = git.get_remote_default_branch(git_root)
    project_path = git_root.resolve()
    worktrees_path = derive_worktrees_path(project_path)

    config = ProjectConfig.create(
        repository_url=repo_url,
        main_branch=main_branch,
        source_control=source_control,
        project_path=project_path,
        worktrees_path=worktrees_path,
    )

    if local:
        config_path = project_path.parent / CONFIG_FILENAME
    else:
        projects_dir = projects_config_dir()
        try:
            projects_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"Failed to create config directory: {e}", projects_dir) from e
        config_path = projects_dir / generate_config_filename(repo_url)

    config.save(config_path)
    logger.info(f"Wrote configuration {config_path}")

    console.print(f"[green]✓ Repository: {repo_url}[/green]")
    console.print(f"[green]✓ Main branch: {main_branch}[/green]")
    console.print(f"[green]✓ Project path: {project_path}[/green]")
    console.print(f"[green]✓ Worktrees path: {worktrees_path}[/green]")
    console.print(f"[green]✓ Config saved to: {config_path}[/green]")
    if not local:
        console.print("[dim]  (Use --local to store config in project directory)[/dim]")
    return config_path, config
