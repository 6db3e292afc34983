"""Command-line interface for git-worktree-cli"""

import sys

from rich.console import Console
from rich.markup import escape

from git_worktree_cli.cli.args import parse_args
from git_worktree_cli.config import SourceControl, find_config
from git_worktree_cli.core.initializer import init_project
from git_worktree_cli.core.lifecycle import WorktreeLifecycle
from git_worktree_cli.exceptions import ConfigError, GitWorktreeError, ProviderError
from git_worktree_cli.logging_config import get_log_file, get_logger, setup_logging
from git_worktree_cli.services.display_service import DisplayService
from git_worktree_cli.services.providers import auth as provider_auth
from git_worktree_cli.services.providers.factory import create_provider
from git_worktree_cli.services.providers.github import GitHubProvider

console = Console()
logger = get_logger(__name__)

SETUP_INSTRUCTIONS = {
    SourceControl.GITHUB: provider_auth.github_setup_instructions,
    SourceControl.BITBUCKET_CLOUD: provider_auth.bitbucket_cloud_setup_instructions,
    SourceControl.BITBUCKET_DATA_CENTER: provider_auth.bitbucket_data_center_setup_instructions,
}


def run_auth(source_control: SourceControl, action: str) -> None:
    if action == "setup":
        for line in SETUP_INSTRUCTIONS[source_control]():
            console.print(escape(line))
        return

    if source_control is SourceControl.GITHUB:
        provider = GitHubProvider()
    else:
        # Bitbucket credentials are stored per repository, so the project config names it
        found = find_config()
        if found is None:
            raise ConfigError("No git-worktree-config.jsonc found. Run 'gwt init' first.")
        _, config = found
        if config.source_control is not source_control:
            raise ProviderError(
                "test connection",
                f"This project uses {config.source_control.value}, not {source_control.value}",
            )
        target = create_provider(config)
        if target is None:
            raise ProviderError("test connection", f"Cannot parse repository URL {config.repository_url}")
        provider = target.provider

    console.print(f"[cyan]Testing {source_control.value} connection...[/cyan]")
    console.print(f"[green]✓ {escape(provider.test_connection())}[/green]")


def run_command(args) -> None:
    if args.command == "init":
        provider = SourceControl(args.provider) if args.provider else None
        init_project(local=args.local, provider=provider, console=console)
    elif args.command == "add":
        WorktreeLifecycle(console=console).add(args.branch_name)
    elif args.command in ("list", "ls"):
        result = WorktreeLifecycle(console=console).list(local_only=args.local_only)
        DisplayService(console).display_list(result, local_only=args.local_only)
    elif args.command in ("remove", "rm"):
        WorktreeLifecycle(console=console).remove(args.branch_name, force=args.force)
    elif args.command == "auth":
        run_auth(SourceControl(args.provider), args.action)


def main(argv=None):
    """Main entry point for the application."""
    parsed_args = None
    try:
        parsed_args = parse_args(argv)

        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug)
        if parsed_args.debug:
            console.print(f"[yellow]Debug mode enabled, logging to {get_log_file()}[/yellow]")

        run_command(parsed_args)
        return 0
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except (GitWorktreeError, OSError) as e:
        logger.debug(f"Command failed: {e!r}")
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if parsed_args is not None and parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
