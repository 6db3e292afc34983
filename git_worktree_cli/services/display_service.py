"""Display and formatting service for worktree listings"""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_worktree_cli.constants import PR_STATUS_COLORS
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.listing import ListResult
from git_worktree_cli.models.pull_request import PrSummary

logger = get_logger(__name__)


def format_pr_status(status: str) -> str:
    color = PR_STATUS_COLORS.get(status.upper())
    label = escape(status.lower())
    return f"[{color}]{label}[/{color}]" if color else label


def format_pr_link(pr: Optional[PrSummary]) -> str:
    if pr is None:
        return ""
    text = f"#{pr.number}" if pr.number is not None else pr.url
    if not pr.url:
        return escape(text)
    return f"[link={pr.url}]{escape(text)}[/link]"


class DisplayService:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_list(self, result: ListResult, local_only: bool = False) -> None:
        """Print local worktrees, then open pull requests without a worktree."""
        if not result.entries:
            self.console.print("[yellow]No worktrees found.[/yellow]")
            return

        self.console.print("[bold]Local Worktrees:[/bold]")
        table = Table()
        table.add_column("Branch", style="cyan")
        table.add_column("Path")
        table.add_column("PR")
        table.add_column("Status")
        table.add_column("Title", style="dim")

        for entry in result.entries:
            pr = entry.pr
            table.add_row(
                escape(entry.display_name),
                escape(str(entry.worktree.path)),
                format_pr_link(pr),
                format_pr_status(pr.status) if pr else "",
                escape(pr.title) if pr else "",
            )
        self.console.print(table)

        if result.remote_pull_requests and not local_only:
            remote = Table()
            remote.add_column("Branch", style="cyan")
            remote.add_column("PR")
            remote.add_column("Status")
            remote.add_column("Title", style="dim")
            for item in result.remote_pull_requests:
                remote.add_row(
                    escape(item.branch),
                    format_pr_link(item.pr),
                    format_pr_status(item.pr.status),
                    escape(item.pr.title),
                )
            self.console.print()
            self.console.print("[bold]Open Pull Requests (no local worktree):[/bold]")
            self.console.print(remote)

        if result.tip and not local_only:
            self.console.print(f"\n[dim]{escape(result.tip)}[/dim]")
