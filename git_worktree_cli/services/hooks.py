"""Lifecycle hook execution"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Union

from rich.console import Console
from rich.markup import escape

from git_worktree_cli.config import HookEvent, ProjectConfig, find_config
from git_worktree_cli.constants import HOOK_ENV
from git_worktree_cli.exceptions import HookError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.services.command_runner import CommandRunner

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class HookOutcome:
    command: str
    succeeded: bool
    error: Optional[str] = None


def substitute(template: str, variables: Mapping[str, str]) -> str:
    """Replace every ``${name}`` in template; unknown placeholders are left as-is."""
    command = template
    for name, value in variables.items():
        command = command.replace(f"${{{name}}}", value)
    return command


class HookRunner:
    """Runs the configured hook commands for a lifecycle event.

    Hooks are best-effort: a failing command is reported and the remaining
    commands still run. Nothing here raises for a hook failure.
    """

    def __init__(self, runner: Optional[CommandRunner] = None, console: Optional[Console] = None):
        self.runner = runner or CommandRunner()
        self.console = console or Console()

    def run_hooks(
        self,
        event: HookEvent,
        cwd: PathLike,
        variables: Mapping[str, str],
        config: Optional[ProjectConfig] = None,
    ) -> List[HookOutcome]:
        """Run the hooks for event with cwd as working directory.

        Args:
            event: Which hook list to run
            cwd: Working directory for every command
            variables: Values substituted for ``${name}`` placeholders
            config: Project configuration; looked up from cwd when omitted

        Returns:
            One outcome per executed command, in configuration order
        """
        if config is None:
            found = find_config(Path(cwd))
            if found is None:
                logger.debug(f"No configuration found, skipping {event.value} hooks")
                return []
            config = found[1]

        commands = config.hook_commands(event)
        if not commands:
            return []

        self.console.print(f"[cyan]Running {event.value} hooks...[/cyan]")
        outcomes = []
        for template in commands:
            command = substitute(template, variables)
            self.console.print(f"   [blue]Executing: {escape(command)}[/blue]")
            try:
                self.runner.run_shell(command, cwd, env=HOOK_ENV)
            except HookError as e:
                logger.warning(str(e))
                self.console.print(f"   [yellow]Hook failed: {escape(str(e))}[/yellow]")
                outcomes.append(HookOutcome(command, False, str(e)))
                continue
            self.console.print("   [green]✓ Hook completed successfully[/green]")
            outcomes.append(HookOutcome(command, True))
        return outcomes
