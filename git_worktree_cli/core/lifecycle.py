"""Worktree lifecycle: add, list and remove.

Every operation recomputes its state from the filesystem and from git, so an
interrupted command can simply be run again.
"""

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from rich.console import Console
from rich.markup import escape

from git_worktree_cli.config import HookEvent, ProjectConfig, derive_worktrees_path, find_config
from git_worktree_cli.constants import MAX_PR_WORKERS, PROTECTED_BRANCHES, REMOTE_NAME
from git_worktree_cli.core.path_probe import GitEntry, has_git_entry, read_gitdir_target
from git_worktree_cli.core.project import find_project_root_from, resolve_execution_directory
from git_worktree_cli.exceptions import (
    BareWorktreeRemovalError,
    BranchError,
    GitOperationError,
    GitWorktreeError,
    WorktreeNotFoundError,
)
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.models.listing import ListEntry, ListResult
from git_worktree_cli.models.pull_request import RemotePullRequest
from git_worktree_cli.models.worktree import Worktree
from git_worktree_cli.services.git.operations import GitOperations
from git_worktree_cli.services.git.worktrees import WorktreeRegistry
from git_worktree_cli.services.hooks import HookRunner
from git_worktree_cli.services.providers.factory import ProviderTarget, auth_tip, create_provider
from git_worktree_cli.utils.threading import get_optimal_worker_count

logger = get_logger(__name__)

INIT_TIP = "Tip: Run 'gwt init' inside the repository to enable pull request information"


@dataclass
class RemoveResult:
    worktree: Worktree
    removed: bool = False
    branch_deleted: bool = False
    moved_to: Optional[Path] = None  # project root, when the current directory was removed


def _is_within(path: Path, ancestor: Path) -> bool:
    path, ancestor = path.resolve(), ancestor.resolve()
    return path == ancestor or ancestor in path.parents


def _is_main_checkout(worktree: Worktree) -> bool:
    """The bare entry, or a checkout that owns its repository instead of linking to one.

    Linked worktrees have a ``.git`` file pointing at ``<repo>/worktrees/<name>``,
    which holds a ``commondir`` file; a ``.git`` file pointing straight at a
    (bare) repository does not.
    """
    if worktree.bare:
        return True
    entry = has_git_entry(worktree.path)
    if entry is GitEntry.DIRECTORY:
        return True
    if entry is GitEntry.FILE:
        target = read_gitdir_target(worktree.path)
        return target is not None and target.is_dir() and not (target / "commondir").exists()
    return False


class WorktreeLifecycle:
    """Creates, lists and removes the worktrees of the project around a directory."""

    def __init__(
        self,
        git: Optional[GitOperations] = None,
        hooks: Optional[HookRunner] = None,
        console: Optional[Console] = None,
        confirm: Optional[Callable[[str], bool]] = None,
        cwd: Optional[Path] = None,
        provider_factory: Callable[[ProjectConfig], Optional[ProviderTarget]] = create_provider,
    ):
        """
        Args:
            git: Git command service
            hooks: Hook runner for postAdd, preRemove and postRemove
            console: Output console
            confirm: Asks a yes/no question; defaults to prompting on the console
            cwd: Directory the command acts from (defaults to the process directory)
            provider_factory: Builds the pull request provider for a configuration
        """
        self.git = git or GitOperations()
        self.console = console or Console()
        self.hooks = hooks or HookRunner(console=self.console)
        self.confirm = confirm or self._prompt
        self.cwd = Path(cwd) if cwd is not None else None
        self.registry = WorktreeRegistry(self.git)
        self.provider_factory = provider_factory

    def _prompt(self, question: str) -> bool:
        try:
            response = self.console.input(f"[cyan]{question} [y/N][/cyan] ")
        except EOFError:
            return False
        return response.strip().lower() in ("y", "yes")

    def _current_dir(self) -> Path:
        return (self.cwd or Path.cwd()).resolve()

    def _load_config(self, root: Path) -> Optional[ProjectConfig]:
        found = find_config(self._current_dir(), self.git)
        if found is None and root != self._current_dir():
            found = find_config(root, self.git)
        if found is None:
            return None
        config_path, config = found
        logger.debug(f"Using configuration {config_path}")
        return config

    def add(self, branch_name: str) -> Path:
        """Create a worktree for branch_name and run the postAdd hooks.

        Returns:
            Path of the (new or already existing) worktree

        Raises:
            BranchError: branch_name is empty
            GitOperationError: a git command failed
        """
        branch_name = (branch_name or "").strip()
        if not branch_name:
            raise BranchError("Branch name is required\nUsage: gwt add <branch-name>")

        root = find_project_root_from(self._current_dir(), self.git)
        exec_dir = resolve_execution_directory(root)
        config = self._load_config(root)

        worktrees_dir = (config.get_worktrees_path() if config else None) or derive_worktrees_path(root)
        worktrees_dir.mkdir(parents=True, exist_ok=True)
        target = worktrees_dir / branch_name

        if config is not None:
            main_branch = config.main_branch
        else:
            main_branch = self.git.get_remote_default_branch(exec_dir)

        self.console.print(f"[cyan]Preparing worktree (branch '{escape(branch_name)}')[/cyan]")
        self.console.print(f"[cyan]Fetching latest changes from {REMOTE_NAME}...[/cyan]")
        self.git.fetch_origin(exec_dir)

        local_exists, remote_exists = self.git.branch_exists(exec_dir, branch_name)
        if local_exists:
            existing = self.registry.find_by_branch(self.registry.list(exec_dir), branch_name)
            if existing is not None and existing.path.resolve() == target.resolve():
                self.console.print(f"[yellow]Worktree for '{escape(branch_name)}' already exists at {target}[/yellow]")
                return target
            self.console.print(
                f"[yellow]Branch '{escape(branch_name)}' exists locally, checking out existing branch...[/yellow]"
            )
            self.git.add_worktree(exec_dir, target, branch_name)
        elif remote_exists:
            self.console.print(
                f"[yellow]Branch '{escape(branch_name)}' exists remotely, checking out remote branch...[/yellow]"
            )
            self.git.add_worktree(
                exec_dir, target, branch_name, new_branch=True, start_point=f"{REMOTE_NAME}/{branch_name}"
            )
        else:
            self.console.print(
                f"[cyan]Creating new branch '{escape(branch_name)}' from "
                f"'{REMOTE_NAME}/{escape(main_branch)}'...[/cyan]"
            )
            self.git.add_worktree(
                exec_dir,
                target,
                branch_name,
                new_branch=True,
                start_point=f"{REMOTE_NAME}/{main_branch}",
                track=False,
            )

        logger.info(f"Created worktree {target} for {branch_name}")
        self.console.print(f"[green]✓ Worktree created at: {target}[/green]")
        self.console.print(f"[green]✓ Branch: {escape(branch_name)}[/green]")

        self.hooks.run_hooks(
            HookEvent.POST_ADD,
            target,
            {"branchName": branch_name, "worktreePath": str(target)},
            config,
        )
        return target

    def list(self, local_only: bool = False) -> ListResult:
        """Worktrees of the project, decorated with pull request status where available."""
        root = find_project_root_from(self._current_dir(), self.git)
        exec_dir = resolve_execution_directory(root)
        worktrees = self.registry.list(exec_dir)
        result = ListResult(entries=[ListEntry(wt) for wt in worktrees])
        if not worktrees:
            return result

        config = self._load_config(root)
        if config is None:
            result.tip = INIT_TIP
            return result

        target = self.provider_factory(config)
        if target is None:
            result.tip = auth_tip(config.source_control)
            return result
        if not target.provider.has_credentials():
            result.tip = target.provider.auth_tip
            return result

        self._fetch_pull_requests(target, result.entries)
        if not local_only:
            result.remote_pull_requests = self._remote_pull_requests(target, worktrees)
        return result

    def _fetch_pull_requests(self, target: ProviderTarget, entries: Sequence[ListEntry]) -> None:
        """Look up pull requests for every branch concurrently; failures leave that entry without one."""
        lookups = [e for e in entries if not e.worktree.bare and e.worktree.branch_name]
        if not lookups:
            return

        max_workers = get_optimal_worker_count(len(lookups), cap=MAX_PR_WORKERS)
        logger.debug(f"Fetching PR data for {len(lookups)} branches using {max_workers} workers")

        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            future_to_entry = {
                executor.submit(
                    target.provider.fetch_pull_request, target.owner, target.repo, entry.worktree.branch_name
                ): entry
                for entry in lookups
            }
            for future in as_completed(future_to_entry):
                entry = future_to_entry[future]
                try:
                    entry.pr = future.result()
                except Exception as e:
                    logger.debug(f"Could not fetch PR for {entry.worktree.branch_name}: {e}")

    def _remote_pull_requests(self, target: ProviderTarget, worktrees: Sequence[Worktree]) -> List[RemotePullRequest]:
        local_branches = {wt.branch_name for wt in worktrees if wt.branch_name}
        try:
            open_prs = target.provider.list_open_pull_requests(target.owner, target.repo)
        except Exception as e:
            logger.debug(f"Could not list open pull requests: {e}")
            return []
        return [
            RemotePullRequest(branch=branch, pr=pr)
            for pr, branch in open_prs
            if branch not in local_branches
        ]

    def _resolve_target(self, worktrees: Sequence[Worktree], branch_name: Optional[str]) -> Worktree:
        if branch_name is None:
            found = self.registry.find_containing(worktrees, self._current_dir())
        else:
            found = self.registry.find_by_branch(worktrees, branch_name) or self.registry.find_by_directory_name(
                worktrees, branch_name
            )
        if found is None:
            raise WorktreeNotFoundError(branch_name, [str(wt) for wt in worktrees])
        return found

    @staticmethod
    def _pick_runner(worktrees: Sequence[Worktree], target: Worktree, fallback: Path) -> Path:
        """Directory to run git from while target is removed.

        Another worktree, preferring one on a protected branch; else fallback
        (the project's execution directory, e.g. a bare repository) when it lies
        outside target.
        """
        others = [wt for wt in worktrees if wt.path != target.path and wt.path.is_dir()]
        for wt in others:
            if wt.branch_name in PROTECTED_BRANCHES:
                return wt.path
        if others:
            return others[0].path
        if fallback.is_dir() and not _is_within(fallback, target.path):
            return fallback
        raise GitWorktreeError("No other worktrees found to execute git command from.")

    def _delete_branch(self, runner_dir: Path, branch_name: str, force: bool) -> bool:
        try:
            self.git.delete_branch(runner_dir, branch_name)
            self.console.print(f"[green]✓ Branch deleted: {escape(branch_name)}[/green]")
            return True
        except GitOperationError as e:
            if not self.git.is_unmerged_error(e):
                logger.warning(f"Failed to delete branch {branch_name}: {e}")
                self.console.print(f"[red]Failed to delete branch '{escape(branch_name)}': {escape(str(e))}[/red]")
                return False

        self.console.print(f"[yellow]Branch '{escape(branch_name)}' has unmerged changes[/yellow]")
        if not force and not self.confirm("Force delete the branch?"):
            self.console.print(f"[yellow]Branch '{escape(branch_name)}' was not deleted[/yellow]")
            return False
        try:
            self.git.delete_branch(runner_dir, branch_name, force=True)
        except GitOperationError as e:
            logger.warning(f"Failed to force delete branch {branch_name}: {e}")
            self.console.print(f"[red]Failed to delete branch '{escape(branch_name)}': {escape(str(e))}[/red]")
            return False
        self.console.print(f"[green]✓ Branch force deleted: {escape(branch_name)}[/green]")
        return True

    def remove(self, branch_name: Optional[str] = None, force: bool = False) -> RemoveResult:
        """Remove a worktree and its branch.

        Args:
            branch_name: Branch or directory name; None means the worktree containing the current directory
            force: Skip confirmation prompts

        Raises:
            WorktreeNotFoundError: nothing matches branch_name
            BareWorktreeRemovalError: the target is the main checkout or the bare repository entry
            GitOperationError: git worktree remove failed
        """
        current = self._current_dir()
        root = find_project_root_from(current, self.git)
        exec_dir = resolve_execution_directory(root)
        worktrees = self.registry.list(exec_dir)

        target = self._resolve_target(worktrees, branch_name)
        if _is_main_checkout(target):
            raise BareWorktreeRemovalError(target.path)

        display = target.display_name
        self.console.print("[bold cyan]About to remove worktree:[/bold cyan]")
        self.console.print(f"  [dim]Path[/dim]: {target.path}")
        self.console.print(f"  [dim]Branch[/dim]: [green]{escape(display)}[/green]")

        will_remove_current = _is_within(current, target.path)
        if will_remove_current:
            self.console.print(
                "\n[yellow]You are currently in this worktree. "
                "You will be moved to the project root after removal.[/yellow]"
            )

        result = RemoveResult(worktree=target)
        if not force and not self.confirm("Are you sure you want to remove this worktree?"):
            self.console.print("[yellow]Removal cancelled.[/yellow]")
            return result

        config = self._load_config(root)
        variables = {"branchName": display, "worktreePath": str(target.path)}
        if target.path.is_dir():
            self.hooks.run_hooks(HookEvent.PRE_REMOVE, target.path, variables, config)

        runner_dir = self._pick_runner(worktrees, target, exec_dir)
        self.console.print("\n[cyan]Removing worktree...[/cyan]")
        self.git.remove_worktree(runner_dir, target.path, force=True)
        result.removed = True
        logger.info(f"Removed worktree {target.path}")
        self.console.print(f"[green]✓ Worktree removed: {target.path}[/green]")

        branch = target.branch_name
        if branch is None:
            logger.debug(f"{target.path} had a detached HEAD, no branch to delete")
        elif branch in PROTECTED_BRANCHES:
            self.console.print(f"[green]✓ Branch: {escape(branch)} (preserved - main branch)[/green]")
        else:
            result.branch_deleted = self._delete_branch(runner_dir, branch, force)

        if will_remove_current:
            if self.cwd is None:
                os.chdir(root)
            else:
                self.cwd = root
            result.moved_to = root

        self.hooks.run_hooks(HookEvent.POST_REMOVE, root, variables, config)

        if result.moved_to is not None:
            self.console.print(f"[green]✓ Please navigate to project root: {root}[/green]")
        return result
