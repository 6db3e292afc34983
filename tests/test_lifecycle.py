"""Tests for adding, listing and removing worktrees"""
from pathlib import Path
from threading import Lock
from unittest.mock import Mock

import git
import pytest

from git_worktree_cli.config import ProjectConfig, SourceControl
from git_worktree_cli.constants import CONFIG_FILENAME, HOOK_ENV
from git_worktree_cli.core.lifecycle import INIT_TIP, WorktreeLifecycle
from git_worktree_cli.exceptions import (
    BareWorktreeRemovalError,
    BranchError,
    WorktreeNotFoundError,
)
from git_worktree_cli.models.pull_request import PrSummary
from git_worktree_cli.services.providers.base import OPEN, PullRequestProvider
from git_worktree_cli.services.providers.factory import ProviderTarget


def shell_commands(hook_runner):
    """Hook commands handed to the runner, with their working directories."""
    return [(c.args[0], Path(c.args[1])) for c in hook_runner.runner.run_shell.call_args_list]


@pytest.fixture
def lifecycle(project_root, project_config, hook_runner, console):
    return WorktreeLifecycle(
        hooks=hook_runner,
        console=console,
        confirm=lambda question: True,
        cwd=project_root,
    )


@pytest.fixture
def worktrees_dir(project_root):
    return project_root.parent / "repo-worktrees"


class TestAdd:
    """Test worktree creation strategies."""

    def test_new_branch_starts_from_main_without_tracking(self, lifecycle, project_repo, worktrees_dir):
        path = lifecycle.add("feature-a")

        assert path == worktrees_dir / "feature-a"
        assert (path / "README.md").exists()
        assert project_repo.git.rev_parse("feature-a") == project_repo.git.rev_parse("origin/main")
        with pytest.raises(git.GitCommandError):
            project_repo.git.rev_parse("--abbrev-ref", "feature-a@{upstream}")

    def test_remote_branch_is_tracked(self, lifecycle, project_repo, worktrees_dir):
        path = lifecycle.add("remote-only")

        assert (path / "remote.txt").exists()
        assert project_repo.git.rev_parse("--abbrev-ref", "remote-only@{upstream}") == "origin/remote-only"

    def test_existing_local_branch_is_checked_out(self, lifecycle, project_repo, worktrees_dir):
        project_repo.git.branch("local-only")
        path = lifecycle.add("local-only")

        assert path == worktrees_dir / "local-only"
        assert git.Repo(path).active_branch.name == "local-only"

    def test_post_add_hooks_run_in_new_worktree(self, lifecycle, hook_runner, worktrees_dir):
        lifecycle.add("feature-a")

        hook_runner.runner.run_shell.assert_called_once_with(
            "echo added feature-a", worktrees_dir / "feature-a", env=HOOK_ENV
        )

    def test_adding_twice_is_idempotent(self, lifecycle, hook_runner, output, project_root):
        first = lifecycle.add("feature-a")
        second = lifecycle.add("feature-a")

        assert first == second
        assert "already exists" in output.getvalue()
        assert hook_runner.runner.run_shell.call_count == 1
        assert len(lifecycle.registry.list(project_root)) == 2

    def test_without_configuration_branches_from_remote_default(self, project_repo, project_root, hook_runner, console):
        lifecycle = WorktreeLifecycle(hooks=hook_runner, console=console, confirm=lambda q: True, cwd=project_root)

        path = lifecycle.add("feature-x")

        assert path == project_root.parent / "repo-worktrees" / "feature-x"
        assert project_repo.git.rev_parse("feature-x") == project_repo.git.rev_parse("origin/main")
        with pytest.raises(git.GitCommandError):
            project_repo.git.rev_parse("--abbrev-ref", "feature-x@{upstream}")
        hook_runner.runner.run_shell.assert_not_called()

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_branch_name(self, name, mock_git, console):
        lifecycle = WorktreeLifecycle(git=mock_git, console=console)

        with pytest.raises(BranchError, match="Branch name is required"):
            lifecycle.add(name)
        mock_git.add_worktree.assert_not_called()


class TestRemove:
    """Test worktree removal."""

    def test_remove_merged_branch(self, lifecycle, hook_runner, project_repo, project_root, worktrees_dir):
        path = lifecycle.add("feature-a")
        hook_runner.runner.run_shell.reset_mock()

        result = lifecycle.remove("feature-a")

        assert result.removed
        assert result.branch_deleted
        assert result.moved_to is None
        assert not path.exists()
        assert "feature-a" not in project_repo.git.branch("--list")
        assert shell_commands(hook_runner) == [
            ("echo removing feature-a", path),
            (f"echo removed feature-a from {path}", project_root),
        ]
        hook_runner.runner.run_shell.assert_called_with(
            f"echo removed feature-a from {path}", project_root, env=HOOK_ENV
        )

    def test_remove_by_directory_name(self, lifecycle, project_repo, worktrees_dir):
        path = lifecycle.add("feature-a")
        renamed = worktrees_dir / "renamed"
        project_repo.git.worktree("move", str(path), str(renamed))

        result = lifecycle.remove("renamed")

        assert result.removed
        assert not renamed.exists()

    def test_unmerged_branch_is_force_deleted(self, lifecycle, project_repo):
        path = lifecycle.add("feature-b")
        wt_repo = git.Repo(path)
        (path / "work.txt").write_text("unmerged\n")
        wt_repo.index.add(["work.txt"])
        wt_repo.index.commit("Unmerged work")
        wt_repo.close()

        result = lifecycle.remove("feature-b", force=True)

        assert result.branch_deleted
        assert "feature-b" not in project_repo.git.branch("--list")

    def test_unmerged_branch_kept_when_declined(self, project_root, project_config, hook_runner, console, project_repo):
        answers = iter([True, False])
        lifecycle = WorktreeLifecycle(
            hooks=hook_runner, console=console, confirm=lambda question: next(answers), cwd=project_root
        )
        path = lifecycle.add("feature-b")
        wt_repo = git.Repo(path)
        (path / "work.txt").write_text("unmerged\n")
        wt_repo.index.add(["work.txt"])
        wt_repo.index.commit("Unmerged work")
        wt_repo.close()

        result = lifecycle.remove("feature-b")

        assert result.removed
        assert not result.branch_deleted
        assert "feature-b" in project_repo.git.branch("--list")

    def test_protected_branch_is_preserved(self, lifecycle, project_repo, output):
        path = lifecycle.add("develop")

        result = lifecycle.remove("develop")

        assert result.removed
        assert not result.branch_deleted
        assert not path.exists()
        assert "develop" in project_repo.git.branch("--list")
        assert "preserved" in output.getvalue()

    def test_declined_confirmation_changes_nothing(self, project_root, project_config, hook_runner, console, output):
        lifecycle = WorktreeLifecycle(hooks=hook_runner, console=console, confirm=lambda q: True, cwd=project_root)
        path = lifecycle.add("feature-a")
        hook_runner.runner.run_shell.reset_mock()
        lifecycle.confirm = lambda question: False

        result = lifecycle.remove("feature-a")

        assert not result.removed
        assert path.exists()
        assert "Removal cancelled." in output.getvalue()
        hook_runner.runner.run_shell.assert_not_called()

    def test_remove_current_worktree(self, lifecycle, project_root, temp_dir, monkeypatch):
        path = lifecycle.add("feature-a")
        inside = path / "src"
        inside.mkdir()
        monkeypatch.chdir(temp_dir)
        lifecycle.cwd = inside

        result = lifecycle.remove()

        assert result.removed
        assert result.moved_to == project_root
        assert lifecycle.cwd == project_root
        assert Path.cwd().resolve() == temp_dir.resolve()

    def test_remove_current_worktree_moves_process(self, project_root, project_config, hook_runner, console, monkeypatch):
        adder = WorktreeLifecycle(hooks=hook_runner, console=console, confirm=lambda q: True, cwd=project_root)
        path = adder.add("feature-a")
        inside = path / "src"
        inside.mkdir()
        monkeypatch.chdir(inside)
        lifecycle = WorktreeLifecycle(hooks=hook_runner, console=console, confirm=lambda q: True)

        result = lifecycle.remove()

        assert result.removed
        assert result.moved_to == project_root
        assert lifecycle.cwd is None
        assert Path.cwd().resolve() == project_root

    def test_unknown_worktree(self, lifecycle):
        with pytest.raises(WorktreeNotFoundError) as exc_info:
            lifecycle.remove("does-not-exist")
        assert exc_info.value.available
        assert "Available worktrees" in str(exc_info.value)

    def test_no_worktree_contains_current_directory(self, lifecycle, project_root):
        lifecycle.add("feature-a")
        lifecycle.cwd = project_root.parent / "repo-worktrees"

        with pytest.raises(WorktreeNotFoundError, match="Not in a git worktree"):
            lifecycle.remove()

    def test_remove_from_bare_repository_layout(self, temp_dir, origin_repo, hook_runner, console):
        project = temp_dir / "proj"
        bare = git.Repo.clone_from(origin_repo.git_dir, project / ".bare", bare=True)
        (project / ".git").write_text("gitdir: ./.bare\n")
        wt_path = temp_dir / "proj-worktrees" / "feature-a"
        bare.git.branch("feature-a", "main")
        bare.git.worktree("add", str(wt_path), "feature-a")

        config = ProjectConfig.create(
            "git@github.com:test/repo.git",
            "main",
            SourceControl.GITHUB,
            project_path=project,
            worktrees_path=temp_dir / "proj-worktrees",
        )
        config.hooks.post_remove.append("echo removed ${branchName}")
        config.save(temp_dir / CONFIG_FILENAME)

        lifecycle = WorktreeLifecycle(hooks=hook_runner, console=console, confirm=lambda q: True, cwd=project)
        result = lifecycle.remove("feature-a")

        assert result.removed
        assert result.branch_deleted
        assert not wt_path.exists()
        assert "feature-a" not in bare.git.branch("--list")
        assert shell_commands(hook_runner) == [("echo removed feature-a", project)]
        bare.close()

    def test_bare_entry_is_refused(self, temp_dir, mock_git, console):
        project = temp_dir / "proj"
        (project / ".git").mkdir(parents=True)
        mock_git.get_git_root.return_value = project
        mock_git.list_worktrees_porcelain.return_value = (
            f"worktree {temp_dir / 'proj.git'}\nHEAD abc\nbare\n\n"
            f"worktree {project}\nHEAD def\nbranch refs/heads/main\n"
        )
        lifecycle = WorktreeLifecycle(git=mock_git, console=console, confirm=lambda q: True, cwd=project)

        with pytest.raises(BareWorktreeRemovalError):
            lifecycle.remove("proj.git")
        mock_git.remove_worktree.assert_not_called()
        mock_git.delete_branch.assert_not_called()

    @pytest.mark.parametrize("name", ["repo", None])
    def test_main_checkout_is_refused(self, name, project_root, project_config, hook_runner, console, output):
        questions = []

        def confirm(question):
            questions.append(question)
            return True

        lifecycle = WorktreeLifecycle(hooks=hook_runner, console=console, confirm=confirm, cwd=project_root)
        lifecycle.add("feature-a")
        questions.clear()
        hook_runner.runner.run_shell.reset_mock()

        with pytest.raises(BareWorktreeRemovalError):
            lifecycle.remove(name)

        assert questions == []
        hook_runner.runner.run_shell.assert_not_called()
        assert (project_root / ".git").is_dir()
        assert "About to remove" not in output.getvalue()
        assert len(lifecycle.registry.list(project_root)) == 2


class FakeProvider(PullRequestProvider):
    auth_tip = "Tip: log in to the fake provider"

    def __init__(self, credentials=True, open_prs=None):
        self.credentials = credentials
        self.open_prs = open_prs or []
        self.requested = []
        self._lock = Lock()

    def fetch_pull_request(self, owner, repo, branch):
        with self._lock:
            self.requested.append(branch)
        if branch == "broken":
            raise RuntimeError("provider exploded")
        if branch == "no-pr":
            return None
        return PrSummary(url=f"https://example.test/{branch}", status=OPEN, title=f"Work on {branch}", number=1)

    def list_open_pull_requests(self, owner, repo):
        return self.open_prs

    def has_credentials(self):
        return self.credentials

    def test_connection(self):
        return "ok"


class TestList:
    """Test listing worktrees with pull request information."""

    @pytest.fixture
    def project(self, temp_dir, mock_git):
        project = temp_dir / "proj"
        (project / ".git").mkdir(parents=True)
        worktrees = temp_dir / "proj-worktrees"
        mock_git.get_git_root.return_value = project
        mock_git.list_worktrees_porcelain.return_value = "\n".join([
            f"worktree {project}", "HEAD aaa", "branch refs/heads/main", "",
            f"worktree {worktrees / 'feature-a'}", "HEAD bbb", "branch refs/heads/feature-a", "",
            f"worktree {worktrees / 'broken'}", "HEAD ccc", "branch refs/heads/broken", "",
            f"worktree {worktrees / 'no-pr'}", "HEAD ddd", "branch refs/heads/no-pr", "",
            f"worktree {worktrees / 'review'}", "HEAD eeeeeeeeee", "detached", "",
        ])
        return project

    def _configure(self, project):
        ProjectConfig.create("git@github.com:test/repo.git", "main", SourceControl.GITHUB).save(
            project / CONFIG_FILENAME
        )

    def _lifecycle(self, project, mock_git, console, provider):
        return WorktreeLifecycle(
            git=mock_git,
            console=console,
            cwd=project,
            provider_factory=lambda config: ProviderTarget(provider, "test", "repo"),
        )

    def test_pull_requests_fetched_per_branch(self, project, mock_git, console):
        self._configure(project)
        remote = PrSummary("https://example.test/9", OPEN, "Remote work", 9)
        local = PrSummary("https://example.test/1", OPEN, "Local work", 1)
        provider = FakeProvider(open_prs=[(local, "feature-a"), (remote, "remote-only")])

        result = self._lifecycle(project, mock_git, console, provider).list()

        by_name = {entry.display_name: entry for entry in result.entries}
        assert [entry.display_name for entry in result.entries] == ["main", "feature-a", "broken", "no-pr", "eeeeeeee"]
        assert by_name["feature-a"].pr.url == "https://example.test/feature-a"
        assert by_name["main"].pr is not None
        assert by_name["broken"].pr is None
        assert by_name["no-pr"].pr is None
        assert by_name["eeeeeeee"].pr is None
        assert sorted(provider.requested) == ["broken", "feature-a", "main", "no-pr"]
        assert [(r.branch, r.pr) for r in result.remote_pull_requests] == [("remote-only", remote)]
        assert result.tip is None

    def test_local_only_skips_open_pull_requests(self, project, mock_git, console):
        self._configure(project)
        provider = FakeProvider(open_prs=[(PrSummary("u", OPEN), "remote-only")])

        result = self._lifecycle(project, mock_git, console, provider).list(local_only=True)

        assert result.remote_pull_requests == []
        assert result.entries[1].pr is not None

    def test_without_configuration(self, project, mock_git, console):
        provider = FakeProvider()
        result = self._lifecycle(project, mock_git, console, provider).list()

        assert result.tip == INIT_TIP
        assert len(result.entries) == 5
        assert provider.requested == []

    def test_without_credentials(self, project, mock_git, console):
        self._configure(project)
        provider = FakeProvider(credentials=False)

        result = self._lifecycle(project, mock_git, console, provider).list()

        assert result.tip == FakeProvider.auth_tip
        assert all(entry.pr is None for entry in result.entries)
        assert provider.requested == []

    def test_unparsable_repository_url(self, project, mock_git, console):
        self._configure(project)
        lifecycle = WorktreeLifecycle(git=mock_git, console=console, cwd=project, provider_factory=lambda config: None)

        result = lifecycle.list()

        assert "gh auth login" in result.tip

    def test_open_pull_request_failure_is_ignored(self, project, mock_git, console):
        self._configure(project)
        provider = FakeProvider()
        provider.list_open_pull_requests = Mock(side_effect=RuntimeError("down"))

        result = self._lifecycle(project, mock_git, console, provider).list()

        assert result.remote_pull_requests == []
        assert result.entries[0].pr is not None
