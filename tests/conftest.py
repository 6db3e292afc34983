"""Pytest fixtures for git-worktree-cli tests"""
import io
import tempfile
from pathlib import Path
from unittest.mock import Mock

import git
import pytest
from rich.console import Console

from git_worktree_cli.config import ProjectConfig, SourceControl
from git_worktree_cli.constants import CONFIG_DIR_ENV_VAR, CONFIG_FILENAME
from git_worktree_cli.services.command_runner import CommandRunner
from git_worktree_cli.services.git.operations import GitOperations
from git_worktree_cli.services.hooks import HookRunner

CREDENTIAL_ENV_VARS = (
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "BITBUCKET_CLOUD_EMAIL",
    "BITBUCKET_CLOUD_API_TOKEN",
    "BITBUCKET_DATA_CENTER_HTTP_ACCESS_TOKEN",
)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Point the global projects directory at a temp dir and drop real credentials."""
    projects_dir = tmp_path / "global-projects"
    monkeypatch.setenv(CONFIG_DIR_ENV_VAR, str(projects_dir))
    for name in CREDENTIAL_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return projects_dir


@pytest.fixture
def projects_dir(isolated_environment):
    isolated_environment.mkdir(parents=True, exist_ok=True)
    return isolated_environment


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def console(output):
    """Console writing to a buffer instead of the terminal."""
    return Console(file=output, width=200, color_system=None)


def _configure_user(repo: git.Repo) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")


@pytest.fixture
def origin_repo(temp_dir):
    """Bare repository acting as 'origin', with branches main and remote-only."""
    seed_path = temp_dir / "seed"
    seed_path.mkdir()
    seed = git.Repo.init(seed_path)
    _configure_user(seed)

    (seed_path / "README.md").write_text("# Test Repository\n")
    seed.index.add(["README.md"])
    seed.index.commit("Initial commit")
    seed.git.branch("-M", "main")

    seed.git.checkout("-b", "remote-only")
    (seed_path / "remote.txt").write_text("Remote work\n")
    seed.index.add(["remote.txt"])
    seed.index.commit("Remote work")
    seed.git.checkout("main")

    origin_path = temp_dir / "origin.git"
    origin = git.Repo.init(origin_path, bare=True)
    seed.create_remote("origin", str(origin_path))
    seed.git.push("origin", "main", "remote-only")
    origin.git.symbolic_ref("HEAD", "refs/heads/main")

    seed.close()
    yield origin
    origin.close()


@pytest.fixture
def project_repo(temp_dir, origin_repo):
    """Clone of origin at <temp>/repo; worktrees go to <temp>/repo-worktrees."""
    repo_path = temp_dir / "repo"
    repo = git.Repo.clone_from(origin_repo.git_dir, repo_path)
    _configure_user(repo)
    yield repo
    repo.close()


@pytest.fixture
def project_root(project_repo):
    return Path(project_repo.working_dir).resolve()


@pytest.fixture
def project_config(project_root):
    """Local config next to the repository, with one hook per event."""
    config = ProjectConfig.create(
        repository_url="git@github.com:test/repo.git",
        main_branch="main",
        source_control=SourceControl.GITHUB,
        project_path=project_root,
        worktrees_path=project_root.parent / f"{project_root.name}-worktrees",
    )
    config.hooks.post_add.append("echo added ${branchName}")
    config.hooks.pre_remove.append("echo removing ${branchName}")
    config.hooks.post_remove.append("echo removed ${branchName} from ${worktreePath}")
    config.save(project_root.parent / CONFIG_FILENAME)
    return config


@pytest.fixture
def hook_runner(console):
    """HookRunner whose commands are recorded instead of executed."""
    runner = Mock(spec=CommandRunner)
    return HookRunner(runner=runner, console=console)


@pytest.fixture
def mock_git():
    """Mock GitOperations with no origin remote."""
    service = Mock(spec=GitOperations)
    service.get_remote_origin_url.return_value = None
    service.is_unmerged_error.side_effect = GitOperations.is_unmerged_error
    return service
