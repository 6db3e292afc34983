"""Tests for project configuration loading and lookup"""
import json
from datetime import timezone
from pathlib import Path

import pytest

from git_worktree_cli.config import (
    HookEvent,
    Hooks,
    ProjectConfig,
    SourceControl,
    derive_worktrees_path,
    find_config,
    generate_config_filename,
    projects_config_dir,
)
from git_worktree_cli.constants import CONFIG_FILENAME
from git_worktree_cli.exceptions import ConfigError

JSONC_CONFIG = """
// git-worktree-cli configuration
{
  "repositoryUrl": "git@github.com:acme/widgets.git",
  "mainBranch": "develop",
  /* provider selection */
  "sourceControl": "github",
  "createdAt": "2024-03-01T12:30:00.123456789Z",
  "hooks": {
    "postAdd": ["npm install", "echo ${branchName}",],
    "preRemove": [],
  },
  "someFutureKey": true,
}
"""


def _config(url="git@github.com:acme/widgets.git", project_path=None) -> ProjectConfig:
    return ProjectConfig.create(url, "main", SourceControl.GITHUB, project_path=project_path)


class TestProjectConfig:
    """Test validation and (de)serialisation."""

    def test_loads_jsonc_with_comments_and_trailing_commas(self, temp_dir):
        path = temp_dir / CONFIG_FILENAME
        path.write_text(JSONC_CONFIG)
        config = ProjectConfig.load(path)

        assert config.repository_url == "git@github.com:acme/widgets.git"
        assert config.main_branch == "develop"
        assert config.source_control is SourceControl.GITHUB
        assert config.created_at.tzinfo is not None
        assert config.created_at.astimezone(timezone.utc).hour == 12
        assert config.hook_commands(HookEvent.POST_ADD) == ["npm install", "echo ${branchName}"]
        assert config.hook_commands(HookEvent.POST_REMOVE) == []

    def test_invalid_source_control(self):
        with pytest.raises(ConfigError, match="sourceControl"):
            ProjectConfig("git@github.com:a/b.git", "main", "gitlab")

    def test_empty_main_branch(self):
        with pytest.raises(ConfigError, match="mainBranch"):
            ProjectConfig("git@github.com:a/b.git", "  ", SourceControl.GITHUB)

    def test_missing_required_keys(self, temp_dir):
        path = temp_dir / CONFIG_FILENAME
        path.write_text('{"repositoryUrl": "x"}')
        with pytest.raises(ConfigError) as exc_info:
            ProjectConfig.load(path)
        assert exc_info.value.path == path
        assert "mainBranch" in str(exc_info.value)

    def test_unparsable_file(self, temp_dir):
        path = temp_dir / CONFIG_FILENAME
        path.write_text("{ not json")
        with pytest.raises(ConfigError, match="Failed to parse"):
            ProjectConfig.load(path)

    def test_hooks_must_be_string_lists(self):
        with pytest.raises(ConfigError, match="hooks.postAdd"):
            Hooks.from_dict({"postAdd": "npm install"})

    def test_save_omits_unset_optionals(self, temp_dir):
        config = ProjectConfig("git@github.com:a/b.git", "main", SourceControl.GITHUB)
        path = temp_dir / CONFIG_FILENAME
        config.save(path)
        data = json.loads(path.read_text())

        assert set(data) == {"repositoryUrl", "mainBranch", "createdAt", "sourceControl"}
        assert data["createdAt"].endswith("Z")

    def test_create_initialises_empty_hooks(self, temp_dir):
        config = _config(project_path=temp_dir)
        path = temp_dir / CONFIG_FILENAME
        config.save(path)
        data = json.loads(path.read_text())

        assert data["hooks"] == {"postAdd": [], "preRemove": [], "postRemove": []}
        assert data["projectPath"] == str(temp_dir)
        assert ProjectConfig.load(path).project_path == temp_dir


class TestConfigFilename:
    """Test the global config naming scheme."""

    def test_github_ssh_and_https_match(self):
        ssh = generate_config_filename("git@github.com:owner/repo.git")
        https = generate_config_filename("https://github.com/owner/repo.git")
        assert ssh == https == "github_owner_repo.jsonc"

    def test_bitbucket_cloud(self):
        assert generate_config_filename("git@bitbucket.org:team/app.git") == "bitbucket-cloud_team_app.jsonc"
        assert generate_config_filename("https://user@bitbucket.org/team/app.git") == "bitbucket-cloud_team_app.jsonc"

    def test_bitbucket_data_center(self):
        name = generate_config_filename("https://git.acme.com/scm/PROJ/service.git")
        assert name == "bitbucket-data-center_git.acme.com_PROJ_service.jsonc"
        assert generate_config_filename("ssh://git@git.acme.com:7999/PROJ/service.git") == name

    def test_unrecognised_url_uses_hash(self):
        name = generate_config_filename("/srv/git/repo.git")
        assert name.startswith("repo_")
        assert name.endswith(".jsonc")
        assert len(name) == len("repo_") + 16 + len(".jsonc")
        assert generate_config_filename("/srv/git/repo.git") == name
        assert generate_config_filename("/srv/git/other.git") != name


class TestFindConfig:
    """Test the config search order."""

    def test_derive_worktrees_path(self):
        assert derive_worktrees_path(Path("/code/repo")) == Path("/code/repo-worktrees")

    def test_projects_dir_override(self, isolated_environment):
        assert projects_config_dir() == isolated_environment

    def test_not_found(self, temp_dir, mock_git):
        assert find_config(temp_dir, mock_git) is None

    def test_local_config_in_ancestor(self, temp_dir, mock_git):
        _config().save(temp_dir / CONFIG_FILENAME)
        nested = temp_dir / "repo" / "src" / "pkg"
        nested.mkdir(parents=True)

        path, config = find_config(nested, mock_git)
        assert path == temp_dir / CONFIG_FILENAME
        assert config.repository_url == "git@github.com:acme/widgets.git"

    def test_local_config_in_main_subdirectory(self, temp_dir, mock_git):
        (temp_dir / "main").mkdir()
        _config().save(temp_dir / "main" / CONFIG_FILENAME)

        path, _ = find_config(temp_dir, mock_git)
        assert path == temp_dir / "main" / CONFIG_FILENAME

    def test_identity_lookup(self, temp_dir, projects_dir, mock_git):
        url = "https://github.com/acme/widgets.git"
        _config(url).save(projects_dir / generate_config_filename(url))
        mock_git.get_remote_origin_url.return_value = "git@github.com:acme/widgets.git"

        path, config = find_config(temp_dir, mock_git)
        assert path == projects_dir / "github_acme_widgets.jsonc"
        assert config.repository_url == url

    def test_containment_lookup(self, temp_dir, projects_dir, mock_git):
        project = temp_dir / "project"
        nested = project / "main" / "src"
        nested.mkdir(parents=True)
        (projects_dir / "a_broken.jsonc").write_text("{ broken")
        _config("git@github.com:other/thing.git", project_path=temp_dir / "elsewhere").save(
            projects_dir / "b_other.jsonc"
        )
        _config(project_path=project).save(projects_dir / "c_match.jsonc")

        path, config = find_config(nested, mock_git)
        assert path == projects_dir / "c_match.jsonc"
        assert config.project_path == project

    def test_local_beats_identity_beats_containment(self, temp_dir, projects_dir, mock_git):
        start = temp_dir / "repo"
        start.mkdir()
        url = "git@github.com:acme/widgets.git"
        mock_git.get_remote_origin_url.return_value = url

        _config(project_path=temp_dir).save(projects_dir / "aaa_containment.jsonc")
        assert find_config(start, mock_git)[0] == projects_dir / "aaa_containment.jsonc"

        _config(url).save(projects_dir / generate_config_filename(url))
        assert find_config(start, mock_git)[0] == projects_dir / "github_acme_widgets.jsonc"

        _config(url).save(start / CONFIG_FILENAME)
        assert find_config(start, mock_git)[0] == start / CONFIG_FILENAME
