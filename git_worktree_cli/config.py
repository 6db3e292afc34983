"""Project configuration handling for git-worktree-cli

The configuration is a JSON-with-comments file, either next to the
repository (``git-worktree-config.jsonc``) or in the global projects
directory, named after the repository's identity.
"""

import hashlib
import json
import os
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Tuple

import json5
from platformdirs import user_config_dir

from git_worktree_cli.constants import (
    APP_NAME,
    CONFIG_DIR_ENV_VAR,
    CONFIG_FILENAME,
    MAIN_CHECKOUT_DIRNAME,
    PROJECTS_DIRNAME,
    WORKTREES_SUFFIX,
)
from git_worktree_cli.exceptions import ConfigError
from git_worktree_cli.logging_config import get_logger
from git_worktree_cli.services.providers.urls import (
    extract_bitbucket_data_center_info_from_url,
    extract_bitbucket_info_from_url,
    parse_github_url,
)

if TYPE_CHECKING:
    from git_worktree_cli.services.git.operations import GitOperations

logger = get_logger(__name__)

ConfigMatch = Tuple[Path, "ProjectConfig"]


class SourceControl(Enum):
    """Hosting provider a project's pull requests live on."""
    GITHUB = "github"
    BITBUCKET_CLOUD = "bitbucket-cloud"
    BITBUCKET_DATA_CENTER = "bitbucket-data-center"


class HookEvent(Enum):
    """Named hook lists in the configuration."""
    POST_ADD = "postAdd"
    PRE_REMOVE = "preRemove"
    POST_REMOVE = "postRemove"


@dataclass
class Hooks:
    """Shell command templates run around worktree lifecycle events."""

    post_add: List[str] = field(default_factory=list)
    pre_remove: List[str] = field(default_factory=list)
    post_remove: List[str] = field(default_factory=list)

    def commands_for(self, event: HookEvent) -> List[str]:
        return {
            HookEvent.POST_ADD: self.post_add,
            HookEvent.PRE_REMOVE: self.pre_remove,
            HookEvent.POST_REMOVE: self.post_remove,
        }[event]

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            HookEvent.POST_ADD.value: list(self.post_add),
            HookEvent.PRE_REMOVE.value: list(self.pre_remove),
            HookEvent.POST_REMOVE.value: list(self.post_remove),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Hooks":
        if not isinstance(data, dict):
            raise ConfigError("'hooks' must be an object")

        def _commands(key: str) -> List[str]:
            value = data.get(key) or []
            if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
                raise ConfigError(f"'hooks.{key}' must be a list of strings")
            return list(value)

        return cls(
            post_add=_commands(HookEvent.POST_ADD.value),
            pre_remove=_commands(HookEvent.PRE_REMOVE.value),
            post_remove=_commands(HookEvent.POST_REMOVE.value),
        )


@dataclass
class ProjectConfig:
    """Persisted configuration of a worktree project with validation."""

    repository_url: str
    main_branch: str
    source_control: SourceControl
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # Absolute locations, used when the config is not co-located with the repo
    project_path: Optional[Path] = None
    worktrees_path: Optional[Path] = None

    bitbucket_email: Optional[str] = None
    hooks: Optional[Hooks] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_repository_url()
        self._validate_main_branch()
        self._validate_source_control()

    def _validate_repository_url(self):
        if not self.repository_url or not self.repository_url.strip():
            raise ConfigError("repositoryUrl cannot be empty")
        self.repository_url = self.repository_url.strip()

    def _validate_main_branch(self):
        if not self.main_branch or not self.main_branch.strip():
            raise ConfigError("mainBranch cannot be empty")
        self.main_branch = self.main_branch.strip()

    def _validate_source_control(self):
        if isinstance(self.source_control, SourceControl):
            return
        try:
            self.source_control = SourceControl(self.source_control)
        except ValueError:
            allowed = [sc.value for sc in SourceControl]
            raise ConfigError(
                f"sourceControl must be one of {allowed}, got '{self.source_control}'"
            ) from None

    @classmethod
    def create(
        cls,
        repository_url: str,
        main_branch: str,
        source_control: SourceControl,
        project_path: Optional[Path] = None,
        worktrees_path: Optional[Path] = None,
    ) -> "ProjectConfig":
        """New configuration with empty hook lists, as written by ``gwt init``."""
        return cls(
            repository_url=repository_url,
            main_branch=main_branch,
            source_control=source_control,
            project_path=project_path,
            worktrees_path=worktrees_path,
            hooks=Hooks(),
        )

    def get_worktrees_path(self) -> Optional[Path]:
        return self.worktrees_path

    def hook_commands(self, event: HookEvent) -> List[str]:
        if self.hooks is None:
            return []
        return self.hooks.commands_for(event)

    def to_dict(self) -> dict:
        """Serialise with the camelCase keys used on disk; unset optionals are omitted."""
        data = {
            "repositoryUrl": self.repository_url,
            "mainBranch": self.main_branch,
            "createdAt": self.created_at.isoformat().replace("+00:00", "Z"),
            "sourceControl": self.source_control.value,
        }
        if self.project_path is not None:
            data["projectPath"] = str(self.project_path)
        if self.worktrees_path is not None:
            data["worktreesPath"] = str(self.worktrees_path)
        if self.bitbucket_email is not None:
            data["bitbucketEmail"] = self.bitbucket_email
        if self.hooks is not None:
            data["hooks"] = self.hooks.to_dict()
        return data

    @classmethod
    def from_dict(cls, config_dict: dict) -> "ProjectConfig":
        """Create ProjectConfig from the on-disk dictionary; unknown keys are ignored."""
        if not isinstance(config_dict, dict):
            raise ConfigError("configuration must be a JSON object")

        missing = [key for key in ("repositoryUrl", "mainBranch", "sourceControl") if key not in config_dict]
        if missing:
            raise ConfigError(f"missing required keys: {', '.join(missing)}")

        hooks = config_dict.get("hooks")
        return cls(
            repository_url=config_dict["repositoryUrl"],
            main_branch=config_dict["mainBranch"],
            source_control=config_dict["sourceControl"],
            created_at=_parse_timestamp(config_dict.get("createdAt")),
            project_path=_optional_path(config_dict.get("projectPath")),
            worktrees_path=_optional_path(config_dict.get("worktreesPath")),
            bitbucket_email=config_dict.get("bitbucketEmail"),
            hooks=Hooks.from_dict(hooks) if hooks is not None else None,
        )

    @classmethod
    def load(cls, path: Path) -> "ProjectConfig":
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to read config file: {e}", path) from e

        try:
            data = json5.loads(content)
        except ValueError as e:
            raise ConfigError(f"Failed to parse config file: {e}", path) from e

        try:
            return cls.from_dict(data)
        except ConfigError as e:
            raise ConfigError(e.message, path) from None

    def save(self, path: Path) -> None:
        try:
            Path(path).write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Failed to write config file: {e}", path) from e


def _parse_timestamp(value: Optional[str]) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # Python's parser accepts at most six fractional digits
    text = re.sub(r"(\.\d{6})\d+", r"\1", text)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ConfigError(f"createdAt is not an ISO-8601 timestamp: '{value}'") from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_path(value: Optional[str]) -> Optional[Path]:
    if value is None or value == "":
        return None
    return Path(value).expanduser()


def derive_worktrees_path(project_root: Path) -> Path:
    """``/code/repo`` -> ``/code/repo-worktrees``."""
    project_root = Path(project_root)
    return project_root.parent / f"{project_root.name}{WORKTREES_SUFFIX}"


def projects_config_dir() -> Path:
    """Global directory holding configs of projects initialised without --local."""
    override = os.environ.get(CONFIG_DIR_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return Path(user_config_dir(APP_NAME)) / PROJECTS_DIRNAME


def _sanitize(component: str) -> str:
    return re.sub(r"[^A-Za-z0-9._-]", "-", component)


def generate_config_filename(repo_url: str) -> str:
    """Deterministic global config filename for a repository URL.

    SSH and HTTPS forms of the same repository produce the same name.
    Unrecognised URL shapes fall back to a hash of the URL.
    """
    github = parse_github_url(repo_url)
    if github:
        owner, repo = github
        return f"github_{_sanitize(owner)}_{_sanitize(repo)}.jsonc"

    bitbucket = extract_bitbucket_info_from_url(repo_url)
    if bitbucket:
        workspace, repo = bitbucket
        return f"bitbucket-cloud_{_sanitize(workspace)}_{_sanitize(repo)}.jsonc"

    data_center = extract_bitbucket_data_center_info_from_url(repo_url)
    if data_center:
        host = data_center.base_url.split("://", 1)[-1]
        return (
            f"bitbucket-data-center_{_sanitize(host)}_"
            f"{_sanitize(data_center.project_key)}_{_sanitize(data_center.repo_slug)}.jsonc"
        )

    digest = hashlib.sha256(repo_url.strip().encode("utf-8")).hexdigest()[:16]
    return f"repo_{digest}.jsonc"


def _ancestors(start: Path) -> Iterator[Path]:
    yield start
    yield from start.parents


def _is_within(path: Path, ancestor: Path) -> bool:
    try:
        path.relative_to(ancestor)
        return True
    except ValueError:
        return False


def find_local_config(start: Path) -> Optional[ConfigMatch]:
    """Walk upward from start checking ``<dir>/<config>`` and ``<dir>/main/<config>``."""
    for directory in _ancestors(start):
        for candidate in (directory / CONFIG_FILENAME, directory / MAIN_CHECKOUT_DIRNAME / CONFIG_FILENAME):
            if candidate.is_file():
                logger.debug(f"Found local config at {candidate}")
                return candidate, ProjectConfig.load(candidate)
    return None


def find_global_config_by_url(repo_url: str) -> Optional[ConfigMatch]:
    candidate = projects_config_dir() / generate_config_filename(repo_url)
    if candidate.is_file():
        logger.debug(f"Found global config for {repo_url} at {candidate}")
        return candidate, ProjectConfig.load(candidate)
    return None


def find_global_config_by_path(start: Path) -> Optional[ConfigMatch]:
    """First global config whose projectPath contains start."""
    projects_dir = projects_config_dir()
    try:
        candidates = sorted(projects_dir.glob("*.jsonc"))
    except OSError as e:
        logger.debug(f"Could not scan {projects_dir}: {e}")
        return None

    for candidate in candidates:
        try:
            config = ProjectConfig.load(candidate)
        except ConfigError as e:
            logger.warning(f"Skipping unreadable config: {e}")
            continue
        if config.project_path is None:
            continue
        if _is_within(start, config.project_path.resolve()):
            logger.debug(f"Config {candidate} covers {start}")
            return candidate, config
    return None


def find_config(
    start: Optional[Path] = None, git: Optional["GitOperations"] = None
) -> Optional[ConfigMatch]:
    """Locate the project configuration for a directory.

    Search order, first match wins:
        1. local files from start up to the filesystem root
        2. the global config named after the origin remote URL
        3. the first global config whose projectPath contains start

    Args:
        start: Directory to search from (defaults to the current directory)
        git: Git operations used to read the origin URL

    Returns:
        (config path, config) or None when nothing matches
    """
    start = Path(start or Path.cwd()).resolve()

    found = find_local_config(start)
    if found:
        return found

    if git is None:
        from git_worktree_cli.services.git.operations import GitOperations

        git = GitOperations()

    repo_url = git.get_remote_origin_url(start)
    if repo_url:
        found = find_global_config_by_url(repo_url)
        if found:
            return found

    return find_global_config_by_path(start)
