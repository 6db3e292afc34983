"""External command execution for hooks and provider CLIs.

Git itself goes through GitOperations; everything else that needs a
subprocess uses CommandRunner so tests can substitute a fake.
"""

import os
import subprocess
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence, Union

from git_worktree_cli.exceptions import HookError
from git_worktree_cli.logging_config import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


@dataclass(frozen=True)
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs commands to completion, one at a time."""

    def _environment(self, extra_env: Optional[Mapping[str, str]]) -> Optional[dict]:
        if not extra_env:
            return None
        env = os.environ.copy()
        env.update(extra_env)
        return env

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> CommandResult:
        """Run a command and capture its output.

        Raises:
            OSError: the executable could not be started
        """
        logger.debug(f"Running {' '.join(args)} in {cwd or os.getcwd()}")
        completed = subprocess.run(
            list(args),
            cwd=str(cwd) if cwd is not None else None,
            env=self._environment(env),
            capture_output=True,
            text=True,
        )
        if completed.returncode != 0:
            logger.debug(f"{args[0]} exited {completed.returncode}: {completed.stderr.strip()}")
        return CommandResult(completed.returncode, completed.stdout, completed.stderr)

    def run_shell(
        self,
        command: str,
        cwd: PathLike,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Run a command line through ``sh -c``, streaming output to the terminal.

        Raises:
            HookError: the shell could not be started or the command exited non-zero
        """
        logger.debug(f"Running shell command {command!r} in {cwd}")
        try:
            completed = subprocess.run(
                ["sh", "-c", command],
                cwd=str(cwd),
                env=self._environment(env),
            )
        except OSError as e:
            raise HookError(command, message=f"failed to execute: {e}") from e

        if completed.returncode != 0:
            raise HookError(command, completed.returncode)
