"""Command-line argument parsing for git-worktree-cli."""

import argparse

from git_worktree_cli.__version__ import __version__
from git_worktree_cli.config import SourceControl

AUTH_PROVIDERS = [sc.value for sc in SourceControl]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gwt",
        description="Manage git worktrees with lifecycle hooks and pull request status",
        epilog="Pull request status needs GitHub (GITHUB_TOKEN or 'gh auth login') or Bitbucket credentials; "
        "see 'gwt auth <provider> setup'.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information and write ~/.git-worktree-cli/gwt.log"
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-cli {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    subparsers.required = True

    init = subparsers.add_parser("init", help="Create the project configuration for this repository")
    init.add_argument(
        "--local",
        action="store_true",
        help="Store the config next to the repository instead of the global projects directory",
    )
    init.add_argument(
        "--provider",
        choices=AUTH_PROVIDERS,
        help="Source control provider (required for Bitbucket Data Center)",
    )

    add = subparsers.add_parser("add", help="Create a worktree for a branch")
    add.add_argument("branch_name", help="Branch to check out or create")

    list_cmd = subparsers.add_parser("list", aliases=["ls"], help="List worktrees with pull request status")
    list_cmd.add_argument(
        "--local", dest="local_only", action="store_true", help="Only show local worktrees"
    )

    remove = subparsers.add_parser("remove", aliases=["rm"], help="Remove a worktree and its branch")
    remove.add_argument(
        "branch_name", nargs="?", help="Branch or directory name (default: the current worktree)"
    )
    remove.add_argument("-f", "--force", action="store_true", help="Skip confirmations")

    auth = subparsers.add_parser("auth", help="Set up or test provider credentials")
    auth.add_argument("provider", choices=AUTH_PROVIDERS, help="Provider to authenticate with")
    auth.add_argument(
        "action",
        nargs="?",
        choices=["setup", "test"],
        default="setup",
        help="Show setup instructions (default) or test the connection",
    )

    return parser


def parse_args(argv=None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
