"""Command-line argument parsing for git-worktree-pool."""

import argparse
from typing import List, Optional

from git_worktree_pool.__version__ import __version__


def _add_dirty_flags(parser: argparse.ArgumentParser, release: bool = False):
    """Flags that decide what happens to uncommitted changes."""
    group = parser.add_argument_group("uncommitted changes")
    group.add_argument("--clean", action="store_true", help="Discard uncommitted changes")
    group.add_argument(
        "--fail-if-dirty", action="store_true", help="Exit with an error if there are uncommitted changes"
    )
    if release:
        group.add_argument("--stash", action="store_true", help="Stash uncommitted changes")
        group.add_argument("--commit", dest="commit_message", metavar="MESSAGE", help="Commit uncommitted changes")
        group.add_argument("--amend", action="store_true", help="Amend uncommitted changes into the last commit")


def _common_options(suppress: bool) -> argparse.ArgumentParser:
    """Options accepted both before and after the command name."""
    default = {"default": argparse.SUPPRESS} if suppress else {}
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("-v", "--verbose", action="store_true", help="Show verbose output", **default)
    common.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting", **default
    )
    common.add_argument(
        "--no-interactive",
        "--ni",
        dest="no_interactive",
        action="store_true",
        help="Exit with an error instead of prompting, naming the flags that would avoid the prompt",
        **default,
    )
    common.add_argument("--main-branch", help="Override the default branch for this run", **default)
    return common


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-worktree-pool",
        description="Manage a pool of reusable git worktrees",
        epilog="Worktrees are either claimed (on a branch) or available (parked on a tmp-<name> "
        "branch). Release returns a worktree to the pool as a fresh copy of the default branch.",
        parents=[_common_options(suppress=False)],
    )
    parser.add_argument("--version", action="version", version=f"git-worktree-pool {__version__}")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")
    common = _common_options(suppress=True)

    subparsers.add_parser("list", parents=[common], help="List all worktrees and their status")
    subparsers.add_parser("branches", parents=[common], help="List local branches and where they are checked out")

    status = subparsers.add_parser("status", parents=[common], help="Show uncommitted changes of a worktree")
    status.add_argument("identifier", nargs="?", help="Branch or worktree name (default: current worktree)")

    create = subparsers.add_parser("create", parents=[common], help="Create a new worktree with the given name")
    create.add_argument("name", help="Worktree name; the directory is <repo>-<name>")

    switch = subparsers.add_parser("switch", parents=[common], help="Claim a worktree and check out the branch")
    switch.add_argument("branch", help="Branch to check out; created from the default branch if missing")
    switch.add_argument("-w", "--worktree", help="Which available worktree to claim")
    _add_dirty_flags(switch)

    release = subparsers.add_parser("release", parents=[common], help="Release a worktree back to the pool")
    release.add_argument("identifier", nargs="?", help="Branch or worktree name (default: current worktree)")
    release.add_argument("-w", "--worktree", help="Worktree to release, by name")
    _add_dirty_flags(release, release=True)

    archive = subparsers.add_parser("archive", parents=[common], help="Remove a worktree permanently")
    archive.add_argument("identifier", help="Branch or worktree name")
    archive.add_argument("--force", action="store_true", help="Remove even if the branch is not merged")

    merge = subparsers.add_parser("merge", parents=[common], help="Merge a branch into another in the base worktree")
    merge.add_argument("from_branch", metavar="from", help="Branch to merge")
    merge.add_argument("to_branch", metavar="to", nargs="?", help="Target branch (default: default branch)")
    merge_mode = merge.add_mutually_exclusive_group()
    merge_mode.add_argument("--squash", action="store_true", help="Squash into a single commit")
    merge_mode.add_argument("--no-ff", action="store_true", help="Always create a merge commit")
    merge.add_argument("-m", "--message", help="Merge commit message")
    merge.add_argument(
        "--delete-worktree", action="store_true", help="Remove the worktree of the merged branch afterwards"
    )

    rebase = subparsers.add_parser("rebase", parents=[common], help="Rebase a worktree's branch onto another branch")
    rebase.add_argument("identifier", help="Branch or worktree name")
    rebase.add_argument("onto", nargs="?", help="Branch to rebase onto (default: default branch)")

    return parser


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "list"
    return args
