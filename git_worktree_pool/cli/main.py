"""Command-line interface for git-worktree-pool"""

import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Tuple

import git
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from git_worktree_pool.cli.app_data import get_repo_config, load_app_data, managed_repositories
from git_worktree_pool.cli.args import parse_args
from git_worktree_pool.config import RepositoryConfig
from git_worktree_pool.core import WorktreePool
from git_worktree_pool.exceptions import (
    MergeSafetyError,
    OperationCancelledError,
    RepositoryStateError,
    WorktreePoolError,
)
from git_worktree_pool.formatters import (
    format_pool_summary,
    format_status,
    format_status_details,
    format_worktree_line,
)
from git_worktree_pool.models.results import MergeOptions
from git_worktree_pool.models.status import DirtyStateOption
from git_worktree_pool.models.worktree import Worktree, same_path
from git_worktree_pool.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


class CommandFailed(Exception):
    """Stops a command with a non-zero exit code; the message is already printed."""


class CommandContext:
    """Repository, configuration and current worktree for one CLI invocation."""

    def __init__(self, args, cwd: Optional[str] = None):
        self.args = args
        self.cwd = os.path.realpath(cwd or os.getcwd())
        repo_path = find_repository_root(self.cwd)

        app_data = load_app_data()
        managed = next(
            (path for path in managed_repositories(app_data) if same_path(path, repo_path)),
            None,
        )
        config = get_repo_config(app_data, managed) if managed else RepositoryConfig()
        if getattr(args, "main_branch", None):
            config = replace(config, main_branch=args.main_branch)

        self.repo_path = repo_path
        self.config = config
        logger.debug(f"Repository root: {repo_path}, config: {config.to_dict()}")
        self.pool = WorktreePool(repo_path)

    @property
    def interactive(self) -> bool:
        return not self.args.no_interactive

    def current_worktree(self) -> Optional[Worktree]:
        """The worktree containing the working directory, if any."""
        matches = []
        for wt in self.pool.list_worktrees():
            wt_path = os.path.realpath(wt.path)
            if self.cwd == wt_path or self.cwd.startswith(wt_path + os.sep):
                matches.append((len(wt_path), wt))
        # Worktrees may be nested inside the base worktree; the deepest one wins
        return max(matches, key=lambda match: match[0])[1] if matches else None


def find_repository_root(cwd: str) -> str:
    """Root of the main working tree for cwd, even when cwd is inside a linked worktree."""
    try:
        repo = git.Repo(cwd, search_parent_directories=True)
    except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
        raise RepositoryStateError(cwd, "not in a git repository")

    common_dir = Path(repo.common_dir).resolve()
    if common_dir.name == ".git":
        return str(common_dir.parent)
    return repo.working_tree_dir or str(common_dir)


def fail(message: str) -> CommandFailed:
    console.print(f"[red]{message}[/red]")
    return CommandFailed(message)


def fail_non_interactive(message: str, suggested_flags: List[str]) -> CommandFailed:
    """Explain which flags would have avoided the prompt."""
    console.print(f"[red]Error (non-interactive): {escape(message)}[/red]")
    console.print("\nProvide one of these flags to resolve this non-interactively:")
    for flag in suggested_flags:
        console.print(f"  {escape(flag)}")
    return CommandFailed(message)


def choose(ctx: CommandContext, title: str, worktrees: List[Worktree], describe) -> Worktree:
    """Let the user pick one of several worktrees by number."""
    console.print(f"\n{title}")
    for i, wt in enumerate(worktrees, start=1):
        console.print(f"  {i}. {escape(describe(wt))}")
    choice = Prompt.ask("\nSelect worktree (number)", console=console)
    try:
        index = int(choice) - 1
    except ValueError:
        index = -1
    if not 0 <= index < len(worktrees):
        raise fail("Invalid selection")
    return worktrees[index]


def resolve_identifier(ctx: CommandContext, identifier: str) -> Worktree:
    worktree = ctx.pool.find_worktree(identifier)
    if worktree is None:
        raise fail(f"Worktree or branch '{escape(identifier)}' not found.")
    return worktree


# --- Commands ---


def cmd_list(ctx: CommandContext) -> int:
    """Show all worktrees grouped by pool state."""
    worktrees = ctx.pool.list_worktrees()
    base = next((wt for wt in worktrees if wt.is_base), None)
    claimed = [wt for wt in worktrees if not wt.is_base and not wt.bare and not wt.is_available]
    available = [wt for wt in worktrees if not wt.is_base and not wt.bare and wt.is_available]

    console.print(f"\n[bold]Worktrees for {escape(os.path.basename(ctx.repo_path))}:[/bold]\n")

    def show(wt: Worktree):
        status_text = "[red]missing[/red]" if wt.is_orphaned else format_status(ctx.pool.get_status(wt.path))
        console.print(format_worktree_line(wt, status_text))
        console.print(f"    [dim]{escape(wt.path)}[/dim]")

    if base:
        show(base)
        console.print()

    for title, group in (("Claimed:", claimed), ("Available:", available)):
        if group:
            console.print(f"[bold]{title}[/bold]")
            for wt in group:
                show(wt)
            console.print()

    console.print(format_pool_summary(len(claimed), len(available)))
    return 0


def cmd_status(ctx: CommandContext) -> int:
    """Show the uncommitted changes of one worktree."""
    if ctx.args.identifier:
        worktree = resolve_identifier(ctx, ctx.args.identifier)
    else:
        worktree = ctx.current_worktree()
        if worktree is None:
            raise fail("Not inside a worktree of this repository.")

    status = ctx.pool.get_status(worktree.path)
    console.print(f"[bold]{escape(worktree.worktree_name)}[/bold] [dim]({escape(worktree.local_branch)})[/dim]")
    console.print(f"  {format_status(status)}")
    for line in format_status_details(status):
        console.print(f"  {escape(line)}")
    return 0


def cmd_create(ctx: CommandContext) -> int:
    """Create a new pool worktree and run the init command."""
    name = ctx.args.name
    existing = next(
        (wt for wt in ctx.pool.list_worktrees() if wt.worktree_name == name and not wt.is_base),
        None,
    )
    if existing:
        raise fail(f"Worktree '{escape(name)}' already exists at: {escape(existing.path)}")

    console.print(f"Creating worktree '{escape(name)}'...")
    if ctx.config.init_command:
        console.print("Running init command...")
    result = ctx.pool.create_worktree(name, ctx.config)

    console.print(f"\n[green]Worktree created at: {escape(result.path)}[/green]")
    console.print(f"Branch: {escape(result.branch)}")
    if result.init_command:
        if result.init_error:
            console.print(f"[yellow]Init command failed: {escape(result.init_error)}[/yellow]")
        else:
            console.print("[green]Init command completed successfully.[/green]")

    console.print(f"\nTo start working:\n  cd {escape(result.path)}")
    return 0


def cmd_switch(ctx: CommandContext) -> int:
    """Claim an available worktree for a branch."""
    args = ctx.args
    branch = args.branch

    existing = ctx.pool.find_worktree(branch)
    if existing and existing.branch and existing.local_branch == branch and not existing.is_available:
        console.print(
            f"[yellow]Branch '{escape(branch)}' is already checked out in worktree: {escape(existing.path)}[/yellow]"
        )
        console.print(f"\nTo work on it, cd to: {escape(existing.path)}")
        return 0

    available = ctx.pool.available_worktrees()
    if not available:
        console.print("[red]No available worktrees in the pool.[/red]")
        console.print("Use '[bold]git-worktree-pool create <name>[/bold]' to create a new worktree.")
        return 1

    if args.worktree:
        target = next((wt for wt in available if wt.worktree_name == args.worktree), None)
        if target is None:
            console.print(f"[red]Worktree '{escape(args.worktree)}' not found or not available.[/red]")
            console.print("Available worktrees:")
            for wt in available:
                console.print(f"  {escape(wt.worktree_name)}")
            return 1
    elif len(available) == 1:
        target = available[0]
        console.print(f"Using worktree: {escape(target.worktree_name)}")
    elif not ctx.interactive:
        raise fail_non_interactive(
            f"Multiple worktrees available: {', '.join(wt.worktree_name for wt in available)}",
            [f"--worktree {wt.worktree_name}" for wt in available],
        )
    else:
        target = choose(ctx, "Available worktrees:", available, lambda wt: f"{wt.worktree_name} ({wt.path})")

    option = dirty_option_for_switch(ctx, target)

    console.print(f"\nSwitching {escape(target.worktree_name)} to branch '{escape(branch)}'...")
    ctx.pool.claim_worktree(target, branch, ctx.config, dirty_option=option)

    console.print(f"\n[green]Worktree claimed for branch '{escape(branch)}'[/green]")
    console.print(f"\nTo start working:\n  cd {escape(target.path)}")
    return 0


def dirty_option_for_switch(ctx: CommandContext, target: Worktree) -> Optional[DirtyStateOption]:
    """Switching discards changes in an available worktree; confirm how."""
    args = ctx.args
    if args.clean and args.fail_if_dirty:
        raise fail("Error: Only one of --clean, --fail-if-dirty can be used.")

    status = ctx.pool.get_status(target.path)
    if not status.is_dirty:
        return None

    if args.fail_if_dirty:
        raise fail(
            f"Worktree '{escape(target.worktree_name)}' has uncommitted changes.\n  {format_status(status)}"
        )
    if args.clean:
        return DirtyStateOption.CLEAN
    if not ctx.interactive:
        raise fail_non_interactive(
            f"Worktree '{target.worktree_name}' has uncommitted changes",
            [
                "--clean           Discard all uncommitted changes",
                "--fail-if-dirty   Exit with error instead",
            ],
        )

    console.print("[yellow]\nWorktree has uncommitted changes:[/yellow]")
    console.print(f"  {format_status(status)}")
    console.print("\nThese changes will be lost when switching branches.")
    if not Confirm.ask("Continue?", console=console, default=False):
        raise OperationCancelledError("switch")
    return DirtyStateOption.CLEAN


def cmd_release(ctx: CommandContext) -> int:
    """Return a claimed worktree to the pool."""
    target = select_release_target(ctx)

    if target.is_base:
        raise fail("Cannot release the base repository worktree.")
    if target.is_available:
        console.print(
            f"[yellow]Worktree '{escape(target.worktree_name)}' is already available (not claimed).[/yellow]"
        )
        return 0

    current_branch = target.local_branch
    console.print(f"\nReleasing worktree: {escape(target.worktree_name)}")
    console.print(f"Current branch: {escape(current_branch)}")

    option, message = dirty_option_for_release(ctx, target)

    console.print("\nReleasing worktree to pool...")
    result = ctx.pool.release_worktree(target, ctx.config, dirty_option=option, commit_message=message)

    console.print("\n[green]Worktree released.[/green]")
    console.print(f"Now on temporary branch: {escape(result.tmp_branch)}")
    if target.branch:
        console.print(
            f"\nThe branch '{escape(current_branch)}' still exists and can be reclaimed with:"
        )
        console.print(f"  git-worktree-pool switch {escape(current_branch)}")
    return 0


def select_release_target(ctx: CommandContext) -> Worktree:
    args = ctx.args
    if args.identifier:
        return resolve_identifier(ctx, args.identifier)
    if args.worktree:
        return resolve_identifier(ctx, args.worktree)

    current = ctx.current_worktree()
    if current is not None:
        return current

    claimed = ctx.pool.claimed_worktrees()
    if not claimed:
        raise fail("No claimed worktrees to release.")

    if not ctx.interactive:
        raise fail_non_interactive(
            "Not in a worktree and no identifier provided. Claimed worktrees: "
            + ", ".join(f"{wt.worktree_name} ({wt.local_branch})" for wt in claimed),
            [
                "git-worktree-pool release <branch-name>   Specify the branch to release",
                "--worktree <name>                         Specify the worktree by name",
            ],
        )
    return choose(ctx, "Claimed worktrees:", claimed, lambda wt: f"{wt.worktree_name} ({wt.local_branch})")


def dirty_option_for_release(
    ctx: CommandContext, target: Worktree
) -> Tuple[Optional[DirtyStateOption], Optional[str]]:
    """Pick exactly one way to deal with uncommitted changes before releasing."""
    args = ctx.args
    chosen = [
        flag for flag, enabled in (
            ("--stash", args.stash),
            ("--commit", args.commit_message is not None),
            ("--amend", args.amend),
            ("--clean", args.clean),
            ("--fail-if-dirty", args.fail_if_dirty),
        ) if enabled
    ]
    if len(chosen) > 1:
        raise fail("Error: Only one of --stash, --commit, --amend, --clean, --fail-if-dirty can be used.")

    status = ctx.pool.get_status(target.path)
    if not status.is_dirty:
        return None, None

    if args.fail_if_dirty:
        raise fail(
            f"Worktree '{escape(target.worktree_name)}' has uncommitted changes.\n  {format_status(status)}"
        )
    if args.stash:
        return DirtyStateOption.STASH, None
    if args.commit_message is not None:
        return DirtyStateOption.COMMIT, args.commit_message
    if args.amend:
        return DirtyStateOption.AMEND, None
    if args.clean:
        return DirtyStateOption.CLEAN, None

    if not ctx.interactive:
        raise fail_non_interactive(
            f"Worktree '{target.worktree_name}' has uncommitted changes",
            [
                '--stash              Stash changes for later',
                '--commit "message"   Commit changes with the given message',
                '--amend              Amend changes to the last commit',
                '--clean              Discard all uncommitted changes',
                '--fail-if-dirty      Exit with error instead',
            ],
        )

    console.print("[yellow]\nWorktree has uncommitted changes:[/yellow]")
    for line in format_status_details(status):
        console.print(f"  {escape(line)}")

    console.print("\nHow would you like to handle these changes?")
    console.print("  1. Stash - Save changes to stash for later")
    console.print("  2. Commit - Create a new commit with these changes")
    console.print("  3. Amend - Add changes to the last commit")
    console.print("  4. Clean - Discard all changes")
    console.print("  5. Cancel - Abort release")

    choice = Prompt.ask("\nSelect option", choices=["1", "2", "3", "4", "5"], default="5", console=console)
    if choice == "1":
        return DirtyStateOption.STASH, None
    if choice == "2":
        message = Prompt.ask("Commit message", console=console).strip()
        if not message:
            raise fail("Commit message required.")
        return DirtyStateOption.COMMIT, message
    if choice == "3":
        return DirtyStateOption.AMEND, None
    if choice == "4":
        confirmed = Prompt.ask(
            "[yellow]This will PERMANENTLY DELETE all uncommitted changes. Are you sure? (yes/no)[/yellow]",
            console=console,
        )
        if confirmed.strip().lower() != "yes":
            raise OperationCancelledError("release")
        return DirtyStateOption.CLEAN, None
    return DirtyStateOption.CANCEL, None


def cmd_archive(ctx: CommandContext) -> int:
    """Remove a worktree, asking before dropping unmerged work."""
    target = resolve_identifier(ctx, ctx.args.identifier)
    if target.is_base:
        raise fail("Cannot archive the base repository worktree.")

    force = ctx.args.force
    try:
        ctx.pool.archive_worktree(target.path, force=force, config=ctx.config)
    except MergeSafetyError as e:
        console.print(f"[yellow]{escape(str(e))}[/yellow]")
        if not ctx.interactive:
            raise fail_non_interactive(str(e), ["--force   Remove the worktree anyway"])
        if not Confirm.ask("Remove the worktree anyway?", console=console, default=False):
            raise OperationCancelledError("archive")
        ctx.pool.archive_worktree(target.path, force=True, config=ctx.config)

    console.print(f"[green]Worktree '{escape(target.worktree_name)}' removed.[/green]")
    if target.branch:
        console.print(f"The branch '{escape(target.local_branch)}' was kept.")
    return 0


def cmd_merge(ctx: CommandContext) -> int:
    """Merge a branch in the base worktree, optionally removing its worktree."""
    args = ctx.args
    to_branch = args.to_branch or ctx.pool.resolve_default_branch(ctx.config)

    source = ctx.pool.find_worktree(args.from_branch)
    if source is not None and (source.is_base or source.local_branch != args.from_branch):
        source = None

    worktree_path = None
    if args.delete_worktree:
        if source is None:
            raise fail(f"No pool worktree is on branch '{escape(args.from_branch)}'.")
        worktree_path = source.path

    message = args.message
    if args.squash and not message and source is not None:
        # Subjects of the squashed commits, or the core's default when empty
        message = ctx.pool.commit_log(source.path, to_branch) or None

    options = MergeOptions(
        squash=args.squash,
        no_ff=args.no_ff,
        message=message,
        delete_worktree=args.delete_worktree,
        worktree_path=worktree_path,
    )
    console.print(f"Merging '{escape(args.from_branch)}' into '{escape(to_branch)}'...")
    ctx.pool.merge_worktree(args.from_branch, to_branch, options)
    console.print("[green]Merge complete.[/green]")
    if worktree_path:
        console.print(f"Removed worktree: {escape(worktree_path)}")
    return 0


def cmd_branches(ctx: CommandContext) -> int:
    """List local branches and the worktree each is checked out in."""
    holders = {wt.local_branch: wt for wt in ctx.pool.list_worktrees() if wt.branch}
    for branch in ctx.pool.list_branches():
        wt = holders.get(branch)
        if wt is None:
            console.print(f"  {escape(branch)}")
        elif wt.is_base:
            console.print(f"  {escape(branch)} [dim](base)[/dim]")
        else:
            console.print(f"  {escape(branch)} [dim]({escape(wt.worktree_name)})[/dim]")
    return 0


def cmd_rebase(ctx: CommandContext) -> int:
    """Rebase a worktree's branch onto another branch."""
    target = resolve_identifier(ctx, ctx.args.identifier)
    if not target.branch:
        raise fail(f"Worktree '{escape(target.worktree_name)}' is detached; nothing to rebase.")
    onto = ctx.args.onto or ctx.pool.resolve_default_branch(ctx.config)

    console.print(f"Rebasing '{escape(target.local_branch)}' onto '{escape(onto)}'...")
    ctx.pool.rebase_worktree(target.path, target.local_branch, onto)
    console.print("[green]Rebase complete.[/green]")
    return 0


COMMANDS = {
    "list": cmd_list,
    "branches": cmd_branches,
    "status": cmd_status,
    "create": cmd_create,
    "switch": cmd_switch,
    "release": cmd_release,
    "archive": cmd_archive,
    "merge": cmd_merge,
    "rebase": cmd_rebase,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose, debug=args.debug)

    try:
        ctx = CommandContext(args)
        return COMMANDS[args.command](ctx)
    except CommandFailed:
        return 1
    except OperationCancelledError:
        console.print("Aborted.")
        return 1
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except WorktreePoolError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        if args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
