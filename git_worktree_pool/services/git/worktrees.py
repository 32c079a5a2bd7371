"""Worktree listing, classification and status for git-worktree-pool."""

import os
from typing import Optional, List

from git_worktree_pool.models.status import GitStatus
from git_worktree_pool.models.worktree import (
    Worktree,
    extract_worktree_name,
    get_local_branch_name,
    same_path,
)
from git_worktree_pool.exceptions import WorktreeNotFoundError
from git_worktree_pool.services.git.base import GitServiceBase, git_command
from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)


def parse_worktree_porcelain(output: str) -> List[Worktree]:
    """Parse `git worktree list --porcelain` output.

    Format:
        worktree /path/to/worktree
        HEAD commit_sha
        branch refs/heads/branch-name   (or "detached", or "bare")
        (blank line between worktrees)

    A "worktree" line starts a new record. Field lines seen before any
    "worktree" line have nothing to attach to and are dropped.
    """
    worktrees: List[Worktree] = []
    current: Optional[Worktree] = None

    for line in output.splitlines():
        if line.startswith("worktree "):
            if current is not None:
                worktrees.append(current)
            current = Worktree(path=line[len("worktree "):])
        elif current is None:
            continue
        elif line.startswith("HEAD "):
            current.commit = line[len("HEAD "):]
        elif line.startswith("branch "):
            current.branch = line[len("branch "):]
        elif line == "bare":
            current.bare = True
        elif line == "detached":
            current.branch = None

    if current is not None:
        worktrees.append(current)

    return worktrees


def parse_status_porcelain(output: str) -> GitStatus:
    """Parse `git status --porcelain -z` output into a GitStatus.

    Each entry is "XY path"; X is the index state, Y the working tree
    state. Renames and copies are followed by an extra entry holding the
    source path.
    """
    status = GitStatus()
    entries = output.split("\0")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue

        index_state, tree_state, path = entry[0], entry[1], entry[3:]

        if index_state in "RC":
            i += 1  # Skip the source path

        if index_state == "?" and tree_state == "?":
            status.not_added.append(path)
            continue
        if index_state == "!":
            continue

        if index_state not in " ?":
            status.staged.append(path)
        if index_state == "A":
            status.created.append(path)
        if "D" in (index_state, tree_state):
            status.deleted.append(path)
        if "M" in (index_state, tree_state):
            status.modified.append(path)

    return status


class WorktreeService(GitServiceBase):
    """Service for listing git worktrees and deriving pool membership.

    Nothing is cached: every call reads the current git state.
    """

    def list_worktrees(self) -> List[Worktree]:
        """All worktrees of the repository, in git's order, with derived fields set."""
        repo = self._get_repo()
        with git_command("worktree list", path=self.repo_path):
            output = repo.git.worktree("list", "--porcelain")

        worktrees = parse_worktree_porcelain(output)
        for wt in worktrees:
            wt.worktree_name = extract_worktree_name(wt.path, self.repo_path)
            wt.is_base = same_path(wt.path, self.repo_path)

        logger.debug(f"Found {len(worktrees)} worktrees")
        for wt in worktrees:
            logger.debug(f"  {wt}")
        return worktrees

    def available_worktrees(self) -> List[Worktree]:
        """Pool slots parked on a tmp branch."""
        return [
            wt for wt in self.list_worktrees()
            if wt.is_available and not wt.bare and not wt.is_base
        ]

    def claimed_worktrees(self) -> List[Worktree]:
        """Pool slots currently assigned to a branch (or detached)."""
        return [
            wt for wt in self.list_worktrees()
            if not wt.is_available and not wt.bare and not wt.is_base
        ]

    def base_worktree(self) -> Optional[Worktree]:
        """The worktree at the repository root, if listed."""
        return next((wt for wt in self.list_worktrees() if wt.is_base), None)

    def find_worktree(self, identifier: str) -> Optional[Worktree]:
        """Find a worktree by branch name, then by slot name, then by path."""
        worktrees = self.list_worktrees()

        branch_name = get_local_branch_name(identifier)
        match = next(
            (wt for wt in worktrees if wt.branch and wt.local_branch == branch_name),
            None,
        )
        if match:
            return match

        match = next((wt for wt in worktrees if wt.worktree_name == identifier), None)
        if match:
            return match

        if os.path.sep in identifier or os.path.exists(identifier):
            return next((wt for wt in worktrees if same_path(wt.path, identifier)), None)
        return None

    def get_worktree(self, worktree_path: str) -> Worktree:
        """The worktree registered at worktree_path.

        Raises:
            WorktreeNotFoundError: if git has no worktree at that path
        """
        for wt in self.list_worktrees():
            if same_path(wt.path, worktree_path):
                return wt
        raise WorktreeNotFoundError(worktree_path)

    def get_status(self, worktree_path: str) -> GitStatus:
        """Uncommitted changes of the worktree at worktree_path."""
        repo = self._get_repo(worktree_path)
        with git_command("status", path=worktree_path):
            output = repo.git.status("--porcelain", "-z")
        status = parse_status_porcelain(output)
        logger.debug(f"Status of {worktree_path}: {status.counts()}")
        return status

    def add_worktree(self, path: str, branch: str, start_point: str):
        """Create a worktree on a new branch starting at start_point."""
        repo = self._get_repo()
        with git_command("worktree add", branch=branch, path=path):
            repo.git.worktree("add", "-b", branch, path, start_point)
        logger.info(f"Added worktree at {path} on new branch {branch}")

    def add_detached_worktree(self, path: str, commit: str):
        """Create a worktree with a detached HEAD at commit."""
        repo = self._get_repo()
        with git_command("worktree add", path=path):
            repo.git.worktree("add", "--detach", path, commit)
        logger.info(f"Added detached worktree at {path} ({commit[:7]})")

    def remove_worktree(self, path: str, force: bool = False):
        """Remove a worktree at the specified path.

        Args:
            path: Path to the worktree directory
            force: Force removal even if working tree is dirty or locked
        """
        repo = self._get_repo()
        args = ["remove", path]
        if force:
            args.append("--force")
        with git_command("worktree remove", path=path):
            repo.git.worktree(*args)
        logger.info(f"Removed worktree at {path}")

    def prune_worktrees(self):
        """Prune stale worktree registrations."""
        repo = self._get_repo()
        with git_command("worktree prune", path=self.repo_path):
            repo.git.worktree("prune")
        logger.info("Pruned stale worktree metadata")
