"""Worktree data models."""

import os
from dataclasses import dataclass
from typing import Optional

from git_worktree_pool.constants import DETACHED_LABEL, LOCAL_BRANCH_PREFIX, TMP_BRANCH_PREFIX


def get_local_branch_name(branch: Optional[str]) -> str:
    """Strip refs/heads/ from a branch ref; a missing branch reads as detached."""
    if not branch:
        return DETACHED_LABEL
    if branch.startswith(LOCAL_BRANCH_PREFIX):
        return branch[len(LOCAL_BRANCH_PREFIX):]
    return branch


def is_tmp_branch(branch: Optional[str]) -> bool:
    """True if the branch parks a worktree in the pool."""
    if not branch:
        return False
    return get_local_branch_name(branch).startswith(TMP_BRANCH_PREFIX)


def tmp_branch_name(worktree_name: str) -> str:
    """Parking branch for a worktree slot."""
    return f"{TMP_BRANCH_PREFIX}{worktree_name}"


def extract_worktree_name(worktree_path: str, repo_path: str) -> str:
    """Slot name of a worktree directory.

    For "<repo>-<name>" this is "<name>"; any other directory keeps its
    base name.
    """
    base_name = os.path.basename(os.path.normpath(repo_path))
    dir_name = os.path.basename(os.path.normpath(worktree_path))

    prefix = f"{base_name}-"
    if dir_name.startswith(prefix):
        return dir_name[len(prefix):]
    return dir_name


def worktree_path_for(repo_path: str, worktree_name: str, base_directory: str) -> str:
    """Deterministic directory of the slot named worktree_name."""
    base_name = os.path.basename(os.path.normpath(repo_path))
    return os.path.join(base_directory, f"{base_name}-{worktree_name}")


def same_path(first: str, second: str) -> bool:
    """Compare two filesystem paths after resolving symlinks."""
    return os.path.realpath(first) == os.path.realpath(second)


@dataclass
class Worktree:
    """A git worktree as reported by `git worktree list --porcelain`.

    worktree_name and is_base are filled in when listing against a
    repository; the parser alone leaves them at their defaults.
    """

    path: str
    commit: str = ""
    branch: Optional[str] = None  # Full ref, None when detached
    bare: bool = False
    worktree_name: str = ""
    is_base: bool = False

    @property
    def local_branch(self) -> str:
        return get_local_branch_name(self.branch)

    @property
    def is_detached(self) -> bool:
        return not self.bare and not self.branch

    @property
    def is_available(self) -> bool:
        """Parked on a tmp branch, ready to be claimed."""
        return is_tmp_branch(self.branch)

    @property
    def is_orphaned(self) -> bool:
        """Registered with git but its directory is gone."""
        return not os.path.exists(self.path)

    def __str__(self) -> str:
        """String representation of worktree."""
        if self.is_base:
            state = "base"
        elif self.is_available:
            state = "available"
        else:
            state = "claimed"
        return f"{self.local_branch} @ {self.path} [{state}]"
