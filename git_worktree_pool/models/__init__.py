"""Data models for git-worktree-pool."""

from .worktree import (
    Worktree,
    extract_worktree_name,
    get_local_branch_name,
    is_tmp_branch,
    tmp_branch_name,
    worktree_path_for,
)
from .status import DirtyStateOption, GitStatus
from .results import ClaimResult, CreateResult, MergeCheckResult, MergeOptions, ReleaseResult

__all__ = [
    "Worktree",
    "extract_worktree_name",
    "get_local_branch_name",
    "is_tmp_branch",
    "tmp_branch_name",
    "worktree_path_for",
    "DirtyStateOption",
    "GitStatus",
    "ClaimResult",
    "CreateResult",
    "MergeCheckResult",
    "MergeOptions",
    "ReleaseResult",
]
