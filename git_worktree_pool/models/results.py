"""Results and options of pool lifecycle operations."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CreateResult:
    """A newly created pool worktree."""
    path: str
    branch: str
    init_command: Optional[str] = None
    init_error: Optional[str] = None  # Set when the init command failed

    @property
    def init_succeeded(self) -> bool:
        return self.init_command is not None and self.init_error is None


@dataclass
class ClaimResult:
    branch: str


@dataclass
class ReleaseResult:
    tmp_branch: str
    previous_branch: str


@dataclass
class MergeCheckResult:
    is_fully_merged: bool
    main_branch: str
    branch_name: str


@dataclass
class MergeOptions:
    """Options for merging a worktree branch into another branch."""
    squash: bool = False
    no_ff: bool = False
    message: Optional[str] = None
    delete_worktree: bool = False
    worktree_path: Optional[str] = None  # Source worktree, removed when delete_worktree is set

    def __post_init__(self):
        if self.delete_worktree and not self.worktree_path:
            raise ValueError("worktree_path is required when delete_worktree is set")
        if self.squash and self.no_ff:
            raise ValueError("squash and no_ff cannot be combined")
