"""
git-worktree-pool - A pool of reusable git worktrees
"""

from .__version__ import __version__
from .config import RepositoryConfig
from .core import WorktreePool
from .models import DirtyStateOption, GitStatus, MergeOptions, Worktree

__all__ = [
    "WorktreePool",
    "RepositoryConfig",
    "DirtyStateOption",
    "GitStatus",
    "MergeOptions",
    "Worktree",
    "__version__",
]
