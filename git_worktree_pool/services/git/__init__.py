"""Git-related services for git-worktree-pool."""

from .worktrees import WorktreeService, parse_worktree_porcelain, parse_status_porcelain
from .branch_queries import BranchQueries
from .merge_detector import MergeDetector
from .dirty_state import DirtyStateResolver
from .removal import RemovalRecoveryChain, RemovalStrategy
from .operations import PoolOperations, run_init_command

__all__ = [
    "WorktreeService",
    "parse_worktree_porcelain",
    "parse_status_porcelain",
    "BranchQueries",
    "MergeDetector",
    "DirtyStateResolver",
    "RemovalRecoveryChain",
    "RemovalStrategy",
    "PoolOperations",
    "run_init_command",
]
