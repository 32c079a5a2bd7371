"""Core pool manager for git-worktree-pool."""

from .pool_manager import WorktreePool

__all__ = ["WorktreePool"]
