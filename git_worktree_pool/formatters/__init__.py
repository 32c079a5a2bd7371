"""Formatting utilities for git-worktree-pool."""

from .status import format_status, format_status_details
from .worktree import format_pool_summary, format_worktree_line

__all__ = [
    "format_status",
    "format_status_details",
    "format_pool_summary",
    "format_worktree_line",
]
