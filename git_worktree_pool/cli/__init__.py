"""Command-line front end for git-worktree-pool."""

from .args import parse_args
from .main import main

__all__ = ["main", "parse_args"]
