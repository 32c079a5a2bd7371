"""Version information for git-worktree-pool."""

try:
    from git_worktree_pool._version import __version__
except ImportError:
    # Fallback for development without tags or when running from source
    __version__ = "0.0.0+unknown"
