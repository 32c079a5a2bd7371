"""Services for git-worktree-pool."""
