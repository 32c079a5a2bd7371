"""Shared constants for git-worktree-pool."""

from typing import Tuple

# Branches starting with this prefix park a worktree in the pool
TMP_BRANCH_PREFIX = "tmp-"

LOCAL_BRANCH_PREFIX = "refs/heads/"

REMOTE_NAME = "origin"
REMOTE_HEAD_REF = f"refs/remotes/{REMOTE_NAME}/HEAD"
REMOTE_REF_PREFIX = f"refs/remotes/{REMOTE_NAME}/"

# Tried in order when the remote does not advertise a default branch
FALLBACK_DEFAULT_BRANCHES: Tuple[str, ...] = ("main", "master", "develop")

# Shown in place of a branch name for a detached HEAD
DETACHED_LABEL = "(detached)"

# Lock files live under the repository's common git dir
LOCK_DIR_NAME = "worktree-pool"

APP_NAME = "git-worktree-pool"

# Symbols used by the CLI listing
SYMBOL_BASE = "●"
SYMBOL_CLAIMED = "●"
SYMBOL_AVAILABLE = "○"
