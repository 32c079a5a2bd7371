"""Merge-safety check for git-worktree-pool."""

import git

from git_worktree_pool.exceptions import MergeCheckFailedError, UnmergedBranchError
from git_worktree_pool.services.git.base import GitServiceBase
from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)


class MergeDetector(GitServiceBase):
    """Service for detecting if branches have been merged."""

    def is_fully_merged(self, branch_name: str, main_branch: str) -> bool:
        """Check if branch_name is an ancestor of main_branch.

        The branch is fully merged iff merge-base(branch, main) is the
        branch's own tip.

        Raises:
            MergeCheckFailedError: if the merge base cannot be computed
                (unknown ref, unrelated histories)
        """
        repo = self._get_repo()
        try:
            merge_base = repo.git.merge_base(branch_name, main_branch).strip()
            branch_commit = repo.git.rev_parse("--verify", f"{branch_name}^{{commit}}").strip()
        except git.exc.GitCommandError as e:
            stderr = e.stderr.strip() if isinstance(e.stderr, str) else ""
            reason = stderr or f"git exited with status {e.status}"
            logger.debug(f"Merge check of {branch_name} into {main_branch} failed: {reason}")
            raise MergeCheckFailedError(branch_name, main_branch, reason) from e

        if not merge_base:
            raise MergeCheckFailedError(branch_name, main_branch, "no merge base")

        merged = merge_base == branch_commit
        logger.debug(
            f"{branch_name} ({branch_commit[:7]}) merge-base with {main_branch} is "
            f"{merge_base[:7]}: {'merged' if merged else 'not merged'}"
        )
        return merged

    def ensure_fully_merged(self, branch_name: str, main_branch: str):
        """Raise unless branch_name is fully merged into main_branch.

        Raises:
            UnmergedBranchError: the branch has commits missing from main_branch
            MergeCheckFailedError: the check itself failed
        """
        if not self.is_fully_merged(branch_name, main_branch):
            raise UnmergedBranchError(branch_name, main_branch)
