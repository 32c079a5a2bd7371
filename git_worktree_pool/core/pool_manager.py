"""Core functionality for git-worktree-pool"""

import os
from typing import List, Optional, Union

from git_worktree_pool.config import RepositoryConfig
from git_worktree_pool.models.results import (
    ClaimResult,
    CreateResult,
    MergeCheckResult,
    MergeOptions,
    ReleaseResult,
)
from git_worktree_pool.models.status import DirtyStateOption, GitStatus
from git_worktree_pool.models.worktree import Worktree
from git_worktree_pool.services.git import (
    BranchQueries,
    DirtyStateResolver,
    MergeDetector,
    PoolOperations,
    WorktreeService,
)
from git_worktree_pool.services.git.base import open_repo
from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)

ConfigLike = Union[RepositoryConfig, dict, None]


def _as_config(config: ConfigLike) -> RepositoryConfig:
    if isinstance(config, RepositoryConfig):
        return config
    return RepositoryConfig.from_dict(config)


class WorktreePool:
    """Pool of worktrees for one repository.

    Holds only the repository path. Pool membership is read from git on
    every call, and configuration is passed into each operation.
    """

    def __init__(self, repo_path: str):
        """Initialize the pool.

        Args:
            repo_path: Path to the repository root

        Raises:
            RepositoryStateError: if repo_path is not a git repository
        """
        self.repo_path = os.path.abspath(repo_path)
        open_repo(self.repo_path)

        self.worktree_service = WorktreeService(self.repo_path)
        self.branch_queries = BranchQueries(self.repo_path)
        self.merge_detector = MergeDetector(self.repo_path)
        self.operations = PoolOperations(self.repo_path)

    # --- Queries ---

    def list_worktrees(self) -> List[Worktree]:
        return self.worktree_service.list_worktrees()

    def available_worktrees(self) -> List[Worktree]:
        return self.worktree_service.available_worktrees()

    def claimed_worktrees(self) -> List[Worktree]:
        return self.worktree_service.claimed_worktrees()

    def base_worktree(self) -> Optional[Worktree]:
        return self.worktree_service.base_worktree()

    def find_worktree(self, identifier: str) -> Optional[Worktree]:
        """Look up a worktree by branch name, slot name or path."""
        return self.worktree_service.find_worktree(identifier)

    def get_worktree(self, worktree_path: str) -> Worktree:
        return self.worktree_service.get_worktree(worktree_path)

    def resolve_default_branch(self, config: ConfigLike = None) -> str:
        return self.branch_queries.resolve_default_branch(_as_config(config).main_branch)

    def list_branches(self) -> List[str]:
        """Names of all local branches."""
        return self.branch_queries.local_branches()

    def get_status(self, worktree_path: str) -> GitStatus:
        return self.worktree_service.get_status(worktree_path)

    def commit_log(self, worktree_path: str, base_branch: str) -> str:
        return self.branch_queries.commit_log(worktree_path, base_branch)

    def check_branch_merged(self, branch_name: str, config: ConfigLike = None) -> MergeCheckResult:
        """Report whether branch_name is fully merged into the default branch.

        Raises:
            MergeCheckFailedError: if the merge base cannot be computed
        """
        main_branch = self.resolve_default_branch(config)
        return MergeCheckResult(
            is_fully_merged=self.merge_detector.is_fully_merged(branch_name, main_branch),
            main_branch=main_branch,
            branch_name=branch_name,
        )

    # --- Lifecycle ---

    def create_worktree(self, name: str, config: ConfigLike = None) -> CreateResult:
        return self.operations.create_worktree(name, _as_config(config))

    def claim_worktree(
        self,
        worktree: Union[Worktree, str],
        branch_name: str,
        config: ConfigLike = None,
        dirty_option: Optional[DirtyStateOption] = None,
        commit_message: Optional[str] = None,
    ) -> ClaimResult:
        return self.operations.claim_worktree(
            worktree, branch_name, _as_config(config), dirty_option, commit_message
        )

    def release_worktree(
        self,
        worktree: Union[Worktree, str],
        config: ConfigLike = None,
        dirty_option: Optional[DirtyStateOption] = None,
        commit_message: Optional[str] = None,
    ) -> ReleaseResult:
        return self.operations.release_worktree(
            worktree, _as_config(config), dirty_option, commit_message
        )

    def archive_worktree(self, worktree_path: str, force: bool = False, config: ConfigLike = None) -> str:
        return self.operations.archive_worktree(worktree_path, force, _as_config(config))

    def merge_worktree(self, from_branch: str, to_branch: str, options: Optional[MergeOptions] = None):
        self.operations.merge_worktree(from_branch, to_branch, options)

    def rebase_worktree(self, worktree_path: str, from_branch: str, onto_branch: str):
        self.operations.rebase_worktree(worktree_path, from_branch, onto_branch)

    # --- Dirty state ---

    def stash_changes(self, worktree_path: str, message: Optional[str] = None):
        DirtyStateResolver(worktree_path).stash(message)

    def commit_changes(self, worktree_path: str, message: str):
        DirtyStateResolver(worktree_path).commit(message)

    def amend_changes(self, worktree_path: str):
        DirtyStateResolver(worktree_path).amend()

    def clean_changes(self, worktree_path: str):
        DirtyStateResolver(worktree_path).clean()
