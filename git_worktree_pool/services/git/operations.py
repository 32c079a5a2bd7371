"""Pool lifecycle operations: create, claim, release, archive, merge, rebase."""

import os
import subprocess
from pathlib import Path
from typing import Optional, Union

from git_worktree_pool.config import RepositoryConfig
from git_worktree_pool.constants import DETACHED_LABEL, LOCK_DIR_NAME, TMP_BRANCH_PREFIX
from git_worktree_pool.exceptions import (
    BaseWorktreeError,
    BranchCheckedOutError,
    InvalidWorktreeNameError,
    ReservedBranchNameError,
    WorktreeExistsError,
    WorktreeNotFoundError,
    DirtyWorktreeError,
)
from git_worktree_pool.models.results import ClaimResult, CreateResult, MergeOptions, ReleaseResult
from git_worktree_pool.models.status import DirtyStateOption
from git_worktree_pool.models.worktree import (
    Worktree,
    extract_worktree_name,
    is_tmp_branch,
    same_path,
    tmp_branch_name,
    worktree_path_for,
)
from git_worktree_pool.services.git.base import GitServiceBase, git_command
from git_worktree_pool.services.git.branch_queries import BranchQueries
from git_worktree_pool.services.git.dirty_state import DirtyStateResolver
from git_worktree_pool.services.git.merge_detector import MergeDetector
from git_worktree_pool.services.git.removal import RemovalRecoveryChain
from git_worktree_pool.services.git.worktrees import WorktreeService
from git_worktree_pool.services.locking import WorktreeLock
from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)


def run_init_command(worktree_path: str, init_command: str) -> Optional[str]:
    """Run the configured init command inside a new worktree.

    Output goes straight to the caller's terminal.

    Returns:
        None on success, otherwise a description of the failure
    """
    logger.info(f"Running init command in {worktree_path}: {init_command}")
    try:
        completed = subprocess.run(init_command, shell=True, cwd=worktree_path, check=False)
    except OSError as e:
        error_msg = f"Failed to run init command: {e}"
        logger.warning(error_msg)
        return error_msg

    if completed.returncode != 0:
        error_msg = f"Init command exited with code {completed.returncode}"
        logger.warning(error_msg)
        return error_msg
    return None


class PoolOperations(GitServiceBase):
    """Protocols that move a worktree slot between pool states.

    Nonexistent -> Available (create) -> Claimed (claim) -> Available
    (release) -> ... -> removed (archive).
    """

    def __init__(self, repo_path: str):
        """Initialize the service.

        Args:
            repo_path: Path to the repository root (the base worktree)
        """
        super().__init__(repo_path)
        self.worktree_service = WorktreeService(repo_path)
        self.branch_queries = BranchQueries(repo_path)
        self.merge_detector = MergeDetector(repo_path)
        self.removal_chain = RemovalRecoveryChain(self.worktree_service)
        self._lock: Optional[WorktreeLock] = None

    @property
    def lock(self) -> WorktreeLock:
        """Advisory lock stored in the repository's common git dir."""
        if self._lock is None:
            repo = self._get_repo()
            self._lock = WorktreeLock(Path(repo.common_dir) / LOCK_DIR_NAME / "locks")
        return self._lock

    # --- Create ---

    def create_worktree(self, name: str, config: RepositoryConfig) -> CreateResult:
        """Create a new pool slot parked on tmp-<name>.

        If tmp-<name> survives from an earlier slot, the new worktree is
        attached to that branch instead of creating it again.

        Raises:
            InvalidWorktreeNameError: if name cannot be used as a slot name
            WorktreeExistsError: if a worktree is already registered at the path
        """
        self._validate_worktree_name(name)
        branch = tmp_branch_name(name)
        path = worktree_path_for(self.repo_path, name, config.base_directory(self.repo_path))

        with self.lock.acquire(path):
            if any(same_path(wt.path, path) for wt in self.worktree_service.list_worktrees()):
                raise WorktreeExistsError(path)

            if self.branch_queries.branch_exists(branch):
                logger.debug(f"Branch {branch} already exists, attaching new worktree to it")
                commit = self.branch_queries.branch_commit(branch)
                self.worktree_service.add_detached_worktree(path, commit)
                worktree_repo = self._get_repo(path)
                with git_command("checkout", branch=branch, path=path):
                    worktree_repo.git.checkout("-B", branch, branch)
            else:
                default_branch = self.branch_queries.resolve_default_branch(config.main_branch)
                self.worktree_service.add_worktree(path, branch, default_branch)

        logger.info(f"Created pool worktree {name} at {path} on {branch}")
        result = CreateResult(path=path, branch=branch)

        if config.init_command:
            result.init_command = config.init_command
            result.init_error = run_init_command(path, config.init_command)

        return result

    # --- Claim ---

    def claim_worktree(
        self,
        worktree: Union[Worktree, str],
        branch_name: str,
        config: RepositoryConfig,
        dirty_option: Optional[DirtyStateOption] = None,
        commit_message: Optional[str] = None,
    ) -> ClaimResult:
        """Assign a worktree to branch_name.

        An existing branch is checked out as-is; a new one is created from
        the default branch's tip.

        Raises:
            BaseWorktreeError: for the repository root
            ReservedBranchNameError: if branch_name uses the tmp- prefix
            BranchCheckedOutError: if branch_name is checked out in another worktree
            DirtyWorktreeError: if there are uncommitted changes and no dirty_option
        """
        worktree = self._as_worktree(worktree)
        self._ensure_not_base(worktree, "claim")
        if not branch_name or not branch_name.strip():
            raise ValueError("branch_name cannot be empty")
        if is_tmp_branch(branch_name):
            raise ReservedBranchNameError(branch_name, TMP_BRANCH_PREFIX)

        with self.lock.acquire(worktree.path):
            # Everything that can fail is checked before uncommitted changes are touched
            if self.branch_queries.branch_exists(branch_name):
                self._ensure_branch_not_checked_out_elsewhere(branch_name, worktree.path)
                start_point = None
            else:
                default_branch = self.branch_queries.resolve_default_branch(config.main_branch)
                self.branch_queries.fetch_branch(default_branch)
                start_point = self.branch_queries.rev_parse(default_branch)

            self._resolve_dirty_state(worktree.path, dirty_option, commit_message, "claim")

            worktree_repo = self._get_repo(worktree.path)
            with git_command("checkout", branch=branch_name, path=worktree.path):
                if start_point is None:
                    worktree_repo.git.checkout(branch_name)
                else:
                    worktree_repo.git.checkout("-b", branch_name, start_point)

        logger.info(f"Claimed {worktree.path} for {branch_name}")
        return ClaimResult(branch=branch_name)

    # --- Release ---

    def release_worktree(
        self,
        worktree: Union[Worktree, str],
        config: RepositoryConfig,
        dirty_option: Optional[DirtyStateOption] = None,
        commit_message: Optional[str] = None,
    ) -> ReleaseResult:
        """Return a worktree to the pool as a fresh snapshot of the default branch.

        The slot's tmp branch is (re)pointed at the default branch's tip,
        preferring the remote-tracking ref. Releasing twice gives the same
        result.

        Raises:
            BaseWorktreeError: for the repository root
            DirtyWorktreeError: if there are uncommitted changes and no dirty_option
        """
        worktree = self._as_worktree(worktree)
        self._ensure_not_base(worktree, "release")

        with self.lock.acquire(worktree.path):
            previous_branch = self.branch_queries.current_branch(worktree.path) or DETACHED_LABEL

            tmp_branch = tmp_branch_name(extract_worktree_name(worktree.path, self.repo_path))
            default_branch = self.branch_queries.resolve_default_branch(config.main_branch)
            self.branch_queries.fetch_branch(default_branch)
            target_commit = self.branch_queries.target_commit(default_branch)
            tmp_exists = self.branch_queries.branch_exists(tmp_branch)
            if tmp_exists:
                self._ensure_branch_not_checked_out_elsewhere(tmp_branch, worktree.path)

            if dirty_option is DirtyStateOption.STASH and not commit_message:
                commit_message = f"Release stash from {previous_branch}"
            self._resolve_dirty_state(worktree.path, dirty_option, commit_message, "release")

            worktree_repo = self._get_repo(worktree.path)
            with git_command("checkout", branch=tmp_branch, path=worktree.path):
                if tmp_exists:
                    worktree_repo.git.checkout(tmp_branch)
                    worktree_repo.git.reset("--hard", target_commit)
                else:
                    worktree_repo.git.checkout("-B", tmp_branch, target_commit)

        logger.info(
            f"Released {worktree.path}: {previous_branch} -> {tmp_branch} "
            f"at {default_branch} ({target_commit[:7]})"
        )
        return ReleaseResult(tmp_branch=tmp_branch, previous_branch=previous_branch)

    # --- Archive ---

    def archive_worktree(self, worktree_path: str, force: bool, config: RepositoryConfig) -> str:
        """Permanently remove a pool slot.

        Unless force is set, the slot's branch must be fully merged into
        the default branch. The branch itself is kept.

        Returns:
            Name of the removal strategy that succeeded

        Raises:
            UnmergedBranchError: branch not merged (retry with force=True)
            MergeCheckFailedError: merge status unknown (retry with force=True)
            WorktreeNotFoundError: nothing registered or on disk at worktree_path
            BaseWorktreeError: for the repository root
        """
        try:
            worktree: Optional[Worktree] = self.worktree_service.get_worktree(worktree_path)
        except WorktreeNotFoundError:
            if not os.path.exists(worktree_path):
                raise
            logger.debug(f"{worktree_path} is not registered, removing the directory only")
            worktree = None

        if same_path(worktree_path, self.repo_path):
            raise BaseWorktreeError("archive", worktree_path)

        path = worktree.path if worktree else worktree_path
        with self.lock.acquire(path):
            if not force and worktree is not None and worktree.branch:
                main_branch = self.branch_queries.resolve_default_branch(config.main_branch)
                self.merge_detector.ensure_fully_merged(worktree.local_branch, main_branch)

            return self.removal_chain.run(path)

    # --- Merge / Rebase ---

    def merge_worktree(self, from_branch: str, to_branch: str, options: Optional[MergeOptions] = None):
        """Merge from_branch into to_branch in the repository's primary working copy.

        Conflicts raise ToolCommandError and are left for the caller to
        resolve.
        """
        options = options or MergeOptions()
        repo = self._get_repo()

        with git_command("checkout", branch=to_branch, path=self.repo_path):
            repo.git.checkout(to_branch)

        merge_args = []
        if options.squash:
            merge_args.append("--squash")
        if options.no_ff:
            merge_args.append("--no-ff")
        if not options.squash:
            # A squash only stages; its message goes on the commit below
            merge_args.extend(["-m", options.message] if options.message else ["--no-edit"])
        merge_args.append(from_branch)

        with git_command("merge", branch=from_branch, path=self.repo_path):
            repo.git.merge(*merge_args)

        if options.squash:
            commit_message = options.message or f"Merge {from_branch} (squashed)"
            with git_command("commit", branch=to_branch, path=self.repo_path):
                repo.git.commit("-m", commit_message)

        logger.info(f"Merged {from_branch} into {to_branch}")

        if options.delete_worktree and options.worktree_path:
            if same_path(options.worktree_path, self.repo_path):
                raise BaseWorktreeError("archive", options.worktree_path)
            with self.lock.acquire(options.worktree_path):
                self.removal_chain.run(options.worktree_path)

    def rebase_worktree(self, worktree_path: str, from_branch: str, onto_branch: str):
        """Rebase from_branch onto onto_branch inside the given worktree.

        A rebase that stops on conflicts raises ToolCommandError and leaves
        the worktree mid-rebase.
        """
        worktree_repo = self._get_repo(worktree_path)

        with git_command("checkout", branch=from_branch, path=worktree_path):
            worktree_repo.git.checkout(from_branch)

        with git_command("rebase", branch=from_branch, path=worktree_path):
            worktree_repo.git.rebase(onto_branch)

        logger.info(f"Rebased {from_branch} onto {onto_branch} in {worktree_path}")

    # --- Helpers ---

    def _as_worktree(self, worktree: Union[Worktree, str]) -> Worktree:
        if isinstance(worktree, Worktree):
            return worktree
        return self.worktree_service.get_worktree(worktree)

    def _ensure_not_base(self, worktree: Worktree, operation: str):
        if worktree.is_base or same_path(worktree.path, self.repo_path):
            raise BaseWorktreeError(operation, worktree.path)

    def _ensure_branch_not_checked_out_elsewhere(self, branch_name: str, worktree_path: str):
        for wt in self.worktree_service.list_worktrees():
            if wt.branch and wt.local_branch == branch_name and not same_path(wt.path, worktree_path):
                raise BranchCheckedOutError(branch_name, wt.path)

    def _validate_worktree_name(self, name: str):
        if not name or not name.strip():
            raise InvalidWorktreeNameError(name, "name cannot be empty")
        if name != name.strip():
            raise InvalidWorktreeNameError(name, "name cannot start or end with whitespace")
        if "/" in name or os.path.sep in name or name in (".", ".."):
            raise InvalidWorktreeNameError(name, "name cannot contain path separators")

    def _resolve_dirty_state(
        self,
        worktree_path: str,
        option: Optional[DirtyStateOption],
        message: Optional[str],
        operation: str,
    ):
        """Apply the chosen dirty-state option if the worktree has changes.

        The option is validated first, so a bad choice fails before any
        git mutation even on a clean worktree.
        """
        resolver = DirtyStateResolver(worktree_path)
        if option is not None:
            resolver.validate(option, message)

        status = self.worktree_service.get_status(worktree_path)
        if not status.is_dirty:
            return
        if option is None:
            raise DirtyWorktreeError(worktree_path, status)

        logger.debug(f"Resolving changes in {worktree_path} with {option.value}")
        resolver.resolve(option, message, operation)
