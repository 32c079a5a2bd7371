"""Handling of uncommitted changes before a worktree changes hands."""

from datetime import datetime, timezone
from typing import Optional

from git_worktree_pool.exceptions import DirtyStateError, OperationCancelledError
from git_worktree_pool.models.status import DirtyStateOption
from git_worktree_pool.services.git.base import GitServiceBase, git_command
from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)


def default_stash_message() -> str:
    return f"Stash from release at {datetime.now(timezone.utc).isoformat()}"


class DirtyStateResolver(GitServiceBase):
    """Applies one dirty-state option to a worktree.

    The resolver never picks an option itself; callers inspect
    WorktreeService.get_status() and choose.
    """

    def __init__(self, worktree_path: str):
        super().__init__(worktree_path)
        self.worktree_path = worktree_path

    def stash(self, message: Optional[str] = None):
        """Stash tracked and untracked changes."""
        repo = self._get_repo()
        stash_message = message or default_stash_message()
        with git_command("stash", path=self.worktree_path):
            repo.git.stash("push", "-m", stash_message, "--include-untracked")
        logger.info(f"Stashed changes in {self.worktree_path}: {stash_message}")

    def commit(self, message: str):
        """Stage everything and create a new commit."""
        self._require_message(message)
        repo = self._get_repo()
        with git_command("commit", path=self.worktree_path):
            repo.git.add("-A")
            repo.git.commit("-m", message)
        logger.info(f"Committed changes in {self.worktree_path}")

    def amend(self):
        """Stage everything and fold it into HEAD, keeping the message."""
        self._require_head()
        repo = self._get_repo()
        with git_command("commit --amend", path=self.worktree_path):
            repo.git.add("-A")
            repo.git.commit("--amend", "--no-edit")
        logger.info(f"Amended last commit in {self.worktree_path}")

    def clean(self):
        """Discard all changes: reset tracked files and delete untracked ones. Irreversible."""
        repo = self._get_repo()
        with git_command("clean", path=self.worktree_path):
            repo.git.reset("--hard", "HEAD")
            repo.git.clean("-fd")
        logger.info(f"Discarded all changes in {self.worktree_path}")

    def validate(self, option: DirtyStateOption, message: Optional[str] = None):
        """Check the option's preconditions without touching the worktree.

        Raises:
            DirtyStateError: if the option cannot be applied
        """
        if not isinstance(option, DirtyStateOption):
            raise DirtyStateError(f"Unknown dirty-state option: {option!r}")
        if option is DirtyStateOption.COMMIT:
            self._require_message(message)
        elif option is DirtyStateOption.AMEND:
            self._require_head()

    def resolve(self, option: DirtyStateOption, message: Optional[str] = None, operation: str = "operation"):
        """Apply exactly one option.

        Args:
            option: The chosen option
            message: Commit message for COMMIT, stash message for STASH
            operation: Name of the enclosing operation, used when cancelling

        Raises:
            DirtyStateError: if the option's preconditions fail (nothing is changed)
            OperationCancelledError: if option is CANCEL
        """
        self.validate(option, message)

        if option is DirtyStateOption.CANCEL:
            logger.info(f"{operation} of {self.worktree_path} cancelled")
            raise OperationCancelledError(operation)

        handlers = {
            DirtyStateOption.STASH: lambda: self.stash(message),
            DirtyStateOption.COMMIT: lambda: self.commit(message),
            DirtyStateOption.AMEND: self.amend,
            DirtyStateOption.CLEAN: self.clean,
        }
        handlers[option]()

    def _require_message(self, message: Optional[str]):
        if not message or not message.strip():
            raise DirtyStateError("A commit message is required")

    def _require_head(self):
        repo = self._get_repo()
        if not repo.head.is_valid():
            raise DirtyStateError(f"No commit to amend in {self.worktree_path}")
