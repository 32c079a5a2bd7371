"""Custom exceptions for git-worktree-pool"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from git_worktree_pool.models.status import GitStatus


class WorktreePoolError(Exception):
    """Base exception for all git-worktree-pool errors."""
    pass


class GitOperationError(WorktreePoolError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, branch: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class ToolCommandError(GitOperationError):
    """The git executable exited with a non-zero status."""

    def __init__(
        self,
        operation: str,
        branch: Optional[str] = None,
        status: Optional[int] = None,
        stderr: Optional[str] = None,
        path: Optional[str] = None,
    ):
        self.status = status
        self.stderr = (stderr or "").strip()
        self.path = path

        if self.stderr:
            message = f"exit {status}: {self.stderr}"
        else:
            message = f"exit code {status}"
        if path:
            message += f" (in {path})"

        super().__init__(operation, branch, message)


class BranchNotFoundError(GitOperationError):
    """Exception raised when a branch is not found."""

    def __init__(self, branch: str):
        super().__init__("find_branch", branch, "Branch not found")


class RepositoryStateError(WorktreePoolError):
    """The repository cannot be used as asked (not a repo, no branches, no default)."""

    def __init__(self, repo_path: str, reason: str):
        self.repo_path = repo_path
        self.reason = reason
        super().__init__(f"Repository '{repo_path}': {reason}")


class MergeSafetyError(WorktreePoolError):
    """Base for archive safety signals. Proceeding requires explicit confirmation (force)."""

    requires_confirmation = True

    def __init__(self, branch: str, main_branch: str, message: str):
        self.branch = branch
        self.main_branch = main_branch
        super().__init__(message)


class UnmergedBranchError(MergeSafetyError):
    """The branch has commits that are not in the main branch."""

    def __init__(self, branch: str, main_branch: str):
        super().__init__(
            branch,
            main_branch,
            f"Branch '{branch}' is not fully merged into '{main_branch}'",
        )


class MergeCheckFailedError(MergeSafetyError):
    """Could not determine whether the branch is merged."""

    def __init__(self, branch: str, main_branch: str, reason: Optional[str] = None):
        self.reason = reason
        message = f"Could not determine if branch '{branch}' is merged into '{main_branch}'"
        if reason:
            message += f": {reason}"
        super().__init__(branch, main_branch, message)


class WorktreeNotFoundError(WorktreePoolError):
    """No worktree matches the given path or name."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Worktree '{identifier}' not found")


class WorktreeExistsError(WorktreePoolError):
    """A worktree is already registered at the target path."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Worktree already exists at '{path}'")


class InvalidWorktreeNameError(WorktreePoolError):
    """The worktree name cannot be mapped to a directory and branch."""

    def __init__(self, name: str, reason: str):
        self.name = name
        super().__init__(f"Invalid worktree name '{name}': {reason}")


class BaseWorktreeError(WorktreePoolError):
    """The base (repository root) worktree is not part of the pool."""

    def __init__(self, operation: str, path: str):
        self.operation = operation
        self.path = path
        super().__init__(f"Cannot {operation} the base repository worktree ({path})")


class ReservedBranchNameError(WorktreePoolError):
    """The branch name uses the prefix reserved for parked pool branches."""

    def __init__(self, branch: str, prefix: str):
        self.branch = branch
        super().__init__(
            f"Branch '{branch}' starts with the reserved prefix '{prefix}' "
            "and would be classified as available"
        )


class DirtyWorktreeError(WorktreePoolError):
    """The worktree has uncommitted changes and no resolution was chosen."""

    def __init__(self, path: str, status: "GitStatus"):
        self.path = path
        self.status = status
        super().__init__(f"Worktree '{path}' has uncommitted changes")


class DirtyStateError(WorktreePoolError):
    """A dirty-state option cannot be applied."""
    pass


class OperationCancelledError(WorktreePoolError):
    """The caller chose to abort the operation."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"{operation.capitalize()} cancelled")


class BranchCheckedOutError(GitOperationError):
    """The branch is already checked out in another worktree."""

    def __init__(self, branch: str, path: str):
        self.path = path
        super().__init__("checkout", branch, f"Branch is already checked out at '{path}'")
