"""Shared plumbing for the git services."""

from contextlib import contextmanager
from typing import Optional

import git

from git_worktree_pool.exceptions import RepositoryStateError, ToolCommandError
from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)


def open_repo(path: str) -> git.Repo:
    """Open the repository (or linked worktree) at path."""
    try:
        return git.Repo(path)
    except git.exc.NoSuchPathError:
        raise RepositoryStateError(path, "path does not exist")
    except git.exc.InvalidGitRepositoryError:
        raise RepositoryStateError(path, "not a git repository")


@contextmanager
def git_command(operation: str, branch: Optional[str] = None, path: Optional[str] = None):
    """Translate GitPython command failures into ToolCommandError."""
    try:
        yield
    except git.exc.GitCommandError as e:
        stderr = e.stderr if isinstance(e.stderr, str) else str(e)
        logger.debug(f"git {operation} failed (exit {e.status}): {stderr.strip()}")
        raise ToolCommandError(operation, branch=branch, status=e.status, stderr=stderr, path=path) from e


class GitServiceBase:
    """Common base for services bound to one repository path."""

    def __init__(self, repo_path: str):
        """Initialize the service.

        Args:
            repo_path: Path to the git repository (string path, not repo object)
        """
        self.repo_path = repo_path

    def _get_repo(self, path: Optional[str] = None) -> git.Repo:
        """Get a fresh git.Repo instance.

        A new instance per call keeps the services safe to use from several
        threads. Pass path to open a linked worktree instead of the repository.
        """
        return open_repo(path or self.repo_path)
