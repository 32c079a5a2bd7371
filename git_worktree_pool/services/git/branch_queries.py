"""Branch query service for git-worktree-pool."""

from typing import Optional, List

import git

from git_worktree_pool.constants import (
    FALLBACK_DEFAULT_BRANCHES,
    REMOTE_HEAD_REF,
    REMOTE_NAME,
    REMOTE_REF_PREFIX,
)
from git_worktree_pool.exceptions import (
    BranchNotFoundError,
    RepositoryStateError,
    ToolCommandError,
)
from git_worktree_pool.services.git.base import GitServiceBase, git_command
from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)


class BranchQueries(GitServiceBase):
    """Service for querying branch information."""

    def __init__(self, repo_path: str):
        super().__init__(repo_path)
        self.remote_name = REMOTE_NAME

    def local_branches(self) -> List[str]:
        """Names of all local branches."""
        repo = self._get_repo()
        return [head.name for head in repo.heads]

    def branch_exists(self, branch_name: str) -> bool:
        """Check if a local branch exists."""
        return branch_name in self.local_branches()

    def has_remote(self) -> bool:
        """Check if the repository has the remote we fetch from."""
        repo = self._get_repo()
        return any(remote.name == self.remote_name for remote in repo.remotes)

    def current_branch(self, path: Optional[str] = None) -> Optional[str]:
        """Branch checked out at path (defaults to the repository), None when detached."""
        repo = self._get_repo(path)
        try:
            return repo.active_branch.name
        except TypeError:
            # Detached HEAD
            return None

    def rev_parse(self, ref: str, path: Optional[str] = None) -> str:
        """Commit SHA that ref points to.

        Raises:
            ToolCommandError: if ref does not name a commit
        """
        repo = self._get_repo(path)
        with git_command("rev-parse", branch=ref):
            return repo.git.rev_parse("--verify", "--quiet", f"{ref}^{{commit}}").strip()

    def branch_commit(self, branch_name: str) -> str:
        """Tip commit of a local branch.

        Raises:
            BranchNotFoundError: if the branch does not exist
        """
        repo = self._get_repo()
        try:
            return repo.heads[branch_name].commit.hexsha
        except IndexError:
            raise BranchNotFoundError(branch_name)

    def resolve_default_branch(self, main_branch_override: Optional[str] = None) -> str:
        """Determine the repository's default branch.

        Order: explicit override, the remote's HEAD, the first existing of
        main/master/develop, then the current branch.

        Raises:
            RepositoryStateError: if the repository has no branches, or is
                detached and none of the fallbacks exist
        """
        if main_branch_override:
            return main_branch_override

        repo = self._get_repo()

        try:
            remote_head = repo.git.symbolic_ref(REMOTE_HEAD_REF).strip()
            if remote_head.startswith(REMOTE_REF_PREFIX):
                default_branch = remote_head[len(REMOTE_REF_PREFIX):]
                logger.debug(f"Default branch from {REMOTE_HEAD_REF}: {default_branch}")
                return default_branch
        except git.exc.GitCommandError as e:
            logger.debug(f"No remote default branch: {e.stderr.strip() if isinstance(e.stderr, str) else e}")

        branches = [head.name for head in repo.heads]
        if not branches:
            raise RepositoryStateError(self.repo_path, "repository has no branches")

        for candidate in FALLBACK_DEFAULT_BRANCHES:
            if candidate in branches:
                logger.debug(f"Default branch by name: {candidate}")
                return candidate

        try:
            current = repo.active_branch.name
        except TypeError:
            raise RepositoryStateError(
                self.repo_path, "HEAD is detached and no default branch could be determined"
            )
        logger.debug(f"Default branch falls back to current branch: {current}")
        return current

    def fetch_branch(self, branch_name: str) -> bool:
        """Best-effort fetch of a branch from the remote.

        Failures (offline, no remote, missing branch) are logged and ignored.

        Returns:
            True if the fetch succeeded
        """
        if not self.has_remote():
            logger.debug(f"No '{self.remote_name}' remote, skipping fetch of {branch_name}")
            return False

        repo = self._get_repo()
        try:
            with repo.git.custom_environment(GIT_TERMINAL_PROMPT="0"):
                repo.git.fetch(self.remote_name, branch_name)
            logger.debug(f"Fetched {branch_name} from {self.remote_name}")
            return True
        except git.exc.GitCommandError as e:
            logger.debug(f"Ignoring fetch failure for {branch_name}: {e}")
            return False

    def target_commit(self, branch_name: str) -> str:
        """Tip of the remote-tracking branch, or of the local branch if there is none."""
        try:
            return self.rev_parse(f"{self.remote_name}/{branch_name}")
        except ToolCommandError:
            logger.debug(f"No remote-tracking branch for {branch_name}, using local tip")
        return self.rev_parse(branch_name)

    def commit_log(self, worktree_path: str, base_branch: str) -> str:
        """Subjects of the commits from base_branch's tip up to HEAD, newest first.

        Used as the default squash message. Returns "" if the log cannot be read.
        """
        repo = self._get_repo(worktree_path)
        try:
            with git_command("log", branch=base_branch, path=worktree_path):
                return repo.git.log(f"{base_branch}^..HEAD", "--pretty=format:%s").strip()
        except ToolCommandError as e:
            logger.debug(f"No commit log for {worktree_path} against {base_branch}: {e}")
            return ""
