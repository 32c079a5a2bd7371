"""Pytest fixtures for git-worktree-pool tests"""
import tempfile
from pathlib import Path
import pytest
import git

from git_worktree_pool import WorktreePool


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


def commit_file(repo, name, content, message):
    """Write a file in repo's working tree and commit it."""
    path = Path(repo.working_tree_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.git.add(name)
    repo.git.commit("-m", message)
    return repo.head.commit.hexsha


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository on main with one commit and no remote."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    # Configure git user for commits
    repo.config_writer().set_value("user", "name", "Test User").release()
    repo.config_writer().set_value("user", "email", "test@example.com").release()

    test_file = repo_path / "README.md"
    test_file.write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")

    # Rename master to main
    repo.git.branch('-M', 'main')

    yield repo

    repo.close()


@pytest.fixture
def repo_path(git_repo):
    return git_repo.working_tree_dir


@pytest.fixture
def pool(repo_path):
    return WorktreePool(repo_path)


@pytest.fixture
def pool_worktree(pool):
    """A pool with one available worktree named 'one'."""
    result = pool.create_worktree("one")
    return pool.get_worktree(result.path)


@pytest.fixture
def claimed_worktree(pool, pool_worktree):
    """The 'one' worktree claimed for feature/work."""
    pool.claim_worktree(pool_worktree, "feature/work")
    return pool.get_worktree(pool_worktree.path)
