"""Tests for merge detection"""
import pytest

from git_worktree_pool.exceptions import MergeCheckFailedError, MergeSafetyError, UnmergedBranchError
from git_worktree_pool.services.git.merge_detector import MergeDetector

from conftest import commit_file


@pytest.fixture
def repo_with_branches(git_repo):
    """main plus a merged branch and an unmerged one."""
    git_repo.git.checkout("-b", "feature/merged")
    commit_file(git_repo, "merged.txt", "merged\n", "Merged work")
    git_repo.git.checkout("main")
    git_repo.git.merge("feature/merged", "--no-ff", "-m", "Merge feature/merged")

    git_repo.git.checkout("-b", "feature/open")
    commit_file(git_repo, "open.txt", "open\n", "Open work")
    git_repo.git.checkout("main")
    return git_repo


class TestMergeDetector:
    """Test the merge-base ancestry check."""

    def test_merged_branch(self, repo_with_branches):
        detector = MergeDetector(repo_with_branches.working_tree_dir)
        assert detector.is_fully_merged("feature/merged", "main") is True

    def test_unmerged_branch(self, repo_with_branches):
        detector = MergeDetector(repo_with_branches.working_tree_dir)
        assert detector.is_fully_merged("feature/open", "main") is False

    def test_branch_at_main_tip_is_merged(self, git_repo):
        git_repo.git.branch("fresh")
        detector = MergeDetector(git_repo.working_tree_dir)
        assert detector.is_fully_merged("fresh", "main") is True

    def test_new_commit_after_merge_makes_branch_unmerged(self, repo_with_branches):
        detector = MergeDetector(repo_with_branches.working_tree_dir)
        assert detector.is_fully_merged("feature/merged", "main") is True

        repo_with_branches.git.checkout("feature/merged")
        commit_file(repo_with_branches, "later.txt", "later\n", "Work after merge")
        repo_with_branches.git.checkout("main")

        assert detector.is_fully_merged("feature/merged", "main") is False

    def test_unknown_branch_fails_check(self, git_repo):
        detector = MergeDetector(git_repo.working_tree_dir)
        with pytest.raises(MergeCheckFailedError) as exc_info:
            detector.is_fully_merged("missing", "main")
        assert exc_info.value.requires_confirmation is True

    def test_unrelated_histories_fail_check(self, git_repo):
        git_repo.git.checkout("--orphan", "unrelated")
        commit_file(git_repo, "other.txt", "other\n", "Unrelated root")
        git_repo.git.checkout("main")

        detector = MergeDetector(git_repo.working_tree_dir)
        with pytest.raises(MergeCheckFailedError):
            detector.is_fully_merged("unrelated", "main")

    def test_ensure_fully_merged_raises_for_unmerged(self, repo_with_branches):
        detector = MergeDetector(repo_with_branches.working_tree_dir)
        with pytest.raises(UnmergedBranchError) as exc_info:
            detector.ensure_fully_merged("feature/open", "main")
        assert isinstance(exc_info.value, MergeSafetyError)
        assert exc_info.value.branch == "feature/open"

    def test_ensure_fully_merged_passes_for_merged(self, repo_with_branches):
        detector = MergeDetector(repo_with_branches.working_tree_dir)
        detector.ensure_fully_merged("feature/merged", "main")
