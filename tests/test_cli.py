"""Tests for the command-line interface"""
import importlib
from pathlib import Path
from unittest.mock import patch

import pytest
import git

from git_worktree_pool import WorktreePool
from git_worktree_pool.cli.args import parse_args
from git_worktree_pool.cli.main import find_repository_root, main

from conftest import commit_file

cli_main = importlib.import_module("git_worktree_pool.cli.main")


@pytest.fixture(autouse=True)
def no_app_data(monkeypatch):
    """Keep the user's real app-data file out of the tests."""
    monkeypatch.setattr(
        cli_main, "load_app_data", lambda: {"repositories": [], "repositoryConfigs": {}}
    )


@pytest.fixture
def in_repo(monkeypatch, repo_path):
    monkeypatch.chdir(repo_path)
    return repo_path


def branch_of(path):
    return git.Repo(path).active_branch.name


class TestParseArgs:
    """Test argument parsing."""

    def test_defaults_to_list(self):
        args = parse_args([])
        assert args.command == "list"
        assert args.no_interactive is False

    def test_common_options_before_and_after_command(self):
        assert parse_args(["--ni", "list"]).no_interactive is True
        assert parse_args(["list", "--no-interactive"]).no_interactive is True
        assert parse_args(["switch", "feature/x", "--main-branch", "develop"]).main_branch == "develop"

    def test_release_flags(self):
        args = parse_args(["release", "feature/x", "--commit", "wip", "-w", "one"])
        assert args.identifier == "feature/x"
        assert args.commit_message == "wip"
        assert args.worktree == "one"
        assert args.stash is False

    def test_switch_has_no_stash_flag(self):
        with pytest.raises(SystemExit):
            parse_args(["switch", "feature/x", "--stash"])

    def test_merge_modes_are_exclusive(self):
        with pytest.raises(SystemExit):
            parse_args(["merge", "feature/x", "--squash", "--no-ff"])

    def test_branches_command(self):
        assert parse_args(["branches", "--ni"]).command == "branches"

    def test_merge_defaults(self):
        args = parse_args(["merge", "feature/x"])
        assert args.from_branch == "feature/x"
        assert args.to_branch is None
        assert args.delete_worktree is False


class TestRepositoryDiscovery:
    """Test locating the main working tree."""

    def test_from_subdirectory(self, repo_path):
        sub = Path(repo_path) / "src"
        sub.mkdir()
        assert find_repository_root(str(sub)) == repo_path

    def test_from_linked_worktree(self, pool, pool_worktree, repo_path):
        assert find_repository_root(pool_worktree.path) == repo_path

    def test_outside_repository(self, monkeypatch, temp_dir):
        monkeypatch.chdir(temp_dir)
        assert main(["list"]) == 1


class TestCommands:
    """Test commands end to end against a real repository."""

    def test_list(self, in_repo, pool_worktree, capsys):
        assert main(["list"]) == 0
        out = capsys.readouterr().out
        assert "Available:" in out
        assert "1 available" in out

    def test_create(self, in_repo):
        assert main(["create", "one"]) == 0
        assert WorktreePool(in_repo).find_worktree("tmp-one") is not None

    def test_create_duplicate(self, in_repo, pool_worktree):
        assert main(["create", "one"]) == 1

    def test_create_name_matching_a_branch(self, in_repo):
        assert main(["create", "main", "--no-interactive"]) == 0
        pool = WorktreePool(in_repo)
        assert pool.find_worktree("tmp-main").worktree_name == "main"

    def test_switch_single_available(self, in_repo, pool_worktree):
        assert main(["switch", "feature/x", "--ni"]) == 0
        assert branch_of(pool_worktree.path) == "feature/x"

    def test_switch_without_available(self, in_repo):
        assert main(["switch", "feature/x", "--ni"]) == 1

    def test_switch_ambiguous_non_interactive(self, in_repo, pool, pool_worktree, capsys):
        pool.create_worktree("two")
        assert main(["switch", "feature/x", "--ni"]) == 1
        assert "--worktree" in capsys.readouterr().out

    def test_switch_named_worktree(self, in_repo, pool, pool_worktree):
        second = pool.create_worktree("two")
        assert main(["switch", "feature/x", "--worktree", "two", "--ni"]) == 0
        assert branch_of(second.path) == "feature/x"
        assert branch_of(pool_worktree.path) == "tmp-one"

    def test_switch_already_claimed_branch(self, in_repo, claimed_worktree, pool):
        pool.create_worktree("two")
        assert main(["switch", "feature/work", "--ni"]) == 0
        assert [wt.worktree_name for wt in pool.available_worktrees()] == ["two"]

    def test_switch_dirty_fail_if_dirty(self, in_repo, pool_worktree):
        (Path(pool_worktree.path) / "wip.txt").write_text("wip\n")
        assert main(["switch", "feature/x", "--fail-if-dirty"]) == 1
        assert branch_of(pool_worktree.path) == "tmp-one"

    def test_switch_dirty_clean(self, in_repo, pool_worktree):
        (Path(pool_worktree.path) / "wip.txt").write_text("wip\n")
        assert main(["switch", "feature/x", "--clean"]) == 0
        assert branch_of(pool_worktree.path) == "feature/x"

    def test_release_current_worktree(self, monkeypatch, claimed_worktree):
        monkeypatch.chdir(claimed_worktree.path)
        assert main(["release", "--ni"]) == 0
        assert branch_of(claimed_worktree.path) == "tmp-one"

    def test_release_by_branch(self, in_repo, claimed_worktree):
        assert main(["release", "feature/work", "--ni"]) == 0
        assert branch_of(claimed_worktree.path) == "tmp-one"

    def test_release_available_is_noop(self, in_repo, pool_worktree):
        assert main(["release", "one", "--ni"]) == 0
        assert branch_of(pool_worktree.path) == "tmp-one"

    def test_release_base_refused(self, in_repo):
        assert main(["release", "main", "--ni"]) == 1

    def test_release_dirty_non_interactive(self, in_repo, claimed_worktree, capsys):
        (Path(claimed_worktree.path) / "README.md").write_text("edited\n")
        assert main(["release", "feature/work", "--ni"]) == 1
        assert "--stash" in capsys.readouterr().out
        assert branch_of(claimed_worktree.path) == "feature/work"

    def test_release_dirty_with_stash(self, in_repo, claimed_worktree):
        (Path(claimed_worktree.path) / "README.md").write_text("edited\n")
        assert main(["release", "feature/work", "--stash"]) == 0
        assert branch_of(claimed_worktree.path) == "tmp-one"

    def test_release_rejects_several_dirty_flags(self, in_repo, claimed_worktree):
        assert main(["release", "feature/work", "--stash", "--clean"]) == 1

    def test_release_dirty_interactive_stash(self, in_repo, claimed_worktree):
        (Path(claimed_worktree.path) / "README.md").write_text("edited\n")
        with patch.object(cli_main.Prompt, "ask", return_value="1"):
            assert main(["release", "feature/work"]) == 0
        assert "Release stash from feature/work" in git.Repo(in_repo).git.stash("list")

    def test_release_dirty_interactive_cancel(self, in_repo, claimed_worktree):
        (Path(claimed_worktree.path) / "README.md").write_text("edited\n")
        with patch.object(cli_main.Prompt, "ask", return_value="5"):
            assert main(["release", "feature/work"]) == 1
        assert branch_of(claimed_worktree.path) == "feature/work"

    def test_release_dirty_interactive_clean_needs_yes(self, in_repo, claimed_worktree):
        (Path(claimed_worktree.path) / "README.md").write_text("edited\n")
        with patch.object(cli_main.Prompt, "ask", side_effect=["4", "no"]):
            assert main(["release", "feature/work"]) == 1
        assert branch_of(claimed_worktree.path) == "feature/work"

    def test_archive_unmerged_non_interactive(self, in_repo, claimed_worktree):
        commit_file(git.Repo(claimed_worktree.path), "work.txt", "work\n", "Unmerged")
        assert main(["archive", "one", "--ni"]) == 1
        assert Path(claimed_worktree.path).exists()

    def test_archive_unmerged_confirmed(self, in_repo, claimed_worktree):
        commit_file(git.Repo(claimed_worktree.path), "work.txt", "work\n", "Unmerged")
        with patch.object(cli_main.Confirm, "ask", return_value=True):
            assert main(["archive", "one"]) == 0
        assert not Path(claimed_worktree.path).exists()

    def test_archive_force(self, in_repo, claimed_worktree):
        commit_file(git.Repo(claimed_worktree.path), "work.txt", "work\n", "Unmerged")
        assert main(["archive", "feature/work", "--force"]) == 0
        assert not Path(claimed_worktree.path).exists()

    def test_merge_and_delete(self, in_repo, claimed_worktree):
        commit_file(git.Repo(claimed_worktree.path), "work.txt", "work\n", "Feature work")
        assert main(["merge", "feature/work", "--delete-worktree"]) == 0
        assert (Path(in_repo) / "work.txt").exists()
        assert not Path(claimed_worktree.path).exists()

    def test_squash_merge_uses_commit_log(self, in_repo, git_repo, claimed_worktree):
        commit_file(git_repo, "base.txt", "base\n", "Main tip")
        worktree_repo = git.Repo(claimed_worktree.path)
        worktree_repo.git.rebase("main")
        commit_file(worktree_repo, "a.txt", "a\n", "Add a")
        commit_file(worktree_repo, "b.txt", "b\n", "Add b")

        assert main(["merge", "feature/work", "--squash"]) == 0

        message = git_repo.heads["main"].commit.message
        assert message.splitlines()[:2] == ["Add b", "Add a"]

    def test_squash_merge_without_worktree_uses_default_message(self, in_repo, git_repo):
        git_repo.git.checkout("-b", "feature/loose")
        commit_file(git_repo, "loose.txt", "loose\n", "Loose work")
        git_repo.git.checkout("main")

        assert main(["merge", "feature/loose", "--squash"]) == 0
        assert git_repo.heads["main"].commit.message.strip() == "Merge feature/loose (squashed)"

    def test_branches(self, in_repo, claimed_worktree, capsys):
        assert main(["branches"]) == 0
        out = capsys.readouterr().out
        assert "main (base)" in out
        assert "feature/work (one)" in out
        assert "tmp-one" in out

    def test_rebase(self, in_repo, git_repo, claimed_worktree):
        commit_file(git.Repo(claimed_worktree.path), "work.txt", "work\n", "Feature work")
        main_tip = commit_file(git_repo, "later.txt", "later\n", "Main moved on")
        assert main(["rebase", "feature/work"]) == 0
        assert git.Repo(claimed_worktree.path).head.commit.parents[0].hexsha == main_tip

    def test_status(self, in_repo, claimed_worktree, capsys):
        (Path(claimed_worktree.path) / "README.md").write_text("edited\n")
        assert main(["status", "one"]) == 0
        assert "Modified: README.md" in capsys.readouterr().out
