"""Tests for porcelain output parsing"""
from git_worktree_pool.models.worktree import (
    extract_worktree_name,
    get_local_branch_name,
    is_tmp_branch,
    tmp_branch_name,
    worktree_path_for,
)
from git_worktree_pool.services.git.worktrees import parse_status_porcelain, parse_worktree_porcelain


class TestParseWorktreePorcelain:
    """Test parsing of `git worktree list --porcelain`."""

    def test_parses_branch_detached_and_bare_records(self):
        output = (
            "worktree /repos/app\n"
            "HEAD 1111111111111111111111111111111111111111\n"
            "branch refs/heads/main\n"
            "\n"
            "worktree /repos/app-one\n"
            "HEAD 2222222222222222222222222222222222222222\n"
            "branch refs/heads/tmp-one\n"
            "\n"
            "worktree /repos/app-two\n"
            "HEAD 3333333333333333333333333333333333333333\n"
            "detached\n"
            "\n"
            "worktree /repos/bare.git\n"
            "bare\n"
        )

        worktrees = parse_worktree_porcelain(output)

        assert [wt.path for wt in worktrees] == [
            "/repos/app", "/repos/app-one", "/repos/app-two", "/repos/bare.git"
        ]
        assert worktrees[0].branch == "refs/heads/main"
        assert worktrees[0].local_branch == "main"
        assert worktrees[1].is_available
        assert worktrees[2].branch is None
        assert worktrees[2].is_detached
        assert worktrees[2].commit.startswith("3333")
        assert worktrees[3].bare
        assert not worktrees[3].is_detached

    def test_last_record_without_trailing_blank_line(self):
        worktrees = parse_worktree_porcelain("worktree /a\nHEAD abc\nbranch refs/heads/x")
        assert len(worktrees) == 1
        assert worktrees[0].local_branch == "x"

    def test_empty_output(self):
        assert parse_worktree_porcelain("") == []

    def test_field_lines_before_first_worktree_are_dropped(self):
        output = "HEAD abc\nbranch refs/heads/orphan\n\nworktree /a\nHEAD def\n"
        worktrees = parse_worktree_porcelain(output)
        assert len(worktrees) == 1
        assert worktrees[0].path == "/a"
        assert worktrees[0].commit == "def"
        assert worktrees[0].branch is None

    def test_paths_with_spaces(self):
        worktrees = parse_worktree_porcelain("worktree /my repos/app one\nHEAD abc\n")
        assert worktrees[0].path == "/my repos/app one"

    def test_derived_fields_left_at_defaults(self):
        worktrees = parse_worktree_porcelain("worktree /a\nHEAD abc\nbranch refs/heads/main\n")
        assert worktrees[0].worktree_name == ""
        assert worktrees[0].is_base is False


class TestParseStatusPorcelain:
    """Test parsing of `git status --porcelain -z`."""

    def test_clean(self):
        status = parse_status_porcelain("")
        assert not status.is_dirty
        assert status.counts() == {
            "staged": 0, "modified": 0, "not_added": 0, "deleted": 0, "created": 0
        }

    def test_categorizes_entries(self):
        output = "\0".join([
            " M changed.txt",
            "M  staged.txt",
            "A  new.txt",
            " D gone.txt",
            "?? untracked.txt",
            "",
        ])

        status = parse_status_porcelain(output)

        assert status.modified == ["changed.txt", "staged.txt"]
        assert status.staged == ["staged.txt", "new.txt"]
        assert status.created == ["new.txt"]
        assert status.deleted == ["gone.txt"]
        assert status.not_added == ["untracked.txt"]
        assert status.is_dirty
        assert status.has_staged

    def test_rename_skips_source_path(self):
        output = "R  new_name.txt\0old_name.txt\0 M other.txt\0"
        status = parse_status_porcelain(output)
        assert status.staged == ["new_name.txt"]
        assert status.modified == ["other.txt"]
        assert "old_name.txt" not in status.modified + status.staged

    def test_untracked_only_is_dirty_without_staged(self):
        status = parse_status_porcelain("?? a.txt\0")
        assert status.is_dirty
        assert not status.has_staged
        assert status.has_changes


class TestSlotNaming:
    """Test the mapping between slot names, directories and parking branches."""

    def test_name_round_trip(self):
        path = worktree_path_for("/src/app", "one", "/src")
        assert path == "/src/app-one"
        assert extract_worktree_name(path, "/src/app") == "one"
        assert tmp_branch_name(extract_worktree_name(path, "/src/app")) == "tmp-one"

    def test_directory_without_repo_prefix_keeps_base_name(self):
        assert extract_worktree_name("/elsewhere/scratch", "/src/app") == "scratch"

    def test_hyphenated_names(self):
        assert extract_worktree_name("/src/app-feature-two", "/src/app") == "feature-two"

    def test_tmp_branch_detection(self):
        assert is_tmp_branch("refs/heads/tmp-one")
        assert is_tmp_branch("tmp-one")
        assert not is_tmp_branch("refs/heads/feature/tmp-one")
        assert not is_tmp_branch(None)
        assert get_local_branch_name(None) == "(detached)"
