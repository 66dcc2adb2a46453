"""
Unit tests for the repository session and its commands.
"""

from pathlib import Path

import pytest

from gitlet.config import Config, RepositoryConfig
from gitlet.version_control import (
    AncestorMergeError,
    BranchAlreadyExistsError,
    CannotRemoveCurrentBranchError,
    CommitNotFoundError,
    EmptyMessageError,
    FileNotInCommitError,
    InvalidBranchNameError,
    MissingFileError,
    NoSuchBranchError,
    NotInitializedError,
    NothingToCommitError,
    NothingToRemoveError,
    Repository,
    RepositoryExistsError,
    SameBranchError,
    SelfMergeError,
    UncommittedChangesError,
    UnknownBranchError,
    UntrackedFileConflictError,
)
from tests.helpers import commit_files, read_file, write_file


def reopen(repo: Repository) -> Repository:
    return Repository.open(repo.work_dir, config=repo.config)


class TestSession:
    """Tests for init, load and save."""

    def test_initialize(self, repo: Repository) -> None:
        """Test init creates the root commit on the default branch."""
        assert repo.current_branch == "master"
        assert repo.branches == {"master": repo.head.commit_id}
        assert repo.head.message == "initial commit"
        assert repo.head.parent_id is None
        assert (repo.work_dir / ".gitlet" / "HEAD").is_file()

    def test_initialize_twice(self, repo: Repository) -> None:
        with pytest.raises(RepositoryExistsError):
            Repository(repo.work_dir, config=Config()).initialize()

    def test_open_uninitialized(self, tmp_path: Path) -> None:
        with pytest.raises(NotInitializedError):
            Repository.open(tmp_path, config=Config())

    def test_state_survives_reopen(self, repo: Repository) -> None:
        """Test branches, HEAD and the staging area are persisted."""
        commit_files(repo, "first", a="1")
        repo.create_branch("side")
        write_file(repo.work_dir, "b", "2")
        repo.add("b")
        repo.save()

        loaded = reopen(repo)

        assert loaded.head == repo.head
        assert loaded.branches == repo.branches
        assert loaded.current_branch == "master"
        assert loaded.staging.staged == {"b": "2"}

    def test_context_manager_saves_on_success(self, repo: Repository) -> None:
        write_file(repo.work_dir, "a", "1")
        with reopen(repo) as session:
            session.add("a")

        assert reopen(repo).staging.staged == {"a": "1"}

    def test_context_manager_discards_on_error(self, repo: Repository) -> None:
        """Test a failing command persists nothing."""
        write_file(repo.work_dir, "a", "1")
        with pytest.raises(NothingToRemoveError):
            with reopen(repo) as session:
                session.add("a")
                session.remove("missing")

        assert reopen(repo).staging.is_clean

    def test_custom_metadata_dir_and_digest(self, tmp_path: Path) -> None:
        config = Config(
            repository=RepositoryConfig(metadata_dir=".vc", digest_algorithm="sha256")
        )
        with Repository(tmp_path, config=config) as session:
            session.initialize()
        write_file(tmp_path, "a", "1")

        loaded = Repository.open(tmp_path, config=config)
        loaded.add("a")
        commit = loaded.commit("first")

        assert (tmp_path / ".vc" / "HEAD").is_file()
        assert len(commit.commit_id) == 64
        assert loaded.status().untracked == []


class TestAddAndCommit:
    """Tests for staging and committing."""

    def test_add_missing_file(self, repo: Repository) -> None:
        with pytest.raises(MissingFileError):
            repo.add("nope.txt")

    def test_add_unchanged_committed_file(self, repo: Repository) -> None:
        commit_files(repo, "first", a="1")

        assert repo.add("a") is False
        assert repo.staging.is_clean

    def test_commit_requires_message(self, repo: Repository) -> None:
        write_file(repo.work_dir, "a", "1")
        repo.add("a")

        with pytest.raises(EmptyMessageError):
            repo.commit("")

    def test_commit_requires_changes(self, repo: Repository) -> None:
        with pytest.raises(NothingToCommitError):
            repo.commit("nothing")

    def test_commit_snapshot(self, repo: Repository) -> None:
        """Test a commit holds the parent snapshot plus staged changes."""
        first = commit_files(repo, "first", a="1", b="2")
        write_file(repo.work_dir, "a", "changed")
        repo.add("a")
        repo.remove("b")
        write_file(repo.work_dir, "c", "3")
        repo.add("c")

        second = repo.commit("second")

        assert dict(second.files) == {"a": "changed", "c": "3"}
        assert second.parent_id == first.commit_id
        assert repo.branches["master"] == second.commit_id
        assert repo.head == second
        assert repo.staging.is_clean

    def test_commit_persists_previous_head_only(self, repo: Repository) -> None:
        """Test the new commit stays pending until the session is saved."""
        first = commit_files(repo, "first", a="1")
        second = commit_files(repo, "second", a="2")

        assert repo.storage.has_commit(first.commit_id)
        assert not repo.storage.has_commit(second.commit_id)
        assert repo.graph.pending() == [second]

        repo.save()

        assert repo.storage.has_commit(second.commit_id)
        assert repo.graph.pending() == []

    def test_commit_in_subdirectory(self, repo: Repository) -> None:
        write_file(repo.work_dir, "src/pkg/mod.py", "x = 1\n")
        repo.add("src/pkg/mod.py")
        commit = repo.commit("nested")

        assert dict(commit.files) == {"src/pkg/mod.py": "x = 1\n"}


class TestRemove:
    """Tests for rm."""

    def test_remove_tracked_file_deletes_it(self, repo: Repository) -> None:
        commit_files(repo, "first", a="1")

        repo.remove("a")

        assert not (repo.work_dir / "a").exists()
        assert repo.staging.removed == {"a"}

    def test_remove_staged_file_keeps_it(self, repo: Repository) -> None:
        write_file(repo.work_dir, "a", "1")
        repo.add("a")

        repo.remove("a")

        assert (repo.work_dir / "a").exists()
        assert repo.staging.is_clean

    def test_remove_unknown_file(self, repo: Repository) -> None:
        write_file(repo.work_dir, "a", "1")
        before = repo.staging.to_dict()

        with pytest.raises(NothingToRemoveError):
            repo.remove("a")

        assert repo.staging.to_dict() == before


class TestHistory:
    """Tests for log, global-log and find."""

    def test_log_follows_first_parents(self, repo: Repository) -> None:
        first = commit_files(repo, "first", a="1")
        second = commit_files(repo, "second", a="2")

        assert [c.commit_id for c in repo.log()] == [
            second.commit_id,
            first.commit_id,
            first.parent_id,
        ]

    def test_global_log_includes_other_branches(self, repo: Repository) -> None:
        repo.create_branch("side")
        on_master = commit_files(repo, "on master", a="1")
        repo.checkout_branch("side")
        on_side = commit_files(repo, "on side", b="1")

        ids = [c.commit_id for c in repo.global_log()]

        assert on_master.commit_id in ids
        assert on_side.commit_id in ids
        assert len(ids) == 3
        assert ids == sorted(ids)

    def test_find(self, repo: Repository) -> None:
        first = commit_files(repo, "same message", a="1")
        second = commit_files(repo, "same message", a="2")

        assert repo.find("same message") == sorted([first.commit_id, second.commit_id])


class TestStatus:
    """Tests for status."""

    def test_status_sections(self, repo: Repository) -> None:
        commit_files(repo, "base", a="a", b="b", c="c")
        repo.create_branch("side")
        write_file(repo.work_dir, "new", "n")
        repo.add("new")
        repo.remove("a")
        write_file(repo.work_dir, "b", "changed")
        (repo.work_dir / "c").unlink()
        write_file(repo.work_dir, "extra", "e")

        report = repo.status()

        assert report.current_branch == "master"
        assert report.branches == ["master", "side"]
        assert report.staged == ["new"]
        assert report.removed == ["a"]
        assert report.modified == {"b": "modified", "c": "deleted"}
        assert report.untracked == ["extra"]


class TestCheckout:
    """Tests for checkout of files and branches."""

    def test_checkout_file_from_head(self, repo: Repository) -> None:
        commit_files(repo, "first", a="1")
        write_file(repo.work_dir, "a", "scribble")

        repo.checkout_file("a")

        assert read_file(repo.work_dir, "a") == "1"

    def test_checkout_file_from_short_id(self, repo: Repository) -> None:
        first = commit_files(repo, "first", a="1")
        commit_files(repo, "second", a="2")

        repo.checkout_file("a", first.commit_id[:8])

        assert read_file(repo.work_dir, "a") == "1"

    def test_checkout_file_leaves_staging_alone(self, repo: Repository) -> None:
        commit_files(repo, "first", a="1")
        write_file(repo.work_dir, "a", "staged")
        repo.add("a")

        repo.checkout_file("a")

        assert read_file(repo.work_dir, "a") == "1"
        assert repo.staging.staged == {"a": "staged"}

    def test_checkout_file_errors(self, repo: Repository) -> None:
        commit_files(repo, "first", a="1")

        with pytest.raises(FileNotInCommitError):
            repo.checkout_file("b")
        with pytest.raises(CommitNotFoundError):
            repo.checkout_file("a", "0" * 40)

    def test_checkout_branch_replaces_tree(self, repo: Repository) -> None:
        """Test switching branches writes and deletes files to match."""
        commit_files(repo, "master files", shared="m", only_master="m")
        repo.create_branch("side")
        repo.checkout_branch("side")
        repo.remove("only_master")
        side = commit_files(repo, "side files", shared="s", only_side="s")

        repo.checkout_branch("master")

        assert read_file(repo.work_dir, "shared") == "m"
        assert (repo.work_dir / "only_master").exists()
        assert not (repo.work_dir / "only_side").exists()

        repo.checkout_branch("side")

        assert repo.head == side
        assert repo.current_branch == "side"
        assert not (repo.work_dir / "only_master").exists()
        assert repo.staging.is_clean

    def test_checkout_branch_clears_staging(self, repo: Repository) -> None:
        repo.create_branch("side")
        write_file(repo.work_dir, "a", "1")
        repo.add("a")

        repo.checkout_branch("side")

        assert repo.staging.is_clean
        assert not (repo.work_dir / "a").exists()

    def test_checkout_branch_errors(self, repo: Repository) -> None:
        with pytest.raises(NoSuchBranchError):
            repo.checkout_branch("nope")
        with pytest.raises(SameBranchError):
            repo.checkout_branch("master")

    def test_checkout_branch_untracked_in_the_way(self, repo: Repository) -> None:
        """Test an untracked file the target would overwrite blocks checkout."""
        repo.create_branch("side")
        commit_files(repo, "master adds f", f="tracked")
        repo.checkout_branch("side")
        write_file(repo.work_dir, "f", "untracked")

        with pytest.raises(UntrackedFileConflictError):
            repo.checkout_branch("master")

        assert repo.current_branch == "side"
        assert read_file(repo.work_dir, "f") == "untracked"


    def test_checkout_file_becomes_directory(self, repo: Repository) -> None:
        """Test switching to a branch where a file path is now a directory."""
        repo.create_branch("other")
        commit_files(repo, "master nests a/x", **{"a/x": "nested"})
        repo.checkout_branch("other")
        commit_files(repo, "other has file a", a="flat")

        repo.checkout_branch("master")

        assert repo.tree.list_files() == ["a/x"]
        assert read_file(repo.work_dir, "a/x") == "nested"

    def test_checkout_directory_becomes_file(self, repo: Repository) -> None:
        repo.create_branch("other")
        commit_files(repo, "master nests a/x", **{"a/x": "nested"})
        repo.checkout_branch("other")
        commit_files(repo, "other has file a", a="flat")
        repo.checkout_branch("master")

        repo.checkout_branch("other")

        assert repo.tree.list_files() == ["a"]
        assert read_file(repo.work_dir, "a") == "flat"

    def test_checkout_untracked_file_blocks_directory(self, repo: Repository) -> None:
        """Test an untracked file where the target needs a directory blocks checkout."""
        repo.create_branch("side")
        commit_files(repo, "master nests a/x", **{"a/x": "nested"})
        repo.checkout_branch("side")
        write_file(repo.work_dir, "a", "untracked")

        with pytest.raises(UntrackedFileConflictError):
            repo.checkout_branch("master")

        assert repo.current_branch == "side"
        assert read_file(repo.work_dir, "a") == "untracked"


class TestReset:
    """Tests for reset."""

    def test_reset_moves_branch(self, repo: Repository) -> None:
        first = commit_files(repo, "first", a="1")
        commit_files(repo, "second", a="2", b="2")

        repo.reset(first.commit_id)

        assert repo.branches["master"] == first.commit_id
        assert repo.current_branch == "master"
        assert read_file(repo.work_dir, "a") == "1"
        assert not (repo.work_dir / "b").exists()

    def test_reset_unknown_commit(self, repo: Repository) -> None:
        with pytest.raises(CommitNotFoundError):
            repo.reset("ffffffff")

    def test_reset_across_file_and_directory(self, repo: Repository) -> None:
        first = commit_files(repo, "file a", a="flat")
        repo.remove("a")
        commit_files(repo, "directory a", **{"a/x": "nested"})

        repo.reset(first.commit_id)

        assert repo.tree.list_files() == ["a"]
        assert read_file(repo.work_dir, "a") == "flat"

    def test_reset_untracked_in_the_way(self, repo: Repository) -> None:
        """Test reset refuses to overwrite an untracked file, like checkout."""
        root = repo.head
        second = commit_files(repo, "adds f", f="tracked")
        repo.reset(root.commit_id)
        write_file(repo.work_dir, "f", "untracked")

        with pytest.raises(UntrackedFileConflictError):
            repo.reset(second.commit_id)

        assert repo.head == root
        assert repo.branches["master"] == root.commit_id
        assert read_file(repo.work_dir, "f") == "untracked"

    def test_reset_clears_staging_area(self, repo: Repository) -> None:
        """Test reset drops staged and removed entries and staged-only files."""
        first = commit_files(repo, "first", a="1", b="2")
        write_file(repo.work_dir, "new", "staged only")
        repo.add("new")
        repo.remove("b")

        repo.reset(first.commit_id)

        assert repo.staging.is_clean
        assert repo.staging.staged == {}
        assert repo.staging.removed == set()
        assert not (repo.work_dir / "new").exists()
        assert read_file(repo.work_dir, "b") == "2"
        assert repo.status().staged == []
        assert repo.status().removed == []


class TestBranches:
    """Tests for branch and rm-branch."""

    def test_create_branch_at_head(self, repo: Repository) -> None:
        repo.create_branch("side")

        assert repo.branches["side"] == repo.head.commit_id
        assert repo.current_branch == "master"

    def test_create_existing_branch(self, repo: Repository) -> None:
        with pytest.raises(BranchAlreadyExistsError):
            repo.create_branch("master")

    def test_remove_branch(self, repo: Repository) -> None:
        repo.create_branch("side")
        repo.remove_branch("side")
        repo.save()

        assert "side" not in reopen(repo).branches

    def test_remove_branch_errors(self, repo: Repository) -> None:
        with pytest.raises(UnknownBranchError):
            repo.remove_branch("nope")
        with pytest.raises(CannotRemoveCurrentBranchError):
            repo.remove_branch("master")



    @pytest.mark.parametrize(
        "name",
        ["../../commits/zz.json", "../../HEAD", ".hidden", "side/.x", "/abs", "a//b", ""],
    )
    def test_create_branch_invalid_name(self, repo: Repository, name: str) -> None:
        """Test names that cannot live under refs/heads/ are rejected."""
        with pytest.raises(InvalidBranchNameError):
            repo.create_branch(name)

        repo.save()
        reopened = reopen(repo)
        assert reopened.branches == {"master": repo.head.commit_id}
        assert reopened.storage.list_commits() == [repo.head.commit_id]
        assert reopened.global_log() == [repo.head]

    def test_slashed_branch_survives_reopen(self, repo: Repository) -> None:
        repo.create_branch("feature/login")
        repo.save()

        assert reopen(repo).branches["feature/login"] == repo.head.commit_id

    def test_branch_clashing_with_directory(self, repo: Repository) -> None:
        """Test "side" and "side/x" cannot exist together."""
        repo.create_branch("side")

        with pytest.raises(InvalidBranchNameError):
            repo.create_branch("side/x")

        repo.remove_branch("side")
        repo.create_branch("side/x")
        with pytest.raises(InvalidBranchNameError):
            repo.create_branch("side")

    def test_branch_reuses_removed_directory(self, repo: Repository) -> None:
        repo.create_branch("side/x")
        repo.save()
        repo = reopen(repo)
        repo.remove_branch("side/x")
        repo.create_branch("side")
        repo.save()

        assert sorted(reopen(repo).branches) == ["master", "side"]


class TestMergePreconditions:
    """Tests for merge preconditions."""

    def test_uncommitted_changes(self, repo: Repository) -> None:
        repo.create_branch("side")
        write_file(repo.work_dir, "a", "1")
        repo.add("a")

        with pytest.raises(UncommittedChangesError):
            repo.merge("side")

    def test_self_merge(self, repo: Repository) -> None:
        with pytest.raises(SelfMergeError):
            repo.merge("master")

    def test_unknown_branch(self, repo: Repository) -> None:
        with pytest.raises(UnknownBranchError):
            repo.merge("nope")

    def test_untracked_in_the_way(self, repo: Repository) -> None:
        repo.create_branch("side")
        repo.checkout_branch("side")
        commit_files(repo, "side adds f", f="side")
        repo.checkout_branch("master")
        write_file(repo.work_dir, "f", "untracked")

        with pytest.raises(UntrackedFileConflictError):
            repo.merge("side")

    def test_untracked_elsewhere_is_fine(self, repo: Repository) -> None:
        """Test untracked files the other tip lacks do not block a merge."""
        repo.create_branch("side")
        repo.checkout_branch("side")
        commit_files(repo, "side adds f", f="side")
        repo.checkout_branch("master")
        write_file(repo.work_dir, "notes", "mine")

        result = repo.merge("side")

        assert result.fast_forward
        assert read_file(repo.work_dir, "notes") == "mine"

    def test_ancestor_merge(self, repo: Repository) -> None:
        """Test merging a branch already contained in head is rejected."""
        repo.create_branch("old")
        head = commit_files(repo, "ahead", a="1")

        with pytest.raises(AncestorMergeError):
            repo.merge("old")

        assert repo.head == head
        assert repo.staging.is_clean
