"""
Repository session: every version control command over one working tree.

A session loads HEAD, the branch table and the staging area, runs commands
against them in memory (writing the working tree as it goes), and persists
the result with ``save()``. A command that raises leaves persisted state
untouched because nothing is saved for it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from gitlet.config import Config, config as default_config
from gitlet.logging import get_gitlet_logger, track_operation

from .commit import Commit
from .errors import (
    AncestorMergeError,
    BranchAlreadyExistsError,
    CannotRemoveCurrentBranchError,
    EmptyMessageError,
    FileNotInCommitError,
    InvalidBranchNameError,
    MissingFileError,
    NoSuchBranchError,
    NotInitializedError,
    NothingToCommitError,
    RepositoryExistsError,
    SameBranchError,
    SelfMergeError,
    UncommittedChangesError,
    UnknownBranchError,
    UntrackedFileConflictError,
)
from .graph import CommitGraph
from .merge import MergeOutcome, MergeResult, plan_merge
from .staging import StagingArea
from .storage import StorageError, VersionStorage, is_valid_branch_name
from .worktree import WorkingTree

log = get_gitlet_logger("repository")


@dataclass
class StatusReport:
    """Snapshot of branches, staging area and working-tree differences."""

    current_branch: str
    branches: List[str]
    staged: List[str]
    removed: List[str]
    # path -> "modified" | "deleted"
    modified: Dict[str, str] = field(default_factory=dict)
    untracked: List[str] = field(default_factory=list)


class Repository:
    """
    Git-like version control over a working directory.

    Provides operations for:
    - Staging and committing files
    - Viewing history and finding commits
    - Branching, checkout and reset
    - Three-way merging of branches

    Example:
        >>> with Repository.open(Path(".")) as repo:
        ...     repo.add("hello.txt")
        ...     repo.commit("Add greeting")
    """

    def __init__(
        self,
        work_dir: Union[str, Path] = Path("."),
        config: Optional[Config] = None,
    ):
        """
        Initialize a session. Call ``load()`` or ``initialize()`` next.

        Args:
            work_dir: Root of the working tree
            config: Configuration (default: global config)
        """
        self.config = config or default_config
        self.work_dir = Path(work_dir)
        repo_config = self.config.repository

        self.storage = VersionStorage(repo_config.metadata_path(self.work_dir))
        self.graph = CommitGraph(self.storage)
        self.tree = WorkingTree(self.work_dir, ignore=[repo_config.metadata_dir])

        self.head: Optional[Commit] = None
        self.current_branch: Optional[str] = None
        self.branches: Dict[str, str] = {}
        self.staging: StagingArea = StagingArea({})

    # -- Session lifecycle --

    @classmethod
    def open(
        cls, work_dir: Union[str, Path] = Path("."), config: Optional[Config] = None
    ) -> "Repository":
        """Open and load an existing repository."""
        repo = cls(work_dir, config)
        repo.load()
        return repo

    def __enter__(self) -> "Repository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.save()

    def load(self) -> None:
        """
        Load HEAD, branches and the staging area from storage.

        Raises:
            NotInitializedError: If there is no repository here
        """
        if not self.storage.exists():
            raise NotInitializedError()

        current_branch = self.storage.get_current_branch()
        branches = self.storage.load_branches()
        if current_branch is None or current_branch not in branches:
            raise StorageError(f"HEAD does not name a branch: {self.storage.get_head()}")

        self.current_branch = current_branch
        self.branches = branches
        self.head = self.graph[branches[current_branch]]
        self.staging = StagingArea.from_dict(self.head.files, self.storage.load_index())

    def save(self) -> None:
        """
        Persist the session.

        Commits are written before refs and refs before HEAD, so a crash
        never leaves a ref naming a missing commit.
        """
        self.storage.ensure_directories()
        for commit in self.graph.pending():
            self.storage.save_commit(commit)
            self.graph.mark_saved(commit.commit_id)

        for name in self.storage.list_branches():
            if name not in self.branches:
                self.storage.delete_branch(name)
        for name, commit_id in self.branches.items():
            if self.storage.load_branch(name) != commit_id:
                self.storage.save_branch(name, commit_id)

        self.storage.save_index(self.staging.to_dict())
        if self.storage.get_current_branch() != self.current_branch:
            self.storage.set_current_branch(self.current_branch)

    @property
    def head_commit(self) -> Commit:
        if self.head is None:
            raise NotInitializedError()
        return self.head

    # -- Commands --

    @track_operation("init")
    def initialize(self) -> Commit:
        """
        Create a repository with a root commit on the default branch.

        Raises:
            RepositoryExistsError: If a repository already exists here
        """
        if self.storage.exists():
            raise RepositoryExistsError()

        repo_config = self.config.repository
        root = Commit.initial(
            message=repo_config.initial_message,
            algorithm=repo_config.digest_algorithm,
        )
        self.graph.add(root)
        self.head = root
        self.current_branch = repo_config.default_branch
        self.branches = {repo_config.default_branch: root.commit_id}
        self.staging = StagingArea(root.files)

        log.info(
            "Initialized repository at {path}",
            path=str(self.storage.base_dir),
            root=root.commit_id,
        )
        return root

    @track_operation("add")
    def add(self, path: Union[str, Path]) -> bool:
        """
        Stage the working-directory content of a file.

        Returns:
            False if the file was already staged with the same content

        Raises:
            MissingFileError: If the file does not exist
        """
        rel = self.tree.relative(path)
        content = self.tree.read(rel)
        if content is None:
            raise MissingFileError()
        return self.staging.stage_add(rel, content)

    @track_operation("commit")
    def commit(self, message: str) -> Commit:
        """
        Commit the staging area.

        Raises:
            EmptyMessageError: If the message is empty
            NothingToCommitError: If nothing is staged or removed
        """
        if not message:
            raise EmptyMessageError()
        if self.staging.is_clean:
            raise NothingToCommitError()

        return self._record_commit(message)

    @track_operation("rm")
    def remove(self, path: Union[str, Path]) -> None:
        """
        Unstage a file, or mark a tracked file for removal and delete it.

        Raises:
            NothingToRemoveError: If the file is neither staged nor tracked
        """
        rel = self.tree.relative(path)
        if self.staging.stage_remove(rel):
            self.tree.delete(rel)

    def log(self) -> List[Commit]:
        """History from head to the root along first parents."""
        return self.graph.first_parent_history(self.head_commit.commit_id)

    def global_log(self) -> List[Commit]:
        """Every commit ever made, in id order."""
        return list(self.graph)

    def find(self, message: str) -> List[str]:
        """Ids of every commit with exactly this message."""
        return self.graph.find(message)

    def status(self) -> StatusReport:
        """Report branches, staged and removed files, and working-tree drift."""
        scan = self.tree.scan(self.staging)
        return StatusReport(
            current_branch=self.current_branch,
            branches=sorted(self.branches),
            staged=sorted(self.staging.staged),
            removed=sorted(self.staging.removed),
            modified=scan.modified,
            untracked=scan.untracked,
        )

    @track_operation("checkout_file")
    def checkout_file(
        self, path: Union[str, Path], commit_id: Optional[str] = None
    ) -> None:
        """
        Overwrite one working file with its version in a commit.

        Args:
            path: File to restore
            commit_id: Full or abbreviated id (default: head)

        Raises:
            CommitNotFoundError: If the commit cannot be resolved
            FileNotInCommitError: If the commit does not track the file
        """
        commit = self.head_commit if commit_id is None else self.graph.resolve(commit_id)
        rel = self.tree.relative(path)
        if rel not in commit.files:
            raise FileNotInCommitError()
        self.tree.overwrite(rel, commit.files[rel])

    @track_operation("checkout_branch")
    def checkout_branch(self, branch_name: str) -> Commit:
        """
        Switch to another branch, replacing the working tree.

        Raises:
            NoSuchBranchError: If the branch does not exist
            SameBranchError: If it is already the current branch
            UntrackedFileConflictError: If an untracked file would be overwritten
        """
        if branch_name not in self.branches:
            raise NoSuchBranchError()
        if branch_name == self.current_branch:
            raise SameBranchError()

        target = self.graph[self.branches[branch_name]]
        self._replace_head(target)
        self.current_branch = branch_name

        log.info(
            "Checked out branch {branch} at {commit_id}",
            branch=branch_name,
            commit_id=target.commit_id,
        )
        return target

    @track_operation("reset")
    def reset(self, commit_id: str) -> Commit:
        """
        Move the current branch to a commit and replace the working tree.

        Raises:
            CommitNotFoundError: If the commit cannot be resolved
            UntrackedFileConflictError: If an untracked file would be overwritten
        """
        target = self.graph.resolve(commit_id)
        self._replace_head(target)
        self.branches[self.current_branch] = target.commit_id

        log.info(
            "Reset {branch} to {commit_id}",
            branch=self.current_branch,
            commit_id=target.commit_id,
        )
        return target

    @track_operation("branch")
    def create_branch(self, branch_name: str) -> None:
        """
        Create a branch at the head commit without switching to it.

        Raises:
            InvalidBranchNameError: If the name cannot be stored as a ref
            BranchAlreadyExistsError: If the name is taken
        """
        if not is_valid_branch_name(branch_name):
            raise InvalidBranchNameError()
        if branch_name in self.branches:
            raise BranchAlreadyExistsError()
        # "a" and "a/b" cannot both be files under refs/heads/
        prefix = branch_name + "/"
        for existing in self.branches:
            if existing.startswith(prefix) or branch_name.startswith(existing + "/"):
                raise InvalidBranchNameError(
                    f"Branch name {branch_name} clashes with branch {existing}."
                )
        self.branches[branch_name] = self.head_commit.commit_id

    @track_operation("rm-branch")
    def remove_branch(self, branch_name: str) -> None:
        """
        Delete a branch pointer. Its commits are kept.

        Raises:
            UnknownBranchError: If the branch does not exist
            CannotRemoveCurrentBranchError: If it is the current branch
        """
        if branch_name not in self.branches:
            raise UnknownBranchError()
        if branch_name == self.current_branch:
            raise CannotRemoveCurrentBranchError()
        del self.branches[branch_name]

    @track_operation("merge")
    def merge(self, branch_name: str) -> MergeResult:
        """
        Merge another branch into the current one.

        Every path is classified against the split point; clean results are
        staged, conflicts are written with markers and staged. A merge
        commit with both tips as parents is always created.

        Raises:
            UncommittedChangesError: If anything is staged or removed
            SelfMergeError: If merging the current branch
            UnknownBranchError: If the branch does not exist
            UntrackedFileConflictError: If an untracked file would be overwritten
            AncestorMergeError: If the branch is already contained in head
        """
        if not self.staging.is_clean:
            raise UncommittedChangesError()
        if branch_name == self.current_branch:
            raise SelfMergeError()
        if branch_name not in self.branches:
            raise UnknownBranchError()

        head = self.head_commit
        other = self.graph[self.branches[branch_name]]
        if self.tree.untracked_conflicts(self.staging, other.files):
            raise UntrackedFileConflictError()

        split_id = self.graph.split_point(head.commit_id, other.commit_id)
        if split_id == other.commit_id:
            raise AncestorMergeError()

        split = self.graph[split_id]
        plan = plan_merge(head.files, split.files, other.files)

        merge_log = get_gitlet_logger("merge")
        changes = [f for f in plan if f.changes_working_tree]
        # Removals first so a path can turn from file into directory or back
        changes.sort(key=lambda f: f.outcome != MergeOutcome.REMOVE)
        for file_merge in changes:
            merge_log.debug(file_merge.summary())
            if file_merge.outcome == MergeOutcome.REMOVE:
                self.staging.stage_remove(file_merge.path)
                self.tree.delete(file_merge.path)
            else:
                self.tree.clear_path(file_merge.path)
                self.tree.overwrite(file_merge.path, file_merge.content)
                self.staging.stage_add(file_merge.path, file_merge.content)

        fast_forward = split_id == head.commit_id
        merge_commit = self._record_commit(
            f"Merged {branch_name} into {self.current_branch}.",
            second_parent_id=other.commit_id,
        )
        result = MergeResult(
            commit=merge_commit,
            split_point=split_id,
            fast_forward=fast_forward,
            files=plan,
        )

        merge_log.info(
            "Merged {branch} into {current}: {counts}",
            branch=branch_name,
            current=self.current_branch,
            counts=result.count_by_outcome(),
            fast_forward=fast_forward,
            conflicts=result.conflicts,
        )
        return result

    # -- Internals --

    def _record_commit(
        self, message: str, second_parent_id: Optional[str] = None
    ) -> Commit:
        """Freeze the staging area into a new head commit."""
        previous = self.head_commit
        commit = Commit.create(
            parent_id=previous.commit_id,
            files=self.staging.snapshot(),
            message=message,
            second_parent_id=second_parent_id,
            algorithm=self.config.repository.digest_algorithm,
        )

        # The new commit waits for save(); its parent is written now
        self.storage.ensure_directories()
        self.storage.save_commit(previous)
        self.graph.mark_saved(previous.commit_id)

        self.graph.add(commit)
        self.branches[self.current_branch] = commit.commit_id
        self.head = commit
        self.staging = StagingArea(commit.files)

        log.info(
            "Committed {commit_id}: {message}",
            commit_id=commit.commit_id[:8],
            message=message,
            branch=self.current_branch,
        )
        return commit

    def _replace_head(self, target: Commit) -> None:
        """Materialize ``target`` in the working tree and make it head."""
        conflicts = self.tree.untracked_conflicts(self.staging, target.files)
        if conflicts:
            log.warning(
                "Untracked files in the way: {paths}", paths=", ".join(conflicts)
            )
            raise UntrackedFileConflictError()

        self.tree.materialize(target.files)
        self.head = target
        self.staging = StagingArea(target.files)
