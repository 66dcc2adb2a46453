"""
Version control for file trees.

Provides git-like operations: staging, commits, branches, checkout, reset
and three-way merge.
"""

from .commit import (
    Commit,
    INITIAL_TIMESTAMP,
    compute_commit_id,
    format_timestamp,
)

from .errors import (
    VersionControlError,
    UsageError,
    InvalidBranchNameError,
    PreconditionError,
    NotFoundError,
    StateError,
    NotInitializedError,
    RepositoryExistsError,
    UncommittedChangesError,
    UntrackedFileConflictError,
    SelfMergeError,
    EmptyMessageError,
    NothingToCommitError,
    NothingToRemoveError,
    CommitNotFoundError,
    AmbiguousCommitIdError,
    FileNotInCommitError,
    MissingFileError,
    UnknownBranchError,
    NoSuchBranchError,
    BranchAlreadyExistsError,
    MessageNotFoundError,
    AncestorMergeError,
    CannotRemoveCurrentBranchError,
    SameBranchError,
)

from .graph import CommitGraph

from .merge import (
    ChangeType,
    FileMerge,
    MergeOutcome,
    MergeResult,
    classify_change,
    classify_path,
    conflict_text,
    plan_merge,
)

from .repository import Repository, StatusReport

from .staging import StagingArea

from .storage import StorageError, VersionStorage, is_valid_branch_name

from .worktree import ScanResult, WorkingTree

__all__ = [
    # Commits
    "Commit",
    "INITIAL_TIMESTAMP",
    "compute_commit_id",
    "format_timestamp",
    # Errors
    "VersionControlError",
    "UsageError",
    "InvalidBranchNameError",
    "PreconditionError",
    "NotFoundError",
    "StateError",
    "NotInitializedError",
    "RepositoryExistsError",
    "UncommittedChangesError",
    "UntrackedFileConflictError",
    "SelfMergeError",
    "EmptyMessageError",
    "NothingToCommitError",
    "NothingToRemoveError",
    "CommitNotFoundError",
    "AmbiguousCommitIdError",
    "FileNotInCommitError",
    "MissingFileError",
    "UnknownBranchError",
    "NoSuchBranchError",
    "BranchAlreadyExistsError",
    "MessageNotFoundError",
    "AncestorMergeError",
    "CannotRemoveCurrentBranchError",
    "SameBranchError",
    # Graph
    "CommitGraph",
    # Merge
    "ChangeType",
    "FileMerge",
    "MergeOutcome",
    "MergeResult",
    "classify_change",
    "classify_path",
    "conflict_text",
    "plan_merge",
    # Repository
    "Repository",
    "StatusReport",
    # Staging
    "StagingArea",
    # Storage
    "StorageError",
    "VersionStorage",
    "is_valid_branch_name",
    # Working tree
    "ScanResult",
    "WorkingTree",
]
