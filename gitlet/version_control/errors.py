"""
Error taxonomy for version control operations.

Every error carries a one-line default message which the command surface
prints verbatim. Errors are raised where a precondition is detected, before
any state is mutated.
"""

from typing import Optional


class VersionControlError(Exception):
    """Base exception for version control errors."""

    default_message = "Version control operation failed."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class UsageError(VersionControlError):
    """Malformed command or arguments."""

    default_message = "Incorrect operands."


class InvalidBranchNameError(UsageError):
    """A branch name that cannot be stored as a ref."""

    default_message = "Invalid branch name."


class PreconditionError(VersionControlError):
    """The repository is not in a state that allows the operation."""


class NotFoundError(VersionControlError):
    """A named commit, file or branch could not be found."""


class StateError(VersionControlError):
    """The operation is meaningless for the current head or branch."""


# Preconditions


class NotInitializedError(PreconditionError):
    default_message = "Not in an initialized Gitlet directory."


class RepositoryExistsError(PreconditionError):
    default_message = (
        "A Gitlet version-control system already exists in the current directory."
    )


class UncommittedChangesError(PreconditionError):
    default_message = "You have uncommitted changes."


class UntrackedFileConflictError(PreconditionError):
    """An untracked file would be overwritten by the target snapshot."""

    default_message = (
        "There is an untracked file in the way; delete it, or add and commit it first."
    )


class SelfMergeError(PreconditionError):
    default_message = "Cannot merge a branch with itself."


class EmptyMessageError(PreconditionError):
    default_message = "Please enter a commit message."


class NothingToCommitError(PreconditionError):
    default_message = "No changes added to the commit."


class NothingToRemoveError(PreconditionError):
    default_message = "No reason to remove the file."


# Lookups


class CommitNotFoundError(NotFoundError):
    default_message = "No commit with that id exists."


class AmbiguousCommitIdError(CommitNotFoundError):
    """An abbreviated id matched more than one persisted commit."""

    default_message = "Commit id is ambiguous."


class FileNotInCommitError(NotFoundError):
    default_message = "File does not exist in that commit."


class MissingFileError(NotFoundError):
    default_message = "File does not exist."


class UnknownBranchError(NotFoundError):
    default_message = "A branch with that name does not exist."


class NoSuchBranchError(UnknownBranchError):
    default_message = "No such branch exists."


class BranchAlreadyExistsError(NotFoundError):
    default_message = "A branch with that name already exists."


class MessageNotFoundError(NotFoundError):
    default_message = "Found no commit with that message."


# Head / branch state


class AncestorMergeError(StateError):
    default_message = "Given branch is an ancestor of the current branch."


class CannotRemoveCurrentBranchError(StateError):
    default_message = "Cannot remove the current branch."


class SameBranchError(StateError):
    default_message = "No need to checkout the current branch."
