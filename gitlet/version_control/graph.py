"""
Commit graph: lookups and traversals over the commit DAG.

Commits reach the graph either from storage or, for commits created during
the current session and not yet saved, from the in-memory pending table.
"""

from typing import Dict, Iterator, List, Optional

from loguru import logger

from .commit import Commit
from .errors import (
    AmbiguousCommitIdError,
    CommitNotFoundError,
    MessageNotFoundError,
    StateError,
)
from .storage import VersionStorage


class CommitGraph:
    """
    Read access to the commit DAG.

    The graph is acyclic by construction: a commit can only name parents
    that already exist when it is created.
    """

    def __init__(self, storage: VersionStorage):
        self.storage = storage
        self._cache: Dict[str, Commit] = {}
        self._pending: Dict[str, Commit] = {}

    def add(self, commit: Commit) -> None:
        """Register a commit created in this session but not yet persisted."""
        self._pending[commit.commit_id] = commit
        self._cache[commit.commit_id] = commit

    def pending(self) -> List[Commit]:
        return list(self._pending.values())

    def mark_saved(self, commit_id: str) -> None:
        self._pending.pop(commit_id, None)

    def get(self, commit_id: Optional[str]) -> Optional[Commit]:
        """Look up a commit by exact id."""
        if not commit_id:
            return None
        if commit_id in self._cache:
            return self._cache[commit_id]

        commit = self.storage.load_commit(commit_id)
        if commit is not None:
            self._cache[commit_id] = commit
        return commit

    def __getitem__(self, commit_id: str) -> Commit:
        commit = self.get(commit_id)
        if commit is None:
            raise CommitNotFoundError()
        return commit

    def commit_ids(self) -> List[str]:
        """Every known commit id, persisted or pending, sorted."""
        return sorted(set(self.storage.list_commits()) | set(self._pending))

    def __iter__(self) -> Iterator[Commit]:
        for commit_id in self.commit_ids():
            yield self[commit_id]

    def resolve(self, commit_id: str) -> Commit:
        """
        Resolve a full or abbreviated commit id.

        An exact match wins. Otherwise the id must occur as a substring of
        exactly one known commit id.

        Raises:
            CommitNotFoundError: If nothing matches
            AmbiguousCommitIdError: If more than one commit matches
        """
        exact = self.get(commit_id)
        if exact is not None:
            return exact

        if not commit_id:
            raise CommitNotFoundError()

        matches = [cid for cid in self.commit_ids() if commit_id in cid]
        if not matches:
            raise CommitNotFoundError()
        if len(matches) > 1:
            logger.bind(component="graph").debug(
                "Abbreviated id {commit_id} matches {count} commits",
                commit_id=commit_id,
                count=len(matches),
            )
            raise AmbiguousCommitIdError(
                f"Commit id {commit_id} is ambiguous ({len(matches)} matches)."
            )
        return self[matches[0]]

    def ancestors(self, start_id: str) -> List[str]:
        """
        Walk from ``start_id`` to the root.

        At each step the second parent is followed when present, otherwise
        the first parent. The start commit is the first element.
        """
        lineage: List[str] = []
        commit: Optional[Commit] = self[start_id]
        while commit is not None:
            lineage.append(commit.commit_id)
            next_id = commit.second_parent_id or commit.parent_id
            commit = self[next_id] if next_id else None
        return lineage

    def first_parent_history(self, start_id: str) -> List[Commit]:
        """Commits from ``start_id`` to the root along first parents."""
        history: List[Commit] = []
        commit: Optional[Commit] = self[start_id]
        while commit is not None:
            history.append(commit)
            commit = self[commit.parent_id] if commit.parent_id else None
        return history

    def split_point(self, head_id: str, other_id: str) -> str:
        """
        Find the merge base of two commits.

        Collects the head's lineage, then walks the other commit's lineage
        until it meets a member. Both walks prefer second parents. This is
        exact for the histories this engine creates (one merge parent per
        lineage step) and may return a non-minimal common ancestor on
        arbitrary DAGs.
        """
        head_lineage = set(self.ancestors(head_id))
        for commit_id in self.ancestors(other_id):
            if commit_id in head_lineage:
                return commit_id
        raise StateError("Branches share no common ancestor.")

    def find(self, message: str) -> List[str]:
        """
        Find the ids of every commit with exactly this log message.

        Raises:
            MessageNotFoundError: If no commit matches
        """
        found = [commit.commit_id for commit in self if commit.message == message]
        if not found:
            raise MessageNotFoundError()
        return found
