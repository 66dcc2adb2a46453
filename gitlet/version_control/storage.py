"""
On-disk repository state.

Layout under the metadata directory::

    commits/<commit_id>.json   one JSON record per commit, never rewritten
    refs/heads/<branch>        commit id the branch points at
    HEAD                       "ref: refs/heads/<branch>"
    index.json                 staging area overlay

Every file is replaced atomically, so a reader sees either the old or the
new content.
"""

import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO

from loguru import logger

from .commit import Commit

HEAD_PREFIX = "ref: refs/heads/"


def is_valid_branch_name(name: str) -> bool:
    """
    Check that a branch name maps to a file under refs/heads/.

    Names may contain slashes. No component may be empty or start with a
    dot, which also rules out absolute names, "." and "..".
    """
    if not name or "\\" in name or "\0" in name:
        return False
    return all(part and not part.startswith(".") for part in name.split("/"))


class StorageError(Exception):
    """Raised when persisted repository state cannot be read."""

    pass


class VersionStorage:
    """
    Append-only commit store plus branch refs, HEAD and the index.

    Example:
        >>> storage = VersionStorage(Path(".gitlet"))
        >>> storage.ensure_directories()
        >>> storage.save_commit(Commit.initial())
        True
    """

    def __init__(self, base_dir: Path = Path(".gitlet")):
        self.base_dir = Path(base_dir)
        self.commits_dir = self.base_dir / "commits"
        self.heads_dir = self.base_dir / "refs" / "heads"
        self.head_file = self.base_dir / "HEAD"
        self.index_file = self.base_dir / "index.json"

    def exists(self) -> bool:
        """A repository exists once HEAD has been written."""
        return self.head_file.exists()

    def ensure_directories(self) -> None:
        for directory in (self.commits_dir, self.heads_dir):
            directory.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _atomic_write(self, filepath: Path) -> Iterator[TextIO]:
        """
        Write through a temporary sibling file, then rename it into place.

        The temporary file is removed if writing fails.
        """
        temp_fd, temp_path = tempfile.mkstemp(
            dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp"
        )

        try:
            with os.fdopen(temp_fd, "w", encoding="utf-8") as f:
                yield f

            os.replace(temp_path, filepath)

        except Exception:
            try:
                os.unlink(temp_path)
            except FileNotFoundError:
                pass
            raise

    def _commit_path(self, commit_id: str) -> Path:
        return self.commits_dir / f"{commit_id}.json"

    # -- Commits --

    def save_commit(self, commit: Commit) -> bool:
        """
        Persist a commit unless it is already stored.

        Returns:
            False when a record with this id exists (it is left untouched)
        """
        path = self._commit_path(commit.commit_id)
        if path.exists():
            return False

        with self._atomic_write(path) as f:
            f.write(commit.to_json())
        logger.bind(component="storage").debug(
            "Saved commit {commit_id}", commit_id=commit.commit_id
        )
        return True

    def load_commit(self, commit_id: str) -> Optional[Commit]:
        """
        Read a commit by exact id.

        Returns:
            The commit, or None if no record exists

        Raises:
            StorageError: If the record exists but cannot be parsed
        """
        # Ids are hex digests; anything path-like cannot name a record
        if not commit_id or "/" in commit_id or commit_id.startswith("."):
            return None

        path = self._commit_path(commit_id)
        if not path.is_file():
            return None

        try:
            return Commit.from_json(path.read_text(encoding="utf-8"))
        except (ValueError, KeyError) as e:
            raise StorageError(f"Corrupted commit file {path}: {e}") from e

    def has_commit(self, commit_id: str) -> bool:
        return self._commit_path(commit_id).is_file()

    def list_commits(self) -> List[str]:
        """Ids of every stored commit, sorted."""
        return sorted(path.stem for path in self.commits_dir.glob("*.json"))

    # -- Branches --

    def save_branch(self, branch_name: str, commit_id: str) -> None:
        if not is_valid_branch_name(branch_name):
            raise StorageError(f"Invalid branch name: {branch_name!r}")
        ref = self.heads_dir / branch_name
        ref.parent.mkdir(parents=True, exist_ok=True)
        with self._atomic_write(ref) as f:
            f.write(commit_id)

    def load_branch(self, branch_name: str) -> Optional[str]:
        """Commit id a branch points at, None for an unknown branch."""
        ref = self.heads_dir / branch_name
        if not ref.is_file():
            return None
        return ref.read_text(encoding="utf-8").strip()

    def list_branches(self) -> List[str]:
        """
        Names of every branch, sorted.

        Names may contain slashes. Dot files are pending atomic writes, never
        branches.
        """
        if not self.heads_dir.exists():
            return []
        return sorted(
            ref.relative_to(self.heads_dir).as_posix()
            for ref in self.heads_dir.rglob("*")
            if ref.is_file() and not ref.name.startswith(".")
        )

    def load_branches(self) -> Dict[str, str]:
        branches: Dict[str, str] = {}
        for name in self.list_branches():
            commit_id = self.load_branch(name)
            if commit_id:
                branches[name] = commit_id
        return branches

    def delete_branch(self, branch_name: str) -> bool:
        """
        Remove a branch ref. Commits are never deleted.

        Returns:
            True if the ref existed
        """
        ref = self.heads_dir / branch_name
        if not ref.is_file():
            return False
        ref.unlink()
        parent = ref.parent
        while parent != self.heads_dir and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
        return True

    # -- HEAD --

    def get_head(self) -> Optional[str]:
        if not self.head_file.exists():
            return None
        return self.head_file.read_text(encoding="utf-8").strip()

    def set_head(self, ref: str) -> None:
        with self._atomic_write(self.head_file) as f:
            f.write(ref)

    def get_current_branch(self) -> Optional[str]:
        """Branch named by HEAD, None if HEAD is missing or malformed."""
        head = self.get_head()
        if head and head.startswith(HEAD_PREFIX):
            return head[len(HEAD_PREFIX):]
        return None

    def set_current_branch(self, branch_name: str) -> None:
        self.set_head(f"{HEAD_PREFIX}{branch_name}")

    # -- Index --

    def save_index(self, data: Dict[str, Any]) -> None:
        with self._atomic_write(self.index_file) as f:
            f.write(json.dumps(data, indent=2, sort_keys=True))

    def load_index(self) -> Optional[Dict[str, Any]]:
        """
        Read the staging overlay.

        Returns:
            The stored overlay, None when no index has been written

        Raises:
            StorageError: If the index cannot be parsed
        """
        if not self.index_file.exists():
            return None

        try:
            return json.loads(self.index_file.read_text(encoding="utf-8"))
        except ValueError as e:
            raise StorageError(f"Corrupted index file {self.index_file}: {e}") from e
