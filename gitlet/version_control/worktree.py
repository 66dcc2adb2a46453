"""
Working tree access: file I/O, scanning and materialization.

Paths are repository-relative POSIX strings. Contents are text; bytes that
are not valid UTF-8 round-trip through surrogate escapes.
"""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, List, Mapping, Optional, Union

from loguru import logger

from .errors import UsageError

ENCODING = "utf-8"
ERRORS = "surrogateescape"


def _parent_dirs(path: str) -> List[str]:
    """Directories above a relative path, innermost first."""
    return [p.as_posix() for p in PurePosixPath(path).parents if p.parts]


@dataclass
class ScanResult:
    """Working-directory state relative to the working snapshot."""

    untracked: List[str] = field(default_factory=list)
    # path -> "modified" | "deleted"
    modified: Dict[str, str] = field(default_factory=dict)


class WorkingTree:
    """
    The files of a working directory, minus the repository metadata.

    Example:
        >>> tree = WorkingTree(Path("."), ignore=[".gitlet"])
        >>> tree.overwrite("notes.txt", "hello\\n")
        >>> tree.read("notes.txt")
        'hello\\n'
    """

    def __init__(self, root: Path, ignore: Iterable[str] = (".gitlet",)):
        self.root = Path(root)
        self.ignore = set(ignore)

    def relative(self, path: Union[str, Path]) -> str:
        """
        Normalize a user-supplied path to a repository-relative path.

        Raises:
            UsageError: If the path escapes the working tree
        """
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.resolve().relative_to(self.root.resolve())
            except ValueError:
                raise UsageError(f"Path {path} is outside the working tree.")

        parts = PurePosixPath(candidate.as_posix()).parts
        if not parts or ".." in parts or parts[0] in self.ignore:
            raise UsageError(f"Path {path} is outside the working tree.")
        return PurePosixPath(*parts).as_posix()

    def _full_path(self, path: str) -> Path:
        return self.root.joinpath(*PurePosixPath(path).parts)

    def exists(self, path: str) -> bool:
        return self._full_path(path).is_file()

    def read(self, path: str) -> Optional[str]:
        """Read a file's content, None if it does not exist."""
        full_path = self._full_path(path)
        if not full_path.is_file():
            return None
        with open(full_path, "r", encoding=ENCODING, errors=ERRORS, newline="") as f:
            return f.read()

    def overwrite(self, path: str, content: str) -> None:
        """Create or truncate ``path`` and write ``content``."""
        full_path = self._full_path(path)
        full_path.parent.mkdir(parents=True, exist_ok=True)
        with open(full_path, "w", encoding=ENCODING, errors=ERRORS, newline="") as f:
            f.write(content)

    def delete(self, path: str) -> bool:
        """
        Delete a file and any directories it leaves empty.

        Returns:
            True if a file was deleted
        """
        full_path = self._full_path(path)
        if not full_path.is_file():
            return False

        full_path.unlink()
        parent = full_path.parent
        while parent != self.root and parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
        return True

    def list_files(self) -> List[str]:
        """Every file in the working tree, sorted."""
        files: List[str] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            if current == self.root:
                dirnames[:] = [d for d in dirnames if d not in self.ignore]
            for name in filenames:
                files.append((current / name).relative_to(self.root).as_posix())
        return sorted(files)

    def scan(self, snapshot: Mapping[str, str]) -> ScanResult:
        """
        Compare the working directory against a working snapshot.

        Args:
            snapshot: Path to content of every tracked file

        Returns:
            Untracked paths and tracked paths that differ or are missing
        """
        result = ScanResult()
        on_disk = set(self.list_files())

        result.untracked = sorted(path for path in on_disk if path not in snapshot)
        for path in sorted(snapshot):
            if path not in on_disk:
                result.modified[path] = "deleted"
            elif self.read(path) != snapshot[path]:
                result.modified[path] = "modified"
        return result

    def untracked_conflicts(
        self, snapshot: Mapping[str, str], target: Mapping[str, str]
    ) -> List[str]:
        """
        Untracked paths that writing ``target`` would overwrite.

        A file also counts when it stands where a target file needs a
        directory ("a" against "a/x"), or lives inside a directory a target
        file replaces ("a/x" against "a").
        """
        blocked = set(target)
        for path in target:
            blocked.update(_parent_dirs(path))
        return [
            path
            for path in self.scan(snapshot).untracked
            if path in blocked or any(d in target for d in _parent_dirs(path))
        ]

    def clear_path(self, path: str) -> None:
        """
        Remove whatever stands where ``path`` is about to be written.

        Files sitting at one of its parent directories are deleted, and so is
        a directory at ``path`` itself.
        """
        full_path = self._full_path(path)
        for parent in reversed(_parent_dirs(path)):
            blocker = self._full_path(parent)
            if blocker.is_file() or blocker.is_symlink():
                blocker.unlink()
                break
        if full_path.is_dir() and not full_path.is_symlink():
            shutil.rmtree(full_path)

    def materialize(self, files: Mapping[str, str]) -> None:
        """
        Make the working tree hold exactly ``files``.

        Files outside the snapshot are deleted first, so a path may change
        between file and directory. Then every snapshot file is written. Not
        atomic across files.
        """
        log = logger.bind(component="worktree")
        deleted = 0
        for path in self.list_files():
            if path not in files:
                self.delete(path)
                deleted += 1

        for path, content in files.items():
            self.clear_path(path)
            self.overwrite(path, content)

        log.debug(
            "Materialized {written} files, deleted {deleted}",
            written=len(files),
            deleted=deleted,
        )
