"""
Staging area: the mutable overlay on top of the head commit's snapshot.

The frozen snapshot of the head commit is never copied; pending upserts and
deletions are layered over it, so creating a fresh staging area is cheap and
cannot alias a persisted commit.
"""

from collections.abc import Iterator, Mapping
from typing import Any, Dict, Optional, Set

from loguru import logger

from .errors import NothingToRemoveError


class StagingArea(Mapping):
    """
    Copy-on-write view of the working commit.

    Reading the mapping gives the working snapshot: the base snapshot with
    pending upserts applied and pending deletions dropped. ``staged`` and
    ``removed`` record what the next commit will change.
    """

    def __init__(self, base: Mapping[str, str]) -> None:
        self._base = base
        self._upserts: Dict[str, str] = {}
        self._deletions: Set[str] = set()
        self.staged: Dict[str, str] = {}
        self.removed: Set[str] = set()

    # -- Read operations --

    def get(self, path: str, default: Any = None) -> Any:
        """Get a path's content in the working snapshot."""
        if path in self._upserts:
            return self._upserts[path]
        if path in self._deletions:
            return default
        return self._base.get(path, default)

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str):
            return False
        if path in self._upserts:
            return True
        if path in self._deletions:
            return False
        return path in self._base

    def __getitem__(self, path: str) -> str:
        if path not in self:
            raise KeyError(path)
        return self.get(path)

    def __iter__(self) -> Iterator[str]:
        for path in self._base:
            if path not in self._deletions and path not in self._upserts:
                yield path
        yield from self._upserts

    def __len__(self) -> int:
        return sum(1 for _ in self)

    @property
    def base(self) -> Mapping[str, str]:
        """The frozen snapshot this overlay sits on."""
        return self._base

    @property
    def is_clean(self) -> bool:
        """True when nothing is staged for addition or removal."""
        return not self.staged and not self.removed

    def snapshot(self) -> Dict[str, str]:
        """Materialize the working snapshot as a plain dict."""
        return {path: self.get(path) for path in self}

    # -- Write operations --

    def stage_add(self, path: str, content: str) -> bool:
        """
        Stage ``content`` for ``path``.

        Returns:
            False when the working snapshot already holds the same content
        """
        if path in self and self.get(path) == content:
            return False

        self._upserts[path] = content
        self._deletions.discard(path)
        if path not in self.removed:
            self.staged[path] = content
        self.removed.discard(path)

        logger.bind(component="staging").debug(
            "Staged {path}", path=path, size=len(content)
        )
        return True

    def stage_remove(self, path: str) -> bool:
        """
        Unstage or mark ``path`` for removal.

        Returns:
            True when the working-directory file should be deleted

        Raises:
            NothingToRemoveError: If the path is neither staged nor tracked
        """
        log = logger.bind(component="staging")

        if path in self.staged and path not in self._base:
            del self.staged[path]
            self._upserts.pop(path, None)
            log.debug("Unstaged {path}", path=path)
            return False

        if path not in self:
            raise NothingToRemoveError()

        self.staged.pop(path, None)
        self._upserts.pop(path, None)
        if path in self._base:
            self._deletions.add(path)
            self.removed.add(path)
        log.debug("Marked {path} for removal", path=path)
        return True

    # -- Serialization --

    def to_dict(self) -> Dict[str, Any]:
        """Convert the overlay (not the base) to a dictionary."""
        return {
            "upserts": dict(self._upserts),
            "deletions": sorted(self._deletions),
            "staged": dict(self.staged),
            "removed": sorted(self.removed),
        }

    @classmethod
    def from_dict(
        cls, base: Mapping[str, str], data: Optional[Dict[str, Any]]
    ) -> "StagingArea":
        """Rebuild an overlay on top of ``base``."""
        area = cls(base)
        if data:
            area._upserts = dict(data.get("upserts", {}))
            area._deletions = set(data.get("deletions", []))
            area.staged = dict(data.get("staged", {}))
            area.removed = set(data.get("removed", []))
        return area
