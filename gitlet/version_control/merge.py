"""
Three-way merge classification.

Compares every path across the current head (H), the split point (S) and
the other branch tip (M) and decides what the merge does with it. The plan
is pure: applying it to the staging area and working tree is the
repository's job.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping, Optional

from .commit import Commit

CONFLICT_HEAD = "<<<<<<< HEAD\n"
CONFLICT_SEPARATOR = "=======\n"
CONFLICT_END = ">>>>>>>\n"

FAST_FORWARD_NOTICE = "Current branch fast-forwarded"
CONFLICT_NOTICE = "Encountered a merge conflict."


class ChangeType(str, Enum):
    """How a version of a file relates to its split-point version."""

    UNCHANGED = "unchanged"
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"
    ABSENT = "absent"


class MergeOutcome(str, Enum):
    """What the merge does with a single path."""

    KEEP_CURRENT = "keep_current"
    TAKE_OTHER = "take_other"
    REMOVE = "remove"
    CONFLICT = "conflict"


def classify_change(base: Optional[str], version: Optional[str]) -> ChangeType:
    """Classify ``version`` against ``base`` (None means absent)."""
    if base is None:
        return ChangeType.ABSENT if version is None else ChangeType.ADDED
    if version is None:
        return ChangeType.REMOVED
    return ChangeType.UNCHANGED if version == base else ChangeType.MODIFIED


def classify_path(
    current: Optional[str], split: Optional[str], other: Optional[str]
) -> MergeOutcome:
    """
    Decide the merge outcome for one path.

    Args:
        current: Content at the current head, None if absent
        split: Content at the split point, None if absent
        other: Content at the other branch tip, None if absent
    """
    if split is None:
        if current is None:
            return MergeOutcome.KEEP_CURRENT if other is None else MergeOutcome.TAKE_OTHER
        if other is None or other == current:
            return MergeOutcome.KEEP_CURRENT
        return MergeOutcome.CONFLICT

    if current == split:
        if other == split:
            return MergeOutcome.KEEP_CURRENT
        if other is None:
            return MergeOutcome.REMOVE
        return MergeOutcome.TAKE_OTHER

    # Current changed or deleted the file since the split point
    if other == split or other == current:
        return MergeOutcome.KEEP_CURRENT
    return MergeOutcome.CONFLICT


def conflict_text(current: Optional[str], other: Optional[str]) -> str:
    """Build the conflict file content; an absent side is empty."""
    return (
        CONFLICT_HEAD
        + (current or "")
        + CONFLICT_SEPARATOR
        + (other or "")
        + CONFLICT_END
    )


@dataclass
class FileMerge:
    """The merge decision for a single path."""

    path: str
    outcome: MergeOutcome
    current: Optional[str]
    split: Optional[str]
    other: Optional[str]

    @property
    def content(self) -> Optional[str]:
        """Resulting content, None when the path ends up absent."""
        if self.outcome == MergeOutcome.TAKE_OTHER:
            return self.other
        if self.outcome == MergeOutcome.CONFLICT:
            return conflict_text(self.current, self.other)
        if self.outcome == MergeOutcome.REMOVE:
            return None
        return self.current

    @property
    def changes_working_tree(self) -> bool:
        return self.outcome != MergeOutcome.KEEP_CURRENT

    def summary(self) -> str:
        """Get a one-line summary of this decision."""
        current_change = classify_change(self.split, self.current).value
        other_change = classify_change(self.split, self.other).value
        return (
            f"{self.outcome.value:<12} {self.path} "
            f"(current {current_change}, other {other_change})"
        )


def plan_merge(
    current: Mapping[str, str],
    split: Mapping[str, str],
    other: Mapping[str, str],
) -> List[FileMerge]:
    """
    Classify every path present in any of the three snapshots.

    Returns:
        One FileMerge per path, sorted by path
    """
    paths = sorted(set(current) | set(split) | set(other))
    return [
        FileMerge(
            path=path,
            outcome=classify_path(current.get(path), split.get(path), other.get(path)),
            current=current.get(path),
            split=split.get(path),
            other=other.get(path),
        )
        for path in paths
    ]


@dataclass
class MergeResult:
    """
    Outcome of merging another branch into the current one.

    Fast-forward and conflict are reported independently; both can be set
    by the same merge.
    """

    commit: Commit
    split_point: str
    fast_forward: bool
    files: List[FileMerge] = field(default_factory=list)

    @property
    def conflicts(self) -> List[str]:
        return [f.path for f in self.files if f.outcome == MergeOutcome.CONFLICT]

    @property
    def has_conflicts(self) -> bool:
        return any(f.outcome == MergeOutcome.CONFLICT for f in self.files)

    def count_by_outcome(self) -> Dict[str, int]:
        """Count paths by merge outcome."""
        counts = {outcome.value: 0 for outcome in MergeOutcome}
        for file_merge in self.files:
            counts[file_merge.outcome.value] += 1
        return counts

    def notices(self) -> List[str]:
        """Lines reported to the user, fast-forward first."""
        lines = []
        if self.fast_forward:
            lines.append(FAST_FORWARD_NOTICE)
        if self.has_conflicts:
            lines.append(CONFLICT_NOTICE)
        return lines
