"""
Commit records for version control.

A commit is an immutable snapshot of every tracked file plus metadata and
parent links. Its identifier is a digest of its own serialized content.
"""

from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Dict, Any, Mapping, Optional
import hashlib
import json

# Timestamp of the root commit, fixed so every repository shares its id
INITIAL_TIMESTAMP = "Wed Dec 31 16:00:00 1969 -0800"
TIMESTAMP_FORMAT = "%a %b %d %H:%M:%S %Y %z"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """Format a moment (default: now, local time) as a commit timestamp."""
    moment = moment or datetime.now()
    return moment.astimezone().strftime(TIMESTAMP_FORMAT)


def compute_commit_id(
    parent_id: Optional[str],
    second_parent_id: Optional[str],
    files: Mapping[str, str],
    message: str,
    timestamp: str,
    algorithm: str = "sha1",
) -> str:
    """
    Compute the identifier of a commit from its serialized content.

    The digest is an opaque key; two commits with identical content share an
    id, and no collision handling is attempted.
    """
    payload = json.dumps(
        {
            "parent_id": parent_id,
            "second_parent_id": second_parent_id,
            "files": dict(files),
            "message": message,
            "timestamp": timestamp,
        },
        sort_keys=True,
    )
    return hashlib.new(algorithm, payload.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class Commit:
    """
    Represents a commit in the version history.

    Attributes:
        commit_id: Digest of the commit's serialized form
        parent_id: Predecessor commit, None only for the root
        files: Read-only mapping of path to file content
        message: Log message
        timestamp: Commit time, formatted with TIMESTAMP_FORMAT
        second_parent_id: Merged-in branch tip, set only on merge commits
    """

    commit_id: str
    parent_id: Optional[str]
    files: Mapping[str, str]
    message: str
    timestamp: str
    second_parent_id: Optional[str] = None

    def __post_init__(self) -> None:
        # Freeze a private copy so no caller can alias the snapshot
        object.__setattr__(self, "files", MappingProxyType(dict(self.files)))

    def __hash__(self) -> int:
        return hash(self.commit_id)

    @classmethod
    def create(
        cls,
        parent_id: Optional[str],
        files: Mapping[str, str],
        message: str,
        timestamp: Optional[str] = None,
        second_parent_id: Optional[str] = None,
        algorithm: str = "sha1",
    ) -> "Commit":
        """Build a commit and assign its identifier."""
        timestamp = timestamp or format_timestamp()
        commit_id = compute_commit_id(
            parent_id, second_parent_id, files, message, timestamp, algorithm
        )
        return cls(
            commit_id=commit_id,
            parent_id=parent_id,
            files=files,
            message=message,
            timestamp=timestamp,
            second_parent_id=second_parent_id,
        )

    @classmethod
    def initial(cls, message: str = "initial commit", algorithm: str = "sha1") -> "Commit":
        """Build the parentless root commit with an empty snapshot."""
        return cls.create(
            parent_id=None,
            files={},
            message=message,
            timestamp=INITIAL_TIMESTAMP,
            algorithm=algorithm,
        )

    @property
    def is_merge(self) -> bool:
        return self.second_parent_id is not None

    @property
    def parents(self) -> tuple:
        """Parent ids, first parent first."""
        return tuple(p for p in (self.parent_id, self.second_parent_id) if p)

    def to_dict(self) -> Dict[str, Any]:
        """Convert commit to dictionary for serialization."""
        return {
            "commit_id": self.commit_id,
            "parent_id": self.parent_id,
            "second_parent_id": self.second_parent_id,
            "files": dict(self.files),
            "message": self.message,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Commit":
        """Create commit from dictionary."""
        return cls(
            commit_id=data["commit_id"],
            parent_id=data.get("parent_id"),
            files=data.get("files", {}),
            message=data["message"],
            timestamp=data["timestamp"],
            second_parent_id=data.get("second_parent_id"),
        )

    def to_json(self) -> str:
        """Convert commit to JSON string."""
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    @classmethod
    def from_json(cls, json_str: str) -> "Commit":
        """Create commit from JSON string."""
        return cls.from_dict(json.loads(json_str))
