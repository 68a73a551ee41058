"""Repository backend interface consumed by the extraction engine."""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

# Object id git reports for the missing side of an addition or deletion
EMPTY_OBJECT_ID = "0" * 40

# Number of leading bytes inspected for NUL when sniffing binary content
BINARY_SNIFF_LENGTH = 8000


class ChangeKind(str, Enum):
    """How a path changed between two trees."""

    ADD = "added"
    MODIFY = "modified"
    DELETE = "deleted"
    RENAME = "renamed"
    COPY = "copied"
    TYPE_CHANGE = "type_changed"


class CommitRecord(BaseModel):
    """A commit as listed by the commit graph walker."""

    model_config = ConfigDict(frozen=True)

    commit_id: str = Field(..., description="Full commit SHA hash")
    author_name: str = Field(..., description="Author name")
    committer_name: str = Field(..., description="Committer name")
    commit_time: int = Field(..., description="Committer time in seconds since the epoch")
    message: str = Field("", description="Full commit message")
    tree_id: str = Field(..., description="SHA of the commit's root tree")
    parent_ids: Tuple[str, ...] = Field(default_factory=tuple, description="Parent commit hashes")

    @property
    def committed_at(self) -> datetime:
        return datetime.fromtimestamp(self.commit_time, tz=timezone.utc)

    @property
    def short_id(self) -> str:
        return self.commit_id[:7]


class DiffEntry(BaseModel):
    """A path that changed between two trees."""

    model_config = ConfigDict(frozen=True)

    old_path: Optional[str] = Field(None, description="Path in the old tree, None for additions")
    new_path: Optional[str] = Field(None, description="Path in the new tree, None for deletions")
    old_id: str = Field(EMPTY_OBJECT_ID, description="Blob id in the old tree")
    new_id: str = Field(EMPTY_OBJECT_ID, description="Blob id in the new tree")
    change_kind: ChangeKind = Field(..., description="Kind of change")

    @property
    def path(self) -> str:
        """The path the change is attributed to; deletions keep their old path."""
        return self.new_path or self.old_path or ""


def looks_binary(data: bytes) -> bool:
    """Git's heuristic: content is binary if a NUL byte appears early on."""
    return b"\x00" in data[:BINARY_SNIFF_LENGTH]


class RepositoryHandle(ABC):
    """Read access to one repository for the duration of one request.

    Handles are used by a single consumer and must be closed; they support
    the context manager protocol.
    """

    @abstractmethod
    def branches(self) -> List[str]:
        """Names of all local branches, e.g. ``refs/heads/main``."""
        pass

    @abstractmethod
    def resolve(self, ref: str) -> str:
        """Resolve a reference to a commit id.

        Raises:
            Exception: Backend specific error if the reference is unknown
        """
        pass

    @abstractmethod
    def log(self, start_commit_id: str, first_parent: bool = False) -> Iterable[CommitRecord]:
        """Commits reachable from ``start_commit_id``, newest first."""
        pass

    @abstractmethod
    def diff(self, old_tree_id: str, new_tree_id: str) -> List[DiffEntry]:
        """File level differences between two trees."""
        pass

    @abstractmethod
    def open_blob(self, object_id: str) -> bytes:
        """Raw content of a blob."""
        pass

    def is_binary(self, data: bytes) -> bool:
        return looks_binary(data)

    @abstractmethod
    def close(self) -> None:
        pass

    def __enter__(self) -> "RepositoryHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
