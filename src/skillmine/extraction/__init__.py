"""Contribution extraction from Git repositories."""

from skillmine.extraction.backend import (
    EMPTY_OBJECT_ID,
    ChangeKind,
    CommitRecord,
    DiffEntry,
    RepositoryHandle,
    looks_binary,
)
from skillmine.extraction.clone import TemporaryClone, TemporaryCloneRepository
from skillmine.extraction.git_backend import GitRepository
from skillmine.extraction.memory import InMemoryRepository
from skillmine.extraction.service import ContributionService, ContributionStream
from skillmine.extraction.walker import CommitWalker

__all__ = [
    "EMPTY_OBJECT_ID",
    "ChangeKind",
    "CommitRecord",
    "DiffEntry",
    "RepositoryHandle",
    "looks_binary",
    "GitRepository",
    "InMemoryRepository",
    "TemporaryClone",
    "TemporaryCloneRepository",
    "CommitWalker",
    "ContributionService",
    "ContributionStream",
]
