"""Commit graph traversal per branch."""

from typing import List

import structlog

from skillmine.errors import RetrievalError
from skillmine.extraction.backend import CommitRecord, RepositoryHandle

logger = structlog.get_logger(__name__)


class CommitWalker:
    """Lists the commits reachable from a branch, newest first."""

    def __init__(self, repository: RepositoryHandle, first_parent: bool = False) -> None:
        """Initialize the walker.

        Args:
            repository: Open repository handle
            first_parent: Follow only the first parent of merge commits
        """
        self.repository = repository
        self.first_parent = first_parent

    def commits(self, branch_ref: str) -> List[CommitRecord]:
        """Return every commit reachable from ``branch_ref``.

        Args:
            branch_ref: Branch reference, e.g. ``refs/heads/main``

        Returns:
            Commits in the order the backend lists them (newest first)

        Raises:
            RetrievalError: If the branch cannot be resolved or its log read
        """
        try:
            head = self.repository.resolve(branch_ref)
        except Exception as e:
            raise RetrievalError(f"Could not resolve branch {branch_ref}", e) from e

        try:
            commits = list(self.repository.log(head, first_parent=self.first_parent))
        except Exception as e:
            raise RetrievalError(f"Could not read commit log of branch {branch_ref}", e) from e

        logger.debug("branch_walked", branch=branch_ref, head=head[:7], commits=len(commits))
        return commits
