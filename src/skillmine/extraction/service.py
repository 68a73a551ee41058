"""Contribution extraction from a repository's branches."""

from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional

import structlog

from skillmine.errors import RetrievalError
from skillmine.extraction.backend import EMPTY_OBJECT_ID, CommitRecord, DiffEntry, RepositoryHandle
from skillmine.extraction.walker import CommitWalker
from skillmine.models import (
    Contribution,
    ContributionId,
    ContributionItem,
    Contributor,
    ExtractionConfig,
    Project,
)

logger = structlog.get_logger(__name__)

RepositoryFactory = Callable[[], RepositoryHandle]


class ContributionStream:
    """Forward-only, lazily produced sequence of contributions.

    Owns the repository handle of one extraction call. The handle is closed
    when the stream is exhausted, closed explicitly, left as a context
    manager, or when an error escapes it.
    """

    def __init__(self, contributions: Iterator[Contribution], on_close: Callable[[], None]) -> None:
        self._contributions = contributions
        self._on_close = on_close
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> "ContributionStream":
        return self

    def __next__(self) -> Contribution:
        if self._closed:
            raise StopIteration

        try:
            return next(self._contributions)
        except StopIteration:
            self.close()
            raise
        except Exception:
            self._abort()
            raise

    def close(self) -> None:
        """Stop producing contributions and release the repository.

        Raises:
            RetrievalError: If the repository handle cannot be closed
        """
        if self._closed:
            return
        self._closed = True
        close_generator = getattr(self._contributions, "close", None)
        if close_generator is not None:
            close_generator()
        self._on_close()

    def _abort(self) -> None:
        try:
            self.close()
        except RetrievalError:
            logger.error("repository_release_failed", exc_info=True)

    def __enter__(self) -> "ContributionStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self._abort()


class ContributionService:
    """Retrieves contributions from all branches of a Git repository.

    Each call opens its own repository handle from the factory, so one
    service may serve many independent requests.
    """

    def __init__(
        self,
        repository_factory: RepositoryFactory,
        project: Project,
        config: Optional[ExtractionConfig] = None,
    ) -> None:
        """Initialize the service.

        Args:
            repository_factory: Returns a fresh repository handle per call
            project: The project the repository belongs to
            config: Extraction options, defaults when omitted

        Raises:
            RetrievalError: If the factory or the project is missing
        """
        if repository_factory is None:
            raise RetrievalError("repository_factory must not be None")
        if project is None:
            raise RetrievalError("project must not be None")

        self.repository_factory = repository_factory
        self.project = project
        self.config = config or ExtractionConfig()

    def retrieve_contributions(
        self,
        start_exclusive: datetime,
        end_inclusive: datetime,
    ) -> ContributionStream:
        """Contributions of commits with ``start_exclusive < time <= end_inclusive``.

        Branches are listed eagerly; commit logs are read and diffs computed
        only as the returned stream is consumed. Naive datetimes are taken
        as UTC.

        Args:
            start_exclusive: Lower bound of the window, excluded
            end_inclusive: Upper bound of the window, included

        Returns:
            Stream of contributions, one per commit that has an in-window
            predecessor on the same branch

        Raises:
            RetrievalError: If a bound is missing, or the repository cannot
                be opened or its branches listed
        """
        if start_exclusive is None:
            raise RetrievalError("start_exclusive must not be None")
        if end_inclusive is None:
            raise RetrievalError("end_inclusive must not be None")

        start = _as_utc(start_exclusive)
        end = _as_utc(end_inclusive)

        try:
            repository = self.repository_factory()
        except RetrievalError:
            raise
        except Exception as e:
            raise RetrievalError(f"Could not open repository of project {self.project.value}", e) from e

        session = _ExtractionSession(repository, self.project, self.config, start, end)
        try:
            branches = session.branches()
        except RetrievalError:
            session.release_quietly()
            raise

        return ContributionStream(session.contributions(branches), session.close)


class _ExtractionSession:
    """State of one retrieve_contributions call."""

    def __init__(
        self,
        repository: RepositoryHandle,
        project: Project,
        config: ExtractionConfig,
        start_exclusive: datetime,
        end_inclusive: datetime,
    ) -> None:
        self.repository = repository
        self.project = project
        self.config = config
        self.start_exclusive = start_exclusive
        self.end_inclusive = end_inclusive
        self.walker = CommitWalker(repository, first_parent=config.first_parent)
        self.log = logger.bind(project=project.value)

    def branches(self) -> List[str]:
        self.log.info("reading_contributions", repository=repr(self.repository))
        try:
            return list(self.repository.branches())
        except Exception as e:
            raise RetrievalError(
                f"Could not retrieve contributions between {self.start_exclusive} and {self.end_inclusive}",
                e,
            ) from e

    def contributions(self, branches: List[str]) -> Iterator[Contribution]:
        for branch in branches:
            try:
                yield from self._branch_contributions(branch)
            except RetrievalError as e:
                if not self.config.skip_failed_branches:
                    raise
                self.log.warning("branch_skipped", branch=branch, error=str(e))

    def _branch_contributions(self, branch: str) -> Iterator[Contribution]:
        self.log.info("branch_entered", branch=branch)

        commits = [commit for commit in self.walker.commits(branch) if self._in_window(commit)]
        self.log.info("branch_commits_found", branch=branch, commits=len(commits))

        total = len(commits) - 1
        for i in range(total):
            older = commits[i + 1]
            newer = commits[i]
            yield self._contribution(older, newer)
            self._log_progress(branch, total, i + 1)

    def _in_window(self, commit: CommitRecord) -> bool:
        return self.start_exclusive < commit.committed_at <= self.end_inclusive

    def _contribution(self, older: CommitRecord, newer: CommitRecord) -> Contribution:
        self.log.debug("reading_commit", commit=newer.commit_id)

        try:
            entries = self.repository.diff(older.tree_id, newer.tree_id)
        except Exception as e:
            raise RetrievalError(
                f"Could not retrieve contributions for commit {newer.commit_id} "
                f"(compared to {older.commit_id})",
                e,
            ) from e

        self.log.debug("diff_entries_found", commit=newer.commit_id, entries=len(entries))

        contributor = Contributor(name=newer.committer_name)
        builder = Contribution.builder(
            ContributionId(value=newer.commit_id),
            self.project,
            contributor,
            newer.committed_at,
        ).set_message(newer.message)

        for entry in entries:
            item = self._contribution_item(entry, newer)
            if item is not None:
                builder.add_item(item)

        return builder.build()

    def _contribution_item(self, entry: DiffEntry, commit: CommitRecord) -> Optional[ContributionItem]:
        path = entry.path
        try:
            current_content = ""
            previous_content = ""

            if entry.new_id != EMPTY_OBJECT_ID:
                data = self.repository.open_blob(entry.new_id)
                if self.repository.is_binary(data):
                    self._log_binary_skip(commit, path)
                    return None
                current_content = _decode_text(data)

            if entry.old_id != EMPTY_OBJECT_ID:
                data = self.repository.open_blob(entry.old_id)
                if self.repository.is_binary(data):
                    self._log_binary_skip(commit, path)
                    return None
                previous_content = _decode_text(data)

            return ContributionItem(
                path=path,
                previous_content=previous_content,
                current_content=current_content,
            )
        except Exception:
            self.log.warning(
                "contribution_item_dropped",
                commit=commit.commit_id,
                path=path,
                exc_info=True,
            )
            return None

    def _log_binary_skip(self, commit: CommitRecord, path: str) -> None:
        self.log.debug(
            "binary_content_skipped",
            contributor=commit.committer_name,
            committed_at=commit.committed_at.isoformat(),
            path=path,
        )

    def _log_progress(self, branch: str, total: int, finished: int) -> None:
        if finished == total or finished % self.config.progress_interval == 0:
            self.log.info(
                "branch_progress",
                branch=branch,
                finished=finished,
                total=total,
                percentage=round(finished / total * 100, 2),
            )

    def close(self) -> None:
        try:
            self.repository.close()
        except Exception as e:
            raise RetrievalError(f"Could not close repository of project {self.project.value}", e) from e
        self.log.info("repository_released")

    def release_quietly(self) -> None:
        try:
            self.close()
        except RetrievalError:
            self.log.error("repository_release_failed", exc_info=True)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _decode_text(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1")
