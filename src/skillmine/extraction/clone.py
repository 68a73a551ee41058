"""Repositories cloned into temporary storage for the length of one request."""

import shutil
import sys
import tempfile
from pathlib import Path
from typing import Any, Union

import git
import structlog
from git import Repo

from skillmine.errors import RetrievalError
from skillmine.extraction.git_backend import GitRepository

logger = structlog.get_logger(__name__)


class TemporaryCloneRepository(GitRepository):
    """A cloned repository whose directory is deleted on close."""

    def __init__(self, repo_path: Union[str, Path], temp_dir: Path) -> None:
        super().__init__(repo_path)
        self.temp_dir = temp_dir

    def close(self) -> None:
        try:
            super().close()
        finally:
            logger.info("temporary_clone_deleted", path=str(self.temp_dir))
            delete_directory(self.temp_dir)


class TemporaryClone:
    """Repository factory cloning a remote into a fresh temporary directory.

    Every call produces an independent clone, so it can be handed to
    ``ContributionService`` as its repository factory.
    """

    def __init__(self, url: str, prefix: str = "skillmine_", **clone_options: Any) -> None:
        """Initialize the factory.

        Args:
            url: Anything ``git clone`` accepts (URL or local path)
            prefix: Prefix of the temporary directory name
            **clone_options: Extra options passed to ``git clone``, e.g. ``bare=True``
        """
        self.url = url
        self.prefix = prefix
        self.clone_options = clone_options

    def __call__(self) -> TemporaryCloneRepository:
        temp_dir = Path(tempfile.mkdtemp(prefix=self.prefix))
        repo_path = temp_dir / "repo"

        try:
            logger.info("cloning_repository", url=self.url, path=str(repo_path))
            Repo.clone_from(self.url, repo_path, **self.clone_options)
            logger.info(
                "repository_cloned",
                url=self.url,
                path=str(repo_path),
                size_mb=round(directory_size(repo_path) / 1024.0 / 1024.0, 2),
            )
            return TemporaryCloneRepository(repo_path, temp_dir)
        except (git.exc.GitError, ValueError, OSError) as e:
            delete_directory(temp_dir)
            raise RetrievalError(f"Could not clone repository {self.url}", e) from e


def directory_size(path: Path) -> int:
    """Total size in bytes of all files below ``path``."""
    return sum(file.stat().st_size for file in path.rglob("*") if file.is_file())


def delete_directory(path: Path) -> None:
    """Delete a directory tree, logging instead of raising on failure."""

    def _log_failure(failed_path, error):
        logger.error("temporary_clone_delete_failed", path=str(failed_path), error=str(error))

    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=lambda function, failed_path, exc: _log_failure(failed_path, exc))
    else:
        shutil.rmtree(path, onerror=lambda function, failed_path, exc_info: _log_failure(failed_path, exc_info[1]))
