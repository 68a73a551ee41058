"""GitPython implementation of the repository backend."""

from pathlib import Path
from typing import Iterator, List, Optional, Union

import git
from git import Commit, Diff, Repo

from skillmine.extraction.backend import (
    EMPTY_OBJECT_ID,
    ChangeKind,
    CommitRecord,
    DiffEntry,
    RepositoryHandle,
)

_CHANGE_KINDS = {
    "A": ChangeKind.ADD,
    "D": ChangeKind.DELETE,
    "M": ChangeKind.MODIFY,
    "R": ChangeKind.RENAME,
    "C": ChangeKind.COPY,
    "T": ChangeKind.TYPE_CHANGE,
}


class GitRepository(RepositoryHandle):
    """Repository handle over a local Git working copy or bare repository."""

    def __init__(self, repo_path: Union[str, Path]) -> None:
        """Open the repository.

        Args:
            repo_path: Path to the repository

        Raises:
            ValueError: If the path does not exist or is not a Git repository
        """
        self.repo_path = Path(repo_path)
        if not self.repo_path.exists():
            raise ValueError(f"Repository path does not exist: {self.repo_path}")

        try:
            self.repo = Repo(self.repo_path)
        except git.exc.InvalidGitRepositoryError as e:
            raise ValueError(f"Invalid Git repository: {self.repo_path}") from e

    def branches(self) -> List[str]:
        return [head.path for head in self.repo.heads]

    def resolve(self, ref: str) -> str:
        try:
            return self.repo.commit(ref).hexsha
        except (git.exc.BadName, git.exc.BadObject, ValueError) as e:
            raise ValueError(f"Reference not found: {ref}") from e

    def log(self, start_commit_id: str, first_parent: bool = False) -> Iterator[CommitRecord]:
        kwargs = {}
        if first_parent:
            kwargs["first_parent"] = True

        for commit in self.repo.iter_commits(start_commit_id, **kwargs):
            yield self._to_record(commit)

    def diff(self, old_tree_id: str, new_tree_id: str) -> List[DiffEntry]:
        old_tree = self.repo.tree(old_tree_id)
        new_tree = self.repo.tree(new_tree_id)
        return [self._to_entry(item) for item in old_tree.diff(new_tree)]

    def open_blob(self, object_id: str) -> bytes:
        return self.repo.odb.stream(bytes.fromhex(object_id)).read()

    def close(self) -> None:
        self.repo.close()

    @staticmethod
    def _to_record(commit: Commit) -> CommitRecord:
        return CommitRecord(
            commit_id=commit.hexsha,
            author_name=commit.author.name or "",
            committer_name=commit.committer.name or "",
            commit_time=commit.committed_date,
            message=commit.message,
            tree_id=commit.tree.hexsha,
            parent_ids=tuple(parent.hexsha for parent in commit.parents),
        )

    @staticmethod
    def _to_entry(item: Diff) -> DiffEntry:
        if item.new_file:
            change_kind = ChangeKind.ADD
        elif item.deleted_file:
            change_kind = ChangeKind.DELETE
        elif item.renamed_file:
            change_kind = ChangeKind.RENAME
        else:
            change_kind = _CHANGE_KINDS.get(item.change_type or "M", ChangeKind.MODIFY)

        return DiffEntry(
            old_path=None if item.new_file else item.a_path,
            new_path=None if item.deleted_file else item.b_path,
            old_id=_blob_id(item.a_blob),
            new_id=_blob_id(item.b_blob),
            change_kind=change_kind,
        )

    def __repr__(self) -> str:
        return f"GitRepository({str(self.repo_path)!r})"


def _blob_id(blob: Optional[git.Blob]) -> str:
    if blob is None:
        return EMPTY_OBJECT_ID
    return blob.hexsha
