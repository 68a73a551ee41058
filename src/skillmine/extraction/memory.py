"""Dictionary backed repository used to exercise the engine without Git."""

import hashlib
from typing import Dict, Iterator, List, Mapping, Optional, Union

from skillmine.extraction.backend import (
    EMPTY_OBJECT_ID,
    ChangeKind,
    CommitRecord,
    DiffEntry,
    RepositoryHandle,
)

FileContent = Union[str, bytes, None]


def _object_id(kind: str, payload: bytes) -> str:
    header = f"{kind} {len(payload)}\0".encode()
    return hashlib.sha1(header + payload).hexdigest()


class InMemoryRepository(RepositoryHandle):
    """Repository whose objects live in dictionaries.

    Commits are added per branch with ``commit``; each commit's tree is its
    parent's tree with the given files replaced (``None`` deletes a file).
    Every blob read is recorded in ``blob_reads``.
    """

    def __init__(self) -> None:
        self.blobs: Dict[str, bytes] = {}
        self.trees: Dict[str, Dict[str, str]] = {}
        self.commits: Dict[str, CommitRecord] = {}
        self.heads: Dict[str, str] = {}
        self.blob_reads: List[str] = []
        self.closed = False
        self._sequence = 0

    # Building

    def add_blob(self, content: Union[str, bytes]) -> str:
        data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
        blob_id = _object_id("blob", data)
        self.blobs[blob_id] = data
        return blob_id

    def add_tree(self, entries: Mapping[str, str]) -> str:
        payload = "\n".join(f"{path} {blob_id}" for path, blob_id in sorted(entries.items()))
        tree_id = _object_id("tree", payload.encode("utf-8"))
        self.trees[tree_id] = dict(entries)
        return tree_id

    def commit(
        self,
        branch: str,
        files: Mapping[str, FileContent],
        commit_time: int,
        committer: str = "Test User",
        message: str = "",
        author: Optional[str] = None,
    ) -> str:
        """Add a commit on top of ``branch`` and advance the branch.

        Returns:
            The new commit id
        """
        ref = self._ref(branch)
        parent_id = self.heads.get(ref)
        entries = dict(self.trees[self.commits[parent_id].tree_id]) if parent_id else {}

        for path, content in files.items():
            if content is None:
                entries.pop(path, None)
            else:
                entries[path] = self.add_blob(content)

        tree_id = self.add_tree(entries)
        self._sequence += 1
        commit_id = _object_id(
            "commit",
            f"{tree_id} {parent_id} {commit_time} {committer} {message} {self._sequence}".encode("utf-8"),
        )
        self.commits[commit_id] = CommitRecord(
            commit_id=commit_id,
            author_name=author or committer,
            committer_name=committer,
            commit_time=commit_time,
            message=message,
            tree_id=tree_id,
            parent_ids=(parent_id,) if parent_id else (),
        )
        self.heads[ref] = commit_id
        return commit_id

    def create_branch(self, branch: str, from_branch: str) -> None:
        self.heads[self._ref(branch)] = self.heads[self._ref(from_branch)]

    @staticmethod
    def _ref(branch: str) -> str:
        return branch if branch.startswith("refs/") else f"refs/heads/{branch}"

    # RepositoryHandle

    def branches(self) -> List[str]:
        return list(self.heads)

    def resolve(self, ref: str) -> str:
        if ref in self.commits:
            return ref
        try:
            return self.heads[self._ref(ref)]
        except KeyError as e:
            raise ValueError(f"Reference not found: {ref}") from e

    def log(self, start_commit_id: str, first_parent: bool = False) -> Iterator[CommitRecord]:
        seen = set()
        pending = [start_commit_id]
        reachable: List[CommitRecord] = []

        while pending:
            commit_id = pending.pop()
            if commit_id in seen:
                continue
            seen.add(commit_id)
            record = self.commits[commit_id]
            reachable.append(record)
            parents = record.parent_ids[:1] if first_parent else record.parent_ids
            pending.extend(parents)

        reachable.sort(key=lambda record: record.commit_time, reverse=True)
        return iter(reachable)

    def diff(self, old_tree_id: str, new_tree_id: str) -> List[DiffEntry]:
        old_entries = self.trees[old_tree_id]
        new_entries = self.trees[new_tree_id]
        entries = []

        for path in sorted(set(old_entries) | set(new_entries)):
            old_id = old_entries.get(path, EMPTY_OBJECT_ID)
            new_id = new_entries.get(path, EMPTY_OBJECT_ID)
            if old_id == new_id:
                continue

            if old_id == EMPTY_OBJECT_ID:
                change_kind = ChangeKind.ADD
            elif new_id == EMPTY_OBJECT_ID:
                change_kind = ChangeKind.DELETE
            else:
                change_kind = ChangeKind.MODIFY

            entries.append(
                DiffEntry(
                    old_path=path if old_id != EMPTY_OBJECT_ID else None,
                    new_path=path if new_id != EMPTY_OBJECT_ID else None,
                    old_id=old_id,
                    new_id=new_id,
                    change_kind=change_kind,
                )
            )

        return entries

    def open_blob(self, object_id: str) -> bytes:
        self.blob_reads.append(object_id)
        try:
            return self.blobs[object_id]
        except KeyError as e:
            raise KeyError(f"Missing blob: {object_id}") from e

    def close(self) -> None:
        self.closed = True
