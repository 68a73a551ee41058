"""Unit tests for the GitPython repository backend."""

import tempfile
from datetime import datetime, timezone
from pathlib import Path

import git
import pytest

from skillmine.extraction import (
    EMPTY_OBJECT_ID,
    ChangeKind,
    ContributionService,
    GitRepository,
)
from skillmine.models import Project

T0 = 1_700_000_000


def commit_at(repo, message, offset, add=(), remove=()):
    """Stage the given paths and commit at ``T0 + offset``."""
    if add:
        repo.index.add(list(add))
    if remove:
        repo.index.remove(list(remove), working_tree=True)
    date = f"{T0 + offset} +0000"
    return repo.index.commit(message, author_date=date, commit_date=date)


@pytest.fixture
def test_repo():
    """Create a temporary Git repository for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_path = Path(tmpdir)
        repo = git.Repo.init(repo_path)

        # Configure git
        repo.config_writer().set_value("user", "name", "Test User").release()
        repo.config_writer().set_value("user", "email", "test@example.com").release()

        (repo_path / "README.md").write_text("# Test Project\n")
        commit_at(repo, "Initial commit", 10, add=["README.md"])

        (repo_path / "main.py").write_text("def hello():\n    print('Hello, World!')\n")
        commit_at(repo, "Add main.py", 20, add=["main.py"])

        (repo_path / "main.py").write_text("def hello():\n    print('Hello, skillmine!')\n")
        (repo_path / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
        commit_at(repo, "Fix: Update hello message", 30, add=["main.py", "logo.png"])

        commit_at(repo, "Remove readme", 40, remove=["README.md"])

        repo.close()
        yield repo_path


@pytest.fixture
def handle(test_repo):
    """Open the test repository through the backend."""
    repository = GitRepository(test_repo)
    yield repository
    repository.close()


def test_invalid_path():
    """Test opening a nonexistent repository path."""
    with pytest.raises(ValueError, match="Repository path does not exist"):
        GitRepository(Path("/nonexistent/path"))


def test_not_a_repository(tmp_path):
    """Test opening a directory that is not a Git repository."""
    with pytest.raises(ValueError, match="Invalid Git repository"):
        GitRepository(tmp_path)


def test_branches(handle):
    """Test that local branches are listed as full refs."""
    branches = handle.branches()

    assert len(branches) == 1
    assert branches[0].startswith("refs/heads/")


def test_resolve(handle):
    """Test resolving a branch to its head commit."""
    head = handle.repo.head.commit.hexsha

    assert handle.resolve(handle.branches()[0]) == head

    with pytest.raises(ValueError, match="Reference not found"):
        handle.resolve("refs/heads/does-not-exist")


def test_log(handle):
    """Test that the log lists commits newest first."""
    commits = list(handle.log(handle.resolve(handle.branches()[0])))

    assert [c.message for c in commits] == [
        "Remove readme",
        "Fix: Update hello message",
        "Add main.py",
        "Initial commit",
    ]
    assert [c.commit_time for c in commits] == [T0 + 40, T0 + 30, T0 + 20, T0 + 10]
    assert commits[0].committer_name == "Test User"
    assert commits[0].author_name == "Test User"
    assert commits[0].parent_ids == (commits[1].commit_id,)
    assert commits[-1].parent_ids == ()


def test_diff_modified_and_added(handle):
    """Test diff entries for a modification and an addition."""
    commits = list(handle.log(handle.resolve(handle.branches()[0])))
    newer, older = commits[1], commits[2]

    entries = {entry.path: entry for entry in handle.diff(older.tree_id, newer.tree_id)}

    assert set(entries) == {"main.py", "logo.png"}
    assert entries["main.py"].change_kind == ChangeKind.MODIFY
    assert entries["logo.png"].change_kind == ChangeKind.ADD
    assert entries["logo.png"].old_id == EMPTY_OBJECT_ID
    assert entries["logo.png"].old_path is None


def test_diff_deleted(handle):
    """Test diff entries for a deletion."""
    commits = list(handle.log(handle.resolve(handle.branches()[0])))

    entries = handle.diff(commits[1].tree_id, commits[0].tree_id)

    assert len(entries) == 1
    assert entries[0].change_kind == ChangeKind.DELETE
    assert entries[0].path == "README.md"
    assert entries[0].new_id == EMPTY_OBJECT_ID
    assert entries[0].new_path is None


def test_open_blob_and_binary(handle):
    """Test reading blobs and classifying binary content."""
    commits = list(handle.log(handle.resolve(handle.branches()[0])))
    entries = {entry.path: entry for entry in handle.diff(commits[2].tree_id, commits[1].tree_id)}

    text = handle.open_blob(entries["main.py"].new_id)
    image = handle.open_blob(entries["logo.png"].new_id)

    assert text == b"def hello():\n    print('Hello, skillmine!')\n"
    assert not handle.is_binary(text)
    assert handle.is_binary(image)


def test_context_manager(test_repo):
    """Test that the handle can be used as a context manager."""
    with GitRepository(test_repo) as repository:
        assert repository.branches()


def test_service_end_to_end(test_repo):
    """Test extracting contributions from a real repository."""
    service = ContributionService(lambda: GitRepository(test_repo), Project(value="test"))
    start = datetime.fromtimestamp(T0, tz=timezone.utc)
    end = datetime.fromtimestamp(T0 + 100, tz=timezone.utc)

    contributions = list(service.retrieve_contributions(start, end))

    assert [c.message for c in contributions] == [
        "Remove readme",
        "Fix: Update hello message",
        "Add main.py",
    ]

    removal, update, addition = contributions
    assert [item.path for item in removal.items] == ["README.md"]
    assert removal.items[0].current_content == ""

    # logo.png is binary and therefore absent
    assert [item.path for item in update.items] == ["main.py"]
    assert update.items[0].touched_lines() == {"print('Hello, skillmine!')"}

    assert addition.items[0].previous_content == ""
    assert addition.contributor.name == "Test User"
    assert addition.timestamp == datetime.fromtimestamp(T0 + 20, tz=timezone.utc)
