"""Tests for the temporary clone repository factory."""

import tempfile
import warnings
from pathlib import Path

import git
import pytest
from structlog.testing import capture_logs

from skillmine.errors import RetrievalError
from skillmine.extraction import TemporaryClone, TemporaryCloneRepository
from skillmine.extraction.clone import delete_directory


@pytest.fixture
def source_repo():
    """Create a small repository to clone from."""
    with tempfile.TemporaryDirectory() as tmpdir:
        repo_path = Path(tmpdir)
        repo = git.Repo.init(repo_path)

        repo.config_writer().set_value("user", "name", "Test User").release()
        repo.config_writer().set_value("user", "email", "test@example.com").release()

        (repo_path / "README.md").write_text("# Source\n")
        repo.index.add(["README.md"])
        repo.index.commit("Initial commit")

        repo.close()
        yield repo_path


def test_clone_and_cleanup(source_repo):
    """Test that a clone is usable and its directory removed on close."""
    factory = TemporaryClone(str(source_repo))

    handle = factory()

    assert isinstance(handle, TemporaryCloneRepository)
    assert handle.temp_dir.exists()
    assert handle.temp_dir.name.startswith("skillmine_")
    assert handle.branches()

    handle.close()

    assert not handle.temp_dir.exists()


def test_each_call_clones_anew(source_repo):
    """Test that every call produces an independent clone."""
    factory = TemporaryClone(str(source_repo), prefix="clone_test_")

    with factory() as first, factory() as second:
        assert first.temp_dir != second.temp_dir
        assert first.resolve(first.branches()[0]) == second.resolve(second.branches()[0])


def test_clone_failure_cleans_up(tmp_path, monkeypatch):
    """Test that a failed clone raises and leaves no directory behind."""
    target = tmp_path / "clone"

    def fake_mkdtemp(prefix):
        target.mkdir()
        return str(target)

    monkeypatch.setattr(tempfile, "mkdtemp", fake_mkdtemp)

    with pytest.raises(RetrievalError, match="Could not clone repository"):
        TemporaryClone(str(tmp_path / "missing"))()

    assert not target.exists()


def test_delete_directory_logs_failures(tmp_path):
    """Test that a failed removal is logged without raising or warning."""
    missing = tmp_path / "gone"

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        with capture_logs() as logs:
            delete_directory(missing)

    assert [entry["event"] for entry in logs] == ["temporary_clone_delete_failed"]
    assert logs[0]["path"] == str(missing)


def test_delete_directory_removes_tree(tmp_path):
    """Test removing a populated directory."""
    target = tmp_path / "clone"
    (target / "nested").mkdir(parents=True)
    (target / "nested" / "file.txt").write_text("data\n")

    delete_directory(target)

    assert not target.exists()
