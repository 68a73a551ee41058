"""Tests for configuration models."""

import pytest
from pydantic import ValidationError

from skillmine.diff import SupportedAlgorithm
from skillmine.models import ExtractionConfig, Settings


def test_extraction_config_defaults():
    """Test default extraction configuration."""
    config = ExtractionConfig()

    assert config.diff_algorithm == SupportedAlgorithm.HISTOGRAM
    assert config.skip_failed_branches is False
    assert config.progress_interval == 1000
    assert config.first_parent is False


def test_progress_interval_must_be_positive():
    """Test that a zero progress interval is rejected."""
    with pytest.raises(ValidationError):
        ExtractionConfig(progress_interval=0)


def test_algorithm_from_string():
    """Test that algorithm names are accepted."""
    assert ExtractionConfig(diff_algorithm="myers").diff_algorithm == SupportedAlgorithm.MYERS

    with pytest.raises(ValidationError):
        ExtractionConfig(diff_algorithm="patience")


def test_settings_from_environment(monkeypatch):
    """Test that settings are read from prefixed environment variables."""
    monkeypatch.setenv("SKILLMINE_DIFF_ALGORITHM", "myers")
    monkeypatch.setenv("SKILLMINE_SKIP_FAILED_BRANCHES", "true")
    monkeypatch.setenv("SKILLMINE_PROGRESS_INTERVAL", "50")
    monkeypatch.setenv("SKILLMINE_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("SKILLMINE_FIRST_PARENT", "1")

    settings = Settings(_env_file=None)
    config = settings.extraction_config()

    assert settings.log_level == "DEBUG"
    assert config.diff_algorithm == SupportedAlgorithm.MYERS
    assert config.skip_failed_branches is True
    assert config.progress_interval == 50
    assert config.first_parent is True


def test_settings_defaults(monkeypatch):
    """Test that settings without environment match the extraction defaults."""
    for name in ("DIFF_ALGORITHM", "SKIP_FAILED_BRANCHES", "PROGRESS_INTERVAL", "FIRST_PARENT"):
        monkeypatch.delenv(f"SKILLMINE_{name}", raising=False)

    assert Settings(_env_file=None).extraction_config() == ExtractionConfig()
