"""Tests for contribution data models."""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from skillmine.models import (
    Contribution,
    ContributionId,
    ContributionItem,
    Contributor,
    Project,
)


@pytest.fixture
def builder():
    """Create a builder for a contribution."""
    return Contribution.builder(
        ContributionId(value="abc123def456"),
        Project(value="demo"),
        Contributor(name="Jane Doe"),
        datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
    )


def test_contributor_equality_by_name():
    """Test that contributors with the same name are equal."""
    assert Contributor(name="Jane") == Contributor(name="Jane")
    assert Contributor(name="Jane") != Contributor(name="John")
    assert len({Contributor(name="Jane"), Contributor(name="Jane")}) == 1


def test_models_are_immutable():
    """Test that value types reject mutation."""
    project = Project(value="demo")
    item = ContributionItem(path="a.py", previous_content="", current_content="x")

    with pytest.raises(ValidationError):
        project.value = "other"
    with pytest.raises(ValidationError):
        item.path = "b.py"


def test_item_defaults_to_empty_content():
    """Test that missing contents default to empty strings."""
    item = ContributionItem(path="a.py")

    assert item.previous_content == ""
    assert item.current_content == ""


def test_builder_accumulates_items_and_message(builder):
    """Test building a contribution incrementally."""
    first = ContributionItem(path="a.py", previous_content="", current_content="a\n")
    second = ContributionItem(path="b.py", previous_content="b\n", current_content="")

    contribution = builder.set_message("Add a, drop b").add_item(first).add_item(second).build()

    assert contribution.id.value == "abc123def456"
    assert contribution.project.value == "demo"
    assert contribution.contributor.name == "Jane Doe"
    assert contribution.message == "Add a, drop b"
    assert contribution.items == (first, second)


def test_builder_without_message(builder):
    """Test that the message is optional."""
    contribution = builder.build()

    assert contribution.message == ""
    assert contribution.items == ()


def test_builder_cannot_be_reused(builder):
    """Test that a built builder refuses further changes."""
    builder.build()

    with pytest.raises(RuntimeError, match="already been built"):
        builder.add_item(ContributionItem(path="a.py"))
    with pytest.raises(RuntimeError):
        builder.build()


def test_contribution_is_immutable(builder):
    """Test that a built contribution cannot be changed."""
    contribution = builder.build()

    with pytest.raises(ValidationError):
        contribution.message = "changed"


def test_timestamp_normalized_to_utc_seconds():
    """Test that timestamps are stored as UTC with second precision."""
    local = timezone(timedelta(hours=2))
    contribution = Contribution.builder(
        ContributionId(value="abc"),
        Project(value="demo"),
        Contributor(name="Jane"),
        datetime(2024, 1, 15, 12, 30, 5, 123456, tzinfo=local),
    ).build()

    assert contribution.timestamp == datetime(2024, 1, 15, 10, 30, 5, tzinfo=timezone.utc)
    assert contribution.timestamp.microsecond == 0


def test_naive_timestamp_taken_as_utc():
    """Test that naive timestamps are interpreted as UTC."""
    contribution = Contribution.builder(
        ContributionId(value="abc"),
        Project(value="demo"),
        Contributor(name="Jane"),
        datetime(2024, 1, 15, 10, 30),
    ).build()

    assert contribution.timestamp.tzinfo == timezone.utc
    assert contribution.timestamp.hour == 10


def test_item_touched_lines():
    """Test the touched lines shortcut on an item."""
    item = ContributionItem(path="a.txt", previous_content="a\nb", current_content="a\nb\nc")

    assert item.touched_lines() == {"c"}


def test_contribution_serialization(builder):
    """Test dumping a contribution to JSON-compatible data."""
    contribution = builder.add_item(ContributionItem(path="a.py", current_content="x\n")).build()

    data = contribution.model_dump(mode="json")

    assert data["id"] == {"value": "abc123def456"}
    assert data["contributor"] == {"name": "Jane Doe"}
    assert data["items"][0]["path"] == "a.py"
    assert data["timestamp"].startswith("2024-01-15T10:30:00")
