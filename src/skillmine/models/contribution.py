"""Data models for contributions mined from Git history."""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from skillmine.diff.algorithms import SupportedAlgorithm


class Project(BaseModel):
    """The repository or codebase under analysis."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Opaque project identifier")


class Contributor(BaseModel):
    """A person who committed a change. Equal when names are equal."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Display name")


class ContributionId(BaseModel):
    """Identifier of a contribution, taken from the commit hash."""

    model_config = ConfigDict(frozen=True)

    value: str = Field(..., description="Full commit SHA hash")


class ContributionItem(BaseModel):
    """One text file touched by a contribution."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "path": "src/auth.py",
                "previous_content": "def check(token):\n    return token\n",
                "current_content": "def check(token):\n    return bool(token)\n",
            }
        },
    )

    path: str = Field(..., description="Path of the file in the repository")
    previous_content: str = Field("", description="Content before the commit, empty for additions")
    current_content: str = Field("", description="Content after the commit, empty for deletions")

    def touched_lines(self, algorithm: Optional["SupportedAlgorithm"] = None) -> FrozenSet[str]:
        """Lines of the current content that were inserted or replaced.

        Args:
            algorithm: Alignment algorithm, histogram when omitted

        Returns:
            Distinct touched spans, stripped of surrounding whitespace
        """
        from skillmine.diff.algorithms import SupportedAlgorithm
        from skillmine.diff.content import compute_text_diff

        return compute_text_diff(
            self.previous_content,
            self.current_content,
            algorithm or SupportedAlgorithm.HISTOGRAM,
        ).touched_lines()


class Contribution(BaseModel):
    """The effect of one commit relative to its predecessor in the window."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "id": {"value": "abc123def456"},
                "project": {"value": "skillmine"},
                "contributor": {"name": "John Doe"},
                "timestamp": "2024-01-15T10:30:00Z",
                "message": "Fix authentication bug\n\nResolves issue with token validation",
                "items": [{"path": "src/auth.py", "previous_content": "", "current_content": "x = 1\n"}],
            }
        },
    )

    id: ContributionId
    project: Project
    contributor: Contributor
    timestamp: datetime = Field(..., description="Commit time, UTC, second precision")
    message: str = Field("", description="Full commit message")
    items: Tuple[ContributionItem, ...] = Field(default_factory=tuple)

    @field_validator("timestamp")
    @classmethod
    def _normalize_timestamp(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0)

    @classmethod
    def builder(
        cls,
        id: ContributionId,
        project: Project,
        contributor: Contributor,
        timestamp: datetime,
    ) -> "ContributionBuilder":
        """Start assembling a contribution."""
        return ContributionBuilder(id, project, contributor, timestamp)


class ContributionBuilder:
    """Accumulates items and a message, then produces a Contribution once."""

    def __init__(
        self,
        id: ContributionId,
        project: Project,
        contributor: Contributor,
        timestamp: datetime,
    ) -> None:
        self._id = id
        self._project = project
        self._contributor = contributor
        self._timestamp = timestamp
        self._message = ""
        self._items: List[ContributionItem] = []
        self._built = False

    def set_message(self, message: Optional[str]) -> "ContributionBuilder":
        self._check_open()
        self._message = message or ""
        return self

    def add_item(self, item: ContributionItem) -> "ContributionBuilder":
        self._check_open()
        self._items.append(item)
        return self

    def build(self) -> Contribution:
        """Finalize the builder.

        Raises:
            RuntimeError: If the builder was already built
        """
        self._check_open()
        self._built = True
        return Contribution(
            id=self._id,
            project=self._project,
            contributor=self._contributor,
            timestamp=self._timestamp,
            message=self._message,
            items=tuple(self._items),
        )

    def _check_open(self) -> None:
        if self._built:
            raise RuntimeError(f"Contribution {self._id.value} has already been built")
