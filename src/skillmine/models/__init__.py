"""Data models for contribution mining."""

from skillmine.models.config import ExtractionConfig, Settings
from skillmine.models.contribution import (
    Contribution,
    ContributionBuilder,
    ContributionId,
    ContributionItem,
    Contributor,
    Project,
)

__all__ = [
    "Project",
    "Contributor",
    "ContributionId",
    "ContributionItem",
    "Contribution",
    "ContributionBuilder",
    "ExtractionConfig",
    "Settings",
]
