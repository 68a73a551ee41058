"""Configuration models."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from skillmine.diff.algorithms import SupportedAlgorithm


class ExtractionConfig(BaseModel):
    """Configuration for a contribution extraction run."""

    diff_algorithm: SupportedAlgorithm = Field(
        SupportedAlgorithm.HISTOGRAM,
        description="Alignment algorithm used when touched lines are computed",
    )
    skip_failed_branches: bool = Field(
        False,
        description="Log and skip a branch that fails instead of ending the stream",
    )
    progress_interval: int = Field(
        1000,
        ge=1,
        description="Log progress every N processed commit pairs of a branch",
    )
    first_parent: bool = Field(False, description="Follow only first parents when walking history")

    model_config = {
        "json_schema_extra": {
            "example": {
                "diff_algorithm": "histogram",
                "skip_failed_branches": False,
                "progress_interval": 1000,
                "first_parent": False,
            }
        }
    }


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SKILLMINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Processing Settings
    diff_algorithm: SupportedAlgorithm = SupportedAlgorithm.HISTOGRAM
    skip_failed_branches: bool = False
    progress_interval: int = 1000
    first_parent: bool = False

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    def extraction_config(self) -> ExtractionConfig:
        """Build the extraction configuration these settings describe."""
        return ExtractionConfig(
            diff_algorithm=self.diff_algorithm,
            skip_failed_branches=self.skip_failed_branches,
            progress_interval=self.progress_interval,
            first_parent=self.first_parent,
        )
