"""UserConfig: Forgiving, minimal user-facing configuration.

Accepts flat upper-case aliases (SOURCE_DIR -> store.source_dir,
DOWNLINK_PERCENTAGE -> downlink.percentage, ...) as well as nested
section overrides. Users only specify what differs from the expert
defaults; unknown keys are ignored.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from accretion.schemas.base import AccretionBaseModel


class UserStoreConfig(AccretionBaseModel):
    """User-facing frame store config."""
    source_dir: Optional[str] = None
    downlink_dir: Optional[str] = None
    filename_pattern: Optional[str] = None


class UserClustererConfig(AccretionBaseModel):
    """User-facing clusterer config."""
    max_iterations: Optional[int] = None
    seed: Optional[int] = None


class UserDownlinkConfig(AccretionBaseModel):
    """User-facing downlink config."""
    percentage: Optional[float] = None
    density_weight: Optional[float] = None
    acceleration_weight: Optional[float] = None
    max_attempts: Optional[int] = None
    copy_frames: Optional[bool] = None

    @field_validator("percentage", "density_weight", "acceleration_weight", mode="before")
    @classmethod
    def coerce_weights(cls, v):
        """Accept int or float."""
        if v is not None:
            return float(v)
        return v


class UserProcessorConfig(AccretionBaseModel):
    """User-facing processor config."""
    failure_policy: Optional[str] = None
    db_filename_pattern: Optional[str] = None

    @field_validator("failure_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v):
        """Normalize policy names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v


class UserConfig(AccretionBaseModel):
    """User-facing configuration schema.

    Usage
    -----
        user_cfg = UserConfig(
            BASE_DIR="/data/accretion",
            SOURCE_DIR="/data/camera",
            START_INDEX=1,
            END_INDEX=135,
            DOWNLINK_PERCENTAGE=25,
        )

        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    sequence_id: Optional[str] = Field(None, alias="SEQUENCE_ID")
    base_dir: Optional[str] = Field(None, alias="BASE_DIR")

    # Frame store (flat aliases)
    source_dir: Optional[str] = Field(None, alias="SOURCE_DIR")
    downlink_dir: Optional[str] = Field(None, alias="DOWNLINK_DIR")
    filename_pattern: Optional[str] = Field(None, alias="FILENAME_PATTERN")

    # Frame range
    start_index: Optional[int] = Field(None, alias="START_INDEX")
    end_index: Optional[int] = Field(None, alias="END_INDEX")

    # Algorithm settings (flat aliases)
    threshold_workers: Optional[int] = Field(None, alias="THRESHOLD_WORKERS")
    max_components: Optional[int] = Field(None, alias="MAX_COMPONENTS")
    seed: Optional[int] = Field(None, alias="SEED")
    downlink_percentage: Optional[float] = Field(None, alias="DOWNLINK_PERCENTAGE")
    failure_policy: Optional[str] = Field(None, alias="FAILURE_POLICY")
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = Field(None, alias="LOG_LEVEL")

    # Nested overrides (advanced users)
    store: Optional[UserStoreConfig] = None
    clusterer: Optional[UserClustererConfig] = None
    downlink: Optional[UserDownlinkConfig] = None
    processor: Optional[UserProcessorConfig] = None

    model_config = AccretionBaseModel.model_config.copy()
    model_config.update({"populate_by_name": True, "extra": "ignore"})

    @field_validator("downlink_percentage", mode="before")
    @classmethod
    def coerce_percentage(cls, v):
        """Accept int or float for the downlink percentage."""
        if v is not None:
            return float(v)
        return v

    @field_validator("failure_policy", mode="before")
    @classmethod
    def normalize_policy(cls, v):
        """Normalize policy names to lowercase."""
        if isinstance(v, str):
            return v.lower().strip()
        return v

    def to_internal_overrides(self) -> dict:
        """Convert flat UserConfig to nested InternalConfig structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.sequence_id is not None:
            overrides["sequence_id"] = self.sequence_id
        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)

        store = {}
        if self.source_dir is not None:
            store["source_dir"] = str(self.source_dir)
        if self.downlink_dir is not None:
            store["downlink_dir"] = str(self.downlink_dir)
        if self.filename_pattern is not None:
            store["filename_pattern"] = self.filename_pattern
        if self.store is not None:
            store.update(self.store.model_dump(exclude_none=True))
        if store:
            overrides["store"] = store

        sequence = {}
        if self.start_index is not None:
            sequence["start_index"] = self.start_index
        if self.end_index is not None:
            sequence["end_index"] = self.end_index
        if sequence:
            overrides["sequence"] = sequence

        if self.threshold_workers is not None:
            overrides["threshold"] = {"workers": self.threshold_workers}
        if self.max_components is not None:
            overrides["labeler"] = {"max_components": self.max_components}

        clusterer = {}
        if self.seed is not None:
            clusterer["seed"] = self.seed
        if self.clusterer is not None:
            clusterer.update(self.clusterer.model_dump(exclude_none=True))
        if clusterer:
            overrides["clusterer"] = clusterer

        downlink = {}
        if self.downlink_percentage is not None:
            downlink["percentage"] = self.downlink_percentage
        if self.downlink is not None:
            downlink.update(self.downlink.model_dump(exclude_none=True))
        if downlink:
            overrides["downlink"] = downlink

        processor = {}
        if self.failure_policy is not None:
            processor["failure_policy"] = self.failure_policy
        if self.processor is not None:
            processor.update(self.processor.model_dump(exclude_none=True))
        if processor:
            overrides["processor"] = processor

        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
