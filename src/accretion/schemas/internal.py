"""InternalConfig: Authoritative runtime configuration.

This is the only config schema runtime code sees. It is fully validated
and frozen; processing code reads fields directly, with no .get() calls
and no fallback defaults.
"""

from typing import Literal, Optional
from pydantic import Field, ConfigDict, field_validator
from accretion.schemas.base import AccretionBaseModel


class InternalStoreConfig(AccretionBaseModel):
    """Runtime frame store configuration."""
    source_dir: Optional[str]  # Required by PipelineOrchestrator.analyze_sequence()
    downlink_dir: Optional[str]
    filename_pattern: str

    @field_validator("filename_pattern")
    @classmethod
    def require_index_field(cls, v):
        if "{index" not in v:
            raise ValueError("filename_pattern must contain an '{index...}' field")
        return v


class InternalSequenceConfig(AccretionBaseModel):
    """Runtime frame range."""
    start_index: int = Field(ge=0)
    end_index: Optional[int] = Field(ge=0)


class InternalThresholdConfig(AccretionBaseModel):
    """Runtime threshold search configuration."""
    workers: int = Field(ge=1)


class InternalLabelerConfig(AccretionBaseModel):
    """Runtime labeler configuration."""
    max_components: int = Field(ge=1)


class InternalClustererConfig(AccretionBaseModel):
    """Runtime clusterer configuration."""
    max_iterations: int = Field(ge=1)
    seed: Optional[int]


class InternalDownlinkConfig(AccretionBaseModel):
    """Runtime downlink scheduling configuration."""
    percentage: float = Field(ge=0, le=100)
    density_weight: float
    acceleration_weight: float
    max_attempts: int = Field(ge=1)
    copy_frames: bool


class InternalProcessorConfig(AccretionBaseModel):
    """Runtime processor configuration."""
    failure_policy: Literal["skip_frame", "fail_fast"]
    db_filename_pattern: str


class InternalOutputConfig(AccretionBaseModel):
    """Runtime output configuration."""
    export_parquet: bool
    compression: Literal["snappy", "gzip", "lz4", "none"]


class InternalLoggingConfig(AccretionBaseModel):
    """Runtime logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class InternalConfig(AccretionBaseModel):
    """Authoritative runtime configuration.

    Runtime modules receive InternalConfig and access fields directly:

        def __init__(self, config: InternalConfig):
            self.max_iterations = config.clusterer.max_iterations

    All merging and validation happens during config resolution, not in
    runtime code.
    """

    sequence_id: str
    base_dir: Optional[str]
    store: InternalStoreConfig
    sequence: InternalSequenceConfig
    threshold: InternalThresholdConfig
    labeler: InternalLabelerConfig
    clusterer: InternalClustererConfig
    downlink: InternalDownlinkConfig
    processor: InternalProcessorConfig
    output: InternalOutputConfig
    logging: InternalLoggingConfig

    model_config = ConfigDict(
        extra='forbid',
        validate_assignment=True,
        use_enum_values=True,
        str_strip_whitespace=True,
        frozen=True,
    )
