"""ParamConfig: Expert defaults for the accretion pipeline.

Every tunable parameter has its default here. Runtime code never reads
ParamConfig directly; it only receives the resolved InternalConfig.
"""

from typing import Literal, Optional
from pydantic import Field, field_validator
from accretion.schemas.base import AccretionBaseModel


# =============================================================================
# Nested Configuration Models
# =============================================================================

class StoreConfig(AccretionBaseModel):
    """Frame store locations and naming."""
    source_dir: Optional[str] = None
    downlink_dir: Optional[str] = None
    filename_pattern: str = Field("{index:03d}.pgm", description="Frame filename, formatted with index=")

    @field_validator("filename_pattern")
    @classmethod
    def require_index_field(cls, v):
        """Pattern must place the frame index somewhere."""
        if "{index" not in v:
            raise ValueError("filename_pattern must contain an '{index...}' field")
        return v


class SequenceConfig(AccretionBaseModel):
    """Frame index range to analyze (inclusive)."""
    start_index: int = Field(1, ge=0)
    end_index: Optional[int] = Field(None, ge=0)


class ThresholdConfig(AccretionBaseModel):
    """Optimal threshold search configuration."""
    workers: int = Field(1, ge=1, description="Threads used for the per-frame threshold pass")


class LabelerConfig(AccretionBaseModel):
    """Connected component labeling configuration."""
    max_components: int = Field(100_000, ge=1, description="Component ceiling per frame")


class ClustererConfig(AccretionBaseModel):
    """K-means clustering configuration."""
    max_iterations: int = Field(500, ge=1)
    seed: Optional[int] = Field(None, ge=0, description="Seed for reproducible initial centers")


class DownlinkConfig(AccretionBaseModel):
    """Downlink scheduling configuration."""
    percentage: float = Field(25.0, ge=0, le=100, description="Share of the sequence to transmit")
    density_weight: float = 0.5
    acceleration_weight: float = 0.5
    max_attempts: int = Field(1000, ge=1)
    copy_frames: bool = True

    @field_validator("percentage", mode="before")
    @classmethod
    def coerce_percentage_to_float(cls, v):
        """Allow int or float for percentage."""
        return float(v)


class ProcessorConfig(AccretionBaseModel):
    """Per-frame processing configuration."""
    failure_policy: Literal["skip_frame", "fail_fast"] = "skip_frame"
    db_filename_pattern: str = "{sequence_id}_frame_statistics.db"


class OutputConfig(AccretionBaseModel):
    """Output file configuration."""
    export_parquet: bool = True
    compression: Literal["snappy", "gzip", "lz4", "none"] = "snappy"


class LoggingConfig(AccretionBaseModel):
    """Logging configuration."""
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"


# =============================================================================
# Main ParamConfig
# =============================================================================

class ParamConfig(AccretionBaseModel):
    """Complete expert configuration with all defaults.

    Usage
    -----
    This config is the base layer in config resolution:

        internal_cfg = resolve_config(param_cfg, user_cfg, cli_cfg)

    Runtime code only sees InternalConfig.
    """

    sequence_id: str = "sequence"
    base_dir: Optional[str] = None
    store: StoreConfig = Field(default_factory=StoreConfig)
    sequence: SequenceConfig = Field(default_factory=SequenceConfig)
    threshold: ThresholdConfig = Field(default_factory=ThresholdConfig)
    labeler: LabelerConfig = Field(default_factory=LabelerConfig)
    clusterer: ClustererConfig = Field(default_factory=ClustererConfig)
    downlink: DownlinkConfig = Field(default_factory=DownlinkConfig)
    processor: ProcessorConfig = Field(default_factory=ProcessorConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
