"""CLIConfig: Command-line operational overrides.

Operational parameters that commonly change between runs: frame range,
directories, downlink share, seed, verbosity.
"""

from typing import Literal, Optional
from pydantic import Field
from accretion.schemas.base import AccretionBaseModel


class CLIConfig(AccretionBaseModel):
    """Command-line configuration overrides.

    Highest priority in config resolution.

    Usage
    -----
        cli_cfg = CLIConfig(start_index=1, end_index=20, seed=7)
        internal = resolve_config(param_cfg, user_cfg, cli_cfg)
    """

    base_dir: Optional[str] = None
    source_dir: Optional[str] = None
    downlink_dir: Optional[str] = None
    start_index: Optional[int] = Field(None, ge=0)
    end_index: Optional[int] = Field(None, ge=0)
    downlink_percentage: Optional[float] = Field(None, ge=0, le=100)
    seed: Optional[int] = Field(None, ge=0)
    log_level: Optional[Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]] = None

    def to_internal_overrides(self) -> dict:
        """Convert CLI config to internal config structure.

        Returns
        -------
        dict
            Nested dictionary matching InternalConfig structure
        """
        overrides = {}

        if self.base_dir is not None:
            overrides["base_dir"] = str(self.base_dir)

        store = {}
        if self.source_dir is not None:
            store["source_dir"] = str(self.source_dir)
        if self.downlink_dir is not None:
            store["downlink_dir"] = str(self.downlink_dir)
        if store:
            overrides["store"] = store

        sequence = {}
        if self.start_index is not None:
            sequence["start_index"] = self.start_index
        if self.end_index is not None:
            sequence["end_index"] = self.end_index
        if sequence:
            overrides["sequence"] = sequence

        if self.downlink_percentage is not None:
            overrides["downlink"] = {"percentage": self.downlink_percentage}
        if self.seed is not None:
            overrides["clusterer"] = {"seed": self.seed}
        if self.log_level is not None:
            overrides["logging"] = {"level": self.log_level}

        return overrides
