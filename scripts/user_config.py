"""Accretion user configuration.

This is the user-facing configuration file. Modify settings here to customize
the pipeline behavior. Expert defaults live in accretion.schemas.param.

Usage:
    python scripts/run_sequence_pipeline.py scripts/user_config.py
    python scripts/run_sequence_pipeline.py scripts/user_config.py --end 60
"""

CONFIG = {
    # ========================================================================
    # SEQUENCE & STORAGE
    # ========================================================================
    "SEQUENCE_ID": "drop_tower_run1",
    "BASE_DIR": "./output",        # frames/, downlink/, analysis/, logs/ go here
    "SOURCE_DIR": None,            # None = BASE_DIR/frames
    "DOWNLINK_DIR": None,          # None = BASE_DIR/downlink
    "FILENAME_PATTERN": "{index:03d}.pgm",

    # ========================================================================
    # FRAME RANGE (inclusive)
    # ========================================================================
    "START_INDEX": 1,
    "END_INDEX": 135,

    # ========================================================================
    # ANALYSIS
    # ========================================================================
    "THRESHOLD_WORKERS": 4,        # threads for the per-frame threshold search
    "MAX_COMPONENTS": 100000,      # frames with more particles are skipped
    "SEED": None,                  # set an int for reproducible clustering

    # ========================================================================
    # DOWNLINK
    # ========================================================================
    "DOWNLINK_PERCENTAGE": 25,     # share of frames to transmit (0-100)
    "FAILURE_POLICY": "skip_frame",  # or "fail_fast"

    # Advanced: nested overrides
    # "downlink": {"density_weight": 0.5, "acceleration_weight": 0.5, "max_attempts": 1000},
    # "clusterer": {"max_iterations": 500},

    "LOG_LEVEL": "INFO",
}
