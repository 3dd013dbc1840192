#!/usr/bin/env python3
"""Accretion frame triage pipeline runner.

Usage:
    python scripts/run_sequence_pipeline.py scripts/user_config.py
    python scripts/run_sequence_pipeline.py scripts/user_config.py --start 1 --end 40
    python scripts/run_sequence_pipeline.py scripts/user_config.py --percentage 10 --seed 7

Note: User config in scripts/user_config.py, expert defaults in
accretion.schemas.param. Requires the package to be installed
(``pip install -e .``).
"""

import sys

from accretion.cli.run_sequence import main


if __name__ == "__main__":
    sys.exit(main())
