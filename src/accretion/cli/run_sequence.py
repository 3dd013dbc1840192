"""Core frame triage pipeline execution logic.

This module contains the actual pipeline runner, separated from argument
parsing. scripts/run_sequence_pipeline.py is a thin wrapper over main().
"""

import argparse
import json
import logging
import importlib.util
import shutil
from pathlib import Path
from typing import Optional, Dict, Any

from accretion.setup_directories import setup_output_directories
from accretion.pipeline.orchestrator import PipelineOrchestrator, SequenceReport
from accretion.schemas import resolve_config, ParamConfig, UserConfig, CLIConfig

__all__ = ['load_user_config_dict', 'run_sequence_pipeline', 'main']

logger = logging.getLogger(__name__)

# Output subdirectories a rerun may delete; frames/ holds the input
RERUN_CLEANED = ("downlink", "analysis", "logs")


def load_user_config_dict(config_path: str) -> dict:
    """Load user config dict from Python file.

    Returns the raw dict before Pydantic validation.

    Parameters
    ----------
    config_path : str
        Path to user config Python file containing CONFIG dict.

    Returns
    -------
    dict
        Raw user configuration dictionary.

    Raises
    ------
    FileNotFoundError
        If config file does not exist.
    ValueError
        If no CONFIG dict found in file.
    """
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    spec = importlib.util.spec_from_file_location("config_module", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)

    for name in dir(module):
        if name.startswith('CONFIG'):
            obj = getattr(module, name)
            if isinstance(obj, dict):
                return obj

    raise ValueError(f"No CONFIG dict found in {path}")


def run_sequence_pipeline(
    user_config_path: str,
    cli_args: Optional[Dict[str, Any]] = None,
    rerun: bool = False,
    verbose: bool = False
) -> SequenceReport:
    """Execute the frame triage pipeline on one sequence.

    1. Loads and resolves configuration (Param < User < CLI)
    2. Sets up output directories
    3. Optionally cleans previous results if rerun=True
    4. Analyzes the sequence, downlinks the selected frames, saves results

    Parameters
    ----------
    user_config_path : str
        Path to user config file (Python file with CONFIG dict).
    cli_args : dict, optional
        CLI argument overrides. Keys: start_index, end_index, base_dir,
        source_dir, downlink_dir, downlink_percentage, seed, log_level.
        None values are ignored.
    rerun : bool, optional
        If True, delete downlink, analysis and log directories first.
        Source frames are never touched.
    verbose : bool, optional
        If True, enable DEBUG logging and print full resolved config.

    Returns
    -------
    SequenceReport

    Raises
    ------
    FileNotFoundError
        If user_config_path does not exist.
    ValueError
        If configuration validation fails.

    Examples
    --------
    ::

        report = run_sequence_pipeline(
            "scripts/user_config.py",
            cli_args={"start_index": 1, "end_index": 40, "seed": 7},
        )
        print(sorted(report.downlinked))
    """
    param_cfg = ParamConfig()

    user_cfg_dict = load_user_config_dict(user_config_path)
    user_cfg = UserConfig.model_validate(user_cfg_dict)

    cli_args = dict(cli_args or {})
    if verbose and cli_args.get("log_level") is None:
        cli_args["log_level"] = "DEBUG"

    cli_dict = {k: v for k, v in cli_args.items() if v is not None}
    cli_cfg = CLIConfig.model_validate(cli_dict) if cli_dict else CLIConfig()

    config = resolve_config(param_cfg, user_cfg, cli_cfg)

    output_dirs = setup_output_directories(config.base_dir, verbose=verbose)

    if rerun:
        for name in RERUN_CLEANED:
            target = output_dirs[name]
            if any(target.iterdir()):
                print(f"Cleaning output directory: {target}")
                shutil.rmtree(target)
                target.mkdir(parents=True)

    print(f"\n{'='*60}")
    print("Accretion Frame Triage Pipeline")
    print('='*60)
    print(f"Config:   {user_config_path}")
    print(f"Sequence: {config.sequence_id}")
    print(f"Frames:   {config.sequence.start_index}-{config.sequence.end_index}")
    print(f"Source:   {config.store.source_dir}")
    print(f"Downlink: {config.store.downlink_dir} ({config.downlink.percentage:g}%)")
    print('='*60)

    if verbose:
        print("\nFull Internal Configuration:")
        print(json.dumps(config.model_dump(), indent=2))
        print('='*60)

    orchestrator = PipelineOrchestrator(config, output_dirs)
    try:
        orchestrator.setup_logging()
        report = orchestrator.analyze_sequence()
        orchestrator.save_results(report)
    finally:
        orchestrator.close()

    print(f"Threshold:  {report.threshold}")
    print(f"Downlinked: {len(report.downlinked)}/{report.num_frames} frames")
    print(f"Failures:   {len(report.failures)}")
    return report


def main(argv=None):
    parser = argparse.ArgumentParser(description="Run the accretion frame triage pipeline")
    parser.add_argument("config", help="Path to user config file")
    parser.add_argument("--start", type=int, help="First frame index")
    parser.add_argument("--end", type=int, help="Last frame index (inclusive)")
    parser.add_argument("--base-dir", help="Output directory")
    parser.add_argument("--source-dir", help="Directory holding the source frames")
    parser.add_argument("--downlink-dir", help="Directory receiving downlinked frames")
    parser.add_argument("--percentage", type=float, help="Share of frames to downlink (0-100)")
    parser.add_argument("--seed", type=int, help="Clustering seed for reproducible runs")
    parser.add_argument("--rerun", action="store_true", help="Delete previous results before running")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args(argv)

    run_sequence_pipeline(
        args.config,
        cli_args={
            "start_index": args.start,
            "end_index": args.end,
            "base_dir": args.base_dir,
            "source_dir": args.source_dir,
            "downlink_dir": args.downlink_dir,
            "downlink_percentage": args.percentage,
            "seed": args.seed,
        },
        rerun=args.rerun,
        verbose=args.verbose,
    )
    return 0
