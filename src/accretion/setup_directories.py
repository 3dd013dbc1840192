"""
Directory setup for the frame triage pipeline.

Flat layout under one base directory:
- frames/    source frames, {index:03d}.pgm by default
- downlink/  frames selected for transmission
- analysis/  SQLite statistics, frame tracker, parquet exports
- logs/      pipeline logs
"""

from pathlib import Path
from datetime import datetime, timezone

__all__ = ['setup_output_directories', 'get_analysis_path', 'get_log_path']


def setup_output_directories(base_output_dir=None, verbose=True):
    """
    Set up organized output directory structure.

    Parameters
    ----------
    base_output_dir : str or Path, optional
        Base output directory. Defaults to ./output.
    verbose : bool
        Print the created layout.

    Returns
    -------
    dict
        Dictionary with paths: 'base', 'frames', 'downlink', 'analysis', 'logs'
    """
    if base_output_dir is None:
        base_output_dir = Path.cwd() / "output"

    base_output_dir = Path(base_output_dir).expanduser().resolve()

    directories = {
        "base": base_output_dir,
        "frames": base_output_dir / "frames",
        "downlink": base_output_dir / "downlink",
        "analysis": base_output_dir / "analysis",
        "logs": base_output_dir / "logs",
    }

    for path in directories.values():
        path.mkdir(parents=True, exist_ok=True)

    if verbose:
        print("\nOutput directories created:")
        for key, path in directories.items():
            print(f"  {key:12s}: {path}")
        print("=" * 70 + "\n")

    return directories


def get_analysis_path(output_dirs, sequence_id, analysis_type="parquet", filename=None):
    """
    Get analysis file path for a sequence.

    Parameters
    ----------
    output_dirs : dict
        Output directories from setup_output_directories()
    sequence_id : str
        Sequence identifier (e.g., 'run1')
    analysis_type : str
        File extension: 'parquet', 'csv' or 'db'
    filename : str, optional
        Custom filename. If None, generated from sequence_id.

    Returns
    -------
    Path
        Full path: analysis/filename

    Example
    -------
    >>> get_analysis_path(dirs, 'run1', 'parquet')
    Path('output/analysis/run1_frame_statistics.parquet')
    """
    analysis_dir = Path(output_dirs["analysis"])
    analysis_dir.mkdir(parents=True, exist_ok=True)

    if filename is None:
        ext = analysis_type.lstrip('.')
        filename = f"{sequence_id}_frame_statistics.{ext}"

    return analysis_dir / filename


def get_log_path(output_dirs, sequence_id=None, timestamped=False):
    """
    Get log file path.

    Parameters
    ----------
    output_dirs : dict
        Output directories from setup_output_directories()
    sequence_id : str, optional
        Sequence identifier
    timestamped : bool
        Append the current UTC time so runs do not share a log.

    Returns
    -------
    Path
        Full path to log file
    """
    log_dir = Path(output_dirs["logs"])
    log_dir.mkdir(parents=True, exist_ok=True)

    if sequence_id is None:
        return log_dir / "pipeline_latest.log"

    if timestamped:
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        return log_dir / f"pipeline_{sequence_id}_{timestamp}.log"
    return log_dir / f"pipeline_{sequence_id}.log"
