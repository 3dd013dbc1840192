"""Test the command-line pipeline runner."""

import logging

import pytest

from accretion.cli.run_sequence import load_user_config_dict, run_sequence_pipeline, main

pytestmark = [pytest.mark.unit, pytest.mark.pipeline]


@pytest.fixture(autouse=True)
def restore_root_logging():
    root = logging.getLogger()
    saved = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in saved:
            handler.close()
            root.removeHandler(handler)
    for handler in saved:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def config_file(tmp_path, output_dirs):
    path = tmp_path / "user_config.py"
    path.write_text(
        "CONFIG = {\n"
        f"    'BASE_DIR': {str(output_dirs['base'])!r},\n"
        "    'SEQUENCE_ID': 'cli_run',\n"
        "    'START_INDEX': 1,\n"
        "    'END_INDEX': 6,\n"
        "    'DOWNLINK_PERCENTAGE': 50,\n"
        "}\n"
    )
    return path


def test_load_user_config_dict(config_file):
    cfg = load_user_config_dict(str(config_file))
    assert cfg["SEQUENCE_ID"] == "cli_run"


def test_load_missing_config_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_user_config_dict(str(tmp_path / "nope.py"))


def test_load_config_without_dict_raises(tmp_path):
    path = tmp_path / "empty.py"
    path.write_text("SETTINGS = 1\n")

    with pytest.raises(ValueError):
        load_user_config_dict(str(path))


def test_run_sequence_pipeline(config_file, frame_sequence, output_dirs):
    frame_sequence(6)

    report = run_sequence_pipeline(str(config_file), cli_args={"seed": 1, "end_index": None})

    assert report.sequence_id == "cli_run"
    assert report.downlinked == frozenset({1, 2, 3, 4, 6})
    assert (output_dirs["analysis"] / "cli_run_frame_statistics.db").exists()
    assert (output_dirs["analysis"] / "cli_run_frame_statistics.parquet").exists()
    assert (output_dirs["logs"] / "pipeline_cli_run.log").exists()


def test_rerun_keeps_source_frames(config_file, frame_sequence, output_dirs):
    frame_sequence(6)
    run_sequence_pipeline(str(config_file))

    run_sequence_pipeline(str(config_file), rerun=True)

    assert len(list(output_dirs["frames"].glob("*.pgm"))) == 6


def test_main_with_overrides(config_file, frame_sequence, output_dirs):
    frame_sequence(6)

    rc = main([str(config_file), "--start", "2", "--end", "4", "--percentage", "0"])

    assert rc == 0
    assert sorted(p.name for p in output_dirs["downlink"].glob("*.pgm")) == ["002.pgm", "004.pgm"]


def test_rerun_cleans_default_output_dir(tmp_path, monkeypatch, frame_sequence, output_dirs):
    frame_sequence(6)
    workdir = tmp_path / "workdir"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    path = tmp_path / "no_base_config.py"
    path.write_text(
        "CONFIG = {\n"
        f"    'SOURCE_DIR': {str(output_dirs['frames'])!r},\n"
        "    'SEQUENCE_ID': 'default_out',\n"
        "    'START_INDEX': 1,\n"
        "    'END_INDEX': 6,\n"
        "}\n"
    )
    stale = workdir / "output" / "analysis" / "stale.parquet"
    stale.parent.mkdir(parents=True)
    stale.write_bytes(b"old")

    run_sequence_pipeline(str(path), rerun=True)

    assert not stale.exists()
    assert (workdir / "output" / "analysis" / "default_out_frame_statistics.db").exists()
