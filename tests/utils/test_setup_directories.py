from pathlib import Path

from accretion.setup_directories import setup_output_directories, get_analysis_path, get_log_path


def test_setup_output_directories_creates_all(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert set(dirs.keys()) == {"base", "frames", "downlink", "analysis", "logs"}

    for path in dirs.values():
        assert isinstance(path, Path)
        assert path.exists()
        assert path.is_dir()


def test_setup_output_directories_is_idempotent(tmp_path):
    dirs1 = setup_output_directories(tmp_path, verbose=False)
    dirs2 = setup_output_directories(tmp_path, verbose=False)

    assert dirs1 == dirs2


def test_default_base_is_cwd_output(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    dirs = setup_output_directories(verbose=False)

    assert dirs["base"] == (tmp_path / "output").resolve()


def test_get_analysis_path(tmp_path):
    dirs = setup_output_directories(tmp_path, verbose=False)

    assert get_analysis_path(dirs, "run1") == dirs["analysis"] / "run1_frame_statistics.parquet"
    assert get_analysis_path(dirs, "run1", ".db").name == "run1_frame_statistics.db"
    assert get_analysis_path(dirs, "run1", filename="x.csv").name == "x.csv"


def test_get_log_path(tmp_path):
    dirs = setup_output_directories(tmp_path, verbose=False)

    assert get_log_path(dirs) == dirs["logs"] / "pipeline_latest.log"
    assert get_log_path(dirs, "run1") == dirs["logs"] / "pipeline_run1.log"
    stamped = get_log_path(dirs, "run1", timestamped=True)
    assert stamped.name.startswith("pipeline_run1_")
