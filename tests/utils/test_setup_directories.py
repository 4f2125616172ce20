from pathlib import Path

from epdkit.setup_directories import (
    setup_output_directories,
    get_record_path,
    get_table_path,
    get_plot_path,
    get_log_path,
)


def test_setup_output_directories_creates_all(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert set(dirs.keys()) == {"base", "records", "tables", "plots", "logs"}

    for path in dirs.values():
        assert isinstance(path, Path)
        assert path.exists()
        assert path.is_dir()


def test_setup_output_directories_is_idempotent(tmp_path):
    dirs1 = setup_output_directories(tmp_path)
    dirs2 = setup_output_directories(tmp_path)

    assert dirs1 == dirs2


def test_default_base_is_output_in_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    dirs = setup_output_directories()

    assert dirs["base"] == (tmp_path / "output").resolve()


def test_record_path_is_zero_padded(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert get_record_path(dirs, 42) == dirs["records"] / "entity_00042.nc"


def test_table_path_uses_format(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert get_table_path(dirs, "quercus_6000", "parquet") == dirs["tables"] / "quercus_6000.parquet"
    assert get_table_path(dirs, "quercus_6000") == dirs["tables"] / "quercus_6000.csv"


def test_plot_path_sanitizes_name(tmp_path):
    dirs = setup_output_directories(tmp_path)

    path = get_plot_path(dirs, "Quercus robur/type 6000")
    assert path.parent == dirs["plots"]
    assert path.name == "Quercus_robur_type_6000.png"


def test_log_path(tmp_path):
    dirs = setup_output_directories(tmp_path)

    assert get_log_path(dirs) == dirs["logs"] / "pipeline_latest.log"
    tagged = get_log_path(dirs, "run1")
    assert tagged.name.startswith("pipeline_run1_")
    assert tagged.suffix == ".log"
