from conftest import read_lines
from utils_fs import ensure_dirs, log_csv, reset_csv


def test_reset_then_append(tmp_path):
    path = tmp_path / "textfiles" / "framedata.csv"
    ensure_dirs(str(path.parent))
    path.write_text("stale,1\n", encoding="utf-8")

    reset_csv(str(path))
    assert read_lines(path) == []

    log_csv(str(path), ["Alice", 40])
    log_csv(str(path), ["Bob", 31])
    assert read_lines(path) == ["Alice,40", "Bob,31"]


def test_reset_creates_missing_folder(tmp_path):
    path = tmp_path / "new" / "events.csv"
    reset_csv(str(path))
    assert path.exists()
