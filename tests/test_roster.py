import os
import time
from datetime import datetime

import pytest

from conftest import read_lines
from roster import RosterError, RosterRecord, RosterStore


def test_lookup_returns_first_exact_match(roster):
    rec = roster.lookup("Alice")
    assert rec == RosterRecord("Alice", "2024-03-01 09:12:44", "Manager", 2, "3")
    assert rec.enrolled_at == datetime(2024, 3, 1, 9, 12, 44)

    assert roster.lookup("alice") is None
    assert roster.lookup("Ali") is None


def test_lookup_with_missing_file_is_none(tmp_path):
    store = RosterStore(str(tmp_path / "nope.csv"))
    assert store.lookup("Alice") is None
    assert store.names() == []


def test_short_rows_get_defaults(tmp_path):
    path = tmp_path / "names.csv"
    path.write_text("Eve,2024-01-01 00:00:00\n\nFrank\n", encoding="utf-8")
    store = RosterStore(str(path))

    eve = store.lookup("Eve")
    assert (eve.job_status, eve.access_level, eve.door_number) == ("Employee", 1, "")
    assert store.names() == ["Eve", "Frank"]


def test_update_changes_only_job_and_access(roster, roster_path):
    assert roster.update("Bob", "Admin", 3) is True

    assert read_lines(roster_path) == [
        "Alice,2024-03-01 09:12:44,Manager,2,3",
        "Bob,2024-03-02 10:00:00,Admin,3,1",
        "Dave,2024-03-04 08:30:00,Admin,3,2",
    ]
    assert not os.path.exists(str(roster_path) + ".tmp")


def test_update_unknown_name_leaves_file_untouched(roster, roster_path):
    before = roster_path.read_bytes()
    assert roster.update("Zed", "Manager", 2) is False
    assert roster_path.read_bytes() == before


@pytest.mark.parametrize("job, access", [("Boss", 1), ("Employee", 4), ("Employee", "x")])
def test_update_rejects_invalid_values(roster, roster_path, job, access):
    before = roster_path.read_bytes()
    with pytest.raises(RosterError):
        roster.update("Alice", job, access)
    assert roster_path.read_bytes() == before


def test_rebuild_one_row_per_immediate_subdirectory(roster, roster_path, tmp_path):
    dataset = tmp_path / "dataset"
    (dataset / "zoe" / "nested").mkdir(parents=True)
    (dataset / "adam").mkdir()
    (dataset / "readme.txt").write_text("x", encoding="utf-8")

    stamp = time.mktime((2023, 5, 6, 7, 8, 9, 0, 0, -1))
    os.utime(dataset / "adam", (stamp, stamp))

    assert roster.rebuild_from_enrollment_tree(str(dataset)) == 2

    # previous Alice/Bob/Dave rows are gone, edits are not merged
    assert roster.names() == ["adam", "zoe"]
    assert read_lines(roster_path)[0] == "adam,2023-05-06 07:08:09,Employee,1,1"
    zoe = roster.lookup("zoe")
    assert (zoe.job_status, zoe.access_level, zoe.door_number) == ("Employee", 1, "1")


def test_rebuild_of_empty_tree_empties_table(roster, roster_path, tmp_path):
    dataset = tmp_path / "empty"
    dataset.mkdir()
    assert roster.rebuild_from_enrollment_tree(str(dataset)) == 0
    assert read_lines(roster_path) == []


def test_rebuild_with_missing_dataset_keeps_table(roster, roster_path, tmp_path):
    before = roster_path.read_bytes()
    assert roster.rebuild_from_enrollment_tree(str(tmp_path / "missing")) == 0
    assert roster_path.read_bytes() == before
