import numpy as np

from conftest import FakeDetector, read_lines
from facedb import UNKNOWN, FaceDB, load_label_map, write_label_map


def test_load_label_map(tmp_path):
    path = tmp_path / "labels.txt"
    path.write_text("0 alice\n1 bob\n\nbogus\nx carol\n2 dave\n", encoding="utf-8")
    assert load_label_map(str(path)) == {0: "alice", 1: "bob", 2: "dave"}


def test_missing_label_map_is_empty(tmp_path):
    assert load_label_map(str(tmp_path / "labels.txt")) == {}


def test_write_label_map_replaces_old_entries(tmp_path):
    path = str(tmp_path / "labels.txt")
    write_label_map(path, ["a", "b", "c", "d"])
    write_label_map(path, ["x", "y"])
    assert read_lines(path) == ["0 x", "1 y"]
    assert load_label_map(path) == {0: "x", 1: "y"}


def test_untrained_facedb_degrades(tmp_path):
    labels = tmp_path / "labels.txt"
    labels.write_text("0 alice\n", encoding="utf-8")
    db = FaceDB(FakeDetector(), str(tmp_path / "embeddings.xml"), str(labels))

    assert not db.is_trained
    assert db.predict(np.zeros((100, 100), np.uint8)) == (-1, 0.0)
    assert db.label_name(0) == "alice"
    assert db.label_name(-1) == UNKNOWN
    assert db.label_name(7) == UNKNOWN


def test_recognize_frame_reports_each_detected_face(tmp_path):
    db = FaceDB(FakeDetector(), str(tmp_path / "embeddings.xml"),
                str(tmp_path / "labels.txt"), face_size=(100, 100))

    bright = np.full((120, 120, 3), 200, np.uint8)
    results = db.recognize_frame(bright)
    assert [r[0] for r in results] == [(10, 10, 80, 80), (0, 0, 20, 20)]
    assert all(r[1:] == (-1, 0.0) for r in results)

    assert db.recognize_frame(np.zeros((120, 120, 3), np.uint8)) == []
