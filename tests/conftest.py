"""Shared fixtures: fake detector / recognizer / label source and data files."""

import os

import cv2
import numpy as np
import pytest

from roster import RosterStore


class FakeDetector:
    """Bright images contain one 'face', dark images none."""

    def __init__(self, box=(10, 10, 80, 80)):
        self.box = box
        self.calls = 0

    def detect_faces(self, gray):
        self.calls += 1
        if float(gray.mean()) > 100:
            return [self.box, (0, 0, 20, 20)]
        return []


class FakeRecognizer:
    def __init__(self):
        self.images = None
        self.labels = None
        self.written = []

    def train(self, images, labels):
        self.images = list(images)
        self.labels = [int(v) for v in labels]

    def write(self, path):
        with open(path, "w", encoding="utf-8") as f:
            f.write("<model/>\n")
        self.written.append(path)


class FakeLabels:
    def __init__(self, labels):
        self.labels = dict(labels)

    def label_name(self, label):
        return self.labels.get(label, "Unknown")


def write_image(path, value, size=(120, 120)):
    img = np.full((size[1], size[0], 3), value, dtype=np.uint8)
    assert cv2.imwrite(str(path), img)
    return path


@pytest.fixture
def fake_detector():
    return FakeDetector()


@pytest.fixture
def fake_recognizer():
    return FakeRecognizer()


@pytest.fixture
def roster_path(tmp_path):
    path = tmp_path / "textfiles" / "names.csv"
    path.parent.mkdir()
    path.write_text(
        "Alice,2024-03-01 09:12:44,Manager,2,3\n"
        "Bob,2024-03-02 10:00:00,Employee,1,1\n"
        "Dave,2024-03-04 08:30:00,Admin,3,2\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def roster(roster_path):
    return RosterStore(str(roster_path))


@pytest.fixture
def dataset(tmp_path):
    """
    dataset/
      alice/  two face images + a text file
      bob/    one face image, one faceless image
      carol/  only a faceless and an unreadable image
    """
    root = tmp_path / "dataset"
    for name in ("alice", "bob", "carol"):
        (root / name).mkdir(parents=True)

    write_image(root / "alice" / "a1.png", 200)
    write_image(root / "alice" / "a2.png", 210)
    (root / "alice" / "notes.txt").write_text("not a picture", encoding="utf-8")

    write_image(root / "bob" / "b1.png", 220)
    write_image(root / "bob" / "dark.png", 10)

    write_image(root / "carol" / "dark.png", 5)
    (root / "carol" / "broken.jpg").write_bytes(b"\x00\x01garbage")
    return root


@pytest.fixture
def cascade_file(tmp_path):
    path = tmp_path / "cascade.xml"
    path.write_text("<opencv_storage/>\n", encoding="utf-8")
    return path


@pytest.fixture
def model_paths(tmp_path):
    folder = tmp_path / "recognizer"
    folder.mkdir()
    return str(folder / "embeddings.xml"), str(folder / "labels.txt")


def read_lines(path):
    if not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8") as f:
        return f.read().splitlines()
