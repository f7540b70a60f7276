import os
from pathlib import Path

import pytest

import facemanager
from conftest import write_image


@pytest.fixture
def picked(tmp_path):
    src = tmp_path / "picked"
    src.mkdir()
    write_image(src / "new1.png", 200)
    write_image(src / "a1.png", 50)
    return [str(src / "new1.png"), str(src / "a1.png")]


def test_add_images_copies_and_replaces(dataset, picked):
    target = dataset / "alice"
    n = facemanager.add_images(str(dataset), str(target), picked)

    assert n == 2
    assert (target / "new1.png").exists()
    # same-name file replaced by the picked one
    assert (target / "a1.png").read_bytes() == Path(picked[1]).read_bytes()


def test_add_images_creates_new_identity_folder(dataset, picked):
    target = dataset / "erin"
    assert facemanager.add_images(str(dataset), str(target), picked[:1]) == 1
    assert os.listdir(target) == ["new1.png"]


def test_add_images_refuses_folders_outside_dataset(dataset, picked, tmp_path):
    with pytest.raises(ValueError):
        facemanager.add_images(str(dataset), str(tmp_path / "elsewhere"), picked)
    with pytest.raises(ValueError):
        facemanager.add_images(str(dataset), str(dataset), picked)


def test_delete_images(dataset):
    victims = [str(dataset / "bob" / "dark.png"), str(dataset / "bob" / "gone.png")]
    assert facemanager.delete_images(str(dataset), victims) == 1
    assert os.listdir(dataset / "bob") == ["b1.png"]


def test_delete_images_outside_dataset_removes_nothing(dataset, picked):
    inside = str(dataset / "bob" / "b1.png")
    with pytest.raises(ValueError):
        facemanager.delete_images(str(dataset), [inside, picked[0]])
    assert os.path.exists(inside)
    assert os.path.exists(picked[0])


def test_first_image(dataset):
    assert facemanager.first_image(str(dataset), "alice").endswith("a1.png")
    assert facemanager.first_image(str(dataset), "carol").endswith("broken.jpg")
    assert facemanager.first_image(str(dataset), "nobody") is None
